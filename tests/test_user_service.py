import pytest

from sixstring_market.db import db
from sixstring_market.errors import Conflict, NotAuthenticated, PermissionDenied, ValidationError
from sixstring_market.models import Guitar, GuitarStatus, SavedGuitar, User, UserRole
from sixstring_market.services.order_service import create_order_svc
from sixstring_market.services.saved_guitar_service import save_guitar_svc
from sixstring_market.services.user_service import (
    admin_count_svc,
    change_password_svc,
    change_user_role_svc,
    create_admin_svc,
    create_user,
    delete_user_svc,
    is_username_taken_svc,
    list_users_svc,
    login_svc,
    register_user_svc,
    update_profile_svc,
)

from .conftest import PASSWORD, make_guitar


def test_register_and_login(app):
    u = register_user_svc({
        "username": "newbie",
        "password": "Guitar99",
        "email": "  Newbie@Example.COM ",
        "phone": "0888000111",
    })
    assert u.email == "newbie@example.com"
    assert u.role == UserRole.USER
    assert u.password != "Guitar99"
    assert login_svc("newbie", "Guitar99").id == u.id


def test_duplicate_username_keeps_one_row(seller):
    with pytest.raises(Conflict) as exc:
        create_user("seller_one", PASSWORD, "other@example.com")
    assert exc.value.code == "username_exists"
    assert User.query.filter_by(username="seller_one").count() == 1


def test_duplicate_email(seller):
    with pytest.raises(Conflict) as exc:
        create_user("someone_else", PASSWORD, "SELLER@example.com")
    assert exc.value.code == "email_exists"


@pytest.mark.parametrize("username,password,email,phone,code", [
    ("abc", PASSWORD, "a@b.c", None, "invalid_username"),
    ("valid_name", "secret", "a@b.c", None, "weak_password"),
    ("valid_name", PASSWORD, "not-an-email", None, "invalid_email"),
    ("valid_name", PASSWORD, "a@b.c", "12345", "invalid_phone"),
])
def test_create_user_validation(app, username, password, email, phone, code):
    with pytest.raises(ValidationError) as exc:
        create_user(username, password, email, phone)
    assert exc.value.code == code
    assert User.query.count() == 0


def test_username_taken(seller):
    assert is_username_taken_svc("seller_one")
    assert not is_username_taken_svc("nobody_here")


def test_login_failures(seller):
    with pytest.raises(NotAuthenticated):
        login_svc("seller_one", "wrong")
    with pytest.raises(ValidationError):
        login_svc("", "")


def test_no_builtin_admin_account(app):
    with pytest.raises(NotAuthenticated):
        login_svc("admin", "admin123")


def test_update_profile(buyer, seller):
    update_profile_svc(buyer, {"phone": "0899111222", "address": "5 New Road, Varna"})
    assert buyer.phone == "0899111222"
    assert buyer.address == "5 New Road, Varna"
    assert buyer.email == "buyer@example.com"

    with pytest.raises(Conflict):
        update_profile_svc(buyer, {"email": "seller@example.com"})


def test_change_password(buyer):
    with pytest.raises(ValidationError) as exc:
        change_password_svc(buyer, "nope", "NewPass1")
    assert exc.value.code == "wrong_password"

    with pytest.raises(ValidationError) as exc:
        change_password_svc(buyer, PASSWORD, "weak")
    assert exc.value.code == "weak_password"

    assert change_password_svc(buyer, PASSWORD, "NewPass1")
    assert login_svc("buyer_one", "NewPass1").id == buyer.id


def test_admin_user_management(admin, buyer):
    assert {u.username for u in list_users_svc(admin)} == {"root_admin", "buyer_one"}
    with pytest.raises(PermissionDenied):
        list_users_svc(buyer)

    change_user_role_svc(admin, buyer.id, UserRole.ADMIN)
    assert buyer.is_admin
    assert admin_count_svc() == 2

    with pytest.raises(ValidationError):
        change_user_role_svc(admin, admin.id, UserRole.USER)


def test_create_admin(admin, buyer):
    new_admin = create_admin_svc(admin, "second_admin", PASSWORD, "second@example.com")
    assert new_admin.role == UserRole.ADMIN
    with pytest.raises(PermissionDenied):
        create_admin_svc(buyer, "third_admin", PASSWORD, "third@example.com")
    assert create_admin_svc(None, "boot_admin", PASSWORD, "boot@example.com").is_admin


def test_delete_user_cleans_up(admin, seller, buyer):
    g = make_guitar(seller)
    save_guitar_svc(seller, g.id)
    seller_id = seller.id

    assert delete_user_svc(admin, seller_id)
    assert db.session.get(User, seller_id) is None
    assert db.session.get(Guitar, g.id).status == GuitarStatus.REMOVED
    assert SavedGuitar.query.filter_by(user_id=seller_id).count() == 0


def test_delete_user_with_open_order_is_refused(admin, seller, buyer):
    g = make_guitar(seller)
    create_order_svc(g.id, buyer)
    with pytest.raises(Conflict) as exc:
        delete_user_svc(admin, buyer.id)
    assert exc.value.code == "user_has_open_orders"


def test_admin_cannot_delete_self(admin):
    with pytest.raises(ValidationError):
        delete_user_svc(admin, admin.id)
