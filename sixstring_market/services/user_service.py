import logging
from sqlalchemy import or_
from werkzeug.security import check_password_hash, generate_password_hash

from ..auth import ensure_actor, ensure_admin
from ..db import db
from ..errors import Conflict, NotAuthenticated, NotFoundError, ValidationError
from ..models import (
    Guitar,
    GuitarReview,
    GuitarStatus,
    Order,
    OrderStatus,
    RevokedToken,
    SavedGuitar,
    User,
    UserRole,
)
from ..utils.parsing import as_text, clean_str
from ..utils.responses import commit_or_rollback
from ..validators import is_strong_password, is_valid_email, is_valid_phone, is_valid_username

log = logging.getLogger(__name__)

PASSWORD_HINT = "Password must be at least 6 characters with one digit and one uppercase letter"


def normalize_email(s) -> str | None:
    s = clean_str(s)
    return s.lower() if s else None


def _check_contact(email, phone):
    if not is_valid_email(email):
        raise ValidationError("invalid_email", "Invalid email address")
    if phone and not is_valid_phone(phone):
        raise ValidationError("invalid_phone", "Phone must be 10 digits starting with 0")


def _ensure_unique(username: str | None, email: str | None, exclude_id: int | None = None):
    conds = []
    if username:
        conds.append(User.username == username)
    if email:
        conds.append(User.email == email)
    q = User.query.filter(or_(*conds))
    if exclude_id is not None:
        q = q.filter(User.id != exclude_id)
    existed = q.first()
    if existed:
        if username and existed.username == username:
            raise Conflict("username_exists", "Username is already taken")
        raise Conflict("email_exists", "Email is already in use")


def create_user(username, password, email, phone=None, address=None, role=UserRole.USER) -> User:
    username = clean_str(username) or ""
    password = as_text(password)
    email = normalize_email(email)
    phone = clean_str(phone)
    if not is_valid_username(username):
        raise ValidationError("invalid_username", "Username needs 4+ letters, digits or underscores")
    if not is_strong_password(password):
        raise ValidationError("weak_password", PASSWORD_HINT)
    _check_contact(email, phone)
    _ensure_unique(username, email)

    u = User(
        username=username,
        email=email,
        password=generate_password_hash(password),
        phone=phone,
        address=clean_str(address),
        role=role,
    )
    db.session.add(u)
    commit_or_rollback()
    log.info("user %s registered as %s", u.username, role.value)
    return u


def register_user_svc(data: dict) -> User:
    return create_user(
        data.get("username"),
        data.get("password"),
        data.get("email"),
        data.get("phone"),
        data.get("address"),
    )


def is_username_taken_svc(username: str) -> bool:
    return User.query.filter_by(username=clean_str(username) or "").first() is not None


def login_svc(username, password) -> User:
    username = clean_str(username) or ""
    password = as_text(password)
    if not username or not password:
        raise ValidationError("missing_fields", "username and password required")
    u = User.query.filter_by(username=username).first()
    if not u or not check_password_hash(u.password, password):
        log.warning("failed login for %r", username)
        raise NotAuthenticated("invalid_credentials", "Wrong username or password")
    return u


def logout_svc(jti: str | None):
    if not jti or RevokedToken.query.filter_by(jti=jti).first():
        return
    db.session.add(RevokedToken(jti=jti))
    commit_or_rollback()


def get_user_svc(user_id: int) -> User:
    u = db.session.get(User, user_id)
    if not u:
        raise NotFoundError("user_not_found", "User does not exist")
    return u


def update_profile_svc(actor: User, data: dict) -> User:
    """Email, phone and address are editable; the username is not."""
    ensure_actor(actor)
    email = normalize_email(data.get("email")) if "email" in data else actor.email
    phone = clean_str(data.get("phone")) if "phone" in data else actor.phone
    _check_contact(email, phone)
    if email != actor.email:
        _ensure_unique(None, email, exclude_id=actor.id)
    actor.email = email
    actor.phone = phone
    if "address" in data:
        actor.address = clean_str(data.get("address"))
    commit_or_rollback()
    return actor


def change_password_svc(actor: User, old_password, new_password) -> bool:
    ensure_actor(actor)
    new_password = as_text(new_password)
    if not check_password_hash(actor.password, as_text(old_password)):
        raise ValidationError("wrong_password", "Current password is incorrect")
    if not is_strong_password(new_password):
        raise ValidationError("weak_password", PASSWORD_HINT)
    actor.password = generate_password_hash(new_password)
    commit_or_rollback()
    return True


# ---------- Admin ----------
def list_users_svc(actor: User) -> list[User]:
    ensure_admin(actor)
    return User.query.order_by(User.id.desc()).all()


def change_user_role_svc(actor: User, user_id: int, role: UserRole) -> User:
    ensure_admin(actor)
    u = get_user_svc(user_id)
    if u.id == actor.id and role != UserRole.ADMIN:
        raise ValidationError("cannot_demote_self", "You cannot remove your own admin role")
    u.role = role
    commit_or_rollback()
    log.info("admin %s set role of %s to %s", actor.username, u.username, role.value)
    return u


def delete_user_svc(actor: User, user_id: int) -> bool:
    ensure_admin(actor)
    u = get_user_svc(user_id)
    if u.id == actor.id:
        raise ValidationError("cannot_delete_self", "You cannot delete your own account")
    open_orders = Order.query.filter(
        Order.status == OrderStatus.PROCESSING,
        or_(Order.buyer_id == u.id, Order.seller_id == u.id),
    ).count()
    if open_orders:
        raise Conflict("user_has_open_orders", "The user still has orders in progress")

    Guitar.query.filter(
        Guitar.seller_id == u.id, Guitar.status == GuitarStatus.ACTIVE
    ).update({Guitar.status: GuitarStatus.REMOVED}, synchronize_session=False)
    SavedGuitar.query.filter_by(user_id=u.id).delete(synchronize_session=False)
    GuitarReview.query.filter_by(user_id=u.id).delete(synchronize_session=False)
    db.session.delete(u)
    commit_or_rollback()
    log.info("admin %s deleted user %s", actor.username, u.username)
    return True


def create_admin_svc(actor: User | None, username, password, email) -> User:
    """Create an administrator. ``actor`` is None only for out-of-band provisioning."""
    if actor is not None:
        ensure_admin(actor)
    return create_user(username, password, email, role=UserRole.ADMIN)


def admin_count_svc() -> int:
    return User.query.filter_by(role=UserRole.ADMIN).count()
