from decimal import Decimal

import pytest

from sixstring_market.db import db
from sixstring_market.errors import InvalidTransition, NotAuthenticated, NotFoundError, PermissionDenied, ValidationError
from sixstring_market.models import Guitar, GuitarStatus, Order, OrderStatus
from sixstring_market.services.order_service import (
    all_orders_svc,
    cancel_order_svc,
    confirm_order_svc,
    create_order_svc,
    orders_by_buyer_svc,
    orders_by_seller_svc,
    orders_for_user_svc,
)

from .conftest import make_guitar


def guitar_status(guitar_id):
    return db.session.get(Guitar, guitar_id).status


def test_create_order_reserves_guitar(guitar, buyer, seller):
    order = create_order_svc(guitar.id, buyer)

    assert order.status == OrderStatus.PROCESSING
    assert order.price == Decimal("500.00")
    assert order.buyer_id == buyer.id
    assert order.seller_id == seller.id
    assert guitar_status(guitar.id) == GuitarStatus.RESERVED


def test_confirm_completes_order_and_sells_guitar(guitar, buyer, seller):
    order = create_order_svc(guitar.id, buyer)
    confirm_order_svc(order.id, seller)

    assert db.session.get(Order, order.id).status == OrderStatus.COMPLETED
    assert guitar_status(guitar.id) == GuitarStatus.SOLD


def test_cancel_puts_guitar_back_on_market(guitar, buyer):
    order = create_order_svc(guitar.id, buyer)
    cancel_order_svc(order.id, buyer)

    assert db.session.get(Order, order.id).status == OrderStatus.CANCELLED
    assert guitar_status(guitar.id) == GuitarStatus.ACTIVE


@pytest.mark.parametrize("status", [GuitarStatus.RESERVED, GuitarStatus.SOLD, GuitarStatus.REMOVED])
def test_create_order_on_unavailable_guitar_changes_nothing(seller, buyer, status):
    g = make_guitar(seller, status=status)

    with pytest.raises(ValidationError) as exc:
        create_order_svc(g.id, buyer)

    assert exc.value.code == "guitar_not_available"
    assert guitar_status(g.id) == status
    assert Order.query.count() == 0


def test_second_buyer_cannot_take_reserved_guitar(guitar, buyer, other_buyer):
    create_order_svc(guitar.id, buyer)
    with pytest.raises(ValidationError):
        create_order_svc(guitar.id, other_buyer)
    assert Order.query.count() == 1


def test_cannot_buy_own_guitar(guitar, seller):
    with pytest.raises(ValidationError) as exc:
        create_order_svc(guitar.id, seller)
    assert exc.value.code == "own_guitar"
    assert guitar_status(guitar.id) == GuitarStatus.ACTIVE


def test_create_order_unknown_guitar(buyer):
    with pytest.raises(NotFoundError):
        create_order_svc(9999, buyer)


def test_create_order_requires_login(guitar):
    with pytest.raises(NotAuthenticated):
        create_order_svc(guitar.id, None)


def test_confirm_after_cancel_is_rejected(guitar, buyer, seller):
    order = create_order_svc(guitar.id, buyer)
    cancel_order_svc(order.id, buyer)

    with pytest.raises(InvalidTransition):
        confirm_order_svc(order.id, seller)

    assert db.session.get(Order, order.id).status == OrderStatus.CANCELLED
    assert guitar_status(guitar.id) == GuitarStatus.ACTIVE


def test_cancel_after_confirm_is_rejected(guitar, buyer, seller):
    order = create_order_svc(guitar.id, buyer)
    confirm_order_svc(order.id, seller)

    with pytest.raises(InvalidTransition):
        cancel_order_svc(order.id, buyer)

    assert db.session.get(Order, order.id).status == OrderStatus.COMPLETED
    assert guitar_status(guitar.id) == GuitarStatus.SOLD


def test_confirm_leaves_removed_listing_removed(guitar, buyer, seller):
    order = create_order_svc(guitar.id, buyer)
    Guitar.query.filter_by(id=guitar.id).update({Guitar.status: GuitarStatus.REMOVED})
    db.session.commit()

    confirm_order_svc(order.id, seller)

    assert db.session.get(Order, order.id).status == OrderStatus.COMPLETED
    assert guitar_status(guitar.id) == GuitarStatus.REMOVED


def test_only_seller_or_admin_confirms(guitar, buyer, admin):
    order = create_order_svc(guitar.id, buyer)
    with pytest.raises(PermissionDenied):
        confirm_order_svc(order.id, buyer)
    confirm_order_svc(order.id, admin)
    assert db.session.get(Order, order.id).status == OrderStatus.COMPLETED


def test_stranger_cannot_cancel(guitar, buyer, other_buyer):
    order = create_order_svc(guitar.id, buyer)
    with pytest.raises(PermissionDenied):
        cancel_order_svc(order.id, other_buyer)
    assert guitar_status(guitar.id) == GuitarStatus.RESERVED


def test_order_history_queries(seller, buyer, other_buyer, admin):
    g1 = make_guitar(seller, title="Gibson Les Paul", brand="Gibson")
    g2 = make_guitar(seller, title="Ibanez RG", brand="Ibanez")
    o1 = create_order_svc(g1.id, buyer)
    o2 = create_order_svc(g2.id, other_buyer)

    assert [o.id for o in orders_by_buyer_svc(buyer.id)] == [o1.id]
    assert {o.id for o in orders_by_seller_svc(seller.id)} == {o1.id, o2.id}
    assert {o.id for o in orders_for_user_svc(seller.id)} == {o1.id, o2.id}
    assert len(all_orders_svc(admin)) == 2
    with pytest.raises(PermissionDenied):
        all_orders_svc(buyer)
