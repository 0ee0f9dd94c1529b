"""Order lifecycle and the guitar reservation that goes with it.

Guitar: ACTIVE -> RESERVED -> SOLD, RESERVED -> ACTIVE on cancel.
Order:  PROCESSING -> COMPLETED | CANCELLED, both terminal.

The order row and the guitar status are always written in the same
transaction. Status changes are conditional updates (``WHERE status = ...``)
so two callers racing on the same guitar or order cannot both win.
"""
import logging
from sqlalchemy import or_

from ..auth import ensure_actor, ensure_admin, ensure_owner
from ..db import db
from ..errors import InvalidTransition, NotFoundError, PermissionDenied, ValidationError
from ..models import Guitar, GuitarStatus, Order, OrderStatus, User
from ..utils.responses import commit_or_rollback

log = logging.getLogger(__name__)


def _move_guitar(guitar_id: int, src: GuitarStatus, dst: GuitarStatus) -> bool:
    n = (
        Guitar.query
        .filter(Guitar.id == guitar_id, Guitar.status == src)
        .update({Guitar.status: dst}, synchronize_session="evaluate")
    )
    return n == 1


def _move_order(order_id: int, dst: OrderStatus) -> bool:
    n = (
        Order.query
        .filter(Order.id == order_id, Order.status == OrderStatus.PROCESSING)
        .update({Order.status: dst}, synchronize_session="evaluate")
    )
    return n == 1


def get_order_svc(order_id: int) -> Order:
    o = db.session.get(Order, order_id)
    if not o:
        raise NotFoundError("order_not_found", "Order does not exist")
    return o


def create_order_svc(guitar_id: int, actor: User) -> Order:
    ensure_actor(actor)
    guitar = db.session.get(Guitar, guitar_id)
    if guitar is None:
        raise NotFoundError("guitar_not_found", "Guitar does not exist")
    if guitar.status != GuitarStatus.ACTIVE:
        raise ValidationError("guitar_not_available", "This guitar is not available for purchase")
    if db.session.get(User, actor.id) is None:
        raise NotFoundError("buyer_not_found", "Buyer does not exist")
    if actor.id == guitar.seller_id:
        raise ValidationError("own_guitar", "You cannot buy your own guitar")

    if not _move_guitar(guitar.id, GuitarStatus.ACTIVE, GuitarStatus.RESERVED):
        db.session.rollback()
        log.warning("guitar %s was reserved by someone else first", guitar_id)
        raise ValidationError("guitar_not_available", "This guitar is not available for purchase")

    order = Order(
        guitar_id=guitar.id,
        buyer_id=actor.id,
        seller_id=guitar.seller_id,
        price=guitar.price,
        status=OrderStatus.PROCESSING,
    )
    db.session.add(order)
    commit_or_rollback()
    log.info("order %s created: guitar %s reserved for user %s at %s",
             order.id, guitar.id, actor.id, order.price)
    return order


def confirm_order_svc(order_id: int, actor: User) -> Order:
    """Seller (or admin) confirms the sale: order COMPLETED, guitar SOLD."""
    order = get_order_svc(order_id)
    ensure_owner(actor, order.seller_id)
    if order.status != OrderStatus.PROCESSING or not _move_order(order.id, OrderStatus.COMPLETED):
        db.session.rollback()
        raise InvalidTransition(message=f"Order is {order.status.value.lower()} and cannot be confirmed")
    # a listing removed meanwhile stays removed
    if not _move_guitar(order.guitar_id, GuitarStatus.RESERVED, GuitarStatus.SOLD):
        log.warning("guitar %s was not reserved when order %s was confirmed", order.guitar_id, order.id)
    commit_or_rollback()
    log.info("order %s completed by %s", order.id, actor.username)
    return order


def cancel_order_svc(order_id: int, actor: User) -> Order:
    """Buyer, seller or admin cancels; the guitar goes back on the market."""
    order = get_order_svc(order_id)
    ensure_actor(actor)
    if not (actor.is_admin or actor.id in (order.buyer_id, order.seller_id)):
        raise PermissionDenied(message="Only the buyer or the seller can cancel this order")
    if order.status != OrderStatus.PROCESSING or not _move_order(order.id, OrderStatus.CANCELLED):
        db.session.rollback()
        raise InvalidTransition(message=f"Order is {order.status.value.lower()} and cannot be cancelled")
    # a listing removed meanwhile stays removed
    _move_guitar(order.guitar_id, GuitarStatus.RESERVED, GuitarStatus.ACTIVE)
    commit_or_rollback()
    log.info("order %s cancelled by %s", order.id, actor.username)
    return order


def orders_by_buyer_svc(buyer_id: int) -> list[Order]:
    return Order.query.filter_by(buyer_id=buyer_id).order_by(Order.order_date.desc()).all()


def orders_by_seller_svc(seller_id: int) -> list[Order]:
    return Order.query.filter_by(seller_id=seller_id).order_by(Order.order_date.desc()).all()


def orders_for_user_svc(user_id: int) -> list[Order]:
    return (
        Order.query
        .filter(or_(Order.buyer_id == user_id, Order.seller_id == user_id))
        .order_by(Order.order_date.desc())
        .all()
    )


def all_orders_svc(actor: User) -> list[Order]:
    ensure_admin(actor)
    return Order.query.order_by(Order.order_date.desc()).all()


def can_view_order(actor: User | None, order: Order) -> bool:
    return actor is not None and (actor.is_admin or actor.id in (order.buyer_id, order.seller_id))
