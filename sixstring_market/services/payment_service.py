import logging
from decimal import Decimal

from ..auth import ensure_owner
from ..db import db
from ..errors import InvalidTransition, NotFoundError
from ..models import Order, OrderStatus, Payment, PaymentMethodType, PaymentStatus, User
from ..utils.responses import commit_or_rollback

log = logging.getLogger(__name__)

# FAILED and REFUNDED are final
PAYMENT_TRANSITIONS = {
    PaymentStatus.PENDING: {PaymentStatus.COMPLETED, PaymentStatus.FAILED},
    PaymentStatus.COMPLETED: {PaymentStatus.REFUNDED},
    PaymentStatus.FAILED: set(),
    PaymentStatus.REFUNDED: set(),
}


def record_payment_svc(order: Order, method: PaymentMethodType, amount, reference: str | None = None,
                       status: PaymentStatus = PaymentStatus.PENDING) -> Payment:
    pay = Payment(
        order_id=order.id,
        method=method,
        amount=Decimal(amount),
        reference=reference,
        status=status,
    )
    db.session.add(pay)
    commit_or_rollback()
    log.info("payment %s recorded for order %s: %s %s (%s)",
             pay.id, order.id, method.value, pay.amount, status.value)
    return pay


def get_payment_svc(payment_id: int) -> Payment:
    pay = db.session.get(Payment, payment_id)
    if not pay:
        raise NotFoundError("payment_not_found", "Payment does not exist")
    return pay


def update_payment_status_svc(actor: User, payment_id: int, status: PaymentStatus) -> Payment:
    """The seller marks cash/bank payments as received (or refunded)."""
    pay = get_payment_svc(payment_id)
    ensure_owner(actor, pay.order.seller_id)
    if status == pay.status:
        return pay
    if status not in PAYMENT_TRANSITIONS[pay.status]:
        raise InvalidTransition(
            message=f"Payment is {pay.status.value.lower()} and cannot become {status.value.lower()}"
        )
    if pay.order.status == OrderStatus.CANCELLED and status == PaymentStatus.COMPLETED:
        raise InvalidTransition(message="The order was cancelled; its payment cannot be completed")
    pay.status = status
    commit_or_rollback()
    log.info("payment %s set to %s by %s", pay.id, status.value, actor.username)
    return pay


def payments_for_order_svc(order_id: int) -> list[Payment]:
    return Payment.query.filter_by(order_id=order_id).order_by(Payment.id.asc()).all()
