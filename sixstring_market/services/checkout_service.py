"""Three-step checkout: summary, payment details, confirmation.

Each step unlocks the next one only when it succeeds, so an order can never
be placed with payment details that did not pass validation.
"""
import logging
from dataclasses import dataclass
from enum import IntEnum

from ..auth import ensure_actor
from ..db import db
from ..errors import CheckoutStepError, PaymentFailed, ValidationError
from ..models import GuitarStatus, Order, Payment, PaymentMethodType, PaymentStatus, User
from ..payments import BankTransferPayment, PaymentGateway, PaymentMethod, available_methods, build_payment_method
from .guitar_service import get_guitar_svc
from .order_service import cancel_order_svc, create_order_svc
from .payment_service import record_payment_svc

log = logging.getLogger(__name__)


class CheckoutStep(IntEnum):
    SUMMARY = 1
    PAYMENT = 2
    CONFIRM = 3
    DONE = 4


@dataclass
class CheckoutResult:
    order: Order
    payment: Payment
    method: PaymentMethod
    instructions: str | None = None

    def to_dict(self):
        return {
            "order": self.order.to_dict(),
            "payment": self.payment.to_dict(),
            "method": self.method.describe(),
            "instructions": self.instructions,
        }


class Checkout:
    def __init__(self, guitar_id: int, actor: User, settings: dict | None = None,
                 gateway: PaymentGateway | None = None):
        self.actor = ensure_actor(actor)
        self.guitar_id = guitar_id
        self.settings = settings or {}
        self.gateway = gateway
        self.step = CheckoutStep.SUMMARY
        self.method: PaymentMethod | None = None
        self.result: CheckoutResult | None = None

    def _expect(self, *steps: CheckoutStep):
        if self.step not in steps:
            raise CheckoutStepError(message=f"Checkout is at step {self.step.name.lower()}")

    # ---------- Step 1 ----------
    def summary(self) -> dict:
        self._expect(CheckoutStep.SUMMARY, CheckoutStep.PAYMENT, CheckoutStep.CONFIRM)
        g = get_guitar_svc(self.guitar_id)
        if g.status != GuitarStatus.ACTIVE:
            raise ValidationError("guitar_not_available", "This guitar is not available for purchase")
        methods = []
        for m in available_methods(self.settings):
            methods.append({**m.describe(), "total": f"{m.calculate_total(g.price):.2f}"})
        if self.step == CheckoutStep.SUMMARY:
            self.step = CheckoutStep.PAYMENT
        seller = db.session.get(User, g.seller_id)
        return {
            "guitar": g.to_dict(),
            "price": f"{g.price:.2f}",
            "seller": {"id": g.seller_id, "username": seller.username if seller else None},
            "methods": methods,
        }

    # ---------- Step 2 ----------
    def choose_payment(self, kind, data: dict) -> PaymentMethod:
        self._expect(CheckoutStep.PAYMENT, CheckoutStep.CONFIRM)
        self.step = CheckoutStep.PAYMENT
        self.method = None
        method = build_payment_method(kind, data, self.actor.id, self.settings, self.gateway)
        method.ensure_valid()
        self.method = method
        self.step = CheckoutStep.CONFIRM
        return method

    # ---------- Step 3 ----------
    def confirm(self) -> CheckoutResult:
        self._expect(CheckoutStep.CONFIRM)
        method = self.method
        order = create_order_svc(self.guitar_id, self.actor)
        total = method.calculate_total(order.price)

        if not method.process_payment(total):
            record_payment_svc(order, method.method, total, method.payment_reference(), PaymentStatus.FAILED)
            cancel_order_svc(order.id, self.actor)
            log.warning("payment declined for order %s, order cancelled", order.id)
            raise PaymentFailed(message="The payment was declined")

        status = PaymentStatus.COMPLETED if method.method == PaymentMethodType.CREDIT_CARD else PaymentStatus.PENDING
        payment = record_payment_svc(order, method.method, total, method.payment_reference(), status)
        instructions = None
        if isinstance(method, BankTransferPayment):
            instructions = method.generate_payment_instructions(total)

        self.result = CheckoutResult(order, payment, method, instructions)
        self.step = CheckoutStep.DONE
        return self.result


def run_checkout_svc(guitar_id: int, actor: User, kind, data: dict, settings: dict | None = None,
                     gateway: PaymentGateway | None = None) -> CheckoutResult:
    """All three steps in one go (what the HTTP endpoint does)."""
    co = Checkout(guitar_id, actor, settings, gateway)
    co.summary()
    co.choose_payment(kind, data)
    return co.confirm()
