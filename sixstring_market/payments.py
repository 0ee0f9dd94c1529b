"""Payment method variants offered at checkout.

A variant is built per checkout session from the fields the buyer typed in;
it is never persisted itself. What gets stored is a ``Payment`` row carrying
``method``, the total from ``calculate_total`` and ``payment_reference()``.

``process_payment`` goes through a :class:`PaymentGateway`. The only gateway
shipped is :class:`DemoGateway`, which approves every charge; plug a real
processor in by passing another gateway to the variant.
"""
import logging
import time
from abc import ABC, abstractmethod
from decimal import Decimal

from .errors import ValidationError
from .models import PaymentMethodType
from .utils.parsing import clean_str
from .validators import (
    has_min_length,
    is_valid_card_number,
    is_valid_cvv,
    is_valid_expiry,
    is_valid_phone,
    strip_card_number,
    to_decimal,
)

log = logging.getLogger(__name__)

ZERO = Decimal("0.00")
DEFAULT_COD_FEE = Decimal("5.00")
DEFAULT_BANK = {
    "name": "Balgarska Banka AD",
    "owner": "SixStringMarket Ltd",
    "iban": "BG80BNBG96611020345678",
    "bic": "BNBGBGSD",
}


# ---------- Gateway ----------
class PaymentGateway(ABC):
    provider = "none"

    @abstractmethod
    def charge(self, method: "PaymentMethod", amount: Decimal) -> bool:
        ...


class DemoGateway(PaymentGateway):
    """No real processor behind it: every charge is approved."""

    provider = "DemoPay"

    def charge(self, method, amount):
        log.info("DemoPay approved %s charge of %s", method.method.value, amount)
        return True


# ---------- Variants ----------
class PaymentMethod(ABC):
    method: PaymentMethodType
    name = ""
    description = ""

    def __init__(self, processing_fee=ZERO, enabled=True, gateway: PaymentGateway | None = None):
        self.processing_fee = Decimal(processing_fee)
        self.enabled = enabled
        self.gateway = gateway or DemoGateway()

    def calculate_total(self, subtotal) -> Decimal:
        return Decimal(subtotal) + self.processing_fee

    @abstractmethod
    def validation_errors(self) -> list[str]:
        ...

    def validate_payment_data(self) -> bool:
        return not self.validation_errors()

    def ensure_valid(self):
        errors = self.validation_errors()
        if errors:
            raise ValidationError("invalid_payment_data", "Payment details are not valid", errors)

    def process_payment(self, amount) -> bool:
        return self.gateway.charge(self, Decimal(amount))

    @abstractmethod
    def payment_reference(self) -> str:
        ...

    def describe(self) -> dict:
        return {
            "method": self.method.value,
            "name": self.name,
            "description": self.description,
            "processing_fee": f"{self.processing_fee:.2f}",
            "enabled": self.enabled,
        }

    def __str__(self):
        return self.name


class CreditCardPayment(PaymentMethod):
    method = PaymentMethodType.CREDIT_CARD
    name = "Credit card"
    description = "Pay with a credit or debit card (Visa, Mastercard, Maestro)"

    def __init__(self, card_number="", card_holder_name="", expiry_date="", cvv="", **kw):
        super().__init__(ZERO, **kw)
        self.card_number = strip_card_number(card_number)
        self.card_holder_name = card_holder_name
        self.expiry_date = expiry_date
        self.cvv = cvv

    def is_valid_card_number(self) -> bool:
        return is_valid_card_number(self.card_number)

    def is_valid_card_holder_name(self) -> bool:
        return has_min_length(self.card_holder_name, 3)

    def is_valid_expiry_date(self, today=None) -> bool:
        return is_valid_expiry(self.expiry_date, today)

    def is_valid_cvv(self) -> bool:
        return is_valid_cvv(self.cvv)

    def validation_errors(self):
        errors = []
        if not self.is_valid_card_number():
            errors.append("invalid_card_number")
        if not self.is_valid_card_holder_name():
            errors.append("invalid_card_holder_name")
        if not self.is_valid_expiry_date():
            errors.append("card_expired_or_invalid_expiry")
        if not self.is_valid_cvv():
            errors.append("invalid_cvv")
        return errors

    def masked_card_number(self) -> str:
        n = self.card_number
        if len(n) < 4:
            return ""
        hidden = len(n) - 4
        groups = ["*" * min(4, hidden - i) for i in range(0, hidden, 4)]
        return " ".join(groups + [n[-4:]])

    def card_type(self) -> str:
        n = self.card_number
        if not n.isdigit():
            return "Unknown"
        if n.startswith("4"):
            return "Visa"
        if len(n) >= 2 and n[0] == "5" and 1 <= int(n[1]) <= 5:
            return "Mastercard"
        if len(n) >= 4 and n[0] == "2" and 221 <= int(n[1:4]) <= 720:
            return "Mastercard"
        if n.startswith(("34", "37")):
            return "American Express"
        if n.startswith(("6011", "65")) or (len(n) >= 3 and 644 <= int(n[:3]) <= 649):
            return "Discover"
        if n.startswith(("5018", "5020", "5038", "5893", "6304", "6759", "6761", "6762", "6763")):
            return "Maestro"
        return "Unknown"

    def payment_reference(self):
        return f"{self.card_type()} {self.masked_card_number()}"


class CashOnDeliveryPayment(PaymentMethod):
    method = PaymentMethodType.CASH_ON_DELIVERY
    name = "Cash on delivery"

    def __init__(self, delivery_address="", recipient_name="", recipient_phone="", fee=DEFAULT_COD_FEE, **kw):
        super().__init__(fee, **kw)
        self.delivery_address = delivery_address
        self.recipient_name = recipient_name
        self.recipient_phone = recipient_phone

    @property
    def description(self):
        return f"Pay the courier on delivery, fee {self.processing_fee:.2f}"

    def is_valid_delivery_address(self) -> bool:
        return has_min_length(self.delivery_address, 10)

    def is_valid_recipient_name(self) -> bool:
        return has_min_length(self.recipient_name, 3)

    def is_valid_recipient_phone(self) -> bool:
        return is_valid_phone(self.recipient_phone)

    def validation_errors(self):
        errors = []
        if not self.is_valid_delivery_address():
            errors.append("invalid_delivery_address")
        if not self.is_valid_recipient_name():
            errors.append("invalid_recipient_name")
        if not self.is_valid_recipient_phone():
            errors.append("invalid_recipient_phone")
        return errors

    def payment_reference(self):
        return (
            f"Delivery to: {self.delivery_address.strip()}, "
            f"recipient: {self.recipient_name.strip()}, "
            f"phone: {self.recipient_phone}"
        )


class BankTransferPayment(PaymentMethod):
    method = PaymentMethodType.BANK_TRANSFER
    name = "Bank transfer"
    description = "Pay by bank transfer"

    def __init__(self, customer_name="", user_id=0, bank: dict | None = None, **kw):
        super().__init__(ZERO, **kw)
        self.customer_name = customer_name
        self.user_id = user_id
        self.bank = {**DEFAULT_BANK, **(bank or {})}
        self.transfer_reference = self.generate_transfer_reference()

    def generate_transfer_reference(self) -> str:
        return f"SSM-{int(time.time() * 1000)}-{self.user_id}"

    def is_valid_customer_name(self) -> bool:
        return has_min_length(self.customer_name, 3)

    def validation_errors(self):
        return [] if self.is_valid_customer_name() else ["invalid_customer_name"]

    def generate_payment_instructions(self, amount) -> str:
        lines = [
            "BANK TRANSFER INSTRUCTIONS:",
            "",
            f"Bank: {self.bank['name']}",
            f"Beneficiary: {self.bank['owner']}",
            f"IBAN: {self.bank['iban']}",
            f"BIC: {self.bank['bic']}",
            f"Amount: {Decimal(amount):.2f}",
            f"Payment reference: {self.transfer_reference}",
            "",
            "IMPORTANT: put the reference in the transfer description so the order can be matched.",
            "The order is processed once the payment is confirmed.",
        ]
        return "\n".join(lines)

    def payment_reference(self):
        return self.transfer_reference


# ---------- Factory ----------
METHOD_ALIASES = {
    "credit_card": PaymentMethodType.CREDIT_CARD,
    "card": PaymentMethodType.CREDIT_CARD,
    "cash_on_delivery": PaymentMethodType.CASH_ON_DELIVERY,
    "cod": PaymentMethodType.CASH_ON_DELIVERY,
    "bank_transfer": PaymentMethodType.BANK_TRANSFER,
    "bank": PaymentMethodType.BANK_TRANSFER,
}


def parse_method(kind) -> PaymentMethodType:
    if isinstance(kind, PaymentMethodType):
        return kind
    key = str(kind or "").strip().lower()
    if key in METHOD_ALIASES:
        return METHOD_ALIASES[key]
    raise ValidationError("unknown_payment_method", f"Unknown payment method: {kind!r}")


def _text(data: dict, key: str) -> str:
    return clean_str(data.get(key)) or ""


def build_payment_method(kind, data: dict, user_id: int, settings: dict | None = None,
                         gateway: PaymentGateway | None = None) -> PaymentMethod:
    """Build the variant for ``kind`` from the submitted form ``data``.

    ``settings`` may carry ``COD_FEE`` and ``BANK_*`` values (usually the
    Flask app config).
    """
    settings = settings or {}
    method = parse_method(kind)
    d = data if isinstance(data, dict) else {}
    if method == PaymentMethodType.CREDIT_CARD:
        return CreditCardPayment(
            card_number=_text(d, "card_number"),
            card_holder_name=_text(d, "card_holder_name"),
            expiry_date=_text(d, "expiry_date"),
            cvv=_text(d, "cvv"),
            gateway=gateway,
        )
    if method == PaymentMethodType.CASH_ON_DELIVERY:
        fee = to_decimal(settings.get("COD_FEE"))
        return CashOnDeliveryPayment(
            delivery_address=_text(d, "delivery_address"),
            recipient_name=_text(d, "recipient_name"),
            recipient_phone=_text(d, "recipient_phone"),
            fee=fee if fee is not None else DEFAULT_COD_FEE,
            gateway=gateway,
        )
    bank = {
        k: settings[f"BANK_{s}"]
        for k, s in (("name", "NAME"), ("owner", "OWNER"), ("iban", "IBAN"), ("bic", "BIC"))
        if settings.get(f"BANK_{s}")
    }
    return BankTransferPayment(
        customer_name=_text(d, "customer_name"),
        user_id=user_id,
        bank=bank,
        gateway=gateway,
    )


def available_methods(settings: dict | None = None) -> list[PaymentMethod]:
    settings = settings or {}
    return [
        build_payment_method(m, {}, 0, settings)
        for m in (PaymentMethodType.CREDIT_CARD, PaymentMethodType.CASH_ON_DELIVERY, PaymentMethodType.BANK_TRANSFER)
    ]
