import re
from decimal import Decimal

import pytest

from sixstring_market.errors import ValidationError
from sixstring_market.models import PaymentMethodType
from sixstring_market.payments import (
    BankTransferPayment,
    CashOnDeliveryPayment,
    CreditCardPayment,
    DemoGateway,
    build_payment_method,
)


def card(number="4111111111111111", holder="Ivan Petrov", expiry="12/39", cvv="123"):
    return CreditCardPayment(number, holder, expiry, cvv)


def test_credit_card_valid_and_free():
    c = card()
    assert c.validate_payment_data()
    assert c.processing_fee == Decimal("0.00")
    assert c.calculate_total(Decimal("200.00")) == Decimal("200.00")


def test_credit_card_collects_all_errors():
    c = card(number="1234", holder="  ", expiry="01/20", cvv="1")
    assert not c.validate_payment_data()
    assert c.validation_errors() == [
        "invalid_card_number",
        "invalid_card_holder_name",
        "card_expired_or_invalid_expiry",
        "invalid_cvv",
    ]
    with pytest.raises(ValidationError) as exc:
        c.ensure_valid()
    assert exc.value.details == c.validation_errors()


def test_masked_card_number():
    assert card("4111 1111 1111 1111").masked_card_number() == "**** **** **** 1111"
    assert card("4222222222222").masked_card_number() == "**** **** * 2222"
    assert card("12").masked_card_number() == ""


@pytest.mark.parametrize("number,brand", [
    ("4111111111111111", "Visa"),
    ("5555555555554444", "Mastercard"),
    ("2221000000000009", "Mastercard"),
    ("378282246310005", "American Express"),
    ("6011111111111117", "Discover"),
    ("6445644564456445", "Discover"),
    ("6500000000000002", "Discover"),
    ("5018000000000009", "Maestro"),
    ("6759649826438453", "Maestro"),
    ("9999999999999995", "Unknown"),
])
def test_card_type(number, brand):
    assert card(number).card_type() == brand


def test_cash_on_delivery_adds_fee():
    cod = CashOnDeliveryPayment("12 Vitosha Blvd, Sofia", "Maria", "0888123456")
    assert cod.validate_payment_data()
    assert cod.calculate_total(Decimal("200.00")) == Decimal("205.00")
    assert "Vitosha" in cod.payment_reference()


def test_cash_on_delivery_validation():
    cod = CashOnDeliveryPayment("short", "Mo", "12345")
    assert cod.validation_errors() == [
        "invalid_delivery_address",
        "invalid_recipient_name",
        "invalid_recipient_phone",
    ]


def test_bank_transfer_reference_and_instructions():
    bt = BankTransferPayment("Georgi Ivanov", user_id=42)
    assert bt.validate_payment_data()
    assert re.fullmatch(r"SSM-\d{13,}-42", bt.transfer_reference)
    text = bt.generate_payment_instructions(Decimal("350"))
    assert "350.00" in text
    assert bt.transfer_reference in text
    assert "BG80BNBG96611020345678" in text
    assert bt.calculate_total(Decimal("350")) == Decimal("350")


def test_bank_transfer_needs_name():
    assert not BankTransferPayment("Al", user_id=1).validate_payment_data()


def test_demo_gateway_always_approves():
    assert card().process_payment(Decimal("10")) is True
    assert isinstance(card().gateway, DemoGateway)


def test_factory_uses_settings():
    cod = build_payment_method("cod", {
        "delivery_address": "12 Vitosha Blvd, Sofia",
        "recipient_name": "Maria",
        "recipient_phone": "0888123456",
    }, user_id=1, settings={"COD_FEE": Decimal("7.50")})
    assert isinstance(cod, CashOnDeliveryPayment)
    assert cod.calculate_total(Decimal("100")) == Decimal("107.50")

    bt = build_payment_method("BANK_TRANSFER", {"customer_name": "Georgi"}, user_id=3,
                              settings={"BANK_IBAN": "BG00TEST"})
    assert bt.method == PaymentMethodType.BANK_TRANSFER
    assert "BG00TEST" in bt.generate_payment_instructions(1)


def test_factory_rejects_unknown_method():
    with pytest.raises(ValidationError) as exc:
        build_payment_method("bitcoin", {}, user_id=1)
    assert exc.value.code == "unknown_payment_method"


def test_factory_accepts_numeric_json_fields():
    c = build_payment_method("card", {
        "card_number": 4111111111111111,
        "card_holder_name": "Ivan Petrov",
        "expiry_date": "12/39",
        "cvv": 123,
    }, user_id=1)
    assert c.validate_payment_data()

    cod = build_payment_method("cod", {"delivery_address": 12, "recipient_name": None, "recipient_phone": 888},
                               user_id=1)
    assert cod.validation_errors() == [
        "invalid_delivery_address",
        "invalid_recipient_name",
        "invalid_recipient_phone",
    ]
