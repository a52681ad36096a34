"""
engine/posting/payloads.py 테스트

Payload validation and settlement consistency
"""

from datetime import date
from decimal import Decimal

import pytest

from core.errors import InvalidAmount, MissingRequiredField, ValidationError
from core.types import PaymentStatus
from engine.posting.payloads import (
    ExpensePayload,
    InvoiceLineItem,
    InvoicePayload,
    InvoicePaymentPayload,
    RevenuePayload,
    check_settlement,
)

DAY = date(2026, 1, 5)


class TestExpensePayload:
    """ExpensePayload.validate"""

    def test_normalizes(self) -> None:
        payload = ExpensePayload(
            vendor_name="  Adobe ",
            amount="19.999",
            date=DAY,
            payment_status="PAID",
            vendor_invoice_number="  ",
        )
        payload.validate()

        assert payload.vendor_name == "Adobe"
        assert payload.amount == Decimal("20.00")
        assert payload.payment_status == PaymentStatus.PAID
        assert payload.amount_paid == Decimal("0.00")
        assert payload.vendor_invoice_number is None

    @pytest.mark.parametrize("amount", [0, "-5", Decimal("-0.01")])
    def test_non_positive_amount(self, amount: object) -> None:
        with pytest.raises(InvalidAmount):
            ExpensePayload(vendor_name="V", amount=amount, date=DAY).validate()

    def test_non_numeric_amount(self) -> None:
        with pytest.raises(InvalidAmount):
            ExpensePayload(vendor_name="V", amount="abc", date=DAY).validate()

    def test_missing_vendor(self) -> None:
        with pytest.raises(MissingRequiredField):
            ExpensePayload(vendor_name=" ", amount=Decimal("1"), date=DAY).validate()

    def test_missing_amount(self) -> None:
        with pytest.raises(MissingRequiredField):
            ExpensePayload(vendor_name="V", amount=None, date=DAY).validate()

    def test_unknown_status(self) -> None:
        with pytest.raises(ValidationError):
            ExpensePayload(
                vendor_name="V", amount=Decimal("1"), date=DAY, payment_status="lost"
            ).validate()

    def test_void_status_not_postable(self) -> None:
        with pytest.raises(ValidationError):
            ExpensePayload(
                vendor_name="V", amount=Decimal("1"), date=DAY, payment_status="void"
            ).validate()

    def test_partial_requires_amount_paid_below_total(self) -> None:
        with pytest.raises(ValidationError):
            ExpensePayload(
                vendor_name="V",
                amount=Decimal("100"),
                date=DAY,
                payment_status=PaymentStatus.PARTIAL,
                amount_paid=Decimal("100"),
            ).validate()


class TestInvoicePayload:
    """InvoicePayload.validate"""

    def test_requires_amount_without_line_items(self) -> None:
        with pytest.raises(MissingRequiredField):
            InvoicePayload(customer_name="C", date=DAY).validate()

    def test_line_items_without_amount(self) -> None:
        payload = InvoicePayload(
            customer_name="C",
            date=DAY,
            line_items=[InvoiceLineItem("Design", "500")],
        )
        payload.validate()

        assert payload.amount is None
        assert payload.line_items[0].amount == Decimal("500.00")
        assert payload.payment_status == PaymentStatus.INVOICE

    def test_line_item_non_positive(self) -> None:
        with pytest.raises(InvalidAmount):
            InvoicePayload(
                customer_name="C",
                date=DAY,
                line_items=[InvoiceLineItem("Design", Decimal("0"))],
            ).validate()

    def test_negative_discount(self) -> None:
        with pytest.raises(InvalidAmount):
            InvoicePayload(
                customer_name="C", date=DAY, amount=Decimal("10"), discount=Decimal("-1")
            ).validate()


class TestOtherPayloads:
    def test_revenue_requires_description(self) -> None:
        with pytest.raises(MissingRequiredField):
            RevenuePayload(amount=Decimal("10"), date=DAY, description="").validate()

    def test_invoice_payment_requires_number(self) -> None:
        with pytest.raises(MissingRequiredField):
            InvoicePaymentPayload(invoice_number="", amount=Decimal("1"), date=DAY).validate()


class TestCheckSettlement:
    """check_settlement"""

    def test_partial_ok(self) -> None:
        check_settlement(PaymentStatus.PARTIAL, Decimal("100"), Decimal("40"))

    @pytest.mark.parametrize("paid", [Decimal("0"), Decimal("100"), Decimal("120")])
    def test_partial_out_of_range(self, paid: Decimal) -> None:
        with pytest.raises(ValidationError):
            check_settlement(PaymentStatus.PARTIAL, Decimal("100"), paid)

    def test_overpaid_requires_excess(self) -> None:
        with pytest.raises(ValidationError):
            check_settlement(PaymentStatus.OVERPAID, Decimal("100"), Decimal("100"))
        check_settlement(PaymentStatus.OVERPAID, Decimal("100"), Decimal("100.01"))

    def test_other_statuses_ignore_amount_paid(self) -> None:
        check_settlement(PaymentStatus.PAID, Decimal("100"), Decimal("0"))
        check_settlement(PaymentStatus.UNPAID, Decimal("100"), Decimal("0"))
