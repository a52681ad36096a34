"""
Posting payloads

Posting 엔진이 받는 업무 문서. validate()는 금액을 Decimal(0.01)로 정규화하고
잘못된 입력에 예외 발생. DB에는 접근하지 않음.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal

from core.errors import InvalidAmount, MissingRequiredField, ValidationError
from core.types import PaymentStatus
from core.utils.money import to_money
from engine.tax.resolver import TaxSettings


def _positive(name: str, value: object) -> Decimal:
    """0보다 커야 하는 금액"""
    if value is None or value == "":
        raise MissingRequiredField(name)
    try:
        amount = to_money(value)
    except ValueError as e:
        raise InvalidAmount(name, value) from e
    if amount <= 0:
        raise InvalidAmount(name, value)
    return amount


def _non_negative(name: str, value: object) -> Decimal:
    if value is None or value == "":
        return Decimal("0.00")
    try:
        amount = to_money(value)
    except ValueError as e:
        raise InvalidAmount(name, value) from e
    if amount < 0:
        raise InvalidAmount(name, value)
    return amount


def _required(name: str, value: str | None) -> str:
    if value is None or not str(value).strip():
        raise MissingRequiredField(name)
    return str(value).strip()


def _status(value: PaymentStatus | str) -> PaymentStatus:
    try:
        status = PaymentStatus(str(value.value if isinstance(value, PaymentStatus) else value).lower())
    except ValueError as e:
        raise ValidationError(f"Unknown payment status: {value!r}") from e
    # void는 전기된 문서를 취소할 때만 도달
    if status == PaymentStatus.VOID:
        raise ValidationError("payment_status void cannot be posted")
    return status


def check_settlement(status: PaymentStatus, total: Decimal, amount_paid: Decimal) -> None:
    """payment status별 amount_paid 정합성"""
    if status == PaymentStatus.PARTIAL:
        if not Decimal("0") < amount_paid < total:
            raise ValidationError(
                f"partial payment requires 0 < amount_paid < total "
                f"(amount_paid={amount_paid}, total={total})"
            )
    elif status == PaymentStatus.OVERPAID:
        if amount_paid <= total:
            raise ValidationError(
                f"overpaid requires amount_paid > total "
                f"(amount_paid={amount_paid}, total={total})"
            )


@dataclass
class ExpensePayload:
    """거래처 비용

    amount는 세금 포함 총액. 계정 결정 순서: account_code, category_key,
    vendor/description 키워드, General Expense.
    """

    vendor_name: str
    amount: Decimal
    date: date
    payment_status: PaymentStatus | str = PaymentStatus.PAID
    amount_paid: Decimal | None = None
    date_paid: date | None = None
    category_key: str | None = None
    account_code: str | None = None
    description: str | None = None
    vendor_invoice_number: str | None = None
    tax_settings: TaxSettings | None = None
    is_refund: bool = False
    reference: str | None = None

    def validate(self) -> None:
        """필드 정규화 및 검증

        Raises:
            MissingRequiredField: vendor_name 또는 date 누락
            InvalidAmount: amount <= 0, amount_paid < 0
            ValidationError: payment_status와 맞지 않는 amount_paid
        """
        self.vendor_name = _required("vendor_name", self.vendor_name)
        if self.date is None:
            raise MissingRequiredField("date")
        self.amount = _positive("amount", self.amount)
        self.payment_status = _status(self.payment_status)
        self.amount_paid = _non_negative("amount_paid", self.amount_paid)
        if self.vendor_invoice_number is not None:
            self.vendor_invoice_number = self.vendor_invoice_number.strip() or None
        check_settlement(self.payment_status, self.amount, self.amount_paid)


@dataclass
class InvoiceLineItem:
    description: str
    amount: Decimal
    category: str | None = None
    revenue_account_code: str | None = None


@dataclass
class InvoicePayload:
    """고객 인보이스

    line item이 없으면 amount는 할인 후 세금 포함 총액. line item이 있으면
    합계가 할인 전 subtotal이고 세금은 할인된 subtotal에 부과. amount가
    주어지면 계산된 total과 같아야 함.
    """

    customer_name: str
    date: date
    amount: Decimal | None = None
    payment_status: PaymentStatus | str = PaymentStatus.INVOICE
    amount_paid: Decimal | None = None
    date_paid: date | None = None
    invoice_number: str | None = None
    category_key: str | None = None
    revenue_account_code: str | None = None
    description: str | None = None
    line_items: list[InvoiceLineItem] = field(default_factory=list)
    discount: Decimal | None = None
    tax_settings: TaxSettings | None = None
    reference: str | None = None

    def validate(self) -> None:
        """필드 정규화 및 검증

        결제 정합성은 계산된 total이 필요하므로 posting 엔진에서 검사.

        Raises:
            MissingRequiredField: customer_name, date 또는 amount 누락
            InvalidAmount: 0 이하 금액
        """
        self.customer_name = _required("customer_name", self.customer_name)
        if self.date is None:
            raise MissingRequiredField("date")
        self.payment_status = _status(self.payment_status)
        self.amount_paid = _non_negative("amount_paid", self.amount_paid)
        self.discount = _non_negative("discount", self.discount)
        if self.invoice_number is not None:
            self.invoice_number = self.invoice_number.strip() or None

        if self.line_items:
            for i, item in enumerate(self.line_items):
                item.description = _required(f"line_items[{i}].description", item.description)
                item.amount = _positive(f"line_items[{i}].amount", item.amount)
            if self.amount is not None:
                self.amount = _positive("amount", self.amount)
        else:
            self.amount = _positive("amount", self.amount)


@dataclass
class RevenuePayload:
    """직접 수익 수령 (매출채권 없음)"""

    amount: Decimal
    date: date
    description: str
    cash_account_code: str | None = None
    revenue_account_code: str | None = None
    reference: str | None = None

    def validate(self) -> None:
        if self.date is None:
            raise MissingRequiredField("date")
        self.description = _required("description", self.description)
        self.amount = _positive("amount", self.amount)


@dataclass
class InvoicePaymentPayload:
    """전기된 인보이스에 대한 입금"""

    invoice_number: str
    amount: Decimal
    date: date
    reference: str | None = None

    def validate(self) -> None:
        self.invoice_number = _required("invoice_number", self.invoice_number)
        if self.date is None:
            raise MissingRequiredField("date")
        self.amount = _positive("amount", self.amount)


@dataclass
class CapitalContributionPayload:
    """소유주 현금 출자"""

    amount: Decimal
    date: date
    description: str = "Owner capital contribution"
    reference: str | None = None

    def validate(self) -> None:
        if self.date is None:
            raise MissingRequiredField("date")
        self.amount = _positive("amount", self.amount)
