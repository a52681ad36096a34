"""
Tax resolver

금액을 subtotal / tax / total로 분해. 세금이 어느 장부 계정으로 전기되는지는
resolver 로직이 아니라 regime 설정(TaxAccounts)이 결정.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import Any

from core.constants import AccountCodes
from core.errors import ValidationError
from core.types import TaxRegime, TaxType
from core.utils.money import to_decimal, to_money

ANCHOR_TOTAL = "total"
ANCHOR_SUBTOTAL = "subtotal"


@dataclass(frozen=True)
class TaxSettings:
    """문서에 붙는 세금 설정

    Attributes:
        enabled: 세금 적용 여부
        type: percentage (세율) 또는 amount (고정 세액)
        rate: 백분율 세율 (예: 10%는 10)
        amount: 고정 세액
    """

    enabled: bool = False
    type: TaxType = TaxType.PERCENTAGE
    rate: Decimal | None = None
    amount: Decimal | None = None

    @classmethod
    def from_dict(cls, data: dict[str, Any] | None) -> TaxSettings | None:
        """느슨한 타입의 mapping에서 생성 (None은 None 유지)"""
        if not data:
            return None
        rate = data.get("rate")
        amount = data.get("amount")
        try:
            return cls(
                enabled=bool(data.get("enabled", False)),
                type=TaxType(data.get("type", TaxType.PERCENTAGE.value)),
                rate=to_decimal(rate) if rate not in (None, "") else None,
                amount=to_decimal(amount) if amount not in (None, "") else None,
            )
        except ValueError as e:
            raise ValidationError(f"Invalid tax settings: {e}") from e


@dataclass(frozen=True)
class TaxBreakdown:
    subtotal: Decimal
    tax_amount: Decimal
    total: Decimal


@dataclass(frozen=True)
class TaxAccounts:
    """regime별 세금 계정

    Attributes:
        purchase_tax: 비용에서 지급한 세금을 차변 기입
        sales_tax: 인보이스에서 부과한 세금을 대변 기입
        purchase_tax_recoverable: 매입세가 비용이 아닌 자산인지 여부
    """

    purchase_tax: str
    sales_tax: str
    purchase_tax_recoverable: bool

    @classmethod
    def for_regime(cls, regime: TaxRegime | str) -> TaxAccounts:
        regime = TaxRegime(regime)
        if regime == TaxRegime.VAT:
            return cls(
                purchase_tax=AccountCodes.VAT_INPUT,
                sales_tax=AccountCodes.VAT_OUTPUT,
                purchase_tax_recoverable=True,
            )
        return cls(
            purchase_tax=AccountCodes.NONRECOVERABLE_SALES_TAX,
            sales_tax=AccountCodes.SALES_TAX_PAYABLE,
            purchase_tax_recoverable=False,
        )


class TaxResolver:
    """anchor 금액에 TaxSettings 적용"""

    def apply(
        self,
        amount: Decimal,
        settings: TaxSettings | None,
        anchor: str = ANCHOR_TOTAL,
    ) -> TaxBreakdown:
        """금액 분해

        Args:
            amount: anchor 금액 (세금 포함 total 또는 세전 subtotal)
            settings: 세금 설정 (None 또는 비활성이면 세금 없음)
            anchor: 세금 포함이면 "total", 아니면 "subtotal"

        Returns:
            0.01 단위로 반올림된 TaxBreakdown

        Raises:
            ValidationError: 음수 또는 누락된 rate/amount, total보다 큰 세금,
                알 수 없는 anchor
        """
        if anchor not in (ANCHOR_TOTAL, ANCHOR_SUBTOTAL):
            raise ValidationError(f"Unknown tax anchor: {anchor}")

        base = to_money(amount)

        if settings is None or not settings.enabled:
            return TaxBreakdown(subtotal=base, tax_amount=Decimal("0.00"), total=base)

        if settings.type == TaxType.PERCENTAGE:
            if settings.rate is None:
                raise ValidationError("Tax rate is required for percentage tax")
            rate = to_decimal(settings.rate)
            if rate < 0:
                raise ValidationError(f"Tax rate must not be negative: {rate}")

            if anchor == ANCHOR_SUBTOTAL:
                tax = to_money(base * rate / Decimal("100"))
                return TaxBreakdown(subtotal=base, tax_amount=tax, total=base + tax)

            subtotal = to_money(base / (Decimal("1") + rate / Decimal("100")))
            return TaxBreakdown(subtotal=subtotal, tax_amount=base - subtotal, total=base)

        if settings.amount is None:
            raise ValidationError("Tax amount is required for fixed-amount tax")
        tax = to_money(settings.amount)
        if tax < 0:
            raise ValidationError(f"Tax amount must not be negative: {tax}")

        if anchor == ANCHOR_SUBTOTAL:
            return TaxBreakdown(subtotal=base, tax_amount=tax, total=base + tax)

        if tax > base:
            raise ValidationError(f"Tax amount {tax} exceeds total {base}")
        return TaxBreakdown(subtotal=base - tax, tax_amount=tax, total=base)
