"""
engine/tax/resolver.py 테스트

Subtotal/tax/total decomposition and regime account mapping
"""

from decimal import Decimal

import pytest

from core.constants import AccountCodes
from core.errors import ValidationError
from core.types import TaxRegime, TaxType
from engine.tax.resolver import (
    ANCHOR_SUBTOTAL,
    ANCHOR_TOTAL,
    TaxAccounts,
    TaxResolver,
    TaxSettings,
)


@pytest.fixture
def resolver() -> TaxResolver:
    return TaxResolver()


class TestPercentage:
    """백분율 세금"""

    def test_total_anchor(self, resolver: TaxResolver) -> None:
        """total=110 at 10% → subtotal 100.00, tax 10.00"""
        settings = TaxSettings(enabled=True, type=TaxType.PERCENTAGE, rate=Decimal("10"))
        result = resolver.apply(Decimal("110"), settings)

        assert result.subtotal == Decimal("100.00")
        assert result.tax_amount == Decimal("10.00")
        assert result.total == Decimal("110.00")

    def test_subtotal_anchor(self, resolver: TaxResolver) -> None:
        settings = TaxSettings(enabled=True, rate=Decimal("8.25"))
        result = resolver.apply(Decimal("200"), settings, anchor=ANCHOR_SUBTOTAL)

        assert result.subtotal == Decimal("200.00")
        assert result.tax_amount == Decimal("16.50")
        assert result.total == Decimal("216.50")

    def test_total_anchor_rounding_keeps_sum(self, resolver: TaxResolver) -> None:
        """subtotal + tax는 항상 주어진 total과 같음"""
        settings = TaxSettings(enabled=True, rate=Decimal("7"))
        result = resolver.apply(Decimal("100"), settings, anchor=ANCHOR_TOTAL)

        assert result.subtotal == Decimal("93.46")
        assert result.subtotal + result.tax_amount == Decimal("100.00")

    def test_missing_rate(self, resolver: TaxResolver) -> None:
        with pytest.raises(ValidationError):
            resolver.apply(Decimal("100"), TaxSettings(enabled=True))

    def test_negative_rate(self, resolver: TaxResolver) -> None:
        with pytest.raises(ValidationError):
            resolver.apply(Decimal("100"), TaxSettings(enabled=True, rate=Decimal("-1")))


class TestFixedAmount:
    """고정 세액"""

    def test_total_anchor(self, resolver: TaxResolver) -> None:
        """amount=15 on total=115 → subtotal 100.00"""
        settings = TaxSettings(enabled=True, type=TaxType.AMOUNT, amount=Decimal("15"))
        result = resolver.apply(Decimal("115"), settings)

        assert result.subtotal == Decimal("100.00")
        assert result.tax_amount == Decimal("15.00")

    def test_subtotal_anchor(self, resolver: TaxResolver) -> None:
        settings = TaxSettings(enabled=True, type=TaxType.AMOUNT, amount=Decimal("15"))
        result = resolver.apply(Decimal("100"), settings, anchor=ANCHOR_SUBTOTAL)

        assert result.total == Decimal("115.00")

    def test_tax_exceeds_total(self, resolver: TaxResolver) -> None:
        settings = TaxSettings(enabled=True, type=TaxType.AMOUNT, amount=Decimal("20"))
        with pytest.raises(ValidationError):
            resolver.apply(Decimal("10"), settings)

    def test_missing_amount(self, resolver: TaxResolver) -> None:
        with pytest.raises(ValidationError):
            resolver.apply(Decimal("10"), TaxSettings(enabled=True, type=TaxType.AMOUNT))


class TestDisabled:
    """비활성 또는 없는 설정은 세금 없음"""

    @pytest.mark.parametrize(
        "settings",
        [None, TaxSettings(enabled=False, rate=Decimal("10"))],
    )
    def test_no_tax(self, resolver: TaxResolver, settings: TaxSettings | None) -> None:
        result = resolver.apply(Decimal("42.5"), settings)

        assert result.subtotal == Decimal("42.50")
        assert result.tax_amount == Decimal("0.00")
        assert result.total == Decimal("42.50")

    def test_unknown_anchor(self, resolver: TaxResolver) -> None:
        with pytest.raises(ValidationError):
            resolver.apply(Decimal("1"), None, anchor="gross")


class TestTaxSettingsFromDict:
    def test_from_dict(self) -> None:
        settings = TaxSettings.from_dict({"enabled": True, "type": "percentage", "rate": "10"})

        assert settings is not None
        assert settings.rate == Decimal("10")
        assert settings.type == TaxType.PERCENTAGE

    def test_empty_is_none(self) -> None:
        assert TaxSettings.from_dict(None) is None
        assert TaxSettings.from_dict({}) is None

    def test_invalid_type(self) -> None:
        with pytest.raises(ValidationError):
            TaxSettings.from_dict({"enabled": True, "type": "compound"})


class TestTaxAccounts:
    """Regime → 세금 계정"""

    def test_us_sales_tax(self) -> None:
        accounts = TaxAccounts.for_regime(TaxRegime.US_SALES_TAX)

        assert accounts.purchase_tax == AccountCodes.NONRECOVERABLE_SALES_TAX
        assert accounts.sales_tax == AccountCodes.SALES_TAX_PAYABLE
        assert accounts.purchase_tax_recoverable is False

    def test_vat(self) -> None:
        accounts = TaxAccounts.for_regime("VAT")

        assert accounts.purchase_tax == AccountCodes.VAT_INPUT
        assert accounts.sales_tax == AccountCodes.VAT_OUTPUT
        assert accounts.purchase_tax_recoverable is True
