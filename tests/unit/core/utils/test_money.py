"""
core/utils/money.py 테스트
"""

from decimal import Decimal

import pytest

from core.utils.money import amounts_match, to_decimal, to_money


class TestToDecimal:
    """to_decimal"""

    def test_int_and_str(self) -> None:
        assert to_decimal(5) == Decimal("5")
        assert to_decimal(" 12.50 ") == Decimal("12.50")

    def test_float_uses_shortest_repr(self) -> None:
        """0.1 stays 0.1, not the binary expansion"""
        assert to_decimal(0.1) == Decimal("0.1")

    def test_decimal_passthrough(self) -> None:
        value = Decimal("3.14")
        assert to_decimal(value) is value

    @pytest.mark.parametrize("value", ["abc", "", None, True, "NaN", "Infinity"])
    def test_rejects_non_numeric(self, value: object) -> None:
        with pytest.raises(ValueError):
            to_decimal(value)


class TestToMoney:
    """to_money (0.01, half-up)"""

    def test_rounds_half_up(self) -> None:
        assert to_money("2.345") == Decimal("2.35")
        assert to_money("2.344") == Decimal("2.34")

    def test_quantizes_integers(self) -> None:
        assert str(to_money(100)) == "100.00"


class TestTolerance:
    """amounts_match (< 0.01)"""

    def test_amounts_match_within_cent(self) -> None:
        assert amounts_match(Decimal("100.00"), Decimal("100.009"))
        assert not amounts_match(Decimal("100.00"), Decimal("100.01"))

    def test_negative_difference(self) -> None:
        assert amounts_match(Decimal("-5.00"), Decimal("-5.009"))
        assert not amounts_match(Decimal("5.00"), Decimal("4.99"))
