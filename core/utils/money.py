"""
금액 헬퍼

모든 금액은 Decimal. float는 장부에 들어오지 않음.
"""

from decimal import ROUND_HALF_UP, Decimal, InvalidOperation

from core.constants import CURRENCY_EPSILON, MONEY_QUANT


def to_decimal(value: object) -> Decimal:
    """int/str/Decimal (float는 str 경유)을 Decimal로 변환

    Raises:
        ValueError: 숫자가 아닌 값
    """
    if isinstance(value, Decimal):
        return value
    if isinstance(value, bool):
        raise ValueError(f"Not a numeric amount: {value!r}")
    if isinstance(value, float):
        # repr은 가장 짧은 십진 표현을 보존
        value = repr(value)
    try:
        result = Decimal(str(value).strip())
    except (InvalidOperation, TypeError) as e:
        raise ValueError(f"Not a numeric amount: {value!r}") from e
    if not result.is_finite():
        raise ValueError(f"Not a finite amount: {value!r}")
    return result


def to_money(value: object) -> Decimal:
    """0.01 단위 반올림 (half-up)"""
    return to_decimal(value).quantize(MONEY_QUANT, rounding=ROUND_HALF_UP)


def amounts_match(a: Decimal, b: Decimal, epsilon: Decimal = CURRENCY_EPSILON) -> bool:
    """두 금액이 통화 허용오차 이내로 같은지 여부"""
    return abs(a - b) < epsilon
