"""
정액법 감가상각 스케줄

순수 계산, DB 접근 없음. 금액은 0.01 단위로 반올림한 Decimal.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from decimal import Decimal

from core.constants import CLOSING_EPSILON
from core.utils.money import to_money
from core.utils.periods import Period, last_complete_period


@dataclass(frozen=True)
class ScheduleLine:
    """예상 감가상각 한 기간"""

    period: Period
    amount: Decimal
    accumulated: Decimal
    remaining: Decimal


def clamp_residual(cost: Decimal, residual: Decimal) -> Decimal:
    """[0, cost] 범위로 제한한 잔존가치"""
    if residual < 0:
        return Decimal("0.00")
    return min(residual, cost)


def depreciable_base(cost: Decimal, residual: Decimal) -> Decimal:
    return to_money(max(Decimal("0"), cost - clamp_residual(cost, residual)))


def monthly_amount(cost: Decimal, residual: Decimal, useful_life_months: int) -> Decimal:
    """정액법 월 상각액

    Example:
        >>> monthly_amount(Decimal("1200"), Decimal("0"), 12)
        Decimal('100.00')
    """
    life = max(1, int(useful_life_months))
    return to_money(depreciable_base(cost, residual) / life)


def first_period(in_service_date: date) -> Period:
    """첫 상각 기간: 사용 개시 월의 다음 달"""
    return Period.of(in_service_date).next()


def build_schedule(
    cost: Decimal,
    residual: Decimal,
    useful_life_months: int,
    in_service_date: date,
) -> list[ScheduleLine]:
    """전체 예상 스케줄

    각 기간은 남은 상각 대상액으로 제한한 월 상각액을 받고, 내용연수 마지막
    기간이 반올림 잔액을 흡수. 0.00이 되는 기간은 생략하므로 residual >= cost면
    빈 스케줄.

    Args:
        cost: 취득원가
        residual: 잔존가치
        useful_life_months: 내용연수 (개월, >= 1)
        in_service_date: 사용 개시일

    Returns:
        기간 순서의 스케줄 라인
    """
    base = depreciable_base(cost, residual)
    life = max(1, int(useful_life_months))
    monthly = monthly_amount(cost, residual, life)

    lines: list[ScheduleLine] = []
    accumulated = Decimal("0.00")
    period = first_period(in_service_date)

    for index in range(life):
        remaining = base - accumulated
        if remaining <= CLOSING_EPSILON:
            break
        amount = remaining if index == life - 1 else min(monthly, remaining)
        if amount > 0:
            accumulated += amount
            lines.append(
                ScheduleLine(
                    period=period,
                    amount=amount,
                    accumulated=accumulated,
                    remaining=base - accumulated,
                )
            )
        period = period.next()

    return lines


def due_lines(
    schedule: list[ScheduleLine],
    as_of: date,
    posted_periods: set[Period],
) -> list[ScheduleLine]:
    """as_of 이전에 끝났고 이벤트가 없는 기간의 스케줄 라인

    Example:
        2026-01-15 사용 개시, 전기 내역 없이 2026-04-30 실행:
        2026-02, 2026-03, 2026-04가 대상 (catch-up).
    """
    last = last_complete_period(as_of)
    return [
        line
        for line in schedule
        if line.period <= last and line.period not in posted_periods
    ]
