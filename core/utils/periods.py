"""
회계 기간 유틸리티

Period는 달력상 한 달. 감가상각은 기간 단위로만 계산.
"""

from __future__ import annotations

import calendar
from dataclasses import dataclass
from datetime import date


@dataclass(frozen=True, order=True)
class Period:
    """달력 월 (year, month)"""

    year: int
    month: int

    def __post_init__(self) -> None:
        if not 1 <= self.month <= 12:
            raise ValueError(f"month must be 1..12 (got {self.month})")

    def __str__(self) -> str:
        return f"{self.year:04d}-{self.month:02d}"

    @classmethod
    def of(cls, d: date) -> Period:
        """날짜가 속한 기간"""
        return cls(d.year, d.month)

    @classmethod
    def parse(cls, value: str) -> Period:
        """YYYY-MM 파싱"""
        try:
            year_str, month_str = value.split("-")
            return cls(int(year_str), int(month_str))
        except ValueError as e:
            raise ValueError(f"Invalid period '{value}', expected YYYY-MM") from e

    @property
    def start(self) -> date:
        return date(self.year, self.month, 1)

    @property
    def end(self) -> date:
        return date(self.year, self.month, calendar.monthrange(self.year, self.month)[1])

    def next(self) -> Period:
        if self.month == 12:
            return Period(self.year + 1, 1)
        return Period(self.year, self.month + 1)

    def prev(self) -> Period:
        if self.month == 1:
            return Period(self.year - 1, 12)
        return Period(self.year, self.month - 1)

    def months_until(self, other: Period) -> int:
        """self에서 other까지의 개월 수 (other가 더 이르면 음수)"""
        return (other.year - self.year) * 12 + (other.month - self.month)


def last_complete_period(as_of: date) -> Period:
    """as_of 당일 또는 그 이전에 완전히 끝난 마지막 기간

    기간은 말일에 끝난 것으로 간주.

    Example:
        >>> last_complete_period(date(2026, 3, 31))
        Period(year=2026, month=3)
        >>> last_complete_period(date(2026, 3, 30))
        Period(year=2026, month=2)
    """
    current = Period.of(as_of)
    if as_of == current.end:
        return current
    return current.prev()
