"""
유틸리티 패키지

결정적 reference, 금액 반올림, 회계 기간, 날짜 헬퍼
"""

from core.utils.money import amounts_match, to_decimal, to_money
from core.utils.periods import Period, last_complete_period
from core.utils.timezone import Clock, now_utc, parse_date, today_utc

__all__ = [
    "amounts_match",
    "to_decimal",
    "to_money",
    "Period",
    "last_complete_period",
    "Clock",
    "now_utc",
    "parse_date",
    "today_utc",
]
