"""
타임존 유틸리티

내부 저장: UTC | 장부 날짜: 타임존 없는 달력 날짜
"""

from datetime import date, datetime, timezone
from typing import Callable


# "오늘"에 의존하는 엔진에 주입하는 Clock 시그니처
Clock = Callable[[], date]


def now_utc() -> datetime:
    """현재 UTC 시각"""
    return datetime.now(timezone.utc)


def today_utc() -> date:
    """현재 UTC 달력 날짜 (기본 Clock)"""
    return now_utc().date()


def parse_date(value: date | datetime | str) -> date:
    """date, datetime 또는 ISO 문자열을 date로 변환

    Raises:
        ValueError: 파싱할 수 없는 문자열
    """
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        return date.fromisoformat(value.strip()[:10])
    raise ValueError(f"Not a date: {value!r}")
