"""
Idempotency 유틸리티

결정적 거래 reference 생성. 같은 논리적 이벤트를 두 번 전기하면
같은 reference가 나와야 Ledger 저장소가 기존 거래를 재생할 수 있음.

규칙:
    closing:      CLOSE-{YYYY-MM-DD}
    depreciation: DEP-{asset_id}-{YYYY-MM}
    void:         VOID-{원본 reference}
    derived:      {PREFIX}-{sha1(parts)[:16]}
"""

import hashlib
from datetime import date

from core.utils.periods import Period

CLOSING_PREFIX: str = "CLOSE"
DEPRECIATION_PREFIX: str = "DEP"
VOID_PREFIX: str = "VOID"


def make_reference(prefix: str, *parts: object) -> str:
    """payload 내용으로 결정적 reference 생성

    Args:
        prefix: reference 접두사 (예: EXP, INV, REV)
        *parts: 논리적 이벤트를 식별하는 값들

    Returns:
        {prefix}-{16자리 hex}

    Example:
        >>> make_reference("EXP", "t1", "2026-01-05", "120.00", "Acme")
        'EXP-...'
    """
    if not prefix:
        raise ValueError("prefix must not be empty")

    digest = hashlib.sha1(
        "|".join("" if p is None else str(p) for p in parts).encode("utf-8")
    ).hexdigest()
    return f"{prefix}-{digest[:16]}"


def closing_reference(as_of: date) -> str:
    """기준일의 마감 거래 reference

    Example:
        >>> closing_reference(date(2026, 12, 31))
        'CLOSE-2026-12-31'
    """
    return f"{CLOSING_PREFIX}-{as_of.isoformat()}"


def depreciation_reference(asset_id: str, period: Period) -> str:
    """자산 한 기간의 감가상각 거래 reference

    Example:
        >>> depreciation_reference("a1", Period(2026, 3))
        'DEP-a1-2026-03'
    """
    if not asset_id:
        raise ValueError("asset_id must not be empty")
    return f"{DEPRECIATION_PREFIX}-{asset_id}-{period}"


def void_reference(original_reference: str) -> str:
    """취소된 거래에 대한 역분개 거래의 reference"""
    if not original_reference:
        raise ValueError("original_reference must not be empty")
    return f"{VOID_PREFIX}-{original_reference}"


def is_closing_reference(reference: str) -> bool:
    """마감 거래의 reference인지 여부"""
    return bool(reference) and reference.startswith(f"{CLOSING_PREFIX}-")
