"""
세금 계산

공급가액/세액/합계 분해 및 세제별 계정 매핑.
"""

from engine.tax.resolver import (
    ANCHOR_SUBTOTAL,
    ANCHOR_TOTAL,
    TaxAccounts,
    TaxBreakdown,
    TaxResolver,
    TaxSettings,
)

__all__ = [
    "ANCHOR_SUBTOTAL",
    "ANCHOR_TOTAL",
    "TaxAccounts",
    "TaxBreakdown",
    "TaxResolver",
    "TaxSettings",
]
