"""
고정자산 감가상각
"""

from engine.depreciation.schedule import ScheduleLine, build_schedule, monthly_amount
from engine.depreciation.service import DepreciationEngine
from engine.depreciation.types import (
    Asset,
    AssetCategory,
    AssetRegistration,
    DepreciationEvent,
    DepreciationRunResult,
    FailedDepreciation,
    PostedDepreciation,
    SkippedDepreciation,
)

__all__ = [
    "DepreciationEngine",
    "ScheduleLine",
    "build_schedule",
    "monthly_amount",
    "Asset",
    "AssetCategory",
    "AssetRegistration",
    "DepreciationEvent",
    "DepreciationRunResult",
    "FailedDepreciation",
    "PostedDepreciation",
    "SkippedDepreciation",
]
