"""
기말 마감
"""

from engine.closing.service import NOTHING_TO_CLOSE, ClosingEngine, ClosingResult

__all__ = [
    "NOTHING_TO_CLOSE",
    "ClosingEngine",
    "ClosingResult",
]
