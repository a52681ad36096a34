"""
문서 전기

비용, 인보이스, 수익, 정정(취소) 전기.
"""

from engine.posting.payloads import (
    CapitalContributionPayload,
    ExpensePayload,
    InvoiceLineItem,
    InvoicePayload,
    InvoicePaymentPayload,
    RevenuePayload,
)
from engine.posting.service import PostingEngine, PostingResult

__all__ = [
    "PostingEngine",
    "PostingResult",
    "CapitalContributionPayload",
    "ExpensePayload",
    "InvoiceLineItem",
    "InvoicePayload",
    "InvoicePaymentPayload",
    "RevenuePayload",
]
