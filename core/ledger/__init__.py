"""
복식부기 (Double-Entry Bookkeeping) 장부

테넌트별 계정과목, 균형 분개 세트, 추가 전용(append-only) 저장소.

사용 예시:
```python
from core.ledger import AccountRegistry, EntrySetBuilder, LedgerStore

# 초기화
registry = AccountRegistry(db)
await registry.ensure_core_set("tenant-a")

# 분개 전기
store = LedgerStore(db)
draft = (
    EntrySetBuilder()
    .debit("6030", Decimal("120.00"))
    .credit("1010", Decimal("120.00"))
    .build(date(2026, 1, 5), "Software subscription", "EXP-0001")
)
posted = await store.post_transaction("tenant-a", draft)

# 잔액 조회
balance = await store.get_balance("tenant-a", "1010")
```
"""

from core.ledger.accounts import AccountRegistry
from core.ledger.entry_builder import (
    EntryLine,
    EntrySetBuilder,
    PostedEntry,
    PostedTransaction,
    TransactionDraft,
)
from core.ledger.store import AccountBalance, LedgerLine, LedgerStore
from core.ledger.types import CORE_ACCOUNT_CODES, CORE_ACCOUNTS, Account

__all__ = [
    # 핵심 클래스
    "AccountRegistry",
    "LedgerStore",
    "EntrySetBuilder",
    # 레코드
    "Account",
    "AccountBalance",
    "EntryLine",
    "LedgerLine",
    "PostedEntry",
    "PostedTransaction",
    "TransactionDraft",
    # 상수
    "CORE_ACCOUNTS",
    "CORE_ACCOUNT_CODES",
]
