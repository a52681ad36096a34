"""
Ledger 타입 정의

기본 계정과목표와 Account 레코드
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Any

from core.types import AccountType, NormalBalance, normal_balance_for


@dataclass(frozen=True)
class Account:
    """계정과목 (테넌트, 코드당 하나)"""

    id: int
    tenant_id: str
    code: str
    name: str
    type: AccountType
    normal_balance: NormalBalance
    is_core: bool = False
    created_at: datetime | None = None

    @classmethod
    def from_row(cls, row: dict[str, Any]) -> Account:
        """DB row에서 생성"""
        return cls(
            id=row["id"],
            tenant_id=row["tenant_id"],
            code=row["code"],
            name=row["name"],
            type=AccountType(row["type"]),
            normal_balance=NormalBalance(row["normal_balance"]),
            is_core=bool(row.get("is_core", 0)),
            created_at=(
                datetime.fromisoformat(row["created_at"])
                if row.get("created_at")
                else None
            ),
        )


# 테넌트별로 시딩되는 기본 계정
# (code, name, type, 정상 잔액 방향. None이면 유형에서 결정)
CORE_ACCOUNTS: list[tuple[str, str, AccountType, NormalBalance | None]] = [
    # ASSET
    ("1010", "Cash", AccountType.ASSET, None),
    ("1200", "Accounts Receivable", AccountType.ASSET, None),
    ("1350", "Deposits", AccountType.ASSET, None),
    ("1360", "VAT Input (Recoverable)", AccountType.ASSET, None),
    ("1400", "Prepaid Expenses", AccountType.ASSET, None),
    ("1500", "Fixed Assets", AccountType.ASSET, None),
    # 차감 자산
    ("1590", "Accumulated Depreciation", AccountType.ASSET, NormalBalance.CREDIT),

    # LIABILITY
    ("2010", "Accounts Payable", AccountType.LIABILITY, None),
    ("2050", "Customer Credits", AccountType.LIABILITY, None),
    ("2150", "Sales Tax Payable", AccountType.LIABILITY, None),
    ("2160", "VAT Output", AccountType.LIABILITY, None),
    ("2400", "Unearned Revenue", AccountType.LIABILITY, None),

    # EQUITY
    ("3000", "Owner's Equity", AccountType.EQUITY, None),
    ("3200", "Retained Earnings", AccountType.EQUITY, None),

    # REVENUE
    ("4010", "Sales Revenue", AccountType.REVENUE, None),
    ("4020", "Service Revenue", AccountType.REVENUE, None),
    ("4030", "Product Revenue", AccountType.REVENUE, None),
    ("4040", "Subscription Revenue", AccountType.REVENUE, None),
    # 차감 수익
    ("4910", "Sales Discounts", AccountType.REVENUE, NormalBalance.DEBIT),

    # EXPENSE
    ("5010", "Cost of Goods Sold", AccountType.EXPENSE, None),
    ("6020", "Office Supplies", AccountType.EXPENSE, None),
    ("6030", "Software & Technology", AccountType.EXPENSE, None),
    ("6040", "Marketing & Advertising", AccountType.EXPENSE, None),
    ("6060", "Travel & Transportation", AccountType.EXPENSE, None),
    ("6070", "Rent & Facilities", AccountType.EXPENSE, None),
    ("6080", "Utilities", AccountType.EXPENSE, None),
    ("6090", "Professional Services", AccountType.EXPENSE, None),
    ("6100", "Bank Fees", AccountType.EXPENSE, None),
    ("6110", "Insurance", AccountType.EXPENSE, None),
    ("6120", "Legal & Compliance", AccountType.EXPENSE, None),
    ("6130", "Training & Development", AccountType.EXPENSE, None),
    ("6140", "Meals & Entertainment", AccountType.EXPENSE, None),
    ("6150", "Telecommunications", AccountType.EXPENSE, None),
    ("6160", "Non-recoverable Sales Tax", AccountType.EXPENSE, None),
    ("6170", "Bad Debt Expense", AccountType.EXPENSE, None),
    ("6500", "Depreciation Expense", AccountType.EXPENSE, None),
    ("6999", "General Expense", AccountType.EXPENSE, None),
]

CORE_ACCOUNT_CODES: frozenset[str] = frozenset(code for code, _, _, _ in CORE_ACCOUNTS)


def core_normal_balance(
    account_type: AccountType,
    override: NormalBalance | None,
) -> NormalBalance:
    """시딩 계정의 정상 잔액 방향"""
    return override if override is not None else normal_balance_for(account_type)
