"""
Closing 엔진

기말 마감: 모든 수익/비용 계정 잔액을 Retained Earnings로 대체해 0으로 만듦.
tenant와 기준일마다 거래 하나 (CLOSE-YYYY-MM-DD).
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import TYPE_CHECKING

from core.constants import CLOSING_EPSILON, AccountCodes
from core.errors import ClosingNotBalanced
from core.ledger.entry_builder import EntrySetBuilder
from core.types import AccountType, NormalBalance
from core.utils.idempotency import closing_reference
from core.utils.money import amounts_match

if TYPE_CHECKING:
    from adapters.db.sqlite_adapter import SQLiteAdapter
    from core.ledger.store import AccountBalance, LedgerStore

logger = logging.getLogger(__name__)

NOTHING_TO_CLOSE = "Nothing to close"


@dataclass
class ClosingResult:
    """close_period 결과

    마감할 잔액이 없을 때만 transaction_id가 None.
    """

    is_existing: bool
    transaction_id: str | None
    message: str | None = None
    net_income: Decimal | None = None


class ClosingEngine:
    """Closing 엔진

    Args:
        db: SQLite adapter
        store: ledger store
        retained_earnings_code: 순이익을 받는 자본 계정
    """

    def __init__(
        self,
        db: SQLiteAdapter,
        store: LedgerStore,
        retained_earnings_code: str = AccountCodes.RETAINED_EARNINGS,
    ):
        self.db = db
        self.store = store
        self.retained_earnings_code = retained_earnings_code

    async def close_period(self, tenant_id: str, as_of: date) -> ClosingResult:
        """기준일 마감 거래 생성

        Idempotent: 기존 CLOSE-<as_of> 거래가 있으면 그대로 반환.

        Args:
            tenant_id: tenant
            as_of: 마감일 (이 날짜 이전 분개가 마감 대상)

        Returns:
            ClosingResult

        Raises:
            AccountNotFound: 계정과목표에 Retained Earnings 없음
            ClosingNotBalanced: 생성된 분개가 불균형 (결함)
        """
        reference = closing_reference(as_of)

        async with self.db.transaction():
            existing = await self.store.get_transaction_by_reference(tenant_id, reference)
            if existing is not None:
                logger.info(
                    f"Closing already exists: {reference}",
                    extra={"tenant_id": tenant_id, "transaction_id": existing.id},
                )
                return ClosingResult(is_existing=True, transaction_id=existing.id)

            open_balances: list[AccountBalance] = []
            for account_type in (AccountType.REVENUE, AccountType.EXPENSE):
                for item in await self.store.balances_by_type(tenant_id, account_type, as_of):
                    if abs(item.balance) > CLOSING_EPSILON:
                        open_balances.append(item)

            if not open_balances:
                return ClosingResult(
                    is_existing=False,
                    transaction_id=None,
                    message=NOTHING_TO_CLOSE,
                )

            builder = EntrySetBuilder()
            total_debits = Decimal("0")
            total_credits = Decimal("0")
            for item in open_balances:
                account = item.account
                # 차변 - 대변 기준 잔액
                debit_balance = (
                    item.balance
                    if account.normal_balance == NormalBalance.DEBIT
                    else -item.balance
                )
                amount = abs(debit_balance)
                label = f"Close {account.code} - {account.name}"
                if debit_balance < 0:
                    builder.debit(account.code, amount, label)
                    total_debits += amount
                else:
                    builder.credit(account.code, amount, label)
                    total_credits += amount

            net = total_debits - total_credits
            if net > 0:
                builder.credit(
                    self.retained_earnings_code,
                    net,
                    "Close to Retained Earnings (Net Income)",
                )
                total_credits += net
            elif net < 0:
                builder.debit(
                    self.retained_earnings_code,
                    -net,
                    "Close to Retained Earnings (Net Loss)",
                )
                total_debits += -net

            if not amounts_match(total_debits, total_credits):
                logger.error(
                    f"Closing entries not balanced: {reference}",
                    extra={
                        "tenant_id": tenant_id,
                        "debits": str(total_debits),
                        "credits": str(total_credits),
                    },
                )
                raise ClosingNotBalanced(as_of.isoformat(), total_debits, total_credits)

            draft = builder.build(
                as_of,
                f"Closing Entries as of {as_of.isoformat()}",
                reference,
                custom_fields={"type": "closing_entries", "net_income": str(net)},
            )
            posted = await self.store.post_transaction(tenant_id, draft)

        logger.info(
            f"Period closed: {reference}",
            extra={
                "tenant_id": tenant_id,
                "transaction_id": posted.id,
                "accounts": len(open_balances),
                "net_income": str(net),
            },
        )
        return ClosingResult(
            is_existing=posted.is_existing,
            transaction_id=posted.id,
            net_income=net,
        )
