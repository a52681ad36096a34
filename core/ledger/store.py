"""
Ledger 저장소

복식부기 거래 추가 전용(append-only) 저장 및 잔액 조회
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import TYPE_CHECKING, Any
from uuid import uuid4

import aiosqlite

from core.errors import AccountNotFound
from core.ledger.entry_builder import PostedEntry, PostedTransaction, TransactionDraft
from core.ledger.types import Account
from core.types import AccountType, EntrySide, NormalBalance

if TYPE_CHECKING:
    from adapters.db.sqlite_adapter import SQLiteAdapter

logger = logging.getLogger(__name__)


@dataclass
class AccountBalance:
    """계정 하나의 부호 있는 잔액 (정상 잔액 방향이면 양수)"""

    account: Account
    balance: Decimal


@dataclass
class LedgerLine:
    """계정 상세 조회 행"""

    transaction_id: str
    date: date
    reference: str
    description: str
    side: EntrySide
    amount: Decimal
    running_balance: Decimal


def signed_amount(normal_balance: NormalBalance | str, side: EntrySide | str, amount: Decimal) -> Decimal:
    """계정 관점의 금액: 계정을 증가시키면 양수"""
    if NormalBalance(normal_balance).value == EntrySide(side).value:
        return amount
    return -amount


class LedgerStore:
    """Ledger 저장소

    거래와 분개 항목을 하나의 DB 트랜잭션으로 저장하고
    계정 관점의 잔액을 조회하는 클래스.

    Args:
        db: SQLite 어댑터
    """

    def __init__(self, db: SQLiteAdapter):
        self.db = db

    # -------------------------------------------------------------------------
    # 쓰기
    # -------------------------------------------------------------------------

    async def post_transaction(
        self,
        tenant_id: str,
        draft: TransactionDraft,
    ) -> PostedTransaction:
        """거래 전기 (reference 기준 멱등)

        같은 (tenant_id, reference)의 거래가 이미 있으면 변경 없이
        is_existing=True로 반환. 없으면 헤더와 모든 항목을 원자적으로 저장.

        Args:
            tenant_id: 테넌트
            draft: 전기할 분개 세트

        Returns:
            전기된 (또는 재생된) 거래

        Raises:
            UnbalancedEntries: 차변/대변 불일치
            InvalidAmount: 항목 금액이 0 이하
            AccountNotFound: 존재하지 않는 계정 코드 참조
        """
        draft.validate()

        try:
            async with self.db.transaction():
                existing = await self._load_by_reference(tenant_id, draft.reference)
                if existing is not None:
                    existing.is_existing = True
                    logger.info(
                        f"Idempotent replay: {draft.reference}",
                        extra={"tenant_id": tenant_id, "transaction_id": existing.id},
                    )
                    return existing

                accounts = await self._accounts_by_code(
                    tenant_id, {line.account_code for line in draft.lines}
                )

                transaction_id = str(uuid4())
                await self.db.execute(
                    """
                    INSERT INTO ledger_transaction (
                        id, tenant_id, date, description, reference, amount, custom_fields
                    ) VALUES (?, ?, ?, ?, ?, ?, ?)
                    """,
                    (
                        transaction_id,
                        tenant_id,
                        draft.date.isoformat(),
                        draft.description,
                        draft.reference,
                        str(draft.informational_amount),
                        json.dumps(draft.custom_fields) if draft.custom_fields else None,
                    ),
                )

                entries: list[PostedEntry] = []
                for i, line in enumerate(draft.lines):
                    account_id = accounts[line.account_code].id
                    await self.db.execute(
                        """
                        INSERT INTO transaction_entry (
                            transaction_id, debit_account_id, credit_account_id,
                            amount, description, line_order
                        ) VALUES (?, ?, ?, ?, ?, ?)
                        """,
                        (
                            transaction_id,
                            account_id if line.is_debit else None,
                            None if line.is_debit else account_id,
                            str(line.amount),
                            line.description,
                            i,
                        ),
                    )
                    entries.append(
                        PostedEntry(
                            account_code=line.account_code,
                            side=line.side,
                            amount=line.amount,
                            description=line.description,
                            line_order=i,
                        )
                    )
        except aiosqlite.IntegrityError:
            # 다른 writer가 같은 reference를 먼저 커밋함
            winner = await self.get_transaction_by_reference(tenant_id, draft.reference)
            if winner is None:
                raise
            winner.is_existing = True
            return winner

        logger.info(
            f"Posted transaction: {draft.reference}",
            extra={
                "tenant_id": tenant_id,
                "transaction_id": transaction_id,
                "entries": len(entries),
                "amount": str(draft.informational_amount),
            },
        )

        return PostedTransaction(
            id=transaction_id,
            tenant_id=tenant_id,
            date=draft.date,
            description=draft.description,
            reference=draft.reference,
            amount=draft.informational_amount,
            entries=entries,
            custom_fields=draft.custom_fields,
        )

    async def _accounts_by_code(self, tenant_id: str, codes: set[str]) -> dict[str, Account]:
        """테넌트의 계정 코드 조회

        Raises:
            AccountNotFound: 정렬 순서상 첫 번째 누락 코드
        """
        found: dict[str, Account] = {}
        for code in sorted(codes):
            row = await self.db.fetchone_dict(
                "SELECT * FROM account WHERE tenant_id = ? AND code = ?",
                (tenant_id, code),
            )
            if row is None:
                raise AccountNotFound(code)
            found[code] = Account.from_row(row)
        return found

    # -------------------------------------------------------------------------
    # 거래 조회
    # -------------------------------------------------------------------------

    async def _load(self, header: dict[str, Any] | None) -> PostedTransaction | None:
        if header is None:
            return None

        rows = await self.db.fetchall_dict(
            """
            SELECT e.amount, e.description, e.line_order,
                   e.debit_account_id, a.code
            FROM transaction_entry e
            JOIN account a ON a.id = COALESCE(e.debit_account_id, e.credit_account_id)
            WHERE e.transaction_id = ?
            ORDER BY e.line_order, e.id
            """,
            (header["id"],),
        )

        entries = [
            PostedEntry(
                account_code=row["code"],
                side=EntrySide.DEBIT if row["debit_account_id"] is not None else EntrySide.CREDIT,
                amount=Decimal(row["amount"]),
                description=row["description"],
                line_order=row["line_order"],
            )
            for row in rows
        ]

        return PostedTransaction(
            id=header["id"],
            tenant_id=header["tenant_id"],
            date=date.fromisoformat(header["date"]),
            description=header["description"],
            reference=header["reference"],
            amount=Decimal(header["amount"]),
            entries=entries,
            custom_fields=json.loads(header["custom_fields"]) if header["custom_fields"] else None,
        )

    async def _load_by_reference(self, tenant_id: str, reference: str) -> PostedTransaction | None:
        header = await self.db.fetchone_dict(
            "SELECT * FROM ledger_transaction WHERE tenant_id = ? AND reference = ?",
            (tenant_id, reference),
        )
        return await self._load(header)

    async def get_transaction_by_reference(
        self,
        tenant_id: str,
        reference: str,
    ) -> PostedTransaction | None:
        """멱등성 reference로 거래 조회"""
        async with self.db.snapshot():
            return await self._load_by_reference(tenant_id, reference)

    async def get_transaction(self, tenant_id: str, transaction_id: str) -> PostedTransaction | None:
        """id로 거래 조회 (테넌트 범위)"""
        async with self.db.snapshot():
            header = await self.db.fetchone_dict(
                "SELECT * FROM ledger_transaction WHERE tenant_id = ? AND id = ?",
                (tenant_id, transaction_id),
            )
            return await self._load(header)

    async def count_transactions(self, tenant_id: str) -> int:
        row = await self.db.fetchone(
            "SELECT COUNT(*) FROM ledger_transaction WHERE tenant_id = ?",
            (tenant_id,),
        )
        return int(row[0]) if row else 0

    # -------------------------------------------------------------------------
    # 잔액
    # -------------------------------------------------------------------------

    async def get_balance(
        self,
        tenant_id: str,
        account_code: str,
        as_of: date | None = None,
    ) -> Decimal:
        """기준일(포함)까지의 계정 잔액

        차변 정상 계정: 차변 - 대변.
        대변 정상 계정: 대변 - 차변.

        Raises:
            AccountNotFound: 존재하지 않는 계정 코드
        """
        async with self.db.snapshot():
            account = (await self._accounts_by_code(tenant_id, {account_code}))[account_code]
            balances = await self._balances_for(tenant_id, [account], as_of)
        return balances[account.id]

    async def balances_by_type(
        self,
        tenant_id: str,
        account_type: AccountType,
        as_of: date | None = None,
    ) -> list[AccountBalance]:
        """유형별 모든 계정의 부호 있는 잔액 (code 순)"""
        async with self.db.snapshot():
            rows = await self.db.fetchall_dict(
                "SELECT * FROM account WHERE tenant_id = ? AND type = ? ORDER BY code",
                (tenant_id, AccountType(account_type).value),
            )
            accounts = [Account.from_row(row) for row in rows]
            balances = await self._balances_for(tenant_id, accounts, as_of)

        return [AccountBalance(account=a, balance=balances[a.id]) for a in accounts]

    async def _balances_for(
        self,
        tenant_id: str,
        accounts: list[Account],
        as_of: date | None,
    ) -> dict[int, Decimal]:
        """Decimal로 항목 합산 (금액은 TEXT, REAL로 합산하지 않음)"""
        balances = {a.id: Decimal("0") for a in accounts}
        if not accounts:
            return balances

        by_id = {a.id: a for a in accounts}
        placeholders = ",".join("?" for _ in accounts)
        ids = tuple(by_id)
        as_of_str = as_of.isoformat() if as_of else None

        rows = await self.db.fetchall(
            f"""
            SELECT e.debit_account_id, e.credit_account_id, e.amount
            FROM transaction_entry e
            JOIN ledger_transaction t ON t.id = e.transaction_id
            WHERE t.tenant_id = ?
              AND (e.debit_account_id IN ({placeholders})
                   OR e.credit_account_id IN ({placeholders}))
              AND (? IS NULL OR t.date <= ?)
            """,
            (tenant_id, *ids, *ids, as_of_str, as_of_str),
        )

        for debit_id, credit_id, amount in rows:
            account_id = debit_id if debit_id is not None else credit_id
            side = EntrySide.DEBIT if debit_id is not None else EntrySide.CREDIT
            balances[account_id] += signed_amount(
                by_id[account_id].normal_balance, side, Decimal(amount)
            )

        return balances

    async def get_trial_balance(
        self,
        tenant_id: str,
        as_of: date | None = None,
    ) -> list[dict[str, Any]]:
        """시산표 (잔액이 있는 계정)

        Returns:
            [{"code", "name", "type", "debit", "credit"}, ...]
            잔액은 자연스러운 쪽에 표시
        """
        result: list[dict[str, Any]] = []
        async with self.db.snapshot():
            rows = await self.db.fetchall_dict(
                "SELECT * FROM account WHERE tenant_id = ? ORDER BY code",
                (tenant_id,),
            )
            accounts = [Account.from_row(row) for row in rows]
            balances = await self._balances_for(tenant_id, accounts, as_of)

        for account in accounts:
            balance = balances[account.id]
            if balance == 0:
                continue
            # 양수 잔액은 정상 잔액 방향에 위치
            on_debit = (account.normal_balance == NormalBalance.DEBIT) == (balance > 0)
            result.append({
                "code": account.code,
                "name": account.name,
                "type": account.type.value,
                "debit": abs(balance) if on_debit else Decimal("0"),
                "credit": Decimal("0") if on_debit else abs(balance),
            })

        return result

    # -------------------------------------------------------------------------
    # 상세 조회
    # -------------------------------------------------------------------------

    async def list_entries(
        self,
        tenant_id: str,
        account_code: str,
        limit: int = 100,
        offset: int = 0,
    ) -> list[LedgerLine]:
        """계정 하나의 항목 목록 (최신순, 누적 잔액 포함)

        누적 잔액은 전체 이력을 전기 순서로 계산한 뒤 페이징.

        Raises:
            AccountNotFound: 존재하지 않는 계정 코드
        """
        async with self.db.snapshot():
            account = (await self._accounts_by_code(tenant_id, {account_code}))[account_code]
            rows = await self.db.fetchall_dict(
                """
                SELECT t.id AS transaction_id, t.date, t.reference,
                       COALESCE(e.description, t.description) AS description,
                       e.debit_account_id, e.amount
                FROM transaction_entry e
                JOIN ledger_transaction t ON t.id = e.transaction_id
                WHERE t.tenant_id = ?
                  AND (e.debit_account_id = ? OR e.credit_account_id = ?)
                ORDER BY t.date, t.created_at, e.id
                """,
                (tenant_id, account.id, account.id),
            )

        running = Decimal("0")
        lines: list[LedgerLine] = []
        for row in rows:
            side = EntrySide.DEBIT if row["debit_account_id"] is not None else EntrySide.CREDIT
            amount = Decimal(row["amount"])
            running += signed_amount(account.normal_balance, side, amount)
            lines.append(
                LedgerLine(
                    transaction_id=row["transaction_id"],
                    date=date.fromisoformat(row["date"]),
                    reference=row["reference"],
                    description=row["description"],
                    side=side,
                    amount=amount,
                    running_balance=running,
                )
            )

        lines.reverse()
        return lines[offset:offset + limit]

    async def count_account_usage(self, account_id: int) -> int:
        """계정을 참조하는 항목 수"""
        row = await self.db.fetchone(
            """
            SELECT COUNT(*) FROM transaction_entry
            WHERE debit_account_id = ? OR credit_account_id = ?
            """,
            (account_id, account_id),
        )
        return int(row[0]) if row else 0
