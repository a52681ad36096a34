"""
계정 레지스트리

테넌트별 계정과목표: 조회, 핵심 계정 시딩, 관리자 수정
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

import aiosqlite

from core.errors import (
    AccountExists,
    AccountInUse,
    AccountNotFound,
    AccountProtected,
    MissingRequiredField,
)
from core.ledger.types import CORE_ACCOUNTS, Account, core_normal_balance
from core.types import AccountType, normal_balance_for

if TYPE_CHECKING:
    from adapters.db.sqlite_adapter import SQLiteAdapter

logger = logging.getLogger(__name__)


class AccountRegistry:
    """계정 레지스트리

    Args:
        db: SQLite 어댑터
    """

    def __init__(self, db: SQLiteAdapter):
        self.db = db

    async def find(self, tenant_id: str, code: str) -> Account | None:
        """code로 계정 조회 (없으면 None)"""
        row = await self.db.fetchone_dict(
            "SELECT * FROM account WHERE tenant_id = ? AND code = ?",
            (tenant_id, code),
        )
        return Account.from_row(row) if row else None

    async def resolve(self, tenant_id: str, code: str) -> Account:
        """code로 계정 조회

        Raises:
            AccountNotFound: 테넌트에 해당 code 없음
        """
        account = await self.find(tenant_id, code)
        if account is None:
            raise AccountNotFound(code)
        return account

    async def list_accounts(
        self,
        tenant_id: str,
        account_type: AccountType | None = None,
    ) -> list[Account]:
        """code 순 계정 목록 (type 필터 선택)"""
        if account_type is None:
            rows = await self.db.fetchall_dict(
                "SELECT * FROM account WHERE tenant_id = ? ORDER BY code",
                (tenant_id,),
            )
        else:
            rows = await self.db.fetchall_dict(
                "SELECT * FROM account WHERE tenant_id = ? AND type = ? ORDER BY code",
                (tenant_id, AccountType(account_type).value),
            )
        return [Account.from_row(row) for row in rows]

    async def ensure_core_set(self, tenant_id: str) -> int:
        """기본 계정과목표 upsert (code 기준 멱등)

        기존 계정은 이름과 유형을 유지하고 core 플래그만 설정.

        Returns:
            새로 생성된 계정 수
        """
        created = 0
        async with self.db.transaction():
            for code, name, account_type, override in CORE_ACCOUNTS:
                cursor = await self.db.execute(
                    """
                    INSERT OR IGNORE INTO account (
                        tenant_id, code, name, type, normal_balance, is_core
                    ) VALUES (?, ?, ?, ?, ?, 1)
                    """,
                    (
                        tenant_id,
                        code,
                        name,
                        account_type.value,
                        core_normal_balance(account_type, override).value,
                    ),
                )
                if cursor.rowcount:
                    created += 1
                else:
                    await self.db.execute(
                        "UPDATE account SET is_core = 1 WHERE tenant_id = ? AND code = ?",
                        (tenant_id, code),
                    )

        logger.info(
            "Core accounts ensured",
            extra={"tenant_id": tenant_id, "created": created},
        )
        return created

    async def create(
        self,
        tenant_id: str,
        code: str,
        name: str,
        account_type: AccountType | str,
    ) -> Account:
        """비핵심 계정 생성

        Raises:
            MissingRequiredField: code 또는 name이 공백
            AccountExists: 테넌트가 이미 사용 중인 code
        """
        if not code or not code.strip():
            raise MissingRequiredField("code")
        if not name or not name.strip():
            raise MissingRequiredField("name")

        account_type = AccountType(account_type)
        try:
            async with self.db.transaction():
                await self.db.execute(
                    """
                    INSERT INTO account (tenant_id, code, name, type, normal_balance, is_core)
                    VALUES (?, ?, ?, ?, ?, 0)
                    """,
                    (
                        tenant_id,
                        code.strip(),
                        name.strip(),
                        account_type.value,
                        normal_balance_for(account_type).value,
                    ),
                )
        except aiosqlite.IntegrityError as e:
            raise AccountExists(code) from e

        logger.info(f"Account created: {code}", extra={"tenant_id": tenant_id})
        return await self.resolve(tenant_id, code.strip())

    async def update(
        self,
        tenant_id: str,
        code: str,
        name: str | None = None,
        account_type: AccountType | str | None = None,
    ) -> Account:
        """이름/유형 관리자 수정

        유형 변경 시 정상 잔액 방향을 새 유형 기준으로 재계산.

        Raises:
            AccountNotFound: 존재하지 않는 code
            MissingRequiredField: name이 공백
        """
        async with self.db.transaction():
            account = await self.resolve(tenant_id, code)

            new_name = account.name
            if name is not None:
                if not name.strip():
                    raise MissingRequiredField("name")
                new_name = name.strip()

            new_type = account.type
            new_normal = account.normal_balance
            if account_type is not None and AccountType(account_type) != account.type:
                new_type = AccountType(account_type)
                new_normal = normal_balance_for(new_type)

            await self.db.execute(
                """
                UPDATE account
                SET name = ?, type = ?, normal_balance = ?, updated_at = datetime('now')
                WHERE id = ?
                """,
                (new_name, new_type.value, new_normal.value, account.id),
            )

        logger.info(
            f"Account updated: {code}",
            extra={"tenant_id": tenant_id, "type": new_type.value},
        )
        return await self.resolve(tenant_id, code)

    async def delete(self, tenant_id: str, code: str) -> None:
        """계정 삭제

        Raises:
            AccountNotFound: 존재하지 않는 code
            AccountProtected: 핵심 계정
            AccountInUse: 분개 항목이 참조 중인 계정
        """
        async with self.db.transaction():
            account = await self.resolve(tenant_id, code)
            if account.is_core:
                raise AccountProtected(code)

            row = await self.db.fetchone(
                """
                SELECT COUNT(*) FROM transaction_entry
                WHERE debit_account_id = ? OR credit_account_id = ?
                """,
                (account.id, account.id),
            )
            usage = int(row[0]) if row else 0
            if usage:
                raise AccountInUse(code, usage)

            await self.db.execute("DELETE FROM account WHERE id = ?", (account.id,))

        logger.info(f"Account deleted: {code}", extra={"tenant_id": tenant_id})
