"""
Asset repository

asset_category, asset, depreciation_event SQL 접근. 쓰기의 트랜잭션 경계는
호출자가 관리.
"""

from __future__ import annotations

from datetime import date
from decimal import Decimal
from typing import TYPE_CHECKING

from core.types import AssetStatus
from core.utils.periods import Period
from engine.depreciation.types import Asset, AssetCategory, DepreciationEvent

if TYPE_CHECKING:
    from adapters.db.sqlite_adapter import SQLiteAdapter


class AssetRepository:
    """자산 repository

    Args:
        db: SQLite adapter
    """

    def __init__(self, db: SQLiteAdapter):
        self.db = db

    # -------------------------------------------------------------------------
    # 카테고리
    # -------------------------------------------------------------------------

    async def insert_category(self, category: AssetCategory) -> None:
        await self.db.execute(
            """
            INSERT INTO asset_category (
                id, tenant_id, name, expense_account_code,
                accumulated_account_code, default_useful_life_months
            ) VALUES (?, ?, ?, ?, ?, ?)
            """,
            (
                category.id,
                category.tenant_id,
                category.name,
                category.expense_account_code,
                category.accumulated_account_code,
                category.default_useful_life_months,
            ),
        )

    async def get_category(self, tenant_id: str, category_id: str) -> AssetCategory | None:
        row = await self.db.fetchone_dict(
            "SELECT * FROM asset_category WHERE tenant_id = ? AND id = ?",
            (tenant_id, category_id),
        )
        return AssetCategory.from_row(row) if row else None

    async def list_categories(self, tenant_id: str) -> list[AssetCategory]:
        rows = await self.db.fetchall_dict(
            "SELECT * FROM asset_category WHERE tenant_id = ? ORDER BY name",
            (tenant_id,),
        )
        return [AssetCategory.from_row(row) for row in rows]

    # -------------------------------------------------------------------------
    # 자산
    # -------------------------------------------------------------------------

    async def insert_asset(self, asset: Asset) -> None:
        await self.db.execute(
            """
            INSERT INTO asset (
                id, tenant_id, name, category_id, unique_key, acquisition_date,
                in_service_date, cost, residual_value, method,
                useful_life_months, status
            ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
            """,
            (
                asset.id,
                asset.tenant_id,
                asset.name,
                asset.category_id,
                asset.unique_key,
                asset.acquisition_date.isoformat(),
                asset.in_service_date.isoformat(),
                str(asset.cost),
                str(asset.residual_value),
                asset.method.value,
                asset.useful_life_months,
                asset.status.value,
            ),
        )

    async def get_asset(self, tenant_id: str, asset_id: str) -> Asset | None:
        row = await self.db.fetchone_dict(
            "SELECT * FROM asset WHERE tenant_id = ? AND id = ?",
            (tenant_id, asset_id),
        )
        return Asset.from_row(row) if row else None

    async def list_assets(
        self,
        tenant_id: str | None = None,
        status: AssetStatus | None = None,
    ) -> list[Asset]:
        """한 tenant(또는 전체 tenant)의 자산, status 필터 선택"""
        sql = "SELECT * FROM asset WHERE 1 = 1"
        params: list[str] = []
        if tenant_id is not None:
            sql += " AND tenant_id = ?"
            params.append(tenant_id)
        if status is not None:
            sql += " AND status = ?"
            params.append(AssetStatus(status).value)
        sql += " ORDER BY tenant_id, in_service_date, id"
        rows = await self.db.fetchall_dict(sql, tuple(params))
        return [Asset.from_row(row) for row in rows]

    async def update_status(
        self,
        asset_id: str,
        status: AssetStatus,
        disposed_at: date | None = None,
    ) -> None:
        await self.db.execute(
            """
            UPDATE asset
            SET status = ?, disposed_at = COALESCE(?, disposed_at),
                updated_at = datetime('now')
            WHERE id = ?
            """,
            (
                AssetStatus(status).value,
                disposed_at.isoformat() if disposed_at else None,
                asset_id,
            ),
        )

    # -------------------------------------------------------------------------
    # 감가상각 이벤트
    # -------------------------------------------------------------------------

    async def insert_event(self, event: DepreciationEvent) -> None:
        """전기된 기간 기록

        Raises:
            aiosqlite.IntegrityError: (asset_id, period)가 이미 기록됨
        """
        await self.db.execute(
            """
            INSERT INTO depreciation_event (asset_id, period, amount, posted_transaction_id)
            VALUES (?, ?, ?, ?)
            """,
            (
                event.asset_id,
                str(event.period),
                str(event.amount),
                event.posted_transaction_id,
            ),
        )

    async def has_event(self, asset_id: str, period: Period) -> bool:
        row = await self.db.fetchone(
            "SELECT 1 FROM depreciation_event WHERE asset_id = ? AND period = ?",
            (asset_id, str(period)),
        )
        return row is not None

    async def list_events(self, asset_id: str) -> list[DepreciationEvent]:
        rows = await self.db.fetchall_dict(
            "SELECT * FROM depreciation_event WHERE asset_id = ? ORDER BY period",
            (asset_id,),
        )
        return [DepreciationEvent.from_row(row) for row in rows]

    async def posted_periods(self, asset_id: str) -> set[Period]:
        rows = await self.db.fetchall(
            "SELECT period FROM depreciation_event WHERE asset_id = ?",
            (asset_id,),
        )
        return {Period.parse(row[0]) for row in rows}

    async def accumulated(self, asset_id: str) -> Decimal:
        """자산의 기록된 감가상각 합계"""
        rows = await self.db.fetchall(
            "SELECT amount FROM depreciation_event WHERE asset_id = ?",
            (asset_id,),
        )
        return sum((Decimal(row[0]) for row in rows), Decimal("0"))
