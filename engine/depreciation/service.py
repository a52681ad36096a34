"""
Depreciation 엔진

자산 등록, 처분, 정액법 정기 실행.

실행 시 ACTIVE 자산마다 감가상각 이벤트가 없는 경과 기간을 모두 전기
(catch-up). 기간 하나는 장부 거래 하나와 이벤트 행으로, 함께 커밋됨.
(asset_id, period) UNIQUE 제약이 동시 실행을 막는 관문.
"""

from __future__ import annotations

import logging
from datetime import date
from typing import TYPE_CHECKING
from uuid import uuid4

import aiosqlite

from core.constants import CLOSING_EPSILON, AccountCodes, Defaults
from core.domain.state_machines import AssetStateMachine
from core.errors import AssetNotFound, DuplicateAssetKey, MissingRequiredField, ValidationError
from core.ledger.entry_builder import EntrySetBuilder
from core.types import AssetStatus
from core.utils.idempotency import depreciation_reference
from core.utils.timezone import Clock, today_utc
from engine.depreciation.repository import AssetRepository
from engine.depreciation.schedule import ScheduleLine, build_schedule, due_lines
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

if TYPE_CHECKING:
    from adapters.db.sqlite_adapter import SQLiteAdapter
    from core.ledger.accounts import AccountRegistry
    from core.ledger.store import LedgerStore

logger = logging.getLogger(__name__)


class DepreciationEngine:
    """Depreciation 엔진

    Args:
        db: SQLite adapter
        store: ledger store
        registry: account registry (카테고리 계정 검증)
        default_useful_life_months: 자산과 카테고리 모두 지정하지 않을 때
            사용하는 내용연수
        clock: as_of 없는 실행에서 "오늘"을 반환
    """

    def __init__(
        self,
        db: SQLiteAdapter,
        store: LedgerStore,
        registry: AccountRegistry,
        default_useful_life_months: int = Defaults.USEFUL_LIFE_MONTHS,
        clock: Clock = today_utc,
    ):
        self.db = db
        self.store = store
        self.registry = registry
        self.repository = AssetRepository(db)
        self.default_useful_life_months = default_useful_life_months
        self.clock = clock

    # -------------------------------------------------------------------------
    # 카테고리 및 자산
    # -------------------------------------------------------------------------

    async def create_category(
        self,
        tenant_id: str,
        name: str,
        expense_account_code: str = AccountCodes.DEPRECIATION_EXPENSE,
        accumulated_account_code: str = AccountCodes.ACCUMULATED_DEPRECIATION,
        default_useful_life_months: int | None = None,
    ) -> AssetCategory:
        """자산 카테고리 생성

        Raises:
            MissingRequiredField: 빈 name
            AccountNotFound: tenant 계정과목표에 없는 계정 코드
            ValidationError: 중복 name 또는 0 이하 기본 내용연수
        """
        if not name or not name.strip():
            raise MissingRequiredField("name")
        if default_useful_life_months is not None and default_useful_life_months < 1:
            raise ValidationError("default_useful_life_months must be at least 1")

        await self.registry.resolve(tenant_id, expense_account_code)
        await self.registry.resolve(tenant_id, accumulated_account_code)

        category = AssetCategory(
            id=str(uuid4()),
            tenant_id=tenant_id,
            name=name.strip(),
            expense_account_code=expense_account_code,
            accumulated_account_code=accumulated_account_code,
            default_useful_life_months=default_useful_life_months,
        )
        try:
            async with self.db.transaction():
                await self.repository.insert_category(category)
        except aiosqlite.IntegrityError as e:
            raise ValidationError(f"Asset category '{category.name}' already exists") from e

        logger.info(
            f"Asset category created: {category.name}",
            extra={"tenant_id": tenant_id, "category_id": category.id},
        )
        return category

    async def list_categories(self, tenant_id: str) -> list[AssetCategory]:
        return await self.repository.list_categories(tenant_id)

    async def register_asset(self, tenant_id: str, registration: AssetRegistration) -> Asset:
        """고정자산 등록 (status ACTIVE)

        Raises:
            ValidationError: 잘못된 등록 정보 또는 알 수 없는 카테고리
            DuplicateAssetKey: tenant가 이미 사용 중인 unique_key
        """
        registration.validate()

        category: AssetCategory | None = None
        if registration.category_id:
            category = await self.repository.get_category(tenant_id, registration.category_id)
            if category is None:
                raise ValidationError(f"Unknown asset category: {registration.category_id}")

        useful_life = (
            registration.useful_life_months
            or (category.default_useful_life_months if category else None)
            or self.default_useful_life_months
        )

        asset_id = str(uuid4())
        asset = Asset(
            id=asset_id,
            tenant_id=tenant_id,
            name=registration.name,
            unique_key=registration.unique_key or asset_id,
            acquisition_date=registration.acquisition_date,
            in_service_date=registration.in_service_date,
            cost=registration.cost,
            residual_value=registration.residual_value,
            useful_life_months=useful_life,
            method=registration.method,
            category_id=registration.category_id,
        )

        try:
            async with self.db.transaction():
                await self.repository.insert_asset(asset)
        except aiosqlite.IntegrityError as e:
            raise DuplicateAssetKey(asset.unique_key) from e

        logger.info(
            f"Asset registered: {asset.name}",
            extra={
                "tenant_id": tenant_id,
                "asset_id": asset.id,
                "cost": str(asset.cost),
                "useful_life_months": useful_life,
            },
        )
        return asset

    async def get_asset(self, tenant_id: str, asset_id: str) -> Asset:
        """id로 자산 조회

        Raises:
            AssetNotFound: tenant에 없는 id
        """
        asset = await self.repository.get_asset(tenant_id, asset_id)
        if asset is None:
            raise AssetNotFound(asset_id)
        return asset

    async def dispose_asset(
        self,
        tenant_id: str,
        asset_id: str,
        disposed_on: date | None = None,
    ) -> Asset:
        """자산 처분 (이후 감가상각 전기 없음)

        Raises:
            AssetNotFound: tenant에 없는 id
            StateMachineError: 이미 처분된 자산
        """
        disposed_on = disposed_on or self.clock()

        async with self.db.transaction():
            asset = await self.get_asset(tenant_id, asset_id)
            machine = AssetStateMachine(asset.status)
            machine.transition(AssetStatus.DISPOSED)
            await self.repository.update_status(asset.id, AssetStatus.DISPOSED, disposed_on)

        logger.info(
            f"Asset disposed: {asset.name}",
            extra={
                "tenant_id": tenant_id,
                "asset_id": asset.id,
                "from_status": asset.status.value,
                "disposed_on": disposed_on.isoformat(),
            },
        )
        return await self.get_asset(tenant_id, asset_id)

    async def get_schedule(self, tenant_id: str, asset_id: str) -> list[ScheduleLine]:
        """자산의 예상 정액법 스케줄"""
        asset = await self.get_asset(tenant_id, asset_id)
        return build_schedule(
            asset.cost,
            asset.residual_value,
            asset.useful_life_months,
            asset.in_service_date,
        )

    async def list_events(self, tenant_id: str, asset_id: str) -> list[DepreciationEvent]:
        asset = await self.get_asset(tenant_id, asset_id)
        return await self.repository.list_events(asset.id)

    # -------------------------------------------------------------------------
    # 실행
    # -------------------------------------------------------------------------

    async def run_depreciation(
        self,
        tenant_id: str | None = None,
        as_of: date | None = None,
    ) -> DepreciationRunResult:
        """대상 감가상각 전체 전기

        실패는 자산별로 격리되어 결과에 보고.

        Args:
            tenant_id: 실행을 한 tenant로 제한 (None: 전체 tenant)
            as_of: 실행일 (기본: clock), 이후에 끝나는 기간은 대상 아님

        Returns:
            DepreciationRunResult
        """
        as_of = as_of or self.clock()
        result = DepreciationRunResult()

        assets = await self.repository.list_assets(tenant_id, AssetStatus.ACTIVE)
        logger.info(
            "Depreciation run started",
            extra={"tenant_id": tenant_id, "as_of": as_of.isoformat(), "assets": len(assets)},
        )

        for asset in assets:
            try:
                await self._run_asset(asset, as_of, result)
            except Exception as e:
                logger.error(
                    f"Depreciation failed for asset {asset.id}: {e}",
                    extra={"tenant_id": asset.tenant_id, "asset_id": asset.id},
                    exc_info=True,
                )
                result.failed.append(
                    FailedDepreciation(
                        tenant_id=asset.tenant_id,
                        asset_id=asset.id,
                        error=str(e),
                    )
                )

        logger.info(
            "Depreciation run finished",
            extra={
                "tenant_id": tenant_id,
                "posted": len(result.posted),
                "skipped": len(result.skipped),
                "failed": len(result.failed),
                "total": str(result.total_posted),
            },
        )
        return result

    async def _run_asset(self, asset: Asset, as_of: date, result: DepreciationRunResult) -> None:
        schedule = build_schedule(
            asset.cost,
            asset.residual_value,
            asset.useful_life_months,
            asset.in_service_date,
        )
        if not schedule:
            # residual >= cost: 전기할 금액 없음
            async with self.db.transaction():
                await self._mark_fully_depreciated(asset)
            result.skipped.append(
                SkippedDepreciation(asset.tenant_id, asset.id, "no_depreciable_base")
            )
            return

        posted_periods = await self.repository.posted_periods(asset.id)
        due = due_lines(schedule, as_of, posted_periods)
        if not due:
            result.skipped.append(SkippedDepreciation(asset.tenant_id, asset.id, "not_due"))

        category = None
        if asset.category_id:
            category = await self.repository.get_category(asset.tenant_id, asset.category_id)
        expense_code = (
            category.expense_account_code if category else AccountCodes.DEPRECIATION_EXPENSE
        )
        accumulated_code = (
            category.accumulated_account_code
            if category
            else AccountCodes.ACCUMULATED_DEPRECIATION
        )
        base = schedule[-1].accumulated

        for line in due:
            try:
                async with self.db.transaction():
                    current = await self.repository.get_asset(asset.tenant_id, asset.id)
                    if current is None or not AssetStateMachine(current.status).can_depreciate:
                        result.skipped.append(
                            SkippedDepreciation(asset.tenant_id, asset.id, "inactive", line.period)
                        )
                        return
                    if await self.repository.has_event(asset.id, line.period):
                        result.skipped.append(
                            SkippedDepreciation(
                                asset.tenant_id, asset.id, "already_posted", line.period
                            )
                        )
                        continue

                    remaining = base - await self.repository.accumulated(asset.id)
                    amount = min(line.amount, remaining)
                    if amount <= CLOSING_EPSILON:
                        await self._mark_fully_depreciated(current)
                        return

                    draft = (
                        EntrySetBuilder()
                        .debit(expense_code, amount, f"Depreciation - {asset.name}")
                        .credit(accumulated_code, amount, f"Accumulated depreciation - {asset.name}")
                        .build(
                            line.period.end,
                            f"Depreciation for {asset.name} ({line.period})",
                            depreciation_reference(asset.id, line.period),
                            custom_fields={
                                "type": "asset_depreciation",
                                "asset_id": asset.id,
                                "period": str(line.period),
                            },
                        )
                    )
                    posted = await self.store.post_transaction(asset.tenant_id, draft)
                    await self.repository.insert_event(
                        DepreciationEvent(
                            asset_id=asset.id,
                            period=line.period,
                            amount=amount,
                            posted_transaction_id=posted.id,
                        )
                    )
                    if remaining - amount <= CLOSING_EPSILON:
                        await self._mark_fully_depreciated(current)
            except aiosqlite.IntegrityError:
                # 다른 실행이 이 기간을 먼저 기록
                result.skipped.append(
                    SkippedDepreciation(asset.tenant_id, asset.id, "already_posted", line.period)
                )
                continue

            result.posted.append(
                PostedDepreciation(
                    tenant_id=asset.tenant_id,
                    asset_id=asset.id,
                    period=line.period,
                    amount=amount,
                    transaction_id=posted.id,
                )
            )
            logger.debug(
                f"Depreciation posted: {asset.id} {line.period}",
                extra={"tenant_id": asset.tenant_id, "amount": str(amount)},
            )

    async def _mark_fully_depreciated(self, asset: Asset) -> None:
        machine = AssetStateMachine(asset.status)
        if not machine.can_transition(AssetStatus.FULLY_DEPRECIATED):
            return
        machine.transition(AssetStatus.FULLY_DEPRECIATED)
        await self.repository.update_status(asset.id, AssetStatus.FULLY_DEPRECIATED)
        logger.info(
            f"Asset fully depreciated: {asset.name}",
            extra={"tenant_id": asset.tenant_id, "asset_id": asset.id},
        )
