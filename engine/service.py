"""
Ledger 서비스

registry, store, 엔진 위에 tenant 검증을 얹은 진입점. 호출자(CLI, HTTP
레이어, 스케줄러)는 이 클래스를 사용하고 엔진은 요청 출처를 알지 못함.
"""

from __future__ import annotations

from datetime import date
from decimal import Decimal
from typing import TYPE_CHECKING, Any

from core.constants import Defaults
from core.errors import TenantRequired
from core.ledger.accounts import AccountRegistry
from core.ledger.schema import init_ledger_schema
from core.ledger.store import LedgerStore
from core.types import AccountingBasis, AccountType, TaxRegime
from core.utils.timezone import Clock, today_utc
from engine.closing.service import ClosingEngine, ClosingResult
from engine.depreciation.service import DepreciationEngine
from engine.posting.service import PostingEngine, PostingResult

if TYPE_CHECKING:
    from adapters.db.sqlite_adapter import SQLiteAdapter
    from core.config.loader import LedgerConfig
    from core.ledger.entry_builder import TransactionDraft
    from core.ledger.store import LedgerLine
    from core.ledger.types import Account
    from engine.depreciation.schedule import ScheduleLine
    from engine.depreciation.types import (
        Asset,
        AssetCategory,
        AssetRegistration,
        DepreciationEvent,
        DepreciationRunResult,
    )
    from engine.posting.payloads import (
        CapitalContributionPayload,
        ExpensePayload,
        InvoicePayload,
        InvoicePaymentPayload,
        RevenuePayload,
    )


def require_tenant(tenant_id: str | None) -> str:
    """공백이 아닌 tenant id

    Raises:
        TenantRequired: tenant_id 누락 또는 공백
    """
    if tenant_id is None or not str(tenant_id).strip():
        raise TenantRequired()
    return str(tenant_id).strip()


class LedgerService:
    """Ledger 서비스

    Args:
        db: 연결된 SQLite adapter
        tax_regime: 전기 시 사용할 세금 계정 매핑
        basis: ACCRUAL 또는 CASH
        default_useful_life_months: 지정되지 않은 자산의 내용연수
        clock: 감가상각 실행과 처분에 쓰는 "오늘"
    """

    def __init__(
        self,
        db: SQLiteAdapter,
        tax_regime: TaxRegime | str = TaxRegime.US_SALES_TAX,
        basis: AccountingBasis | str = AccountingBasis.ACCRUAL,
        default_useful_life_months: int = Defaults.USEFUL_LIFE_MONTHS,
        clock: Clock = today_utc,
    ):
        self.db = db
        self.registry = AccountRegistry(db)
        self.store = LedgerStore(db)
        self.posting = PostingEngine(db, self.store, tax_regime=tax_regime, basis=basis)
        self.closing = ClosingEngine(db, self.store)
        self.depreciation = DepreciationEngine(
            db,
            self.store,
            self.registry,
            default_useful_life_months=default_useful_life_months,
            clock=clock,
        )

    @classmethod
    def from_config(
        cls,
        db: SQLiteAdapter,
        config: LedgerConfig,
        clock: Clock = today_utc,
    ) -> LedgerService:
        return cls(
            db,
            tax_regime=config.tax_regime,
            basis=config.basis,
            default_useful_life_months=config.default_useful_life_months,
            clock=clock,
        )

    async def init_schema(self) -> None:
        await init_ledger_schema(self.db)

    # -------------------------------------------------------------------------
    # 계정과목표
    # -------------------------------------------------------------------------

    async def ensure_core_accounts(self, tenant_id: str) -> int:
        return await self.registry.ensure_core_set(require_tenant(tenant_id))

    async def list_accounts(
        self,
        tenant_id: str,
        account_type: AccountType | None = None,
    ) -> list[Account]:
        return await self.registry.list_accounts(require_tenant(tenant_id), account_type)

    async def create_account(
        self,
        tenant_id: str,
        code: str,
        name: str,
        account_type: AccountType | str,
    ) -> Account:
        return await self.registry.create(require_tenant(tenant_id), code, name, account_type)

    async def update_account(
        self,
        tenant_id: str,
        code: str,
        name: str | None = None,
        account_type: AccountType | str | None = None,
    ) -> Account:
        return await self.registry.update(require_tenant(tenant_id), code, name, account_type)

    async def delete_account(self, tenant_id: str, code: str) -> None:
        await self.registry.delete(require_tenant(tenant_id), code)

    # -------------------------------------------------------------------------
    # 전기
    # -------------------------------------------------------------------------

    async def post_expense(self, tenant_id: str, payload: ExpensePayload) -> PostingResult:
        return await self.posting.post_expense(require_tenant(tenant_id), payload)

    async def post_invoice(self, tenant_id: str, payload: InvoicePayload) -> PostingResult:
        return await self.posting.post_invoice(require_tenant(tenant_id), payload)

    def preview_expense(self, tenant_id: str, payload: ExpensePayload) -> TransactionDraft:
        """비용 전기 시 생성될 분개 라인 (저장하지 않음)"""
        require_tenant(tenant_id)
        return self.posting.preview_expense(payload)

    def preview_invoice(self, tenant_id: str, payload: InvoicePayload) -> TransactionDraft:
        """인보이스 전기 시 생성될 분개 라인 (저장하지 않음)"""
        require_tenant(tenant_id)
        return self.posting.preview_invoice(payload)

    async def post_revenue(self, tenant_id: str, payload: RevenuePayload) -> PostingResult:
        return await self.posting.post_revenue(require_tenant(tenant_id), payload)

    async def record_invoice_payment(
        self,
        tenant_id: str,
        payload: InvoicePaymentPayload,
    ) -> PostingResult:
        return await self.posting.record_invoice_payment(require_tenant(tenant_id), payload)

    async def post_capital_contribution(
        self,
        tenant_id: str,
        payload: CapitalContributionPayload,
    ) -> PostingResult:
        return await self.posting.post_capital_contribution(require_tenant(tenant_id), payload)

    async def void_transaction(
        self,
        tenant_id: str,
        transaction_id: str,
        void_date: date | None = None,
    ) -> PostingResult:
        return await self.posting.void_transaction(
            require_tenant(tenant_id), transaction_id, void_date
        )

    # -------------------------------------------------------------------------
    # 마감 및 감가상각
    # -------------------------------------------------------------------------

    async def close_period(self, tenant_id: str, as_of: date) -> ClosingResult:
        return await self.closing.close_period(require_tenant(tenant_id), as_of)

    async def run_depreciation(
        self,
        tenant_id: str | None = None,
        as_of: date | None = None,
    ) -> DepreciationRunResult:
        """한 tenant 감가상각 실행 (tenant_id가 None이면 전체 tenant)"""
        if tenant_id is not None:
            tenant_id = require_tenant(tenant_id)
        return await self.depreciation.run_depreciation(tenant_id, as_of)

    async def create_asset_category(
        self,
        tenant_id: str,
        name: str,
        **kwargs: Any,
    ) -> AssetCategory:
        return await self.depreciation.create_category(require_tenant(tenant_id), name, **kwargs)

    async def list_asset_categories(self, tenant_id: str) -> list[AssetCategory]:
        return await self.depreciation.list_categories(require_tenant(tenant_id))

    async def register_asset(self, tenant_id: str, registration: AssetRegistration) -> Asset:
        return await self.depreciation.register_asset(require_tenant(tenant_id), registration)

    async def dispose_asset(
        self,
        tenant_id: str,
        asset_id: str,
        disposed_on: date | None = None,
    ) -> Asset:
        return await self.depreciation.dispose_asset(
            require_tenant(tenant_id), asset_id, disposed_on
        )

    async def get_asset_schedule(self, tenant_id: str, asset_id: str) -> list[ScheduleLine]:
        return await self.depreciation.get_schedule(require_tenant(tenant_id), asset_id)

    async def list_depreciation_events(
        self,
        tenant_id: str,
        asset_id: str,
    ) -> list[DepreciationEvent]:
        return await self.depreciation.list_events(require_tenant(tenant_id), asset_id)

    # -------------------------------------------------------------------------
    # 조회
    # -------------------------------------------------------------------------

    async def get_account_balance(
        self,
        tenant_id: str,
        account_code: str,
        as_of: date | None = None,
    ) -> Decimal:
        return await self.store.get_balance(require_tenant(tenant_id), account_code, as_of)

    async def list_entries(
        self,
        tenant_id: str,
        account_code: str,
        limit: int = Defaults.ENTRY_LIST_LIMIT,
        offset: int = 0,
    ) -> list[LedgerLine]:
        return await self.store.list_entries(
            require_tenant(tenant_id), account_code, limit=limit, offset=offset
        )

    async def get_trial_balance(
        self,
        tenant_id: str,
        as_of: date | None = None,
    ) -> list[dict[str, Any]]:
        return await self.store.get_trial_balance(require_tenant(tenant_id), as_of)
