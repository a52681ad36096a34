"""
동시성 테스트

Overlapping callers on one adapter (asyncio lock) and on two connections to
the same file (SQLite write lock + UNIQUE constraints).
"""

import asyncio
from datetime import date
from decimal import Decimal

import pytest

from adapters.db.sqlite_adapter import SQLiteAdapter
from engine.depreciation import AssetRegistration
from engine.posting import ExpensePayload
from engine.service import LedgerService

TENANT = "acme"
TODAY = date(2026, 6, 15)


def _expense() -> ExpensePayload:
    return ExpensePayload(vendor_name="Adobe", amount=Decimal("100"), date=date(2026, 3, 1))


class TestSameProcess:
    @pytest.mark.asyncio
    async def test_duplicate_submissions(self, service: LedgerService) -> None:
        results = await asyncio.gather(*(service.post_expense(TENANT, _expense()) for _ in range(4)))

        assert len({r.transaction_id for r in results}) == 1
        assert [r.is_existing for r in results].count(False) == 1
        assert await service.get_account_balance(TENANT, "6030") == Decimal("100.00")

    @pytest.mark.asyncio
    async def test_overlapping_depreciation_runs(self, service: LedgerService) -> None:
        asset = await service.register_asset(
            TENANT,
            AssetRegistration(
                name="Server",
                cost=Decimal("1200"),
                in_service_date=date(2025, 12, 10),
                useful_life_months=12,
            ),
        )

        runs = await asyncio.gather(
            service.run_depreciation(TENANT, TODAY),
            service.run_depreciation(TENANT, TODAY),
        )

        assert sum(len(r.posted) for r in runs) == 5
        assert all(not r.failed for r in runs)
        assert len(await service.list_depreciation_events(TENANT, asset.id)) == 5
        assert await service.get_account_balance(TENANT, "6500") == Decimal("500.00")

    @pytest.mark.asyncio
    async def test_concurrent_closings(self, service: LedgerService) -> None:
        await service.post_expense(TENANT, _expense())

        results = await asyncio.gather(
            service.close_period(TENANT, date(2026, 3, 31)),
            service.close_period(TENANT, date(2026, 3, 31)),
        )

        assert results[0].transaction_id == results[1].transaction_id
        assert sorted(r.is_existing for r in results) == [False, True]


class TestTwoConnections:
    @pytest.mark.asyncio
    async def test_duplicate_submissions(self, seeded: SQLiteAdapter) -> None:
        other = SQLiteAdapter(seeded.db_path)
        await other.connect()
        try:
            first = LedgerService(seeded, clock=lambda: TODAY)
            second = LedgerService(other, clock=lambda: TODAY)

            a, b = await asyncio.gather(
                first.post_expense(TENANT, _expense()),
                second.post_expense(TENANT, _expense()),
            )

            assert a.transaction_id == b.transaction_id
            assert sorted([a.is_existing, b.is_existing]) == [False, True]
            assert await first.store.count_transactions(TENANT) == 1
        finally:
            await other.close()
