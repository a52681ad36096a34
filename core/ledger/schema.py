"""
Ledger 스키마 초기화

시작 시 장부 테이블 생성.
CREATE IF NOT EXISTS 사용으로 재실행해도 안전.
"""

import logging
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from adapters.db.sqlite_adapter import SQLiteAdapter

logger = logging.getLogger(__name__)


async def init_ledger_schema(db: "SQLiteAdapter") -> None:
    """Ledger 스키마 초기화

    매 시작 시 호출해도 안전 (IF NOT EXISTS).

    Args:
        db: SQLiteAdapter 인스턴스
    """
    await _create_ledger_tables(db)
    await _create_asset_tables(db)
    logger.info("Ledger schema initialized")


async def _create_ledger_tables(db: "SQLiteAdapter") -> None:
    """계정, 거래, 분개 항목 테이블"""

    # account (테넌트별 code 유일)
    await db.execute("""
        CREATE TABLE IF NOT EXISTS account (
            id               INTEGER PRIMARY KEY AUTOINCREMENT,
            tenant_id        TEXT NOT NULL,
            code             TEXT NOT NULL,
            name             TEXT NOT NULL,
            type             TEXT NOT NULL,
            normal_balance   TEXT NOT NULL,
            is_core          INTEGER NOT NULL DEFAULT 0,
            created_at       TEXT NOT NULL DEFAULT (datetime('now')),
            updated_at       TEXT NOT NULL DEFAULT (datetime('now')),
            UNIQUE(tenant_id, code)
        )
    """)

    # ledger_transaction (테넌트별 reference 유일: 멱등성 키)
    await db.execute("""
        CREATE TABLE IF NOT EXISTS ledger_transaction (
            id               TEXT PRIMARY KEY,
            tenant_id        TEXT NOT NULL,
            date             TEXT NOT NULL,
            description      TEXT NOT NULL,
            reference        TEXT NOT NULL,
            amount           TEXT NOT NULL,
            custom_fields    TEXT,
            created_at       TEXT NOT NULL DEFAULT (datetime('now')),
            UNIQUE(tenant_id, reference)
        )
    """)

    # transaction_entry (차변/대변 중 정확히 한쪽만 설정)
    await db.execute("""
        CREATE TABLE IF NOT EXISTS transaction_entry (
            id                INTEGER PRIMARY KEY AUTOINCREMENT,
            transaction_id    TEXT NOT NULL,
            debit_account_id  INTEGER,
            credit_account_id INTEGER,
            amount            TEXT NOT NULL,
            description       TEXT,
            line_order        INTEGER NOT NULL DEFAULT 0,
            CHECK ((debit_account_id IS NULL) != (credit_account_id IS NULL)),
            FOREIGN KEY (transaction_id) REFERENCES ledger_transaction(id),
            FOREIGN KEY (debit_account_id) REFERENCES account(id),
            FOREIGN KEY (credit_account_id) REFERENCES account(id)
        )
    """)

    # document_number (사람이 부여한 번호, 테넌트와 문서 종류별 유일)
    await db.execute("""
        CREATE TABLE IF NOT EXISTS document_number (
            id               INTEGER PRIMARY KEY AUTOINCREMENT,
            tenant_id        TEXT NOT NULL,
            doc_type         TEXT NOT NULL,
            number           TEXT NOT NULL,
            transaction_id   TEXT NOT NULL,
            status           TEXT NOT NULL,
            total            TEXT NOT NULL,
            amount_paid      TEXT NOT NULL DEFAULT '0',
            created_at       TEXT NOT NULL DEFAULT (datetime('now')),
            updated_at       TEXT NOT NULL DEFAULT (datetime('now')),
            UNIQUE(tenant_id, doc_type, number),
            FOREIGN KEY (transaction_id) REFERENCES ledger_transaction(id)
        )
    """)

    await db.execute("CREATE INDEX IF NOT EXISTS idx_account_tenant_type ON account(tenant_id, type)")
    await db.execute("CREATE INDEX IF NOT EXISTS idx_transaction_tenant_date ON ledger_transaction(tenant_id, date)")
    await db.execute("CREATE INDEX IF NOT EXISTS idx_entry_transaction ON transaction_entry(transaction_id)")
    await db.execute("CREATE INDEX IF NOT EXISTS idx_entry_debit ON transaction_entry(debit_account_id)")
    await db.execute("CREATE INDEX IF NOT EXISTS idx_entry_credit ON transaction_entry(credit_account_id)")

    await db.commit()
    logger.debug("Ledger tables created")


async def _create_asset_tables(db: "SQLiteAdapter") -> None:
    """고정자산 테이블"""

    await db.execute("""
        CREATE TABLE IF NOT EXISTS asset_category (
            id                         TEXT PRIMARY KEY,
            tenant_id                  TEXT NOT NULL,
            name                       TEXT NOT NULL,
            expense_account_code       TEXT NOT NULL,
            accumulated_account_code   TEXT NOT NULL,
            default_useful_life_months INTEGER,
            created_at                 TEXT NOT NULL DEFAULT (datetime('now')),
            UNIQUE(tenant_id, name)
        )
    """)

    # asset (unique_key는 전역이 아닌 테넌트별 유일)
    await db.execute("""
        CREATE TABLE IF NOT EXISTS asset (
            id                 TEXT PRIMARY KEY,
            tenant_id          TEXT NOT NULL,
            name               TEXT NOT NULL,
            category_id        TEXT,
            unique_key         TEXT NOT NULL,
            acquisition_date   TEXT NOT NULL,
            in_service_date    TEXT NOT NULL,
            cost               TEXT NOT NULL,
            residual_value     TEXT NOT NULL DEFAULT '0',
            method             TEXT NOT NULL DEFAULT 'SL',
            useful_life_months INTEGER NOT NULL,
            status             TEXT NOT NULL DEFAULT 'ACTIVE',
            disposed_at        TEXT,
            created_at         TEXT NOT NULL DEFAULT (datetime('now')),
            updated_at         TEXT NOT NULL DEFAULT (datetime('now')),
            UNIQUE(tenant_id, unique_key),
            FOREIGN KEY (category_id) REFERENCES asset_category(id)
        )
    """)

    # depreciation_event (자산, 기간당 최대 하나)
    await db.execute("""
        CREATE TABLE IF NOT EXISTS depreciation_event (
            id                    INTEGER PRIMARY KEY AUTOINCREMENT,
            asset_id              TEXT NOT NULL,
            period                TEXT NOT NULL,
            amount                TEXT NOT NULL,
            posted_transaction_id TEXT NOT NULL,
            created_at            TEXT NOT NULL DEFAULT (datetime('now')),
            UNIQUE(asset_id, period),
            FOREIGN KEY (asset_id) REFERENCES asset(id),
            FOREIGN KEY (posted_transaction_id) REFERENCES ledger_transaction(id)
        )
    """)

    await db.execute("CREATE INDEX IF NOT EXISTS idx_asset_tenant_status ON asset(tenant_id, status)")
    await db.execute("CREATE INDEX IF NOT EXISTS idx_depreciation_event_asset ON depreciation_event(asset_id)")

    await db.commit()
    logger.debug("Asset tables created")
