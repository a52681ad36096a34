"""
공용 pytest fixture

Temporary directories, config files and a schema-initialized ledger DB
"""

import tempfile
from datetime import date
from pathlib import Path

import pytest
import pytest_asyncio

from adapters.db.sqlite_adapter import SQLiteAdapter
from core.config.loader import Settings
from core.ledger.accounts import AccountRegistry
from core.ledger.schema import init_ledger_schema
from core.ledger.store import LedgerStore
from engine.service import LedgerService

TENANT = "acme"
OTHER_TENANT = "globex"

# clock을 읽는 엔진용 고정 "오늘"
TODAY = date(2026, 6, 15)


@pytest.fixture
def temp_dir() -> Path:
    """OS 독립적 임시 디렉토리"""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def temp_config_file(temp_dir: Path) -> Path:
    """모든 키를 설정한 ledger.yaml"""
    content = """# test ledger.yaml
database_path: data/test_ledger.db
tax_regime: VAT
basis: cash
log_level: debug

depreciation:
  default_useful_life_months: 60
"""
    config_path = temp_dir / "ledger.yaml"
    config_path.write_text(content, encoding="utf-8")
    return config_path


@pytest.fixture
def temp_config_file_invalid_regime(temp_dir: Path) -> Path:
    """알 수 없는 tax regime을 가진 ledger.yaml"""
    config_path = temp_dir / "ledger_invalid.yaml"
    config_path.write_text("tax_regime: GST\n", encoding="utf-8")
    return config_path


@pytest.fixture(autouse=True)
def reset_settings() -> None:
    """Settings는 싱글톤이므로 테스트마다 격리"""
    Settings.reset()
    yield
    Settings.reset()


@pytest_asyncio.fixture
async def db() -> SQLiteAdapter:
    """전체 스키마를 가진 임시 장부 DB"""
    with tempfile.TemporaryDirectory() as tmpdir:
        adapter = SQLiteAdapter(Path(tmpdir) / "test_ledger.db")
        await adapter.connect()
        await init_ledger_schema(adapter)

        yield adapter

        await adapter.close()


@pytest.fixture
def registry(db: SQLiteAdapter) -> AccountRegistry:
    return AccountRegistry(db)


@pytest.fixture
def store(db: SQLiteAdapter) -> LedgerStore:
    return LedgerStore(db)


@pytest_asyncio.fixture
async def seeded(db: SQLiteAdapter, registry: AccountRegistry) -> SQLiteAdapter:
    """TENANT와 OTHER_TENANT의 핵심 계정과목표를 가진 DB"""
    await registry.ensure_core_set(TENANT)
    await registry.ensure_core_set(OTHER_TENANT)
    return db


@pytest_asyncio.fixture
async def service(seeded: SQLiteAdapter) -> LedgerService:
    """고정 clock으로 seeded DB 위에 만든 LedgerService"""
    return LedgerService(seeded, clock=lambda: TODAY)
