"""
하드코딩 상수 - 변경될 일이 거의 없는 고정값

중요: 경로는 반드시 pathlib.Path 사용 (Windows/Linux 크로스 플랫폼)
"""

from decimal import Decimal
from pathlib import Path


# 프로젝트 루트 (이 파일 기준 2단계 상위: core/constants.py → 프로젝트/)
PROJECT_ROOT: Path = Path(__file__).resolve().parent.parent


# 모든 균형 검증은 이 허용오차로 비교
CURRENCY_EPSILON: Decimal = Decimal("0.01")

# 마감 시 절댓값이 이 값 이하인 잔액은 0으로 간주
CLOSING_EPSILON: Decimal = Decimal("0.009")

MONEY_QUANT: Decimal = Decimal("0.01")


class Defaults:
    """기본값 상수"""

    TAX_REGIME: str = "US_SALES_TAX"
    BASIS: str = "ACCRUAL"
    LOG_LEVEL: str = "INFO"

    USEFUL_LIFE_MONTHS: int = 36
    ENTRY_LIST_LIMIT: int = 100


class Paths:
    """프로젝트 경로 상수 (pathlib 사용, OS 독립적)"""

    # 디렉토리
    CONFIG_DIR: Path = PROJECT_ROOT / "config"
    DATA_DIR: Path = PROJECT_ROOT / "data"
    LOGS_DIR: Path = PROJECT_ROOT / "logs"

    # 설정 파일
    CONFIG_FILE: Path = CONFIG_DIR / "ledger.yaml"

    # DB 파일
    LEDGER_DB: Path = DATA_DIR / "ledger.db"


class AccountCodes:
    """엔진이 참조하는 계정과목 코드"""

    # 자산
    CASH: str = "1010"
    ACCOUNTS_RECEIVABLE: str = "1200"
    DEPOSITS: str = "1350"
    VAT_INPUT: str = "1360"
    PREPAID_EXPENSES: str = "1400"
    FIXED_ASSETS: str = "1500"
    ACCUMULATED_DEPRECIATION: str = "1590"

    # 부채
    ACCOUNTS_PAYABLE: str = "2010"
    CUSTOMER_CREDITS: str = "2050"
    SALES_TAX_PAYABLE: str = "2150"
    VAT_OUTPUT: str = "2160"
    UNEARNED_REVENUE: str = "2400"

    # 자본
    OWNER_EQUITY: str = "3000"
    RETAINED_EARNINGS: str = "3200"

    # 수익
    SALES_REVENUE: str = "4010"
    SERVICE_REVENUE: str = "4020"
    PRODUCT_REVENUE: str = "4030"
    SUBSCRIPTION_REVENUE: str = "4040"
    SALES_DISCOUNTS: str = "4910"

    # 비용
    COGS: str = "5010"
    NONRECOVERABLE_SALES_TAX: str = "6160"
    BAD_DEBT: str = "6170"
    DEPRECIATION_EXPENSE: str = "6500"
    GENERAL_EXPENSE: str = "6999"


class DocumentTypes:
    """사람이 부여한 번호가 테넌트별로 유일한 문서 종류"""

    INVOICE: str = "invoice"
    VENDOR_INVOICE: str = "vendor_invoice"
