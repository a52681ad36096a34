"""
타입 정의 모듈

핵심 Enum 타입 정의
모든 Enum은 str을 상속하여 SQLite 행과 YAML 설정에 문자열로 직렬화 가능
"""

from enum import Enum


class AccountType(str, Enum):
    """계정 분류"""

    ASSET = "ASSET"
    LIABILITY = "LIABILITY"
    EQUITY = "EQUITY"
    REVENUE = "REVENUE"
    EXPENSE = "EXPENSE"


class NormalBalance(str, Enum):
    """계정이 증가하는 쪽"""

    DEBIT = "DEBIT"
    CREDIT = "CREDIT"


class EntrySide(str, Enum):
    """단일 분개 항목의 차변/대변"""

    DEBIT = "DEBIT"
    CREDIT = "CREDIT"


class PaymentStatus(str, Enum):
    """전기된 문서의 결제 상태"""

    PAID = "paid"
    UNPAID = "unpaid"
    INVOICE = "invoice"
    PARTIAL = "partial"
    OVERPAID = "overpaid"
    PREPAID = "prepaid"
    VOID = "void"


class AssetStatus(str, Enum):
    """고정자산 생애주기 상태"""

    ACTIVE = "ACTIVE"
    FULLY_DEPRECIATED = "FULLY_DEPRECIATED"
    DISPOSED = "DISPOSED"


class DepreciationMethod(str, Enum):
    """감가상각 방법 (정액법만 지원)"""

    SL = "SL"


class TaxType(str, Enum):
    """세금 지정 방식 (비율 / 금액)"""

    PERCENTAGE = "percentage"
    AMOUNT = "amount"


class TaxRegime(str, Enum):
    """세금 금액을 어느 계정에 기록할지 결정"""

    US_SALES_TAX = "US_SALES_TAX"
    VAT = "VAT"


class AccountingBasis(str, Enum):
    """거래일을 정하는 문서 날짜 기준 (발생주의 / 현금주의)"""

    ACCRUAL = "ACCRUAL"
    CASH = "CASH"


def normal_balance_for(account_type: AccountType | str) -> NormalBalance:
    """계정 유형에 따른 정상 잔액 방향

    ASSET/EXPENSE는 차변에서 증가, LIABILITY/EQUITY/REVENUE는 대변에서 증가.
    """
    account_type = AccountType(account_type)
    if account_type in (AccountType.ASSET, AccountType.EXPENSE):
        return NormalBalance.DEBIT
    return NormalBalance.CREDIT
