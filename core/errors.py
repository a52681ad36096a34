"""
Ledger 에러 계층

엔진이 발생시키는 모든 에러는 LedgerError를 상속.
호출 측 경계(CLI, HTTP)에서 except 하나로 매핑 가능.
"""

from __future__ import annotations

from decimal import Decimal


class LedgerError(Exception):
    """Ledger 에러 기본 클래스"""

    pass


# -------------------------------------------------------------------------
# 입력 검증
# -------------------------------------------------------------------------


class ValidationError(LedgerError):
    """잘못된 입력 (호출자에게 그대로 전달, 재시도 없음)"""

    pass


class InvalidAmount(ValidationError):
    """금액이 양수 Decimal이 아님"""

    def __init__(self, field: str, value: object):
        self.field = field
        self.value = value
        super().__init__(f"{field} must be greater than 0 (got {value!r})")


class MissingRequiredField(ValidationError):
    """필수 payload 필드가 없거나 공백"""

    def __init__(self, field: str):
        self.field = field
        super().__init__(f"{field} is required")


class TenantRequired(ValidationError):
    """테넌트 컨텍스트 없이 호출됨"""

    def __init__(self) -> None:
        super().__init__("tenant_id is required")


# -------------------------------------------------------------------------
# 불변식 위반
# -------------------------------------------------------------------------


class UnbalancedEntries(LedgerError):
    """분개 세트의 차변/대변 합계가 허용오차 이상 차이남"""

    def __init__(self, reference: str, debits: Decimal, credits: Decimal):
        self.reference = reference
        self.debits = debits
        self.credits = credits
        super().__init__(
            f"Unbalanced entries for {reference}: "
            f"debits={debits} credits={credits}"
        )


class ClosingNotBalanced(LedgerError):
    """마감 거래의 차변/대변 불일치 (결함을 의미)"""

    def __init__(self, as_of: str, debits: Decimal, credits: Decimal):
        self.as_of = as_of
        self.debits = debits
        self.credits = credits
        super().__init__(
            f"Closing entries for {as_of} not balanced: "
            f"debits={debits} credits={credits}"
        )


# -------------------------------------------------------------------------
# 충돌
# -------------------------------------------------------------------------


class DuplicateDocumentNumber(LedgerError):
    """사람이 부여한 문서 번호를 다른 문서가 이미 사용 중"""

    def __init__(self, doc_type: str, number: str):
        self.doc_type = doc_type
        self.number = number
        super().__init__(f"{doc_type} number '{number}' already exists")


class DuplicateAssetKey(LedgerError):
    """테넌트에 이미 등록된 자산 unique key"""

    def __init__(self, unique_key: str):
        self.unique_key = unique_key
        super().__init__(f"Asset with unique key '{unique_key}' already exists")


# -------------------------------------------------------------------------
# 조회
# -------------------------------------------------------------------------


class AccountNotFound(LedgerError):
    def __init__(self, code: str):
        self.code = code
        super().__init__(f"Account {code} not found")


class AccountExists(LedgerError):
    def __init__(self, code: str):
        self.code = code
        super().__init__(f"Account {code} already exists")


class AccountProtected(LedgerError):
    """핵심 계정은 삭제 불가"""

    def __init__(self, code: str):
        self.code = code
        super().__init__(f"Account {code} is a core account and cannot be deleted")


class AccountInUse(LedgerError):
    """분개에서 참조 중인 계정은 삭제 불가"""

    def __init__(self, code: str, usage: int):
        self.code = code
        self.usage = usage
        super().__init__(f"Account {code} is referenced by {usage} entries")


class AssetNotFound(LedgerError):
    def __init__(self, asset_id: str):
        self.asset_id = asset_id
        super().__init__(f"Asset {asset_id} not found")


class TransactionNotFound(LedgerError):
    def __init__(self, transaction_id: str):
        self.transaction_id = transaction_id
        super().__init__(f"Transaction {transaction_id} not found")
