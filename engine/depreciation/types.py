"""
Depreciation 타입 정의

자산 레코드, 등록 payload, 실행 결과
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from typing import Any

from core.errors import InvalidAmount, MissingRequiredField, ValidationError
from core.types import AssetStatus, DepreciationMethod
from core.utils.money import to_money
from core.utils.periods import Period
from core.utils.timezone import parse_date


@dataclass(frozen=True)
class AssetCategory:
    """전기 계정을 가진 자산 카테고리"""

    id: str
    tenant_id: str
    name: str
    expense_account_code: str
    accumulated_account_code: str
    default_useful_life_months: int | None = None

    @classmethod
    def from_row(cls, row: dict[str, Any]) -> AssetCategory:
        return cls(
            id=row["id"],
            tenant_id=row["tenant_id"],
            name=row["name"],
            expense_account_code=row["expense_account_code"],
            accumulated_account_code=row["accumulated_account_code"],
            default_useful_life_months=row.get("default_useful_life_months"),
        )


@dataclass(frozen=True)
class Asset:
    """고정자산

    Status 전이: ACTIVE → FULLY_DEPRECIATED → DISPOSED 또는 ACTIVE → DISPOSED.
    """

    id: str
    tenant_id: str
    name: str
    unique_key: str
    acquisition_date: date
    in_service_date: date
    cost: Decimal
    residual_value: Decimal
    useful_life_months: int
    status: AssetStatus = AssetStatus.ACTIVE
    method: DepreciationMethod = DepreciationMethod.SL
    category_id: str | None = None
    disposed_at: date | None = None

    @classmethod
    def from_row(cls, row: dict[str, Any]) -> Asset:
        return cls(
            id=row["id"],
            tenant_id=row["tenant_id"],
            name=row["name"],
            unique_key=row["unique_key"],
            acquisition_date=date.fromisoformat(row["acquisition_date"]),
            in_service_date=date.fromisoformat(row["in_service_date"]),
            cost=Decimal(row["cost"]),
            residual_value=Decimal(row["residual_value"]),
            useful_life_months=int(row["useful_life_months"]),
            status=AssetStatus(row["status"]),
            method=DepreciationMethod(row["method"]),
            category_id=row.get("category_id"),
            disposed_at=(
                date.fromisoformat(row["disposed_at"]) if row.get("disposed_at") else None
            ),
        )


@dataclass
class AssetRegistration:
    """신규 자산 입력

    useful_life_months가 없으면 카테고리 기본값, 그다음 엔진 기본값 사용.
    unique_key 기본값은 생성된 asset id.
    """

    name: str
    cost: Decimal
    in_service_date: date | None
    residual_value: Decimal | None = None
    useful_life_months: int | None = None
    acquisition_date: date | None = None
    category_id: str | None = None
    unique_key: str | None = None
    method: DepreciationMethod | str = DepreciationMethod.SL

    def validate(self) -> None:
        """필드 정규화 및 검증

        Raises:
            MissingRequiredField: name, cost 또는 in_service_date 누락
            InvalidAmount: cost <= 0 또는 내용연수 < 1
            ValidationError: 음수 잔존가치, 지원하지 않는 method
        """
        if self.name is None or not str(self.name).strip():
            raise MissingRequiredField("name")
        self.name = str(self.name).strip()

        if self.cost is None or self.cost == "":
            raise MissingRequiredField("cost")
        try:
            self.cost = to_money(self.cost)
        except ValueError as e:
            raise InvalidAmount("cost", self.cost) from e
        if self.cost <= 0:
            raise InvalidAmount("cost", self.cost)

        if self.in_service_date is None:
            raise MissingRequiredField("in_service_date")
        self.in_service_date = parse_date(self.in_service_date)
        self.acquisition_date = (
            parse_date(self.acquisition_date)
            if self.acquisition_date is not None
            else self.in_service_date
        )

        try:
            self.residual_value = to_money(self.residual_value or 0)
        except ValueError as e:
            raise ValidationError(f"Invalid residual_value: {self.residual_value!r}") from e
        if self.residual_value < 0:
            raise ValidationError(
                f"residual_value must not be negative (got {self.residual_value})"
            )

        if self.useful_life_months is not None:
            try:
                life = int(self.useful_life_months)
            except (TypeError, ValueError) as e:
                raise InvalidAmount("useful_life_months", self.useful_life_months) from e
            if isinstance(self.useful_life_months, bool) or life < 1:
                raise InvalidAmount("useful_life_months", self.useful_life_months)
            self.useful_life_months = life

        try:
            self.method = DepreciationMethod(self.method)
        except ValueError as e:
            raise ValidationError(f"Unsupported depreciation method: {self.method!r}") from e

        if self.unique_key is not None:
            self.unique_key = self.unique_key.strip() or None


@dataclass(frozen=True)
class DepreciationEvent:
    """자산 한 기간의 전기된 감가상각"""

    asset_id: str
    period: Period
    amount: Decimal
    posted_transaction_id: str

    @classmethod
    def from_row(cls, row: dict[str, Any]) -> DepreciationEvent:
        return cls(
            asset_id=row["asset_id"],
            period=Period.parse(row["period"]),
            amount=Decimal(row["amount"]),
            posted_transaction_id=row["posted_transaction_id"],
        )


@dataclass(frozen=True)
class PostedDepreciation:
    tenant_id: str
    asset_id: str
    period: Period
    amount: Decimal
    transaction_id: str


@dataclass(frozen=True)
class SkippedDepreciation:
    """실행이 건너뛴 자산 (또는 자산 기간)

    reason: not_due | already_posted | no_depreciable_base | inactive
    """

    tenant_id: str
    asset_id: str
    reason: str
    period: Period | None = None


@dataclass(frozen=True)
class FailedDepreciation:
    tenant_id: str
    asset_id: str
    error: str


@dataclass
class DepreciationRunResult:
    """한 번 실행의 자산별 결과"""

    posted: list[PostedDepreciation] = field(default_factory=list)
    skipped: list[SkippedDepreciation] = field(default_factory=list)
    failed: list[FailedDepreciation] = field(default_factory=list)

    @property
    def total_posted(self) -> Decimal:
        return sum((p.amount for p in self.posted), Decimal("0"))
