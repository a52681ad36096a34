"""
분개 생성기

Ledger 저장소에 전기할 균형 분개 세트(TransactionDraft) 생성
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from typing import Any

from core.errors import InvalidAmount, MissingRequiredField, UnbalancedEntries
from core.types import EntrySide
from core.utils.money import amounts_match, to_money

logger = logging.getLogger(__name__)


@dataclass
class EntryLine:
    """분개 항목

    항목당 정확히 한쪽(차변 또는 대변).
    저장소에서 debit_account_id 또는 credit_account_id로 매핑됨.
    """

    account_code: str
    side: EntrySide
    amount: Decimal
    description: str | None = None

    @property
    def is_debit(self) -> bool:
        return self.side == EntrySide.DEBIT


@dataclass
class TransactionDraft:
    """전기 전 거래

    균형 검증은 저장소의 쓰기 트랜잭션 안에서 한 번 더 수행됨.
    """

    date: date
    description: str
    reference: str
    lines: list[EntryLine]
    custom_fields: dict[str, Any] | None = None
    amount: Decimal | None = None  # 참고용 합계

    @property
    def total_debits(self) -> Decimal:
        return sum((line.amount for line in self.lines if line.is_debit), Decimal("0"))

    @property
    def total_credits(self) -> Decimal:
        return sum((line.amount for line in self.lines if not line.is_debit), Decimal("0"))

    def is_balanced(self) -> bool:
        """차변 합계 = 대변 합계 (CURRENCY_EPSILON 이내)

        Returns:
            |sum(debits) - sum(credits)| < 0.01 이면 True
        """
        return amounts_match(self.total_debits, self.total_credits)

    def validate(self) -> None:
        """모든 항목과 균형 불변식 검증

        Raises:
            MissingRequiredField: reference 없음, 항목 없음, 계정 없는 항목
            InvalidAmount: 항목 금액이 0 이하
            UnbalancedEntries: 차변/대변 불일치
        """
        if not self.reference:
            raise MissingRequiredField("reference")
        if not self.lines:
            raise MissingRequiredField("entries")

        for line in self.lines:
            if not line.account_code:
                raise MissingRequiredField("account_code")
            if not isinstance(line.side, EntrySide):
                line.side = EntrySide(line.side)
            if line.amount is None or line.amount <= 0:
                raise InvalidAmount("entry amount", line.amount)

        if not self.is_balanced():
            logger.error(
                f"Unbalanced entry set: {self.reference}",
                extra={
                    "reference": self.reference,
                    "debits": str(self.total_debits),
                    "credits": str(self.total_credits),
                },
            )
            raise UnbalancedEntries(self.reference, self.total_debits, self.total_credits)

    @property
    def informational_amount(self) -> Decimal:
        """거래 amount 컬럼 값: 명시된 amount 또는 차변 합계"""
        return self.amount if self.amount is not None else self.total_debits


class EntrySetBuilder:
    """한 거래의 분개 항목 수집기

    0원 항목은 제외되므로 선택적 구성요소(세금, 할인, 초과분)를
    조건 없이 추가 가능. 음수 금액은 거부.

    사용 예:
    ```python
    draft = (
        EntrySetBuilder()
        .debit("6030", Decimal("100.00"))
        .credit("1010", Decimal("100.00"))
        .build(date(2026, 1, 5), "Software", "EXP-abc")
    )
    ```
    """

    def __init__(self) -> None:
        self._lines: list[EntryLine] = []

    def _add(
        self,
        side: EntrySide,
        account_code: str,
        amount: Decimal,
        description: str | None,
    ) -> EntrySetBuilder:
        value = to_money(amount)
        if value < 0:
            raise InvalidAmount("entry amount", amount)
        if value == 0:
            return self
        self._lines.append(EntryLine(account_code, side, value, description))
        return self

    def debit(
        self,
        account_code: str,
        amount: Decimal,
        description: str | None = None,
    ) -> EntrySetBuilder:
        return self._add(EntrySide.DEBIT, account_code, amount, description)

    def credit(
        self,
        account_code: str,
        amount: Decimal,
        description: str | None = None,
    ) -> EntrySetBuilder:
        return self._add(EntrySide.CREDIT, account_code, amount, description)

    @property
    def lines(self) -> list[EntryLine]:
        return list(self._lines)

    def reversed(self) -> EntrySetBuilder:
        """모든 항목의 차변/대변을 뒤집은 사본 (환불, 거래 취소)"""
        mirror = EntrySetBuilder()
        for line in self._lines:
            side = EntrySide.CREDIT if line.is_debit else EntrySide.DEBIT
            mirror._lines.append(EntryLine(line.account_code, side, line.amount, line.description))
        return mirror

    def build(
        self,
        txn_date: date,
        description: str,
        reference: str,
        custom_fields: dict[str, Any] | None = None,
        amount: Decimal | None = None,
    ) -> TransactionDraft:
        """검증된 draft 생성

        Raises:
            UnbalancedEntries: 차변/대변 불일치
        """
        draft = TransactionDraft(
            date=txn_date,
            description=description,
            reference=reference,
            lines=list(self._lines),
            custom_fields=custom_fields,
            amount=amount,
        )
        draft.validate()
        return draft


@dataclass
class PostedEntry:
    """저장된 분개 항목"""

    account_code: str
    side: EntrySide
    amount: Decimal
    description: str | None = None
    line_order: int = 0


@dataclass
class PostedTransaction:
    """저장된 거래

    is_existing: post_transaction이 같은 reference의 기존 거래를
    재생한 경우 True.
    """

    id: str
    tenant_id: str
    date: date
    description: str
    reference: str
    amount: Decimal
    entries: list[PostedEntry] = field(default_factory=list)
    custom_fields: dict[str, Any] | None = None
    is_existing: bool = False

    @property
    def total_debits(self) -> Decimal:
        return sum(
            (e.amount for e in self.entries if e.side == EntrySide.DEBIT), Decimal("0")
        )

    @property
    def total_credits(self) -> Decimal:
        return sum(
            (e.amount for e in self.entries if e.side == EntrySide.CREDIT), Decimal("0")
        )
