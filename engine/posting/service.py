"""
Posting 엔진

업무 문서를 균형 잡힌 분개 세트로 만들어 전기.

payment status별 비용 대변:
    paid     → Cr Cash
    unpaid   → Cr Accounts Payable
    partial  → Cr Cash (amount_paid) + Cr Accounts Payable (rest)
    overpaid → Cr Cash (amount_paid), 초과분 Dr Prepaid Expenses
    prepaid  → Dr Prepaid Expenses / Cr Cash

payment status별 인보이스 차변:
    paid     → Dr Cash
    unpaid   → Dr Accounts Receivable
    partial  → Dr Cash (amount_paid) + Dr Accounts Receivable (rest)
    overpaid → Dr Cash (amount_paid), 초과분 Cr Customer Credits
    prepaid  → Dr Cash, 수익은 Unearned Revenue로 이연

인보이스 입금: 미수 잔액까지 Dr Cash / Cr Accounts Receivable, 초과분은
Cr Customer Credits. 입금을 취소하면 인보이스에서 다시 차감되고, 인보이스를
취소하면 status가 void로 남음.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from typing import TYPE_CHECKING

import aiosqlite

from core.constants import AccountCodes, DocumentTypes
from core.domain.state_machines import PaymentStateMachine
from core.errors import (
    DuplicateDocumentNumber,
    TransactionNotFound,
    ValidationError,
)
from core.ledger.entry_builder import (
    EntrySetBuilder,
    PostedEntry,
    PostedTransaction,
    TransactionDraft,
)
from core.types import AccountingBasis, EntrySide, PaymentStatus, TaxRegime
from core.utils.idempotency import (
    VOID_PREFIX,
    is_closing_reference,
    make_reference,
    void_reference,
)
from core.utils.money import amounts_match
from engine.posting.accounts import (
    resolve_expense_account,
    resolve_line_item_account,
    resolve_revenue_account,
)
from engine.posting.payloads import (
    CapitalContributionPayload,
    ExpensePayload,
    InvoicePayload,
    InvoicePaymentPayload,
    RevenuePayload,
    check_settlement,
)
from engine.tax.resolver import ANCHOR_SUBTOTAL, ANCHOR_TOTAL, TaxAccounts, TaxResolver

if TYPE_CHECKING:
    from adapters.db.sqlite_adapter import SQLiteAdapter
    from core.ledger.store import LedgerStore

logger = logging.getLogger(__name__)

_CASH_SETTLED = (PaymentStatus.PAID, PaymentStatus.OVERPAID, PaymentStatus.PREPAID)


@dataclass
class PostingResult:
    """전기 호출 결과"""

    transaction_id: str
    reference: str
    date: date
    is_existing: bool
    entries: list[PostedEntry] = field(default_factory=list)

    @classmethod
    def from_posted(cls, posted: PostedTransaction) -> PostingResult:
        return cls(
            transaction_id=posted.id,
            reference=posted.reference,
            date=posted.date,
            is_existing=posted.is_existing,
            entries=posted.entries,
        )


@dataclass
class _Document:
    """생성된 draft와 점유할 document_number 행"""

    draft: TransactionDraft
    doc_type: str
    number: str | None
    status: PaymentStatus
    total: Decimal
    amount_paid: Decimal


def settlement_status(total: Decimal, amount_paid: Decimal) -> PaymentStatus:
    """지금까지 입금액으로 결정되는 인보이스 status"""
    if amount_paid <= 0:
        return PaymentStatus.UNPAID
    if amount_paid < total:
        return PaymentStatus.PARTIAL
    if amount_paid == total:
        return PaymentStatus.PAID
    return PaymentStatus.OVERPAID


class PostingEngine:
    """Posting 엔진

    Args:
        db: SQLite adapter (store와 공유)
        store: ledger store
        tax_regime: 세금을 기록할 계정 결정
        basis: CASH이면 결제된 문서를 date_paid 기준으로 기록
        tax_resolver: 테스트용 주입
    """

    def __init__(
        self,
        db: SQLiteAdapter,
        store: LedgerStore,
        tax_regime: TaxRegime | str = TaxRegime.US_SALES_TAX,
        basis: AccountingBasis | str = AccountingBasis.ACCRUAL,
        tax_resolver: TaxResolver | None = None,
    ):
        self.db = db
        self.store = store
        self.tax_accounts = TaxAccounts.for_regime(tax_regime)
        self.basis = AccountingBasis(basis)
        self.tax_resolver = tax_resolver or TaxResolver()

    # -------------------------------------------------------------------------
    # 비용
    # -------------------------------------------------------------------------

    async def post_expense(self, tenant_id: str, payload: ExpensePayload) -> PostingResult:
        """거래처 비용 전기

        Raises:
            InvalidAmount / MissingRequiredField / ValidationError: 잘못된 payload
            DuplicateDocumentNumber: 다른 문서가 사용 중인 vendor invoice number
            AccountNotFound: 결정된 계정이 계정과목표에 없음
        """
        return await self._post_document(tenant_id, self._expense_document(payload))

    def preview_expense(self, payload: ExpensePayload) -> TransactionDraft:
        """검증된 비용 draft (전기하지 않음)

        Raises:
            InvalidAmount / MissingRequiredField / ValidationError: 잘못된 payload
            UnbalancedEntries: 생성된 분개 세트가 불균형
        """
        draft = self._expense_document(payload).draft
        draft.validate()
        return draft

    def _expense_document(self, payload: ExpensePayload) -> _Document:
        payload.validate()
        status = PaymentStatus(payload.payment_status)

        breakdown = self.tax_resolver.apply(payload.amount, payload.tax_settings, ANCHOR_TOTAL)
        resolution = resolve_expense_account(
            payload.account_code,
            payload.category_key,
            payload.vendor_name,
            payload.description,
        )
        total = breakdown.total
        amount_paid = payload.amount_paid or Decimal("0")
        description = payload.description or f"Expense - {payload.vendor_name}"

        builder = EntrySetBuilder()
        if status == PaymentStatus.PREPAID:
            builder.debit(AccountCodes.PREPAID_EXPENSES, total, f"Prepaid - {payload.vendor_name}")
            builder.credit(AccountCodes.CASH, total, f"Payment to {payload.vendor_name}")
        else:
            builder.debit(resolution.account_code, breakdown.subtotal, description)
            builder.debit(self.tax_accounts.purchase_tax, breakdown.tax_amount, "Purchase tax")

            if status == PaymentStatus.PAID:
                builder.credit(AccountCodes.CASH, total, f"Payment to {payload.vendor_name}")
            elif status in (PaymentStatus.UNPAID, PaymentStatus.INVOICE):
                builder.credit(AccountCodes.ACCOUNTS_PAYABLE, total, f"Payable to {payload.vendor_name}")
            elif status == PaymentStatus.PARTIAL:
                builder.credit(AccountCodes.CASH, amount_paid, f"Partial payment to {payload.vendor_name}")
                builder.credit(AccountCodes.ACCOUNTS_PAYABLE, total - amount_paid, "Outstanding balance")
            elif status == PaymentStatus.OVERPAID:
                builder.credit(AccountCodes.CASH, amount_paid, f"Payment to {payload.vendor_name}")
                builder.debit(AccountCodes.PREPAID_EXPENSES, amount_paid - total, "Overpayment held as prepaid")

        if payload.is_refund:
            builder = builder.reversed()

        txn_date, policy = self._document_date(status, payload.date, payload.date_paid)
        reference = payload.reference or make_reference(
            "EXP",
            payload.vendor_name,
            payload.date.isoformat(),
            payload.amount,
            status.value,
            payload.description,
            payload.vendor_invoice_number,
            payload.is_refund,
        )
        draft = builder.build(
            txn_date,
            description,
            reference,
            custom_fields={
                "kind": "expense",
                "vendor_name": payload.vendor_name,
                "payment_status": status.value,
                "account_source": resolution.source,
                "tax_amount": str(breakdown.tax_amount),
                "date_policy": policy,
                "is_refund": payload.is_refund,
            },
            amount=total,
        )

        settled = total if status in (PaymentStatus.PAID, PaymentStatus.PREPAID) else amount_paid
        return _Document(
            draft, DocumentTypes.VENDOR_INVOICE, payload.vendor_invoice_number, status, total, settled
        )

    # -------------------------------------------------------------------------
    # 인보이스
    # -------------------------------------------------------------------------

    async def post_invoice(self, tenant_id: str, payload: InvoicePayload) -> PostingResult:
        """고객 인보이스 전기

        Raises:
            InvalidAmount / MissingRequiredField / ValidationError: 잘못된 payload
            DuplicateDocumentNumber: 다른 문서가 사용 중인 invoice number
            AccountNotFound: 결정된 계정이 계정과목표에 없음
        """
        return await self._post_document(tenant_id, self._invoice_document(payload))

    def preview_invoice(self, payload: InvoicePayload) -> TransactionDraft:
        """검증된 인보이스 draft (전기하지 않음)

        Raises:
            InvalidAmount / MissingRequiredField / ValidationError: 잘못된 payload
            UnbalancedEntries: 생성된 분개 세트가 불균형
        """
        draft = self._invoice_document(payload).draft
        draft.validate()
        return draft

    def _invoice_document(self, payload: InvoicePayload) -> _Document:
        payload.validate()
        status = PaymentStatus(payload.payment_status)
        discount = payload.discount or Decimal("0")
        amount_paid = payload.amount_paid or Decimal("0")

        revenue_lines: list[tuple[str, Decimal, str]] = []
        if payload.line_items:
            gross = sum((item.amount for item in payload.line_items), Decimal("0"))
            if discount >= gross:
                raise ValidationError(f"Discount {discount} must be less than subtotal {gross}")
            breakdown = self.tax_resolver.apply(gross - discount, payload.tax_settings, ANCHOR_SUBTOTAL)
            if payload.amount is not None and not amounts_match(payload.amount, breakdown.total):
                raise ValidationError(
                    f"Invoice amount {payload.amount} does not match line items total {breakdown.total}"
                )
            for item in payload.line_items:
                code = resolve_line_item_account(
                    item.description, item.category, item.revenue_account_code
                )
                revenue_lines.append((code, item.amount, item.description))
        else:
            breakdown = self.tax_resolver.apply(payload.amount, payload.tax_settings, ANCHOR_TOTAL)
            code = resolve_revenue_account(payload.revenue_account_code, payload.category_key)
            revenue_lines.append(
                (
                    code,
                    breakdown.subtotal + discount,
                    payload.description or f"Revenue from {payload.customer_name}",
                )
            )

        total = breakdown.total
        check_settlement(status, total, amount_paid)
        label = payload.invoice_number or "N/A"

        builder = EntrySetBuilder()
        if status == PaymentStatus.PREPAID:
            deferred = sum((amount for _, amount, _ in revenue_lines), Decimal("0"))
            builder.credit(
                AccountCodes.UNEARNED_REVENUE,
                deferred,
                f"Unearned revenue - {payload.customer_name} (prepaid)",
            )
        else:
            for code, amount, line_description in revenue_lines:
                builder.credit(code, amount, line_description)

        builder.credit(self.tax_accounts.sales_tax, breakdown.tax_amount, f"Sales tax - {payload.customer_name}")
        builder.debit(AccountCodes.SALES_DISCOUNTS, discount, f"Sales discount - {payload.customer_name}")

        if status in (PaymentStatus.PAID, PaymentStatus.PREPAID):
            builder.debit(AccountCodes.CASH, total, f"Cash received from {payload.customer_name}")
        elif status in (PaymentStatus.UNPAID, PaymentStatus.INVOICE):
            builder.debit(
                AccountCodes.ACCOUNTS_RECEIVABLE,
                total,
                f"Accounts receivable - {payload.customer_name} (Invoice {label})",
            )
        elif status == PaymentStatus.PARTIAL:
            builder.debit(AccountCodes.CASH, amount_paid, f"Partial payment from {payload.customer_name}")
            builder.debit(AccountCodes.ACCOUNTS_RECEIVABLE, total - amount_paid, "Outstanding balance")
        elif status == PaymentStatus.OVERPAID:
            builder.debit(AccountCodes.CASH, amount_paid, f"Cash received from {payload.customer_name}")
            builder.credit(
                AccountCodes.CUSTOMER_CREDITS,
                amount_paid - total,
                f"Customer credit - {payload.customer_name} overpaid",
            )

        txn_date, policy = self._document_date(status, payload.date, payload.date_paid)
        reference = payload.reference or make_reference(
            "INV",
            payload.customer_name,
            payload.date.isoformat(),
            total,
            status.value,
            payload.invoice_number,
            payload.description,
        )
        draft = builder.build(
            txn_date,
            f"Invoice {label} - {payload.customer_name}",
            reference,
            custom_fields={
                "kind": "invoice",
                "customer_name": payload.customer_name,
                "invoice_number": payload.invoice_number,
                "payment_status": status.value,
                "tax_amount": str(breakdown.tax_amount),
                "discount": str(discount),
                "date_policy": policy,
            },
            amount=total,
        )

        settled = total if status in (PaymentStatus.PAID, PaymentStatus.PREPAID) else amount_paid
        return _Document(draft, DocumentTypes.INVOICE, payload.invoice_number, status, total, settled)

    async def record_invoice_payment(
        self,
        tenant_id: str,
        payload: InvoicePaymentPayload,
    ) -> PostingResult:
        """전기된 인보이스에 입금 기록

        미수 잔액까지 Dr Cash / Cr Accounts Receivable, 초과분은
        Customer Credits에 대변 기입.

        Raises:
            ValidationError: 알 수 없는 invoice number
            StateMachineError: 입금 불가 인보이스 (prepaid 또는 void)
        """
        payload.validate()
        reference = payload.reference or make_reference(
            "PAY", payload.invoice_number, payload.date.isoformat(), payload.amount
        )

        async with self.db.transaction():
            existing = await self.store.get_transaction_by_reference(tenant_id, reference)
            if existing is not None:
                existing.is_existing = True
                return PostingResult.from_posted(existing)

            document = await self.db.fetchone_dict(
                """
                SELECT * FROM document_number
                WHERE tenant_id = ? AND doc_type = ? AND number = ?
                """,
                (tenant_id, DocumentTypes.INVOICE, payload.invoice_number),
            )
            if document is None:
                raise ValidationError(f"Invoice {payload.invoice_number} not found")

            total = Decimal(document["total"])
            already_paid = Decimal(document["amount_paid"])
            outstanding = max(total - already_paid, Decimal("0"))
            applied = min(payload.amount, outstanding)
            excess = payload.amount - applied
            new_paid = already_paid + payload.amount

            new_status = settlement_status(total, new_paid)

            machine = PaymentStateMachine(document["status"])
            machine.transition(new_status)

            draft = (
                EntrySetBuilder()
                .debit(AccountCodes.CASH, payload.amount, f"Payment for invoice {payload.invoice_number}")
                .credit(AccountCodes.ACCOUNTS_RECEIVABLE, applied, f"Invoice {payload.invoice_number}")
                .credit(AccountCodes.CUSTOMER_CREDITS, excess, "Customer credit from overpayment")
                .build(
                    payload.date,
                    f"Payment received - invoice {payload.invoice_number}",
                    reference,
                    custom_fields={
                        "kind": "invoice_payment",
                        "invoice_number": payload.invoice_number,
                        "payment_status": new_status.value,
                    },
                )
            )
            posted = await self.store.post_transaction(tenant_id, draft)

            await self.db.execute(
                """
                UPDATE document_number
                SET status = ?, amount_paid = ?, updated_at = datetime('now')
                WHERE id = ?
                """,
                (new_status.value, str(new_paid), document["id"]),
            )

        logger.info(
            f"Invoice payment recorded: {payload.invoice_number}",
            extra={"tenant_id": tenant_id, "status": new_status.value, "amount": str(payload.amount)},
        )
        return PostingResult.from_posted(posted)

    # -------------------------------------------------------------------------
    # 수익 / 자본
    # -------------------------------------------------------------------------

    async def post_revenue(self, tenant_id: str, payload: RevenuePayload) -> PostingResult:
        """현금 수령 수익 전기 (Dr Cash / Cr Revenue)"""
        payload.validate()
        cash_code = payload.cash_account_code or AccountCodes.CASH
        revenue_code = payload.revenue_account_code or AccountCodes.SERVICE_REVENUE
        reference = payload.reference or make_reference(
            "REV", payload.date.isoformat(), payload.amount, payload.description, cash_code, revenue_code
        )

        draft = (
            EntrySetBuilder()
            .debit(cash_code, payload.amount, payload.description)
            .credit(revenue_code, payload.amount, payload.description)
            .build(payload.date, payload.description, reference, custom_fields={"kind": "revenue"})
        )
        posted = await self.store.post_transaction(tenant_id, draft)
        return PostingResult.from_posted(posted)

    async def post_capital_contribution(
        self,
        tenant_id: str,
        payload: CapitalContributionPayload,
    ) -> PostingResult:
        """소유주 출자 (Dr Cash / Cr Owner's Equity)"""
        payload.validate()
        reference = payload.reference or make_reference(
            "CAP", payload.date.isoformat(), payload.amount, payload.description
        )

        draft = (
            EntrySetBuilder()
            .debit(AccountCodes.CASH, payload.amount, payload.description)
            .credit(AccountCodes.OWNER_EQUITY, payload.amount, payload.description)
            .build(payload.date, payload.description, reference, custom_fields={"kind": "capital"})
        )
        posted = await self.store.post_transaction(tenant_id, draft)
        return PostingResult.from_posted(posted)

    # -------------------------------------------------------------------------
    # 정정
    # -------------------------------------------------------------------------

    async def void_transaction(
        self,
        tenant_id: str,
        transaction_id: str,
        void_date: date | None = None,
    ) -> PostingResult:
        """역분개 거래 전기 (원본당 idempotent)

        원본은 변경하지 않고 역분개는 VOID-<원본 reference>를 사용.
        문서 기록도 함께 갱신: 취소된 인보이스나 비용은 번호를 유지한 채
        status가 void로 바뀌고, 취소된 인보이스 입금은 인보이스의
        amount_paid에서 차감.

        Raises:
            TransactionNotFound: tenant에 없는 거래
            ValidationError: 원본이 void 또는 마감 거래
        """
        async with self.db.transaction():
            original = await self.store.get_transaction(tenant_id, transaction_id)
            if original is None:
                raise TransactionNotFound(transaction_id)
            if original.reference.startswith(f"{VOID_PREFIX}-"):
                raise ValidationError(f"Transaction {transaction_id} is already a reversal")
            if is_closing_reference(original.reference):
                raise ValidationError("Closing transactions cannot be voided")

            builder = EntrySetBuilder()
            for entry in original.entries:
                if entry.side == EntrySide.DEBIT:
                    builder.debit(entry.account_code, entry.amount, entry.description)
                else:
                    builder.credit(entry.account_code, entry.amount, entry.description)

            draft = builder.reversed().build(
                void_date or original.date,
                f"Void: {original.description}",
                void_reference(original.reference),
                custom_fields={"kind": "void", "voided_transaction_id": original.id},
                amount=original.amount,
            )
            posted = await self.store.post_transaction(tenant_id, draft)

            if not posted.is_existing:
                await self._void_document(tenant_id, original)

        if not posted.is_existing:
            logger.info(
                f"Transaction voided: {original.reference}",
                extra={"tenant_id": tenant_id, "void_transaction_id": posted.id},
            )
        return PostingResult.from_posted(posted)

    # -------------------------------------------------------------------------
    # 내부 헬퍼
    # -------------------------------------------------------------------------

    def _document_date(
        self,
        status: PaymentStatus,
        document_date: date,
        date_paid: date | None,
    ) -> tuple[date, str]:
        """거래 날짜와 이를 결정한 정책"""
        if self.basis == AccountingBasis.CASH and date_paid is not None and status in _CASH_SETTLED:
            return date_paid, AccountingBasis.CASH.value
        return document_date, AccountingBasis.ACCRUAL.value

    async def _void_document(self, tenant_id: str, original: PostedTransaction) -> None:
        """방금 전기된 void에 맞춰 document_number 갱신

        void 트랜잭션 안에서 호출해야 함.
        """
        fields = original.custom_fields or {}
        kind = fields.get("kind")

        if kind in ("invoice", "expense"):
            await self.db.execute(
                """
                UPDATE document_number
                SET status = ?, updated_at = datetime('now')
                WHERE tenant_id = ? AND transaction_id = ?
                """,
                (PaymentStatus.VOID.value, tenant_id, original.id),
            )
            return

        if kind != "invoice_payment":
            return

        document = await self.db.fetchone_dict(
            """
            SELECT * FROM document_number
            WHERE tenant_id = ? AND doc_type = ? AND number = ?
            """,
            (tenant_id, DocumentTypes.INVOICE, fields.get("invoice_number")),
        )
        if document is None:
            return

        received = sum(
            (
                entry.amount
                for entry in original.entries
                if entry.side == EntrySide.DEBIT and entry.account_code == AccountCodes.CASH
            ),
            Decimal("0"),
        )
        total = Decimal(document["total"])
        new_paid = max(Decimal(document["amount_paid"]) - received, Decimal("0"))
        # 취소된 인보이스는 입금을 되돌려도 void 유지
        if document["status"] == PaymentStatus.VOID.value:
            new_status = PaymentStatus.VOID
        else:
            new_status = settlement_status(total, new_paid)

        await self.db.execute(
            """
            UPDATE document_number
            SET status = ?, amount_paid = ?, updated_at = datetime('now')
            WHERE id = ?
            """,
            (new_status.value, str(new_paid), document["id"]),
        )
        logger.info(
            f"Invoice payment unwound: {fields.get('invoice_number')}",
            extra={"tenant_id": tenant_id, "status": new_status.value, "amount": str(received)},
        )

    async def _post_document(self, tenant_id: str, document: _Document) -> PostingResult:
        """draft 전기와 document number 점유를 원자적으로 수행

        reference 재생을 document number보다 먼저 확인하므로 같은 문서를
        다시 제출하면 원래 전기 결과를 반환.
        """
        draft = document.draft
        doc_type = document.doc_type
        number = document.number
        try:
            async with self.db.transaction():
                existing = await self.store.get_transaction_by_reference(tenant_id, draft.reference)
                if existing is not None:
                    existing.is_existing = True
                    return PostingResult.from_posted(existing)

                if number:
                    claimed = await self.db.fetchone(
                        """
                        SELECT transaction_id FROM document_number
                        WHERE tenant_id = ? AND doc_type = ? AND number = ?
                        """,
                        (tenant_id, doc_type, number),
                    )
                    if claimed is not None:
                        raise DuplicateDocumentNumber(doc_type, number)

                posted = await self.store.post_transaction(tenant_id, draft)

                if number:
                    await self.db.execute(
                        """
                        INSERT INTO document_number (
                            tenant_id, doc_type, number, transaction_id,
                            status, total, amount_paid
                        ) VALUES (?, ?, ?, ?, ?, ?, ?)
                        """,
                        (
                            tenant_id,
                            doc_type,
                            number,
                            posted.id,
                            document.status.value,
                            str(document.total),
                            str(document.amount_paid),
                        ),
                    )
        except DuplicateDocumentNumber:
            logger.warning(
                f"Duplicate {doc_type} number: {number}",
                extra={"tenant_id": tenant_id, "reference": draft.reference},
            )
            raise
        except aiosqlite.IntegrityError as e:
            if number:
                raise DuplicateDocumentNumber(doc_type, number) from e
            raise

        return PostingResult.from_posted(posted)
