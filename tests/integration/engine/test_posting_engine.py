"""
PostingEngine 통합 테스트

Documents in, balanced entry sets out, against a seeded ledger DB
"""

from datetime import date
from decimal import Decimal

import pytest

from adapters.db.sqlite_adapter import SQLiteAdapter
from core.domain.state_machines import StateMachineError
from core.errors import DuplicateDocumentNumber, TransactionNotFound, ValidationError
from core.ledger.store import LedgerStore
from core.types import EntrySide, PaymentStatus, TaxRegime
from engine.posting import (
    CapitalContributionPayload,
    ExpensePayload,
    InvoiceLineItem,
    InvoicePayload,
    InvoicePaymentPayload,
    PostingEngine,
    PostingResult,
    RevenuePayload,
)
from engine.service import LedgerService
from engine.tax.resolver import TaxSettings

TENANT = "acme"
OTHER_TENANT = "globex"

D = Decimal


def _lines(result: PostingResult) -> set[tuple[str, EntrySide, Decimal]]:
    return {(e.account_code, e.side, e.amount) for e in result.entries}


def _adobe(**overrides) -> ExpensePayload:
    fields = dict(vendor_name="Adobe", amount=D("100.00"), date=date(2026, 3, 1))
    fields.update(overrides)
    return ExpensePayload(**fields)


async def _document(db: SQLiteAdapter, number: str) -> dict:
    return await db.fetchone_dict(
        "SELECT * FROM document_number WHERE tenant_id = ? AND number = ?",
        (TENANT, number),
    )


class TestExpense:
    """post_expense"""

    @pytest.mark.asyncio
    async def test_paid_expense_by_keyword(self, service: LedgerService) -> None:
        result = await service.post_expense(TENANT, _adobe())

        assert result.is_existing is False
        assert _lines(result) == {
            ("6030", EntrySide.DEBIT, D("100.00")),
            ("1010", EntrySide.CREDIT, D("100.00")),
        }
        assert await service.get_account_balance(TENANT, "6030") == D("100.00")
        assert await service.get_account_balance(TENANT, "1010") == D("-100.00")

    @pytest.mark.asyncio
    async def test_resubmission_replays(self, service: LedgerService) -> None:
        first = await service.post_expense(TENANT, _adobe())
        second = await service.post_expense(TENANT, _adobe())

        assert second.is_existing is True
        assert second.transaction_id == first.transaction_id
        assert await service.get_account_balance(TENANT, "6030") == D("100.00")

    @pytest.mark.asyncio
    async def test_unpaid_goes_to_payable(self, service: LedgerService) -> None:
        result = await service.post_expense(TENANT, _adobe(payment_status="unpaid"))

        assert ("2010", EntrySide.CREDIT, D("100.00")) in _lines(result)

    @pytest.mark.asyncio
    async def test_partial(self, service: LedgerService) -> None:
        result = await service.post_expense(
            TENANT, _adobe(payment_status=PaymentStatus.PARTIAL, amount_paid=D("40"))
        )

        assert _lines(result) == {
            ("6030", EntrySide.DEBIT, D("100.00")),
            ("1010", EntrySide.CREDIT, D("40.00")),
            ("2010", EntrySide.CREDIT, D("60.00")),
        }

    @pytest.mark.asyncio
    async def test_partial_requires_amount_between(self, service: LedgerService) -> None:
        with pytest.raises(ValidationError):
            await service.post_expense(
                TENANT, _adobe(payment_status="partial", amount_paid=D("100"))
            )

    @pytest.mark.asyncio
    async def test_overpaid_excess_to_prepaid(self, service: LedgerService) -> None:
        result = await service.post_expense(
            TENANT, _adobe(payment_status="overpaid", amount_paid=D("120"))
        )

        assert _lines(result) == {
            ("6030", EntrySide.DEBIT, D("100.00")),
            ("1400", EntrySide.DEBIT, D("20.00")),
            ("1010", EntrySide.CREDIT, D("120.00")),
        }

    @pytest.mark.asyncio
    async def test_prepaid(self, service: LedgerService) -> None:
        result = await service.post_expense(TENANT, _adobe(payment_status="prepaid"))

        assert _lines(result) == {
            ("1400", EntrySide.DEBIT, D("100.00")),
            ("1010", EntrySide.CREDIT, D("100.00")),
        }

    @pytest.mark.asyncio
    async def test_sales_tax_is_expensed(self, service: LedgerService) -> None:
        tax = TaxSettings(enabled=True, rate=D("10"))
        result = await service.post_expense(TENANT, _adobe(amount=D("110"), tax_settings=tax))

        assert _lines(result) == {
            ("6030", EntrySide.DEBIT, D("100.00")),
            ("6160", EntrySide.DEBIT, D("10.00")),
            ("1010", EntrySide.CREDIT, D("110.00")),
        }

    @pytest.mark.asyncio
    async def test_vat_is_recoverable(self, seeded: SQLiteAdapter, store: LedgerStore) -> None:
        engine = PostingEngine(seeded, store, tax_regime=TaxRegime.VAT)
        tax = TaxSettings(enabled=True, rate=D("10"))

        result = await engine.post_expense(TENANT, _adobe(amount=D("110"), tax_settings=tax))

        assert ("1360", EntrySide.DEBIT, D("10.00")) in _lines(result)

    @pytest.mark.asyncio
    async def test_refund_mirrors_entries(self, service: LedgerService) -> None:
        await service.post_expense(TENANT, _adobe())
        await service.post_expense(TENANT, _adobe(is_refund=True))

        assert await service.get_account_balance(TENANT, "6030") == D("0")
        assert await service.get_account_balance(TENANT, "1010") == D("0")

    @pytest.mark.asyncio
    async def test_explicit_account_wins(self, service: LedgerService) -> None:
        result = await service.post_expense(TENANT, _adobe(account_code="6090"))

        assert ("6090", EntrySide.DEBIT, D("100.00")) in _lines(result)

    @pytest.mark.asyncio
    async def test_cash_basis_uses_date_paid(
        self, seeded: SQLiteAdapter, store: LedgerStore
    ) -> None:
        engine = PostingEngine(seeded, store, basis="cash")

        result = await engine.post_expense(TENANT, _adobe(date_paid=date(2026, 3, 20)))

        assert result.date == date(2026, 3, 20)

    @pytest.mark.asyncio
    async def test_duplicate_vendor_invoice_number(self, service: LedgerService) -> None:
        await service.post_expense(TENANT, _adobe(vendor_invoice_number="V-1"))

        with pytest.raises(DuplicateDocumentNumber):
            await service.post_expense(
                TENANT, _adobe(amount=D("55"), vendor_invoice_number="V-1")
            )

        other = await service.post_expense(
            OTHER_TENANT, _adobe(amount=D("55"), vendor_invoice_number="V-1")
        )
        assert other.is_existing is False


class TestInvoice:
    """post_invoice / record_invoice_payment"""

    @pytest.mark.asyncio
    async def test_line_items_discount_and_tax(self, service: LedgerService) -> None:
        payload = InvoicePayload(
            customer_name="Initech",
            date=date(2026, 3, 2),
            invoice_number="INV-1001",
            line_items=[
                InvoiceLineItem("Website design", D("600")),
                InvoiceLineItem("Hosting support", D("400")),
            ],
            discount=D("100"),
            tax_settings=TaxSettings(enabled=True, rate=D("10")),
        )

        result = await service.post_invoice(TENANT, payload)

        assert _lines(result) == {
            ("4020", EntrySide.CREDIT, D("600.00")),
            ("4040", EntrySide.CREDIT, D("400.00")),
            ("2150", EntrySide.CREDIT, D("90.00")),
            ("4910", EntrySide.DEBIT, D("100.00")),
            ("1200", EntrySide.DEBIT, D("990.00")),
        }

    @pytest.mark.asyncio
    async def test_line_items_total_mismatch(self, service: LedgerService) -> None:
        payload = InvoicePayload(
            customer_name="Initech",
            date=date(2026, 3, 2),
            amount=D("500"),
            line_items=[InvoiceLineItem("Consulting", D("600"))],
        )

        with pytest.raises(ValidationError):
            await service.post_invoice(TENANT, payload)

    @pytest.mark.asyncio
    async def test_discount_not_below_subtotal(self, service: LedgerService) -> None:
        payload = InvoicePayload(
            customer_name="Initech",
            date=date(2026, 3, 2),
            line_items=[InvoiceLineItem("Consulting", D("100"))],
            discount=D("100"),
        )

        with pytest.raises(ValidationError):
            await service.post_invoice(TENANT, payload)

    @pytest.mark.asyncio
    async def test_overpaid_invoice_credits_customer(self, service: LedgerService) -> None:
        payload = InvoicePayload(
            customer_name="Initech",
            date=date(2026, 3, 2),
            amount=D("500"),
            payment_status="overpaid",
            amount_paid=D("550"),
        )

        result = await service.post_invoice(TENANT, payload)

        assert _lines(result) == {
            ("4020", EntrySide.CREDIT, D("500.00")),
            ("2050", EntrySide.CREDIT, D("50.00")),
            ("1010", EntrySide.DEBIT, D("550.00")),
        }

    @pytest.mark.asyncio
    async def test_prepaid_invoice_defers_revenue(self, service: LedgerService) -> None:
        payload = InvoicePayload(
            customer_name="Initech",
            date=date(2026, 3, 2),
            amount=D("300"),
            payment_status="prepaid",
        )

        result = await service.post_invoice(TENANT, payload)

        assert _lines(result) == {
            ("2400", EntrySide.CREDIT, D("300.00")),
            ("1010", EntrySide.DEBIT, D("300.00")),
        }

    @pytest.mark.asyncio
    async def test_payments_move_status(
        self, service: LedgerService, seeded: SQLiteAdapter
    ) -> None:
        await service.post_invoice(
            TENANT,
            InvoicePayload(
                customer_name="Initech",
                date=date(2026, 3, 2),
                amount=D("1000"),
                invoice_number="INV-2001",
            ),
        )

        first = await service.record_invoice_payment(
            TENANT, InvoicePaymentPayload("INV-2001", D("400"), date(2026, 3, 10))
        )
        assert (await _document(seeded, "INV-2001"))["status"] == "partial"
        assert await service.get_account_balance(TENANT, "1200") == D("600.00")

        second = await service.record_invoice_payment(
            TENANT, InvoicePaymentPayload("INV-2001", D("700"), date(2026, 3, 20))
        )
        document = await _document(seeded, "INV-2001")
        assert document["status"] == "overpaid"
        assert D(document["amount_paid"]) == D("1100.00")
        assert ("2050", EntrySide.CREDIT, D("100.00")) in _lines(second)
        assert await service.get_account_balance(TENANT, "1200") == D("0")

        replay = await service.record_invoice_payment(
            TENANT, InvoicePaymentPayload("INV-2001", D("400"), date(2026, 3, 10))
        )
        assert replay.is_existing is True
        assert replay.transaction_id == first.transaction_id

    @pytest.mark.asyncio
    async def test_payment_for_unknown_invoice(self, service: LedgerService) -> None:
        with pytest.raises(ValidationError):
            await service.record_invoice_payment(
                TENANT, InvoicePaymentPayload("INV-404", D("10"), date(2026, 3, 10))
            )

    @pytest.mark.asyncio
    async def test_payment_on_prepaid_invoice(self, service: LedgerService) -> None:
        await service.post_invoice(
            TENANT,
            InvoicePayload(
                customer_name="Initech",
                date=date(2026, 3, 2),
                amount=D("300"),
                payment_status="prepaid",
                invoice_number="INV-3001",
            ),
        )

        with pytest.raises(StateMachineError):
            await service.record_invoice_payment(
                TENANT, InvoicePaymentPayload("INV-3001", D("10"), date(2026, 3, 10))
            )
        assert await service.get_account_balance(TENANT, "1010") == D("300.00")

    @pytest.mark.asyncio
    async def test_further_payment_on_overpaid_invoice(
        self, service: LedgerService, seeded: SQLiteAdapter
    ) -> None:
        await service.post_invoice(
            TENANT,
            InvoicePayload(
                customer_name="Initech",
                date=date(2026, 3, 2),
                amount=D("100"),
                invoice_number="INV-4001",
            ),
        )
        await service.record_invoice_payment(
            TENANT, InvoicePaymentPayload("INV-4001", D("120"), date(2026, 3, 10))
        )

        extra = await service.record_invoice_payment(
            TENANT, InvoicePaymentPayload("INV-4001", D("30"), date(2026, 3, 11))
        )

        assert _lines(extra) == {
            ("1010", EntrySide.DEBIT, D("30.00")),
            ("2050", EntrySide.CREDIT, D("30.00")),
        }
        document = await _document(seeded, "INV-4001")
        assert document["status"] == "overpaid"
        assert D(document["amount_paid"]) == D("150.00")
        assert await service.get_account_balance(TENANT, "1200") == D("0")
        assert await service.get_account_balance(TENANT, "2050") == D("50.00")


class TestOtherDocuments:
    """수익, 자본, 취소"""

    @pytest.mark.asyncio
    async def test_revenue_and_capital(self, service: LedgerService) -> None:
        await service.post_revenue(
            TENANT, RevenuePayload(D("250"), date(2026, 3, 3), "Workshop fee")
        )
        await service.post_capital_contribution(
            TENANT, CapitalContributionPayload(D("10000"), date(2026, 1, 1))
        )

        assert await service.get_account_balance(TENANT, "4020") == D("250.00")
        assert await service.get_account_balance(TENANT, "3000") == D("10000.00")
        assert await service.get_account_balance(TENANT, "1010") == D("10250.00")

    @pytest.mark.asyncio
    async def test_void_reverses_once(self, service: LedgerService) -> None:
        original = await service.post_expense(TENANT, _adobe())

        void = await service.void_transaction(TENANT, original.transaction_id)
        again = await service.void_transaction(TENANT, original.transaction_id)

        assert void.reference.startswith("VOID-")
        assert again.is_existing is True
        assert again.transaction_id == void.transaction_id
        assert await service.get_account_balance(TENANT, "6030") == D("0")

    @pytest.mark.asyncio
    async def test_void_of_void_rejected(self, service: LedgerService) -> None:
        original = await service.post_expense(TENANT, _adobe())
        void = await service.void_transaction(TENANT, original.transaction_id)

        with pytest.raises(ValidationError):
            await service.void_transaction(TENANT, void.transaction_id)

    @pytest.mark.asyncio
    async def test_void_unknown_or_foreign(self, service: LedgerService) -> None:
        original = await service.post_expense(TENANT, _adobe())

        with pytest.raises(TransactionNotFound):
            await service.void_transaction(TENANT, "missing")
        with pytest.raises(TransactionNotFound):
            await service.void_transaction(OTHER_TENANT, original.transaction_id)

    @pytest.mark.asyncio
    async def test_void_payment_reopens_invoice(
        self, service: LedgerService, seeded: SQLiteAdapter
    ) -> None:
        await service.post_invoice(
            TENANT,
            InvoicePayload(
                customer_name="Initech",
                date=date(2026, 3, 2),
                amount=D("100"),
                invoice_number="INV-1",
            ),
        )
        payment = await service.record_invoice_payment(
            TENANT, InvoicePaymentPayload("INV-1", D("100"), date(2026, 3, 10))
        )

        await service.void_transaction(TENANT, payment.transaction_id)

        document = await _document(seeded, "INV-1")
        assert document["status"] == "unpaid"
        assert D(document["amount_paid"]) == D("0")
        assert await service.get_account_balance(TENANT, "1200") == D("100.00")

        repaid = await service.record_invoice_payment(
            TENANT, InvoicePaymentPayload("INV-1", D("100"), date(2026, 3, 12))
        )

        assert _lines(repaid) == {
            ("1010", EntrySide.DEBIT, D("100.00")),
            ("1200", EntrySide.CREDIT, D("100.00")),
        }
        assert (await _document(seeded, "INV-1"))["status"] == "paid"
        assert await service.get_account_balance(TENANT, "1200") == D("0")
        assert await service.get_account_balance(TENANT, "2050") == D("0")

    @pytest.mark.asyncio
    async def test_void_partial_payment_keeps_other_payments(
        self, service: LedgerService, seeded: SQLiteAdapter
    ) -> None:
        await service.post_invoice(
            TENANT,
            InvoicePayload(
                customer_name="Initech",
                date=date(2026, 3, 2),
                amount=D("100"),
                invoice_number="INV-5",
            ),
        )
        await service.record_invoice_payment(
            TENANT, InvoicePaymentPayload("INV-5", D("30"), date(2026, 3, 10))
        )
        second = await service.record_invoice_payment(
            TENANT, InvoicePaymentPayload("INV-5", D("70"), date(2026, 3, 11))
        )

        await service.void_transaction(TENANT, second.transaction_id)
        await service.void_transaction(TENANT, second.transaction_id)

        document = await _document(seeded, "INV-5")
        assert document["status"] == "partial"
        assert D(document["amount_paid"]) == D("30")

    @pytest.mark.asyncio
    async def test_voided_invoice_rejects_payment(
        self, service: LedgerService, seeded: SQLiteAdapter
    ) -> None:
        invoice = await service.post_invoice(
            TENANT,
            InvoicePayload(
                customer_name="Initech",
                date=date(2026, 3, 2),
                amount=D("100"),
                invoice_number="INV-2",
            ),
        )

        await service.void_transaction(TENANT, invoice.transaction_id)

        assert (await _document(seeded, "INV-2"))["status"] == "void"
        with pytest.raises(StateMachineError):
            await service.record_invoice_payment(
                TENANT, InvoicePaymentPayload("INV-2", D("100"), date(2026, 3, 10))
            )
        assert await service.get_account_balance(TENANT, "1200") == D("0")
        assert await service.get_account_balance(TENANT, "1010") == D("0")

    @pytest.mark.asyncio
    async def test_voided_expense_keeps_number_reserved(
        self, service: LedgerService, seeded: SQLiteAdapter
    ) -> None:
        original = await service.post_expense(
            TENANT, _adobe(payment_status="unpaid", vendor_invoice_number="ADB-77")
        )

        await service.void_transaction(TENANT, original.transaction_id)

        assert (await _document(seeded, "ADB-77"))["status"] == "void"
        with pytest.raises(DuplicateDocumentNumber):
            await service.post_expense(
                TENANT,
                _adobe(
                    payment_status="unpaid",
                    vendor_invoice_number="ADB-77",
                    date=date(2026, 3, 5),
                ),
            )


class TestPreview:
    """preview_expense / preview_invoice는 저장하지 않음"""

    @pytest.mark.asyncio
    async def test_preview_expense(self, service: LedgerService, store: LedgerStore) -> None:
        draft = service.preview_expense(
            TENANT,
            _adobe(payment_status="partial", amount_paid=D("40"), vendor_invoice_number="ADB-1"),
        )

        assert draft.is_balanced()
        assert {(line.account_code, line.side, line.amount) for line in draft.lines} == {
            ("6030", EntrySide.DEBIT, D("100.00")),
            ("1010", EntrySide.CREDIT, D("40.00")),
            ("2010", EntrySide.CREDIT, D("60.00")),
        }
        assert await store.count_transactions(TENANT) == 0

        # preview는 번호를 점유하지 않음
        posted = await service.post_expense(
            TENANT,
            _adobe(payment_status="partial", amount_paid=D("40"), vendor_invoice_number="ADB-1"),
        )
        assert posted.is_existing is False

    @pytest.mark.asyncio
    async def test_preview_invoice(self, service: LedgerService, store: LedgerStore) -> None:
        payload = InvoicePayload(
            customer_name="Initech",
            date=date(2026, 3, 2),
            line_items=[
                InvoiceLineItem("Consulting", D("600")),
                InvoiceLineItem("Software license", D("400")),
            ],
            discount=D("100"),
            tax_settings=TaxSettings(enabled=True, rate=D("10")),
            invoice_number="INV-9001",
        )

        draft = service.preview_invoice(TENANT, payload)

        assert draft.is_balanced()
        assert draft.total_debits == D("1090.00")
        assert await store.count_transactions(TENANT) == 0

    @pytest.mark.asyncio
    async def test_preview_rejects_bad_payload(
        self, service: LedgerService, store: LedgerStore
    ) -> None:
        with pytest.raises(ValidationError):
            service.preview_invoice(
                TENANT,
                InvoicePayload(
                    customer_name="Initech",
                    date=date(2026, 3, 2),
                    amount=D("100"),
                    payment_status="overpaid",
                    amount_paid=D("90"),
                ),
            )
        assert await store.count_transactions(TENANT) == 0
