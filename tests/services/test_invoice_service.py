"""
Tests for InvoiceService.

Covers:
- Computation preview
- Invoice creation with supply-type resolution and rate splitting
- Invoice numbering per tenant per day
- Finalization and status transitions
- Stored totals returned without recomputation, exactly as billed
- Deleting drafts
- Audit logging
"""

from dataclasses import replace
from datetime import date
from decimal import Decimal
from uuid import uuid4

import pytest
from sqlalchemy import func, select

from gst_engines import LineItemInput, SupplyType
from gst_kernel.exceptions import (
    EmptyInvoiceError,
    InvalidInputError,
    InvalidStatusTransitionError,
    InvoiceNotDraftError,
    InvoiceNotFoundError,
    ValidationError,
)
from gst_kernel.models.invoice import Invoice, InvoiceLine, InvoiceStatus
from gst_services.invoice_service import InvoiceHeader, InvoiceLineRequest, InvoiceService

TENANT = "tenant-test"


def _invoice_count(session) -> int:
    return session.scalar(select(func.count()).select_from(Invoice))


class TestCompute:

    def test_preview(self, invoice_service):
        document = invoice_service.compute(
            [
                LineItemInput(quantity=2, unit_price=Decimal("100"), rates={"CGST": 9, "SGST": 9}),
                LineItemInput(quantity=1, unit_price=Decimal("250"), discount=Decimal("10"),
                              rates={"CGST": 9, "SGST": 9}),
                LineItemInput(quantity=5, unit_price=Decimal("40"), rates={"CGST": 9, "SGST": 9}),
            ]
        )

        assert len(document.line_items) == 3
        assert document.totals.subtotal == Decimal("640")
        assert document.totals.total_tax == Decimal("115.2")
        assert document.totals.grand_total == Decimal("755.2")

    def test_preview_of_nothing(self, invoice_service):
        document = invoice_service.compute([])

        assert document.line_items == ()
        assert document.totals.grand_total == Decimal("0")

    def test_mixed_components_rejected(self, invoice_service):
        with pytest.raises(ValidationError):
            invoice_service.compute(
                [LineItemInput(quantity=1, unit_price=Decimal("1"),
                               rates={"CGST": 9, "SGST": 9, "IGST": 18})]
            )

    def test_preview_writes_nothing(self, session, invoice_service):
        invoice_service.compute([LineItemInput(quantity=1, unit_price=Decimal("1"))])

        assert _invoice_count(session) == 0


class TestCreateInvoice:

    def test_intra_state_invoice(self, draft_invoice):
        assert draft_invoice.status == InvoiceStatus.DRAFT
        assert draft_invoice.supply_type == "intra_state"
        assert draft_invoice.place_of_supply == "27"
        assert draft_invoice.subtotal == Decimal("640")
        assert draft_invoice.total_tax == Decimal("115.2")
        assert draft_invoice.grand_total == Decimal("755.2")
        assert draft_invoice.tax_totals == {"CGST": "57.6", "SGST": "57.6"}
        assert draft_invoice.currency == "INR"
        assert draft_invoice.regime_id == "india_gst"
        assert draft_invoice.amount_in_words is None
        assert draft_invoice.finalized_at is None

    def test_lines_stored_with_inputs_and_results(self, draft_invoice):
        first = draft_invoice.lines[0]

        assert first.description == "Widget"
        assert first.hsn_code == "8471"
        assert first.quantity == Decimal("2")
        assert first.rates == {"CGST": "9", "SGST": "9"}
        assert first.tax_amounts == {"CGST": "18", "SGST": "18"}
        assert first.taxable_amount == Decimal("200")
        assert first.total_amount == Decimal("236")

    def test_grand_total_equals_sum_of_line_totals(self, draft_invoice):
        line_sum = sum((line.total_amount for line in draft_invoice.lines), Decimal("0"))

        assert draft_invoice.grand_total == line_sum

    def test_inter_state_invoice(self, invoice_service, inter_state_header, sample_lines):
        invoice = invoice_service.create_invoice(TENANT, inter_state_header, sample_lines)

        assert invoice.supply_type == "inter_state"
        assert invoice.place_of_supply == "29"
        assert invoice.tax_totals == {"IGST": "115.2"}
        assert invoice.grand_total == Decimal("755.2")

    def test_explicit_supply_type_wins(self, invoice_service, intra_state_header, sample_lines):
        invoice = invoice_service.create_invoice(
            TENANT, intra_state_header, sample_lines, supply_type=SupplyType.INTER_STATE
        )

        assert set(invoice.tax_totals) == {"IGST"}

    def test_place_of_supply_overrides_customer_state(self, invoice_service, sample_lines):
        header = InvoiceHeader(
            business_name="Acme Traders",
            business_gstin="27AAPFU0939F1ZV",
            customer_name="Walk-in customer",
            place_of_supply="27",
        )

        invoice = invoice_service.create_invoice(TENANT, header, sample_lines)

        assert invoice.supply_type == "intra_state"
        assert invoice.customer_gstin is None

    def test_unknown_states_rejected(self, invoice_service, sample_lines):
        header = InvoiceHeader(business_name="Acme Traders", customer_name="Someone")

        with pytest.raises(InvalidInputError):
            invoice_service.create_invoice(TENANT, header, sample_lines)

    def test_gstin_normalized(self, invoice_service, sample_lines):
        header = InvoiceHeader(
            business_name="Acme Traders",
            business_gstin="27aapfu0939f1zv",
            customer_name="Globex",
            customer_gstin=" 27aaacg1234h1z5",
        )

        invoice = invoice_service.create_invoice(TENANT, header, sample_lines)

        assert invoice.business_gstin == "27AAPFU0939F1ZV"
        assert invoice.customer_gstin == "27AAACG1234H1Z5"

    def test_malformed_gstin_rejected(self, session, invoice_service, sample_lines):
        header = InvoiceHeader(
            business_name="Acme Traders",
            business_gstin="27AAPFU0939F1Z",
            customer_name="Globex",
            place_of_supply="27",
        )

        with pytest.raises(ValidationError):
            invoice_service.create_invoice(TENANT, header, sample_lines)
        assert _invoice_count(session) == 0

    def test_rate_outside_table_rejected(self, session, invoice_service, intra_state_header):
        lines = [InvoiceLineRequest("Widget", 1, Decimal("100"), gst_rate=7)]

        with pytest.raises(ValidationError) as exc_info:
            invoice_service.create_invoice(TENANT, intra_state_header, lines)

        assert exc_info.value.field == "gst_rate"
        assert _invoice_count(session) == 0

    def test_invalid_line_rejected(self, session, invoice_service, intra_state_header):
        lines = [
            InvoiceLineRequest("Widget", 1, Decimal("100"), gst_rate=18),
            InvoiceLineRequest("Refund", -1, Decimal("100"), gst_rate=18),
        ]

        with pytest.raises(InvalidInputError):
            invoice_service.create_invoice(TENANT, intra_state_header, lines)
        assert _invoice_count(session) == 0

    def test_empty_invoice_rejected(self, invoice_service, intra_state_header):
        with pytest.raises(EmptyInvoiceError) as exc_info:
            invoice_service.create_invoice(TENANT, intra_state_header, [])

        assert exc_info.value.code == "EMPTY_INVOICE"

    def test_created_is_logged(self, invoice_service, intra_state_header, sample_lines, captured_logs):
        invoice = invoice_service.create_invoice(TENANT, intra_state_header, sample_lines)

        created = [r for r in captured_logs() if r["message"] == "invoice_created"]
        assert len(created) == 1
        assert created[0]["invoice_number"] == invoice.invoice_number
        assert created[0]["invoice_id"] == str(invoice.id)
        assert created[0]["tenant_id"] == TENANT
        assert created[0]["grand_total"] == "755.2"
        assert created[0]["line_count"] == 3


class TestInvoiceNumbering:

    def test_first_number_of_the_day(self, draft_invoice):
        assert draft_invoice.invoice_number == "INV-20240401-001"
        assert draft_invoice.invoice_date == date(2024, 4, 1)

    def test_sequential_within_day(self, invoice_service, intra_state_header, sample_lines):
        numbers = [
            invoice_service.create_invoice(TENANT, intra_state_header, sample_lines).invoice_number
            for _ in range(3)
        ]

        assert numbers == ["INV-20240401-001", "INV-20240401-002", "INV-20240401-003"]

    def test_per_tenant(self, invoice_service, intra_state_header, sample_lines):
        invoice_service.create_invoice(TENANT, intra_state_header, sample_lines)
        other = invoice_service.create_invoice("tenant-other", intra_state_header, sample_lines)

        assert other.invoice_number == "INV-20240401-001"

    def test_restarts_each_day(self, invoice_service, clock, intra_state_header, sample_lines):
        invoice_service.create_invoice(TENANT, intra_state_header, sample_lines)
        clock.advance(24 * 60 * 60)

        invoice = invoice_service.create_invoice(TENANT, intra_state_header, sample_lines)

        assert invoice.invoice_number == "INV-20240402-001"
        assert invoice.invoice_date == date(2024, 4, 2)

    def test_explicit_invoice_date(self, invoice_service, sample_lines):
        header = InvoiceHeader(
            business_name="Acme Traders",
            business_gstin="27AAPFU0939F1ZV",
            customer_name="Globex",
            customer_gstin="27AAACG1234H1Z5",
            invoice_date=date(2024, 3, 31),
        )

        invoice = invoice_service.create_invoice(TENANT, header, sample_lines)

        assert invoice.invoice_number == "INV-20240331-001"

    def test_next_number_skips_gaps(self, invoice_service, intra_state_header, sample_lines):
        first = invoice_service.create_invoice(TENANT, intra_state_header, sample_lines)
        first.invoice_number = "INV-20240401-007"

        assert invoice_service.next_invoice_number(TENANT, date(2024, 4, 1)) == "INV-20240401-008"

    def test_wildcard_characters_in_prefix_match_literally(
        self, session, regime, clock, intra_state_header, sample_lines
    ):
        plain = InvoiceService(session, replace(regime, invoice_number_prefix="INX"), clock)
        underscored = InvoiceService(session, replace(regime, invoice_number_prefix="IN_"), clock)
        plain.create_invoice(TENANT, intra_state_header, sample_lines).invoice_number = "INX-20240401-005"
        session.flush()

        assert underscored.next_invoice_number(TENANT, date(2024, 4, 1)) == "IN_-20240401-001"


class TestLifecycle:

    def test_finalize(self, invoice_service, draft_invoice, clock):
        invoice = invoice_service.finalize(draft_invoice.id)

        assert invoice.status == InvoiceStatus.ISSUED
        assert invoice.finalized_at == clock.now()
        assert invoice.amount_in_words == (
            "Seven Hundred and Fifty Five Rupees and Twenty Paise"
        )

    def test_finalize_twice_rejected(self, invoice_service, issued_invoice):
        with pytest.raises(InvalidStatusTransitionError) as exc_info:
            invoice_service.finalize(issued_invoice.id)

        assert exc_info.value.from_status == "issued"
        assert exc_info.value.to_status == "issued"

    def test_change_status_to_issued_finalizes(self, invoice_service, draft_invoice):
        invoice = invoice_service.change_status(draft_invoice.id, "issued")

        assert invoice.status == InvoiceStatus.ISSUED
        assert invoice.amount_in_words is not None

    def test_paid(self, invoice_service, issued_invoice):
        invoice = invoice_service.change_status(issued_invoice.id, InvoiceStatus.PAID)

        assert invoice.status == InvoiceStatus.PAID

    def test_overdue_then_paid(self, invoice_service, issued_invoice):
        invoice_service.change_status(issued_invoice.id, InvoiceStatus.OVERDUE)
        invoice = invoice_service.change_status(issued_invoice.id, InvoiceStatus.PAID)

        assert invoice.status == InvoiceStatus.PAID

    def test_draft_can_be_cancelled(self, invoice_service, draft_invoice):
        invoice = invoice_service.change_status(draft_invoice.id, InvoiceStatus.CANCELLED)

        assert invoice.status == InvoiceStatus.CANCELLED
        assert invoice.finalized_at is None

    def test_draft_cannot_be_paid(self, invoice_service, draft_invoice):
        with pytest.raises(InvalidStatusTransitionError):
            invoice_service.change_status(draft_invoice.id, InvoiceStatus.PAID)

    def test_paid_is_terminal(self, invoice_service, issued_invoice, captured_logs):
        invoice_service.change_status(issued_invoice.id, InvoiceStatus.PAID)

        with pytest.raises(InvalidStatusTransitionError):
            invoice_service.change_status(issued_invoice.id, InvoiceStatus.CANCELLED)

        rejected = [r for r in captured_logs() if r["message"] == "invoice_status_change_rejected"]
        assert rejected[0]["from_status"] == "paid"

    def test_unknown_status_rejected(self, invoice_service, issued_invoice):
        with pytest.raises(ValueError):
            invoice_service.change_status(issued_invoice.id, "refunded")

    def test_status_change_is_logged(self, invoice_service, issued_invoice, captured_logs):
        invoice_service.change_status(issued_invoice.id, InvoiceStatus.PAID)

        changed = [r for r in captured_logs() if r["message"] == "invoice_status_changed"]
        assert changed[0]["from_status"] == "issued"
        assert changed[0]["to_status"] == "paid"
        assert changed[0]["invoice_number"] == issued_invoice.invoice_number

    def test_details_editable_after_finalize(self, invoice_service, issued_invoice):
        invoice = invoice_service.update_details(
            issued_invoice.id, notes="Thank you", eway_bill_number="181000123456"
        )

        assert invoice.notes == "Thank you"
        assert invoice.eway_bill_number == "181000123456"
        assert invoice.terms is None

    def test_eway_bill_date_editable_after_finalize(self, invoice_service, issued_invoice):
        invoice = invoice_service.update_details(
            issued_invoice.id, eway_bill_number="181000123456", eway_bill_date=date(2024, 4, 2)
        )

        assert invoice.eway_bill_date == date(2024, 4, 2)

    def test_eway_bill_date_from_header(self, invoice_service, sample_lines):
        header = InvoiceHeader(
            business_name="Acme Traders",
            business_gstin="27AAPFU0939F1ZV",
            customer_name="Globex",
            customer_gstin="27AAACG1234H1Z5",
            eway_bill_number="181000123456",
            eway_bill_date=date(2024, 4, 1),
        )

        invoice = invoice_service.create_invoice(TENANT, header, sample_lines)

        assert invoice.eway_bill_date == date(2024, 4, 1)

    def test_unknown_invoice(self, invoice_service):
        missing = uuid4()

        with pytest.raises(InvoiceNotFoundError) as exc_info:
            invoice_service.get_invoice(missing)

        assert exc_info.value.invoice_id == str(missing)


class TestGetTotals:

    def test_totals_from_stored_columns(self, invoice_service, issued_invoice):
        totals = invoice_service.get_totals(issued_invoice.id)

        assert totals.subtotal == Decimal("640")
        assert totals.tax_for("CGST") == Decimal("57.6")
        assert totals.tax_for("SGST") == Decimal("57.6")
        assert totals.grand_total == Decimal("755.2")
        assert totals.line_count == 3

    def test_totals_are_not_recomputed(self, session, invoice_service, draft_invoice):
        draft_invoice.subtotal = Decimal("1")
        session.flush()
        session.expire(draft_invoice)

        totals = invoice_service.get_totals(draft_invoice.id)

        assert totals.subtotal == Decimal("1")
        assert totals.grand_total == Decimal("755.2")

    def test_totals_exact_after_commit_and_reload(self, session, invoice_service, intra_state_header):
        invoice = invoice_service.create_invoice(
            TENANT,
            intra_state_header,
            [InvoiceLineRequest("Plant", 1, Decimal("12345678901.23"), gst_rate=18)],
        )
        session.commit()
        session.expire_all()

        totals = invoice_service.get_totals(invoice.id)

        assert totals.subtotal == Decimal("12345678901.23")
        assert totals.tax_for("CGST") == Decimal("1111111101.1107")
        assert totals.total_tax == Decimal("2222222202.2214")
        assert totals.grand_total == Decimal("14567901103.4514")
        line = invoice_service.get_invoice(invoice.id).lines[0]
        assert line.unit_price == Decimal("12345678901.23")
        assert line.total_amount == Decimal("14567901103.4514")


class TestDeleteDraft:

    def test_draft_deleted_with_lines(self, session, invoice_service, draft_invoice, captured_logs):
        invoice_service.delete_draft(draft_invoice.id)

        assert _invoice_count(session) == 0
        assert session.scalar(select(func.count()).select_from(InvoiceLine)) == 0
        deleted = [r for r in captured_logs() if r["message"] == "invoice_deleted"]
        assert deleted[0]["invoice_number"] == "INV-20240401-001"

    def test_issued_invoice_not_deleted(self, session, invoice_service, issued_invoice, captured_logs):
        with pytest.raises(InvoiceNotDraftError) as exc_info:
            invoice_service.delete_draft(issued_invoice.id)

        assert exc_info.value.code == "INVOICE_NOT_DRAFT"
        assert exc_info.value.status == "issued"
        assert _invoice_count(session) == 1
        rejected = [r for r in captured_logs() if r["message"] == "invoice_delete_rejected"]
        assert rejected[0]["level"] == "WARNING"

    def test_cancelled_draft_not_deleted(self, invoice_service, draft_invoice):
        invoice_service.change_status(draft_invoice.id, InvoiceStatus.CANCELLED)

        with pytest.raises(InvoiceNotDraftError):
            invoice_service.delete_draft(draft_invoice.id)

    def test_unknown_invoice(self, invoice_service):
        with pytest.raises(InvoiceNotFoundError):
            invoice_service.delete_draft(uuid4())


class TestListInvoices:

    def test_by_tenant_and_status(self, invoice_service, intra_state_header, sample_lines):
        first = invoice_service.create_invoice(TENANT, intra_state_header, sample_lines)
        invoice_service.create_invoice(TENANT, intra_state_header, sample_lines)
        invoice_service.create_invoice("tenant-other", intra_state_header, sample_lines)
        invoice_service.finalize(first.id)

        assert len(invoice_service.list_invoices(TENANT)) == 2
        issued = invoice_service.list_invoices(TENANT, status=InvoiceStatus.ISSUED)
        assert [i.invoice_number for i in issued] == [first.invoice_number]

    def test_newest_number_first(self, invoice_service, intra_state_header, sample_lines):
        for _ in range(2):
            invoice_service.create_invoice(TENANT, intra_state_header, sample_lines)

        numbers = [i.invoice_number for i in invoice_service.list_invoices(TENANT)]

        assert numbers == ["INV-20240401-002", "INV-20240401-001"]
