"""
gst_services.invoice_service -- Invoice creation, numbering and lifecycle.

Responsibility:
    Turn invoice requests into computed, numbered, persisted invoices, and
    move them through their lifecycle (finalize, pay, cancel, ...).

Architecture position:
    Services -- stateful orchestration over engines + kernel.
    Composes the supply policy and rate split from the active TaxRegime,
    the pure line-item calculator and aggregator from gst_engines, and the
    Invoice/InvoiceLine ORM models for persistence.

Invariants enforced:
    - Every stored line was computed by ``compute_line_item``; every stored
      total by ``aggregate`` over exactly those lines.
    - CGST/SGST and IGST are never both charged on one line.
    - Invoice numbers are ``{prefix}-YYYYMMDD-NNN``, sequential per tenant
      per day; the unique constraint rejects a duplicate.
    - Stored totals are authoritative: ``get_totals`` reads columns and
      never recomputes.
    - Status changes follow ``VALID_TRANSITIONS``.

Failure modes:
    - EmptyInvoiceError if an invoice has no lines.
    - ValidationError for a rate outside the regime's table, a malformed
      GSTIN, or mixed intra/inter-state components.
    - InvalidInputError for negative or non-numeric line inputs.
    - InvoiceNotFoundError for an unknown invoice id.
    - InvalidStatusTransitionError for a disallowed status change.
    - InvoiceNotDraftError when deleting an issued invoice.

Audit relevance:
    invoice_created, invoice_finalized and invoice_status_changed are
    logged with the invoice id and number bound into the LogContext.  Each
    invoice stores the regime id and checksum that computed it.

Usage:
    from gst_config import get_active_regime
    from gst_kernel.domain.clock import SystemClock
    from gst_services.invoice_service import InvoiceService

    service = InvoiceService(session, get_active_regime(), SystemClock())
    invoice = service.create_invoice(
        tenant_id="acme",
        header=InvoiceHeader(
            business_name="Acme Traders",
            business_gstin="27AAPFU0939F1ZV",
            customer_name="Globex",
            customer_gstin="27AAACG1234H1Z5",
        ),
        lines=[InvoiceLineRequest("Widget", 2, Decimal("100"), gst_rate=18)],
    )
    service.finalize(invoice.id)
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from types import MappingProxyType
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.orm import Session

from gst_config import TaxRegime
from gst_engines import (
    DocumentTotals,
    LineItem,
    LineItemInput,
    SupplyType,
    aggregate,
    check_component_exclusivity,
    compute_line_item_from_input,
    supply_type_for,
)
from gst_kernel.domain.clock import Clock
from gst_kernel.domain.values import Gstin
from gst_kernel.exceptions import (
    EmptyInvoiceError,
    InvalidInputError,
    InvalidStatusTransitionError,
    InvoiceNotDraftError,
    InvoiceNotFoundError,
)
from gst_kernel.logging_config import LogContext, get_logger
from gst_kernel.models.invoice import (
    Invoice,
    InvoiceLine,
    InvoiceStatus,
    can_transition,
)

logger = get_logger("services.invoice")


@dataclass(frozen=True)
class InvoiceHeader:
    """Party snapshot and header fields copied onto a new invoice."""

    business_name: str
    customer_name: str
    business_gstin: str | None = None
    customer_gstin: str | None = None
    business_address: str | None = None
    customer_address: str | None = None
    # Two-digit state code; defaults to the customer GSTIN's state.
    place_of_supply: str | None = None
    invoice_date: date | None = None
    due_date: date | None = None
    notes: str | None = None
    terms: str | None = None
    eway_bill_number: str | None = None
    eway_bill_date: date | None = None


@dataclass(frozen=True)
class InvoiceLineRequest:
    """
    One requested line, priced with a single combined GST rate.

    The rate is split into components by the regime according to the
    invoice's supply type.
    """

    description: str
    quantity: int
    unit_price: Decimal
    gst_rate: Decimal | int | str = 0
    discount: Decimal = Decimal("0")
    hsn_code: str | None = None
    product_id: str | None = None


@dataclass(frozen=True)
class ComputedDocument:
    """Computed line items and their totals, not yet persisted."""

    line_items: tuple[LineItem, ...]
    totals: DocumentTotals


def _as_json_map(amounts) -> dict[str, str]:
    return {name: str(value) for name, value in amounts.items()}


class InvoiceService:
    """
    Creates invoices and manages their lifecycle.

    Contract:
        Receives Session, TaxRegime and Clock via constructor injection.
        Flushes but never commits; the caller owns the transaction
        (see ``gst_kernel.db.session_scope``).
    Guarantees:
        - ``compute`` is side-effect free.
        - ``create_invoice`` persists a DRAFT invoice whose stored totals
          equal ``aggregate`` of its stored lines.
        - ``finalize`` stamps ``finalized_at`` and ``amount_in_words``.
    Non-goals:
        - Does not render documents; see ``gst_services.rendering``.
    """

    def __init__(self, session: Session, regime: TaxRegime, clock: Clock):
        self._session = session
        self._regime = regime
        self._clock = clock

    # ------------------------------------------------------------------
    # Computation
    # ------------------------------------------------------------------

    def compute(self, lines: Sequence[LineItemInput]) -> ComputedDocument:
        """
        Compute line items and totals for a document being edited.

        Raises:
            ValidationError: If a line mixes intra- and inter-state
                components or splits CGST/SGST unevenly.
            InvalidInputError: On invalid numeric input.
        """
        for item in lines:
            check_component_exclusivity(
                item.rates,
                intra_components=self._regime.intra_components,
                inter_component=self._regime.inter_component,
            )
        items = tuple(compute_line_item_from_input(item) for item in lines)
        return ComputedDocument(line_items=items, totals=aggregate(items))

    def resolve_supply_type(self, header: InvoiceHeader) -> SupplyType:
        """
        Classify the supply from the supplier GSTIN and place of supply.

        Raises:
            ValidationError: If a GSTIN is malformed.
            InvalidInputError: If either state cannot be determined.
        """
        supplier_state = Gstin(header.business_gstin).state_code if header.business_gstin else ""
        place = header.place_of_supply
        if not place and header.customer_gstin:
            place = Gstin(header.customer_gstin).state_code
        return supply_type_for(supplier_state, place or "")

    # ------------------------------------------------------------------
    # Creation
    # ------------------------------------------------------------------

    def create_invoice(
        self,
        tenant_id: str,
        header: InvoiceHeader,
        lines: Sequence[InvoiceLineRequest],
        supply_type: SupplyType | None = None,
    ) -> Invoice:
        """
        Compute, number and persist a DRAFT invoice.

        Args:
            tenant_id: Owner of the invoice and scope of its numbering.
            header: Party snapshot and header fields.
            lines: At least one requested line.
            supply_type: Explicit supply type; derived from the header when
                omitted.

        Raises:
            EmptyInvoiceError: If ``lines`` is empty.
            ValidationError: On a disallowed rate or malformed GSTIN.
            InvalidInputError: On invalid numeric input or unknown states.
        """
        if not lines:
            logger.warning("invoice_rejected_empty", extra={"tenant_id": tenant_id})
            raise EmptyInvoiceError()
        if not tenant_id:
            raise InvalidInputError("tenant_id", tenant_id, "is required")

        business_gstin = Gstin(header.business_gstin).value if header.business_gstin else None
        customer_gstin = Gstin(header.customer_gstin).value if header.customer_gstin else None
        if supply_type is None:
            supply_type = self.resolve_supply_type(header)
        supply_type = SupplyType(supply_type)

        inputs = [
            LineItemInput(
                quantity=req.quantity,
                unit_price=req.unit_price,
                discount=req.discount,
                rates=self._regime.split_rate(req.gst_rate, supply_type),
                description=req.description,
                hsn_code=req.hsn_code,
                product_id=req.product_id,
            )
            for req in lines
        ]
        document = self.compute(inputs)
        totals = document.totals

        invoice_date = header.invoice_date or self._clock.today()
        invoice_number = self.next_invoice_number(tenant_id, invoice_date)

        place_of_supply = header.place_of_supply
        if not place_of_supply and customer_gstin:
            place_of_supply = customer_gstin[:2]

        invoice = Invoice(
            tenant_id=tenant_id,
            invoice_number=invoice_number,
            invoice_date=invoice_date,
            due_date=header.due_date,
            status=InvoiceStatus.DRAFT,
            supply_type=supply_type.value,
            business_name=header.business_name,
            business_address=header.business_address,
            business_gstin=business_gstin,
            customer_name=header.customer_name,
            customer_address=header.customer_address,
            customer_gstin=customer_gstin,
            place_of_supply=place_of_supply,
            currency=self._regime.currency,
            subtotal=totals.subtotal,
            total_tax=totals.total_tax,
            grand_total=totals.grand_total,
            tax_totals=_as_json_map(totals.totals_by_rate),
            regime_id=self._regime.regime_id,
            regime_checksum=self._regime.checksum,
            notes=header.notes,
            terms=header.terms,
            eway_bill_number=header.eway_bill_number,
            eway_bill_date=header.eway_bill_date,
        )
        for line_no, (source, item) in enumerate(zip(inputs, document.line_items)):
            invoice.lines.append(
                InvoiceLine(
                    line_no=line_no,
                    description=source.description,
                    hsn_code=source.hsn_code,
                    product_id=source.product_id,
                    quantity=Decimal(item.quantity),
                    unit_price=item.unit_price,
                    discount=item.discount,
                    rates=_as_json_map(item.rates),
                    tax_amounts=_as_json_map(item.tax_amounts),
                    taxable_amount=item.taxable_amount,
                    total_amount=item.total_amount,
                )
            )

        self._session.add(invoice)
        self._session.flush()

        with LogContext.bind(
            tenant_id=tenant_id,
            invoice_id=str(invoice.id),
            invoice_number=invoice_number,
        ):
            logger.info(
                "invoice_created",
                extra={
                    "supply_type": supply_type.value,
                    "line_count": totals.line_count,
                    "subtotal": totals.subtotal,
                    "total_tax": totals.total_tax,
                    "grand_total": totals.grand_total,
                    "regime_id": self._regime.regime_id,
                },
            )
        return invoice

    def next_invoice_number(self, tenant_id: str, on: date) -> str:
        """
        Next ``{prefix}-YYYYMMDD-NNN`` number for the tenant and day.

        Reads inside the caller's transaction; a concurrent writer that
        takes the same number fails on the unique constraint.
        """
        stem = f"{self._regime.invoice_number_prefix}-{on:%Y%m%d}-"
        existing = self._session.scalars(
            select(Invoice.invoice_number).where(
                Invoice.tenant_id == tenant_id,
                Invoice.invoice_number.startswith(stem, autoescape=True),
            )
        ).all()
        highest = 0
        for number in existing:
            suffix = number[len(stem):]
            if suffix.isdigit():
                highest = max(highest, int(suffix))
        return f"{stem}{highest + 1:03d}"

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def get_invoice(self, invoice_id: UUID) -> Invoice:
        """
        Raises:
            InvoiceNotFoundError: If no invoice has this id.
        """
        invoice = self._session.get(Invoice, invoice_id)
        if invoice is None:
            raise InvoiceNotFoundError(str(invoice_id))
        return invoice

    def list_invoices(
        self,
        tenant_id: str,
        status: InvoiceStatus | None = None,
    ) -> list[Invoice]:
        """Tenant's invoices, newest number first."""
        stmt = select(Invoice).where(Invoice.tenant_id == tenant_id)
        if status is not None:
            stmt = stmt.where(Invoice.status == InvoiceStatus(status))
        stmt = stmt.order_by(Invoice.invoice_date.desc(), Invoice.invoice_number.desc())
        return list(self._session.scalars(stmt).all())

    def finalize(self, invoice_id: UUID) -> Invoice:
        """
        Issue a DRAFT invoice; from here on its amounts are frozen.

        Raises:
            InvoiceNotFoundError: If no invoice has this id.
            InvalidStatusTransitionError: If the invoice is not a draft.
        """
        invoice = self.get_invoice(invoice_id)
        self._check_transition(invoice, InvoiceStatus.ISSUED)

        invoice.status = InvoiceStatus.ISSUED
        invoice.finalized_at = self._clock.now()
        invoice.amount_in_words = self._regime.amount_in_words(invoice.grand_total)
        self._session.flush()

        with LogContext.bind(
            tenant_id=invoice.tenant_id,
            invoice_id=str(invoice.id),
            invoice_number=invoice.invoice_number,
        ):
            logger.info(
                "invoice_finalized",
                extra={
                    "grand_total": invoice.grand_total,
                    "amount_in_words": invoice.amount_in_words,
                },
            )
        return invoice

    def change_status(self, invoice_id: UUID, new_status: InvoiceStatus | str) -> Invoice:
        """
        Move an invoice to ``new_status``.

        DRAFT -> ISSUED goes through ``finalize`` so the invoice is stamped.

        Raises:
            InvoiceNotFoundError: If no invoice has this id.
            InvalidStatusTransitionError: If the transition is not allowed.
        """
        target = InvoiceStatus(new_status)
        invoice = self.get_invoice(invoice_id)
        if invoice.is_draft and target == InvoiceStatus.ISSUED:
            return self.finalize(invoice_id)

        self._check_transition(invoice, target)
        previous = InvoiceStatus(invoice.status)
        invoice.status = target
        self._session.flush()

        with LogContext.bind(
            tenant_id=invoice.tenant_id,
            invoice_id=str(invoice.id),
            invoice_number=invoice.invoice_number,
        ):
            logger.info(
                "invoice_status_changed",
                extra={"from_status": previous.value, "to_status": target.value},
            )
        return invoice

    def update_details(
        self,
        invoice_id: UUID,
        *,
        notes: str | None = None,
        terms: str | None = None,
        eway_bill_number: str | None = None,
        eway_bill_date: date | None = None,
    ) -> Invoice:
        """
        Update the fields that stay editable after finalization.

        ``None`` leaves a field unchanged.
        """
        invoice = self.get_invoice(invoice_id)
        if notes is not None:
            invoice.notes = notes
        if terms is not None:
            invoice.terms = terms
        if eway_bill_number is not None:
            invoice.eway_bill_number = eway_bill_number
        if eway_bill_date is not None:
            invoice.eway_bill_date = eway_bill_date
        self._session.flush()
        return invoice

    def delete_draft(self, invoice_id: UUID) -> None:
        """
        Delete a draft invoice together with its lines.

        Raises:
            InvoiceNotFoundError: If no invoice has this id.
            InvoiceNotDraftError: If the invoice has been issued.
        """
        invoice = self.get_invoice(invoice_id)
        status = InvoiceStatus(invoice.status)
        if status != InvoiceStatus.DRAFT:
            logger.warning(
                "invoice_delete_rejected",
                extra={"invoice_id": str(invoice.id), "status": status.value},
            )
            raise InvoiceNotDraftError(str(invoice.id), status.value, "delete")

        tenant_id = invoice.tenant_id
        invoice_number = invoice.invoice_number
        self._session.delete(invoice)
        self._session.flush()

        with LogContext.bind(
            tenant_id=tenant_id,
            invoice_id=str(invoice_id),
            invoice_number=invoice_number,
        ):
            logger.info("invoice_deleted")

    def get_totals(self, invoice_id: UUID) -> DocumentTotals:
        """
        Totals of a stored invoice, read from its columns.

        Never recomputed from the lines: what was stored is what was billed.
        """
        invoice = self.get_invoice(invoice_id)
        return DocumentTotals(
            subtotal=invoice.subtotal,
            totals_by_rate=MappingProxyType(dict(sorted(invoice.component_totals.items()))),
            grand_total=invoice.grand_total,
            line_count=len(invoice.lines),
        )

    def _check_transition(self, invoice: Invoice, target: InvoiceStatus) -> None:
        current = InvoiceStatus(invoice.status)
        if can_transition(current, target):
            return
        logger.warning(
            "invoice_status_change_rejected",
            extra={
                "invoice_id": str(invoice.id),
                "from_status": current.value,
                "to_status": target.value,
            },
        )
        raise InvalidStatusTransitionError(str(invoice.id), current.value, target.value)
