"""
Module: gst_kernel.models.invoice
Responsibility: ORM persistence for invoices and invoice lines -- the stored
    record of what was billed and how much tax was charged.
Architecture position: Kernel > Models.  May import from db/base.py only.
    MUST NOT import from engines, services, config, or outer layers.

Invariants enforced:
    - Invoice number uniqueness per tenant (UNIQUE constraint on
      tenant_id + invoice_number).
    - Status transitions follow VALID_TRANSITIONS (checked by the service
      through can_transition()).
    - Immutability after finalization (ORM listeners in db/immutability.py):
      once an invoice leaves DRAFT, only status, notes, terms and the
      e-way bill number may change, and its lines are frozen.
    - Stored totals are authoritative: subtotal, total_tax, grand_total and
      tax_totals are written once and read back as-is, never recomputed.

Failure modes:
    - IntegrityError on duplicate (tenant_id, invoice_number).
    - ImmutabilityViolationError on UPDATE/DELETE of a finalized invoice.

Audit relevance:
    regime_id and regime_checksum record which tax configuration produced
    the stored amounts.
"""

from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from uuid import UUID

from sqlalchemy import (
    JSON,
    Date,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy import Enum as SAEnum
from sqlalchemy.orm import Mapped, mapped_column, relationship

from gst_kernel.db.base import DecimalAmount, TrackedBase, UUIDString


class InvoiceStatus(str, Enum):
    """Lifecycle status of an invoice.

    Contract: DRAFT is the only editable status.  PAID and CANCELLED are
    terminal.
    """

    DRAFT = "draft"
    ISSUED = "issued"
    PAID = "paid"
    OVERDUE = "overdue"
    CANCELLED = "cancelled"


VALID_TRANSITIONS: dict[InvoiceStatus, frozenset[InvoiceStatus]] = {
    InvoiceStatus.DRAFT: frozenset({InvoiceStatus.ISSUED, InvoiceStatus.CANCELLED}),
    InvoiceStatus.ISSUED: frozenset(
        {InvoiceStatus.PAID, InvoiceStatus.OVERDUE, InvoiceStatus.CANCELLED}
    ),
    InvoiceStatus.OVERDUE: frozenset({InvoiceStatus.PAID, InvoiceStatus.CANCELLED}),
    InvoiceStatus.PAID: frozenset(),
    InvoiceStatus.CANCELLED: frozenset(),
}


def can_transition(from_status: InvoiceStatus, to_status: InvoiceStatus) -> bool:
    return to_status in VALID_TRANSITIONS[InvoiceStatus(from_status)]


def _status_type() -> SAEnum:
    return SAEnum(
        InvoiceStatus,
        native_enum=False,
        length=10,
        values_callable=lambda members: [m.value for m in members],
    )


def _decimal_map(raw: dict | None) -> dict[str, Decimal]:
    return {name: Decimal(value) for name, value in (raw or {}).items()}


class Invoice(TrackedBase):
    """
    Invoice header with party snapshot and stored totals.

    Contract:
        Party details are copied onto the invoice at creation; later edits
        to a customer record never change an issued invoice.

    Guarantees:
        - grand_total == subtotal + total_tax (written together by the
          invoice service from one aggregation).
        - tax_totals maps component name to the decimal string of its total.

    Non-goals:
        - This model does not compute tax.  Computation lives in gst_engines.
    """

    __tablename__ = "invoices"

    __table_args__ = (
        UniqueConstraint("tenant_id", "invoice_number", name="uq_invoice_tenant_number"),
        Index("idx_invoice_tenant_date", "tenant_id", "invoice_date"),
        Index("idx_invoice_status", "status"),
    )

    tenant_id: Mapped[str] = mapped_column(String(64), nullable=False)

    invoice_number: Mapped[str] = mapped_column(String(50), nullable=False)

    invoice_date: Mapped[date] = mapped_column(Date, nullable=False)

    due_date: Mapped[date | None] = mapped_column(Date, nullable=True)

    status: Mapped[InvoiceStatus] = mapped_column(
        _status_type(),
        default=InvoiceStatus.DRAFT,
        nullable=False,
    )

    # "intra_state" or "inter_state"
    supply_type: Mapped[str] = mapped_column(String(20), nullable=False)

    # Party snapshot
    business_name: Mapped[str] = mapped_column(String(200), nullable=False)
    business_address: Mapped[str | None] = mapped_column(Text, nullable=True)
    business_gstin: Mapped[str | None] = mapped_column(String(15), nullable=True)
    customer_name: Mapped[str] = mapped_column(String(200), nullable=False)
    customer_address: Mapped[str | None] = mapped_column(Text, nullable=True)
    customer_gstin: Mapped[str | None] = mapped_column(String(15), nullable=True)
    place_of_supply: Mapped[str | None] = mapped_column(String(2), nullable=True)

    currency: Mapped[str] = mapped_column(String(3), nullable=False)

    # Stored totals
    subtotal: Mapped[Decimal] = mapped_column(DecimalAmount(), nullable=False)
    total_tax: Mapped[Decimal] = mapped_column(DecimalAmount(), nullable=False)
    grand_total: Mapped[Decimal] = mapped_column(DecimalAmount(), nullable=False)
    tax_totals: Mapped[dict] = mapped_column(JSON, nullable=False, default=dict)

    amount_in_words: Mapped[str | None] = mapped_column(String(1000), nullable=True)

    regime_id: Mapped[str] = mapped_column(String(50), nullable=False)
    regime_checksum: Mapped[str] = mapped_column(String(64), nullable=False)

    finalized_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
    )

    # Mutable after finalization
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    terms: Mapped[str | None] = mapped_column(Text, nullable=True)
    eway_bill_number: Mapped[str | None] = mapped_column(String(20), nullable=True)
    eway_bill_date: Mapped[date | None] = mapped_column(Date, nullable=True)

    lines: Mapped[list["InvoiceLine"]] = relationship(
        back_populates="invoice",
        cascade="all, delete-orphan",
        order_by="InvoiceLine.line_no",
        lazy="selectin",
    )

    def __repr__(self) -> str:
        return f"<Invoice {self.invoice_number} status={InvoiceStatus(self.status).value}>"

    @property
    def is_draft(self) -> bool:
        return self.status == InvoiceStatus.DRAFT

    @property
    def is_finalized(self) -> bool:
        """True once the invoice has left DRAFT."""
        return self.status != InvoiceStatus.DRAFT

    @property
    def component_totals(self) -> dict[str, Decimal]:
        """Stored per-component tax totals as Decimals."""
        return _decimal_map(self.tax_totals)


class InvoiceLine(TrackedBase):
    """
    One billed line, with its computed amounts stored alongside the inputs.

    Contract:
        Lines are frozen together with their parent invoice once it is
        finalized.

    Guarantees:
        - total_amount == taxable_amount + sum(tax_amounts).
        - rates and tax_amounts map component name to a decimal string.
    """

    __tablename__ = "invoice_lines"

    __table_args__ = (
        UniqueConstraint("invoice_id", "line_no", name="uq_invoice_line_no"),
        Index("idx_invoice_line_invoice", "invoice_id"),
    )

    invoice_id: Mapped[UUID] = mapped_column(
        UUIDString(),
        ForeignKey("invoices.id"),
        nullable=False,
    )

    # Position within the invoice (0-based, deterministic ordering)
    line_no: Mapped[int] = mapped_column(Integer, nullable=False)

    description: Mapped[str] = mapped_column(String(500), nullable=False)
    hsn_code: Mapped[str | None] = mapped_column(String(20), nullable=True)
    product_id: Mapped[str | None] = mapped_column(String(64), nullable=True)

    quantity: Mapped[Decimal] = mapped_column(DecimalAmount(), nullable=False)
    unit_price: Mapped[Decimal] = mapped_column(DecimalAmount(), nullable=False)
    discount: Mapped[Decimal] = mapped_column(DecimalAmount(), nullable=False)

    rates: Mapped[dict] = mapped_column(JSON, nullable=False, default=dict)
    tax_amounts: Mapped[dict] = mapped_column(JSON, nullable=False, default=dict)

    taxable_amount: Mapped[Decimal] = mapped_column(DecimalAmount(), nullable=False)
    total_amount: Mapped[Decimal] = mapped_column(DecimalAmount(), nullable=False)

    invoice: Mapped["Invoice"] = relationship(back_populates="lines")

    def __repr__(self) -> str:
        return f"<InvoiceLine {self.line_no} {self.description!r} {self.total_amount}>"

    @property
    def component_rates(self) -> dict[str, Decimal]:
        return _decimal_map(self.rates)

    @property
    def component_taxes(self) -> dict[str, Decimal]:
        return _decimal_map(self.tax_amounts)
