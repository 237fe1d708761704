"""ORM models."""

from gst_kernel.models.invoice import (
    VALID_TRANSITIONS,
    Invoice,
    InvoiceLine,
    InvoiceStatus,
    can_transition,
)

__all__ = [
    "Invoice",
    "InvoiceLine",
    "InvoiceStatus",
    "VALID_TRANSITIONS",
    "can_transition",
]
