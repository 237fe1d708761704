"""
ORM-Level Immutability Enforcement for finalized invoices.

===============================================================================
HOW IT WORKS
===============================================================================

SQLAlchemy fires events before INSERT/UPDATE/DELETE operations reach the
database.  We register listeners that intercept these events and check the
finalization invariant:

    session.flush()
         |
         v
    [before_update event] --> _check_invoice_immutability() --> ImmutabilityViolationError
         |
         v
    [before_delete event] --> _check_invoice_delete() ---------> ImmutabilityViolationError
         |
         v
    SQL sent to database (only if checks pass)

If a check fails, ImmutabilityViolationError is raised, the flush aborts and
the database is never modified.

===============================================================================
PROTECTED ENTITIES
===============================================================================

Entity        | When Immutable                     | Still mutable
--------------|------------------------------------|------------------------------
Invoice       | After status leaves DRAFT          | status, notes, terms,
              |                                    | eway_bill_number, eway_bill_date,
              |                                    | updated_at
InvoiceLine   | When parent invoice is finalized   | nothing

===============================================================================
DESIGN DECISIONS
===============================================================================

1. "WAS FINALIZED" NOT "IS FINALIZED".
   Finalization itself sets status, finalized_at and amount_in_words in one
   flush.  We allow the DRAFT -> ISSUED transition and block every change
   after it, detected through SQLAlchemy's attribute history.

2. INLINE IMPORTS.
   Models import from db, db imports from models.  Inline imports defer
   resolution until the listener runs.

===============================================================================
USAGE
===============================================================================

Called once at application startup, after models are imported:

    from gst_kernel.db.immutability import register_immutability_listeners
    register_immutability_listeners()

Tests that need to bypass enforcement call
``unregister_immutability_listeners()`` and re-register afterwards.
"""

from sqlalchemy import event, inspect
from sqlalchemy.orm.attributes import get_history

from gst_kernel.exceptions import ImmutabilityViolationError
from gst_kernel.logging_config import get_logger

logger = get_logger("db.immutability")

# Fields that may change on an invoice after it has been finalized
INVOICE_MUTABLE_FIELDS = frozenset(
    {"status", "notes", "terms", "eway_bill_number", "eway_bill_date", "updated_at"}
)


def _blocked(entity_type: str, entity_id, operation: str, reason: str, field: str | None = None):
    extra = {
        "entity_type": entity_type,
        "entity_id": str(entity_id),
        "operation": operation,
    }
    if field is not None:
        extra["field"] = field
    logger.error("immutability_violation_blocked", extra=extra)
    return ImmutabilityViolationError(
        entity_type=entity_type,
        entity_id=str(entity_id),
        reason=reason,
    )


def _was_finalized(target) -> bool:
    """True if the invoice had already left DRAFT before this flush."""
    from gst_kernel.models.invoice import InvoiceStatus

    status_history = get_history(target, "status")
    if status_history.deleted:
        # Status is changing; judge by the value stored before.
        return status_history.deleted[0] != InvoiceStatus.DRAFT
    if status_history.added:
        # First assignment on a pending object; nothing stored yet.
        return False
    return target.status != InvoiceStatus.DRAFT


def _check_invoice_immutability(mapper, connection, target):
    """
    Prevent changes to a finalized invoice other than the mutable fields.

    The lines collection is covered too: adding or removing a line marks
    the invoice dirty and shows up in the ``lines`` history.
    """
    from gst_kernel.models.invoice import Invoice

    if not isinstance(target, Invoice):
        return
    if not _was_finalized(target):
        return

    insp = inspect(target)
    for attr in insp.attrs:
        if attr.key in INVOICE_MUTABLE_FIELDS:
            continue
        if attr.history.has_changes():
            raise _blocked(
                "Invoice",
                target.id,
                "UPDATE",
                f"Cannot modify field '{attr.key}' on finalized invoice",
                field=attr.key,
            )


def _check_invoice_delete(mapper, connection, target):
    """Prevent deletion of finalized invoices."""
    from gst_kernel.models.invoice import Invoice

    if not isinstance(target, Invoice):
        return

    if target.is_finalized:
        raise _blocked(
            "Invoice",
            target.id,
            "DELETE",
            "Finalized invoices cannot be deleted",
        )


def _parent_finalized(target) -> bool:
    return target.invoice is not None and target.invoice.is_finalized


def _check_invoice_line_insert(mapper, connection, target):
    """Prevent adding lines to a finalized invoice."""
    from gst_kernel.models.invoice import InvoiceLine

    if not isinstance(target, InvoiceLine):
        return

    if _parent_finalized(target):
        raise _blocked(
            "InvoiceLine",
            target.id,
            "INSERT",
            "Lines cannot be added to a finalized invoice",
        )


def _check_invoice_line_immutability(mapper, connection, target):
    """Prevent updates to lines of a finalized invoice."""
    from gst_kernel.models.invoice import InvoiceLine

    if not isinstance(target, InvoiceLine):
        return

    if _parent_finalized(target):
        raise _blocked(
            "InvoiceLine",
            target.id,
            "UPDATE",
            "Invoice lines cannot be modified after the invoice is finalized",
        )


def _check_invoice_line_delete(mapper, connection, target):
    """Prevent deletion of lines of a finalized invoice."""
    from gst_kernel.models.invoice import InvoiceLine

    if not isinstance(target, InvoiceLine):
        return

    if _parent_finalized(target):
        raise _blocked(
            "InvoiceLine",
            target.id,
            "DELETE",
            "Invoice lines cannot be deleted after the invoice is finalized",
        )


def _listeners():
    from gst_kernel.models.invoice import Invoice, InvoiceLine

    return (
        (Invoice, "before_update", _check_invoice_immutability),
        (Invoice, "before_delete", _check_invoice_delete),
        (InvoiceLine, "before_insert", _check_invoice_line_insert),
        (InvoiceLine, "before_update", _check_invoice_line_immutability),
        (InvoiceLine, "before_delete", _check_invoice_line_delete),
    )


def register_immutability_listeners():
    """
    Register all immutability enforcement event listeners.

    Safe to call more than once.
    """
    for target, event_name, listener_fn in _listeners():
        if not event.contains(target, event_name, listener_fn):
            event.listen(target, event_name, listener_fn)

    logger.debug("immutability_listeners_registered")


def unregister_immutability_listeners():
    """
    Remove immutability enforcement event listeners.

    WARNING: Only use this in tests that intentionally violate immutability
    rules.
    """
    for target, event_name, listener_fn in _listeners():
        if event.contains(target, event_name, listener_fn):
            event.remove(target, event_name, listener_fn)
