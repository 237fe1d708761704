"""
Typed Exception Hierarchy for the GST Kernel.

===============================================================================
WHY TYPED EXCEPTIONS
===============================================================================

Callers (an editing UI, an API handler, a print job) must translate errors
into user-facing messages without parsing message strings. Every error here:
  1. Has a TYPED exception class (catch by type, not message)
  2. Has a CODE attribute (machine-readable, API-safe)
  3. Carries structured DATA (the offending field and value)

Example:
    try:
        item = compute_line_item(quantity, unit_price, discount, rates)
    except InvalidInputError as e:
        form.set_error(e.field, e.reason)
    except ValidationError as e:
        form.set_error(e.field, f"choose one of {e.allowed}")

===============================================================================
EXCEPTION HIERARCHY
===============================================================================

    GstKernelError (base)
    |
    +-- ValidationError             value outside an allowed discrete set
    +-- InvalidInputError           numeric precondition violated
    |
    +-- InvoiceError
    |   +-- InvoiceNotFoundError
    |   +-- InvalidStatusTransitionError
    |   +-- EmptyInvoiceError
    |   +-- InvoiceNotDraftError
    |
    +-- ImmutabilityViolationError

===============================================================================
ERROR CODES - QUICK REFERENCE
===============================================================================

Category        | Code                        | When Raised
----------------|-----------------------------|-----------------------------------------
Input           | VALIDATION_ERROR            | Rate not in table, bad GSTIN, CGST+IGST
                | INVALID_INPUT               | Negative qty/price/discount, discount
                |                             | above base, rate outside [0, 100]
----------------|-----------------------------|-----------------------------------------
Invoice         | INVOICE_NOT_FOUND           | Invoice ID doesn't exist
                | INVALID_STATUS_TRANSITION   | e.g. PAID -> DRAFT
                | EMPTY_INVOICE               | Invoice with no lines
                | INVOICE_NOT_DRAFT           | Deleting an invoice that was issued
----------------|-----------------------------|-----------------------------------------
Immutability    | IMMUTABILITY_VIOLATION      | Modifying a finalized invoice's amounts

All errors are raised synchronously to the immediate caller. None of them is
transient, so none of them is retried.
"""


class GstKernelError(Exception):
    """
    Base exception for all GST kernel errors.

    All subclasses must have a `code` class attribute for machine-readable
    error identification.
    """

    code: str = "GST_KERNEL_ERROR"


# Input exceptions


class ValidationError(GstKernelError):
    """A value is outside an allowed discrete set (e.g. a disallowed rate)."""

    code: str = "VALIDATION_ERROR"

    def __init__(self, field: str, value: object, reason: str, allowed: tuple = ()):
        self.field = field
        self.value = value
        self.reason = reason
        self.allowed = allowed
        super().__init__(f"Invalid {field} {value!r}: {reason}")


class InvalidInputError(GstKernelError):
    """A value violates a numeric precondition (e.g. a negative quantity)."""

    code: str = "INVALID_INPUT"

    def __init__(self, field: str, value: object, reason: str):
        self.field = field
        self.value = value
        self.reason = reason
        super().__init__(f"Invalid {field} {value!r}: {reason}")


# Invoice exceptions


class InvoiceError(GstKernelError):
    """Base exception for invoice lifecycle errors."""

    code: str = "INVOICE_ERROR"


class InvoiceNotFoundError(InvoiceError):
    """Invoice with given ID was not found."""

    code: str = "INVOICE_NOT_FOUND"

    def __init__(self, invoice_id: str):
        self.invoice_id = invoice_id
        super().__init__(f"Invoice not found: {invoice_id}")


class InvalidStatusTransitionError(InvoiceError):
    """Requested status change is not allowed from the current status."""

    code: str = "INVALID_STATUS_TRANSITION"

    def __init__(self, invoice_id: str, from_status: str, to_status: str):
        self.invoice_id = invoice_id
        self.from_status = from_status
        self.to_status = to_status
        super().__init__(
            f"Invoice {invoice_id} cannot move from {from_status} to {to_status}"
        )


class EmptyInvoiceError(InvoiceError):
    """An invoice must have at least one line."""

    code: str = "EMPTY_INVOICE"

    def __init__(self):
        super().__init__("At least one invoice line is required")


class InvoiceNotDraftError(InvoiceError):
    """The operation is only allowed while the invoice is a draft."""

    code: str = "INVOICE_NOT_DRAFT"

    def __init__(self, invoice_id: str, status: str, operation: str):
        self.invoice_id = invoice_id
        self.status = status
        self.operation = operation
        super().__init__(
            f"Cannot {operation} invoice {invoice_id}: status is {status}, not draft"
        )


# Immutability exceptions


class ImmutabilityViolationError(GstKernelError):
    """
    Attempted to modify or delete an immutable record.

    Finalized invoices keep their stored totals; they are never recalculated.
    """

    code: str = "IMMUTABILITY_VIOLATION"

    def __init__(self, entity_type: str, entity_id: str, reason: str):
        self.entity_type = entity_type
        self.entity_id = entity_id
        self.reason = reason
        super().__init__(
            f"Immutability violation on {entity_type} {entity_id}: {reason}"
        )
