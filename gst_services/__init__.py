"""
gst_services -- stateful orchestration over the engines and the kernel.

Invoice creation, numbering and lifecycle live in ``invoice_service``;
the print view lives in ``rendering``.
"""

from gst_services.invoice_service import (
    ComputedDocument,
    InvoiceHeader,
    InvoiceLineRequest,
    InvoiceService,
)
from gst_services.rendering import (
    PrintedInvoice,
    PrintedLine,
    amount_in_words_line,
    currency_units,
    render_invoice,
)

__all__ = [
    "InvoiceService",
    "InvoiceHeader",
    "InvoiceLineRequest",
    "ComputedDocument",
    "PrintedInvoice",
    "PrintedLine",
    "amount_in_words_line",
    "currency_units",
    "render_invoice",
]
