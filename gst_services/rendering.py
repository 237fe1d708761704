"""
gst_services.rendering -- Print view of a stored invoice.

Amounts are rounded half-up to the currency's minor unit here and only
here; the stored values keep full precision.  A finalized invoice prints
the amount in words stored when it was issued; a draft spells its rounded
grand total in the unit names of the invoice's currency.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date

from gst_engines.amount_words import (
    INDIAN_NUMBERING,
    RUPEE_UNITS,
    CurrencyUnits,
    NumberingSystem,
    to_words,
)
from gst_kernel.domain.values import Currency, Money
from gst_kernel.models.invoice import Invoice, InvoiceStatus


@dataclass(frozen=True)
class PrintedLine:
    line_no: int
    description: str
    hsn_code: str | None
    quantity: int
    unit_price: Money
    discount: Money
    taxable_amount: Money
    taxes: tuple[tuple[str, Money], ...]
    total_amount: Money


@dataclass(frozen=True)
class PrintedInvoice:
    """Everything a printed invoice shows, already rounded."""

    invoice_number: str
    invoice_date: date
    status: InvoiceStatus
    supply_type: str
    business_name: str
    business_gstin: str | None
    customer_name: str
    customer_gstin: str | None
    place_of_supply: str | None
    lines: tuple[PrintedLine, ...]
    subtotal: Money
    taxes: tuple[tuple[str, Money], ...]
    total_tax: Money
    grand_total: Money
    amount_in_words: str


def currency_units(code: str) -> CurrencyUnits:
    """Unit names and minor digits of a registered currency."""
    currency = Currency(code)
    return CurrencyUnits(
        major=currency.major_unit,
        minor=currency.minor_unit,
        minor_digits=currency.decimal_places,
    )


def _legal_line(words: str, units: CurrencyUnits) -> str:
    if words == "Zero":
        words = f"Zero {units.major}"
    return f"{words} Only"


def amount_in_words_line(
    amount: Money,
    numbering: NumberingSystem = INDIAN_NUMBERING,
    units: CurrencyUnits = RUPEE_UNITS,
) -> str:
    """
    The legal line, e.g. "One Thousand Two Hundred and Fifty Rupees Only".

    Zero reads "Zero Rupees Only".
    """
    return _legal_line(to_words(amount.amount, numbering=numbering, units=units), units)


def render_invoice(
    invoice: Invoice,
    units: CurrencyUnits | None = None,
    numbering: NumberingSystem = INDIAN_NUMBERING,
) -> PrintedInvoice:
    """
    Build the print view from stored columns; nothing is recomputed.

    ``units`` defaults to the names of the invoice's currency.  It and
    ``numbering`` only apply to drafts: an issued invoice prints its stored
    amount in words.
    """
    if units is None:
        units = currency_units(invoice.currency)

    def money(value) -> Money:
        return Money.of(value, invoice.currency).round()

    lines = tuple(
        PrintedLine(
            line_no=line.line_no + 1,
            description=line.description,
            hsn_code=line.hsn_code,
            quantity=int(line.quantity),
            unit_price=money(line.unit_price),
            discount=money(line.discount),
            taxable_amount=money(line.taxable_amount),
            taxes=tuple(
                (name, money(amount)) for name, amount in sorted(line.component_taxes.items())
            ),
            total_amount=money(line.total_amount),
        )
        for line in invoice.lines
    )
    grand_total = money(invoice.grand_total)

    if invoice.amount_in_words:
        words = _legal_line(invoice.amount_in_words, units)
    else:
        words = amount_in_words_line(grand_total, numbering=numbering, units=units)

    return PrintedInvoice(
        invoice_number=invoice.invoice_number,
        invoice_date=invoice.invoice_date,
        status=InvoiceStatus(invoice.status),
        supply_type=invoice.supply_type,
        business_name=invoice.business_name,
        business_gstin=invoice.business_gstin,
        customer_name=invoice.customer_name,
        customer_gstin=invoice.customer_gstin,
        place_of_supply=invoice.place_of_supply,
        lines=lines,
        subtotal=money(invoice.subtotal),
        taxes=tuple(
            (name, money(amount)) for name, amount in sorted(invoice.component_totals.items())
        ),
        total_tax=money(invoice.total_tax),
        grand_total=grand_total,
        amount_in_words=words,
    )
