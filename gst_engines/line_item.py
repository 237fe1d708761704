"""
Line-Item Calculator - taxable amount and per-component tax for one row.

Pure function with no I/O. Rate components are an open, named set: the
calculator treats "CGST", "SGST", "IGST" or any other name identically and
never assumes a fixed number of components.

    taxable_amount     = quantity * unit_price - discount
    tax_amounts[name]  = taxable_amount * rate / 100
    total_amount       = taxable_amount + sum(tax_amounts)

Nothing is rounded here. Rounding to two places happens only when amounts
are formatted for display or print.

Usage:
    from decimal import Decimal
    from gst_engines.line_item import compute_line_item

    item = compute_line_item(
        quantity=2,
        unit_price=Decimal("100"),
        discount=Decimal("0"),
        rates={"CGST": Decimal("9"), "SGST": Decimal("9")},
    )
    item.taxable_amount   # Decimal("200")
    item.total_amount     # Decimal("236")
"""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal
from types import MappingProxyType
from typing import Mapping

from gst_engines._numeric import HUNDRED, ZERO, exact_arithmetic, to_decimal
from gst_kernel.exceptions import InvalidInputError


def _freeze(mapping: Mapping[str, Decimal]) -> Mapping[str, Decimal]:
    return MappingProxyType(dict(mapping))


@dataclass(frozen=True)
class LineItemInput:
    """
    The raw inputs for one billable row, as entered on a document.

    A changed input is a new record (``dataclasses.replace``), never an
    in-place field assignment.
    """

    quantity: int
    unit_price: Decimal
    discount: Decimal = Decimal("0")
    rates: Mapping[str, Decimal] = field(default_factory=dict)
    description: str = ""
    hsn_code: str | None = None
    product_id: str | None = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "rates", _freeze(self.rates))


@dataclass(frozen=True)
class LineItem:
    """
    A computed line item.

    Immutable value object. Produced only by ``compute_line_item``;
    recomputation always starts again from the four inputs.
    """

    quantity: int
    unit_price: Decimal
    discount: Decimal
    rates: Mapping[str, Decimal]
    taxable_amount: Decimal
    tax_amounts: Mapping[str, Decimal]
    total_amount: Decimal

    @property
    def gross_amount(self) -> Decimal:
        """quantity * unit_price, before discount."""
        return self.taxable_amount + self.discount

    @property
    def tax_total(self) -> Decimal:
        """Sum of all component tax amounts."""
        return sum(self.tax_amounts.values(), ZERO)

    @property
    def combined_rate(self) -> Decimal:
        """Sum of all component percentages (e.g. 9 + 9 = 18)."""
        return sum(self.rates.values(), ZERO)

    def tax_for(self, name: str) -> Decimal:
        """Tax amount for one component; zero if the component is absent."""
        return self.tax_amounts.get(name, ZERO)


def _validate_quantity(quantity: object) -> int:
    value = to_decimal(quantity, "quantity")
    if value != value.to_integral_value():
        raise InvalidInputError("quantity", quantity, "must be a whole number")
    if value < ZERO:
        raise InvalidInputError("quantity", quantity, "cannot be negative")
    return int(value)


def _validate_rates(rates: Mapping[str, object]) -> dict[str, Decimal]:
    validated: dict[str, Decimal] = {}
    for name, raw in rates.items():
        if not isinstance(name, str) or not name.strip():
            raise InvalidInputError("rate_name", name, "must be a non-empty string")
        rate = to_decimal(raw, f"rate[{name}]")
        if rate < ZERO or rate > HUNDRED:
            raise InvalidInputError(f"rate[{name}]", raw, "must be between 0 and 100")
        validated[name] = rate
    return validated


def compute_line_item(
    quantity: int,
    unit_price: Decimal | int | str,
    discount: Decimal | int | str = ZERO,
    rates: Mapping[str, Decimal | int | str] | None = None,
) -> LineItem:
    """
    Compute one line item.

    Args:
        quantity: Non-negative whole number of units.
        unit_price: Non-negative price per unit.
        discount: Non-negative discount, at most ``quantity * unit_price``.
        rates: Rate name -> percentage in [0, 100].

    Returns:
        LineItem with taxable, per-component tax and total amounts.

    Raises:
        InvalidInputError: On any negative, non-finite or non-numeric input,
            a discount above the line base, or a percentage outside [0, 100].
            No partial result is produced.
    """
    qty = _validate_quantity(quantity)
    price = to_decimal(unit_price, "unit_price")
    if price < ZERO:
        raise InvalidInputError("unit_price", unit_price, "cannot be negative")
    disc = to_decimal(discount, "discount")
    if disc < ZERO:
        raise InvalidInputError("discount", discount, "cannot be negative")
    components = _validate_rates(rates or {})

    with exact_arithmetic():
        base = qty * price
        if disc > base:
            raise InvalidInputError(
                "discount", discount, f"exceeds quantity * unit_price ({base})"
            )
        taxable = base - disc
        tax_amounts = {
            name: taxable * rate / HUNDRED for name, rate in components.items()
        }
        total = taxable + sum(tax_amounts.values(), ZERO)

    return LineItem(
        quantity=qty,
        unit_price=price,
        discount=disc,
        rates=_freeze(components),
        taxable_amount=taxable,
        tax_amounts=_freeze(tax_amounts),
        total_amount=total,
    )


def compute_line_item_from_input(item: LineItemInput) -> LineItem:
    """Compute a line item from a typed ``LineItemInput`` record."""
    return compute_line_item(
        quantity=item.quantity,
        unit_price=item.unit_price,
        discount=item.discount,
        rates=item.rates,
    )
