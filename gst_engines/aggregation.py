"""
Document Aggregator - sums computed line items into document totals.

    subtotal              = sum(taxable_amount)
    totals_by_rate[name]  = sum(tax_amounts[name])
    grand_total           = subtotal + sum(totals_by_rate)

Sums are exact decimal sums, so shuffling the line items never changes a
total. The aggregator trusts that its inputs came from
``compute_line_item``; ``verify_line_items`` is a separate, explicit pass
for callers that want to re-check them (e.g. lines read back from storage).
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal
from types import MappingProxyType
from typing import Iterable, Mapping

from gst_engines._numeric import HUNDRED, ZERO, exact_arithmetic
from gst_engines.line_item import LineItem
from gst_kernel.exceptions import InvalidInputError


@dataclass(frozen=True)
class DocumentTotals:
    """
    Document-level totals.

    Immutable value object. ``totals_by_rate`` is keyed by component name
    in sorted order, so two totals built from the same lines compare equal
    whatever order the lines arrived in.
    """

    subtotal: Decimal
    totals_by_rate: Mapping[str, Decimal]
    grand_total: Decimal
    line_count: int = 0

    @classmethod
    def empty(cls) -> DocumentTotals:
        return cls(
            subtotal=ZERO,
            totals_by_rate=MappingProxyType({}),
            grand_total=ZERO,
            line_count=0,
        )

    @property
    def total_tax(self) -> Decimal:
        """Sum of all component totals."""
        return sum(self.totals_by_rate.values(), ZERO)

    def tax_for(self, name: str) -> Decimal:
        """Total for one component; zero if no line carried it."""
        return self.totals_by_rate.get(name, ZERO)

    def rounded(self, places: int = 2) -> DocumentTotals:
        """
        Copy with every amount rounded half-up to ``places`` digits.

        For display and print only. Never feed a rounded copy back into
        further arithmetic.
        """
        quantum = Decimal(1).scaleb(-places)

        def q(value: Decimal) -> Decimal:
            return value.quantize(quantum, rounding=ROUND_HALF_UP)

        return DocumentTotals(
            subtotal=q(self.subtotal),
            totals_by_rate=MappingProxyType(
                {name: q(amount) for name, amount in self.totals_by_rate.items()}
            ),
            grand_total=q(self.grand_total),
            line_count=self.line_count,
        )


def aggregate(line_items: Iterable[LineItem]) -> DocumentTotals:
    """
    Sum line items into document totals.

    An empty sequence yields all-zero totals, not an error.
    """
    subtotal = ZERO
    by_rate: dict[str, Decimal] = {}
    count = 0

    with exact_arithmetic():
        for item in line_items:
            subtotal += item.taxable_amount
            for name, amount in item.tax_amounts.items():
                by_rate[name] = by_rate.get(name, ZERO) + amount
            count += 1
        grand_total = subtotal + sum(by_rate.values(), ZERO)

    return DocumentTotals(
        subtotal=subtotal,
        totals_by_rate=MappingProxyType({name: by_rate[name] for name in sorted(by_rate)}),
        grand_total=grand_total,
        line_count=count,
    )


def verify_line_item(item: LineItem) -> None:
    """
    Re-derive every computed field of a line item and compare.

    Raises:
        InvalidInputError: If any derived field disagrees with its inputs.
    """
    with exact_arithmetic():
        expected_taxable = item.quantity * item.unit_price - item.discount
        if expected_taxable != item.taxable_amount:
            raise InvalidInputError(
                "taxable_amount",
                item.taxable_amount,
                f"expected {expected_taxable} from quantity, unit_price and discount",
            )
        if set(item.rates) != set(item.tax_amounts):
            raise InvalidInputError(
                "tax_amounts",
                dict(item.tax_amounts),
                "components do not match the line's rates",
            )
        for name, rate in item.rates.items():
            expected_tax = item.taxable_amount * rate / HUNDRED
            if expected_tax != item.tax_amounts[name]:
                raise InvalidInputError(
                    f"tax_amounts[{name}]",
                    item.tax_amounts[name],
                    f"expected {expected_tax} at {rate}%",
                )
        expected_total = item.taxable_amount + sum(item.tax_amounts.values(), ZERO)
        if expected_total != item.total_amount:
            raise InvalidInputError(
                "total_amount",
                item.total_amount,
                f"expected {expected_total}",
            )


def verify_line_items(line_items: Iterable[LineItem]) -> None:
    """Run ``verify_line_item`` over every line; stops at the first failure."""
    for item in line_items:
        verify_line_item(item)
