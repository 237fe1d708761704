"""
Module: gst_engines
Responsibility:
    Package entrypoint that re-exports the public symbols of the pure
    calculation engines: rate table, line-item calculator, document
    aggregator, amount-to-words formatter and supply policy.

Architecture position:
    Engines -- pure calculation layer, zero I/O.
    May only import gst_kernel.exceptions (and sibling engine modules).
    MUST NOT import gst_services or gst_config.

Invariants enforced:
    - Decimal-only arithmetic: floats are converted through ``str`` at the
      boundary and never used in a computation.
    - Determinism: identical inputs always produce identical outputs.
    - No rounding inside a running total; rounding happens only at the
      formatting boundary (``DocumentTotals.rounded``, ``Money.round``).
    - No logging and no partial results: an engine either returns a
      complete value or raises.

Failure modes:
    - InvalidInputError on a numeric precondition violation.
    - ValidationError on a value outside an allowed set.

Usage:
    from gst_engines import aggregate, compute_line_item, to_words
"""

from gst_engines.aggregation import (
    DocumentTotals,
    aggregate,
    verify_line_item,
    verify_line_items,
)
from gst_engines.amount_words import (
    DOLLAR_UNITS,
    INDIAN_NUMBERING,
    RUPEE_UNITS,
    WESTERN_NUMBERING,
    CurrencyUnits,
    NumberingSystem,
    integer_to_words,
    to_words,
)
from gst_engines.line_item import (
    LineItem,
    LineItemInput,
    compute_line_item,
    compute_line_item_from_input,
)
from gst_engines.rates import GST_RATES, RateTable
from gst_engines.supply import (
    CGST,
    IGST,
    SGST,
    SupplyType,
    check_component_exclusivity,
    split_gst_rate,
    supply_type_for,
)

__all__ = [
    # Rate table
    "RateTable",
    "GST_RATES",
    # Line items
    "LineItem",
    "LineItemInput",
    "compute_line_item",
    "compute_line_item_from_input",
    # Aggregation
    "DocumentTotals",
    "aggregate",
    "verify_line_item",
    "verify_line_items",
    # Amount in words
    "NumberingSystem",
    "CurrencyUnits",
    "INDIAN_NUMBERING",
    "WESTERN_NUMBERING",
    "RUPEE_UNITS",
    "DOLLAR_UNITS",
    "integer_to_words",
    "to_words",
    # Supply policy
    "SupplyType",
    "CGST",
    "SGST",
    "IGST",
    "supply_type_for",
    "split_gst_rate",
    "check_component_exclusivity",
]
