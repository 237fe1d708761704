"""
Supply policy - how a single GST rate becomes named rate components.

This is caller-side policy, applied before the line-item calculator and
never inside it:

    intra-state supply  ->  CGST = SGST = rate / 2
    inter-state supply  ->  IGST = rate

``check_component_exclusivity`` is the matching explicit check for rate
mappings that arrive already split (e.g. from an API payload or an import):
CGST/SGST and IGST must never both be charged on one line, and CGST must
equal SGST.
"""

from __future__ import annotations

from decimal import Decimal
from enum import Enum
from typing import Mapping

from gst_engines._numeric import ZERO, to_decimal
from gst_engines.rates import GST_RATES, RateTable
from gst_kernel.exceptions import InvalidInputError, ValidationError

CGST = "CGST"
SGST = "SGST"
IGST = "IGST"


class SupplyType(str, Enum):
    """Whether supplier and place of supply are in the same state."""

    INTRA_STATE = "intra_state"
    INTER_STATE = "inter_state"


def supply_type_for(supplier_state: str, place_of_supply: str) -> SupplyType:
    """
    Classify a supply by comparing two-digit state codes.

    Raises:
        InvalidInputError: If either state code is blank.
    """
    supplier = (supplier_state or "").strip()
    destination = (place_of_supply or "").strip()
    if not supplier:
        raise InvalidInputError("supplier_state", supplier_state, "is required")
    if not destination:
        raise InvalidInputError("place_of_supply", place_of_supply, "is required")
    if supplier == destination:
        return SupplyType.INTRA_STATE
    return SupplyType.INTER_STATE


def split_gst_rate(
    gst_rate: Decimal | int | str,
    supply_type: SupplyType,
    rate_table: RateTable = GST_RATES,
    intra_components: tuple[str, str] = (CGST, SGST),
    inter_component: str = IGST,
) -> dict[str, Decimal]:
    """
    Turn a combined GST rate into rate components.

    Raises:
        ValidationError: If ``gst_rate`` is not in ``rate_table``.
    """
    rate = rate_table.validate(gst_rate)
    if supply_type == SupplyType.INTER_STATE:
        return {inter_component: rate}
    half = rate / 2
    central, state = intra_components
    return {central: half, state: half}


def check_component_exclusivity(
    rates: Mapping[str, Decimal | int | str],
    intra_components: tuple[str, str] = (CGST, SGST),
    inter_component: str = IGST,
) -> None:
    """
    Reject rate mappings that mix intra-state and inter-state components.

    Raises:
        ValidationError: If both the CGST/SGST pair and IGST are non-zero,
            or if CGST and SGST differ.
    """
    central, state = intra_components
    central_rate = to_decimal(rates.get(central, ZERO), f"rate[{central}]")
    state_rate = to_decimal(rates.get(state, ZERO), f"rate[{state}]")
    inter_rate = to_decimal(rates.get(inter_component, ZERO), f"rate[{inter_component}]")

    if inter_rate and (central_rate or state_rate):
        raise ValidationError(
            field="rates",
            value=dict(rates),
            reason=f"{inter_component} cannot be charged together with {central}/{state}",
        )
    if central_rate != state_rate:
        raise ValidationError(
            field="rates",
            value=dict(rates),
            reason=f"{central} and {state} must be equal halves of the GST rate",
        )
