"""
TaxRegime -- the compiled runtime artifact of a regime definition.

Holds ready-built engine objects (rate table, numbering system, currency
units) so services never touch the YAML-level schema.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from decimal import Decimal

from gst_config.schema import TaxRegimeDef
from gst_engines.amount_words import CurrencyUnits, NumberingSystem, to_words
from gst_engines.rates import RateTable
from gst_engines.supply import SupplyType, split_gst_rate


@dataclass(frozen=True)
class TaxRegime:
    """A validated tax regime, ready for use by services."""

    regime_id: str
    version: int
    jurisdiction: str
    currency: str
    effective_from: date
    rate_table: RateTable
    intra_components: tuple[str, str]
    inter_component: str
    numbering: NumberingSystem
    units: CurrencyUnits
    invoice_number_prefix: str
    checksum: str

    @property
    def component_names(self) -> tuple[str, ...]:
        return (*self.intra_components, self.inter_component)

    def split_rate(self, gst_rate: Decimal | int | str, supply_type: SupplyType) -> dict[str, Decimal]:
        """Split a combined rate into this regime's named components."""
        return split_gst_rate(
            gst_rate,
            supply_type,
            rate_table=self.rate_table,
            intra_components=self.intra_components,
            inter_component=self.inter_component,
        )

    def amount_in_words(self, amount: Decimal | int | str) -> str:
        """Spell an amount with this regime's numbering and unit names."""
        return to_words(amount, numbering=self.numbering, units=self.units)


def compile_regime(config: TaxRegimeDef) -> TaxRegime:
    """
    Build the runtime regime from a validated definition.

    Raises:
        InvalidInputError: If the engine objects reject the definition.
    """
    return TaxRegime(
        regime_id=config.regime_id,
        version=config.version,
        jurisdiction=config.jurisdiction,
        currency=config.currency,
        effective_from=config.effective_from,
        rate_table=RateTable(config.rates),
        intra_components=config.components.intra_state,
        inter_component=config.components.inter_state,
        numbering=NumberingSystem(name=config.numbering.name, tiers=config.numbering.tiers),
        units=CurrencyUnits(
            major=config.units.major,
            minor=config.units.minor,
            minor_digits=config.units.minor_digits,
        ),
        invoice_number_prefix=config.invoice_number_prefix,
        checksum=config.checksum,
    )
