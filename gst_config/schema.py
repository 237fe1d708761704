"""
TaxRegimeDef schema.

The human-authored, reviewable source artifact for a tax regime. YAML
fragments are parsed into these types by the loader, checked by the
validator, and compiled into a runtime ``TaxRegime``.

Key distinction:
  TaxRegimeDef = source artifact (human-authored, versioned)
  TaxRegime    = runtime artifact (validated, holds engine objects)
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from decimal import Decimal


@dataclass(frozen=True)
class ComponentsDef:
    """Names of the rate components for each kind of supply."""

    intra_state: tuple[str, str]
    inter_state: str


@dataclass(frozen=True)
class NumberingDef:
    """Amount-in-words grouping tiers, largest divisor first."""

    name: str
    tiers: tuple[tuple[int, str], ...]


@dataclass(frozen=True)
class UnitsDef:
    """Currency unit names printed in the amount-in-words line."""

    major: str
    minor: str | None
    minor_digits: int = 2


@dataclass(frozen=True)
class TaxRegimeDef:
    """A complete tax regime as authored in YAML."""

    regime_id: str
    version: int
    jurisdiction: str
    currency: str
    effective_from: date
    rates: tuple[Decimal, ...]
    components: ComponentsDef
    numbering: NumberingDef
    units: UnitsDef
    invoice_number_prefix: str = "INV"
    checksum: str = ""
