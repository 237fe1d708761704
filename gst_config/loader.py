"""
Configuration Loader (``gst_config.loader``).

Responsibility
--------------
Loads a regime's ``root.yaml`` and parses it into a ``TaxRegimeDef``. This
is internal tooling: the single public entry point for runtime config is
``gst_config.get_active_regime()``.

Failure modes
-------------
* Missing YAML file  -> ``FileNotFoundError`` propagates.
* Malformed YAML  -> ``yaml.YAMLError`` propagates.
* Missing required keys  -> ``KeyError`` propagates.
* Invalid date or number  -> ``ValueError``.

``compute_checksum`` produces a deterministic SHA-256 hash of the parsed
data, so the regime governing a stored invoice can be identified later.
"""

from __future__ import annotations

import hashlib
import json
from datetime import date
from decimal import Decimal, InvalidOperation
from pathlib import Path
from typing import Any

import yaml

from gst_config.schema import ComponentsDef, NumberingDef, TaxRegimeDef, UnitsDef


def load_yaml_file(path: Path) -> dict[str, Any]:
    """
    Load a single YAML file and return its contents as a dict.

    Raises:
        FileNotFoundError: if the file does not exist.
        yaml.YAMLError: if the file contains invalid YAML.
    """
    with open(path) as f:
        return yaml.safe_load(f) or {}


def parse_date(value: Any) -> date:
    """Parse a date from YAML (string or date object)."""
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        return date.fromisoformat(value)
    raise ValueError(f"Cannot parse date from {value!r}")


def parse_rate(value: Any) -> Decimal:
    """Parse a percentage; floats go through ``str``."""
    if isinstance(value, bool):
        raise ValueError(f"Cannot parse rate from {value!r}")
    try:
        return Decimal(str(value))
    except InvalidOperation:
        raise ValueError(f"Cannot parse rate from {value!r}") from None


def parse_components(data: dict[str, Any]) -> ComponentsDef:
    intra = data["intra_state"]
    if len(intra) != 2:
        raise ValueError(f"intra_state must name exactly two components, got {intra!r}")
    return ComponentsDef(
        intra_state=(str(intra[0]), str(intra[1])),
        inter_state=str(data["inter_state"]),
    )


def parse_numbering(data: dict[str, Any]) -> NumberingDef:
    return NumberingDef(
        name=data.get("name", "custom"),
        tiers=tuple((int(divisor), str(name)) for divisor, name in data["tiers"]),
    )


def parse_units(data: dict[str, Any]) -> UnitsDef:
    return UnitsDef(
        major=data["major"],
        minor=data.get("minor"),
        minor_digits=int(data.get("minor_digits", 2)),
    )


def parse_regime(data: dict[str, Any]) -> TaxRegimeDef:
    """
    Parse a ``TaxRegimeDef`` from a dict.

    Raises:
        KeyError: if a required key is missing.
        ValueError: if a date, rate or tier cannot be parsed.
    """
    return TaxRegimeDef(
        regime_id=data["regime_id"],
        version=int(data.get("version", 1)),
        jurisdiction=data["jurisdiction"],
        currency=data["currency"],
        effective_from=parse_date(data["effective_from"]),
        rates=tuple(parse_rate(r) for r in data["rates"]),
        components=parse_components(data["components"]),
        numbering=parse_numbering(data["numbering"]),
        units=parse_units(data["units"]),
        invoice_number_prefix=data.get("invoice_number_prefix", "INV"),
        checksum=compute_checksum(data),
    )


def load_regime(regime_dir: Path) -> TaxRegimeDef:
    """Load and parse ``<regime_dir>/root.yaml``."""
    return parse_regime(load_yaml_file(regime_dir / "root.yaml"))


def compute_checksum(data: dict[str, Any]) -> str:
    """
    Compute SHA-256 checksum of canonical JSON serialization.

    Identical ``data`` always produces identical checksums.
    """
    canonical = json.dumps(data, sort_keys=True, default=str)
    return hashlib.sha256(canonical.encode()).hexdigest()
