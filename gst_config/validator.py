"""
Configuration Validator (``gst_config.validator``).

Validates a ``TaxRegimeDef`` before it is compiled into a runtime
``TaxRegime``.

Invariants enforced
-------------------
* Rates are unique and within [0, 100]; at least one rate is declared.
* Numbering tiers are strictly descending, greater than 1, and the
  smallest divisor is at most 1000.
* The currency is a registered ISO 4217 code and its minor-unit digits
  agree with the regime's units.
* Component names are non-empty and distinct.

Errors block compilation; warnings do not.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from gst_config.schema import TaxRegimeDef
from gst_kernel.domain.currency import CurrencyRegistry


@dataclass
class ConfigValidationResult:
    """
    Result of configuration validation.

    ``is_valid`` returns ``True`` only when ``errors`` is empty.
    """

    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)

    @property
    def is_valid(self) -> bool:
        return len(self.errors) == 0

    def add_error(self, msg: str) -> None:
        self.errors.append(msg)

    def add_warning(self, msg: str) -> None:
        self.warnings.append(msg)


def validate_regime(config: TaxRegimeDef) -> ConfigValidationResult:
    """Validate a tax regime definition."""
    result = ConfigValidationResult()
    _validate_rates(config, result)
    _validate_components(config, result)
    _validate_numbering(config, result)
    _validate_currency(config, result)
    if not config.invoice_number_prefix.strip():
        result.add_error("invoice_number_prefix must not be blank")
    return result


def _validate_rates(config: TaxRegimeDef, result: ConfigValidationResult) -> None:
    if not config.rates:
        result.add_error("at least one rate is required")
    seen = set()
    for rate in config.rates:
        if not rate.is_finite() or rate < 0 or rate > 100:
            result.add_error(f"rate {rate} must be between 0 and 100")
        if rate in seen:
            result.add_error(f"rate {rate} is listed twice")
        seen.add(rate)
    if 0 not in seen:
        result.add_warning("no 0% rate declared; exempt supplies cannot be invoiced")


def _validate_components(config: TaxRegimeDef, result: ConfigValidationResult) -> None:
    names = [*config.components.intra_state, config.components.inter_state]
    if any(not name.strip() for name in names):
        result.add_error("component names must not be blank")
    if len(set(names)) != len(names):
        result.add_error(f"component names must be distinct: {names}")


def _validate_numbering(config: TaxRegimeDef, result: ConfigValidationResult) -> None:
    divisors = [divisor for divisor, _ in config.numbering.tiers]
    if not divisors:
        result.add_error("numbering needs at least one tier")
        return
    if any(d <= 1 for d in divisors):
        result.add_error("numbering divisors must be greater than 1")
    if any(a <= b for a, b in zip(divisors, divisors[1:])):
        result.add_error(f"numbering divisors must be strictly descending: {divisors}")
    if divisors[-1] > 1000:
        result.add_error(f"smallest numbering divisor {divisors[-1]} exceeds 1000")


def _validate_currency(config: TaxRegimeDef, result: ConfigValidationResult) -> None:
    info = CurrencyRegistry.get_info(config.currency)
    if info is None:
        result.add_error(f"unknown currency {config.currency!r}")
        return
    if info.decimal_places != config.units.minor_digits:
        result.add_error(
            f"units.minor_digits={config.units.minor_digits} does not match "
            f"{config.currency} precision ({info.decimal_places})"
        )
    if config.units.minor_digits and not config.units.minor:
        result.add_error("units.minor is required when minor_digits > 0")
