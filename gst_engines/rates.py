"""
Rate Table - the closed set of permitted tax percentages.

Usage:
    from gst_engines.rates import GST_RATES

    GST_RATES.validate("18")   # Decimal("18")
    GST_RATES.validate(7)      # raises ValidationError
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import Iterable, Iterator

from gst_engines._numeric import HUNDRED, ZERO, to_decimal
from gst_kernel.exceptions import InvalidInputError, ValidationError


@dataclass(frozen=True)
class RateTable:
    """
    Ordered, closed set of permitted percentage rates.

    Rates outside the table are rejected, never clamped to a neighbour.
    Comparison is numeric, so ``Decimal("18.0")`` is the same rate as ``18``.
    """

    rates: tuple[Decimal, ...]

    def __init__(self, rates: Iterable[Decimal | int | str]):
        normalized: list[Decimal] = []
        for raw in rates:
            rate = to_decimal(raw, "rate")
            if rate < ZERO or rate > HUNDRED:
                raise InvalidInputError("rate", raw, "must be between 0 and 100")
            if rate in normalized:
                raise InvalidInputError("rate", raw, "is listed twice")
            normalized.append(rate)
        if not normalized:
            raise InvalidInputError("rates", tuple(rates), "a rate table cannot be empty")
        object.__setattr__(self, "rates", tuple(sorted(normalized)))

    def contains(self, rate: Decimal | int | str) -> bool:
        """True if the rate is one of the permitted percentages."""
        return to_decimal(rate, "rate") in self.rates

    def validate(self, rate: Decimal | int | str, field: str = "gst_rate") -> Decimal:
        """
        Return the rate as a Decimal if it is permitted.

        Raises:
            InvalidInputError: If the rate is not a finite number.
            ValidationError: If the rate is not in the table.
        """
        value = to_decimal(rate, field)
        if value not in self.rates:
            raise ValidationError(
                field=field,
                value=rate,
                reason=f"not a permitted rate; allowed: {', '.join(str(r) for r in self.rates)}",
                allowed=self.rates,
            )
        return value

    def __contains__(self, rate: object) -> bool:
        try:
            return self.contains(rate)  # type: ignore[arg-type]
        except InvalidInputError:
            return False

    def __iter__(self) -> Iterator[Decimal]:
        return iter(self.rates)

    def __len__(self) -> int:
        return len(self.rates)


# Indian GST slabs
GST_RATES = RateTable((0, 3, 5, 12, 18, 28))
