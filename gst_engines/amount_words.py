"""
Amount-to-Words Formatter - the legal "amount in words" line on a printed
document.

The integer part is decomposed by a ``NumberingSystem``: an ordered table
of ``(divisor, name)`` tiers. Indian grouping (Crore, Lakh, Thousand) is
the default; Western grouping (Billion, Million, Thousand) is provided, and
any other table can be supplied. What remains below the smallest tier is
spelled in chunks under one thousand:

    1250.50  ->  "One Thousand Two Hundred and Fifty Rupees and Fifty Paise"
    100000   ->  "One Lakh Rupees"
    0.50     ->  "Fifty Paise"
    0        ->  "Zero"

Usage:
    from decimal import Decimal
    from gst_engines.amount_words import to_words, WESTERN_NUMBERING, DOLLAR_UNITS

    to_words(Decimal("1250.50"))
    to_words(Decimal("2500000"), numbering=WESTERN_NUMBERING, units=DOLLAR_UNITS)
    # "Two Million Five Hundred Thousand Dollars"
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation

from gst_engines._numeric import ZERO, exact_arithmetic, to_decimal
from gst_kernel.exceptions import InvalidInputError

_ONES = (
    "", "One", "Two", "Three", "Four", "Five", "Six", "Seven", "Eight", "Nine",
)
_TEENS = (
    "Ten", "Eleven", "Twelve", "Thirteen", "Fourteen",
    "Fifteen", "Sixteen", "Seventeen", "Eighteen", "Nineteen",
)
_TENS = (
    "", "", "Twenty", "Thirty", "Forty", "Fifty", "Sixty", "Seventy", "Eighty", "Ninety",
)


@dataclass(frozen=True)
class NumberingSystem:
    """
    Place-value grouping tiers, largest first.

    The smallest divisor must not exceed 1000, since the remainder below it
    is spelled as a chunk under one thousand.
    """

    name: str
    tiers: tuple[tuple[int, str], ...]

    def __post_init__(self) -> None:
        divisors = [divisor for divisor, _ in self.tiers]
        if not divisors:
            raise InvalidInputError("tiers", self.tiers, "at least one tier is required")
        if any(d <= 1 for d in divisors):
            raise InvalidInputError("tiers", self.tiers, "divisors must be greater than 1")
        if any(a <= b for a, b in zip(divisors, divisors[1:])):
            raise InvalidInputError("tiers", self.tiers, "divisors must be strictly descending")
        if divisors[-1] > 1000:
            raise InvalidInputError("tiers", self.tiers, "smallest divisor must be at most 1000")


@dataclass(frozen=True)
class CurrencyUnits:
    """Names of the major and minor currency units, and minor-unit digits."""

    major: str
    minor: str | None
    minor_digits: int = 2

    def __post_init__(self) -> None:
        if self.minor_digits < 0:
            raise InvalidInputError("minor_digits", self.minor_digits, "cannot be negative")
        if self.minor_digits and not self.minor:
            raise InvalidInputError("minor", self.minor, "a minor unit needs a name")


INDIAN_NUMBERING = NumberingSystem(
    name="indian",
    tiers=((10_000_000, "Crore"), (100_000, "Lakh"), (1_000, "Thousand")),
)

WESTERN_NUMBERING = NumberingSystem(
    name="western",
    tiers=(
        (1_000_000_000_000, "Trillion"),
        (1_000_000_000, "Billion"),
        (1_000_000, "Million"),
        (1_000, "Thousand"),
    ),
)

RUPEE_UNITS = CurrencyUnits(major="Rupees", minor="Paise", minor_digits=2)
DOLLAR_UNITS = CurrencyUnits(major="Dollars", minor="Cents", minor_digits=2)


def _below_thousand(n: int) -> str:
    """Spell 0 < n < 1000; returns "" for 0."""
    if n == 0:
        return ""
    if n < 10:
        return _ONES[n]
    if n < 20:
        return _TEENS[n - 10]
    if n < 100:
        tens, ones = divmod(n, 10)
        return _TENS[tens] + (" " + _ONES[ones] if ones else "")
    hundreds, rest = divmod(n, 100)
    words = _ONES[hundreds] + " Hundred"
    if rest:
        words += " and " + _below_thousand(rest)
    return words


def integer_to_words(n: int, numbering: NumberingSystem = INDIAN_NUMBERING) -> str:
    """
    Spell a non-negative integer using the given tier table.

    A tier count larger than the next tier up (e.g. 1000 crore) is spelled
    recursively with the same table: "One Thousand Crore".
    """
    if n < 0:
        raise InvalidInputError("amount", n, "cannot be negative")
    if n == 0:
        return "Zero"

    parts: list[str] = []
    remainder = n
    for divisor, name in numbering.tiers:
        if remainder >= divisor:
            count, remainder = divmod(remainder, divisor)
            parts.append(f"{integer_to_words(count, numbering)} {name}")
    if remainder:
        parts.append(_below_thousand(remainder))
    return " ".join(parts)


def to_words(
    amount: Decimal | int | str,
    numbering: NumberingSystem = INDIAN_NUMBERING,
    units: CurrencyUnits = RUPEE_UNITS,
) -> str:
    """
    Convert a currency amount to words.

    The amount is rounded half-up to ``units.minor_digits`` first, so
    ``99.999`` reads as "One Hundred Rupees".

    Raises:
        InvalidInputError: If the amount is negative, not finite, not a
            number, or too large for the arithmetic precision.
    """
    value = to_decimal(amount, "amount")
    if value < ZERO:
        raise InvalidInputError("amount", amount, "cannot be negative")

    scale = 10 ** units.minor_digits
    try:
        with exact_arithmetic():
            rounded = value.quantize(Decimal(1).scaleb(-units.minor_digits), rounding=ROUND_HALF_UP)
            major, minor = divmod(int(rounded * scale), scale)
    except InvalidOperation:
        raise InvalidInputError("amount", amount, "has too many digits to spell") from None

    if major == 0 and minor == 0:
        return "Zero"

    clauses: list[str] = []
    if major:
        clauses.append(f"{integer_to_words(major, numbering)} {units.major}")
    if minor:
        clauses.append(f"{integer_to_words(minor, numbering)} {units.minor}")
    return " and ".join(clauses)
