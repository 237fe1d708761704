"""
Values -- Immutable, self-validating domain value objects.

Responsibility:
    Provides the value types used around the calculation core: Currency and
    Money for the presentation boundary (printing, persistence snapshots),
    and Gstin for party identification on invoices.

Architecture position:
    Kernel > Domain -- pure functional core, zero I/O.
    No outward dependencies except gst_kernel.domain.currency and
    gst_kernel.exceptions.

Invariants enforced:
    - Currency codes are validated at construction time.
    - Money amounts are always Decimal (never float).
    - Rounding precision is derived from the currency, never hardcoded.
    - A Gstin always matches the 15-character GSTIN layout.

Failure modes:
    - ValueError on construction with invalid amounts or currencies.
    - ValidationError on a malformed GSTIN.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation

from gst_kernel.domain.currency import CurrencyRegistry
from gst_kernel.exceptions import ValidationError


@dataclass(frozen=True, slots=True)
class Currency:
    """
    ISO 4217 currency code value object.

    Guarantees:
        - Immutable and hashable
        - code is always uppercase and stripped of whitespace
        - code is always registered in CurrencyRegistry
    """

    code: str

    def __post_init__(self) -> None:
        normalized = self.code.upper().strip() if self.code else ""
        if not CurrencyRegistry.is_valid(normalized):
            raise ValueError(f"Invalid ISO 4217 currency code: {self.code}")
        object.__setattr__(self, "code", normalized)

    @property
    def decimal_places(self) -> int:
        """Number of minor-unit digits for this currency."""
        return CurrencyRegistry.get_decimal_places(self.code)

    @property
    def major_unit(self) -> str:
        """Plural name of the major unit (e.g. "Rupees")."""
        return CurrencyRegistry.get_info(self.code).major_unit

    @property
    def minor_unit(self) -> str | None:
        """Plural name of the minor unit (e.g. "Paise"), if any."""
        return CurrencyRegistry.get_info(self.code).minor_unit

    def __str__(self) -> str:
        return self.code

    def __repr__(self) -> str:
        return f"Currency({self.code!r})"


@dataclass(frozen=True, slots=True)
class Money:
    """
    Monetary amount value object.

    Contract:
        Pairs a Decimal amount with its Currency.

    Non-goals:
        - Does NOT auto-round -- callers explicitly call .round() at the
          formatting boundary.
    """

    amount: Decimal
    currency: Currency

    def __post_init__(self) -> None:
        if isinstance(self.amount, float):
            raise ValueError(f"Money amount must not be a float: {self.amount!r}")
        if not isinstance(self.amount, Decimal):
            try:
                object.__setattr__(self, "amount", Decimal(str(self.amount)))
            except (InvalidOperation, ValueError) as e:
                raise ValueError(f"Invalid amount: {self.amount}") from e
        if not self.amount.is_finite():
            raise ValueError(f"Invalid amount: {self.amount}")

        if isinstance(self.currency, str):
            object.__setattr__(self, "currency", Currency(self.currency))
        elif not isinstance(self.currency, Currency):
            raise TypeError(f"currency must be Currency or str, got {type(self.currency)}")

    @classmethod
    def of(cls, amount: Decimal | str | int, currency: str | Currency) -> Money:
        """
        Factory method for creating Money.

        Raises:
            ValueError: If amount cannot be converted or currency is invalid.
        """
        if isinstance(amount, (str, int)):
            amount = Decimal(str(amount))
        if isinstance(currency, str):
            currency = Currency(currency)
        return cls(amount=amount, currency=currency)

    @classmethod
    def zero(cls, currency: str | Currency) -> Money:
        """Create a zero amount in the given currency."""
        return cls.of(0, currency)

    @property
    def is_zero(self) -> bool:
        return self.amount == 0

    @property
    def is_negative(self) -> bool:
        return self.amount < 0

    def round(self, rounding: str = ROUND_HALF_UP) -> Money:
        """Round to the currency's minor-unit precision."""
        quantum = Decimal(1).scaleb(-self.currency.decimal_places)
        return Money(
            amount=self.amount.quantize(quantum, rounding=rounding),
            currency=self.currency,
        )

    def __str__(self) -> str:
        return f"{self.amount} {self.currency.code}"

    def __repr__(self) -> str:
        return f"Money({self.amount!r}, {self.currency!r})"


_GSTIN_PATTERN = re.compile(r"^[0-9]{2}[A-Z]{5}[0-9]{4}[A-Z][1-9A-Z]Z[0-9A-Z]$")


@dataclass(frozen=True, slots=True)
class Gstin:
    """
    GST identification number.

    Layout: 2-digit state code, 10-character PAN, entity number, the
    literal ``Z``, and a check character. The check character is not
    verified here.
    """

    value: str

    def __post_init__(self) -> None:
        normalized = self.value.upper().strip() if isinstance(self.value, str) else ""
        if not _GSTIN_PATTERN.match(normalized):
            raise ValidationError(
                field="gstin",
                value=self.value,
                reason="must be a 15-character GSTIN (e.g. 27AAPFU0939F1ZV)",
            )
        object.__setattr__(self, "value", normalized)

    @property
    def state_code(self) -> str:
        """Two-digit state code the registration belongs to."""
        return self.value[:2]

    @property
    def pan(self) -> str:
        """The PAN embedded in the GSTIN."""
        return self.value[2:12]

    def __str__(self) -> str:
        return self.value
