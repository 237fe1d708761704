"""Currency -- ISO 4217 registry with minor-unit precision and unit names."""

from dataclasses import dataclass
from decimal import Decimal
from typing import ClassVar


@dataclass(frozen=True)
class CurrencyInfo:
    """Information about a single ISO 4217 currency."""

    code: str
    decimal_places: int
    name: str
    major_unit: str
    minor_unit: str | None = None

    @property
    def quantum(self) -> Decimal:
        """Smallest representable amount, for Decimal.quantize()."""
        return Decimal(1).scaleb(-self.decimal_places)


class CurrencyRegistry:
    """Registry of the ISO 4217 currencies invoices may be issued in."""

    _CURRENCIES: ClassVar[dict[str, CurrencyInfo]] = {
        # South Asia
        "INR": CurrencyInfo("INR", 2, "Indian Rupee", "Rupees", "Paise"),
        "NPR": CurrencyInfo("NPR", 2, "Nepalese Rupee", "Rupees", "Paisa"),
        "PKR": CurrencyInfo("PKR", 2, "Pakistani Rupee", "Rupees", "Paisa"),
        "LKR": CurrencyInfo("LKR", 2, "Sri Lankan Rupee", "Rupees", "Cents"),
        "BDT": CurrencyInfo("BDT", 2, "Bangladeshi Taka", "Taka", "Poisha"),
        "BTN": CurrencyInfo("BTN", 2, "Bhutanese Ngultrum", "Ngultrum", "Chhertum"),
        # Export / cross-border invoicing
        "USD": CurrencyInfo("USD", 2, "US Dollar", "Dollars", "Cents"),
        "EUR": CurrencyInfo("EUR", 2, "Euro", "Euros", "Cents"),
        "GBP": CurrencyInfo("GBP", 2, "Pound Sterling", "Pounds", "Pence"),
        "AED": CurrencyInfo("AED", 2, "UAE Dirham", "Dirhams", "Fils"),
        "SGD": CurrencyInfo("SGD", 2, "Singapore Dollar", "Dollars", "Cents"),
        "AUD": CurrencyInfo("AUD", 2, "Australian Dollar", "Dollars", "Cents"),
        "CAD": CurrencyInfo("CAD", 2, "Canadian Dollar", "Dollars", "Cents"),
        "JPY": CurrencyInfo("JPY", 0, "Japanese Yen", "Yen"),
        "KWD": CurrencyInfo("KWD", 3, "Kuwaiti Dinar", "Dinars", "Fils"),
        "OMR": CurrencyInfo("OMR", 3, "Omani Rial", "Rials", "Baisa"),
    }

    @classmethod
    def is_valid(cls, code: str) -> bool:
        """Check if a currency code is registered."""
        return code in cls._CURRENCIES

    @classmethod
    def get_info(cls, code: str) -> CurrencyInfo | None:
        """Get information about a currency, or None if unknown."""
        return cls._CURRENCIES.get(code)

    @classmethod
    def get_decimal_places(cls, code: str) -> int:
        """
        Get the number of minor-unit digits for a currency.

        Raises:
            KeyError: If the currency code is not registered.
        """
        return cls._CURRENCIES[code].decimal_places

    @classmethod
    def all_codes(cls) -> frozenset[str]:
        """Get all registered currency codes."""
        return frozenset(cls._CURRENCIES)
