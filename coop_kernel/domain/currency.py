"""Currency -- ISO 4217 registry and minor-unit precision."""

from dataclasses import dataclass
from decimal import Decimal
from typing import ClassVar


@dataclass(frozen=True)
class CurrencyInfo:
    """Information about a single ISO 4217 currency."""

    code: str
    decimal_places: int
    name: str

    @property
    def minor_unit(self) -> Decimal:
        """Value of one minor unit in major units (0.01 for IDR, 1 for JPY)."""
        return Decimal(1).scaleb(-self.decimal_places)

    @property
    def minor_units_per_major(self) -> int:
        """How many minor units make one major unit."""
        return 10**self.decimal_places


class CurrencyRegistry:
    """Registry of the ISO 4217 currencies the cooperative may book in."""

    _CURRENCIES: ClassVar[dict[str, CurrencyInfo]] = {
        # Home currency
        "IDR": CurrencyInfo("IDR", 2, "Indonesian Rupiah"),
        # Regional
        "MYR": CurrencyInfo("MYR", 2, "Malaysian Ringgit"),
        "SGD": CurrencyInfo("SGD", 2, "Singapore Dollar"),
        "PHP": CurrencyInfo("PHP", 2, "Philippine Peso"),
        "THB": CurrencyInfo("THB", 2, "Thai Baht"),
        "VND": CurrencyInfo("VND", 0, "Vietnamese Dong"),
        "KES": CurrencyInfo("KES", 2, "Kenyan Shilling"),
        "UGX": CurrencyInfo("UGX", 0, "Ugandan Shilling"),
        # Majors
        "USD": CurrencyInfo("USD", 2, "US Dollar"),
        "EUR": CurrencyInfo("EUR", 2, "Euro"),
        "GBP": CurrencyInfo("GBP", 2, "Pound Sterling"),
        "JPY": CurrencyInfo("JPY", 0, "Japanese Yen"),
        # Three decimal places
        "KWD": CurrencyInfo("KWD", 3, "Kuwaiti Dinar"),
        "BHD": CurrencyInfo("BHD", 3, "Bahraini Dinar"),
    }

    @classmethod
    def is_valid(cls, code: str) -> bool:
        """Check if a currency code is registered."""
        if not code or not isinstance(code, str):
            return False
        return code.upper().strip() in cls._CURRENCIES

    @classmethod
    def get_info(cls, code: str) -> CurrencyInfo | None:
        """Get currency information by code."""
        if not code or not isinstance(code, str):
            return None
        return cls._CURRENCIES.get(code.upper().strip())

    @classmethod
    def get_decimal_places(cls, code: str) -> int:
        """Get decimal places for a currency."""
        info = cls.get_info(code)
        if info is None:
            raise ValueError(f"Unknown currency code: {code!r}")
        return info.decimal_places

    @classmethod
    def validate(cls, code: str) -> str:
        """Validate and normalize a currency code."""
        if not code or not isinstance(code, str):
            raise ValueError(f"Invalid currency code: {code!r}")

        normalized = code.upper().strip()
        if len(normalized) != 3:
            raise ValueError(f"Currency code must be 3 characters: {code!r}")
        if normalized not in cls._CURRENCIES:
            raise ValueError(f"Unsupported ISO 4217 currency code: {code!r}")
        return normalized

    @classmethod
    def all_codes(cls) -> frozenset[str]:
        """Get all registered currency codes."""
        return frozenset(cls._CURRENCIES.keys())
