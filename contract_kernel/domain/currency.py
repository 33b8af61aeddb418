"""Currency -- ISO 4217 registry for the currencies contracts are paid in."""

from dataclasses import dataclass
from typing import ClassVar


@dataclass(frozen=True)
class CurrencyInfo:
    """Information about a single ISO 4217 currency."""

    code: str
    decimal_places: int
    name: str

    @property
    def quantize_string(self) -> str:
        """String for Decimal.quantize() to round to this currency's precision."""
        if self.decimal_places == 0:
            return "1"
        return "0." + "0" * self.decimal_places


class CurrencyRegistry:
    """Registry of accepted payroll currencies with their decimal places."""

    _CURRENCIES: ClassVar[dict[str, CurrencyInfo]] = {
        "COP": CurrencyInfo("COP", 2, "Colombian Peso"),
        "USD": CurrencyInfo("USD", 2, "US Dollar"),
        "EUR": CurrencyInfo("EUR", 2, "Euro"),
        "MXN": CurrencyInfo("MXN", 2, "Mexican Peso"),
        "PEN": CurrencyInfo("PEN", 2, "Peruvian Sol"),
        "BRL": CurrencyInfo("BRL", 2, "Brazilian Real"),
        "ARS": CurrencyInfo("ARS", 2, "Argentine Peso"),
        "CLP": CurrencyInfo("CLP", 0, "Chilean Peso"),
        "UYU": CurrencyInfo("UYU", 2, "Uruguayan Peso"),
        "GBP": CurrencyInfo("GBP", 2, "Pound Sterling"),
    }

    DEFAULT_CODE: ClassVar[str] = "COP"

    @classmethod
    def is_valid(cls, code: str) -> bool:
        return code in cls._CURRENCIES

    @classmethod
    def get_info(cls, code: str) -> CurrencyInfo | None:
        return cls._CURRENCIES.get(code)

    @classmethod
    def get_decimal_places(cls, code: str) -> int:
        info = cls._CURRENCIES.get(code)
        if info is None:
            raise ValueError(f"Unknown currency: {code}")
        return info.decimal_places

    @classmethod
    def all_codes(cls) -> frozenset[str]:
        return frozenset(cls._CURRENCIES)
