"""Currency -- ISO 4217 registry and precision-derived rounding."""

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
    def quantum(self) -> Decimal:
        """Smallest unit of the currency, as a Decimal exponent for quantize()."""
        return Decimal(1).scaleb(-self.decimal_places)


class CurrencyRegistry:
    """Registry of ISO 4217 currencies a document may be issued in."""

    _CURRENCIES: ClassVar[dict[str, CurrencyInfo]] = {
        info.code: info
        for info in (
            # Two decimal places
            CurrencyInfo("USD", 2, "US Dollar"),
            CurrencyInfo("EUR", 2, "Euro"),
            CurrencyInfo("GBP", 2, "Pound Sterling"),
            CurrencyInfo("CHF", 2, "Swiss Franc"),
            CurrencyInfo("CAD", 2, "Canadian Dollar"),
            CurrencyInfo("AUD", 2, "Australian Dollar"),
            CurrencyInfo("NZD", 2, "New Zealand Dollar"),
            CurrencyInfo("SEK", 2, "Swedish Krona"),
            CurrencyInfo("NOK", 2, "Norwegian Krone"),
            CurrencyInfo("DKK", 2, "Danish Krone"),
            CurrencyInfo("PLN", 2, "Polish Zloty"),
            CurrencyInfo("CZK", 2, "Czech Koruna"),
            CurrencyInfo("HUF", 2, "Hungarian Forint"),
            CurrencyInfo("RON", 2, "Romanian Leu"),
            CurrencyInfo("TRY", 2, "Turkish Lira"),
            CurrencyInfo("ZAR", 2, "South African Rand"),
            CurrencyInfo("INR", 2, "Indian Rupee"),
            CurrencyInfo("CNY", 2, "Chinese Yuan"),
            CurrencyInfo("HKD", 2, "Hong Kong Dollar"),
            CurrencyInfo("SGD", 2, "Singapore Dollar"),
            CurrencyInfo("MXN", 2, "Mexican Peso"),
            CurrencyInfo("BRL", 2, "Brazilian Real"),
            CurrencyInfo("AED", 2, "UAE Dirham"),
            CurrencyInfo("SAR", 2, "Saudi Riyal"),
            CurrencyInfo("ILS", 2, "Israeli New Shekel"),
            CurrencyInfo("NGN", 2, "Nigerian Naira"),
            CurrencyInfo("KES", 2, "Kenyan Shilling"),
            CurrencyInfo("PHP", 2, "Philippine Peso"),
            CurrencyInfo("THB", 2, "Thai Baht"),
            CurrencyInfo("MYR", 2, "Malaysian Ringgit"),
            CurrencyInfo("IDR", 2, "Indonesian Rupiah"),
            # Zero decimal places
            CurrencyInfo("JPY", 0, "Japanese Yen"),
            CurrencyInfo("KRW", 0, "South Korean Won"),
            CurrencyInfo("CLP", 0, "Chilean Peso"),
            CurrencyInfo("ISK", 0, "Icelandic Krona"),
            CurrencyInfo("VND", 0, "Vietnamese Dong"),
            CurrencyInfo("UGX", 0, "Ugandan Shilling"),
            # Three decimal places
            CurrencyInfo("BHD", 3, "Bahraini Dinar"),
            CurrencyInfo("JOD", 3, "Jordanian Dinar"),
            CurrencyInfo("KWD", 3, "Kuwaiti Dinar"),
            CurrencyInfo("OMR", 3, "Omani Rial"),
            CurrencyInfo("TND", 3, "Tunisian Dinar"),
        )
    }

    @classmethod
    def is_valid(cls, code: str) -> bool:
        """Check if a code is a registered currency (case-sensitive)."""
        return code in cls._CURRENCIES

    @classmethod
    def get_info(cls, code: str) -> CurrencyInfo | None:
        return cls._CURRENCIES.get(code)

    @classmethod
    def get_decimal_places(cls, code: str) -> int:
        """Decimal places for a currency; 2 for unknown codes."""
        info = cls._CURRENCIES.get(code)
        return info.decimal_places if info else 2

    @classmethod
    def get_quantum(cls, code: str) -> Decimal:
        return Decimal(1).scaleb(-cls.get_decimal_places(code))

    @classmethod
    def all_codes(cls) -> frozenset[str]:
        return frozenset(cls._CURRENCIES)
