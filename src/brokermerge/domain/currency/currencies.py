"""Currency catalogue and display formatting."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Final


@dataclass(frozen=True, slots=True)
class CurrencyInfo:
    symbol: str
    name: str


CURRENCY_INFO: Final[dict[str, CurrencyInfo]] = {
    "USD": CurrencyInfo("$", "US Dollar"),
    "EUR": CurrencyInfo("€", "Euro"),
    "GBP": CurrencyInfo("£", "British Pound"),
    "JPY": CurrencyInfo("¥", "Japanese Yen"),
    "CAD": CurrencyInfo("C$", "Canadian Dollar"),
    "AUD": CurrencyInfo("A$", "Australian Dollar"),
    "CHF": CurrencyInfo("Fr", "Swiss Franc"),
    "NOK": CurrencyInfo("kr", "Norwegian Krone"),
    "SEK": CurrencyInfo("kr", "Swedish Krona"),
    "DKK": CurrencyInfo("kr", "Danish Krone"),
    "CNY": CurrencyInfo("¥", "Chinese Yuan"),
    "INR": CurrencyInfo("₹", "Indian Rupee"),
    "SGD": CurrencyInfo("S$", "Singapore Dollar"),
    "HKD": CurrencyInfo("HK$", "Hong Kong Dollar"),
    "MXN": CurrencyInfo("$", "Mexican Peso"),
    "BRL": CurrencyInfo("R$", "Brazilian Real"),
    "KRW": CurrencyInfo("₩", "South Korean Won"),
    "THB": CurrencyInfo("฿", "Thai Baht"),
    "TRY": CurrencyInfo("₺", "Turkish Lira"),
}

SUPPORTED_CURRENCIES: Final[tuple[str, ...]] = tuple(CURRENCY_INFO)


def is_supported(code: str) -> bool:
    return code.strip().upper() in CURRENCY_INFO


def format_currency(amount: float, currency: str) -> str:
    """Render ``amount`` with the currency symbol, or the ISO code when unknown."""

    code = currency.strip().upper()
    info = CURRENCY_INFO.get(code)
    if info is None:
        return f"{amount:.2f} {code}"
    sign = "-" if amount < 0 else ""
    return f"{sign}{info.symbol}{abs(amount):,.2f}"
