"""
Money display formatting in the es-CO convention.

Thousands are grouped with "." and decimals follow a ",".  Each currency is
shown with its usual number of display decimals (Colombian pesos with none):

    format_money(Decimal("170000"), "COP")    -> "$ 170.000"
    format_money(Decimal("-5000"), "COP")     -> "-$ 5.000"
    format_money(Decimal("1234.5"), "USD")    -> "USD 1.234,50"
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal

from drawer_kernel.domain.money import round_money, to_money


@dataclass(frozen=True)
class CurrencyInfo:
    """Display information for a currency."""

    code: str
    decimal_places: int
    symbol: str | None = None


class CurrencyRegistry:
    """Registry of the currencies a drawer can be opened in."""

    _CURRENCIES: dict[str, CurrencyInfo] = {
        "COP": CurrencyInfo("COP", 0, "$"),
        "CLP": CurrencyInfo("CLP", 0),
        "ARS": CurrencyInfo("ARS", 2),
        "MXN": CurrencyInfo("MXN", 2),
        "PEN": CurrencyInfo("PEN", 2),
        "USD": CurrencyInfo("USD", 2),
        "EUR": CurrencyInfo("EUR", 2),
        "JPY": CurrencyInfo("JPY", 0),
    }

    DEFAULT_DECIMAL_PLACES = 2

    @classmethod
    def is_known(cls, code: str) -> bool:
        return code.upper() in cls._CURRENCIES

    @classmethod
    def get(cls, code: str) -> CurrencyInfo:
        """Currency info, falling back to two decimals and no symbol."""
        code = code.upper()
        return cls._CURRENCIES.get(code, CurrencyInfo(code, cls.DEFAULT_DECIMAL_PLACES))

    @classmethod
    def decimal_places(cls, code: str) -> int:
        return cls.get(code).decimal_places


def _group_thousands(digits: str) -> str:
    groups = []
    while len(digits) > 3:
        groups.insert(0, digits[-3:])
        digits = digits[:-3]
    groups.insert(0, digits)
    return ".".join(groups)


def format_money(amount: Decimal | int | str, currency: str = "COP") -> str:
    """
    Render an amount for display.

    Raises:
        TypeError: If amount is a float.
    """
    info = CurrencyRegistry.get(currency)
    value = round_money(to_money(amount), info.decimal_places)
    sign = "-" if value < 0 else ""
    text = f"{abs(value):.{info.decimal_places}f}"
    whole, _, fraction = text.partition(".")
    number = _group_thousands(whole)
    if fraction:
        number = f"{number},{fraction}"
    prefix = info.symbol or info.code
    return f"{sign}{prefix} {number}"
