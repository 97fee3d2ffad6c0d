"""
NetWorth Pro - Currency Constants
=================================
Supported currency codes, their display symbols, and amount formatting.

Amounts are always shown with two decimal places and thousands separators,
prefixed by the currency symbol (e.g. "$1,234.50", "C$80.00").
"""

import math
from enum import Enum
from typing import Dict, List, Tuple, Union

# =============================================================================
# CURRENCY ENUM
# =============================================================================

class Currency(str, Enum):
    USD = "USD"
    EUR = "EUR"
    GBP = "GBP"
    JPY = "JPY"
    CAD = "CAD"
    AUD = "AUD"
    INR = "INR"


DEFAULT_CURRENCY = Currency.USD


# =============================================================================
# SYMBOLS
# Every Currency member must appear here.
# =============================================================================

CURRENCY_SYMBOLS: Dict[Currency, str] = {
    Currency.USD: "$",
    Currency.EUR: "€",
    Currency.GBP: "£",
    Currency.JPY: "¥",
    Currency.CAD: "C$",
    Currency.AUD: "A$",
    Currency.INR: "₹",
}

# (value, label) pairs for selectors, e.g. ("USD", "USD ($)")
CURRENCY_OPTIONS: List[Tuple[str, str]] = [
    (code.value, f"{code.value} ({CURRENCY_SYMBOLS[code]})") for code in Currency
]


# =============================================================================
# HELPER FUNCTIONS
# =============================================================================

def parse_currency(code: Union[str, Currency]) -> Currency:
    """
    Convert a currency code into a Currency.

    Raises:
        ValueError: if the code is not one of the supported currencies.
    """
    if isinstance(code, Currency):
        return code
    return Currency(str(code).strip().upper())


def get_currency_symbol(currency: Union[str, Currency]) -> str:
    """Get the display symbol for a currency code."""
    return CURRENCY_SYMBOLS[parse_currency(currency)]


def format_number(num: float) -> str:
    """Format a number with thousands separators and two decimals."""
    try:
        value = float(num)
    except (TypeError, ValueError):
        return "0.00"
    if math.isnan(value):
        return "0.00"
    # normalizes -0.0
    value += 0.0
    return f"{value:,.2f}"


def format_currency(amount: float, currency: Union[str, Currency] = DEFAULT_CURRENCY) -> str:
    """
    Format an amount with its currency symbol.

    Negative amounts keep the sign in front of the symbol: -$1,500.00
    """
    symbol = get_currency_symbol(currency)
    formatted = format_number(amount)
    if formatted.startswith("-"):
        return f"-{symbol}{formatted[1:]}"
    return f"{symbol}{formatted}"
