"""Amount formatting for display."""

from __future__ import annotations


def format_amount(amount: float, symbol: str = "₹") -> str:
    """Symbol-prefixed amount; whole numbers drop the decimals.

    format_amount(500.0)        -> "₹500"
    format_amount(1234.5, "$")  -> "$1,234.50"
    """

    if float(amount).is_integer():
        return f"{symbol}{int(amount):,}"
    return f"{symbol}{amount:,.2f}"
