"""Display helpers for token counts and money."""

CURRENCY_SYMBOLS = {
    "USD": "$",
    "AUD": "$",
    "CAD": "$",
    "NZD": "$",
    "SGD": "$",
    "HKD": "$",
    "MXN": "$",
    "EUR": "€",
    "GBP": "£",
    "JPY": "¥",
    "CNY": "¥",
    "KRW": "₩",
    "INR": "₹",
    "BRL": "R$",
    "CHF": "CHF ",
    "SEK": "kr",
    "NOK": "kr",
    "DKK": "kr",
}


def format_compact(value: float) -> str:
    """1234 -> '1.2K', 2500000 -> '2.5M'."""
    if value >= 1_000_000:
        return f"{value / 1_000_000:.1f}M"
    if value >= 1_000:
        return f"{value / 1_000:.1f}K"
    return str(round(value))


def currency_symbol(currency: str) -> str:
    return CURRENCY_SYMBOLS.get(currency, "")


def format_money(amount: float, currency: str = "USD") -> str:
    symbol = currency_symbol(currency)
    if symbol:
        return f"{symbol}{amount:,.2f}"
    return f"{amount:,.2f} {currency}"
