from datetime import date, datetime
from uuid import uuid4

_SYMBOLS = {"USD": "$", "EUR": "€", "GBP": "£", "INR": "₹", "KZT": "₸"}


def generate_id() -> str:
    return uuid4().hex


def format_currency(amount: float, currency: str = "USD") -> str:
    symbol = _SYMBOLS.get(currency)
    sign = "-" if amount < 0 else ""
    if symbol is None:
        return f"{sign}{abs(amount):,.2f} {currency}"
    return f"{sign}{symbol}{abs(amount):,.2f}"


def format_date(value, fmt: str = "%B %d, %Y") -> str:
    """Render a date for display; strings that are not ISO dates come back untouched."""
    if isinstance(value, (date, datetime)):
        return value.strftime(fmt)
    try:
        return date.fromisoformat(str(value)[:10]).strftime(fmt)
    except ValueError:
        return str(value)
