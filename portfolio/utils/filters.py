# portfolio/utils/filters.py
# Jinja2-Filter für Druckansichten und E-Mails

from datetime import date, datetime
from typing import Union


def format_currency(value: Union[int, float, str], symbol: str = "€") -> str:
    """
    Deutsches Format, immer als String, damit Jinja2 nie crasht.
    - 1234.5 → "1.234,50 €"
    """
    try:
        number = float(value)
    except (ValueError, TypeError):
        return str(value)

    formatted_number = f"{number:,.2f}".replace(",", "_").replace(".", ",").replace("_", ".")
    return f"{formatted_number} {symbol}"


def format_date(value: Union[date, datetime, str, None]) -> str:
    if not value:
        return ""
    if isinstance(value, str):
        try:
            value = date.fromisoformat(value[:10])
        except ValueError:
            return value
    return value.strftime("%d.%m.%Y")


def format_number(value: Union[int, float, str]) -> str:
    """2.0 → "2", 1.5 → "1,5" """
    try:
        number = float(value)
    except (ValueError, TypeError):
        return str(value)
    if number.is_integer():
        return str(int(number))
    return f"{number:g}".replace(".", ",")
