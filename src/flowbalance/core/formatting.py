"""Number, currency and date formatting helpers."""

import calendar
from datetime import date, datetime
from decimal import Decimal, ROUND_HALF_UP
from typing import Optional, Union

from dateutil.relativedelta import relativedelta

Number = Union[int, float, Decimal]

CURRENCY_SYMBOLS: dict[str, str] = {
    "CNY": "¥",
    "USD": "$",
    "EUR": "€",
    "GBP": "£",
    "JPY": "¥",
    "HKD": "HK$",
    "TWD": "NT$",
    "SGD": "S$",
    "AUD": "A$",
    "CAD": "C$",
    "CHF": "CHF",
    "SEK": "kr",
    "NOK": "kr",
    "DKK": "kr",
    "RUB": "₽",
    "INR": "₹",
    "KRW": "₩",
    "THB": "฿",
    "MYR": "RM",
    "IDR": "Rp",
    "PHP": "₱",
    "VND": "₫",
}


def to_decimal(value: Number) -> Decimal:
    """Convert a number to Decimal without float artifacts."""
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


def round_amount(value: Number, decimals: int = 2) -> Decimal:
    """Round half-up to a fixed number of decimal places."""
    exponent = Decimal(1).scaleb(-decimals)
    return to_decimal(value).quantize(exponent, rounding=ROUND_HALF_UP)


def get_currency_symbol(currency_code: str) -> str:
    """Return the display symbol for a currency code, or the code itself."""
    return CURRENCY_SYMBOLS.get(currency_code.upper(), currency_code)


def format_number(value: Number, decimals: int = 2) -> str:
    """Format a number with thousands separators and fixed decimals."""
    rounded = round_amount(value, decimals)
    if rounded == 0:
        rounded = abs(rounded)
    return f"{rounded:,.{decimals}f}"


def format_currency(
    amount: Number,
    currency_code: str,
    symbol: Optional[str] = None,
    decimals: int = 2,
) -> str:
    """
    Format an amount with its currency symbol.

    The sign goes before the symbol: -1234.56 CNY -> "-¥1,234.56".
    """
    currency_symbol = symbol or get_currency_symbol(currency_code)
    rounded = round_amount(amount, decimals)
    body = format_number(abs(rounded), decimals)
    if rounded < 0:
        return f"-{currency_symbol}{body}"
    return f"{currency_symbol}{body}"


def format_percentage(value: Number, decimals: int = 1) -> str:
    """Format a ratio (0.256) as a percentage string ("25.6%")."""
    return f"{round_amount(to_decimal(value) * 100, decimals):.{decimals}f}%"


def months_difference(start: date, end: date) -> int:
    """Whole calendar months between two dates, ignoring the day."""
    return (end.year - start.year) * 12 + (end.month - start.month)


def months_to_years_and_months(months: int) -> tuple[int, int]:
    return months // 12, months % 12


def days_in_month(year: int, month: int) -> int:
    return calendar.monthrange(year, month)[1]


def clamp_day(year: int, month: int, day: int) -> int:
    """Clamp a day-of-month to the last day of the given month."""
    return min(day, days_in_month(year, month))


def loan_payment_date(base: datetime, target_day: int, months_to_add: int = 0) -> datetime:
    """
    Return the payment date months_to_add months after base, on target_day.

    Days past the end of the target month fall on its last day
    (payment day 31 in February lands on the 28th or 29th).
    """
    first = datetime(base.year, base.month, 1) + relativedelta(months=months_to_add)
    return first.replace(day=clamp_day(first.year, first.month, target_day))


def loan_payment_date_for_period(start: datetime, payment_day: int, period: int) -> datetime:
    """Period 1 is paid on the contract start date, later periods on payment_day."""
    if period == 1:
        return start
    return loan_payment_date(start, payment_day, period - 1)
