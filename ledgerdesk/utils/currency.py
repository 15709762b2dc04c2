"""
Currency formatting and parsing helpers
Amounts are displayed as Kenya Shillings unless configured otherwise
"""

import re
from decimal import Decimal, InvalidOperation

# Leading numeric literal, the same prefix a browser number parser accepts
_NUMBER_PREFIX = re.compile(r'[+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?')
_NON_NUMERIC = re.compile(r'[^0-9.\-]')

ZERO = Decimal('0')


def _symbol(symbol):
    if symbol is not None:
        return symbol
    try:
        from flask import current_app
        return current_app.config.get('CURRENCY_SYMBOL', 'KSh')
    except RuntimeError:
        # Outside an application context
        return 'KSh'


def parse_amount(value):
    """
    Parse a monetary form value into a Decimal.

    Accepts numbers or free text. Text is read up to the end of its leading
    numeric literal ("12.5kg" -> 12.5). Empty, missing, or non-numeric input
    yields 0; this never raises.
    """
    if value is None or isinstance(value, bool):
        return ZERO
    if isinstance(value, Decimal):
        return value if value.is_finite() else ZERO
    if isinstance(value, (int, float)):
        try:
            parsed = Decimal(str(value))
        except InvalidOperation:
            return ZERO
        return parsed if parsed.is_finite() else ZERO

    match = _NUMBER_PREFIX.match(str(value).strip())
    if not match:
        return ZERO
    try:
        parsed = Decimal(match.group(0))
    except InvalidOperation:
        return ZERO
    return parsed if parsed.is_finite() else ZERO


def parse_currency(value):
    """Parse a formatted currency string such as 'KSh 1,234.50' back to a Decimal"""
    if value is None:
        return ZERO
    return parse_amount(_NON_NUMERIC.sub('', str(value)))


def format_number(value):
    """Format a number with thousands separators and two decimals"""
    try:
        return f"{Decimal(str(value)):,.2f}"
    except (InvalidOperation, TypeError, ValueError):
        return "0.00"


def format_currency(amount, symbol=None):
    """Format amount as currency, e.g. 'KSh 1,234.50' or '-KSh 20.00'"""
    symbol = _symbol(symbol)
    try:
        value = Decimal(str(amount))
    except (InvalidOperation, TypeError, ValueError):
        value = ZERO
    if not value.is_finite():
        value = ZERO
    if value < 0:
        return f"-{symbol} {-value:,.2f}"
    return f"{symbol} {value:,.2f}"


def format_percent(value):
    """Format a percentage with two decimals"""
    return f"{format_number(value)}%"
