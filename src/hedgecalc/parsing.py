"""Parsers for turning raw host input into engine amounts.

Field values arrive as free text (or loosely typed numbers) and may be empty or
garbage while the user is still typing. Everything here maps such input onto a
finite ``Decimal`` or ``None`` ("unset") and never raises.
"""

from decimal import Decimal, InvalidOperation

HUNDRED = Decimal("100")


def parse_amount(raw: object) -> Decimal | None:
    """Convert a raw field value to a finite Decimal.

    Args:
        raw: Text, int, float, Decimal or None

    Returns:
        The parsed Decimal, or None when the value is empty, non-numeric or
        not finite

    """
    if raw is None or isinstance(raw, bool):
        return None

    if isinstance(raw, Decimal):
        value = raw
    elif isinstance(raw, int):
        value = Decimal(raw)
    elif isinstance(raw, float):
        # Go through str() so 2.1 stays 2.1 instead of its binary expansion
        value = Decimal(str(raw))
    elif isinstance(raw, str):
        text = raw.strip()
        if not text:
            return None
        try:
            value = Decimal(text)
        except InvalidOperation:
            return None
    else:
        return None

    if not value.is_finite():
        return None

    return value


def parse_commission_percent(raw: object) -> Decimal | None:
    """Convert a commission entered as a percentage (e.g. "5") to a rate (0.05).

    Args:
        raw: Raw percentage value

    Returns:
        Commission rate, or None if the value is unset

    """
    percent = parse_amount(raw)
    if percent is None:
        return None
    return percent / HUNDRED


def is_positive(value: Decimal | None) -> bool:
    """Return True when an amount is set and strictly positive."""
    return value is not None and value > 0


def is_empty(value: Decimal | None) -> bool:
    """Return True when an amount is unset or zero."""
    return value is None or value == 0
