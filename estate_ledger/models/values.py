"""Coercion of loosely typed store values.

The hosted store hands back money as numbers, numeric strings or strings
with thousands separators (``"1,250,000.00"``), and counters such as
``MONTHS PAID`` as either ints or text. These helpers normalise them.
"""

import re
from decimal import Decimal, InvalidOperation
from typing import Any

_NON_NUMERIC = re.compile(r"[^\d.\-]")


def to_amount(value: Any, default: Decimal | None = Decimal("0")) -> Decimal | None:
    """Parse a stored money value leniently.

    Parameters
    ----------
    value : Any
        ``None``, a number, or a string possibly containing separators or a
        currency sign.
    default : Decimal | None
        Returned for ``None``, empty or unparseable input.

    Returns
    -------
    Decimal | None
        Parsed amount or ``default``.
    """
    if value is None or isinstance(value, bool):
        return default
    if isinstance(value, Decimal):
        return value
    if isinstance(value, int):
        return Decimal(value)
    if isinstance(value, float):
        return Decimal(str(value))
    cleaned = _NON_NUMERIC.sub("", str(value))
    if cleaned in ("", "-", ".", "-."):
        return default
    try:
        return Decimal(cleaned)
    except InvalidOperation:
        return default


def to_count(value: Any) -> int | None:
    """Parse a stored counter such as ``MONTHS PAID`` or ``Terms``.

    Returns ``None`` when the value is blank or not an integer.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    text = str(value).strip()
    if not text:
        return None
    try:
        return int(text)
    except ValueError:
        amount = to_amount(text, default=None)
        if amount is None or amount != amount.to_integral_value():
            return None
        return int(amount)


def to_text(value: Any) -> str:
    """Stored text value, ``""`` for ``None``."""
    if value is None:
        return ""
    return str(value).strip()


def is_blank(value: Any) -> bool:
    return to_text(value) == ""
