"""
Number Parsing & Display Formatting Utilities

Provides:
- ``parse_number()``, the single place where user-typed text becomes a
  number for a Continuous attribute.
- ``format_value()`` so thresholds and bounds read the same in hints,
  validation errors and exclusion messages (``18`` rather than ``18.0``).

All components that echo a value back to the user should use these
helpers instead of raw ``str()``.
"""

from __future__ import annotations
import math
import re
from typing import Any, Iterable, Optional, Union

Number = Union[int, float]

# Optional sign, digits with optional fraction (or a bare fraction),
# optional exponent.  Rejects "nan", "inf" and thousands separators.
_NUMBER_RE = re.compile(r'^[+-]?(?:\d+(?:\.\d*)?|\.\d+)(?:[eE][+-]?\d+)?$')


def parse_number(raw: Any) -> Optional[Number]:
    """Parse *raw* into a finite number, or return ``None``.

    Parameters
    ----------
    raw:
        Text typed by the user, or a value that is already numeric.
        Booleans are never treated as numbers.

    Returns
    -------
    int | float | None
        An ``int`` when the value is integral, a ``float`` otherwise,
        ``None`` when *raw* is not a finite number.

    Examples
    --------
    >>> parse_number(" 30 ")
    30
    >>> parse_number("30.5")
    30.5
    >>> parse_number("abc") is None
    True
    """
    if raw is None or isinstance(raw, bool):
        return None
    if isinstance(raw, int):
        return raw
    if isinstance(raw, float):
        value = raw
    elif isinstance(raw, str):
        text = raw.strip()
        if not _NUMBER_RE.match(text):
            return None
        value = float(text)
    else:
        return None

    if not math.isfinite(value):
        return None
    if value.is_integer():
        return int(value)
    return value


def is_integral(value: Number) -> bool:
    """True when *value* has no fractional part."""
    return isinstance(value, int) or float(value).is_integer()


def format_value(value: Any) -> str:
    """Render a threshold or bound the way users typed it.

    >>> format_value(18.0)
    '18'
    >>> format_value(2.5)
    '2.5'
    >>> format_value("Premium")
    'Premium'
    """
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def join_options(values: Iterable[Any], sep: str = ", ") -> str:
    """Comma-join a list of allowed values for display."""
    return sep.join(format_value(v) for v in values)
