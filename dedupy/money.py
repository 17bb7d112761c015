"""Exact currency handling in integer cents.

Reports are inconsistent about decimal places (``"1.0"`` and ``"1.00"`` both
appear), so the scale is inferred from the digits after the last separator.
All arithmetic happens on ``int`` cents, and rendering is exact as well.
"""

from __future__ import annotations

import re
from typing import TypeAlias

from .errors import MalformedAmount

Cents: TypeAlias = int

_SIGNED_DIGITS_RE = re.compile(r"[+-]?[0-9]+")

# digits after the last separator -> multiplier to reach cents
_SCALE_BY_DECIMALS: dict[int, int] = {0: 100, 1: 10, 2: 1}


def parse_cents(text: str) -> Cents:
    """Parse a textual amount (``"1,345.3"``, ``"-0.30"``, ``"12"``) into cents.

    Every ``.`` and ``,`` is stripped before the integer parse, so thousands
    separators are tolerated but never disambiguated: only the digits after
    the *last* separator decide the scale.
    """

    s = (text or "").strip()
    if not s:
        raise MalformedAmount(text, "amount is empty")

    last_sep = max(s.rfind("."), s.rfind(","))
    decimals = 0 if last_sep == -1 else len(s) - last_sep - 1
    scale = _SCALE_BY_DECIMALS.get(decimals)
    if scale is None:
        raise MalformedAmount(text, f"expected 0, 1 or 2 decimal digits, found {decimals}")

    digits = s.replace(".", "").replace(",", "")
    if not _SIGNED_DIGITS_RE.fullmatch(digits):
        raise MalformedAmount(text, "not a number after stripping separators")
    return int(digits) * scale


def format_dollars(cents: Cents) -> str:
    """Render cents as the shortest decimal string for the amount.

    ``100 -> "1.0"``, ``134530 -> "1345.3"``, ``-35 -> "-0.35"``. Built from
    integer parts, so any amount reads back through :func:`parse_cents`.
    """

    whole, frac = divmod(abs(cents), 100)
    sign = "-" if cents < 0 else ""
    decimals = f"{frac:02d}".rstrip("0") or "0"
    return f"{sign}{whole}.{decimals}"


def unit_cents(total: Cents, quantity: int) -> Cents:
    """Return the per-unit price of a transaction, truncated toward zero.

    A quantity of zero means the total already represents a single unit, so
    the total is returned unchanged instead of dividing by zero. The unit
    price only groups rows; summed totals are carried separately.
    """

    if quantity == 0:
        return total
    per_unit = abs(total) // abs(quantity)
    return per_unit if (total < 0) == (quantity < 0) else -per_unit


__all__ = ["Cents", "parse_cents", "format_dollars", "unit_cents"]
