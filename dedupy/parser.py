"""Decode raw report rows into :class:`~dedupy.models.ParsedTransaction`.

The header row is matched by name, so column order may vary between exports.
Names are compared lowercased and trimmed; the accepted aliases live on
:class:`~dedupy.models.RawTransaction`.

Any row that cannot be decoded fails the whole report. A malformed row usually
means the export format changed, and skipping it would silently under-count.
"""

from __future__ import annotations

import re
from collections.abc import Sequence
from os import PathLike

from pydantic import ValidationError

from .errors import DecodeFailure, MalformedAmount, MissingHeader
from .models import REQUIRED_FIELDS, ParsedTransaction, RawTransaction
from .money import parse_cents, unit_cents

_INT_RE = re.compile(r"[+-]?[0-9]+")


def _normalize_header(name: str) -> str:
    return name.strip().lower()


def parse_quantity(text: str) -> int:
    """Empty quantity means 0; anything else must be a whole number."""

    s = text.strip()
    if not s:
        return 0
    if not _INT_RE.fullmatch(s):
        raise DecodeFailure(f"quantity {text!r} is not a whole number")
    return int(s)


class RecordParser:
    """Maps data rows onto the fields named by one report's header."""

    def __init__(
        self,
        header: Sequence[str],
        *,
        path: str | PathLike[str] | None = None,
    ) -> None:
        self.path = path
        self.columns: tuple[str, ...] = tuple(_normalize_header(h) for h in header)

        present = set(self.columns)
        missing = sorted(
            field
            for field, aliases in REQUIRED_FIELDS.items()
            if not any(a in present for a in aliases)
        )
        if missing:
            expected = ", ".join("/".join(REQUIRED_FIELDS[f]) for f in missing)
            raise MissingHeader(
                f"{path or '<report>'}: header row is missing required columns: {expected}. "
                f"Found: {list(header)}"
            )

    def _as_mapping(self, fields: Sequence[str]) -> dict[str, str]:
        # First occurrence wins when a header repeats a name.
        mapping: dict[str, str] = {}
        for name, value in zip(self.columns, fields, strict=False):
            mapping.setdefault(name, value)
        return mapping

    def decode(self, fields: Sequence[str], *, line: int | None = None) -> RawTransaction:
        """Look up the transaction fields in one row by header name."""

        try:
            return RawTransaction.model_validate(self._as_mapping(fields))
        except ValidationError as e:
            missing = [
                str(err["loc"][0]) for err in e.errors() if err.get("type") == "missing"
            ]
            reason = (
                f"row is missing required fields: {', '.join(missing)}"
                if missing
                else f"row does not match the header: {e}"
            )
            raise DecodeFailure(reason, path=self.path, line=line) from e

    def parse(self, fields: Sequence[str], *, line: int | None = None) -> ParsedTransaction:
        """Decode one row and convert its amounts to exact cents."""

        raw = self.decode(fields, line=line)
        try:
            total = parse_cents(raw.total)
            quantity = parse_quantity(raw.quantity)
            per_unit = unit_cents(total, quantity)
        except MalformedAmount as e:
            raise MalformedAmount(e.text, e.reason, path=self.path, line=line) from e
        except DecodeFailure as e:
            raise DecodeFailure(e.reason, path=self.path, line=line) from e

        return ParsedTransaction(
            kind=raw.kind,
            sku=raw.sku,
            description=raw.description,
            total_cents=total,
            quantity=quantity,
            unit_cents=per_unit,
            date_time=raw.date_time,
        )


__all__ = ["RecordParser", "parse_quantity"]
