"""Reading transaction reports from disk.

Report exports are not guaranteed to be UTF-8, so files are read as bytes and
decoded with invalid sequences replaced. The layout is fixed: a preamble of
non-data records (7 by default), one header row, then data rows. Rows may be
ragged; the :mod:`csv` reader keeps whatever fields each line has.
"""

from __future__ import annotations

import csv
import io
from collections.abc import Iterator
from dataclasses import dataclass, field
from os import PathLike
from pathlib import Path

from .errors import MissingHeader
from .logging_setup import get_logger

DEFAULT_PREAMBLE_ROWS = 7

_logger = get_logger("dedupy.ingest")


@dataclass(frozen=True, slots=True)
class ReportRow:
    """A raw data row and the physical line it ended on (1-based)."""

    line: int
    fields: tuple[str, ...]


@dataclass(slots=True)
class Report:
    """Header plus a lazy iterator over the data rows of one report."""

    path: Path
    header: tuple[str, ...]
    rows: Iterator[ReportRow] = field(repr=False)


def decode_report_bytes(data: bytes) -> str:
    """Decode report bytes as UTF-8, replacing invalid sequences."""

    text = data.decode("utf-8", errors="replace")
    # Strip a UTF-8 BOM if present.
    return text.removeprefix("\ufeff")


def iter_report(
    text: str,
    *,
    path: str | PathLike[str] = "<report>",
    preamble_rows: int = DEFAULT_PREAMBLE_ROWS,
    delimiter: str = ",",
) -> Report:
    """Split report ``text`` into its header and data rows.

    Raises :class:`~dedupy.errors.MissingHeader` when the text ends before a
    non-empty header row follows the preamble.
    """

    reader = csv.reader(io.StringIO(text, newline=""), delimiter=delimiter)

    def _records() -> Iterator[ReportRow]:
        for record in reader:
            # Blank lines are not records, in the preamble or after it.
            if not record or all(not f.strip() for f in record):
                continue
            yield ReportRow(line=reader.line_num, fields=tuple(record))

    records = _records()
    for skipped in range(preamble_rows):
        if next(records, None) is None:
            raise MissingHeader(
                f"{path}: report ended after {skipped} of {preamble_rows} preamble rows"
            )

    header = next(records, None)
    if header is None:
        raise MissingHeader(
            f"{path}: no header row found after the {preamble_rows}-row preamble"
        )

    return Report(path=Path(path), header=header.fields, rows=records)


def read_report(
    path: str | PathLike[str],
    *,
    preamble_rows: int = DEFAULT_PREAMBLE_ROWS,
    delimiter: str = ",",
) -> Report:
    """Read and decode ``path`` and return its :class:`Report` view."""

    p = Path(path)
    data = p.read_bytes()
    _logger.debug("ingest:read path=%s bytes=%d", p, len(data))
    return iter_report(
        decode_report_bytes(data), path=p, preamble_rows=preamble_rows, delimiter=delimiter
    )


__all__ = [
    "DEFAULT_PREAMBLE_ROWS",
    "ReportRow",
    "Report",
    "decode_report_bytes",
    "iter_report",
    "read_report",
]
