"""Output sinks for finalized report rows.

A sink receives the header once, then every row in final order, and finally
either :meth:`~RowSink.commit` (the artifact is complete and durable) or
:meth:`~RowSink.abort` (discard whatever was written). ``commit`` raises
:class:`~dedupy.errors.SinkWriteFailure` on any failure; the report pipeline
never persists fingerprints unless ``commit`` returned normally.

File sinks write to ``<path>.tmp`` and ``os.replace`` it into place on commit,
so a failed or interrupted run never leaves a partial artifact at ``path``.
"""

from __future__ import annotations

import contextlib
import csv
import os
from collections.abc import Sequence
from datetime import datetime
from os import PathLike
from pathlib import Path
from typing import IO, Literal, Protocol, TypeAlias

from openpyxl import Workbook
from openpyxl.cell.cell import ILLEGAL_CHARACTERS_RE
from openpyxl.utils.exceptions import IllegalCharacterError

from .errors import SinkWriteFailure
from .logging_setup import get_logger
from .models import OutputRow
from .money import format_dollars

OutputFormat: TypeAlias = Literal["tsv", "csv", "xlsx"]

OUTPUT_FORMATS: tuple[OutputFormat, ...] = ("tsv", "csv", "xlsx")

_logger = get_logger("dedupy.sinks")


def render_row(row: OutputRow) -> list[str | int]:
    """Flatten a row into output cells; the total is a decimal string."""

    return [row.kind, row.sku, row.description, row.quantity, format_dollars(row.total_cents)]


class RowSink(Protocol):
    """Anything that accepts a header, ordered rows, and commits atomically."""

    def begin(self, header: Sequence[str]) -> None: ...

    def write_row(self, row: OutputRow) -> None: ...

    def commit(self) -> None: ...

    def abort(self) -> None: ...


def output_path(
    output_dir: str | PathLike[str],
    fmt: OutputFormat,
    *,
    now: datetime | None = None,
) -> Path:
    """Return ``OUTPUT-<timestamp>.<fmt>`` inside ``output_dir``.

    The timestamp is local RFC 3339 with microseconds; ``:`` is replaced by
    ``_`` so the name is valid on every filesystem.
    """

    ts = (now or datetime.now().astimezone()).isoformat().replace(":", "_")
    return Path(output_dir) / f"OUTPUT-{ts}.{fmt}"


class _AtomicFileSink:
    """Shared begin/commit/abort bookkeeping for sinks that target a file."""

    def __init__(self, path: str | PathLike[str]) -> None:
        self.path = Path(path)
        self.tmp_path = self.path.with_name(self.path.name + ".tmp")
        self._begun = False
        self._closed = False
        self.rows_written = 0

    def __repr__(self) -> str:  # pragma: no cover - trivial repr
        return f"{type(self).__name__}({os.fspath(self.path)!r})"

    def _check_writable(self) -> None:
        if not self._begun:
            raise SinkWriteFailure(f"{self.path}: header must be written before rows")
        if self._closed:
            raise SinkWriteFailure(f"{self.path}: sink already closed")

    def _discard_tmp(self) -> None:
        with contextlib.suppress(FileNotFoundError):
            self.tmp_path.unlink()


class DelimitedFileSink(_AtomicFileSink):
    """Delimited text output (tab-separated by default)."""

    def __init__(self, path: str | PathLike[str], *, delimiter: str = "\t") -> None:
        super().__init__(path)
        self.delimiter = delimiter
        self._fh: IO[str] | None = None
        self._writer = None

    def begin(self, header: Sequence[str]) -> None:
        if self._begun:
            raise SinkWriteFailure(f"{self.path}: header already written")
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            self._fh = open(self.tmp_path, "w", encoding="utf-8", newline="")
            self._writer = csv.writer(self._fh, delimiter=self.delimiter, lineterminator="\n")
            self._writer.writerow(list(header))
        except OSError as e:
            self.abort()
            raise SinkWriteFailure(f"{self.path}: cannot start output: {e}") from e
        self._begun = True

    def write_row(self, row: OutputRow) -> None:
        self._check_writable()
        try:
            self._writer.writerow(render_row(row))
        except OSError as e:
            self.abort()
            raise SinkWriteFailure(f"{self.path}: write failed: {e}") from e
        self.rows_written += 1

    def commit(self) -> None:
        self._check_writable()
        fh = self._fh
        try:
            fh.flush()
            os.fsync(fh.fileno())
            fh.close()
            os.replace(self.tmp_path, self.path)
        except OSError as e:
            self.abort()
            raise SinkWriteFailure(f"{self.path}: commit failed: {e}") from e
        self._closed = True
        _logger.info("sink:committed path=%s rows=%d", self.path, self.rows_written)

    def abort(self) -> None:
        if self._fh is not None and not self._fh.closed:
            with contextlib.suppress(OSError):
                self._fh.close()
        self._discard_tmp()
        self._closed = True


class WorkbookSink(_AtomicFileSink):
    """Spreadsheet output as a single-sheet ``.xlsx`` workbook (openpyxl)."""

    def __init__(self, path: str | PathLike[str], *, sheet_title: str = "Transactions") -> None:
        super().__init__(path)
        self.sheet_title = sheet_title
        self._workbook = None
        self._sheet = None

    def begin(self, header: Sequence[str]) -> None:
        if self._begun:
            raise SinkWriteFailure(f"{self.path}: header already written")

        self._workbook = Workbook(write_only=True)
        self._sheet = self._workbook.create_sheet(title=self.sheet_title)
        self._sheet.append(list(header))
        self._begun = True

    def write_row(self, row: OutputRow) -> None:
        self._check_writable()
        # Worksheet cells cannot hold control characters
        cells = [
            ILLEGAL_CHARACTERS_RE.sub("", c) if isinstance(c, str) else c for c in render_row(row)
        ]
        try:
            self._sheet.append(cells)
        except (IllegalCharacterError, ValueError) as e:
            self.abort()
            raise SinkWriteFailure(f"{self.path}: write failed: {e}") from e
        self.rows_written += 1

    def commit(self) -> None:
        self._check_writable()
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            with open(self.tmp_path, "wb") as fh:
                self._workbook.save(fh)
                fh.flush()
                os.fsync(fh.fileno())
            os.replace(self.tmp_path, self.path)
        except (OSError, ValueError) as e:
            self.abort()
            raise SinkWriteFailure(f"{self.path}: commit failed: {e}") from e
        self._closed = True
        _logger.info("sink:committed path=%s rows=%d", self.path, self.rows_written)

    def abort(self) -> None:
        self._workbook = None
        self._sheet = None
        self._discard_tmp()
        self._closed = True


def make_file_sink(path: str | PathLike[str], fmt: OutputFormat) -> RowSink:
    """Build the file sink for ``fmt``."""

    if fmt == "tsv":
        return DelimitedFileSink(path, delimiter="\t")
    if fmt == "csv":
        return DelimitedFileSink(path, delimiter=",")
    if fmt == "xlsx":
        return WorkbookSink(path)
    raise ValueError(f"unknown output format: {fmt!r}. Allowed: {list(OUTPUT_FORMATS)}")


__all__ = [
    "OutputFormat",
    "OUTPUT_FORMATS",
    "render_row",
    "RowSink",
    "output_path",
    "DelimitedFileSink",
    "WorkbookSink",
    "make_file_sink",
]
