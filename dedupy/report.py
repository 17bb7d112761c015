"""Process transaction reports end to end.

For one report:

1. load the :class:`~dedupy.memory.Memory` from the fingerprint store;
2. fingerprint every data row, skip rows a prior run already processed, and
   fold the rest into a fresh :class:`~dedupy.aggregate.Aggregator`;
3. finalize the totals and hand the sorted rows to the sink;
4. only after the sink commits, persist the fingerprints.

Any failure before step 4 leaves the store untouched, so the next run picks
the same rows up again. A failure in step 4 can at worst cause those rows to
be processed twice; it can never lose them.

Several reports are processed one after the other, each with its own
aggregator and a memory reloaded from the same store, so a later report sees
the rows committed by an earlier one.
"""

from __future__ import annotations

import time
from collections.abc import Callable, Iterable
from dataclasses import dataclass
from typing import TypeAlias
from os import PathLike
from pathlib import Path

from .aggregate import DEFAULT_ADJUSTMENT_SKU, Aggregator
from .errors import DedupyError
from .ingest import DEFAULT_PREAMBLE_ROWS, Report, read_report
from .logging_setup import get_logger
from .memory import FingerprintStore, Memory, compute_fingerprint
from .models import OUTPUT_HEADER, OutputRow
from .parser import RecordParser
from .sinks import RowSink

_logger = get_logger("dedupy.report")


@dataclass(frozen=True, slots=True)
class ReportSummary:
    """Counts describing one successfully processed report."""

    path: Path
    rows_read: int
    rows_skipped: int
    rows_folded: int
    output_rows: int
    sink: RowSink
    seconds: float


@dataclass(frozen=True, slots=True)
class ReportFailure:
    """A report that could not be processed; nothing was written for it."""

    path: Path
    error: Exception


ReportOutcome: TypeAlias = ReportSummary | ReportFailure


def aggregate_report(
    report: Report,
    memory: Memory,
    *,
    adjustment_sku: str = DEFAULT_ADJUSTMENT_SKU,
) -> tuple[Aggregator, list[OutputRow]]:
    """Fold every new row of ``report`` and return the finalized rows.

    Rows whose fingerprint ``memory`` already knows are skipped before they
    are decoded. Decoding errors propagate and abort the whole report.
    """

    parser = RecordParser(report.header, path=report.path)
    aggregator = Aggregator(memory, adjustment_sku=adjustment_sku)
    for row in report.rows:
        fingerprint = compute_fingerprint(row.fields)
        if aggregator.is_duplicate(fingerprint):
            continue
        aggregator.add(fingerprint, parser.parse(row.fields, line=row.line))
    return aggregator, aggregator.finalize()


def write_rows(sink: RowSink, rows: Iterable[OutputRow]) -> int:
    """Write header and ``rows`` to ``sink`` and commit; abort on any error."""

    count = 0
    try:
        sink.begin(OUTPUT_HEADER)
        for row in rows:
            sink.write_row(row)
            count += 1
        sink.commit()
    except BaseException:
        sink.abort()
        raise
    return count


def process_report(
    report: Report,
    *,
    store: FingerprintStore,
    sink: RowSink,
    adjustment_sku: str = DEFAULT_ADJUSTMENT_SKU,
) -> ReportSummary:
    """Run one already-opened report through the whole pipeline."""

    t0 = time.perf_counter()
    memory = Memory.load(store)
    aggregator, rows = aggregate_report(report, memory, adjustment_sku=adjustment_sku)
    _logger.info(
        "report:aggregated path=%s folded=%d skipped=%d keys=%d",
        report.path,
        aggregator.folded,
        aggregator.skipped,
        len(rows),
    )

    written = write_rows(sink, rows)

    # Only after producing aggregated output do we record the fingerprints.
    memory.persist(store)

    return ReportSummary(
        path=report.path,
        rows_read=aggregator.folded + aggregator.skipped,
        rows_skipped=aggregator.skipped,
        rows_folded=aggregator.folded,
        output_rows=written,
        sink=sink,
        seconds=time.perf_counter() - t0,
    )


def process_file(
    path: str | PathLike[str],
    *,
    store: FingerprintStore,
    sink_factory: Callable[[Path], RowSink],
    preamble_rows: int = DEFAULT_PREAMBLE_ROWS,
    delimiter: str = ",",
    adjustment_sku: str = DEFAULT_ADJUSTMENT_SKU,
) -> ReportSummary:
    """Read ``path`` and process it; ``sink_factory`` receives the input path."""

    p = Path(path)
    _logger.info("report:start path=%s", p)
    report = read_report(p, preamble_rows=preamble_rows, delimiter=delimiter)
    summary = process_report(
        report,
        store=store,
        sink=sink_factory(p),
        adjustment_sku=adjustment_sku,
    )
    _logger.info(
        "report:done path=%s rows=%d skipped=%d output_rows=%d seconds=%.3f",
        p,
        summary.rows_read,
        summary.rows_skipped,
        summary.output_rows,
        summary.seconds,
    )
    return summary


def process_files(
    paths: Iterable[str | PathLike[str]],
    *,
    store: FingerprintStore,
    sink_factory: Callable[[Path], RowSink],
    preamble_rows: int = DEFAULT_PREAMBLE_ROWS,
    delimiter: str = ",",
    adjustment_sku: str = DEFAULT_ADJUSTMENT_SKU,
) -> list[ReportOutcome]:
    """Process reports sequentially; one report's failure does not stop the rest.

    Pipeline errors (:class:`~dedupy.errors.DedupyError`) and I/O errors are
    captured as :class:`ReportFailure`; anything else propagates.
    """

    outcomes: list[ReportOutcome] = []
    for path in paths:
        p = Path(path)
        try:
            outcomes.append(
                process_file(
                    p,
                    store=store,
                    sink_factory=sink_factory,
                    preamble_rows=preamble_rows,
                    delimiter=delimiter,
                    adjustment_sku=adjustment_sku,
                )
            )
        except (DedupyError, OSError) as e:
            _logger.error("report:failed path=%s error=%s", p, e)
            outcomes.append(ReportFailure(path=p, error=e))
    return outcomes


__all__ = [
    "ReportSummary",
    "ReportFailure",
    "ReportOutcome",
    "aggregate_report",
    "write_rows",
    "process_report",
    "process_file",
    "process_files",
]
