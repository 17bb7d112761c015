"""Public interface for the ``dedupy`` package.

This module exposes the package's pipeline functions and public models/types
as the stable import surface. There is no runtime logic here, only symbol
re-exports.
"""

from .aggregate import DEFAULT_ADJUSTMENT_SKU, Aggregator, AggregatorState
from .classify import Classifier
from .config import Settings
from .errors import (
    AggregatorFinalized,
    DecodeFailure,
    DedupyError,
    InvalidAmount,
    MalformedAmount,
    MissingHeader,
    SinkWriteFailure,
    StoreUnreadable,
)
from .ingest import DEFAULT_PREAMBLE_ROWS, Report, ReportRow, iter_report, read_report
from .memory import (
    FileFingerprintStore,
    Fingerprint,
    FingerprintStore,
    InMemoryFingerprintStore,
    Memory,
    compute_fingerprint,
)
from .models import (
    OUTPUT_HEADER,
    AdjustmentKey,
    ConsolidationKey,
    IdentifiedKey,
    OutputRow,
    ParsedTransaction,
    RawTransaction,
)
from .money import Cents, format_dollars, parse_cents, unit_cents
from .parser import RecordParser
from .report import (
    ReportFailure,
    ReportSummary,
    aggregate_report,
    process_file,
    process_files,
    process_report,
)
from .sinks import DelimitedFileSink, RowSink, WorkbookSink, make_file_sink, output_path

__all__ = [
    # Pipeline
    "process_report",
    "process_file",
    "process_files",
    "aggregate_report",
    "ReportSummary",
    "ReportFailure",
    # Components
    "Aggregator",
    "AggregatorState",
    "Classifier",
    "RecordParser",
    "Memory",
    "Settings",
    # Money
    "Cents",
    "parse_cents",
    "format_dollars",
    "unit_cents",
    # Ingest
    "DEFAULT_PREAMBLE_ROWS",
    "Report",
    "ReportRow",
    "iter_report",
    "read_report",
    # Fingerprints
    "Fingerprint",
    "FingerprintStore",
    "FileFingerprintStore",
    "InMemoryFingerprintStore",
    "compute_fingerprint",
    # Models / types
    "RawTransaction",
    "ParsedTransaction",
    "IdentifiedKey",
    "AdjustmentKey",
    "ConsolidationKey",
    "OutputRow",
    "OUTPUT_HEADER",
    "DEFAULT_ADJUSTMENT_SKU",
    # Sinks
    "RowSink",
    "DelimitedFileSink",
    "WorkbookSink",
    "make_file_sink",
    "output_path",
    # Errors
    "DedupyError",
    "MalformedAmount",
    "InvalidAmount",
    "MissingHeader",
    "DecodeFailure",
    "StoreUnreadable",
    "SinkWriteFailure",
    "AggregatorFinalized",
]
