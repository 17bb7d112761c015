"""CLI for the ``dedupy`` package.

This module exposes a Typer-based console interface (``dedupy``). Settings
are loaded from ``DEDUPY_*`` environment variables, after a local ``.env``
has been read with ``python-dotenv``, and can be overridden per invocation.
Business logic lives in :mod:`dedupy.report` and the modules it composes.
"""

from __future__ import annotations

import sys
from pathlib import Path
from typing import Annotated

import typer
from dotenv import load_dotenv
from pydantic import ValidationError
from rich.console import Console

from .config import Settings
from .logging_setup import configure_logging, get_logger
from .memory import FileFingerprintStore
from .report import ReportFailure, ReportSummary, process_files
from .sinks import OUTPUT_FORMATS, RowSink, make_file_sink, output_path

_logger = get_logger("dedupy.cli")

console = Console(stderr=True)

app = typer.Typer(
    add_completion=False,
    help=(
        "Aggregate a transaction report, skipping rows already processed by "
        "earlier runs. Loads DEDUPY_* settings from a local .env before running."
    ),
)


def _stdin_is_interactive() -> bool:
    return sys.stdin.isatty()


def _print_summary(outcome: ReportSummary | ReportFailure) -> None:
    if isinstance(outcome, ReportFailure):
        console.print(f"[red]Error:[/red] {outcome.path}: {outcome.error}")
        return
    target = getattr(outcome.sink, "path", outcome.sink)
    console.print(
        f"[green]{outcome.path}[/green]: {outcome.rows_read} rows, "
        f"{outcome.rows_skipped} already processed, "
        f"{outcome.output_rows} output rows -> {target}"
    )


@app.command()
def main(
    paths: Annotated[
        list[Path] | None,
        typer.Argument(
            help="Transaction report(s) to process. Prompts for files when omitted.",
            dir_okay=False,
        ),
    ] = None,
    memory: Annotated[
        Path | None,
        typer.Option(help="Fingerprint store file (env DEDUPY_MEMORY_PATH)."),
    ] = None,
    output_dir: Annotated[
        Path | None,
        typer.Option(help="Directory for OUTPUT-* files (env DEDUPY_OUTPUT_DIR)."),
    ] = None,
    output_format: Annotated[
        str | None,
        typer.Option(
            "--format",
            help=f"Output format: {', '.join(OUTPUT_FORMATS)} (env DEDUPY_OUTPUT_FORMAT).",
        ),
    ] = None,
    preamble_rows: Annotated[
        int | None,
        typer.Option(help="Records before the header row (env DEDUPY_PREAMBLE_ROWS)."),
    ] = None,
    adjustment_sku: Annotated[
        str | None,
        typer.Option(help="Sku written on rows without a product id (env DEDUPY_ADJUSTMENT_SKU)."),
    ] = None,
    log_level: Annotated[
        str | None,
        typer.Option(
            help="Log filter, e.g. 'debug' or 'warning,dedupy.memory=debug' (env DEDUPY_LOG)."
        ),
    ] = None,
) -> None:
    """Process each report and write one consolidated output file per report."""

    # Load environment from .env in CWD (override=False to keep existing env)
    load_dotenv(dotenv_path=Path.cwd() / ".env", override=False)

    # Central logging setup so child loggers inherit configuration
    configure_logging(log_level)

    try:
        settings = Settings.from_env(
            memory_path=memory,
            output_dir=output_dir,
            output_format=output_format,
            preamble_rows=preamble_rows,
            adjustment_sku=adjustment_sku,
        )
    except ValidationError as e:
        console.print(f"[red]Error:[/red] invalid settings: {e}")
        raise typer.Exit(2) from e

    selected = list(paths or [])
    if not selected:
        # Local import keeps prompt_toolkit off the non-interactive path
        from .term_ui import select_report_files

        if not _stdin_is_interactive():
            console.print("[red]Error:[/red] no report paths given and stdin is not a terminal.")
            raise typer.Exit(2)
        selected = select_report_files()
        if not selected:
            _logger.info("No files selected, exiting.")
            raise typer.Exit(0)

    def _sink_for(_path: Path) -> RowSink:
        return make_file_sink(
            output_path(settings.output_dir, settings.output_format), settings.output_format
        )

    outcomes = process_files(
        selected,
        store=FileFingerprintStore(settings.memory_path),
        sink_factory=_sink_for,
        preamble_rows=settings.preamble_rows,
        delimiter=settings.input_delimiter,
        adjustment_sku=settings.adjustment_sku,
    )
    for outcome in outcomes:
        _print_summary(outcome)

    if any(isinstance(o, ReportFailure) for o in outcomes):
        raise typer.Exit(1)


if __name__ == "__main__":  # pragma: no cover - exercised via console script
    # Running as a module: `python -m dedupy.cli`
    app()
