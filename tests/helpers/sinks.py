"""In-memory sinks for pipeline tests."""

from __future__ import annotations

from collections.abc import Sequence

from dedupy.errors import SinkWriteFailure
from dedupy.models import OutputRow


class CollectingSink:
    """Keeps the header and rows; ``committed`` flips only on commit."""

    def __init__(self) -> None:
        self.header: tuple[str, ...] | None = None
        self.rows: list[OutputRow] = []
        self.committed = False
        self.aborted = False

    def begin(self, header: Sequence[str]) -> None:
        assert self.header is None, "begin called twice"
        self.header = tuple(header)

    def write_row(self, row: OutputRow) -> None:
        assert self.header is not None, "write_row before begin"
        self.rows.append(row)

    def commit(self) -> None:
        self.committed = True

    def abort(self) -> None:
        self.aborted = True


class FailingSink(CollectingSink):
    """Raises :class:`SinkWriteFailure` at the configured step."""

    def __init__(self, fail_on: str = "commit", *, after_rows: int = 0) -> None:
        super().__init__()
        self.fail_on = fail_on
        self.after_rows = after_rows

    def write_row(self, row: OutputRow) -> None:
        if self.fail_on == "write_row" and len(self.rows) >= self.after_rows:
            raise SinkWriteFailure("simulated write failure")
        super().write_row(row)

    def commit(self) -> None:
        if self.fail_on == "commit":
            raise SinkWriteFailure("simulated commit failure")
        super().commit()
