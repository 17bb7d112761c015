"""Exception types raised by the report pipeline.

Every failure that aborts a report derives from :class:`DedupyError` so
callers (the CLI, or a host application processing several files) can report
one file's failure and carry on with the next one. Within a single file there
is no partial-success state: any of these errors means nothing was written and
the fingerprint store was not touched.
"""

from __future__ import annotations

from os import PathLike


class DedupyError(Exception):
    """Base class for all report-processing failures."""


def _where(path: str | PathLike[str] | None, line: int | None) -> str:
    if path is None:
        return ""
    if line is None:
        return f"{path}: "
    return f"{path}:{line}: "


class MalformedAmount(DedupyError, ValueError):
    """A currency amount that does not reduce to an exact number of cents."""

    def __init__(
        self,
        text: str,
        reason: str,
        *,
        path: str | PathLike[str] | None = None,
        line: int | None = None,
    ) -> None:
        self.text = text
        self.reason = reason
        self.path = path
        self.line = line
        super().__init__(f"{_where(path, line)}malformed amount {text!r}: {reason}")


# Older name kept for callers that match on it.
InvalidAmount = MalformedAmount


class MissingHeader(DedupyError):
    """No usable header row follows the fixed preamble."""


class DecodeFailure(DedupyError, ValueError):
    """A data row cannot be mapped onto the expected transaction fields."""

    def __init__(
        self,
        reason: str,
        *,
        path: str | PathLike[str] | None = None,
        line: int | None = None,
    ) -> None:
        self.reason = reason
        self.path = path
        self.line = line
        super().__init__(f"{_where(path, line)}{reason}")


class StoreUnreadable(DedupyError):
    """The fingerprint store exists but its contents cannot be deserialized."""


class SinkWriteFailure(DedupyError):
    """The output artifact could not be fully written."""


class AggregatorFinalized(DedupyError, RuntimeError):
    """An aggregator was mutated or drained after it was finalized."""


__all__ = [
    "DedupyError",
    "MalformedAmount",
    "InvalidAmount",
    "MissingHeader",
    "DecodeFailure",
    "StoreUnreadable",
    "SinkWriteFailure",
    "AggregatorFinalized",
]
