"""Interactive report selection (prompt_toolkit-based).

Used by the CLI when no report paths are given on the command line. Kept
separate from the pipeline so it can be tested in isolation with a pipe input.
"""

from __future__ import annotations

import os
from pathlib import Path

from prompt_toolkit import PromptSession
from prompt_toolkit.completion import PathCompleter
from prompt_toolkit.validation import Validator

REPORT_SUFFIXES: frozenset[str] = frozenset({".csv", ".txt", ".tsv"})


def _is_report_candidate(name: str) -> bool:
    # Directories stay visible so the user can navigate into them.
    return os.path.isdir(name) or Path(name).suffix.lower() in REPORT_SUFFIXES


def _resolve(text: str, base: Path) -> Path:
    p = Path(text.strip()).expanduser()
    return p if p.is_absolute() else base / p


def select_report_files(
    *,
    session: PromptSession | None = None,
    start_dir: Path | None = None,
    message: str = "Transaction report (Enter on empty line to finish): ",
) -> list[Path]:
    """Prompt for report paths one per line until an empty line or Ctrl-D.

    Ctrl-C cancels the whole selection.

    Relative paths are resolved against ``start_dir`` (default: the current
    directory). Paths that are not existing files are rejected inline. A path
    entered twice is returned once. Returns an empty list when nothing was
    selected, which callers treat as a no-op.
    """

    base = start_dir or Path.cwd()
    completer = PathCompleter(
        file_filter=_is_report_candidate,
        get_paths=lambda: [os.fspath(base)],
        expanduser=True,
    )
    validator = Validator.from_callable(
        lambda text: not text.strip() or _resolve(text, base).is_file(),
        error_message="Not an existing file",
        move_cursor_to_end=True,
    )

    sess: PromptSession = session if session is not None else PromptSession()

    chosen: list[Path] = []
    while True:
        try:
            text = sess.prompt(message, completer=completer, validator=validator)
        except EOFError:
            break
        except KeyboardInterrupt:
            return []
        if not text.strip():
            break
        p = _resolve(text, base)
        if p not in chosen:
            chosen.append(p)
    return chosen


__all__ = ["REPORT_SUFFIXES", "select_report_files"]
