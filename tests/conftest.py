"""Pytest configuration for test isolation.

The CLI and settings read ``DEDUPY_*`` variables (and a ``.env`` in the
working directory), and the default fingerprint store and output directory
are relative to the working directory. When tests run in the same working
tree, a developer's local environment or a leftover ``memory`` file would
leak into assertions about skipped rows and written files.

To keep tests hermetic, every test runs from its own temporary directory with
all ``DEDUPY_*`` variables removed.
"""

from __future__ import annotations

import os
from pathlib import Path

import pytest


@pytest.fixture(autouse=True)
def _isolate_env_and_cwd(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    """Run each test from ``tmp_path`` with a clean ``DEDUPY_*`` environment."""

    for name in list(os.environ):
        if name.startswith("DEDUPY_"):
            monkeypatch.delenv(name, raising=False)
    monkeypatch.chdir(tmp_path)
