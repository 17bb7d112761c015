"""Durable record of transactions processed by earlier runs.

A :class:`Memory` is loaded from a fingerprint store at the start of a run,
answers "was this row already processed?", queues the fingerprints of rows
folded into the current run, and writes the combined set back exactly once,
after the output artifact has been committed. Writing last means a crash at
any earlier point leaves the store as it was and the same rows are simply
processed again next time.

Stores are passed explicitly (never module-level state) so tests can swap the
file-backed store for :class:`InMemoryFingerprintStore`.

On-disk layout of :class:`FileFingerprintStore`: one unsigned decimal integer
per line, sorted ascending. Writes target ``<path>.tmp`` first and then
``os.replace`` into place.
"""

from __future__ import annotations

import contextlib
import hashlib
import os
import re
from collections.abc import Iterable, Sequence
from os import PathLike
from pathlib import Path
from typing import Protocol, TypeAlias

from .errors import StoreUnreadable
from .logging_setup import get_logger

Fingerprint: TypeAlias = int

# Joins fields before hashing so ("ab", "c") and ("a", "bc") differ.
_FIELD_SEPARATOR = "\x1f"

_UINT_RE = re.compile(r"[0-9]+")

_logger = get_logger("dedupy.memory")


def compute_fingerprint(fields: Sequence[str]) -> Fingerprint:
    """Return a stable 64-bit fingerprint of one raw report row.

    The row's fields are hashed exactly as read (no trimming or case folding),
    so any change in the row content yields a different fingerprint.
    """

    data = _FIELD_SEPARATOR.join(fields).encode("utf-8")
    digest = hashlib.blake2b(data, digest_size=8).digest()
    return int.from_bytes(digest, "big")


class FingerprintStore(Protocol):
    """Backing storage for a :class:`Memory`."""

    def read(self) -> set[Fingerprint] | None:
        """Return the stored fingerprints, or ``None`` when nothing is stored."""
        ...

    def write(self, fingerprints: Iterable[Fingerprint]) -> None:
        """Replace the stored set with ``fingerprints``."""
        ...


class FileFingerprintStore:
    """Fingerprint store backed by a text file (one integer per line)."""

    def __init__(self, path: str | PathLike[str]) -> None:
        self.path = Path(path)

    def __repr__(self) -> str:  # pragma: no cover - trivial repr
        return f"FileFingerprintStore({os.fspath(self.path)!r})"

    def read(self) -> set[Fingerprint] | None:
        if not self.path.exists():
            return None
        try:
            text = self.path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            raise StoreUnreadable(f"cannot read fingerprint store {self.path}: {e}") from e

        fingerprints: set[Fingerprint] = set()
        for lineno, line in enumerate(text.splitlines(), start=1):
            s = line.strip()
            if not s:
                continue
            if not _UINT_RE.fullmatch(s):
                raise StoreUnreadable(
                    f"{self.path}:{lineno}: expected an unsigned integer fingerprint, got {s!r}"
                )
            fingerprints.add(int(s))
        return fingerprints

    def write(self, fingerprints: Iterable[Fingerprint]) -> None:
        tmp = self.path.with_name(self.path.name + ".tmp")
        body = "".join(f"{fp}\n" for fp in sorted(fingerprints))

        # Write atomically, cleaning up the temp file on failure
        try:
            with open(tmp, "w", encoding="utf-8", newline="\n") as f:
                f.write(body)
                f.flush()
                os.fsync(f.fileno())
            os.replace(tmp, self.path)
        except Exception:
            with contextlib.suppress(FileNotFoundError):
                tmp.unlink()
            raise


class InMemoryFingerprintStore:
    """Process-local store; ``None`` contents mean "never written"."""

    def __init__(self, fingerprints: Iterable[Fingerprint] | None = None) -> None:
        self.fingerprints: set[Fingerprint] | None = (
            set(fingerprints) if fingerprints is not None else None
        )
        self.writes = 0

    def read(self) -> set[Fingerprint] | None:
        return set(self.fingerprints) if self.fingerprints is not None else None

    def write(self, fingerprints: Iterable[Fingerprint]) -> None:
        self.fingerprints = set(fingerprints)
        self.writes += 1


class Memory:
    """Fingerprints known from prior runs plus those queued by this run."""

    def __init__(self, known: Iterable[Fingerprint] = ()) -> None:
        self._known: frozenset[Fingerprint] = frozenset(known)
        self._pending: list[Fingerprint] = []
        self._persisted = False

    @classmethod
    def load(cls, store: FingerprintStore) -> Memory:
        """Load prior state; an absent store yields an empty memory.

        Raises :class:`~dedupy.errors.StoreUnreadable` when the store exists
        but is corrupt. Treating that as empty would re-aggregate rows that
        were already reported.
        """

        known = store.read()
        if known is None:
            _logger.info("memory:empty store=%r", store)
            return cls()
        _logger.info("memory:loaded store=%r fingerprints=%d", store, len(known))
        return cls(known)

    def __len__(self) -> int:
        return len(self._known)

    def contains(self, fingerprint: Fingerprint) -> bool:
        return fingerprint in self._known

    __contains__ = contains

    @property
    def pending(self) -> tuple[Fingerprint, ...]:
        return tuple(self._pending)

    def remember(self, fingerprint: Fingerprint) -> None:
        """Queue ``fingerprint`` for the next :meth:`persist`; no I/O happens."""

        if self._persisted:
            raise RuntimeError("memory already persisted; start a new run to remember rows")
        self._pending.append(fingerprint)

    def persist(self, store: FingerprintStore) -> None:
        """Write known and queued fingerprints to ``store``.

        Only call this after the run's output has been committed. A memory can
        be persisted once.
        """

        if self._persisted:
            raise RuntimeError("memory already persisted")
        merged = set(self._known)
        merged.update(self._pending)
        store.write(merged)
        self._persisted = True
        _logger.info(
            "memory:persisted store=%r fingerprints=%d new=%d",
            store,
            len(merged),
            len(merged) - len(self._known),
        )


__all__ = [
    "Fingerprint",
    "compute_fingerprint",
    "FingerprintStore",
    "FileFingerprintStore",
    "InMemoryFingerprintStore",
    "Memory",
]
