"""Centralized logging configuration for the ``dedupy`` package.

This module provides two public helpers:

- ``configure_logging(...)``: attach a single ``StreamHandler`` to the package
  root logger (``"dedupy"``) and apply a level filter. Intended to be called
  once by entrypoints (e.g., the CLI) at process startup.
- ``get_logger(name)``: acquire a logger by name, ensuring that the package
  root logger has at least a ``NullHandler`` attached when not configured to
  avoid "No handler" warnings in library contexts.

The filter is an env-style directive list read from ``DEDUPY_LOG`` when no
explicit value is passed: a bare level applies to the package root, and
``logger=level`` pairs override individual loggers, e.g.
``"warning,dedupy.memory=debug"``.

Library modules must never attach their own handlers. They should only call
``get_logger("dedupy.<module>")`` and rely on the centralized configuration
performed by the CLI or host application.
"""

from __future__ import annotations

import logging
import os
import sys
from typing import IO

_PKG_LOGGER_NAME = "dedupy"
_ENV_VAR = "DEDUPY_LOG"
_CONFIGURED = False


def _parse_level(level: int | str | None) -> int:
    if isinstance(level, int):
        return level
    if isinstance(level, str):
        # Accept numeric strings or standard level names (INFO/DEBUG/etc.).
        level = level.strip().upper()
        if level.isdigit():
            return int(level)
        if level == "WARN":
            return logging.WARNING
        numeric = getattr(logging, level, None)
        if isinstance(numeric, int):
            return numeric
    return logging.INFO


def parse_filter(directives: str | None) -> tuple[int, dict[str, int]]:
    """Split a filter string into ``(root_level, {logger_name: level})``.

    Unknown level names fall back to ``INFO`` rather than failing startup.
    Loggers outside the package namespace are prefixed with ``dedupy.``.
    """

    root = logging.INFO
    overrides: dict[str, int] = {}
    for part in (directives or "").split(","):
        part = part.strip()
        if not part:
            continue
        if "=" not in part:
            root = _parse_level(part)
            continue
        name, _, lvl = part.partition("=")
        name = name.strip()
        if not name or name == _PKG_LOGGER_NAME:
            root = _parse_level(lvl)
            continue
        if not name.startswith(_PKG_LOGGER_NAME + "."):
            name = f"{_PKG_LOGGER_NAME}.{name}"
        overrides[name] = _parse_level(lvl)
    return root, overrides


def configure_logging(
    level: int | str | None = None,
    *,
    fmt: str | None = None,
    stream: IO[str] = sys.stderr,
) -> None:
    """Configure the package root logger exactly once.

    Parameters
    ----------
    level:
        Logging level as ``int``, a level-name string (e.g., ``"INFO"``) or a
        full filter string. If ``None``, the ``DEDUPY_LOG`` environment
        variable is used when set, otherwise ``logging.INFO``.
    fmt:
        Optional logging format string. Defaults to
        ``"%(asctime)s %(name)s %(levelname)s %(message)s"``.
    stream:
        The output stream for the single ``StreamHandler`` (defaults to
        ``sys.stderr``).
    """

    global _CONFIGURED
    if _CONFIGURED:
        return

    if isinstance(level, int):
        root_level, overrides = level, {}
    else:
        root_level, overrides = parse_filter(level if level is not None else os.getenv(_ENV_VAR))

    logger = logging.getLogger(_PKG_LOGGER_NAME)

    # Remove any existing NullHandlers to avoid swallowing logs after config.
    for h in list(logger.handlers):
        if isinstance(h, logging.NullHandler):
            logger.removeHandler(h)

    handler = logging.StreamHandler(stream)
    # Child overrides may be more verbose than the root; the handler lets
    # everything through and loggers do the filtering.
    handler.setLevel(logging.NOTSET)
    formatter = logging.Formatter(fmt or "%(asctime)s %(name)s %(levelname)s %(message)s")
    handler.setFormatter(formatter)

    logger.setLevel(root_level)
    logger.addHandler(handler)
    # Avoid double emission via the root logger.
    logger.propagate = False

    for name, lvl in overrides.items():
        logging.getLogger(name).setLevel(lvl)

    _CONFIGURED = True


def get_logger(name: str) -> logging.Logger:
    """Return a logger by name, ensuring safe defaults for library use.

    When the central configuration hasn't run yet, attach a ``NullHandler`` to
    the package root logger to avoid noisy warnings. This has no observable
    output and preserves the library-friendly behavior of silent logging until
    an application configures handlers explicitly.
    """

    pkg_logger = logging.getLogger(_PKG_LOGGER_NAME)
    if not _CONFIGURED and not pkg_logger.handlers:
        pkg_logger.addHandler(logging.NullHandler())
    return logging.getLogger(name)
