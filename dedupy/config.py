"""Runtime settings for report processing.

Values come from ``DEDUPY_*`` environment variables (a local ``.env`` is
loaded by the CLI first, without overriding variables that are already set)
and can be overridden per invocation by CLI options.

==========================  =======================================  ==========
Variable                    Meaning                                  Default
==========================  =======================================  ==========
``DEDUPY_MEMORY_PATH``      fingerprint store file                   ``memory``
``DEDUPY_OUTPUT_DIR``       directory for ``OUTPUT-*`` artifacts     ``.``
``DEDUPY_OUTPUT_FORMAT``    ``tsv``, ``csv`` or ``xlsx``             ``tsv``
``DEDUPY_PREAMBLE_ROWS``    non-data records before the header       ``7``
``DEDUPY_ADJUSTMENT_SKU``   sku written on adjustment rows           ``FBATF``
``DEDUPY_INPUT_DELIMITER``  field delimiter of input reports         ``,``
==========================  =======================================  ==========
"""

from __future__ import annotations

import os
from collections.abc import Mapping
from pathlib import Path
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from .aggregate import DEFAULT_ADJUSTMENT_SKU
from .ingest import DEFAULT_PREAMBLE_ROWS
from .sinks import OutputFormat

_ENV_PREFIX = "DEDUPY_"


class Settings(BaseModel):
    """Validated settings for one process invocation."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    memory_path: Path = Path("memory")
    output_dir: Path = Path(".")
    output_format: OutputFormat = "tsv"
    preamble_rows: int = Field(default=DEFAULT_PREAMBLE_ROWS, ge=0)
    adjustment_sku: str = Field(default=DEFAULT_ADJUSTMENT_SKU, min_length=1)
    input_delimiter: str = ","

    @field_validator("output_format", mode="before")
    @classmethod
    def _lower_format(cls, v: Any) -> Any:
        return v.strip().lower() if isinstance(v, str) else v

    @field_validator("adjustment_sku", mode="before")
    @classmethod
    def _strip_sku(cls, v: Any) -> Any:
        return v.strip() if isinstance(v, str) else v

    @field_validator("input_delimiter")
    @classmethod
    def _single_char(cls, v: str) -> str:
        # "\t" arrives escaped from .env files and shells
        if v in {"\\t", "tab"}:
            return "\t"
        if len(v) != 1:
            raise ValueError("input_delimiter must be a single character")
        return v

    @classmethod
    def from_env(
        cls,
        environ: Mapping[str, str] | None = None,
        **overrides: Any,
    ) -> Settings:
        """Build settings from ``DEDUPY_*`` variables plus explicit overrides.

        ``None`` overrides are ignored so CLI options that were not given fall
        through to the environment and then to the defaults.
        """

        env = os.environ if environ is None else environ
        values: dict[str, Any] = {}
        for name in cls.model_fields:
            raw = env.get(_ENV_PREFIX + name.upper())
            if raw is not None and raw != "":
                values[name] = raw
        values.update({k: v for k, v in overrides.items() if v is not None})
        # Env values are strings; let Pydantic coerce them (lax mode).
        return cls.model_validate(values)


__all__ = ["Settings"]
