import logging
from pathlib import Path

import pytest
from pydantic import ValidationError

from dedupy.config import Settings
from dedupy.logging_setup import parse_filter


def test_defaults_without_environment():
    s = Settings.from_env({})
    assert s.memory_path == Path("memory")
    assert s.output_dir == Path(".")
    assert s.output_format == "tsv"
    assert s.preamble_rows == 7
    assert s.adjustment_sku == "FBATF"
    assert s.input_delimiter == ","


def test_environment_values_are_coerced():
    s = Settings.from_env(
        {
            "DEDUPY_MEMORY_PATH": "state/memory",
            "DEDUPY_OUTPUT_FORMAT": " XLSX ",
            "DEDUPY_PREAMBLE_ROWS": "0",
            "DEDUPY_ADJUSTMENT_SKU": " ADJ ",
            "DEDUPY_INPUT_DELIMITER": "\\t",
            "DEDUPY_OUTPUT_DIR": "",
        }
    )
    assert s.memory_path == Path("state/memory")
    assert s.output_format == "xlsx"
    assert s.preamble_rows == 0
    assert s.adjustment_sku == "ADJ"
    assert s.input_delimiter == "\t"
    assert s.output_dir == Path(".")


def test_overrides_win_and_none_falls_through():
    s = Settings.from_env(
        {"DEDUPY_OUTPUT_FORMAT": "csv", "DEDUPY_ADJUSTMENT_SKU": "ENV"},
        output_format="tsv",
        adjustment_sku=None,
    )
    assert s.output_format == "tsv"
    assert s.adjustment_sku == "ENV"


def test_reads_process_environment(monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setenv("DEDUPY_PREAMBLE_ROWS", "3")
    assert Settings.from_env().preamble_rows == 3


@pytest.mark.parametrize(
    "env",
    [
        {"DEDUPY_OUTPUT_FORMAT": "json"},
        {"DEDUPY_PREAMBLE_ROWS": "-1"},
        {"DEDUPY_PREAMBLE_ROWS": "seven"},
        {"DEDUPY_ADJUSTMENT_SKU": "   "},
        {"DEDUPY_INPUT_DELIMITER": ";;"},
    ],
)
def test_invalid_settings_are_rejected(env):
    with pytest.raises(ValidationError):
        Settings.from_env(env)


def test_parse_filter_root_and_overrides():
    root, overrides = parse_filter("warn, memory=debug ,dedupy.report=error")
    assert root == logging.WARNING
    assert overrides == {"dedupy.memory": logging.DEBUG, "dedupy.report": logging.ERROR}


def test_parse_filter_defaults_to_info():
    assert parse_filter(None) == (logging.INFO, {})
    assert parse_filter("nonsense") == (logging.INFO, {})
    assert parse_filter("dedupy=10") == (logging.DEBUG, {})
