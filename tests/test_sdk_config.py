"""Tests for sdk.config: get_section, get_search_section, get_server_section; sdk.get_logger."""

from __future__ import annotations

from pathlib import Path

from sdk import get_logger
from sdk.config import (
    DEFAULT_CATALOG_FILE,
    DEFAULT_SETTINGS_KEY,
    get_search_section,
    get_section,
    get_server_section,
)


def test_get_section_merges_and_ignores_unknown_keys() -> None:
    out = get_section({"s": {"a": 2, "zzz": 1}}, "s", {"a": 1, "b": 2})
    assert out == {"a": 2, "b": 2}


def test_get_section_invalid_value_falls_back_to_default() -> None:
    out = get_section({"s": {"n": "x"}}, "s", {"n": 3}, {"n": int})
    assert out["n"] == 3


def test_search_section_defaults() -> None:
    cfg = get_search_section({})
    assert cfg["catalog_file"] == DEFAULT_CATALOG_FILE
    assert cfg["settings_key"] == DEFAULT_SETTINGS_KEY
    assert cfg["max_results"] == 5
    assert cfg["scale_factor"] == 1
    assert (Path(cfg["data_dir"]) / DEFAULT_CATALOG_FILE).is_file()


def test_search_section_clamps_values() -> None:
    cfg = get_search_section({"search": {"max_results": 500, "scale_factor": 0}})
    assert cfg["max_results"] == 50
    assert cfg["scale_factor"] == 1


def test_search_section_relative_data_dir_resolved() -> None:
    cfg = get_search_section({"search": {"data_dir": "modules/search"}})
    assert Path(cfg["data_dir"]).is_absolute()
    assert Path(cfg["data_dir"]).name == "search"


def test_search_section_blank_uuid_uses_default() -> None:
    cfg = get_search_section({"search": {"extension_uuid": "  "}})
    assert cfg["extension_uuid"] == "web-search@websearch"


def test_server_section() -> None:
    cfg = get_server_section({"server": {"port": "9000", "api_key": "  "}})
    assert cfg == {"host": "localhost", "port": 9000, "api_key": None}
    assert get_server_section({"server": {"port": "x"}})["port"] == 8010


def test_get_logger_namespace() -> None:
    assert get_logger("search").name == "websearch.search"
    assert get_logger("").name == "websearch"
