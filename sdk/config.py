"""
Normalized config section access for the web search provider.
Provides get_section() and section-specific getters (search, server) so
config normalization lives in one place; run.py and modules use these instead of duplicating logic.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Callable

DEFAULT_EXTENSION_UUID = "web-search@websearch"
DEFAULT_CATALOG_FILE = "search-engines.json"
DEFAULT_SETTINGS_KEY = "search-engine"

# modules/search/ holds the bundled engine list and icons
_DEFAULT_DATA_DIR = Path(__file__).resolve().parent.parent / "modules" / "search"


def get_section(
    raw_config: dict,
    section: str,
    defaults: dict[str, Any],
    validators: dict[str, Callable[[Any], Any]] | None = None,
) -> dict[str, Any]:
    """
    Return a normalized config section by merging raw section with defaults and applying validators.

    Args:
        raw_config: Full merged config dict (e.g. from load_config()).
        section: Top-level key (e.g. "search", "server").
        defaults: Default values for the section; only keys present here are taken from the raw section.
        validators: Optional dict mapping section key -> callable(value) -> value (e.g. clamp int).
            A validator that raises TypeError/ValueError resets the key to its default.

    Returns:
        New dict with all keys from defaults, overridden by raw section, then validated.
    """
    validators = validators or {}
    raw_section = dict(raw_config.get(section) or {})
    out = dict(defaults)
    for k, v in raw_section.items():
        if k in defaults:
            out[k] = v
    for k, validator in validators.items():
        if k in out:
            try:
                out[k] = validator(out[k])
            except (TypeError, ValueError):
                out[k] = defaults.get(k)
    return out


def _clamp_int(lo: int, hi: int) -> Callable[[Any], int]:
    def clamp(value: Any) -> int:
        return max(lo, min(hi, int(value)))

    return clamp


def _non_empty_str(value: Any) -> str:
    s = str(value).strip()
    if not s:
        raise ValueError("empty")
    return s


def get_search_section(raw_config: dict) -> dict[str, Any]:
    """
    Return normalized search provider config from full raw config.
    data_dir is resolved to an absolute path; relative paths are taken from the project root.
    """
    out = get_section(
        raw_config,
        "search",
        {
            "extension_uuid": DEFAULT_EXTENSION_UUID,
            "data_dir": str(_DEFAULT_DATA_DIR),
            "catalog_file": DEFAULT_CATALOG_FILE,
            "settings_key": DEFAULT_SETTINGS_KEY,
            "max_results": 5,
            "scale_factor": 1,
        },
        {
            "extension_uuid": _non_empty_str,
            "data_dir": _non_empty_str,
            "catalog_file": _non_empty_str,
            "settings_key": _non_empty_str,
            "max_results": _clamp_int(1, 50),
            "scale_factor": _clamp_int(1, 4),
        },
    )
    data_dir = Path(out["data_dir"])
    if not data_dir.is_absolute():
        data_dir = _DEFAULT_DATA_DIR.parent.parent / data_dir
    out["data_dir"] = str(data_dir)
    return out


def get_server_section(raw_config: dict) -> dict[str, Any]:
    """Return normalized HTTP server config from full raw config."""
    out = get_section(
        raw_config,
        "server",
        {"host": "localhost", "port": 8010, "api_key": None},
        {"host": _non_empty_str, "port": _clamp_int(1, 65535)},
    )
    api_key = out.get("api_key")
    out["api_key"] = str(api_key).strip() if api_key and str(api_key).strip() else None
    return out
