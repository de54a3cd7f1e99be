"""
Configuration loading: config.yaml at the project root, optionally overridden by
the YAML file named in WEBSEARCH_CONFIG. Sections are merged one level deep.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Any

import yaml

logger = logging.getLogger(__name__)

_ROOT = Path(__file__).resolve().parent
DEFAULT_CONFIG_PATH = _ROOT / "config.yaml"
CONFIG_ENV_VAR = "WEBSEARCH_CONFIG"


def load_yaml_file(path: Path) -> dict[str, Any]:
    """Load a YAML mapping from path. Returns {} if missing, invalid, or not a mapping."""
    path = Path(path)
    if not path.is_file():
        return {}
    try:
        with path.open(encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except (OSError, yaml.YAMLError) as e:
        logger.warning("Could not load %s: %s", path, e)
        return {}
    return data if isinstance(data, dict) else {}


def _merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    out = dict(base)
    for k, v in override.items():
        if isinstance(v, dict) and isinstance(out.get(k), dict):
            merged = dict(out[k])
            merged.update(v)
            out[k] = merged
        else:
            out[k] = v
    return out


def load_config(path: str | Path | None = None) -> dict[str, Any]:
    """
    Return the merged raw config: defaults from config.yaml, then the override file
    (path argument, or WEBSEARCH_CONFIG when path is None).
    """
    raw = load_yaml_file(DEFAULT_CONFIG_PATH)
    override_path = path if path is not None else os.environ.get(CONFIG_ENV_VAR)
    if override_path:
        override_path = Path(override_path)
        if override_path.resolve() != DEFAULT_CONFIG_PATH:
            raw = _merge(raw, load_yaml_file(override_path))
    return raw


class AppConfig:
    """Read-only view over the raw config with getters for the top-level app settings."""

    def __init__(self, raw: dict[str, Any]) -> None:
        self._raw = raw

    @property
    def raw(self) -> dict[str, Any]:
        return self._raw

    def get(self, key: str, default: Any = None) -> Any:
        return self._raw.get(key, default)

    def get_log_level(self) -> str:
        level = str((self._raw.get("logging") or {}).get("level", "INFO")).strip()
        return level or "INFO"

    def get_log_path(self) -> str | None:
        path = (self._raw.get("logging") or {}).get("file")
        return str(path).strip() if path and str(path).strip() else None

    def get_db_path(self) -> str:
        db = self._raw.get("database") or {}
        path = str(db.get("path") or "data/websearch.db").strip()
        if os.path.isabs(path):
            return path
        return str(_ROOT / path)
