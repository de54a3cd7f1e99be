"""
Engine catalog: load named search engine definitions from the bundled JSON file
and pick the active one by the stored index.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Sequence

from modules.search.errors import CatalogParseError, CatalogReadError, EngineIndexError
from sdk.config import DEFAULT_CATALOG_FILE

logger = logging.getLogger(__name__)

_ENGINE_FIELDS = ("name", "url", "icon")


@dataclass(frozen=True)
class EngineDefinition:
    """One configured engine. url is a prefix; the encoded query is appended to it."""

    name: str
    url: str
    icon: str


@dataclass(frozen=True)
class IconHandle:
    """Reference to an icon file. Not checked for existence."""

    path: str

    def to_string(self) -> str:
        return self.path


def _engine_from_obj(obj: Any, position: int) -> EngineDefinition:
    if not isinstance(obj, dict):
        raise CatalogParseError(f"Engine #{position} is not an object")
    values = {}
    for field in _ENGINE_FIELDS:
        value = obj.get(field)
        if not isinstance(value, str):
            raise CatalogParseError(
                f"Engine #{position} field {field!r} must be a string"
            )
        values[field] = value
    return EngineDefinition(**values)


def parse_catalog(text: str) -> tuple[EngineDefinition, ...]:
    """Parse the engine list document. Raises CatalogParseError if it is malformed."""
    try:
        data = json.loads(text)
    except json.JSONDecodeError as e:
        raise CatalogParseError(f"Engine list is not valid JSON: {e}") from e
    if not isinstance(data, list):
        raise CatalogParseError("Engine list must be a JSON array")
    return tuple(_engine_from_obj(obj, i) for i, obj in enumerate(data))


def load_catalog(
    base_path: str | Path, filename: str = DEFAULT_CATALOG_FILE
) -> tuple[EngineDefinition, ...]:
    """
    Read and parse the engine list located in base_path (the install directory).

    Raises:
        CatalogReadError: file missing or unreadable.
        CatalogParseError: file is not a JSON array of {name, url, icon} objects.
    """
    path = Path(base_path) / filename
    try:
        text = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        raise CatalogReadError(f"Could not read engine list {path}: {e}") from e
    catalog = parse_catalog(text)
    logger.debug("Loaded %d engines from %s", len(catalog), path)
    return catalog


def resolve_icon(base_path: str | Path, relative_icon_path: str) -> IconHandle:
    """Join the install path and the engine's relative icon path."""
    return IconHandle(f"{str(base_path).rstrip('/')}/{relative_icon_path}")


def select_by_index(
    catalog: Sequence[EngineDefinition], index: int
) -> EngineDefinition:
    """Return the engine at index. Negative or past-the-end indices raise EngineIndexError."""
    if not 0 <= index < len(catalog):
        raise EngineIndexError(
            f"Engine index {index} out of range (catalog has {len(catalog)} engines)"
        )
    return catalog[index]


def engine_names(catalog: Sequence[EngineDefinition]) -> list[str]:
    return [engine.name for engine in catalog]
