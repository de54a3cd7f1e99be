"""
Preferences: one list-selection control for the active engine, populated from the
engine catalog and bound both ways to the stored "search-engine" index.
"""

from __future__ import annotations

import logging
import threading
from pathlib import Path
from typing import Any, Callable, NamedTuple

from modules.search.catalog import EngineDefinition, engine_names, load_catalog
from sdk.config import DEFAULT_CATALOG_FILE, DEFAULT_SETTINGS_KEY

logger = logging.getLogger(__name__)


class EngineChooser:
    """
    List model of engine names with a selected position and change listeners.
    selected is None when nothing is selected (e.g. the stored index matched no engine).
    """

    def __init__(self, names: list[str], selected: int = 0, title: str = "Engine") -> None:
        self._names = list(names)
        self.title = title
        self._lock = threading.Lock()
        self._listeners: dict[int, Callable[[int | None], None]] = {}
        self._next_id = 1
        self._selected = 0
        self._check(selected)
        self._selected = selected

    @property
    def names(self) -> list[str]:
        return list(self._names)

    @property
    def selected(self) -> int | None:
        return self._selected

    @selected.setter
    def selected(self, value: int | None) -> None:
        if value is not None:
            value = int(value)
            self._check(value)
        if value == self._selected:
            return
        self._selected = value
        with self._lock:
            callbacks = list(self._listeners.values())
        for cb in callbacks:
            cb(value)

    @property
    def selected_name(self) -> str | None:
        if self._selected is None or not self._names:
            return None
        return self._names[self._selected]

    def is_valid(self, value: int) -> bool:
        return 0 <= value < len(self._names)

    def _check(self, value: int) -> None:
        if not self._names and value == 0:
            return
        if not self.is_valid(value):
            raise ValueError(
                f"Selection {value} out of range (0..{len(self._names) - 1})"
            )

    def connect(self, callback: Callable[[int | None], None]) -> int:
        """Call callback(selected) whenever the selection changes."""
        with self._lock:
            handler_id = self._next_id
            self._next_id += 1
            self._listeners[handler_id] = callback
        return handler_id

    def disconnect(self, handler_id: int) -> None:
        with self._lock:
            self._listeners.pop(handler_id, None)


class SelectionBinding:
    """
    Two-way binding between an integer setting and an EngineChooser.
    A stored value outside the chooser's range clears the selection, so the next
    pick always writes the setting back.
    """

    def __init__(self, settings: Any, key: str, chooser: EngineChooser) -> None:
        self._settings = settings
        self._key = key
        self._chooser = chooser
        self._apply_setting(settings.get_int(key))
        self._settings_handler = settings.connect(key, self._on_setting_changed)
        self._chooser_handler = chooser.connect(self._on_chooser_changed)

    def _apply_setting(self, value: int) -> None:
        if not self._chooser.is_valid(value):
            logger.warning(
                "Stored %s=%d does not match any engine; clearing selection",
                self._key,
                value,
            )
            self._chooser.selected = None
            return
        self._chooser.selected = value

    def _on_setting_changed(self, key: str, value: str) -> None:
        try:
            self._apply_setting(int(value))
        except ValueError:
            logger.warning("Ignoring non-integer %s=%r", key, value)

    def _on_chooser_changed(self, selected: int | None) -> None:
        if selected is None:
            return
        if self._settings.get_int(self._key) != selected:
            self._settings.set_int(self._key, selected)

    def unbind(self) -> None:
        self._settings.disconnect(self._settings_handler)
        self._chooser.disconnect(self._chooser_handler)


def bind_selection(settings: Any, key: str, chooser: EngineChooser) -> SelectionBinding:
    return SelectionBinding(settings, key, chooser)


class EnginePreferences(NamedTuple):
    """Bundle returned by build_preferences(): catalog, bound chooser, and its binding."""

    catalog: tuple[EngineDefinition, ...]
    chooser: EngineChooser
    binding: SelectionBinding


def build_preferences(
    path: str | Path,
    settings: Any,
    catalog_file: str = DEFAULT_CATALOG_FILE,
    settings_key: str = DEFAULT_SETTINGS_KEY,
) -> EnginePreferences:
    """Load the engine list from path and bind a chooser to settings[settings_key]."""
    catalog = load_catalog(path, catalog_file)
    chooser = EngineChooser(engine_names(catalog))
    binding = bind_selection(settings, settings_key, chooser)
    return EnginePreferences(catalog=catalog, chooser=chooser, binding=binding)
