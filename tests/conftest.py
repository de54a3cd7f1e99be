"""Shared fixtures: a three-engine catalog directory, a SQLite settings repo, a recording opener."""

from __future__ import annotations

import json
import sqlite3
from pathlib import Path

import pytest

from modules.search.base import UrlOpener
from persistence.database import init_database
from persistence.settings_repo import SettingsRepo

ENGINES = [
    {"name": "Example", "url": "https://example.com/search?q=", "icon": "icons/example.svg"},
    {"name": "DuckDuckGo", "url": "https://duckduckgo.com/?q=", "icon": "icons/ddg.svg"},
    {"name": "Wikipedia", "url": "https://en.wikipedia.org/w/index.php?search=", "icon": "icons/wiki.svg"},
]


class RecordingOpener(UrlOpener):
    def __init__(self) -> None:
        self.urls: list[str] = []

    def open_url(self, url: str) -> None:
        self.urls.append(url)


class RecordingController:
    def __init__(self) -> None:
        self.providers: list = []

    def add_provider(self, provider) -> None:
        self.providers.append(provider)

    def remove_provider(self, provider) -> None:
        self.providers.remove(provider)


@pytest.fixture
def engines_dir(tmp_path: Path) -> Path:
    path = tmp_path / "ext"
    path.mkdir()
    (path / "search-engines.json").write_text(json.dumps(ENGINES))
    return path


@pytest.fixture
def settings(tmp_path: Path) -> SettingsRepo:
    db_path = str(tmp_path / "settings.db")
    init_database(db_path)
    return SettingsRepo(lambda: sqlite3.connect(db_path))


@pytest.fixture
def opener() -> RecordingOpener:
    return RecordingOpener()


@pytest.fixture
def controller() -> RecordingController:
    return RecordingController()
