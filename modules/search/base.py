"""
Interfaces and value types shared by the search provider and its host:
URL opener, result metadata, themed icon.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Callable

from modules.search.catalog import EngineDefinition, IconHandle

# Placeholder result id: the provider always offers one "do a web search" result.
WEB_SEARCH_RESULT_ID = "Web Search"


@dataclass(frozen=True)
class ActiveConfig:
    """The selected engine and its resolved icon; lives between enable() and disable()."""

    engine: EngineDefinition
    icon: IconHandle


@dataclass(frozen=True)
class ThemedIcon:
    """Icon actor description: the icon reference and its pixel size (already scaled)."""

    gicon: IconHandle
    width: int
    height: int
    icon_size: int


@dataclass
class ResultMeta:
    """Display metadata for one result id."""

    id: str
    name: str
    description: str
    create_icon: Callable[[int], ThemedIcon]

    def to_dict(self, icon_size: int | None = None) -> dict:
        out = {"id": self.id, "name": self.name, "description": self.description}
        if icon_size is not None:
            icon = self.create_icon(icon_size)
            out["icon"] = {
                "path": icon.gicon.to_string(),
                "width": icon.width,
                "height": icon.height,
                "icon_size": icon.icon_size,
            }
        return out


class UrlOpener(ABC):
    """Interface for handing a URL to the user's default handler (browser)."""

    @abstractmethod
    def open_url(self, url: str) -> None:
        """Open URL. Fire and forget; may raise if the launch itself fails."""
        ...
