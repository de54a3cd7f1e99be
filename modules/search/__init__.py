"""
Web search module loader: builds the host search controller and the extension
(not yet enabled) from the normalized "search" config section.
"""

from __future__ import annotations

from typing import Any, NamedTuple

from app.search_controller import SearchController
from modules.search.base import UrlOpener
from modules.search.extension import WebSearchExtension
from sdk import get_logger, get_search_section

logger = get_logger("search")


class SearchComponents(NamedTuple):
    """Immutable bundle of controller, extension, and the normalized search config."""

    controller: SearchController
    extension: WebSearchExtension
    config: dict


def create_search_components(
    config: Any, settings: Any, opener: UrlOpener | None = None
) -> SearchComponents:
    """
    Build the controller and extension. Call extension.enable() to load the
    engine list and register the provider.
    """
    raw_config = getattr(config, "raw", config)
    search_cfg = get_search_section(raw_config)
    controller = SearchController(max_results=search_cfg["max_results"])
    scale = search_cfg["scale_factor"]
    extension = WebSearchExtension(
        uuid=search_cfg["extension_uuid"],
        path=search_cfg["data_dir"],
        settings=settings,
        controller=controller,
        opener=opener,
        scale_factor=lambda: scale,
        catalog_file=search_cfg["catalog_file"],
        settings_key=search_cfg["settings_key"],
    )
    logger.debug("Search components created for %s", search_cfg["data_dir"])
    return SearchComponents(controller=controller, extension=extension, config=search_cfg)
