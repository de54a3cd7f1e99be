"""
Web search extension lifecycle: load the engine config on enable, register the
provider with the host search controller, and drop both on disable.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Callable

from modules.search.base import ActiveConfig, UrlOpener
from modules.search.catalog import load_catalog, resolve_icon, select_by_index
from modules.search.errors import ExtensionNotEnabledError
from modules.search.opener import XdgOpener
from modules.search.provider import SearchProvider
from sdk.config import DEFAULT_CATALOG_FILE, DEFAULT_SETTINGS_KEY

logger = logging.getLogger(__name__)


class WebSearchExtension:
    """
    Owns the ActiveConfig and the registered SearchProvider.

    enable() reuses a config that is still present and otherwise reloads the
    catalog and the stored engine index; disable() always drops the config, so
    a disable/enable cycle picks up a changed selection.
    """

    def __init__(
        self,
        uuid: str,
        path: str | Path,
        settings: Any,
        controller: Any,
        opener: UrlOpener | None = None,
        scale_factor: Callable[[], int] | None = None,
        catalog_file: str = DEFAULT_CATALOG_FILE,
        settings_key: str = DEFAULT_SETTINGS_KEY,
    ) -> None:
        """
        Args:
            uuid: Provider id reported to the host.
            path: Install directory holding the engine list and icons.
            settings: Store with get_int(key) (e.g. persistence.settings_repo.SettingsRepo).
            controller: Host search controller with add_provider()/remove_provider().
            opener: URL opener used on activation (default: XdgOpener).
            scale_factor: Callable returning the display scale factor for icons.
        """
        self._uuid = uuid
        self._path = Path(path)
        self._settings = settings
        self._controller = controller
        self._opener = opener or XdgOpener()
        self._scale_factor = scale_factor
        self._catalog_file = catalog_file
        self._settings_key = settings_key
        self._config: ActiveConfig | None = None
        self._provider: SearchProvider | None = None

    @property
    def uuid(self) -> str:
        return self._uuid

    @property
    def path(self) -> Path:
        return self._path

    @property
    def has_config(self) -> bool:
        return self._config is not None

    @property
    def enabled(self) -> bool:
        return self._provider is not None

    @property
    def config(self) -> ActiveConfig:
        """Current config snapshot. Raises ExtensionNotEnabledError after disable()."""
        config = self._config
        if config is None:
            raise ExtensionNotEnabledError(f"{self._uuid} is not enabled")
        return config

    @property
    def provider(self) -> SearchProvider | None:
        return self._provider

    def _load_config(self) -> ActiveConfig:
        catalog = load_catalog(self._path, self._catalog_file)
        index = self._settings.get_int(self._settings_key)
        engine = select_by_index(catalog, index)
        icon = resolve_icon(self._path, engine.icon)
        logger.info("Search engine #%d: %s", index, engine.name)
        return ActiveConfig(engine=engine, icon=icon)

    def enable(self) -> None:
        """
        Load config if absent and register the provider.
        Catalog and index errors propagate and leave nothing registered.
        """
        if self._provider is not None:
            logger.debug("%s already enabled", self._uuid)
            return
        if self._config is None:
            self._config = self._load_config()
        provider = SearchProvider(self, self._opener, self._scale_factor)
        self._controller.add_provider(provider)
        self._provider = provider
        logger.info("%s enabled", self._uuid)

    def disable(self) -> None:
        """Unregister the provider and drop the config."""
        provider = self._provider
        self._provider = None
        if provider is not None:
            self._controller.remove_provider(provider)
        self._config = None
        logger.info("%s disabled", self._uuid)

    def reload(self) -> None:
        """Disable then enable, re-reading the catalog and the stored engine index."""
        self.disable()
        self.enable()
