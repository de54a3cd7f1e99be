"""
Errors raised by the engine catalog and the extension lifecycle.
"""

from __future__ import annotations


class CatalogError(Exception):
    """Base class for engine catalog failures; enable() fails closed on any of these."""


class CatalogReadError(CatalogError, OSError):
    """The engine list file could not be read."""


class CatalogParseError(CatalogError, ValueError):
    """The engine list is not valid JSON or not an array of engine objects."""


class EngineIndexError(CatalogError, IndexError):
    """The stored engine index does not point at a catalog entry."""


class ExtensionNotEnabledError(RuntimeError):
    """The provider was used while its extension has no active config."""
