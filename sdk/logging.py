"""
Logger helper for modules: one namespace so module loggers can be tuned together.
"""

from __future__ import annotations

import logging

LOGGER_NAMESPACE = "websearch"


def get_logger(name: str) -> logging.Logger:
    """Return the logger for a module, e.g. get_logger("search") -> websearch.search."""
    name = (name or "").strip()
    if not name:
        return logging.getLogger(LOGGER_NAMESPACE)
    return logging.getLogger(f"{LOGGER_NAMESPACE}.{name}")
