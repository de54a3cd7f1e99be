"""
Web search SDK: common library for the app and modules.
Use for config section access, cooperative cancellation, and logging.

Example:
    from sdk import get_search_section, get_server_section
    cfg = get_search_section(raw_config)

    from sdk import Cancellable, OperationCancelled
    from sdk import get_logger
"""

from __future__ import annotations

from sdk.cancellation import Cancellable, OperationCancelled
from sdk.config import get_search_section, get_section, get_server_section
from sdk.logging import get_logger

__all__ = [
    "Cancellable",
    "OperationCancelled",
    "get_logger",
    "get_search_section",
    "get_section",
    "get_server_section",
]
