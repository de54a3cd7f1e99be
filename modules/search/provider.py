"""
Search provider: the object a host search controller calls to get results for the
user's terms, describe them, and activate them (open the engine URL in a browser).

The provider offers a single placeholder result ("Web Search") for any terms; the
terms only matter when the result is activated.
"""

from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING, Callable, Sequence
from urllib.parse import quote

from modules.search.base import (
    WEB_SEARCH_RESULT_ID,
    ActiveConfig,
    ResultMeta,
    ThemedIcon,
    UrlOpener,
)
from sdk.cancellation import Cancellable, OperationCancelled

if TYPE_CHECKING:
    from modules.search.extension import WebSearchExtension

logger = logging.getLogger(__name__)

# Characters encodeURIComponent leaves alone besides letters and digits.
_URI_COMPONENT_SAFE = "-_.!~*'()"


def encode_query(terms: Sequence[str]) -> str:
    """Join terms with single spaces and percent-encode the result as a URI component."""
    return quote(" ".join(terms), safe=_URI_COMPONENT_SAFE)


def build_search_url(url_prefix: str, terms: Sequence[str]) -> str:
    """Append the encoded query to the engine URL prefix (e.g. "...?q=")."""
    return f"{url_prefix}{encode_query(terms)}"


class SearchProvider:
    """
    Web search provider registered with a host search controller.

    Config is read once per call from the owning extension, so a disable() that
    happens mid-call cannot mix two configs in one answer.
    """

    def __init__(
        self,
        extension: WebSearchExtension,
        opener: UrlOpener,
        scale_factor: Callable[[], int] | None = None,
    ) -> None:
        self._extension = extension
        self._opener = opener
        self._scale_factor = scale_factor or (lambda: 1)

    @property
    def app_info(self) -> None:
        """No application backs this provider."""
        return None

    @property
    def can_launch_search(self) -> bool:
        return True

    @property
    def id(self) -> str:
        return self._extension.uuid

    def activate_result(self, result_id: str, terms: Sequence[str]) -> None:
        """Open the active engine's search page for terms. result_id is not inspected."""
        config = self._extension.config
        url = build_search_url(config.engine.url, terms)
        logger.info("Opening %s search for %d term(s)", config.engine.name, len(terms))
        self._opener.open_url(url)

    def launch_search(self, terms: Sequence[str]) -> None:
        """Launching happens only through activate_result()."""

    def create_result_object(self, meta: ResultMeta) -> None:
        """Use the host's default result rendering."""
        return None

    async def get_result_metas(
        self, results: Sequence[str], cancellable: Cancellable
    ) -> list[ResultMeta]:
        """
        Return one ResultMeta per id, in order.

        Raises OperationCancelled if cancellable fires during the scan or is
        cancelled when the scan ends; metadata is never delivered for a cancelled call.
        """
        logger.debug("get_result_metas(%s)", list(results))
        config = self._extension.config
        scale_factor = self._scale_factor()
        loop = asyncio.get_running_loop()
        outcome: asyncio.Future[list[ResultMeta]] = loop.create_future()

        def reject() -> None:
            if not outcome.done():
                outcome.set_exception(OperationCancelled("Operation Cancelled"))

        handler_id = cancellable.connect(lambda: loop.call_soon_threadsafe(reject))
        metas: list[ResultMeta] = []
        try:
            for identifier in results:
                if outcome.done():
                    break
                metas.append(self._build_meta(identifier, config, scale_factor))
                await asyncio.sleep(0)
        finally:
            cancellable.disconnect(handler_id)

        if cancellable.is_cancelled():
            reject()
        elif not outcome.done():
            outcome.set_result(metas)
        return await outcome

    def _build_meta(
        self, identifier: str, config: ActiveConfig, scale_factor: int
    ) -> ResultMeta:
        def create_icon(size: int) -> ThemedIcon:
            scaled = size * scale_factor
            return ThemedIcon(
                gicon=config.icon, width=scaled, height=scaled, icon_size=scaled
            )

        return ResultMeta(
            id=identifier,
            name=config.engine.name,
            description=f"Search with {config.engine.name}",
            create_icon=create_icon,
        )

    async def get_initial_result_set(
        self, terms: Sequence[str], cancellable: Cancellable | None = None
    ) -> list[str]:
        return [WEB_SEARCH_RESULT_ID]

    async def get_subsearch_result_set(
        self,
        results: Sequence[str],
        terms: Sequence[str],
        cancellable: Cancellable,
    ) -> list[str]:
        """Same answer as a fresh search; previous results are ignored."""
        if cancellable.is_cancelled():
            raise OperationCancelled("Search Cancelled")
        return await self.get_initial_result_set(terms, cancellable)

    def filter_results(self, results: list[str], max_results: int) -> list[str]:
        if len(results) <= max_results:
            return results
        return results[: max(0, max_results)]
