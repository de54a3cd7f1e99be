"""
In-process search controller: the host side of the provider contract.

Runs each query through every registered provider (initial or sub-search, filter,
describe), cancels the previous session when a new query arrives, and drops the
results of cancelled sessions.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, NamedTuple, Sequence

from sdk.cancellation import Cancellable, OperationCancelled

logger = logging.getLogger(__name__)

DEFAULT_MAX_RESULTS = 5


class SessionState(str, Enum):
    STARTED = "started"
    CANCELLED = "cancelled"
    COMPLETED = "completed"


@dataclass
class SearchSession:
    """One query: its terms, cancellation token, state, and the ids each provider returned."""

    terms: tuple[str, ...]
    cancellable: Cancellable = field(default_factory=Cancellable)
    state: SessionState = SessionState.STARTED
    results: dict[str, list[str]] = field(default_factory=dict)

    def cancel(self) -> None:
        if self.state is SessionState.STARTED:
            self.state = SessionState.CANCELLED
            self.cancellable.cancel()


class ProviderResults(NamedTuple):
    provider_id: str
    metas: list[Any]


def split_terms(query: str) -> list[str]:
    """Split a free-text query into terms on whitespace."""
    return (query or "").split()


def is_refinement(previous: Sequence[str], terms: Sequence[str]) -> bool:
    """True if terms extend previous (same count or more, each previous term a prefix)."""
    if not previous or len(terms) < len(previous):
        return False
    return all(new.startswith(old) for old, new in zip(previous, terms))


class SearchController:
    """Registry of providers plus the search/activate choreography."""

    def __init__(self, max_results: int = DEFAULT_MAX_RESULTS) -> None:
        self._max_results = max(1, int(max_results))
        self._providers: dict[str, Any] = {}
        self._session: SearchSession | None = None

    @property
    def providers(self) -> list[Any]:
        return list(self._providers.values())

    @property
    def session(self) -> SearchSession | None:
        return self._session

    def add_provider(self, provider: Any) -> None:
        if provider.id in self._providers:
            logger.warning("Replacing search provider %s", provider.id)
        self._providers[provider.id] = provider
        logger.info("Search provider added: %s", provider.id)

    def remove_provider(self, provider: Any) -> None:
        if self._providers.get(provider.id) is provider:
            del self._providers[provider.id]
            logger.info("Search provider removed: %s", provider.id)

    def get_provider(self, provider_id: str) -> Any:
        """Return the provider registered under provider_id. Raises KeyError if unknown."""
        try:
            return self._providers[provider_id]
        except KeyError:
            raise KeyError(f"Unknown search provider: {provider_id}") from None

    def cancel(self) -> None:
        """Cancel the running session, if any."""
        if self._session is not None:
            self._session.cancel()

    async def search(self, terms: Sequence[str]) -> list[ProviderResults]:
        """
        Run a new search session. A session superseded by a later search() returns []
        and none of its metadata is delivered.
        """
        terms = tuple(t for t in terms if t)
        previous = self._session
        if previous is not None:
            previous.cancel()
        session = SearchSession(terms)
        self._session = session
        if not terms:
            session.state = SessionState.COMPLETED
            return []

        refine = previous is not None and is_refinement(previous.terms, terms)
        out: list[ProviderResults] = []
        for provider in self.providers:
            try:
                metas = await self._search_provider(
                    provider, session, previous if refine else None
                )
            except OperationCancelled:
                logger.debug("Search %r cancelled", " ".join(terms))
                session.cancel()
                return []
            except Exception as e:
                logger.exception("Search provider %s failed: %s", provider.id, e)
                continue
            out.append(ProviderResults(provider.id, metas))

        if session.cancellable.is_cancelled():
            session.cancel()
            return []
        session.state = SessionState.COMPLETED
        return out

    async def _search_provider(
        self,
        provider: Any,
        session: SearchSession,
        previous: SearchSession | None,
    ) -> list[Any]:
        cancellable = session.cancellable
        if previous is not None and provider.id in previous.results:
            ids = await provider.get_subsearch_result_set(
                previous.results[provider.id], list(session.terms), cancellable
            )
        else:
            ids = await provider.get_initial_result_set(list(session.terms), cancellable)
        ids = provider.filter_results(ids, self._max_results)
        session.results[provider.id] = ids
        return await provider.get_result_metas(ids, cancellable)

    def activate(self, provider_id: str, result_id: str, terms: Sequence[str]) -> None:
        """Activate a result. Errors from the provider's launcher propagate."""
        self.get_provider(provider_id).activate_result(result_id, list(terms))

    def launch_search(self, provider_id: str, terms: Sequence[str]) -> None:
        provider = self.get_provider(provider_id)
        if provider.can_launch_search:
            provider.launch_search(list(terms))
