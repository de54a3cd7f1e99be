"""Tests for modules.search.provider: result sets, filtering, metadata, cancellation, activation."""

from __future__ import annotations

import asyncio

import pytest

from modules.search.base import WEB_SEARCH_RESULT_ID, ActiveConfig, ThemedIcon
from modules.search.catalog import EngineDefinition, IconHandle
from modules.search.provider import SearchProvider, build_search_url, encode_query
from sdk.cancellation import Cancellable, OperationCancelled

ENGINE = EngineDefinition(
    name="Example", url="https://example.com/search?q=", icon="icons/example.svg"
)


class FakeExtension:
    uuid = "web-search@test"

    def __init__(self) -> None:
        self.config = ActiveConfig(engine=ENGINE, icon=IconHandle("/ext/icons/example.svg"))


class CountingCancellable(Cancellable):
    def __init__(self) -> None:
        super().__init__()
        self.connected = 0
        self.disconnected = 0

    def connect(self, callback) -> int:
        self.connected += 1
        return super().connect(callback)

    def disconnect(self, handler_id: int) -> None:
        self.disconnected += 1
        super().disconnect(handler_id)


@pytest.fixture
def provider(opener) -> SearchProvider:
    return SearchProvider(FakeExtension(), opener)


# ---- identity / capabilities ----
def test_provider_identity(provider: SearchProvider) -> None:
    assert provider.id == "web-search@test"
    assert provider.app_info is None
    assert provider.can_launch_search is True
    assert provider.create_result_object(None) is None


def test_launch_search_does_nothing(provider: SearchProvider, opener) -> None:
    assert provider.launch_search(["cats"]) is None
    assert opener.urls == []


# ---- result sets ----
@pytest.mark.parametrize(
    "terms", [["cat"], ["cat", "videos"], ["a" * 200], ["ünïcode", "?&="]]
)
def test_initial_result_set_is_single_placeholder(
    provider: SearchProvider, terms: list[str]
) -> None:
    ids = asyncio.run(provider.get_initial_result_set(terms, Cancellable()))
    assert ids == [WEB_SEARCH_RESULT_ID]


def test_subsearch_matches_initial_set(provider: SearchProvider) -> None:
    async def run() -> tuple[list[str], list[str]]:
        initial = await provider.get_initial_result_set(["cat", "vid"])
        sub = await provider.get_subsearch_result_set(
            ["ignored", "ids"], ["cat", "videos"], Cancellable()
        )
        return initial, sub

    initial, sub = asyncio.run(run())
    assert sub == initial == [WEB_SEARCH_RESULT_ID]


def test_subsearch_cancelled_raises_without_work(provider: SearchProvider) -> None:
    calls: list[list[str]] = []

    async def spy(terms, cancellable=None):
        calls.append(list(terms))
        return [WEB_SEARCH_RESULT_ID]

    provider.get_initial_result_set = spy  # type: ignore[method-assign]
    token = Cancellable()
    token.cancel()
    with pytest.raises(OperationCancelled, match="Search Cancelled"):
        asyncio.run(provider.get_subsearch_result_set([], ["cat"], token))
    assert calls == []


# ---- filter_results ----
@pytest.mark.parametrize(
    "results,max_results,expected",
    [
        (["a"], 5, ["a"]),
        (["a", "b", "c"], 3, ["a", "b", "c"]),
        (["a", "b", "c"], 2, ["a", "b"]),
        (["c", "a", "b"], 1, ["c"]),
        ([], 0, []),
        (["a", "b"], 0, []),
    ],
)
def test_filter_results(
    provider: SearchProvider, results: list[str], max_results: int, expected: list[str]
) -> None:
    assert provider.filter_results(results, max_results) == expected


def test_filter_results_returns_same_list_within_limit(provider: SearchProvider) -> None:
    results = ["a", "b"]
    assert provider.filter_results(results, 2) is results


# ---- URL building / activation ----
def test_activate_result_opens_encoded_url(provider: SearchProvider, opener) -> None:
    provider.activate_result("anything", ["cat", "videos"])
    assert opener.urls == ["https://example.com/search?q=cat%20videos"]


def test_activate_result_ignores_result_id(provider: SearchProvider, opener) -> None:
    provider.activate_result(WEB_SEARCH_RESULT_ID, ["x"])
    provider.activate_result("other", ["x"])
    assert opener.urls == ["https://example.com/search?q=x"] * 2


@pytest.mark.parametrize(
    "terms,expected",
    [
        (["a&b=c"], "a%26b%3Dc"),
        (["café"], "caf%C3%A9"),
        (["it's", "(fine)!"], "it's%20(fine)!"),
        (["c++", "tips"], "c%2B%2B%20tips"),
        (["50%"], "50%25"),
        (["path/with?query#frag"], "path%2Fwith%3Fquery%23frag"),
        (["-_.~*"], "-_.~*"),
    ],
)
def test_encode_query_matches_uri_component_encoding(
    terms: list[str], expected: str
) -> None:
    assert encode_query(terms) == expected


def test_build_search_url_appends_to_prefix() -> None:
    assert build_search_url("https://duckduckgo.com/?q=", ["a", "b"]) == (
        "https://duckduckgo.com/?q=a%20b"
    )


def test_activate_result_propagates_opener_failure() -> None:
    class BrokenOpener:
        def open_url(self, url: str) -> None:
            raise RuntimeError("Could not open the browser.")

    provider = SearchProvider(FakeExtension(), BrokenOpener())
    with pytest.raises(RuntimeError):
        provider.activate_result("x", ["cat"])


# ---- get_result_metas ----
def test_result_metas_name_and_description(provider: SearchProvider) -> None:
    metas = asyncio.run(provider.get_result_metas([WEB_SEARCH_RESULT_ID], Cancellable()))
    assert len(metas) == 1
    meta = metas[0]
    assert meta.id == WEB_SEARCH_RESULT_ID
    assert meta.name == "Example"
    assert meta.description == "Search with Example"


def test_result_metas_one_per_id_in_order(provider: SearchProvider) -> None:
    metas = asyncio.run(provider.get_result_metas(["x", "y", "z"], Cancellable()))
    assert [m.id for m in metas] == ["x", "y", "z"]
    assert all(m.name == "Example" for m in metas)


def test_result_meta_icon_scaled_by_factor(opener) -> None:
    provider = SearchProvider(FakeExtension(), opener, scale_factor=lambda: 2)
    meta = asyncio.run(provider.get_result_metas(["x"], Cancellable()))[0]
    icon = meta.create_icon(16)
    assert icon == ThemedIcon(
        gicon=IconHandle("/ext/icons/example.svg"), width=32, height=32, icon_size=32
    )


def test_result_meta_to_dict_includes_icon(provider: SearchProvider) -> None:
    meta = asyncio.run(provider.get_result_metas(["x"], Cancellable()))[0]
    data = meta.to_dict(24)
    assert data["name"] == "Example"
    assert data["icon"] == {
        "path": "/ext/icons/example.svg",
        "width": 24,
        "height": 24,
        "icon_size": 24,
    }
    assert "icon" not in meta.to_dict()


def test_result_metas_listener_disconnected_after_call(provider: SearchProvider) -> None:
    token = CountingCancellable()
    asyncio.run(provider.get_result_metas(["x", "y"], token))
    assert token.connected == 1
    assert token.disconnected == 1


def test_result_metas_already_cancelled_raises(provider: SearchProvider) -> None:
    token = CountingCancellable()
    token.cancel()
    with pytest.raises(OperationCancelled):
        asyncio.run(provider.get_result_metas(["x"], token))
    assert token.disconnected == 1


def test_result_metas_cancelled_mid_scan_raises(provider: SearchProvider) -> None:
    async def run() -> None:
        token = Cancellable()
        task = asyncio.ensure_future(provider.get_result_metas(["a", "b", "c"], token))
        await asyncio.sleep(0)
        token.cancel()
        with pytest.raises(OperationCancelled):
            await task

    asyncio.run(run())



class CancelOnDisconnect(Cancellable):
    """Token that becomes cancelled right after its listener is removed."""

    def disconnect(self, handler_id: int) -> None:
        super().disconnect(handler_id)
        self.cancel()


def test_result_metas_cancelled_after_scan_rejects(provider: SearchProvider) -> None:
    async def run():
        return await asyncio.wait_for(
            provider.get_result_metas(["a", "b"], CancelOnDisconnect()), timeout=1.0
        )

    with pytest.raises(OperationCancelled):
        asyncio.run(run())
