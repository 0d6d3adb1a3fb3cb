"""FetchStrategySelector: direct JSON first, rendered page second, never raises."""

import asyncio

import aiohttp

from storefront_harvester.engines.strategy import FetchStrategySelector
from conftest import FakeRenderer, FakeResponse, FakeSession

URL = "https://shop.example/products.json?page=1&limit=250"


def _selector(session, renderer, cache=None):
    return FetchStrategySelector(
        session,
        renderer,
        cache,
        request_timeout=3,
        render_timeout=9,
        cache_ttl=120,
        user_agent_factory=lambda: "TestAgent/1.0",
    )


def test_direct_success_returns_products():
    session = FakeSession({URL: FakeResponse(200, {"products": [{"id": 1}, {"id": 2}]})})
    renderer = FakeRenderer([{"id": "rendered"}])

    products = asyncio.run(_selector(session, renderer).fetch_page(URL))

    assert products == [{"id": 1}, {"id": 2}]
    assert renderer.calls == []
    _, headers = session.requests[0]
    assert headers["User-Agent"] == "TestAgent/1.0"
    assert headers["Accept"].startswith("application/json")


def test_direct_success_without_products_field_is_empty_page():
    session = FakeSession({URL: FakeResponse(200, {"shop": "x"})})
    renderer = FakeRenderer([{"id": "rendered"}])

    assert asyncio.run(_selector(session, renderer).fetch_page(URL)) == []
    assert renderer.calls == []


def test_non_2xx_falls_back_to_renderer():
    session = FakeSession({URL: FakeResponse(503, {})})
    renderer = FakeRenderer([{"id": "rendered"}])

    products = asyncio.run(_selector(session, renderer).fetch_page(URL))

    assert products == [{"id": "rendered"}]
    assert renderer.calls == [(URL, 9)]


def test_parse_error_falls_back():
    session = FakeSession({URL: FakeResponse(200, raw_text="<html>blocked</html>")})
    renderer = FakeRenderer([{"id": "rendered"}])
    assert asyncio.run(_selector(session, renderer).fetch_page(URL)) == [{"id": "rendered"}]


def test_network_error_and_timeout_fall_back():
    for error in (aiohttp.ClientConnectionError("refused"), asyncio.TimeoutError()):
        session = FakeSession({URL: error})
        renderer = FakeRenderer([{"id": "rendered"}])
        assert asyncio.run(_selector(session, renderer).fetch_page(URL)) == [{"id": "rendered"}]


def test_non_list_products_falls_back():
    session = FakeSession({URL: FakeResponse(200, {"products": "nope"})})
    renderer = FakeRenderer([{"id": "rendered"}])
    assert asyncio.run(_selector(session, renderer).fetch_page(URL)) == [{"id": "rendered"}]


def test_renderer_failure_yields_empty_page():
    session = FakeSession({URL: FakeResponse(500, {})})
    renderer = FakeRenderer(error=RuntimeError("browser crashed"))
    assert asyncio.run(_selector(session, renderer).fetch_page(URL)) == []


def test_rendered_page_is_cached_and_reused(memory_cache):
    session = FakeSession({URL: FakeResponse(500, {})})
    renderer = FakeRenderer([{"id": "rendered"}])
    selector = _selector(session, renderer, memory_cache)

    first = asyncio.run(selector.fetch_page(URL))
    second = asyncio.run(selector.fetch_page(URL))

    assert first == second == [{"id": "rendered"}]
    assert len(renderer.calls) == 1
    assert memory_cache.get(URL) == {"products": [{"id": "rendered"}]}


def test_empty_render_not_cached(memory_cache):
    session = FakeSession({URL: FakeResponse(500, {})})
    selector = _selector(session, FakeRenderer([]), memory_cache)
    assert asyncio.run(selector.fetch_page(URL)) == []
    assert memory_cache.size == 0


def test_rendered_page_copies_do_not_alias_cache(memory_cache):
    session = FakeSession({URL: FakeResponse(500, {})})
    selector = _selector(session, FakeRenderer([{"id": "rendered"}]), memory_cache)

    first = asyncio.run(selector.fetch_page(URL))
    first.append({"id": "added-later"})
    second = asyncio.run(selector.fetch_page(URL))
    second.append({"id": "added-later"})

    assert memory_cache.get(URL) == {"products": [{"id": "rendered"}]}
