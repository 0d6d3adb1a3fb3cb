"""Shared fixtures for the storefront_harvester test suite."""

import json
import sys
from pathlib import Path

import pytest

# Ensure the repo root is on the path so "import storefront_harvester" works without installing.
repo_root = Path(__file__).resolve().parents[1]
if str(repo_root) not in sys.path:
    sys.path.insert(0, str(repo_root))

from storefront_harvester.cache import MemoryBackend, ResponseCache  # noqa: E402


# ---------------------------------------------------------------------------
# Fakes
# ---------------------------------------------------------------------------

class FakeClock:
    def __init__(self, now: float = 1_000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class RecordingSleep:
    """Stands in for asyncio.sleep; records every requested pause."""

    def __init__(self):
        self.calls = []

    async def __call__(self, seconds: float) -> None:
        self.calls.append(seconds)


class FakeResponse:
    def __init__(self, status=200, body=None, raw_text=None):
        self.status = status
        self._body = body
        self._raw_text = raw_text

    async def json(self, content_type=None):
        if self._raw_text is not None:
            return json.loads(self._raw_text)
        return self._body

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc):
        return False


class FakeSession:
    """Minimal aiohttp.ClientSession stand-in: maps URL -> FakeResponse or exception."""

    def __init__(self, routes=None, default=None):
        self.routes = dict(routes or {})
        self.default = default
        self.requests = []
        self.closed = False

    def get(self, url, headers=None, timeout=None):
        self.requests.append((url, headers or {}))
        outcome = self.routes.get(url, self.default)
        if outcome is None:
            outcome = FakeResponse(status=404, body={})
        if isinstance(outcome, BaseException):
            raise outcome
        return outcome

    async def close(self):
        self.closed = True


class FakeRenderer:
    def __init__(self, products=None, error=None):
        self.products = products or []
        self.error = error
        self.calls = []

    async def render(self, url, timeout):
        self.calls.append((url, timeout))
        if self.error is not None:
            raise self.error
        return list(self.products)


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------

@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def memory_cache(clock):
    return ResponseCache(backend=MemoryBackend(), clock=clock)


@pytest.fixture
def recording_sleep():
    return RecordingSleep()


@pytest.fixture
def raw_product():
    """A storefront record in the /products.json shape."""
    return {
        "id": 7001,
        "title": "Merino Runner Shoe",
        "handle": "merino-runner",
        "body_html": "<p>Light and comfy.</p>",
        "vendor": "Allbirds",
        "product_type": "Shoes",
        "tags": ["wool", "running", "men"],
        "published_at": "2024-02-01T10:00:00Z",
        "variants": [
            {
                "id": 1,
                "title": "8",
                "price": "19.99",
                "compare_at_price": "29.99",
                "available": False,
                "barcode": "0001",
                "grams": 300,
                "weight": 0.3,
            },
            {"id": 2, "title": "9", "price": "abc", "available": True},
            {"id": 3, "title": "10", "price": "15.00", "compare_at_price": "", "available": False},
        ],
        "images": [
            {"id": 11, "src": "https://cdn.example/a.jpg", "position": 1},
            {"id": 12, "src": "https://cdn.example/b.jpg", "position": 2},
        ],
        "options": [{"name": "Size", "position": 1, "values": ["8", "9", "10"]}],
        "vendor_extra_field": "kept",
    }


def make_records(count, start=0):
    return [{"id": start + i, "title": f"Item {start + i}"} for i in range(count)]
