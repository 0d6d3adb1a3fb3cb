from __future__ import annotations

import random
from typing import Any, List, Optional
from aiohttp import ClientSession, ClientTimeout
import aiohttp
import logging

from ..errors import FetchError

logger = logging.getLogger(__name__)

JSON_ACCEPT = "application/json, text/javascript, */*; q=0.01"

# Small desktop pool; swap in a real generator via the user_agent_factory hooks.
_DESKTOP_USER_AGENTS = [
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/131.0.0.0 Safari/537.36",
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/605.1.15 "
    "(KHTML, like Gecko) Version/17.5 Safari/605.1.15",
    "Mozilla/5.0 (X11; Linux x86_64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/130.0.0.0 Safari/537.36",
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64; rv:132.0) Gecko/20100101 Firefox/132.0",
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 14.6; rv:131.0) Gecko/20100101 Firefox/131.0",
]


def random_user_agent() -> str:
    return random.choice(_DESKTOP_USER_AGENTS)


def page_url(endpoint: str, page: int, limit: int) -> str:
    """Append pagination params, respecting an existing query string."""
    sep = "&" if "?" in endpoint else "?"
    return f"{endpoint}{sep}page={page}&limit={limit}"


async def fetch_json(
    session: ClientSession,
    url: str,
    *,
    timeout: float = 30.0,
    user_agent: Optional[str] = None,
) -> List[Any]:
    """
    Fetch one catalog page and return its ``products`` list (missing => []).
    Single attempt: raises FetchError, aiohttp.ClientError or asyncio.TimeoutError
    so the caller can decide on fallback and retry.
    """
    headers = {"Accept": JSON_ACCEPT}
    if user_agent:
        headers["User-Agent"] = user_agent

    async with session.get(url, headers=headers, timeout=ClientTimeout(total=timeout)) as resp:
        if resp.status < 200 or resp.status >= 300:
            raise FetchError(url, f"HTTP {resp.status}")
        try:
            data = await resp.json(content_type=None)
        except ValueError as exc:
            raise FetchError(url, f"invalid JSON: {exc}") from exc

    if not isinstance(data, dict):
        raise FetchError(url, "response body is not a JSON object")
    products = data.get("products")
    if products is None:
        return []
    if not isinstance(products, list):
        raise FetchError(url, "'products' is not a list")
    return products


async def probe_endpoint(session: ClientSession, url: str, *, timeout: float = 10.0) -> bool:
    """HEAD the endpoint; True only on a 200."""
    try:
        async with session.head(
            url,
            headers={"User-Agent": random_user_agent()},
            timeout=ClientTimeout(total=timeout),
            allow_redirects=True,
        ) as resp:
            return resp.status == 200
    except Exception as exc:  # broad catch: a probe only reports reachability
        logger.warning("Endpoint probe failed for %s: %r", url, exc)
        return False


def create_session() -> ClientSession:
    """
    Create a shared aiohttp ClientSession.
    """
    # Note: caller is responsible for closing the session (await session.close()).
    connector = aiohttp.TCPConnector(limit=0)  # unlimited; concurrency managed via semaphore
    return aiohttp.ClientSession(connector=connector)
