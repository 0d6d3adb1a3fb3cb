from __future__ import annotations

import logging
from typing import Any, Callable, List, Optional

from aiohttp import ClientSession

from .base import Renderer
from ..cache import DEFAULT_TTL, ResponseCache
from ..utils.http import fetch_json, random_user_agent

logger = logging.getLogger(__name__)


class FetchStrategySelector:
    """
    Fetches one catalog page: direct JSON request first, rendered-page
    extraction second. Never raises; every failure becomes an empty page so
    retry decisions stay with the Paginator.
    """

    def __init__(
        self,
        session: ClientSession,
        renderer: Renderer,
        cache: Optional[ResponseCache] = None,
        *,
        request_timeout: float = 30.0,
        render_timeout: float = 60.0,
        cache_ttl: float = DEFAULT_TTL,
        user_agent_factory: Callable[[], str] = random_user_agent,
    ) -> None:
        self.session = session
        self.renderer = renderer
        self.cache = cache
        self.request_timeout = request_timeout
        self.render_timeout = render_timeout
        self.cache_ttl = cache_ttl
        self.user_agent_factory = user_agent_factory

    async def fetch_page(self, url: str) -> List[Any]:
        try:
            return await fetch_json(
                self.session,
                url,
                timeout=self.request_timeout,
                user_agent=self.user_agent_factory(),
            )
        except Exception as exc:  # timeout, HTTP status, bad JSON, network: all go to the fallback
            logger.debug("Direct request failed for %s (%r), trying rendered page", url, exc)

        return await self._fallback(url)

    async def _fallback(self, url: str) -> List[Any]:
        if self.cache is not None:
            cached = await self.cache.aget(url)
            if isinstance(cached, dict) and isinstance(cached.get("products"), list):
                logger.debug("Using cached rendered page for %s", url)
                return list(cached["products"])

        try:
            products = await self.renderer.render(url, self.render_timeout)
        except Exception as exc:  # broad catch: the fallback must never fail the page
            logger.warning("Rendering fallback failed for %s: %r", url, exc)
            return []

        products = list(products or [])
        if products and self.cache is not None:
            await self.cache.aset(url, {"products": list(products)}, self.cache_ttl)
        return products
