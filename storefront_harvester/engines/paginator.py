from __future__ import annotations

import asyncio
import enum
import logging
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, List, Optional

from ..cache import DEFAULT_TTL, ResponseCache
from ..utils.http import page_url
from ..utils.parsing import endpoint_cache_key

logger = logging.getLogger(__name__)

FetchPage = Callable[[str], Awaitable[List[Any]]]
Sleep = Callable[[float], Awaitable[Any]]

EMPTY_PAGE_DONE = "done"
EMPTY_PAGE_RETRY = "retry"


class PaginatorState(enum.Enum):
    FETCHING = "fetching"
    ADVANCING = "advancing"
    RETRYING = "retrying"
    DONE = "done"


@dataclass
class PageStats:
    fetch_attempts: int = 0
    pages_fetched: int = 0
    retries_used: int = 0
    from_cache: bool = False
    exhausted: bool = False
    cancelled: bool = False


class Paginator:
    """
    Walks one endpoint page by page.

    FETCHING  -> full page        -> ADVANCING -> (inter-page delay) -> FETCHING page+1
    FETCHING  -> short page       -> DONE
    FETCHING  -> empty page       -> DONE (or RETRYING under the "retry" policy)
    FETCHING  -> fetch raised     -> RETRYING -> (retry delay) -> FETCHING same page
    RETRYING  -> budget exhausted -> DONE, keeping what was accumulated

    A fresh aggregate in the cache short-circuits the whole walk. A non-empty
    result is written back unless the walk was cancelled.
    ``run`` never raises.
    """

    def __init__(
        self,
        fetch_page: FetchPage,
        cache: Optional[ResponseCache] = None,
        *,
        cache_ttl: float = DEFAULT_TTL,
        sleep: Sleep = asyncio.sleep,
        cancel_event: Optional[asyncio.Event] = None,
        empty_page_policy: str = EMPTY_PAGE_DONE,
    ) -> None:
        if empty_page_policy not in (EMPTY_PAGE_DONE, EMPTY_PAGE_RETRY):
            raise ValueError(f"unknown empty_page_policy: {empty_page_policy!r}")
        self.fetch_page = fetch_page
        self.cache = cache
        self.cache_ttl = cache_ttl
        self.sleep = sleep
        self.cancel_event = cancel_event
        self.empty_page_policy = empty_page_policy
        self.last_stats = PageStats()

    async def run(
        self,
        endpoint: str,
        page_size: int,
        max_retries: int,
        inter_page_delay: float,
        retry_delay: float,
    ) -> List[Any]:
        stats = self.last_stats = PageStats()
        key = endpoint_cache_key(endpoint)

        cached = await self._cached(key)
        if cached is not None:
            logger.info("Using cached products for %s (%s records)", endpoint, len(cached))
            stats.from_cache = True
            return cached

        logger.info("Fetching products from %s", endpoint)
        records: List[Any] = []
        state = PaginatorState.FETCHING
        page = 1
        retries = 0

        while state is not PaginatorState.DONE:
            if state is PaginatorState.FETCHING:
                if self.cancel_event is not None and self.cancel_event.is_set():
                    logger.info("Harvest of %s cancelled before page %s", endpoint, page)
                    stats.cancelled = True
                    state = PaginatorState.DONE
                    continue

                url = page_url(endpoint, page, page_size)
                logger.debug("Fetching page %s from %s", page, endpoint)
                stats.fetch_attempts += 1
                try:
                    batch = list(await self.fetch_page(url))
                except Exception as exc:  # any fault in fetch-and-accumulate costs one retry
                    logger.warning("Error fetching page %s from %s: %r", page, endpoint, exc)
                    retries += 1
                    stats.retries_used += 1
                    state = PaginatorState.RETRYING
                    continue

                if not batch:
                    if self.empty_page_policy == EMPTY_PAGE_RETRY:
                        retries += 1
                        stats.retries_used += 1
                        state = PaginatorState.RETRYING
                    else:
                        state = PaginatorState.DONE
                    continue

                records.extend(batch)
                stats.pages_fetched += 1
                retries = 0
                state = PaginatorState.ADVANCING if len(batch) >= page_size else PaginatorState.DONE

            elif state is PaginatorState.ADVANCING:
                await self.sleep(inter_page_delay)
                page += 1
                state = PaginatorState.FETCHING

            elif state is PaginatorState.RETRYING:
                if retries >= max_retries:
                    logger.warning(
                        "Giving up on %s at page %s after %s attempts; keeping %s records",
                        endpoint, page, retries, len(records),
                    )
                    stats.exhausted = True
                    state = PaginatorState.DONE
                else:
                    await self.sleep(retry_delay)
                    state = PaginatorState.FETCHING

        logger.info("Fetched %s products from %s", len(records), endpoint)
        if records and self.cache is not None and not stats.cancelled:
            await self.cache.aset(key, {"products": list(records)}, self.cache_ttl)
        return records

    async def _cached(self, key: str) -> Optional[List[Any]]:
        if self.cache is None:
            return None
        value = await self.cache.aget(key)
        if isinstance(value, dict) and isinstance(value.get("products"), list):
            return list(value["products"])
        return None
