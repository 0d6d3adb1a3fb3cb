from __future__ import annotations

import asyncio
import logging
from typing import Any, Callable, Dict, List, Optional

from aiohttp import ClientSession

from .base import HarvestEngine, HarvestReport, Renderer
from .browser_engine import BrowserRenderer, NullRenderer
from .paginator import Paginator, PageStats
from .strategy import FetchStrategySelector
from ..adapters.registry import AdapterRegistry
from ..cache import ResponseCache
from ..config import HarvestConfig
from ..utils.http import create_session

logger = logging.getLogger(__name__)


class EndpointPoolEngine(HarvestEngine):
    """
    Runs one Paginator per configured endpoint.
    - Engine owns HTTP session, cache wiring and the worker bound.
    - Adapters own record normalization.
    - Concurrency capped by a semaphore; one endpoint's fault never fails the join.
    """
    def __init__(
        self,
        config: HarvestConfig,
        registry: AdapterRegistry | None = None,
        cache: ResponseCache | None = None,
        renderer: Renderer | None = None,
        session_factory: Optional[Callable[[], ClientSession]] = None,
        cancel_event: Optional[asyncio.Event] = None,
    ) -> None:
        self.config = config
        self.registry = registry or AdapterRegistry()
        self.registry.discover_entry_points()
        self.cache = cache if cache is not None else ResponseCache.from_path(config.cache_path)
        if renderer is None:
            renderer = BrowserRenderer() if config.render_fallback else NullRenderer()
        self.renderer = renderer
        self.session_factory = session_factory or create_session
        self.cancel_event = cancel_event
        self.stats: Dict[str, PageStats] = {}

    async def harvest(self) -> HarvestReport:
        cfg = self.config
        sem = asyncio.Semaphore(cfg.max_workers)
        report = HarvestReport()

        # Results are keyed by endpoint, so each URL is walked once.
        endpoints = list(dict.fromkeys(cfg.endpoints))
        if len(endpoints) < len(cfg.endpoints):
            logger.warning(
                "Ignoring %s duplicate endpoint(s)", len(cfg.endpoints) - len(endpoints)
            )

        session = self.session_factory()
        try:
            selector = FetchStrategySelector(
                session,
                self.renderer,
                self.cache,
                request_timeout=cfg.request_timeout,
                render_timeout=cfg.render_timeout,
                cache_ttl=cfg.cache_ttl,
            )

            async def worker(endpoint: str) -> List[Any]:
                async with sem:
                    paginator = Paginator(
                        selector.fetch_page,
                        self.cache,
                        cache_ttl=cfg.cache_ttl,
                        cancel_event=self.cancel_event,
                    )
                    try:
                        return await paginator.run(
                            endpoint,
                            page_size=cfg.page_size,
                            max_retries=cfg.max_retries,
                            inter_page_delay=cfg.inter_page_delay,
                            retry_delay=cfg.retry_delay,
                        )
                    finally:
                        self.stats[endpoint] = paginator.last_stats

            tasks = [asyncio.create_task(worker(u)) for u in endpoints]
            results = await asyncio.gather(*tasks, return_exceptions=True)
        finally:
            await session.close()

        for endpoint, result in zip(endpoints, results):
            if isinstance(result, BaseException):
                if not isinstance(result, Exception):
                    raise result
                self._record_failure(report, endpoint, "Worker", result)
                continue
            adapter = self.registry.match(endpoint)
            try:
                products = [adapter.normalize(r) for r in result]
            except Exception as exc:  # third-party adapters are isolated like workers
                self._record_failure(report, endpoint, f"Adapter {adapter.name!r}", exc)
                continue
            report.raw[endpoint] = result
            report.products[endpoint] = products

        logger.info(
            "Harvested %s records from %s endpoints (%s failed)",
            sum(len(r) for r in report.raw.values()),
            len(endpoints),
            len(report.failed),
        )
        return report

    @staticmethod
    def _record_failure(report: HarvestReport, endpoint: str, what: str, exc: Exception) -> None:
        logger.error(
            "%s for %s failed; contributing no products",
            what,
            endpoint,
            exc_info=(type(exc), exc, exc.__traceback__),
        )
        report.failed.append(endpoint)
        report.raw[endpoint] = []
        report.products[endpoint] = []
