from __future__ import annotations

import logging
from typing import List
from importlib import metadata

from .base import RecordAdapter
from .shopify import ShopifyAdapter

logger = logging.getLogger(__name__)


class AdapterRegistry:
    """
    Registry for available record adapters.
    Supports built-ins, config-defined dotted classes, and entry-point plugins.
    """
    def __init__(self) -> None:
        self._adapters: List[RecordAdapter] = [ShopifyAdapter()]

    # ---- Introspection / Management ----

    def register(self, adapter: RecordAdapter) -> None:
        self._adapters.append(adapter)

    @property
    def adapters(self) -> List[RecordAdapter]:
        return list(self._adapters)

    def match(self, url: str) -> RecordAdapter:
        # Prefer specific adapters over the fallback (kept first in list).
        for a in self._adapters[1:]:
            if a.matches(url):
                return a
        return self._adapters[0]

    # ---- Discovery ----

    def discover_entry_points(self, group: str = "storefront_harvester.adapters") -> int:
        """
        Discover third-party adapters installed as entry points.
        Returns count of newly registered adapters.
        """
        added = 0
        for ep in metadata.entry_points(group=group):
            try:
                adapter_cls = ep.load()
                self.register(adapter_cls())
            except Exception as exc:  # plugins are optional; one bad one must not stop the run
                logger.warning("Failed to load adapter plugin %s: %r", ep.name, exc)
                continue
            added += 1
        return added
