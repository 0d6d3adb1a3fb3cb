from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional

from .adapters.base import NormalizedProduct
from .adapters.registry import AdapterRegistry
from .adapters.shopify import filter_by_price, normalize
from .cache import ResponseCache
from .config import HarvestConfig
from .engines.base import HarvestEngine, HarvestReport, Renderer
from .taxonomy import Classifier, Taxonomy
from .taxonomy.classifier import summarize
from .utils.loader import load_symbol

logger = logging.getLogger(__name__)


@dataclass
class HarvestResult:
    per_endpoint: Dict[str, List[NormalizedProduct]] = field(default_factory=dict)
    filtered: List[NormalizedProduct] = field(default_factory=list)
    collections: Dict[str, List[NormalizedProduct]] = field(default_factory=dict)
    summary: Dict[str, Any] = field(default_factory=dict)


def build_registry(config: HarvestConfig) -> AdapterRegistry:
    registry = AdapterRegistry()
    # Allow runtime registration of additional adapters
    for dotted in config.extra_adapters:
        try:
            adapter_cls = load_symbol(dotted)
            registry.register(adapter_cls())
        except Exception as exc:
            logger.warning("Failed to load adapter %s: %r", dotted, exc)
    return registry


def build_summary(
    config: HarvestConfig,
    report: HarvestReport,
    fetched: List[NormalizedProduct],
    filtered: List[NormalizedProduct],
    collections: Dict[str, List[NormalizedProduct]],
    cache: Optional[ResponseCache] = None,
) -> Dict[str, Any]:
    return {
        "total_products_fetched": len(fetched),
        "total_products_after_filter": len(filtered),
        "products_filtered_out": len(fetched) - len(filtered),
        "minimum_price_threshold": config.minimum_price,
        "product_types": len({p.product_type for p in filtered}),
        "vendors": len({p.vendor for p in filtered}),
        "categories": dict(summarize(collections)),
        "fetched_at": datetime.now(timezone.utc).isoformat(),
        "endpoints": list(config.endpoints),
        "failed_endpoints": list(report.failed),
        "workers_used": config.max_workers,
        "cache_hits": cache.hits if cache is not None else 0,
        "cache_misses": cache.misses if cache is not None else 0,
    }


async def run_harvest(
    config: HarvestConfig,
    cache: Optional[ResponseCache] = None,
    taxonomy: Optional[Taxonomy] = None,
    renderer: Optional[Renderer] = None,
) -> HarvestResult:
    """Fetch every endpoint, then normalize, price-filter and classify. No file I/O."""
    if cache is None:
        cache = ResponseCache.from_path(config.cache_path)
    if taxonomy is None:
        taxonomy = Taxonomy.load(config.taxonomy_path)

    engine_cls = load_symbol(config.engine, expected=HarvestEngine)
    engine = engine_cls(config, registry=build_registry(config), cache=cache, renderer=renderer)
    report: HarvestReport = await engine.harvest()

    fetched = report.all_products()
    filtered = filter_by_price(fetched, config.minimum_price)
    collections = Classifier(taxonomy).classify_all(filtered)
    summary = build_summary(config, report, fetched, filtered, collections, cache)

    logger.info(
        "Fetched: %s | After filter: %s | Categories: %s",
        summary["total_products_fetched"],
        summary["total_products_after_filter"],
        ", ".join(f"{name}={count}" for name, count in summary["categories"].items()) or "-",
    )
    return HarvestResult(
        per_endpoint=report.products,
        filtered=filtered,
        collections=collections,
        summary=summary,
    )


def load_exported_products(directory: str) -> Dict[str, List[NormalizedProduct]]:
    """
    Read the per-endpoint ``products_<host>.json`` files of a previous run.
    Keys are the file stems; category sub-directories are not read.
    """
    root = Path(directory)
    if not root.is_dir():
        raise FileNotFoundError(f"not a directory: {directory}")
    per_source: Dict[str, List[NormalizedProduct]] = {}
    for path in sorted(root.glob("products_*.json")):
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
        if not isinstance(data, list):
            logger.warning("Skipping %s: not a list of products", path.name)
            continue
        per_source[path.stem] = [normalize(item) for item in data]
    return per_source


def reclassify(
    directory: str,
    config: HarvestConfig,
    taxonomy: Optional[Taxonomy] = None,
) -> HarvestResult:
    """Price-filter and classify previously exported products without fetching."""
    if taxonomy is None:
        taxonomy = Taxonomy.load(config.taxonomy_path)

    per_source = load_exported_products(directory)
    if not per_source:
        logger.warning("No products_*.json files found in %s", directory)

    fetched = [p for products in per_source.values() for p in products]
    filtered = filter_by_price(fetched, config.minimum_price)
    collections = Classifier(taxonomy).classify_all(filtered)
    summary = build_summary(config, HarvestReport(), fetched, filtered, collections)
    summary["endpoints"] = sorted(per_source)
    summary["source_dir"] = str(directory)

    logger.info(
        "Reclassified %s products from %s files in %s",
        len(fetched), len(per_source), directory,
    )
    # Per-endpoint files are the input here, so they are not written back.
    return HarvestResult(filtered=filtered, collections=collections, summary=summary)
