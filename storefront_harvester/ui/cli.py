from __future__ import annotations

import argparse
import asyncio
import logging
from typing import List

from ..cache import ResponseCache
from ..config import HarvestConfig
from ..pipeline import HarvestResult, reclassify, run_harvest
from ..taxonomy import Taxonomy
from ..utils.http import create_session, probe_endpoint
from ..utils.logging import setup_logging
from ..utils.loader import PluginLoadError, load_symbol

logger = logging.getLogger(__name__)


def build_arg_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(description="Storefront catalog harvester")
    p.add_argument("endpoints", nargs="*", help="Catalog endpoint URLs (e.g. https://shop.example/products.json)")
    p.add_argument("--config", type=str, help="Path to config JSON", default=None)
    p.add_argument("--page-size", type=int, default=None, help="Records requested per page")
    p.add_argument("--max-retries", type=int, default=None, help="Retry budget per endpoint")
    p.add_argument("--max-workers", type=int, default=None, help="Endpoints harvested concurrently")
    p.add_argument("--min-price", type=float, default=None, help="Drop products priced below this")
    p.add_argument("--taxonomy", type=str, default=None, help="Collection taxonomy JSON (default: built-in)")
    p.add_argument("--output-dir", type=str, default=None, help="Output directory")
    p.add_argument("--cache-path", type=str, default=None,
                   help="Cache snapshot file (empty string keeps the cache in memory)")
    p.add_argument("--no-render", action="store_true", help="Disable the rendered-page fallback")
    p.add_argument("--clear-cache", action="store_true", help="Clear the response cache before harvesting")
    p.add_argument("--probe", action="store_true", help="Only check that each endpoint answers HEAD with 200")
    p.add_argument("--reclassify", type=str, default=None, metavar="DIR",
                   help="Re-classify products_*.json files from a previous run instead of fetching")
    p.add_argument("--log-level", type=str, default=None, help="Log level (DEBUG, INFO, WARNING, ERROR)")
    p.add_argument("--serve", action="store_true", help="Run REST API server instead of CLI harvest")
    p.add_argument("--host", type=str, default="127.0.0.1", help="API host (when --serve)")
    p.add_argument("--port", type=int, default=8000, help="API port (when --serve)")
    return p


def _load_config(args: argparse.Namespace, validate: bool = True) -> HarvestConfig:
    if args.config:
        cfg = HarvestConfig.from_file(args.config)
    else:
        cfg = HarvestConfig.from_env()

    if args.endpoints:
        cfg.endpoints = list(args.endpoints)
    if args.page_size is not None:
        cfg.page_size = args.page_size
    if args.max_retries is not None:
        cfg.max_retries = args.max_retries
    if args.max_workers is not None:
        cfg.max_workers = args.max_workers
    if args.min_price is not None:
        cfg.minimum_price = args.min_price
    if args.taxonomy:
        cfg.taxonomy_path = args.taxonomy
    if args.output_dir:
        cfg.output_dir = args.output_dir
    if args.cache_path is not None:
        cfg.cache_path = args.cache_path
    if args.no_render:
        cfg.render_fallback = False

    if validate:
        cfg.validate()
    return cfg


def run_server(host: str, port: int) -> None:
    import uvicorn

    uvicorn.run("storefront_harvester.apis.app:app", host=host, port=port)


async def _probe(endpoints: List[str], timeout: float) -> List[bool]:
    session = create_session()
    try:
        return list(await asyncio.gather(*(probe_endpoint(session, u, timeout=timeout) for u in endpoints)))
    finally:
        await session.close()


def run_cli(argv: List[str] | None = None) -> int:
    args = build_arg_parser().parse_args(argv)
    setup_logging(args.log_level)

    if args.serve:
        run_server(args.host, args.port)
        return 0

    try:
        # Re-classifying reads files, so no endpoint is required.
        cfg = _load_config(args, validate=not args.reclassify)
        taxonomy = Taxonomy.load(cfg.taxonomy_path)
        # Resolved up front so a bad path fails before any network work.
        exporter = load_symbol(cfg.exporter)()
    except (OSError, ValueError, PluginLoadError) as exc:
        logger.error("Invalid configuration: %s", exc)
        return 2

    if args.reclassify:
        try:
            result = reclassify(args.reclassify, cfg, taxonomy)
        except (OSError, ValueError) as exc:
            logger.error("Cannot re-classify %s: %s", args.reclassify, exc)
            return 2
        exporter.export(result, cfg.output_dir, batch_size=cfg.batch_size)
        _log_summary(result.summary, cfg.output_dir)
        return 0

    if args.probe:
        results = asyncio.run(_probe(cfg.endpoints, cfg.request_timeout))
        for url, ok in zip(cfg.endpoints, results):
            print(f"{'OK  ' if ok else 'FAIL'} {url}")
        return 0 if all(results) else 1

    cache = ResponseCache.from_path(cfg.cache_path)
    if args.clear_cache:
        cache.clear()

    logger.info("Starting harvest of %s endpoints with %s workers", len(cfg.endpoints), cfg.max_workers)
    logger.info("Will filter out products with price < %s", cfg.minimum_price)
    result: HarvestResult = asyncio.run(run_harvest(cfg, cache=cache, taxonomy=taxonomy))

    exporter.export(result, cfg.output_dir, batch_size=cfg.batch_size)
    _log_summary(result.summary, cfg.output_dir)
    return 0


def _log_summary(summary: dict, output_dir: str) -> None:
    logger.info("Fetched: %s | After filter: %s | Output: %s",
                summary["total_products_fetched"],
                summary["total_products_after_filter"],
                output_dir)
    total = summary["total_products_after_filter"]
    for name, count in summary["categories"].items():
        share = (count / total * 100) if total else 0.0
        logger.info("- %s: %s (%.1f%%)", name, count, share)
