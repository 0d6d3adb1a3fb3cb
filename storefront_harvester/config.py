from __future__ import annotations

from dataclasses import dataclass, field, asdict
from typing import List, Optional, Dict, Any
from urllib.parse import urlparse
import os
import json

from .version import CONFIG_SCHEMA_VERSION


def _default_workers() -> int:
    return max(1, (os.cpu_count() or 2) // 2)


_TRUTHY = {"1", "true", "yes", "on"}


@dataclass
class HarvestConfig:
    """
    Canonical configuration object passed throughout the system.
    Keep it dataclass-only (no heavy deps) to stay upgrade-friendly.
    Durations are in seconds.
    """
    schema_version: int = CONFIG_SCHEMA_VERSION
    endpoints: List[str] = field(default_factory=list)
    page_size: int = 250
    inter_page_delay: float = 2.0
    # Retry pause = inter_page_delay * retry_delay_multiplier
    retry_delay_multiplier: float = 2.0
    max_retries: int = 3
    max_workers: int = field(default_factory=_default_workers)
    request_timeout: float = 30.0
    render_timeout: float = 60.0
    render_fallback: bool = True
    minimum_price: float = 25.0
    # Empty string keeps the cache in memory only.
    cache_path: str = "cache.json"
    cache_ttl: float = 3600.0
    taxonomy_path: Optional[str] = None
    output_dir: str = "products"
    batch_size: int = 250
    # Dotted paths for engine/exporter to allow runtime swapping without code changes.
    engine: str = "storefront_harvester.engines.pool_engine:EndpointPoolEngine"
    exporter: str = "storefront_harvester.export.json_exporter:JSONExporter"
    # Extra adapters (dotted class paths) to register at startup
    extra_adapters: List[str] = field(default_factory=list)

    @property
    def retry_delay(self) -> float:
        return self.inter_page_delay * self.retry_delay_multiplier

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    # ---------- Loaders ----------

    @classmethod
    def from_env(cls) -> "HarvestConfig":
        """
        Build config from environment variables (all optional).
        """
        def _get(name: str, default: str) -> str:
            return os.getenv(name, default)

        def _list(name: str) -> List[str]:
            return [v.strip() for v in _get(name, "").split(",") if v.strip()]

        defaults = cls()
        return cls(
            endpoints=_list("HARVEST_ENDPOINTS"),
            page_size=int(_get("HARVEST_PAGE_SIZE", str(defaults.page_size))),
            inter_page_delay=float(_get("HARVEST_INTER_PAGE_DELAY", str(defaults.inter_page_delay))),
            retry_delay_multiplier=float(
                _get("HARVEST_RETRY_DELAY_MULTIPLIER", str(defaults.retry_delay_multiplier))
            ),
            max_retries=int(_get("HARVEST_MAX_RETRIES", str(defaults.max_retries))),
            max_workers=int(_get("HARVEST_MAX_WORKERS", str(defaults.max_workers))),
            request_timeout=float(_get("HARVEST_REQUEST_TIMEOUT", str(defaults.request_timeout))),
            render_timeout=float(_get("HARVEST_RENDER_TIMEOUT", str(defaults.render_timeout))),
            render_fallback=_get("HARVEST_RENDER_FALLBACK", "true").lower() in _TRUTHY,
            minimum_price=float(_get("HARVEST_MINIMUM_PRICE", str(defaults.minimum_price))),
            cache_path=_get("HARVEST_CACHE_PATH", defaults.cache_path),
            cache_ttl=float(_get("HARVEST_CACHE_TTL", str(defaults.cache_ttl))),
            taxonomy_path=_get("HARVEST_TAXONOMY_PATH", "") or None,
            output_dir=_get("HARVEST_OUTPUT_DIR", defaults.output_dir),
            batch_size=int(_get("HARVEST_BATCH_SIZE", str(defaults.batch_size))),
            engine=_get("HARVEST_ENGINE", defaults.engine),
            exporter=_get("HARVEST_EXPORTER", defaults.exporter),
            extra_adapters=_list("HARVEST_EXTRA_ADAPTERS"),
        )

    @classmethod
    def from_file(cls, path: str | os.PathLike[str]) -> "HarvestConfig":
        """
        Load configuration from a JSON file. Supports schema migration for older versions.
        """
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
        data = migrate_config(data)
        return cls(**data)

    # ---------- Validation ----------

    def validate(self) -> None:
        if not self.endpoints:
            raise ValueError("endpoints cannot be empty; provide at least one URL.")
        for url in self.endpoints:
            parsed = urlparse(url)
            if parsed.scheme not in ("http", "https") or not parsed.netloc:
                raise ValueError(f"endpoint is not an http(s) URL: {url!r}")
        for name in ("page_size", "max_retries", "max_workers", "batch_size"):
            if getattr(self, name) <= 0:
                raise ValueError(f"{name} must be > 0")
        for name in ("inter_page_delay", "retry_delay_multiplier", "minimum_price"):
            if getattr(self, name) < 0:
                raise ValueError(f"{name} must be >= 0")
        if self.request_timeout <= 0 or self.render_timeout <= 0:
            raise ValueError("timeouts must be > 0")


def migrate_config(raw: Dict[str, Any]) -> Dict[str, Any]:
    """
    Migrate config dict to the latest schema version.
    Keep this pure and additive. Add migrations here as you bump schema.
    """
    data = dict(raw)

    # Ensure a schema_version is present
    data.setdefault("schema_version", CONFIG_SCHEMA_VERSION)
    return data
