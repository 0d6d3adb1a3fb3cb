from __future__ import annotations

from typing import Any, Dict, List, Optional
import logging

from fastapi import FastAPI, HTTPException
from pydantic import BaseModel, Field

from ..adapters.shopify import normalize
from ..cache import ResponseCache
from ..config import HarvestConfig
from ..pipeline import run_harvest
from ..taxonomy import Classifier, Taxonomy
from ..version import __version__

logger = logging.getLogger(__name__)

app = FastAPI(title="storefront_harvester API", version=__version__)

_state: Dict[str, Any] = {}


def get_cache() -> ResponseCache:
    if "cache" not in _state:
        _state["cache"] = ResponseCache.from_path(HarvestConfig.from_env().cache_path)
    return _state["cache"]


def get_classifier() -> Classifier:
    if "classifier" not in _state:
        _state["classifier"] = Classifier(Taxonomy.load(HarvestConfig.from_env().taxonomy_path))
    return _state["classifier"]


class HarvestRequest(BaseModel):
    endpoints: List[str]
    page_size: Optional[int] = None
    max_retries: Optional[int] = None
    max_workers: Optional[int] = None
    minimum_price: Optional[float] = None
    render_fallback: Optional[bool] = None


class ClassifyRequest(BaseModel):
    products: List[Dict[str, Any]] = Field(default_factory=list)


class ClassifiedItem(BaseModel):
    id: Optional[Any] = None
    title: str
    category: str


@app.get("/health")
async def health() -> Dict[str, str]:
    return {"status": "ok"}


@app.get("/cache/stats")
async def cache_stats() -> Dict[str, int]:
    return get_cache().stats()


@app.post("/classify")
async def classify(req: ClassifyRequest) -> Dict[str, List[ClassifiedItem]]:
    classifier = get_classifier()
    items = []
    for raw in req.products:
        product = normalize(raw)
        items.append(ClassifiedItem(id=product.id, title=product.title, category=classifier.classify(product)))
    return {"results": items}


@app.post("/harvest")
async def harvest(req: HarvestRequest) -> Dict[str, Any]:
    cfg = HarvestConfig.from_env()
    cfg.endpoints = req.endpoints or cfg.endpoints
    if req.page_size is not None:
        cfg.page_size = req.page_size
    if req.max_retries is not None:
        cfg.max_retries = req.max_retries
    if req.max_workers is not None:
        cfg.max_workers = req.max_workers
    if req.minimum_price is not None:
        cfg.minimum_price = req.minimum_price
    if req.render_fallback is not None:
        cfg.render_fallback = req.render_fallback

    try:
        cfg.validate()
    except ValueError as exc:
        raise HTTPException(status_code=422, detail=str(exc)) from exc

    result = await run_harvest(cfg, cache=get_cache(), taxonomy=get_classifier().taxonomy)
    return {"summary": result.summary, "collections": result.summary["categories"]}
