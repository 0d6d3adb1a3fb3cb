from __future__ import annotations

import logging
import math
from typing import Any, Dict, Iterable, List, Optional

from .base import Dimensions, Image, NormalizedProduct, Variant

logger = logging.getLogger(__name__)

_PRODUCT_KEYS = {
    "id", "title", "handle", "body_html", "published_at", "created_at", "updated_at",
    "vendor", "product_type", "tags", "variants", "images", "options", "status",
    # derived on our side; a raw value must not shadow ours
    "price", "compare_at_price", "featured_image_url", "images_count", "variants_count",
    "barcode", "brand", "category", "availability", "condition", "weight", "dimensions",
}

_VARIANT_KEYS = {
    "id", "title", "price", "compare_at_price", "sku", "available", "barcode", "weight",
    "grams", "inventory_quantity", "option1", "option2", "option3", "dimensions",
    "length", "width", "height",
}


def parse_price(value: Any) -> Optional[float]:
    """Parse a price field; None for anything that is not a finite, non-negative number."""
    if value is None or isinstance(value, bool):
        return None
    try:
        price = float(str(value).strip())
    except ValueError:
        return None
    if not math.isfinite(price) or price < 0:
        return None
    return price


def min_price(values: Iterable[Any]) -> Optional[float]:
    parsed = [p for p in (parse_price(v) for v in values) if p is not None]
    return min(parsed) if parsed else None


def coerce_tags(tags: Any) -> List[str]:
    """A sequence is kept as-is; a delimited string is split once on commas."""
    if isinstance(tags, (list, tuple)):
        return [t if isinstance(t, str) else str(t) for t in tags]
    if isinstance(tags, str):
        return [t.strip() for t in tags.split(",") if t.strip()]
    return []


def _text(value: Any, default: str = "") -> str:
    if value is None:
        return default
    return value if isinstance(value, str) else str(value)


def _opt_text(value: Any) -> Optional[str]:
    return None if value is None else _text(value)


def _number(value: Any) -> Optional[float]:
    if value is None or isinstance(value, bool):
        return None
    try:
        num = float(value)
    except (TypeError, ValueError):
        return None
    return num if math.isfinite(num) else None


def _int(value: Any) -> Optional[int]:
    num = _number(value)
    return int(num) if num is not None else None


def _dicts(value: Any) -> List[Dict[str, Any]]:
    if not isinstance(value, list):
        return []
    return [item for item in value if isinstance(item, dict)]


def _dimensions(raw: Dict[str, Any]) -> Optional[Dimensions]:
    source = raw.get("dimensions")
    if not isinstance(source, dict):
        if not any(k in raw for k in ("length", "width", "height")):
            return None
        source = raw
    return Dimensions(
        length=_number(source.get("length")),
        width=_number(source.get("width")),
        height=_number(source.get("height")),
    )


def _variant(raw: Dict[str, Any]) -> Variant:
    return Variant(
        id=raw.get("id"),
        title=_text(raw.get("title")),
        price=_opt_text(raw.get("price")),
        compare_at_price=_opt_text(raw.get("compare_at_price")),
        sku=_opt_text(raw.get("sku")),
        available=bool(raw.get("available")),
        barcode=_opt_text(raw.get("barcode")),
        weight=_number(raw.get("weight")),
        grams=_number(raw.get("grams")),
        inventory_quantity=_int(raw.get("inventory_quantity")),
        option1=_opt_text(raw.get("option1")),
        option2=_opt_text(raw.get("option2")),
        option3=_opt_text(raw.get("option3")),
        dimensions=_dimensions(raw),
        extra={k: v for k, v in raw.items() if k not in _VARIANT_KEYS},
    )


def _images(value: Any) -> List[Image]:
    images: List[Image] = []
    if not isinstance(value, list):
        return images
    for item in value:
        if isinstance(item, str):
            images.append(Image(src=item))
        elif isinstance(item, dict):
            images.append(Image(
                id=item.get("id"),
                src=_text(item.get("src")),
                alt=_opt_text(item.get("alt")),
                position=_int(item.get("position")),
                width=_int(item.get("width")),
                height=_int(item.get("height")),
            ))
    return images


def normalize(raw: Any) -> NormalizedProduct:
    """
    Map a raw storefront record (``products.json`` shape) to a NormalizedProduct.
    Pure and total: anything malformed degrades to an empty/absent field.
    """
    if not isinstance(raw, dict):
        raw = {}

    raw_variants = _dicts(raw.get("variants"))
    variants = [_variant(v) for v in raw_variants]
    images = _images(raw.get("images"))
    vendor = _text(raw.get("vendor"))
    product_type = _text(raw.get("product_type"))
    first = variants[0] if variants else None

    return NormalizedProduct(
        id=raw.get("id"),
        title=_text(raw.get("title")),
        handle=_text(raw.get("handle")),
        vendor=vendor,
        product_type=product_type,
        tags=coerce_tags(raw.get("tags")),
        variants=variants,
        images=images,
        options=_dicts(raw.get("options")),
        body_html=_opt_text(raw.get("body_html")),
        published_at=_opt_text(raw.get("published_at")),
        created_at=_opt_text(raw.get("created_at")),
        updated_at=_opt_text(raw.get("updated_at")),
        price=min_price(v.get("price") for v in raw_variants),
        compare_at_price=min_price(
            v.get("compare_at_price") for v in raw_variants if v.get("compare_at_price")
        ),
        featured_image=images[0].src if images else None,
        availability="in stock" if any(v.available for v in variants) else "out of stock",
        status=_text(raw.get("status")) or "active",
        barcode=first.barcode if first else None,
        brand=vendor,
        category=product_type,
        weight=first.weight if first else None,
        dimensions=first.dimensions if first else None,
        extra={k: v for k, v in raw.items() if k not in _PRODUCT_KEYS},
    )


def filter_by_price(products: List[NormalizedProduct], minimum: float) -> List[NormalizedProduct]:
    """Keep products priced at or above ``minimum``; an absent price counts as 0."""
    kept = [p for p in products if (p.price or 0.0) >= minimum]
    dropped = len(products) - len(kept)
    if dropped:
        logger.warning("Filtered out %s products with price < %s", dropped, minimum)
    return kept


class ShopifyAdapter:
    """
    Normalizer for the ``/products.json`` catalog shape most storefronts expose.
    Acts as the fallback when no specific adapter matches an endpoint.
    """
    name = "shopify"
    domains: List[str] = []  # matches any

    def matches(self, url: str) -> bool:  # pragma: no cover - trivial
        return True

    def normalize(self, raw: Any) -> NormalizedProduct:
        return normalize(raw)
