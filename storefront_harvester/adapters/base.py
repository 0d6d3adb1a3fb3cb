from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Protocol
from urllib.parse import urlparse


class RecordAdapter(Protocol):
    """
    Interface for source-specific record normalization.
    Keep this small and stable so adapters rarely break across upgrades.
    """

    name: str
    domains: List[str]  # e.g. ["example.com", "www.example.com"]

    def matches(self, url: str) -> bool:
        """Return True if this adapter should handle records from the given endpoint."""
        ...

    def normalize(self, raw: Any) -> "NormalizedProduct":
        """
        Map one raw source record to the canonical product shape.
        Must never raise; malformed fields degrade to safe defaults.
        """
        ...


def domain_of(url: str) -> str:
    return urlparse(url).netloc


def _drop_none(data: Dict[str, Any]) -> Dict[str, Any]:
    return {k: v for k, v in data.items() if v is not None}


@dataclass
class Dimensions:
    length: Optional[float] = None
    width: Optional[float] = None
    height: Optional[float] = None

    def to_dict(self) -> Dict[str, Any]:
        return {"length": self.length, "width": self.width, "height": self.height}


@dataclass
class Variant:
    id: Any = None
    title: str = ""
    price: Optional[str] = None
    compare_at_price: Optional[str] = None
    sku: Optional[str] = None
    available: bool = False
    barcode: Optional[str] = None
    weight: Optional[float] = None
    grams: Optional[float] = None
    inventory_quantity: Optional[int] = None
    option1: Optional[str] = None
    option2: Optional[str] = None
    option3: Optional[str] = None
    dimensions: Optional[Dimensions] = None
    extra: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "id": self.id,
            "title": self.title,
            "price": self.price,
            "compare_at_price": self.compare_at_price,
            "sku": self.sku,
            "available": self.available,
            "barcode": self.barcode,
            "weight": self.weight,
            "grams": self.grams,
            "inventory_quantity": self.inventory_quantity,
            "option1": self.option1,
            "option2": self.option2,
            "option3": self.option3,
            "dimensions": self.dimensions.to_dict() if self.dimensions else None,
        }
        clean = _drop_none(data)
        clean.update(self.extra)
        return clean


@dataclass
class Image:
    id: Any = None
    src: str = ""
    alt: Optional[str] = None
    position: Optional[int] = None
    width: Optional[int] = None
    height: Optional[int] = None

    def to_dict(self) -> Dict[str, Any]:
        return _drop_none({
            "id": self.id,
            "src": self.src,
            "alt": self.alt,
            "position": self.position,
            "width": self.width,
            "height": self.height,
        })


@dataclass
class NormalizedProduct:
    """Canonical product record: source identity fields plus derived pricing/stock fields."""

    id: Any
    title: str
    handle: str
    vendor: str
    product_type: str
    tags: List[str] = field(default_factory=list)
    variants: List[Variant] = field(default_factory=list)
    images: List[Image] = field(default_factory=list)
    options: List[Dict[str, Any]] = field(default_factory=list)
    body_html: Optional[str] = None
    published_at: Optional[str] = None
    created_at: Optional[str] = None
    updated_at: Optional[str] = None
    # ---- derived ----
    price: Optional[float] = None
    compare_at_price: Optional[float] = None
    featured_image: Optional[str] = None
    availability: str = "out of stock"
    condition: str = "new"
    status: str = "active"
    barcode: Optional[str] = None
    brand: str = ""
    category: str = ""
    weight: Optional[float] = None
    dimensions: Optional[Dimensions] = None
    # Raw keys we do not model, carried through untouched.
    extra: Dict[str, Any] = field(default_factory=dict)

    @property
    def images_count(self) -> int:
        return len(self.images)

    @property
    def variants_count(self) -> int:
        return len(self.variants)

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = dict(self.extra)
        data.update({
            "id": self.id,
            "title": self.title,
            "handle": self.handle,
            "body_html": self.body_html,
            "published_at": self.published_at,
            "created_at": self.created_at,
            "updated_at": self.updated_at,
            "vendor": self.vendor,
            "product_type": self.product_type,
            "tags": list(self.tags),
            "variants": [v.to_dict() for v in self.variants],
            "images": [i.to_dict() for i in self.images],
            "options": list(self.options),
            "price": self.price,
            "compare_at_price": self.compare_at_price,
            "featured_image_url": self.featured_image,
            "images_count": self.images_count,
            "variants_count": self.variants_count,
            "status": self.status,
            "barcode": self.barcode,
            "brand": self.brand,
            "category": self.category,
            "availability": self.availability,
            "condition": self.condition,
            "weight": self.weight,
            "dimensions": self.dimensions.to_dict() if self.dimensions else None,
        })
        # Drop unset keys for a cleaner export.
        return _drop_none(data)
