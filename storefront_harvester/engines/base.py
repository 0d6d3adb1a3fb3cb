from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Protocol
from abc import ABC, abstractmethod

from ..adapters.base import NormalizedProduct


@dataclass
class HarvestReport:
    raw: Dict[str, List[Any]] = field(default_factory=dict)  # endpoint -> raw records, page order
    products: Dict[str, List[NormalizedProduct]] = field(default_factory=dict)  # endpoint -> normalized
    failed: List[str] = field(default_factory=list)  # endpoints whose worker faulted

    def records(self) -> List[Any]:
        return [r for records in self.raw.values() for r in records]

    def all_products(self) -> List[NormalizedProduct]:
        return [p for products in self.products.values() for p in products]


class Renderer(Protocol):
    """Rendered-page extraction used when the direct request fails."""

    async def render(self, url: str, timeout: float) -> List[Any]:
        """Return raw records found on the rendered page; may raise."""
        ...


class HarvestEngine(ABC):
    """
    Abstract engine interface. Implementations own the harvest lifecycle.
    """
    @abstractmethod
    async def harvest(self) -> HarvestReport:  # pragma: no cover - interface
        ...
