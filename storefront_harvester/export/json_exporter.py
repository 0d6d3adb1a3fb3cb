from __future__ import annotations

import json
import logging
from typing import Any, List
from pathlib import Path

from .base import Exporter
from ..adapters.base import NormalizedProduct
from ..pipeline import HarvestResult
from ..utils.parsing import hostname_of, sanitize_filename

logger = logging.getLogger(__name__)


def batch_filename(index: int) -> str:
    """products.json, products_2.json, products_3.json, ..."""
    return "products.json" if index == 0 else f"products_{index + 1}.json"


class JSONExporter:
    """
    Layout under ``output_dir``:
      products_<host>.json           normalized products per endpoint
      <category>/products[_N].json   classified products, ``batch_size`` per file
      summary.json                   run summary
    """

    def export(self, result: HarvestResult, output_dir: str, batch_size: int = 250) -> None:
        root = Path(output_dir)
        root.mkdir(parents=True, exist_ok=True)

        for endpoint, products in result.per_endpoint.items():
            name = f"products_{sanitize_filename(hostname_of(endpoint))}.json"
            self._write(root / name, [p.to_dict() for p in products])

        for category, products in result.collections.items():
            target = root / sanitize_filename(category)
            target.mkdir(parents=True, exist_ok=True)
            for stale in target.glob("products*.json"):
                stale.unlink()
            for index, batch in enumerate(_batches(products, batch_size)):
                self._write(target / batch_filename(index), [p.to_dict() for p in batch])

        self._write(root / "summary.json", result.summary)
        logger.info("Wrote %s collections to %s", len(result.collections), root)

    @staticmethod
    def _write(path: Path, data: Any) -> None:
        with open(path, "w", encoding="utf-8") as f:
            json.dump(data, f, indent=2, ensure_ascii=False)


def _batches(products: List[NormalizedProduct], size: int) -> List[List[NormalizedProduct]]:
    return [products[i:i + size] for i in range(0, len(products), size)]
