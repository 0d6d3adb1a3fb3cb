from __future__ import annotations

from typing import TYPE_CHECKING, Protocol

if TYPE_CHECKING:
    from ..pipeline import HarvestResult


class Exporter(Protocol):
    def export(self, result: "HarvestResult", output_dir: str, batch_size: int = 250) -> None:
        ...
