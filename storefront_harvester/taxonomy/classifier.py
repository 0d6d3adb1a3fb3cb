from __future__ import annotations

import logging
from collections import Counter
from typing import Dict, Iterable, List, Optional, Tuple

from ..adapters.base import NormalizedProduct
from .base import FALLBACK_CATEGORY, KeywordIndex, Taxonomy, normalize_text

logger = logging.getLogger(__name__)


def product_text(product: NormalizedProduct) -> str:
    """Normalized text blob the classifier tokenizes."""
    parts = [
        product.product_type,
        product.title,
        product.vendor,
        " ".join(product.tags),
        product.category,
    ]
    return normalize_text(" ".join(p for p in parts if p))


class Classifier:
    """
    Assigns each product to exactly one collection.

    Tokens (and runs of tokens, for multi-word keywords) are looked up in a
    KeywordIndex; every hit counts once for each category sharing that keyword.
    Highest count wins, then the lowest priority number, then the name.
    """

    def __init__(self, taxonomy: Optional[Taxonomy] = None) -> None:
        self.taxonomy = taxonomy if taxonomy is not None else Taxonomy.default()
        self.index = KeywordIndex.build(self.taxonomy)

    def scores(self, product: NormalizedProduct) -> Counter:
        tokens = product_text(product).split()
        counts: Counter = Counter()
        for size in range(1, self.index.max_words + 1):
            for start in range(len(tokens) - size + 1):
                phrase = " ".join(tokens[start:start + size])
                for category in self.index.lookup(phrase):
                    counts[category] += 1
        return counts

    def classify(self, product: NormalizedProduct) -> str:
        counts = self.scores(product)
        if not counts:
            return FALLBACK_CATEGORY
        return min(
            counts,
            key=lambda name: (-counts[name], self.taxonomy[name].priority, name),
        )

    def classify_all(self, products: Iterable[NormalizedProduct]) -> Dict[str, List[NormalizedProduct]]:
        groups: Dict[str, List[NormalizedProduct]] = {}
        for product in products:
            groups.setdefault(self.classify(product), []).append(product)
        return groups


def summarize(groups: Dict[str, List[NormalizedProduct]]) -> List[Tuple[str, int]]:
    """Per-category counts, largest first."""
    return sorted(((name, len(items)) for name, items in groups.items()), key=lambda kv: (-kv[1], kv[0]))
