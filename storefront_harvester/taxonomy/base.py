from __future__ import annotations

import json
import logging
import os
import re
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any, Dict, FrozenSet, Iterator, Optional

from ..errors import TaxonomyError
from .defaults import DEFAULT_COLLECTIONS

logger = logging.getLogger(__name__)

FALLBACK_CATEGORY = "uncategorized"
FALLBACK_PRIORITY = 99

_PUNCT = re.compile(r"[^\w\s]")
_SPACES = re.compile(r"\s+")


def normalize_text(text: str) -> str:
    """Lower-case, turn punctuation into spaces, collapse runs of whitespace."""
    return _SPACES.sub(" ", _PUNCT.sub(" ", text.lower())).strip()


@dataclass(frozen=True)
class CollectionSpec:
    keywords: FrozenSet[str]
    priority: int
    description: str = ""


class Taxonomy(Mapping):
    """
    Immutable category -> CollectionSpec mapping.
    Always contains the fallback category, with no keywords.
    """

    def __init__(self, collections: Mapping) -> None:
        specs: Dict[str, CollectionSpec] = dict(collections)
        fallback = specs.get(FALLBACK_CATEGORY)
        if fallback is None:
            specs[FALLBACK_CATEGORY] = CollectionSpec(
                keywords=frozenset(),
                priority=FALLBACK_PRIORITY,
                description="Products that don't fit other categories",
            )
        elif fallback.keywords:
            raise TaxonomyError(f"{FALLBACK_CATEGORY!r} must not declare keywords")
        self._specs = specs

    def __getitem__(self, name: str) -> CollectionSpec:
        return self._specs[name]

    def __iter__(self) -> Iterator[str]:
        return iter(self._specs)

    def __len__(self) -> int:
        return len(self._specs)

    def __repr__(self) -> str:
        return f"Taxonomy({sorted(self._specs)!r})"

    # ---------- Loaders ----------

    @classmethod
    def from_dict(cls, data: Any) -> "Taxonomy":
        if not isinstance(data, dict):
            raise TaxonomyError("taxonomy must be a mapping of category -> settings")
        specs: Dict[str, CollectionSpec] = {}
        for name, raw in data.items():
            if not isinstance(raw, dict):
                raise TaxonomyError(f"category {name!r}: settings must be a mapping")
            keywords = raw.get("keywords", [])
            if not isinstance(keywords, list) or not all(isinstance(k, str) for k in keywords):
                raise TaxonomyError(f"category {name!r}: keywords must be a list of strings")
            priority = raw.get("priority", FALLBACK_PRIORITY)
            if isinstance(priority, bool) or not isinstance(priority, int):
                raise TaxonomyError(f"category {name!r}: priority must be an integer")
            specs[str(name)] = CollectionSpec(
                keywords=frozenset(k.lower() for k in keywords if k.strip()),
                priority=priority,
                description=str(raw.get("description", "")),
            )
        return cls(specs)

    @classmethod
    def from_file(cls, path: str | os.PathLike[str]) -> "Taxonomy":
        with open(path, "r", encoding="utf-8") as f:
            try:
                data = json.load(f)
            except json.JSONDecodeError as exc:
                raise TaxonomyError(f"{path}: invalid JSON: {exc}") from exc
        taxonomy = cls.from_dict(data)
        logger.info("Loaded taxonomy with %s categories from %s", len(taxonomy), path)
        return taxonomy

    @classmethod
    def default(cls) -> "Taxonomy":
        return cls.from_dict(DEFAULT_COLLECTIONS)

    @classmethod
    def load(cls, path: Optional[str] = None) -> "Taxonomy":
        return cls.from_file(path) if path else cls.default()


class KeywordIndex:
    """
    Normalized keyword -> categories lookup built once from a taxonomy.
    Multi-word keywords are stored as space-joined phrases; ``max_words``
    bounds the token windows a classifier needs to try.
    """

    def __init__(self, entries: Dict[str, FrozenSet[str]]) -> None:
        self._entries = entries
        self.max_words = max((len(k.split(" ")) for k in entries), default=0)

    @classmethod
    def build(cls, taxonomy: Taxonomy) -> "KeywordIndex":
        collected: Dict[str, set] = {}
        for name, spec in taxonomy.items():
            for keyword in spec.keywords:
                phrase = normalize_text(keyword)
                if phrase:
                    collected.setdefault(phrase, set()).add(name)
        return cls({phrase: frozenset(names) for phrase, names in collected.items()})

    def lookup(self, phrase: str) -> FrozenSet[str]:
        return self._entries.get(phrase, frozenset())

    def __contains__(self, phrase: object) -> bool:
        return phrase in self._entries

    def __len__(self) -> int:
        return len(self._entries)
