from .base import CollectionSpec, KeywordIndex, Taxonomy, FALLBACK_CATEGORY, normalize_text
from .classifier import Classifier

__all__ = [
    "Classifier",
    "CollectionSpec",
    "FALLBACK_CATEGORY",
    "KeywordIndex",
    "Taxonomy",
    "normalize_text",
]
