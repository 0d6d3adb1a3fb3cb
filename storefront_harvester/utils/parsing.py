from __future__ import annotations

from typing import Any, Iterable, List
from urllib.parse import urlparse

from bs4 import BeautifulSoup
import json
import re

_UNSAFE = re.compile(r"[^a-z0-9]", re.IGNORECASE)


def sanitize_filename(name: str) -> str:
    """Map every non-alphanumeric character to ``_`` and lower-case the rest."""
    return _UNSAFE.sub("_", name).lower()


def hostname_of(url: str) -> str:
    return urlparse(url).hostname or ""


def endpoint_cache_key(endpoint: str) -> str:
    """Cache key holding the aggregated catalog of one endpoint."""
    return f"products_{sanitize_filename(hostname_of(endpoint))}"


def extract_products_from_html(html: str) -> List[Any]:
    """
    Pull a ``products`` list out of a rendered page.
    Browsers wrap raw JSON responses in a <pre>; storefront themes sometimes
    embed catalog JSON in <script type="application/json"> blocks.
    """
    soup = BeautifulSoup(html, "html.parser")

    pre = soup.find("pre")
    if pre is not None:
        products = _products_from_json(pre.get_text())
        if products:
            return products

    for script in soup.find_all("script", attrs={"type": "application/json"}):
        products = _products_from_json(script.string or "")
        if products:
            return products

    return []


def _products_from_json(payload: str) -> List[Any]:
    try:
        data = json.loads(payload)
    except json.JSONDecodeError:
        return []
    for item in _iter_json_objects(data):
        products = item.get("products")
        if isinstance(products, list) and products:
            return products
    return []


def _iter_json_objects(data: Any) -> Iterable[dict]:
    if isinstance(data, list):
        for item in data:
            if isinstance(item, dict):
                yield item
    elif isinstance(data, dict):
        yield data
