from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Any, Callable, List

from playwright.async_api import async_playwright

from ..utils.http import JSON_ACCEPT, random_user_agent
from ..utils.parsing import extract_products_from_html

logger = logging.getLogger(__name__)


def app_data_dir() -> Path:
    base = os.getenv("LOCALAPPDATA") or str(Path.home() / ".storefront-harvester")
    p = Path(base) / "storefront-harvester"
    p.mkdir(parents=True, exist_ok=True)
    return p


_LAUNCH_ARGS = [
    "--no-sandbox",
    "--disable-setuid-sandbox",
    "--disable-web-security",
    "--disable-features=IsolateOrigins,site-per-process",
    "--disable-site-isolation-trials",
]

# Storefront themes expose catalog state under one of these globals.
_WINDOW_PRODUCTS_JS = """
() => {
  if (Array.isArray(window.products)) return window.products;
  if (window.productData && Array.isArray(window.productData.products)) {
    return window.productData.products;
  }
  return [];
}
"""


class BrowserRenderer:
    """
    Chromium-backed fallback: loads the page like a browser would and reads
    the catalog out of the rendered markup or the page's global state.
    One browser per call; the caller bounds concurrency.
    """

    def __init__(
        self,
        user_agent_factory: Callable[[], str] = random_user_agent,
        headless: bool = True,
    ) -> None:
        self.user_agent_factory = user_agent_factory
        self.headless = headless
        os.environ.setdefault("PLAYWRIGHT_BROWSERS_PATH", str(app_data_dir() / "ms-playwright"))

    async def render(self, url: str, timeout: float) -> List[Any]:
        async with async_playwright() as pw:
            browser = await pw.chromium.launch(headless=self.headless, args=_LAUNCH_ARGS)
            try:
                context = await browser.new_context(
                    user_agent=self.user_agent_factory(),
                    extra_http_headers={
                        "Accept": JSON_ACCEPT,
                        "Accept-Language": "en-US,en;q=0.9",
                    },
                )
                page = await context.new_page()
                logger.debug("Rendering %s", url)
                await page.goto(url, wait_until="networkidle", timeout=timeout * 1000)

                products = extract_products_from_html(await page.content())
                if products:
                    return products

                try:
                    found = await page.evaluate(_WINDOW_PRODUCTS_JS)
                except Exception as exc:  # page scripts are untrusted; treat as "nothing found"
                    logger.warning("Could not read products from page context for %s: %r", url, exc)
                    return []
                return found if isinstance(found, list) else []
            finally:
                await browser.close()


class NullRenderer:
    """Used when rendering is disabled: the fallback path yields nothing."""

    async def render(self, url: str, timeout: float) -> List[Any]:
        return []
