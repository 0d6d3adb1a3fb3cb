from __future__ import annotations


class HarvestError(Exception):
    """Base class for harvester errors."""


class FetchError(HarvestError):
    """Direct fetch returned something other than a JSON catalog page."""

    def __init__(self, url: str, reason: str) -> None:
        super().__init__(f"{url}: {reason}")
        self.url = url
        self.reason = reason


class TaxonomyError(HarvestError, ValueError):
    """Collection taxonomy is malformed."""
