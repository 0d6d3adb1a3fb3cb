"""Harvest paginated storefront catalogs and file products into collections."""

from .version import __version__

__all__ = ["__version__"]
