from __future__ import annotations

import importlib
from typing import Any, Optional, Tuple

from ..errors import HarvestError


class PluginLoadError(HarvestError, ImportError):
    """A configured engine, exporter or adapter path could not be resolved."""


def split_dotted(dotted: str) -> Tuple[str, str]:
    # "pkg.module:Name" wins over "pkg.module.Name"
    if ":" in dotted:
        module_name, _, symbol_name = dotted.partition(":")
    else:
        module_name, _, symbol_name = dotted.rpartition(".")
    if not module_name or not symbol_name:
        raise PluginLoadError(f"not a dotted path: {dotted!r}")
    return module_name, symbol_name


def load_symbol(dotted: str, expected: Optional[type] = None) -> Any:
    """
    Resolve a plugin from its dotted path.
    With ``expected`` the symbol must be a subclass of it.
    """
    module_name, symbol_name = split_dotted(dotted)
    try:
        module = importlib.import_module(module_name)
    except ImportError as exc:
        raise PluginLoadError(f"cannot import {module_name!r} for {dotted!r}") from exc

    symbol = getattr(module, symbol_name, None)
    if symbol is None:
        raise PluginLoadError(f"{module_name!r} has no attribute {symbol_name!r}")
    if expected is not None and not (isinstance(symbol, type) and issubclass(symbol, expected)):
        raise PluginLoadError(f"{dotted!r} is not a {expected.__name__}")
    return symbol
