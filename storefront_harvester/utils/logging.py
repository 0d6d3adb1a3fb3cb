from __future__ import annotations

import logging
import os

_LEVELS = {
    "CRITICAL": logging.CRITICAL,
    "ERROR": logging.ERROR,
    "WARNING": logging.WARNING,
    "INFO": logging.INFO,
    "DEBUG": logging.DEBUG,
}

_NOISY = ("asyncio", "aiohttp.access")


def setup_logging(level: str | int | None = None) -> None:
    """
    Configure application logging with a consistent formatter.
    Level falls back to HARVEST_LOG_LEVEL, then INFO.
    """
    if level is None:
        level = os.getenv("HARVEST_LOG_LEVEL", "INFO")

    if isinstance(level, str):
        level = _LEVELS.get(level.upper(), logging.INFO)

    logging.basicConfig(
        level=level,
        format="%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
    )
    # Library chatter only matters when debugging the harvester itself.
    for name in _NOISY:
        logging.getLogger(name).setLevel(max(level, logging.WARNING))
