"""
Persistent TTL response cache shared by the fetch and pagination layers.

Entries expire lazily: an expired entry is dropped the next time it is looked
up, never by a background sweep. Every mutation rewrites the whole snapshot
through the configured backend. Coroutines use the ``a``-prefixed methods so
that the snapshot write happens off the event loop.
"""
from __future__ import annotations

import asyncio
import json
import logging
import math
import os
import tempfile
import threading
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Protocol, Tuple

logger = logging.getLogger(__name__)

DEFAULT_TTL = 3600.0

Snapshot = List[List[Any]]  # [[key, {"value": ..., "expires_at": ...}], ...]


@dataclass
class CacheEntry:
    value: Any
    expires_at: float

    def to_dict(self) -> Dict[str, Any]:
        return {"value": self.value, "expires_at": self.expires_at}


class CacheBackend(Protocol):
    def load(self) -> Optional[Snapshot]:
        """Return the last saved snapshot, or None when there is none."""
        ...

    def save(self, snapshot: Snapshot) -> None:
        ...


class NullBackend:
    """Keeps nothing between processes."""

    def load(self) -> Optional[Snapshot]:
        return None

    def save(self, snapshot: Snapshot) -> None:
        return None


class MemoryBackend:
    """Holds the serialized snapshot in memory. Useful for tests and ephemeral runs."""

    def __init__(self, data: Optional[str] = None) -> None:
        self.data = data

    def load(self) -> Optional[Snapshot]:
        if self.data is None:
            return None
        return json.loads(self.data)

    def save(self, snapshot: Snapshot) -> None:
        self.data = json.dumps(snapshot)


class JsonFileBackend:
    """Snapshot stored as a JSON array of ``[key, entry]`` pairs."""

    def __init__(self, path: str | os.PathLike[str]) -> None:
        self.path = Path(path)

    def load(self) -> Optional[Snapshot]:
        if not self.path.exists():
            return None
        with open(self.path, "r", encoding="utf-8") as f:
            return json.load(f)

    def save(self, snapshot: Snapshot) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp = tempfile.mkstemp(dir=self.path.parent, prefix=".cache-", suffix=".json")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(snapshot, f, ensure_ascii=False)
            os.replace(tmp, self.path)
        except BaseException:
            if os.path.exists(tmp):
                os.unlink(tmp)
            raise


class ResponseCache:
    """
    Key -> value store with per-entry expiry and hit/miss counters.
    One re-entrant lock guards the entries and counters. Backend writes are
    serialized by a second lock and always snapshot the entries at write time,
    so the last write wins with the newest state and readers never wait on disk.
    """

    def __init__(
        self,
        backend: Optional[CacheBackend] = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.backend: CacheBackend = backend if backend is not None else NullBackend()
        self._clock = clock
        self._lock = threading.RLock()
        self._save_lock = threading.Lock()
        self._entries: Dict[str, CacheEntry] = {}
        self._hits = 0
        self._misses = 0
        self._load()

    @classmethod
    def from_path(cls, path: Optional[str], **kwargs: Any) -> "ResponseCache":
        backend: CacheBackend = JsonFileBackend(path) if path else MemoryBackend()
        return cls(backend=backend, **kwargs)

    # ---- Introspection ----

    @property
    def size(self) -> int:
        with self._lock:
            return len(self._entries)

    @property
    def hits(self) -> int:
        return self._hits

    @property
    def misses(self) -> int:
        return self._misses

    def stats(self) -> Dict[str, int]:
        with self._lock:
            return {"size": len(self._entries), "hits": self._hits, "misses": self._misses}

    # ---- Contract ----

    def get(self, key: str) -> Any:
        """Return the stored value, or None when the key is absent or expired."""
        with self._lock:
            entry, evicted = self._lookup(key)
        if evicted:
            self._flush()
        return entry.value if entry is not None else None

    def has(self, key: str) -> bool:
        with self._lock:
            entry, evicted = self._lookup(key)
        if evicted:
            self._flush()
        return entry is not None

    def set(self, key: str, value: Any, ttl: float = DEFAULT_TTL) -> None:
        with self._lock:
            self._entries[key] = CacheEntry(value=value, expires_at=self._clock() + ttl)
        self._flush()

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()
            self._hits = 0
            self._misses = 0
        self._flush()

    # ---- Async variants (run in a worker thread) ----

    async def aget(self, key: str) -> Any:
        return await asyncio.to_thread(self.get, key)

    async def aset(self, key: str, value: Any, ttl: float = DEFAULT_TTL) -> None:
        await asyncio.to_thread(self.set, key, value, ttl)

    # ---- Internals ----

    def _lookup(self, key: str) -> Tuple[Optional[CacheEntry], bool]:
        """Return (live entry or None, whether an expired entry was dropped)."""
        entry = self._entries.get(key)
        if entry is None:
            self._misses += 1
            return None, False
        if self._clock() > entry.expires_at:
            del self._entries[key]
            self._misses += 1
            return None, True
        self._hits += 1
        return entry, False

    def _snapshot(self) -> Snapshot:
        return [[key, entry.to_dict()] for key, entry in self._entries.items()]

    def _flush(self) -> None:
        with self._save_lock:
            with self._lock:
                snapshot = self._snapshot()
            try:
                self.backend.save(snapshot)
            except (OSError, TypeError, ValueError) as exc:
                logger.warning("Could not save cache snapshot: %r", exc)

    def _load(self) -> None:
        try:
            snapshot = self.backend.load()
        except (OSError, ValueError) as exc:
            logger.warning("Could not load cache snapshot, starting empty: %r", exc)
            return
        if snapshot is None:
            logger.debug("No cache snapshot found, starting empty")
            return
        if not isinstance(snapshot, list):
            logger.warning("Cache snapshot is not a list of entries, starting empty")
            return

        skipped = 0
        for item in snapshot:
            try:
                key, raw = item
                expires_at = float(raw["expires_at"])
                if not math.isfinite(expires_at):
                    raise ValueError(f"non-finite expiry: {expires_at!r}")
                self._entries[str(key)] = CacheEntry(value=raw["value"], expires_at=expires_at)
            except (TypeError, ValueError, KeyError):
                skipped += 1
        if skipped:
            logger.warning("Skipped %s malformed cache entries", skipped)
        logger.debug("Loaded %s cache entries", len(self._entries))
