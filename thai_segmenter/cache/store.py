"""TTL key/value stores backing the merge cache.

WHY: Mined merge sets and AI-improved line segmentations should survive
beyond one segmentation call and, with a file-backed store, beyond one
process. Expiry is the store's job: the engine never deletes entries.

HOW: TtlStore is the async capability the engine consumes: get() returns
a CacheResult, set() writes a value with a TTL. InMemoryTtlStore keeps a
dict of (value, expires_at) entries with an injectable clock and drops
expired entries on read or during cleanup_expired(). JsonFileTtlStore
adds persistence by loading the entry table lazily and rewriting the
JSON file on every set.

RULES:
- get() on a missing or expired key returns CacheResult(success=True, data=None)
- get()/set() failures raise; callers (the merge cache) catch and log
- Values must be JSON-serializable for JsonFileTtlStore
- TTLs are in seconds and must be positive
"""

from __future__ import annotations

import json
import logging
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Callable, Dict, Generic, Optional, Protocol, Tuple, TypeVar, Union

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass
class CacheResult(Generic[T]):
    """Outcome of a store read.

    RULES:
    - success is False only when the read itself failed
    - data is None on miss or expiry
    """

    success: bool
    data: Optional[T] = None
    error: Optional[str] = None


class TtlStore(Protocol):
    """Async key/value store with per-entry time-to-live."""

    async def get(self, key: str) -> CacheResult[Any]: ...

    async def set(self, key: str, value: Any, ttl_seconds: float) -> None: ...


class InMemoryTtlStore:
    """Dict-backed TTL store.

    WHY: Default store for tests, the HTTP server, and hosts that bring
    their own persistence elsewhere.

    HOW: Entries are (value, expires_at) tuples keyed by string. The clock
    defaults to time.time and can be replaced in tests.

    RULES:
    - Expired entries are removed on read
    - cleanup_expired() removes all expired entries and returns the count
    """

    def __init__(self, clock: Callable[[], float] = time.time) -> None:
        self._entries: Dict[str, Tuple[Any, float]] = {}
        self._clock = clock

    async def get(self, key: str) -> CacheResult[Any]:
        entry = self._entries.get(key)
        if entry is None:
            return CacheResult(success=True)
        value, expires_at = entry
        if expires_at <= self._clock():
            self._entries.pop(key, None)
            self._on_change()
            return CacheResult(success=True)
        return CacheResult(success=True, data=value)

    async def set(self, key: str, value: Any, ttl_seconds: float) -> None:
        if ttl_seconds <= 0:
            raise ValueError("ttl_seconds must be positive")
        self._entries[key] = (value, self._clock() + ttl_seconds)
        self._on_change()

    def cleanup_expired(self) -> int:
        now = self._clock()
        expired = [k for k, (_, expires_at) in self._entries.items() if expires_at <= now]
        for key in expired:
            del self._entries[key]
        if expired:
            self._on_change()
            logger.debug("Expired %d cache entries", len(expired))
        return len(expired)

    def __len__(self) -> int:
        return len(self._entries)

    def _on_change(self) -> None:
        """Hook for persistent subclasses."""


class JsonFileTtlStore(InMemoryTtlStore):
    """TTL store persisted as one JSON file.

    WHY: The CLI runs once per subtitle file; persisting merges lets a
    second run for the same video reuse mined merges and AI hints.

    HOW: The file holds {"entries": {key: {"value": ..., "expires_at": ...}}}.
    It is read on first access and rewritten after every change.

    RULES:
    - A missing file starts an empty store
    - A corrupt file is logged and replaced on the next write
    - Parent directories are created on write
    """

    def __init__(
        self,
        path: Union[str, Path],
        clock: Callable[[], float] = time.time,
    ) -> None:
        super().__init__(clock=clock)
        self._path = Path(path)
        self._loaded = False

    def _ensure_loaded(self) -> None:
        if self._loaded:
            return
        self._loaded = True
        if not self._path.exists():
            return
        try:
            data = json.loads(self._path.read_text(encoding="utf-8"))
            entries = data.get("entries", {})
            for key, item in entries.items():
                self._entries[key] = (item["value"], float(item["expires_at"]))
        except (ValueError, KeyError, TypeError, AttributeError):
            logger.warning("Ignoring unreadable cache file: %s", self._path)
            self._entries.clear()

    async def get(self, key: str) -> CacheResult[Any]:
        self._ensure_loaded()
        return await super().get(key)

    async def set(self, key: str, value: Any, ttl_seconds: float) -> None:
        self._ensure_loaded()
        await super().set(key, value, ttl_seconds)

    def cleanup_expired(self) -> int:
        self._ensure_loaded()
        return super().cleanup_expired()

    def _on_change(self) -> None:
        payload = {
            "entries": {
                key: {"value": value, "expires_at": expires_at}
                for key, (value, expires_at) in self._entries.items()
            }
        }
        self._path.parent.mkdir(parents=True, exist_ok=True)
        self._path.write_text(json.dumps(payload, ensure_ascii=False), encoding="utf-8")
