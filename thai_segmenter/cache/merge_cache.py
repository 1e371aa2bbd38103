"""Per-video merge sets and AI-improved line segmentations.

WHY: The DP segmenter consults a video's merge set on every displayed
line, so it must be an in-memory lookup. Mining runs once per video and
AI hints are expensive, so both are persisted to a TTL store and
rehydrated when memory is cold (new process, evicted video).

HOW: Two bounded maps keyed by video id: merge phrase sets and per-line
token lists keyed by a hash of the normalized line. get_merges() is
synchronous: on a cold video it submits a hydration job to the TaskQueue
and returns an empty set for this call. Writes go to memory first and
are persisted by overwriting the stored phrase list.

RULES:
- Store keys: thai_merges_{video_id} and thai_seg_line_{video_id}_{line_hash}
- Merge entries use cache_ttl_seconds; line entries line_cache_ttl_seconds
- A merge set only grows, up to config.merge_cap; phrases beyond the cap
  are dropped, existing phrases are never removed
- At most max_cached_videos videos are kept in memory (oldest evicted);
  eviction only affects memory, the store keeps the entry until its TTL
- At most one hydration per video is in flight
- A hydration that finds nothing is remembered for MISS_RETRY_SECONDS;
  until then get_merges() does not schedule another read. Writes for
  the video are never blocked by this record
- Store failures are logged and treated as cache misses
"""

from __future__ import annotations

import hashlib
import logging
import time
from collections import OrderedDict
from typing import AbstractSet, Callable, Iterable, List, Optional, Set

from thai_segmenter.cache.store import TtlStore
from thai_segmenter.cache.tasks import TaskQueue
from thai_segmenter.config import SegmenterConfig
from thai_segmenter.core.cost import EMPTY_MERGES
from thai_segmenter.core.tokenizer import normalize

logger = logging.getLogger(__name__)

MERGES_KEY_PREFIX = "thai_merges_"
LINE_KEY_PREFIX = "thai_seg_line_"

# How long an empty or failed hydration suppresses another store read
MISS_RETRY_SECONDS = 300.0


def merges_key(video_id: str) -> str:
    return "{}{}".format(MERGES_KEY_PREFIX, video_id)


def line_key(video_id: str, digest: str) -> str:
    return "{}{}_{}".format(LINE_KEY_PREFIX, video_id, digest)


def line_hash(text: str) -> str:
    """Stable short digest of the normalized line text."""
    return hashlib.blake2b(normalize(text).encode("utf-8"), digest_size=8).hexdigest()


class MergeCache:
    """In-memory merge sets and line segmentations over a TTL store."""

    def __init__(
        self,
        store: TtlStore,
        config: SegmenterConfig,
        tasks: TaskQueue,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._store = store
        self._config = config
        self._tasks = tasks
        self._clock = clock
        self._merges: "OrderedDict[str, Set[str]]" = OrderedDict()
        self._lines: "OrderedDict[str, OrderedDict[str, List[str]]]" = OrderedDict()
        self._hydrating: Set[str] = set()
        self._misses: "OrderedDict[str, float]" = OrderedDict()

    # ------------------------------------------------------------------
    # Merge sets
    # ------------------------------------------------------------------

    def get_merges(self, video_id: Optional[str]) -> AbstractSet[str]:
        """Return the video's merge set, scheduling hydration when cold.

        RULES:
        - No video id: always the empty set
        - Cold video: empty set for this call; hydration runs in background
        - Cold video whose last hydration missed less than
          MISS_RETRY_SECONDS ago: empty set, nothing scheduled
        """
        if not video_id:
            return EMPTY_MERGES
        merges = self._merges.get(video_id)
        if merges is not None:
            return merges
        missed_at = self._misses.get(video_id)
        if missed_at is not None and self._clock() - missed_at < MISS_RETRY_SECONDS:
            return EMPTY_MERGES
        self._schedule_hydration(video_id)
        return EMPTY_MERGES

    def has_merges(self, video_id: str) -> bool:
        return video_id in self._merges

    def merge_phrases(self, video_id: str) -> List[str]:
        """Snapshot of the in-memory merge set, in insertion order."""
        return list(self._merges.get(video_id, ()))

    def add_merges(self, video_id: str, phrases: Iterable[str]) -> int:
        """Union normalized ``phrases`` into the video's set; return how many were new."""
        merges = self._ensure_merge_set(video_id)
        cap = self._config.merge_cap
        added = 0
        for raw in phrases:
            phrase = normalize(raw)
            if not phrase or phrase in merges:
                continue
            if len(merges) >= cap:
                logger.debug("Merge cap %d reached for video %s", cap, video_id)
                break
            merges.add(phrase)
            added += 1
        return added

    async def persist_merges(self, video_id: str) -> bool:
        """Overwrite the stored phrase list with the in-memory set."""
        merges = self._merges.get(video_id)
        if merges is None:
            return False
        payload = {"phrases": list(merges), "ts": self._clock()}
        try:
            await self._store.set(merges_key(video_id), payload, self._config.cache_ttl_seconds)
        except Exception:
            logger.warning("Failed to persist merges for video %s", video_id, exc_info=True)
            return False
        return True

    async def hydrate(self, video_id: str) -> bool:
        """Load the stored phrase list into memory; True if anything was found."""
        try:
            result = await self._store.get(merges_key(video_id))
        except Exception:
            logger.warning("Merge cache read failed for video %s", video_id, exc_info=True)
            return False
        data = result.data if result.success else None
        phrases = data.get("phrases") if isinstance(data, dict) else None
        if not isinstance(phrases, list):
            return False
        added = self.add_merges(video_id, (p for p in phrases if isinstance(p, str)))
        logger.debug("Hydrated %d merges for video %s", added, video_id)
        return True

    def _schedule_hydration(self, video_id: str) -> None:
        if video_id in self._hydrating:
            return
        self._hydrating.add(video_id)

        async def _job() -> None:
            try:
                found = await self.hydrate(video_id)
                if not found and video_id not in self._merges:
                    self._misses[video_id] = self._clock()
                    self._misses.move_to_end(video_id)
                    self._evict(self._misses)
            finally:
                self._hydrating.discard(video_id)

        self._tasks.submit(_job, "hydrate merges for {}".format(video_id))

    def _ensure_merge_set(self, video_id: str) -> Set[str]:
        merges = self._merges.get(video_id)
        if merges is None:
            merges = set()
            self._merges[video_id] = merges
            self._misses.pop(video_id, None)
            self._evict(self._merges)
        return merges

    # ------------------------------------------------------------------
    # Per-line segmentations
    # ------------------------------------------------------------------

    def get_line(self, video_id: Optional[str], text: str) -> Optional[List[str]]:
        """In-memory lookup of an improved segmentation for ``text``."""
        if not video_id:
            return None
        lines = self._lines.get(video_id)
        if not lines:
            return None
        tokens = lines.get(line_hash(text))
        return list(tokens) if tokens else None

    async def load_line(self, video_id: str, text: str) -> Optional[List[str]]:
        """Memory first, then the store; store hits are copied into memory."""
        tokens = self.get_line(video_id, text)
        if tokens:
            return tokens
        digest = line_hash(text)
        try:
            result = await self._store.get(line_key(video_id, digest))
        except Exception:
            logger.warning("Line cache read failed for video %s", video_id, exc_info=True)
            return None
        data = result.data if result.success else None
        stored = data.get("tokens") if isinstance(data, dict) else None
        if not isinstance(stored, list) or not stored:
            return None
        tokens = [t for t in stored if isinstance(t, str)]
        self._remember_line_in_memory(video_id, digest, tokens)
        return list(tokens)

    def remember_line(self, video_id: str, text: str, tokens: List[str]) -> None:
        """Cache ``tokens`` for ``text`` in memory and persist in background."""
        digest = line_hash(text)
        self._remember_line_in_memory(video_id, digest, tokens)
        key = line_key(video_id, digest)
        payload = {"tokens": list(tokens)}
        ttl = self._config.line_cache_ttl_seconds

        async def _job() -> None:
            await self._store.set(key, payload, ttl)

        self._tasks.submit(_job, "persist line segmentation {}".format(key))

    def _remember_line_in_memory(self, video_id: str, digest: str, tokens: List[str]) -> None:
        lines = self._lines.get(video_id)
        if lines is None:
            lines = OrderedDict()
            self._lines[video_id] = lines
            self._evict(self._lines)
        lines[digest] = list(tokens)

    def _evict(self, table: "OrderedDict") -> None:
        while len(table) > self._config.max_cached_videos:
            video_id, _ = table.popitem(last=False)
            logger.debug("Evicted video %s from memory", video_id)
