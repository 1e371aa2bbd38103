"""Cache package: TTL stores, background task queue, per-video merge cache.

WHY: Mined merges and AI refinements are expensive to produce and cheap
to reuse. This package keeps them in memory for the synchronous
segmentation path and persists them through an injected TTL store.

HOW: store.py defines the TtlStore capability and two implementations,
tasks.py runs fire-and-forget async jobs, merge_cache.py combines both
into the per-video cache used by the engine.

RULES:
- The engine never deletes store entries; expiry belongs to the store
- Cache I/O failures degrade to cache misses, never to exceptions
"""

from thai_segmenter.cache.merge_cache import MergeCache
from thai_segmenter.cache.store import CacheResult, InMemoryTtlStore, JsonFileTtlStore, TtlStore
from thai_segmenter.cache.tasks import TaskQueue

__all__ = [
    "CacheResult",
    "InMemoryTtlStore",
    "JsonFileTtlStore",
    "MergeCache",
    "TaskQueue",
    "TtlStore",
]
