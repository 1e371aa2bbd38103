"""Tests for the TTL stores, the background task queue and the merge cache.

RULES:
- Time is controlled with FakeClock, never slept
- Async code runs via asyncio.run() inside synchronous tests
"""

from __future__ import annotations

import asyncio
import json
import logging

import pytest

from support import FakeClock
from thai_segmenter.cache.merge_cache import (
    MISS_RETRY_SECONDS,
    MergeCache,
    line_hash,
    line_key,
    merges_key,
)
from thai_segmenter.cache.store import CacheResult, InMemoryTtlStore, JsonFileTtlStore
from thai_segmenter.cache.tasks import TaskQueue
from thai_segmenter.config import SegmenterConfig


class FailingStore:
    """Store whose every operation raises."""

    async def get(self, key):
        raise OSError("store offline")

    async def set(self, key, value, ttl_seconds):
        raise OSError("store offline")


# ---------------------------------------------------------------------------
# TTL stores
# ---------------------------------------------------------------------------


class TestInMemoryTtlStore:

    def test_set_then_get(self, store):
        asyncio.run(store.set("k", {"a": 1}, 10))
        result = asyncio.run(store.get("k"))
        assert result == CacheResult(success=True, data={"a": 1})

    def test_missing_key_is_successful_miss(self, store):
        result = asyncio.run(store.get("missing"))
        assert result.success is True
        assert result.data is None

    def test_entry_expires(self, store, clock):
        asyncio.run(store.set("k", "v", 10))
        clock.advance(9)
        assert asyncio.run(store.get("k")).data == "v"
        clock.advance(1)
        assert asyncio.run(store.get("k")).data is None
        assert len(store) == 0

    def test_non_positive_ttl_rejected(self, store):
        with pytest.raises(ValueError):
            asyncio.run(store.set("k", "v", 0))

    def test_cleanup_expired(self, store, clock):
        asyncio.run(store.set("short", 1, 5))
        asyncio.run(store.set("long", 2, 50))
        clock.advance(10)
        assert store.cleanup_expired() == 1
        assert len(store) == 1


class TestJsonFileTtlStore:

    def test_entries_survive_a_new_instance(self, tmp_path, clock):
        path = tmp_path / "cache" / "store.json"
        first = JsonFileTtlStore(path, clock=clock)
        asyncio.run(first.set("thai_merges_v1", {"phrases": ["ยังเชื่อ"]}, 100))

        second = JsonFileTtlStore(path, clock=clock)
        assert asyncio.run(second.get("thai_merges_v1")).data == {"phrases": ["ยังเชื่อ"]}

    def test_file_is_utf8_json(self, tmp_path, clock):
        path = tmp_path / "store.json"
        asyncio.run(JsonFileTtlStore(path, clock=clock).set("k", "ยังเชื่อ", 100))
        data = json.loads(path.read_text(encoding="utf-8"))
        assert data["entries"]["k"]["value"] == "ยังเชื่อ"
        assert "ยังเชื่อ" in path.read_text(encoding="utf-8")

    def test_expired_entries_are_not_loaded(self, tmp_path, clock):
        path = tmp_path / "store.json"
        asyncio.run(JsonFileTtlStore(path, clock=clock).set("k", "v", 10))
        clock.advance(20)
        assert asyncio.run(JsonFileTtlStore(path, clock=clock).get("k")).data is None

    def test_corrupt_file_starts_empty(self, tmp_path, clock, caplog):
        path = tmp_path / "store.json"
        path.write_text("{not json", encoding="utf-8")
        store = JsonFileTtlStore(path, clock=clock)
        with caplog.at_level(logging.WARNING):
            assert asyncio.run(store.get("k")).data is None
        assert "unreadable cache file" in caplog.text
        asyncio.run(store.set("k", "v", 10))
        assert json.loads(path.read_text(encoding="utf-8"))["entries"]["k"]["value"] == "v"


# ---------------------------------------------------------------------------
# TaskQueue
# ---------------------------------------------------------------------------


class TestTaskQueue:

    def test_jobs_park_without_a_running_loop(self):
        queue = TaskQueue()
        done = []

        async def job():
            done.append(1)

        queue.submit(job, "job")
        assert queue.pending == 1
        assert done == []
        asyncio.run(queue.drain())
        assert done == [1]
        assert queue.pending == 0

    def test_parked_jobs_run_in_submission_order(self):
        queue = TaskQueue()
        order = []
        for i in range(3):
            async def job(i=i):
                order.append(i)
            queue.submit(job, "job {}".format(i))
        asyncio.run(queue.drain())
        assert order == [0, 1, 2]

    def test_jobs_start_immediately_inside_a_loop(self):
        queue = TaskQueue()
        done = []

        async def job():
            done.append(1)

        async def main():
            queue.submit(job, "job")
            assert queue.pending == 1
            await asyncio.sleep(0)
            await queue.drain()

        asyncio.run(main())
        assert done == [1]

    def test_failures_are_logged_not_raised(self, caplog):
        queue = TaskQueue()

        async def broken():
            raise RuntimeError("boom")

        queue.submit(broken, "broken job")
        with caplog.at_level(logging.WARNING):
            asyncio.run(queue.drain())
        assert "broken job" in caplog.text

    def test_drain_waits_for_jobs_submitted_while_draining(self):
        queue = TaskQueue()
        done = []

        async def second():
            done.append("second")

        async def first():
            done.append("first")
            queue.submit(second, "second")

        queue.submit(first, "first")
        asyncio.run(queue.drain())
        assert done == ["first", "second"]

    def test_run_parked_without_a_loop_finishes_jobs(self):
        queue = TaskQueue()
        done = []

        async def second():
            done.append("second")

        async def first():
            done.append("first")
            queue.submit(second, "second")

        queue.submit(first, "first")
        assert queue.run_parked() == 1
        assert done == ["first", "second"]
        assert queue.pending == 0
        assert queue.run_parked() == 0

    def test_run_parked_inside_a_loop_starts_tasks(self):
        queue = TaskQueue()
        done = []

        async def job():
            done.append(1)

        queue.submit(job, "job")

        async def main():
            assert queue.run_parked() == 1
            assert done == []
            await queue.drain()

        asyncio.run(main())
        assert done == [1]

    def test_parked_backlog_warns(self, monkeypatch, caplog):
        monkeypatch.setattr("thai_segmenter.cache.tasks.PARKED_WARNING_THRESHOLD", 3)
        queue = TaskQueue()

        async def job():
            return None

        with caplog.at_level(logging.WARNING):
            for _ in range(2):
                queue.submit(job, "job")
            assert "parked" not in caplog.text
            queue.submit(job, "job")
        assert "3 background jobs parked" in caplog.text


# ---------------------------------------------------------------------------
# MergeCache
# ---------------------------------------------------------------------------


def _cache(store, config=None, clock=None):
    clock = clock or FakeClock()
    return MergeCache(store, config or SegmenterConfig(), TaskQueue(), clock=clock)


class TestMergeCacheMerges:

    def test_unknown_video_is_empty(self, store):
        cache = _cache(store)
        assert cache.get_merges(None) == frozenset()
        assert cache.get_merges("") == frozenset()

    def test_cold_video_hydrates_in_background(self, store):
        asyncio.run(store.set(merges_key("v1"), {"phrases": ["ยังเชื่อ"], "ts": 0}, 100))
        cache = _cache(store)

        # First call sees an empty set and schedules hydration
        assert "ยังเชื่อ" not in cache.get_merges("v1")
        asyncio.run(cache._tasks.drain())
        assert "ยังเชื่อ" in cache.get_merges("v1")

    def test_hydration_is_scheduled_once_per_video(self, store):
        cache = _cache(store)
        cache.get_merges("v1")
        cache.get_merges("v1")
        assert cache._tasks.pending == 1

    def test_missing_entry_is_not_reread_on_every_call(self, store, clock):
        cache = _cache(store, clock=clock)
        cache.get_merges("v1")
        asyncio.run(cache._tasks.drain())
        assert cache.get_merges("v1") == frozenset()
        assert cache._tasks.pending == 0

    def test_missing_entry_is_retried_after_interval(self, store, clock):
        cache = _cache(store, clock=clock)
        cache.get_merges("v1")
        asyncio.run(cache._tasks.drain())
        asyncio.run(store.set(merges_key("v1"), {"phrases": ["ยังเชื่อ"], "ts": 0}, 1000))

        clock.advance(MISS_RETRY_SECONDS)
        assert cache.get_merges("v1") == frozenset()
        assert cache._tasks.pending == 1
        asyncio.run(cache._tasks.drain())
        assert "ยังเชื่อ" in cache.get_merges("v1")

    def test_writes_after_a_miss_are_visible(self, store, clock):
        cache = _cache(store, clock=clock)
        cache.get_merges("v1")
        asyncio.run(cache._tasks.drain())
        cache.add_merges("v1", ["ยังเชื่อ"])
        assert "ยังเชื่อ" in cache.get_merges("v1")

    def test_add_merges_normalizes_and_counts_new(self, store):
        cache = _cache(store)
        assert cache.add_merges("v1", ["ยังเชื่อ", " ยังเชื่อ\u200b", "", "คิดว่า"]) == 2
        assert sorted(cache.merge_phrases("v1")) == ["คิดว่า", "ยังเชื่อ"]

    def test_merge_set_is_capped_and_never_shrinks(self, store):
        cache = _cache(store, SegmenterConfig(max_merges_per_video=100))
        phrases = ["ก{}".format(chr(0x0E01 + i // 45) + chr(0x0E01 + i % 45)) for i in range(150)]
        assert cache.add_merges("v1", phrases[:60]) == 60
        assert cache.add_merges("v1", phrases[60:]) == 40
        assert len(cache.merge_phrases("v1")) == 100
        assert set(phrases[:60]) <= set(cache.merge_phrases("v1"))

    def test_persist_overwrites_stored_phrase_list(self, store, clock):
        cache = _cache(store, clock=clock)
        cache.add_merges("v1", ["ยังเชื่อ"])
        assert asyncio.run(cache.persist_merges("v1")) is True
        cache.add_merges("v1", ["คิดว่า"])
        asyncio.run(cache.persist_merges("v1"))
        stored = asyncio.run(store.get(merges_key("v1"))).data
        assert sorted(stored["phrases"]) == ["คิดว่า", "ยังเชื่อ"]
        assert stored["ts"] == clock.now

    def test_merge_entry_uses_cache_ttl(self, store, clock):
        cache = _cache(store, SegmenterConfig(cache_ttl_seconds=60), clock=clock)
        cache.add_merges("v1", ["ยังเชื่อ"])
        asyncio.run(cache.persist_merges("v1"))
        clock.advance(61)
        assert asyncio.run(store.get(merges_key("v1"))).data is None

    def test_oldest_video_is_evicted_from_memory(self, store):
        cache = _cache(store, SegmenterConfig(max_cached_videos=2))
        for video_id in ("a", "b", "c"):
            cache.add_merges(video_id, ["ยังเชื่อ"])
        assert not cache.has_merges("a")
        assert cache.has_merges("b") and cache.has_merges("c")

    def test_store_failures_are_cache_misses(self, caplog):
        cache = _cache(FailingStore())
        cache.add_merges("v1", ["ยังเชื่อ"])
        with caplog.at_level(logging.WARNING):
            assert asyncio.run(cache.persist_merges("v1")) is False
            assert asyncio.run(cache.hydrate("v2")) is False
        assert "v1" in caplog.text and "v2" in caplog.text

    def test_hydrate_ignores_malformed_entries(self, store):
        asyncio.run(store.set(merges_key("v1"), {"phrases": "not a list"}, 100))
        assert asyncio.run(_cache(store).hydrate("v1")) is False


class TestMergeCacheLines:

    def test_line_hash_uses_normalized_text(self):
        assert line_hash(" ผมกินข้าว\u200b") == line_hash("ผมกินข้าว")
        assert line_hash("ผมกินข้าว") != line_hash("ผมกิน")

    def test_remember_line_persists_with_line_ttl(self, store, clock):
        config = SegmenterConfig(line_cache_ttl_seconds=1000)
        cache = _cache(store, config, clock=clock)
        cache.remember_line("v1", "ผมกินข้าว", ["ผม", "กินข้าว"])
        assert cache.get_line("v1", "ผมกินข้าว") == ["ผม", "กินข้าว"]

        asyncio.run(cache._tasks.drain())
        key = line_key("v1", line_hash("ผมกินข้าว"))
        assert asyncio.run(store.get(key)).data == {"tokens": ["ผม", "กินข้าว"]}
        clock.advance(1001)
        assert asyncio.run(store.get(key)).data is None

    def test_load_line_falls_back_to_store(self, store):
        key = line_key("v1", line_hash("ผมกินข้าว"))
        asyncio.run(store.set(key, {"tokens": ["ผม", "กินข้าว"]}, 100))
        cache = _cache(store)
        assert cache.get_line("v1", "ผมกินข้าว") is None
        assert asyncio.run(cache.load_line("v1", "ผมกินข้าว")) == ["ผม", "กินข้าว"]
        # Now served from memory
        assert cache.get_line("v1", "ผมกินข้าว") == ["ผม", "กินข้าว"]

    def test_load_line_miss(self, store):
        assert asyncio.run(_cache(store).load_line("v1", "ผมกินข้าว")) is None
        assert asyncio.run(_cache(FailingStore()).load_line("v1", "ผมกินข้าว")) is None
