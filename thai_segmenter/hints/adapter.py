"""Cooldown-gated bridge between the engine and an AI hint provider.

WHY: Remote hints cost money and latency. The engine may ask for them on
every warm-up, so the adapter enforces the per-video cooldown, bounds the
candidate sample, applies a timeout, and turns every provider failure
into "no hints" so segmentation never depends on the provider.

HOW: A last-attempt timestamp per video gates fetch_merge_hints(). On
success the returned phrases are normalized, unioned into the video's
merge set and persisted through the MergeCache. Line improvements are
served from the per-line cache only (memory, then store).

RULES:
- At most one provider call per video per ai_cooldown_minutes, unless forced
- The cooldown starts at the attempt, so failed calls also count
- Attempt timestamps are kept for at most max_cached_videos videos;
  the least recently attempted video is forgotten first
- At most ai_top_n candidates are sent
- Provider errors and timeouts are logged at WARNING and return None
- improve_line_segmentation() never calls the provider
"""

from __future__ import annotations

import asyncio
import logging
import time
from collections import OrderedDict
from collections.abc import Callable

from thai_segmenter.cache.merge_cache import MergeCache
from thai_segmenter.config import SegmenterConfig
from thai_segmenter.core.tokenizer import normalize
from thai_segmenter.hints.base import AiHintProvider, NullHintProvider

logger = logging.getLogger(__name__)


class AiHintAdapter:
    """Applies AI merge hints to the merge cache under a per-video cooldown."""

    def __init__(
        self,
        provider: AiHintProvider | None,
        config: SegmenterConfig,
        merge_cache: MergeCache,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._provider = provider or NullHintProvider()
        self._config = config
        self._merge_cache = merge_cache
        self._clock = clock
        self._last_attempt: OrderedDict[str, float] = OrderedDict()

    @property
    def provider(self) -> AiHintProvider:
        return self._provider

    def set_provider(self, provider: AiHintProvider | None) -> None:
        self._provider = provider or NullHintProvider()
        logger.info("AI hint provider set to %s", self._provider.name)

    @property
    def is_active(self) -> bool:
        return self._config.enable_ai_hints and self._provider.active

    def cooldown_remaining(self, video_id: str) -> float:
        """Seconds until the next provider call for ``video_id`` is allowed."""
        last = self._last_attempt.get(video_id)
        if last is None:
            return 0.0
        return max(0.0, last + self._config.ai_cooldown_seconds - self._clock())

    async def fetch_merge_hints(
        self,
        video_id: str,
        candidate_phrases: list[str],
        force: bool = False,
    ) -> list[str] | None:
        """Ask the provider for merges and apply them; return the applied phrases.

        RULES:
        - Returns None when inactive, cooling down, or the provider fails
        - force=True skips the cooldown check but still records the attempt
        """
        if not self.is_active or not candidate_phrases:
            return None
        if not force and self.cooldown_remaining(video_id) > 0:
            logger.debug("AI hints for video %s skipped (cooldown)", video_id)
            return None

        self._record_attempt(video_id)
        sample = list(candidate_phrases[: self._config.ai_top_n])

        try:
            batch = await asyncio.wait_for(
                self._provider.fetch_merge_hints(video_id, sample),
                timeout=self._config.ai_timeout_seconds,
            )
        except asyncio.TimeoutError:
            logger.warning(
                "AI hint provider %s timed out for video %s", self._provider.name, video_id
            )
            return None
        except Exception as exc:
            logger.warning(
                "AI hint provider %s failed for video %s: %s",
                self._provider.name,
                video_id,
                exc,
            )
            return None

        if batch is None:
            return None

        phrases = list(dict.fromkeys(p for p in map(normalize, batch.phrases) if p))
        if not phrases:
            return None
        added = self._merge_cache.add_merges(video_id, phrases)
        await self._merge_cache.persist_merges(video_id)
        logger.info("Applied %d AI merge hints (%d new) for video %s", len(phrases), added, video_id)
        return phrases

    def _record_attempt(self, video_id: str) -> None:
        self._last_attempt[video_id] = self._clock()
        self._last_attempt.move_to_end(video_id)
        while len(self._last_attempt) > self._config.max_cached_videos:
            self._last_attempt.popitem(last=False)

    async def improve_line_segmentation(
        self,
        video_id: str,
        line_text: str,
        baseline_tokens: list[str],
        current_tokens: list[str],
    ) -> list[str] | None:
        """Return a cached improved segmentation for the line, if any.

        A cache miss returns None; no per-line provider call is made.
        """
        if not self.is_active or not video_id:
            return None
        return await self._merge_cache.load_line(video_id, line_text)
