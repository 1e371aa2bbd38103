"""Long-lived Thai segmentation engine.

WHY: A host application (CLI, HTTP server, player integration) needs one
object that owns the configuration, the dictionary, the per-video merge
cache and the AI hint adapter, and that exposes a synchronous segment()
for rendering plus async entry points for warm-up and hints. The engine
is constructed once and passed to callers; there is no module-level
singleton.

HOW: segment() normalizes, tokenizes, reads the video's in-memory merge
set (scheduling hydration if cold) and runs the DP. warm_up_for_video()
mines collocations over all of a video's lines, stores them, then asks
the AI adapter for hints once per cooldown window. Background work goes
through a TaskQueue. Inside an event loop it runs as tasks; a host with
no running loop has parked jobs run at the start of its next segment()
call, so hydrated merges show up one call later either way. Hosts await
drain() when they need everything finished.

RULES:
- No public entry point raises; failures are logged and degrade to
  mined merges, then dictionary-only, then raw tokenization
- "".join(segment(text)) == normalize(text) for every input
- A disabled engine returns the baseline tokenization
- update_config() is the only method that raises (ValueError)
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable, Iterable
from typing import AbstractSet

from thai_segmenter.cache.merge_cache import MergeCache
from thai_segmenter.cache.store import InMemoryTtlStore, TtlStore
from thai_segmenter.cache.tasks import TaskQueue
from thai_segmenter.config import SegmenterConfig
from thai_segmenter.core.collocations import mine_collocations
from thai_segmenter.core.cost import SpanCostModel
from thai_segmenter.core.ir import MergeHintBatch, SegmentationSnapshot, SegmentedLine
from thai_segmenter.core.segmenter import segment_tokens
from thai_segmenter.core.tokenizer import Tokenizer, WordSplitter, normalize
from thai_segmenter.hints.adapter import AiHintAdapter
from thai_segmenter.hints.base import AiHintProvider

logger = logging.getLogger(__name__)

DebugSink = Callable[[SegmentationSnapshot], None]


class ThaiSegmenterEngine:
    """Per-video Thai word segmentation with mined and AI-provided merges.

    RULES:
    - config is shared by reference with every component
    - dictionary defaults to empty (no dictionary bonus)
    - store defaults to an InMemoryTtlStore
    - hint_provider defaults to none (AI disabled)
    """

    def __init__(
        self,
        config: SegmenterConfig | None = None,
        dictionary: AbstractSet[str] | None = None,
        word_splitter: WordSplitter | None = None,
        store: TtlStore | None = None,
        hint_provider: AiHintProvider | None = None,
        tasks: TaskQueue | None = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.config = config or SegmenterConfig()
        self.config.validate()
        self.tasks = tasks or TaskQueue()
        self.store = store if store is not None else InMemoryTtlStore(clock=clock)
        self.tokenizer = Tokenizer(word_splitter)
        self.cost_model = SpanCostModel(self.config, dictionary or frozenset())
        self.merge_cache = MergeCache(self.store, self.config, self.tasks, clock=clock)
        self.hints = AiHintAdapter(hint_provider, self.config, self.merge_cache, clock=clock)

    # ------------------------------------------------------------------
    # Synchronous segmentation
    # ------------------------------------------------------------------

    def segment(
        self,
        text: str,
        video_id: str | None = None,
        debug_sink: DebugSink | None = None,
    ) -> list[str]:
        """Segment one line into display spans."""
        return self.segment_line(text, video_id, debug_sink).spans

    def segment_line(
        self,
        text: str,
        video_id: str | None = None,
        debug_sink: DebugSink | None = None,
    ) -> SegmentedLine:
        """Segment one line, keeping the normalized text and baseline tokens.

        RULES:
        - A cold video is segmented with an empty merge set; hydration is
          scheduled and visible to a later call
        - Jobs parked by earlier calls (no running loop) run first
        - debug_sink errors are logged and ignored
        """
        try:
            self.tasks.run_parked()
        except Exception:
            logger.warning("Running parked background jobs failed", exc_info=True)

        clean = normalize(text)
        if not clean:
            return SegmentedLine(text="", baseline=[], spans=[])

        try:
            baseline = self.tokenizer.tokenize(clean)
        except Exception:
            logger.warning("Tokenizer failed; returning the line unsplit", exc_info=True)
            return SegmentedLine(text=clean, baseline=[clean], spans=[clean])

        if not self.config.enabled or len(baseline) <= 1:
            return SegmentedLine(text=clean, baseline=baseline, spans=list(baseline))

        try:
            merges = self.merge_cache.get_merges(video_id)
            spans = segment_tokens(baseline, self.cost_model, merges, self.config.max_span_length)
        except Exception:
            logger.warning("Segmentation failed for video %s; using baseline", video_id, exc_info=True)
            spans = list(baseline)

        if debug_sink is not None:
            self._emit_snapshot(debug_sink, video_id, clean, baseline, spans)
        return SegmentedLine(text=clean, baseline=baseline, spans=spans)

    def segment_lines(self, lines: Iterable[str], video_id: str | None = None) -> list[SegmentedLine]:
        return [line for line in (self.segment_line(t, video_id) for t in lines) if line.text]

    def _emit_snapshot(
        self,
        sink: DebugSink,
        video_id: str | None,
        clean: str,
        baseline: list[str],
        spans: list[str],
    ) -> None:
        snapshot = SegmentationSnapshot(
            video_id=video_id or "",
            original=list(baseline),
            collocation_applied=list(spans),
            ai_applied=self.merge_cache.get_line(video_id, clean),
        )
        try:
            sink(snapshot)
        except Exception:
            logger.warning("Debug sink raised; ignoring", exc_info=True)

    # ------------------------------------------------------------------
    # Warm-up and AI merge hints
    # ------------------------------------------------------------------

    async def warm_up_for_video(self, video_id: str, line_texts: Iterable[str]) -> list[str]:
        """Mine collocations for a video, persist them, then request AI hints.

        WHY: Mining needs every line of the video, so it runs once when the
        subtitles become available rather than per displayed line.

        HOW: Tokenizes every line, mines PMI collocations, unions them into
        the video's merge set and overwrites the stored phrase list. The AI
        adapter is then asked for hints with the mined candidates (it
        applies its own cooldown).

        RULES:
        - Returns the video's merge phrases after warm-up ([] on failure)
        - Never raises
        """
        try:
            token_lines = [self.tokenizer.tokenize(normalize(t)) for t in line_texts]
            mined = mine_collocations(token_lines, self.config)
            added = self.merge_cache.add_merges(video_id, mined)
            await self.merge_cache.persist_merges(video_id)
            logger.info(
                "Warm-up for video %s: %d lines, %d mined, %d new merges",
                video_id,
                len(token_lines),
                len(mined),
                added,
            )
            if mined:
                await self.hints.fetch_merge_hints(video_id, mined)
            return self.merge_cache.merge_phrases(video_id)
        except Exception:
            logger.warning("Warm-up failed for video %s", video_id, exc_info=True)
            return []

    async def set_ai_merge_hints(self, batch: MergeHintBatch) -> int:
        """Union an externally supplied hint batch into the video's merges.

        Returns the number of new phrases (0 on failure).
        """
        try:
            added = self.merge_cache.add_merges(batch.video_id, batch.phrases)
            await self.merge_cache.persist_merges(batch.video_id)
        except Exception:
            logger.warning("Failed to apply merge hints for video %s", batch.video_id, exc_info=True)
            return 0
        logger.debug("Applied %d new hint phrases for video %s", added, batch.video_id)
        return added

    async def force_fetch_ai_hints(self, video_id: str) -> list[str] | None:
        """Request AI hints now, ignoring the cooldown, using the current merges."""
        try:
            if not self.merge_cache.has_merges(video_id):
                await self.merge_cache.hydrate(video_id)
            candidates = self.merge_cache.merge_phrases(video_id)
            return await self.hints.fetch_merge_hints(video_id, candidates, force=True)
        except Exception:
            logger.warning("Forced AI hint fetch failed for video %s", video_id, exc_info=True)
            return None

    def merges_for(self, video_id: str) -> list[str]:
        return self.merge_cache.merge_phrases(video_id)

    # ------------------------------------------------------------------
    # Per-line AI segmentations
    # ------------------------------------------------------------------

    def get_cached_line_segmentation(self, video_id: str | None, text: str) -> list[str] | None:
        return self.merge_cache.get_line(video_id, text)

    def remember_line_segmentation(self, video_id: str, text: str, tokens: list[str]) -> bool:
        """Cache an improved segmentation for a line.

        RULES:
        - Rejected (False) unless the tokens concatenate to the normalized line
        - Persisted in the background with line_cache_ttl_seconds
        """
        clean = normalize(text)
        kept = [t for t in tokens if t]
        if not clean or "".join(kept) != clean:
            logger.warning("Rejected line segmentation for video %s: tokens do not match text", video_id)
            return False
        self.merge_cache.remember_line(video_id, clean, kept)
        return True

    async def improve_line_segmentation(
        self,
        video_id: str,
        text: str,
        baseline_tokens: list[str] | None = None,
        current_tokens: list[str] | None = None,
    ) -> list[str] | None:
        """Return a cached AI segmentation for the line; None on a miss."""
        try:
            clean = normalize(text)
            if not clean:
                return None
            baseline = baseline_tokens if baseline_tokens is not None else self.tokenizer.tokenize(clean)
            current = current_tokens if current_tokens is not None else baseline
            return await self.hints.improve_line_segmentation(video_id, clean, baseline, current)
        except Exception:
            logger.warning("Line improvement failed for video %s", video_id, exc_info=True)
            return None

    # ------------------------------------------------------------------
    # Configuration and providers
    # ------------------------------------------------------------------

    def update_config(self, **changes: object) -> SegmenterConfig:
        """Validate and apply configuration changes to the shared config.

        Raises:
            ValueError: unknown key or invalid value; nothing is applied.
        """
        candidate = self.config.updated(**changes)
        self.config.apply(candidate)
        logger.info("Config updated: %s", ", ".join(sorted(changes)))
        return self.config

    def set_hint_provider(self, provider: AiHintProvider | None) -> None:
        self.hints.set_provider(provider)

    def is_ai_provider_active(self) -> bool:
        return self.hints.is_active

    async def drain(self) -> None:
        """Wait for background hydration and persistence to finish."""
        await self.tasks.drain()
