"""FastAPI application exposing one long-lived segmentation engine.

WHY: Players, editors and batch tools in other languages need the engine
over HTTP: warm a video up once, then segment lines with that video's
merges, push AI hints, and tune the configuration at runtime.

HOW: create_app(engine) builds a FastAPI app around the given engine
(or a default one configured from the environment). Endpoints are thin:
they validate the request with pydantic models and call the engine.
Background hydration and persistence run as tasks on the server loop;
a lifespan task sweeps expired store entries and drains pending work on
shutdown.

RULES:
- The engine is created once per app and never replaced
- Engine calls never raise except update_config (ValueError -> 422)
- Rejected line segmentations return 422
- Unknown video ids are not errors; they have empty merge sets
"""

from __future__ import annotations

import asyncio
import logging
from contextlib import asynccontextmanager
from typing import Any, Dict, Optional

from fastapi import FastAPI, HTTPException
from fastapi.responses import Response

from thai_segmenter import __version__
from thai_segmenter.cache.store import InMemoryTtlStore, JsonFileTtlStore
from thai_segmenter.config import CACHE_PATH, DICTIONARY_PATH, load_config
from thai_segmenter.core.dictionary import load_phrase_set, pythainlp_phrase_set
from thai_segmenter.core.ir import MergeHintBatch, SegmentedDocument
from thai_segmenter.engine import ThaiSegmenterEngine
from thai_segmenter.formatters import FORMATTERS
from thai_segmenter.hints.openrouter import OpenRouterHintProvider
from thai_segmenter.server.models import (
    ConfigResponse,
    ErrorResponse,
    HealthResponse,
    HintsRequest,
    LineSegmentationRequest,
    LineSegmentationResponse,
    MergesResponse,
    SegmentedLineResponse,
    SegmentRequest,
    SegmentResponse,
    WarmupRequest,
)

logger = logging.getLogger(__name__)

_CLEANUP_INTERVAL_S = 300


def build_default_engine() -> ThaiSegmenterEngine:
    """Engine configured from THAI_SEG_* / OPENROUTER_* environment variables."""
    config = load_config()
    dictionary = load_phrase_set(DICTIONARY_PATH) if DICTIONARY_PATH else pythainlp_phrase_set()
    store = JsonFileTtlStore(CACHE_PATH) if CACHE_PATH else InMemoryTtlStore()
    provider = None
    if config.enable_ai_hints:
        try:
            provider = OpenRouterHintProvider(timeout=config.ai_timeout_seconds)
        except ValueError as exc:
            logger.warning("AI hints disabled: %s", exc)
    return ThaiSegmenterEngine(
        config=config,
        dictionary=dictionary,
        store=store,
        hint_provider=provider,
    )


def _config_response(engine: ThaiSegmenterEngine) -> ConfigResponse:
    return ConfigResponse(config=engine.config.to_dict(), merge_cap=engine.config.merge_cap)


def create_app(engine: Optional[ThaiSegmenterEngine] = None) -> FastAPI:
    """Build the HTTP API around ``engine``."""
    engine = engine or build_default_engine()

    async def _periodic_cleanup() -> None:
        while True:
            await asyncio.sleep(_CLEANUP_INTERVAL_S)
            cleanup = getattr(engine.store, "cleanup_expired", None)
            if cleanup is not None:
                cleanup()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Start periodic store cleanup; drain background work on shutdown."""
        task = asyncio.create_task(_periodic_cleanup())
        yield
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass
        await engine.drain()

    app = FastAPI(
        lifespan=lifespan,
        title="Thai Segmenter API",
        description=(
            "Per-video Thai word segmentation. Warm a video up with all of its "
            "subtitle lines, then segment lines using the mined collocations, "
            "the static dictionary and optional AI merge hints."
        ),
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc",
    )
    app.state.engine = engine

    # ------------------------------------------------------------------
    # Videos
    # ------------------------------------------------------------------

    @app.post(
        "/videos/{video_id}/warmup",
        response_model=MergesResponse,
        tags=["videos"],
        summary="Mine collocations for a video",
        description="Mines PMI collocations over all lines, stores them, and requests AI hints "
                    "when a provider is active and the video is not cooling down.",
    )
    async def warm_up(video_id: str, body: WarmupRequest) -> MergesResponse:
        merges = await engine.warm_up_for_video(video_id, body.lines)
        return MergesResponse(video_id=video_id, merge_count=len(merges), merges=merges)

    @app.get(
        "/videos/{video_id}/merges",
        response_model=MergesResponse,
        tags=["videos"],
        summary="Current merge set of a video",
    )
    async def get_merges(video_id: str) -> MergesResponse:
        merges = engine.merges_for(video_id)
        return MergesResponse(video_id=video_id, merge_count=len(merges), merges=merges)

    @app.post(
        "/videos/{video_id}/hints",
        response_model=MergesResponse,
        tags=["videos"],
        summary="Add merge hints",
        description="Unions the phrases into the video's merge set and persists it.",
    )
    async def add_hints(video_id: str, body: HintsRequest) -> MergesResponse:
        added = await engine.set_ai_merge_hints(MergeHintBatch.from_phrases(video_id, body.phrases))
        return MergesResponse(
            video_id=video_id,
            merge_count=len(engine.merges_for(video_id)),
            added=added,
        )

    @app.post(
        "/videos/{video_id}/hints/fetch",
        response_model=MergesResponse,
        tags=["videos"],
        summary="Fetch AI hints now",
        description="Asks the AI provider for hints immediately, ignoring the cooldown.",
    )
    async def fetch_hints(video_id: str) -> MergesResponse:
        phrases = await engine.force_fetch_ai_hints(video_id)
        return MergesResponse(
            video_id=video_id,
            merge_count=len(engine.merges_for(video_id)),
            added=len(phrases) if phrases else 0,
        )

    @app.put(
        "/videos/{video_id}/lines",
        response_model=LineSegmentationResponse,
        responses={422: {"model": ErrorResponse}},
        tags=["videos"],
        summary="Store an improved line segmentation",
    )
    async def put_line(video_id: str, body: LineSegmentationRequest) -> LineSegmentationResponse:
        if not engine.remember_line_segmentation(video_id, body.text, body.tokens):
            raise HTTPException(
                status_code=422,
                detail="Tokens do not concatenate to the normalized line text",
            )
        return LineSegmentationResponse(video_id=video_id, text=body.text, tokens=body.tokens)

    @app.get(
        "/videos/{video_id}/lines",
        response_model=LineSegmentationResponse,
        responses={404: {"model": ErrorResponse}},
        tags=["videos"],
        summary="Look up an improved line segmentation",
    )
    async def get_line(video_id: str, text: str) -> LineSegmentationResponse:
        tokens = await engine.improve_line_segmentation(video_id, text)
        if tokens is None:
            tokens = engine.get_cached_line_segmentation(video_id, text)
        if not tokens:
            raise HTTPException(status_code=404, detail="No cached segmentation for this line")
        return LineSegmentationResponse(video_id=video_id, text=text, tokens=tokens)

    # ------------------------------------------------------------------
    # Segmentation
    # ------------------------------------------------------------------

    @app.post(
        "/segment",
        response_model=SegmentResponse,
        tags=["segmentation"],
        summary="Segment subtitle lines",
        description="Segments each line. With ``format``, returns that formatter's file content.",
    )
    async def segment(body: SegmentRequest):
        lines = engine.segment_lines(body.lines, body.video_id)
        if body.format is not None:
            formatter = FORMATTERS[body.format.value]()
            output = formatter.format(SegmentedDocument(video_id=body.video_id or "", lines=lines))[0]
            return Response(content=output.content, media_type=output.media_type)
        return SegmentResponse(
            video_id=body.video_id,
            lines=[
                SegmentedLineResponse(text=line.text, baseline=line.baseline, spans=line.spans)
                for line in lines
            ],
        )

    # ------------------------------------------------------------------
    # Configuration
    # ------------------------------------------------------------------

    @app.get("/config", response_model=ConfigResponse, tags=["config"], summary="Current configuration")
    async def get_config() -> ConfigResponse:
        return _config_response(engine)

    @app.patch(
        "/config",
        response_model=ConfigResponse,
        responses={422: {"model": ErrorResponse}},
        tags=["config"],
        summary="Update configuration",
        description="Validates the changes and applies them to the running engine.",
    )
    async def patch_config(changes: Dict[str, Any]) -> ConfigResponse:
        try:
            engine.update_config(**changes)
        except (ValueError, TypeError) as exc:
            raise HTTPException(status_code=422, detail=str(exc))
        return _config_response(engine)

    # ------------------------------------------------------------------
    # Health
    # ------------------------------------------------------------------

    @app.get(
        "/health",
        response_model=HealthResponse,
        tags=["health"],
        summary="Health check",
    )
    async def health_check() -> HealthResponse:
        return HealthResponse(status="ok", version=__version__, ai_active=engine.is_ai_provider_active())

    return app


def run_api():
    """Entry point for the thai-segmenter-api console script."""
    import uvicorn
    logging.basicConfig(level=logging.INFO)
    uvicorn.run(create_app(), host="0.0.0.0", port=8000)
