"""Pydantic request/response models for the HTTP API.

WHY: The FastAPI endpoints need typed schemas for request validation,
response serialization, and automatic OpenAPI documentation.

HOW: Each endpoint has its own request and/or response model. Field
descriptions appear in the /docs UI.

RULES:
- All models use Field(description=...) for OpenAPI documentation
- OutputFormat values match keys in thai_segmenter.formatters.FORMATTERS
- Configuration is exchanged as a plain dict of SegmenterConfig fields
"""

from __future__ import annotations

from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field


class OutputFormat(str, Enum):
    """Available output format identifiers."""

    plain_text = "plain_text"
    json_spans = "json_spans"


# ---------------------------------------------------------------------------
# Request models
# ---------------------------------------------------------------------------


class WarmupRequest(BaseModel):
    lines: List[str] = Field(
        description="Every subtitle line of the video, in order.",
    )


class SegmentRequest(BaseModel):
    """Lines to segment, optionally within a warmed-up video."""

    lines: List[str] = Field(
        description="Subtitle lines to segment.",
    )
    video_id: Optional[str] = Field(
        default=None,
        description="Video whose merge set should be applied. Omit for dictionary-only segmentation.",
    )
    format: Optional[OutputFormat] = Field(
        default=None,
        description="Return a formatter's file content instead of JSON spans.",
    )


class HintsRequest(BaseModel):
    phrases: List[str] = Field(
        description="Phrases to add to the video's merge set.",
    )


class LineSegmentationRequest(BaseModel):
    text: str = Field(description="The subtitle line.")
    tokens: List[str] = Field(
        description="Improved segmentation; must concatenate to the normalized line.",
    )


# ---------------------------------------------------------------------------
# Response models
# ---------------------------------------------------------------------------


class SegmentedLineResponse(BaseModel):
    text: str = Field(description="Normalized line text.")
    baseline: List[str] = Field(description="Baseline tokenizer output.")
    spans: List[str] = Field(description="Final display spans.")


class SegmentResponse(BaseModel):
    video_id: Optional[str] = Field(default=None, description="Video the merges came from.")
    lines: List[SegmentedLineResponse] = Field(description="One entry per non-empty input line.")


class MergesResponse(BaseModel):
    """State of a video's merge set after an operation."""

    video_id: str = Field(description="Video identifier.")
    merge_count: int = Field(description="Number of phrases in the in-memory merge set.")
    added: Optional[int] = Field(default=None, description="Phrases added by this request.")
    merges: Optional[List[str]] = Field(default=None, description="The merge phrases.")


class LineSegmentationResponse(BaseModel):
    video_id: str = Field(description="Video identifier.")
    text: str = Field(description="The subtitle line.")
    tokens: List[str] = Field(description="Cached improved segmentation.")


class ConfigResponse(BaseModel):
    config: Dict[str, Any] = Field(description="Current engine configuration.")
    merge_cap: int = Field(description="Effective per-video merge cap.")


class HealthResponse(BaseModel):
    status: str = Field(description="Service status, always 'ok' when reachable.")
    version: str = Field(description="API version string.")
    ai_active: bool = Field(description="Whether an AI hint provider is active.")


class ErrorResponse(BaseModel):
    detail: str = Field(description="Human-readable error message.")
