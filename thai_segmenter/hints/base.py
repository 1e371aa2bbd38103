"""AI hint provider interface, null provider, and provider errors.

WHY: AI hints are optional. The engine must work identically with no
provider, a remote model, or a canned test double, so the provider is an
injected dependency behind a small abstract interface instead of
environment-driven wiring inside the engine.

HOW: AiHintProvider is an ABC with two async operations. NullHintProvider
returns None for both and stands for "AI disabled". Remote providers raise
HintProviderError / HintPayloadError; the adapter catches them.

RULES:
- Providers return None for "no hint"; they may raise on transport or
  payload failures
- Providers never normalize or cap phrases; the adapter does that
- ``active`` is False only for providers that never produce hints
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from thai_segmenter.core.ir import MergeHintBatch


class HintProviderError(Exception):
    """Raised when the remote hint provider returns an error response.

    RULES:
    - Always include status_code and message
    - message is the response body text or a summary
    """

    def __init__(self, status_code: int, message: str) -> None:
        self.status_code = status_code
        self.message = message
        super().__init__(f"Hint provider error {status_code}: {message}")


class HintPayloadError(ValueError):
    """Raised when the provider's reply contains no valid hint JSON."""


class AiHintProvider(ABC):
    """Abstract source of merge hints and per-line segmentations.

    To add a new provider:
    1. Subclass AiHintProvider
    2. Implement name, fetch_merge_hints() and fetch_line_segmentation()
    3. Pass an instance to ThaiSegmenterEngine(hint_provider=...)
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """Short provider name used in logs."""

    @property
    def active(self) -> bool:
        return True

    @abstractmethod
    async def fetch_merge_hints(
        self,
        video_id: str,
        candidate_phrases: list[str],
    ) -> MergeHintBatch | None:
        """Propose merge phrases for a video from its mined candidates."""

    @abstractmethod
    async def fetch_line_segmentation(
        self,
        video_id: str,
        line_text: str,
        baseline_tokens: list[str],
    ) -> list[str] | None:
        """Propose a full segmentation of one line."""


class NullHintProvider(AiHintProvider):
    """Provider used when AI hints are disabled or unconfigured."""

    @property
    def name(self) -> str:
        return "null"

    @property
    def active(self) -> bool:
        return False

    async def fetch_merge_hints(
        self,
        video_id: str,
        candidate_phrases: list[str],
    ) -> MergeHintBatch | None:
        return None

    async def fetch_line_segmentation(
        self,
        video_id: str,
        line_text: str,
        baseline_tokens: list[str],
    ) -> list[str] | None:
        return None
