"""AI hint package: provider interface, remote provider, cooldown adapter.

WHY: AI hints are an optional enrichment of the mined merge set. Keeping
the provider behind an interface lets hosts run with no AI, a remote
model, or a test double without touching the engine.

HOW: base.py defines AiHintProvider and NullHintProvider,
openrouter.py is the httpx-based remote provider, adapter.py gates
provider calls per video and applies results to the merge cache.

RULES:
- All provider HTTP goes through OpenRouterHintProvider
- Provider failures never reach the engine's callers
"""

from thai_segmenter.hints.adapter import AiHintAdapter
from thai_segmenter.hints.base import (
    AiHintProvider,
    HintPayloadError,
    HintProviderError,
    NullHintProvider,
)
from thai_segmenter.hints.openrouter import OpenRouterHintProvider

__all__ = [
    "AiHintAdapter",
    "AiHintProvider",
    "HintPayloadError",
    "HintProviderError",
    "NullHintProvider",
    "OpenRouterHintProvider",
]
