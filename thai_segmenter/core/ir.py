"""Data model dataclasses shared by the engine, cache, hints, and formatters.

WHY: Tokens and spans are plain strings, but the records passed between
components (AI hint batches, debug snapshots, segmented lines for output)
need a single well-typed definition so every layer agrees on the shape.

HOW: Five dataclasses:
  MergeHint          : one AI-proposed phrase with an optional weight
  MergeHintBatch     : a provider's proposal for one video
  SegmentationSnapshot: baseline vs. DP output for one line (debugging)
  SegmentedLine      : one subtitle line with its baseline and final spans
  SegmentedDocument  : all segmented lines of one video (formatter input)

RULES:
- Tokens and spans are str; a line's spans concatenate to its normalized text
- MergeHintBatch is never persisted on its own; its phrases are unioned
  into the video's merge set
- weight is carried for providers that supply it but is not used in cost
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional


@dataclass
class MergeHint:
    """A single phrase proposed for merging by an AI provider."""

    phrase: str
    weight: Optional[float] = None


@dataclass
class MergeHintBatch:
    """An external merge proposal for one video.

    RULES:
    - phrases are normalized by the engine before use
    - an empty merges list means "no hints"
    """

    video_id: str
    merges: List[MergeHint] = field(default_factory=list)

    @classmethod
    def from_phrases(cls, video_id: str, phrases: List[str]) -> MergeHintBatch:
        return cls(video_id=video_id, merges=[MergeHint(phrase=p) for p in phrases])

    @property
    def phrases(self) -> List[str]:
        return [m.phrase for m in self.merges]


@dataclass
class SegmentationSnapshot:
    """Baseline and collocation-applied tokens for one segmented line."""

    video_id: str
    original: List[str]
    collocation_applied: List[str]
    ai_applied: Optional[List[str]] = None


@dataclass
class SegmentedLine:
    """One subtitle line after segmentation, ready for formatters.

    RULES:
    - text is the normalized line text
    - baseline is the tokenizer output, spans the DP output
    - "".join(spans) == text
    """

    text: str
    baseline: List[str]
    spans: List[str]


@dataclass
class SegmentedDocument:
    """All segmented lines of one video, in subtitle order."""

    video_id: str
    lines: List[SegmentedLine] = field(default_factory=list)
