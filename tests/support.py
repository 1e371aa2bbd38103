"""Deterministic stand-ins shared by the test modules.

WHY: Segmentation results depend on the baseline word splitter. PyThaiNLP's
output can change between releases, so most tests use a small greedy
vocabulary splitter whose tokens are known in advance.

HOW: vocab_split() does longest-match over VOCABULARY. Whitespace runs
and runs of non-Thai characters become single tokens; unknown Thai
characters become one-character tokens. FakeClock and
RecordingHintProvider make time and AI calls deterministic.

RULES:
- "กินข้าว" is NOT in VOCABULARY (baseline is ["ผม", "กิน", "ข้าว"])
- Nothing here touches the network
"""

from __future__ import annotations

from typing import List, Optional

from thai_segmenter.core.ir import MergeHintBatch
from thai_segmenter.hints.base import AiHintProvider

VOCABULARY = frozenset({
    "ผม", "กิน", "ข้าว", "ฉัน", "ยัง", "เชื่อ", "คิด", "ว่า",
    "สูตร", "นี้", "ที่", "เรา", "ไป", "โรงเรียน", "แบคทีเรีย",
})

_MAX_WORD = max(len(w) for w in VOCABULARY)


def _is_thai(ch: str) -> bool:
    return "\u0E00" <= ch <= "\u0E7F"


def vocab_split(text: str, locale: str = "th") -> List[str]:
    """Greedy longest-match splitter over VOCABULARY."""
    words: List[str] = []
    i = 0
    while i < len(text):
        ch = text[i]
        if ch.isspace() or not _is_thai(ch):
            j = i + 1
            while j < len(text) and (text[j].isspace() == ch.isspace()) and not _is_thai(text[j]):
                j += 1
            words.append(text[i:j])
            i = j
            continue
        for size in range(min(_MAX_WORD, len(text) - i), 0, -1):
            if text[i:i + size] in VOCABULARY:
                words.append(text[i:i + size])
                i += size
                break
        else:
            words.append(ch)
            i += 1
    return words


class FakeClock:
    """Manually advanced clock (seconds)."""

    def __init__(self, now: float = 1_000_000.0) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class RecordingHintProvider(AiHintProvider):
    """Returns canned phrases and records every call."""

    def __init__(self, phrases: Optional[List[str]] = None, error: Optional[Exception] = None) -> None:
        self.phrases = list(phrases or [])
        self.error = error
        self.merge_calls: List[tuple] = []
        self.line_calls: List[tuple] = []

    @property
    def name(self) -> str:
        return "recording"

    async def fetch_merge_hints(self, video_id, candidate_phrases):
        self.merge_calls.append((video_id, list(candidate_phrases)))
        if self.error is not None:
            raise self.error
        if not self.phrases:
            return None
        return MergeHintBatch.from_phrases(video_id, self.phrases)

    async def fetch_line_segmentation(self, video_id, line_text, baseline_tokens):
        self.line_calls.append((video_id, line_text))
        return None


def warmup_lines() -> List[str]:
    """100 lines; "ยัง" + "เชื่อ" co-occur in five of them."""
    return ["ผมกินข้าว"] * 95 + ["ฉันยังเชื่อ"] * 5
