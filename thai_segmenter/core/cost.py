"""Span-cost model for the DP segmenter.

WHY: The segmenter needs one scalar per candidate span that encodes all
available evidence: the number of tokens merged, static dictionary
membership, per-video collocation membership, and agreement between the
two. Lower cost means a more preferred span.

HOW: Start from token_cost per constituent token, subtract the dictionary
bonus, the merge bonus, and the synergy bonus when both apply, add the
over-length penalty, then clamp to the floor.

RULES:
- Base = token_count * token_cost (1.0)
- Dictionary hit (when the dictionary bonus is enabled): -2.0
- Merge-set hit: -1.2
- Dictionary and merge-set hit together: extra -0.5, even when the
  dictionary bonus itself is disabled
- len(phrase) > max_span_length: +2.0
- Result is never below cost_floor (0.05), so no span is free
"""

from __future__ import annotations

from typing import AbstractSet, FrozenSet

from thai_segmenter.config import SegmenterConfig


class SpanCostModel:
    """Scores candidate spans against a dictionary and a merge set."""

    def __init__(
        self,
        config: SegmenterConfig,
        dictionary: AbstractSet[str] = frozenset(),
    ) -> None:
        self.config = config
        self.dictionary: AbstractSet[str] = dictionary

    def cost(self, phrase: str, token_count: int, merges: AbstractSet[str]) -> float:
        cfg = self.config
        total = token_count * cfg.token_cost

        in_dictionary = phrase in self.dictionary
        in_merges = phrase in merges

        if in_dictionary and cfg.enable_dictionary_bonus:
            total -= cfg.dictionary_bonus
        if in_merges:
            total -= cfg.merge_bonus
        # Convergent evidence; not gated by enable_dictionary_bonus
        if in_dictionary and in_merges:
            total -= cfg.synergy_bonus

        if len(phrase) > cfg.max_span_length:
            total += cfg.overlength_penalty

        return max(total, cfg.cost_floor)


EMPTY_MERGES: FrozenSet[str] = frozenset()
