"""Per-video collocation mining with pointwise mutual information.

WHY: Baseline tokenization over-splits Thai compounds and set phrases.
Within a single video the same phrases recur, so adjacent tokens that
co-occur far more often than chance are good merge candidates. No
training data is needed: statistics come from one video's subtitles.

HOW: count_ngrams() builds unigram, adjacent-bigram, and adjacent-trigram
counts plus the total token count N. pmi() estimates
log2((xy/(N-1)) / ((x/N)*(y/N))) with an epsilon on both sides. Bigrams
pass on count, phrase length, and PMI. Trigrams use the minimum of their
two constituent bigram PMIs and a stricter count. Candidates are ranked
by score and truncated to the merge cap.

RULES:
- Bigram gate: count >= min_collocation_count, len(phrase) <= max_span_length,
  PMI >= pmi_threshold
- Trigram gate: count >= min_collocation_count + 1, both bigrams observed,
  min(PMI(a,b), PMI(b,c)) >= pmi_threshold, same length test
- N-grams containing a hard-boundary token are never candidates
  (the segmenter could not apply them)
- Output is deduplicated, highest score first, ties in first-seen order,
  and never longer than the clamped cap
- PhraseStatistics is ephemeral: discarded after mining, never persisted
"""

from __future__ import annotations

import math
from collections import Counter
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Sequence, Tuple

from thai_segmenter.config import SegmenterConfig
from thai_segmenter.core.boundary import is_hard_boundary

_PMI_EPSILON = 1e-9


@dataclass
class PhraseStatistics:
    """Unigram/bigram/trigram counts for one video's baseline tokens."""

    unigrams: Counter = field(default_factory=Counter)
    bigrams: Counter = field(default_factory=Counter)
    trigrams: Counter = field(default_factory=Counter)
    total_tokens: int = 0

    def pmi(self, joint: int, left: int, right: int) -> float:
        """PMI of a pair from its joint count and marginal counts."""
        n = self.total_tokens
        p_xy = joint / max(1, n - 1)
        p_x = left / max(1, n)
        p_y = right / max(1, n)
        return math.log2((p_xy + _PMI_EPSILON) / (p_x * p_y + _PMI_EPSILON))

    def bigram_pmi(self, a: str, b: str) -> float:
        return self.pmi(self.bigrams[(a, b)], self.unigrams[a], self.unigrams[b])


def count_ngrams(token_lines: Iterable[Sequence[str]]) -> PhraseStatistics:
    """Count n-grams over already-tokenized lines.

    N-grams never cross line boundaries.
    """
    stats = PhraseStatistics()
    for tokens in token_lines:
        if not tokens:
            continue
        stats.total_tokens += len(tokens)
        for i, token in enumerate(tokens):
            stats.unigrams[token] += 1
            if i + 1 < len(tokens):
                stats.bigrams[(token, tokens[i + 1])] += 1
            if i + 2 < len(tokens):
                stats.trigrams[(token, tokens[i + 1], tokens[i + 2])] += 1
    return stats


def score_candidates(
    stats: PhraseStatistics, config: SegmenterConfig
) -> Dict[str, float]:
    """Return every phrase passing the gates, mapped to its best score."""
    scores: Dict[str, float] = {}

    def _keep(phrase: str, score: float) -> None:
        if len(phrase) > config.max_span_length or score < config.pmi_threshold:
            return
        if phrase not in scores or score > scores[phrase]:
            scores[phrase] = score

    for (a, b), count in stats.bigrams.items():
        if count < config.min_collocation_count:
            continue
        if is_hard_boundary(a) or is_hard_boundary(b):
            continue
        _keep(a + b, stats.bigram_pmi(a, b))

    for (a, b, c), count in stats.trigrams.items():
        if count < config.min_collocation_count + 1:
            continue
        if is_hard_boundary(a) or is_hard_boundary(b) or is_hard_boundary(c):
            continue
        if not stats.bigrams[(a, b)] or not stats.bigrams[(b, c)]:
            continue
        _keep(a + b + c, min(stats.bigram_pmi(a, b), stats.bigram_pmi(b, c)))

    return scores


def mine_collocations(
    token_lines: Iterable[Sequence[str]], config: SegmenterConfig
) -> List[str]:
    """Mine the per-video phrase vocabulary from baseline-tokenized lines.

    Args:
        token_lines: One baseline token list per subtitle line.
        config: Thresholds, span ceiling, and merge cap.

    Returns:
        Merge phrases, best-scoring first, at most ``config.merge_cap`` long.
    """
    stats = count_ngrams(token_lines)
    if stats.total_tokens < 2:
        return []
    scores = score_candidates(stats, config)
    ranked: List[Tuple[str, float]] = sorted(
        scores.items(), key=lambda kv: kv[1], reverse=True
    )
    return [phrase for phrase, _ in ranked[: config.merge_cap]]
