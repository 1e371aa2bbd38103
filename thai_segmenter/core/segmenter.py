"""Minimum-cost re-segmentation of baseline tokens (dynamic programming).

WHY: Given baseline tokens and a cost for every contiguous run of them,
the best segmentation is the cheapest partition of the token sequence.
Greedy longest-match cannot trade a good merge here against a better one
next door; the DP considers all partitions at once.

HOW: Nodes are token-boundary positions 0..n, edges are candidate spans
[i, i+len) weighted by SpanCostModel.cost. dp[n] = 0 and, walking i from
n-1 down to 0, dp[i] is the cheapest span from i plus dp[i+len]. The
chosen end of each best span is recorded in next_idx; reconstruction
follows those pointers from 0 and joins each run into one span.

RULES:
- Span length ranges over [1, min(max_span_length, n)]
- Spans failing can_span() (hard boundaries) are never considered
- Ties keep the shorter span (first found, strict comparison)
- A single token is returned as-is without running the DP
- If reconstruction yields nothing, the baseline tokens are returned
"""

from __future__ import annotations

import math
from typing import AbstractSet, List, Sequence

from thai_segmenter.core.boundary import can_span
from thai_segmenter.core.cost import SpanCostModel


def segment_tokens(
    tokens: Sequence[str],
    cost_model: SpanCostModel,
    merges: AbstractSet[str],
    max_span_length: int,
) -> List[str]:
    """Return the minimum-cost spans covering ``tokens``.

    Args:
        tokens: Baseline tokens of one normalized line.
        cost_model: Scores a (phrase, token_count, merges) triple.
        merges: The video's merge set (may be empty).
        max_span_length: Configured ceiling on tokens per span.

    Returns:
        Output spans; "".join(spans) == "".join(tokens).
    """
    n = len(tokens)
    if n <= 1:
        return list(tokens)

    max_len = min(max_span_length, n)
    dp = [math.inf] * (n + 1)
    next_idx = [-1] * (n + 1)
    dp[n] = 0.0

    for i in range(n - 1, -1, -1):
        for length in range(1, max_len + 1):
            end = i + length
            if end > n:
                break
            if not can_span(tokens, i, end):
                continue
            phrase = "".join(tokens[i:end])
            total = cost_model.cost(phrase, length, merges) + dp[end]
            if total < dp[i]:
                dp[i] = total
                next_idx[i] = end

    spans: List[str] = []
    idx = 0
    while 0 <= idx < n and next_idx[idx] > idx:
        end = next_idx[idx]
        spans.append("".join(tokens[idx:end]))
        idx = end

    if not spans:
        return list(tokens)
    return spans
