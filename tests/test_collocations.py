"""Tests for n-gram counting, PMI scoring and collocation mining.

RULES:
- Scenarios use hand-built token lines so counts are known exactly
- Cap tests generate distinct Thai-only pairs (never hard boundaries)
"""

from __future__ import annotations

from typing import List

from support import vocab_split, warmup_lines
from thai_segmenter.config import SegmenterConfig
from thai_segmenter.core.boundary import is_hard_boundary
from thai_segmenter.core.collocations import (
    PhraseStatistics,
    count_ngrams,
    mine_collocations,
    score_candidates,
)


def _distinct_pair_lines(count: int) -> List[List[str]]:
    """Each pair (a_i, b_i) is unique and occurs twice."""
    lines = []
    for i in range(count):
        suffix = chr(0x0E01 + i // 45) + chr(0x0E01 + i % 45)
        pair = ["ก" + suffix, "ข" + suffix]
        lines.extend([pair, list(pair)])
    return lines


class TestCountNgrams:

    def test_counts_unigrams_bigrams_trigrams(self):
        stats = count_ngrams([["ผม", "กิน", "ข้าว"], ["ผม", "กิน"]])
        assert stats.total_tokens == 5
        assert stats.unigrams["ผม"] == 2
        assert stats.bigrams[("ผม", "กิน")] == 2
        assert stats.bigrams[("กิน", "ข้าว")] == 1
        assert stats.trigrams[("ผม", "กิน", "ข้าว")] == 1

    def test_ngrams_do_not_cross_lines(self):
        stats = count_ngrams([["ผม"], ["กิน"]])
        assert stats.bigrams[("ผม", "กิน")] == 0

    def test_skips_empty_lines(self):
        stats = count_ngrams([[], ["ผม"]])
        assert stats.total_tokens == 1


class TestPmi:

    def test_monotonic_in_joint_count(self):
        stats = PhraseStatistics(total_tokens=100)
        scores = [stats.pmi(joint, 10, 10) for joint in range(0, 11)]
        assert scores == sorted(scores)

    def test_independent_pair_is_near_zero(self):
        stats = PhraseStatistics(total_tokens=101)
        # p(xy) = 1/100, p(x) = p(y) = 10/101
        assert abs(stats.pmi(1, 10, 10)) < 0.1

    def test_zero_counts_do_not_raise(self):
        stats = PhraseStatistics(total_tokens=0)
        assert stats.pmi(0, 0, 0) == 0.0


class TestMineCollocations:

    def _lines(self, texts):
        return [vocab_split(t) for t in texts]

    def test_warmup_lines_mine_the_repeated_bigram(self):
        mined = mine_collocations(self._lines(warmup_lines()), SegmenterConfig())
        assert "ยังเชื่อ" in mined
        assert set(mined) == {"ยังเชื่อ", "ฉันยัง"}

    def test_frequent_but_unassociated_pairs_are_rejected(self):
        mined = mine_collocations(self._lines(warmup_lines()), SegmenterConfig())
        assert "ผมกิน" not in mined
        assert "กินข้าว" not in mined

    def test_bigram_below_min_count_is_rejected(self):
        lines = [["ผม", "กิน"]] * 50 + [["ยัง", "เชื่อ"]]
        assert mine_collocations(lines, SegmenterConfig()) == []

    def test_trigram_needs_stricter_count(self):
        filler = [["ผม", "กิน", "ข้าว"]] * 40
        twice = mine_collocations(filler + [["ไป", "ที่", "เรา"]] * 2, SegmenterConfig())
        assert "ไปที่" in twice
        assert "ที่เรา" in twice
        assert "ไปที่เรา" not in twice

        three_times = mine_collocations(filler + [["ไป", "ที่", "เรา"]] * 3, SegmenterConfig())
        assert "ไปที่เรา" in three_times

    def test_trigram_score_is_min_of_bigram_pmis(self):
        lines = [["ผม", "กิน", "ข้าว"]] * 40 + [["ไป", "ที่", "เรา"]] * 3
        stats = count_ngrams(lines)
        scores = score_candidates(stats, SegmenterConfig())
        expected = min(stats.bigram_pmi("ไป", "ที่"), stats.bigram_pmi("ที่", "เรา"))
        assert scores["ไปที่เรา"] == expected

    def test_phrase_length_limit(self):
        lines = [["ผม", "กิน", "ข้าว"]] * 40 + [["ไป", "ที่", "เรา"]] * 3
        mined = mine_collocations(lines, SegmenterConfig(max_span_length=5))
        assert "ไปที่" in mined
        assert "ที่เรา" not in mined
        assert all(len(p) <= 5 for p in mined)

    def test_hard_boundary_ngrams_are_never_candidates(self):
        lines = [["ผม", " ", "กิน"]] * 5 + [["ยัง", "OK", "เชื่อ"]] * 5 + [["ข้าว"]] * 40
        mined = mine_collocations(lines, SegmenterConfig())
        assert all(not is_hard_boundary(p) for p in mined)
        assert mined == []

    def test_higher_threshold_drops_candidates(self):
        mined = mine_collocations(self._lines(warmup_lines()), SegmenterConfig(pmi_threshold=50.0))
        assert mined == []

    def test_results_are_ranked_by_score(self):
        lines = [["ผม", "กิน", "ข้าว"]] * 40 + [["ไป", "ที่"]] * 2 + [["ยัง", "เชื่อ"]] * 6
        stats = count_ngrams(lines)
        scores = score_candidates(stats, SegmenterConfig())
        mined = mine_collocations(lines, SegmenterConfig())
        assert [scores[p] for p in mined] == sorted((scores[p] for p in mined), reverse=True)

    def test_degenerate_input(self):
        assert mine_collocations([], SegmenterConfig()) == []
        assert mine_collocations([["ผม"]], SegmenterConfig()) == []


class TestMergeCap:

    def test_output_truncated_to_cap(self):
        lines = _distinct_pair_lines(150)
        assert len(mine_collocations(lines, SegmenterConfig(max_merges_per_video=100_000))) == 150
        assert len(mine_collocations(lines, SegmenterConfig(max_merges_per_video=120))) == 120

    def test_cap_is_clamped_to_minimum(self):
        lines = _distinct_pair_lines(150)
        mined = mine_collocations(lines, SegmenterConfig(max_merges_per_video=5))
        assert len(mined) == 100

    def test_cap_ceiling(self):
        assert SegmenterConfig(max_merges_per_video=50_000).merge_cap == 20_000
        assert SegmenterConfig().merge_cap == 10_000
