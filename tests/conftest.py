"""Shared test fixtures for the thai_segmenter test suite.

WHY: Most modules need the same engine wiring: vocabulary splitter,
in-memory store, manual clock, no dictionary and no AI provider.

RULES:
- Every fixture builds fresh objects; no state is shared between tests
"""

from __future__ import annotations

import pytest

from support import FakeClock, vocab_split
from thai_segmenter.cache.store import InMemoryTtlStore
from thai_segmenter.config import SegmenterConfig
from thai_segmenter.engine import ThaiSegmenterEngine


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def config():
    return SegmenterConfig()


@pytest.fixture
def store(clock):
    return InMemoryTtlStore(clock=clock)


@pytest.fixture
def engine(config, store, clock):
    """Engine with the vocabulary splitter, no dictionary and no AI."""
    return ThaiSegmenterEngine(
        config=config,
        word_splitter=vocab_split,
        store=store,
        clock=clock,
    )
