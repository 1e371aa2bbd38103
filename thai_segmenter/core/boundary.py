"""Hard-boundary classification for baseline tokens.

WHY: Merging is only meaningful inside runs of Thai script. Punctuation,
Latin fragments, digits, and whitespace must never be glued to their
neighbours.

HOW: A token is a hard boundary if any of its characters falls outside
the Thai block U+0E00..U+0E7F. can_span() allows every single-token span
and multi-token spans only over Thai-only tokens.

RULES:
- Thai digits and Thai punctuation (inside the block) are not boundaries
- The empty string is not a boundary (tokenizer never emits it)
- end is exclusive in can_span()
"""

from __future__ import annotations

import re
from typing import Sequence

_NON_THAI_RE = re.compile("[^\u0E00-\u0E7F]")


def is_hard_boundary(token: str) -> bool:
    """True iff ``token`` contains a character outside the Thai block."""
    return _NON_THAI_RE.search(token) is not None


def can_span(tokens: Sequence[str], start: int, end: int) -> bool:
    """Whether ``tokens[start:end]`` may form one output span."""
    if end - start <= 1:
        return True
    return not any(is_hard_boundary(tokens[k]) for k in range(start, end))
