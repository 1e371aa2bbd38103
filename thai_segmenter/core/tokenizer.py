"""Text normalization and baseline, dictionary-free Thai tokenization.

WHY: Subtitle text arrives with mixed Unicode forms and invisible marks
(zero-width joiners, variation selectors) that break phrase matching.
The DP segmenter and the collocation miner both need the same
normalized text split into the same word-like tokens.

HOW: normalize() applies NFC, strips U+200B..U+200D and U+FE00..U+FE0F,
and trims. Tokenizer.tokenize() asks an injected word-boundary
capability for words, then aligns those words back onto the source text
so that the tokens always reconstruct it exactly. The default capability
is PyThaiNLP's newmm word tokenizer with whitespace kept.

RULES:
- Tokens are non-empty, in source order, and "".join(tokens) == text
- Whitespace and punctuation survive as their own tokens
- Text the capability skipped or altered is emitted as gap tokens
- Empty input (after normalization) yields an empty list, never raises
"""

from __future__ import annotations

import re
import unicodedata
from typing import Callable, Iterable, List, Optional

from pythainlp.tokenize import word_tokenize

# Zero-width space/non-joiner/joiner and variation selectors 1-16
_INVISIBLE_RE = re.compile("[\u200B-\u200D\uFE00-\uFE0F]")

WordSplitter = Callable[[str, str], Iterable[str]]
"""Word-boundary capability: (text, locale) -> word strings in order."""


def normalize(text: Optional[str]) -> str:
    """NFC-normalize, strip zero-width marks and variation selectors, trim."""
    if not text:
        return ""
    return _INVISIBLE_RE.sub("", unicodedata.normalize("NFC", text)).strip()


def pythainlp_split_words(text: str, locale: str = "th") -> List[str]:
    """Default word-boundary capability backed by PyThaiNLP newmm."""
    return word_tokenize(text, engine="newmm", keep_whitespace=True)


def _align_to_source(text: str, words: Iterable[str]) -> List[str]:
    """Map capability output back onto ``text`` without gaps or overlaps.

    HOW: Walks the source with a cursor. Each word is searched from the
    cursor onwards; any skipped source text becomes its own token. Words
    that cannot be found are dropped. The unconsumed tail is emitted last.
    """
    tokens: List[str] = []
    pos = 0
    for word in words:
        if not word:
            continue
        found = text.find(word, pos)
        if found < 0:
            continue
        if found > pos:
            tokens.append(text[pos:found])
        tokens.append(word)
        pos = found + len(word)
    if pos < len(text):
        tokens.append(text[pos:])
    return tokens


class Tokenizer:
    """Baseline tokenizer wrapping an injected word-boundary capability.

    RULES:
    - The capability is called with already-normalized text
    - Output is always re-aligned to the input (reconstruction invariant)
    """

    def __init__(
        self,
        splitter: Optional[WordSplitter] = None,
        locale: str = "th",
    ) -> None:
        self._splitter = splitter or pythainlp_split_words
        self._locale = locale

    def tokenize(self, text: str) -> List[str]:
        """Split normalized ``text`` into baseline tokens."""
        if not text:
            return []
        return _align_to_source(text, self._splitter(text, self._locale))
