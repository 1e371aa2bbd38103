"""Static phrase dictionary (gazetteer) loading.

WHY: Known Thai words and compounds earn a strong cost bonus. The engine
only needs set membership, so the dictionary is a frozenset of
normalized phrases, loaded once and injected into the engine.

HOW: load_phrase_set() reads a UTF-8 file with one phrase per line.
pythainlp_phrase_set() uses PyThaiNLP's bundled Thai word list.

RULES:
- Phrases are normalized the same way as subtitle text
- Blank lines and lines starting with "#" are ignored
- A missing file raises FileNotFoundError with the path in the message
"""

from __future__ import annotations

from pathlib import Path
from typing import FrozenSet, Iterable, Union

from pythainlp.corpus.common import thai_words

from thai_segmenter.core.tokenizer import normalize


def _to_phrase_set(lines: Iterable[str]) -> FrozenSet[str]:
    phrases = set()
    for line in lines:
        if line.lstrip().startswith("#"):
            continue
        phrase = normalize(line)
        if phrase:
            phrases.add(phrase)
    return frozenset(phrases)


def load_phrase_set(path: Union[str, Path]) -> FrozenSet[str]:
    """Load a phrase-per-line dictionary file."""
    path = Path(path)
    try:
        text = path.read_text(encoding="utf-8-sig")
    except FileNotFoundError:
        raise FileNotFoundError("Dictionary file not found at: {}".format(path))
    return _to_phrase_set(text.splitlines())


def pythainlp_phrase_set() -> FrozenSet[str]:
    """PyThaiNLP's Thai word list as a phrase set."""
    return _to_phrase_set(thai_words())
