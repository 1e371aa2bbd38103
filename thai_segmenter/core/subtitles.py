"""Subtitle text extraction for warm-up and batch segmentation.

WHY: The CLI accepts subtitle files as they are downloaded (SRT, WebVTT)
or plain text dumps. Only the spoken text matters for mining and
segmentation; cue numbers, timing lines, and headers must be skipped.

HOW: Reads the file, drops the WEBVTT header and NOTE/STYLE blocks, cue
index lines, and timing lines, strips simple markup tags, and returns
the remaining non-empty text lines in order.

RULES:
- Plain text files: every non-empty line is a subtitle line
- Timing lines contain "-->"; cue indices are lines of ASCII digits only
- <i>, <b>, <c.x>, and similar tags are removed
- Lines are returned raw (not normalized); the engine normalizes
"""

from __future__ import annotations

import re
from pathlib import Path
from typing import List, Union

_TAG_RE = re.compile(r"</?[a-zA-Z][^>]*>")
_INDEX_RE = re.compile(r"^[0-9]+$")


def extract_subtitle_lines(content: str) -> List[str]:
    """Return the text lines of SRT, WebVTT, or plain subtitle content."""
    lines: List[str] = []
    skipping_block = False
    for raw in content.splitlines():
        line = raw.strip().lstrip("\ufeff")
        if not line:
            skipping_block = False
            continue
        if skipping_block:
            continue
        if line.startswith("WEBVTT"):
            continue
        if line.startswith(("NOTE", "STYLE", "REGION")):
            skipping_block = True
            continue
        if "-->" in line or _INDEX_RE.match(line):
            continue
        text = _TAG_RE.sub("", line).strip()
        if text:
            lines.append(text)
    return lines


def read_subtitle_lines(path: Union[str, Path]) -> List[str]:
    """Read a subtitle file and return its text lines."""
    content = Path(path).read_text(encoding="utf-8-sig")
    return extract_subtitle_lines(content)
