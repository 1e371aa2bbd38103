"""Plain text output: one subtitle line per row, spans separated by "|".

WHY: Reviewers check segmentation quality by eye. A row per line with
visible span boundaries is the quickest way to spot bad merges.

RULES:
- One row per segmented line, in subtitle order
- Spans joined with SPAN_SEPARATOR ("|"); whitespace spans are kept
- Trailing newline only when there is content
- Output suffix: "-segmented.txt"
"""

from __future__ import annotations

from typing import List

from thai_segmenter.core.ir import SegmentedDocument
from thai_segmenter.formatters.base import BaseFormatter, FormatterOutput

SPAN_SEPARATOR = "|"


class PlainTextFormatter(BaseFormatter):
    """Spans of each line joined by a visible separator."""

    @property
    def name(self) -> str:
        return "Plain text spans"

    def format(self, document: SegmentedDocument) -> list[FormatterOutput]:
        rows: List[str] = [SPAN_SEPARATOR.join(line.spans) for line in document.lines]
        content = "\n".join(rows)
        if content:
            content += "\n"
        return [
            FormatterOutput(
                suffix="-segmented.txt",
                content=content,
                media_type="text/plain",
            )
        ]
