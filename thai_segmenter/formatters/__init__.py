"""Output formatter registry.

WHY: The CLI and the HTTP API need a single lookup to find a formatter
by name.

HOW: FORMATTERS maps string keys to formatter *classes* (not instances).
Callers instantiate as needed: ``formatter = FORMATTERS["plain_text"]()``.

RULES:
- Keys are snake_case identifiers (used in CLI flags and API requests)
- Values are BaseFormatter subclasses (not instances)
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from thai_segmenter.formatters.json_spans import JsonSpansFormatter
from thai_segmenter.formatters.plain_text import PlainTextFormatter

if TYPE_CHECKING:
    from thai_segmenter.formatters.base import BaseFormatter

FORMATTERS: dict[str, type[BaseFormatter]] = {
    "plain_text": PlainTextFormatter,
    "json_spans": JsonSpansFormatter,
}
