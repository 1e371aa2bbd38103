"""Abstract base formatter and output container.

WHY: The CLI and the HTTP API write the same segmented document in
several formats. A common interface lets both work with any formatter
generically.

HOW: BaseFormatter is an ABC with a ``name`` property and a ``format()``
method. FormatterOutput bundles a file suffix with its content and MIME
type.

RULES:
- Subclasses MUST implement ``name`` and ``format()``
- ``suffix`` starts with a hyphen, e.g. ``"-segmented.txt"``
- The caller is responsible for prepending the source filename stem
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass

from thai_segmenter.core.ir import SegmentedDocument


@dataclass
class FormatterOutput:
    """One output file produced by a formatter.

    Attributes:
        suffix: File suffix appended to the source stem,
                e.g. ``"-segmented.json"`` -> ``"episode1-segmented.json"``.
        content: The file content.
        media_type: MIME type for the content.
    """

    suffix: str
    content: str
    media_type: str


class BaseFormatter(ABC):
    """Abstract base for all output formatters.

    To add a new output format:
    1. Create a new file in formatters/
    2. Subclass BaseFormatter
    3. Implement format() and name
    4. Register in FORMATTERS dict in formatters/__init__.py
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """Human-readable format name, e.g. 'Plain text spans'."""

    @abstractmethod
    def format(self, document: SegmentedDocument) -> list[FormatterOutput]:
        """Render the segmented document into one or more output files."""
