"""JSON output with baseline tokens and final spans per line.

WHY: Downstream tools (renderers, evaluation scripts) need machine-readable
segmentation that keeps both the baseline tokenization and the DP output,
so merges can be diffed line by line.

HOW: Builds {"video_id", "lines": [{"text", "baseline", "spans"}]} and
validates it with jsonschema before serializing.

RULES:
- Lines keep subtitle order
- Every line's spans concatenate to its text (checked by the engine,
  not by the schema)
- Schema validation is mandatory; raises jsonschema.ValidationError
- Output suffix: "-segmented.json"
"""

from __future__ import annotations

import json
from typing import Any

import jsonschema

from thai_segmenter.core.ir import SegmentedDocument
from thai_segmenter.formatters.base import BaseFormatter, FormatterOutput

_STRING_LIST = {"type": "array", "items": {"type": "string"}}

SEGMENTED_DOCUMENT_SCHEMA: dict[str, Any] = {
    "type": "object",
    "required": ["video_id", "lines"],
    "additionalProperties": False,
    "properties": {
        "video_id": {"type": "string"},
        "lines": {
            "type": "array",
            "items": {
                "type": "object",
                "required": ["text", "baseline", "spans"],
                "additionalProperties": False,
                "properties": {
                    "text": {"type": "string"},
                    "baseline": _STRING_LIST,
                    "spans": _STRING_LIST,
                },
            },
        },
    },
}


class JsonSpansFormatter(BaseFormatter):
    """Validated JSON document of segmented lines."""

    @property
    def name(self) -> str:
        return "JSON spans"

    def format(self, document: SegmentedDocument) -> list[FormatterOutput]:
        """Serialize the document.

        Raises:
            jsonschema.ValidationError: If the generated JSON does not
                match SEGMENTED_DOCUMENT_SCHEMA.
        """
        output: dict[str, Any] = {
            "video_id": document.video_id,
            "lines": [
                {"text": line.text, "baseline": list(line.baseline), "spans": list(line.spans)}
                for line in document.lines
            ],
        }
        jsonschema.validate(instance=output, schema=SEGMENTED_DOCUMENT_SCHEMA)

        return [
            FormatterOutput(
                suffix="-segmented.json",
                content=json.dumps(output, indent=2, ensure_ascii=False),
                media_type="application/json",
            )
        ]
