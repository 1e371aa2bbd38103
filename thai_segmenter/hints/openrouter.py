"""Remote AI hint provider over the OpenRouter completions endpoint.

WHY: A language model can confirm which mined collocations are real Thai
compounds. This provider turns a video's candidate phrases into a compact
prompt and parses the model's JSON reply into a MergeHintBatch.

HOW: Uses httpx.AsyncClient for non-blocking HTTP. Each call POSTs one
prompt to ``{base_url}/completions`` with Bearer auth and reads
``choices[0].text``. The reply is parsed as JSON directly, then by
extracting the outermost ``{...}`` blob, and validated with jsonschema.
An httpx.AsyncClient may be injected (tests use httpx.MockTransport);
otherwise a short-lived client is opened per request.

RULES:
- Only the first 200 candidates are sent (prompt size)
- max_tokens 800; temperature 0.2 for merges, 0.1 for line segmentation
- Non-200 responses raise HintProviderError
- Replies without valid JSON raise HintPayloadError
- An empty phrase list is "no hints" (returns None)
"""

from __future__ import annotations

import json
import logging

import httpx
import jsonschema

from thai_segmenter.config import OPENROUTER_BASE_URL, OPENROUTER_MODEL, load_api_key
from thai_segmenter.core.ir import MergeHintBatch
from thai_segmenter.hints.base import AiHintProvider, HintPayloadError, HintProviderError

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

_PROMPT_CANDIDATES = 200
_MAX_TOKENS = 800
_MERGE_TEMPERATURE = 0.2
_LINE_TEMPERATURE = 0.1

_REFERER = "https://github.com/thai-segmenter"
_TITLE = "Thai Segmenter"

MERGES_SCHEMA = {
    "type": "object",
    "required": ["merges"],
    "properties": {
        "merges": {"type": "array", "items": {"type": "string"}},
    },
}

TOKENS_SCHEMA = {
    "type": "object",
    "required": ["tokens"],
    "properties": {
        "tokens": {"type": "array", "items": {"type": "string"}},
    },
}


def build_merge_prompt(candidates: list[str]) -> str:
    """Compact instruction prompt listing at most 200 candidates."""
    listing = "\n".join("- {}".format(p) for p in candidates[:_PROMPT_CANDIDATES])
    return (
        "You are assisting Thai word segmentation for subtitles.\n"
        "Given a list of Thai candidate multi-token collocations observed within "
        "a single video, return ONLY a compact JSON object with a field \"merges\" "
        "which is an array of unique Thai phrases to be merged as single tokens.\n"
        "Prioritize high-confidence collocations and dictionary-like compounds.\n"
        "Do NOT include explanations, code fences, or extra text.\n"
        "Limit to at most 100 items.\n\n"
        "CANDIDATES:\n"
        f"{listing}\n\n"
        'Return JSON like: {"merges": ["ยังเชื่อ", "คิดว่า", "ที่เรา"]}'
    )


def build_line_prompt(line_text: str, baseline_tokens: list[str]) -> str:
    baseline = " ".join(baseline_tokens)
    return (
        "You are assisting Thai subtitle segmentation.\n"
        "Given a Thai sentence and a baseline tokenization, return ONLY JSON with "
        "field \"tokens\" as an array of Thai tokens that preserve meaning by "
        "merging dictionary collocations.\n"
        "Prefer compounds that change meaning when split.\n"
        "No code fences, no explanations.\n\n"
        f"SENTENCE: {line_text}\n"
        f"BASELINE: {baseline}\n"
        'Return JSON like: {"tokens": ["ยังเชื่อ", "สูตรนี้"]}'
    )


def extract_json_object(text: str, schema: dict) -> dict:
    """Parse the model reply into a dict that satisfies ``schema``.

    HOW: Tries the whole (stripped) text first, then the substring from
    the first ``{`` to the last ``}``.

    RULES:
    - Raises HintPayloadError if neither attempt yields a valid object
    """
    stripped = text.strip()
    attempts = [stripped]
    start, end = stripped.find("{"), stripped.rfind("}")
    if start >= 0 and end > start:
        attempts.append(stripped[start:end + 1])

    for attempt in attempts:
        try:
            data = json.loads(attempt)
            jsonschema.validate(instance=data, schema=schema)
        except (ValueError, jsonschema.ValidationError):
            continue
        return data
    raise HintPayloadError("No valid JSON object in provider reply")


class OpenRouterHintProvider(AiHintProvider):
    """AI hint provider backed by an OpenRouter-compatible completions API.

    RULES:
    - api_key defaults to load_api_key() from .env
    - base_url / model default to OPENROUTER_BASE_URL / OPENROUTER_MODEL
    - An injected client is never closed by the provider
    """

    def __init__(
        self,
        api_key: str | None = None,
        base_url: str | None = None,
        model: str | None = None,
        client: httpx.AsyncClient | None = None,
        timeout: float = 30.0,
    ) -> None:
        self._api_key = api_key or load_api_key()
        self._base_url = (base_url or OPENROUTER_BASE_URL).rstrip("/")
        self._model = model or OPENROUTER_MODEL
        self._client = client
        self._timeout = timeout

    @property
    def name(self) -> str:
        return "openrouter:{}".format(self._model)

    async def fetch_merge_hints(
        self,
        video_id: str,
        candidate_phrases: list[str],
    ) -> MergeHintBatch | None:
        if not candidate_phrases:
            return None
        text = await self._complete(build_merge_prompt(candidate_phrases), _MERGE_TEMPERATURE)
        data = extract_json_object(text, MERGES_SCHEMA)
        phrases = [p for p in data["merges"] if p.strip()]
        if not phrases:
            return None
        return MergeHintBatch.from_phrases(video_id, phrases)

    async def fetch_line_segmentation(
        self,
        video_id: str,
        line_text: str,
        baseline_tokens: list[str],
    ) -> list[str] | None:
        text = await self._complete(build_line_prompt(line_text, baseline_tokens), _LINE_TEMPERATURE)
        data = extract_json_object(text, TOKENS_SCHEMA)
        return data["tokens"] or None

    async def _complete(self, prompt: str, temperature: float) -> str:
        """POST one completion request and return ``choices[0].text``."""
        body = {
            "model": self._model,
            "prompt": prompt,
            "max_tokens": _MAX_TOKENS,
            "temperature": temperature,
        }
        headers = {
            "Authorization": f"Bearer {self._api_key}",
            "HTTP-Referer": _REFERER,
            "X-Title": _TITLE,
        }
        url = f"{self._base_url}/completions"

        if self._client is not None:
            resp = await self._client.post(url, json=body, headers=headers)
        else:
            async with httpx.AsyncClient(timeout=httpx.Timeout(self._timeout, connect=10.0)) as client:
                resp = await client.post(url, json=body, headers=headers)

        if resp.status_code != 200:
            raise HintProviderError(resp.status_code, resp.text)

        try:
            text = resp.json()["choices"][0]["text"]
        except (ValueError, KeyError, IndexError, TypeError):
            raise HintPayloadError("Unexpected completion response shape")
        if not isinstance(text, str) or not text.strip():
            raise HintPayloadError("Empty completion text")
        logger.debug("Provider %s returned %d chars", self.name, len(text))
        return text
