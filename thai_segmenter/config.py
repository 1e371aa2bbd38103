"""Segmentation engine configuration, environment loading, and API keys.

WHY: Every tunable of the engine (span ceiling, mining thresholds, cache
TTLs, AI sampling and cooldown, cost constants) lives in one typed object
so the host application, the CLI, and the HTTP API all read and update
the same values. The cost constants were chosen empirically, so they are
exposed as defaults rather than hard-coded.

HOW: python-dotenv loads the .env file on import. SegmenterConfig is a
plain dataclass holding the defaults; load_config() overlays THAI_SEG_*
environment variables. The engine shares one SegmenterConfig instance
with all of its components, so an update is seen on the next call.

RULES:
- Defaults match the production engine (max span 10, min count 2, PMI 3.0,
  AI top-N 10,000, cooldown 60 min, merge TTL 24 h, line TTL 30 days)
- merge_cap is max_merges_per_video clamped to [100, 20000]
- validate() raises ValueError for values the engine cannot run with
- The AI key is loaded from .env via python-dotenv, never hardcoded
"""

from __future__ import annotations

import os
from dataclasses import asdict, dataclass, fields, replace
from typing import Any, Dict

from dotenv import load_dotenv

load_dotenv()

# ---------------------------------------------------------------------------
# Merge cap bounds
# ---------------------------------------------------------------------------

MIN_MERGE_CAP = 100
MAX_MERGE_CAP = 20_000

# ---------------------------------------------------------------------------
# AI provider defaults
# ---------------------------------------------------------------------------

OPENROUTER_BASE_URL = os.getenv("OPENROUTER_BASE_URL", "https://openrouter.ai/api/v1")
OPENROUTER_MODEL = os.getenv(
    "OPENROUTER_MODEL", "google/gemini-2.5-flash-lite-preview-06-17"
)

# Optional dictionary file (one phrase per line); empty means "use PyThaiNLP's word list"
DICTIONARY_PATH = os.getenv("THAI_SEG_DICTIONARY_PATH", "")

# Optional JSON file backing the TTL cache; empty means in-memory only
CACHE_PATH = os.getenv("THAI_SEG_CACHE_PATH", "")


def _check_type(name: str, default: Any, value: Any) -> Any:
    """Return ``value`` if it fits the type of ``default``, else raise ValueError."""
    if isinstance(default, bool):
        ok = isinstance(value, bool)
    elif isinstance(default, int):
        ok = isinstance(value, int) and not isinstance(value, bool)
    elif isinstance(default, float):
        ok = isinstance(value, (int, float)) and not isinstance(value, bool)
        if ok:
            value = float(value)
    else:
        ok = True
    if not ok:
        raise ValueError(
            "Invalid type for {}: expected {}, got {!r}".format(name, type(default).__name__, value)
        )
    return value


@dataclass
class SegmenterConfig:
    """All knobs of the Thai segmentation engine.

    WHY: The engine is hot-reloadable, so its settings must be a single
    mutable object shared by the cost model, the miner, the merge cache,
    and the AI adapter.

    HOW: Field defaults are the production values. Components keep a
    reference to the same instance and read fields at call time.

    RULES:
    - max_span_length bounds both tokens per span (DP) and characters per
      phrase (mining, over-length penalty)
    - Cost constants are positive magnitudes; the cost model applies signs
    - cost_floor must stay strictly positive
    """

    enabled: bool = True
    max_span_length: int = 10
    min_collocation_count: int = 2
    pmi_threshold: float = 3.0
    enable_dictionary_bonus: bool = True
    enable_ai_hints: bool = True
    ai_top_n: int = 10_000
    ai_cooldown_minutes: float = 60.0
    ai_timeout_seconds: float = 30.0
    cache_ttl_seconds: int = 24 * 60 * 60
    line_cache_ttl_seconds: int = 30 * 24 * 60 * 60
    max_merges_per_video: int = 10_000
    max_cached_videos: int = 64

    # Span-cost constants
    token_cost: float = 1.0
    dictionary_bonus: float = 2.0
    merge_bonus: float = 1.2
    synergy_bonus: float = 0.5
    overlength_penalty: float = 2.0
    cost_floor: float = 0.05

    @property
    def merge_cap(self) -> int:
        """Per-video merge set ceiling, clamped to [100, 20000]."""
        return max(MIN_MERGE_CAP, min(self.max_merges_per_video, MAX_MERGE_CAP))

    @property
    def ai_cooldown_seconds(self) -> float:
        return self.ai_cooldown_minutes * 60.0

    def validate(self) -> None:
        """Raise ValueError when a value would break the engine."""
        if self.max_span_length < 1:
            raise ValueError("max_span_length must be at least 1")
        if self.min_collocation_count < 1:
            raise ValueError("min_collocation_count must be at least 1")
        if self.ai_top_n < 0:
            raise ValueError("ai_top_n must not be negative")
        if self.ai_cooldown_minutes < 0:
            raise ValueError("ai_cooldown_minutes must not be negative")
        if self.ai_timeout_seconds <= 0:
            raise ValueError("ai_timeout_seconds must be positive")
        if self.cache_ttl_seconds <= 0 or self.line_cache_ttl_seconds <= 0:
            raise ValueError("cache TTLs must be positive")
        if self.max_cached_videos < 1:
            raise ValueError("max_cached_videos must be at least 1")
        if self.cost_floor <= 0:
            raise ValueError("cost_floor must be strictly positive")

    def updated(self, **changes: Any) -> SegmenterConfig:
        """Return a validated copy with ``changes`` applied.

        RULES:
        - Unknown keys raise ValueError (not TypeError) so callers can
          report them uniformly
        - Values must match the type of the field default: bools only for
          bool fields, ints only for int fields, ints or floats for float
          fields (stored as float); anything else raises ValueError
        - The receiver is not modified
        """
        known = {f.name for f in fields(self)}
        unknown = sorted(set(changes) - known)
        if unknown:
            raise ValueError("Unknown config keys: {}".format(", ".join(unknown)))
        typed = {name: _check_type(name, getattr(self, name), value) for name, value in changes.items()}
        candidate = replace(self, **typed)
        candidate.validate()
        return candidate

    def apply(self, other: SegmenterConfig) -> None:
        """Copy every field of ``other`` onto this shared instance."""
        for f in fields(self):
            setattr(self, f.name, getattr(other, f.name))

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


# ---------------------------------------------------------------------------
# Environment loading
# ---------------------------------------------------------------------------


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    return raw.strip().lower() in ("1", "true", "yes", "on")


def load_config() -> SegmenterConfig:
    """Build a SegmenterConfig from THAI_SEG_* environment variables.

    WHY: Deployments tune the engine without code changes.

    HOW: Every dataclass field maps to ``THAI_SEG_<FIELD_NAME_UPPER>``.
    Values are converted with the type of the default.

    RULES:
    - Missing or blank variables keep the default
    - Booleans accept 1/true/yes/on (case-insensitive)
    - Raises ValueError if a value cannot be converted or fails validation
    """
    defaults = SegmenterConfig()
    changes: Dict[str, Any] = {}
    for f in fields(SegmenterConfig):
        env_name = "THAI_SEG_{}".format(f.name.upper())
        default = getattr(defaults, f.name)
        if isinstance(default, bool):
            changes[f.name] = _env_bool(env_name, default)
            continue
        raw = os.getenv(env_name, "").strip()
        if not raw:
            continue
        try:
            changes[f.name] = type(default)(raw)
        except ValueError:
            raise ValueError("Invalid value for {}: {!r}".format(env_name, raw))
    return defaults.updated(**changes)


def load_api_key() -> str:
    """Load the AI provider API key from the environment.

    WHY: The remote hint provider needs a key; without one the engine
    runs with mined merges and the dictionary only.

    HOW: Reads OPENROUTER_API_KEY, falling back to AI_API_KEY.

    RULES:
    - Raises ValueError if both are missing or empty
    - Never returns a default/placeholder value
    """
    key = (os.getenv("OPENROUTER_API_KEY") or os.getenv("AI_API_KEY") or "").strip()
    if not key:
        raise ValueError(
            "AI provider key not configured. "
            "Add OPENROUTER_API_KEY to the .env file to enable AI merge hints."
        )
    return key
