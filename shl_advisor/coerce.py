from __future__ import annotations

"""
Field coercion for model-generated recommendations.

The LLM is asked for a fixed JSON shape, but nothing guarantees it: any
field can be missing, empty or of the wrong type.  This module converts
one raw recommendation object into a strict :class:`Recommendation`,
filling documented defaults instead of rejecting the record.  Nothing in
here raises.
"""

import math
import re
from typing import Any, Iterable, Mapping

from .config import (
    DEFAULT_DESCRIPTION,
    DEFAULT_DURATION,
    DEFAULT_NAME,
    DEFAULT_RELEVANCE_SCORE,
    DEFAULT_REMOTE_TESTING,
    DEFAULT_SUITABLE_FOR,
    DEFAULT_TYPE,
    RELEVANCE_MAX,
    RELEVANCE_MIN,
    Recommendation,
)
from .links import resolve_link

# Sign, then the significant digits of the integer prefix.
_LEADING_INT_RE = re.compile(r"^\s*([+-]?)0*(\d+)")
_MAX_SCORE_DIGITS = 6

_YES_VALUES = {"yes", "y", "true"}
_NO_VALUES = {"no", "n", "false"}


def _text_field(raw: Mapping[str, Any], key: str, default: str) -> str:
    value = raw.get(key)
    if isinstance(value, str) and value.strip():
        return value
    return default


def _parse_int_prefix(value: str) -> int:
    m = _LEADING_INT_RE.match(value)
    if not m:
        return DEFAULT_RELEVANCE_SCORE
    sign, digits = m.groups()
    if len(digits) > _MAX_SCORE_DIGITS:
        # out of range either way; only the sign decides the clamp side
        return RELEVANCE_MIN - 1 if sign == "-" else RELEVANCE_MAX + 1
    return int(f"{sign}{digits}", 10)


def coerce_relevance_score(value: Any) -> int:
    """
    Parse and clamp a relevance score into ``[0, 100]``.

    Strings are read as a base-10 integer prefix (``"85%"`` -> 85), of
    any length.  Anything unparseable falls back to the default score.
    """
    score: int
    if isinstance(value, bool) or value is None:
        score = DEFAULT_RELEVANCE_SCORE
    elif isinstance(value, int):
        score = value
    elif isinstance(value, float):
        score = int(value) if math.isfinite(value) else DEFAULT_RELEVANCE_SCORE
    elif isinstance(value, str):
        score = _parse_int_prefix(value)
    else:
        score = DEFAULT_RELEVANCE_SCORE
    return max(RELEVANCE_MIN, min(RELEVANCE_MAX, score))


def coerce_remote_flag(value: Any) -> str:
    if isinstance(value, bool):
        return "Yes" if value else "No"
    if isinstance(value, str):
        v = value.strip().lower()
        if v in _YES_VALUES:
            return "Yes"
        if v in _NO_VALUES:
            return "No"
    return DEFAULT_REMOTE_TESTING


def coerce_recommendation(raw: Any, source_documents: Iterable[Any] | None = None) -> Recommendation:
    """Normalize one raw recommendation object into a :class:`Recommendation`."""
    if isinstance(raw, Recommendation):
        raw = raw.to_payload()
    if not isinstance(raw, Mapping):
        raw = {}

    name = _text_field(raw, "name", DEFAULT_NAME)
    # the default name is a filler, never something to match documents on
    link_name = None if name == DEFAULT_NAME else name

    return Recommendation(
        name=name,
        description=_text_field(raw, "description", DEFAULT_DESCRIPTION),
        type=_text_field(raw, "type", DEFAULT_TYPE),
        duration=_text_field(raw, "duration", DEFAULT_DURATION),
        suitable_for=_text_field(raw, "suitableFor", DEFAULT_SUITABLE_FOR),
        relevance_score=coerce_relevance_score(raw.get("relevanceScore")),
        remote_testing_available=coerce_remote_flag(raw.get("remoteTestingAvailable")),
        link=resolve_link(link_name, raw.get("link"), source_documents),
    )
