from __future__ import annotations

"""
Normalization of raw LLM answers into recommendation results.

The answer chain returns free text.  Depending on the query the model
either chats ("What role are you hiring for?") or emits a JSON object
with a ``recommendations`` array, sometimes wrapped in a markdown fence,
sometimes with prose around it, sometimes truncated.  This module turns
that text into exactly one of two results:

- :class:`~shl_advisor.config.RecommendationsResult` with up to
  ``RESULT_MAX`` canonical recommendations, or
- :class:`~shl_advisor.config.ConversationalResult` carrying a message.

Extraction is an ordered chain of small functions, each returning
``None`` when it has nothing to offer:

1. locate an embedded JSON span (fenced block or ``{...}``)
2. parse the whole span as a document with a ``recommendations`` list
3. recover just the ``"recommendations": [...]`` array from the raw text

:func:`normalize_response` never raises; every failure degrades to a
conversational result.
"""

import json
import re
from typing import Any, Iterable, List, Optional

from loguru import logger

from .coerce import coerce_recommendation
from .config import (
    FALLBACK_APOLOGY,
    LOG_PREVIEW_CHARS,
    RESULT_MAX,
    ConversationalResult,
    NormalizedResult,
    RecommendationsResult,
)

# Leftmost of: a fenced block (optionally tagged json) or a greedy {...} span.
_EMBEDDED_JSON_RE = re.compile(r"```(?:json)?\s*([\s\S]*?)\s*```|(\{[\s\S]*\})")
_RECOMMENDATIONS_ARRAY_RE = re.compile(r'"recommendations"\s*:\s*(\[\s*\{[\s\S]*?\}\s*\])')


class _Unparseable:
    """Marker: the recommendations array was found but is not valid JSON."""


UNPARSEABLE = _Unparseable()


def extract_json_span(text: str) -> Optional[str]:
    """Return the inner text of the first embedded JSON candidate, if any."""
    m = _EMBEDDED_JSON_RE.search(text)
    if not m:
        return None
    span = m.group(1) if m.group(1) is not None else m.group(2)
    return span.strip()


def looks_structured(text: str) -> bool:
    return text.startswith("{") or text.startswith("[")


def parse_recommendation_document(text: str) -> Optional[List[Any]]:
    """
    Parse ``text`` as a full JSON document and return its
    ``recommendations`` list, or ``None`` on malformed JSON or when the
    document has no such list.
    """
    try:
        parsed = json.loads(text)
    except ValueError as e:
        logger.info("Full-document JSON parse failed: {}", e)
        return None
    if not isinstance(parsed, dict):
        logger.info("Parsed JSON is a {}, not an object", type(parsed).__name__)
        return None
    recs = parsed.get("recommendations")
    if not isinstance(recs, list):
        logger.info("Parsed JSON has no recommendations list")
        return None
    return recs


def recover_recommendation_array(raw_text: str) -> Optional[List[Any]] | _Unparseable:
    """
    Pull the ``"recommendations": [...]`` array out of ``raw_text`` and
    parse it in isolation.

    Returns ``None`` when no such array is present and :data:`UNPARSEABLE`
    when one is present but cannot be parsed.
    """
    m = _RECOMMENDATIONS_ARRAY_RE.search(raw_text)
    if not m:
        return None
    try:
        recs = json.loads(m.group(1))
    except ValueError as e:
        logger.warning("Failed to parse recommendations array: {}", e)
        return UNPARSEABLE
    if not isinstance(recs, list):
        return UNPARSEABLE
    return recs


def build_recommendations(
    raw_items: List[Any],
    source_documents: Iterable[Any] | None,
    limit: Optional[int] = None,
) -> RecommendationsResult:
    docs = list(source_documents) if source_documents else []
    if limit is not None:
        raw_items = raw_items[:limit]
    items = tuple(coerce_recommendation(item, docs) for item in raw_items)
    if items:
        logger.info("Processed {} recommendations with links, e.g. {}", len(items), items[0].link)
    return RecommendationsResult(items=items)


def normalize_response(raw_text: Any, source_documents: Iterable[Any] | None = None) -> NormalizedResult:
    """
    Classify and normalize one raw model answer.

    Parameters
    ----------
    raw_text : str
        Text returned by the answer chain.  Non-strings are treated as
        empty.
    source_documents : iterable, optional
        Retrieved catalog documents (``{"metadata": {"name", "link"}}``)
        used to corroborate recommendation links.

    Returns
    -------
    RecommendationsResult | ConversationalResult
    """
    try:
        return _normalize(raw_text, source_documents)
    except Exception as e:
        logger.exception("Error normalizing response: {}", e)
        return ConversationalResult(text=FALLBACK_APOLOGY)


def _normalize(raw_text: Any, source_documents: Iterable[Any] | None) -> NormalizedResult:
    text = raw_text if isinstance(raw_text, str) else ""
    trimmed = text.strip()
    if not trimmed:
        return ConversationalResult(text="")

    logger.debug("Original response: {}", trimmed[:LOG_PREVIEW_CHARS])

    span = extract_json_span(trimmed)
    if span is not None:
        logger.info("Found JSON in markdown block or raw text")
    working = span if span is not None else trimmed

    if not looks_structured(working):
        logger.info("Response parsed as conversational")
        return ConversationalResult(text=trimmed)

    recs = parse_recommendation_document(working)
    if recs is not None:
        logger.info("Response parsed as JSON recommendations")
        return build_recommendations(recs, source_documents, limit=RESULT_MAX)

    # Recovered arrays are not capped at RESULT_MAX.
    recovered = recover_recommendation_array(text)
    if isinstance(recovered, _Unparseable):
        return ConversationalResult(text=FALLBACK_APOLOGY)
    if recovered is not None:
        logger.info("Extracted recommendations array directly")
        return build_recommendations(recovered, source_documents)

    logger.info("No recommendations found, treating as conversational")
    return ConversationalResult(text=text)
