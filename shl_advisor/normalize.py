from __future__ import annotations

"""
Query text cleaning for the assessment advisor.

Hiring queries are often pasted job descriptions: HTML fragments,
fancy quotes, stray line breaks, occasionally whole pages.  These
helpers bring them into a stable single-line form before they reach
the answer chain or get matched against benchmark queries.
"""

import re
import unicodedata

from bs4 import BeautifulSoup
from loguru import logger

from .config import MAX_INPUT_CHARS


def clamp_text_length(text: str, max_chars: int = MAX_INPUT_CHARS) -> str:
    """Hard cap on input size so huge pastes never reach the model."""
    if not isinstance(text, str):
        text = str(text)
    if len(text) <= max_chars:
        return text
    return text[:max_chars]


def normalize_whitespace(text: str) -> str:
    if not text:
        return ""
    return re.sub(r"\s+", " ", text).strip()


def normalize_unicode(text: str) -> str:
    if not text:
        return ""
    return unicodedata.normalize("NFC", text)


def strip_html(raw: str) -> str:
    """
    Strip HTML tags with BeautifulSoup and tidy spacing before
    punctuation.  Text without any ``<`` is returned untouched, and so
    is text the parser chokes on: a query is never dropped.
    """
    if not raw:
        return ""
    if "<" not in raw:
        return raw
    try:
        soup = BeautifulSoup(raw, "lxml")
        text = normalize_whitespace(soup.get_text(" ", strip=True))
    except Exception as e:
        logger.warning("HTML stripping failed, keeping raw query text: {}", e)
        return raw
    return re.sub(r"\s+([.,!?;:])", r"\1", text)


def clean_query_text(text: str | None) -> str:
    """
    Clean a hiring query: clamp length, strip HTML, normalize unicode
    and collapse whitespace.  ``None`` becomes ``""``.
    """
    if text is None:
        return ""
    text = clamp_text_length(str(text))
    text = strip_html(text)
    text = normalize_unicode(text)
    return normalize_whitespace(text)


def preview(text: str, limit: int = 100) -> str:
    """Short single-line preview of ``text`` for log lines."""
    text = normalize_whitespace(text or "")
    return text if len(text) <= limit else f"{text[:limit]}..."
