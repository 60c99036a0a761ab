from __future__ import annotations

"""
Canonical product links for recommended assessments.

The model is asked for a ``link`` per recommendation but routinely
returns nothing, the literal placeholder from the prompt template, a
bare slug or a site-relative path.  :func:`resolve_link` turns whatever
arrived into an absolute catalog URL, preferring the links carried by
the retrieved catalog documents since those come straight from the
catalog itself.
"""

import re
from typing import Any, Iterable, Mapping, Optional, Tuple

from loguru import logger

from .config import BRAND_NAME, CATALOG_BASE_URL, LINK_PLACEHOLDER, SITE_ORIGIN

_BRAND_SUFFIX_RE = re.compile(rf"\s*\|\s*{re.escape(BRAND_NAME)}\s*$", re.IGNORECASE)
_NEW_QUALIFIER_RE = re.compile(r"\s*\(\s*new\s*\)", re.IGNORECASE)
_WHITESPACE_RE = re.compile(r"\s+")
_NON_SLUG_RE = re.compile(r"[^A-Za-z0-9_-]")
_HYPHEN_RUN_RE = re.compile(r"-+")
_ABSOLUTE_URL_RE = re.compile(r"^https?://", re.IGNORECASE)


def slugify_name(name: str) -> str:
    """
    Build a catalog slug from an assessment name.

    ``"Java 8 (New)"`` -> ``"java-8-new"``,
    ``"Core Java (Entry Level) (New)"`` -> ``"core-java-entry-level-new"``.
    """
    if not isinstance(name, str):
        return ""
    s = name.strip().lower()
    s = _BRAND_SUFFIX_RE.sub("", s)
    s = _NEW_QUALIFIER_RE.sub("-new", s)
    s = _WHITESPACE_RE.sub("-", s.strip())
    s = _NON_SLUG_RE.sub("", s)
    s = _HYPHEN_RUN_RE.sub("-", s)
    return s.strip("-")


def catalog_url_for_slug(slug: str) -> str:
    if not slug:
        return CATALOG_BASE_URL
    return f"{CATALOG_BASE_URL}view/{slug}/"


def document_metadata(doc: Any) -> Optional[Tuple[str, str]]:
    """
    Return ``(name, link)`` from a retrieved document, or ``None``.

    Accepts plain dicts (``{"metadata": {...}}``) as well as objects with
    a ``metadata`` attribute, such as LangChain documents.
    """
    if isinstance(doc, Mapping):
        meta = doc.get("metadata")
    else:
        meta = getattr(doc, "metadata", None)
    if not isinstance(meta, Mapping):
        return None
    name = meta.get("name")
    link = meta.get("link")
    name = name.strip() if isinstance(name, str) else ""
    link = link.strip() if isinstance(link, str) else ""
    return name, link


def _names_match(a: str, b: str) -> bool:
    if not a or not b:
        return False
    a, b = a.lower(), b.lower()
    return a == b or a in b or b in a


def link_from_sources(name: str, source_documents: Iterable[Any] | None) -> Optional[str]:
    """First link whose document name matches ``name`` (case-insensitive)."""
    if not source_documents or not isinstance(name, str) or not name.strip():
        return None
    target = name.strip()
    for doc in source_documents:
        meta = document_metadata(doc)
        if meta is None:
            continue
        doc_name, doc_link = meta
        if doc_link and _names_match(doc_name, target):
            return doc_link
    return None


def absolute_link(link: str) -> Optional[str]:
    """
    Make a URL-shaped link absolute against the SHL site.

    Handles ``http(s)://`` (kept), ``//host``, ``/path``, ``www.host``
    and multi-segment relative paths such as
    ``solutions/products/product-catalog/view/x/``.  Returns ``None``
    for a single bare token, which is a slug rather than a path.
    """
    if _ABSOLUTE_URL_RE.match(link):
        return link
    if link.startswith("//"):
        return f"https:{link}"
    if link.startswith("/"):
        return f"{SITE_ORIGIN}{link}"
    if link.lower().startswith("www."):
        return f"https://{link}"
    if "/" in link.strip("/"):
        return f"{SITE_ORIGIN}/{link}"
    return None


def source_link_url(doc_link: Optional[str]) -> Optional[str]:
    """
    Catalog document links are kept as they are; relative ones only get
    the site origin, and a bare slug is placed under the catalog view
    path without re-slugifying it.
    """
    if not doc_link:
        return None
    link = absolute_link(doc_link)
    if link:
        return link
    return catalog_url_for_slug(doc_link.strip("/"))


def link_from_raw(raw_link: Any) -> Optional[str]:
    """Turn a model-supplied link into an absolute URL, if it is usable."""
    if not isinstance(raw_link, str):
        return None
    link = raw_link.strip()
    if not link or link == LINK_PLACEHOLDER:
        return None
    absolute = absolute_link(link)
    if absolute:
        return absolute
    slug = slugify_name(link.strip("/"))
    if not slug:
        return None
    return catalog_url_for_slug(slug)


def resolve_link(name: Any, raw_link: Any = None, source_documents: Iterable[Any] | None = None) -> str:
    """
    Resolve the catalog URL for one recommendation.

    Order: matching source document, then the model's own link, then a
    slug derived from the name, then the catalog root.  The result is
    always an absolute URL.
    """
    source_link = source_link_url(link_from_sources(name, source_documents))
    if source_link:
        logger.debug("Found matching source document for {}", name)
        return source_link

    link = link_from_raw(raw_link)
    if link:
        return link

    return catalog_url_for_slug(slugify_name(name if isinstance(name, str) else ""))
