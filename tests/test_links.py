from __future__ import annotations

from types import SimpleNamespace

import pytest

from shl_advisor.config import CATALOG_BASE_URL
from shl_advisor.links import document_metadata, resolve_link, slugify_name

VIEW = f"{CATALOG_BASE_URL}view/"


@pytest.mark.parametrize(
    "name, slug",
    [
        ("Java 8 (New)", "java-8-new"),
        ("Core Java (Entry Level) (New)", "core-java-entry-level-new"),
        ("Automata - Fix (New)", "automata-fix-new"),
        ("Global Skills Assessment | SHL", "global-skills-assessment"),
        ("Sales & Service Phone Solution", "sales-service-phone-solution"),
        ("  Verify   Numerical Ability  ", "verify-numerical-ability"),
        ("", ""),
    ],
)
def test_slugify_name(name, slug) -> None:
    assert slugify_name(name) == slug


def test_name_only_builds_catalog_view_url() -> None:
    link = resolve_link("Java 8 (New)", None, None)

    assert link.endswith("/view/java-8-new/")
    assert link == f"{VIEW}java-8-new/"


def test_placeholder_link_is_never_returned() -> None:
    link = resolve_link("Java 8 (New)", "URL to assessment", [])

    assert link != "URL to assessment"
    assert link == f"{VIEW}java-8-new/"


def test_absolute_model_link_is_used_as_is() -> None:
    url = "https://www.shl.com/solutions/products/product-catalog/view/python-new/"
    assert resolve_link("Python (New)", url) == url


def test_bare_slug_is_assembled() -> None:
    assert resolve_link("Whatever", "python-new") == f"{VIEW}python-new/"
    assert resolve_link("Whatever", "python-new/") == f"{VIEW}python-new/"


def test_relative_paths_become_absolute() -> None:
    assert resolve_link("x", "/solutions/products/product-catalog/view/x/") == (
        "https://www.shl.com/solutions/products/product-catalog/view/x/"
    )
    assert resolve_link("x", "//www.shl.com/view/x/") == "https://www.shl.com/view/x/"
    assert resolve_link("x", "www.shl.com/view/x/") == "https://www.shl.com/view/x/"


def test_empty_name_and_link_fall_back_to_catalog_root() -> None:
    assert resolve_link("", None, None) == CATALOG_BASE_URL
    assert resolve_link(None, "", []) == CATALOG_BASE_URL
    assert resolve_link("", "!!!", []) == CATALOG_BASE_URL


def test_source_document_match_is_case_insensitive_and_bidirectional() -> None:
    docs = [
        {"metadata": {"name": "Unrelated", "link": "https://example.com/unrelated"}},
        {"metadata": {"name": "Java 8 (New) | SHL", "link": "https://example.com/java-8"}},
    ]
    # document name contains the recommendation name
    assert resolve_link("JAVA 8 (NEW)", "https://example.com/model", docs) == "https://example.com/java-8"

    docs = [{"metadata": {"name": "Java 8", "link": "https://example.com/java-8"}}]
    # recommendation name contains the document name
    assert resolve_link("Java 8 (New)", None, docs) == "https://example.com/java-8"


def test_source_document_without_link_is_ignored() -> None:
    docs = [{"metadata": {"name": "Java 8 (New)"}}, {"metadata": {"name": "Java 8 (New)", "link": ""}}]
    assert resolve_link("Java 8 (New)", None, docs) == f"{VIEW}java-8-new/"


def test_malformed_source_documents_are_skipped() -> None:
    docs = [None, "doc", {"metadata": "oops"}, {"page_content": "x"}, 12]
    assert resolve_link("Java 8 (New)", None, docs) == f"{VIEW}java-8-new/"


def test_empty_name_never_matches_a_document() -> None:
    docs = [{"metadata": {"name": "Java 8 (New)", "link": "https://example.com/java-8"}}]
    assert resolve_link("", None, docs) == CATALOG_BASE_URL


def test_object_documents_with_metadata_attribute() -> None:
    doc = SimpleNamespace(metadata={"name": "Drupal (New)", "link": "https://example.com/drupal"})

    assert document_metadata(doc) == ("Drupal (New)", "https://example.com/drupal")
    assert resolve_link("Drupal (New)", None, [doc]) == "https://example.com/drupal"


def test_absolute_source_link_is_kept_verbatim() -> None:
    url = "https://www.shl.com/Solutions/Products/Product-Catalog/view/Java-8-NEW/?ref=catalog"
    docs = [{"metadata": {"name": "Java 8 (New)", "link": url}}]

    assert resolve_link("Java 8 (New)", None, docs) == url


def test_relative_source_links_only_gain_the_origin() -> None:
    docs = [{"metadata": {"name": "Java 8 (New)", "link": "solutions/products/product-catalog/view/Java-8/"}}]
    assert resolve_link("Java 8 (New)", None, docs) == (
        "https://www.shl.com/solutions/products/product-catalog/view/Java-8/"
    )

    docs = [{"metadata": {"name": "Java 8 (New)", "link": "Java_8_New"}}]
    assert resolve_link("Java 8 (New)", None, docs) == f"{VIEW}Java_8_New/"


def test_multi_segment_relative_model_link_is_joined_to_site() -> None:
    assert resolve_link("x", "solutions/products/product-catalog/view/x/") == (
        "https://www.shl.com/solutions/products/product-catalog/view/x/"
    )
