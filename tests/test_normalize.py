from __future__ import annotations

from shl_advisor import normalize
from shl_advisor.normalize import clean_query_text, preview, strip_html


def test_html_job_description_is_flattened() -> None:
    raw = "<p>Java developer ,</p><ul><li>40 minutes</li></ul>"
    assert clean_query_text(raw) == "Java developer, 40 minutes"


def test_plain_text_only_collapses_whitespace() -> None:
    assert clean_query_text("  Content Writer\n\trequired  ") == "Content Writer required"
    assert clean_query_text(None) == ""


def test_parser_failure_keeps_raw_text(monkeypatch) -> None:
    def boom(*args, **kwargs):
        raise RuntimeError("parser unavailable")

    monkeypatch.setattr(normalize, "BeautifulSoup", boom)
    raw = "<b>Bank admin</b>"

    assert strip_html(raw) == raw


def test_preview_truncates() -> None:
    assert preview("a" * 150, limit=10) == "a" * 10 + "..."
    assert preview("short") == "short"
