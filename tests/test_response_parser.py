from __future__ import annotations

import json

from shl_advisor.config import FALLBACK_APOLOGY, ConversationalResult, RecommendationsResult
from shl_advisor.response_parser import (
    UNPARSEABLE,
    extract_json_span,
    normalize_response,
    parse_recommendation_document,
    recover_recommendation_array,
)


def _recs(n: int) -> list:
    return [{"name": f"Assessment {i}", "relevanceScore": 90 - i} for i in range(n)]


def test_fenced_json_scenario() -> None:
    raw = '```json\n{"recommendations":[{"name":"Java 8 (New)"}]}\n```'
    result = normalize_response(raw)

    assert isinstance(result, RecommendationsResult)
    assert len(result.items) == 1
    rec = result.items[0]
    assert rec.name == "Java 8 (New)"
    assert rec.relevance_score == 70
    assert rec.remote_testing_available == "Yes"
    assert rec.link.endswith("/view/java-8-new/")


def test_plain_prose_is_conversational() -> None:
    raw = "Hi, I can help you find assessments. What role are you hiring for?"
    result = normalize_response(raw)

    assert isinstance(result, ConversationalResult)
    assert result.text == raw
    assert result.to_payload() == {"conversationalResponse": raw, "recommendations": []}


def test_prose_is_trimmed() -> None:
    result = normalize_response("\n   Which job level are you hiring for?  \n")

    assert isinstance(result, ConversationalResult)
    assert result.text == "Which job level are you hiring for?"


def test_empty_and_non_string_input() -> None:
    for raw in ("", "   \n", None, 12):
        result = normalize_response(raw)
        assert isinstance(result, ConversationalResult)
        assert result.text == ""


def test_valid_document_keeps_count_and_order() -> None:
    for n in (0, 1, 5, 10):
        raw = json.dumps({"recommendations": _recs(n)})
        result = normalize_response(raw)
        assert isinstance(result, RecommendationsResult)
        assert [r.name for r in result.items] == [f"Assessment {i}" for i in range(n)]
        assert all(r.link.startswith("https://") for r in result.items)


def test_primary_path_caps_at_ten() -> None:
    result = normalize_response(json.dumps({"recommendations": _recs(14)}))

    assert isinstance(result, RecommendationsResult)
    assert len(result.items) == 10
    assert result.items[-1].name == "Assessment 9"


def test_json_surrounded_by_prose() -> None:
    raw = 'Here are my picks:\n{"recommendations": [{"name": "Drupal (New)", "relevanceScore": "92"}]}\nGood luck!'
    result = normalize_response(raw)

    assert isinstance(result, RecommendationsResult)
    assert result.items[0].relevance_score == 92


def test_source_documents_override_links() -> None:
    raw = json.dumps({"recommendations": [{"name": "Java 8 (New)", "link": "URL to assessment"}]})
    docs = [{"metadata": {"name": "Java 8 (New)", "link": "https://www.shl.com/catalog/java-8-new/"}}]
    result = normalize_response(raw, docs)

    assert result.items[0].link == "https://www.shl.com/catalog/java-8-new/"


def test_object_without_recommendations_and_no_array_is_conversational() -> None:
    raw = '{"answer": "Please tell me more about the role."}'
    result = normalize_response(raw)

    assert isinstance(result, ConversationalResult)
    assert result.text == raw


def test_braces_in_prose_fall_back_to_original_text() -> None:
    raw = "  Use the {role} placeholder in your query.  "
    result = normalize_response(raw)

    assert isinstance(result, ConversationalResult)
    # the untrimmed original is returned once a JSON attempt failed
    assert result.text == raw


def test_malformed_document_recovers_array() -> None:
    raw = (
        '{"intro": "truncated...", "recommendations": [{"name": "Java 8 (New)"}, '
        '{"name": "Core Java (Entry Level) (New)", "relevanceScore": "150"}], "notes": oops}'
    )
    result = normalize_response(raw)

    assert isinstance(result, RecommendationsResult)
    assert [r.name for r in result.items] == ["Java 8 (New)", "Core Java (Entry Level) (New)"]
    assert result.items[1].relevance_score == 100
    assert result.items[1].link.endswith("/view/core-java-entry-level-new/")


def test_recovered_array_is_not_capped() -> None:
    # Primary path caps at 10; the recovery path keeps everything it finds.
    body = ", ".join(json.dumps(r) for r in _recs(12))
    raw = '{"recommendations": [' + body + '], trailing garbage'
    result = normalize_response(raw)

    assert isinstance(result, RecommendationsResult)
    assert len(result.items) == 12


def test_unparseable_array_gives_apology() -> None:
    raw = '{"recommendations": [{"name": "Java 8 (New)", "duration": 18 minutes}], "x": }'
    result = normalize_response(raw)

    assert isinstance(result, ConversationalResult)
    assert result.text == FALLBACK_APOLOGY


def test_non_object_elements_are_coerced_to_defaults() -> None:
    raw = json.dumps({"recommendations": ["Java 8", None, {"name": "Drupal (New)"}]})
    result = normalize_response(raw)

    assert [r.name for r in result.items] == ["Unknown Assessment", "Unknown Assessment", "Drupal (New)"]


def test_extract_json_span_prefers_leftmost_candidate() -> None:
    assert extract_json_span("no json here") is None
    assert extract_json_span('```\n{"a": 1}\n```') == '{"a": 1}'
    assert extract_json_span('text {"a": {"b": 2}} more') == '{"a": {"b": 2}}'
    assert extract_json_span('{"a": 1} then ```json\n{"b": 2}\n```').startswith('{"a": 1}')


def test_parse_recommendation_document_stage() -> None:
    assert parse_recommendation_document('{"recommendations": []}') == []
    assert parse_recommendation_document('[{"name": "x"}]') is None
    assert parse_recommendation_document('{"recommendations": "none"}') is None
    assert parse_recommendation_document("{broken") is None


def test_recover_recommendation_array_stage() -> None:
    assert recover_recommendation_array("nothing") is None
    assert recover_recommendation_array('"recommendations": [{"name": "x"}]') == [{"name": "x"}]
    assert recover_recommendation_array('"recommendations": [{"name": x}]') is UNPARSEABLE


def test_one_oversized_score_does_not_discard_the_batch() -> None:
    text = json.dumps({"recommendations": [{"name": "A"}, {"name": "B", "relevanceScore": "9" * 5000}]})
    result = normalize_response(text)

    assert isinstance(result, RecommendationsResult)
    assert [r.relevance_score for r in result.items] == [70, 100]
