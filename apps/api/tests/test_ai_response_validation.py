"""Tests for AI JSON response parsing."""

import pytest

from app.services import ai_response_validation
from app.services.ai_response_validation import MalformedAIResponseError


def test_strips_json_fences():
    text = '```json\n{"title": "RFP"}\n```'

    assert ai_response_validation.parse_json(text) == {"title": "RFP"}


def test_strips_bare_fences():
    assert ai_response_validation.parse_json('```\n[1, 2]\n```') == [1, 2]


def test_plain_json_passes_through():
    assert ai_response_validation.parse_json('  {"a": {"b": null}}  ') == {"a": {"b": None}}


def test_invalid_json_is_malformed():
    """No repair pass: trailing prose makes the reply unusable."""
    with pytest.raises(MalformedAIResponseError) as exc:
        ai_response_validation.parse_json('{"title": "RFP"} Let me know if you need more!')

    assert exc.value.status_code == 500
    assert exc.value.error == "Malformed AI response"


def test_empty_reply_is_malformed():
    with pytest.raises(MalformedAIResponseError):
        ai_response_validation.parse_json("```json\n```")


def test_validate_model_wraps_schema_errors():
    from app.services.ai_service import Scorecard

    with pytest.raises(MalformedAIResponseError) as exc:
        ai_response_validation.validate_model(
            Scorecard, {"overallFitScore": 140, "summary": "x", "criteria": []}
        )

    assert "Scorecard" in exc.value.message


def test_parse_failures_logged_on_module_logger(caplog):
    with caplog.at_level("WARNING", logger="app.services.ai_response_validation"):
        with pytest.raises(MalformedAIResponseError):
            ai_response_validation.parse_json("not json")

    record = caplog.records[-1]
    assert record.name == "app.services.ai_response_validation"
    assert record.getMessage().startswith("Failed to parse AI JSON response: ")
    assert record.args


def test_schema_failures_name_the_model_in_logs(caplog):
    from app.services.ai_service import Slide

    with caplog.at_level("WARNING", logger="app.services.ai_response_validation"):
        with pytest.raises(MalformedAIResponseError):
            ai_response_validation.validate_model(Slide, {"type": "title"})

    assert caplog.records[-1].getMessage().startswith("Slide validation failed: ")
