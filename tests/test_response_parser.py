from __future__ import annotations

import json

import pytest

from pm_match.errors import EmptyResponseError, InvalidFormatError, MissingFieldsError
from pm_match.model_client import ModelResponse
from pm_match.models import GroundingSource
from pm_match.response_parser import extract_json_candidate, parse_response


def test_fenced_json_block(analysis_payload):
    text = "```json\n" + json.dumps(analysis_payload) + "\n```"
    result = parse_response(ModelResponse(text=text))
    assert result.company_name == "Acme"
    assert result.score == 82
    assert result.quick_take == ("Strong platform PM", "Gap in pricing", "Good culture fit")
    assert result.grounding_sources is None


def test_fenced_block_wins_over_surrounding_braces(analysis_payload):
    text = "Note {not json}\n```json\n" + json.dumps(analysis_payload) + "\n```\n{trailing}"
    assert parse_response(ModelResponse(text=text)).company_name == "Acme"


def test_brace_span_with_surrounding_prose(analysis_payload):
    text = "  Here is the analysis:\n" + json.dumps(analysis_payload) + "\nGood luck!  "
    assert parse_response(ModelResponse(text=text)).score == 82


def test_extract_candidate_takes_first_to_last_brace():
    assert extract_json_candidate('x {"a": {"b": 1}} y') == '{"a": {"b": 1}}'


def test_no_json_is_invalid_format():
    with pytest.raises(InvalidFormatError, match="invalid format"):
        parse_response(ModelResponse(text="I could not analyze this resume."))


def test_malformed_json_is_not_repaired():
    with pytest.raises(InvalidFormatError):
        parse_response(ModelResponse(text='{"companyName": "Acme", "score": 82,}'))


def test_json_array_is_invalid_format():
    with pytest.raises(InvalidFormatError):
        parse_response(ModelResponse(text="```json\n[1, 2]\n```"))


def test_empty_text():
    with pytest.raises(EmptyResponseError):
        parse_response(ModelResponse(text="   \n"))


def test_missing_sample_email_is_listed_alone(analysis_payload):
    del analysis_payload["sampleEmail"]
    with pytest.raises(MissingFieldsError) as exc_info:
        parse_response(ModelResponse(text=json.dumps(analysis_payload)))
    assert exc_info.value.missing == ["sampleEmail"]
    assert "sampleEmail" in str(exc_info.value)


def test_missing_fields_listed_in_schema_order():
    with pytest.raises(MissingFieldsError) as exc_info:
        parse_response(ModelResponse(text='{"score": 10, "strengths": []}'))
    assert exc_info.value.missing == [
        "companyName", "missingSkills", "quickTake", "pitchHighlights", "sampleEmail",
    ]


def test_values_are_not_validated(analysis_payload):
    analysis_payload["score"] = 140
    analysis_payload["quickTake"] = ["only one"]
    result = parse_response(ModelResponse(text=json.dumps(analysis_payload)))
    assert result.score == 140
    assert result.quick_take == ("only one",)


@pytest.mark.parametrize("field", ["missingSkills", "strengths", "quickTake", "pitchHighlights"])
def test_null_list_field_is_invalid_format(analysis_payload, field):
    analysis_payload[field] = None
    with pytest.raises(InvalidFormatError):
        parse_response(ModelResponse(text=json.dumps(analysis_payload)))


def test_null_company_name_is_kept_as_given(analysis_payload):
    analysis_payload["companyName"] = None
    assert parse_response(ModelResponse(text=json.dumps(analysis_payload))).company_name is None


def test_grounding_chunks_become_sources(analysis_payload):
    response = ModelResponse(
        text=json.dumps(analysis_payload),
        grounding_chunks=[
            {"web": {"title": "Acme careers", "uri": "https://acme.example/careers"}},
            {"web": {"title": None, "uri": "https://news.example/acme"}},
            {"retrieved_context": {"uri": "gs://bucket/doc"}},
        ],
    )
    result = parse_response(response)
    assert result.grounding_sources == (
        GroundingSource("Acme careers", "https://acme.example/careers"),
        GroundingSource("External Source", "https://news.example/acme"),
    )


def test_non_web_chunks_only_leave_sources_unset(analysis_payload):
    response = ModelResponse(
        text=json.dumps(analysis_payload),
        grounding_chunks=[{"retrieved_context": {"uri": "gs://bucket/doc"}}],
    )
    assert parse_response(response).grounding_sources is None


def test_result_round_trips_to_camel_case(analysis_payload):
    result = parse_response(ModelResponse(text=json.dumps(analysis_payload)))
    assert result.to_dict() == analysis_payload
