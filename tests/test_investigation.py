"""Credibility and comparison: exact neutral defaults on failure, validated AI output otherwise."""
import json

import pytest

from complaint_ai import llm
from complaint_ai.audit import read_events
from complaint_ai.investigation import (
    NEUTRAL_COMPARISON,
    NEUTRAL_CREDIBILITY,
    assess_credibility,
    build_credibility_prompt,
    compare_statements,
)
from complaint_ai.schemas import CredibilityAssessment, StatementComparison

COMPLAINT = "On 3 March he touched my shoulder in the pantry and said I owed him for the promotion."
RESPONSE = "I was in a client meeting all afternoon on 3 March."

CREDIBILITY_REPLY = {
    "overall_score": 7.5,
    "dimensions": {
        "consistency": 8,
        "detail_level": 7,
        "emotional_congruence": 7,
        "temporal_accuracy": 9,
        "corroboration": 4,
        "plausibility": 8,
    },
    "summary": "Specific and consistent account; limited corroboration.",
    "flags": ["alibi claimed"],
}

COMPARISON_REPLY = {
    "contradictions": [
        {"topic": "whereabouts", "complaint_says": "in the pantry", "accused_says": "in a client meeting"}
    ],
    "agreements": ["Both refer to 3 March"],
    "evidence_gaps": ["Meeting calendar", "Pantry CCTV"],
    "summary": "The accounts conflict on location.",
    "credibility_leaning": "inconclusive",
}


@pytest.fixture
def gemini(monkeypatch):
    monkeypatch.setenv("GEMINI_API_KEY", "test-key")
    state: dict = {}

    def fake_generate(prompt: str, temperature: float = 0.2) -> str:
        state["prompt"] = prompt
        if isinstance(state["reply"], Exception):
            raise state["reply"]
        return state["reply"]

    monkeypatch.setattr(llm, "generate", fake_generate)
    return state


def test_neutral_credibility_exact_values() -> None:
    assert NEUTRAL_CREDIBILITY.model_dump() == {
        "overall_score": 5.0,
        "dimensions": {
            "consistency": 5.0,
            "detail_level": 5.0,
            "emotional_congruence": 5.0,
            "temporal_accuracy": 5.0,
            "corroboration": 5.0,
            "plausibility": 5.0,
        },
        "summary": "Further review required.",
        "flags": [],
    }


def test_neutral_comparison_exact_values() -> None:
    assert NEUTRAL_COMPARISON.model_dump() == {
        "contradictions": [],
        "agreements": [],
        "evidence_gaps": [],
        "summary": "Both statements have been noted. Further evidence required.",
        "credibility_leaning": "inconclusive",
    }


def test_no_credential_returns_defaults() -> None:
    assert assess_credibility(COMPLAINT, RESPONSE, ["chat screenshot"]) == NEUTRAL_CREDIBILITY
    assert compare_statements(COMPLAINT, RESPONSE) == NEUTRAL_COMPARISON


def test_credibility_from_ai(gemini) -> None:
    gemini["reply"] = json.dumps(CREDIBILITY_REPLY)
    result = assess_credibility(COMPLAINT, RESPONSE, ["chat screenshot", "  "])
    assert result.overall_score == 7.5
    assert result.dimensions.corroboration == 4
    assert result.flags == ["alibi claimed"]
    assert "Evidence submitted: chat screenshot" in gemini["prompt"]
    CredibilityAssessment.model_validate(result.model_dump())


def test_credibility_prompt_omits_empty_evidence() -> None:
    assert "Evidence submitted" not in build_credibility_prompt(COMPLAINT, RESPONSE, [])


def test_out_of_range_dimension_falls_back(gemini) -> None:
    bad = json.loads(json.dumps(CREDIBILITY_REPLY))
    bad["dimensions"]["plausibility"] = 12
    gemini["reply"] = json.dumps(bad)
    assert assess_credibility(COMPLAINT, RESPONSE) == NEUTRAL_CREDIBILITY


def test_missing_dimension_falls_back(gemini) -> None:
    bad = json.loads(json.dumps(CREDIBILITY_REPLY))
    del bad["dimensions"]["consistency"]
    gemini["reply"] = json.dumps(bad)
    assert assess_credibility(COMPLAINT, RESPONSE) == NEUTRAL_CREDIBILITY


def test_comparison_from_ai_maps_version_keys(gemini) -> None:
    gemini["reply"] = "```\n" + json.dumps(COMPARISON_REPLY) + "\n```"
    result = compare_statements(COMPLAINT, RESPONSE)
    assert result.contradictions[0].complainant_version == "in the pantry"
    assert result.contradictions[0].accused_version == "in a client meeting"
    assert result.evidence_gaps == ["Meeting calendar", "Pantry CCTV"]
    StatementComparison.model_validate(result.model_dump(by_alias=True))


@pytest.mark.parametrize(
    "reply",
    [
        "{}",
        "nonsense",
        json.dumps(dict(COMPARISON_REPLY, credibility_leaning="accused mostly")),
        RuntimeError("503"),
    ],
)
def test_comparison_failures_return_default(gemini, reply) -> None:
    gemini["reply"] = reply
    assert compare_statements(COMPLAINT, RESPONSE) == NEUTRAL_COMPARISON


def test_failure_is_audited(gemini, tmp_path) -> None:
    audit = tmp_path / "audit.jsonl"
    gemini["reply"] = "nonsense"
    assess_credibility(COMPLAINT, RESPONSE, audit_path=audit, run_id="x")
    (event,) = read_events(audit)
    assert event["event_type"] == "credibility_fallback"
    assert event["payload"]["reason"] == "malformed"
