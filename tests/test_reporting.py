"""Pattern detection and annual report: AI when it works, neutral/factual output when it doesn't."""
import json

import pytest

from complaint_ai import llm
from complaint_ai.reporting import (
    NEUTRAL_PATTERNS,
    detect_patterns,
    fallback_report,
    generate_annual_report,
)
from complaint_ai.schemas import CaseSummary, OrgStats

CASES = [
    CaseSummary(type="verbal", description="Repeated comments about appearance in sales team meetings " * 3, severity=5, date="2025-01-10"),
    CaseSummary(type="cyber", description="Late-night messages from the same sales manager", severity=6, date="2025-02-02"),
]

STATS = OrgStats(
    total_cases=12,
    resolved_cases=10,
    avg_resolution_days=41.5,
    cases_by_type={"verbal": 7, "cyber": 5},
    compliance_score=92,
)


@pytest.fixture
def gemini(monkeypatch):
    monkeypatch.setenv("GEMINI_API_KEY", "test-key")
    state: dict = {}

    def fake_generate(prompt: str, temperature: float = 0.2) -> str:
        state["prompt"] = prompt
        state["temperature"] = temperature
        if isinstance(state["reply"], Exception):
            raise state["reply"]
        return state["reply"]

    monkeypatch.setattr(llm, "generate", fake_generate)
    return state


def test_no_cases_is_neutral_without_calling(gemini) -> None:
    assert detect_patterns([]) == NEUTRAL_PATTERNS
    assert "prompt" not in gemini


def test_no_credential_is_neutral() -> None:
    assert detect_patterns(CASES) == NEUTRAL_PATTERNS


def test_patterns_from_ai_use_camel_case_keys(gemini) -> None:
    gemini["reply"] = json.dumps(
        {
            "patterns": [{"type": "repeat offender", "description": "Same manager", "frequency": 2, "risk": "high"}],
            "earlyWarnings": ["Escalating after-hours contact"],
            "riskAreas": ["Sales"],
            "summary": "One team accounts for both cases.",
        }
    )
    result = detect_patterns(CASES)
    assert result.patterns[0].risk == "high"
    assert result.early_warnings == ["Escalating after-hours contact"]
    assert result.risk_areas == ["Sales"]
    assert "Case 2: type=cyber, severity=6/10, date=2025-02-02" in gemini["prompt"]


def test_case_descriptions_are_truncated_in_prompt(gemini) -> None:
    gemini["reply"] = "nonsense"
    detect_patterns(CASES)
    assert CASES[0].description[:80] in gemini["prompt"]
    assert CASES[0].description[:81] not in gemini["prompt"]


@pytest.mark.parametrize("reply", ["nonsense", json.dumps({"patterns": []}), RuntimeError("quota")])
def test_pattern_failures_are_neutral(gemini, reply) -> None:
    gemini["reply"] = reply
    assert detect_patterns(CASES) == NEUTRAL_PATTERNS


def test_fallback_report_text() -> None:
    assert fallback_report(STATS, 2025) == (
        "Annual report for 2025: 12 complaints received, 10 resolved with an average resolution time of 41.5 days."
    )


def test_report_without_credential_is_factual_line() -> None:
    assert generate_annual_report(STATS, "Acme", 2025) == fallback_report(STATS, 2025)


def test_report_from_ai(gemini) -> None:
    gemini["reply"] = "  Formal report body.  "
    assert generate_annual_report(STATS, "Acme", 2025) == "Formal report body."
    assert "Organization: Acme" in gemini["prompt"]
    assert "Cases by type: verbal: 7, cyber: 5" in gemini["prompt"]
    assert gemini["temperature"] == 0.4


@pytest.mark.parametrize("reply", ["   ", TimeoutError("slow")])
def test_report_failures_use_fallback(gemini, reply) -> None:
    gemini["reply"] = reply
    assert generate_annual_report(STATS, "Acme", 2025) == fallback_report(STATS, 2025)
