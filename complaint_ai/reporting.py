"""
Org-level reporting: pattern detection across cases and the annual POSH compliance report.

Both follow the same rule as the rest of the package: try Gemini, and on any failure return
something safe (a neutral PatternAnalysis, or a one-line report built from the numbers).
"""
import logging

from complaint_ai import llm
from complaint_ai.outcome import FailureReason, Ok
from complaint_ai.schemas import CaseSummary, OrgStats, PatternAnalysis

logger = logging.getLogger(__name__)

CASE_SNIPPET_CHARS = 80

NEUTRAL_PATTERNS = PatternAnalysis(
    patterns=[],
    early_warnings=[],
    risk_areas=[],
    summary="Insufficient data for pattern analysis.",
)

PATTERNS_PROMPT = """You are an organizational safety analyst. Analyze these workplace harassment cases for patterns and risks.

Cases:
{cases}

Respond ONLY with valid JSON:
{{
  "patterns": [
    {{"type": "<pattern type>", "description": "<what the pattern shows>", "frequency": <count>, "risk": "low|medium|high"}}
  ],
  "earlyWarnings": ["<warning signals that need attention>"],
  "riskAreas": ["<departments, teams, or situations at risk>"],
  "summary": "<3-4 sentence executive summary of organizational risk>"
}}"""

REPORT_PROMPT = """You are a POSH compliance officer. Write a formal annual report section for submission to the District Officer as required under Section 21 of POSH Act 2013.

Organization: {org_name}
Year: {year}
Data:
- Total complaints received: {total}
- Complaints resolved: {resolved}
- Average resolution time: {avg_days} days (legal limit: 90 days)
- Cases by type: {by_type}
- Compliance score: {compliance}%

Write a professional 3-paragraph report covering: actions taken, outcomes, and organizational measures implemented. Use formal language appropriate for a government submission."""


def _case_line(i: int, case: CaseSummary) -> str:
    snippet = case.description[:CASE_SNIPPET_CHARS]
    return f'Case {i}: type={case.type}, severity={case.severity}/10, date={case.date}, summary="{snippet}"'


def detect_patterns(cases: list[CaseSummary]) -> PatternAnalysis:
    """Recurring patterns, early warnings and risk areas. NEUTRAL_PATTERNS for no cases or on failure."""
    if not cases:
        return NEUTRAL_PATTERNS
    prompt = PATTERNS_PROMPT.format(cases="\n".join(_case_line(i, c) for i, c in enumerate(cases, start=1)))
    result = llm.request_model(prompt, PatternAnalysis)
    if isinstance(result, Ok):
        return result.value
    if result.reason is not FailureReason.NOT_CONFIGURED:
        logger.error("detect_patterns failed (%s): %s", result.reason.value, result.detail)
    return NEUTRAL_PATTERNS


def fallback_report(stats: OrgStats, year: int) -> str:
    avg = f"{stats.avg_resolution_days:g}"
    return (
        f"Annual report for {year}: {stats.total_cases} complaints received, {stats.resolved_cases} resolved "
        f"with an average resolution time of {avg} days."
    )


def generate_annual_report(stats: OrgStats, org_name: str, year: int) -> str:
    """Section 21 annual report text. Falls back to a factual one-line summary."""
    by_type = ", ".join(f"{t}: {n}" for t, n in stats.cases_by_type.items()) or "none"
    prompt = REPORT_PROMPT.format(
        org_name=org_name or "Organization",
        year=year,
        total=stats.total_cases,
        resolved=stats.resolved_cases,
        avg_days=f"{stats.avg_resolution_days:g}",
        by_type=by_type,
        compliance=f"{stats.compliance_score:g}",
    )
    try:
        text = llm.generate(prompt, temperature=0.4).strip()
    except Exception as e:
        failure = llm.failure_for(e)
        if failure.reason is not FailureReason.NOT_CONFIGURED:
            logger.error("generate_annual_report failed (%s): %s", failure.reason.value, failure.detail)
        return fallback_report(stats, year)
    return text or fallback_report(stats, year)
