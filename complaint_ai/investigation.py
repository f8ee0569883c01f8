"""
ICC investigation aids: credibility assessment and both-sides statement comparison.

Same call -> parse -> validate pattern as analysis.py, but there is no safe keyword heuristic for
weighing two narratives, so failure returns a fixed neutral record instead. An all-5s assessment
or an "inconclusive" comparison with nothing listed means "no analysis was possible"; it must be
shown as uncertain, never as a verified neutral finding.
"""
import logging
from pathlib import Path

from complaint_ai import config, llm
from complaint_ai.audit import log_outcome
from complaint_ai.outcome import FailureReason, Ok
from complaint_ai.schemas import CredibilityAssessment, CredibilityDimensions, StatementComparison

logger = logging.getLogger(__name__)

NEUTRAL_CREDIBILITY = CredibilityAssessment(
    overall_score=5.0,
    dimensions=CredibilityDimensions(
        consistency=5.0,
        detail_level=5.0,
        emotional_congruence=5.0,
        temporal_accuracy=5.0,
        corroboration=5.0,
        plausibility=5.0,
    ),
    summary="Further review required.",
    flags=[],
)

NEUTRAL_COMPARISON = StatementComparison(
    contradictions=[],
    agreements=[],
    evidence_gaps=[],
    summary="Both statements have been noted. Further evidence required.",
    credibility_leaning="inconclusive",
)

CREDIBILITY_PROMPT = """You are an ICC (Internal Complaints Committee) expert under India's POSH Act 2013. Assess the credibility of this complaint.

Complainant's statement: "{complainant}"
Accused's response: "{accused}"{evidence}

Respond ONLY with valid JSON:
{{
  "overall_score": <0-10 float>,
  "dimensions": {{
    "consistency": <0-10>,
    "detail_level": <0-10>,
    "emotional_congruence": <0-10>,
    "temporal_accuracy": <0-10>,
    "corroboration": <0-10>,
    "plausibility": <0-10>
  }},
  "summary": "<2-3 sentence neutral assessment>",
  "flags": ["<any concerning factors>"]
}}

Scoring: consistency=internal logical consistency, detail_level=specificity and recall quality, emotional_congruence=emotion matches described events, temporal_accuracy=timeline clarity, corroboration=supported by evidence/witnesses, plausibility=realistic given context."""

COMPARISON_PROMPT = """You are an ICC investigator under India's POSH Act 2013. Compare both sides of this workplace harassment case. Be neutral and factual.

Complainant's account: "{complainant}"
Accused's response: "{accused}"

Respond ONLY with valid JSON:
{{
  "contradictions": [
    {{"topic": "<what aspect>", "complaint_says": "<complainant's version>", "accused_says": "<accused's version>"}}
  ],
  "agreements": ["<points both parties agree on>"],
  "evidence_gaps": ["<what evidence would resolve key disputes>"],
  "summary": "<3-4 sentence neutral comparison>",
  "credibility_leaning": "complainant|accused|inconclusive"
}}"""


def build_credibility_prompt(complainant_text: str, accused_text: str, evidence: list[str]) -> str:
    evidence_text = f"\nEvidence submitted: {', '.join(evidence)}" if evidence else ""
    return CREDIBILITY_PROMPT.format(complainant=complainant_text, accused=accused_text, evidence=evidence_text)


def build_comparison_prompt(complainant_text: str, accused_text: str) -> str:
    return COMPARISON_PROMPT.format(complainant=complainant_text, accused=accused_text)


def assess_credibility(
    complainant_text: str,
    accused_text: str,
    evidence: list[str] | None = None,
    audit_path: Path | None = None,
    run_id: str = "",
) -> CredibilityAssessment:
    """Six-dimension credibility scoring. NEUTRAL_CREDIBILITY on any failure."""
    evidence = [e for e in (evidence or []) if e and e.strip()]
    result = llm.request_model(
        build_credibility_prompt(complainant_text, accused_text or "", evidence),
        CredibilityAssessment,
    )
    if isinstance(result, Ok):
        log_outcome(audit_path, run_id, "credibility", None,
                    {"overall_score": result.value.overall_score}, model_name=config.gemini_model())
        return result.value

    if result.reason is not FailureReason.NOT_CONFIGURED:
        logger.error("assess_credibility failed (%s): %s", result.reason.value, result.detail)
    log_outcome(audit_path, run_id, "credibility", result)
    return NEUTRAL_CREDIBILITY


def compare_statements(
    complainant_text: str,
    accused_text: str,
    audit_path: Path | None = None,
    run_id: str = "",
) -> StatementComparison:
    """Contradictions, agreements and evidence gaps between both accounts. NEUTRAL_COMPARISON on any failure."""
    result = llm.request_model(build_comparison_prompt(complainant_text, accused_text), StatementComparison)
    if isinstance(result, Ok):
        log_outcome(audit_path, run_id, "comparison", None,
                    {"contradictions": len(result.value.contradictions),
                     "credibility_leaning": result.value.credibility_leaning},
                    model_name=config.gemini_model())
        return result.value

    if result.reason is not FailureReason.NOT_CONFIGURED:
        logger.error("compare_statements failed (%s): %s", result.reason.value, result.detail)
    log_outcome(audit_path, run_id, "comparison", result)
    return NEUTRAL_COMPARISON
