"""
Analysis step: complaint text -> SeverityAnalysis, AI first with the keyword classifier underneath.

The local classification is always computed first. Gemini is asked for the same shape as strict
JSON; the reply is parsed and validated with Pydantic, risk_level is re-derived from the AI's
score, and any failure (no key, network, timeout, bad JSON, out-of-range field) returns the local
result instead. analyze() never raises, and callers cannot tell which path was taken except via
the audit log.
"""
import logging
from pathlib import Path

from complaint_ai import config, llm
from complaint_ai.audit import log_outcome
from complaint_ai.outcome import FailureReason, Ok, Result
from complaint_ai.schemas import SeverityAnalysis, normalize_category, risk_level_for
from complaint_ai.severity import DEFAULT_TIERS, KeywordTiers, classify

logger = logging.getLogger(__name__)

REQUIRED_FIELDS = tuple(SeverityAnalysis.model_fields)

ANALYSIS_PROMPT = """You are a POSH Act (India 2013) expert. Analyze this workplace harassment complaint and respond ONLY with valid JSON.

Complaint type: {category}
Description: "{description}"

Respond with exactly this JSON structure:
{{
  "sentiment": "negative|distressed|neutral|mixed",
  "severity_score": <1-10 integer>,
  "category": "{category}",
  "keywords": ["word1", "word2", "word3"],
  "risk_level": "low|medium|high|critical",
  "emotional_state": "<short phrase describing the complainant's emotional state>",
  "recommended_action": "<one sentence recommended immediate HR action>"
}}

severity_score guide: 1-3=minor discomfort, 4-6=significant harassment, 7-8=severe, 9-10=extremely serious/criminal.
risk_level: critical for 9-10, high for 7-8, medium for 4-6, low for 1-3."""

SENTIMENT_PROMPT = 'Classify this text\'s emotional tone as exactly one word: "distressed", "negative", or "neutral".\nText: "{text}"'
QUICK_SENTIMENT_MIN_CHARS = 20


def build_prompt(description: str, category: str) -> str:
    return ANALYSIS_PROMPT.format(category=category, description=description)


def _align_with_score(data: dict, category: str) -> dict:
    """Reject incomplete replies; echo our category and re-derive risk_level from the score."""
    missing = [f for f in REQUIRED_FIELDS if f not in data]
    if missing:
        raise ValueError(f"missing fields: {', '.join(missing)}")
    data = dict(data, category=category)
    score = data["severity_score"]
    if isinstance(score, bool) or not isinstance(score, int):
        raise ValueError(f"severity_score must be a JSON integer, got {score!r}")
    if not 1 <= score <= 10:
        raise ValueError(f"severity_score out of range: {score}")
    derived = risk_level_for(score)
    if data["risk_level"] != derived:
        logger.info("AI risk_level %r replaced by %r for score %s", data["risk_level"], derived, score)
    data["risk_level"] = derived
    return data


def _ai_analysis(description: str, category: str) -> Result[SeverityAnalysis]:
    return llm.request_model(
        build_prompt(description, category),
        SeverityAnalysis,
        prepare=lambda data: _align_with_score(data, category),
    )


def analyze(
    description: str,
    category: str,
    audit_path: Path | None = None,
    run_id: str = "",
    tiers: KeywordTiers = DEFAULT_TIERS,
) -> SeverityAnalysis:
    """Severity analysis for one complaint. Always returns a valid record."""
    cat = normalize_category(category)
    local = classify(description, cat, tiers)

    result = _ai_analysis(description, cat)
    if isinstance(result, Ok):
        log_outcome(audit_path, run_id, "analysis", None,
                    {"severity_score": result.value.severity_score, "prompt_version": config.PROMPT_VERSION},
                    model_name=config.gemini_model())
        return result.value

    if result.reason is not FailureReason.NOT_CONFIGURED:
        logger.warning("analyze: AI unavailable (%s), using keyword analysis: %s", result.reason.value, result.detail)
    log_outcome(audit_path, run_id, "analysis", result, {"severity_score": local.severity_score})
    return local


def quick_sentiment(text: str) -> str:
    """Fast tone check for live typing: "distressed", "negative" or "neutral". Never raises."""
    if len(text or "") < QUICK_SENTIMENT_MIN_CHARS:
        return "neutral"
    try:
        reply = llm.complete(
            None,
            SENTIMENT_PROMPT.format(text=text[:300]),
            model=llm.get_model(fast=True),
            temperature=0,
            max_tokens=10,
        )
    except Exception as e:
        failure = llm.failure_for(e)
        if failure.reason is not FailureReason.NOT_CONFIGURED:
            logger.warning("quick_sentiment failed (%s): %s", failure.reason.value, failure.detail)
        return "neutral"
    reply = reply.strip().lower()
    if "distressed" in reply:
        return "distressed"
    if "negative" in reply:
        return "negative"
    return "neutral"
