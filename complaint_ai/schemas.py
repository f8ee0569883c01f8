"""
Data shapes for complaint analysis, case investigation and the policy assistant.

- SeverityAnalysis: what the classifier / AI adapter produce for one complaint.
- CredibilityAssessment, StatementComparison: ICC investigation aids (advisory only).
- KnowledgeChunk, ChatMessage: retrieval and chat plumbing.
- CaseSummary, PatternAnalysis, OrgStats: org-level reporting.

Every record is frozen once built; none of them is ever updated in place.
"""
from typing import Annotated, Dict, List, Literal, Optional
from pydantic import BaseModel, ConfigDict, Field, model_validator

Category = Literal["verbal", "physical", "cyber", "quid_pro_quo"]
CATEGORIES: tuple[str, ...] = ("verbal", "physical", "cyber", "quid_pro_quo")

Sentiment = Literal["negative", "distressed", "neutral", "mixed"]
RiskLevel = Literal["low", "medium", "high", "critical"]
Leaning = Literal["complainant", "accused", "inconclusive"]


def normalize_category(value: str | None) -> str:
    """Lowercase and snake-case a category tag. Unknown tags are kept (never rejected)."""
    cat = (value or "").strip().lower().replace("-", "_").replace(" ", "_")
    return cat or "verbal"


def risk_level_for(score: int) -> RiskLevel:
    """Risk bucket for a severity score. The only place this mapping lives."""
    if score >= 9:
        return "critical"
    if score >= 7:
        return "high"
    if score >= 4:
        return "medium"
    return "low"


class _Record(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True)


# --- Complaint severity ---

class SeverityAnalysis(_Record):
    """Severity estimate for one complaint. risk_level always matches severity_score."""

    sentiment: Sentiment
    severity_score: int = Field(ge=1, le=10)
    category: str
    keywords: List[str]
    risk_level: RiskLevel
    emotional_state: str = Field(min_length=1)
    recommended_action: str = Field(min_length=1)

    @model_validator(mode="after")
    def _risk_matches_score(self) -> "SeverityAnalysis":
        expected = risk_level_for(self.severity_score)
        if self.risk_level != expected:
            raise ValueError(
                f"risk_level {self.risk_level!r} does not match severity_score {self.severity_score} "
                f"(expected {expected!r})"
            )
        return self


# --- Investigation ---

Score = Annotated[float, Field(ge=0, le=10)]


class CredibilityDimensions(_Record):
    consistency: Score
    detail_level: Score
    emotional_congruence: Score
    temporal_accuracy: Score
    corroboration: Score
    plausibility: Score


class CredibilityAssessment(_Record):
    """Advisory credibility scoring. All-5s means "no analysis was possible", not "neutral"."""

    overall_score: float = Field(ge=0, le=10)
    dimensions: CredibilityDimensions
    summary: str
    flags: List[str] = Field(default_factory=list)


class Contradiction(_Record):
    topic: str
    complainant_version: str = Field(alias="complaint_says")
    accused_version: str = Field(alias="accused_says")


class StatementComparison(_Record):
    contradictions: List[Contradiction] = Field(default_factory=list)
    agreements: List[str] = Field(default_factory=list)
    evidence_gaps: List[str] = Field(default_factory=list)
    summary: str
    credibility_leaning: Leaning


# --- Retrieval / chat ---

class KnowledgeChunk(_Record):
    """One piece of reference text. similarity is set only on search results."""

    content: str
    embedding: Optional[List[float]] = None
    similarity: Optional[float] = None


class ChatMessage(_Record):
    role: Literal["system", "user", "assistant"]
    content: str


# --- Org-level reporting ---

class CaseSummary(_Record):
    type: str
    description: str
    severity: int = Field(ge=1, le=10)
    date: str = ""


class Pattern(_Record):
    type: str
    description: str
    frequency: int = Field(ge=0)
    risk: Literal["low", "medium", "high"]


class PatternAnalysis(_Record):
    patterns: List[Pattern] = Field(default_factory=list)
    early_warnings: List[str] = Field(default_factory=list, alias="earlyWarnings")
    risk_areas: List[str] = Field(default_factory=list, alias="riskAreas")
    summary: str


class OrgStats(_Record):
    total_cases: int = Field(ge=0)
    resolved_cases: int = Field(ge=0)
    avg_resolution_days: float = Field(ge=0)
    cases_by_type: Dict[str, int] = Field(default_factory=dict)
    compliance_score: float = 0.0
