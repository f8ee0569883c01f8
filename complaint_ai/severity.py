"""
Severity step: complaint text + category -> SeverityAnalysis (deterministic, no LLM).

Keyword tiers set the base score (critical > high > moderate > low, first match wins), then the
category floor, distress / repetition / length boosts, and a final clamp to 1..10. Risk level,
sentiment and the two phrase fields are all read off the final score.

This is what the system falls back to whenever the AI is unavailable, so the order of these
steps is the contract.
"""
import re
from dataclasses import dataclass
from functools import lru_cache

from complaint_ai.schemas import SeverityAnalysis, normalize_category, risk_level_for

CRITICAL_SCORE = 9
HIGH_SCORE = 7
MODERATE_SCORE = 5
LOW_SCORE = 2
BASE_SCORE = 4

CATEGORY_FLOORS = {"physical": 7, "quid_pro_quo": 8}
DISTRESS_BOOST = 2
REPETITION_BOOST = 1
LONG_DESCRIPTION_CHARS = 300
MAX_KEYWORDS = 5


@dataclass(frozen=True)
class KeywordTiers:
    """
    Keyword sets. Each entry matches at the start of a word, so stems ("intimidat") work.

    Run-together compounds do not match: "sexualassault" misses "assault" and falls out of the
    critical tier. Add such spellings to a tier explicitly if they matter.
    """

    critical: tuple[str, ...]
    high: tuple[str, ...]
    moderate: tuple[str, ...]
    low: tuple[str, ...]
    distress: tuple[str, ...]
    repetition: tuple[str, ...]

    def in_check_order(self) -> tuple[str, ...]:
        return self.critical + self.high + self.moderate + self.low + self.distress + self.repetition


DEFAULT_TIERS = KeywordTiers(
    critical=(
        "rape", "assault", "molest", "grope", "stalk", "blackmail", "threaten to kill",
        "threatened to kill", "life threat", "sexual assault", "forced",
    ),
    high=(
        "touch", "physical", "threat", "coerce", "coercion", "promotion", "fire me", "terminate",
        "quid pro quo", "power", "abuse of authority", "intimidat", "corner", "lock", "follow",
        "grabbed", "slap", "hit", "punch", "shove",
    ),
    moderate=(
        "inappropriate", "uncomfort", "remark", "comment", "stare", "staring", "leer", "jokes",
        "sexual joke", "dirty joke", "innuendo", "gesture", "message", "email", "text",
        "social media", "online", "cyber", "humiliat", "bully", "hostile", "discriminat",
    ),
    low=("awkward", "misunderstand", "minor", "once", "single incident"),
    distress=(
        "scared", "afraid", "fear", "terrif", "panic", "cry", "cried", "depress", "anxious",
        "trauma", "nightmare", "suicid", "helpless", "desperate", "unsafe",
    ),
    repetition=(
        "again", "multiple times", "every day", "constantly", "keeps", "ongoing", "for months",
        "for weeks", "repeated", "pattern", "not the first",
    ),
)

# (minimum score, phrase) - first row whose minimum the score reaches wins
EMOTIONAL_STATES = (
    (9, "severely distressed, possibly traumatized"),
    (7, "distressed and fearful"),
    (5, "anxious and uncomfortable"),
    (3, "concerned but composed"),
    (1, "mildly uncomfortable"),
)

RECOMMENDED_ACTIONS = (
    (9, "Immediate ICC intervention required. Consider interim relief measures."),
    (7, "Urgent: Assign senior ICC member. Schedule hearing within 7 days."),
    (5, "Assign ICC member for investigation within 10 days."),
    (3, "Document and monitor. Offer counseling support."),
    (1, "Record the concern and check in with the complainant informally."),
)


@lru_cache(maxsize=512)
def _pattern(keyword: str) -> re.Pattern:
    return re.compile(r"\b" + re.escape(keyword))


def _matches(text: str, keywords: tuple[str, ...]) -> list[str]:
    return [k for k in keywords if _pattern(k).search(text)]


def _any(text: str, keywords: tuple[str, ...]) -> bool:
    return any(_pattern(k).search(text) for k in keywords)


def _banded(score: int, table: tuple[tuple[int, str], ...]) -> str:
    for minimum, phrase in table:
        if score >= minimum:
            return phrase
    return table[-1][1]


def base_score(text: str, tiers: KeywordTiers = DEFAULT_TIERS) -> int:
    """Tier precedence on lowercased text: critical 9, high 7, moderate 5, low 2, else 4."""
    if _any(text, tiers.critical):
        return CRITICAL_SCORE
    if _any(text, tiers.high):
        return HIGH_SCORE
    if _any(text, tiers.moderate):
        return MODERATE_SCORE
    if _any(text, tiers.low):
        return LOW_SCORE
    return BASE_SCORE


def score_description(description: str, category: str, tiers: KeywordTiers = DEFAULT_TIERS) -> int:
    """Full scoring pipeline: tiers -> category floor -> boosts -> clamp."""
    text = (description or "").lower()
    score = base_score(text, tiers)

    floor = CATEGORY_FLOORS.get(normalize_category(category))
    if floor is not None:
        score = max(score, floor)

    if _any(text, tiers.distress):
        score = min(10, score + DISTRESS_BOOST)
    if _any(text, tiers.repetition):
        score = min(10, score + REPETITION_BOOST)
    if len(description or "") > LONG_DESCRIPTION_CHARS:
        score = min(10, score + 1)

    return max(1, min(10, score))


def sentiment_for(score: int) -> str:
    if score >= 8:
        return "distressed"
    if score >= 5:
        return "negative"
    return "mixed"


def classify(description: str, category: str, tiers: KeywordTiers = DEFAULT_TIERS) -> SeverityAnalysis:
    """Keyword-based severity analysis. Never fails and never calls out."""
    cat = normalize_category(category)
    score = score_description(description, cat, tiers)
    keywords = _matches((description or "").lower(), tiers.in_check_order())[:MAX_KEYWORDS]

    return SeverityAnalysis(
        sentiment=sentiment_for(score),
        severity_score=score,
        category=cat,
        keywords=keywords,
        risk_level=risk_level_for(score),
        emotional_state=_banded(score, EMOTIONAL_STATES),
        recommended_action=_banded(score, RECOMMENDED_ACTIONS),
    )
