"""Golden-case tests: no LLM. Keyword classifier precedence, boosts, clamps and derived fields."""
import pytest

from complaint_ai.schemas import SeverityAnalysis, risk_level_for
from complaint_ai.severity import DEFAULT_TIERS, KeywordTiers, base_score, classify, score_description


def test_threat_to_fire_is_high_risk() -> None:
    result = classify("He cornered me and threatened to fire me if I didn't comply", "verbal")
    assert result.severity_score >= 7
    assert result.severity_score == 7
    assert result.risk_level == "high"
    assert result.sentiment == "negative"
    assert result.keywords == ["threat", "fire me", "corner"]
    assert result.emotional_state == "distressed and fearful"
    assert result.recommended_action == "Urgent: Assign senior ICC member. Schedule hearing within 7 days."


def test_hedged_single_joke_is_low_risk() -> None:
    result = classify("He made an awkward joke once, probably a misunderstanding", "verbal")
    assert result.severity_score == 2
    assert result.risk_level == "low"
    assert result.sentiment == "mixed"
    assert result.keywords == ["awkward", "misunderstand", "once"]
    assert result.emotional_state == "mildly uncomfortable"


def test_quid_pro_quo_floor_dominates_low_signal_text() -> None:
    result = classify("We had a meeting about the project.", "quid_pro_quo")
    assert result.severity_score == 8
    assert result.risk_level == "high"
    assert result.sentiment == "distressed"
    assert result.category == "quid_pro_quo"


def test_physical_category_floor() -> None:
    result = classify("It happened near the lift.", "physical")
    assert result.severity_score == 7
    assert result.risk_level == "high"


@pytest.mark.parametrize("category", ["verbal", "physical", "cyber", "quid_pro_quo"])
def test_critical_keyword_scores_nine_for_every_category(category: str) -> None:
    result = classify("My manager tried to blackmail me with photos.", category)
    assert result.severity_score == 9
    assert result.risk_level == "critical"


def test_critical_beats_lower_tiers() -> None:
    text = "he made inappropriate comments, then touched me and finally assaulted me"
    assert base_score(text) == 9


def test_tier_precedence_first_match_wins() -> None:
    assert base_score("he keeps sending messages") == 5
    assert base_score("he slapped me") == 7
    assert base_score("it was minor") == 2
    assert base_score("nothing matches here") == 4
    assert base_score("") == 4


def test_keywords_match_at_word_start_only() -> None:
    # "hit" inside "white" and "text" inside "context" must not count
    assert base_score("he wore a white shirt in that context") == 4
    assert base_score("he was hitting the desk") == 7
    assert base_score("he was intimidating") == 7


def test_boosts_stack_and_clamp_at_ten() -> None:
    text = (
        "He assaulted me again and I am terrified. " + "It keeps happening for months. " * 10
    )
    assert len(text) > 300
    result = classify(text, "physical")
    assert result.severity_score == 10
    assert result.risk_level == "critical"
    assert result.emotional_state == "severely distressed, possibly traumatized"


def test_distress_adds_two() -> None:
    assert score_description("I feel unsafe at my desk", "verbal") == 6


def test_repetition_adds_one() -> None:
    assert score_description("he said it again", "verbal") == 5


def test_long_description_adds_one() -> None:
    text = "a" * 301
    assert score_description(text, "verbal") == 5
    assert score_description("a" * 300, "verbal") == 4


def test_keywords_capped_at_five_in_check_order() -> None:
    text = "rape assault molest grope stalk blackmail touch"
    result = classify(text, "verbal")
    assert result.keywords == ["rape", "assault", "molest", "grope", "stalk"]


def test_no_matches_gives_empty_keywords_and_medium_risk() -> None:
    result = classify("Something happened at work.", "verbal")
    assert result.keywords == []
    assert result.severity_score == 4
    assert result.risk_level == "medium"
    assert result.sentiment == "mixed"


def test_unknown_category_is_best_effort() -> None:
    result = classify("He sent me an email.", "Other Thing")
    assert result.category == "other_thing"
    assert result.severity_score == 5


def test_empty_text_still_returns_record() -> None:
    result = classify("", "")
    assert result.category == "verbal"
    assert 1 <= result.severity_score <= 10
    SeverityAnalysis.model_validate(result.model_dump())


def test_custom_tiers_are_respected() -> None:
    tiers = KeywordTiers(critical=("banana",), high=(), moderate=(), low=(), distress=(), repetition=())
    assert classify("a banana incident", "verbal", tiers).severity_score == 9
    assert classify("he assaulted me", "verbal", tiers).severity_score == 4


@pytest.mark.parametrize(
    "text,category",
    [
        ("", "verbal"),
        ("minor", "verbal"),
        ("he stared at me", "cyber"),
        ("he hit me again and I was scared", "physical"),
        ("rape " * 100, "quid_pro_quo"),
    ],
)
def test_risk_level_is_always_the_score_band(text: str, category: str) -> None:
    result = classify(text, category)
    assert isinstance(result.severity_score, int)
    assert 1 <= result.severity_score <= 10
    assert result.risk_level == risk_level_for(result.severity_score)


def test_risk_level_bands() -> None:
    assert [risk_level_for(s) for s in range(1, 11)] == [
        "low", "low", "low", "medium", "medium", "medium", "high", "high", "critical", "critical",
    ]


def test_default_tiers_keep_check_order() -> None:
    order = DEFAULT_TIERS.in_check_order()
    assert order.index("rape") < order.index("touch") < order.index("remark") < order.index("awkward")
    assert order.index("awkward") < order.index("scared") < order.index("again")


def test_run_together_compound_misses_its_tier() -> None:
    assert base_score("he sexualassaulted me") == 4
    assert base_score("it was sexual assault") == 9
