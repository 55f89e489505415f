from lead_intake.models import DetectionConditions, LeadDetectionRule, LeadSource
from lead_intake.scoring import (
    LEAD_THRESHOLD,
    is_lead_score,
    score_detection_rule,
    score_email,
    score_lead_source,
)


def _rule(name: str = "Rule", **conditions) -> LeadDetectionRule:
    return LeadDetectionRule(id=name.lower(), name=name, conditions=DetectionConditions(**conditions))


def test_source_score_sums_all_signals() -> None:
    source = LeadSource(
        id="z",
        name="Zillow",
        email_patterns=["*@zillow.com"],
        domain_patterns=["zillow.com"],
        keywords=["lead"],
    )

    assert score_lead_source("jane@zillow.com", "New lead", "lead details", source) == 1.0


def test_source_score_is_clamped() -> None:
    source = LeadSource(
        id="z",
        name="Zillow",
        email_patterns=["zillow"],
        domain_patterns=["zillow.com"],
        keywords=["lead", "inquiry"],
    )

    score = score_lead_source("jane@zillow.com", "lead inquiry", "lead inquiry", source)

    assert score == 1.0


def test_source_email_patterns_count_once() -> None:
    source = LeadSource(id="z", name="Zillow", email_patterns=["zillow", "jane"])

    assert score_lead_source("jane@zillow.com", "", "", source) == 0.4


def test_rule_below_min_confidence_contributes_nothing() -> None:
    rule = _rule(subject_keywords=["offer", "showing"], min_confidence=0.8)

    assert score_detection_rule("a@b.com", "Offer after showing", "", rule) == 0.0


def test_rule_meeting_min_confidence_keeps_its_score() -> None:
    rule = _rule(subject_keywords=["buy"], sender_patterns=["*@example.com"], min_confidence=0.5)

    assert score_detection_rule("bob@example.com", "Want to buy", "", rule) == 0.5


def test_rule_counts_every_matching_keyword() -> None:
    rule = _rule(subject_keywords=["showing", "tour"], body_keywords=["schedule"], min_confidence=0.5)

    assert score_detection_rule("a@b.com", "Showing and tour", "please schedule", rule) == 0.8


def test_score_email_tracks_source_and_rule_independently() -> None:
    source = LeadSource(id="s", name="Realtor", domain_patterns=["realtor.com"])
    rule = _rule("Showing", subject_keywords=["showing", "tour"], body_keywords=["schedule"])

    result = score_email(
        "agent@realtor.com",
        "Showing and tour",
        "please schedule",
        [source],
        [rule],
    )

    assert result.source_score == 0.3
    assert result.rule_score == 0.8
    assert result.confidence == 0.8
    assert result.source is source
    assert result.rule is rule
    assert result.reasons == [
        "Matched lead source: Realtor",
        "Matched detection rule: Showing",
        "High confidence score: 80.0%",
    ]


def test_score_email_first_of_equal_rules_wins() -> None:
    first = _rule("First", subject_keywords=["showing"], body_keywords=["tour"])
    second = _rule("Second", subject_keywords=["showing"], body_keywords=["tour"])

    result = score_email("a@b.com", "showing", "tour", [], [first, second])

    assert result.rule is first


def test_threshold_boundary_is_inclusive() -> None:
    source = LeadSource(id="s", name="Site", domain_patterns=["site.com"], keywords=["listing"])

    score = score_lead_source("a@site.com", "listing", "listing", source)

    assert score == 0.6
    assert is_lead_score(score, LEAD_THRESHOLD)
    assert not is_lead_score(0.59, LEAD_THRESHOLD)


def test_score_email_without_matches_is_zero() -> None:
    result = score_email("noreply@marketing.com", "Newsletter", "Deals", [], [])

    assert result.confidence == 0.0
    assert result.reasons == ["Low confidence score: 0.0%"]


def test_rule_score_above_one_is_clamped_and_passes_threshold() -> None:
    rule = _rule(subject_keywords=["a", "b", "c", "d"], min_confidence=0.9)

    assert score_detection_rule("x@y.com", "a b c d", "", rule) == 1.0
