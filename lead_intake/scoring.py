"""Confidence scoring of an email against lead sources and detection rules."""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import List, Optional, Sequence

from .models import LeadDetectionRule, LeadSource
from .patterns import matches_pattern

LOGGER = logging.getLogger(__name__)

LEAD_THRESHOLD = 0.6

SOURCE_EMAIL_WEIGHT = 0.4
SOURCE_DOMAIN_WEIGHT = 0.3
SOURCE_SUBJECT_KEYWORD_WEIGHT = 0.2
SOURCE_BODY_KEYWORD_WEIGHT = 0.1

RULE_SUBJECT_KEYWORD_WEIGHT = 0.3
RULE_BODY_KEYWORD_WEIGHT = 0.2
RULE_SENDER_WEIGHT = 0.2
RULE_DOMAIN_WEIGHT = 0.2


def _clamp(value: float) -> float:
    # Rounded so sums like 0.1 * 6 compare cleanly against thresholds.
    return round(max(0.0, min(value, 1.0)), 6)


@dataclass
class ConfidenceScore:
    """Best source and best rule found for one email, scored independently."""

    source_score: float = 0.0
    rule_score: float = 0.0
    source: Optional[LeadSource] = None
    rule: Optional[LeadDetectionRule] = None
    reasons: List[str] = field(default_factory=list)

    @property
    def confidence(self) -> float:
        return max(self.source_score, self.rule_score)


def score_lead_source(sender: str, subject: str, body: str, source: LeadSource) -> float:
    """Score how strongly an email resembles mail from ``source``."""

    confidence = 0.0
    subject_lower = (subject or "").lower()
    body_lower = (body or "").lower()

    if any(matches_pattern(sender, pattern) for pattern in source.email_patterns):
        confidence += SOURCE_EMAIL_WEIGHT
    if any(matches_pattern(sender, pattern) for pattern in source.domain_patterns):
        confidence += SOURCE_DOMAIN_WEIGHT

    for keyword in source.keywords:
        keyword_lower = keyword.lower()
        if keyword_lower in subject_lower:
            confidence += SOURCE_SUBJECT_KEYWORD_WEIGHT
        if keyword_lower in body_lower:
            confidence += SOURCE_BODY_KEYWORD_WEIGHT

    return _clamp(confidence)


def score_detection_rule(sender: str, subject: str, body: str, rule: LeadDetectionRule) -> float:
    """Score an email against a rule; scores under the rule's own threshold count as zero."""

    conditions = rule.conditions
    subject_lower = (subject or "").lower()
    body_lower = (body or "").lower()

    confidence = 0.0
    confidence += RULE_SUBJECT_KEYWORD_WEIGHT * sum(
        1 for keyword in conditions.subject_keywords if keyword.lower() in subject_lower
    )
    confidence += RULE_BODY_KEYWORD_WEIGHT * sum(
        1 for keyword in conditions.body_keywords if keyword.lower() in body_lower
    )
    confidence += RULE_SENDER_WEIGHT * sum(
        1 for pattern in conditions.sender_patterns if matches_pattern(sender, pattern)
    )
    confidence += RULE_DOMAIN_WEIGHT * sum(
        1 for pattern in conditions.domain_patterns if matches_pattern(sender, pattern)
    )

    confidence = _clamp(confidence)
    if confidence < conditions.min_confidence:
        return 0.0
    return confidence


def score_email(
    sender: str,
    subject: str,
    body: str,
    sources: Sequence[LeadSource],
    rules: Sequence[LeadDetectionRule],
    *,
    threshold: float = LEAD_THRESHOLD,
) -> ConfidenceScore:
    """Find the best-scoring source and the best-scoring rule for an email."""

    result = ConfidenceScore()

    for source in sources:
        score = score_lead_source(sender, subject, body, source)
        LOGGER.debug("Lead source %s scored %.2f", source.name, score)
        if score > result.source_score:
            result.source_score = score
            result.source = source
            result.reasons.append(f"Matched lead source: {source.name}")

    for rule in rules:
        score = score_detection_rule(sender, subject, body, rule)
        LOGGER.debug("Detection rule %s scored %.2f", rule.name, score)
        if score > result.rule_score:
            result.rule_score = score
            result.rule = rule
            result.reasons.append(f"Matched detection rule: {rule.name}")

    label = "High" if is_lead_score(result.confidence, threshold) else "Low"
    result.reasons.append(f"{label} confidence score: {result.confidence * 100:.1f}%")
    return result


def is_lead_score(confidence: float, threshold: float = LEAD_THRESHOLD) -> bool:
    return confidence >= threshold


__all__ = [
    "LEAD_THRESHOLD",
    "ConfidenceScore",
    "score_lead_source",
    "score_detection_rule",
    "score_email",
    "is_lead_score",
]
