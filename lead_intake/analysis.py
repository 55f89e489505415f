"""Email analysis and lead extraction."""
from __future__ import annotations

import logging
import re
from concurrent.futures import ThreadPoolExecutor
from typing import Any, Mapping, Optional, Tuple, Union

from .extractors import (
    extract_contact_data,
    extract_emails,
    extract_location_preferences,
    extract_phone_numbers,
    extract_price_range,
    extract_property_address,
    extract_property_details,
    extract_property_type,
    extract_timeline,
)
from .models import (
    EmailAnalysisResult,
    EmailMessage,
    ExtractedContactData,
    LeadData,
    LeadExtractionResult,
)
from .registry import RegistryProtocol
from .scoring import LEAD_THRESHOLD, is_lead_score, score_email

LOGGER = logging.getLogger(__name__)

UNKNOWN_NAME = "Unknown"
FALLBACK_LEAD_SOURCE = "Email"
LEAD_MESSAGE_LENGTH = 500
NOT_A_LEAD_ERROR = "Email does not appear to be a lead"

EmailLike = Union[EmailMessage, Mapping[str, Any]]


def coerce_email(email: EmailLike) -> EmailMessage:
    if isinstance(email, EmailMessage):
        return email
    return EmailMessage.from_mapping(email)


def parse_name(name: Optional[str]) -> Tuple[str, str]:
    """Split a display name into first and last name.

    Angle-bracket addresses and quotes are removed first. The first token is the
    first name and the remainder is the last name; either falls back to
    ``"Unknown"``.
    """

    cleaned = re.sub(r"<[^>]*>", " ", name or "")
    cleaned = re.sub(r"[<>\"']", "", cleaned).strip()
    parts = cleaned.split()
    first_name = parts[0] if parts else UNKNOWN_NAME
    last_name = " ".join(parts[1:]) or UNKNOWN_NAME
    return first_name, last_name


def _fetch_registry(registry: RegistryProtocol):
    with ThreadPoolExecutor(max_workers=2) as executor:
        sources_future = executor.submit(registry.get_active_lead_sources)
        rules_future = executor.submit(registry.get_active_detection_rules)
        return sources_future.result(), rules_future.result()


def analyze_email(
    email: EmailLike,
    registry: RegistryProtocol,
    *,
    threshold: float = LEAD_THRESHOLD,
) -> EmailAnalysisResult:
    """Score an email against the registry and extract its contact fields.

    Never raises: any failure produces a zero-confidence, non-lead result.
    """

    try:
        message = coerce_email(email)
        sources, rules = _fetch_registry(registry)
        score = score_email(message.sender, message.subject, message.body, sources, rules, threshold=threshold)
        extracted = extract_contact_data(message.sender, message.subject, message.body)
        confidence = score.confidence
        result = EmailAnalysisResult(
            is_lead=is_lead_score(confidence, threshold),
            confidence_score=confidence,
            extracted_data=extracted,
            reasons=score.reasons,
            detected_source=score.source,
            detected_rule=score.rule,
        )
        LOGGER.debug(
            "Analyzed email from %s: is_lead=%s confidence=%.3f reasons=%s",
            message.sender,
            result.is_lead,
            confidence,
            result.reasons,
        )
        return result
    except Exception:
        LOGGER.exception("Error during email analysis")
        return EmailAnalysisResult(
            is_lead=False,
            confidence_score=0.0,
            extracted_data=ExtractedContactData(),
            reasons=["Error during analysis"],
        )


def extract_lead_data(
    email: EmailLike,
    registry: RegistryProtocol,
    *,
    analysis: Optional[EmailAnalysisResult] = None,
    threshold: float = LEAD_THRESHOLD,
) -> LeadExtractionResult:
    """Turn a positive analysis into a normalized :class:`LeadData` record."""

    try:
        message = coerce_email(email)
        if analysis is None:
            analysis = analyze_email(message, registry, threshold=threshold)

        if not analysis.is_lead:
            return LeadExtractionResult(success=False, error=NOT_A_LEAD_ERROR, analysis_result=analysis)

        extracted = analysis.extracted_data
        source = analysis.detected_source
        subject, body = message.subject, message.body
        first_name, last_name = parse_name(extracted.name or message.sender)

        lead_data = LeadData(
            first_name=first_name,
            last_name=last_name,
            email=extract_emails(body, message.sender),
            phone=extract_phone_numbers(body),
            company=extracted.company or None,
            position=extracted.position or None,
            message=extracted.message or body[:LEAD_MESSAGE_LENGTH],
            property_address=extract_property_address(subject, body) or None,
            property_details=extract_property_details(subject, body) or None,
            price_range=extract_price_range(subject, body),
            property_type=extract_property_type(subject, body),
            location_preferences=extract_location_preferences(subject, body),
            timeline=extract_timeline(subject, body),
            lead_source=source.name if source else FALLBACK_LEAD_SOURCE,
            lead_source_id=source.id if source else None,
            confidence_score=analysis.confidence_score,
        )
        return LeadExtractionResult(success=True, lead_data=lead_data, analysis_result=analysis)
    except Exception as exc:
        LOGGER.exception("Error extracting lead data")
        return LeadExtractionResult(success=False, error=str(exc) or "Unknown error", analysis_result=analysis)


__all__ = [
    "UNKNOWN_NAME",
    "FALLBACK_LEAD_SOURCE",
    "NOT_A_LEAD_ERROR",
    "coerce_email",
    "parse_name",
    "analyze_email",
    "extract_lead_data",
]
