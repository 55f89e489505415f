"""Ingestion orchestrator that turns a lead email into a new or merged person record."""
from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone
from typing import Any, Callable, Dict, List, Mapping, Optional, Union

from ..analysis import NOT_A_LEAD_ERROR, UNKNOWN_NAME, coerce_email, extract_lead_data
from ..config import ProcessingSettings
from ..exceptions import StoreError
from ..merge import build_person_update, pick_name_match
from ..models import (
    AnalysisSummary,
    EmailAnalysisResult,
    EmailMessage,
    EmailProcessingResult,
    LeadData,
)
from ..registry import LeadRegistry, RegistryProtocol
from ..store import LeadStore, Row

LOGGER = logging.getLogger(__name__)

NEW_EMAIL_MARKER = "--- NEW EMAIL ---"
NOTES_MESSAGE_LENGTH = 500
LEAD_STATUS_STAGING = "staging"
CLIENT_TYPE_LEAD = "lead"

Clock = Callable[[], datetime]
EmailInput = Union[EmailMessage, Mapping[str, Any]]


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


def build_looking_for(lead: LeadData) -> Optional[str]:
    parts = [
        lead.property_details,
        lead.price_range,
        lead.location_preferences,
        lead.property_type,
        lead.timeline,
    ]
    return " | ".join(part for part in parts if part) or None


def build_lead_notes(message: EmailMessage, lead: LeadData, received_at: datetime) -> str:
    """Render the structured note block stored on the person for one email."""

    lines: List[str] = [
        f"Lead captured from email: {message.sender}",
        f"Subject: {message.subject}",
        f"Date: {message.date or received_at.isoformat()}",
        f"Lead Source: {lead.lead_source} (Confidence: {lead.confidence_score * 100:.1f}%)",
    ]
    optional = (
        ("Company", lead.company),
        ("Position", lead.position),
        ("Property Address", lead.property_address),
        ("Property Details", lead.property_details),
        ("Price Range", lead.price_range),
        ("Property Type", lead.property_type),
        ("Location Preferences", lead.location_preferences),
        ("Timeline", lead.timeline),
    )
    lines.extend(f"{label}: {value}" for label, value in optional if value)
    if lead.message:
        excerpt = lead.message.strip()
        if len(excerpt) > NOTES_MESSAGE_LENGTH:
            excerpt = excerpt[:NOTES_MESSAGE_LENGTH].rstrip() + "..."
        lines.append(f"Message: {excerpt}")
    return "\n".join(lines)


def _summary(analysis: Optional[EmailAnalysisResult], lead: Optional[LeadData] = None) -> Optional[AnalysisSummary]:
    if analysis is None:
        return None
    return AnalysisSummary(
        confidence=analysis.confidence_score,
        reasons=list(analysis.reasons),
        source=lead.lead_source if lead else (analysis.source_name or "Unknown"),
        extracted_fields=lead.extracted_fields() if lead else [],
    )


def _failure(message: str, error: str, *, details: Optional[str] = None, **extra: Any) -> EmailProcessingResult:
    return EmailProcessingResult(success=False, message=message, error=error, details=details, **extra)


class LeadIngestionService:
    """Creates staging leads or merges emails into existing people.

    Every call returns an :class:`EmailProcessingResult`; nothing is raised to
    the caller, so the caller can always decide whether to mark the source
    email as processed.
    """

    def __init__(
        self,
        store: LeadStore,
        registry: Optional[RegistryProtocol] = None,
        *,
        settings: Optional[ProcessingSettings] = None,
        clock: Optional[Clock] = None,
    ) -> None:
        self._store = store
        self._registry = registry or LeadRegistry(store)
        self._settings = settings or ProcessingSettings()
        self._clock = clock or _utc_now

    @property
    def settings(self) -> ProcessingSettings:
        return self._settings

    def process_email_as_lead(self, email_data: Optional[EmailInput], user_id: Optional[str]) -> EmailProcessingResult:
        validation_error = self._validate(email_data, user_id)
        if validation_error:
            LOGGER.info("Rejected email: %s", validation_error)
            return _failure(validation_error, "validation_error")

        try:
            return self._process(coerce_email(email_data), str(user_id))
        except Exception as exc:
            LOGGER.exception("Unexpected error while processing email as lead")
            return _failure("Internal error while processing email", "internal_error", details=str(exc))

    # ------------------------------------------------------------------
    # Steps
    # ------------------------------------------------------------------
    @staticmethod
    def _validate(email_data: Optional[EmailInput], user_id: Optional[str]) -> Optional[str]:
        if not email_data or not user_id:
            return "Email data and user ID are required"
        if isinstance(email_data, EmailMessage):
            values = (email_data.sender, email_data.subject, email_data.body)
        else:
            sender = email_data.get("from", email_data.get("sender"))
            values = (sender, email_data.get("subject"), email_data.get("body"))
        if not all(value and str(value).strip() for value in values):
            return "Email from, subject, and body are required"
        return None

    def _process(self, message: EmailMessage, user_id: str) -> EmailProcessingResult:
        extraction = extract_lead_data(message, self._registry, threshold=self._settings.lead_threshold)
        analysis = extraction.analysis_result

        if not extraction.success or extraction.lead_data is None:
            error = "not_a_lead" if extraction.error == NOT_A_LEAD_ERROR else "extraction_failed"
            LOGGER.info("Email from %s not ingested: %s", message.sender, extraction.error)
            return _failure(
                extraction.error or "Failed to extract lead data from email",
                error,
                details="The email content could not be parsed into a lead",
                analysis=_summary(analysis),
            )

        lead = extraction.lead_data
        if (
            lead.first_name == UNKNOWN_NAME
            and not lead.email
            and lead.confidence_score < self._settings.min_signal_confidence
        ):
            LOGGER.info("Email from %s has too little lead information", message.sender)
            return _failure(
                "Insufficient lead information extracted from email",
                "insufficient_lead_information",
                details="Neither a name nor an email address could be extracted",
                analysis=_summary(analysis, lead),
            )

        try:
            existing = self._find_existing_person(lead)
        except StoreError as exc:
            LOGGER.error("Error checking for existing person: %s", exc)
            return _failure("Error checking for existing leads", "store_error", details=str(exc))

        if existing is not None:
            return self._merge_into_existing(existing, message, lead, analysis, user_id)
        return self._create_person(message, lead, analysis)

    def _find_existing_person(self, lead: LeadData) -> Optional[Row]:
        for address in lead.email:
            matches = self._store.find_people_by_email(address)
            if matches:
                LOGGER.info("Existing person %s matched by email %s", matches[0].get("id"), address)
                return matches[0]

        # Sentinel names would collapse every unnamed lead into one person.
        if UNKNOWN_NAME in (lead.first_name, lead.last_name):
            return None

        candidates = self._store.find_people_by_name(
            lead.first_name, lead.last_name, limit=self._settings.name_match_limit
        )
        match = pick_name_match(candidates, lead)
        if match is not None:
            LOGGER.info("Existing person %s matched by name %s", match.get("id"), lead.full_name)
            return dict(match)
        return None

    def _merge_into_existing(
        self,
        person: Row,
        message: EmailMessage,
        lead: LeadData,
        analysis: Optional[EmailAnalysisResult],
        user_id: str,
    ) -> EmailProcessingResult:
        now = self._clock()
        changes: Dict[str, Any] = build_person_update(person, lead)
        block = build_lead_notes(message, lead, now)
        existing_notes = (person.get("notes") or "").rstrip()
        changes["notes"] = f"{existing_notes}\n\n{NEW_EMAIL_MARKER}\n{block}" if existing_notes else block
        changes["last_interaction"] = now.isoformat()
        changes["next_follow_up"] = (now + timedelta(hours=self._settings.follow_up_hours)).isoformat()

        try:
            updated = self._store.update_person(person["id"], changes)
        except StoreError as exc:
            LOGGER.error("Error updating person %s: %s", person.get("id"), exc)
            return _failure("Failed to update existing lead record", "store_error", details=str(exc))

        self._log_activity(
            person_id=person["id"],
            activity_type="updated",
            description=f"New email from {lead.lead_source} merged into existing lead",
            created_by=user_id,
        )
        LOGGER.info("Merged email from %s into person %s", message.sender, person["id"])
        return EmailProcessingResult(
            success=True,
            message="Existing lead updated with new email",
            person=updated,
            analysis=_summary(analysis, lead),
        )

    def _create_person(
        self,
        message: EmailMessage,
        lead: LeadData,
        analysis: Optional[EmailAnalysisResult],
    ) -> EmailProcessingResult:
        try:
            admin = self._store.find_admin_user()
        except StoreError as exc:
            LOGGER.error("Error finding admin user: %s", exc)
            return _failure("No admin user found for lead assignment", "no_admin_user", details=str(exc))
        if not admin:
            LOGGER.error("No admin user available to receive staging leads")
            return _failure(
                "No admin user found for lead assignment",
                "no_admin_user",
                details="Please ensure there is at least one admin user in the system",
            )

        now = self._clock()
        row: Row = {
            "first_name": lead.first_name,
            "last_name": lead.last_name,
            "email": list(lead.email),
            "phone": list(lead.phone),
            "client_type": CLIENT_TYPE_LEAD,
            "lead_source": lead.lead_source,
            "lead_source_id": lead.lead_source_id,
            "lead_status": LEAD_STATUS_STAGING,
            "assigned_to": admin["id"],
            "notes": build_lead_notes(message, lead, now),
            "company": lead.company,
            "position": lead.position,
            "address": lead.property_address,
            "looking_for": build_looking_for(lead),
            "lists": [],
            "last_interaction": now.isoformat(),
            "next_follow_up": (now + timedelta(hours=self._settings.follow_up_hours)).isoformat(),
        }

        try:
            person = self._store.insert_person(row)
        except StoreError as exc:
            LOGGER.error("Error creating person: %s", exc)
            return _failure("Failed to create lead record", "store_error", details=str(exc))

        self._log_activity(
            person_id=person["id"],
            activity_type="created",
            description=f"Lead detected from {lead.lead_source} email and placed in staging",
            created_by=admin["id"],
        )
        LOGGER.info("Created staging lead %s from %s", person["id"], message.sender)
        return EmailProcessingResult(
            success=True,
            message="Lead processed successfully",
            person=person,
            analysis=_summary(analysis, lead),
            created=True,
        )

    def _log_activity(self, *, person_id: str, activity_type: str, description: str, created_by: str) -> None:
        try:
            self._store.insert_activity(
                {
                    "person_id": person_id,
                    "type": activity_type,
                    "description": description,
                    "created_by": created_by,
                    "created_at": self._clock().isoformat(),
                }
            )
        except Exception:
            LOGGER.warning("Failed to record %s activity for person %s", activity_type, person_id, exc_info=True)


def process_email_as_lead(
    email_data: Optional[EmailInput],
    user_id: Optional[str],
    *,
    store: LeadStore,
    registry: Optional[RegistryProtocol] = None,
    settings: Optional[ProcessingSettings] = None,
) -> EmailProcessingResult:
    """Functional entry point wrapping :class:`LeadIngestionService`."""

    return LeadIngestionService(store, registry, settings=settings).process_email_as_lead(email_data, user_id)


__all__ = [
    "NEW_EMAIL_MARKER",
    "LeadIngestionService",
    "build_lead_notes",
    "build_looking_for",
    "process_email_as_lead",
]
