"""Batch processing of an inbox with processed-email bookkeeping."""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Iterable, List

from ..analysis import EmailLike, coerce_email
from ..exceptions import StoreError
from ..models import EmailMessage, EmailProcessingResult
from ..store import LeadStore
from .service import LeadIngestionService

LOGGER = logging.getLogger(__name__)


@dataclass
class InboxRunSummary:
    processed: int = 0
    created: int = 0
    updated: int = 0
    skipped: int = 0
    failed: int = 0
    messages: List[EmailMessage] = field(default_factory=list)
    results: List[EmailProcessingResult] = field(default_factory=list)


class InboxProcessor:
    """Feeds emails through :class:`LeadIngestionService` exactly once each.

    Emails carrying an ``email_id`` already marked processed are skipped. Every
    other email with an id is marked processed after the attempt, whether it
    produced a lead, was rejected, or failed, so it is never retried.
    """

    def __init__(self, service: LeadIngestionService, store: LeadStore, user_id: str) -> None:
        self._service = service
        self._store = store
        self._user_id = user_id

    def process(self, emails: Iterable[EmailLike]) -> InboxRunSummary:
        summary = InboxRunSummary()
        for email in emails:
            message = coerce_email(email)
            if message.email_id and self._already_processed(message.email_id):
                LOGGER.debug("Skipping already processed email %s", message.email_id)
                summary.skipped += 1
                continue

            result = self._process_one(message)
            summary.processed += 1
            summary.messages.append(message)
            summary.results.append(result)
            if result.success and result.created:
                summary.created += 1
            elif result.success:
                summary.updated += 1
            else:
                summary.failed += 1

            if message.email_id:
                self._mark_processed(message, result)

        LOGGER.info(
            "Inbox run finished: %s processed, %s created, %s updated, %s skipped, %s not ingested",
            summary.processed,
            summary.created,
            summary.updated,
            summary.skipped,
            summary.failed,
        )
        return summary

    def _process_one(self, message: EmailMessage) -> EmailProcessingResult:
        try:
            return self._service.process_email_as_lead(message, self._user_id)
        except Exception as exc:
            LOGGER.exception("Error processing email %s", message.email_id)
            return EmailProcessingResult(
                success=False,
                message="Internal error while processing email",
                error="internal_error",
                details=str(exc),
            )

    def _already_processed(self, email_id: str) -> bool:
        try:
            return self._store.is_email_processed(email_id)
        except StoreError as exc:
            LOGGER.warning("Could not check processed state for email %s: %s", email_id, exc)
            return False

    def _mark_processed(self, message: EmailMessage, result: EmailProcessingResult) -> None:
        try:
            self._store.mark_email_processed(
                {
                    "email_id": message.email_id,
                    "user_id": self._user_id,
                    "person_id": result.person_id,
                    "success": result.success,
                    "error": result.error,
                }
            )
        except StoreError as exc:
            LOGGER.warning("Could not mark email %s as processed: %s", message.email_id, exc)


__all__ = ["InboxProcessor", "InboxRunSummary"]
