"""Workflow orchestration for turning inbound emails into people records."""

from .inbox import InboxProcessor, InboxRunSummary
from .service import LeadIngestionService, process_email_as_lead

__all__ = ["InboxProcessor", "InboxRunSummary", "LeadIngestionService", "process_email_as_lead"]
