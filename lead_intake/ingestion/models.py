"""Data models used by the spreadsheet ingestion utilities."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from ..models import EmailAnalysisResult, EmailMessage, LeadData


@dataclass(slots=True)
class AnalyzedEmail:
    """An email paired with its analysis and, for leads, the extracted record."""

    message: EmailMessage
    analysis: EmailAnalysisResult
    lead: Optional[LeadData] = None


__all__ = ["AnalyzedEmail"]
