"""Lead detection and ingestion for inbound real-estate emails."""

from .analysis import analyze_email, extract_lead_data, parse_name
from .exceptions import ConfigurationError, LeadIntakeError, StoreError, UnsupportedFileTypeError
from .models import (
    AnalysisSummary,
    DetectionConditions,
    EmailAnalysisResult,
    EmailMessage,
    EmailProcessingResult,
    ExtractedContactData,
    LeadData,
    LeadDetectionRule,
    LeadExtractionResult,
    LeadSource,
)
from .orchestrator import InboxProcessor, LeadIngestionService, process_email_as_lead
from .patterns import matches_pattern
from .registry import LeadRegistry, StaticRegistry
from .store import InMemoryStore, LeadStore

__all__ = [
    "AnalysisSummary",
    "ConfigurationError",
    "DetectionConditions",
    "EmailAnalysisResult",
    "EmailMessage",
    "EmailProcessingResult",
    "ExtractedContactData",
    "InMemoryStore",
    "InboxProcessor",
    "LeadData",
    "LeadDetectionRule",
    "LeadExtractionResult",
    "LeadIngestionService",
    "LeadIntakeError",
    "LeadRegistry",
    "LeadSource",
    "LeadStore",
    "StaticRegistry",
    "StoreError",
    "UnsupportedFileTypeError",
    "analyze_email",
    "extract_lead_data",
    "matches_pattern",
    "parse_name",
    "process_email_as_lead",
]
