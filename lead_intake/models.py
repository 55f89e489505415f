"""Data models for lead sources, detection rules, email analysis and lead records."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional

from .exceptions import ConfigurationError

DEFAULT_MIN_CONFIDENCE = 0.5


def _string_list(record: Mapping[str, Any], key: str, owner: str) -> List[str]:
    value = record.get(key)
    if value is None:
        return []
    if isinstance(value, str) or not isinstance(value, (list, tuple)):
        raise ConfigurationError(f"{owner}: '{key}' must be a list of strings")
    return [str(item) for item in value if item is not None and str(item) != ""]


def _as_bool(value: Any, default: bool) -> bool:
    if value is None:
        return default
    if isinstance(value, str):
        return value.strip().lower() in {"1", "true", "yes", "y", "on"}
    return bool(value)


# --- Registry Models ---

@dataclass
class LeadSource:
    """A named set of sender, domain and keyword patterns identifying a lead origin."""

    id: str
    name: str
    email_patterns: List[str] = field(default_factory=list)
    domain_patterns: List[str] = field(default_factory=list)
    keywords: List[str] = field(default_factory=list)
    is_default: bool = False
    is_active: bool = True
    description: Optional[str] = None

    @classmethod
    def from_record(cls, record: Mapping[str, Any]) -> "LeadSource":
        """Build a source from a store row or configuration entry."""

        name = record.get("name")
        if not name:
            raise ConfigurationError("Lead source record is missing a 'name'")
        owner = f"Lead source '{name}'"
        return cls(
            id=str(record.get("id") or name),
            name=str(name),
            email_patterns=_string_list(record, "email_patterns", owner),
            domain_patterns=_string_list(record, "domain_patterns", owner),
            keywords=_string_list(record, "keywords", owner),
            is_default=_as_bool(record.get("is_default"), False),
            is_active=_as_bool(record.get("is_active"), True),
            description=record.get("description"),
        )


@dataclass
class DetectionConditions:
    """Typed condition set attached to a :class:`LeadDetectionRule`."""

    subject_keywords: List[str] = field(default_factory=list)
    body_keywords: List[str] = field(default_factory=list)
    sender_patterns: List[str] = field(default_factory=list)
    domain_patterns: List[str] = field(default_factory=list)
    min_confidence: float = DEFAULT_MIN_CONFIDENCE
    # Stored for round-tripping; not used when scoring.
    required_fields: List[str] = field(default_factory=list)
    exclude_patterns: List[str] = field(default_factory=list)

    @classmethod
    def from_record(cls, record: Optional[Mapping[str, Any]], owner: str = "Detection rule") -> "DetectionConditions":
        if record is None:
            return cls()
        if not isinstance(record, Mapping):
            raise ConfigurationError(f"{owner}: 'conditions' must be a mapping")

        raw_min = record.get("min_confidence")
        # Zero counts as unset.
        if raw_min in (None, "", 0):
            min_confidence = DEFAULT_MIN_CONFIDENCE
        else:
            try:
                min_confidence = float(raw_min)
            except (TypeError, ValueError) as exc:
                raise ConfigurationError(f"{owner}: 'min_confidence' must be a number") from exc
        if not 0.0 <= min_confidence <= 1.0:
            raise ConfigurationError(f"{owner}: 'min_confidence' must be between 0 and 1")

        return cls(
            subject_keywords=_string_list(record, "subject_keywords", owner),
            body_keywords=_string_list(record, "body_keywords", owner),
            sender_patterns=_string_list(record, "sender_patterns", owner),
            domain_patterns=_string_list(record, "domain_patterns", owner),
            min_confidence=min_confidence,
            required_fields=_string_list(record, "required_fields", owner),
            exclude_patterns=_string_list(record, "exclude_patterns", owner),
        )


@dataclass
class LeadDetectionRule:
    """A structured condition set with its own minimum-confidence gate."""

    id: str
    name: str
    conditions: DetectionConditions = field(default_factory=DetectionConditions)
    confidence_score: float = 0.0
    is_active: bool = True
    description: Optional[str] = None

    @classmethod
    def from_record(cls, record: Mapping[str, Any]) -> "LeadDetectionRule":
        name = record.get("name")
        if not name:
            raise ConfigurationError("Detection rule record is missing a 'name'")
        owner = f"Detection rule '{name}'"
        try:
            priority = float(record.get("confidence_score") or 0.0)
        except (TypeError, ValueError) as exc:
            raise ConfigurationError(f"{owner}: 'confidence_score' must be a number") from exc
        return cls(
            id=str(record.get("id") or name),
            name=str(name),
            conditions=DetectionConditions.from_record(record.get("conditions"), owner),
            confidence_score=priority,
            is_active=_as_bool(record.get("is_active"), True),
            description=record.get("description"),
        )


# --- Email Models ---

@dataclass(slots=True)
class EmailMessage:
    """An inbound email as handed over by the transport layer."""

    sender: str
    subject: str
    body: str
    to: Optional[str] = None
    date: Optional[str] = None
    email_id: Optional[str] = None

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "EmailMessage":
        """Accept the ``{"from", "subject", "body", ...}`` shape used by callers."""

        sender = data.get("from", data.get("sender"))
        return cls(
            sender=sender or "",
            subject=data.get("subject") or "",
            body=data.get("body") or "",
            to=data.get("to"),
            date=data.get("date"),
            email_id=data.get("email_id") or data.get("id"),
        )


@dataclass
class ExtractedContactData:
    """Raw fields pulled out of an email during analysis."""

    name: Optional[str] = None
    email: List[str] = field(default_factory=list)
    phone: List[str] = field(default_factory=list)
    company: Optional[str] = None
    position: Optional[str] = None
    message: Optional[str] = None
    property_address: Optional[str] = None
    property_details: Optional[str] = None


@dataclass
class EmailAnalysisResult:
    """Outcome of scoring one email against the registry."""

    is_lead: bool
    confidence_score: float
    extracted_data: ExtractedContactData = field(default_factory=ExtractedContactData)
    reasons: List[str] = field(default_factory=list)
    detected_source: Optional[LeadSource] = None
    detected_rule: Optional[LeadDetectionRule] = None

    @property
    def source_name(self) -> Optional[str]:
        return self.detected_source.name if self.detected_source else None

    @property
    def rule_name(self) -> Optional[str]:
        return self.detected_rule.name if self.detected_rule else None


# --- Lead Models ---

_LEAD_FIELD_ORDER = (
    "first_name",
    "last_name",
    "email",
    "phone",
    "company",
    "position",
    "message",
    "property_address",
    "property_details",
    "price_range",
    "property_type",
    "location_preferences",
    "timeline",
)


@dataclass
class LeadData:
    """Normalized lead record produced from a positive analysis."""

    first_name: str
    last_name: str
    lead_source: str
    confidence_score: float
    email: List[str] = field(default_factory=list)
    phone: List[str] = field(default_factory=list)
    company: Optional[str] = None
    position: Optional[str] = None
    message: Optional[str] = None
    property_address: Optional[str] = None
    property_details: Optional[str] = None
    price_range: Optional[str] = None
    property_type: Optional[str] = None
    location_preferences: Optional[str] = None
    timeline: Optional[str] = None
    lead_source_id: Optional[str] = None

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()

    def extracted_fields(self) -> List[str]:
        """Return the names of the fields that carry a value."""

        return [name for name in _LEAD_FIELD_ORDER if getattr(self, name)]


@dataclass
class LeadExtractionResult:
    success: bool
    lead_data: Optional[LeadData] = None
    analysis_result: Optional[EmailAnalysisResult] = None
    error: Optional[str] = None


@dataclass
class AnalysisSummary:
    """Condensed analysis attached to processing results."""

    confidence: float
    reasons: List[str] = field(default_factory=list)
    source: str = "Unknown"
    extracted_fields: List[str] = field(default_factory=list)


@dataclass
class EmailProcessingResult:
    """Definitive outcome of ingesting one email; never raised, always returned."""

    success: bool
    message: str
    person: Optional[Dict[str, Any]] = None
    analysis: Optional[AnalysisSummary] = None
    error: Optional[str] = None
    details: Optional[str] = None
    created: bool = False

    @property
    def person_id(self) -> Optional[str]:
        if not self.person:
            return None
        person_id = self.person.get("id")
        return str(person_id) if person_id is not None else None


__all__ = [
    "DEFAULT_MIN_CONFIDENCE",
    "LeadSource",
    "DetectionConditions",
    "LeadDetectionRule",
    "EmailMessage",
    "ExtractedContactData",
    "EmailAnalysisResult",
    "LeadData",
    "LeadExtractionResult",
    "AnalysisSummary",
    "EmailProcessingResult",
]
