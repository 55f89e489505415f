import pytest

from lead_intake.models import DetectionConditions, LeadDetectionRule, LeadSource
from lead_intake.registry import StaticRegistry
from lead_intake.store import InMemoryStore


@pytest.fixture()
def zillow_source() -> LeadSource:
    return LeadSource(
        id="src-zillow",
        name="Zillow",
        domain_patterns=["zillow.com"],
        keywords=["lead", "inquiry"],
    )


@pytest.fixture()
def showing_rule() -> LeadDetectionRule:
    return LeadDetectionRule(
        id="rule-showing",
        name="Showing request",
        conditions=DetectionConditions(
            subject_keywords=["showing", "tour"],
            body_keywords=["schedule"],
            min_confidence=0.5,
        ),
        confidence_score=0.9,
    )


@pytest.fixture()
def registry(zillow_source, showing_rule) -> StaticRegistry:
    return StaticRegistry([zillow_source], [showing_rule])


@pytest.fixture()
def store() -> InMemoryStore:
    return InMemoryStore(users=[{"id": "admin-1", "role": "admin", "email": "admin@agency.test"}])


@pytest.fixture()
def jane_email() -> dict:
    return {
        "from": "Jane Doe <jane@zillow.com>",
        "subject": "New lead inquiry",
        "body": "Hello, I'm interested in a 3 bedroom, 2 bathroom house, budget $500,000 - $650,000.",
        "date": "2024-05-01T09:30:00Z",
        "email_id": "msg-1",
    }
