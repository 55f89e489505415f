from datetime import datetime, timedelta, timezone

from lead_intake.config import ProcessingSettings
from lead_intake.exceptions import StoreError
from lead_intake.models import EmailMessage, LeadSource
from lead_intake.orchestrator.service import NEW_EMAIL_MARKER, LeadIngestionService, process_email_as_lead
from lead_intake.registry import StaticRegistry
from lead_intake.store import InMemoryStore


FIXED_NOW = datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)


class UntouchableStore:
    """Fails the test if the service reaches for the store at all."""

    def __getattr__(self, name):
        raise AssertionError(f"store.{name} must not be called")


class FailingInsertStore(InMemoryStore):
    def insert_person(self, row):
        raise StoreError("disk full")


class FailingLookupStore(InMemoryStore):
    def find_people_by_email(self, address):
        raise StoreError("connection reset")


class FailingActivityStore(InMemoryStore):
    def insert_activity(self, row):
        raise StoreError("activities table missing")


def _service(store, registry, **settings) -> LeadIngestionService:
    return LeadIngestionService(
        store,
        registry,
        settings=ProcessingSettings(**settings),
        clock=lambda: FIXED_NOW,
    )


def test_first_email_creates_staging_lead(store, registry, jane_email) -> None:
    result = _service(store, registry).process_email_as_lead(jane_email, "user-1")

    assert result.success
    assert result.created
    assert result.message == "Lead processed successfully"
    person = result.person
    assert person["lead_status"] == "staging"
    assert person["client_type"] == "lead"
    assert person["assigned_to"] == "admin-1"
    assert person["email"] == ["jane@zillow.com"]
    assert person["lead_source"] == "Zillow"
    assert person["lead_source_id"] == "src-zillow"
    assert person["last_interaction"] == FIXED_NOW.isoformat()
    assert person["next_follow_up"] == (FIXED_NOW + timedelta(hours=24)).isoformat()
    assert "Subject: New lead inquiry" in person["notes"]
    assert "Confidence: 70.0%" in person["notes"]
    assert " | " in person["looking_for"]
    assert "$500,000 - $650,000" in person["looking_for"]

    assert result.analysis.source == "Zillow"
    assert result.analysis.confidence == 0.7
    assert "price_range" in result.analysis.extracted_fields
    assert [activity["type"] for activity in store.activities] == ["created"]
    assert store.activities[0]["created_by"] == "admin-1"


def test_second_email_from_same_address_merges(store, registry, jane_email) -> None:
    service = _service(store, registry)
    first = service.process_email_as_lead(jane_email, "user-1")

    follow_up = dict(jane_email, subject="Another lead inquiry", body="Can we see it this weekend?")
    second = service.process_email_as_lead(follow_up, "user-1")

    assert second.success
    assert not second.created
    assert second.message == "Existing lead updated with new email"
    assert second.person_id == first.person_id
    assert len(store.people) == 1
    notes = store.people[0]["notes"]
    assert notes.count(NEW_EMAIL_MARKER) == 1
    assert notes.index("Subject: New lead inquiry") < notes.index("Subject: Another lead inquiry")
    assert [activity["type"] for activity in store.activities] == ["created", "updated"]
    assert store.activities[1]["created_by"] == "user-1"


def test_merging_same_email_twice_keeps_contacts_stable(store, registry, jane_email) -> None:
    service = _service(store, registry)
    service.process_email_as_lead(jane_email, "user-1")
    service.process_email_as_lead(jane_email, "user-1")
    service.process_email_as_lead(jane_email, "user-1")

    assert len(store.people) == 1
    assert store.people[0]["email"] == ["jane@zillow.com"]
    assert store.people[0]["notes"].count(NEW_EMAIL_MARKER) == 2


def test_name_and_phone_match_merges_into_existing_person(registry) -> None:
    store = InMemoryStore(
        users=[{"id": "admin-1", "role": "admin"}],
        people=[
            {
                "id": "person-7",
                "first_name": "Jane",
                "last_name": "Doe",
                "email": ["old@example.com"],
                "phone": ["(555) 123-4567"],
            }
        ],
    )
    email = {
        "from": "Jane Doe <jane@zillow.com>",
        "subject": "New lead inquiry",
        "body": "Please call me at 555-123-4567 about the listing.",
    }

    result = _service(store, registry).process_email_as_lead(email, "user-1")

    assert result.success
    assert not result.created
    assert result.person_id == "person-7"
    assert store.people[0]["email"] == ["old@example.com", "jane@zillow.com"]
    assert store.people[0]["phone"] == ["(555) 123-4567"]


def test_missing_user_id_fails_validation_without_store_access(registry, jane_email) -> None:
    service = LeadIngestionService(UntouchableStore(), registry)

    result = service.process_email_as_lead(jane_email, None)

    assert not result.success
    assert result.error == "validation_error"
    assert result.message == "Email data and user ID are required"


def test_missing_body_fails_validation(registry, jane_email) -> None:
    service = LeadIngestionService(UntouchableStore(), registry)

    result = service.process_email_as_lead(dict(jane_email, body="   "), "user-1")

    assert result.error == "validation_error"
    assert result.message == "Email from, subject, and body are required"


def test_non_lead_email_is_rejected(store, registry) -> None:
    email = EmailMessage(sender="noreply@marketing.com", subject="Newsletter", body="Deals inside")

    result = _service(store, registry).process_email_as_lead(email, "user-1")

    assert not result.success
    assert result.error == "not_a_lead"
    assert result.analysis.confidence == 0.0
    assert store.people == []


def test_insufficient_information_is_rejected(store) -> None:
    registry = StaticRegistry([LeadSource(id="s", name="Site", keywords=["listing"])], [])
    email = {"from": "<>", "subject": "listing update", "body": "see attached"}

    result = _service(store, registry, lead_threshold=0.2).process_email_as_lead(email, "user-1")

    assert not result.success
    assert result.error == "insufficient_lead_information"
    assert result.message == "Insufficient lead information extracted from email"
    assert store.people == []


def test_missing_admin_user(registry, jane_email) -> None:
    store = InMemoryStore(users=[{"id": "agent-1", "role": "agent"}])

    result = _service(store, registry).process_email_as_lead(jane_email, "user-1")

    assert not result.success
    assert result.error == "no_admin_user"
    assert result.message == "No admin user found for lead assignment"
    assert store.people == []


def test_insert_failure_is_reported(registry, jane_email) -> None:
    store = FailingInsertStore(users=[{"id": "admin-1", "role": "admin"}])

    result = _service(store, registry).process_email_as_lead(jane_email, "user-1")

    assert not result.success
    assert result.error == "store_error"
    assert result.details == "disk full"


def test_lookup_failure_is_reported(registry, jane_email) -> None:
    store = FailingLookupStore(users=[{"id": "admin-1", "role": "admin"}])

    result = _service(store, registry).process_email_as_lead(jane_email, "user-1")

    assert not result.success
    assert result.error == "store_error"
    assert result.message == "Error checking for existing leads"


def test_activity_failure_does_not_fail_ingestion(registry, jane_email) -> None:
    store = FailingActivityStore(users=[{"id": "admin-1", "role": "admin"}])

    result = _service(store, registry).process_email_as_lead(jane_email, "user-1")

    assert result.success
    assert len(store.people) == 1


def test_functional_entry_point(store, registry, jane_email) -> None:
    result = process_email_as_lead(jane_email, "user-1", store=store, registry=registry)

    assert result.success
    assert result.created
