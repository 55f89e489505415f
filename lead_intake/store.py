"""Store interface consumed by the registry and ingestion orchestrator."""
from __future__ import annotations

import copy
import itertools
import logging
import threading
import uuid
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List, Optional, Protocol

from .exceptions import StoreError

LOGGER = logging.getLogger(__name__)

Row = Dict[str, Any]


class LeadStore(Protocol):
    """Narrow persistence contract; implementations raise :class:`StoreError` on failure."""

    def list_lead_sources(self) -> List[Row]:  # pragma: no cover - runtime protocol
        ...

    def list_detection_rules(self) -> List[Row]:  # pragma: no cover - runtime protocol
        ...

    def find_people_by_email(self, address: str) -> List[Row]:  # pragma: no cover - runtime protocol
        ...

    def find_people_by_name(self, first_name: str, last_name: str, limit: int = 5) -> List[Row]:  # pragma: no cover
        ...

    def find_admin_user(self) -> Optional[Row]:  # pragma: no cover - runtime protocol
        ...

    def insert_person(self, row: Row) -> Row:  # pragma: no cover - runtime protocol
        ...

    def update_person(self, person_id: str, changes: Row) -> Row:  # pragma: no cover - runtime protocol
        ...

    def insert_activity(self, row: Row) -> Row:  # pragma: no cover - runtime protocol
        ...

    def is_email_processed(self, email_id: str) -> bool:  # pragma: no cover - runtime protocol
        ...

    def mark_email_processed(self, row: Row) -> Row:  # pragma: no cover - runtime protocol
        ...


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


class InMemoryStore:
    """Dictionary backed :class:`LeadStore` used by the CLI and the test-suite."""

    def __init__(
        self,
        *,
        lead_sources: Optional[Iterable[Row]] = None,
        detection_rules: Optional[Iterable[Row]] = None,
        users: Optional[Iterable[Row]] = None,
        people: Optional[Iterable[Row]] = None,
    ) -> None:
        self._lock = threading.Lock()
        self._sequence = itertools.count(1)
        self.lead_sources: List[Row] = [dict(row) for row in lead_sources or []]
        self.detection_rules: List[Row] = [dict(row) for row in detection_rules or []]
        self.users: List[Row] = [dict(row) for row in users or []]
        self.people: List[Row] = []
        self.activities: List[Row] = []
        self.processed_emails: Dict[str, Row] = {}
        for person in people or []:
            self.insert_person(person)

    # ------------------------------------------------------------------
    # Registry
    # ------------------------------------------------------------------
    def list_lead_sources(self) -> List[Row]:
        with self._lock:
            return copy.deepcopy(self.lead_sources)

    def list_detection_rules(self) -> List[Row]:
        with self._lock:
            return copy.deepcopy(self.detection_rules)

    # ------------------------------------------------------------------
    # People
    # ------------------------------------------------------------------
    def find_people_by_email(self, address: str) -> List[Row]:
        needle = (address or "").strip().lower()
        if not needle:
            return []
        with self._lock:
            matches = [
                person
                for person in self.people
                if needle in {str(value).strip().lower() for value in person.get("email") or []}
            ]
            return [self._public(person) for person in self._newest_first(matches)]

    def find_people_by_name(self, first_name: str, last_name: str, limit: int = 5) -> List[Row]:
        first = (first_name or "").strip().lower()
        last = (last_name or "").strip().lower()
        with self._lock:
            matches = [
                person
                for person in self.people
                if str(person.get("first_name") or "").strip().lower() == first
                and str(person.get("last_name") or "").strip().lower() == last
            ]
            return [self._public(person) for person in self._newest_first(matches)[:limit]]

    def insert_person(self, row: Row) -> Row:
        if not row.get("first_name") or not row.get("last_name"):
            raise StoreError("people.first_name and people.last_name are required")
        record = copy.deepcopy(dict(row))
        with self._lock:
            record.setdefault("id", str(uuid.uuid4()))
            record.setdefault("created_at", _now_iso())
            record["_sequence"] = next(self._sequence)
            if any(person["id"] == record["id"] for person in self.people):
                raise StoreError(f"Person {record['id']} already exists")
            self.people.append(record)
            return self._public(record)

    def update_person(self, person_id: str, changes: Row) -> Row:
        with self._lock:
            for person in self.people:
                if str(person.get("id")) == str(person_id):
                    person.update(copy.deepcopy(dict(changes)))
                    person["updated_at"] = _now_iso()
                    return self._public(person)
        raise StoreError(f"Person {person_id} was not found")

    # ------------------------------------------------------------------
    # Users & activity
    # ------------------------------------------------------------------
    def find_admin_user(self) -> Optional[Row]:
        with self._lock:
            for user in self.users:
                if user.get("role") == "admin":
                    return dict(user)
        return None

    def insert_activity(self, row: Row) -> Row:
        if not row.get("person_id") or not row.get("type"):
            raise StoreError("activities.person_id and activities.type are required")
        record = dict(row)
        record.setdefault("id", str(uuid.uuid4()))
        record.setdefault("created_at", _now_iso())
        with self._lock:
            self.activities.append(record)
        return dict(record)

    # ------------------------------------------------------------------
    # Processed email markers
    # ------------------------------------------------------------------
    def is_email_processed(self, email_id: str) -> bool:
        with self._lock:
            return email_id in self.processed_emails

    def mark_email_processed(self, row: Row) -> Row:
        email_id = row.get("email_id")
        if not email_id:
            raise StoreError("processed_emails.email_id is required")
        record = dict(row)
        record.setdefault("processed_at", _now_iso())
        with self._lock:
            if email_id in self.processed_emails:
                raise StoreError(f"Email {email_id} is already marked as processed")
            self.processed_emails[email_id] = record
        LOGGER.debug("Marked email %s as processed (person %s)", email_id, record.get("person_id"))
        return dict(record)

    # ------------------------------------------------------------------
    @staticmethod
    def _newest_first(people: List[Row]) -> List[Row]:
        return sorted(people, key=lambda person: person.get("_sequence", 0), reverse=True)

    @staticmethod
    def _public(record: Row) -> Row:
        return {key: copy.deepcopy(value) for key, value in record.items() if not key.startswith("_")}


__all__ = ["LeadStore", "InMemoryStore", "Row"]
