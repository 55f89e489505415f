"""Helpers for matching extracted leads against existing people and merging them."""
from __future__ import annotations

from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence

from .models import LeadData

MERGEABLE_FIELDS = {
    "company": "company",
    "position": "position",
    "address": "property_address",
}


def normalise_contact(contact_type: str, value: str) -> str:
    value = (value or "").strip()
    if contact_type.lower() == "email":
        return value.lower()
    if contact_type.lower() == "phone":
        digits = "".join(c for c in value if c.isdigit())
        # Drop the North American country code so +1 555... equals 555...
        if len(digits) == 11 and digits.startswith("1"):
            return digits[1:]
        return digits
    return value.lower()


def merge_contacts(contact_type: str, existing: Iterable[str], incoming: Iterable[str]) -> List[str]:
    """Union two contact lists, keeping existing entries first and deduplicating by value."""

    merged: List[str] = []
    seen = set()
    for value in list(existing or []) + list(incoming or []):
        if not value:
            continue
        key = normalise_contact(contact_type, str(value))
        if not key or key in seen:
            continue
        seen.add(key)
        merged.append(str(value))
    return merged


def shares_phone(person: Mapping[str, Any], phones: Sequence[str]) -> bool:
    wanted = {normalise_contact("phone", phone) for phone in phones}
    wanted.discard("")
    if not wanted:
        return False
    return any(normalise_contact("phone", str(phone)) in wanted for phone in person.get("phone") or [])


def names_match(person: Mapping[str, Any], first_name: str, last_name: str) -> bool:
    return (
        str(person.get("first_name") or "").strip().lower() == (first_name or "").strip().lower()
        and str(person.get("last_name") or "").strip().lower() == (last_name or "").strip().lower()
    )


def pick_name_match(
    candidates: Sequence[Mapping[str, Any]], lead: LeadData
) -> Optional[Mapping[str, Any]]:
    """Choose the person a name lookup refers to.

    A candidate sharing a phone number wins. Without phone confirmation a lone
    candidate is still accepted when its name matches exactly, which can merge
    two different people who share a name.
    """

    for candidate in candidates:
        if lead.phone and shares_phone(candidate, lead.phone):
            return candidate
    if len(candidates) == 1 and names_match(candidates[0], lead.first_name, lead.last_name):
        return candidates[0]
    return None


def build_person_update(person: Mapping[str, Any], lead: LeadData) -> Dict[str, Any]:
    """Return the column changes that fold ``lead`` into an existing person.

    Only empty profile fields are filled; contact lists are unioned.
    """

    changes: Dict[str, Any] = {}
    for column, attribute in MERGEABLE_FIELDS.items():
        value = getattr(lead, attribute)
        if value and not person.get(column):
            changes[column] = value

    emails = merge_contacts("email", person.get("email") or [], lead.email)
    if emails != list(person.get("email") or []):
        changes["email"] = emails
    phones = merge_contacts("phone", person.get("phone") or [], lead.phone)
    if phones != list(person.get("phone") or []):
        changes["phone"] = phones
    return changes


__all__ = [
    "normalise_contact",
    "merge_contacts",
    "shares_phone",
    "names_match",
    "pick_name_match",
    "build_person_update",
]
