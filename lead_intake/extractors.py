"""Heuristic field extractors for inbound lead emails.

Every extractor is a pure function over the subject and/or body text. None of
them raise: a missing value is reported as ``None``, ``''`` or ``[]``.
"""
from __future__ import annotations

import re
from typing import Dict, Iterable, List, Optional

from .models import ExtractedContactData

MESSAGE_PREVIEW_LENGTH = 1000

_EMAIL_RE = re.compile(r"\b[A-Za-z0-9._%+-]+@[A-Za-z0-9.-]+\.[A-Za-z]{2,}\b")
_PHONE_RE = re.compile(r"(?<!\d)(?:\+?1[-. ]?)?\(?\d{3}\)?[-. ]?\d{3}[-. ]?\d{4}(?!\d)")

_SIGNATURE_RE = re.compile(r"--\s*\n([^\n]+)")
_INTRODUCTION_RE = re.compile(r"\b(?i:my name is|i'm|i am|this is)\s+([A-Z][a-z]+(?:[ \t]+[A-Z][a-z]+)*)")
_COMPANY_RE = re.compile(
    r"\b(?i:at|with|from)\s+([A-Z][A-Za-z&]*(?:[ \t]+[A-Z&][A-Za-z&]*){0,6}[ \t]+(?:Inc|LLC|Corp|Company|Ltd|Co)\b\.?)"
)
_POSITION_RE = re.compile(r"\b(?:i am|i'm)\s+(?:a|an)\s+([a-z][a-z ]{0,60}?)\s+(?:at|with)\b", re.IGNORECASE)
_ADDRESS_RE = re.compile(
    r"\b\d+[ \t]+(?:[A-Za-z]+[ \t]+){1,4}?"
    r"(?:Street|St|Avenue|Ave|Road|Rd|Boulevard|Blvd|Drive|Dr|Lane|Ln|Court|Ct|Place|Pl|Way|Terrace|Ter)\b",
    re.IGNORECASE,
)
_SENTENCE_SPLIT_RE = re.compile(r"[.!?]")

PROPERTY_DETAIL_KEYWORDS = ("bedroom", "bathroom", "sq ft", "square feet", "acres", "lot", "garage")

_AMOUNT = r"\d{1,3}(?:,\d{3})*(?:\.\d{2})?"
PRICE_PATTERNS = (
    re.compile(rf"\${_AMOUNT}k?\s*-\s*\${_AMOUNT}k?"),
    re.compile(rf"\${_AMOUNT}k?\s*to\s*\${_AMOUNT}k?"),
    re.compile(rf"{_AMOUNT}\s*-\s*{_AMOUNT}\s*(?:k\s*dollars|thousand|k)"),
    re.compile(rf"budget.{0,60}?\${_AMOUNT}k?"),
    re.compile(rf"price.{0,60}?\${_AMOUNT}k?"),
)

PROPERTY_TYPES = (
    "single family home",
    "single-family home",
    "single family",
    "house",
    "condo",
    "condominium",
    "apartment",
    "townhouse",
    "town home",
    "duplex",
    "triplex",
    "multi-family",
    "commercial",
    "land",
    "lot",
    "investment property",
    "rental property",
    "vacation home",
)

LOCATION_KEYWORDS = (
    "neighborhood",
    "area",
    "location",
    "near",
    "close to",
    "around",
    "downtown",
    "suburban",
    "suburbs",
    "rural",
    "urban",
    "school district",
    "zip code",
)
_LOCATION_RE = re.compile(r"\b(?:" + "|".join(re.escape(keyword) for keyword in LOCATION_KEYWORDS) + r")\b")

TIMELINE_PATTERNS = (
    re.compile(
        r"\b(?:buy|purchase|move|relocate|sell)\w*\b.{0,60}?\b(?:in|within|by|before|after)\b.{0,60}?\b(?:month|year|week|day)s?\b"
    ),
    re.compile(r"\b(?:timeline|timeframe|when)\b.{0,60}?\b(?:month|year|week|day)s?\b"),
    re.compile(r"\b(?:urgent(?:ly)?|asap|soon|immediate(?:ly)?|quick(?:ly)?)\b"),
)

# Labelled fields as sent by listing portals and website contact forms.
_FORM_FIELD_RES = {
    "name": re.compile(r"^[ \t]*(?:full name|name)[ \t]*:[ \t]*(\S.*)$", re.IGNORECASE | re.MULTILINE),
    "email": re.compile(r"^[ \t]*(?:e-mail|email)[ \t]*:[ \t]*(\S+)", re.IGNORECASE | re.MULTILINE),
    "phone": re.compile(r"^[ \t]*(?:telephone|phone)[ \t]*:[ \t]*(\S.*)$", re.IGNORECASE | re.MULTILINE),
    "message": re.compile(
        r"^[ \t]*(?:message|comments|notes)[ \t]*:[ \t]*(.*?)(?=\n[ \t]*\n|\n[A-Z][\w ]*:|\Z)",
        re.IGNORECASE | re.MULTILINE | re.DOTALL,
    ),
}

# Portal notification subjects: "New Lead: <name>" and "... inquiry about <listing>".
_SUBJECT_NAME_RE = re.compile(r"\bnew lead:[ \t]*(\S.*)", re.IGNORECASE)
_SUBJECT_LISTING_RE = re.compile(r"\binquiry about[ \t]+(\S.*)", re.IGNORECASE)


def _combined(subject: str, body: str) -> str:
    return f"{subject or ''} {body or ''}"


def _unique(values: Iterable[str], *, key=None) -> List[str]:
    seen = set()
    ordered: List[str] = []
    for value in values:
        marker = key(value) if key else value
        if marker in seen:
            continue
        seen.add(marker)
        ordered.append(value)
    return ordered


def _sentences(text: str) -> List[str]:
    return [sentence.strip() for sentence in _SENTENCE_SPLIT_RE.split(text) if sentence.strip()]


def extract_name(sender: str, body: str) -> str:
    """Guess the sender's name from a signature, an introduction, or the From header."""

    body = body or ""
    signature = _SIGNATURE_RE.search(body)
    if signature and signature.group(1).strip():
        return signature.group(1).strip()

    introduction = _INTRODUCTION_RE.search(body)
    if introduction:
        return introduction.group(1)

    return re.sub(r"<.*>", "", sender or "").strip()


def extract_emails(body: str, sender: str) -> List[str]:
    """Return every address in the body with the sender's address first.

    Duplicates are dropped case-insensitively, keeping the first spelling seen.
    """

    found = _EMAIL_RE.findall(body or "")
    sender_match = _EMAIL_RE.search(sender or "")
    if sender_match:
        found.insert(0, sender_match.group(0))
    return _unique(found, key=str.lower)


def extract_phone_numbers(body: str) -> List[str]:
    return _unique(match.group(0).strip() for match in _PHONE_RE.finditer(body or ""))


def extract_company(body: str) -> str:
    match = _COMPANY_RE.search(body or "")
    return match.group(1).strip() if match else ""


def extract_position(body: str) -> str:
    match = _POSITION_RE.search(body or "")
    return match.group(1).strip() if match else ""


def extract_property_address(subject: str, body: str) -> str:
    """Find a street address, falling back to the listing named in an "inquiry about" subject."""

    match = _ADDRESS_RE.search(_combined(subject, body))
    if match:
        return match.group(0).strip()
    listing = _SUBJECT_LISTING_RE.search(subject or "")
    return listing.group(1).strip() if listing else ""


def extract_subject_name(subject: str) -> str:
    match = _SUBJECT_NAME_RE.search(subject or "")
    return match.group(1).strip() if match else ""


def extract_property_details(subject: str, body: str) -> str:
    """Collect the first body sentence mentioning each property keyword."""

    text = _combined(subject, body).lower()
    sentences = _sentences(body or "")
    details: List[str] = []
    for keyword in PROPERTY_DETAIL_KEYWORDS:
        if keyword not in text:
            continue
        for sentence in sentences:
            if keyword in sentence.lower():
                if sentence not in details:
                    details.append(sentence)
                break
    return " ".join(details)


def extract_price_range(subject: str, body: str) -> Optional[str]:
    text = _combined(subject, body).lower()
    for pattern in PRICE_PATTERNS:
        match = pattern.search(text)
        if match:
            return match.group(0).strip()
    return None


def extract_property_type(subject: str, body: str) -> Optional[str]:
    text = _combined(subject, body).lower()
    for property_type in PROPERTY_TYPES:
        if property_type in text:
            return property_type
    return None


def extract_location_preferences(subject: str, body: str) -> Optional[str]:
    """Return the first sentence that talks about where the lead wants to be."""

    for sentence in _sentences(_combined(subject, body).lower()):
        if _LOCATION_RE.search(sentence):
            return sentence
    return None


def extract_timeline(subject: str, body: str) -> Optional[str]:
    text = _combined(subject, body).lower()
    for pattern in TIMELINE_PATTERNS:
        match = pattern.search(text)
        if match:
            return match.group(0).strip()
    return None


def extract_form_fields(body: str) -> Dict[str, str]:
    """Read ``Name:``/``Email:``/``Phone:``/``Message:`` style labelled lines."""

    fields: Dict[str, str] = {}
    for name, pattern in _FORM_FIELD_RES.items():
        match = pattern.search(body or "")
        if match and match.group(1).strip():
            fields[name] = match.group(1).strip()
    return fields


def extract_contact_data(sender: str, subject: str, body: str) -> ExtractedContactData:
    """Run the extractor suite used during analysis."""

    body = body or ""
    form = extract_form_fields(body)

    name = extract_name(sender, body)
    if name == re.sub(r"<.*>", "", sender or "").strip():
        name = form.get("name") or extract_subject_name(subject) or name

    emails = extract_emails(body, sender)
    if form.get("email") and _EMAIL_RE.fullmatch(form["email"]):
        emails = _unique(emails + [form["email"]], key=str.lower)

    phones = extract_phone_numbers(body)
    if form.get("phone"):
        phones = _unique(phones + extract_phone_numbers(form["phone"]))

    message = form.get("message") or body
    return ExtractedContactData(
        name=name or None,
        email=emails,
        phone=phones,
        company=extract_company(body) or None,
        position=extract_position(body) or None,
        message=message[:MESSAGE_PREVIEW_LENGTH],
        property_address=extract_property_address(subject, body) or None,
        property_details=extract_property_details(subject, body) or None,
    )


__all__ = [
    "MESSAGE_PREVIEW_LENGTH",
    "extract_name",
    "extract_emails",
    "extract_phone_numbers",
    "extract_company",
    "extract_position",
    "extract_property_address",
    "extract_subject_name",
    "extract_property_details",
    "extract_price_range",
    "extract_property_type",
    "extract_location_preferences",
    "extract_timeline",
    "extract_form_fields",
    "extract_contact_data",
]
