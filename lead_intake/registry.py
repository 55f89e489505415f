"""Read-only access to the configured lead sources and detection rules."""
from __future__ import annotations

import logging
from typing import Any, Callable, Iterable, List, Mapping, Optional, Protocol, TypeVar

from .exceptions import ConfigurationError
from .models import LeadDetectionRule, LeadSource
from .store import LeadStore

LOGGER = logging.getLogger(__name__)

T = TypeVar("T")


class RegistryProtocol(Protocol):
    def get_active_lead_sources(self) -> List[LeadSource]:  # pragma: no cover - runtime protocol
        ...

    def get_active_detection_rules(self) -> List[LeadDetectionRule]:  # pragma: no cover - runtime protocol
        ...


def _build_valid(rows: Optional[Iterable[Any]], build: Callable[[Mapping[str, Any]], T], kind: str) -> List[T]:
    built: List[T] = []
    for row in rows or []:
        if not isinstance(row, Mapping):
            LOGGER.warning("Skipping %s row that is not a mapping: %r", kind, row)
            continue
        try:
            built.append(build(row))
        except ConfigurationError as exc:
            LOGGER.warning("Skipping invalid %s %r: %s", kind, row.get("name"), exc)
    return built


def _order_sources(sources: Iterable[LeadSource]) -> List[LeadSource]:
    return sorted((source for source in sources if source.is_active), key=lambda source: source.name)


def _order_rules(rules: Iterable[LeadDetectionRule]) -> List[LeadDetectionRule]:
    return sorted((rule for rule in rules if rule.is_active), key=lambda rule: rule.confidence_score, reverse=True)


class LeadRegistry:
    """Loads active sources and rules from a :class:`~lead_intake.store.LeadStore` on every call.

    Retrieval failures are logged and reported as an empty list so that detection
    degrades to "not a lead" instead of failing the request. Rows that fail
    validation are logged and skipped; the remaining rows are still served.
    """

    def __init__(self, store: LeadStore) -> None:
        self._store = store

    def get_active_lead_sources(self) -> List[LeadSource]:
        try:
            rows = self._store.list_lead_sources()
        except Exception:
            LOGGER.exception("Failed to load lead sources")
            return []
        return _order_sources(_build_valid(rows, LeadSource.from_record, "lead source"))

    def get_active_detection_rules(self) -> List[LeadDetectionRule]:
        try:
            rows = self._store.list_detection_rules()
        except Exception:
            LOGGER.exception("Failed to load detection rules")
            return []
        return _order_rules(_build_valid(rows, LeadDetectionRule.from_record, "detection rule"))


class StaticRegistry:
    """Registry over fixed, already validated definitions."""

    def __init__(
        self,
        sources: Optional[Iterable[LeadSource]] = None,
        rules: Optional[Iterable[LeadDetectionRule]] = None,
    ) -> None:
        self._sources = list(sources or [])
        self._rules = list(rules or [])

    def get_active_lead_sources(self) -> List[LeadSource]:
        return _order_sources(self._sources)

    def get_active_detection_rules(self) -> List[LeadDetectionRule]:
        return _order_rules(self._rules)


__all__ = ["RegistryProtocol", "LeadRegistry", "StaticRegistry"]
