"""Configuration helpers for lead detection and ingestion."""
from __future__ import annotations

import json
import logging
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any, Dict, Iterable, Mapping

import yaml

from .exceptions import ConfigurationError
from .models import LeadDetectionRule, LeadSource
from .registry import StaticRegistry
from .scoring import LEAD_THRESHOLD

LOGGER = logging.getLogger(__name__)

_SUPPORTED_EXTENSIONS = {".json", ".yaml", ".yml"}


@dataclass(frozen=True)
class ProcessingSettings:
    """Tunable thresholds used by the ingestion orchestrator."""

    lead_threshold: float = LEAD_THRESHOLD
    min_signal_confidence: float = 0.3
    follow_up_hours: float = 24.0
    name_match_limit: int = 5

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any] | None) -> "ProcessingSettings":
        data = dict(data or {})
        known = {item.name for item in fields(cls)}
        unknown = sorted(set(data) - known)
        if unknown:
            raise ConfigurationError(f"Unknown settings: {', '.join(unknown)}")
        try:
            settings = cls(
                **{
                    key: (int(value) if key == "name_match_limit" else float(value))
                    for key, value in data.items()
                }
            )
        except (TypeError, ValueError) as exc:
            raise ConfigurationError(f"Invalid settings: {exc}") from exc

        if not 0.0 <= settings.lead_threshold <= 1.0:
            raise ConfigurationError("settings.lead_threshold must be between 0 and 1")
        if not 0.0 <= settings.min_signal_confidence <= 1.0:
            raise ConfigurationError("settings.min_signal_confidence must be between 0 and 1")
        if settings.follow_up_hours < 0 or settings.name_match_limit < 1:
            raise ConfigurationError("settings.follow_up_hours and settings.name_match_limit must be positive")
        return settings


def load_configuration(path: str | Path) -> Dict[str, Any]:
    """Load configuration data from a JSON or YAML file."""

    file_path = Path(path)
    if not file_path.exists():
        raise ConfigurationError(f"Configuration file '{file_path}' was not found")

    if file_path.suffix.lower() not in _SUPPORTED_EXTENSIONS:
        raise ConfigurationError(
            f"Unsupported configuration format '{file_path.suffix}'. Supported extensions: {sorted(_SUPPORTED_EXTENSIONS)}"
        )

    text = file_path.read_text(encoding="utf-8")
    try:
        if file_path.suffix.lower() == ".json":
            data = json.loads(text)
        else:
            data = yaml.safe_load(text)
    except (ValueError, yaml.YAMLError) as exc:
        raise ConfigurationError(f"Could not parse configuration file '{file_path}': {exc}") from exc

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigurationError(f"Configuration file '{file_path}' must contain a mapping")
    return data


def _iter_active(entries: Iterable[Mapping[str, Any]], kind: str) -> Iterable[Mapping[str, Any]]:
    for entry in entries or []:
        if not isinstance(entry, Mapping):
            raise ConfigurationError(f"Each {kind} entry must be a mapping")
        if entry.get("is_active", True):
            yield entry
        else:
            LOGGER.debug("Skipping inactive %s %s", kind, entry.get("name"))


def load_registry(config: Mapping[str, Any]) -> StaticRegistry:
    """Validate the ``lead_sources`` and ``detection_rules`` sections into a registry."""

    sources = [LeadSource.from_record(entry) for entry in _iter_active(config.get("lead_sources", []), "lead source")]
    rules = [
        LeadDetectionRule.from_record(entry)
        for entry in _iter_active(config.get("detection_rules", []), "detection rule")
    ]
    LOGGER.info("Loaded %s lead sources and %s detection rules", len(sources), len(rules))
    return StaticRegistry(sources, rules)


def load_settings(config: Mapping[str, Any]) -> ProcessingSettings:
    return ProcessingSettings.from_mapping(config.get("settings"))


__all__ = [
    "ConfigurationError",
    "ProcessingSettings",
    "load_configuration",
    "load_registry",
    "load_settings",
]
