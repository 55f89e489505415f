import json

import pytest

from lead_intake.config import (
    ConfigurationError,
    ProcessingSettings,
    load_configuration,
    load_registry,
    load_settings,
)
from lead_intake.models import DEFAULT_MIN_CONFIDENCE

YAML_CONFIG = """
lead_sources:
  - id: zillow
    name: Zillow
    domain_patterns: ["zillow.com"]
    keywords: ["lead", "inquiry"]
  - name: Retired Portal
    domain_patterns: ["old.example"]
    is_active: false
detection_rules:
  - name: Low priority
    confidence_score: 0.2
    conditions:
      subject_keywords: ["buy"]
  - name: Showing request
    confidence_score: 0.9
    conditions:
      subject_keywords: ["showing"]
      min_confidence: 0
settings:
  lead_threshold: 0.65
  follow_up_hours: 48
"""


def test_load_yaml_configuration(tmp_path) -> None:
    path = tmp_path / "config.yaml"
    path.write_text(YAML_CONFIG, encoding="utf-8")

    config = load_configuration(path)
    registry = load_registry(config)
    settings = load_settings(config)

    assert [source.name for source in registry.get_active_lead_sources()] == ["Zillow"]
    rules = registry.get_active_detection_rules()
    assert [rule.name for rule in rules] == ["Showing request", "Low priority"]
    assert rules[0].conditions.min_confidence == DEFAULT_MIN_CONFIDENCE
    assert settings.lead_threshold == 0.65
    assert settings.follow_up_hours == 48.0
    assert settings.name_match_limit == 5


def test_load_json_configuration(tmp_path) -> None:
    path = tmp_path / "config.json"
    path.write_text(json.dumps({"lead_sources": [{"name": "Realtor", "keywords": ["lead"]}]}), encoding="utf-8")

    registry = load_registry(load_configuration(path))

    source = registry.get_active_lead_sources()[0]
    assert source.id == "Realtor"
    assert source.keywords == ["lead"]


def test_empty_yaml_file_is_an_empty_config(tmp_path) -> None:
    path = tmp_path / "config.yml"
    path.write_text("", encoding="utf-8")

    assert load_configuration(path) == {}


@pytest.mark.parametrize(
    "filename, contents",
    [
        ("config.toml", "x = 1"),
        ("config.json", "{not json"),
        ("config.yaml", "key: [unterminated"),
        ("config.yaml", "- just\n- a list\n"),
    ],
)
def test_invalid_configuration_files(tmp_path, filename, contents) -> None:
    path = tmp_path / filename
    path.write_text(contents, encoding="utf-8")

    with pytest.raises(ConfigurationError):
        load_configuration(path)


def test_missing_configuration_file(tmp_path) -> None:
    with pytest.raises(ConfigurationError):
        load_configuration(tmp_path / "missing.yaml")


def test_pattern_fields_must_be_lists() -> None:
    with pytest.raises(ConfigurationError, match="must be a list"):
        load_registry({"lead_sources": [{"name": "Bad", "keywords": "lead"}]})


def test_min_confidence_must_be_in_range() -> None:
    with pytest.raises(ConfigurationError, match="between 0 and 1"):
        load_registry({"detection_rules": [{"name": "Bad", "conditions": {"min_confidence": 1.5}}]})


def test_processing_settings_validation() -> None:
    assert ProcessingSettings.from_mapping(None) == ProcessingSettings()

    with pytest.raises(ConfigurationError, match="Unknown settings"):
        ProcessingSettings.from_mapping({"threshold": 0.5})
    with pytest.raises(ConfigurationError):
        ProcessingSettings.from_mapping({"lead_threshold": 2})
    with pytest.raises(ConfigurationError):
        ProcessingSettings.from_mapping({"name_match_limit": 0})
