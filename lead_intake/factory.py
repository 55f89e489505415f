"""Factory helpers for constructing stores and registries from configuration."""
from __future__ import annotations

import importlib
from typing import Any, Dict, Mapping

from .config import ConfigurationError, load_registry
from .registry import LeadRegistry, RegistryProtocol
from .store import InMemoryStore, LeadStore

DEFAULT_STORE_CLASS = "lead_intake.store.InMemoryStore"


def _load_class(path: str):
    module_name, _, attr = path.rpartition(".")
    if not module_name:
        raise ConfigurationError(f"Invalid store class path '{path}'")
    try:
        module = importlib.import_module(module_name)
    except ImportError as exc:
        raise ConfigurationError(f"Could not import store module '{module_name}'") from exc
    try:
        return getattr(module, attr)
    except AttributeError as exc:
        raise ConfigurationError(f"Module '{module_name}' does not define '{attr}'") from exc


def build_store(config: Mapping[str, Any]) -> LeadStore:
    """Instantiate the store class named in the ``store`` section.

    The section is optional; without it an empty :class:`InMemoryStore` is used.
    """

    store_cfg: Dict[str, Any] = dict(config.get("store") or {})
    class_path = store_cfg.get("class") or DEFAULT_STORE_CLASS
    options = store_cfg.get("options") or {}
    if not isinstance(options, Mapping):
        raise ConfigurationError("Store configuration 'options' must be a mapping")

    store_cls = InMemoryStore if class_path == DEFAULT_STORE_CLASS else _load_class(class_path)
    try:
        return store_cls(**options)
    except TypeError as exc:
        raise ConfigurationError(f"Invalid options for store '{class_path}': {exc}") from exc


def build_registry(config: Mapping[str, Any], store: LeadStore) -> RegistryProtocol:
    """Use definitions from the configuration file when present, otherwise read them from the store."""

    if "lead_sources" in config or "detection_rules" in config:
        return load_registry(config)
    return LeadRegistry(store)


__all__ = ["build_store", "build_registry", "DEFAULT_STORE_CLASS"]
