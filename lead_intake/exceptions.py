"""Exception hierarchy shared across the lead intake package."""
from __future__ import annotations


class LeadIntakeError(Exception):
    """Base class for errors raised by :mod:`lead_intake`."""


class ConfigurationError(LeadIntakeError, RuntimeError):
    """Raised when configuration files or registry records are missing or malformed."""


class StoreError(LeadIntakeError):
    """Raised by store implementations when a read or write fails."""


class UnsupportedFileTypeError(LeadIntakeError, ValueError):
    """Raised when an unsupported file format is passed to a loader or exporter."""


__all__ = [
    "LeadIntakeError",
    "ConfigurationError",
    "StoreError",
    "UnsupportedFileTypeError",
]
