"""Wildcard and substring matching used by lead sources and detection rules."""
from __future__ import annotations

import logging
import re

LOGGER = logging.getLogger(__name__)


def matches_pattern(text: str, pattern: str) -> bool:
    """Return ``True`` when ``pattern`` matches anywhere in ``text``, ignoring case.

    A pattern containing ``*`` is turned into a regular expression by replacing
    each ``*`` with ``.*``. The remaining characters are *not* escaped, so a
    ``.`` in ``*@zillow.com`` also matches any character. Patterns without a
    wildcard are plain substring checks.
    """

    if not pattern:
        return False
    text = text or ""

    if "*" in pattern:
        try:
            return re.search(pattern.replace("*", ".*"), text, flags=re.IGNORECASE) is not None
        except re.error:
            LOGGER.debug("Ignoring invalid wildcard pattern %r", pattern)
            return False

    return pattern.lower() in text.lower()


__all__ = ["matches_pattern"]
