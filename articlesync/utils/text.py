"""Utilities for working with article text and filenames."""
from __future__ import annotations

import re
from typing import Any


_SLUG_PATTERN = re.compile(r"[^a-z0-9_-]+")
_DASH_RUN_PATTERN = re.compile(r"-{2,}")
_WHITESPACE_PATTERN = re.compile(r"\s+")


def slugify(value: Any) -> str:
    """Return a filesystem and URL friendly slug for ``value``.

    Whitespace becomes a dash, anything outside ``[a-z0-9_-]`` is dropped and runs
    of dashes collapse. Non-string or empty inputs return an empty string so that
    callers can decide on their own fallback.
    """

    if not isinstance(value, str):
        return ""

    normalised = value.strip().lower()
    normalised = _WHITESPACE_PATTERN.sub("-", normalised)
    normalised = _SLUG_PATTERN.sub("", normalised)
    normalised = _DASH_RUN_PATTERN.sub("-", normalised)
    return normalised.strip("-")


__all__ = ["slugify"]
