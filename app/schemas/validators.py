"""Shared input normalization helpers for request schemas."""

from __future__ import annotations

import re

# Deliberately loose: one "@", a dot in the domain, no whitespace.
EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")


def strip_text(value: object) -> object:
    """Trim surrounding whitespace from strings; pass other values through."""
    if isinstance(value, str):
        return value.strip()
    return value


def strip_angle_brackets(value: object) -> object:
    """Trim and drop ``<``/``>`` so values can't smuggle markup into emails."""
    if value is None:
        return ""
    if isinstance(value, str):
        return value.strip().replace("<", "").replace(">", "")
    return value
