"""Utility helpers for string normalization and selector handling."""

from __future__ import annotations

import re
from typing import Iterable, Optional

SLUG_PATTERN = re.compile(r"[^a-z0-9]+")


def slugify(value: str, fallback: str = "page") -> str:
    """Generate a filesystem-friendly slug using ASCII characters only."""
    normalized = value.encode("ascii", "ignore").decode("ascii")
    normalized = normalized.lower()
    normalized = SLUG_PATTERN.sub("-", normalized).strip("-")
    return normalized or fallback


def normalize_text(value: Optional[str], limit: Optional[int] = None) -> str:
    """Trim surrounding whitespace and optionally cap the length."""
    text = (value or "").strip()
    if limit is not None and len(text) > limit:
        return text[:limit]
    return text


def build_selector(element_id: Optional[str], class_list: Iterable[str]) -> Optional[str]:
    """Return a CSS selector for an element, preferring its id over its classes."""
    if element_id:
        escaped = element_id.replace("\\", "\\\\").replace('"', '\\"')
        return f'[id="{escaped}"]'
    classes = [name for name in class_list if name]
    if classes:
        return "." + ".".join(classes)
    return None
