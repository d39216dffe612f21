"""Node key helpers for the editor."""

import re
from typing import Iterable

_WHITESPACE = re.compile(r"\s+")
_INVALID_KEY_CHARS = re.compile(r"[^a-z0-9._:-]")


def build_unique_node_key(candidate: str, existing_node_keys: Iterable[str]) -> str:
    """Slugify ``candidate`` and suffix it (``_2``, ``_3``...) until unused."""
    normalized = _WHITESPACE.sub("_", candidate.strip().lower())
    base = _INVALID_KEY_CHARS.sub("_", normalized).strip("_") or "node"
    existing = set(existing_node_keys)
    if base not in existing:
        return base
    index = 2
    while f"{base}_{index}" in existing:
        index += 1
    return f"{base}_{index}"
