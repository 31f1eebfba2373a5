"""Dotted-path lookup over entities, mappings and sequences."""

from __future__ import annotations

import re
from collections.abc import Mapping, Sequence

_INDEX_PATTERN = re.compile(r"\[(\d+)\]")

_MISSING = object()


def resolve_path(source: object, path: str) -> object | None:
    """Resolve ``$.metadata.stats.hp`` or ``images[0]`` style paths; ``None`` when absent."""

    normalized = _INDEX_PATTERN.sub(r".\1", path.removeprefix("$.")).strip(".")
    current: object = source
    for part in normalized.split("."):
        current = _step(current, part)
        if current is _MISSING or current is None:
            return None
    return current


def _step(current: object, part: str) -> object:
    if isinstance(current, Mapping):
        return current.get(part, _MISSING)
    if isinstance(current, (Sequence, frozenset, set)) and not isinstance(current, str):
        if not part.isdigit():
            return _MISSING
        items = sorted(current) if isinstance(current, (frozenset, set)) else current
        index = int(part)
        return items[index] if index < len(items) else _MISSING
    return getattr(current, part, _MISSING)


def is_empty(value: object) -> bool:
    if value is None:
        return True
    if isinstance(value, str):
        return not value.strip()
    if isinstance(value, (Mapping, Sequence, frozenset, set)):
        return len(value) == 0
    return False
