"""Stable content fingerprints for idempotent re-import checks."""

from __future__ import annotations

import hashlib
import json
from collections.abc import Mapping
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from loresync.domain.model import GenericEntity

VOLATILE_KEYS = frozenset(
    {"_id", "_rev", "id", "createdAt", "updatedAt", "created_at", "updated_at", "_stats"}
)

_FNV_OFFSET = 0x811C9DC5
_FNV_PRIME = 0x01000193


def canonical_form(entity: GenericEntity) -> dict[str, object]:
    """Order-independent projection of the entity's content."""

    return {
        "version": entity.VERSION,
        "kind": str(entity.kind),
        "subtype": entity.subtype or "",
        "name": entity.name,
        "body": entity.body,
        "tags": sorted(entity.tags),
        "images": list(entity.images),
        "metadata": _strip_volatile(entity.metadata),
    }


def fingerprint(entity: GenericEntity) -> str:
    serialized = json.dumps(
        canonical_form(entity), sort_keys=True, separators=(",", ":"), default=str
    )
    return digest(serialized)


def digest(text: str, *, algorithm: str = "sha256") -> str:
    """Hex digest of ``text``; falls back to 32-bit FNV-1a when ``algorithm`` is unavailable."""

    data = text.encode("utf-8")
    try:
        return hashlib.new(algorithm, data).hexdigest()
    except ValueError:
        return _fnv1a(data)


def _fnv1a(data: bytes) -> str:
    value = _FNV_OFFSET
    for byte in data:
        value ^= byte
        value = (value * _FNV_PRIME) & 0xFFFFFFFF
    return f"{value:08x}"


def _strip_volatile(value: object) -> object:
    if isinstance(value, Mapping):
        return {
            str(key): _strip_volatile(item)
            for key, item in value.items()
            if key not in VOLATILE_KEYS
        }
    if isinstance(value, (list, tuple)):
        return [_strip_volatile(item) for item in value]
    if isinstance(value, (set, frozenset)):
        return sorted(str(item) for item in value)
    return value
