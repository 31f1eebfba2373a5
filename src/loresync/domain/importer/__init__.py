"""Score-thresholded import of local entities into the remote service."""

from __future__ import annotations

from .payloads import build_entity_draft, crosslink_lookup, resolve_character_type
from .service import (
    DEFAULT_AUTO_THRESHOLD,
    DEFAULT_REVIEW_THRESHOLD,
    Importer,
    ImportSummary,
    PushFilter,
    ReviewItem,
    kinds_from_names,
)

__all__ = [
    "DEFAULT_AUTO_THRESHOLD",
    "DEFAULT_REVIEW_THRESHOLD",
    "ImportSummary",
    "Importer",
    "PushFilter",
    "ReviewItem",
    "build_entity_draft",
    "crosslink_lookup",
    "kinds_from_names",
    "resolve_character_type",
]
