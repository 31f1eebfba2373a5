"""Bipartite matching of remote and local records."""

from __future__ import annotations

from .engine import (
    LocalSnapshot,
    Reconciliation,
    character_types_compatible,
    match_category,
    reconcile,
)
from .rows import CategoryRows, ReconciliationRow, Side

__all__ = [
    "CategoryRows",
    "LocalSnapshot",
    "Reconciliation",
    "ReconciliationRow",
    "Side",
    "character_types_compatible",
    "match_category",
    "reconcile",
]
