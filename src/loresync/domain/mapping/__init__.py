"""Rule-based classification of extracted entities."""

from __future__ import annotations

from .corrections import Correction, MappingCorrections, key_for, load_corrections
from .guards import AllOf, AnyOf, FieldEquals, FieldIn, FieldMatches, Guard, HasAny, KindIs
from .mapper import map_entity, materialize_fields, score_heuristics
from .presets import (
    DND5E_PRESET,
    GENERIC_PRESET,
    FieldSpec,
    Preset,
    Rule,
    get_preset,
    register_preset,
)

__all__ = [
    "DND5E_PRESET",
    "GENERIC_PRESET",
    "AllOf",
    "AnyOf",
    "Correction",
    "FieldEquals",
    "FieldIn",
    "FieldMatches",
    "FieldSpec",
    "Guard",
    "HasAny",
    "KindIs",
    "MappingCorrections",
    "Preset",
    "Rule",
    "get_preset",
    "key_for",
    "load_corrections",
    "map_entity",
    "materialize_fields",
    "register_preset",
    "score_heuristics",
]
