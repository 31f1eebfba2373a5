"""Classify a ``GenericEntity`` into a remote target shape with a confidence score."""

from __future__ import annotations

import re
from typing import TYPE_CHECKING

from loresync.domain.mapping.paths import is_empty, resolve_path
from loresync.domain.mapping.presets import get_preset
from loresync.domain.model import EntityKind, MappingProposal, TargetType
from loresync.domain.text import is_external_image_url

if TYPE_CHECKING:
    from collections.abc import Mapping

    from loresync.domain.mapping.presets import FieldSpec, Preset, Rule
    from loresync.domain.model import GenericEntity

EXPLICIT_BASELINE = 0.55
FALLBACK_BASELINE = 0.3
DEFAULT_NOTE_SCORE = 0.3

_FACTION_NAME_PATTERN = re.compile(
    r"order|guild|house|clan|legion|company|collective", re.IGNORECASE
)
_FACTION_FOLDER_PATTERN = re.compile(
    r"faction|organi[sz]ation|guild|order|house|clan", re.IGNORECASE
)


def map_entity(entity: GenericEntity, preset: Preset | None = None) -> MappingProposal:
    """Score every matching rule and keep the best one.

    Non-fallback rules are all evaluated; ties keep the earlier rule. The fallback
    rule is consulted only when nothing else matched, and a preset without one
    yields a plain note proposal.
    """

    active = preset or get_preset()
    best: MappingProposal | None = None
    for rule in active.rules:
        if rule.fallback or not rule.applies_to(entity):
            continue
        proposal = _propose(entity, rule)
        if best is None or proposal.score > best.score:
            best = proposal

    if best is not None:
        return best

    fallback = active.fallback_rule
    if fallback is not None and fallback.applies_to(entity):
        return _propose(entity, fallback)

    return MappingProposal(
        target_type=TargetType.NOTE,
        payload={"title": entity.name, "content": entity.body},
        score=DEFAULT_NOTE_SCORE,
    )


def materialize_fields(
    fields: Mapping[str, FieldSpec], entity: GenericEntity
) -> dict[str, object]:
    payload: dict[str, object] = {}
    for name, spec in fields.items():
        for source in spec.sources:
            value = resolve_path(entity, source) if source.startswith("$.") else source
            if is_empty(value):
                continue
            if spec.image and not is_external_image_url(value):
                continue
            payload[name] = value
            break
    return payload


def score_heuristics(entity: GenericEntity, rule: Rule) -> float:
    """Baseline plus bounded increments for corroborating signal, clamped to [0, 1]."""

    score = FALLBACK_BASELINE if rule.fallback else EXPLICIT_BASELINE
    score += rule.confidence_boost
    if entity.images:
        score += 0.05
    if entity.tags:
        score += 0.05

    subtype = (entity.subtype or "").lower()
    match entity.kind, rule.target:
        case EntityKind.CHARACTER, TargetType.CHARACTER:
            score += 0.25
            if subtype in {"character", "pc", "player"}:
                score += 0.1
            elif subtype == "npc":
                score += 0.07
            if entity.metadata.get("has_biography"):
                score += 0.03
        case EntityKind.LOCATION, TargetType.LOCATION:
            score += 0.25
            if entity.metadata.get("background") or entity.images:
                score += 0.05
            if entity.links:
                score += 0.05
        case EntityKind.ITEM, TargetType.ITEM:
            score += 0.25
        case (EntityKind.JOURNAL | EntityKind.FACTION), TargetType.FACTION:
            score += 0.2
            if _FACTION_NAME_PATTERN.search(entity.name):
                score += 0.15
            if entity.folder_name and _FACTION_FOLDER_PATTERN.search(entity.folder_name):
                score += 0.15
            if any(_FACTION_FOLDER_PATTERN.search(tag) for tag in entity.tags):
                score += 0.1
        case _:
            pass
    return min(1.0, max(0.0, score))


def _propose(entity: GenericEntity, rule: Rule) -> MappingProposal:
    return MappingProposal(
        target_type=rule.target,
        payload=materialize_fields(rule.fields, entity),
        labels=rule.labels,
        score=score_heuristics(entity, rule),
        rule_name=rule.name,
    )
