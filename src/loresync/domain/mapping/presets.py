"""Ordered rule presets for the confidence mapper."""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import TYPE_CHECKING

from loresync.domain.mapping.guards import AllOf, AnyOf, FieldIn, FieldMatches, HasAny, KindIs
from loresync.domain.model import EntityKind, TargetType

if TYPE_CHECKING:
    from collections.abc import Iterable, Mapping

    from loresync.domain.mapping.guards import Guard
    from loresync.domain.model import GenericEntity


@dataclass(slots=True, frozen=True)
class FieldSpec:
    """Ordered source paths for one output field; the first non-empty value wins.

    Sources starting with ``$.`` are resolved against the entity, anything else is
    a literal. Image fields only accept absolute http(s) URLs.
    """

    sources: tuple[str, ...]
    image: bool = False

    @classmethod
    def of(cls, *sources: str, image: bool = False) -> FieldSpec:
        return cls(sources=sources, image=image)


@dataclass(slots=True, frozen=True, kw_only=True)
class Rule:
    name: str
    target: TargetType
    fields: Mapping[str, FieldSpec]
    guard: Guard | None = None
    labels: tuple[str, ...] = ()
    confidence_boost: float = 0.0
    fallback: bool = False

    def applies_to(self, entity: GenericEntity) -> bool:
        return self.guard is None or self.guard.matches(entity)


@dataclass(slots=True, frozen=True)
class Preset:
    name: str
    rules: tuple[Rule, ...]
    version: int = 1
    system_ids: frozenset[str] = field(default_factory=frozenset[str])

    @property
    def fallback_rule(self) -> Rule | None:
        for rule in self.rules:
            if rule.fallback:
                return rule
        return None

    def extended(
        self, name: str, rules: Iterable[Rule], *, system_ids: Iterable[str] = ()
    ) -> Preset:
        """Return a preset where ``rules`` replace same-named rules or precede the fallback."""

        new_rules = list(rules)
        replacements = {rule.name: rule for rule in new_rules}
        merged = [replacements.pop(rule.name, rule) for rule in self.rules]
        additions = [rule for rule in new_rules if rule.name in replacements]
        fallback_index = next(
            (index for index, rule in enumerate(merged) if rule.fallback), len(merged)
        )
        merged[fallback_index:fallback_index] = additions
        return replace(self, name=name, rules=tuple(merged), system_ids=frozenset(system_ids))


_CHARACTER_FIELDS: dict[str, FieldSpec] = {
    "title": FieldSpec.of("$.name"),
    "description": FieldSpec.of("$.body"),
    "portraitUrl": FieldSpec.of("$.images[0]", "$.images[1]", image=True),
}
_ENTITY_FIELDS: dict[str, FieldSpec] = {
    "title": FieldSpec.of("$.name"),
    "description": FieldSpec.of("$.body"),
    "imageUrl": FieldSpec.of("$.images[0]", image=True),
}

FACTION_FOLDER_PATTERN = r"factions|organi[sz]ations|guilds"

GENERIC_PRESET = Preset(
    name="generic",
    rules=(
        Rule(
            name="player-character",
            target=TargetType.CHARACTER,
            guard=AllOf(
                KindIs(EntityKind.CHARACTER),
                FieldIn("metadata.type", frozenset({"character", "pc", "player"})),
            ),
            fields=_CHARACTER_FIELDS,
            labels=("PC",),
            confidence_boost=0.2,
        ),
        Rule(
            name="non-player-character",
            target=TargetType.CHARACTER,
            guard=AllOf(
                KindIs(EntityKind.CHARACTER),
                FieldIn("metadata.type", frozenset({"npc", "monster"})),
            ),
            fields=_CHARACTER_FIELDS,
            labels=("NPC",),
        ),
        Rule(
            name="item",
            target=TargetType.ITEM,
            guard=KindIs(EntityKind.ITEM),
            fields=_ENTITY_FIELDS,
        ),
        Rule(
            name="faction",
            target=TargetType.FACTION,
            guard=AnyOf(
                KindIs(EntityKind.FACTION),
                AllOf(
                    KindIs(EntityKind.JOURNAL),
                    AnyOf(
                        FieldMatches("folder_name", FACTION_FOLDER_PATTERN),
                        HasAny("tags", frozenset({"faction", "organization", "guild"})),
                    ),
                ),
            ),
            fields=_ENTITY_FIELDS,
        ),
        Rule(
            name="scene-location",
            target=TargetType.LOCATION,
            guard=KindIs(EntityKind.LOCATION),
            fields={**_ENTITY_FIELDS, "mapMeta": FieldSpec.of("$.metadata")},
        ),
        Rule(
            name="note",
            target=TargetType.NOTE,
            fields={"title": FieldSpec.of("$.name"), "content": FieldSpec.of("$.body")},
            fallback=True,
        ),
    ),
)

DND5E_ITEM_TYPES = frozenset(
    {"weapon", "equipment", "consumable", "tool", "loot", "container", "backpack"}
)

DND5E_PRESET = GENERIC_PRESET.extended(
    "dnd5e",
    (
        Rule(
            name="item",
            target=TargetType.ITEM,
            guard=AllOf(KindIs(EntityKind.ITEM), FieldIn("subtype", DND5E_ITEM_TYPES)),
            fields=_ENTITY_FIELDS,
            confidence_boost=0.05,
        ),
        Rule(
            name="vehicle",
            target=TargetType.ITEM,
            guard=AllOf(
                KindIs(EntityKind.CHARACTER),
                FieldIn("metadata.type", frozenset({"vehicle"})),
            ),
            fields=_ENTITY_FIELDS,
        ),
    ),
    system_ids=("dnd5e",),
)

_PRESETS: dict[str, Preset] = {"generic": GENERIC_PRESET, "dnd5e": DND5E_PRESET}


def get_preset(system_id: str | None = None) -> Preset:
    """Return the preset registered for ``system_id``; the generic preset otherwise."""

    key = (system_id or "generic").strip().lower()
    return _PRESETS.get(key, GENERIC_PRESET)


def register_preset(preset: Preset) -> None:
    _PRESETS[preset.name.lower()] = preset
    for system_id in preset.system_ids:
        _PRESETS[system_id.lower()] = preset
