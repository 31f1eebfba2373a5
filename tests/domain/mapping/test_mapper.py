from __future__ import annotations

import pytest

from loresync.domain.mapping import (
    DND5E_PRESET,
    GENERIC_PRESET,
    FieldSpec,
    KindIs,
    Preset,
    Rule,
    get_preset,
    map_entity,
    materialize_fields,
)
from loresync.domain.model import EntityKind, GenericEntity, TargetType


def _entity(kind: EntityKind = EntityKind.CHARACTER, **overrides: object) -> GenericEntity:
    values: dict[str, object] = {"kind": kind, "name": "Mira", "source_id": "a1"}
    values.update(overrides)
    return GenericEntity(**values)  # type: ignore[arg-type]


def test_player_character_is_labelled_pc() -> None:
    entity = _entity(subtype="character", metadata={"type": "character"})

    proposal = map_entity(entity)

    assert proposal.target_type is TargetType.CHARACTER
    assert proposal.labels == ("PC",)
    assert proposal.rule_name == "player-character"
    assert proposal.score == pytest.approx(1.0)


def test_npc_scores_below_pc() -> None:
    entity = _entity(subtype="npc", metadata={"type": "npc"})

    proposal = map_entity(entity)

    assert proposal.labels == ("NPC",)
    assert proposal.score == pytest.approx(0.55 + 0.25 + 0.07)


def test_item_and_location_rules() -> None:
    item = map_entity(_entity(EntityKind.ITEM, name="Rope"))
    location = map_entity(
        _entity(EntityKind.LOCATION, name="Harbor", metadata={"background": "maps/harbor.webp"})
    )

    assert item.target_type is TargetType.ITEM
    assert item.score == pytest.approx(0.8)
    assert location.target_type is TargetType.LOCATION
    assert location.score == pytest.approx(0.85)
    assert location.payload["mapMeta"] == {"background": "maps/harbor.webp"}


def test_journal_in_factions_folder_becomes_faction() -> None:
    entity = _entity(
        EntityKind.JOURNAL,
        name="Harbor Guild",
        folder_name="Factions",
        tags=frozenset({"factions"}),
    )

    proposal = map_entity(entity)

    assert proposal.target_type is TargetType.FACTION
    assert proposal.score == pytest.approx(1.0)


def test_unmatched_entity_falls_back_to_note() -> None:
    proposal = map_entity(_entity(EntityKind.JOURNAL, name="Weather", body="Rain"))

    assert proposal.target_type is TargetType.NOTE
    assert proposal.rule_name == "note"
    assert proposal.score == pytest.approx(0.3)
    assert proposal.payload == {"title": "Weather", "content": "Rain"}


def test_highest_scoring_rule_wins_not_first_match() -> None:
    weak = Rule(name="weak", target=TargetType.FACTION, guard=KindIs(EntityKind.ITEM), fields={})
    strong = Rule(name="strong", target=TargetType.ITEM, guard=KindIs(EntityKind.ITEM), fields={})
    preset = Preset(name="test", rules=(weak, strong))

    proposal = map_entity(_entity(EntityKind.ITEM, name="Rope"), preset)

    assert proposal.rule_name == "strong"


def test_preset_without_fallback_yields_note() -> None:
    preset = Preset(name="empty", rules=())

    proposal = map_entity(_entity(), preset)

    assert proposal.target_type is TargetType.NOTE
    assert proposal.rule_name is None


def test_image_fields_reject_local_paths() -> None:
    entity = _entity(images=("tokens/mira.png", "https://cdn.example.com/mira.png"))
    fields = {
        "portraitUrl": FieldSpec.of("$.images[0]", "$.images[1]", image=True),
        "title": FieldSpec.of("$.name"),
        "kind": FieldSpec.of("$.missing", "literal"),
    }

    payload = materialize_fields(fields, entity)

    assert payload == {
        "portraitUrl": "https://cdn.example.com/mira.png",
        "title": "Mira",
        "kind": "literal",
    }


def test_system_preset_overrides_and_extends_generic() -> None:
    assert get_preset("dnd5e") is DND5E_PRESET
    assert get_preset("unknown-system") is GENERIC_PRESET

    names = [rule.name for rule in DND5E_PRESET.rules]
    assert names[-1] == "note"
    assert "vehicle" in names

    weapon = map_entity(_entity(EntityKind.ITEM, name="Sword", subtype="weapon"), DND5E_PRESET)
    trinket = map_entity(_entity(EntityKind.ITEM, name="Shell", subtype="trinket"), DND5E_PRESET)
    assert weapon.target_type is TargetType.ITEM
    assert weapon.score == pytest.approx(0.85)
    assert trinket.target_type is TargetType.NOTE
