from __future__ import annotations

import json
from typing import TYPE_CHECKING

import pytest

from loresync.config import ConfigurationError
from loresync.domain.mapping import MappingCorrections, key_for, load_corrections, map_entity
from loresync.domain.model import EntityKind, GenericEntity, TargetType

if TYPE_CHECKING:
    from pathlib import Path


def _journal(source_id: str = "j1", folder: str | None = "Lore") -> GenericEntity:
    return GenericEntity(
        kind=EntityKind.JOURNAL,
        name="Harbor Watch",
        source_id=source_id,
        subtype="journal",
        body="Guards the docks",
        folder_name=folder,
        metadata={"motto": "Ever vigilant"},
    )


def test_key_for_combines_kind_subtype_and_folder() -> None:
    assert key_for(_journal()) == "Journal|journal|lore"
    assert key_for(_journal(folder=None)) == "Journal|journal|"


def test_key_correction_changes_target_and_fields() -> None:
    corrections = MappingCorrections.model_validate(
        {
            "byKey": {
                "Journal|journal|lore": {
                    "targetType": "Faction",
                    "fieldPaths": {"motto": "$.metadata.motto"},
                }
            }
        }
    )
    entity = _journal()

    proposal = corrections.apply(entity, map_entity(entity))

    assert proposal.target_type is TargetType.FACTION
    assert proposal.payload["motto"] == "Ever vigilant"
    assert proposal.payload["title"] == "Harbor Watch"


def test_source_correction_wins_over_key_correction() -> None:
    corrections = MappingCorrections.model_validate(
        {
            "byKey": {"Journal|journal|lore": {"targetType": "Faction", "include": True}},
            "bySource": {"j1": {"targetType": "Location", "include": False}},
        }
    )

    proposal = corrections.apply(_journal(), map_entity(_journal()))

    assert proposal.target_type is TargetType.LOCATION
    assert corrections.includes(_journal()) is False
    assert corrections.includes(_journal(source_id="j2")) is True


def test_untouched_entities_keep_their_proposal() -> None:
    entity = _journal()
    proposal = map_entity(entity)

    assert MappingCorrections().apply(entity, proposal) is proposal


def test_load_corrections(tmp_path: Path) -> None:
    path = tmp_path / "overrides.json"
    path.write_text(json.dumps({"bySource": {"j1": {"include": False}}}), encoding="utf-8")

    corrections = load_corrections(path)

    assert corrections.by_source["j1"].include is False
    assert load_corrections(tmp_path / "missing.json") == MappingCorrections()
    assert load_corrections(None) == MappingCorrections()


def test_load_corrections_rejects_invalid_json(tmp_path: Path) -> None:
    path = tmp_path / "overrides.json"
    path.write_text("{not json", encoding="utf-8")

    with pytest.raises(ConfigurationError):
        load_corrections(path)


def test_load_corrections_rejects_wrongly_shaped_overrides(tmp_path: Path) -> None:
    path = tmp_path / "overrides.json"
    overrides = {"byKey": {"item||": {"targetType": "Spaceship"}}}
    path.write_text(json.dumps(overrides), encoding="utf-8")

    with pytest.raises(ConfigurationError, match="overrides.json"):
        load_corrections(path)
