from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING

import pytest

from loresync.domain.errors import RemoteServiceError
from loresync.domain.extraction import extract_entity
from loresync.domain.importer import (
    Importer,
    ImportSummary,
    PushFilter,
    build_entity_draft,
    crosslink_lookup,
    kinds_from_names,
)
from loresync.domain.mapping import MappingCorrections, map_entity
from loresync.domain.model import (
    CharacterType,
    EntityKind,
    RecordChanges,
    SheetType,
    TargetType,
)
from tests.support.world import make_record

if TYPE_CHECKING:
    from tests.support.remote import FakeCampaignService
    from tests.support.world import InMemoryLocalStore


@pytest.fixture
def world(store: InMemoryLocalStore) -> InMemoryLocalStore:
    store.add(make_record("a-mira", "Mira", subtype="character", description="Captain"))
    store.add(make_record("a-oren", "Oren", subtype="npc"))
    store.add(make_record("a-rope", "Rope", EntityKind.ITEM))
    store.add(make_record("j-weather", "Weather", EntityKind.JOURNAL, description="Rain"))
    store.add(make_record("j-guild", "Guild Charter", EntityKind.JOURNAL, folder="Factions"))
    store.add(
        make_record("j-recap", "Session 1", EntityKind.JOURNAL, sheet_type=SheetType.RECAP)
    )
    return store


def _importer(
    store: InMemoryLocalStore, remote: FakeCampaignService, campaign_id: str, **kwargs: object
) -> Importer:
    return Importer(store, remote, campaign_id=campaign_id, **kwargs)  # type: ignore[arg-type]


def test_run_applies_thresholds(
    world: InMemoryLocalStore, remote: FakeCampaignService, campaign_id: str
) -> None:
    progress: list[ImportSummary] = []
    importer = _importer(world, remote, campaign_id, auto_threshold=0.9)

    summary = asyncio.run(importer.run(progress.append))

    assert summary.total == 5
    assert summary.completed == 5
    assert summary.auto_imported == 2
    assert summary.queued == 2
    assert summary.dropped == 1
    assert summary.errors == 0
    assert [item.entity.name for item in summary.review_queue] == ["Oren", "Rope"]
    assert remote.operations() == ["create_character", "create_faction"]
    assert [step.completed for step in progress] == [0, 1, 2, 3, 4, 5]

    mira = world.get("a-mira")
    assert mira.is_linked_to(campaign_id)
    assert mira.sheet_type is SheetType.CHARACTER
    assert mira.metadata.fingerprint is not None
    assert world.get("j-guild").sheet_type is SheetType.FACTION
    assert world.get("a-oren").remote_id is None


def test_unchanged_records_are_not_pushed_again(
    world: InMemoryLocalStore, remote: FakeCampaignService, campaign_id: str
) -> None:
    asyncio.run(_importer(world, remote, campaign_id).run())
    calls = len(remote.calls)

    summary = asyncio.run(_importer(world, remote, campaign_id).run())

    assert calls == 4
    assert len(remote.calls) == calls
    assert summary.unchanged == 4
    assert summary.auto_imported == 0


def test_changed_content_updates_the_linked_entity(
    world: InMemoryLocalStore, remote: FakeCampaignService, campaign_id: str
) -> None:
    asyncio.run(_importer(world, remote, campaign_id).run())
    remote_id = world.get("a-mira").remote_id
    world.update("a-mira", RecordChanges(description="Retired captain"))

    summary = asyncio.run(_importer(world, remote, campaign_id).run())

    assert summary.auto_imported == 1
    update = remote.calls[-1]
    assert update.operation == "update_character"
    assert update.campaign_or_id == remote_id
    assert update.draft is not None
    assert update.draft.description == "Retired captain"
    assert world.get("a-mira").remote_id == remote_id


def test_rejected_update_falls_back_to_create(
    store: InMemoryLocalStore, remote: FakeCampaignService, campaign_id: str
) -> None:
    store.add(
        make_record(
            "a-mira", "Mira", subtype="character", remote_id="deleted", campaign_id=campaign_id
        )
    )

    summary = asyncio.run(_importer(store, remote, campaign_id).run())

    assert summary.auto_imported == 1
    assert remote.operations() == ["update_character", "create_character"]
    assert store.get("a-mira").remote_id == "character-1"


def test_remote_failure_is_counted_and_import_continues(
    world: InMemoryLocalStore, remote: FakeCampaignService, campaign_id: str
) -> None:
    remote.failures["Mira"] = RemoteServiceError("unavailable", status_code=503)

    summary = asyncio.run(_importer(world, remote, campaign_id).run())

    assert summary.errors == 1
    assert summary.auto_imported == 3
    assert world.get("a-mira").metadata.fingerprint is None


def test_excluded_entities_are_dropped(
    world: InMemoryLocalStore, remote: FakeCampaignService, campaign_id: str
) -> None:
    corrections = MappingCorrections.model_validate({"bySource": {"a-mira": {"include": False}}})

    summary = asyncio.run(_importer(world, remote, campaign_id, corrections=corrections).run())

    assert summary.dropped == 2
    assert "create_character" in remote.operations()
    assert world.get("a-mira").remote_id is None


def test_push_filtered_ignores_scores(
    world: InMemoryLocalStore, remote: FakeCampaignService, campaign_id: str
) -> None:
    importer = _importer(world, remote, campaign_id, auto_threshold=1.1)

    pushed_items = asyncio.run(
        importer.push_filtered(PushFilter(kinds=frozenset({EntityKind.ITEM})))
    )
    pushed_journals = asyncio.run(
        importer.push_filtered(PushFilter(kinds=frozenset({EntityKind.JOURNAL})))
    )
    pushed_factions = asyncio.run(
        importer.push_filtered(
            PushFilter(target_type=TargetType.FACTION, folder_pattern="^fact")
        )
    )

    assert pushed_items == 1
    assert pushed_journals == 1
    assert pushed_factions == 1
    assert remote.operations() == ["create_item", "create_faction", "update_faction"]


def test_sample_returns_proposals_for_review(
    world: InMemoryLocalStore, remote: FakeCampaignService, campaign_id: str
) -> None:
    corrections = MappingCorrections.model_validate({"bySource": {"a-oren": {"include": False}}})

    sample = _importer(world, remote, campaign_id, corrections=corrections).sample(2)

    assert [(item.entity.name, item.include) for item in sample] == [
        ("Mira", True),
        ("Oren", False),
    ]
    assert sample[0].proposal.target_type is TargetType.CHARACTER
    assert remote.calls == []


def test_entity_draft_resolves_linked_cross_references(
    store: InMemoryLocalStore, campaign_id: str
) -> None:
    store.add(
        make_record(
            "a-rope", "Rope", EntityKind.ITEM, remote_id="r-rope", campaign_id=campaign_id
        )
    )
    mira = store.add(
        make_record(
            "a-mira",
            "Mira",
            subtype="character",
            description="Carries @UUID[Item.a-rope] and @UUID[Item.a-lamp]",
        )
    )
    proposal = map_entity(extract_entity(mira))

    draft = build_entity_draft(proposal, mira, lookup=crosslink_lookup(store, campaign_id))

    assert draft.name == "Mira"
    assert draft.description == "Carries [[r-rope]] and"
    assert draft.character_type is CharacterType.PC


def test_kinds_from_names() -> None:
    assert kinds_from_names(["character", " Item "]) == {EntityKind.CHARACTER, EntityKind.ITEM}
    with pytest.raises(ValueError, match="Unknown entity kind"):
        kinds_from_names(["dragon"])
