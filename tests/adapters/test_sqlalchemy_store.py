from __future__ import annotations

from typing import TYPE_CHECKING

import pytest
from sqlalchemy import update

from loresync.adapters.sqlalchemy import (
    SqlAlchemyLocalStore,
    StartupError,
    is_started,
    shutdown,
    startup,
    world_records_table,
)
from loresync.domain.errors import LocalStoreError, RecordNotFoundError
from loresync.domain.extraction import EntityExtractor
from loresync.domain.links import link_records
from loresync.domain.model import (
    EntityKind,
    RecordChanges,
    RecordDraft,
    RecordMetadata,
    RelationshipBuckets,
    SheetType,
)
from loresync.domain.reset import reset_engine_metadata

if TYPE_CHECKING:
    from sqlalchemy.engine import Engine


def test_create_and_read_back(sqlite_store: SqlAlchemyLocalStore) -> None:
    created = sqlite_store.create_character(
        RecordDraft(
            kind=EntityKind.JOURNAL,
            name="Mira",
            subtype="character",
            images=("tokens/mira.png",),
            system={"details": {"biography": {"value": "<p>Captain</p>"}}},
            metadata=RecordMetadata(remote_id="c1", remote_campaign_id="camp"),
        )
    )

    loaded = sqlite_store.get(created.id)

    assert len(created.id) == 16
    assert loaded == created
    assert loaded.kind is EntityKind.CHARACTER
    assert loaded.images == ("tokens/mira.png",)
    assert loaded.system == {"details": {"biography": {"value": "<p>Captain</p>"}}}
    assert loaded.is_linked_to("camp")


def test_list_records_filters_by_kind_in_insertion_order(
    sqlite_store: SqlAlchemyLocalStore,
) -> None:
    sqlite_store.create_item(RecordDraft(kind=EntityKind.ITEM, name="Rope"))
    sqlite_store.create_character(RecordDraft(kind=EntityKind.CHARACTER, name="Mira"))
    sqlite_store.create_item(RecordDraft(kind=EntityKind.ITEM, name="Lamp"))
    sqlite_store.create_entry(
        RecordDraft(
            kind=EntityKind.JOURNAL,
            name="Guild",
            metadata=RecordMetadata(sheet_type=SheetType.FACTION),
        )
    )

    assert [record.name for record in sqlite_store.list_items()] == ["Rope", "Lamp"]
    assert [record.name for record in sqlite_store.list_records()] == [
        "Rope",
        "Mira",
        "Lamp",
        "Guild",
    ]
    assert [record.name for record in sqlite_store.list_factions()] == ["Guild"]


def test_update_only_touches_given_fields(sqlite_store: SqlAlchemyLocalStore) -> None:
    record = sqlite_store.create_location(
        RecordDraft(kind=EntityKind.LOCATION, name="Harbor", description="Docks")
    )

    updated = sqlite_store.update(record.id, RecordChanges(name="Old Harbor"))

    assert updated.name == "Old Harbor"
    assert updated.description == "Docks"
    assert sqlite_store.update(record.id, RecordChanges()) == updated


def test_metadata_round_trips_through_helpers(sqlite_store: SqlAlchemyLocalStore) -> None:
    mira = sqlite_store.create_character(RecordDraft(kind=EntityKind.CHARACTER, name="Mira"))
    rope = sqlite_store.create_item(RecordDraft(kind=EntityKind.ITEM, name="Rope"))

    sqlite_store.set_cross_reference(mira.id, "c1", campaign_id="camp")
    link_records(sqlite_store, mira.id, rope.id)
    sqlite_store.set_fingerprint(rope.id, "abc")

    mira_meta = sqlite_store.get(mira.id).metadata
    rope_meta = sqlite_store.get(rope.id).metadata
    assert mira_meta.remote_id == "c1"
    assert mira_meta.relationship_outbound == RelationshipBuckets(items=(rope.id,))
    assert rope_meta.relationship_refs.characters == ("c1",)
    assert rope_meta.relationship_outbound is None
    assert rope_meta.fingerprint == "abc"
    assert sqlite_store.find_by_remote_id("c1", campaign_id="camp") == sqlite_store.get(mira.id)


def test_missing_record_raises(sqlite_store: SqlAlchemyLocalStore) -> None:
    with pytest.raises(RecordNotFoundError):
        sqlite_store.get("nope")
    with pytest.raises(RecordNotFoundError):
        sqlite_store.update("nope", RecordChanges(name="x"))
    with pytest.raises(RecordNotFoundError):
        sqlite_store.write_metadata("nope", RecordMetadata())


def test_invalid_stored_metadata_is_rejected_on_read(
    sqlite_store: SqlAlchemyLocalStore, sqlite_engine: Engine
) -> None:
    record = sqlite_store.create_item(RecordDraft(kind=EntityKind.ITEM, name="Rope"))
    with sqlite_engine.begin() as connection:
        connection.execute(
            update(world_records_table)
            .where(world_records_table.c.record_id == record.id)
            .values(engine_metadata={"sheetType": "spaceship"})
        )

    with pytest.raises(LocalStoreError, match="invalid"):
        sqlite_store.get(record.id)


def _corrupt(engine: Engine, record_id: str, **values: object) -> None:
    with engine.begin() as connection:
        connection.execute(
            update(world_records_table)
            .where(world_records_table.c.record_id == record_id)
            .values(**values)
        )


def test_unreadable_rows_are_skipped_by_extraction_and_healed_by_reset(
    sqlite_store: SqlAlchemyLocalStore, sqlite_engine: Engine
) -> None:
    sqlite_store.create_character(RecordDraft(kind=EntityKind.CHARACTER, name="Mira"))
    rope = sqlite_store.create_item(
        RecordDraft(kind=EntityKind.ITEM, name="Rope", metadata=RecordMetadata(remote_id="i1"))
    )
    sqlite_store.create_item(RecordDraft(kind=EntityKind.ITEM, name="Lamp"))
    _corrupt(sqlite_engine, rope.id, engine_metadata={"sheetType": "spaceship"})

    names = [entity.name for entity in EntityExtractor(sqlite_store)]

    assert names == ["Mira", "Lamp"]
    assert sqlite_store.list_damaged_metadata() == [rope.id]

    result = reset_engine_metadata(sqlite_store)

    assert result.scanned == 3
    assert sqlite_store.get(rope.id).metadata.is_blank()
    assert sqlite_store.list_damaged_metadata() == []
    assert [record.name for record in sqlite_store.list_items()] == ["Rope", "Lamp"]
    assert reset_engine_metadata(sqlite_store).cleared == 0


def test_rows_of_unknown_kind_are_left_out_of_listings(
    sqlite_store: SqlAlchemyLocalStore, sqlite_engine: Engine
) -> None:
    ship = sqlite_store.create_item(RecordDraft(kind=EntityKind.ITEM, name="Ship"))
    sqlite_store.create_item(RecordDraft(kind=EntityKind.ITEM, name="Rope"))
    _corrupt(sqlite_engine, ship.id, kind="spaceship", engine_metadata={"sheetType": "x"})

    assert [record.name for record in sqlite_store.list_records()] == ["Rope"]
    assert sqlite_store.list_damaged_metadata() == []
    with pytest.raises(LocalStoreError, match="unknown"):
        sqlite_store.get(ship.id)


def test_startup_guards(sqlite_engine: Engine) -> None:
    shutdown()
    assert not is_started()
    with pytest.raises(StartupError):
        SqlAlchemyLocalStore()
    with pytest.raises(StartupError):
        startup()

    startup(engine=sqlite_engine)
    try:
        assert is_started()
        with pytest.raises(StartupError, match="already initialised"):
            startup(engine=sqlite_engine)
    finally:
        shutdown()


def test_from_engine_creates_tables(sqlite_engine: Engine) -> None:
    store = SqlAlchemyLocalStore.from_engine(sqlite_engine)

    record = store.create_entry(RecordDraft(kind=EntityKind.JOURNAL, name="Weather"))

    assert store.get(record.id).name == "Weather"
