"""Port for the local world store.

Adapters implement five primitives; every other operation the engine needs is
expressed on top of them here, so all stores share one behaviour for cross
references, relationship metadata and parent pointers.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

from loresync.domain.model import EntityKind, RecordDraft, SheetType

if TYPE_CHECKING:
    from collections.abc import Iterable, Iterator

    from loresync.domain.model import (
        LocalRecord,
        RecordChanges,
        RecordMetadata,
        RelationshipBuckets,
    )

_CROSS_REFERENCE_FIELD_BY_KIND: dict[EntityKind, str] = {
    EntityKind.CHARACTER: "actors",
    EntityKind.ITEM: "items",
    EntityKind.LOCATION: "scenes",
    EntityKind.FACTION: "journals",
    EntityKind.JOURNAL: "journals",
}


class LocalStore(ABC):
    """Read/write contract for the local world store."""

    @abstractmethod
    def list_records(self, kind: EntityKind | None = None) -> list[LocalRecord]:
        """Return records of ``kind`` (all records when ``None``) in a stable order."""

    @abstractmethod
    def get(self, record_id: str) -> LocalRecord:
        """Return a record or raise ``RecordNotFoundError``."""

    @abstractmethod
    def create(self, draft: RecordDraft) -> LocalRecord: ...

    @abstractmethod
    def update(self, record_id: str, changes: RecordChanges) -> LocalRecord: ...

    @abstractmethod
    def write_metadata(self, record_id: str, metadata: RecordMetadata) -> LocalRecord: ...

    # reads

    def list_characters(self) -> list[LocalRecord]:
        return self.list_records(EntityKind.CHARACTER)

    def list_items(self) -> list[LocalRecord]:
        return self.list_records(EntityKind.ITEM)

    def list_locations(self) -> list[LocalRecord]:
        return self.list_records(EntityKind.LOCATION)

    def list_factions(self) -> list[LocalRecord]:
        """Faction reference entries live among the free-text records."""

        return [
            record
            for record in self.list_records(EntityKind.JOURNAL)
            if record.sheet_type is SheetType.FACTION
        ]

    def list_free_text(self) -> list[LocalRecord]:
        return self.list_records(EntityKind.JOURNAL)

    def iter_all(self) -> Iterator[LocalRecord]:
        yield from self.list_records()

    def list_damaged_metadata(self) -> list[str]:
        """Ids of records whose stored metadata no longer parses.

        ``list_records`` leaves such records out; ``write_metadata`` can still replace
        the block by id.
        """

        return []

    def find_by_remote_id(
        self,
        remote_id: str,
        *,
        campaign_id: str | None = None,
        kinds: Iterable[EntityKind] | None = None,
        sheet_type: SheetType | None = None,
    ) -> LocalRecord | None:
        wanted = set(kinds) if kinds is not None else None
        for record in self.list_records():
            if record.remote_id != remote_id:
                continue
            if campaign_id is not None and record.metadata.remote_campaign_id != campaign_id:
                continue
            if wanted is not None and record.kind not in wanted:
                continue
            if sheet_type is not None and record.sheet_type is not sheet_type:
                continue
            return record
        return None

    # creates

    def create_character(self, draft: RecordDraft) -> LocalRecord:
        return self.create(_with_kind(draft, EntityKind.CHARACTER))

    def create_item(self, draft: RecordDraft) -> LocalRecord:
        return self.create(_with_kind(draft, EntityKind.ITEM))

    def create_location(self, draft: RecordDraft) -> LocalRecord:
        return self.create(_with_kind(draft, EntityKind.LOCATION))

    def create_entry(self, draft: RecordDraft) -> LocalRecord:
        return self.create(_with_kind(draft, EntityKind.JOURNAL))

    # metadata

    def set_cross_reference(
        self,
        record_id: str,
        remote_id: str,
        *,
        campaign_id: str,
        sheet_type: SheetType | None = None,
    ) -> LocalRecord:
        record = self.get(record_id)
        update: dict[str, object] = {"remote_id": remote_id, "remote_campaign_id": campaign_id}
        if sheet_type is not None:
            update["sheet_type"] = sheet_type
        return self.write_metadata(record_id, record.metadata.model_copy(update=update))

    def set_relationship_metadata(
        self,
        record_id: str,
        *,
        outbound: RelationshipBuckets | None,
        refs: RelationshipBuckets,
    ) -> LocalRecord:
        record = self.get(record_id)
        metadata = record.metadata.model_copy(
            update={"relationship_outbound": outbound, "relationship_refs": refs}
        )
        return self.write_metadata(record_id, metadata)

    def set_parent_location(self, record_id: str, parent_id: str | None) -> LocalRecord:
        record = self.get(record_id)
        metadata = record.metadata.model_copy(update={"parent_location_id": parent_id})
        return self.write_metadata(record_id, metadata)

    def set_fingerprint(self, record_id: str, fingerprint: str | None) -> LocalRecord:
        record = self.get(record_id)
        return self.write_metadata(
            record_id, record.metadata.model_copy(update={"fingerprint": fingerprint})
        )

    def add_local_cross_reference(self, record_id: str, other: LocalRecord) -> LocalRecord:
        record = self.get(record_id)
        field_name = _CROSS_REFERENCE_FIELD_BY_KIND[other.kind]
        references = record.metadata.local_cross_references.with_added(field_name, other.id)
        if references is record.metadata.local_cross_references:
            return record
        return self.write_metadata(
            record_id, record.metadata.model_copy(update={"local_cross_references": references})
        )


def _with_kind(draft: RecordDraft, kind: EntityKind) -> RecordDraft:
    if draft.kind is kind:
        return draft
    return RecordDraft(
        kind=kind,
        name=draft.name,
        subtype=draft.subtype,
        folder=draft.folder,
        description=draft.description,
        images=draft.images,
        system=draft.system,
        metadata=draft.metadata,
    )
