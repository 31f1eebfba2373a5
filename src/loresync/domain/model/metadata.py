"""Explicit schema for the per-record metadata block owned by the sync engine.

The block is validated both when a store reads it and when it is written back, so
malformed or partially populated data never travels past the store boundary.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field, field_validator

from loresync.domain.model.enums import RelationshipBucket, SheetType

IdList = tuple[str, ...]


def _blank_to_none(value: object) -> object:
    if isinstance(value, str):
        stripped = value.strip()
        return stripped or None
    return value


def _clean_ids(value: object) -> object:
    if value is None:
        return ()
    if isinstance(value, (list, tuple, set, frozenset)):
        seen: dict[str, None] = {}
        for item in value:
            if item is None:
                continue
            text = str(item).strip()
            if text:
                seen.setdefault(text, None)
        return tuple(seen)
    return value


class RelationshipBuckets(BaseModel):
    """Kind-bucketed id lists used for both outbound and legacy symmetric links."""

    model_config = ConfigDict(extra="ignore", populate_by_name=True, frozen=True)

    characters: IdList = ()
    items: IdList = ()
    factions: IdList = ()
    locations_associative: IdList = Field(default=(), alias="locationsAssociative")
    entries: IdList = ()

    _normalize_ids = field_validator(
        "characters", "items", "factions", "locations_associative", "entries", mode="before"
    )(_clean_ids)

    def get(self, bucket: RelationshipBucket) -> IdList:
        return getattr(self, _FIELD_BY_BUCKET[bucket])

    def with_added(self, bucket: RelationshipBucket, record_id: str) -> RelationshipBuckets:
        current = self.get(bucket)
        if record_id in current:
            return self
        return self.model_copy(update={_FIELD_BY_BUCKET[bucket]: (*current, record_id)})

    def with_removed(self, bucket: RelationshipBucket, record_id: str) -> RelationshipBuckets:
        current = self.get(bucket)
        if record_id not in current:
            return self
        remaining = tuple(item for item in current if item != record_id)
        return self.model_copy(update={_FIELD_BY_BUCKET[bucket]: remaining})

    def all_ids(self) -> IdList:
        seen: dict[str, None] = {}
        for bucket in RelationshipBucket:
            for record_id in self.get(bucket):
                seen.setdefault(record_id, None)
        return tuple(seen)

    def is_empty(self) -> bool:
        return not any(self.get(bucket) for bucket in RelationshipBucket)


_FIELD_BY_BUCKET: dict[RelationshipBucket, str] = {
    RelationshipBucket.CHARACTERS: "characters",
    RelationshipBucket.ITEMS: "items",
    RelationshipBucket.FACTIONS: "factions",
    RelationshipBucket.LOCATIONS_ASSOCIATIVE: "locations_associative",
    RelationshipBucket.ENTRIES: "entries",
}


class LocalCrossReferences(BaseModel):
    """Ids of related local records of other kinds."""

    model_config = ConfigDict(extra="ignore", populate_by_name=True, frozen=True)

    actors: IdList = ()
    items: IdList = ()
    scenes: IdList = ()
    journals: IdList = ()

    _normalize_ids = field_validator("actors", "items", "scenes", "journals", mode="before")(
        _clean_ids
    )

    def with_added(self, field_name: str, record_id: str) -> LocalCrossReferences:
        current: IdList = getattr(self, field_name)
        if record_id in current:
            return self
        return self.model_copy(update={field_name: (*current, record_id)})


class RecordMetadata(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True, frozen=True)

    sheet_type: SheetType | None = Field(default=None, alias="sheetType")
    remote_id: str | None = Field(default=None, alias="remoteId")
    remote_campaign_id: str | None = Field(default=None, alias="remoteCampaignId")
    # None marks a legacy record that only ever carried symmetric refs.
    relationship_outbound: RelationshipBuckets | None = Field(
        default=None, alias="relationshipOutbound"
    )
    relationship_refs: RelationshipBuckets = Field(
        default_factory=RelationshipBuckets, alias="relationshipRefs"
    )
    parent_location_id: str | None = Field(default=None, alias="parentLocationId")
    local_cross_references: LocalCrossReferences = Field(
        default_factory=LocalCrossReferences, alias="localCrossReferences"
    )
    fingerprint: str | None = None
    session_date: str | None = Field(default=None, alias="sessionDate")

    _normalize_strings = field_validator(
        "remote_id",
        "remote_campaign_id",
        "parent_location_id",
        "fingerprint",
        "session_date",
        "sheet_type",
        mode="before",
    )(_blank_to_none)

    def is_linked_to(self, campaign_id: str) -> bool:
        return self.remote_id is not None and self.remote_campaign_id == campaign_id

    def is_blank(self) -> bool:
        return self == RecordMetadata()

    def to_storage(self) -> dict[str, object]:
        return self.model_dump(mode="json", by_alias=True)
