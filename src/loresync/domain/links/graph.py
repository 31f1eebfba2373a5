"""Derived, rebuildable index over the relationship metadata of every record."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from loresync.domain.model import EntityKind, RelationshipBucket, RelationshipBuckets, SheetType

if TYPE_CHECKING:
    from collections.abc import Iterable, Mapping

    from loresync.domain.model import LocalRecord

_BUCKET_BY_TYPE: dict[str, RelationshipBucket] = {
    "character": RelationshipBucket.CHARACTERS,
    "item": RelationshipBucket.ITEMS,
    "location": RelationshipBucket.LOCATIONS_ASSOCIATIVE,
    "faction": RelationshipBucket.FACTIONS,
    "entry": RelationshipBucket.ENTRIES,
    "journal": RelationshipBucket.ENTRIES,
    "journalentry": RelationshipBucket.ENTRIES,
}

_EMPTY = RelationshipBuckets()


def bucket_for_type(value: str | None) -> RelationshipBucket | None:
    """Bucket for a remote entity type name; ``None`` for unknown types."""

    return _BUCKET_BY_TYPE.get((value or "").strip().lower())


def bucket_for_record(record: LocalRecord) -> RelationshipBucket:
    if is_location(record):
        return RelationshipBucket.LOCATIONS_ASSOCIATIVE
    if record.kind is EntityKind.CHARACTER or record.sheet_type is SheetType.CHARACTER:
        return RelationshipBucket.CHARACTERS
    if record.kind is EntityKind.ITEM or record.sheet_type is SheetType.ITEM:
        return RelationshipBucket.ITEMS
    if record.sheet_type is SheetType.FACTION:
        return RelationshipBucket.FACTIONS
    return RelationshipBucket.ENTRIES


_REMOTE_TYPE_BY_BUCKET: dict[RelationshipBucket, str] = {
    RelationshipBucket.CHARACTERS: "Character",
    RelationshipBucket.ITEMS: "Item",
    RelationshipBucket.LOCATIONS_ASSOCIATIVE: "Location",
    RelationshipBucket.FACTIONS: "Faction",
    RelationshipBucket.ENTRIES: "Entry",
}


def remote_type_for(record: LocalRecord) -> str:
    """Entity type name the remote link resource uses for ``record``."""

    return _REMOTE_TYPE_BY_BUCKET[bucket_for_record(record)]


def is_location(record: LocalRecord) -> bool:
    return record.kind is EntityKind.LOCATION or record.sheet_type is SheetType.LOCATION


def graph_key(record: LocalRecord) -> str:
    """Remote ids identify records across stores; unlinked records fall back to their own id."""

    return record.remote_id or record.id


def effective_outbound(record: LocalRecord) -> RelationshipBuckets:
    """Directional links when recorded, else the legacy symmetric refs."""

    outbound = record.metadata.relationship_outbound
    return outbound if outbound is not None else record.metadata.relationship_refs


@dataclass(slots=True, kw_only=True)
class LinkGraph:
    outbound_by_from_id: dict[str, RelationshipBuckets] = field(
        default_factory=dict[str, RelationshipBuckets]
    )
    children_by_location_id: dict[str, tuple[str, ...]] = field(
        default_factory=dict[str, tuple[str, ...]]
    )
    ancestors_by_location_id: dict[str, tuple[str, ...]] = field(
        default_factory=dict[str, tuple[str, ...]]
    )
    associates_by_location_id: dict[str, tuple[str, ...]] = field(
        default_factory=dict[str, tuple[str, ...]]
    )
    record_id_by_key: dict[str, str] = field(default_factory=dict[str, str])

    def outbound(self, key: str) -> RelationshipBuckets:
        return self.outbound_by_from_id.get(key, _EMPTY)

    def children(self, key: str) -> tuple[str, ...]:
        return self.children_by_location_id.get(key, ())

    def ancestors(self, key: str) -> tuple[str, ...]:
        """Root-to-parent chain of a location."""

        return self.ancestors_by_location_id.get(key, ())

    def descendants(self, key: str) -> list[str]:
        found: list[str] = []
        seen = {key}
        pending = list(self.children(key))
        while pending:
            current = pending.pop(0)
            if current in seen:
                continue
            seen.add(current)
            found.append(current)
            pending.extend(self.children(current))
        return found

    def record_id(self, key: str) -> str | None:
        return self.record_id_by_key.get(key)


def build_graph(records: Iterable[LocalRecord]) -> LinkGraph:
    """Single pass over all records; lookups are dictionary hits afterwards."""

    graph = LinkGraph()
    parent_of: dict[str, str] = {}
    children: dict[str, list[str]] = {}
    for record in records:
        key = graph_key(record)
        graph.record_id_by_key.setdefault(key, record.id)
        graph.outbound_by_from_id[key] = _merge(graph.outbound_by_from_id.get(key), record)
        if not is_location(record):
            continue
        parent = record.metadata.parent_location_id
        if parent and parent != key:
            parent_of[key] = parent
            children.setdefault(parent, []).append(key)
        associates = record.metadata.relationship_refs.locations_associative
        if associates:
            graph.associates_by_location_id[key] = associates

    graph.children_by_location_id = {key: tuple(value) for key, value in children.items()}
    for key in {*parent_of, *parent_of.values()}:
        graph.ancestors_by_location_id[key] = ancestor_chain(key, parent_of)
    return graph


def ancestor_chain(key: str, parent_of: Mapping[str, str]) -> tuple[str, ...]:
    """Walk parent pointers upwards; the walk stops at the first repeated id."""

    chain: list[str] = []
    seen = {key}
    current = parent_of.get(key)
    while current is not None and current not in seen:
        chain.append(current)
        seen.add(current)
        current = parent_of.get(current)
    chain.reverse()
    return tuple(chain)


def _merge(existing: RelationshipBuckets | None, record: LocalRecord) -> RelationshipBuckets:
    merged = existing or _EMPTY
    source = effective_outbound(record)
    for bucket in RelationshipBucket:
        for target in source.get(bucket):
            merged = merged.with_added(bucket, target)
    return merged
