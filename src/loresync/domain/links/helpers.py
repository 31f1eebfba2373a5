"""Edits to relationship metadata and the location hierarchy."""

from __future__ import annotations

from logging import getLogger
from typing import TYPE_CHECKING

from loresync.domain.links.graph import (
    bucket_for_record,
    bucket_for_type,
    graph_key,
    is_location,
)
from loresync.domain.model import RelationshipBucket

if TYPE_CHECKING:
    from collections.abc import Iterable

    from loresync.domain.links.indexer import LinkGraphIndexer
    from loresync.domain.model import LocalRecord, RelationshipBuckets, RemoteLink
    from loresync.domain.ports import LocalStore

log = getLogger(__name__)


def link_records(
    store: LocalStore,
    from_id: str,
    to_id: str,
    bucket: RelationshipBucket | None = None,
    *,
    indexer: LinkGraphIndexer | None = None,
) -> bool:
    """Record a link from one record to another.

    Symmetric refs go on both records; the directional outbound entry only on the
    ``from`` record.
    """

    if from_id == to_id:
        return False
    source = store.get(from_id)
    target = store.get(to_id)
    source_bucket = bucket or bucket_for_record(target)
    target_bucket = bucket or bucket_for_record(source)
    source_key, target_key = graph_key(source), graph_key(target)

    store.set_relationship_metadata(
        source.id,
        outbound=_outbound(source).with_added(source_bucket, target_key),
        refs=source.metadata.relationship_refs.with_added(source_bucket, target_key),
    )
    target = store.get(to_id)
    store.set_relationship_metadata(
        target.id,
        outbound=target.metadata.relationship_outbound,
        refs=target.metadata.relationship_refs.with_added(target_bucket, source_key),
    )
    _refresh(indexer)
    return True


def unlink_records(
    store: LocalStore,
    from_id: str,
    to_id: str,
    bucket: RelationshipBucket | None = None,
    *,
    indexer: LinkGraphIndexer | None = None,
) -> bool:
    """Undo ``link_records`` for the same pair and bucket."""

    if from_id == to_id:
        return False
    source = store.get(from_id)
    target = store.get(to_id)
    source_bucket = bucket or bucket_for_record(target)
    target_bucket = bucket or bucket_for_record(source)
    source_key, target_key = graph_key(source), graph_key(target)

    outbound = source.metadata.relationship_outbound
    store.set_relationship_metadata(
        source.id,
        outbound=outbound.with_removed(source_bucket, target_key) if outbound else None,
        refs=source.metadata.relationship_refs.with_removed(source_bucket, target_key),
    )
    target = store.get(to_id)
    store.set_relationship_metadata(
        target.id,
        outbound=target.metadata.relationship_outbound,
        refs=target.metadata.relationship_refs.with_removed(target_bucket, source_key),
    )
    _refresh(indexer)
    return True


def set_location_parent(
    store: LocalStore,
    child_id: str,
    parent_key: str | None,
    *,
    indexer: LinkGraphIndexer | None = None,
) -> bool:
    """Reparent a location unless the new parent descends from it.

    The prospective parent's chain is walked through the stored parent pointers
    before anything is written. Returns ``False`` when the edit is refused.
    """

    child = store.get(child_id)
    child_key = graph_key(child)
    if parent_key is not None and _chain_contains(store, parent_key, child_key):
        log.warning(
            "Refusing to parent location %s under its descendant %s", child_key, parent_key
        )
        return False

    store.set_parent_location(child.id, parent_key)
    _refresh(indexer)
    return True


def hydrate_links(
    store: LocalStore,
    links: Iterable[RemoteLink],
    *,
    campaign_id: str | None = None,
    indexer: LinkGraphIndexer | None = None,
) -> int:
    """Copy remote links onto local metadata when both endpoints are known locally.

    Unknown entity types land in the ``entries`` bucket. Returns the number of links
    applied.
    """

    by_remote_id: dict[str, LocalRecord] = {}
    for record in store.list_records():
        if record.remote_id is None:
            continue
        if campaign_id is not None and not record.is_linked_to(campaign_id):
            continue
        by_remote_id.setdefault(record.remote_id, record)

    applied = 0
    for link in links:
        source = by_remote_id.get(link.from_id)
        target = by_remote_id.get(link.to_id)
        if source is None or target is None:
            continue
        to_bucket = bucket_for_type(link.to_type) or RelationshipBucket.ENTRIES
        from_bucket = bucket_for_type(link.from_type) or RelationshipBucket.ENTRIES

        source = store.get(source.id)
        store.set_relationship_metadata(
            source.id,
            outbound=_outbound(source).with_added(to_bucket, link.to_id),
            refs=source.metadata.relationship_refs.with_added(to_bucket, link.to_id),
        )
        target = store.get(target.id)
        store.set_relationship_metadata(
            target.id,
            outbound=target.metadata.relationship_outbound,
            refs=target.metadata.relationship_refs.with_added(from_bucket, link.from_id),
        )
        applied += 1

    if applied:
        _refresh(indexer)
    return applied


def _outbound(record: LocalRecord) -> RelationshipBuckets:
    # Legacy records start their directional list from the symmetric refs.
    outbound = record.metadata.relationship_outbound
    return outbound if outbound is not None else record.metadata.relationship_refs


def _chain_contains(store: LocalStore, start_key: str, needle: str) -> bool:
    parent_by_key: dict[str, str | None] = {}
    for record in store.list_records():
        if is_location(record):
            parent_by_key.setdefault(graph_key(record), record.metadata.parent_location_id)

    seen: set[str] = set()
    current: str | None = start_key
    while current is not None and current not in seen:
        if current == needle:
            return True
        seen.add(current)
        current = parent_by_key.get(current)
    return False


def _refresh(indexer: LinkGraphIndexer | None) -> None:
    if indexer is not None:
        indexer.rebuild()
