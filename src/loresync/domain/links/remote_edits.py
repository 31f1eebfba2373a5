"""Link and hierarchy edits that are written locally and then to the remote service.

Each function applies the local edit first through the plain helpers. The remote
write follows only when both ends carry a cross reference for ``campaign_id``;
otherwise the edit stays local. Remote errors propagate after the local edit has
been stored.
"""

from __future__ import annotations

from logging import getLogger
from typing import TYPE_CHECKING

from loresync.domain.links.graph import remote_type_for
from loresync.domain.links.helpers import link_records, set_location_parent, unlink_records
from loresync.domain.model import LinkDraft

if TYPE_CHECKING:
    from loresync.domain.links.indexer import LinkGraphIndexer
    from loresync.domain.model import LocalRecord, RelationshipBucket
    from loresync.domain.ports import LocalStore, RemoteCampaignService

log = getLogger(__name__)


async def push_link(
    store: LocalStore,
    remote: RemoteCampaignService,
    campaign_id: str,
    from_id: str,
    to_id: str,
    bucket: RelationshipBucket | None = None,
    *,
    indexer: LinkGraphIndexer | None = None,
) -> bool:
    """``link_records`` plus the matching remote link, unless the service already has it."""

    if not link_records(store, from_id, to_id, bucket, indexer=indexer):
        return False
    source, target = store.get(from_id), store.get(to_id)
    ends = _remote_ends(source, target, campaign_id)
    if ends is None:
        return True
    remote_from, remote_to = ends
    existing = await remote.list_links(campaign_id)
    if any(link.from_id == remote_from and link.to_id == remote_to for link in existing):
        return True
    await remote.create_link(
        campaign_id,
        LinkDraft(
            from_id=remote_from,
            from_type=remote_type_for(source),
            to_id=remote_to,
            to_type=remote_type_for(target),
            alias=target.name,
        ),
    )
    log.debug("Created remote link %s -> %s", remote_from, remote_to)
    return True


async def push_unlink(
    store: LocalStore,
    remote: RemoteCampaignService,
    campaign_id: str,
    from_id: str,
    to_id: str,
    bucket: RelationshipBucket | None = None,
    *,
    indexer: LinkGraphIndexer | None = None,
) -> bool:
    """``unlink_records`` plus deletion of every remote link from ``from_id`` to ``to_id``."""

    if not unlink_records(store, from_id, to_id, bucket, indexer=indexer):
        return False
    ends = _remote_ends(store.get(from_id), store.get(to_id), campaign_id)
    if ends is None:
        return True
    remote_from, remote_to = ends
    for link in await remote.list_links(campaign_id):
        if link.from_id == remote_from and link.to_id == remote_to:
            await remote.delete_link(campaign_id, link.id)
    return True


async def push_location_parent(
    store: LocalStore,
    remote: RemoteCampaignService,
    campaign_id: str,
    child_id: str,
    parent_key: str | None,
    *,
    indexer: LinkGraphIndexer | None = None,
) -> bool:
    """``set_location_parent`` plus the remote ``parent_id``; refused edits touch neither."""

    if not set_location_parent(store, child_id, parent_key, indexer=indexer):
        return False
    child = store.get(child_id)
    if child.remote_id is None or not child.is_linked_to(campaign_id):
        return True
    parent = store.find_by_remote_id(parent_key, campaign_id=campaign_id) if parent_key else None
    if parent_key is not None and parent is None:
        log.warning(
            "Parent %s of location %s is not on the remote service; a refresh will restore "
            "the remote parent",
            parent_key,
            child.id,
        )
        return True
    await remote.update_location_parent(child.remote_id, parent_key)
    return True


def _remote_ends(
    source: LocalRecord, target: LocalRecord, campaign_id: str
) -> tuple[str, str] | None:
    if not (source.is_linked_to(campaign_id) and target.is_linked_to(campaign_id)):
        return None
    if source.remote_id is None or target.remote_id is None:
        return None
    return source.remote_id, target.remote_id
