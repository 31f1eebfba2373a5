"""Collect everything the remote service lists for one campaign."""

from __future__ import annotations

from logging import getLogger
from typing import TYPE_CHECKING

from loresync.domain.model import RemoteSnapshot

if TYPE_CHECKING:
    from loresync.domain.ports import RemoteCampaignService

log = getLogger(__name__)


async def fetch_snapshot(service: RemoteCampaignService, campaign_id: str) -> RemoteSnapshot:
    """List each resource in turn; requests are never issued in parallel."""

    snapshot = RemoteSnapshot(
        characters=await service.list_characters(campaign_id),
        items=await service.list_items(campaign_id),
        locations=await service.list_locations(campaign_id),
        factions=await service.list_factions(campaign_id),
        sessions=await service.list_sessions(campaign_id),
        links=await service.list_links(campaign_id),
    )
    log.info(
        "Fetched campaign %s: %d characters, %d items, %d locations, %d factions, "
        "%d sessions, %d links",
        campaign_id,
        len(snapshot.characters),
        len(snapshot.items),
        len(snapshot.locations),
        len(snapshot.factions),
        len(snapshot.sessions),
        len(snapshot.links),
    )
    return snapshot
