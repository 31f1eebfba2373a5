"""One-shot alignment of already linked local records with the remote service."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import UTC, datetime
from logging import getLogger
from typing import TYPE_CHECKING

from loresync.domain.links import hydrate_links, set_location_parent
from loresync.domain.links.graph import is_location
from loresync.domain.model import RecordChanges
from loresync.domain.sync.executor import SyncPlanExecutor
from loresync.domain.sync.plan import RecapJob, plan_from_jobs
from loresync.domain.sync.snapshot import fetch_snapshot

if TYPE_CHECKING:
    from loresync.domain.links import LinkGraphIndexer
    from loresync.domain.model import LocalRecord, RemoteEntity, RemoteSession, RemoteSnapshot
    from loresync.domain.ports import LocalStore, RemoteCampaignService

log = getLogger(__name__)


@dataclass(slots=True)
class RefreshSummary:
    renamed: int = 0
    images_updated: int = 0
    parents_aligned: int = 0
    recaps: int = 0
    links_hydrated: int = 0
    failures: int = 0


async def refresh(
    store: LocalStore,
    remote: RemoteCampaignService,
    campaign_id: str,
    *,
    indexer: LinkGraphIndexer | None = None,
    snapshot: RemoteSnapshot | None = None,
) -> RefreshSummary:
    """Pull remote names, images, hierarchy, recaps and links onto linked records.

    Local bodies are never overwritten.
    """

    current = snapshot or await fetch_snapshot(remote, campaign_id)
    summary = RefreshSummary()
    remote_by_id = {entity.id: entity for entity in current.entities()}

    for record in store.list_records():
        if record.remote_id is None or not record.is_linked_to(campaign_id):
            continue
        entity = remote_by_id.get(record.remote_id)
        if entity is None:
            continue
        _align_record(store, record, entity, summary)
        if not is_location(record):
            continue
        parent = entity.parent_id if entity.parent_id != entity.id else None
        if parent != record.metadata.parent_location_id and set_location_parent(
            store, record.id, parent
        ):
            summary.parents_aligned += 1

    sessions = sorted(current.sessions, key=_session_order)
    if sessions:
        executor = SyncPlanExecutor(store, remote)
        report = await executor.execute(
            plan_from_jobs(campaign_id, (RecapJob(session=session) for session in sessions))
        )
        summary.recaps = len(report.succeeded)
        summary.failures += report.failures

    summary.links_hydrated = hydrate_links(store, current.links, campaign_id=campaign_id)
    if indexer is not None:
        indexer.rebuild()
    log.info(
        "Refreshed campaign %s: %d renamed, %d images, %d parents, %d recaps, %d links",
        campaign_id,
        summary.renamed,
        summary.images_updated,
        summary.parents_aligned,
        summary.recaps,
        summary.links_hydrated,
    )
    return summary


def _align_record(
    store: LocalStore, record: LocalRecord, entity: RemoteEntity, summary: RefreshSummary
) -> None:
    rename = bool(entity.name) and entity.name != record.name
    image = entity.image.strip() if entity.image else None
    replace_image = bool(image) and (not record.images or record.images[0] != image)
    if not rename and not replace_image:
        return
    images = (image, *(item for item in record.images if item != image)) if image else None
    store.update(
        record.id,
        RecordChanges(
            name=entity.name if rename else None,
            images=images if replace_image else None,
        ),
    )
    summary.renamed += int(rename)
    summary.images_updated += int(replace_image)


_UNDATED = datetime.min.replace(tzinfo=UTC)


def _session_order(session: RemoteSession) -> tuple[int, datetime, str]:
    # Undated sessions go last.
    if session.session_date is None:
        return (1, _UNDATED, session.id)
    return (0, session.session_date, session.id)
