"""Application orchestration entry points."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from logging import getLogger
from typing import TYPE_CHECKING

from loresync.adapters.campaign_service import CampaignServiceClient
from loresync.adapters.sqlalchemy import SqlAlchemyLocalStore, is_started, startup
from loresync.config import get_database_config, get_remote_config, get_sync_config
from loresync.domain.importer import Importer, ImportSummary, PushFilter, ReviewItem
from loresync.domain.links import LinkGraphIndexer
from loresync.domain.mapping import get_preset, load_corrections
from loresync.domain.reconciliation import LocalSnapshot, Reconciliation, reconcile
from loresync.domain.reset import ResetResult, reset_engine_metadata
from loresync.domain.sync import (
    RefreshSummary,
    SyncPlan,
    SyncPlanExecutor,
    SyncReport,
    build_plan,
    fetch_snapshot,
    refresh,
)

if TYPE_CHECKING:
    from loresync.config import SyncConfig
    from loresync.domain.importer.service import ImportProgressCallback
    from loresync.domain.links import LinkGraph
    from loresync.domain.model import RemoteSnapshot
    from loresync.domain.ports import LocalStore, RemoteCampaignService
    from loresync.domain.sync import CreateLocalChoices
    from loresync.domain.sync.executor import ProgressCallback


log = getLogger(__name__)


@dataclass(slots=True, frozen=True)
class PlannedSync:
    snapshot: RemoteSnapshot
    reconciliation: Reconciliation
    plan: SyncPlan


def open_store(*, database_uri: str | None = None) -> SqlAlchemyLocalStore:
    """Return the world store, initialising the database on first use."""

    if not is_started():
        if database_uri is None:
            config = get_database_config()
            startup(database_uri=config.uri, echo=config.echo)
        else:
            startup(database_uri=database_uri)
    return SqlAlchemyLocalStore()


def build_remote_client(*, sync_config: SyncConfig | None = None) -> CampaignServiceClient:
    return CampaignServiceClient.from_config(get_remote_config(), sync_config or get_sync_config())


def _campaign(campaign_id: str | None) -> str:
    return campaign_id or get_remote_config().campaign_id


async def _plan(
    store: LocalStore,
    remote: RemoteCampaignService,
    campaign_id: str,
    choices: CreateLocalChoices | None,
) -> PlannedSync:
    snapshot = await fetch_snapshot(remote, campaign_id)
    reconciliation = reconcile(snapshot, LocalSnapshot.from_store(store), campaign_id=campaign_id)
    plan = build_plan(reconciliation, choices, snapshot=snapshot, campaign_id=campaign_id)
    return PlannedSync(snapshot=snapshot, reconciliation=reconciliation, plan=plan)


def plan_sync(
    *,
    store: LocalStore | None = None,
    remote: RemoteCampaignService | None = None,
    campaign_id: str | None = None,
    choices: CreateLocalChoices | None = None,
) -> PlannedSync:
    """Reconcile the campaign against the world store and build the plan without running it."""

    return asyncio.run(
        _plan(
            store or open_store(),
            remote or build_remote_client(),
            _campaign(campaign_id),
            choices,
        )
    )


def run_sync(
    *,
    store: LocalStore | None = None,
    remote: RemoteCampaignService | None = None,
    campaign_id: str | None = None,
    choices: CreateLocalChoices | None = None,
    on_progress: ProgressCallback | None = None,
) -> SyncReport:
    """Reconcile, plan and execute a full sync."""

    effective_store = store or open_store()
    effective_remote = remote or build_remote_client()
    effective_campaign = _campaign(campaign_id)
    log.info(f"Starting sync for campaign {effective_campaign}")

    async def _run() -> SyncReport:
        planned = await _plan(effective_store, effective_remote, effective_campaign, choices)
        executor = SyncPlanExecutor(
            effective_store, effective_remote, indexer=LinkGraphIndexer(effective_store)
        )
        return await executor.execute(planned.plan, on_progress)

    report = asyncio.run(_run())
    log.info(
        f"Finished sync: processed={report.processed}/{report.total}, "
        f"skipped={len(report.skipped)}, failed={report.failures}"
    )
    return report


def retry_failed(
    report: SyncReport,
    plan: SyncPlan,
    *,
    store: LocalStore | None = None,
    remote: RemoteCampaignService | None = None,
    on_progress: ProgressCallback | None = None,
) -> SyncReport:
    """Run the failed jobs of ``report`` again as a fresh plan."""

    effective_store = store or open_store()
    executor = SyncPlanExecutor(
        effective_store, remote or build_remote_client(), indexer=LinkGraphIndexer(effective_store)
    )
    return asyncio.run(executor.execute(plan.retry_plan(report), on_progress))


def _importer(
    store: LocalStore | None,
    remote: RemoteCampaignService | None,
    campaign_id: str | None,
    sync_config: SyncConfig | None,
) -> Importer:
    config = sync_config or get_sync_config()
    return Importer(
        store or open_store(),
        remote or build_remote_client(sync_config=config),
        campaign_id=_campaign(campaign_id),
        preset=get_preset(config.system_id),
        corrections=load_corrections(config.mapping_overrides_path),
        auto_threshold=config.auto_import_threshold,
        review_threshold=config.review_threshold,
    )


def run_import(
    *,
    store: LocalStore | None = None,
    remote: RemoteCampaignService | None = None,
    campaign_id: str | None = None,
    sync_config: SyncConfig | None = None,
    on_progress: ImportProgressCallback | None = None,
) -> ImportSummary:
    """Score every local entity and push the confident ones to the campaign service."""

    importer = _importer(store, remote, campaign_id, sync_config)
    return asyncio.run(importer.run(on_progress))


def sample_import(
    size: int,
    *,
    store: LocalStore | None = None,
    remote: RemoteCampaignService | None = None,
    campaign_id: str | None = None,
    sync_config: SyncConfig | None = None,
) -> list[ReviewItem]:
    return _importer(store, remote, campaign_id, sync_config).sample(size)


def push_filtered(
    push_filter: PushFilter,
    *,
    store: LocalStore | None = None,
    remote: RemoteCampaignService | None = None,
    campaign_id: str | None = None,
    sync_config: SyncConfig | None = None,
) -> int:
    importer = _importer(store, remote, campaign_id, sync_config)
    return asyncio.run(importer.push_filtered(push_filter))


def refresh_campaign(
    *,
    store: LocalStore | None = None,
    remote: RemoteCampaignService | None = None,
    campaign_id: str | None = None,
) -> RefreshSummary:
    effective_store = store or open_store()
    summary = asyncio.run(
        refresh(
            effective_store,
            remote or build_remote_client(),
            _campaign(campaign_id),
            indexer=LinkGraphIndexer(effective_store),
        )
    )
    log.info(
        f"Finished refresh: renamed={summary.renamed}, images={summary.images_updated}, "
        f"parents={summary.parents_aligned}, recaps={summary.recaps}, "
        f"links={summary.links_hydrated}, failures={summary.failures}"
    )
    return summary


def reset_store(*, store: LocalStore | None = None) -> ResetResult:
    effective_store = store or open_store()
    return reset_engine_metadata(effective_store, indexer=LinkGraphIndexer(effective_store))


def link_graph(*, store: LocalStore | None = None) -> LinkGraph:
    return LinkGraphIndexer(store or open_store()).rebuild()
