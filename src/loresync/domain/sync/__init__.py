"""Sync plan building and execution."""

from __future__ import annotations

from .executor import (
    JobFailure,
    JobOutcome,
    SyncPlanExecutor,
    SyncProgress,
    SyncReport,
    resolve_item_type,
)
from .plan import (
    CategoryCounts,
    CreateLocalChoices,
    CreateLocalJob,
    ExportJob,
    HydrateLinksJob,
    ImportReferenceJob,
    LinkJob,
    RecapJob,
    SyncJob,
    SyncPlan,
    build_plan,
    plan_from_jobs,
)
from .refresh import RefreshSummary, refresh
from .snapshot import fetch_snapshot

__all__ = [
    "CategoryCounts",
    "CreateLocalChoices",
    "CreateLocalJob",
    "ExportJob",
    "HydrateLinksJob",
    "ImportReferenceJob",
    "JobFailure",
    "JobOutcome",
    "LinkJob",
    "RecapJob",
    "RefreshSummary",
    "SyncJob",
    "SyncPlan",
    "SyncPlanExecutor",
    "SyncProgress",
    "SyncReport",
    "build_plan",
    "fetch_snapshot",
    "plan_from_jobs",
    "refresh",
    "resolve_item_type",
]
