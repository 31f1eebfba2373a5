"""Run a sync plan one job at a time with progress reporting."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import StrEnum
from logging import getLogger
from typing import TYPE_CHECKING

from loresync.domain.errors import (
    DescriptionTooLongError,
    LocalStoreError,
    PlanAlreadyExecutedError,
    RecordNotFoundError,
    RemoteServiceError,
    SyncAlreadyRunningError,
)
from loresync.domain.extraction import extract_entity
from loresync.domain.importer.payloads import crosslink_lookup
from loresync.domain.links import hydrate_links, set_location_parent
from loresync.domain.model import (
    Category,
    CharacterType,
    EntityDraft,
    EntityKind,
    RecordChanges,
    RecordDraft,
    RecordMetadata,
    SheetType,
)
from loresync.domain.sync.plan import (
    CreateLocalJob,
    ExportJob,
    HydrateLinksJob,
    ImportReferenceJob,
    LinkJob,
    RecapJob,
)
from loresync.domain.text import html_to_markdown, is_external_image_url, remote_description

if TYPE_CHECKING:
    from collections.abc import AsyncGenerator, Callable

    from loresync.domain.links import LinkGraphIndexer
    from loresync.domain.model import LocalRecord, RemoteEntity
    from loresync.domain.ports import LocalStore, RemoteCampaignService
    from loresync.domain.sync.plan import SyncJob, SyncPlan

log = getLogger(__name__)

PC_FOLDER = "Remote - PCs"
NPC_FOLDER = "Remote - NPCs"
RECAP_FOLDER = "Recaps"
FOLDER_BY_CATEGORY: dict[Category, str] = {
    Category.ITEMS: "Remote - Items",
    Category.LOCATIONS: "Remote - Locations",
    Category.FACTIONS: "Remote - Factions",
}

KIND_BY_CATEGORY: dict[Category, EntityKind] = {
    Category.CHARACTERS: EntityKind.CHARACTER,
    Category.ITEMS: EntityKind.ITEM,
    Category.LOCATIONS: EntityKind.LOCATION,
}
SHEET_BY_CATEGORY: dict[Category, SheetType] = {
    Category.CHARACTERS: SheetType.CHARACTER,
    Category.ITEMS: SheetType.ITEM,
    Category.LOCATIONS: SheetType.LOCATION,
    Category.FACTIONS: SheetType.FACTION,
}

_ITEM_TYPES = ("weapon", "equipment", "consumable", "spell", "feat", "tool", "loot", "backpack")
_ITEM_TYPE_HINTS: tuple[tuple[str, str], ...] = (
    ("weapon", "weapon"),
    ("armor", "equipment"),
    ("equipment", "equipment"),
    ("consum", "consumable"),
    ("spell", "spell"),
    ("feat", "feat"),
    ("ability", "feat"),
    ("tool", "tool"),
    ("pack", "backpack"),
    ("bag", "backpack"),
)


class JobOutcome(StrEnum):
    DONE = "done"
    SKIPPED = "skipped"


@dataclass(slots=True, frozen=True)
class SyncProgress:
    processed: int
    total: int
    current: str | None = None
    failures: int = 0

    @property
    def done(self) -> bool:
        return self.processed >= self.total


@dataclass(slots=True, frozen=True)
class JobFailure:
    job: SyncJob
    message: str
    description_too_long: bool = False


@dataclass(slots=True)
class SyncReport:
    total: int
    processed: int = 0
    succeeded: list[SyncJob] = field(default_factory=list["SyncJob"])
    skipped: list[SyncJob] = field(default_factory=list["SyncJob"])
    failed: list[JobFailure] = field(default_factory=list["JobFailure"])

    @property
    def failures(self) -> int:
        return len(self.failed)

    @property
    def ok(self) -> bool:
        return not self.failed


type ProgressCallback = Callable[[SyncProgress], None]


class SyncPlanExecutor:
    """Executes plan jobs strictly in order; one job's failure never stops the next.

    Every job, whether it succeeded, was skipped or failed, advances ``processed`` by
    exactly one, so the counter always ends at ``total``.
    """

    def __init__(
        self,
        store: LocalStore,
        remote: RemoteCampaignService,
        *,
        indexer: LinkGraphIndexer | None = None,
    ) -> None:
        self._store = store
        self._remote = remote
        self._indexer = indexer
        self._running = False
        self.last_report: SyncReport | None = None

    @property
    def running(self) -> bool:
        return self._running

    async def execute(
        self, plan: SyncPlan, on_progress: ProgressCallback | None = None
    ) -> SyncReport:
        report = SyncReport(total=plan.total)
        async for progress in self._stream(plan, report):
            if on_progress is not None:
                on_progress(progress)
        return report

    def stream(self, plan: SyncPlan) -> AsyncGenerator[SyncProgress, None]:
        """Progress after each job; the finished report is left in ``last_report``."""

        return self._stream(plan, SyncReport(total=plan.total))

    async def _stream(
        self, plan: SyncPlan, report: SyncReport
    ) -> AsyncGenerator[SyncProgress, None]:
        if self._running:
            raise SyncAlreadyRunningError("A sync plan is already running")
        if plan.executed:
            raise PlanAlreadyExecutedError("This sync plan has already been executed")
        self._running = True
        plan.executed = True
        jobs = plan.jobs
        self.last_report = report
        log.info("Starting sync of %d jobs for campaign %s", report.total, plan.campaign_id)
        try:
            for job in jobs:
                await self._run_job(plan.campaign_id, job, report)
                report.processed += 1
                yield SyncProgress(
                    processed=report.processed,
                    total=report.total,
                    current=job.label,
                    failures=report.failures,
                )
            if self._indexer is not None:
                self._indexer.rebuild()
        finally:
            self._running = False
        log.info(
            "Sync finished: %d done, %d skipped, %d failed",
            len(report.succeeded),
            len(report.skipped),
            report.failures,
        )

    async def _run_job(self, campaign_id: str, job: SyncJob, report: SyncReport) -> None:
        try:
            outcome = await self._dispatch(campaign_id, job)
        except RecordNotFoundError as exc:
            log.warning("Skipping %s: %s", job.label, exc)
            report.skipped.append(job)
            return
        except DescriptionTooLongError as exc:
            log.warning("Failed %s: %s", job.label, exc)
            report.failed.append(JobFailure(job, str(exc), description_too_long=True))
            return
        except (RemoteServiceError, LocalStoreError) as exc:
            log.warning("Failed %s: %s", job.label, exc)
            report.failed.append(JobFailure(job, str(exc)))
            return
        if outcome is JobOutcome.SKIPPED:
            report.skipped.append(job)
        else:
            report.succeeded.append(job)

    async def _dispatch(self, campaign_id: str, job: SyncJob) -> JobOutcome:
        match job:
            case CreateLocalJob():
                return self._create_local(campaign_id, job)
            case ImportReferenceJob():
                return self._import_reference(campaign_id, job)
            case RecapJob():
                return self._recap(campaign_id, job)
            case ExportJob():
                return await self._export(campaign_id, job)
            case LinkJob():
                return self._link(campaign_id, job)
            case HydrateLinksJob():
                hydrate_links(self._store, job.links, campaign_id=campaign_id)
                return JobOutcome.DONE

    # local creation

    def _create_local(self, campaign_id: str, job: CreateLocalJob) -> JobOutcome:
        remote = job.remote
        kind = KIND_BY_CATEGORY[job.category]
        if self._store.find_by_remote_id(remote.id, campaign_id=campaign_id, kinds=(kind,)):
            return JobOutcome.SKIPPED

        metadata = RecordMetadata(
            remote_id=remote.id,
            remote_campaign_id=campaign_id,
            parent_location_id=_parent_of(remote) if kind is EntityKind.LOCATION else None,
        )
        draft = RecordDraft(
            kind=kind,
            name=remote.name,
            subtype=_local_subtype(job.category, remote),
            folder=_folder_for(job.category, remote),
            description=remote.description,
            images=_images(remote),
            metadata=metadata,
        )
        match job.category:
            case Category.CHARACTERS:
                self._store.create_character(draft)
            case Category.ITEMS:
                self._store.create_item(draft)
            case _:
                self._store.create_location(draft)
        return JobOutcome.DONE

    def _import_reference(self, campaign_id: str, job: ImportReferenceJob) -> JobOutcome:
        remote = job.remote
        sheet_type = SHEET_BY_CATEGORY[job.category]
        entry = self._upsert_entry(
            campaign_id,
            remote_id=remote.id,
            sheet_type=sheet_type,
            name=remote.name,
            description=html_to_markdown(remote.description) if remote.description else None,
            images=_images(remote),
            folder=_folder_for(job.category, remote),
        )
        if job.category is Category.LOCATIONS:
            parent = _parent_of(remote)
            if parent != entry.metadata.parent_location_id:
                set_location_parent(self._store, entry.id, parent)

        kind = KIND_BY_CATEGORY.get(job.category)
        if kind is not None:
            core = self._store.find_by_remote_id(remote.id, campaign_id=campaign_id, kinds=(kind,))
            if core is not None:
                self._store.add_local_cross_reference(entry.id, core)
        return JobOutcome.DONE

    def _recap(self, campaign_id: str, job: RecapJob) -> JobOutcome:
        session = job.session
        entry = self._upsert_entry(
            campaign_id,
            remote_id=session.id,
            sheet_type=SheetType.RECAP,
            name=session.title,
            description=html_to_markdown(session.summary) if session.summary else None,
            images=(),
            folder=RECAP_FOLDER,
        )
        session_date = session.session_date.isoformat() if session.session_date else None
        if session_date != entry.metadata.session_date:
            self._store.write_metadata(
                entry.id, entry.metadata.model_copy(update={"session_date": session_date})
            )
        return JobOutcome.DONE

    def _upsert_entry(
        self,
        campaign_id: str,
        *,
        remote_id: str,
        sheet_type: SheetType,
        name: str,
        description: str | None,
        images: tuple[str, ...],
        folder: str,
    ) -> LocalRecord:
        existing = self._store.find_by_remote_id(
            remote_id,
            campaign_id=campaign_id,
            kinds=(EntityKind.JOURNAL,),
            sheet_type=sheet_type,
        )
        if existing is None:
            return self._store.create_entry(
                RecordDraft(
                    kind=EntityKind.JOURNAL,
                    name=name,
                    folder=folder,
                    description=description,
                    images=images,
                    metadata=RecordMetadata(
                        sheet_type=sheet_type,
                        remote_id=remote_id,
                        remote_campaign_id=campaign_id,
                    ),
                )
            )
        changes = RecordChanges(
            name=name if name != existing.name else None,
            # Manual edits to an existing body are kept.
            description=description if description and not existing.description else None,
            images=images if images and images != existing.images else None,
        )
        if changes.is_empty():
            return existing
        return self._store.update(existing.id, changes)

    # remote creation and links

    async def _export(self, campaign_id: str, job: ExportJob) -> JobOutcome:
        record = self._store.get(job.local_id)
        if record.is_linked_to(campaign_id):
            return JobOutcome.SKIPPED
        try:
            body = remote_description(
                extract_entity(record).body, crosslink_lookup(self._store, campaign_id)
            )
        except (AttributeError, KeyError, TypeError, ValueError) as exc:
            log.warning("Exporting %s without a description: %s", record.id, exc)
            body = ""
        draft = EntityDraft(
            name=record.name,
            description=body,
            image=next((image for image in record.images if is_external_image_url(image)), None),
            character_type=job.character_type,
            parent_id=record.metadata.parent_location_id
            if job.category is Category.LOCATIONS
            else None,
        )
        match job.category:
            case Category.CHARACTERS:
                created = await self._remote.create_character(campaign_id, draft)
            case Category.ITEMS:
                created = await self._remote.create_item(campaign_id, draft)
            case _:
                created = await self._remote.create_location(campaign_id, draft)
        self._store.set_cross_reference(record.id, created.id, campaign_id=campaign_id)
        log.debug("Exported %s %s as %s", job.category, record.id, created.id)
        return JobOutcome.DONE

    def _link(self, campaign_id: str, job: LinkJob) -> JobOutcome:
        record = self._store.get(job.local_id)
        self._store.set_cross_reference(record.id, job.remote_id, campaign_id=campaign_id)
        sheet_type = SHEET_BY_CATEGORY[job.category]
        entry = self._store.find_by_remote_id(
            job.remote_id,
            campaign_id=campaign_id,
            kinds=(EntityKind.JOURNAL,),
            sheet_type=sheet_type,
        )
        if entry is not None:
            self._store.add_local_cross_reference(entry.id, record)
        return JobOutcome.DONE


def _folder_for(category: Category, remote: RemoteEntity) -> str:
    if category is Category.CHARACTERS:
        return NPC_FOLDER if _character_type(remote) is CharacterType.NPC else PC_FOLDER
    return FOLDER_BY_CATEGORY[category]


def _character_type(remote: RemoteEntity) -> CharacterType:
    return CharacterType.NPC if (remote.type or "").strip().upper() == "NPC" else CharacterType.PC


def _local_subtype(category: Category, remote: RemoteEntity) -> str:
    match category:
        case Category.CHARACTERS:
            return "npc" if _character_type(remote) is CharacterType.NPC else "character"
        case Category.ITEMS:
            return resolve_item_type(remote.type)
        case _:
            return "scene"


def resolve_item_type(value: str | None) -> str:
    """Map a free-form remote item type onto a local item subtype; ``loot`` otherwise."""

    raw = (value or "").strip().lower()
    if raw in _ITEM_TYPES:
        return raw
    for hint, item_type in _ITEM_TYPE_HINTS:
        if hint in raw:
            return item_type
    return "loot"


def _images(remote: RemoteEntity) -> tuple[str, ...]:
    return (remote.image,) if remote.image else ()


def _parent_of(remote: RemoteEntity) -> str | None:
    if remote.parent_id and remote.parent_id != remote.id:
        return remote.parent_id
    return None
