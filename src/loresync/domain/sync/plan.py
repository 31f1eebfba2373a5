"""Turn finalized reconciliation rows into an ordered, single-use sync plan."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from loresync.domain.model import Category, CharacterType
from loresync.domain.reconciliation import Side
from loresync.domain.reconciliation.engine import PLAYER_TYPES

if TYPE_CHECKING:
    from collections.abc import Iterable

    from loresync.domain.model import RemoteEntity, RemoteLink, RemoteSession, RemoteSnapshot
    from loresync.domain.reconciliation import CategoryRows, Reconciliation
    from loresync.domain.sync.executor import SyncReport

CORE_CATEGORIES = (Category.CHARACTERS, Category.ITEMS, Category.LOCATIONS)


@dataclass(slots=True, frozen=True, kw_only=True)
class CreateLocalJob:
    """Create a local record for a remote-only entity the user opted into."""

    category: Category
    remote: RemoteEntity

    @property
    def label(self) -> str:
        return f"create local {self.category}: {self.remote.name}"


@dataclass(slots=True, frozen=True, kw_only=True)
class ImportReferenceJob:
    """Mirror a remote-only entity as a lightweight reference entry."""

    category: Category
    remote: RemoteEntity

    @property
    def label(self) -> str:
        return f"import {self.category}: {self.remote.name}"


@dataclass(slots=True, frozen=True, kw_only=True)
class RecapJob:
    session: RemoteSession

    @property
    def label(self) -> str:
        return f"recap: {self.session.title}"


@dataclass(slots=True, frozen=True, kw_only=True)
class ExportJob:
    """Create a remote entity for a local-only record."""

    category: Category
    local_id: str
    name: str
    character_type: CharacterType | None = None

    @property
    def label(self) -> str:
        return f"export {self.category}: {self.name}"


@dataclass(slots=True, frozen=True, kw_only=True)
class LinkJob:
    category: Category
    remote_id: str
    local_id: str
    name: str

    @property
    def label(self) -> str:
        return f"link {self.category}: {self.name}"


@dataclass(slots=True, frozen=True, kw_only=True)
class HydrateLinksJob:
    links: tuple[RemoteLink, ...]

    @property
    def label(self) -> str:
        return f"hydrate {len(self.links)} links"


type SyncJob = (
    CreateLocalJob | ImportReferenceJob | RecapJob | ExportJob | LinkJob | HydrateLinksJob
)


@dataclass(slots=True)
class CategoryCounts:
    characters: int = 0
    items: int = 0
    locations: int = 0
    factions: int = 0
    recaps: int = 0

    def bump(self, category: Category, amount: int = 1) -> None:
        setattr(self, category.value, getattr(self, category.value) + amount)

    def get(self, category: Category) -> int:
        return getattr(self, category.value)

    @property
    def total(self) -> int:
        return self.characters + self.items + self.locations + self.factions + self.recaps


@dataclass(slots=True, frozen=True, kw_only=True)
class CreateLocalChoices:
    """Remote ids, per category, for which a full local record should be created."""

    characters: frozenset[str] = frozenset()
    items: frozenset[str] = frozenset()
    locations: frozenset[str] = frozenset()

    @classmethod
    def defaults(cls, reconciliation: Reconciliation) -> CreateLocalChoices:
        """Opt in every selected, unmatched remote character, item and location."""

        def pick(rows: CategoryRows) -> frozenset[str]:
            return frozenset(row.id for row in rows.unmatched(Side.REMOTE, selected_only=True))

        return cls(
            characters=pick(reconciliation.characters),
            items=pick(reconciliation.items),
            locations=pick(reconciliation.locations),
        )

    @classmethod
    def none(cls) -> CreateLocalChoices:
        return cls()

    def contains(self, category: Category, remote_id: str) -> bool:
        match category:
            case Category.CHARACTERS:
                return remote_id in self.characters
            case Category.ITEMS:
                return remote_id in self.items
            case Category.LOCATIONS:
                return remote_id in self.locations
            case _:
                return False


@dataclass(slots=True, kw_only=True)
class SyncPlan:
    """Aggregate decision object; an executor consumes it exactly once."""

    campaign_id: str
    create_local: list[CreateLocalJob] = field(default_factory=list["CreateLocalJob"])
    import_reference: list[ImportReferenceJob] = field(
        default_factory=list["ImportReferenceJob"]
    )
    recaps: list[RecapJob] = field(default_factory=list["RecapJob"])
    create_in_remote: list[ExportJob] = field(default_factory=list["ExportJob"])
    link: list[LinkJob] = field(default_factory=list["LinkJob"])
    hydrate: list[HydrateLinksJob] = field(default_factory=list["HydrateLinksJob"])
    imports: CategoryCounts = field(default_factory=CategoryCounts)
    exports: CategoryCounts = field(default_factory=CategoryCounts)
    linked: CategoryCounts = field(default_factory=CategoryCounts)
    executed: bool = False

    @property
    def jobs(self) -> list[SyncJob]:
        """All jobs in execution order."""

        return [
            *self.create_local,
            *self.import_reference,
            *self.recaps,
            *self.create_in_remote,
            *self.link,
            *self.hydrate,
        ]

    @property
    def total(self) -> int:
        return len(self.jobs)

    def is_empty(self) -> bool:
        return self.total == 0

    def retry_plan(self, report: SyncReport) -> SyncPlan:
        """A fresh plan holding only the jobs that failed in ``report``."""

        return plan_from_jobs(self.campaign_id, (failure.job for failure in report.failed))


def plan_from_jobs(campaign_id: str, jobs: Iterable[SyncJob]) -> SyncPlan:
    plan = SyncPlan(campaign_id=campaign_id)
    for job in jobs:
        match job:
            case CreateLocalJob():
                plan.create_local.append(job)
            case ImportReferenceJob():
                plan.import_reference.append(job)
            case RecapJob():
                plan.recaps.append(job)
            case ExportJob():
                plan.create_in_remote.append(job)
            case LinkJob():
                plan.link.append(job)
            case HydrateLinksJob():
                plan.hydrate.append(job)
    return plan


def build_plan(
    reconciliation: Reconciliation,
    choices: CreateLocalChoices | None = None,
    *,
    snapshot: RemoteSnapshot,
    campaign_id: str,
) -> SyncPlan:
    """Build the plan from finalized rows.

    Per category: a selected remote row with a match links; a selected remote row
    without one is imported, as a full local record when opted in and as a reference
    entry otherwise; a selected local row without a match is exported. Factions and
    dated session recaps are always imported in full.
    """

    chosen = choices if choices is not None else CreateLocalChoices.defaults(reconciliation)
    plan = SyncPlan(campaign_id=campaign_id)
    remote_by_id = {entity.id: entity for entity in snapshot.entities()}
    references: dict[Category, list[ImportReferenceJob]] = {}

    for category in CORE_CATEGORIES:
        rows = reconciliation.category(category)
        for row in rows.remote:
            if not row.selected:
                continue
            if row.match is not None:
                plan.link.append(
                    LinkJob(category=category, remote_id=row.id, local_id=row.match, name=row.name)
                )
                plan.linked.bump(category)
                continue
            remote = remote_by_id.get(row.id)
            if remote is None:
                continue
            plan.imports.bump(category)
            if chosen.contains(category, row.id):
                plan.create_local.append(CreateLocalJob(category=category, remote=remote))
            else:
                references.setdefault(category, []).append(
                    ImportReferenceJob(category=category, remote=remote)
                )
        for row in rows.local:
            if not row.selected or row.match is not None:
                continue
            plan.create_in_remote.append(
                ExportJob(
                    category=category,
                    local_id=row.id,
                    name=row.name,
                    character_type=_export_character_type(row.type)
                    if category is Category.CHARACTERS
                    else None,
                )
            )
            plan.exports.bump(category)

    references[Category.FACTIONS] = [
        ImportReferenceJob(category=Category.FACTIONS, remote=remote)
        for remote in snapshot.factions
    ]
    plan.imports.bump(Category.FACTIONS, len(snapshot.factions))
    for category in (Category.LOCATIONS, Category.FACTIONS):
        references[category] = sorted(
            references.get(category, []),
            key=lambda job: (job.remote.name.casefold(), job.remote.id),
        )
    for category in (*CORE_CATEGORIES, Category.FACTIONS):
        plan.import_reference.extend(references.get(category, []))

    dated = [session for session in snapshot.sessions if session.session_date is not None]
    dated.sort(key=lambda session: (session.session_date, session.id))
    plan.recaps.extend(RecapJob(session=session) for session in dated)
    plan.imports.bump(Category.RECAPS, len(dated))

    if snapshot.links:
        plan.hydrate.append(HydrateLinksJob(links=tuple(snapshot.links)))
    return plan


def _export_character_type(local_type: str | None) -> CharacterType:
    if (local_type or "").strip().lower() in PLAYER_TYPES:
        return CharacterType.PC
    return CharacterType.NPC
