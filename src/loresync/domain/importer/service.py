"""Opportunistic import: extract, map, correct, threshold and upsert."""

from __future__ import annotations

import re
from dataclasses import dataclass, field, replace
from logging import getLogger
from typing import TYPE_CHECKING

from loresync.domain.errors import LocalStoreError, RemoteServiceError
from loresync.domain.extraction import EntityExtractor, extract_entity
from loresync.domain.fingerprint import fingerprint
from loresync.domain.importer.payloads import build_entity_draft, crosslink_lookup
from loresync.domain.mapping import MappingCorrections, get_preset, map_entity
from loresync.domain.model import EntityKind, SheetType, TargetType

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable, Iterable

    from loresync.domain.mapping import Preset
    from loresync.domain.model import (
        EntityDraft,
        GenericEntity,
        LocalRecord,
        MappingProposal,
        RemoteEntity,
    )
    from loresync.domain.ports import LocalStore, RemoteCampaignService

log = getLogger(__name__)

DEFAULT_AUTO_THRESHOLD = 0.75
DEFAULT_REVIEW_THRESHOLD = 0.4

type CreateOperation = Callable[[str, EntityDraft], Awaitable[RemoteEntity]]
type UpdateOperation = Callable[[str, EntityDraft], Awaitable[RemoteEntity]]

_SHEET_BY_TARGET: dict[TargetType, SheetType] = {
    TargetType.CHARACTER: SheetType.CHARACTER,
    TargetType.ITEM: SheetType.ITEM,
    TargetType.LOCATION: SheetType.LOCATION,
    TargetType.FACTION: SheetType.FACTION,
}


@dataclass(slots=True)
class ImportSummary:
    total: int = 0
    completed: int = 0
    auto_imported: int = 0
    unchanged: int = 0
    queued: int = 0
    dropped: int = 0
    errors: int = 0
    review_queue: list[ReviewItem] = field(default_factory=list["ReviewItem"])


@dataclass(slots=True, frozen=True)
class ReviewItem:
    entity: GenericEntity
    proposal: MappingProposal
    include: bool = True


@dataclass(slots=True, frozen=True, kw_only=True)
class PushFilter:
    kinds: frozenset[EntityKind] = frozenset()
    target_type: TargetType | None = None
    folder_pattern: str | None = None

    def accepts_entity(self, entity: GenericEntity) -> bool:
        return not self.kinds or entity.kind in self.kinds

    def accepts(self, entity: GenericEntity, proposal: MappingProposal) -> bool:
        if self.target_type is not None and proposal.target_type is not self.target_type:
            return False
        if self.folder_pattern and entity.folder_name:
            return re.search(self.folder_pattern, entity.folder_name, re.IGNORECASE) is not None
        return True


type ImportProgressCallback = Callable[[ImportSummary], None]


class Importer:
    """Scores every extracted entity and upserts the confident ones.

    Scores at or above ``auto_threshold`` are pushed to the remote service, scores
    between the thresholds are queued for review and everything else is dropped.
    An unchanged fingerprint on an already linked record skips the upsert.
    """

    def __init__(
        self,
        store: LocalStore,
        remote: RemoteCampaignService,
        *,
        campaign_id: str,
        preset: Preset | None = None,
        corrections: MappingCorrections | None = None,
        auto_threshold: float = DEFAULT_AUTO_THRESHOLD,
        review_threshold: float = DEFAULT_REVIEW_THRESHOLD,
    ) -> None:
        self._store = store
        self._remote = remote
        self._campaign_id = campaign_id
        self._preset = preset or get_preset()
        self._corrections = corrections or MappingCorrections()
        self._auto_threshold = auto_threshold
        self._review_threshold = review_threshold

    def propose(self, entity: GenericEntity) -> MappingProposal:
        return self._corrections.apply(entity, map_entity(entity, self._preset))

    def sample(self, size: int = 20) -> list[ReviewItem]:
        """Proposals for the first ``size`` entities, for manual review."""

        return [
            ReviewItem(entity, self.propose(entity), self._corrections.includes(entity))
            for entity in EntityExtractor(self._store, limit=size)
        ]

    async def run(self, on_progress: ImportProgressCallback | None = None) -> ImportSummary:
        entities = EntityExtractor(self._store).extract_all()
        summary = ImportSummary(total=len(entities))
        _notify(on_progress, summary)
        for entity in entities:
            await self._import_one(entity, summary)
            summary.completed += 1
            _notify(on_progress, summary)
        log.info(
            "Import finished: %d auto, %d unchanged, %d queued, %d dropped, %d errors",
            summary.auto_imported,
            summary.unchanged,
            summary.queued,
            summary.dropped,
            summary.errors,
        )
        return summary

    async def push_filtered(self, push_filter: PushFilter) -> int:
        """Upsert every entity passing ``push_filter`` regardless of score.

        Failures are logged; the return value counts successful upserts only.
        """

        count = 0
        for entity in EntityExtractor(self._store):
            if not push_filter.accepts_entity(entity):
                continue
            proposal = self.propose(entity)
            if not push_filter.accepts(entity, proposal):
                continue
            try:
                record = self._store.get(entity.source_id)
                if await self._upsert(record, proposal) is not None:
                    count += 1
            except (RemoteServiceError, LocalStoreError) as exc:
                log.warning("Push of %s failed: %s", entity.source_id, exc)
        return count

    async def _import_one(self, entity: GenericEntity, summary: ImportSummary) -> None:
        if not self._corrections.includes(entity):
            summary.dropped += 1
            return
        proposal = self.propose(entity)
        if proposal.score < self._review_threshold:
            summary.dropped += 1
            return
        if proposal.score < self._auto_threshold:
            summary.queued += 1
            summary.review_queue.append(ReviewItem(entity, proposal))
            return
        if proposal.target_type is TargetType.NOTE:
            summary.dropped += 1
            return

        try:
            record = self._store.get(entity.source_id)
            content_hash = fingerprint(entity)
            if (
                record.metadata.fingerprint == content_hash
                and record.is_linked_to(self._campaign_id)
            ):
                summary.unchanged += 1
                return
            await self._upsert(record, proposal)
            # Linking can change how the record extracts, so hash the stored result.
            linked = self._store.get(record.id)
            self._store.set_fingerprint(record.id, fingerprint(extract_entity(linked)))
        except (RemoteServiceError, LocalStoreError) as exc:
            log.warning("Import of %s (%s) failed: %s", entity.name, entity.source_id, exc)
            summary.errors += 1
            return
        summary.auto_imported += 1

    async def _upsert(self, record: LocalRecord, proposal: MappingProposal) -> RemoteEntity | None:
        operations = self._operations(proposal.target_type)
        if operations is None:
            return None
        create, update = operations
        draft = build_entity_draft(
            proposal, record, lookup=crosslink_lookup(self._store, self._campaign_id)
        )

        if record.remote_id is not None and record.is_linked_to(self._campaign_id):
            try:
                return await update(record.remote_id, draft)
            except RemoteServiceError as exc:
                if exc.status_code not in {403, 404}:
                    raise
                log.info("Update of %s rejected (%s); creating instead", record.remote_id, exc)

        created = await create(self._campaign_id, draft)
        self._store.set_cross_reference(
            record.id,
            created.id,
            campaign_id=self._campaign_id,
            sheet_type=_SHEET_BY_TARGET.get(proposal.target_type),
        )
        return created

    def _operations(
        self, target_type: TargetType
    ) -> tuple[CreateOperation, UpdateOperation] | None:
        match target_type:
            case TargetType.CHARACTER:
                return self._remote.create_character, self._remote.update_character
            case TargetType.ITEM:
                return self._remote.create_item, self._remote.update_item
            case TargetType.LOCATION:
                return self._remote.create_location, self._remote.update_location
            case TargetType.FACTION:
                return self._remote.create_faction, self._remote.update_faction
            case _:
                return None


def _notify(callback: ImportProgressCallback | None, summary: ImportSummary) -> None:
    if callback is not None:
        callback(replace(summary, review_queue=list(summary.review_queue)))


def kinds_from_names(names: Iterable[str]) -> frozenset[EntityKind]:
    lookup = {kind.value.lower(): kind for kind in EntityKind}
    kinds: set[EntityKind] = set()
    for name in names:
        kind = lookup.get(name.strip().lower())
        if kind is None:
            raise ValueError(f"Unknown entity kind: {name}")
        kinds.add(kind)
    return frozenset(kinds)
