"""In-memory remote campaign service for tests."""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from itertools import count
from typing import TYPE_CHECKING

from loresync.domain.errors import DescriptionTooLongError, RemoteServiceError
from loresync.domain.model import EntityKind, RemoteEntity, RemoteLink

if TYPE_CHECKING:
    from loresync.domain.model import EntityDraft, LinkDraft, RemoteSession


@dataclass(slots=True, kw_only=True)
class RecordedCall:
    operation: str
    campaign_or_id: str
    draft: EntityDraft | LinkDraft | None = None


@dataclass(slots=True)
class FakeCampaignService:
    characters: list[RemoteEntity] = field(default_factory=list["RemoteEntity"])
    items: list[RemoteEntity] = field(default_factory=list["RemoteEntity"])
    locations: list[RemoteEntity] = field(default_factory=list["RemoteEntity"])
    factions: list[RemoteEntity] = field(default_factory=list["RemoteEntity"])
    sessions: list[RemoteSession] = field(default_factory=list["RemoteSession"])
    links: list[RemoteLink] = field(default_factory=list["RemoteLink"])
    # Entity name -> error raised when creating or updating that entity.
    failures: dict[str, RemoteServiceError] = field(default_factory=dict[str, RemoteServiceError])
    failing_lists: set[str] = field(default_factory=set[str])
    max_description: int | None = None
    calls: list[RecordedCall] = field(default_factory=list["RecordedCall"])
    _ids: count[int] = field(default_factory=lambda: count(1))

    async def list_characters(self, campaign_id: str) -> list[RemoteEntity]:
        return self._list("characters", self.characters)

    async def list_items(self, campaign_id: str) -> list[RemoteEntity]:
        return self._list("items", self.items)

    async def list_locations(self, campaign_id: str) -> list[RemoteEntity]:
        return self._list("locations", self.locations)

    async def list_factions(self, campaign_id: str) -> list[RemoteEntity]:
        return self._list("factions", self.factions)

    async def list_sessions(self, campaign_id: str) -> list[RemoteSession]:
        return self._list("sessions", self.sessions)

    async def list_links(self, campaign_id: str) -> list[RemoteLink]:
        return self._list("links", self.links)

    async def create_character(self, campaign_id: str, draft: EntityDraft) -> RemoteEntity:
        return self._create("create_character", campaign_id, draft, EntityKind.CHARACTER)

    async def create_item(self, campaign_id: str, draft: EntityDraft) -> RemoteEntity:
        return self._create("create_item", campaign_id, draft, EntityKind.ITEM)

    async def create_location(self, campaign_id: str, draft: EntityDraft) -> RemoteEntity:
        return self._create("create_location", campaign_id, draft, EntityKind.LOCATION)

    async def create_faction(self, campaign_id: str, draft: EntityDraft) -> RemoteEntity:
        return self._create("create_faction", campaign_id, draft, EntityKind.FACTION)

    async def update_character(self, entity_id: str, draft: EntityDraft) -> RemoteEntity:
        return self._update("update_character", entity_id, draft, self.characters)

    async def update_item(self, entity_id: str, draft: EntityDraft) -> RemoteEntity:
        return self._update("update_item", entity_id, draft, self.items)

    async def update_location(self, entity_id: str, draft: EntityDraft) -> RemoteEntity:
        return self._update("update_location", entity_id, draft, self.locations)

    async def update_faction(self, entity_id: str, draft: EntityDraft) -> RemoteEntity:
        return self._update("update_faction", entity_id, draft, self.factions)

    async def update_location_parent(self, location_id: str, parent_id: str | None) -> None:
        self.calls.append(
            RecordedCall(operation="update_location_parent", campaign_or_id=location_id)
        )
        for index, entity in enumerate(self.locations):
            if entity.id == location_id:
                self.locations[index] = replace(entity, parent_id=parent_id)
                return
        raise RemoteServiceError(f"{location_id} not found", status_code=404)

    async def create_link(self, campaign_id: str, draft: LinkDraft) -> RemoteLink:
        self.calls.append(RecordedCall(operation="create_link", campaign_or_id=campaign_id))
        link = RemoteLink(
            id=f"link-{next(self._ids)}",
            from_id=draft.from_id,
            from_type=draft.from_type,
            to_id=draft.to_id,
            to_type=draft.to_type,
            alias=draft.alias,
        )
        self.links.append(link)
        return link

    async def delete_link(self, campaign_id: str, link_id: str) -> None:
        self.calls.append(RecordedCall(operation="delete_link", campaign_or_id=link_id))
        self.links = [link for link in self.links if link.id != link_id]

    def operations(self) -> list[str]:
        return [call.operation for call in self.calls]

    def _list[T](self, name: str, values: list[T]) -> list[T]:
        if name in self.failing_lists:
            raise RemoteServiceError(f"listing {name} failed", status_code=503)
        return list(values)

    def _check(self, draft: EntityDraft) -> None:
        error = self.failures.get(draft.name)
        if error is not None:
            raise error
        if self.max_description is not None and len(draft.description) > self.max_description:
            raise DescriptionTooLongError(
                entity_name=draft.name,
                length=len(draft.description),
                max_length=self.max_description,
                status_code=422,
            )

    def _create(
        self, operation: str, campaign_id: str, draft: EntityDraft, kind: EntityKind
    ) -> RemoteEntity:
        self.calls.append(
            RecordedCall(operation=operation, campaign_or_id=campaign_id, draft=draft)
        )
        self._check(draft)
        entity = RemoteEntity(
            id=f"{kind.value.lower()}-{next(self._ids)}",
            kind=kind,
            name=draft.name,
            type=str(draft.character_type) if draft.character_type else None,
            description=draft.description,
            image=draft.image,
            parent_id=draft.parent_id,
        )
        self._bucket(kind).append(entity)
        return entity

    def _update(
        self, operation: str, entity_id: str, draft: EntityDraft, values: list[RemoteEntity]
    ) -> RemoteEntity:
        self.calls.append(RecordedCall(operation=operation, campaign_or_id=entity_id, draft=draft))
        self._check(draft)
        for index, entity in enumerate(values):
            if entity.id == entity_id:
                updated = replace(
                    entity, name=draft.name, description=draft.description, image=draft.image
                )
                values[index] = updated
                return updated
        raise RemoteServiceError(f"{entity_id} not found", status_code=404)

    def _bucket(self, kind: EntityKind) -> list[RemoteEntity]:
        match kind:
            case EntityKind.CHARACTER:
                return self.characters
            case EntityKind.ITEM:
                return self.items
            case EntityKind.LOCATION:
                return self.locations
            case _:
                return self.factions
