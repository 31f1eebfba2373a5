"""Domain views of the remote campaign service's records."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import UTC
from typing import TYPE_CHECKING

from loresync.domain.model.enums import CharacterType, EntityKind

if TYPE_CHECKING:
    from datetime import datetime


@dataclass(slots=True, frozen=True, kw_only=True)
class RemoteEntity:
    id: str
    kind: EntityKind
    name: str
    type: str | None = None
    description: str | None = None
    image: str | None = None
    parent_id: str | None = None


@dataclass(slots=True, frozen=True, kw_only=True)
class RemoteSession:
    id: str
    title: str
    summary: str | None = None
    session_date: datetime | None = None

    def __post_init__(self) -> None:
        # Dates without an offset are read as UTC so every session sorts on one timeline.
        if self.session_date is not None and self.session_date.tzinfo is None:
            object.__setattr__(self, "session_date", self.session_date.replace(tzinfo=UTC))


@dataclass(slots=True, frozen=True, kw_only=True)
class RemoteLink:
    id: str
    from_id: str
    from_type: str
    to_id: str
    to_type: str
    alias: str | None = None


@dataclass(slots=True, frozen=True, kw_only=True)
class EntityDraft:
    """Payload for creating or updating a remote character, item, location or faction."""

    name: str
    description: str = ""
    image: str | None = None
    character_type: CharacterType | None = None
    parent_id: str | None = None


@dataclass(slots=True, frozen=True, kw_only=True)
class LinkDraft:
    from_id: str
    from_type: str
    to_id: str
    to_type: str
    alias: str | None = None


@dataclass(slots=True, kw_only=True)
class RemoteSnapshot:
    """Everything listed from the remote service for one campaign."""

    characters: list[RemoteEntity] = field(default_factory=list["RemoteEntity"])
    items: list[RemoteEntity] = field(default_factory=list["RemoteEntity"])
    locations: list[RemoteEntity] = field(default_factory=list["RemoteEntity"])
    factions: list[RemoteEntity] = field(default_factory=list["RemoteEntity"])
    sessions: list[RemoteSession] = field(default_factory=list["RemoteSession"])
    links: list[RemoteLink] = field(default_factory=list["RemoteLink"])

    def entities(self) -> list[RemoteEntity]:
        return [*self.characters, *self.items, *self.locations, *self.factions]

    def find(self, remote_id: str) -> RemoteEntity | None:
        for entity in self.entities():
            if entity.id == remote_id:
                return entity
        return None
