"""Public domain model surface."""

from __future__ import annotations

from loresync.domain.model.entities import EntityLink, GenericEntity, MappingProposal
from loresync.domain.model.enums import (
    Category,
    CharacterType,
    EntityKind,
    RelationshipBucket,
    SheetType,
    TargetType,
)
from loresync.domain.model.metadata import LocalCrossReferences, RecordMetadata, RelationshipBuckets
from loresync.domain.model.records import LocalRecord, RecordChanges, RecordDraft
from loresync.domain.model.remote import (
    EntityDraft,
    LinkDraft,
    RemoteEntity,
    RemoteLink,
    RemoteSession,
    RemoteSnapshot,
)

__all__ = [  # noqa: RUF022
    # enums
    "Category",
    "CharacterType",
    "EntityKind",
    "RelationshipBucket",
    "SheetType",
    "TargetType",
    # local store
    "LocalCrossReferences",
    "LocalRecord",
    "RecordChanges",
    "RecordDraft",
    "RecordMetadata",
    "RelationshipBuckets",
    # normalised entities
    "EntityLink",
    "GenericEntity",
    "MappingProposal",
    # remote
    "EntityDraft",
    "LinkDraft",
    "RemoteEntity",
    "RemoteLink",
    "RemoteSession",
    "RemoteSnapshot",
]
