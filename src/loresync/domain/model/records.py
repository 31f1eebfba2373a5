"""Local world store records and the drafts used to create or change them."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from loresync.domain.model.enums import EntityKind, SheetType
from loresync.domain.model.metadata import RecordMetadata

if TYPE_CHECKING:
    from collections.abc import Mapping


@dataclass(slots=True, kw_only=True)
class LocalRecord:
    """A record as exposed by the local world store.

    ``system`` keeps the kind-specific raw attributes (character biography, journal
    pages, scene notes). Only the extractor reads it; everything downstream works on
    ``GenericEntity`` values instead.
    """

    id: str
    kind: EntityKind
    name: str
    subtype: str | None = None
    folder: str | None = None
    description: str | None = None
    images: tuple[str, ...] = ()
    system: Mapping[str, object] = field(default_factory=dict[str, object])
    metadata: RecordMetadata = field(default_factory=RecordMetadata)

    @property
    def remote_id(self) -> str | None:
        return self.metadata.remote_id

    @property
    def sheet_type(self) -> SheetType | None:
        return self.metadata.sheet_type

    def is_linked_to(self, campaign_id: str) -> bool:
        return self.metadata.is_linked_to(campaign_id)


@dataclass(slots=True, kw_only=True)
class RecordDraft:
    """Data for a record that does not exist yet."""

    kind: EntityKind
    name: str
    subtype: str | None = None
    folder: str | None = None
    description: str | None = None
    images: tuple[str, ...] = ()
    system: Mapping[str, object] = field(default_factory=dict[str, object])
    metadata: RecordMetadata = field(default_factory=RecordMetadata)


@dataclass(slots=True, kw_only=True)
class RecordChanges:
    """Partial update; ``None`` leaves the stored value untouched."""

    name: str | None = None
    subtype: str | None = None
    folder: str | None = None
    description: str | None = None
    images: tuple[str, ...] | None = None
    system: Mapping[str, object] | None = None

    def is_empty(self) -> bool:
        return all(
            value is None
            for value in (
                self.name,
                self.subtype,
                self.folder,
                self.description,
                self.images,
                self.system,
            )
        )
