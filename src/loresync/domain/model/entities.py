"""Normalised entities produced by extraction and the proposals built from them."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, ClassVar

from loresync.domain.model.enums import EntityKind, TargetType

if TYPE_CHECKING:
    from collections.abc import Mapping


@dataclass(slots=True, frozen=True)
class EntityLink:
    """A cross-reference token found in free text."""

    type: str
    value: str


@dataclass(slots=True, frozen=True, kw_only=True)
class GenericEntity:
    """Uniform, kind-tagged view of any local record.

    Built fresh on every extraction pass and never persisted. ``metadata`` holds the
    few kind-specific attributes the mapper needs (character type, stats, page count);
    raw nested attribute bags stay behind in the store.
    """

    VERSION: ClassVar[int] = 1

    kind: EntityKind
    name: str
    source_id: str
    subtype: str | None = None
    body: str = ""
    tags: frozenset[str] = frozenset()
    links: tuple[EntityLink, ...] = ()
    images: tuple[str, ...] = ()
    folder_name: str | None = None
    metadata: Mapping[str, object] = field(default_factory=dict[str, object])

    def __post_init__(self) -> None:
        if not self.name.strip():
            raise ValueError(f"Entity {self.source_id!r} has a blank name")


@dataclass(slots=True, frozen=True, kw_only=True)
class MappingProposal:
    """A scored classification of one entity into a remote target shape."""

    target_type: TargetType
    payload: Mapping[str, object]
    labels: tuple[str, ...] = ()
    score: float = 0.0
    rule_name: str | None = None

    def label(self, *candidates: str) -> str | None:
        for candidate in candidates:
            if candidate in self.labels:
                return candidate
        return None
