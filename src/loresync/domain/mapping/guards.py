"""Guard predicates deciding whether a mapping rule applies to an entity."""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import TYPE_CHECKING, Protocol

from loresync.domain.mapping.paths import resolve_path

if TYPE_CHECKING:
    from loresync.domain.model import EntityKind, GenericEntity


class Guard(Protocol):
    def matches(self, entity: GenericEntity) -> bool: ...


@dataclass(slots=True, frozen=True)
class KindIs:
    kind: EntityKind

    def matches(self, entity: GenericEntity) -> bool:
        return entity.kind is self.kind


@dataclass(slots=True, frozen=True)
class FieldEquals:
    path: str
    value: object

    def matches(self, entity: GenericEntity) -> bool:
        return resolve_path(entity, self.path) == self.value


@dataclass(slots=True, frozen=True)
class FieldIn:
    path: str
    values: frozenset[object]

    def matches(self, entity: GenericEntity) -> bool:
        value = resolve_path(entity, self.path)
        try:
            return value in self.values
        except TypeError:
            return False


@dataclass(slots=True, frozen=True)
class FieldMatches:
    """Case-insensitive regex search; an invalid pattern never matches."""

    path: str
    pattern: str

    def matches(self, entity: GenericEntity) -> bool:
        value = resolve_path(entity, self.path)
        text = "" if value is None else str(value)
        try:
            return re.search(self.pattern, text, re.IGNORECASE) is not None
        except re.error:
            return False


@dataclass(slots=True, frozen=True)
class HasAny:
    path: str
    values: frozenset[str]

    def matches(self, entity: GenericEntity) -> bool:
        value = resolve_path(entity, self.path)
        if isinstance(value, str) or value is None:
            return False
        try:
            return any(item in self.values for item in value)  # type: ignore[union-attr]
        except TypeError:
            return False


@dataclass(slots=True, frozen=True, init=False)
class AllOf:
    guards: tuple[Guard, ...]

    def __init__(self, *guards: Guard) -> None:
        object.__setattr__(self, "guards", guards)

    def matches(self, entity: GenericEntity) -> bool:
        return all(guard.matches(entity) for guard in self.guards)


@dataclass(slots=True, frozen=True, init=False)
class AnyOf:
    guards: tuple[Guard, ...]

    def __init__(self, *guards: Guard) -> None:
        object.__setattr__(self, "guards", guards)

    def matches(self, entity: GenericEntity) -> bool:
        return any(guard.matches(entity) for guard in self.guards)
