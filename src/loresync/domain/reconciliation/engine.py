"""Pair remote and local records that describe the same entity."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from loresync.domain.model import Category, CharacterType, EntityKind
from loresync.domain.reconciliation.rows import CategoryRows, ReconciliationRow

if TYPE_CHECKING:
    from collections.abc import Callable, Iterable, Iterator, Sequence

    from loresync.domain.model import LocalRecord, RemoteEntity, RemoteSnapshot
    from loresync.domain.ports import LocalStore

PLAYER_TYPES = frozenset({"character", "pc", "player"})
NON_PLAYER_TYPES = frozenset({"npc", "monster"})

type TypeCheck = Callable[[str | None, str | None], bool]


@dataclass(slots=True, kw_only=True)
class LocalSnapshot:
    characters: list[LocalRecord] = field(default_factory=list["LocalRecord"])
    items: list[LocalRecord] = field(default_factory=list["LocalRecord"])
    locations: list[LocalRecord] = field(default_factory=list["LocalRecord"])

    @classmethod
    def from_store(cls, store: LocalStore) -> LocalSnapshot:
        return cls(
            characters=store.list_characters(),
            items=store.list_items(),
            locations=store.list_locations(),
        )


@dataclass(slots=True, kw_only=True)
class Reconciliation:
    characters: CategoryRows = field(default_factory=CategoryRows)
    items: CategoryRows = field(default_factory=CategoryRows)
    locations: CategoryRows = field(default_factory=CategoryRows)
    factions: CategoryRows = field(default_factory=CategoryRows)

    def category(self, category: Category) -> CategoryRows:
        match category:
            case Category.CHARACTERS:
                return self.characters
            case Category.ITEMS:
                return self.items
            case Category.LOCATIONS:
                return self.locations
            case Category.FACTIONS:
                return self.factions
            case _:
                raise KeyError(category)

    def categories(self) -> Iterator[tuple[Category, CategoryRows]]:
        yield Category.CHARACTERS, self.characters
        yield Category.ITEMS, self.items
        yield Category.LOCATIONS, self.locations
        yield Category.FACTIONS, self.factions

    def is_symmetric(self) -> bool:
        return all(rows.is_symmetric() for _, rows in self.categories())


def reconcile(
    remote: RemoteSnapshot,
    local: LocalSnapshot,
    *,
    campaign_id: str | None = None,
) -> Reconciliation:
    """Deterministically pair remote and local rows per category.

    When ``campaign_id`` is given, local records already carrying a cross reference
    to a listed remote entity of that campaign are paired first.
    """

    return Reconciliation(
        characters=match_category(
            [_remote_row(entity, character=True) for entity in remote.characters],
            [_local_row(record) for record in local.characters],
            type_compatible=character_types_compatible,
            linked=_linked_ids(local.characters, campaign_id),
        ),
        items=match_category(
            [_remote_row(entity) for entity in remote.items],
            [_local_row(record) for record in local.items],
            linked=_linked_ids(local.items, campaign_id),
        ),
        locations=match_category(
            [_remote_row(entity) for entity in remote.locations],
            [_local_row(record) for record in local.locations],
            linked=_linked_ids(local.locations, campaign_id),
        ),
        factions=CategoryRows(
            remote=_sorted([_remote_row(entity) for entity in remote.factions]),
        ),
    )


def match_category(
    remote_rows: Sequence[ReconciliationRow],
    local_rows: Sequence[ReconciliationRow],
    *,
    type_compatible: TypeCheck | None = None,
    linked: dict[str, str] | None = None,
) -> CategoryRows:
    """Greedy one-to-one matching by case-insensitive name.

    Remote rows are scanned in input order; each claims the first unclaimed local row
    with the same name whose type is compatible. A second pass retries names only
    for rows unmatched on both sides.
    """

    remote = [_fresh(row) for row in remote_rows]
    local = [_fresh(row) for row in local_rows]
    local_by_id = {row.id: row for row in local}

    for local_id, remote_id in (linked or {}).items():
        local_row = local_by_id.get(local_id)
        remote_row = next((row for row in remote if row.id == remote_id), None)
        if local_row is None or remote_row is None:
            continue
        if local_row.match is None and remote_row.match is None:
            _pair(remote_row, local_row)

    _greedy_pass(remote, local, type_compatible)
    _greedy_pass(remote, local, None)

    return CategoryRows(remote=_sorted(remote), local=_sorted(local))


def character_types_compatible(remote_type: str | None, local_type: str | None) -> bool:
    """A known local type constrains the match; an unknown one accepts anything."""

    local_key = (local_type or "").strip().lower()
    if local_key in PLAYER_TYPES:
        return _normalize_character_type(remote_type) is CharacterType.PC
    if local_key in NON_PLAYER_TYPES:
        return _normalize_character_type(remote_type) is CharacterType.NPC
    return True


def _greedy_pass(
    remote: Iterable[ReconciliationRow],
    local: Sequence[ReconciliationRow],
    type_compatible: TypeCheck | None,
) -> None:
    for remote_row in remote:
        if remote_row.match is not None:
            continue
        key = _name_key(remote_row.name)
        if not key:
            continue
        for local_row in local:
            if local_row.match is not None or _name_key(local_row.name) != key:
                continue
            if type_compatible is not None and not type_compatible(remote_row.type, local_row.type):
                continue
            _pair(remote_row, local_row)
            break


def _pair(remote_row: ReconciliationRow, local_row: ReconciliationRow) -> None:
    remote_row.match = local_row.id
    local_row.match = remote_row.id


def _fresh(row: ReconciliationRow) -> ReconciliationRow:
    return ReconciliationRow(id=row.id, name=row.name, type=row.type, image=row.image)


def _sorted(rows: list[ReconciliationRow]) -> list[ReconciliationRow]:
    return sorted(rows, key=lambda row: (row.name.casefold(), row.name, row.id))


def _name_key(name: str) -> str:
    return name.strip().casefold()


def _normalize_character_type(value: str | None) -> CharacterType:
    return CharacterType.NPC if (value or "").strip().upper() == "NPC" else CharacterType.PC


def _remote_row(entity: RemoteEntity, *, character: bool = False) -> ReconciliationRow:
    row_type = _normalize_character_type(entity.type).value if character else entity.type
    return ReconciliationRow(id=entity.id, name=entity.name, type=row_type, image=entity.image)


def _local_row(record: LocalRecord) -> ReconciliationRow:
    row_type = record.subtype
    if record.kind is EntityKind.LOCATION and row_type is None:
        row_type = "scene"
    return ReconciliationRow(
        id=record.id,
        name=record.name,
        type=row_type,
        image=record.images[0] if record.images else None,
    )


def _linked_ids(records: Iterable[LocalRecord], campaign_id: str | None) -> dict[str, str]:
    if campaign_id is None:
        return {}
    return {
        record.id: record.remote_id
        for record in records
        if record.remote_id is not None and record.is_linked_to(campaign_id)
    }
