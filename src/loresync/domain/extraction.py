"""Turn raw local records into a uniform ``GenericEntity`` stream."""

from __future__ import annotations

from logging import getLogger
from typing import TYPE_CHECKING

from loresync.domain.model import EntityKind, GenericEntity, SheetType
from loresync.domain.text import (
    coerce_text,
    collect_links,
    collect_tags,
    html_to_markdown,
    synthesize_description,
)

if TYPE_CHECKING:
    from collections.abc import Callable, Iterator, Mapping

    from loresync.domain.model import LocalRecord
    from loresync.domain.ports import LocalStore

log = getLogger(__name__)

type Builder = Callable[[LocalRecord], GenericEntity]


class EntityExtractor:
    """Restartable, read-only iteration over every supported local record.

    Each ``iter()`` re-reads the store. A record that cannot be normalised is logged
    and skipped; the pass continues with the next one.
    """

    def __init__(self, store: LocalStore, *, limit: int | None = None) -> None:
        self._store = store
        self._limit = limit

    def __iter__(self) -> Iterator[GenericEntity]:
        produced = 0
        for record in self._records():
            if self._limit is not None and produced >= self._limit:
                return
            entity = self._extract(record)
            if entity is None:
                continue
            produced += 1
            yield entity

    def extract_all(self) -> list[GenericEntity]:
        return list(self)

    def _records(self) -> Iterator[LocalRecord]:
        yield from self._store.list_characters()
        yield from self._store.list_items()
        yield from self._store.list_locations()
        for record in self._store.list_free_text():
            # Recaps mirror remote sessions and never travel back.
            if record.sheet_type is SheetType.RECAP:
                continue
            yield record

    def _extract(self, record: LocalRecord) -> GenericEntity | None:
        builder = _BUILDERS.get(record.kind)
        if builder is None:
            return None
        try:
            return builder(record)
        except (AttributeError, KeyError, TypeError, ValueError) as exc:
            log.warning("Skipping malformed record %s (%s): %s", record.id, record.kind, exc)
            return None


def extract_entity(record: LocalRecord) -> GenericEntity:
    """Normalise a single record; raises on malformed input."""

    builder = _BUILDERS.get(record.kind)
    if builder is None:
        raise ValueError(f"Unsupported record kind: {record.kind}")
    return builder(record)


def _character(record: LocalRecord) -> GenericEntity:
    system = record.system
    details = _mapping(system.get("details"))
    biography = _mapping(details.get("biography"))
    body = synthesize_description(
        biography.get("value"),
        (biography.get("public"), system.get("description"), record.description),
        keep_references=True,
    )
    subtype = (record.subtype or "").lower() or None
    return GenericEntity(
        kind=EntityKind.CHARACTER,
        subtype=subtype,
        name=record.name,
        body=body,
        tags=_tags(record, body),
        links=collect_links(_raw_text(biography.get("value"), record.description)),
        images=record.images,
        source_id=record.id,
        folder_name=record.folder,
        metadata={
            "type": subtype,
            "stats": _stats(system),
            "has_biography": bool(biography.get("value") or biography.get("public")),
        },
    )


def _item(record: LocalRecord) -> GenericEntity:
    description = record.system.get("description")
    body = synthesize_description(
        _mapping(description).get("value") if isinstance(description, dict) else description,
        (record.description,),
        keep_references=True,
    )
    subtype = (record.subtype or "").lower() or None
    return GenericEntity(
        kind=EntityKind.ITEM,
        subtype=subtype,
        name=record.name,
        body=body,
        tags=_tags(record, body),
        links=collect_links(_raw_text(description, record.description)),
        images=record.images,
        source_id=record.id,
        folder_name=record.folder,
        metadata={"type": subtype},
    )


def _location(record: LocalRecord) -> GenericEntity:
    notes = [_mapping(note) for note in _sequence(record.system.get("notes"))]
    pins_text = "\n".join(filter(None, (coerce_text(note.get("text")) for note in notes)))
    body = synthesize_description(pins_text, (record.description,), keep_references=True)
    return GenericEntity(
        kind=EntityKind.LOCATION,
        subtype="scene",
        name=record.name,
        body=body,
        tags=_tags(record, pins_text),
        links=collect_links(_raw_text(pins_text, record.description)),
        images=record.images,
        source_id=record.id,
        folder_name=record.folder,
        metadata={
            "background": record.images[0] if record.images else None,
            "width": record.system.get("width"),
            "height": record.system.get("height"),
            "counts": {"notes": len(notes)},
        },
    )


def _journal(record: LocalRecord) -> GenericEntity:
    pages = [_mapping(page) for page in _sequence(record.system.get("pages"))]
    text_pages = [
        coerce_text(page.get("text"))
        for page in pages
        if str(page.get("type", "")).lower() == "text"
    ]
    raw = "\n\n".join(filter(None, text_pages))
    body = (
        html_to_markdown(raw, keep_references=True)
        if raw
        else synthesize_description(record.description, keep_references=True)
    )
    page_images = [str(page["src"]) for page in pages if page.get("src")]
    is_faction = record.sheet_type is SheetType.FACTION
    return GenericEntity(
        kind=EntityKind.FACTION if is_faction else EntityKind.JOURNAL,
        subtype=record.sheet_type.value if record.sheet_type else "journal",
        name=record.name,
        body=body,
        tags=_tags(record, raw or (record.description or "")),
        links=collect_links(_raw_text(raw, record.description)),
        images=(*page_images, *record.images),
        source_id=record.id,
        folder_name=record.folder,
        metadata={"pages": len(pages), "sheet_type": record.sheet_type},
    )


_BUILDERS: dict[EntityKind, Builder] = {
    EntityKind.CHARACTER: _character,
    EntityKind.ITEM: _item,
    EntityKind.LOCATION: _location,
    EntityKind.JOURNAL: _journal,
}


def _tags(record: LocalRecord, text: str) -> frozenset[str]:
    tags = collect_tags(text)
    if record.folder:
        tags.add(record.folder.lower())
    return frozenset(tags)


def _stats(system: Mapping[str, object]) -> dict[str, object]:
    attributes = _mapping(system.get("attributes"))
    details = _mapping(system.get("details"))
    stats: dict[str, object] = {}
    hp = _unwrap(attributes.get("hp"))
    ac = _unwrap(attributes.get("ac")) or attributes.get("armorClass")
    level = details.get("level") or details.get("cr") or details.get("challenge")
    for key, value in (("hp", hp), ("ac", ac), ("level", level)):
        if value is not None:
            stats[key] = value
    for key in ("alignment", "race", "class"):
        value = details.get(key)
        if value:
            stats[key] = str(value)
    return stats


def _unwrap(value: object) -> object:
    if isinstance(value, dict):
        return value.get("value")
    return value


def _raw_text(*candidates: object) -> str:
    return "\n".join(filter(None, (coerce_text(candidate) for candidate in candidates)))


def _mapping(value: object) -> Mapping[str, object]:
    return value if isinstance(value, dict) else {}


def _sequence(value: object) -> list[object]:
    return list(value) if isinstance(value, (list, tuple)) else []
