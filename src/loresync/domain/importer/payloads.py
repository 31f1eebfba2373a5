"""Build remote payloads from mapping proposals."""

from __future__ import annotations

from typing import TYPE_CHECKING

from loresync.domain.errors import RecordNotFoundError
from loresync.domain.model import CharacterType, EntityDraft, TargetType
from loresync.domain.text import coerce_text, is_external_image_url, remote_description

if TYPE_CHECKING:
    from collections.abc import Callable, Mapping

    from loresync.domain.model import LocalRecord, MappingProposal
    from loresync.domain.ports import LocalStore

_NAME_KEYS = ("character_name", "title", "name")
_IMAGE_KEYS = ("portraitUrl", "imageUrl", "image")


def crosslink_lookup(store: LocalStore, campaign_id: str) -> Callable[[str], str | None]:
    """Resolve ``Kind.id`` style reference tokens to the remote id of a linked record."""

    def lookup(token: str) -> str | None:
        for candidate in dict.fromkeys((token, token.rsplit(".", 1)[-1])):
            try:
                record = store.get(candidate)
            except RecordNotFoundError:
                continue
            if record.is_linked_to(campaign_id):
                return record.remote_id
        return None

    return lookup


def resolve_character_type(labels: tuple[str, ...], subtype: str | None) -> CharacterType:
    upper = {label.upper() for label in labels}
    if "PC" in upper:
        return CharacterType.PC
    if "NPC" in upper:
        return CharacterType.NPC
    return CharacterType.PC if (subtype or "").lower() == "character" else CharacterType.NPC


def build_entity_draft(
    proposal: MappingProposal,
    record: LocalRecord,
    *,
    lookup: Callable[[str], str | None] | None = None,
) -> EntityDraft:
    payload = proposal.payload
    name = _first_text(payload, _NAME_KEYS) or record.name
    image = next(
        (
            str(payload[key]).strip()
            for key in _IMAGE_KEYS
            if key in payload and is_external_image_url(payload[key])
        ),
        None,
    )
    character_type = None
    if proposal.target_type is TargetType.CHARACTER:
        character_type = resolve_character_type(proposal.labels, record.subtype)
    return EntityDraft(
        name=name,
        description=remote_description(coerce_text(payload.get("description")), lookup),
        image=image,
        character_type=character_type,
    )


def _first_text(payload: Mapping[str, object], keys: tuple[str, ...]) -> str | None:
    for key in keys:
        value = payload.get(key)
        if isinstance(value, str) and value.strip():
            return value.strip()
    return None
