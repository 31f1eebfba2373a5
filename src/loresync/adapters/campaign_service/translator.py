"""Translate campaign service payloads into domain records and back."""

from __future__ import annotations

from typing import TYPE_CHECKING

from loresync.domain.model import RemoteEntity, RemoteLink, RemoteSession

if TYPE_CHECKING:
    from loresync.domain.model import EntityDraft, EntityKind, LinkDraft

    from .schema import EntityPayload, LinkPayload, SessionPayload


def parse_entity(payload: EntityPayload, kind: EntityKind) -> RemoteEntity:
    return RemoteEntity(
        id=payload.id,
        kind=kind,
        name=payload.name,
        type=payload.type,
        description=payload.description,
        image=payload.image,
        parent_id=payload.parent_id,
    )


def parse_session(payload: SessionPayload) -> RemoteSession:
    return RemoteSession(
        id=payload.id,
        title=payload.title,
        summary=payload.summary,
        session_date=payload.session_date,
    )


def parse_link(payload: LinkPayload) -> RemoteLink:
    return RemoteLink(
        id=payload.id,
        from_id=payload.from_id,
        from_type=payload.from_type,
        to_id=payload.to_id,
        to_type=payload.to_type,
        alias=payload.alias,
    )


def character_body(draft: EntityDraft, *, campaign_id: str | None = None) -> dict[str, object]:
    body: dict[str, object] = {
        "character_name": draft.name,
        "description": draft.description,
        "type": str(draft.character_type) if draft.character_type else "NPC",
    }
    if draft.image:
        body["image"] = draft.image
    if campaign_id is not None:
        body["campaign_id"] = campaign_id
    return body


def entity_body(draft: EntityDraft, *, campaign_id: str | None = None) -> dict[str, object]:
    """Body for items, locations and factions."""
    body: dict[str, object] = {"name": draft.name, "description": draft.description}
    if draft.image:
        body["image"] = draft.image
    if draft.parent_id:
        body["parent_id"] = draft.parent_id
    if campaign_id is not None:
        body["campaign_id"] = campaign_id
    return body


def link_body(draft: LinkDraft, *, campaign_id: str) -> dict[str, object]:
    body: dict[str, object] = {
        "campaign_id": campaign_id,
        "from_id": draft.from_id,
        "from_type": draft.from_type,
        "to_id": draft.to_id,
        "to_type": draft.to_type,
    }
    if draft.alias:
        body["alias"] = draft.alias
    return body
