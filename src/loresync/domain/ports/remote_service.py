"""Port for the remote campaign service."""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from loresync.domain.model import (
        EntityDraft,
        LinkDraft,
        RemoteEntity,
        RemoteLink,
        RemoteSession,
    )


@runtime_checkable
class RemoteCampaignService(Protocol):
    """List/create/update operations per entity kind plus the link resource.

    Creates are safe to retry after a failure but are not deduplicated by the
    service; callers look up existing cross references before creating.
    """

    async def list_characters(self, campaign_id: str) -> list[RemoteEntity]: ...

    async def list_items(self, campaign_id: str) -> list[RemoteEntity]: ...

    async def list_locations(self, campaign_id: str) -> list[RemoteEntity]: ...

    async def list_factions(self, campaign_id: str) -> list[RemoteEntity]: ...

    async def list_sessions(self, campaign_id: str) -> list[RemoteSession]: ...

    async def list_links(self, campaign_id: str) -> list[RemoteLink]: ...

    async def create_character(self, campaign_id: str, draft: EntityDraft) -> RemoteEntity: ...

    async def create_item(self, campaign_id: str, draft: EntityDraft) -> RemoteEntity: ...

    async def create_location(self, campaign_id: str, draft: EntityDraft) -> RemoteEntity: ...

    async def create_faction(self, campaign_id: str, draft: EntityDraft) -> RemoteEntity: ...

    async def update_character(self, entity_id: str, draft: EntityDraft) -> RemoteEntity: ...

    async def update_item(self, entity_id: str, draft: EntityDraft) -> RemoteEntity: ...

    async def update_location(self, entity_id: str, draft: EntityDraft) -> RemoteEntity: ...

    async def update_faction(self, entity_id: str, draft: EntityDraft) -> RemoteEntity: ...

    async def update_location_parent(self, location_id: str, parent_id: str | None) -> None:
        """Move a location under ``parent_id``; ``None`` makes it a root."""
        ...

    async def create_link(self, campaign_id: str, draft: LinkDraft) -> RemoteLink: ...

    async def delete_link(self, campaign_id: str, link_id: str) -> None: ...
