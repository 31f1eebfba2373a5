"""HTTP client for the remote campaign service."""

from __future__ import annotations

from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from logging import getLogger
from typing import TYPE_CHECKING
from urllib.parse import quote

import httpx
from pydantic import ValidationError

from loresync.adapters.http_resilience import RateLimit, ResilienceConfig, ResilientClient
from loresync.config.remote import DEFAULT_REMOTE_BASE_URL
from loresync.domain.errors import DescriptionTooLongError, RemoteServiceError
from loresync.domain.model import EntityKind

from .schema import EntityPayload, ErrorPayload, LinkPayload, Page, SessionPayload
from .translator import (
    character_body,
    entity_body,
    link_body,
    parse_entity,
    parse_link,
    parse_session,
)

if TYPE_CHECKING:
    from collections.abc import AsyncIterator, Callable
    from types import TracebackType

    from loresync.config import RemoteServiceConfig, SyncConfig
    from loresync.domain.model import (
        EntityDraft,
        LinkDraft,
        RemoteEntity,
        RemoteLink,
        RemoteSession,
    )
    from loresync.domain.ports import RemoteCampaignService

log = getLogger(__name__)

_DEFAULT_TIMEOUT_SECONDS = 20.0
_TOO_LONG_STATUSES = frozenset({413, 422})

_RESOURCES: dict[EntityKind, str] = {
    EntityKind.CHARACTER: "characters",
    EntityKind.ITEM: "items",
    EntityKind.LOCATION: "locations",
    EntityKind.FACTION: "factions",
}


def _default_resilience_config() -> ResilienceConfig:
    return ResilienceConfig(
        name="campaign-service",
        base_url=DEFAULT_REMOTE_BASE_URL,
        timeout_seconds=_DEFAULT_TIMEOUT_SECONDS,
        ratelimit=RateLimit(max_calls=8, per_seconds=1.0),
    )


def _default_client_factory(config: ResilienceConfig) -> ResilientClient:
    return ResilientClient(config)


def _error_text(response: httpx.Response) -> str:
    try:
        payload = response.json()
    except ValueError:
        return response.text
    if isinstance(payload, dict):
        try:
            return ErrorPayload.model_validate(payload).text()
        except ValidationError:
            return response.text
    return str(payload)


@dataclass(slots=True)
class CampaignServiceClient:
    """Talks to the campaign service's REST resources.

    Each call opens its own HTTP client unless the instance is used as an async
    context manager, in which case all calls share one connection pool.
    """

    resilience: ResilienceConfig = field(default_factory=_default_resilience_config)
    client_factory: Callable[[ResilienceConfig], ResilientClient] = field(
        default=_default_client_factory
    )
    page_size: int = 100
    description_max_length: int = 10_000
    _session: ResilientClient | None = field(default=None, init=False, repr=False)

    @classmethod
    def from_config(
        cls,
        remote: RemoteServiceConfig,
        sync: SyncConfig | None = None,
        *,
        client_factory: Callable[[ResilienceConfig], ResilientClient] | None = None,
    ) -> CampaignServiceClient:
        client = cls(resilience=remote.resilience)
        if client_factory is not None:
            client.client_factory = client_factory
        if sync is not None:
            client.page_size = sync.page_size
            client.description_max_length = sync.description_max_length
        return client

    async def __aenter__(self) -> CampaignServiceClient:
        if self._session is None:
            self._session = self.client_factory(self.resilience)
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        session, self._session = self._session, None
        if session is not None:
            await session.aclose()

    # Reads -----------------------------------------------------------------

    async def list_characters(self, campaign_id: str) -> list[RemoteEntity]:
        return await self._list_entities(EntityKind.CHARACTER, campaign_id)

    async def list_items(self, campaign_id: str) -> list[RemoteEntity]:
        return await self._list_entities(EntityKind.ITEM, campaign_id)

    async def list_locations(self, campaign_id: str) -> list[RemoteEntity]:
        return await self._list_entities(EntityKind.LOCATION, campaign_id)

    async def list_factions(self, campaign_id: str) -> list[RemoteEntity]:
        return await self._list_entities(EntityKind.FACTION, campaign_id)

    async def list_sessions(self, campaign_id: str) -> list[RemoteSession]:
        rows = await self._list_all("sessions", campaign_id)
        return [parse_session(self._validate(SessionPayload, row)) for row in rows]

    async def list_links(self, campaign_id: str) -> list[RemoteLink]:
        rows = await self._list_all("links", campaign_id)
        return [parse_link(self._validate(LinkPayload, row)) for row in rows]

    # Writes ----------------------------------------------------------------

    async def create_character(self, campaign_id: str, draft: EntityDraft) -> RemoteEntity:
        return await self._create(EntityKind.CHARACTER, campaign_id, draft)

    async def create_item(self, campaign_id: str, draft: EntityDraft) -> RemoteEntity:
        return await self._create(EntityKind.ITEM, campaign_id, draft)

    async def create_location(self, campaign_id: str, draft: EntityDraft) -> RemoteEntity:
        return await self._create(EntityKind.LOCATION, campaign_id, draft)

    async def create_faction(self, campaign_id: str, draft: EntityDraft) -> RemoteEntity:
        return await self._create(EntityKind.FACTION, campaign_id, draft)

    async def update_character(self, entity_id: str, draft: EntityDraft) -> RemoteEntity:
        return await self._update(EntityKind.CHARACTER, entity_id, draft)

    async def update_item(self, entity_id: str, draft: EntityDraft) -> RemoteEntity:
        return await self._update(EntityKind.ITEM, entity_id, draft)

    async def update_location(self, entity_id: str, draft: EntityDraft) -> RemoteEntity:
        return await self._update(EntityKind.LOCATION, entity_id, draft)

    async def update_faction(self, entity_id: str, draft: EntityDraft) -> RemoteEntity:
        return await self._update(EntityKind.FACTION, entity_id, draft)

    async def update_location_parent(self, location_id: str, parent_id: str | None) -> None:
        # Partial update so the rest of the location is left as the service has it.
        path = f"/{_RESOURCES[EntityKind.LOCATION]}/{quote(location_id, safe='')}"
        await self._call("PATCH", path, json={"parent_id": parent_id})

    async def create_link(self, campaign_id: str, draft: LinkDraft) -> RemoteLink:
        payload = await self._call("POST", "/links", json=link_body(draft, campaign_id=campaign_id))
        return parse_link(self._validate(LinkPayload, payload))

    async def delete_link(self, campaign_id: str, link_id: str) -> None:
        await self._call(
            "DELETE",
            f"/links/{quote(link_id, safe='')}",
            params={"campaign_id": campaign_id},
        )

    # Internals -------------------------------------------------------------

    async def _list_entities(self, kind: EntityKind, campaign_id: str) -> list[RemoteEntity]:
        rows = await self._list_all(_RESOURCES[kind], campaign_id)
        return [parse_entity(self._validate(EntityPayload, row), kind) for row in rows]

    async def _list_all(self, resource: str, campaign_id: str) -> list[dict[str, object]]:
        rows: list[dict[str, object]] = []
        page_number = 1
        while True:
            payload = await self._call(
                "GET",
                f"/{resource}",
                params={"campaign_id": campaign_id, "page": page_number, "size": self.page_size},
            )
            try:
                page = Page.parse(payload)
            except (TypeError, ValueError) as exc:
                raise RemoteServiceError(f"Unexpected {resource} page payload: {exc}") from exc
            rows.extend(page.data)

            if not page.data or len(page.data) < self.page_size:
                break
            if page.pages is not None and page_number >= page.pages:
                break
            page_number += 1

        log.debug(f"Listed {len(rows)} {resource} for campaign {campaign_id}")
        return rows

    async def _create(
        self, kind: EntityKind, campaign_id: str, draft: EntityDraft
    ) -> RemoteEntity:
        self._check_description(draft)
        body = self._body(kind, draft, campaign_id=campaign_id)
        payload = await self._call("POST", f"/{_RESOURCES[kind]}", json=body, draft=draft)
        return parse_entity(self._validate(EntityPayload, payload), kind)

    async def _update(self, kind: EntityKind, entity_id: str, draft: EntityDraft) -> RemoteEntity:
        self._check_description(draft)
        body = self._body(kind, draft)
        path = f"/{_RESOURCES[kind]}/{quote(entity_id, safe='')}"
        payload = await self._call("PUT", path, json=body, draft=draft)
        if not isinstance(payload, dict):
            # Some endpoints answer updates with an empty body.
            payload = {**body, "id": entity_id}
        return parse_entity(self._validate(EntityPayload, payload), kind)

    @staticmethod
    def _body(
        kind: EntityKind, draft: EntityDraft, *, campaign_id: str | None = None
    ) -> dict[str, object]:
        if kind is EntityKind.CHARACTER:
            return character_body(draft, campaign_id=campaign_id)
        return entity_body(draft, campaign_id=campaign_id)

    def _check_description(self, draft: EntityDraft) -> None:
        length = len(draft.description)
        if length > self.description_max_length:
            raise DescriptionTooLongError(
                entity_name=draft.name,
                length=length,
                max_length=self.description_max_length,
            )

    async def _call(
        self,
        method: str,
        path: str,
        *,
        params: dict[str, str | int] | None = None,
        json: dict[str, object] | None = None,
        draft: EntityDraft | None = None,
    ) -> object:
        async with self._client() as client:
            try:
                response = await client.request(method, path, params=params, json=json)
            except httpx.HTTPError as exc:
                raise RemoteServiceError(f"{method} {path} failed: {exc}") from exc

        try:
            response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            raise self._status_error(method, path, response, draft) from exc

        if response.status_code == httpx.codes.NO_CONTENT or not response.content:
            return None
        try:
            return response.json()
        except ValueError as exc:
            raise RemoteServiceError(
                f"{method} {path} returned invalid JSON", status_code=response.status_code
            ) from exc

    def _status_error(
        self,
        method: str,
        path: str,
        response: httpx.Response,
        draft: EntityDraft | None,
    ) -> RemoteServiceError:
        detail = _error_text(response)
        status = response.status_code
        if draft is not None and status in _TOO_LONG_STATUSES and "too long" in detail.lower():
            return DescriptionTooLongError(
                entity_name=draft.name,
                length=len(draft.description),
                max_length=self.description_max_length,
                status_code=status,
            )
        log.error(f"Campaign service error {status} on {method} {path}: {detail}")
        return RemoteServiceError(
            f"{method} {path} failed with {status}: {detail}", status_code=status
        )

    @asynccontextmanager
    async def _client(self) -> AsyncIterator[ResilientClient]:
        if self._session is not None:
            yield self._session
            return
        async with self.client_factory(self.resilience) as client:
            yield client

    @staticmethod
    def _validate[ModelT: (EntityPayload, SessionPayload, LinkPayload)](
        model: type[ModelT], payload: object
    ) -> ModelT:
        try:
            return model.model_validate(payload)
        except ValidationError as exc:
            raise RemoteServiceError(f"Unexpected {model.__name__} payload: {exc}") from exc


if TYPE_CHECKING:
    _service_check: RemoteCampaignService = CampaignServiceClient()
