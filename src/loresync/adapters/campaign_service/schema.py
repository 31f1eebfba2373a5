"""Pydantic models describing the campaign service payloads."""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from datetime import UTC, datetime
from logging import getLogger
from typing import cast

from pydantic import (
    AliasChoices,
    BaseModel,
    ConfigDict,
    Field,
    ValidationError,
    ValidatorFunctionWrapHandler,
    field_validator,
)

log = getLogger(__name__)


def _blank_to_none(value: object) -> object:
    if isinstance(value, str):
        stripped = value.strip()
        return stripped or None
    return value


def _id_to_str(value: object) -> object:
    if isinstance(value, int) and not isinstance(value, bool):
        return str(value)
    return value


class CampaignServiceModel(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)


class EntityPayload(CampaignServiceModel):
    id: str
    name: str = Field(
        default="",
        validation_alias=AliasChoices("character_name", "name", "title"),
    )
    type: str | None = Field(default=None, validation_alias=AliasChoices("type", "character_type"))
    description: str | None = None
    image: str | None = None
    parent_id: str | None = None

    _normalize_id = field_validator("id", "parent_id", mode="before")(_id_to_str)
    _normalize_blanks = field_validator(
        "type", "description", "image", "parent_id", mode="before"
    )(_blank_to_none)

    @field_validator("name", mode="before")
    @classmethod
    def _strip_name(cls, value: object) -> object:
        if value is None:
            return ""
        if isinstance(value, str):
            return value.strip()
        return value


class SessionPayload(CampaignServiceModel):
    id: str
    title: str = Field(default="", validation_alias=AliasChoices("title", "name"))
    summary: str | None = None
    session_date: datetime | None = None

    _normalize_id = field_validator("id", mode="before")(_id_to_str)
    _normalize_blanks = field_validator("summary", mode="before")(_blank_to_none)

    @field_validator("session_date", mode="wrap")
    @classmethod
    def _lenient_date(
        cls, value: object, handler: ValidatorFunctionWrapHandler
    ) -> datetime | None:
        value = _blank_to_none(value)
        if value is None:
            return None
        try:
            parsed = cast(datetime, handler(value))
        except ValidationError:
            log.warning(f"Ignoring unparsable session date {value!r}")
            return None
        if parsed.tzinfo is None:
            parsed = parsed.replace(tzinfo=UTC)
        return parsed


class LinkPayload(CampaignServiceModel):
    id: str
    from_id: str
    from_type: str
    to_id: str
    to_type: str
    alias: str | None = None

    _normalize_ids = field_validator("id", "from_id", "to_id", mode="before")(_id_to_str)
    _normalize_alias = field_validator("alias", mode="before")(_blank_to_none)


class Page(CampaignServiceModel):
    """One page of a list response; the service answers with a bare list or an envelope."""

    data: list[dict[str, object]] = Field(default_factory=list["dict[str, object]"])
    pages: int | None = None

    @classmethod
    def parse(cls, payload: object) -> Page:
        if isinstance(payload, Sequence) and not isinstance(payload, str | bytes):
            items = cast(Sequence[object], payload)
            return cls(data=[dict(cast(Mapping[str, object], item)) for item in items])
        if isinstance(payload, Mapping):
            return cls.model_validate(payload)
        raise TypeError(f"Unexpected list payload: {type(payload).__name__}")


class ErrorPayload(CampaignServiceModel):
    detail: object = None
    message: str | None = None

    def text(self) -> str:
        if self.message:
            return self.message
        if self.detail is None:
            return ""
        return str(self.detail)
