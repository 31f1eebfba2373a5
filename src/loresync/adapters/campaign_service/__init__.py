"""Public interface for the campaign service adapter."""

from __future__ import annotations

from .client import CampaignServiceClient
from .schema import EntityPayload, LinkPayload, Page, SessionPayload
from .translator import parse_entity, parse_link, parse_session

__all__ = [
    "CampaignServiceClient",
    "EntityPayload",
    "LinkPayload",
    "Page",
    "SessionPayload",
    "parse_entity",
    "parse_link",
    "parse_session",
]
