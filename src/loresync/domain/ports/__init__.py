"""Domain port definitions for adapters."""

from __future__ import annotations

from .local_store import LocalStore
from .remote_service import RemoteCampaignService

__all__ = ["LocalStore", "RemoteCampaignService"]
