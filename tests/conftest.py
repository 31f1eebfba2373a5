from __future__ import annotations

import os
from typing import TYPE_CHECKING

import pytest
from sqlalchemy import create_engine
from sqlalchemy.pool import StaticPool

from loresync.adapters.sqlalchemy import SqlAlchemyLocalStore, shutdown, startup
from tests.support.remote import FakeCampaignService
from tests.support.world import InMemoryLocalStore

os.environ.setdefault("DATABASE_URI", "sqlite+pysqlite:///:memory:")

if TYPE_CHECKING:
    from collections.abc import Iterator

    from sqlalchemy.engine import Engine

CAMPAIGN_ID = "campaign-1"


@pytest.fixture
def campaign_id() -> str:
    return CAMPAIGN_ID


@pytest.fixture
def store() -> InMemoryLocalStore:
    return InMemoryLocalStore()


@pytest.fixture
def remote() -> FakeCampaignService:
    return FakeCampaignService()


@pytest.fixture
def sqlite_engine() -> Iterator[Engine]:
    engine = create_engine(
        "sqlite+pysqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    try:
        yield engine
    finally:
        engine.dispose()


@pytest.fixture
def sqlite_store(sqlite_engine: Engine) -> Iterator[SqlAlchemyLocalStore]:
    startup(engine=sqlite_engine, force=True)
    try:
        yield SqlAlchemyLocalStore()
    finally:
        shutdown()
