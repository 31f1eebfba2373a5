"""SQLAlchemy adapter package for the local world store."""

from __future__ import annotations

from .store import SqlAlchemyLocalStore, StartupError, is_started, shutdown, startup
from .tables import create_all_tables, metadata_obj, world_records_table

__all__ = [
    "SqlAlchemyLocalStore",
    "StartupError",
    "create_all_tables",
    "is_started",
    "metadata_obj",
    "shutdown",
    "startup",
    "world_records_table",
]
