"""SQLAlchemy-backed local world store."""

from __future__ import annotations

import uuid
from dataclasses import dataclass
from datetime import UTC, datetime
from logging import getLogger
from typing import TYPE_CHECKING, cast

from pydantic import ValidationError
from sqlalchemy import create_engine, insert, select, update
from sqlalchemy.orm import Session, sessionmaker

from loresync.domain.errors import LocalStoreError, RecordNotFoundError
from loresync.domain.model import EntityKind, LocalRecord, RecordMetadata
from loresync.domain.ports import LocalStore

from .tables import create_all_tables, world_records_table

if TYPE_CHECKING:
    from collections.abc import Mapping

    from sqlalchemy.engine import Engine, RowMapping

    from loresync.domain.model import RecordChanges, RecordDraft

log = getLogger(__name__)


class StartupError(RuntimeError):
    """Raised when the world store is used before initialisation."""


@dataclass(slots=True)
class _AdapterState:
    _engine: Engine | None = None
    _session_factory: sessionmaker[Session] | None = None

    @property
    def engine(self) -> Engine | None:
        return self._engine

    @engine.setter
    def engine(self, value: Engine | None) -> None:
        self._session_factory = None
        self._engine = value

    @property
    def session_factory(self) -> sessionmaker[Session]:
        if self._engine is None:
            raise StartupError(
                "World store not initialised. Call loresync.adapters.sqlalchemy."
                "store.startup() before opening the store."
            )
        if self._session_factory is None:
            self._session_factory = sessionmaker(bind=self._engine, expire_on_commit=False)
        return self._session_factory


_STATE = _AdapterState()


def startup(
    *,
    engine: Engine | None = None,
    database_uri: str | None = None,
    echo: bool = False,
    force: bool = False,
) -> None:
    """Initialise the engine, create the tables and reset the session factory."""

    if _STATE.engine is not None and not force:
        raise StartupError("World store already initialised. Pass force=True to reconfigure.")
    if engine is None and database_uri is None:
        raise StartupError("startup() needs an engine or a database URI")

    resolved_engine = engine or create_engine(cast(str, database_uri), echo=echo)
    create_all_tables(resolved_engine)
    if _STATE.engine is not None and _STATE.engine is not resolved_engine:
        _STATE.engine.dispose()
    _STATE.engine = resolved_engine


def is_started() -> bool:
    return _STATE.engine is not None


def shutdown() -> None:
    """Dispose the managed engine and reset state (primarily for tests)."""

    if _STATE.engine is not None:
        _STATE.engine.dispose()
    _STATE.engine = None


def _now() -> datetime:
    return datetime.now(UTC)


def _new_record_id() -> str:
    return uuid.uuid4().hex[:16]


def _metadata_from_row(record_id: str, raw: object) -> RecordMetadata:
    try:
        return RecordMetadata.model_validate(raw or {})
    except ValidationError as exc:
        raise LocalStoreError(f"Stored metadata of {record_id} is invalid: {exc}") from exc


def _record_from_row(row: RowMapping) -> LocalRecord:
    record_id = cast(str, row["record_id"])
    try:
        kind = EntityKind(cast(str, row["kind"]))
    except ValueError as exc:
        raise LocalStoreError(f"Stored kind of {record_id} is unknown: {row['kind']!r}") from exc
    images = cast(list[str] | None, row["images"]) or []
    system = cast("Mapping[str, object] | None", row["system"]) or {}
    return LocalRecord(
        id=record_id,
        kind=kind,
        name=cast(str, row["name"]),
        subtype=cast(str | None, row["subtype"]),
        folder=cast(str | None, row["folder"]),
        description=cast(str | None, row["description"]),
        images=tuple(images),
        system=dict(system),
        metadata=_metadata_from_row(record_id, row["engine_metadata"]),
    )


def _storable_metadata(metadata: RecordMetadata) -> dict[str, object]:
    # Round trip through the schema so whatever is stored reads back cleanly.
    try:
        return RecordMetadata.model_validate(metadata.to_storage()).to_storage()
    except ValidationError as exc:
        raise LocalStoreError(f"Refusing to store invalid metadata: {exc}") from exc


class SqlAlchemyLocalStore(LocalStore):
    """World store persisted in one ``world_records`` table.

    Every primitive runs in its own transaction.
    """

    def __init__(self, session_factory: sessionmaker[Session] | None = None) -> None:
        self.session_factory: sessionmaker[Session] = session_factory or _STATE.session_factory

    @classmethod
    def from_engine(cls, engine: Engine) -> SqlAlchemyLocalStore:
        create_all_tables(engine)
        return cls(sessionmaker(bind=engine, expire_on_commit=False))

    def list_records(self, kind: EntityKind | None = None) -> list[LocalRecord]:
        statement = select(world_records_table).order_by(world_records_table.c.seq)
        if kind is not None:
            statement = statement.where(world_records_table.c.kind == str(kind))
        with self.session_factory() as session:
            rows = session.execute(statement).mappings().all()
        records: list[LocalRecord] = []
        for row in rows:
            try:
                records.append(_record_from_row(row))
            except LocalStoreError as exc:
                log.warning(f"Skipping unreadable record: {exc}")
        return records

    def list_damaged_metadata(self) -> list[str]:
        statement = (
            select(world_records_table.c.record_id, world_records_table.c.engine_metadata)
            .where(world_records_table.c.kind.in_([str(kind) for kind in EntityKind]))
            .order_by(world_records_table.c.seq)
        )
        with self.session_factory() as session:
            rows = session.execute(statement).all()
        damaged: list[str] = []
        for record_id, raw in rows:
            try:
                RecordMetadata.model_validate(raw or {})
            except ValidationError:
                damaged.append(record_id)
        return damaged

    def get(self, record_id: str) -> LocalRecord:
        with self.session_factory() as session:
            row = self._fetch(session, record_id)
        return _record_from_row(row)

    def create(self, draft: RecordDraft) -> LocalRecord:
        record_id = _new_record_id()
        now = _now()
        values: dict[str, object] = {
            "record_id": record_id,
            "kind": str(draft.kind),
            "name": draft.name,
            "subtype": draft.subtype,
            "folder": draft.folder,
            "description": draft.description,
            "images": list(draft.images),
            "system": dict(draft.system),
            "engine_metadata": _storable_metadata(draft.metadata),
            "created_at": now,
            "updated_at": now,
        }
        with self.session_factory.begin() as session:
            session.execute(insert(world_records_table).values(**values))
            row = self._fetch(session, record_id)
        log.debug(f"Created {draft.kind} record {record_id} ({draft.name!r})")
        return _record_from_row(row)

    def update(self, record_id: str, changes: RecordChanges) -> LocalRecord:
        values: dict[str, object] = {}
        if changes.name is not None:
            values["name"] = changes.name
        if changes.subtype is not None:
            values["subtype"] = changes.subtype
        if changes.folder is not None:
            values["folder"] = changes.folder
        if changes.description is not None:
            values["description"] = changes.description
        if changes.images is not None:
            values["images"] = list(changes.images)
        if changes.system is not None:
            values["system"] = dict(changes.system)
        return self._write(record_id, values)

    def write_metadata(self, record_id: str, metadata: RecordMetadata) -> LocalRecord:
        return self._write(record_id, {"engine_metadata": _storable_metadata(metadata)})

    def _write(self, record_id: str, values: dict[str, object]) -> LocalRecord:
        with self.session_factory.begin() as session:
            self._fetch(session, record_id)
            if values:
                values["updated_at"] = _now()
                session.execute(
                    update(world_records_table)
                    .where(world_records_table.c.record_id == record_id)
                    .values(**values)
                )
            row = self._fetch(session, record_id)
        return _record_from_row(row)

    @staticmethod
    def _fetch(session: Session, record_id: str) -> RowMapping:
        statement = select(world_records_table).where(
            world_records_table.c.record_id == record_id
        )
        row = session.execute(statement).mappings().one_or_none()
        if row is None:
            raise RecordNotFoundError(record_id)
        return row
