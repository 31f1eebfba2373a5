"""Clear the engine's metadata from every record without deleting anything."""

from __future__ import annotations

from dataclasses import dataclass
from logging import getLogger
from typing import TYPE_CHECKING

from loresync.domain.model import RecordMetadata

if TYPE_CHECKING:
    from loresync.domain.links import LinkGraphIndexer
    from loresync.domain.ports import LocalStore

log = getLogger(__name__)


@dataclass(slots=True, frozen=True)
class ResetResult:
    scanned: int
    cleared: int


def reset_engine_metadata(
    store: LocalStore, *, indexer: LinkGraphIndexer | None = None
) -> ResetResult:
    """Idempotent: a second run finds nothing left to clear."""

    scanned = cleared = 0
    blank = RecordMetadata()
    for record in store.list_records():
        scanned += 1
        if record.metadata.is_blank():
            continue
        store.write_metadata(record.id, blank)
        cleared += 1
    for record_id in store.list_damaged_metadata():
        log.warning("Replacing unreadable engine metadata on %s", record_id)
        store.write_metadata(record_id, blank)
        scanned += 1
        cleared += 1
    if indexer is not None:
        indexer.rebuild()
    log.info("Reset cleared engine metadata on %d of %d records", cleared, scanned)
    return ResetResult(scanned=scanned, cleared=cleared)
