"""Reconciliation rows and the user edits allowed on them.

Every edit keeps the pairing one-to-one and symmetric: if a remote row points at a
local row, that local row points back, and neither side has any other partner.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import StrEnum
from logging import getLogger
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Iterator

log = getLogger(__name__)


class Side(StrEnum):
    REMOTE = "remote"
    LOCAL = "local"

    @property
    def opposite(self) -> Side:
        return Side.LOCAL if self is Side.REMOTE else Side.REMOTE


@dataclass(slots=True, kw_only=True)
class ReconciliationRow:
    id: str
    name: str
    type: str | None = None
    image: str | None = None
    selected: bool = True
    match: str | None = None


@dataclass(slots=True)
class CategoryRows:
    remote: list[ReconciliationRow] = field(default_factory=list["ReconciliationRow"])
    local: list[ReconciliationRow] = field(default_factory=list["ReconciliationRow"])

    def rows(self, side: Side) -> list[ReconciliationRow]:
        return self.remote if side is Side.REMOTE else self.local

    def find(self, side: Side, row_id: str) -> ReconciliationRow | None:
        for row in self.rows(side):
            if row.id == row_id:
                return row
        return None

    def partner(self, side: Side, row: ReconciliationRow) -> ReconciliationRow | None:
        if row.match is None:
            return None
        return self.find(side.opposite, row.match)

    def toggle(self, side: Side, row_id: str, selected: bool | None = None) -> bool:
        """Set (or flip) selection on a row and its matched counterpart.

        Returns ``False`` when the row does not exist.
        """

        row = self.find(side, row_id)
        if row is None:
            return False
        value = (not row.selected) if selected is None else selected
        row.selected = value
        partner = self.partner(side, row)
        if partner is not None:
            partner.selected = value
        return True

    def rematch(self, side: Side, row_id: str, match_id: str | None) -> bool:
        """Point a row at a new counterpart (or none), clearing every stale link first.

        The new counterpart takes over the row's selection so a pair is always
        selected or deselected as a whole.
        """

        row = self.find(side, row_id)
        if row is None:
            return False
        target = self.find(side.opposite, match_id) if match_id is not None else None
        if match_id is not None and target is None:
            log.warning("Ignoring re-match of %s %s to unknown row %s", side, row_id, match_id)
            return False

        self._unlink(side, row)
        if target is not None:
            self._unlink(side.opposite, target)
            row.match = target.id
            target.match = row.id
            target.selected = row.selected
        return True

    def select_all(self, selected: bool = True) -> None:
        for row in (*self.remote, *self.local):
            row.selected = selected

    def unmatched(self, side: Side, *, selected_only: bool = False) -> list[ReconciliationRow]:
        return [
            row
            for row in self.rows(side)
            if row.match is None and (row.selected or not selected_only)
        ]

    def pairs(self) -> Iterator[tuple[ReconciliationRow, ReconciliationRow]]:
        """Yield ``(remote, local)`` pairs in remote row order."""

        for row in self.remote:
            partner = self.partner(Side.REMOTE, row)
            if partner is not None:
                yield row, partner

    def is_symmetric(self) -> bool:
        for side in Side:
            for row in self.rows(side):
                if row.match is None:
                    continue
                partner = self.partner(side, row)
                if partner is None or partner.match != row.id:
                    return False
        return True

    def _unlink(self, side: Side, row: ReconciliationRow) -> None:
        partner = self.partner(side, row)
        if partner is not None and partner.match == row.id:
            partner.match = None
        row.match = None
