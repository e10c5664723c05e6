# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""
Repository: Points ledger data access.
Append-only list of signed deltas; sums are computed on read.
"""

from datetime import datetime

from membership.models.domain import PointsEntry
from membership.repositories.base import PointsStore


class PointsRepository(PointsStore):
    """In-memory points ledger."""

    def __init__(self) -> None:
        self._entries: list[PointsEntry] = []

    # ── Read ──

    def sum_by_member_and_period(
        self, member_id: str, start: datetime, end: datetime
    ) -> int:
        return sum(
            e.amount
            for e in self._entries
            if e.member_id == member_id and start <= e.created_at < end
        )

    def sum_by_member(self, member_id: str) -> int:
        return sum(e.amount for e in self._entries if e.member_id == member_id)

    def get_by_member(self, member_id: str) -> list[PointsEntry]:
        return [e for e in self._entries if e.member_id == member_id]

    def count(self) -> int:
        return len(self._entries)

    # ── Write ──

    def append(self, entry: PointsEntry) -> PointsEntry:
        self._entries.append(entry)
        return entry

    # ── Bulk / internal ──

    def clear(self) -> None:
        self._entries.clear()
