# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""
Repository: Role change history.
Append-only; records are frozen models and are never updated or removed.
"""

from membership.models.domain import RoleChangeRecord
from membership.repositories.base import RoleChangeStore


class RoleChangeRepository(RoleChangeStore):
    """In-memory role change log."""

    def __init__(self) -> None:
        self._records: list[RoleChangeRecord] = []

    # ── Read ──

    def find_by_member(self, member_id: str) -> list[RoleChangeRecord]:
        return [r for r in self._records if r.member_id == member_id]

    def get_all(self) -> list[RoleChangeRecord]:
        return list(self._records)

    def count(self) -> int:
        return len(self._records)

    # ── Write ──

    def append(self, record: RoleChangeRecord) -> RoleChangeRecord:
        self._records.append(record)
        return record
