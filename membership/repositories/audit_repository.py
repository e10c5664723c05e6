# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""
Repository: Operator audit log.
Append-only log of batch commits and archive runs.
"""

from typing import Optional

from membership.models.domain import AuditEntry
from membership.repositories.base import AuditStore


class AuditRepository(AuditStore):
    """In-memory audit log."""

    def __init__(self) -> None:
        self._log: list[AuditEntry] = []

    # ── Read ──

    def get_all(self, operation_type: Optional[str] = None) -> list[AuditEntry]:
        if operation_type:
            return [e for e in self._log if e.operation_type == operation_type]
        return list(self._log)

    def count(self) -> int:
        return len(self._log)

    # ── Write ──

    def append(self, entry: AuditEntry) -> AuditEntry:
        self._log.append(entry)
        return entry
