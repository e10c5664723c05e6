# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""
Repository: Compensation record data access.
Batch writes are all-or-nothing and version-checked per record.
Archived records are frozen.
"""

import threading
import uuid
from datetime import datetime, timezone
from typing import Optional

from membership.core.errors import ConcurrencyConflictError, InvalidStateError
from membership.models.domain import CompensationRecord
from membership.repositories.base import CompensationStore

_EPOCH = datetime.min.replace(tzinfo=timezone.utc)


class CompensationRepository(CompensationStore):
    """In-memory compensation storage."""

    def __init__(self) -> None:
        self._store: dict[str, CompensationRecord] = {}
        self._lock = threading.RLock()

    # ── Read ──

    def find_by_id(self, record_id: str) -> Optional[CompensationRecord]:
        record = self._store.get(record_id)
        return record.model_copy() if record is not None else None

    def find_archived_by_member(self, member_id: str) -> list[CompensationRecord]:
        archived = [
            r for r in self._store.values() if r.member_id == member_id and r.archived
        ]
        archived.sort(key=lambda r: r.archived_at or _EPOCH, reverse=True)
        return [r.model_copy() for r in archived]

    def find_unarchived(self) -> list[CompensationRecord]:
        return [r.model_copy() for r in self._store.values() if not r.archived]

    def get_all(self) -> list[CompensationRecord]:
        return [r.model_copy() for r in self._store.values()]

    def count(self) -> int:
        return len(self._store)

    # ── Write ──

    def save_all(self, records: list[CompensationRecord]) -> list[CompensationRecord]:
        with self._lock:
            for record in records:
                current = self._store.get(record.id) if record.id else None
                if current is not None and current.archived:
                    raise InvalidStateError(
                        f"Compensation record '{record.id}' is archived and cannot be modified"
                    )
                if current is not None and current.version != record.version:
                    raise ConcurrencyConflictError(
                        f"Compensation record '{record.id}' for member "
                        f"'{record.member_id}' was modified concurrently"
                    )
            saved: list[CompensationRecord] = []
            for record in records:
                stored = record.model_copy(
                    update={
                        "id": record.id or str(uuid.uuid4()),
                        "version": record.version + 1,
                    }
                )
                self._store[stored.id] = stored
                saved.append(stored.model_copy())
            return saved

    # ── Bulk / internal ──

    def clear(self) -> None:
        self._store.clear()
