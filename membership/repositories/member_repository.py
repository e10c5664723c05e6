# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""
Repository: Member data access.
Encapsulates all read/write operations on the in-memory member store.
NO business rules here — pure CRUD plus the version check on write.
"""

import threading
from contextlib import contextmanager
from typing import Iterable, Iterator, Optional

from membership.core.errors import ConcurrencyConflictError
from membership.models.domain import Member, Role
from membership.repositories.base import MemberStore


class MemberRepository(MemberStore):
    """In-memory member storage. Hands out copies, never stored instances."""

    def __init__(self) -> None:
        self._store: dict[str, Member] = {}
        self._lock = threading.RLock()

    # ── Read ──

    def find_by_id(self, member_id: str) -> Optional[Member]:
        member = self._store.get(member_id)
        return member.model_copy() if member is not None else None

    def find_by_role(self, role: Role) -> list[Member]:
        return [m.model_copy() for m in self._store.values() if m.role == role]

    def find_by_roles(self, roles: Iterable[Role]) -> list[Member]:
        wanted = set(roles)
        return [m.model_copy() for m in self._store.values() if m.role in wanted]

    def count_by_role(self, role: Role) -> int:
        return sum(1 for m in self._store.values() if m.role == role)

    def get_all(self) -> list[Member]:
        return [m.model_copy() for m in self._store.values()]

    def count(self) -> int:
        return len(self._store)

    # ── Write ──

    def save(self, member: Member) -> Member:
        with self._lock:
            current = self._store.get(member.id)
            if current is not None and current.version != member.version:
                raise ConcurrencyConflictError(
                    f"Member '{member.id}' was modified concurrently "
                    f"(read version {member.version}, stored version {current.version})"
                )
            stored = member.model_copy(update={"version": member.version + 1})
            self._store[member.id] = stored
            return stored.model_copy()

    @contextmanager
    def transaction(self) -> Iterator[None]:
        with self._lock:
            snapshot = dict(self._store)
            try:
                yield
            except BaseException:
                self._store = snapshot
                raise

    # ── Bulk / internal ──

    def clear(self) -> None:
        self._store.clear()
