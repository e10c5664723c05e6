# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""
Store contracts consumed by the services.
Implementations are pure data access — NO business rules.
"""

from abc import ABC, abstractmethod
from contextlib import AbstractContextManager
from datetime import datetime
from typing import Iterable, Optional

from membership.models.domain import (
    AuditEntry,
    CompensationRecord,
    Member,
    PointsEntry,
    Role,
    RoleChangeRecord,
)


class MemberStore(ABC):
    """Members and their roles. Writes are version-checked."""

    @abstractmethod
    def find_by_id(self, member_id: str) -> Optional[Member]: ...

    @abstractmethod
    def find_by_role(self, role: Role) -> list[Member]: ...

    @abstractmethod
    def find_by_roles(self, roles: Iterable[Role]) -> list[Member]: ...

    @abstractmethod
    def count_by_role(self, role: Role) -> int: ...

    @abstractmethod
    def save(self, member: Member) -> Member:
        """Persist `member` if its version matches the stored one.

        Returns the stored copy with the bumped version.
        Raises ConcurrencyConflictError on a version mismatch.
        """

    @abstractmethod
    def transaction(self) -> AbstractContextManager[None]:
        """Group writes; any exception inside the block undoes them all."""


class PointsStore(ABC):
    """The points ledger. Read-only from the engine's point of view."""

    @abstractmethod
    def sum_by_member_and_period(
        self, member_id: str, start: datetime, end: datetime
    ) -> int:
        """Sum of amounts with start <= created_at < end; 0 when empty."""

    @abstractmethod
    def sum_by_member(self, member_id: str) -> int:
        """All-time sum of amounts; 0 when empty."""

    @abstractmethod
    def append(self, entry: PointsEntry) -> PointsEntry: ...


class CompensationStore(ABC):
    """Compensation records, open and archived."""

    @abstractmethod
    def find_by_id(self, record_id: str) -> Optional[CompensationRecord]: ...

    @abstractmethod
    def find_archived_by_member(self, member_id: str) -> list[CompensationRecord]:
        """Archived records for one member, newest archive first."""

    @abstractmethod
    def find_unarchived(self) -> list[CompensationRecord]: ...

    @abstractmethod
    def save_all(self, records: list[CompensationRecord]) -> list[CompensationRecord]:
        """
        Persist all records or none. Raises ConcurrencyConflictError on a stale
        version and InvalidStateError when a record is already archived.
        """


class RoleChangeStore(ABC):
    """Append-only role change history."""

    @abstractmethod
    def append(self, record: RoleChangeRecord) -> RoleChangeRecord: ...

    @abstractmethod
    def find_by_member(self, member_id: str) -> list[RoleChangeRecord]: ...


class AuditStore(ABC):
    """Append-only operator audit log."""

    @abstractmethod
    def append(self, entry: AuditEntry) -> AuditEntry: ...

    @abstractmethod
    def get_all(self, operation_type: Optional[str] = None) -> list[AuditEntry]: ...


class ConfigStore(ABC):
    """Raw key/value configuration, values kept as strings."""

    @abstractmethod
    def get(self, key: str) -> Optional[str]: ...

    @abstractmethod
    def get_all(self) -> dict[str, str]: ...

    @abstractmethod
    def save(self, key: str, value: str) -> None: ...

    @abstractmethod
    def save_many(self, values: dict[str, str]) -> None:
        """Write every key in one step; readers see all of them or none."""
