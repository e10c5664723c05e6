# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""Data-access layer for members, points, compensation, role changes and audit, over SQL."""
import uuid
from contextlib import contextmanager
from contextvars import ContextVar
from datetime import datetime
from typing import Iterable, Iterator, Optional

from sqlalchemy import DateTime, bindparam, text
from sqlalchemy.engine import Connection, Engine

from membership.core.errors import ConcurrencyConflictError, InvalidStateError
from membership.core.logging import get_logger
from membership.models.domain import (
    AuditEntry,
    CompensationRecord,
    Member,
    PointsEntry,
    Role,
    RoleChangeRecord,
)
from membership.repositories.base import (
    AuditStore,
    CompensationStore,
    MemberStore,
    PointsStore,
    RoleChangeStore,
)

logger = get_logger(__name__)

_TS = DateTime(timezone=True)

MEMBER_COLS = "id, username, role, enabled, pending_dismissal, version"
COMPENSATION_COLS = (
    "id, member_id, base_points, bonus_points, deductions, total_points, "
    "allocated_amount, remark, archived, archived_at, version"
)


def _row_to_member(row) -> Member:
    return Member(
        id=row[0],
        username=row[1] or "",
        role=Role(row[2]),
        enabled=bool(row[3]),
        pending_dismissal=bool(row[4]),
        version=row[5],
    )


def _row_to_compensation(row) -> CompensationRecord:
    return CompensationRecord(
        id=row[0],
        member_id=row[1],
        base_points=row[2],
        bonus_points=row[3],
        deductions=row[4],
        total_points=row[5],
        allocated_amount=row[6],
        remark=row[7],
        archived=bool(row[8]),
        archived_at=row[9],
        version=row[10],
    )


class _ConnectionScope:
    """Hands out the connection of an enclosing block, or opens a new transaction."""

    def __init__(self, engine: Engine) -> None:
        self._engine = engine
        self._active: ContextVar[Optional[Connection]] = ContextVar(
            f"membership_sql_scope_{id(self)}", default=None
        )

    @contextmanager
    def begin(self) -> Iterator[Connection]:
        conn = self._active.get()
        if conn is not None:
            yield conn
            return
        with self._engine.begin() as conn:
            token = self._active.set(conn)
            try:
                yield conn
            finally:
                self._active.reset(token)


class SqlMemberRepository(MemberStore):
    def __init__(self, engine: Engine):
        self._scope = _ConnectionScope(engine)

    # ── Read ───────────────────────────────────────────────────────────

    def find_by_id(self, member_id: str) -> Optional[Member]:
        with self._scope.begin() as conn:
            row = conn.execute(
                text(f"SELECT {MEMBER_COLS} FROM members WHERE id = :id"),
                {"id": member_id},
            ).fetchone()
        return _row_to_member(row) if row else None

    def find_by_role(self, role: Role) -> list[Member]:
        return self.find_by_roles([role])

    def find_by_roles(self, roles: Iterable[Role]) -> list[Member]:
        values = [Role(r).value for r in roles]
        if not values:
            return []
        stmt = text(
            f"SELECT {MEMBER_COLS} FROM members WHERE role IN :roles ORDER BY id"
        ).bindparams(bindparam("roles", expanding=True))
        with self._scope.begin() as conn:
            rows = conn.execute(stmt, {"roles": values}).fetchall()
        return [_row_to_member(r) for r in rows]

    def count_by_role(self, role: Role) -> int:
        with self._scope.begin() as conn:
            return conn.execute(
                text("SELECT COUNT(*) FROM members WHERE role = :role"),
                {"role": Role(role).value},
            ).scalar() or 0

    # ── Write ──────────────────────────────────────────────────────────

    def save(self, member: Member) -> Member:
        params = {
            "id": member.id,
            "username": member.username,
            "role": member.role.value,
            "enabled": member.enabled,
            "pending": member.pending_dismissal,
            "version": member.version,
        }
        with self._scope.begin() as conn:
            result = conn.execute(
                text("""
                    UPDATE members
                       SET username = :username, role = :role, enabled = :enabled,
                           pending_dismissal = :pending, version = version + 1
                     WHERE id = :id AND version = :version
                """),
                params,
            )
            if result.rowcount == 0:
                stored = conn.execute(
                    text("SELECT version FROM members WHERE id = :id"), {"id": member.id}
                ).fetchone()
                if stored is not None:
                    raise ConcurrencyConflictError(
                        f"Member '{member.id}' was modified concurrently "
                        f"(read version {member.version}, stored version {stored[0]})"
                    )
                conn.execute(
                    text("""
                        INSERT INTO members (id, username, role, enabled, pending_dismissal, version)
                        VALUES (:id, :username, :role, :enabled, :pending, :version + 1)
                    """),
                    params,
                )
        return member.model_copy(update={"version": member.version + 1})

    @contextmanager
    def transaction(self) -> Iterator[None]:
        with self._scope.begin():
            yield


class SqlPointsRepository(PointsStore):
    def __init__(self, engine: Engine):
        self._engine = engine

    def sum_by_member_and_period(self, member_id: str, start: datetime, end: datetime) -> int:
        stmt = text("""
            SELECT COALESCE(SUM(amount), 0) FROM points_entries
             WHERE member_id = :member_id AND created_at >= :start AND created_at < :end
        """).bindparams(bindparam("start", type_=_TS), bindparam("end", type_=_TS))
        with self._engine.connect() as conn:
            total = conn.execute(
                stmt, {"member_id": member_id, "start": start, "end": end}
            ).scalar()
        return int(total or 0)

    def sum_by_member(self, member_id: str) -> int:
        with self._engine.connect() as conn:
            total = conn.execute(
                text("SELECT COALESCE(SUM(amount), 0) FROM points_entries WHERE member_id = :member_id"),
                {"member_id": member_id},
            ).scalar()
        return int(total or 0)

    def append(self, entry: PointsEntry) -> PointsEntry:
        stmt = text("""
            INSERT INTO points_entries (id, member_id, amount, created_at)
            VALUES (:id, :member_id, :amount, :created_at)
        """).bindparams(bindparam("created_at", type_=_TS))
        with self._engine.begin() as conn:
            conn.execute(stmt, {"id": entry.id, "member_id": entry.member_id,
                                "amount": entry.amount, "created_at": entry.created_at})
        return entry


class SqlCompensationRepository(CompensationStore):
    def __init__(self, engine: Engine):
        self._engine = engine

    # ── Read ───────────────────────────────────────────────────────────

    def _select(self, where: str, params: dict, order_by: str = "id"):
        stmt = text(
            f"SELECT {COMPENSATION_COLS} FROM compensation_records WHERE {where} ORDER BY {order_by}"
        ).columns(archived_at=_TS)
        with self._engine.connect() as conn:
            rows = conn.execute(stmt, params).fetchall()
        return [_row_to_compensation(r) for r in rows]

    def find_by_id(self, record_id: str) -> Optional[CompensationRecord]:
        found = self._select("id = :id", {"id": record_id})
        return found[0] if found else None

    def find_archived_by_member(self, member_id: str) -> list[CompensationRecord]:
        return self._select(
            "member_id = :member_id AND archived = :archived",
            {"member_id": member_id, "archived": True},
            order_by="archived_at DESC, id DESC",
        )

    def find_unarchived(self) -> list[CompensationRecord]:
        return self._select("archived = :archived", {"archived": False})

    # ── Write ──────────────────────────────────────────────────────────

    def save_all(self, records: list[CompensationRecord]) -> list[CompensationRecord]:
        update_stmt = text("""
            UPDATE compensation_records
               SET member_id = :member_id, base_points = :base_points,
                   bonus_points = :bonus_points, deductions = :deductions,
                   total_points = :total_points, allocated_amount = :allocated_amount,
                   remark = :remark, archived = :archived, archived_at = :archived_at,
                   version = version + 1
             WHERE id = :id AND version = :version AND archived = :open
        """).bindparams(bindparam("archived_at", type_=_TS))
        insert_stmt = text("""
            INSERT INTO compensation_records
                (id, member_id, base_points, bonus_points, deductions, total_points,
                 allocated_amount, remark, archived, archived_at, version)
            VALUES
                (:id, :member_id, :base_points, :bonus_points, :deductions, :total_points,
                 :allocated_amount, :remark, :archived, :archived_at, :version + 1)
        """).bindparams(bindparam("archived_at", type_=_TS))

        saved: list[CompensationRecord] = []
        with self._engine.begin() as conn:
            for record in records:
                record_id = record.id or str(uuid.uuid4())
                params = record.model_dump()
                params["id"] = record_id
                params["open"] = False
                updated = 0
                if record.id:
                    updated = conn.execute(update_stmt, params).rowcount
                if updated == 0:
                    current = record.id and conn.execute(
                        text("SELECT version, archived FROM compensation_records WHERE id = :id"),
                        {"id": record_id},
                    ).fetchone()
                    if current and bool(current[1]):
                        raise InvalidStateError(
                            f"Compensation record '{record_id}' is archived and cannot be modified"
                        )
                    if current:
                        raise ConcurrencyConflictError(
                            f"Compensation record '{record_id}' for member "
                            f"'{record.member_id}' was modified concurrently"
                        )
                    conn.execute(insert_stmt, params)
                saved.append(
                    record.model_copy(update={"id": record_id, "version": record.version + 1})
                )
        logger.info("Saved %d compensation records", len(saved))
        return saved


class SqlRoleChangeRepository(RoleChangeStore):
    def __init__(self, engine: Engine):
        self._engine = engine

    def append(self, record: RoleChangeRecord) -> RoleChangeRecord:
        stmt = text("""
            INSERT INTO role_change_history (id, member_id, old_role, new_role, changed_by, changed_at)
            VALUES (:id, :member_id, :old_role, :new_role, :changed_by, :changed_at)
        """).bindparams(bindparam("changed_at", type_=_TS))
        with self._engine.begin() as conn:
            conn.execute(stmt, {
                "id": record.id, "member_id": record.member_id,
                "old_role": record.old_role.value, "new_role": record.new_role.value,
                "changed_by": record.changed_by, "changed_at": record.changed_at,
            })
        return record

    def find_by_member(self, member_id: str) -> list[RoleChangeRecord]:
        stmt = text("""
            SELECT id, member_id, old_role, new_role, changed_by, changed_at
              FROM role_change_history WHERE member_id = :member_id ORDER BY changed_at, id
        """).columns(changed_at=_TS)
        with self._engine.connect() as conn:
            rows = conn.execute(stmt, {"member_id": member_id}).fetchall()
        return [
            RoleChangeRecord(id=r[0], member_id=r[1], old_role=Role(r[2]),
                             new_role=Role(r[3]), changed_by=r[4], changed_at=r[5])
            for r in rows
        ]


class SqlAuditRepository(AuditStore):
    def __init__(self, engine: Engine):
        self._engine = engine

    def append(self, entry: AuditEntry) -> AuditEntry:
        stmt = text("""
            INSERT INTO audit_log (id, operator_id, operation_type, detail, created_at)
            VALUES (:id, :operator_id, :operation_type, :detail, :created_at)
        """).bindparams(bindparam("created_at", type_=_TS))
        with self._engine.begin() as conn:
            conn.execute(stmt, entry.model_dump())
        return entry

    def get_all(self, operation_type: Optional[str] = None) -> list[AuditEntry]:
        where = " WHERE operation_type = :operation_type" if operation_type else ""
        stmt = text(
            f"SELECT id, operator_id, operation_type, detail, created_at FROM audit_log{where} "
            "ORDER BY created_at, id"
        ).columns(created_at=_TS)
        params = {"operation_type": operation_type} if operation_type else {}
        with self._engine.connect() as conn:
            rows = conn.execute(stmt, params).fetchall()
        return [
            AuditEntry(id=r[0], operator_id=r[1], operation_type=r[2],
                       detail=r[3], created_at=r[4])
            for r in rows
        ]
