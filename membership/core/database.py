# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""SQLAlchemy engine factory and table bootstrap for the SQL stores."""
from sqlalchemy import create_engine, text
from sqlalchemy.engine import Engine
from sqlalchemy.pool import StaticPool

from membership.core.config import settings
from membership.core.logging import get_logger

logger = get_logger(__name__)

_IN_MEMORY_SQLITE = ("sqlite://", "sqlite:///:memory:")

# Portable DDL: runs unchanged on SQLite and PostgreSQL.
# Timestamps are stored in UTC.
SCHEMA_STATEMENTS = (
    """
    CREATE TABLE IF NOT EXISTS members (
        id                VARCHAR(64)  PRIMARY KEY,
        username          VARCHAR(255) NOT NULL,
        role              VARCHAR(32)  NOT NULL,
        enabled           BOOLEAN      NOT NULL,
        pending_dismissal BOOLEAN      NOT NULL,
        version           INTEGER      NOT NULL
    )
    """,
    "CREATE INDEX IF NOT EXISTS ix_members_role ON members (role)",
    """
    CREATE TABLE IF NOT EXISTS points_entries (
        id         VARCHAR(64) PRIMARY KEY,
        member_id  VARCHAR(64) NOT NULL,
        amount     INTEGER     NOT NULL,
        created_at TIMESTAMP   NOT NULL
    )
    """,
    "CREATE INDEX IF NOT EXISTS ix_points_member_created ON points_entries (member_id, created_at)",
    """
    CREATE TABLE IF NOT EXISTS compensation_records (
        id               VARCHAR(64) PRIMARY KEY,
        member_id        VARCHAR(64) NOT NULL,
        base_points      INTEGER     NOT NULL,
        bonus_points     INTEGER     NOT NULL,
        deductions       INTEGER     NOT NULL,
        total_points     INTEGER     NOT NULL,
        allocated_amount INTEGER     NOT NULL,
        remark           TEXT,
        archived         BOOLEAN     NOT NULL,
        archived_at      TIMESTAMP,
        version          INTEGER     NOT NULL
    )
    """,
    "CREATE INDEX IF NOT EXISTS ix_compensation_member ON compensation_records (member_id, archived)",
    """
    CREATE TABLE IF NOT EXISTS role_change_history (
        id         VARCHAR(64) PRIMARY KEY,
        member_id  VARCHAR(64) NOT NULL,
        old_role   VARCHAR(32) NOT NULL,
        new_role   VARCHAR(32) NOT NULL,
        changed_by VARCHAR(255) NOT NULL,
        changed_at TIMESTAMP   NOT NULL
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS audit_log (
        id             VARCHAR(64)  PRIMARY KEY,
        operator_id    VARCHAR(64)  NOT NULL,
        operation_type VARCHAR(64)  NOT NULL,
        detail         TEXT         NOT NULL,
        created_at     TIMESTAMP    NOT NULL
    )
    """,
)


def create_db_engine(url: str | None = None) -> Engine:
    """Build an engine for `url` (defaults to DATABASE_URL)."""
    url = url or settings.DATABASE_URL
    if url in _IN_MEMORY_SQLITE:
        # One shared connection, otherwise every checkout sees an empty database.
        return create_engine(
            url, connect_args={"check_same_thread": False}, poolclass=StaticPool
        )
    if url.startswith("sqlite"):
        return create_engine(url, connect_args={"check_same_thread": False})
    return create_engine(
        url,
        pool_pre_ping=True,
        pool_size=settings.POOL_SIZE,
        max_overflow=settings.MAX_OVERFLOW,
        pool_recycle=settings.POOL_RECYCLE,
    )


def init_schema(engine: Engine) -> None:
    """Create the tables and indexes if they are missing."""
    with engine.begin() as conn:
        for statement in SCHEMA_STATEMENTS:
            conn.execute(text(statement))
    logger.info("Database schema ready (%d statements)", len(SCHEMA_STATEMENTS))
