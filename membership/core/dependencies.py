# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""
Dependency wiring — build repositories and services once per process.
SQL stores when DATABASE_URL is set, in-memory stores otherwise.
"""

import threading

from membership.core.config import settings
from membership.core.logging import get_logger
from membership.repositories.audit_repository import AuditRepository
from membership.repositories.base import (
    AuditStore,
    CompensationStore,
    MemberStore,
    PointsStore,
    RoleChangeStore,
)
from membership.repositories.compensation_repository import CompensationRepository
from membership.repositories.config_repository import ConfigRepository
from membership.repositories.member_repository import MemberRepository
from membership.repositories.points_repository import PointsRepository
from membership.repositories.role_change_repository import RoleChangeRepository
from membership.services.allocation_service import AllocationService
from membership.services.batch_service import BatchService
from membership.services.config_service import ConfigService
from membership.services.eligibility_service import EligibilityService
from membership.services.rotation_service import RotationService

logger = get_logger(__name__)

# ── Singleton repository instances ──
if settings.DATABASE_URL:
    from membership.core.database import create_db_engine, init_schema
    from membership.repositories.sql_repository import (
        SqlAuditRepository,
        SqlCompensationRepository,
        SqlMemberRepository,
        SqlPointsRepository,
        SqlRoleChangeRepository,
    )

    _engine = create_db_engine()
    init_schema(_engine)
    _member_repo: MemberStore = SqlMemberRepository(_engine)
    _points_repo: PointsStore = SqlPointsRepository(_engine)
    _compensation_repo: CompensationStore = SqlCompensationRepository(_engine)
    _role_change_repo: RoleChangeStore = SqlRoleChangeRepository(_engine)
    _audit_repo: AuditStore = SqlAuditRepository(_engine)
    logger.info("Using SQL stores")
else:
    _member_repo = MemberRepository()
    _points_repo = PointsRepository()
    _compensation_repo = CompensationRepository()
    _role_change_repo = RoleChangeRepository()
    _audit_repo = AuditRepository()
    logger.info("Using in-memory stores")

_config_repo = ConfigRepository()

# Serialises roster swaps against each other and against allocation runs.
_roster_lock = threading.RLock()

# ── Service instances (with injected dependencies) ──
_config_service = ConfigService(config_repo=_config_repo)
_eligibility_service = EligibilityService(
    member_repo=_member_repo,
    points_repo=_points_repo,
    compensation_repo=_compensation_repo,
    config_service=_config_service,
)
_rotation_service = RotationService(
    member_repo=_member_repo,
    role_change_repo=_role_change_repo,
    config_service=_config_service,
    roster_lock=_roster_lock,
)
_allocation_service = AllocationService(
    member_repo=_member_repo,
    points_repo=_points_repo,
    compensation_repo=_compensation_repo,
    config_service=_config_service,
    roster_lock=_roster_lock,
)
_batch_service = BatchService(
    compensation_repo=_compensation_repo,
    audit_repo=_audit_repo,
    config_service=_config_service,
)


# ── Accessors ──
def get_config_service() -> ConfigService:
    return _config_service


def get_eligibility_service() -> EligibilityService:
    return _eligibility_service


def get_rotation_service() -> RotationService:
    return _rotation_service


def get_allocation_service() -> AllocationService:
    return _allocation_service


def get_batch_service() -> BatchService:
    return _batch_service


def get_member_repo() -> MemberStore:
    return _member_repo


def get_points_repo() -> PointsStore:
    return _points_repo


def get_compensation_repo() -> CompensationStore:
    return _compensation_repo


def get_role_change_repo() -> RoleChangeStore:
    return _role_change_repo


def get_audit_repo() -> AuditStore:
    return _audit_repo
