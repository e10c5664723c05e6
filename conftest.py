# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""Shared fixtures: in-memory stores, a fixed clock and a seeded roster."""

import threading
from datetime import datetime, timezone

import pytest

from membership.models.domain import CompensationRecord, Member, PointsEntry, Role
from membership.repositories.audit_repository import AuditRepository
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

NOW = datetime(2026, 3, 15, 12, 0, tzinfo=timezone.utc)

FORMAL_IDS = ["m1", "m2", "m3", "m4", "v1"]
INTERN_IDS = ["i1", "i2"]


# ============================================
# Stores
# ============================================
@pytest.fixture
def member_repo():
    return MemberRepository()


@pytest.fixture
def points_repo():
    return PointsRepository()


@pytest.fixture
def compensation_repo():
    return CompensationRepository()


@pytest.fixture
def role_change_repo():
    return RoleChangeRepository()


@pytest.fixture
def audit_repo():
    return AuditRepository()


@pytest.fixture
def config_repo():
    return ConfigRepository()


# ============================================
# Seed data
# ============================================
@pytest.fixture
def roster(member_repo):
    """One vice leader, four members, two interns and the leader."""
    member_repo.save(Member(id="v1", username="vice", role=Role.VICE_LEADER))
    for i in range(1, 5):
        member_repo.save(Member(id=f"m{i}", username=f"member{i}", role=Role.MEMBER))
    for member_id in INTERN_IDS:
        member_repo.save(Member(id=member_id, username=member_id, role=Role.INTERN))
    member_repo.save(Member(id="lead", username="leader", role=Role.LEADER))
    return member_repo


@pytest.fixture
def now():
    return NOW


@pytest.fixture
def add_points(points_repo):
    def _add(member_id: str, amount: int, when: datetime = NOW) -> PointsEntry:
        return points_repo.append(PointsEntry(member_id=member_id, amount=amount, created_at=when))

    return _add


@pytest.fixture
def add_archived(compensation_repo):
    def _add(member_id: str, total_points: int, archived_at: datetime) -> CompensationRecord:
        record = CompensationRecord(
            member_id=member_id,
            total_points=total_points,
            allocated_amount=400,
            archived=True,
            archived_at=archived_at,
        )
        return compensation_repo.save_all([record])[0]

    return _add


# ============================================
# Services
# ============================================
@pytest.fixture
def config_service(config_repo):
    return ConfigService(config_repo)


@pytest.fixture
def roster_lock():
    return threading.RLock()


@pytest.fixture
def eligibility_service(member_repo, points_repo, compensation_repo, config_service):
    return EligibilityService(
        member_repo=member_repo,
        points_repo=points_repo,
        compensation_repo=compensation_repo,
        config_service=config_service,
        clock=lambda: NOW,
    )


@pytest.fixture
def rotation_service(member_repo, role_change_repo, config_service, roster_lock):
    return RotationService(
        member_repo=member_repo,
        role_change_repo=role_change_repo,
        config_service=config_service,
        roster_lock=roster_lock,
    )


@pytest.fixture
def allocation_service(member_repo, points_repo, compensation_repo, config_service, roster_lock):
    return AllocationService(
        member_repo=member_repo,
        points_repo=points_repo,
        compensation_repo=compensation_repo,
        config_service=config_service,
        roster_lock=roster_lock,
    )


@pytest.fixture
def batch_service(compensation_repo, audit_repo, config_service):
    return BatchService(
        compensation_repo=compensation_repo,
        audit_repo=audit_repo,
        config_service=config_service,
    )
