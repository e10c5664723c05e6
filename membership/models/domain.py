# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""
Domain models — pure data structures, NO storage or transport dependency.
"""

import uuid
from datetime import datetime, timezone
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


def _new_id() -> str:
    return str(uuid.uuid4())


def _now() -> datetime:
    return datetime.now(timezone.utc)


class Role(str, Enum):
    """Membership roles, lowest to highest."""

    APPLICANT = "applicant"
    INTERN = "intern"
    VICE_LEADER = "vice_leader"
    MEMBER = "member"
    LEADER = "leader"


# The formal roster: its combined headcount is fixed by configuration.
FORMAL_ROLES: tuple[Role, ...] = (Role.VICE_LEADER, Role.MEMBER)


class Member(BaseModel):
    """A person in the organization and their current role."""

    id: str = Field(..., min_length=1, max_length=64)
    username: str = Field(default="", max_length=255)
    role: Role
    enabled: bool = True
    pending_dismissal: bool = False
    version: int = Field(default=0, ge=0, description="Optimistic-lock token")

    @property
    def is_formal(self) -> bool:
        return self.role in FORMAL_ROLES


class PointsEntry(BaseModel):
    """One signed delta in the points ledger."""

    id: str = Field(default_factory=_new_id)
    member_id: str = Field(..., min_length=1)
    amount: int
    created_at: datetime = Field(default_factory=_now)


class RoleChangeRecord(BaseModel):
    """Immutable log entry written once per role mutation."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(default_factory=_new_id)
    member_id: str
    old_role: Role
    new_role: Role
    changed_by: str
    changed_at: datetime = Field(default_factory=_now)


class CompensationRecord(BaseModel):
    """One member's allocation for one cycle. Archived records are frozen history."""

    id: Optional[str] = None
    member_id: str = Field(..., min_length=1)
    base_points: int = 0
    bonus_points: int = 0
    deductions: int = 0
    total_points: int = 0
    allocated_amount: int = 0
    remark: Optional[str] = None
    archived: bool = False
    archived_at: Optional[datetime] = None
    version: int = Field(default=0, ge=0, description="Optimistic-lock token")


class AuditEntry(BaseModel):
    """Append-only operator audit trail."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(default_factory=_new_id)
    operator_id: str
    operation_type: str
    detail: str = ""
    created_at: datetime = Field(default_factory=_now)


class RotationThresholds(BaseModel):
    """Eligibility thresholds, read fresh from configuration on every scan."""

    promotion_points_threshold: int
    demotion_points_threshold: int
    demotion_consecutive_months: int
    dismissal_points_threshold: int
    dismissal_consecutive_months: int


class CheckinTier(BaseModel):
    """One band of the check-in reward table; bounds are inclusive."""

    min_count: int
    max_count: int
    points: int
    label: str


class DimensionInput(BaseModel):
    """A member's activity for one cycle, before it is turned into points."""

    community_activity_points: int = 0
    checkin_count: int = 0
    violation_handling_count: int = 0
    task_completion_points: int = 0
    announcement_count: int = 0
    event_hosting_points: int = 0
    birthday_bonus_points: int = 0
    monthly_excellent_points: int = 0
