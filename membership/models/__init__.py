from membership.models.domain import (
    FORMAL_ROLES,
    AuditEntry,
    CheckinTier,
    CompensationRecord,
    DimensionInput,
    Member,
    PointsEntry,
    Role,
    RoleChangeRecord,
    RotationThresholds,
)

__all__ = [
    "FORMAL_ROLES",
    "AuditEntry",
    "CheckinTier",
    "CompensationRecord",
    "DimensionInput",
    "Member",
    "PointsEntry",
    "Role",
    "RoleChangeRecord",
    "RotationThresholds",
]
