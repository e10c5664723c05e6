from membership.core.errors import (
    ConcurrencyConflictError,
    InvalidStateError,
    InvariantViolationError,
    MembershipError,
    NotFoundError,
)

__all__ = [
    "ConcurrencyConflictError",
    "InvalidStateError",
    "InvariantViolationError",
    "MembershipError",
    "NotFoundError",
]
