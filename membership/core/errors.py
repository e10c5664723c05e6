# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""
Typed errors raised by the engine.
Each carries the status code a transport layer should answer with, and
subclasses the builtin a caller would naturally catch (LookupError for a
missing entity, ValueError for a rejected precondition).
"""


class MembershipError(Exception):
    """Base class for every error raised by the membership engine."""

    status_code: int = 400

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message

    def to_dict(self) -> dict[str, object]:
        return {
            "error": type(self).__name__,
            "status_code": self.status_code,
            "detail": self.message,
        }


class NotFoundError(MembershipError, LookupError):
    """A referenced member or record does not exist."""

    status_code = 404


class InvalidStateError(MembershipError, ValueError):
    """A precondition was violated: wrong role, wrong count, out-of-band value."""

    status_code = 400


class InvariantViolationError(MembershipError, RuntimeError):
    """A post-condition failed after a mutation (roster size wrong after a swap)."""

    status_code = 400


class ConcurrencyConflictError(MembershipError, RuntimeError):
    """A versioned write lost a race against another writer."""

    status_code = 409
