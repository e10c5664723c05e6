# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""
Service: Roster rotation — swaps one intern into the formal roster and one
formal member out, as a single unit.

The swap runs under the process-wide roster lock and inside a member store
transaction. The formal headcount is re-read from the store before commit;
a wrong count aborts the transaction, so neither role change survives.
"""

import threading
from typing import Any, Optional

from membership.core.config import settings
from membership.core.errors import (
    ConcurrencyConflictError,
    InvalidStateError,
    InvariantViolationError,
    NotFoundError,
)
from membership.core.logging import get_logger
from membership.metrics.prometheus import (
    PROMOTIONS_EXECUTED,
    ROSTER_INVARIANT_VIOLATIONS,
    ROTATION_CONFLICTS,
)
from membership.models.domain import FORMAL_ROLES, Member, Role, RoleChangeRecord
from membership.repositories.base import MemberStore, RoleChangeStore
from membership.services.config_service import ConfigService
from membership.services.roster import is_roster_complete

logger = get_logger(__name__)


class RotationService:
    """The only component allowed to swap roles between interns and formal members."""

    def __init__(
        self,
        member_repo: MemberStore,
        role_change_repo: RoleChangeStore,
        config_service: ConfigService,
        roster_lock: Optional[threading.RLock] = None,
    ) -> None:
        self._members = member_repo
        self._role_changes = role_change_repo
        self._config = config_service
        self._roster_lock = roster_lock or threading.RLock()

    def execute_promotion(
        self,
        intern_id: str,
        formal_member_id: str,
        changed_by: Optional[str] = None,
    ) -> dict[str, Any]:
        """
        Promote `intern_id` to MEMBER and move `formal_member_id` down to INTERN.

        Raises NotFoundError, InvalidStateError (wrong roles),
        InvariantViolationError (headcount wrong after the swap; nothing is kept)
        or ConcurrencyConflictError (a member changed since it was read).
        """
        actor = changed_by or settings.ROLE_CHANGE_ACTOR

        with self._roster_lock:
            intern = self._load(intern_id)
            formal = self._load(formal_member_id)

            if intern.role != Role.INTERN:
                raise InvalidStateError(
                    f"Member '{intern_id}' is {intern.role.value}, not an intern"
                )
            if formal.role not in FORMAL_ROLES:
                raise InvalidStateError(
                    f"Member '{formal_member_id}' is {formal.role.value}, not a formal member"
                )

            formal_old_role = formal.role
            expected = self._config.formal_roster_size()
            try:
                with self._members.transaction():
                    self._members.save(intern.model_copy(update={"role": Role.MEMBER}))
                    self._members.save(formal.model_copy(update={"role": Role.INTERN}))
                    self._check_roster(expected)
            except ConcurrencyConflictError:
                ROTATION_CONFLICTS.inc()
                logger.warning(
                    "Promotion aborted by concurrent write: intern=%s, formal=%s",
                    intern_id, formal_member_id,
                )
                raise

            self._role_changes.append(
                RoleChangeRecord(
                    member_id=intern_id,
                    old_role=Role.INTERN,
                    new_role=Role.MEMBER,
                    changed_by=actor,
                )
            )
            self._role_changes.append(
                RoleChangeRecord(
                    member_id=formal_member_id,
                    old_role=formal_old_role,
                    new_role=Role.INTERN,
                    changed_by=actor,
                )
            )

        PROMOTIONS_EXECUTED.inc()
        logger.info(
            "Promotion executed: %s intern -> member, %s %s -> intern (by %s)",
            intern_id, formal_member_id, formal_old_role.value, actor,
        )
        return {
            "promoted": intern_id,
            "demoted": formal_member_id,
            "vacated_role": formal_old_role.value,
            "changed_by": actor,
        }

    # ── Internal ──

    def _load(self, member_id: str) -> Member:
        member = self._members.find_by_id(member_id)
        if member is None:
            raise NotFoundError(f"Member '{member_id}' not found")
        return member

    def _check_roster(self, expected: int) -> None:
        vice_leaders = self._members.count_by_role(Role.VICE_LEADER)
        members = self._members.count_by_role(Role.MEMBER)
        if not is_roster_complete(vice_leaders, members, expected):
            ROSTER_INVARIANT_VIOLATIONS.inc()
            logger.warning(
                "Roster invariant violated: expected %d formal members, found %d",
                expected, vice_leaders + members,
            )
            raise InvariantViolationError(
                f"Formal roster must hold exactly {expected} members, "
                f"found {vice_leaders + members} after the swap"
            )
