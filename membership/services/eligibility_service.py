# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""
Service: Eligibility scans — who may rise, who should rotate out, who is idle.
Reads points and compensation history; the only write is the dismissal flag.
Thresholds are re-read from configuration on every scan.
"""

from datetime import datetime
from typing import Callable, Optional

from membership.core.errors import ConcurrencyConflictError
from membership.core.logging import get_logger
from membership.core.periods import month_window, period_label, utc_now
from membership.metrics.prometheus import (
    DISMISSAL_CONFLICTS,
    DISMISSALS_MARKED,
    ELIGIBILITY_CANDIDATES,
)
from membership.models.domain import FORMAL_ROLES, Member, Role
from membership.repositories.base import CompensationStore, MemberStore, PointsStore
from membership.services.config_service import ConfigService

logger = get_logger(__name__)


class EligibilityService:
    """Promotion, demotion and dismissal candidate scans."""

    def __init__(
        self,
        member_repo: MemberStore,
        points_repo: PointsStore,
        compensation_repo: CompensationStore,
        config_service: ConfigService,
        clock: Optional[Callable[[], datetime]] = None,
    ) -> None:
        self._members = member_repo
        self._points = points_repo
        self._compensation = compensation_repo
        self._config = config_service
        self._clock = clock or utc_now

    # ── Queries ──

    def monthly_points(self, member_id: str, months_back: int = 0) -> int:
        """Points earned in one calendar month; 0 = current month, 1 = last month."""
        start, end = month_window(self._clock(), months_back)
        return self._points.sum_by_member_and_period(member_id, start, end)

    def scan_promotion_candidates(self) -> list[Member]:
        threshold = self._config.rotation_thresholds().promotion_points_threshold
        candidates = [
            intern
            for intern in self._members.find_by_role(Role.INTERN)
            if self.monthly_points(intern.id) >= threshold
        ]
        ELIGIBILITY_CANDIDATES.labels(kind="promotion").set(len(candidates))
        logger.info(
            "Promotion scan for %s: %d candidate(s), threshold=%d",
            period_label(self._clock()), len(candidates), threshold,
        )
        return candidates

    def scan_demotion_candidates(self) -> list[Member]:
        thresholds = self._config.rotation_thresholds()
        months = thresholds.demotion_consecutive_months
        limit = thresholds.demotion_points_threshold

        candidates: list[Member] = []
        for member in self._members.find_by_roles(FORMAL_ROLES):
            recent = self._compensation.find_archived_by_member(member.id)[:months]
            if len(recent) < months:
                continue
            if all(record.total_points < limit for record in recent):
                candidates.append(member)

        ELIGIBILITY_CANDIDATES.labels(kind="demotion").set(len(candidates))
        logger.info(
            "Demotion scan: %d candidate(s), threshold=%d over %d archived cycle(s)",
            len(candidates), limit, months,
        )
        return candidates

    def scan_dismissal_candidates(self) -> list[Member]:
        """
        Interns below the dismissal threshold in each of the previous N calendar
        months. Newly qualifying interns are flagged and saved; interns already
        flagged are returned but not written again. An intern whose flag write
        hits a concurrent change is skipped, left for the next scan.
        """
        thresholds = self._config.rotation_thresholds()
        months = thresholds.dismissal_consecutive_months
        limit = thresholds.dismissal_points_threshold

        candidates: list[Member] = []
        conflicts = 0
        for intern in self._members.find_by_role(Role.INTERN):
            idle = all(
                self.monthly_points(intern.id, months_back) < limit
                for months_back in range(1, months + 1)
            )
            if not idle:
                continue
            if not intern.pending_dismissal:
                intern.pending_dismissal = True
                try:
                    intern = self._members.save(intern)
                except ConcurrencyConflictError as exc:
                    conflicts += 1
                    DISMISSAL_CONFLICTS.inc()
                    logger.warning(
                        "Dismissal flag skipped, intern changed concurrently: member=%s, %s",
                        intern.id, exc.message,
                        extra={"member_id": intern.id},
                    )
                    continue
                DISMISSALS_MARKED.inc()
                logger.info(
                    "Intern marked pending dismissal: member=%s", intern.id,
                    extra={"member_id": intern.id},
                )
            candidates.append(intern)

        ELIGIBILITY_CANDIDATES.labels(kind="dismissal").set(len(candidates))
        logger.info(
            "Dismissal scan: %d candidate(s), %d skipped on conflict, threshold=%d over %d month(s)",
            len(candidates), conflicts, limit, months,
        )
        return candidates

    def list_pending_dismissal(self) -> list[Member]:
        return [m for m in self._members.find_by_role(Role.INTERN) if m.pending_dismissal]

    def trigger_promotion_review(self) -> bool:
        """True iff an intern is ready to rise and a formal member is ready to rotate out."""
        promotion = self.scan_promotion_candidates()
        demotion = self.scan_demotion_candidates()
        ready = bool(promotion) and bool(demotion)
        logger.info(
            "Promotion review %s: %d intern(s) eligible, %d formal member(s) below threshold",
            "triggered" if ready else "not actionable", len(promotion), len(demotion),
        )
        return ready
