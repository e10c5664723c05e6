# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""
Service: Compensation allocation for the formal roster.
Reads the ledger, delegates the arithmetic to services.allocation, and returns
an unsaved proposal. Persisting it is BatchService's job.
"""

import threading
import time
from typing import Optional

from membership.core.errors import InvalidStateError
from membership.core.logging import get_logger
from membership.metrics.prometheus import ALLOCATION_DURATION, ALLOCATION_RUNS
from membership.models.domain import FORMAL_ROLES, CompensationRecord, DimensionInput
from membership.repositories.base import CompensationStore, MemberStore, PointsStore
from membership.schemas.compensation import ScoreBreakdown
from membership.services.allocation import (
    adjust_to_pool,
    convert_points,
    performance_adjust,
    score_dimensions,
)
from membership.services.config_service import ConfigService

logger = get_logger(__name__)


class AllocationService:
    """Builds one compensation proposal per formal member."""

    def __init__(
        self,
        member_repo: MemberStore,
        points_repo: PointsStore,
        compensation_repo: CompensationStore,
        config_service: ConfigService,
        roster_lock: Optional[threading.RLock] = None,
    ) -> None:
        self._members = member_repo
        self._points = points_repo
        self._compensation = compensation_repo
        self._config = config_service
        self._roster_lock = roster_lock or threading.RLock()

    def calculate_allocations(self) -> list[CompensationRecord]:
        """
        Proposal for the current cycle, one record per formal member ordered by id.
        Raises InvalidStateError when the roster is not exactly the configured size.
        """
        started = time.perf_counter()
        # Holding the roster lock keeps a swap from changing the headcount mid-run.
        with self._roster_lock:
            expected = self._config.formal_roster_size()
            formal = sorted(self._members.find_by_roles(FORMAL_ROLES), key=lambda m: m.id)
            if len(formal) != expected:
                raise InvalidStateError(
                    f"Formal member count mismatch: expected {expected}, found {len(formal)}"
                )

            pool = self._config.pool_total()
            min_share, max_share = self._config.share_band()
            ratio = self._config.points_ratio()

            points = [self._points.sum_by_member(m.id) for m in formal]
            raw = [convert_points(p, ratio) for p in points]
            shares = performance_adjust(adjust_to_pool(raw, pool), min_share, max_share)

            open_records = {r.member_id: r for r in self._compensation.find_unarchived()}

        proposal: list[CompensationRecord] = []
        for member, total, share in zip(formal, points, shares):
            existing = open_records.get(member.id)
            proposal.append(
                CompensationRecord(
                    id=existing.id if existing else None,
                    version=existing.version if existing else 0,
                    member_id=member.id,
                    base_points=total,
                    total_points=total,
                    allocated_amount=share,
                    remark=f"{total} points x {ratio}, pool {pool}",
                )
            )

        ALLOCATION_RUNS.inc()
        ALLOCATION_DURATION.observe(time.perf_counter() - started)
        logger.info(
            "Allocation calculated: members=%d, pool=%d, band=[%d, %d]",
            len(proposal), pool, min_share, max_share,
        )
        return proposal

    def score_member(self, dimensions: DimensionInput) -> ScoreBreakdown:
        """Score one member's activity with the current tier table and points ratio."""
        return score_dimensions(
            dimensions, self._config.checkin_tiers(), self._config.points_ratio()
        )
