# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""
Result schemas — structured outcomes returned to callers of the batch API.
Pydantic models so any transport can serialise them with model_dump().
"""

from typing import Optional

from pydantic import BaseModel, Field

from membership.models.domain import CompensationRecord


class FieldError(BaseModel):
    """A single per-record validation failure."""

    member_id: str
    field: str
    message: str


class BatchSaveResult(BaseModel):
    """Outcome of batch_save_with_validation.

    `errors` holds every per-record violation; `global_error` holds the
    batch-wide problems (headcount, archived records, pool ceiling, write
    conflict), joined with "; " when there is more than one.
    """

    success: bool
    saved_records: list[CompensationRecord] = Field(default_factory=list)
    errors: list[FieldError] = Field(default_factory=list)
    global_error: Optional[str] = None
    violating_member_ids: list[str] = Field(default_factory=list)

    @property
    def errors_by_member(self) -> dict[str, list[FieldError]]:
        grouped: dict[str, list[FieldError]] = {}
        for error in self.errors:
            grouped.setdefault(error.member_id, []).append(error)
        return grouped


class PoolSummary(BaseModel):
    """How much of the pool the open cycle has allocated."""

    pool_total: int
    allocated_total: int
    remaining: int
    record_count: int


class ScoreBreakdown(BaseModel):
    """Points earned from one member's activity dimensions."""

    checkin_points: int
    checkin_level: Optional[str] = None
    violation_handling_points: int
    announcement_points: int
    base_points: int
    bonus_points: int
    total_points: int
    raw_amount: int = Field(0, description="total_points x points ratio")
