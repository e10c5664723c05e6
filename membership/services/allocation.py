# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""
Service: Pool allocation logic — pure computation, no side effects.

Two stages turn raw (points x ratio) values into final shares:
  adjust_to_pool      scale so the shares sum to the pool exactly
  performance_adjust  clamp every share into [min_share, max_share]
                      and hand the clamped amounts back out, keeping the sum
Both work on plain integer lists and never change the total they were given.

score_dimensions turns one member's activity counts into points.
"""

from typing import Optional, Sequence

from membership.core.errors import InvalidStateError
from membership.models.domain import CheckinTier, DimensionInput
from membership.schemas.compensation import ScoreBreakdown


def convert_points(points: int, ratio: int) -> int:
    """Raw currency value of a member's points."""
    return points * ratio


def adjust_to_pool(raw_values: Sequence[int], pool: int) -> list[int]:
    """
    Scale `raw_values` so they sum to `pool` exactly.
    Non-positive raw total: split the pool evenly, remainder one unit each
    to the lowest indexes. Otherwise floor(raw * pool / total) per member,
    then the rounding shortfall goes one unit each to the largest
    fractional parts, ties to the lowest index.
    """
    count = len(raw_values)
    if count == 0:
        return []

    raw_total = sum(raw_values)
    if raw_total <= 0:
        share, remainder = divmod(pool, count)
        return [share + (1 if i < remainder else 0) for i in range(count)]

    scaled: list[int] = []
    fractions: list[tuple[int, int]] = []
    for i, value in enumerate(raw_values):
        quotient, leftover = divmod(value * pool, raw_total)
        scaled.append(quotient)
        fractions.append((leftover, i))

    shortfall = pool - sum(scaled)
    for _, i in sorted(fractions, key=lambda f: (-f[0], f[1]))[:shortfall]:
        scaled[i] += 1
    return scaled


def _raise_towards(shares: list[int], amount: int, ceiling: int) -> int:
    """Give `amount` to shares below `ceiling`, lowest first. Returns what did not fit."""
    while amount > 0:
        receivers = sorted(
            (i for i, s in enumerate(shares) if s < ceiling),
            key=lambda i: (shares[i], i),
        )
        if not receivers:
            break
        portion, remainder = divmod(amount, len(receivers))
        for rank, i in enumerate(receivers):
            grant = min(portion + (1 if rank < remainder else 0), ceiling - shares[i])
            shares[i] += grant
            amount -= grant
    return amount


def _lower_towards(shares: list[int], amount: int, floor: int) -> int:
    """Take `amount` from shares above `floor`, highest first. Returns what was left untaken."""
    while amount > 0:
        donors = sorted(
            (i for i, s in enumerate(shares) if s > floor),
            key=lambda i: (-shares[i], i),
        )
        if not donors:
            break
        portion, remainder = divmod(amount, len(donors))
        for rank, i in enumerate(donors):
            take = min(portion + (1 if rank < remainder else 0), shares[i] - floor)
            shares[i] -= take
            amount -= take
    return amount


def _spread(shares: list[int], amount: int) -> None:
    """Spread a (possibly negative) residual evenly, remainder to the lowest indexes."""
    portion, remainder = divmod(amount, len(shares))
    for i in range(len(shares)):
        shares[i] += portion + (1 if i < remainder else 0)


def performance_adjust(values: Sequence[int], min_share: int, max_share: int) -> list[int]:
    """
    Clamp every share into [min_share, max_share] while preserving the sum.

    Each pass clamps overshoots down (collecting surplus) and undershoots up
    (collecting deficit), then settles the net difference against members
    that still have room inside the band. Runs at most len(values) passes.
    When the band cannot hold the total (len * max < sum or len * min > sum)
    the residual is spread evenly and the band is given up; the sum is not.
    """
    shares = list(values)
    count = len(shares)
    if count == 0:
        return shares

    for _ in range(count):
        surplus = 0
        deficit = 0
        for i, share in enumerate(shares):
            if share > max_share:
                surplus += share - max_share
                shares[i] = max_share
            elif share < min_share:
                deficit += min_share - share
                shares[i] = min_share
        if surplus == deficit == 0:
            break

        balance = surplus - deficit
        if balance > 0:
            residual = _raise_towards(shares, balance, max_share)
        else:
            residual = -_lower_towards(shares, -balance, min_share)

        if residual:
            _spread(shares, residual)
            break
    return shares


# ── Activity scoring ──

VIOLATION_HANDLING_WEIGHT = 3
ANNOUNCEMENT_WEIGHT = 5

# Inclusive (low, high) per dimension; None means unbounded above.
DIMENSION_LIMITS: dict[str, tuple[int, Optional[int]]] = {
    "community_activity_points": (0, 100),
    "checkin_count": (0, None),
    "violation_handling_count": (0, None),
    "task_completion_points": (0, 100),
    "announcement_count": (0, None),
    "event_hosting_points": (0, 250),
    "birthday_bonus_points": (0, 25),
    "monthly_excellent_points": (0, 30),
}


def validate_dimensions(dimensions: DimensionInput) -> None:
    """Raise InvalidStateError naming the first dimension outside its range."""
    for name, (low, high) in DIMENSION_LIMITS.items():
        value = getattr(dimensions, name)
        if value < low or (high is not None and value > high):
            bound = f"[{low}, {high}]" if high is not None else f">= {low}"
            raise InvalidStateError(f"{name} must be {bound}, got {value}")


def lookup_checkin_tier(count: int, tiers: Sequence[CheckinTier]) -> Optional[CheckinTier]:
    """First tier whose inclusive range holds `count`; negative counts read as 0."""
    count = max(count, 0)
    for tier in tiers:
        if tier.min_count <= count <= tier.max_count:
            return tier
    return None


def score_dimensions(
    dimensions: DimensionInput, tiers: Sequence[CheckinTier], ratio: int
) -> ScoreBreakdown:
    """
    Base points are community activity, the check-in tier, violations handled
    x3, task completion and announcements x5. Bonus points are event hosting,
    birthday bonus and monthly excellence. A count outside every tier scores 0.
    """
    validate_dimensions(dimensions)
    tier = lookup_checkin_tier(dimensions.checkin_count, tiers)
    checkin_points = tier.points if tier else 0
    violation_points = dimensions.violation_handling_count * VIOLATION_HANDLING_WEIGHT
    announcement_points = dimensions.announcement_count * ANNOUNCEMENT_WEIGHT

    base = (
        dimensions.community_activity_points
        + checkin_points
        + violation_points
        + dimensions.task_completion_points
        + announcement_points
    )
    bonus = (
        dimensions.event_hosting_points
        + dimensions.birthday_bonus_points
        + dimensions.monthly_excellent_points
    )
    total = base + bonus
    return ScoreBreakdown(
        checkin_points=checkin_points,
        checkin_level=tier.label if tier else None,
        violation_handling_points=violation_points,
        announcement_points=announcement_points,
        base_points=base,
        bonus_points=bonus,
        total_points=total,
        raw_amount=convert_points(total, ratio),
    )
