# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""
Prometheus metrics — single source of truth for all metric objects.
Updated by the service layer only.
"""

from prometheus_client import Counter, Gauge, Histogram

# ── Rotation ──
PROMOTIONS_EXECUTED = Counter(
    "membership_promotions_executed_total",
    "Intern/formal member swaps committed",
)
ROSTER_INVARIANT_VIOLATIONS = Counter(
    "membership_roster_invariant_violations_total",
    "Swaps rejected because the formal roster size was wrong afterwards",
)
ROTATION_CONFLICTS = Counter(
    "membership_rotation_conflicts_total",
    "Swaps rejected by a concurrent write on one of the members",
)

# ── Eligibility ──
ELIGIBILITY_CANDIDATES = Gauge(
    "membership_eligibility_candidates",
    "Candidates found by the most recent scan",
    ["kind"],
)
DISMISSALS_MARKED = Counter(
    "membership_dismissals_marked_total",
    "Interns newly flagged as pending dismissal",
)
DISMISSAL_CONFLICTS = Counter(
    "membership_dismissal_conflicts_total",
    "Dismissal flags skipped because the intern was modified concurrently",
)

# ── Allocation ──
ALLOCATION_RUNS = Counter(
    "membership_allocation_runs_total",
    "Completed allocation calculations",
)
ALLOCATION_DURATION = Histogram(
    "membership_allocation_duration_seconds",
    "Time spent computing one allocation proposal",
)
BATCH_SAVES = Counter(
    "membership_batch_saves_total",
    "Compensation batch save attempts by outcome",
    ["result"],
)
RECORDS_ARCHIVED = Counter(
    "membership_records_archived_total",
    "Compensation records moved to history",
)
RECORDS_UPDATED = Counter(
    "membership_records_updated_total",
    "Single open compensation records edited in place",
)

# ── Configuration ──
CONFIG_UPDATES = Counter(
    "membership_config_updates_total",
    "Accepted configuration writes",
)
