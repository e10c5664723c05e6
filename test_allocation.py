# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""Tests for pool scaling, band clamping, activity scoring and the allocation service."""

from datetime import datetime, timezone

import pytest
from hypothesis import given, settings as hypothesis_settings, strategies as st

from membership.core.errors import InvalidStateError
from membership.models.domain import CheckinTier, DimensionInput, Member, Role
from membership.services.allocation import (
    adjust_to_pool,
    convert_points,
    lookup_checkin_tier,
    performance_adjust,
    score_dimensions,
)


# ============================================
# Pool scaling
# ============================================
class TestAdjustToPool:
    def test_zero_points_split_evenly(self):
        assert adjust_to_pool([0, 0, 0, 0, 0], 2000) == [400, 400, 400, 400, 400]

    def test_zero_points_remainder_goes_to_lowest_indexes(self):
        assert adjust_to_pool([0, 0, 0, 0, 0], 2003) == [401, 401, 401, 400, 400]

    def test_negative_total_is_split_evenly(self):
        assert adjust_to_pool([-10, 0, 5], 300) == [100, 100, 100]

    def test_proportional_when_exact(self):
        assert adjust_to_pool([1, 1, 2], 400) == [100, 100, 200]

    def test_rounding_ties_go_to_lowest_index(self):
        assert adjust_to_pool([1, 1, 1], 100) == [34, 33, 33]

    def test_largest_fraction_wins_the_remainder(self):
        # 2000 * [1, 2] / 3 = [666.67, 1333.33]
        assert adjust_to_pool([1, 2], 2000) == [667, 1333]

    def test_empty_roster(self):
        assert adjust_to_pool([], 2000) == []

    def test_convert_points(self):
        assert convert_points(125, 2) == 250
        assert convert_points(-5, 2) == -10


# ============================================
# Band clamping
# ============================================
class TestPerformanceAdjust:
    def test_single_overshoot_is_redistributed(self):
        assert performance_adjust([900, 275, 275, 275, 275], 200, 400) == [400] * 5

    def test_uneven_receivers_fill_up_to_max(self):
        assert performance_adjust([900, 300, 300, 300, 200], 200, 400) == [400] * 5

    def test_deficit_is_covered_by_surplus(self):
        result = performance_adjust([100, 500, 450, 350, 300], 200, 400)
        assert sum(result) == 1700
        assert all(200 <= v <= 400 for v in result)
        assert result[0] >= 200

    def test_deficit_without_surplus_is_taken_from_shares_above_min(self):
        result = performance_adjust([100, 400, 300, 300, 300], 200, 400)
        assert result == [200, 375, 275, 275, 275]

    def test_values_inside_band_are_untouched(self):
        values = [250, 300, 350, 399, 201]
        assert performance_adjust(values, 200, 400) == values

    def test_infeasible_band_keeps_the_total(self):
        result = performance_adjust([1000, 600, 600, 400, 400], 200, 400)
        assert sum(result) == 3000
        assert result == [600, 600, 600, 600, 600]

    def test_input_is_not_mutated(self):
        values = [900, 275, 275, 275, 275]
        performance_adjust(values, 200, 400)
        assert values == [900, 275, 275, 275, 275]


@st.composite
def _feasible_allocation(draw):
    size = draw(st.integers(min_value=1, max_value=8))
    min_share = draw(st.integers(min_value=0, max_value=500))
    max_share = draw(st.integers(min_value=min_share, max_value=1000))
    pool = draw(st.integers(min_value=size * min_share, max_value=size * max_share))
    raw = draw(st.lists(st.integers(min_value=-500, max_value=10_000), min_size=size, max_size=size))
    return raw, pool, min_share, max_share


class TestAllocationProperties:
    @hypothesis_settings(max_examples=300)
    @given(st.lists(st.integers(min_value=-1000, max_value=100_000), min_size=1, max_size=10),
           st.integers(min_value=0, max_value=1_000_000))
    def test_scaling_conserves_the_pool(self, raw, pool):
        assert sum(adjust_to_pool(raw, pool)) == pool

    @hypothesis_settings(max_examples=300)
    @given(_feasible_allocation())
    def test_feasible_band_is_respected_and_pool_conserved(self, case):
        raw, pool, min_share, max_share = case
        shares = performance_adjust(adjust_to_pool(raw, pool), min_share, max_share)
        assert sum(shares) == pool
        assert all(min_share <= s <= max_share for s in shares)

    @hypothesis_settings(max_examples=200)
    @given(st.lists(st.integers(min_value=-5000, max_value=5000), min_size=1, max_size=8),
           st.integers(min_value=0, max_value=400),
           st.integers(min_value=0, max_value=400))
    def test_conservation_holds_even_when_band_is_infeasible(self, values, low, width):
        assert sum(performance_adjust(values, low, low + width)) == sum(values)


# ============================================
# Allocation service
# ============================================
class TestCalculateAllocations:
    def test_all_zero_points_gives_even_split(self, roster, allocation_service):
        proposal = allocation_service.calculate_allocations()
        assert [r.allocated_amount for r in proposal] == [400, 400, 400, 400, 400]
        assert [r.member_id for r in proposal] == ["m1", "m2", "m3", "m4", "v1"]

    def test_top_earner_is_clamped_and_surplus_shared(self, roster, allocation_service, add_points):
        add_points("m1", 450)
        for member_id, points in (("m2", 137), ("m3", 137), ("m4", 137), ("v1", 139)):
            add_points(member_id, points)

        proposal = allocation_service.calculate_allocations()
        assert sum(r.allocated_amount for r in proposal) == 2000
        assert all(r.allocated_amount == 400 for r in proposal)

    def test_uses_all_time_points(self, roster, allocation_service, add_points):
        add_points("m1", 30, datetime(2024, 6, 1, tzinfo=timezone.utc))
        add_points("m1", 20)
        by_member = {r.member_id: r for r in allocation_service.calculate_allocations()}
        assert by_member["m1"].total_points == 50
        assert by_member["m1"].base_points == 50

    def test_pool_is_conserved_with_skewed_points(self, roster, allocation_service, add_points):
        for member_id, points in (("m1", 1000), ("m2", 10), ("m3", 0), ("m4", 5), ("v1", 300)):
            add_points(member_id, points)
        shares = [r.allocated_amount for r in allocation_service.calculate_allocations()]
        assert sum(shares) == 2000
        assert all(200 <= s <= 400 for s in shares)

    def test_interns_and_leader_are_excluded(self, roster, allocation_service, add_points):
        add_points("i1", 10_000)
        add_points("lead", 10_000)
        ids = {r.member_id for r in allocation_service.calculate_allocations()}
        assert ids == {"m1", "m2", "m3", "m4", "v1"}

    def test_roster_size_mismatch_fails_before_computing(
        self, roster, allocation_service, member_repo
    ):
        member = member_repo.find_by_id("m4")
        member_repo.save(member.model_copy(update={"role": Role.INTERN}))
        with pytest.raises(InvalidStateError, match="expected 5, found 4"):
            allocation_service.calculate_allocations()

    def test_oversized_roster_fails(self, roster, allocation_service, member_repo):
        member_repo.save(Member(id="m5", role=Role.MEMBER))
        with pytest.raises(InvalidStateError):
            allocation_service.calculate_allocations()

    def test_reads_config_on_every_run(self, roster, allocation_service, config_service):
        config_service.save_config({"pool_total": 2500, "share_max": 600})
        shares = [r.allocated_amount for r in allocation_service.calculate_allocations()]
        assert shares == [500] * 5

    def test_reuses_open_record_of_the_cycle(
        self, roster, allocation_service, batch_service, compensation_repo
    ):
        first = batch_service.batch_save_with_validation(
            allocation_service.calculate_allocations(), operator_id="op-1"
        )
        assert first.success

        second = allocation_service.calculate_allocations()
        saved_ids = {r.member_id: (r.id, r.version) for r in first.saved_records}
        assert {r.member_id: (r.id, r.version) for r in second} == saved_ids

        assert batch_service.batch_save_with_validation(second, operator_id="op-1").success
        assert len(compensation_repo.find_unarchived()) == 5

    def test_proposal_is_not_persisted(self, roster, allocation_service, compensation_repo):
        allocation_service.calculate_allocations()
        assert compensation_repo.count() == 0


# ============================================
# Activity scoring
# ============================================
class TestScoreDimensions:
    def test_full_breakdown(self, config_service):
        dimensions = DimensionInput(
            community_activity_points=50,
            checkin_count=45,
            violation_handling_count=4,
            task_completion_points=60,
            announcement_count=2,
            event_hosting_points=100,
            birthday_bonus_points=25,
            monthly_excellent_points=30,
        )
        score = score_dimensions(dimensions, config_service.checkin_tiers(), ratio=2)
        assert score.checkin_points == 30
        assert score.checkin_level == "good"
        assert score.violation_handling_points == 12
        assert score.announcement_points == 10
        assert score.base_points == 162
        assert score.bonus_points == 155
        assert score.total_points == 317
        assert score.raw_amount == 634

    @pytest.mark.parametrize(
        "count, points",
        [(0, -20), (19, -20), (20, -10), (39, 0), (40, 30), (50, 50), (999, 50)],
    )
    def test_checkin_tier_bounds_are_inclusive(self, config_service, count, points):
        score = score_dimensions(
            DimensionInput(checkin_count=count), config_service.checkin_tiers(), ratio=1
        )
        assert score.checkin_points == points

    def test_count_outside_every_tier_scores_zero(self, config_service):
        score = score_dimensions(
            DimensionInput(checkin_count=1000), config_service.checkin_tiers(), ratio=1
        )
        assert score.checkin_points == 0
        assert score.checkin_level is None

    def test_negative_count_reads_as_zero_in_lookup(self, config_service):
        assert lookup_checkin_tier(-5, config_service.checkin_tiers()).points == -20

    @pytest.mark.parametrize(
        "field, value",
        [
            ("community_activity_points", 101),
            ("task_completion_points", -1),
            ("checkin_count", -1),
            ("violation_handling_count", -1),
            ("announcement_count", -3),
            ("event_hosting_points", 251),
            ("birthday_bonus_points", 26),
            ("monthly_excellent_points", 31),
        ],
    )
    def test_out_of_range_dimension(self, config_service, field, value):
        with pytest.raises(InvalidStateError, match=field):
            score_dimensions(
                DimensionInput(**{field: value}), config_service.checkin_tiers(), ratio=2
            )

    def test_upper_bounds_are_inclusive(self, config_service):
        score = score_dimensions(
            DimensionInput(
                community_activity_points=100,
                checkin_count=30,
                task_completion_points=100,
                event_hosting_points=250,
                birthday_bonus_points=25,
                monthly_excellent_points=30,
            ),
            config_service.checkin_tiers(),
            ratio=1,
        )
        assert score.base_points == 200
        assert score.bonus_points == 305

    def test_service_uses_configured_tiers_and_ratio(self, allocation_service, config_service):
        config_service.save_checkin_tiers(
            [CheckinTier(min_count=0, max_count=999, points=7, label="flat")]
        )
        config_service.save_config({"points_ratio": 3})

        score = allocation_service.score_member(DimensionInput(checkin_count=12))
        assert score.checkin_level == "flat"
        assert score.total_points == 7
        assert score.raw_amount == 21
