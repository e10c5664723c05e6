# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""Tests for the intern/formal member swap."""

from unittest.mock import patch

import pytest

from membership.core.errors import (
    ConcurrencyConflictError,
    InvalidStateError,
    InvariantViolationError,
    NotFoundError,
)
from membership.models.domain import FORMAL_ROLES, Member, Role


def _formal_count(member_repo):
    return sum(member_repo.count_by_role(role) for role in FORMAL_ROLES)


# ============================================
# Successful swaps
# ============================================
class TestExecutePromotion:
    def test_swaps_roles(self, roster, rotation_service, member_repo):
        rotation_service.execute_promotion("i1", "m1")
        assert member_repo.find_by_id("i1").role == Role.MEMBER
        assert member_repo.find_by_id("m1").role == Role.INTERN

    def test_roster_size_is_preserved(self, roster, rotation_service, member_repo):
        rotation_service.execute_promotion("i1", "m1")
        assert _formal_count(member_repo) == 5

    def test_vacated_vice_leader_role_is_normalised_to_member(
        self, roster, rotation_service, member_repo
    ):
        result = rotation_service.execute_promotion("i2", "v1")
        assert member_repo.find_by_id("i2").role == Role.MEMBER
        assert member_repo.find_by_id("v1").role == Role.INTERN
        assert result["vacated_role"] == "vice_leader"

    def test_appends_one_record_per_member(self, roster, rotation_service, role_change_repo):
        rotation_service.execute_promotion("i1", "v1")
        records = role_change_repo.get_all()
        assert len(records) == 2

        promoted = role_change_repo.find_by_member("i1")[0]
        assert (promoted.old_role, promoted.new_role) == (Role.INTERN, Role.MEMBER)
        demoted = role_change_repo.find_by_member("v1")[0]
        assert (demoted.old_role, demoted.new_role) == (Role.VICE_LEADER, Role.INTERN)

    def test_default_actor_is_system(self, roster, rotation_service, role_change_repo):
        rotation_service.execute_promotion("i1", "m1")
        assert {r.changed_by for r in role_change_repo.get_all()} == {"system"}

    def test_explicit_actor_is_recorded(self, roster, rotation_service, role_change_repo):
        result = rotation_service.execute_promotion("i1", "m1", changed_by="op-7")
        assert result["changed_by"] == "op-7"
        assert {r.changed_by for r in role_change_repo.get_all()} == {"op-7"}

    def test_demoted_member_can_be_promoted_back(self, roster, rotation_service, member_repo):
        rotation_service.execute_promotion("i1", "m1")
        rotation_service.execute_promotion("m1", "i1")
        assert member_repo.find_by_id("m1").role == Role.MEMBER
        assert member_repo.find_by_id("i1").role == Role.INTERN
        assert _formal_count(member_repo) == 5


# ============================================
# Rejected swaps
# ============================================
class TestPromotionPreconditions:
    def test_unknown_intern(self, roster, rotation_service):
        with pytest.raises(NotFoundError, match="ghost"):
            rotation_service.execute_promotion("ghost", "m1")

    def test_unknown_formal_member(self, roster, rotation_service):
        with pytest.raises(NotFoundError, match="ghost"):
            rotation_service.execute_promotion("i1", "ghost")

    def test_formal_member_passed_as_intern(self, roster, rotation_service, member_repo):
        with pytest.raises(InvalidStateError) as exc_info:
            rotation_service.execute_promotion("v1", "m1")
        assert not isinstance(exc_info.value, InvariantViolationError)
        assert member_repo.find_by_id("v1").role == Role.VICE_LEADER

    def test_intern_passed_as_formal_member(self, roster, rotation_service):
        with pytest.raises(InvalidStateError):
            rotation_service.execute_promotion("i1", "i2")

    def test_leader_cannot_be_rotated_out(self, roster, rotation_service):
        with pytest.raises(InvalidStateError):
            rotation_service.execute_promotion("i1", "lead")

    def test_not_found_maps_to_404(self, roster, rotation_service):
        with pytest.raises(NotFoundError) as exc_info:
            rotation_service.execute_promotion("ghost", "m1")
        assert exc_info.value.status_code == 404


# ============================================
# Invariant and concurrency
# ============================================
class TestPromotionAtomicity:
    def test_wrong_headcount_rolls_back_both_writes(
        self, roster, rotation_service, member_repo, role_change_repo
    ):
        member_repo.save(Member(id="m5", role=Role.MEMBER))

        with pytest.raises(InvariantViolationError, match="exactly 5"):
            rotation_service.execute_promotion("i1", "m1")

        assert member_repo.find_by_id("i1").role == Role.INTERN
        assert member_repo.find_by_id("m1").role == Role.MEMBER
        assert role_change_repo.count() == 0

    def test_conflict_on_second_write_rolls_back_first(
        self, roster, rotation_service, member_repo, role_change_repo
    ):
        real_save = member_repo.save
        calls = []

        def flaky_save(member):
            calls.append(member.id)
            if len(calls) == 2:
                raise ConcurrencyConflictError(f"Member '{member.id}' was modified concurrently")
            return real_save(member)

        with patch.object(member_repo, "save", side_effect=flaky_save):
            with pytest.raises(ConcurrencyConflictError):
                rotation_service.execute_promotion("i1", "m1")

        assert calls == ["i1", "m1"]
        assert member_repo.find_by_id("i1").role == Role.INTERN
        assert role_change_repo.count() == 0

    def test_stale_version_is_rejected_by_the_store(self, roster, member_repo):
        stale = member_repo.find_by_id("m1")
        member_repo.save(stale.model_copy(update={"username": "renamed"}))
        with pytest.raises(ConcurrencyConflictError):
            member_repo.save(stale.model_copy(update={"role": Role.INTERN}))
        assert member_repo.find_by_id("m1").role == Role.MEMBER
