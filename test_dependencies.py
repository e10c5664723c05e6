# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""Tests for process-wide wiring."""

import pytest

from membership.core import dependencies
from membership.core.config import settings
from membership.repositories.member_repository import MemberRepository


class TestWiring:
    @pytest.mark.skipif(bool(settings.DATABASE_URL), reason="DATABASE_URL selects the SQL stores")
    def test_in_memory_stores_without_database_url(self):
        assert isinstance(dependencies.get_member_repo(), MemberRepository)

    def test_singletons(self):
        assert dependencies.get_rotation_service() is dependencies.get_rotation_service()
        assert dependencies.get_batch_service() is dependencies.get_batch_service()

    def test_rotation_and_allocation_share_the_roster_lock(self):
        rotation = dependencies.get_rotation_service()
        allocation = dependencies.get_allocation_service()
        assert rotation._roster_lock is allocation._roster_lock

    def test_services_share_the_member_store(self):
        members = dependencies.get_member_repo()
        assert dependencies.get_rotation_service()._members is members
        assert dependencies.get_eligibility_service()._members is members
        assert dependencies.get_allocation_service()._members is members
