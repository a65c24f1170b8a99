"""
Tests for role-based access control.
"""

import pytest

from vestake.core.defi.access_control import Role, RoleBasedAccessControl
from vestake.core.staking_exceptions import UnauthorizedError


@pytest.fixture
def rbac():
    return RoleBasedAccessControl(admin_address="0xAdmin")


class TestRoleBasedAccessControl:

    def test_admin_starts_with_admin_role(self, rbac):
        assert rbac.has_role(Role.ADMIN, "0xadmin")
        assert rbac.get_role_members(Role.ADMIN) == {"0xadmin"}

    def test_grant_and_revoke(self, rbac):
        rbac.grant_role("0xAdmin", Role.REWARDS_OPERATOR, "0xStaking")
        assert rbac.has_role(Role.REWARDS_OPERATOR, "0xSTAKING")

        rbac.revoke_role("0xAdmin", Role.REWARDS_OPERATOR, "0xStaking")
        assert not rbac.has_role(Role.REWARDS_OPERATOR, "0xStaking")

    def test_roles_by_name(self, rbac):
        rbac.grant_role("0xAdmin", "minter", "0xStaking")

        assert rbac.has_role(Role.MINTER, "0xStaking")

    def test_non_admin_cannot_grant(self, rbac):
        with pytest.raises(UnauthorizedError):
            rbac.grant_role("0xMallory", Role.MINTER, "0xMallory")

        assert not rbac.has_role(Role.MINTER, "0xMallory")

    def test_require_role(self, rbac):
        rbac.require_role(Role.ADMIN, "0xAdmin")

        with pytest.raises(UnauthorizedError) as exc_info:
            rbac.require_role(Role.REWARDS_OPERATOR, "0xAdmin")
        assert exc_info.value.details["role"] == "rewards_operator"

    def test_audit_trail(self, rbac):
        rbac.grant_role("0xAdmin", Role.WHITELISTED, "0xUser")
        rbac.revoke_role("0xAdmin", Role.WHITELISTED, "0xUser")

        actions = [(c["action"], c["role"], c["address"]) for c in rbac.role_changes]
        assert actions == [("grant", "whitelisted", "0xuser"), ("revoke", "whitelisted", "0xuser")]

    def test_members_copy_is_detached(self, rbac):
        members = rbac.get_role_members(Role.ADMIN)
        members.add("0xintruder")

        assert not rbac.has_role(Role.ADMIN, "0xintruder")
