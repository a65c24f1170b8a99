"""
Role registry for staking contracts.

Contracts never look at ``msg.sender``; every mutating call carries the
caller explicitly and the owning contract asks its registry whether that
caller holds the role the call needs. The vault uses ADMIN and
REWARDS_OPERATOR, the vote token MINTER and WHITELISTED.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Set

from ..staking_exceptions import UnauthorizedError

logger = logging.getLogger(__name__)


class Role(Enum):
    ADMIN = "admin"
    REWARDS_OPERATOR = "rewards_operator"
    MINTER = "minter"
    WHITELISTED = "whitelisted"


@dataclass
class RoleBasedAccessControl:
    """
    Roles held by addresses under one contract.

    ADMIN holders grant and revoke every role, ADMIN included. Each change
    is recorded in ``role_changes`` in the order it happened.
    """

    admin_address: str = ""
    roles: Dict[str, Set[str]] = field(default_factory=dict)
    role_changes: list = field(default_factory=list)

    def __post_init__(self) -> None:
        for role in Role:
            self.roles.setdefault(role.value, set())
        if self.admin_address:
            self.admin_address = self.admin_address.lower()
            self.roles[Role.ADMIN.value].add(self.admin_address)

    def grant_role(self, caller: str, role: Role | str, address: str) -> bool:
        """
        Give ``address`` the role. Granting a held role is a no-op apart
        from the audit entry.

        Raises:
            UnauthorizedError: If ``caller`` is not an admin
        """
        return self._change("grant", caller, role, address)

    def revoke_role(self, caller: str, role: Role | str, address: str) -> bool:
        """Take the role away from ``address``; admin only."""
        return self._change("revoke", caller, role, address)

    def has_role(self, role: Role | str, address: str) -> bool:
        return address.lower() in self.roles.get(_role_name(role), ())

    def require_role(self, role: Role | str, caller: str) -> None:
        if not self.has_role(role, caller):
            name = _role_name(role)
            raise UnauthorizedError(
                f"{caller} does not hold {name}",
                details={"caller": caller.lower(), "role": name},
            )

    def get_role_members(self, role: Role | str) -> Set[str]:
        """Copy of the addresses currently holding ``role``."""
        return set(self.roles.get(_role_name(role), ()))

    def _change(self, action: str, caller: str, role: Role | str, address: str) -> bool:
        self.require_role(Role.ADMIN, caller)
        name = _role_name(role)
        member = address.lower()
        holders = self.roles.setdefault(name, set())
        if action == "grant":
            holders.add(member)
        else:
            holders.discard(member)

        self.role_changes.append({
            "action": action,
            "role": name,
            "address": member,
            "admin": caller.lower(),
            "timestamp": time.time(),
        })
        logger.info(
            "Role %s: %s %s",
            action,
            name,
            member[:10],
            extra={"event": f"rbac.role_{action}", "role": name, "admin": caller.lower()[:10]},
        )
        return True


def _role_name(role: Role | str) -> str:
    return role.value if isinstance(role, Role) else role
