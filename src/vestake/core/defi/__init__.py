"""
DeFi building blocks shared by staking contracts.

- Access Control: Role registry with admin-managed grants
"""

from .access_control import Role, RoleBasedAccessControl

__all__ = [
    "Role",
    "RoleBasedAccessControl",
]
