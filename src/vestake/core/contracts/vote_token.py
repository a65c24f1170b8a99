"""
Voting escrow token (veToken).

Balances represent voting power derived from staking locks. Only minters
(staking instances) create or destroy balances, and only whitelisted
holders may move them, so voting power stays bound to the locking account.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from ..defi.access_control import Role, RoleBasedAccessControl
from ..staking_exceptions import UnauthorizedError
from .erc20 import ERC20Token

logger = logging.getLogger(__name__)


@dataclass
class VoteToken(ERC20Token):
    """ERC20 voting token with a minter role and a transfer whitelist."""

    access: RoleBasedAccessControl = field(default_factory=RoleBasedAccessControl)

    def __post_init__(self) -> None:
        super().__post_init__()
        if not self.access.admin_address and self.owner:
            self.access = RoleBasedAccessControl(admin_address=self.owner)

    # ==================== Roles ====================

    def grant_minter(self, caller: str, minter: str) -> bool:
        """Allow ``minter`` to mint and burn voting power (admin only)."""
        return self.access.grant_role(caller, Role.MINTER, minter)

    def add_to_whitelist(self, caller: str, account: str) -> bool:
        """Allow ``account`` to transfer voting tokens (admin only)."""
        return self.access.grant_role(caller, Role.WHITELISTED, account)

    def remove_from_whitelist(self, caller: str, account: str) -> bool:
        return self.access.revoke_role(caller, Role.WHITELISTED, account)

    def is_minter(self, account: str) -> bool:
        return self.access.has_role(Role.MINTER, account)

    # ==================== Mint / Burn ====================

    def mint(self, minter: str, to: str, amount: int) -> bool:
        """Mint voting power (minters only)."""
        self.access.require_role(Role.MINTER, minter)
        self._mint(self._normalize(to), amount)
        return True

    def burn_from_holder(self, minter: str, holder: str, amount: int) -> bool:
        """Destroy voting power held by ``holder`` (minters only)."""
        self.access.require_role(Role.MINTER, minter)
        self._burn(self._normalize(holder), amount)
        return True

    # ==================== Transfers ====================

    def transfer(self, sender: str, recipient: str, amount: int) -> bool:
        self._require_whitelisted(sender)
        return super().transfer(sender, recipient, amount)

    def transfer_from(self, spender: str, from_addr: str, to_addr: str, amount: int) -> bool:
        self._require_whitelisted(from_addr)
        return super().transfer_from(spender, from_addr, to_addr, amount)

    def _require_whitelisted(self, account: str) -> None:
        if not self.access.has_role(Role.WHITELISTED, account):
            raise UnauthorizedError(
                f"{self.symbol}: {account} is not whitelisted for transfers",
                details={"account": account.lower()},
            )
