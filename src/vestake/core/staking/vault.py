"""
Multi-token custody vault.

The vault holds every token balance on behalf of the staking instances
authorized as rewards operators. It keeps its own recorded balance per
token and never releases more than it recorded, so tokens sent to the vault
address outside ``deposit`` cannot be withdrawn through it.
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, field

from ..contracts.erc20 import ERC20Token, unique_address
from ..defi.access_control import Role, RoleBasedAccessControl
from ..events import VAULT_DEPOSIT, VAULT_WITHDRAWAL, EventLog
from ..staking_exceptions import (
    AlreadySupportedError,
    InsufficientVaultBalanceError,
    UnsupportedTokenError,
    ValidationError,
)

logger = logging.getLogger(__name__)


@dataclass
class Vault:
    """
    Token vault shared by staking instances.

    Security:
    - Only the admin manages supported tokens and operators
    - Only operators move tokens in or out
    - Withdrawals are bounded by the recorded balance
    """

    admin: str
    address: str = ""

    # token address -> token
    tokens: dict[str, ERC20Token] = field(default_factory=dict)

    # token address -> recorded balance
    balances: dict[str, int] = field(default_factory=dict)

    access: RoleBasedAccessControl = field(init=False)
    events: EventLog = field(default_factory=EventLog)

    def __post_init__(self) -> None:
        self.admin = self.admin.lower()
        if not self.address:
            self.address = unique_address("vault", self.admin)
        self.address = self.address.lower()
        self.access = RoleBasedAccessControl(admin_address=self.admin)
        self._lock = threading.RLock()

    # ==================== Admin ====================

    def add_supported_token(self, caller: str, token: ERC20Token, strict: bool = False) -> bool:
        """
        Enable accounting for ``token``.

        Idempotent unless ``strict`` is set, in which case a second
        registration raises AlreadySupportedError.

        Returns:
            True if the token was newly added
        """
        self.access.require_role(Role.ADMIN, caller)
        with self._lock:
            if token.address in self.tokens:
                if strict:
                    raise AlreadySupportedError(f"Token {token.symbol} is already supported")
                return False
            self.tokens[token.address] = token
            self.balances[token.address] = 0

        logger.info(
            "Vault token supported",
            extra={"event": "vault.token_added", "vault": self.address[:10], "token": token.symbol}
        )
        return True

    def add_rewards_operator(self, caller: str, operator: str) -> bool:
        """Authorize ``operator`` (a staking instance) to move vault funds."""
        return self.access.grant_role(caller, Role.REWARDS_OPERATOR, operator)

    def remove_rewards_operator(self, caller: str, operator: str) -> bool:
        return self.access.revoke_role(caller, Role.REWARDS_OPERATOR, operator)

    # ==================== Views ====================

    def is_supported_token(self, token: ERC20Token | str) -> bool:
        return _token_address(token) in self.tokens

    def is_operator(self, account: str) -> bool:
        return self.access.has_role(Role.REWARDS_OPERATOR, account)

    def balance_of(self, token: ERC20Token | str) -> int:
        """Recorded balance of ``token``."""
        with self._lock:
            return self.balances.get(_token_address(token), 0)

    # ==================== Token Movement ====================

    def deposit(self, caller: str, token: ERC20Token, from_addr: str, amount: int) -> bool:
        """
        Pull ``amount`` of ``token`` from ``from_addr`` into the vault.

        When ``from_addr`` is the caller itself the tokens are transferred
        directly; otherwise the vault spends the allowance ``from_addr``
        granted to the vault address.

        Raises:
            UnauthorizedError: If caller is not an operator
            UnsupportedTokenError: If token is not supported
            InsufficientBalanceError: If from_addr cannot cover the transfer
        """
        self.access.require_role(Role.REWARDS_OPERATOR, caller)
        self._validate_amount(amount)
        with self._lock:
            supported = self._require_supported(token)
            if from_addr.lower() == caller.lower():
                supported.transfer(from_addr, self.address, amount)
            else:
                supported.transfer_from(self.address, from_addr, self.address, amount)
            self.balances[supported.address] += amount
            self.events.emit(
                VAULT_DEPOSIT,
                self.address,
                account=from_addr.lower(),
                token=supported.address,
                operator=caller.lower(),
                amount=amount,
            )
        return True

    def withdraw(self, caller: str, token: ERC20Token, to_addr: str, amount: int) -> bool:
        """
        Send ``amount`` of ``token`` from the vault to ``to_addr``.

        Raises:
            UnauthorizedError: If caller is not an operator
            UnsupportedTokenError: If token is not supported
            InsufficientVaultBalanceError: If amount exceeds the recorded balance
        """
        self.access.require_role(Role.REWARDS_OPERATOR, caller)
        self._validate_amount(amount)
        with self._lock:
            supported = self._require_supported(token)
            recorded = self.balances[supported.address]
            if amount > recorded:
                raise InsufficientVaultBalanceError(
                    f"Vault: withdraw {amount} exceeds recorded {supported.symbol} balance {recorded}",
                    details={"token": supported.address, "requested": amount, "recorded": recorded},
                )
            supported.transfer(self.address, to_addr, amount)
            self.balances[supported.address] = recorded - amount
            self.events.emit(
                VAULT_WITHDRAWAL,
                self.address,
                account=to_addr.lower(),
                token=supported.address,
                operator=caller.lower(),
                amount=amount,
            )
        return True

    # ==================== Helpers ====================

    def _require_supported(self, token: ERC20Token | str) -> ERC20Token:
        supported = self.tokens.get(_token_address(token))
        if supported is None:
            raise UnsupportedTokenError(
                f"Vault: token {_token_address(token)} is not supported",
                details={"token": _token_address(token)},
            )
        return supported

    @staticmethod
    def _validate_amount(amount: int) -> None:
        if not isinstance(amount, int) or isinstance(amount, bool) or amount <= 0:
            raise ValidationError(f"Vault: amount must be a positive integer, got {amount!r}")


def _token_address(token: ERC20Token | str) -> str:
    return token.address if isinstance(token, ERC20Token) else token.lower()
