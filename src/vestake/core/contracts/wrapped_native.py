"""
Wrapped native currency.

The native currency of the execution environment is modeled as a plain
ERC20 ledger. ``WrappedNativeToken`` holds native units 1:1 against its own
supply: wrapping moves native units into the wrapper and mints, unwrapping
burns and releases them.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from ..staking_exceptions import InsufficientBalanceError, ValidationError
from .erc20 import ERC20Token

logger = logging.getLogger(__name__)


@dataclass
class WrappedNativeToken(ERC20Token):
    """ERC20 backed 1:1 by native currency held at its own address."""

    native: ERC20Token = field(default_factory=lambda: ERC20Token(name="Native", symbol="NATIVE"))

    def deposit(self, caller: str, value: int, recipient: str | None = None) -> bool:
        """
        Wrap ``value`` native units paid by ``caller``.

        Args:
            caller: Account paying native currency
            value: Native units to wrap
            recipient: Account credited with wrapped tokens (defaults to caller)

        Raises:
            InsufficientBalanceError: If caller holds less native currency than value
        """
        if value <= 0:
            raise ValidationError("Wrapped: deposit value must be positive")
        self.native.transfer(caller, self.address, value)
        self._mint(self._normalize(recipient or caller), value)

        logger.debug(
            "Native currency wrapped",
            extra={"event": "wrapped.deposit", "payer": caller.lower()[:10], "amount": value},
        )
        return True

    def withdraw(self, caller: str, amount: int, recipient: str | None = None) -> bool:
        """Unwrap ``amount`` held by caller and pay native units to recipient."""
        if amount <= 0:
            raise ValidationError("Wrapped: withdraw amount must be positive")
        if self.balance_of(caller) < amount:
            raise InsufficientBalanceError(
                f"Wrapped: withdraw amount exceeds balance ({amount} > {self.balance_of(caller)})"
            )
        self._burn(self._normalize(caller), amount)
        self.native.transfer(self.address, recipient or caller, amount)
        return True
