"""
Staking template for a wrapped native base token.

Locks can be funded with native currency, which is wrapped into the base
token on the way into the vault and unwrapped again when the lock is
withdrawn. Locks funded with the wrapped token itself behave exactly as in
the plain template.
"""

from __future__ import annotations

from ..contracts.erc20 import ERC20Token
from ..contracts.wrapped_native import WrappedNativeToken
from ..staking_exceptions import ValidationError
from .staking import Lock, StakingCore


class NativeStakingCore(StakingCore):
    """StakingCore whose base token is a ``WrappedNativeToken``."""

    def _validate_base_token(self, base_token: ERC20Token) -> None:
        if not isinstance(base_token, WrappedNativeToken):
            raise ValidationError(
                f"Native staking needs a wrapped native base token, got {base_token.symbol}"
            )

    def _resolve_amount(self, amount: int, native_value: int) -> int:
        if not native_value:
            return amount
        if amount and amount != native_value:
            raise ValidationError(
                f"Amount {amount} does not match the native value sent ({native_value})"
            )
        return native_value

    def _pull_principal(self, owner: str, amount: int, native_value: int) -> None:
        if not native_value:
            super()._pull_principal(owner, amount, native_value)
            return
        self.base_token.deposit(owner, native_value, recipient=self.address)
        self.vault.deposit(self.address, self.base_token, self.address, native_value)

    def _release_principal(self, lock: Lock, amount: int) -> None:
        if not lock.native:
            super()._release_principal(lock, amount)
            return
        self.vault.withdraw(self.address, self.base_token, self.address, amount)
        self.base_token.withdraw(self.address, amount, recipient=lock.owner)
