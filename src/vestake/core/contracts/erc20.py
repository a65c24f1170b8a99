"""
Fungible token ledger.

Base tokens, reward tokens and native currency are all modeled as
``ERC20Token`` instances. Staking instances and the vault never hold token
state themselves; they move balances through ``transfer`` and
``transfer_from`` with an explicit caller, and the token refuses anything
the caller's balance or allowance does not cover.
"""

from __future__ import annotations

import hashlib
import itertools
import logging
import time
from dataclasses import dataclass, field

from ..config import ZERO_ADDRESS
from ..staking_exceptions import (
    InsufficientBalanceError,
    UnauthorizedError,
    ValidationError,
)

logger = logging.getLogger(__name__)

_address_nonce = itertools.count()


def derive_address(*parts: object) -> str:
    """Derive a 20-byte hex address from arbitrary seed parts."""
    seed = ":".join(str(p) for p in parts).encode()
    return f"0x{hashlib.sha3_256(seed).digest()[-20:].hex()}"


def unique_address(*parts: object) -> str:
    """Derive a fresh address; repeated seeds still get distinct results."""
    return derive_address(*parts, time.time(), next(_address_nonce))


@dataclass
class TokenEvent:
    """A Transfer or Approval record."""

    event_type: str
    from_address: str
    to_address: str
    value: int
    timestamp: float = field(default_factory=time.time)


@dataclass
class ERC20Token:
    """
    In-memory ERC20 ledger.

    Accounts are lower-cased on entry. Mints and burns are recorded as
    transfers from and to the zero address.
    """

    name: str
    symbol: str
    decimals: int = 18
    total_supply: int = 0
    address: str = ""

    # Only the owner mints
    owner: str = ""

    balances: dict[str, int] = field(default_factory=dict)
    allowances: dict[str, dict[str, int]] = field(default_factory=dict)
    events: list[TokenEvent] = field(default_factory=list)

    UINT256_MAX: int = 2**256 - 1

    def __post_init__(self) -> None:
        if not self.address:
            self.address = unique_address(self.name, self.symbol)
        self.address = self._normalize(self.address)
        self.owner = self._normalize(self.owner)

    # ==================== Views ====================

    def balance_of(self, account: str) -> int:
        return self.balances.get(self._normalize(account), 0)

    def allowance(self, owner: str, spender: str) -> int:
        return self.allowances.get(self._normalize(owner), {}).get(self._normalize(spender), 0)

    # ==================== Transfers ====================

    def transfer(self, sender: str, recipient: str, amount: int) -> bool:
        """
        Move ``amount`` from ``sender`` to ``recipient``.

        Raises:
            ValidationError: On a zero recipient or a malformed amount
            InsufficientBalanceError: If sender holds less than amount
        """
        source = self._normalize(sender)
        target = self._normalize(recipient)
        self._validate_address(target, "recipient")
        self._validate_amount(amount)
        self._require_balance(source, amount, "transfer")

        self._move(source, target, amount)
        logger.debug(
            "Token transfer",
            extra={
                "event": "erc20.transfer",
                "token": self.symbol,
                "from": source[:10],
                "to": target[:10],
                "amount": amount,
            }
        )
        return True

    def approve(self, owner: str, spender: str, amount: int) -> bool:
        """Set the allowance of ``spender`` over ``owner``'s balance."""
        holder = self._normalize(owner)
        delegate = self._normalize(spender)
        self._validate_address(delegate, "spender")
        self._validate_amount(amount)

        self.allowances.setdefault(holder, {})[delegate] = amount
        self.events.append(TokenEvent("Approval", holder, delegate, amount))
        return True

    def transfer_from(self, spender: str, from_addr: str, to_addr: str, amount: int) -> bool:
        """
        Move ``amount`` out of ``from_addr`` on ``spender``'s allowance.

        An allowance of UINT256_MAX is never decremented.

        Raises:
            InsufficientBalanceError: If the allowance or the balance is short
        """
        delegate = self._normalize(spender)
        source = self._normalize(from_addr)
        target = self._normalize(to_addr)
        self._validate_address(target, "recipient")
        self._validate_amount(amount)

        granted = self.allowance(source, delegate)
        if granted < amount:
            raise InsufficientBalanceError(
                f"{self.symbol}: allowance {granted} of {delegate} does not cover {amount}",
                details={"token": self.symbol, "owner": source, "spender": delegate},
            )
        self._require_balance(source, amount, "transfer")

        if granted != self.UINT256_MAX:
            self.allowances[source][delegate] = granted - amount
        self._move(source, target, amount)
        return True

    # ==================== Supply ====================

    def mint(self, minter: str, to: str, amount: int) -> bool:
        """Create ``amount`` for ``to`` (owner only)."""
        if self._normalize(minter) != self.owner:
            raise UnauthorizedError(f"{self.symbol}: {minter} is not the token owner")
        self._mint(self._normalize(to), amount)
        return True

    def burn(self, holder: str, amount: int) -> bool:
        """Destroy ``amount`` of the holder's own balance."""
        self._burn(self._normalize(holder), amount)
        return True

    def _mint(self, account: str, amount: int) -> None:
        self._validate_address(account, "recipient")
        self._validate_amount(amount)

        self.total_supply += amount
        self.balances[account] = self.balances.get(account, 0) + amount
        self.events.append(TokenEvent("Transfer", ZERO_ADDRESS, account, amount))
        logger.debug(
            "Token minted",
            extra={
                "event": "erc20.mint",
                "token": self.symbol,
                "to": account[:10],
                "amount": amount,
                "total_supply": self.total_supply,
            }
        )

    def _burn(self, account: str, amount: int) -> None:
        self._validate_amount(amount)
        self._require_balance(account, amount, "burn")

        self.balances[account] -= amount
        self.total_supply -= amount
        self.events.append(TokenEvent("Transfer", account, ZERO_ADDRESS, amount))

    # ==================== Helpers ====================

    def _move(self, source: str, target: str, amount: int) -> None:
        self.balances[source] = self.balances.get(source, 0) - amount
        self.balances[target] = self.balances.get(target, 0) + amount
        self.events.append(TokenEvent("Transfer", source, target, amount))

    def _require_balance(self, account: str, amount: int, action: str) -> None:
        held = self.balances.get(account, 0)
        if held < amount:
            raise InsufficientBalanceError(
                f"{self.symbol}: {action} of {amount} exceeds balance {held}",
                details={"token": self.symbol, "account": account, "balance": held},
            )

    @staticmethod
    def _normalize(address: str) -> str:
        return address.lower()

    @staticmethod
    def _validate_address(address: str, role: str) -> None:
        if not address or address == ZERO_ADDRESS:
            raise ValidationError(f"ERC20: {role} is the zero address")

    def _validate_amount(self, amount: int) -> None:
        if not isinstance(amount, int) or isinstance(amount, bool):
            raise ValidationError(f"ERC20: amount must be an integer, got {type(amount).__name__}")
        if amount < 0 or amount > self.UINT256_MAX:
            raise ValidationError(f"ERC20: amount {amount} is outside the uint256 range")

    def to_dict(self) -> dict:
        """Snapshot of metadata, balances and allowances."""
        return {
            "name": self.name,
            "symbol": self.symbol,
            "decimals": self.decimals,
            "total_supply": self.total_supply,
            "address": self.address,
            "owner": self.owner,
            "balances": dict(self.balances),
            "allowances": {holder: dict(spenders) for holder, spenders in self.allowances.items()},
        }
