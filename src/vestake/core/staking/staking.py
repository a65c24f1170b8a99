"""
Voting-escrow staking core.

Each instance keeps a ledger of locks of one base token. A lock earns
voting power (minted as the voting token) and stream shares; reward streams
emit on fixed schedules and are split pro-rata to stream shares.

Reward accounting uses one reward-per-share accumulator per stream. Every
operation that changes shares first advances all accumulators to ``now``
and settles the affected lock, so a share change never re-prices rewards
emitted before it.

All public operations run under the instance lock and check every
precondition before the first state change or token movement.
"""

from __future__ import annotations

import logging
import threading
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Mapping, Sequence

from .. import config
from ..contracts.erc20 import ERC20Token
from ..contracts.vote_token import VoteToken
from ..events import (
    LOCK_CREATED,
    LOCK_EXTENDED,
    LOCK_INCREASED,
    LOCK_WITHDRAWN,
    REWARD_CLAIMED,
    STREAM_CREATED,
    STREAM_PROPOSAL_CANCELLED,
    STREAM_PROPOSED,
    EventLog,
)
from ..staking_exceptions import (
    AlreadyInitializedError,
    AlreadyWithdrawnError,
    InsufficientBalanceError,
    InsufficientVaultBalanceError,
    InvalidScheduleError,
    InvalidUnlockTimeError,
    LockLimitExceededError,
    LockNotFoundError,
    NotInitializedError,
    NotLockOwnerError,
    NothingToClaimError,
    StateError,
    UnauthorizedError,
    UnknownStreamError,
    UnsupportedTokenError,
    ValidationError,
)
from ..staking_metrics import StakingMetrics
from .scheduler import RewardSchedule, RewardStreamScheduler
from .vault import Vault
from .weights import (
    StakingProperties,
    WeightParameters,
    compute_early_withdrawal_penalty,
    compute_lock_weights,
    parse_staking_properties,
    parse_weight_parameters,
)

logger = logging.getLogger(__name__)

MAIN_STREAM_ID = 0


class LockStatus(Enum):
    ACTIVE = "active"
    WITHDRAWN = "withdrawn"


class StreamStatus(Enum):
    PROPOSED = "proposed"
    ACTIVE = "active"
    CANCELLED = "cancelled"


@dataclass
class LockStreamRewards:
    """Per lock, per stream reward bookkeeping."""
    reward_per_share_paid: int = 0
    pending: int = 0
    last_claim_time: int = 0
    claimed: int = 0


@dataclass
class Lock:
    """A principal deposit committed until ``unlock_time``."""
    lock_id: int
    owner: str
    principal_amount: int
    lock_start: int
    unlock_time: int
    voting_power: int
    stream_shares: int
    status: LockStatus = LockStatus.ACTIVE
    native: bool = False
    returned_amount: int = 0
    penalty: int = 0
    rewards: dict[int, LockStreamRewards] = field(default_factory=dict)

    @property
    def is_active(self) -> bool:
        return self.status is LockStatus.ACTIVE


@dataclass
class RewardStream:
    """A reward token emitted on a fixed schedule."""
    stream_id: int
    owner: str
    reward_token: ERC20Token
    schedule: RewardSchedule
    status: StreamStatus = StreamStatus.PROPOSED
    reward_per_share: int = 0
    last_update_time: int = 0
    total_claimed: int = 0
    # Early-withdrawal penalties shared out through this stream
    penalty_credits: int = 0

    @property
    def budget(self) -> int:
        return self.schedule.total_budget

    @property
    def reserve(self) -> int:
        """Funded rewards not yet paid out (emitted or not)."""
        if self.status is not StreamStatus.ACTIVE:
            return 0
        return self.budget + self.penalty_credits - self.total_claimed


@dataclass(frozen=True)
class WithdrawalReceipt:
    lock_id: int
    returned_amount: int
    penalty: int
    early: bool


class StakingCore:
    """
    Lock ledger of one staking instance.

    Instances are normally created through the staking factory, which
    assigns the address and calls ``initialize_staking``.
    """

    def __init__(
        self,
        address: str,
        time_provider: Callable[[], float] | None = None,
        metrics: StakingMetrics | None = None,
    ) -> None:
        self.address = address.lower()
        self.time_provider = time_provider or time.time
        self.metrics = metrics

        self.initialized = False
        self.vault: Vault | None = None
        self.base_token: ERC20Token | None = None
        self.voting_token: VoteToken | None = None
        self.weight: WeightParameters | None = None
        self.props: StakingProperties | None = None
        self.rewards_admin = ""

        self.scheduler = RewardStreamScheduler()
        self.streams: dict[int, RewardStream] = {}
        self.locks: dict[int, Lock] = {}
        self.account_locks: dict[str, list[int]] = {}

        self.total_stream_shares = 0
        self.total_principal = 0
        self.total_voting_power = 0
        self.retained_penalties = 0

        self.events = EventLog()
        self._next_lock_id = 1
        self._lock = threading.RLock()

    @property
    def state_lock(self) -> threading.RLock:
        return self._lock

    # ==================== Initialization ====================

    def initialize_staking(
        self,
        caller: str,
        vault: Vault,
        base_token: ERC20Token,
        voting_token: VoteToken,
        weight: WeightParameters | Mapping[str, Any],
        rewards_admin: str,
        schedule_times: Sequence[int],
        schedule_rewards: Sequence[int],
        props: StakingProperties | Mapping[str, Any],
    ) -> None:
        """
        One-time setup binding the instance to its vault and tokens.

        Creates the main reward stream (id 0), paying the base token, and
        pulls its whole budget from ``rewards_admin`` into the vault. The
        rewards admin must have approved the vault for that amount.
        """
        with self._lock:
            if self.initialized:
                raise AlreadyInitializedError(f"Staking {self.address} is already initialized")

            weight = parse_weight_parameters(weight)
            props = parse_staking_properties(props)
            schedule = RewardSchedule.from_remaining(schedule_times, schedule_rewards)
            now = self._now()
            if schedule.start < now:
                raise InvalidScheduleError(
                    f"Main stream schedule starts in the past ({schedule.start} < {now})"
                )
            self._validate_base_token(base_token)
            if not vault.is_supported_token(base_token):
                raise UnsupportedTokenError(f"Vault does not support base token {base_token.symbol}")
            if not vault.is_operator(self.address):
                raise UnauthorizedError(f"Staking {self.address} is not a vault operator")

            vault.deposit(self.address, base_token, rewards_admin, schedule.total_budget)

            self.vault = vault
            self.base_token = base_token
            self.voting_token = voting_token
            self.weight = weight
            self.props = props
            self.rewards_admin = rewards_admin.lower()

            stream = RewardStream(
                stream_id=MAIN_STREAM_ID,
                owner=self.rewards_admin,
                reward_token=base_token,
                schedule=schedule,
                status=StreamStatus.ACTIVE,
                last_update_time=now,
            )
            self.streams[MAIN_STREAM_ID] = stream
            self.scheduler.add_schedule(MAIN_STREAM_ID, schedule)
            self.initialized = True

        logger.info(
            "Staking initialized",
            extra={
                "event": "staking.initialized",
                "staking": self.address[:10],
                "base_token": base_token.symbol,
                "main_budget": schedule.total_budget,
                "initializer": caller.lower()[:10],
            }
        )

    # ==================== Locks ====================

    def create_lock(
        self,
        caller: str,
        amount: int,
        unlock_time: int,
        native_value: int = 0,
    ) -> int:
        """
        Lock ``amount`` of the base token until ``unlock_time``.

        Args:
            caller: Account creating and owning the lock
            amount: Principal to lock
            unlock_time: Timestamp after which the lock can be withdrawn penalty-free
            native_value: Native currency sent along, for templates that wrap it

        Returns:
            The new lock id

        Raises:
            ValidationError: If amount is not positive
            InvalidUnlockTimeError: If unlock_time is not in the future
            LockLimitExceededError: If caller already holds max_locks active locks
            InsufficientBalanceError: If caller cannot fund the lock
        """
        with self._lock:
            self._require_initialized()
            owner = caller.lower()
            now = self._now()
            amount = self._resolve_amount(amount, native_value)
            _require_positive(amount, "Lock amount")
            if unlock_time <= now:
                raise InvalidUnlockTimeError(
                    f"Unlock time {unlock_time} must be after now ({now})",
                    details={"unlock_time": unlock_time, "now": now},
                )
            active = self._active_lock_count(owner)
            if active >= self.props.max_locks:
                raise LockLimitExceededError(
                    f"Account {owner} already holds {active} active locks (max {self.props.max_locks})",
                    details={"account": owner, "max_locks": self.props.max_locks},
                )
            self._require_token_movement_allowed()

            weights = compute_lock_weights(amount, unlock_time - now, self.weight, self.props)
            if weights.voting_power and not self.voting_token.is_minter(self.address):
                raise UnauthorizedError(f"Staking {self.address} cannot mint {self.voting_token.symbol}")

            self._pull_principal(owner, amount, native_value)

            self._checkpoint(now)
            lock = Lock(
                lock_id=self._next_lock_id,
                owner=owner,
                principal_amount=amount,
                lock_start=now,
                unlock_time=unlock_time,
                voting_power=weights.voting_power,
                stream_shares=weights.stream_shares,
                native=native_value > 0,
            )
            for stream in self._active_streams():
                lock.rewards[stream.stream_id] = LockStreamRewards(
                    reward_per_share_paid=stream.reward_per_share,
                    last_claim_time=now,
                )
            self._next_lock_id += 1
            self.locks[lock.lock_id] = lock
            self.account_locks.setdefault(owner, []).append(lock.lock_id)
            self.total_stream_shares += lock.stream_shares
            self.total_principal += amount
            self.total_voting_power += lock.voting_power
            if lock.voting_power:
                self.voting_token.mint(self.address, owner, lock.voting_power)

            self.events.emit(
                LOCK_CREATED,
                self.address,
                account=owner,
                timestamp=now,
                lock_id=lock.lock_id,
                amount=amount,
                lock_start=now,
                unlock_time=unlock_time,
                voting_power=lock.voting_power,
                stream_shares=lock.stream_shares,
            )
            if self.metrics:
                self.metrics.record_lock_created(
                    self.address, self.total_stream_shares, self._total_active_locks()
                )

        logger.info(
            "Lock created",
            extra={
                "event": "staking.lock_created",
                "staking": self.address[:10],
                "owner": owner[:10],
                "lock_id": lock.lock_id,
                "amount": amount,
                "voting_power": lock.voting_power,
                "stream_shares": lock.stream_shares,
            }
        )
        return lock.lock_id

    def extend_lock(self, caller: str, lock_id: int, new_unlock_time: int) -> Lock:
        """
        Move the unlock time of a lock further into the future.

        Voting power and stream shares are recomputed from the new remaining
        duration; the voting token balance follows the difference.
        """
        with self._lock:
            self._require_initialized()
            lock = self._get_owned_active_lock(caller, lock_id)
            now = self._now()
            if new_unlock_time <= lock.unlock_time or new_unlock_time <= now:
                raise InvalidUnlockTimeError(
                    f"New unlock time {new_unlock_time} must be after {max(lock.unlock_time, now)}",
                    details={"lock_id": lock_id, "unlock_time": lock.unlock_time, "now": now},
                )

            weights = compute_lock_weights(
                lock.principal_amount, new_unlock_time - now, self.weight, self.props
            )
            self._require_voting_adjustable(lock, weights.voting_power)

            self._checkpoint(now)
            self._settle_lock(lock)
            self._apply_weights(lock, weights.voting_power, weights.stream_shares)
            lock.unlock_time = new_unlock_time

            self.events.emit(
                LOCK_EXTENDED,
                self.address,
                account=lock.owner,
                timestamp=now,
                lock_id=lock.lock_id,
                amount=lock.principal_amount,
                unlock_time=new_unlock_time,
                voting_power=lock.voting_power,
                stream_shares=lock.stream_shares,
            )

        logger.info(
            "Lock extended",
            extra={
                "event": "staking.lock_extended",
                "staking": self.address[:10],
                "lock_id": lock_id,
                "unlock_time": new_unlock_time,
                "stream_shares": lock.stream_shares,
            }
        )
        return lock

    def increase_lock(
        self,
        caller: str,
        lock_id: int,
        additional_amount: int,
        native_value: int = 0,
    ) -> Lock:
        """Add principal to a lock, keeping its unlock time."""
        with self._lock:
            self._require_initialized()
            lock = self._get_owned_active_lock(caller, lock_id)
            now = self._now()
            additional_amount = self._resolve_amount(additional_amount, native_value)
            _require_positive(additional_amount, "Additional amount")
            if lock.native != (native_value > 0):
                raise ValidationError(
                    "Increase must use the same currency the lock was created with",
                    details={"lock_id": lock_id, "native": lock.native},
                )
            remaining = lock.unlock_time - now
            if remaining <= 0:
                raise InvalidUnlockTimeError(
                    f"Lock {lock_id} has already reached its unlock time",
                    details={"lock_id": lock_id, "unlock_time": lock.unlock_time, "now": now},
                )
            self._require_token_movement_allowed()

            new_principal = lock.principal_amount + additional_amount
            weights = compute_lock_weights(new_principal, remaining, self.weight, self.props)
            self._require_voting_adjustable(lock, weights.voting_power)

            self._pull_principal(lock.owner, additional_amount, native_value)

            self._checkpoint(now)
            self._settle_lock(lock)
            lock.principal_amount = new_principal
            self.total_principal += additional_amount
            self._apply_weights(lock, weights.voting_power, weights.stream_shares)

            self.events.emit(
                LOCK_INCREASED,
                self.address,
                account=lock.owner,
                timestamp=now,
                lock_id=lock.lock_id,
                added=additional_amount,
                amount=new_principal,
                unlock_time=lock.unlock_time,
                voting_power=lock.voting_power,
                stream_shares=lock.stream_shares,
            )

        logger.info(
            "Lock increased",
            extra={
                "event": "staking.lock_increased",
                "staking": self.address[:10],
                "lock_id": lock_id,
                "added": additional_amount,
                "stream_shares": lock.stream_shares,
            }
        )
        return lock

    def withdraw(self, caller: str, lock_id: int) -> WithdrawalReceipt:
        """
        Close a lock and return its principal.

        At or after the unlock time the whole principal is returned. Before
        it, the early-withdrawal penalty is deducted, stays in the vault and is
        credited to the remaining stakers through the main stream.
        Rewards accrued up to now remain claimable on the withdrawn lock.
        """
        with self._lock:
            self._require_initialized()
            lock = self._get_owned_active_lock(caller, lock_id)
            now = self._now()
            penalty = compute_early_withdrawal_penalty(
                lock.principal_amount, now, lock.lock_start, lock.unlock_time, self.weight, self.props
            )
            payout = lock.principal_amount - penalty
            self._require_token_movement_allowed()
            self._require_voting_adjustable(lock, 0)
            if payout > self.vault.balance_of(self.base_token):
                raise InsufficientVaultBalanceError(
                    f"Vault cannot return {payout} {self.base_token.symbol}",
                    details={"lock_id": lock_id, "payout": payout},
                )

            self._checkpoint(now)
            self._settle_lock(lock)
            if payout:
                self._release_principal(lock, payout)

            self.total_principal -= lock.principal_amount
            self._apply_weights(lock, 0, 0)
            self._socialize_penalty(penalty)
            lock.status = LockStatus.WITHDRAWN
            lock.returned_amount = payout
            lock.penalty = penalty

            self.events.emit(
                LOCK_WITHDRAWN,
                self.address,
                account=lock.owner,
                timestamp=now,
                lock_id=lock.lock_id,
                amount=lock.principal_amount,
                returned=payout,
                penalty=penalty,
                early=penalty > 0,
            )
            if self.metrics:
                self.metrics.record_lock_withdrawn(
                    self.address, penalty, self.total_stream_shares, self._total_active_locks()
                )

        logger.info(
            "Lock withdrawn",
            extra={
                "event": "staking.lock_withdrawn",
                "staking": self.address[:10],
                "lock_id": lock_id,
                "returned": payout,
                "penalty": penalty,
            }
        )
        return WithdrawalReceipt(lock_id=lock_id, returned_amount=payout, penalty=penalty, early=penalty > 0)

    # ==================== Rewards ====================

    def claim_rewards(self, caller: str, lock_id: int, stream_id: int) -> int:
        """
        Pay the rewards a lock has earned from one stream.

        Returns:
            Amount of the stream's reward token transferred to the caller

        Raises:
            UnknownStreamError: If the stream is not active
            NothingToClaimError: If nothing has accrued since the last claim
        """
        with self._lock:
            self._require_initialized()
            lock = self._get_owned_lock(caller, lock_id)
            stream = self._get_active_stream(stream_id)
            now = self._now()
            amount = self._entitlement(lock, stream, self._projected_reward_per_share(stream, now))
            if amount == 0:
                raise NothingToClaimError(
                    f"Lock {lock_id} has nothing to claim from stream {stream_id}",
                    details={"lock_id": lock_id, "stream_id": stream_id},
                )
            self._require_token_movement_allowed()
            self._pay_reward(lock, stream, amount, now)

        return amount

    def claim_all_rewards(self, caller: str, lock_id: int) -> dict[int, int]:
        """Claim every active stream with a positive entitlement."""
        with self._lock:
            self._require_initialized()
            lock = self._get_owned_lock(caller, lock_id)
            now = self._now()
            owed = {
                stream.stream_id: self._entitlement(
                    lock, stream, self._projected_reward_per_share(stream, now)
                )
                for stream in self._active_streams()
            }
            owed = {stream_id: amount for stream_id, amount in owed.items() if amount > 0}
            if not owed:
                raise NothingToClaimError(f"Lock {lock_id} has nothing to claim", details={"lock_id": lock_id})
            self._require_token_movement_allowed()
            for stream_id, amount in owed.items():
                self._pay_reward(lock, self.streams[stream_id], amount, now)

        return owed

    def pending_rewards(self, lock_id: int, stream_id: int) -> int:
        """Rewards a lock could claim from a stream right now."""
        with self._lock:
            lock = self._get_lock(lock_id)
            stream = self._get_active_stream(stream_id)
            return self._entitlement(lock, stream, self._projected_reward_per_share(stream, self._now()))

    def propose_stream(
        self,
        caller: str,
        stream_owner: str,
        reward_token: ERC20Token,
        schedule_times: Sequence[int],
        schedule_rewards: Sequence[int],
    ) -> int:
        """
        Propose an additional reward stream (rewards admin only).

        The stream becomes active once its owner funds it with
        ``create_stream``.
        """
        with self._lock:
            self._require_initialized()
            self._require_rewards_admin(caller)
            schedule = RewardSchedule.from_remaining(schedule_times, schedule_rewards)
            now = self._now()
            if schedule.start < now:
                raise InvalidScheduleError(f"Stream schedule starts in the past ({schedule.start} < {now})")
            if not self.vault.is_supported_token(reward_token):
                raise UnsupportedTokenError(f"Vault does not support reward token {reward_token.symbol}")

            stream_id = len(self.streams)
            self.streams[stream_id] = RewardStream(
                stream_id=stream_id,
                owner=stream_owner.lower(),
                reward_token=reward_token,
                schedule=schedule,
            )
            self.events.emit(
                STREAM_PROPOSED,
                self.address,
                account=stream_owner.lower(),
                timestamp=now,
                stream_id=stream_id,
                reward_token=reward_token.address,
                budget=schedule.total_budget,
                start=schedule.start,
                end=schedule.end,
            )
        return stream_id

    def create_stream(self, caller: str, stream_id: int) -> RewardStream:
        """Fund a proposed stream from its owner and start accruing it."""
        with self._lock:
            self._require_initialized()
            stream = self.streams.get(stream_id)
            if stream is None:
                raise UnknownStreamError(f"Unknown reward stream {stream_id}", details={"stream_id": stream_id})
            if stream.status is not StreamStatus.PROPOSED:
                raise StateError(f"Stream {stream_id} is {stream.status.value}, not proposed")
            if caller.lower() != stream.owner:
                raise UnauthorizedError(f"Only the stream owner can create stream {stream_id}")
            now = self._now()
            if stream.schedule.start < now:
                raise InvalidScheduleError(f"Stream {stream_id} schedule has already started")
            self._require_token_movement_allowed()

            self.vault.deposit(self.address, stream.reward_token, caller, stream.budget)

            self._checkpoint(now)
            stream.status = StreamStatus.ACTIVE
            stream.last_update_time = now
            self.scheduler.add_schedule(stream_id, stream.schedule)

            self.events.emit(
                STREAM_CREATED,
                self.address,
                account=stream.owner,
                timestamp=now,
                stream_id=stream_id,
                reward_token=stream.reward_token.address,
                budget=stream.budget,
            )

        logger.info(
            "Reward stream created",
            extra={
                "event": "staking.stream_created",
                "staking": self.address[:10],
                "stream_id": stream_id,
                "token": stream.reward_token.symbol,
                "budget": stream.budget,
            }
        )
        return stream

    def cancel_stream_proposal(self, caller: str, stream_id: int) -> None:
        with self._lock:
            self._require_initialized()
            self._require_rewards_admin(caller)
            stream = self.streams.get(stream_id)
            if stream is None:
                raise UnknownStreamError(f"Unknown reward stream {stream_id}", details={"stream_id": stream_id})
            if stream.status is not StreamStatus.PROPOSED:
                raise StateError(f"Stream {stream_id} is {stream.status.value}, not proposed")
            stream.status = StreamStatus.CANCELLED
            self.events.emit(
                STREAM_PROPOSAL_CANCELLED,
                self.address,
                account=stream.owner,
                timestamp=self._now(),
                stream_id=stream_id,
            )

    # ==================== Accounting Views ====================

    def active_locks_of(self, account: str) -> list[Lock]:
        with self._lock:
            return [
                self.locks[i] for i in self.account_locks.get(account.lower(), [])
                if self.locks[i].is_active
            ]

    def reward_reserve(self, token: ERC20Token | str) -> int:
        """Funded, unpaid rewards of all active streams paying ``token``."""
        address = token.address if isinstance(token, ERC20Token) else token.lower()
        with self._lock:
            return sum(s.reserve for s in self.streams.values() if s.reward_token.address == address)

    def liabilities(self, token: ERC20Token | str) -> int:
        """Vault balance this instance accounts for in ``token``."""
        address = token.address if isinstance(token, ERC20Token) else token.lower()
        with self._lock:
            owed = self.reward_reserve(address)
            if self.base_token is not None and address == self.base_token.address:
                owed += self.total_principal + self.retained_penalties
            return owed

    # ==================== Template Hooks ====================

    def _validate_base_token(self, base_token: ERC20Token) -> None:
        """Reject base tokens this template cannot custody."""

    def _resolve_amount(self, amount: int, native_value: int) -> int:
        if native_value:
            raise ValidationError("This staking template does not accept native currency")
        return amount

    def _pull_principal(self, owner: str, amount: int, native_value: int) -> None:
        self.vault.deposit(self.address, self.base_token, owner, amount)

    def _release_principal(self, lock: Lock, amount: int) -> None:
        self.vault.withdraw(self.address, self.base_token, lock.owner, amount)

    # ==================== Internal Accounting ====================

    def _now(self) -> int:
        return int(self.time_provider())

    def _active_streams(self) -> list[RewardStream]:
        return [s for s in self.streams.values() if s.status is StreamStatus.ACTIVE]

    def _projected_reward_per_share(self, stream: RewardStream, now: int) -> int:
        if now <= stream.last_update_time or self.total_stream_shares == 0:
            return stream.reward_per_share
        emitted = self.scheduler.scheduled_emission(stream.stream_id, stream.last_update_time, now)
        return stream.reward_per_share + (
            emitted * config.REWARD_PER_SHARE_PRECISION // self.total_stream_shares
        )

    def _checkpoint(self, now: int) -> None:
        """Advance every active stream accumulator to ``now``."""
        for stream in self._active_streams():
            if now > stream.last_update_time:
                stream.reward_per_share = self._projected_reward_per_share(stream, now)
                stream.last_update_time = now

    def _entitlement(self, lock: Lock, stream: RewardStream, reward_per_share: int) -> int:
        book = lock.rewards.get(stream.stream_id)
        paid = book.reward_per_share_paid if book else 0
        pending = book.pending if book else 0
        return pending + lock.stream_shares * (reward_per_share - paid) // config.REWARD_PER_SHARE_PRECISION

    def _settle_lock(self, lock: Lock) -> None:
        """Move accrued rewards of every active stream into the lock's pending balance."""
        for stream in self._active_streams():
            book = lock.rewards.setdefault(stream.stream_id, LockStreamRewards())
            book.pending = self._entitlement(lock, stream, stream.reward_per_share)
            book.reward_per_share_paid = stream.reward_per_share

    def _socialize_penalty(self, penalty: int) -> None:
        """
        Credit a penalty to the remaining stakers through the main stream.

        Must run after the withdrawing lock's shares have left the total.
        With no shares left the penalty is retained by the instance.
        """
        if not penalty:
            return
        main = self.streams.get(MAIN_STREAM_ID)
        if self.total_stream_shares == 0 or main is None or main.status is not StreamStatus.ACTIVE:
            self.retained_penalties += penalty
            return
        main.reward_per_share += penalty * config.REWARD_PER_SHARE_PRECISION // self.total_stream_shares
        main.penalty_credits += penalty

    def _apply_weights(self, lock: Lock, voting_power: int, stream_shares: int) -> None:
        """Replace a settled lock's weights, keeping aggregates and voting tokens in step."""
        self.total_stream_shares += stream_shares - lock.stream_shares
        self.total_voting_power += voting_power - lock.voting_power
        delta = voting_power - lock.voting_power
        if delta > 0:
            self.voting_token.mint(self.address, lock.owner, delta)
        elif delta < 0:
            self.voting_token.burn_from_holder(self.address, lock.owner, -delta)
        lock.voting_power = voting_power
        lock.stream_shares = stream_shares
        if self.metrics:
            self.metrics.record_shares(self.address, self.total_stream_shares)

    def _pay_reward(self, lock: Lock, stream: RewardStream, amount: int, now: int) -> None:
        self._checkpoint(now)
        self._settle_lock(lock)
        self.vault.withdraw(self.address, stream.reward_token, lock.owner, amount)
        book = lock.rewards[stream.stream_id]
        book.pending -= amount
        book.claimed += amount
        book.last_claim_time = now
        stream.total_claimed += amount

        self.events.emit(
            REWARD_CLAIMED,
            self.address,
            account=lock.owner,
            timestamp=now,
            lock_id=lock.lock_id,
            stream_id=stream.stream_id,
            reward_token=stream.reward_token.address,
            amount=amount,
        )
        if self.metrics:
            self.metrics.record_reward_claimed(self.address, stream.stream_id, amount)

        logger.info(
            "Rewards claimed",
            extra={
                "event": "staking.reward_claimed",
                "staking": self.address[:10],
                "lock_id": lock.lock_id,
                "stream_id": stream.stream_id,
                "amount": amount,
            }
        )

    # ==================== Guards ====================

    def _require_initialized(self) -> None:
        if not self.initialized:
            raise NotInitializedError(f"Staking {self.address} is not initialized")

    def _require_rewards_admin(self, caller: str) -> None:
        if caller.lower() != self.rewards_admin:
            raise UnauthorizedError(f"Caller {caller} is not the rewards admin")

    def _require_token_movement_allowed(self) -> None:
        if not self.vault.is_operator(self.address):
            raise UnauthorizedError(f"Staking {self.address} is no longer a vault operator")

    def _require_voting_adjustable(self, lock: Lock, new_voting_power: int) -> None:
        delta = new_voting_power - lock.voting_power
        if delta > 0 and not self.voting_token.is_minter(self.address):
            raise UnauthorizedError(f"Staking {self.address} cannot mint {self.voting_token.symbol}")
        if delta < 0:
            if not self.voting_token.is_minter(self.address):
                raise UnauthorizedError(f"Staking {self.address} cannot burn {self.voting_token.symbol}")
            held = self.voting_token.balance_of(lock.owner)
            if held < -delta:
                raise InsufficientBalanceError(
                    f"Owner holds {held} voting tokens, {-delta} must be returned",
                    details={"lock_id": lock.lock_id, "held": held},
                )

    def _get_lock(self, lock_id: int) -> Lock:
        lock = self.locks.get(lock_id)
        if lock is None:
            raise LockNotFoundError(f"Lock {lock_id} not found", details={"lock_id": lock_id})
        return lock

    def _get_owned_lock(self, caller: str, lock_id: int) -> Lock:
        lock = self._get_lock(lock_id)
        if lock.owner != caller.lower():
            raise NotLockOwnerError(
                f"Caller {caller} does not own lock {lock_id}",
                details={"lock_id": lock_id, "caller": caller.lower()},
            )
        return lock

    def _get_owned_active_lock(self, caller: str, lock_id: int) -> Lock:
        lock = self._get_owned_lock(caller, lock_id)
        if not lock.is_active:
            raise AlreadyWithdrawnError(f"Lock {lock_id} was already withdrawn", details={"lock_id": lock_id})
        return lock

    def _get_active_stream(self, stream_id: int) -> RewardStream:
        stream = self.streams.get(stream_id)
        if stream is None or stream.status is not StreamStatus.ACTIVE:
            raise UnknownStreamError(f"Unknown reward stream {stream_id}", details={"stream_id": stream_id})
        return stream

    def _active_lock_count(self, owner: str) -> int:
        return sum(1 for i in self.account_locks.get(owner, []) if self.locks[i].is_active)

    def _total_active_locks(self) -> int:
        return sum(1 for lock in self.locks.values() if lock.is_active)


def _require_positive(amount: int, what: str) -> None:
    if not isinstance(amount, int) or isinstance(amount, bool) or amount <= 0:
        raise ValidationError(f"{what} must be a positive integer, got {amount!r}")
