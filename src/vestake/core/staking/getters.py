"""
Read-only views over staking instances.

Every call takes its snapshot under the instance lock, so a result that
covers several locks or streams reflects a single point between
operations.
"""

from __future__ import annotations

from dataclasses import dataclass

from ..staking_exceptions import UnknownStreamError
from .staking import Lock, RewardStream, StakingCore


@dataclass(frozen=True)
class LockView:
    lock_id: int
    owner: str
    principal_amount: int
    lock_start: int
    unlock_time: int
    voting_power: int
    stream_shares: int
    withdrawn: bool
    native: bool
    returned_amount: int
    penalty: int


@dataclass(frozen=True)
class StreamView:
    stream_id: int
    owner: str
    reward_token: str
    status: str
    schedule_times: tuple[int, ...]
    cumulative_rewards: tuple[int, ...]
    budget: int
    total_claimed: int
    penalty_credits: int
    reward_per_share: int
    last_update_time: int


def _lock_view(lock: Lock) -> LockView:
    return LockView(
        lock_id=lock.lock_id,
        owner=lock.owner,
        principal_amount=lock.principal_amount,
        lock_start=lock.lock_start,
        unlock_time=lock.unlock_time,
        voting_power=lock.voting_power,
        stream_shares=lock.stream_shares,
        withdrawn=not lock.is_active,
        native=lock.native,
        returned_amount=lock.returned_amount,
        penalty=lock.penalty,
    )


def _stream_view(stream: RewardStream) -> StreamView:
    return StreamView(
        stream_id=stream.stream_id,
        owner=stream.owner,
        reward_token=stream.reward_token.address,
        status=stream.status.value,
        schedule_times=stream.schedule.times,
        cumulative_rewards=stream.schedule.cumulative,
        budget=stream.budget,
        total_claimed=stream.total_claimed,
        penalty_credits=stream.penalty_credits,
        reward_per_share=stream.reward_per_share,
        last_update_time=stream.last_update_time,
    )


class StakingGettersHelper:
    """Stateless query helper for staking instances."""

    def get_lock(self, instance: StakingCore, lock_id: int) -> LockView:
        with instance.state_lock:
            return _lock_view(instance._get_lock(lock_id))

    def get_total_stream_shares(self, instance: StakingCore) -> int:
        with instance.state_lock:
            return instance.total_stream_shares

    def get_account_locks(
        self, instance: StakingCore, account: str, include_withdrawn: bool = False
    ) -> list[LockView]:
        """Locks owned by ``account``, oldest first."""
        with instance.state_lock:
            locks = [instance.locks[i] for i in instance.account_locks.get(account.lower(), [])]
            return [_lock_view(lock) for lock in locks if include_withdrawn or lock.is_active]

    def get_account_voting_power(self, instance: StakingCore, account: str) -> int:
        with instance.state_lock:
            return sum(lock.voting_power for lock in instance.active_locks_of(account))

    def get_stream(self, instance: StakingCore, stream_id: int) -> StreamView:
        with instance.state_lock:
            stream = instance.streams.get(stream_id)
            if stream is None:
                raise UnknownStreamError(f"Unknown reward stream {stream_id}", details={"stream_id": stream_id})
            return _stream_view(stream)

    def get_streams(self, instance: StakingCore) -> list[StreamView]:
        with instance.state_lock:
            return [_stream_view(instance.streams[i]) for i in sorted(instance.streams)]

    def get_pending_rewards(self, instance: StakingCore, lock_id: int, stream_id: int) -> int:
        return instance.pending_rewards(lock_id, stream_id)
