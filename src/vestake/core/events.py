"""
Append-only event log shared by the factory, vault and staking instances.

Events are the externally observable trail of every state change. Each
event carries enough data to rebuild account-level lock state without
querying the emitting component.
"""

from __future__ import annotations

import threading
import time
from dataclasses import dataclass, field
from typing import Any, Iterator

STAKING_CREATED = "StakingCreated"
LOCK_CREATED = "LockCreated"
LOCK_EXTENDED = "LockExtended"
LOCK_INCREASED = "LockIncreased"
LOCK_WITHDRAWN = "LockWithdrawn"
REWARD_CLAIMED = "RewardClaimed"
STREAM_PROPOSED = "StreamProposed"
STREAM_CREATED = "StreamCreated"
STREAM_PROPOSAL_CANCELLED = "StreamProposalCancelled"
VAULT_DEPOSIT = "VaultDeposit"
VAULT_WITHDRAWAL = "VaultWithdrawal"


@dataclass(frozen=True)
class StakingEvent:
    """A single emitted event."""

    event_type: str
    address: str  # emitting component
    account: str  # indexed account, "" when not account-scoped
    data: dict[str, Any] = field(default_factory=dict)
    timestamp: float = field(default_factory=time.time)
    index: int = 0


class EventLog:
    """Append-only sequence of events.

    Entries can be read, filtered and iterated but never removed or
    replaced.
    """

    def __init__(self) -> None:
        self._events: list[StakingEvent] = []
        self._lock = threading.Lock()

    def emit(
        self,
        event_type: str,
        address: str,
        account: str = "",
        timestamp: float | None = None,
        **data: Any,
    ) -> StakingEvent:
        with self._lock:
            event = StakingEvent(
                event_type=event_type,
                address=address,
                account=account,
                data=dict(data),
                timestamp=time.time() if timestamp is None else timestamp,
                index=len(self._events),
            )
            self._events.append(event)
        return event

    def filter(self, event_type: str | None = None, account: str | None = None) -> list[StakingEvent]:
        """Return events matching the given type and/or account."""
        return [
            e for e in self._events
            if (event_type is None or e.event_type == event_type)
            and (account is None or e.account == account.lower())
        ]

    def since(self, index: int) -> list[StakingEvent]:
        """Return events emitted at or after ``index``."""
        return list(self._events[index:])

    def last(self) -> StakingEvent | None:
        return self._events[-1] if self._events else None

    def __iter__(self) -> Iterator[StakingEvent]:
        return iter(list(self._events))

    def __len__(self) -> int:
        return len(self._events)

    def __getitem__(self, index: int) -> StakingEvent:
        return self._events[index]
