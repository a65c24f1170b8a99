"""
Staking engine metrics for Prometheus.

Counts lock lifecycle events, penalties and reward claims, and tracks the
total stream shares of each staking instance.
"""

from prometheus_client import REGISTRY, CollectorRegistry, Counter, Gauge


class StakingMetrics:
    """Metrics for staking instances and the vault."""

    def __init__(self, registry=None):
        self.registry = registry or REGISTRY

        self.locks_created = Counter(
            'vestake_locks_created_total',
            'Total number of locks created',
            ['instance'],
            registry=self.registry
        )

        self.locks_withdrawn = Counter(
            'vestake_locks_withdrawn_total',
            'Total number of locks withdrawn',
            ['instance', 'early'],
            registry=self.registry
        )

        self.penalties_collected = Counter(
            'vestake_penalties_collected_total',
            'Total early-withdrawal penalties retained in the vault, in base units',
            ['instance'],
            registry=self.registry
        )

        self.rewards_claimed = Counter(
            'vestake_rewards_claimed_total',
            'Total rewards paid out, in base units of the reward token',
            ['instance', 'stream'],
            registry=self.registry
        )

        self.total_stream_shares = Gauge(
            'vestake_total_stream_shares',
            'Current total stream shares of a staking instance',
            ['instance'],
            registry=self.registry
        )

        self.active_locks = Gauge(
            'vestake_active_locks',
            'Current number of active locks',
            ['instance'],
            registry=self.registry
        )

    def record_lock_created(self, instance: str, total_shares: int, active_locks: int) -> None:
        self.locks_created.labels(instance=instance).inc()
        self.total_stream_shares.labels(instance=instance).set(total_shares)
        self.active_locks.labels(instance=instance).set(active_locks)

    def record_lock_withdrawn(
        self, instance: str, penalty: int, total_shares: int, active_locks: int
    ) -> None:
        self.locks_withdrawn.labels(instance=instance, early=str(penalty > 0).lower()).inc()
        if penalty > 0:
            self.penalties_collected.labels(instance=instance).inc(penalty)
        self.total_stream_shares.labels(instance=instance).set(total_shares)
        self.active_locks.labels(instance=instance).set(active_locks)

    def record_shares(self, instance: str, total_shares: int) -> None:
        self.total_stream_shares.labels(instance=instance).set(total_shares)

    def record_reward_claimed(self, instance: str, stream_id: int, amount: int) -> None:
        self.rewards_claimed.labels(instance=instance, stream=str(stream_id)).inc(amount)


def create_isolated_metrics() -> StakingMetrics:
    """Create metrics bound to a private registry (tests, embedded use)."""
    return StakingMetrics(registry=CollectorRegistry())
