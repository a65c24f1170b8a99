"""
Voting-escrow staking.

This module provides:
- StakingCore: Lock ledger with voting power, stream shares and penalties
- NativeStakingCore: Template that wraps native currency into the base token
- RewardStreamScheduler: Piecewise-linear reward emission schedules
- Vault: Multi-token custody for staking instances
- StakingFactory: Template registry and instance deployment
- StakingGettersHelper: Consistent read-only views
"""

from .factory import StakingFactory, template_key
from .getters import LockView, StakingGettersHelper, StreamView
from .native_staking import NativeStakingCore
from .scheduler import RewardSchedule, RewardStreamScheduler
from .staking import (
    MAIN_STREAM_ID,
    Lock,
    LockStatus,
    RewardStream,
    StakingCore,
    StreamStatus,
    WithdrawalReceipt,
)
from .vault import Vault
from .weights import (
    LockWeights,
    StakingProperties,
    WeightParameters,
    compute_early_withdrawal_penalty,
    compute_lock_weights,
    penalty_bounds,
)

__all__ = [
    # Core
    "StakingCore",
    "NativeStakingCore",
    "Lock",
    "LockStatus",
    "RewardStream",
    "StreamStatus",
    "WithdrawalReceipt",
    "MAIN_STREAM_ID",
    # Schedules
    "RewardSchedule",
    "RewardStreamScheduler",
    # Vault
    "Vault",
    # Factory
    "StakingFactory",
    "template_key",
    # Views
    "StakingGettersHelper",
    "LockView",
    "StreamView",
    # Formulas
    "WeightParameters",
    "StakingProperties",
    "LockWeights",
    "compute_lock_weights",
    "compute_early_withdrawal_penalty",
    "penalty_bounds",
]
