"""
Lock weight and early-withdrawal penalty formulas.

All arithmetic is integer with truncating division. Durations beyond the
lock-weight period saturate: a lock can never earn more than the maximum
weight factor, and its voting power never exceeds its principal.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping

from pydantic import ValidationError as SchemaValidationError

from .. import config
from ..input_validation_schemas import StakingPropertiesInput, WeightParametersInput
from ..staking_exceptions import InvalidWeightBoundsError, ValidationError


@dataclass(frozen=True)
class WeightParameters:
    max_weight_shares: int
    min_weight_shares: int
    max_weight_penalty: int
    min_weight_penalty: int
    penalty_weight_multiplier: int


@dataclass(frozen=True)
class StakingProperties:
    tau: int
    lock_share_coef: int
    lock_period_coef: int
    max_locks: int


@dataclass(frozen=True)
class LockWeights:
    voting_power: int
    weight_factor: int
    stream_shares: int


def parse_weight_parameters(params: WeightParameters | Mapping[str, Any]) -> WeightParameters:
    """Validate weight parameters, raising InvalidWeightBoundsError."""
    raw = params.__dict__ if isinstance(params, WeightParameters) else dict(params)
    try:
        parsed = WeightParametersInput(**raw)
    except SchemaValidationError as exc:
        raise InvalidWeightBoundsError(
            f"Invalid weight parameters: {exc.errors()[0]['msg']}",
            details={"errors": exc.errors(include_url=False, include_context=False)},
        ) from exc
    return WeightParameters(**parsed.model_dump())


def parse_staking_properties(props: StakingProperties | Mapping[str, Any]) -> StakingProperties:
    """Validate staking properties, raising ValidationError."""
    raw = props.__dict__ if isinstance(props, StakingProperties) else dict(props)
    try:
        parsed = StakingPropertiesInput(**raw)
    except SchemaValidationError as exc:
        raise ValidationError(
            f"Invalid staking properties: {exc.errors()[0]['msg']}",
            details={"errors": exc.errors(include_url=False, include_context=False)},
        ) from exc
    return StakingProperties(**parsed.model_dump())


def compute_lock_weights(
    amount: int,
    lock_duration: int,
    weight: WeightParameters,
    props: StakingProperties,
) -> LockWeights:
    """
    Derive voting power and stream shares for a lock.

    voting_power = amount * d / lock_period_coef
    weight_factor = min_ws + (max_ws - min_ws) * d / lock_period_coef
    stream_shares = (amount + lock_share_coef * voting_power / 1000) * weight_factor

    where d is the lock duration capped at lock_period_coef.
    """
    if amount <= 0 or lock_duration <= 0:
        return LockWeights(voting_power=0, weight_factor=weight.min_weight_shares, stream_shares=0)

    period = props.lock_period_coef
    effective = min(lock_duration, period)

    voting_power = amount * effective // period
    weight_factor = weight.min_weight_shares + (
        (weight.max_weight_shares - weight.min_weight_shares) * effective // period
    )
    stream_shares = (
        amount + props.lock_share_coef * voting_power // config.STREAM_SHARE_DENOMINATOR
    ) * weight_factor

    return LockWeights(
        voting_power=voting_power,
        weight_factor=weight_factor,
        stream_shares=stream_shares,
    )


def penalty_weight(
    remaining: int,
    lock_duration: int,
    weight: WeightParameters,
) -> int:
    """Interpolate the penalty weight from min (no time left) to max (full duration left)."""
    if remaining <= 0 or lock_duration <= 0:
        return 0
    remaining = min(remaining, lock_duration)
    return weight.min_weight_penalty + (
        (weight.max_weight_penalty - weight.min_weight_penalty) * remaining // lock_duration
    )


def compute_early_withdrawal_penalty(
    principal: int,
    now: int,
    lock_start: int,
    unlock_time: int,
    weight: WeightParameters,
    props: StakingProperties,
) -> int:
    """
    Penalty forfeited when withdrawing ``principal`` at ``now``.

    Zero at or after ``unlock_time``; otherwise
    principal * penalty_weight * multiplier / (PENALTY_DENOMINATOR * tau),
    never more than the principal.
    """
    remaining = unlock_time - now
    if remaining <= 0:
        return 0
    coef = penalty_weight(remaining, unlock_time - lock_start, weight)
    penalty = principal * coef * weight.penalty_weight_multiplier // (
        config.PENALTY_DENOMINATOR * props.tau
    )
    return min(penalty, principal)


def penalty_bounds(principal: int, weight: WeightParameters, props: StakingProperties) -> tuple[int, int]:
    """Smallest and largest penalty an early withdrawal of ``principal`` can pay."""
    denominator = config.PENALTY_DENOMINATOR * props.tau
    low = principal * weight.min_weight_penalty * weight.penalty_weight_multiplier // denominator
    high = principal * weight.max_weight_penalty * weight.penalty_weight_multiplier // denominator
    return min(low, principal), min(high, principal)
