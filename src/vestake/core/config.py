"""
vestake Configuration

Engine constants and runtime settings, read once from ``VESTAKE_*``
environment variables with safe defaults.

Integer constants feed directly into the weight, penalty and reward
formulas; changing them changes every derived balance, so they are
validated at import time.
"""

from __future__ import annotations

import logging
import os

logger = logging.getLogger(__name__)


class ConfigurationError(Exception):
    """Raised when required configuration is missing or invalid."""
    pass


def _get_positive_int(env_var: str, default: int) -> int:
    """Read a strictly positive integer from the environment."""
    raw = os.getenv(env_var, "").strip()
    if not raw:
        return default
    try:
        value = int(raw)
    except ValueError as exc:
        raise ConfigurationError(f"{env_var} must be an integer, got {raw!r}") from exc
    if value <= 0:
        raise ConfigurationError(f"{env_var} must be positive, got {value}")
    if value != default:
        logger.warning(
            "Engine constant %s overridden from environment",
            env_var,
            extra={"event": "config.constant_overridden", "env_var": env_var, "value": value},
        )
    return value


# Logging
LOG_LEVEL = os.getenv("VESTAKE_LOG_LEVEL", "INFO").strip().upper()
LOG_FILE = os.getenv("VESTAKE_LOG_FILE", "").strip() or None
LOG_ENVIRONMENT = os.getenv("VESTAKE_ENVIRONMENT", "production").strip()

if LOG_LEVEL not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
    raise ConfigurationError(f"VESTAKE_LOG_LEVEL has unknown level {LOG_LEVEL!r}")

# stream_shares = (amount + lock_share_coef * voting_power / STREAM_SHARE_DENOMINATOR) * weight
STREAM_SHARE_DENOMINATOR = _get_positive_int("VESTAKE_STREAM_SHARE_DENOMINATOR", 1000)

# penalty = principal * penalty_weight * multiplier / (PENALTY_DENOMINATOR * tau)
PENALTY_DENOMINATOR = _get_positive_int("VESTAKE_PENALTY_DENOMINATOR", 100_000)

# Fixed-point scale of the per-stream reward-per-share accumulator
REWARD_PER_SHARE_PRECISION = _get_positive_int("VESTAKE_RPS_PRECISION", 10**18)

# Hard ceiling on StakingProperties.max_locks
MAX_LOCKS_CEILING = _get_positive_int("VESTAKE_MAX_LOCKS_CEILING", 100)

ZERO_ADDRESS = "0x" + "0" * 40
