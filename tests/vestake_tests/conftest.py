"""
Shared fixtures for staking engine tests.
"""

import sys
from pathlib import Path

import pytest

# Make staking_env importable from every test subdirectory
sys.path.insert(0, str(Path(__file__).parent))

from staking_env import ManualClock, StakingEnv  # noqa: E402


@pytest.fixture
def clock():
    return ManualClock()


@pytest.fixture
def env(clock):
    """Vault, tokens and an initialized factory with both templates registered."""
    return StakingEnv(clock)


@pytest.fixture
def staking(env):
    """A staking instance on the main token with a one-year main stream."""
    return env.create_staking()
