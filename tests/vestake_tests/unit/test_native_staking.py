"""
Tests for staking with a wrapped native base token.
"""

import pytest

from staking_env import ADMIN, NATIVE_STAKING, ONE_YEAR, STAKER_1, WEI
from vestake.core.staking_exceptions import ValidationError


@pytest.fixture
def native_staking(env):
    return env.create_staking(template_id=NATIVE_STAKING, base_token=env.wrapped)


def give_native(env, account, amount):
    env.native.mint(ADMIN, account, amount)


class TestNativeStaking:
    """Locks funded with native currency."""

    def test_native_lock_wraps_into_vault(self, env, native_staking, clock):
        give_native(env, STAKER_1, 100 * WEI)

        lock_id = native_staking.create_lock(STAKER_1, 0, clock.now() + ONE_YEAR, native_value=100 * WEI)

        lock = native_staking.locks[lock_id]
        assert lock.native
        assert lock.principal_amount == 100 * WEI
        assert env.native.balance_of(STAKER_1) == 0
        assert env.native.balance_of(env.wrapped.address) == env.wrapped.total_supply
        assert env.vault.balance_of(env.wrapped) == native_staking.liabilities(env.wrapped)
        assert env.wrapped.balance_of(native_staking.address) == 0

    def test_native_withdrawal_unwraps_to_owner(self, env, native_staking, clock):
        give_native(env, STAKER_1, 100 * WEI)
        lock_id = native_staking.create_lock(STAKER_1, 0, clock.now() + ONE_YEAR, native_value=100 * WEI)
        clock.advance(ONE_YEAR)

        receipt = native_staking.withdraw(STAKER_1, lock_id)

        assert receipt.returned_amount == 100 * WEI
        assert env.native.balance_of(STAKER_1) == 100 * WEI
        assert env.wrapped.balance_of(STAKER_1) == 0

    def test_early_native_withdrawal_keeps_penalty_wrapped(self, env, native_staking, clock):
        give_native(env, STAKER_1, 100 * WEI)
        lock_id = native_staking.create_lock(STAKER_1, 0, clock.now() + ONE_YEAR, native_value=100 * WEI)
        clock.advance(ONE_YEAR // 2)

        receipt = native_staking.withdraw(STAKER_1, lock_id)

        assert receipt.penalty > 0
        assert env.native.balance_of(STAKER_1) == 100 * WEI - receipt.penalty
        assert native_staking.retained_penalties == receipt.penalty
        assert env.vault.balance_of(env.wrapped) == native_staking.liabilities(env.wrapped)

    def test_wrapped_token_lock_behaves_like_plain(self, env, native_staking, clock):
        give_native(env, STAKER_1, 10 * WEI)
        env.wrapped.deposit(STAKER_1, 10 * WEI)
        env.wrapped.approve(STAKER_1, env.vault.address, 10 * WEI)

        lock_id = native_staking.create_lock(STAKER_1, 10 * WEI, clock.now() + 100)
        clock.advance(100)
        native_staking.withdraw(STAKER_1, lock_id)

        assert not native_staking.locks[lock_id].native
        assert env.wrapped.balance_of(STAKER_1) == 10 * WEI

    def test_increase_with_native(self, env, native_staking, clock):
        give_native(env, STAKER_1, 30 * WEI)
        lock_id = native_staking.create_lock(STAKER_1, 0, clock.now() + ONE_YEAR, native_value=10 * WEI)

        native_staking.increase_lock(STAKER_1, lock_id, 0, native_value=20 * WEI)

        assert native_staking.locks[lock_id].principal_amount == 30 * WEI

    def test_increase_must_match_lock_currency(self, env, native_staking, clock):
        give_native(env, STAKER_1, 30 * WEI)
        lock_id = native_staking.create_lock(STAKER_1, 0, clock.now() + ONE_YEAR, native_value=10 * WEI)

        with pytest.raises(ValidationError):
            native_staking.increase_lock(STAKER_1, lock_id, 5 * WEI)

    def test_amount_must_match_native_value(self, env, native_staking, clock):
        give_native(env, STAKER_1, 10 * WEI)

        with pytest.raises(ValidationError):
            native_staking.create_lock(STAKER_1, 5 * WEI, clock.now() + ONE_YEAR, native_value=10 * WEI)

        assert env.native.balance_of(STAKER_1) == 10 * WEI

    def test_plain_token_rejected_as_base(self, env):
        with pytest.raises(ValidationError):
            env.create_staking(template_id=NATIVE_STAKING, base_token=env.main_token)
