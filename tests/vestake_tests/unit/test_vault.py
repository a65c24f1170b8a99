"""
Tests for the multi-token custody vault.
"""

import pytest

from vestake.core.contracts import ERC20Token
from vestake.core.events import VAULT_DEPOSIT, VAULT_WITHDRAWAL
from vestake.core.staking.vault import Vault
from vestake.core.staking_exceptions import (
    AlreadySupportedError,
    InsufficientBalanceError,
    InsufficientVaultBalanceError,
    UnauthorizedError,
    UnsupportedTokenError,
    ValidationError,
)

ADMIN = "0xVaultAdmin"
OPERATOR = "0xOperator"
USER = "0xUser"


@pytest.fixture
def token():
    token = ERC20Token(name="Main Token", symbol="MTT", owner=ADMIN)
    token.mint(ADMIN, USER, 1_000 * 10**18)
    return token


@pytest.fixture
def vault(token):
    vault = Vault(admin=ADMIN)
    vault.add_supported_token(ADMIN, token)
    vault.add_rewards_operator(ADMIN, OPERATOR)
    return vault


class TestVaultAdministration:
    """Token support and operator management."""

    def test_admin_holds_admin_role(self, vault):
        assert vault.admin == ADMIN.lower()
        assert vault.address.startswith("0x") and len(vault.address) == 42

    def test_vaults_of_one_admin_get_distinct_addresses(self):
        assert Vault(admin=ADMIN).address != Vault(admin=ADMIN).address

    def test_add_supported_token_is_idempotent(self, vault, token):
        assert vault.add_supported_token(ADMIN, token) is False
        assert vault.is_supported_token(token)
        assert vault.is_supported_token(token.address.upper().replace("0X", "0x"))

    def test_strict_registration_rejects_duplicates(self, vault, token):
        with pytest.raises(AlreadySupportedError):
            vault.add_supported_token(ADMIN, token, strict=True)

    def test_only_admin_adds_tokens(self, vault):
        other = ERC20Token(name="Other", symbol="OTH", owner=ADMIN)

        with pytest.raises(UnauthorizedError):
            vault.add_supported_token(USER, other)
        assert not vault.is_supported_token(other)

    def test_only_admin_manages_operators(self, vault):
        with pytest.raises(UnauthorizedError):
            vault.add_rewards_operator(USER, USER)

        vault.remove_rewards_operator(ADMIN, OPERATOR)
        assert not vault.is_operator(OPERATOR)


class TestVaultDeposits:
    """Pulling tokens into custody."""

    def test_deposit_spends_allowance_granted_to_vault(self, vault, token):
        token.approve(USER, vault.address, 100)

        vault.deposit(OPERATOR, token, USER, 100)

        assert vault.balance_of(token) == 100
        assert token.balance_of(vault.address) == 100
        assert token.allowance(USER, vault.address) == 0

    def test_operator_deposits_own_tokens_directly(self, vault, token):
        token.transfer(USER, OPERATOR, 50)

        vault.deposit(OPERATOR, token, OPERATOR, 50)

        assert vault.balance_of(token) == 50
        assert token.balance_of(OPERATOR) == 0

    def test_deposit_without_allowance_fails_cleanly(self, vault, token):
        with pytest.raises(InsufficientBalanceError):
            vault.deposit(OPERATOR, token, USER, 100)

        assert vault.balance_of(token) == 0
        assert len(vault.events) == 0

    def test_non_operator_cannot_deposit(self, vault, token):
        token.approve(USER, vault.address, 100)

        with pytest.raises(UnauthorizedError):
            vault.deposit(USER, token, USER, 100)

    def test_unsupported_token_rejected(self, vault):
        other = ERC20Token(name="Other", symbol="OTH", owner=ADMIN)

        with pytest.raises(UnsupportedTokenError):
            vault.deposit(OPERATOR, other, USER, 1)

    @pytest.mark.parametrize("amount", [0, -5, 1.5, True])
    def test_amount_must_be_positive_integer(self, vault, token, amount):
        with pytest.raises(ValidationError):
            vault.deposit(OPERATOR, token, USER, amount)

    def test_deposit_event(self, vault, token):
        token.approve(USER, vault.address, 100)
        vault.deposit(OPERATOR, token, USER, 100)

        event = vault.events.last()
        assert event.event_type == VAULT_DEPOSIT
        assert event.account == USER.lower()
        assert event.data == {"token": token.address, "operator": OPERATOR.lower(), "amount": 100}


class TestVaultWithdrawals:
    """Releasing tokens from custody."""

    @pytest.fixture
    def funded_vault(self, vault, token):
        token.approve(USER, vault.address, 500)
        vault.deposit(OPERATOR, token, USER, 500)
        return vault

    def test_withdraw_to_recipient(self, funded_vault, token):
        funded_vault.withdraw(OPERATOR, token, "0xRecipient", 200)

        assert funded_vault.balance_of(token) == 300
        assert token.balance_of("0xRecipient") == 200
        assert funded_vault.events.last().event_type == VAULT_WITHDRAWAL

    def test_withdraw_limited_to_recorded_balance(self, funded_vault, token):
        # Tokens sent to the vault address outside deposit are not withdrawable
        token.transfer(USER, funded_vault.address, 100)

        with pytest.raises(InsufficientVaultBalanceError):
            funded_vault.withdraw(OPERATOR, token, USER, 501)

        assert funded_vault.balance_of(token) == 500
        assert token.balance_of(funded_vault.address) == 600

    def test_non_operator_cannot_withdraw(self, funded_vault, token):
        with pytest.raises(UnauthorizedError):
            funded_vault.withdraw(USER, token, USER, 1)

    def test_removed_operator_cannot_withdraw(self, funded_vault, token):
        funded_vault.remove_rewards_operator(ADMIN, OPERATOR)

        with pytest.raises(UnauthorizedError):
            funded_vault.withdraw(OPERATOR, token, USER, 1)
