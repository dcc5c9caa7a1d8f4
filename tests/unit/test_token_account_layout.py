"""
Token Account Layout Unit Tests
===============================
Decoding raw SPL token accounts and reading balances over a mock RPC.
"""

import pytest
from solders.pubkey import Pubkey

from round_trip.execution.account_layout import (
    TOKEN_ACCOUNT_SIZE,
    RpcBalanceReader,
    TokenAccountLayout,
    TokenAccountState,
)
from tests.mocks import MockSolanaClient


@pytest.fixture
def account_state():
    return TokenAccountState(
        mint=Pubkey.new_unique(),
        owner=Pubkey.new_unique(),
        amount=123_456_789,
    )


class TestDecode:

    def test_size(self):
        assert TOKEN_ACCOUNT_SIZE == 165

    def test_amount_at_offset_64(self, account_state):
        data = account_state.encode()

        assert int.from_bytes(data[64:72], "little") == 123_456_789
        assert bytes(data[:32]) == bytes(account_state.mint)

    def test_decode_fields(self, account_state):
        decoded = TokenAccountLayout.decode(account_state.encode())

        assert decoded.mint == account_state.mint
        assert decoded.owner == account_state.owner
        assert decoded.balance() == 123_456_789
        assert decoded.delegate is None
        assert decoded.close_authority is None
        assert decoded.is_initialized

    def test_optional_fields(self):
        delegate = Pubkey.new_unique()
        state = TokenAccountState(
            mint=Pubkey.new_unique(),
            owner=Pubkey.new_unique(),
            amount=10,
            delegate=delegate,
            is_native=2_039_280,
            delegated_amount=5,
        )

        decoded = TokenAccountLayout.decode(state.encode())

        assert decoded.delegate == delegate
        assert decoded.is_native == 2_039_280
        assert decoded.delegated_amount == 5

    def test_extension_bytes_ignored(self, account_state):
        data = account_state.encode() + b"\x01" * 40

        assert TokenAccountLayout.decode(data).amount == 123_456_789

    def test_too_short(self):
        with pytest.raises(ValueError, match="too short"):
            TokenAccountLayout.decode(b"\x00" * 100)


class TestRpcBalanceReader:

    def test_get_balance(self, account_state):
        client = MockSolanaClient()
        account = Pubkey.new_unique()
        client.set_account(account, account_state.encode())

        assert RpcBalanceReader(client).get_balance(account) == 123_456_789

    def test_missing_account(self):
        reader = RpcBalanceReader(MockSolanaClient())

        with pytest.raises(LookupError):
            reader.get_balance(Pubkey.new_unique())

    def test_exists(self, account_state):
        client = MockSolanaClient()
        account = Pubkey.new_unique()
        client.set_account(account, account_state.encode())
        reader = RpcBalanceReader(client)

        assert reader.exists(account)
        assert not reader.exists(Pubkey.new_unique())

    def test_reads_latest_state(self, account_state):
        """Every read goes back to the node."""
        client = MockSolanaClient()
        account = Pubkey.new_unique()
        client.set_account(account, account_state.encode())
        reader = RpcBalanceReader(client)
        assert reader.get_balance(account) == 123_456_789

        updated = TokenAccountState(mint=account_state.mint, owner=account_state.owner, amount=1)
        client.set_account(account, updated.encode())

        assert reader.get_balance(account) == 1

    def test_missing_account_as_zero(self, account_state):
        client = MockSolanaClient()
        source = Pubkey.new_unique()
        client.set_account(source, account_state.encode())
        reader = RpcBalanceReader(client, missing_as_zero=True)

        assert reader.get_balance(Pubkey.new_unique()) == 0
        assert reader.get_balance(source) == 123_456_789

    def test_dry_run_with_uncreated_destination(self, account_state, venue):
        from round_trip.execution.host import ReadOnlyHost
        from round_trip.execution.orchestrator import SwapOrchestrator
        from round_trip.execution.schemas import AccountLeg

        client = MockSolanaClient()
        leg = AccountLeg(source=Pubkey.new_unique(), destination=Pubkey.new_unique(), owner=Pubkey.new_unique())
        client.set_account(leg.source, account_state.encode())
        host = ReadOnlyHost(RpcBalanceReader(client, missing_as_zero=True))

        result = SwapOrchestrator(host, dry_run=True).execute(1000, 900, 950, venue, leg)

        assert result.dry_run
        assert result.realized_buy_output == 900
