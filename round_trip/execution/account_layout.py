"""
SPL Token Account Layout
========================
Typed decoding of the 165-byte SPL token account.

The only place in the project that knows where `amount` lives in raw
account data. Everything else asks a TokenAccountState for balance().
"""

from __future__ import annotations

import struct
from dataclasses import dataclass
from typing import Optional

from solders.pubkey import Pubkey

from round_trip.shared.system.logging import Logger


# mint, owner, amount, delegate(COption), state, is_native(COption<u64>),
# delegated_amount, close_authority(COption)
TOKEN_ACCOUNT_LAYOUT = struct.Struct("<32s32sQI32sBIQQI32s")
TOKEN_ACCOUNT_SIZE = TOKEN_ACCOUNT_LAYOUT.size  # 165

STATE_UNINITIALIZED = 0
STATE_INITIALIZED = 1
STATE_FROZEN = 2


@dataclass(frozen=True)
class TokenAccountState:
    """Decoded SPL token account."""

    mint: Pubkey
    owner: Pubkey
    amount: int
    delegate: Optional[Pubkey] = None
    state: int = STATE_INITIALIZED
    is_native: Optional[int] = None
    delegated_amount: int = 0
    close_authority: Optional[Pubkey] = None

    def balance(self) -> int:
        return self.amount

    @property
    def is_initialized(self) -> bool:
        return self.state != STATE_UNINITIALIZED

    def encode(self) -> bytes:
        """Serialize back into the on-chain layout."""
        empty = bytes(32)
        return TOKEN_ACCOUNT_LAYOUT.pack(
            bytes(self.mint),
            bytes(self.owner),
            self.amount,
            1 if self.delegate is not None else 0,
            bytes(self.delegate) if self.delegate is not None else empty,
            self.state,
            1 if self.is_native is not None else 0,
            self.is_native or 0,
            self.delegated_amount,
            1 if self.close_authority is not None else 0,
            bytes(self.close_authority) if self.close_authority is not None else empty,
        )


class TokenAccountLayout:
    """Decoder for raw SPL token account data."""

    SIZE = TOKEN_ACCOUNT_SIZE

    @staticmethod
    def decode(data: bytes) -> TokenAccountState:
        """
        Decode raw account data.

        Token-2022 accounts carry extensions after the base layout; only
        the first 165 bytes are read.

        Raises:
            ValueError: data shorter than the base layout
        """
        if len(data) < TOKEN_ACCOUNT_SIZE:
            raise ValueError(
                f"token account data too short: {len(data)} < {TOKEN_ACCOUNT_SIZE}"
            )

        (
            mint,
            owner,
            amount,
            delegate_tag,
            delegate,
            state,
            native_tag,
            native_amount,
            delegated_amount,
            close_tag,
            close_authority,
        ) = TOKEN_ACCOUNT_LAYOUT.unpack_from(data, 0)

        return TokenAccountState(
            mint=Pubkey(mint),
            owner=Pubkey(owner),
            amount=amount,
            delegate=Pubkey(delegate) if delegate_tag else None,
            state=state,
            is_native=native_amount if native_tag else None,
            delegated_amount=delegated_amount,
            close_authority=Pubkey(close_authority) if close_tag else None,
        )


class RpcBalanceReader:
    """
    Balance reader backed by a solana-py Client.

    Every call goes to the RPC node, so reads always reflect the latest
    state at the configured commitment.

    With missing_as_zero=True an account that does not exist yet (an
    associated token account the submitter would create) reads as 0.
    """

    def __init__(self, rpc_client, commitment=None, missing_as_zero: bool = False):
        self.rpc = rpc_client
        self.commitment = commitment
        self.missing_as_zero = missing_as_zero

    def get_account(self, account: Pubkey) -> TokenAccountState:
        resp = self.rpc.get_account_info(account, commitment=self.commitment)
        if resp.value is None:
            raise LookupError(f"token account {account} not found")
        return TokenAccountLayout.decode(bytes(resp.value.data))

    def get_balance(self, account: Pubkey) -> int:
        try:
            state = self.get_account(account)
        except LookupError:
            if not self.missing_as_zero:
                raise
            Logger.debug(f"[LEDGER] {str(account)[:8]}... not created yet, balance=0")
            return 0
        Logger.debug(f"[LEDGER] {str(account)[:8]}... balance={state.amount}")
        return state.balance()

    def exists(self, account: Pubkey) -> bool:
        resp = self.rpc.get_account_info(account, commitment=self.commitment)
        return resp.value is not None
