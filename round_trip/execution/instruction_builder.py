"""
Swap Instruction Builder
========================
Pure, deterministic Raydium AMM v4 swap instruction building.

100% testable without RPC or wallet connections.

Wire format (per leg):
    [opcode: u8][amount: u64 LE][min_out: u64 LE]   (17 bytes, no padding)

Account order (buy leg, 18 accounts):
    token program, amm, amm authority, open orders, target orders,
    pool coin vault, pool pc vault, market program, market, bids, asks,
    event queue, market coin vault, market pc vault, vault signer,
    user source, user destination, user owner

The venue rejects any other order; nothing here can detect that locally.
"""

from __future__ import annotations

import struct
from typing import List, NamedTuple

from solders.instruction import AccountMeta, Instruction
from spl.token.constants import TOKEN_PROGRAM_ID

from round_trip.execution.schemas import (
    U64_MAX,
    AccountLeg,
    LegDirection,
    VenueOrientation,
    VenueRef,
)
from round_trip.shared.system.logging import Logger


SWAP_BASE_IN = 9
SWAP_DATA_LAYOUT = struct.Struct("<BQQ")
SWAP_ACCOUNT_COUNT = 18


class SwapData(NamedTuple):
    opcode: int
    amount: int
    min_out: int


def encode_swap_data(opcode: int, amount: int, min_out: int) -> bytes:
    """Pack the 17-byte swap payload."""
    if not 0 <= amount <= U64_MAX or not 0 <= min_out <= U64_MAX:
        raise ValueError(f"amount/min_out must fit in u64 (got {amount}, {min_out})")
    return SWAP_DATA_LAYOUT.pack(opcode, amount, min_out)


def decode_swap_data(data: bytes) -> SwapData:
    """Unpack a swap payload produced by encode_swap_data()."""
    if len(data) != SWAP_DATA_LAYOUT.size:
        raise ValueError(f"swap payload must be {SWAP_DATA_LAYOUT.size} bytes, got {len(data)}")
    return SwapData(*SWAP_DATA_LAYOUT.unpack(data))


class SwapInstructionBuilder:
    """
    Builds outbound swap instructions for both legs of a round trip.

    This class contains NO side effects. It only arranges addresses and
    packs numbers.

    Usage:
        builder = SwapInstructionBuilder()
        buy_ix = builder.build_buy(venue, leg, amount_in, min_out_buy)
        sell_ix = builder.build_sell(venue, leg, received, min_out_sell)
    """

    def __init__(self, orientation: VenueOrientation = VenueOrientation.FIXED):
        self.orientation = orientation

    def build(
        self,
        opcode: int,
        venue: VenueRef,
        leg: AccountLeg,
        amount: int,
        min_out: int,
        direction: LegDirection = LegDirection.BUY,
    ) -> Instruction:
        """
        Build one swap instruction.

        `leg` is used as given: callers pass the already reversed leg for the
        sell direction (see build_sell). `direction` only matters for a
        MIRRORED venue, where the pool and book sides flip on the sell leg.
        """
        accounts = self.account_metas(venue, leg, direction)
        data = encode_swap_data(opcode, amount, min_out)

        Logger.debug(
            f"[BUILDER] {direction.value} ix: opcode={opcode} amount={amount} "
            f"min_out={min_out} accounts={len(accounts)}"
        )

        return Instruction(venue.program_id, data, accounts)

    def build_buy(self, venue: VenueRef, leg: AccountLeg, amount_in: int, min_out: int) -> Instruction:
        return self.build(SWAP_BASE_IN, venue, leg, amount_in, min_out, LegDirection.BUY)

    def build_sell(self, venue: VenueRef, buy_leg: AccountLeg, amount: int, min_out: int) -> Instruction:
        """Sell back along the buy leg, reversed."""
        return self.build(
            SWAP_BASE_IN, venue, buy_leg.reversed(), amount, min_out, LegDirection.SELL
        )

    def account_metas(
        self,
        venue: VenueRef,
        leg: AccountLeg,
        direction: LegDirection = LegDirection.BUY,
    ) -> List[AccountMeta]:
        """Ordered account list for one leg."""
        coin_vault, pc_vault = venue.pool_coin_vault, venue.pool_pc_vault
        bids, asks = venue.market_bids, venue.market_asks

        if direction == LegDirection.SELL and self.orientation == VenueOrientation.MIRRORED:
            coin_vault, pc_vault = pc_vault, coin_vault
            bids, asks = asks, bids

        return [
            AccountMeta(TOKEN_PROGRAM_ID, is_signer=False, is_writable=False),
            AccountMeta(venue.amm_id, is_signer=False, is_writable=True),
            AccountMeta(venue.amm_authority, is_signer=False, is_writable=False),
            AccountMeta(venue.amm_open_orders, is_signer=False, is_writable=True),
            AccountMeta(venue.amm_target_orders, is_signer=False, is_writable=True),
            AccountMeta(coin_vault, is_signer=False, is_writable=True),
            AccountMeta(pc_vault, is_signer=False, is_writable=True),
            AccountMeta(venue.market_program_id, is_signer=False, is_writable=False),
            AccountMeta(venue.market_id, is_signer=False, is_writable=True),
            AccountMeta(bids, is_signer=False, is_writable=True),
            AccountMeta(asks, is_signer=False, is_writable=True),
            AccountMeta(venue.market_event_queue, is_signer=False, is_writable=True),
            AccountMeta(venue.market_coin_vault, is_signer=False, is_writable=True),
            AccountMeta(venue.market_pc_vault, is_signer=False, is_writable=True),
            AccountMeta(venue.market_vault_signer, is_signer=False, is_writable=False),
            AccountMeta(leg.source, is_signer=False, is_writable=True),
            AccountMeta(leg.destination, is_signer=False, is_writable=True),
            AccountMeta(leg.owner, is_signer=True, is_writable=False),
        ]
