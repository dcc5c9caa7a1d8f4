"""
Mock Raydium Venue
==================
Scripted stand-in for a Raydium AMM v4 program, registered on a LedgerHost.

It does no pricing: each call pays out the next scripted amount.
"""

from typing import List, Optional, Sequence

from round_trip.execution.errors import VenueError
from round_trip.execution.instruction_builder import SWAP_ACCOUNT_COUNT, SWAP_BASE_IN, decode_swap_data


USER_SOURCE_INDEX = 15
USER_DESTINATION_INDEX = 16


class MockRaydiumVenue:
    """
    Usage:
        venue = MockRaydiumVenue(outputs=[950, 970])
        host.register_venue(program_id, venue)
    """

    def __init__(
        self,
        outputs: Sequence[int],
        enforce_min_out: bool = True,
        fail_on_calls: Sequence[int] = (),
    ):
        self.outputs: List[int] = list(outputs)
        self.enforce_min_out = enforce_min_out
        self.fail_on_calls = set(fail_on_calls)
        self.calls = []  # SwapData per call, accepted or not

    def __call__(self, ledger, instruction) -> None:
        call_index = len(self.calls)
        swap = decode_swap_data(bytes(instruction.data))
        self.calls.append(swap)

        if call_index in self.fail_on_calls:
            raise VenueError(f"scripted failure on call {call_index}")
        if swap.opcode != SWAP_BASE_IN:
            raise VenueError(f"unsupported opcode {swap.opcode}")
        if len(instruction.accounts) != SWAP_ACCOUNT_COUNT:
            raise VenueError(f"expected {SWAP_ACCOUNT_COUNT} accounts, got {len(instruction.accounts)}")

        source = instruction.accounts[USER_SOURCE_INDEX].pubkey
        destination = instruction.accounts[USER_DESTINATION_INDEX].pubkey
        output = self._next_output()

        if self.enforce_min_out and output < swap.min_out:
            raise VenueError(f"exceeds desired slippage limit ({output} < {swap.min_out})")

        ledger.debit(source, swap.amount)
        ledger.credit(destination, output)

    def _next_output(self) -> int:
        if not self.outputs:
            raise VenueError("no scripted output left")
        return self.outputs.pop(0)

    @property
    def amounts_in(self) -> List[int]:
        return [call.amount for call in self.calls]


class ShrinkingDestinationVenue:
    """Misbehaving venue that takes tokens out of the destination account."""

    def __init__(self, drain: int):
        self.drain = drain

    def __call__(self, ledger, instruction) -> None:
        destination = instruction.accounts[USER_DESTINATION_INDEX].pubkey
        ledger.debit(destination, self.drain)


class PanickingVenue:
    """Fails the test if anything reaches it."""

    def __init__(self):
        self.invoked: Optional[object] = None

    def __call__(self, ledger, instruction) -> None:
        self.invoked = instruction
        raise AssertionError("venue must not be invoked")
