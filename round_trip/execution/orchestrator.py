"""
Swap Orchestrator
=================
Sequences one atomic round trip: buy, measure, guard, sell.

State machine:
    VALIDATING -> BUY_INVOKING -> BUY_VERIFYING -> SELL_INVOKING -> COMPLETED
    any non-terminal state -> ABORTED

The sell leg always sells what the buy leg actually delivered, measured as
the destination balance delta, never the requested amount_in.

Atomicity comes from the host's execution unit. When anything raises after
the buy leg landed, the host discards the buy leg's effects; this class only
signals failure.
"""

from __future__ import annotations

import time
from typing import Optional

from config.settings import Settings
from round_trip.execution.errors import (
    BalanceComputationFailed,
    InsufficientBalance,
    InvalidAmount,
    InvalidMinimumOut,
    InvalidVenue,
    SlippageExceeded,
    SwapError,
    VenueError,
    VenueInvocationFailed,
    ZeroReceived,
)
from round_trip.execution.host import ExecutionHost
from round_trip.execution.instruction_builder import SwapInstructionBuilder
from round_trip.execution.schemas import (
    U64_MAX,
    AccountLeg,
    ExecutionResult,
    LegDirection,
    SwapRequest,
    SwapState,
    VenueOrientation,
    VenueRef,
)
from round_trip.shared.system.logging import Logger


def validate_amounts(amount_in: int, min_out_buy: int, min_out_sell: int) -> None:
    """Local preconditions; must pass before anything touches the host."""
    if amount_in <= 0:
        raise InvalidAmount("amount_in must be greater than 0")
    if amount_in > U64_MAX:
        raise InvalidAmount(f"amount_in {amount_in} does not fit in u64")
    if min_out_buy <= 0 or min_out_sell <= 0:
        raise InvalidMinimumOut("minimum amounts out must be greater than 0")
    if min_out_buy > U64_MAX or min_out_sell > U64_MAX:
        raise InvalidMinimumOut("minimum amounts out must fit in u64")


def validate_venue(venue: VenueRef) -> None:
    missing = venue.missing()
    if missing:
        raise InvalidVenue(f"missing venue references: {', '.join(missing)}")


class SwapOrchestrator:
    """
    Runs round trips against a host.

    Usage:
        orchestrator = SwapOrchestrator(host)
        result = orchestrator.execute(1_000, 1, 1, venue, leg)

    With dry_run=True, preconditions and instruction building run as
    usual but nothing is invoked. The buy leg is assumed to deliver
    exactly min_out_buy.
    """

    def __init__(
        self,
        host: ExecutionHost,
        builder: Optional[SwapInstructionBuilder] = None,
        dry_run: Optional[bool] = None,
    ):
        self.host = host
        self.builder = builder or SwapInstructionBuilder(
            VenueOrientation.parse(Settings.VENUE_ORIENTATION)
        )
        self.dry_run = Settings.DRY_RUN if dry_run is None else dry_run
        self.state = SwapState.VALIDATING

        # Statistics
        self._calls = 0
        self._completed = 0
        self._aborted = 0

    # =========================================================================
    # PUBLIC API
    # =========================================================================

    def execute(
        self,
        amount_in: int,
        min_out_buy: int,
        min_out_sell: int,
        venue: VenueRef,
        accounts: AccountLeg,
    ) -> ExecutionResult:
        """
        Execute one round trip.

        Raises:
            SwapError: any failure; the call has no partial effect
        """
        start_time = time.time()
        self._calls += 1
        self.state = SwapState.VALIDATING

        try:
            validate_amounts(amount_in, min_out_buy, min_out_sell)
            validate_venue(venue)

            with self.host.execution_unit():
                result = self._run(amount_in, min_out_buy, min_out_sell, venue, accounts)

        except SwapError as e:
            if e.state is None:
                e.state = self.state
            self.state = SwapState.ABORTED
            self._aborted += 1
            Logger.error(f"[ROUNDTRIP] Aborted in {e.state.value}: {e}")
            raise
        except Exception:
            self.state = SwapState.ABORTED
            self._aborted += 1
            raise

        self._completed += 1
        latency_ms = (time.time() - start_time) * 1000
        result = ExecutionResult(
            realized_buy_output=result.realized_buy_output,
            realized_net_change=result.realized_net_change,
            state=SwapState.COMPLETED,
            dry_run=result.dry_run,
            instructions=result.instructions,
            latency_ms=latency_ms,
        )

        tag = "Dry run planned" if self.dry_run else "Round trip complete"
        Logger.success(
            f"[ROUNDTRIP] {tag}: received={result.realized_buy_output} "
            f"net={result.realized_net_change:+d} ({latency_ms:.1f}ms)"
        )
        return result

    def execute_request(
        self,
        request: SwapRequest,
        venue: VenueRef,
        accounts: AccountLeg,
    ) -> ExecutionResult:
        return self.execute(
            request.amount_in,
            request.min_out_buy,
            request.min_out_sell,
            venue,
            accounts,
        )

    def get_stats(self) -> dict:
        return {
            "calls": self._calls,
            "completed": self._completed,
            "aborted": self._aborted,
            "dry_run": self.dry_run,
        }

    # =========================================================================
    # STATES
    # =========================================================================

    def _run(
        self,
        amount_in: int,
        min_out_buy: int,
        min_out_sell: int,
        venue: VenueRef,
        accounts: AccountLeg,
    ) -> ExecutionResult:
        source_before = self.host.get_balance(accounts.source)
        if source_before < amount_in:
            raise InsufficientBalance(
                f"source balance {source_before} is below amount_in {amount_in}"
            )

        # BUY
        self.state = SwapState.BUY_INVOKING
        before = self.host.get_balance(accounts.destination)
        buy_ix = self.builder.build_buy(venue, accounts, amount_in, min_out_buy)

        if self.dry_run:
            Logger.info(f"[ROUNDTRIP] Dry run: buy {amount_in} (min {min_out_buy}) not sent")
            received = min_out_buy
            self.state = SwapState.BUY_VERIFYING
        else:
            self._invoke(buy_ix, LegDirection.BUY)

            self.state = SwapState.BUY_VERIFYING
            after = self.host.get_balance(accounts.destination)
            received = self._received(before, after)
            self._check_received(received, min_out_buy)

        # SELL
        self.state = SwapState.SELL_INVOKING
        sell_ix = self.builder.build_sell(venue, accounts, received, min_out_sell)

        if self.dry_run:
            Logger.info(f"[ROUNDTRIP] Dry run: sell {received} (min {min_out_sell}) not sent")
            net_change = 0
        else:
            self._invoke(sell_ix, LegDirection.SELL)
            final_balance = self.host.get_balance(accounts.source)
            net_change = final_balance - source_before

        self.state = SwapState.COMPLETED
        return ExecutionResult(
            realized_buy_output=received,
            realized_net_change=net_change,
            dry_run=self.dry_run,
            instructions=(buy_ix, sell_ix),
        )

    # =========================================================================
    # GUARDS
    # =========================================================================

    @staticmethod
    def _received(before: int, after: int) -> int:
        if after < before:
            raise BalanceComputationFailed(
                f"destination balance went down across the buy leg ({before} -> {after})"
            )
        return after - before

    @staticmethod
    def _check_received(received: int, min_out_buy: int) -> None:
        if received == 0:
            raise ZeroReceived("buy leg delivered zero tokens")
        if received < min_out_buy:
            raise SlippageExceeded(
                f"received {received}, minimum was {min_out_buy}",
                received=received,
                minimum=min_out_buy,
            )

    def _invoke(self, instruction, direction: LegDirection) -> None:
        Logger.info(f"[ROUNDTRIP] Invoking {direction.value} leg on {str(instruction.program_id)[:8]}...")
        try:
            self.host.invoke(instruction)
        except VenueError as e:
            raise VenueInvocationFailed(
                f"{direction.value} leg rejected by venue: {e}", leg=direction.value
            ) from e
