"""
Round Trip Submitter
====================
Client side of the on-chain round-trip program.

Builds the single `atomic_round_trip_swap` instruction (Anchor), wraps it in
a signed versioned transaction together with any missing associated token
accounts, simulates and sends it. The program itself runs the
SwapOrchestrator sequence on-chain, where the Solana runtime provides the
atomic execution unit.

Responsibilities:
- Local preconditions (same checks the program runs first)
- Venue allow-list enforcement
- ATA derivation / creation
- Transaction assembly, simulation, submission
"""

from __future__ import annotations

import hashlib
import json
import struct
import time
from dataclasses import dataclass, field
from typing import List, Optional

from solana.rpc.types import TxOpts
from solders.compute_budget import set_compute_unit_limit
from solders.instruction import AccountMeta, Instruction
from solders.keypair import Keypair
from solders.message import MessageV0
from solders.pubkey import Pubkey
from solders.transaction import VersionedTransaction
from spl.token.constants import TOKEN_PROGRAM_ID
from spl.token.instructions import create_associated_token_account, get_associated_token_address

from config.settings import Settings
from round_trip.execution.orchestrator import validate_amounts, validate_venue
from round_trip.execution.schemas import AccountLeg, SwapRequest, VenueRef
from round_trip.execution.venue_allowlist import VenueAllowList
from round_trip.shared.system.logging import Logger


ROUND_TRIP_DISCRIMINATOR = hashlib.sha256(b"global:atomic_round_trip_swap").digest()[:8]
ROUND_TRIP_ARGS = struct.Struct("<QQQ")


def encode_round_trip_data(request: SwapRequest) -> bytes:
    """Anchor discriminator followed by amount_in, min_out_buy, min_out_sell (u64 LE)."""
    return ROUND_TRIP_DISCRIMINATOR + ROUND_TRIP_ARGS.pack(
        request.amount_in, request.min_out_buy, request.min_out_sell
    )


def build_round_trip_instruction(
    program_id: Pubkey,
    request: SwapRequest,
    venue: VenueRef,
    leg: AccountLeg,
) -> Instruction:
    """Instruction for the on-chain program, accounts in its declared order."""
    accounts = [
        AccountMeta(venue.program_id, is_signer=False, is_writable=False),
        AccountMeta(venue.amm_id, is_signer=False, is_writable=True),
        AccountMeta(venue.amm_authority, is_signer=False, is_writable=False),
        AccountMeta(venue.amm_open_orders, is_signer=False, is_writable=True),
        AccountMeta(venue.amm_target_orders, is_signer=False, is_writable=True),
        AccountMeta(venue.pool_coin_vault, is_signer=False, is_writable=True),
        AccountMeta(venue.pool_pc_vault, is_signer=False, is_writable=True),
        AccountMeta(venue.market_program_id, is_signer=False, is_writable=False),
        AccountMeta(venue.market_id, is_signer=False, is_writable=True),
        AccountMeta(venue.market_bids, is_signer=False, is_writable=True),
        AccountMeta(venue.market_asks, is_signer=False, is_writable=True),
        AccountMeta(venue.market_event_queue, is_signer=False, is_writable=True),
        AccountMeta(venue.market_coin_vault, is_signer=False, is_writable=True),
        AccountMeta(venue.market_pc_vault, is_signer=False, is_writable=True),
        AccountMeta(venue.market_vault_signer, is_signer=False, is_writable=False),
        AccountMeta(leg.source, is_signer=False, is_writable=True),
        AccountMeta(leg.destination, is_signer=False, is_writable=True),
        AccountMeta(leg.owner, is_signer=True, is_writable=True),
        AccountMeta(TOKEN_PROGRAM_ID, is_signer=False, is_writable=False),
    ]
    return Instruction(program_id, encode_round_trip_data(request), accounts)


def load_keypair(secret: str) -> Keypair:
    """Keypair from a base58 string or a JSON byte array."""
    secret = secret.strip()
    if secret.startswith("["):
        return Keypair.from_bytes(bytes(json.loads(secret)))
    return Keypair.from_base58_string(secret)


@dataclass(frozen=True)
class SubmitterConfig:
    """Configuration for round-trip submission."""

    simulate_first: bool = True
    skip_preflight: bool = False
    compute_unit_limit: int = 400_000


@dataclass
class SubmissionResult:
    """Result of one submission attempt."""

    success: bool
    signature: Optional[str] = None
    error: Optional[str] = None
    logs: List[str] = field(default_factory=list)
    instruction_count: int = 0
    latency_ms: float = 0.0


def batch_summary(results: List[SubmissionResult]) -> dict:
    """Totals for a batch of submissions."""
    succeeded = sum(1 for r in results if r.success)
    total = len(results)
    return {
        "total": total,
        "succeeded": succeeded,
        "failed": total - succeeded,
        "success_rate": (succeeded / total * 100) if total else 0.0,
    }


class RoundTripSubmitter:
    """
    Sends round trips to the on-chain program.

    Usage:
        submitter = RoundTripSubmitter(Client(Settings.RPC_URL), keypair)
        result = submitter.submit(request, venue, base_mint, quote_mint)
    """

    def __init__(
        self,
        rpc_client,
        keypair: Keypair,
        program_id: Optional[Pubkey] = None,
        allowlist: Optional[VenueAllowList] = None,
        config: Optional[SubmitterConfig] = None,
    ):
        self.rpc = rpc_client
        self.keypair = keypair
        self.payer = keypair.pubkey()
        self.program_id = program_id or Pubkey.from_string(Settings.ATOMIC_SWAP_PROGRAM_ID)
        self.allowlist = allowlist if allowlist is not None else VenueAllowList.from_settings()
        self.config = config or SubmitterConfig(
            simulate_first=Settings.SIMULATE_BEFORE_SEND,
            compute_unit_limit=Settings.COMPUTE_UNIT_LIMIT,
        )

        # Statistics
        self._submissions = 0
        self._landed = 0
        self._failures = 0

    def user_leg(self, base_mint: Pubkey, quote_mint: Pubkey) -> AccountLeg:
        """Buy leg between the payer's ATAs: spend base, receive quote."""
        return AccountLeg(
            source=get_associated_token_address(self.payer, base_mint),
            destination=get_associated_token_address(self.payer, quote_mint),
            owner=self.payer,
        )

    def prepare(
        self,
        request: SwapRequest,
        venue: VenueRef,
        base_mint: Pubkey,
        quote_mint: Pubkey,
    ) -> List[Instruction]:
        """
        Instruction list for one round trip.

        Raises:
            SwapError: local precondition or allow-list failure
        """
        validate_amounts(request.amount_in, request.min_out_buy, request.min_out_sell)
        validate_venue(venue)
        self.allowlist.check(venue)

        leg = self.user_leg(base_mint, quote_mint)
        instructions = [set_compute_unit_limit(self.config.compute_unit_limit)]

        for ata, mint in ((leg.source, base_mint), (leg.destination, quote_mint)):
            if self.rpc.get_account_info(ata).value is None:
                Logger.info(f"[SUBMIT] Creating ATA {str(ata)[:8]}... for mint {str(mint)[:8]}...")
                instructions.append(create_associated_token_account(self.payer, self.payer, mint))

        instructions.append(build_round_trip_instruction(self.program_id, request, venue, leg))
        return instructions

    def build_transaction(self, instructions: List[Instruction]) -> VersionedTransaction:
        blockhash = self.rpc.get_latest_blockhash().value.blockhash
        message = MessageV0.try_compile(
            payer=self.payer,
            instructions=instructions,
            address_lookup_table_accounts=[],
            recent_blockhash=blockhash,
        )
        return VersionedTransaction(message, [self.keypair])

    def submit(
        self,
        request: SwapRequest,
        venue: VenueRef,
        base_mint: Pubkey,
        quote_mint: Pubkey,
    ) -> SubmissionResult:
        """
        Prepare, simulate (optional) and send one round trip.

        Local precondition failures raise SwapError. RPC-side failures come
        back as an unsuccessful SubmissionResult.
        """
        instructions = self.prepare(request, venue, base_mint, quote_mint)

        start_time = time.time()
        self._submissions += 1

        try:
            tx = self.build_transaction(instructions)

            if self.config.simulate_first:
                sim = self.rpc.simulate_transaction(tx)
                if sim.value.err:
                    self._failures += 1
                    Logger.warning(f"[SUBMIT] Simulation failed: {sim.value.err}")
                    return SubmissionResult(
                        success=False,
                        error=f"Simulation failed: {sim.value.err}",
                        logs=list(sim.value.logs or []),
                        instruction_count=len(instructions),
                        latency_ms=(time.time() - start_time) * 1000,
                    )

            resp = self.rpc.send_transaction(
                tx, opts=TxOpts(skip_preflight=self.config.skip_preflight)
            )
            signature = str(resp.value)

        except Exception as e:
            self._failures += 1
            Logger.error(f"[SUBMIT] Submission error: {e}")
            return SubmissionResult(
                success=False,
                error=str(e),
                instruction_count=len(instructions),
                latency_ms=(time.time() - start_time) * 1000,
            )

        self._landed += 1
        Logger.success(f"[SUBMIT] Sent round trip: {signature[:16]}...")
        return SubmissionResult(
            success=True,
            signature=signature,
            instruction_count=len(instructions),
            latency_ms=(time.time() - start_time) * 1000,
        )

    def run_batch(
        self,
        request: SwapRequest,
        venue: VenueRef,
        base_mint: Pubkey,
        quote_mint: Pubkey,
        count: int,
        delay_s: Optional[float] = None,
    ) -> List[SubmissionResult]:
        """
        Submit `count` identical round trips, pausing delay_s between them.

        A failed round trip does not stop the batch. Local precondition
        failures raise on the first call, before anything is sent.
        """
        if count < 1:
            raise ValueError("count must be at least 1")
        delay_s = Settings.VOLUME_DELAY_S if delay_s is None else delay_s

        results: List[SubmissionResult] = []
        for i in range(count):
            Logger.info(f"[SUBMIT] Round trip {i + 1}/{count}")
            result = self.submit(request, venue, base_mint, quote_mint)
            results.append(result)

            if not result.success:
                Logger.warning(f"[SUBMIT] Round trip {i + 1} failed: {result.error}")

            if i < count - 1 and delay_s > 0:
                time.sleep(delay_s)

        summary = batch_summary(results)
        Logger.info(
            f"[SUBMIT] Batch done: {summary['succeeded']}/{summary['total']} succeeded "
            f"({summary['success_rate']:.1f}%)"
        )
        return results

    def get_stats(self) -> dict:
        return {
            "submissions": self._submissions,
            "sent": self._landed,
            "failures": self._failures,
        }
