"""
Round Trip Schemas
==================
Transient data carried through one orchestration call.

Nothing here outlives the call that created it.
"""

from __future__ import annotations

import time
from dataclasses import dataclass, field, fields
from enum import Enum
from typing import Dict, List, Tuple

from solders.instruction import Instruction
from solders.pubkey import Pubkey


U64_MAX = 2**64 - 1


class SwapState(Enum):
    """Orchestrator states. ABORTED is reachable from every non-terminal state."""

    VALIDATING = "VALIDATING"
    BUY_INVOKING = "BUY_INVOKING"
    BUY_VERIFYING = "BUY_VERIFYING"
    SELL_INVOKING = "SELL_INVOKING"
    COMPLETED = "COMPLETED"
    ABORTED = "ABORTED"


class LegDirection(Enum):
    """Direction of one swap leg."""

    BUY = "BUY"
    SELL = "SELL"


class VenueOrientation(Enum):
    """
    How the sell leg treats pool vaults and order-book sides.

    FIXED: only user source/destination swap on the sell leg.
    MIRRORED: pool coin/pc vaults and bids/asks also swap.
    """

    FIXED = "FIXED"
    MIRRORED = "MIRRORED"

    @classmethod
    def parse(cls, value: str) -> "VenueOrientation":
        """Parse a configured orientation name, case-insensitively."""
        try:
            return cls(value.strip().upper())
        except ValueError:
            options = " or ".join(o.value for o in cls)
            raise ValueError(
                f"ROUND_TRIP_VENUE_ORIENTATION must be {options}, got {value!r}"
            ) from None


@dataclass(frozen=True)
class SwapRequest:
    """Caller input for one round trip (all amounts in base units)."""

    amount_in: int
    min_out_buy: int
    min_out_sell: int


@dataclass(frozen=True)
class VenueRef:
    """
    Addresses identifying one Raydium AMM v4 pool and its backing market.

    All values are opaque. Only presence is checked locally; consistency is
    the venue's business.
    """

    program_id: Pubkey
    amm_id: Pubkey
    amm_authority: Pubkey
    amm_open_orders: Pubkey
    amm_target_orders: Pubkey
    pool_coin_vault: Pubkey
    pool_pc_vault: Pubkey
    market_program_id: Pubkey
    market_id: Pubkey
    market_bids: Pubkey
    market_asks: Pubkey
    market_event_queue: Pubkey
    market_coin_vault: Pubkey
    market_pc_vault: Pubkey
    market_vault_signer: Pubkey

    @classmethod
    def from_strings(cls, **addresses: str) -> "VenueRef":
        """Build from base58 strings keyed by field name."""
        return cls(**{name: Pubkey.from_string(value) for name, value in addresses.items()})

    @classmethod
    def field_names(cls) -> List[str]:
        return [f.name for f in fields(cls)]

    def missing(self) -> List[str]:
        """Field names that are unset or left at the all-zero placeholder key."""
        placeholder = Pubkey.default()
        return [
            name
            for name in self.field_names()
            if not isinstance(getattr(self, name), Pubkey) or getattr(self, name) == placeholder
        ]

    def to_dict(self) -> Dict[str, str]:
        return {name: str(getattr(self, name)) for name in self.field_names()}


@dataclass(frozen=True)
class AccountLeg:
    """User accounts for one swap direction."""

    source: Pubkey
    destination: Pubkey
    owner: Pubkey

    def reversed(self) -> "AccountLeg":
        """The opposite direction: source and destination swap, owner stays."""
        return AccountLeg(source=self.destination, destination=self.source, owner=self.owner)


@dataclass(frozen=True)
class ExecutionResult:
    """Outcome of a successful round trip."""

    realized_buy_output: int
    realized_net_change: int  # final source balance - initial source balance
    state: SwapState = SwapState.COMPLETED
    dry_run: bool = False
    instructions: Tuple[Instruction, ...] = ()
    latency_ms: float = 0.0
    timestamp: float = field(default_factory=time.time)

    @property
    def is_loss(self) -> bool:
        return self.realized_net_change < 0

    def to_dict(self) -> Dict[str, object]:
        """Serialize for logging or JSON output."""
        return {
            "realized_buy_output": self.realized_buy_output,
            "realized_net_change": self.realized_net_change,
            "state": self.state.value,
            "dry_run": self.dry_run,
            "instruction_count": len(self.instructions),
            "latency_ms": round(self.latency_ms, 2),
            "timestamp": self.timestamp,
        }


def describe_instruction(ix: Instruction) -> Dict[str, object]:
    """Human-readable view of an outbound instruction."""
    return {
        "program_id": str(ix.program_id),
        "data": bytes(ix.data).hex(),
        "accounts": [
            {
                "pubkey": str(meta.pubkey),
                "is_signer": meta.is_signer,
                "is_writable": meta.is_writable,
            }
            for meta in ix.accounts
        ],
    }

