"""
Round Trip Execution
====================
Atomic buy-then-sell against a Raydium AMM v4 pool.

Components:
- SwapInstructionBuilder: pure instruction building
- SwapOrchestrator: state machine and guards
- LedgerHost / ReadOnlyHost: execution environments
- RoundTripSubmitter: client for the on-chain round-trip program
"""

from round_trip.execution.errors import (
    BalanceComputationFailed,
    ErrorCode,
    InsufficientBalance,
    InvalidAmount,
    InvalidMinimumOut,
    InvalidVenue,
    SlippageExceeded,
    SwapError,
    VenueError,
    VenueInvocationFailed,
    VenueNotAllowed,
    ZeroReceived,
)
from round_trip.execution.schemas import (
    AccountLeg,
    ExecutionResult,
    LegDirection,
    SwapRequest,
    SwapState,
    VenueOrientation,
    VenueRef,
)
from round_trip.execution.instruction_builder import (
    SWAP_BASE_IN,
    SwapInstructionBuilder,
    decode_swap_data,
    encode_swap_data,
)
from round_trip.execution.account_layout import (
    RpcBalanceReader,
    TokenAccountLayout,
    TokenAccountState,
)
from round_trip.execution.host import (
    ExecutionHost,
    LedgerHost,
    ReadOnlyHost,
)
from round_trip.execution.orchestrator import SwapOrchestrator
from round_trip.execution.venue_allowlist import VenueAllowList


__all__ = [
    # Errors
    "ErrorCode",
    "SwapError",
    "InvalidAmount",
    "InvalidMinimumOut",
    "InvalidVenue",
    "InsufficientBalance",
    "VenueNotAllowed",
    "VenueInvocationFailed",
    "BalanceComputationFailed",
    "ZeroReceived",
    "SlippageExceeded",
    "VenueError",
    # Schemas
    "AccountLeg",
    "ExecutionResult",
    "LegDirection",
    "SwapRequest",
    "SwapState",
    "VenueOrientation",
    "VenueRef",
    # Builder
    "SWAP_BASE_IN",
    "SwapInstructionBuilder",
    "encode_swap_data",
    "decode_swap_data",
    # Accounts
    "RpcBalanceReader",
    "TokenAccountLayout",
    "TokenAccountState",
    # Hosts
    "ExecutionHost",
    "LedgerHost",
    "ReadOnlyHost",
    # Orchestration
    "SwapOrchestrator",
    "VenueAllowList",
]
