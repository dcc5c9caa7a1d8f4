"""
Round Trip Errors
=================
Error taxonomy for the round-trip pipeline.

Every error is fatal to the call that raised it. Nothing here is retried:
a retry would resend a partially processed request against a market that
may have moved.
"""

from __future__ import annotations

from enum import Enum
from typing import Optional


class ErrorCode(Enum):
    """Standardized error codes for round-trip failures."""

    # Local preconditions (raised before any venue invocation)
    INVALID_AMOUNT = "INVALID_AMOUNT"
    INVALID_MINIMUM_OUT = "INVALID_MINIMUM_OUT"
    INVALID_VENUE = "INVALID_VENUE"
    INSUFFICIENT_BALANCE = "INSUFFICIENT_BALANCE"
    VENUE_NOT_ALLOWED = "VENUE_NOT_ALLOWED"

    # Venue side
    VENUE_INVOCATION_FAILED = "VENUE_INVOCATION_FAILED"

    # Post-buy verification
    BALANCE_COMPUTATION_FAILED = "BALANCE_COMPUTATION_FAILED"
    ZERO_RECEIVED = "ZERO_RECEIVED"
    SLIPPAGE_EXCEEDED = "SLIPPAGE_EXCEEDED"


class SwapError(Exception):
    """Base class for every round-trip failure."""

    code: ErrorCode

    def __init__(self, message: str, state=None):
        super().__init__(message)
        self.message = message
        # SwapState the call aborted in (set by the orchestrator)
        self.state = state

    def __str__(self) -> str:
        return f"{self.code.value}: {self.message}"


class InvalidAmount(SwapError):
    code = ErrorCode.INVALID_AMOUNT


class InvalidMinimumOut(SwapError):
    code = ErrorCode.INVALID_MINIMUM_OUT


class InvalidVenue(SwapError):
    code = ErrorCode.INVALID_VENUE


class InsufficientBalance(SwapError):
    code = ErrorCode.INSUFFICIENT_BALANCE


class VenueNotAllowed(SwapError):
    code = ErrorCode.VENUE_NOT_ALLOWED


class VenueInvocationFailed(SwapError):
    """The venue rejected or faulted on a leg. The VenueError is chained as __cause__."""

    code = ErrorCode.VENUE_INVOCATION_FAILED

    def __init__(self, message: str, leg: Optional[str] = None, state=None):
        super().__init__(message, state=state)
        self.leg = leg


class BalanceComputationFailed(SwapError):
    code = ErrorCode.BALANCE_COMPUTATION_FAILED


class ZeroReceived(SwapError):
    code = ErrorCode.ZERO_RECEIVED


class SlippageExceeded(SwapError):
    code = ErrorCode.SLIPPAGE_EXCEEDED

    def __init__(self, message: str, received: int = 0, minimum: int = 0, state=None):
        super().__init__(message, state=state)
        self.received = received
        self.minimum = minimum


class VenueError(Exception):
    """
    Raised by an invocation facility when the venue rejects an instruction.

    Not a SwapError: the orchestrator translates it into VenueInvocationFailed.
    """

    def __init__(self, message: str, program_id: Optional[str] = None):
        super().__init__(message)
        self.program_id = program_id
