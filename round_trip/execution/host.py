"""
Execution Hosts
===============
The environment a round trip runs inside.

A host supplies three things:
- execution_unit(): the all-or-nothing boundary. Everything mutated inside
  it is rolled back if the block raises.
- get_balance(account): latest committed balance (read-after-write visible).
- invoke(instruction): hand an instruction to the target program; raises
  VenueError on rejection with no partial effect.

The orchestrator never undoes anything itself. Rollback is the host's job.

On-chain, the Solana runtime is the host. LedgerHost reproduces its
semantics in process for simulation and tests.
"""

from __future__ import annotations

from contextlib import contextmanager, nullcontext
from dataclasses import dataclass
from typing import Callable, ContextManager, Dict, Iterator, List, Optional, Protocol, runtime_checkable

from solders.instruction import Instruction
from solders.pubkey import Pubkey

from round_trip.execution.errors import VenueError
from round_trip.shared.system.logging import Logger


@runtime_checkable
class BalanceReader(Protocol):
    def get_balance(self, account: Pubkey) -> int:
        ...


@runtime_checkable
class ExecutionHost(BalanceReader, Protocol):
    def execution_unit(self) -> ContextManager[None]:
        ...

    def invoke(self, instruction: Instruction) -> None:
        ...


# Venue handlers receive the ledger and the instruction and mutate balances
# through LedgerHost.credit/debit. Raising VenueError rejects the instruction.
VenueHandler = Callable[["LedgerHost", Instruction], None]


@dataclass(frozen=True)
class InvocationRecord:
    """One instruction handed to a venue, and whether it was accepted."""

    program_id: Pubkey
    data: bytes
    accounts: List[Pubkey]
    accepted: bool


class LedgerHost:
    """
    In-process token ledger with atomic execution units.

    Usage:
        host = LedgerHost({source: 10_000, destination: 0})
        host.register_venue(program_id, handler)
        with host.execution_unit():
            host.invoke(ix)
    """

    def __init__(
        self,
        balances: Optional[Dict[Pubkey, int]] = None,
        max_invocations: Optional[int] = None,
    ):
        self._balances: Dict[Pubkey, int] = dict(balances or {})
        self._venues: Dict[Pubkey, VenueHandler] = {}
        self.max_invocations = max_invocations
        self.invocations: List[InvocationRecord] = []

        self._unit_depth = 0
        self._unit_invocations = 0

        # Statistics
        self.commits = 0
        self.rollbacks = 0

    # =========================================================================
    # LEDGER
    # =========================================================================

    def register_venue(self, program_id: Pubkey, handler: VenueHandler) -> None:
        self._venues[program_id] = handler

    def set_balance(self, account: Pubkey, amount: int) -> None:
        self._balances[account] = amount

    def get_balance(self, account: Pubkey) -> int:
        if account not in self._balances:
            raise LookupError(f"unknown account {account}")
        return self._balances[account]

    def snapshot(self) -> Dict[Pubkey, int]:
        return dict(self._balances)

    def credit(self, account: Pubkey, amount: int) -> None:
        self._balances[account] = self._balances.get(account, 0) + amount

    def debit(self, account: Pubkey, amount: int) -> None:
        current = self._balances.get(account, 0)
        if current < amount:
            raise VenueError(f"insufficient funds in {account}: {current} < {amount}")
        self._balances[account] = current - amount

    # =========================================================================
    # EXECUTION UNIT
    # =========================================================================

    @contextmanager
    def execution_unit(self) -> Iterator[None]:
        """All-or-nothing block. Nested units join the outermost one."""
        if self._unit_depth:
            self._unit_depth += 1
            try:
                yield
            finally:
                self._unit_depth -= 1
            return

        saved = self.snapshot()
        self._unit_depth = 1
        self._unit_invocations = 0
        try:
            yield
        except BaseException:
            self._balances = saved
            self.rollbacks += 1
            Logger.debug("[LEDGER] Execution unit rolled back")
            raise
        else:
            self.commits += 1
        finally:
            self._unit_depth = 0

    def invoke(self, instruction: Instruction) -> None:
        """Run the target program's handler; no partial effect on rejection."""
        program_id = instruction.program_id
        record_accounts = [meta.pubkey for meta in instruction.accounts]

        handler = self._venues.get(program_id)
        if handler is None:
            self._record(instruction, record_accounts, accepted=False)
            raise VenueError(f"program {program_id} is not deployed", str(program_id))

        if self.max_invocations is not None and self._unit_invocations >= self.max_invocations:
            self._record(instruction, record_accounts, accepted=False)
            raise VenueError(
                f"step budget exhausted ({self.max_invocations} invocations)", str(program_id)
            )
        self._unit_invocations += 1

        saved = self.snapshot()
        try:
            handler(self, instruction)
        except VenueError:
            self._balances = saved
            self._record(instruction, record_accounts, accepted=False)
            raise
        except Exception as e:
            # A crashing program is a failed instruction, not a host error
            self._balances = saved
            self._record(instruction, record_accounts, accepted=False)
            raise VenueError(f"program {program_id} faulted: {e}", str(program_id)) from e

        self._record(instruction, record_accounts, accepted=True)

    def _record(self, instruction: Instruction, accounts: List[Pubkey], accepted: bool) -> None:
        self.invocations.append(
            InvocationRecord(
                program_id=instruction.program_id,
                data=bytes(instruction.data),
                accounts=accounts,
                accepted=accepted,
            )
        )


class ReadOnlyHost:
    """
    Host for dry runs against live state.

    Balances come from any BalanceReader (e.g. RpcBalanceReader). Nothing can
    be invoked.
    """

    def __init__(self, reader: BalanceReader):
        self.reader = reader

    def execution_unit(self) -> ContextManager[None]:
        return nullcontext()

    def get_balance(self, account: Pubkey) -> int:
        return self.reader.get_balance(account)

    def invoke(self, instruction: Instruction) -> None:
        raise VenueError("read-only host cannot invoke instructions", str(instruction.program_id))
