"""
Venue Allow-List
================
Checks a venue's program id against known deployments before a round trip
is attempted. The orchestrator itself uses whatever program id it is given.
"""

from __future__ import annotations

from typing import Iterable, Optional

from solders.pubkey import Pubkey

from config.settings import Settings
from round_trip.execution.errors import VenueNotAllowed
from round_trip.execution.schemas import VenueRef
from round_trip.shared.system.logging import Logger


class VenueAllowList:
    """Set of venue program ids a caller is willing to route through."""

    def __init__(self, program_ids: Iterable):
        self._allowed = {
            pid if isinstance(pid, Pubkey) else Pubkey.from_string(pid)
            for pid in program_ids
        }

    @classmethod
    def from_settings(cls, cluster: Optional[str] = None) -> "VenueAllowList":
        """Cluster defaults plus ROUND_TRIP_VENUE_ALLOWLIST entries."""
        return cls(Settings.venue_allowlist(cluster))

    def __contains__(self, program_id: Pubkey) -> bool:
        return program_id in self._allowed

    def __len__(self) -> int:
        return len(self._allowed)

    def check(self, venue: VenueRef) -> None:
        """Raise VenueNotAllowed unless the venue program is listed."""
        if venue.program_id not in self._allowed:
            Logger.warning(f"[VENUE] Rejected unknown venue program {venue.program_id}")
            raise VenueNotAllowed(f"venue program {venue.program_id} is not on the allow-list")
