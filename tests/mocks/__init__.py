"""
Round Trip Test Mocks
=====================
Reusable mock classes for isolated testing.
"""

from tests.mocks.mock_rpc import MockSolanaClient
from tests.mocks.mock_venue import MockRaydiumVenue, PanickingVenue, ShrinkingDestinationVenue

__all__ = [
    "MockSolanaClient",
    "MockRaydiumVenue",
    "PanickingVenue",
    "ShrinkingDestinationVenue",
]
