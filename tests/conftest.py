"""
Round Trip Test Configuration
=============================
Shared fixtures and pytest markers for the test suite.
"""

import os
import sys

# Quiet console output before config.settings is first imported
os.environ.setdefault("ROUND_TRIP_SILENT", "true")

import pytest
from solders.pubkey import Pubkey

# Add project root to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))


# ============================================================================
# PYTEST MARKERS
# ============================================================================

def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line(
        "markers", "network: marks tests that require network access"
    )
    config.addinivalue_line(
        "markers", "integration: marks integration tests"
    )


# ============================================================================
# SHARED FIXTURES
# ============================================================================

@pytest.fixture
def venue():
    """A fully populated VenueRef with distinct addresses."""
    from round_trip.execution.schemas import VenueRef

    return VenueRef(**{name: Pubkey.new_unique() for name in VenueRef.field_names()})


@pytest.fixture
def leg():
    """Buy leg: spend from source, receive into destination."""
    from round_trip.execution.schemas import AccountLeg

    return AccountLeg(
        source=Pubkey.new_unique(),
        destination=Pubkey.new_unique(),
        owner=Pubkey.new_unique(),
    )


@pytest.fixture
def host(leg):
    """Ledger with 10_000 in the source account and an empty destination."""
    from round_trip.execution.host import LedgerHost

    return LedgerHost({leg.source: 10_000, leg.destination: 0})
