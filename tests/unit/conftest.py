"""
Unit Test Configuration
=======================
Fixtures for pure logic tests - NO I/O ALLOWED.

All unit tests should be completely isolated from:
- Network (RPC, HTTP)
- File system (except tmp_path)
"""

import pytest


# ============================================================================
# AUTOUSE: ENFORCE I/O ISOLATION
# ============================================================================


@pytest.fixture(autouse=True)
def isolate_unit_tests(monkeypatch):
    """
    Automatically disable network I/O for unit tests.
    Any test that accidentally tries to make a network call will fail.
    """
    def block_network(*args, **kwargs):
        raise RuntimeError(
            "Network I/O detected in unit test! "
            "Unit tests must be pure logic with no external dependencies. "
            "Use integration tests for network-dependent code."
        )

    monkeypatch.setattr("requests.get", block_network)
    monkeypatch.setattr("requests.post", block_network)
    monkeypatch.setattr("httpx.Client.send", block_network)


# ============================================================================
# POOL LISTING FIXTURES
# ============================================================================


@pytest.fixture
def raydium_pool_listing(venue):
    """A devnet-style pool listing entry matching the `venue` fixture."""
    return {
        "ammId": str(venue.amm_id),
        "programId": str(venue.program_id),
        "baseMint": "So11111111111111111111111111111111111111112",
        "quoteMint": "4zMMC9srt5Ri5X14GAgXhaHii3GnPAEERYPJgZJDncDU",
        "authority": str(venue.amm_authority),
        "openOrders": str(venue.amm_open_orders),
        "targetOrders": str(venue.amm_target_orders),
        "baseVault": str(venue.pool_coin_vault),
        "quoteVault": str(venue.pool_pc_vault),
        "marketProgramId": str(venue.market_program_id),
        "marketId": str(venue.market_id),
        "marketBids": str(venue.market_bids),
        "marketAsks": str(venue.market_asks),
        "marketEventQueue": str(venue.market_event_queue),
        "marketBaseVault": str(venue.market_coin_vault),
        "marketQuoteVault": str(venue.market_pc_vault),
        "marketAuthority": str(venue.market_vault_signer),
    }
