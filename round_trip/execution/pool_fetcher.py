"""
Raydium AMM Pool Fetcher
========================
Fetches Raydium AMM v4 pool listings and turns them into VenueRefs.

The pool API has shipped several field spellings over time (ammId vs id,
baseVault vs poolCoinTokenAccount, ...). Each VenueRef field is resolved
from the first alias present.

Usage:
    fetcher = RaydiumPoolFetcher()
    pool = fetcher.find_pool(SOL_MINT, USDC_MINT)
    venue = fetcher.to_venue(pool)
"""

from __future__ import annotations

import time
from typing import Any, Dict, List, Optional

import requests
from solders.pubkey import Pubkey

from config.settings import Settings
from round_trip.execution.schemas import VenueRef
from round_trip.shared.system.logging import Logger


# VenueRef field -> API aliases, in priority order
POOL_FIELD_ALIASES = {
    "amm_id": ["ammId", "id", "ammIdPublicKey", "amm_id"],
    "amm_authority": ["ammAuthority", "authority", "ammAuthorityPublicKey"],
    "amm_open_orders": ["openOrders", "ammOpenOrders"],
    "amm_target_orders": ["targetOrders", "ammTargetOrders"],
    "pool_coin_vault": ["baseVault", "poolCoinTokenAccount", "ammBaseVault"],
    "pool_pc_vault": ["quoteVault", "poolPcTokenAccount", "ammQuoteVault"],
    "market_program_id": ["marketProgramId", "serumProgramId", "marketProgram"],
    "market_id": ["marketId", "serumMarket", "market"],
    "market_bids": ["marketBids"],
    "market_asks": ["marketAsks"],
    "market_event_queue": ["marketEventQueue"],
    "market_coin_vault": ["marketCoinVault", "marketCoinVaultAccount", "marketBaseVault"],
    "market_pc_vault": ["marketPcVault", "marketPcVaultAccount", "marketQuoteVault"],
    "market_vault_signer": ["marketAuthority", "serumVaultSigner"],
}


def _first(pool: Dict[str, Any], aliases: List[str]) -> Optional[str]:
    for alias in aliases:
        value = pool.get(alias)
        if value:
            return value
    return None


class RaydiumPoolFetcher:
    """
    Fetches and caches Raydium AMM pool descriptions.
    """

    def __init__(
        self,
        api_url: Optional[str] = None,
        program_id: Optional[str] = None,
        cache_ttl: Optional[float] = None,
    ):
        self.api_url = api_url or Settings.RAYDIUM_API_URL
        # Used when the listing does not say which program owns the pool
        self.program_id = program_id or Settings.KNOWN_VENUES.get(Settings.CLUSTER, [None])[0]
        self.cache_ttl = Settings.POOL_CACHE_TTL_SECONDS if cache_ttl is None else cache_ttl
        self._cache: List[Dict[str, Any]] = []
        self._cache_time: float = 0

    def _refresh_cache(self, force: bool = False) -> bool:
        """Refresh pool cache from the API."""
        now = time.time()

        if not force and self._cache and (now - self._cache_time) < self.cache_ttl:
            return True  # Cache still valid

        try:
            Logger.debug("[POOLS] Fetching pools from API...")
            response = requests.get(self.api_url, timeout=Settings.POOL_FETCH_TIMEOUT_S)
            response.raise_for_status()
            body = response.json()
        except requests.exceptions.RequestException as e:
            Logger.error(f"[POOLS] Failed to fetch pools: {e}")
            return False
        except ValueError as e:
            Logger.error(f"[POOLS] Pool listing is not JSON: {e}")
            return False

        pools = body.get("data", body) if isinstance(body, dict) else body
        if isinstance(pools, dict):
            pools = pools.get("data", [])

        self._cache = [p for p in pools if isinstance(p, dict)]
        self._cache_time = now
        Logger.info(f"[POOLS] Cached {len(self._cache)} pools")
        return True

    def get_all_pools(self, force_refresh: bool = False) -> List[Dict[str, Any]]:
        self._refresh_cache(force=force_refresh)
        return list(self._cache)

    def find_pool(self, base_mint: str, quote_mint: str) -> Optional[Dict[str, Any]]:
        """Pool for a mint pair, checked in both orientations."""
        self._refresh_cache()

        for pool in self._cache:
            base = pool.get("baseMint") or (pool.get("mintA") or {}).get("address")
            quote = pool.get("quoteMint") or (pool.get("mintB") or {}).get("address")
            if (base, quote) in ((base_mint, quote_mint), (quote_mint, base_mint)):
                return pool

        Logger.warning(f"[POOLS] No pool for {base_mint[:4]}/{quote_mint[:4]}")
        return None

    def get_pool_by_id(self, amm_id: str) -> Optional[Dict[str, Any]]:
        self._refresh_cache()

        for pool in self._cache:
            if _first(pool, POOL_FIELD_ALIASES["amm_id"]) == amm_id:
                return pool
        return None

    def to_venue(self, pool: Dict[str, Any]) -> VenueRef:
        """
        Map an API pool object to a VenueRef.

        Raises:
            ValueError: a required address is missing from the listing
        """
        addresses = {}
        missing = []
        for name, aliases in POOL_FIELD_ALIASES.items():
            value = _first(pool, aliases)
            if value is None:
                missing.append(name)
            else:
                addresses[name] = value

        program_id = pool.get("programId") or self.program_id
        if not program_id:
            missing.append("program_id")

        if missing:
            raise ValueError(f"pool listing missing fields: {', '.join(missing)}")

        return VenueRef(
            program_id=Pubkey.from_string(program_id),
            **{name: Pubkey.from_string(value) for name, value in addresses.items()},
        )
