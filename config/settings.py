import os
from dotenv import load_dotenv

# Load Environment Variables from project root .env
env_path = os.path.join(os.path.dirname(__file__), "../.env")
load_dotenv(env_path)


class Settings:
    # ═══════════════════════════════════════════════════════════════════
    # ROUND TRIP CONFIGURATION (.env-based)
    # ═══════════════════════════════════════════════════════════════════

    # --- Console ---
    SILENT_MODE = os.getenv("ROUND_TRIP_SILENT", "false").lower() == "true"

    # Paths
    LOG_DIR = os.path.abspath(
        os.getenv("ROUND_TRIP_LOG_DIR", os.path.join(os.path.dirname(__file__), "../logs"))
    )

    # ═══════════════════════════════════════════════════════════════════
    # CLUSTER / RPC
    # ═══════════════════════════════════════════════════════════════════
    CLUSTER = os.getenv("ROUND_TRIP_CLUSTER", "devnet")  # "mainnet" or "devnet"
    RPC_URL = os.getenv("RPC_URL", "https://api.devnet.solana.com")
    COMMITMENT = os.getenv("ROUND_TRIP_COMMITMENT", "confirmed")

    # Wallet (base58 secret key, only read by the submitter)
    PRIVATE_KEY = os.getenv("PRIVATE_KEY", "")

    # ═══════════════════════════════════════════════════════════════════
    # PROGRAM IDENTITIES
    # ═══════════════════════════════════════════════════════════════════
    # On-chain round-trip program (Anchor)
    ATOMIC_SWAP_PROGRAM_ID = os.getenv(
        "ATOMIC_SWAP_PROGRAM_ID", "HbiVxY1bVwZmsC18H8yzFk6tc2Vj2pKKS5BXHThXwVcG"
    )

    # Known Raydium AMM v4 deployments per cluster
    KNOWN_VENUES = {
        "mainnet": ["675kPX9MHTjS2zt1qfr1NYHuzeLXfQM9H24wFSUt1Mp8"],
        "devnet": [
            "HWy1jotHpo6UqeQxx49dpYYdQB8wj9Qk9MdxwjLvDHB8",
            "DRaya7Kj3aMWQSy19kSjvmuwq9docCHofyP9kanQGaav",
        ],
    }

    # Extra venue program ids (comma-separated), merged with KNOWN_VENUES[CLUSTER]
    VENUE_ALLOWLIST = os.getenv("ROUND_TRIP_VENUE_ALLOWLIST", "")

    # ═══════════════════════════════════════════════════════════════════
    # EXECUTION
    # ═══════════════════════════════════════════════════════════════════
    DRY_RUN = os.getenv("ROUND_TRIP_DRY_RUN", "false").lower() == "true"
    SIMULATE_BEFORE_SEND = True
    COMPUTE_UNIT_LIMIT = int(os.getenv("ROUND_TRIP_COMPUTE_UNITS", "400000"))

    # Pause between consecutive round trips of a volume batch
    VOLUME_DELAY_S = float(os.getenv("ROUND_TRIP_VOLUME_DELAY_S", "2.0"))

    # Sell leg orientation: "FIXED" or "MIRRORED"
    VENUE_ORIENTATION = os.getenv("ROUND_TRIP_VENUE_ORIENTATION", "FIXED").upper()

    # ═══════════════════════════════════════════════════════════════════
    # POOL DISCOVERY
    # ═══════════════════════════════════════════════════════════════════
    RAYDIUM_API_URL = os.getenv(
        "RAYDIUM_API_URL", "https://api-v3-devnet.raydium.io/amm/pools?limit=500"
    )
    POOL_CACHE_TTL_SECONDS = 300  # 5 minutes
    POOL_FETCH_TIMEOUT_S = 15

    @staticmethod
    def venue_allowlist(cluster=None) -> set:
        """Cluster defaults plus any explicitly configured venue ids."""
        allowed = set(Settings.KNOWN_VENUES.get(cluster or Settings.CLUSTER, []))
        for entry in Settings.VENUE_ALLOWLIST.split(","):
            entry = entry.strip()
            if entry:
                allowed.add(entry)
        return allowed
