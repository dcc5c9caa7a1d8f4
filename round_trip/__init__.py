"""Atomic round-trip swap orchestration for Raydium AMM venues."""

__version__ = "0.1.0"
