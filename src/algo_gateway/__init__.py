"""algo-gateway — Algorand node gateway: wallets, broadcast, queries, proxy."""

__version__ = "0.1.0"
