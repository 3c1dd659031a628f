"""Marketplace snapshots, event ingestion ledger and interaction log."""

from .store import MarketplaceStore

__all__ = ["MarketplaceStore"]
