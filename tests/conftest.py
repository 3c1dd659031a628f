"""Shared test fixtures for the grain orchestrator."""

import sqlite3
import sys
from pathlib import Path

import pytest

# Add src to path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from marketplace.store import MarketplaceStore  # noqa: E402


@pytest.fixture
def store(tmp_path):
    """Fresh store in a temp database."""
    return MarketplaceStore(tmp_path / "orchestrator.db")


@pytest.fixture
def seeded_store(store):
    """Store with one seller who has three listings and one transaction."""
    store.ingest_user_event("evt-seed", {"id": "seller-1", "name": "Farm Kowalski"})
    for i, (commodity, updated) in enumerate(
        [
            ("wheat", "2026-01-01T10:00:00+00:00"),
            ("corn", "2026-03-01T10:00:00+00:00"),
            ("rapeseed", "2026-02-01T10:00:00+00:00"),
        ]
    ):
        store.upsert_listing(
            {
                "id": f"lst-{i}",
                "sellerUserId": "seller-1",
                "commodity": commodity,
                "price": 900 + i,
                "currency": "PLN",
                "region": "Mazowieckie",
                "updatedAt": updated,
            }
        )
    store.upsert_transaction(
        {
            "id": "tx-1",
            "sellerUserId": "seller-1",
            "buyerUserId": "buyer-9",
            "commodity": "wheat",
            "price": 910,
            "currency": "PLN",
            "region": "Mazowieckie",
        }
    )
    return store


@pytest.fixture
def ledger_ids():
    """Read the ingestion ledger of a store straight from its database."""

    def _read(store: MarketplaceStore) -> list[str]:
        conn = sqlite3.connect(store.db_path)
        try:
            rows = conn.execute("SELECT event_id FROM ingested_events ORDER BY event_id").fetchall()
        finally:
            conn.close()
        return [r[0] for r in rows]

    return _read
