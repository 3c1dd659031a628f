"""SQLite persistence for marketplace snapshots and the ingestion ledger.

Tables:
    ingested_events  - dedup ledger, one row per applied event id
    users_ai         - latest profile payload per user (last write wins)
    listings_ai      - listing snapshots
    transactions_ai  - transaction snapshots
    interactions_ai  - append-only audit log of generations
"""

import json
import sqlite3
import uuid
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Optional

import structlog

from db import wal_connect, write_transaction

logger = structlog.get_logger()


def _now() -> str:
    return datetime.now(timezone.utc).isoformat(timespec="microseconds")


def _normalize_timestamp(value: Any) -> str:
    """Render a client timestamp as UTC ISO-8601 with microseconds.

    updated_at is ordered as text, so every stored value must share one format.
    Naive values are taken as UTC; missing or unparseable values become now.
    """
    if not value:
        return _now()
    try:
        parsed = datetime.fromisoformat(str(value))
    except ValueError:
        logger.warning("store.bad_timestamp", value=str(value)[:64])
        return _now()
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc).isoformat(timespec="microseconds")


class MarketplaceStore:
    """All reads and writes against the orchestrator database."""

    def __init__(self, db_path: Path):
        self.db_path = Path(db_path).expanduser()
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        self._init_tables()

    def _connect(self) -> sqlite3.Connection:
        return wal_connect(self.db_path, row_factory=True)

    def _init_tables(self):
        conn = self._connect()
        try:
            conn.executescript("""
                CREATE TABLE IF NOT EXISTS ingested_events (
                    event_id TEXT PRIMARY KEY,
                    received_at TIMESTAMP NOT NULL
                );
                CREATE TABLE IF NOT EXISTS users_ai (
                    user_id TEXT PRIMARY KEY,
                    payload TEXT NOT NULL,
                    updated_at TIMESTAMP NOT NULL
                );
                CREATE TABLE IF NOT EXISTS listings_ai (
                    listing_id TEXT PRIMARY KEY,
                    seller_user_id TEXT,
                    commodity TEXT,
                    price REAL,
                    currency TEXT,
                    region TEXT,
                    payload TEXT NOT NULL DEFAULT '{}',
                    updated_at TIMESTAMP NOT NULL
                );
                CREATE INDEX IF NOT EXISTS idx_listings_seller
                    ON listings_ai(seller_user_id, updated_at DESC);
                CREATE TABLE IF NOT EXISTS transactions_ai (
                    tx_id TEXT PRIMARY KEY,
                    seller_user_id TEXT,
                    buyer_user_id TEXT,
                    commodity TEXT,
                    price REAL,
                    currency TEXT,
                    region TEXT,
                    payload TEXT NOT NULL DEFAULT '{}',
                    updated_at TIMESTAMP NOT NULL
                );
                CREATE INDEX IF NOT EXISTS idx_tx_seller
                    ON transactions_ai(seller_user_id, updated_at DESC);
                CREATE TABLE IF NOT EXISTS interactions_ai (
                    id TEXT PRIMARY KEY,
                    user_id TEXT,
                    actor TEXT NOT NULL,
                    task TEXT NOT NULL,
                    input TEXT NOT NULL,
                    output TEXT NOT NULL,
                    created_at TIMESTAMP NOT NULL
                );
                CREATE INDEX IF NOT EXISTS idx_interactions_user
                    ON interactions_ai(user_id, created_at DESC);
            """)
            conn.commit()
        finally:
            conn.close()

    # --- Ingestion ---

    def ingest_user_event(self, event_id: str, user: dict) -> bool:
        """Apply a user-profile event at most once.

        The ledger insert and the profile upsert share one write transaction,
        and the ledger's primary key decides which submission wins. Returns
        True if the event was applied, False if it had already been seen.
        """
        now = _now()
        conn = self._connect()
        try:
            with write_transaction(conn):
                cur = conn.execute(
                    "INSERT INTO ingested_events (event_id, received_at) VALUES (?, ?) "
                    "ON CONFLICT(event_id) DO NOTHING",
                    (event_id, now),
                )
                if cur.rowcount == 0:
                    return False
                conn.execute(
                    """INSERT INTO users_ai (user_id, payload, updated_at)
                    VALUES (?, ?, ?)
                    ON CONFLICT(user_id) DO UPDATE SET
                        payload = excluded.payload,
                        updated_at = excluded.updated_at""",
                    (str(user["id"]), json.dumps(user, default=str), now),
                )
            return True
        finally:
            conn.close()

    def upsert_listing(self, listing: dict) -> None:
        """Insert or replace a listing snapshot. Requires listing["id"]."""
        self._upsert_snapshot(
            """INSERT INTO listings_ai
            (listing_id, seller_user_id, commodity, price, currency, region, payload, updated_at)
            VALUES (?, ?, ?, ?, ?, ?, ?, ?)
            ON CONFLICT(listing_id) DO UPDATE SET
                seller_user_id = excluded.seller_user_id,
                commodity = excluded.commodity,
                price = excluded.price,
                currency = excluded.currency,
                region = excluded.region,
                payload = excluded.payload,
                updated_at = excluded.updated_at""",
            (
                str(listing["id"]),
                listing.get("sellerUserId"),
                listing.get("commodity"),
                listing.get("price"),
                listing.get("currency"),
                listing.get("region"),
                json.dumps(listing, default=str),
                _normalize_timestamp(listing.get("updatedAt")),
            ),
        )

    def upsert_transaction(self, tx: dict) -> None:
        """Insert or replace a transaction snapshot. Requires tx["id"]."""
        self._upsert_snapshot(
            """INSERT INTO transactions_ai
            (tx_id, seller_user_id, buyer_user_id, commodity, price, currency, region,
             payload, updated_at)
            VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
            ON CONFLICT(tx_id) DO UPDATE SET
                seller_user_id = excluded.seller_user_id,
                buyer_user_id = excluded.buyer_user_id,
                commodity = excluded.commodity,
                price = excluded.price,
                currency = excluded.currency,
                region = excluded.region,
                payload = excluded.payload,
                updated_at = excluded.updated_at""",
            (
                str(tx["id"]),
                tx.get("sellerUserId"),
                tx.get("buyerUserId"),
                tx.get("commodity"),
                tx.get("price"),
                tx.get("currency"),
                tx.get("region"),
                json.dumps(tx, default=str),
                _normalize_timestamp(tx.get("updatedAt")),
            ),
        )

    def _upsert_snapshot(self, sql: str, params: tuple) -> None:
        conn = self._connect()
        try:
            with write_transaction(conn):
                conn.execute(sql, params)
        finally:
            conn.close()

    # --- Reads ---

    def get_user_profile(self, user_id: str) -> Optional[dict]:
        conn = self._connect()
        try:
            row = conn.execute(
                "SELECT payload FROM users_ai WHERE user_id = ?", (user_id,)
            ).fetchone()
            return json.loads(row["payload"]) if row else None
        finally:
            conn.close()

    def count_listings(self, seller_user_id: str) -> int:
        return self._count("listings_ai", seller_user_id)

    def count_transactions(self, seller_user_id: str) -> int:
        return self._count("transactions_ai", seller_user_id)

    def _count(self, table: str, seller_user_id: str) -> int:
        conn = self._connect()
        try:
            return conn.execute(
                f"SELECT COUNT(*) FROM {table} WHERE seller_user_id = ?", (seller_user_id,)
            ).fetchone()[0]
        finally:
            conn.close()

    def recent_listings(self, seller_user_id: str, limit: int = 5) -> list[dict]:
        """Most recently updated listings first."""
        return self._recent("listings_ai", seller_user_id, limit)

    def recent_transactions(self, seller_user_id: str, limit: int = 5) -> list[dict]:
        """Most recently updated transactions first."""
        return self._recent("transactions_ai", seller_user_id, limit)

    def _recent(self, table: str, seller_user_id: str, limit: int) -> list[dict]:
        if limit <= 0:
            return []
        conn = self._connect()
        try:
            rows = conn.execute(
                f"SELECT commodity, price, currency, region, updated_at FROM {table} "
                "WHERE seller_user_id = ? ORDER BY updated_at DESC LIMIT ?",
                (seller_user_id, limit),
            ).fetchall()
            return [dict(r) for r in rows]
        finally:
            conn.close()

    # --- Interactions ---

    def insert_interaction(
        self,
        task: str,
        actor: str,
        user_id: Optional[str],
        input_data: dict[str, Any],
        output_data: dict[str, Any],
    ) -> str:
        """Append one interaction record, return its id."""
        interaction_id = uuid.uuid4().hex
        conn = self._connect()
        try:
            with write_transaction(conn):
                conn.execute(
                    """INSERT INTO interactions_ai
                    (id, user_id, actor, task, input, output, created_at)
                    VALUES (?, ?, ?, ?, ?, ?, ?)""",
                    (
                        interaction_id,
                        user_id,
                        actor,
                        task,
                        json.dumps(input_data, ensure_ascii=False, default=str),
                        json.dumps(output_data, ensure_ascii=False),
                        _now(),
                    ),
                )
            return interaction_id
        finally:
            conn.close()

    def get_interactions(self, user_id: Optional[str] = None, limit: int = 20) -> list[dict]:
        """Newest interactions first, with input/output decoded."""
        conn = self._connect()
        try:
            query = "SELECT * FROM interactions_ai"
            params: list = []
            if user_id is not None:
                query += " WHERE user_id = ?"
                params.append(user_id)
            query += " ORDER BY created_at DESC, rowid DESC LIMIT ?"
            params.append(limit)
            rows = conn.execute(query, params).fetchall()
        finally:
            conn.close()
        result = []
        for r in rows:
            d = dict(r)
            d["input"] = json.loads(d["input"])
            d["output"] = json.loads(d["output"])
            result.append(d)
        return result
