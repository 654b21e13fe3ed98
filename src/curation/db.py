# src/curation/db.py
"""SQLite listing store and run log for curation batch jobs."""

import json
import sqlite3
import uuid
from datetime import datetime, timezone
from pathlib import Path
from typing import Iterator, List, Optional

LISTING_COLUMNS = (
    'id', 'title', 'description', 'city', 'price', 'bedrooms',
    'listing_type', 'tags', 'open_house_paid',
)


class Database:
    """SQLite database wrapper with schema management."""

    def __init__(self, db_path: str = "data/listings.db"):
        self.db_path = Path(db_path)
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        self._conn: Optional[sqlite3.Connection] = None

    def __enter__(self):
        """Context manager entry."""
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        """Context manager exit - ensure connection is closed."""
        self.close()
        return False

    def _get_conn(self) -> sqlite3.Connection:
        if self._conn is None:
            self._conn = sqlite3.connect(str(self.db_path))
            self._conn.row_factory = sqlite3.Row
        return self._conn

    def close(self):
        if self._conn:
            self._conn.close()
            self._conn = None

    def query(self, sql: str, params: tuple = ()) -> List[dict]:
        """Execute query and return results as list of dicts."""
        conn = self._get_conn()
        cursor = conn.execute(sql, params)
        return [dict(row) for row in cursor.fetchall()]

    def execute(self, sql: str, params: tuple = ()) -> int:
        """Execute SQL and return rowcount."""
        conn = self._get_conn()
        cursor = conn.execute(sql, params)
        conn.commit()
        return cursor.rowcount

    def list_tables(self) -> List[str]:
        """Return list of table names."""
        rows = self.query(
            "SELECT name FROM sqlite_master WHERE type='table' ORDER BY name"
        )
        return [r['name'] for r in rows]

    def init_schema(self):
        """Create all tables if they don't exist."""
        conn = self._get_conn()

        # 1. listings - Stored listings with their current discovery tags
        conn.execute("""
            CREATE TABLE IF NOT EXISTS listings (
                id TEXT PRIMARY KEY,
                title TEXT NOT NULL,
                description TEXT,
                city TEXT,
                price NUMERIC,
                bedrooms INTEGER,
                listing_type TEXT,
                tags TEXT DEFAULT '[]',
                created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
                updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
            )
        """)

        conn.execute("""
            CREATE INDEX IF NOT EXISTS idx_listings_city
            ON listings(city)
        """)

        # 2. run_log - Batch job execution tracking
        conn.execute("""
            CREATE TABLE IF NOT EXISTS run_log (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                run_id TEXT NOT NULL UNIQUE,
                run_type TEXT NOT NULL,
                started_at TIMESTAMP NOT NULL,
                completed_at TIMESTAMP,
                duration_seconds REAL,
                status TEXT CHECK(status IN ('running', 'success', 'failed', 'partial')) NOT NULL,
                error_message TEXT,
                records_processed INTEGER,
                records_updated INTEGER,
                records_failed INTEGER,
                trigger TEXT
            )
        """)

        conn.execute("""
            CREATE INDEX IF NOT EXISTS idx_run_log_type_date
            ON run_log(run_type, started_at)
        """)

        conn.commit()
        self._migrate_schema()

    def _migrate_schema(self):
        """Apply incremental schema migrations for existing databases."""
        conn = self._get_conn()

        # Migrate listings: add open_house_paid (targeted #OpenHouse patch)
        cursor = conn.execute("PRAGMA table_info(listings)")
        columns = {row[1] for row in cursor.fetchall()}
        if 'open_house_paid' not in columns:
            conn.execute(
                "ALTER TABLE listings ADD COLUMN open_house_paid BOOLEAN DEFAULT FALSE"
            )

        conn.commit()

    @staticmethod
    def decode_listing(row: dict) -> dict:
        """Decode a raw listings row: JSON tags to a list, open_house_paid to bool.

        Raises:
            ValueError: if the stored tags are not a JSON list
        """
        listing = dict(row)
        tags = json.loads(listing.get('tags') or '[]')
        if not isinstance(tags, list):
            raise ValueError(f"Listing {listing.get('id')}: tags is not a list")
        listing['tags'] = tags
        listing['open_house_paid'] = bool(listing.get('open_house_paid'))
        return listing

    def upsert_listings(self, listings: List[dict]) -> int:
        """Insert or replace listings by id. Returns count written."""
        if not listings:
            return 0

        sql = """
            INSERT INTO listings (
                id, title, description, city, price, bedrooms,
                listing_type, tags, open_house_paid
            ) VALUES (
                :id, :title, :description, :city, :price, :bedrooms,
                :listing_type, :tags, :open_house_paid
            )
            ON CONFLICT(id) DO UPDATE SET
                title = excluded.title,
                description = excluded.description,
                city = excluded.city,
                price = excluded.price,
                bedrooms = excluded.bedrooms,
                listing_type = excluded.listing_type,
                tags = excluded.tags,
                open_house_paid = excluded.open_house_paid,
                updated_at = CURRENT_TIMESTAMP
        """

        conn = self._get_conn()
        cursor = conn.cursor()
        written = 0

        for listing in listings:
            record = {column: listing.get(column) for column in LISTING_COLUMNS}
            if not record['id']:
                record['id'] = str(uuid.uuid4())
            record['tags'] = json.dumps(list(record['tags'] or []))
            record['open_house_paid'] = bool(record['open_house_paid'])
            if record['price'] is not None:
                record['price'] = float(record['price'])
            cursor.execute(sql, record)
            written += cursor.rowcount

        conn.commit()
        return written

    def get_listing(self, listing_id: str) -> Optional[dict]:
        """Get one listing by id, with tags decoded to a list."""
        rows = self.query("SELECT * FROM listings WHERE id = ?", (listing_id,))
        return self.decode_listing(rows[0]) if rows else None

    def count_listings(self) -> int:
        return self.query("SELECT COUNT(*) as n FROM listings")[0]['n']

    def iter_listings(self, page_size: int = 100) -> Iterator[dict]:
        """Yield every listing decoded, in id order."""
        for row in self.iter_listing_rows(page_size=page_size):
            yield self.decode_listing(row)

    def iter_listing_rows(self, page_size: int = 100) -> Iterator[dict]:
        """
        Yield every raw listings row, fetched one page at a time in id order.

        Rows are not decoded, so one corrupt row can't stop the iteration;
        callers pass each row through decode_listing themselves.
        Keyset pagination (id > last seen) so tag updates made while
        iterating don't shift later pages.
        """
        last_id = ''
        while True:
            rows = self.query(
                """SELECT * FROM listings
                   WHERE id > ?
                   ORDER BY id
                   LIMIT ?""",
                (last_id, page_size)
            )
            if not rows:
                return
            for row in rows:
                yield row
            last_id = rows[-1]['id']

    def update_listing_tags(self, listing_id: str, tags: List[str]) -> None:
        """Overwrite a listing's tags.

        Raises:
            KeyError: if no listing has this id
        """
        updated = self.execute(
            """UPDATE listings
               SET tags = ?, updated_at = CURRENT_TIMESTAMP
               WHERE id = ?""",
            (json.dumps(list(tags)), listing_id)
        )
        if updated == 0:
            raise KeyError(f"Listing not found: {listing_id}")

    def start_run(self, run_type: str, trigger: str) -> str:
        """Start a new run and return the run_id."""
        run_id = str(uuid.uuid4())[:8]
        now = datetime.now(timezone.utc).isoformat()

        self.execute(
            """
            INSERT INTO run_log (run_id, run_type, started_at, status, trigger)
            VALUES (?, ?, ?, 'running', ?)
            """,
            (run_id, run_type, now, trigger)
        )
        return run_id

    def complete_run(
        self,
        run_id: str,
        status: str,
        error_message: str = None,
        records_processed: int = None,
        records_updated: int = None,
        records_failed: int = None,
    ):
        """Complete a run with final status and stats."""
        now = datetime.now(timezone.utc)
        started = self.query(
            "SELECT started_at FROM run_log WHERE run_id = ?", (run_id,)
        )
        if started:
            started_at = datetime.fromisoformat(started[0]['started_at'])
            duration = (now - started_at).total_seconds()
        else:
            duration = None

        self.execute(
            """
            UPDATE run_log SET
                completed_at = ?,
                duration_seconds = ?,
                status = ?,
                error_message = ?,
                records_processed = ?,
                records_updated = ?,
                records_failed = ?
            WHERE run_id = ?
            """,
            (
                now.isoformat(),
                duration,
                status,
                error_message,
                records_processed,
                records_updated,
                records_failed,
                run_id,
            )
        )

    def get_last_successful_run(self, run_type: str = None) -> Optional[dict]:
        """Get most recent successful run, optionally filtered by type."""
        if run_type:
            rows = self.query(
                """
                SELECT * FROM run_log
                WHERE status = 'success' AND run_type = ?
                ORDER BY completed_at DESC LIMIT 1
                """,
                (run_type,)
            )
        else:
            rows = self.query(
                """
                SELECT * FROM run_log
                WHERE status = 'success'
                ORDER BY completed_at DESC LIMIT 1
                """
            )
        return rows[0] if rows else None
