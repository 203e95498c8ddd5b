import sqlite3
import threading
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

from sealbid.utils.logger import get_logger

logger = get_logger("storage.sqlite")


class SQLiteAdapter:
    """
    SQLite backend for persistent storage.

    Provides:
    1. Auction state (one row per auction, one row per commitment)
    2. Minted asset records
    3. Payout balances
    4. Append-only event log
    5. Metadata (id counters)
    """

    def __init__(self, db_path: Path):
        self.db_path = db_path
        self._conn_local = threading.local()

        # Ensure directory exists
        if not db_path.parent.exists():
            db_path.parent.mkdir(parents=True, exist_ok=True)

        self._init_schema()

    def _get_conn(self) -> sqlite3.Connection:
        """Get or create connection for current thread."""
        if not hasattr(self._conn_local, "conn"):
            self._conn_local.conn = sqlite3.connect(
                self.db_path,
                timeout=30.0,
                check_same_thread=False
            )
            self._conn_local.conn.row_factory = sqlite3.Row
            self._conn_local.conn.execute("PRAGMA journal_mode=WAL;")
            self._conn_local.conn.execute("PRAGMA synchronous=NORMAL;")
        return self._conn_local.conn

    def close(self):
        if hasattr(self._conn_local, "conn"):
            self._conn_local.conn.close()
            del self._conn_local.conn

    @property
    def in_transaction(self) -> bool:
        return getattr(self._conn_local, "depth", 0) > 0

    @contextmanager
    def transaction(self):
        """
        Group writes into one atomic unit.

        Nested scopes join the outermost one; only the outermost commits,
        and an exception anywhere rolls back every write made inside it.
        """
        conn = self._get_conn()
        depth = getattr(self._conn_local, "depth", 0)
        self._conn_local.depth = depth + 1
        try:
            if depth:
                yield conn
            else:
                with conn:
                    yield conn
        finally:
            self._conn_local.depth = depth

    def _init_schema(self):
        """Initialize database schema."""
        conn = self._get_conn()
        with conn:
            # 1. Auctions
            # Amounts are uint256 and stored as decimal TEXT
            conn.execute("""
                CREATE TABLE IF NOT EXISTS auctions (
                    auction_id INTEGER PRIMARY KEY,
                    deadline INTEGER NOT NULL,
                    fee_amount TEXT NOT NULL,
                    operator TEXT NOT NULL,
                    created_at INTEGER NOT NULL,
                    ended INTEGER NOT NULL DEFAULT 0,
                    highest_value TEXT NOT NULL DEFAULT '0',
                    winner TEXT,
                    asset_id INTEGER,
                    finalized_at INTEGER,
                    payout_pending INTEGER NOT NULL DEFAULT 0,
                    escrow_balance TEXT NOT NULL DEFAULT '0',
                    escrow_released TEXT NOT NULL DEFAULT '0'
                )
            """)

            # 2. Commitments (at most one per bidder per auction)
            conn.execute("""
                CREATE TABLE IF NOT EXISTS commitments (
                    auction_id INTEGER NOT NULL,
                    bidder TEXT NOT NULL,
                    commitment_hash TEXT NOT NULL,
                    committed_at INTEGER NOT NULL,
                    revealed INTEGER NOT NULL DEFAULT 0,
                    revealed_value TEXT,
                    revealed_at INTEGER,
                    PRIMARY KEY (auction_id, bidder)
                )
            """)

            # 3. Assets
            conn.execute("""
                CREATE TABLE IF NOT EXISTS assets (
                    asset_id INTEGER PRIMARY KEY,
                    owner TEXT NOT NULL,
                    metadata TEXT NOT NULL,
                    minted_at INTEGER NOT NULL
                )
            """)
            conn.execute("CREATE INDEX IF NOT EXISTS idx_asset_owner ON assets(owner);")

            # 4. Balances
            conn.execute("""
                CREATE TABLE IF NOT EXISTS balances (
                    address TEXT PRIMARY KEY,
                    amount TEXT NOT NULL
                )
            """)

            # 5. Event log
            conn.execute("""
                CREATE TABLE IF NOT EXISTS events (
                    seq INTEGER PRIMARY KEY AUTOINCREMENT,
                    auction_id INTEGER NOT NULL,
                    name TEXT NOT NULL,
                    payload TEXT NOT NULL
                )
            """)
            conn.execute("CREATE INDEX IF NOT EXISTS idx_event_auction ON events(auction_id);")

            # 6. Metadata
            conn.execute("""
                CREATE TABLE IF NOT EXISTS meta (
                    key TEXT PRIMARY KEY,
                    value TEXT
                )
            """)

    # =========================================================================
    # Metadata
    # =========================================================================

    def set_meta(self, key: str, value: str):
        with self.transaction() as conn:
            conn.execute("INSERT OR REPLACE INTO meta (key, value) VALUES (?, ?)", (key, value))

    def get_meta(self, key: str) -> Optional[str]:
        conn = self._get_conn()
        cursor = conn.execute("SELECT value FROM meta WHERE key = ?", (key,))
        row = cursor.fetchone()
        return row['value'] if row else None

    # =========================================================================
    # Auction Operations
    # =========================================================================

    def save_auction(
        self,
        row: Dict[str, Any],
        commitments: List[Dict[str, Any]],
        meta: Optional[Tuple[str, str]] = None,
    ):
        """Atomically upsert an auction, its commitments and (optionally) a meta key."""
        with self.transaction() as conn:
            conn.execute(
                """
                INSERT OR REPLACE INTO auctions (
                    auction_id, deadline, fee_amount, operator, created_at, ended,
                    highest_value, winner, asset_id, finalized_at, payout_pending,
                    escrow_balance, escrow_released
                ) VALUES (
                    :auction_id, :deadline, :fee_amount, :operator, :created_at, :ended,
                    :highest_value, :winner, :asset_id, :finalized_at, :payout_pending,
                    :escrow_balance, :escrow_released
                )
                """,
                row,
            )
            conn.executemany(
                """
                INSERT OR REPLACE INTO commitments (
                    auction_id, bidder, commitment_hash, committed_at,
                    revealed, revealed_value, revealed_at
                ) VALUES (
                    :auction_id, :bidder, :commitment_hash, :committed_at,
                    :revealed, :revealed_value, :revealed_at
                )
                """,
                commitments,
            )
            if meta:
                conn.execute("INSERT OR REPLACE INTO meta (key, value) VALUES (?, ?)", meta)

    def get_all_auctions(self) -> List[sqlite3.Row]:
        conn = self._get_conn()
        cursor = conn.execute("SELECT * FROM auctions ORDER BY auction_id ASC")
        return cursor.fetchall()

    def get_commitments(self, auction_id: int) -> List[sqlite3.Row]:
        conn = self._get_conn()
        cursor = conn.execute(
            "SELECT * FROM commitments WHERE auction_id = ? ORDER BY committed_at ASC, bidder ASC",
            (auction_id,)
        )
        return cursor.fetchall()

    # =========================================================================
    # Asset Operations
    # =========================================================================

    def save_asset(self, asset_id: int, owner: str, metadata: str, minted_at: int,
                   meta: Optional[Tuple[str, str]] = None):
        with self.transaction() as conn:
            conn.execute(
                "INSERT OR REPLACE INTO assets (asset_id, owner, metadata, minted_at) VALUES (?, ?, ?, ?)",
                (asset_id, owner, metadata, minted_at)
            )
            if meta:
                conn.execute("INSERT OR REPLACE INTO meta (key, value) VALUES (?, ?)", meta)

    def get_all_assets(self) -> List[sqlite3.Row]:
        conn = self._get_conn()
        cursor = conn.execute("SELECT * FROM assets ORDER BY asset_id ASC")
        return cursor.fetchall()

    # =========================================================================
    # Balance Operations
    # =========================================================================

    def save_balance(self, address: str, amount: str):
        with self.transaction() as conn:
            conn.execute("INSERT OR REPLACE INTO balances (address, amount) VALUES (?, ?)", (address, amount))

    def get_all_balances(self) -> List[Tuple[str, str]]:
        conn = self._get_conn()
        cursor = conn.execute("SELECT address, amount FROM balances")
        return [(row['address'], row['amount']) for row in cursor]

    # =========================================================================
    # Event Log
    # =========================================================================

    def append_event(self, auction_id: int, name: str, payload: str):
        with self.transaction() as conn:
            conn.execute(
                "INSERT INTO events (auction_id, name, payload) VALUES (?, ?, ?)",
                (auction_id, name, payload)
            )

    def get_events(self, auction_id: Optional[int] = None) -> List[str]:
        """Event payloads in emission order."""
        conn = self._get_conn()
        if auction_id is None:
            cursor = conn.execute("SELECT payload FROM events ORDER BY seq ASC")
        else:
            cursor = conn.execute(
                "SELECT payload FROM events WHERE auction_id = ? ORDER BY seq ASC",
                (auction_id,)
            )
        return [row['payload'] for row in cursor]
