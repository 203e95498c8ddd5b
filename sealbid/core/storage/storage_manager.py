import json
from contextlib import contextmanager
from pathlib import Path
from typing import Callable, Dict, Iterable, List, Optional, Tuple

from sealbid.core.registry.asset_registry import AssetRecord
from sealbid.core.storage.sqlite_adapter import SQLiteAdapter
from sealbid.utils.logger import get_logger

logger = get_logger("storage.manager")


def _int_or_none(value: Optional[str]) -> Optional[int]:
    return None if value is None else int(value)


class StorageManager:
    """
    Manages persistent storage for a deployment.

    Coordinates data persistence using SQLite adapter.
    Handles:
    - Auction records and their commitments
    - Minted assets
    - Payout balances
    - Event log and id counters
    """

    def __init__(self, data_dir: Path, db_name: str = "auctions.db"):
        self.data_dir = data_dir
        self.db_path = data_dir / db_name
        self.adapter = SQLiteAdapter(self.db_path)
        self._rollback_listeners: List[Callable[[], None]] = []

        logger.info(f"StorageManager initialized at {self.db_path}")

    def close(self):
        self.adapter.close()

    # =========================================================================
    # Transactions
    # =========================================================================

    def add_rollback_listener(self, callback: Callable[[], None]):
        """Register a cache reload to run after an outermost transaction rolls back."""
        self._rollback_listeners.append(callback)

    @contextmanager
    def transaction(self, rejections: Tuple[type, ...] = ()):
        """
        Run every save inside the block as one atomic write.

        On failure the database is rolled back and registered caches are
        reloaded from it, so memory never runs ahead of what was stored.

        Args:
            rejections: Exception types raised before anything changes;
                these roll back without reloading caches.
        """
        outermost = not self.adapter.in_transaction
        try:
            with self.adapter.transaction():
                yield self
        except rejections:
            raise
        except Exception as e:
            if outermost:
                logger.error(f"Transaction rolled back: {e}")
                for reload in self._rollback_listeners:
                    reload()
            raise

    # =========================================================================
    # Counters
    # =========================================================================

    def get_counter(self, name: str, default: int) -> int:
        value = self.adapter.get_meta(f"next_{name}")
        return int(value) if value is not None else default

    def set_counter(self, name: str, value: int):
        self.adapter.set_meta(f"next_{name}", str(value))

    # =========================================================================
    # Auctions
    # =========================================================================

    def save_auction(self, record: dict, next_id: Optional[int] = None):
        """Persist an auction record (see SealedBidAuction.to_record)."""
        row = {k: v for k, v in record.items() if k != "commitments"}
        for key in ("fee_amount", "highest_value", "escrow_balance", "escrow_released"):
            row[key] = str(row[key])
        row["ended"] = int(row["ended"])
        row["payout_pending"] = int(row["payout_pending"])

        commitments = []
        for c in record["commitments"]:
            commitments.append({
                **c,
                "auction_id": record["auction_id"],
                "revealed": int(c["revealed"]),
                "revealed_value": None if c["revealed_value"] is None else str(c["revealed_value"]),
            })

        meta = ("next_auction_id", str(next_id)) if next_id is not None else None
        self.adapter.save_auction(row, commitments, meta)

    def load_auctions(self) -> List[dict]:
        """Load every auction as a record dict."""
        records = []
        for row in self.adapter.get_all_auctions():
            record = dict(row)
            for key in ("fee_amount", "highest_value", "escrow_balance", "escrow_released"):
                record[key] = int(record[key])
            record["ended"] = bool(record["ended"])
            record["payout_pending"] = bool(record["payout_pending"])
            record["commitments"] = [
                {
                    "bidder": c["bidder"],
                    "commitment_hash": c["commitment_hash"],
                    "committed_at": c["committed_at"],
                    "revealed": bool(c["revealed"]),
                    "revealed_value": _int_or_none(c["revealed_value"]),
                    "revealed_at": c["revealed_at"],
                }
                for c in self.adapter.get_commitments(record["auction_id"])
            ]
            records.append(record)
        return records

    # =========================================================================
    # Assets
    # =========================================================================

    def save_asset(self, record: AssetRecord, next_id: Optional[int] = None):
        meta = ("next_asset_id", str(next_id)) if next_id is not None else None
        self.adapter.save_asset(record.asset_id, record.owner, record.metadata, record.minted_at, meta)

    def load_assets(self) -> List[AssetRecord]:
        return [
            AssetRecord(
                asset_id=row["asset_id"],
                owner=row["owner"],
                metadata=row["metadata"],
                minted_at=row["minted_at"],
            )
            for row in self.adapter.get_all_assets()
        ]

    # =========================================================================
    # Balances
    # =========================================================================

    def save_balance(self, address: str, amount: int):
        self.adapter.save_balance(address, str(amount))

    def load_balances(self) -> Iterable[Tuple[str, int]]:
        return [(address, int(amount)) for address, amount in self.adapter.get_all_balances()]

    # =========================================================================
    # Events
    # =========================================================================

    def append_event(self, event: Dict):
        self.adapter.append_event(event["auction_id"], event["event"], json.dumps(event))

    def load_events(self, auction_id: Optional[int] = None) -> List[Dict]:
        return [json.loads(payload) for payload in self.adapter.get_events(auction_id)]
