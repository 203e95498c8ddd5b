"""
Persistent Storage Module.

Provides SQLite-backed persistence for:
- Auctions and commitments
- Minted assets and payout balances
- Event log and id counters
"""

from sealbid.core.storage.sqlite_adapter import SQLiteAdapter
from sealbid.core.storage.storage_manager import StorageManager

__all__ = ["SQLiteAdapter", "StorageManager"]
