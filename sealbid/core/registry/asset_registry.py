"""
Asset Registry - non-fungible record ledger.

This module provides:
- Minting of unique records bound to an owner (one per finalized auction)
- Ownership queries and transfers
- Metadata storage and enumeration

Records are never duplicated or deleted. Identifiers come from a
monotonically increasing Counter.
"""

from dataclasses import dataclass, field
from typing import Dict, List, Optional, Protocol, runtime_checkable
import time

from sealbid.core.errors import AuthError, StateError
from sealbid.crypto import normalize_address
from sealbid.utils.logger import get_logger
from sealbid.utils.validation import require, validate_metadata

logger = get_logger("registry")


# =============================================================================
# Counter
# =============================================================================


class Counter:
    """Monotonically increasing identifier source (first id is `start`)."""

    def __init__(self, start: int = 1, current: Optional[int] = None):
        self.start = start
        self._next = start if current is None else current

    @property
    def current(self) -> int:
        """The next value that will be handed out."""
        return self._next

    def next(self) -> int:
        value = self._next
        self._next += 1
        return value


# =============================================================================
# Data Structures
# =============================================================================


@dataclass
class AssetRecord:
    """
    A minted record.

    Attributes:
        asset_id: Unique identifier
        owner: Current owner identity
        metadata: URI or descriptor supplied at mint
        minted_at: Mint timestamp
    """
    asset_id: int
    owner: str
    metadata: str
    minted_at: int = field(default_factory=lambda: int(time.time()))


@runtime_checkable
class AssetMinter(Protocol):
    """The only capability the auction engine needs from the registry."""

    def mint_one(self, owner: str, metadata: str) -> int:
        ...


# =============================================================================
# Asset Registry
# =============================================================================


class AssetRegistry:
    """
    Registry of non-fungible records.

    Optionally backed by a StorageManager; every mint and transfer is
    persisted before the call returns.
    """

    def __init__(self, storage_manager=None):
        """
        Initialize the registry.

        Args:
            storage_manager: Persistence manager. None = in-memory only.
        """
        self.assets: Dict[int, AssetRecord] = {}
        self.counter = Counter()
        self.storage_manager = storage_manager

        if storage_manager:
            self._load_from_storage()
            storage_manager.add_rollback_listener(self._load_from_storage)

    def _load_from_storage(self) -> None:
        self.assets = {record.asset_id: record for record in self.storage_manager.load_assets()}
        self.counter = Counter(current=self.storage_manager.get_counter("asset_id", 1))
        logger.info(f"Loaded {len(self.assets)} assets from storage")

    # =========================================================================
    # Minting
    # =========================================================================

    def mint_one(self, owner: str, metadata: str) -> int:
        """
        Mint a new record owned by `owner`.

        Args:
            owner: Owner identity
            metadata: Asset metadata (e.g. a token URI)

        Returns:
            The new asset id
        """
        owner = normalize_address(owner)
        require(validate_metadata(metadata))

        asset_id = self.counter.current
        record = AssetRecord(asset_id=asset_id, owner=owner, metadata=metadata)

        if self.storage_manager:
            self.storage_manager.save_asset(record, next_id=asset_id + 1)

        self.counter.next()
        self.assets[asset_id] = record

        logger.info(f"Minted asset {asset_id} to {owner}")
        return asset_id

    # =========================================================================
    # Transfers
    # =========================================================================

    def transfer(self, asset_id: int, sender: str, recipient: str) -> None:
        """Move an asset from its current owner to `recipient`."""
        record = self._require(asset_id)
        sender = normalize_address(sender)
        recipient = normalize_address(recipient)

        if record.owner != sender:
            raise AuthError("not asset owner")

        record.owner = recipient
        if self.storage_manager:
            self.storage_manager.save_asset(record)

        logger.info(f"Asset {asset_id} transferred {sender} -> {recipient}")

    # =========================================================================
    # Queries
    # =========================================================================

    def _require(self, asset_id: int) -> AssetRecord:
        record = self.assets.get(asset_id)
        if record is None:
            raise StateError(f"unknown asset {asset_id}")
        return record

    def get(self, asset_id: int) -> Optional[AssetRecord]:
        return self.assets.get(asset_id)

    def owner_of(self, asset_id: int) -> str:
        return self._require(asset_id).owner

    def metadata_of(self, asset_id: int) -> str:
        return self._require(asset_id).metadata

    def assets_of(self, owner: str) -> List[int]:
        owner = normalize_address(owner)
        return sorted(a.asset_id for a in self.assets.values() if a.owner == owner)

    def balance_of(self, owner: str) -> int:
        return len(self.assets_of(owner))

    def total_supply(self) -> int:
        return len(self.assets)


__all__ = [
    "AssetRegistry",
    "AssetRecord",
    "AssetMinter",
    "Counter",
]
