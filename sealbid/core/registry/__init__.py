"""
sealbid Asset Registry Module.

Mints and tracks the unique records issued to auction winners.
"""

from sealbid.core.registry.asset_registry import (
    AssetRegistry,
    AssetRecord,
    AssetMinter,
    Counter,
)

__all__ = [
    "AssetRegistry",
    "AssetRecord",
    "AssetMinter",
    "Counter",
]
