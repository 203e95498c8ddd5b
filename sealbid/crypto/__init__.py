"""
Cryptographic primitives for sealbid.

This module provides:
- Keccak-256 hashing
- Identity keypairs and address derivation
- The sealed-bid commitment hash

Design Notes:
-------------
Participant identities are Ethereum-style addresses (0x + 40 hex chars)
derived from secp256k1 public keys, so the same identity can be used by
any wallet tooling that speaks the EVM conventions.

A bid commitment is:

    C = keccak256(value_be32 || nonce_be32 || address_20)

Binding the bidder's own address into the hash means a commitment copied
from another participant can never be revealed by the copier.
"""

import secrets
from dataclasses import dataclass

from Crypto.Hash import keccak
from py_ecc.secp256k1 import secp256k1


# =============================================================================
# Constants
# =============================================================================

# secp256k1 curve order (number of points on the curve)
SECP256K1_ORDER = 0xFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFEBAAEDCE6AF48A03BBFD25E8CD0364141

# Commitment layout
UINT256_MAX = 2**256 - 1
COMMITMENT_SIZE = 32
ADDRESS_SIZE = 20


# =============================================================================
# Hashing
# =============================================================================


def keccak256(data: bytes) -> bytes:
    """
    Compute Keccak-256 hash (Ethereum-style).

    Used for: commitments, address derivation.
    """
    k = keccak.new(digest_bits=256)
    k.update(data)
    return k.digest()


# =============================================================================
# Key Generation
# =============================================================================


@dataclass
class KeyPair:
    """
    An ECDSA keypair on secp256k1.

    Attributes:
        private_key: 32-byte secret key (integer in [1, order-1])
        public_key: 64-byte uncompressed public key (x || y coordinates)
    """
    private_key: bytes  # 32 bytes
    public_key: bytes   # 64 bytes (uncompressed, no 0x04 prefix)

    @property
    def address(self) -> str:
        """Participant identity derived from the public key."""
        return address_from_public_key(self.public_key)

    @property
    def private_key_hex(self) -> str:
        return self.private_key.hex()


def generate_keypair() -> KeyPair:
    """
    Generate a new random keypair.

    Uses cryptographically secure random number generator.
    """
    private_key_int = secrets.randbelow(SECP256K1_ORDER - 1) + 1
    private_key = private_key_int.to_bytes(32, byteorder="big")
    return KeyPair(private_key=private_key, public_key=private_key_to_public_key(private_key))


def private_key_to_public_key(private_key: bytes) -> bytes:
    """
    Derive public key from private key.

    Args:
        private_key: 32-byte private key

    Returns:
        64-byte uncompressed public key
    """
    if len(private_key) != 32:
        raise ValueError("Private key must be 32 bytes")

    public_key_point = secp256k1.privtopub(private_key)
    x_bytes = public_key_point[0].to_bytes(32, byteorder="big")
    y_bytes = public_key_point[1].to_bytes(32, byteorder="big")
    return x_bytes + y_bytes


def address_from_public_key(public_key: bytes) -> str:
    """
    Address = last 20 bytes of keccak256(public_key), hex-encoded with 0x prefix.
    """
    if len(public_key) != 64:
        raise ValueError("Public key must be 64 bytes")
    return "0x" + keccak256(public_key)[-ADDRESS_SIZE:].hex()


# =============================================================================
# Commitments
# =============================================================================


def hash_bid_commitment(bid_value: int, nonce: int, bidder: str) -> bytes:
    """
    Compute the commitment for a sealed bid.

    Args:
        bid_value: Bid amount (uint256)
        nonce: Secret blinding value (uint256)
        bidder: Bidder address (0x-prefixed)

    Returns:
        32-byte commitment
    """
    if not 0 <= bid_value <= UINT256_MAX:
        raise ValueError(f"bid_value out of uint256 range: {bid_value}")
    if not 0 <= nonce <= UINT256_MAX:
        raise ValueError(f"nonce out of uint256 range: {nonce}")
    if not is_valid_address(bidder):
        raise ValueError(f"Invalid bidder address: {bidder}")

    packed = (
        bid_value.to_bytes(32, "big") +
        nonce.to_bytes(32, "big") +
        hex_to_bytes(bidder)
    )
    return keccak256(packed)


def generate_nonce() -> int:
    """Random 256-bit blinding nonce."""
    return secrets.randbits(256)


# =============================================================================
# Utility Functions
# =============================================================================


def bytes_to_hex(data: bytes) -> str:
    """Convert bytes to hex string with 0x prefix."""
    return "0x" + data.hex()


def hex_to_bytes(hex_str: str) -> bytes:
    """Convert hex string (with or without 0x prefix) to bytes."""
    if hex_str.startswith("0x") or hex_str.startswith("0X"):
        hex_str = hex_str[2:]
    return bytes.fromhex(hex_str)


def is_valid_address(address: str) -> bool:
    """Check if string is a valid address format."""
    if not isinstance(address, str):
        return False
    if not address.startswith("0x"):
        return False
    if len(address) != 42:  # 0x + 40 hex chars
        return False
    try:
        int(address, 16)
        return True
    except ValueError:
        return False


def normalize_address(address: str) -> str:
    """Lower-case an address so identities compare by value."""
    if not is_valid_address(address):
        raise ValueError(f"Invalid address: {address}")
    return address.lower()


__all__ = [
    "keccak256",
    "KeyPair",
    "generate_keypair",
    "private_key_to_public_key",
    "address_from_public_key",
    "hash_bid_commitment",
    "generate_nonce",
    "bytes_to_hex",
    "hex_to_bytes",
    "is_valid_address",
    "normalize_address",
    "UINT256_MAX",
    "COMMITMENT_SIZE",
    "ADDRESS_SIZE",
]
