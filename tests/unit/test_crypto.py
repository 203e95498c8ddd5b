"""
Tests for cryptographic primitives.

Tests cover:
1. Hash functions against known vectors
2. Keypair and address derivation
3. Commitment layout and input checks
"""

import pytest

from sealbid.crypto import (
    UINT256_MAX,
    bytes_to_hex,
    generate_keypair,
    generate_nonce,
    hash_bid_commitment,
    hex_to_bytes,
    is_valid_address,
    keccak256,
    normalize_address,
    private_key_to_public_key,
    address_from_public_key,
)


ALICE = "0x" + "a1" * 20
BOB = "0x" + "b2" * 20


class TestHashing:
    """Tests for hash functions."""

    def test_keccak256_empty(self):
        """Keccak-256, not NIST SHA3-256."""
        assert keccak256(b"").hex() == (
            "c5d2460186f7233c927e7db2dcc703c0e500b653ca82273b7bfad8045d85a470"
        )


class TestKeys:
    """Tests for keypairs and addresses."""

    def test_known_address(self):
        private_key = (1).to_bytes(32, "big")
        public_key = private_key_to_public_key(private_key)

        assert address_from_public_key(public_key) == "0x7e5f4552091a69125d5dfcb7b8c2659029395bdf"

    def test_generated_keypair(self):
        kp = generate_keypair()

        assert len(kp.private_key) == 32
        assert len(kp.public_key) == 64
        assert is_valid_address(kp.address)

    def test_bad_key_lengths(self):
        with pytest.raises(ValueError):
            private_key_to_public_key(b"\x01" * 31)
        with pytest.raises(ValueError):
            address_from_public_key(b"\x01" * 65)


class TestCommitmentHash:
    """Tests for hash_bid_commitment."""

    def test_layout(self):
        expected = keccak256(
            (30).to_bytes(32, "big") + (7).to_bytes(32, "big") + bytes.fromhex("a1" * 20)
        )
        assert hash_bid_commitment(30, 7, ALICE) == expected

    def test_bound_to_bidder(self):
        assert hash_bid_commitment(30, 7, ALICE) != hash_bid_commitment(30, 7, BOB)

    def test_nonce_blinds_value(self):
        assert hash_bid_commitment(30, 7, ALICE) != hash_bid_commitment(30, 8, ALICE)

    def test_uint256_bounds(self):
        hash_bid_commitment(UINT256_MAX, UINT256_MAX, ALICE)
        with pytest.raises(ValueError):
            hash_bid_commitment(UINT256_MAX + 1, 0, ALICE)
        with pytest.raises(ValueError):
            hash_bid_commitment(0, -1, ALICE)

    def test_invalid_bidder(self):
        with pytest.raises(ValueError):
            hash_bid_commitment(1, 1, "alice")

    def test_nonce_range(self):
        assert 0 <= generate_nonce() <= UINT256_MAX


class TestHelpers:
    """Tests for encoding helpers."""

    def test_hex_roundtrip(self):
        assert hex_to_bytes(bytes_to_hex(b"\x00\xff")) == b"\x00\xff"
        assert hex_to_bytes("0XABCD") == b"\xab\xcd"

    def test_address_validation(self):
        assert is_valid_address(ALICE)
        assert not is_valid_address("a1" * 21)
        assert not is_valid_address("0x" + "zz" * 20)
        assert not is_valid_address(None)

    def test_normalize_address(self):
        assert normalize_address("0x" + "A1" * 20) == ALICE
        with pytest.raises(ValueError):
            normalize_address("0x12")
