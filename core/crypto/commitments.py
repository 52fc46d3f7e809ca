"""
Leaf Commitments and Nullifiers

Canonical Commitment Rules (Hard Contracts):
1. wallet  -> 32-byte public key (base58 string decoded, or raw bytes)
2. amount  -> u64 in smallest units, as a 32-byte big-endian field element
3. secret  -> exactly 32 bytes
4. leaf      = hash3(wallet, amount, secret)   (order fixed)
5. nullifier = hash2(secret, leaf_index)       (index as field element)

The nullifier depends only on the recipient's own secret and index, so it
can be computed at claim time without the tree. It reveals neither the
wallet nor the leaf index to anyone who lacks the secret.
"""
from __future__ import annotations

from typing import Optional, Union

from core.crypto.field import FIELD_BYTES, b58decode, ensure_field_bytes, to_field_bytes
from core.crypto.providers import HashProvider
from core.schemas.errors import InvalidProofIndexError, MalformedInputError


# Largest amount representable by the ledger's u64 denomination
MAX_AMOUNT: int = (1 << 64) - 1

WalletLike = Union[str, bytes, bytearray]


def encode_wallet(wallet: WalletLike) -> bytes:
    """
    Encode a wallet identifier as its canonical 32 public key bytes.

    Raises:
        MalformedInputError: If the identifier does not decode to 32 bytes
    """
    if isinstance(wallet, str):
        raw = b58decode(wallet.strip())
    elif isinstance(wallet, (bytes, bytearray)):
        raw = bytes(wallet)
    else:
        raise MalformedInputError(
            f"Wallet must be a base58 string or bytes, got {type(wallet).__name__}",
            field="wallet",
        )
    if len(raw) != FIELD_BYTES:
        raise MalformedInputError(
            f"Wallet must decode to {FIELD_BYTES} bytes, got {len(raw)}",
            field="wallet",
        )
    return raw


def encode_amount(amount: int) -> bytes:
    """
    Encode an amount (smallest units) as a field element.

    Raises:
        MalformedInputError: If amount is not an int, negative, or above u64
    """
    if isinstance(amount, bool) or not isinstance(amount, int):
        raise MalformedInputError(
            f"Amount must be an integer number of base units, got {type(amount).__name__}",
            field="amount",
        )
    if amount < 0:
        raise MalformedInputError(f"Amount must be non-negative, got {amount}", field="amount")
    if amount > MAX_AMOUNT:
        raise MalformedInputError(f"Amount exceeds u64: {amount}", field="amount")
    return to_field_bytes(amount)


def encode_index(leaf_index: int, capacity: Optional[int] = None) -> bytes:
    """
    Encode a leaf index as a field element.

    Raises:
        InvalidProofIndexError: If the index is negative or >= capacity
    """
    if isinstance(leaf_index, bool) or not isinstance(leaf_index, int):
        raise InvalidProofIndexError(
            f"Leaf index must be an int, got {type(leaf_index).__name__}",
            leaf_index=repr(leaf_index),
            capacity=capacity,
        )
    if leaf_index < 0 or (capacity is not None and leaf_index >= capacity):
        raise InvalidProofIndexError(
            f"Leaf index {leaf_index} out of range",
            leaf_index=leaf_index,
            capacity=capacity,
        )
    return to_field_bytes(leaf_index)


def compute_leaf(
    wallet: WalletLike,
    amount: int,
    secret: bytes,
    provider: HashProvider,
) -> bytes:
    """
    Compute the commitment leaf for one recipient.

    Args:
        wallet: Base58 public key or its 32 raw bytes
        amount: Allocation in smallest units
        secret: The recipient's 32-byte blinding secret
        provider: Hash provider used for the whole tree

    Returns:
        32-byte leaf
    """
    wallet_fe = encode_wallet(wallet)
    amount_fe = encode_amount(amount)
    secret_fe = ensure_field_bytes(secret, "secret")
    return provider.hash3(wallet_fe, amount_fe, secret_fe)


def compute_nullifier(
    secret: bytes,
    leaf_index: int,
    provider: HashProvider,
    *,
    capacity: Optional[int] = None,
) -> bytes:
    """
    Compute the one-time nullifier for a claim.

    Args:
        secret: The recipient's 32-byte blinding secret
        leaf_index: The recipient's assigned leaf index
        provider: Hash provider (must match the one used for the tree)
        capacity: Optional tree capacity for range checking

    Returns:
        32-byte nullifier
    """
    secret_fe = ensure_field_bytes(secret, "secret")
    index_fe = encode_index(leaf_index, capacity)
    return provider.hash2(secret_fe, index_fe)


__all__ = [
    "MAX_AMOUNT",
    "encode_wallet",
    "encode_amount",
    "encode_index",
    "compute_leaf",
    "compute_nullifier",
]
