"""
Common test fixtures shared by all modules.

Deterministic factories for wallets, secrets and recipients. Everything is
derived from an integer seed so tests can rebuild the same inputs.
"""

import hashlib
from typing import Optional

from core.crypto.field import b58encode
from core.merkle import Recipient


def make_wallet_bytes(seed: int) -> bytes:
    """32 public key bytes for a seed."""
    return hashlib.sha256(f"wallet-{seed}".encode()).digest()


def make_wallet(seed: int) -> str:
    """Base58 wallet for a seed."""
    return b58encode(make_wallet_bytes(seed))


def make_secret(seed: int) -> bytes:
    """32-byte secret for a seed."""
    return hashlib.sha256(f"secret-{seed}".encode()).digest()


def make_recipient(
    seed: int,
    amount: Optional[int] = None,
    with_secret: bool = True,
) -> Recipient:
    return Recipient(
        wallet=make_wallet(seed),
        amount=amount if amount is not None else 1000 * (seed + 1),
        secret=make_secret(seed) if with_secret else None,
    )


def make_recipients(count: int, with_secret: bool = True) -> list[Recipient]:
    """count recipients with seeds 0..count-1."""
    return [make_recipient(i, with_secret=with_secret) for i in range(count)]
