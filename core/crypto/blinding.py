"""
Secret Generator
Per-recipient random blinding values.

Two variants exist:
- generate_secret(): 32 uniformly random bytes. The delegated hash service
  reduces values modulo the field, so these are accepted as-is.
- generate_field_secret(): same, with the top 3 bits of the big-endian value
  cleared so the integer is < 2^253 and therefore below FIELD_MODULUS.

Which rule a deployment uses is a configuration choice
(TreeConfig.field_safe_secrets); neither is applied implicitly.
"""
from __future__ import annotations

import secrets

from core.crypto.field import FIELD_BYTES, ensure_field_bytes


# Clears the three most significant bits of the first (big-endian) byte
FIELD_SAFE_MASK: int = 0x1F


def generate_secret() -> bytes:
    """Return 32 cryptographically random bytes."""
    return secrets.token_bytes(FIELD_BYTES)


def generate_field_secret() -> bytes:
    """Return 32 random bytes whose big-endian value fits the BN254 field."""
    raw = bytearray(secrets.token_bytes(FIELD_BYTES))
    raw[0] &= FIELD_SAFE_MASK
    return bytes(raw)


def mask_to_field(secret: bytes) -> bytes:
    """Apply the field-safe mask to an existing secret."""
    raw = bytearray(ensure_field_bytes(secret, "secret"))
    raw[0] &= FIELD_SAFE_MASK
    return bytes(raw)


def secret_generator(field_safe: bool = False):
    """Select the generator for the configured masking rule."""
    return generate_field_secret if field_safe else generate_secret


__all__ = [
    "FIELD_SAFE_MASK",
    "generate_secret",
    "generate_field_secret",
    "mask_to_field",
    "secret_generator",
]
