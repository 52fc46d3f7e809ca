"""
Field Element Codec
Fixed-width big-endian encoding of integers used as hash inputs/outputs.

This module provides:
- int <-> 32-byte big-endian conversion (to_field_bytes / from_field_bytes)
- Lowercase, unprefixed hex encoding/decoding (to_hex / from_hex)
- Minimal-length hex for the delegated hash service wire format (to_wire_hex)
- Base58 decoding for wallet identifiers (b58decode)

Byte-exactness Notes:
- Every buffer is exactly FIELD_BYTES long and big-endian
- to_hex never emits a prefix or uppercase characters
- from_hex(to_hex(x)) == x and to_hex(from_hex(s)) == s for canonical s
"""
from __future__ import annotations

import re

from core.schemas.errors import MalformedInputError


# Width of every field element buffer
FIELD_BYTES: int = 32

# Largest value representable in FIELD_BYTES
MAX_FIELD_VALUE: int = (1 << (8 * FIELD_BYTES)) - 1

# BN254 scalar field modulus (the field used by the Noir circuit)
FIELD_MODULUS: int = (
    21888242871839275222246405745257275088548364400416034343698204186575808495617
)

ZERO_BYTES: bytes = bytes(FIELD_BYTES)

_HEX_RE = re.compile(r"^(?:[0-9a-f]{2})*$")

_B58_ALPHABET = "123456789ABCDEFGHJKLMNPQRSTUVWXYZabcdefghijkmnopqrstuvwxyz"
_B58_INDEX = {char: i for i, char in enumerate(_B58_ALPHABET)}


def to_field_bytes(value: int) -> bytes:
    """
    Encode a non-negative integer as a 32-byte big-endian buffer.

    Raises:
        MalformedInputError: If value is negative, not an int, or >= 2^256
    """
    if isinstance(value, bool) or not isinstance(value, int):
        raise MalformedInputError(
            f"Field element must be an int, got {type(value).__name__}",
            field="field_element",
        )
    if value < 0 or value > MAX_FIELD_VALUE:
        raise MalformedInputError(
            f"Field element out of range: {value}",
            field="field_element",
        )
    return value.to_bytes(FIELD_BYTES, byteorder="big", signed=False)


def from_field_bytes(data: bytes) -> int:
    """Decode a 32-byte big-endian buffer into an integer."""
    ensure_field_bytes(data)
    return int.from_bytes(data, byteorder="big", signed=False)


def ensure_field_bytes(data: bytes, name: str = "field_element") -> bytes:
    """
    Check that data is exactly one field element buffer.

    Returns the value as immutable bytes so callers can pass bytearrays.
    """
    if not isinstance(data, (bytes, bytearray)):
        raise MalformedInputError(
            f"{name} must be bytes, got {type(data).__name__}",
            field=name,
        )
    if len(data) != FIELD_BYTES:
        raise MalformedInputError(
            f"{name} must be {FIELD_BYTES} bytes, got {len(data)}",
            field=name,
        )
    return bytes(data)


def is_in_field(data: bytes) -> bool:
    """Check whether a buffer encodes a value below FIELD_MODULUS."""
    return from_field_bytes(data) < FIELD_MODULUS


def to_hex(data: bytes) -> str:
    """
    Convert bytes to lowercase hex without prefix.

    Example:
        >>> to_hex(bytes.fromhex("DEADBEEF"))
        'deadbeef'
    """
    return bytes(data).hex()


def from_hex(hex_string: str, *, allow_prefix: bool = False) -> bytes:
    """
    Convert a canonical lowercase hex string to bytes.

    Args:
        hex_string: Lowercase hex, two characters per byte
        allow_prefix: Accept (and strip) a leading "0x"

    Raises:
        MalformedInputError: On odd length, uppercase or non-hex characters
    """
    if not isinstance(hex_string, str):
        raise MalformedInputError(
            f"Hex value must be a string, got {type(hex_string).__name__}",
            field="hex",
        )
    content = hex_string
    if allow_prefix and content.startswith("0x"):
        content = content[2:]
    if not _HEX_RE.match(content):
        raise MalformedInputError(
            f"Not a canonical lowercase hex string: {hex_string[:16]}...",
            field="hex",
        )
    return bytes.fromhex(content)


def field_from_hex(hex_string: str, *, allow_prefix: bool = False) -> bytes:
    """Decode hex into exactly one 32-byte field element buffer."""
    return ensure_field_bytes(from_hex(hex_string, allow_prefix=allow_prefix))


def to_wire_hex(data: bytes) -> str:
    """
    Minimal-length hex used on the delegated hash wire.

    Leading zero bytes are stripped, the result always has even length,
    and zero is sent as "00".
    """
    value = from_field_bytes(data)
    hex_str = format(value, "x")
    if len(hex_str) % 2:
        hex_str = "0" + hex_str
    return hex_str


def b58decode(value: str) -> bytes:
    """
    Decode a base58 (Bitcoin alphabet) string.

    Leading "1" characters map to leading zero bytes.

    Raises:
        MalformedInputError: If value contains characters outside the alphabet
    """
    if not value:
        raise MalformedInputError("Empty base58 string", field="wallet")
    num = 0
    for char in value:
        digit = _B58_INDEX.get(char)
        if digit is None:
            raise MalformedInputError(
                f"Invalid base58 character {char!r}",
                field="wallet",
            )
        num = num * 58 + digit
    body = num.to_bytes((num.bit_length() + 7) // 8, byteorder="big") if num else b""
    pad = len(value) - len(value.lstrip("1"))
    return b"\x00" * pad + body


def b58encode(data: bytes) -> str:
    """Encode bytes as base58 (Bitcoin alphabet)."""
    num = int.from_bytes(data, byteorder="big")
    chars: list[str] = []
    while num:
        num, rem = divmod(num, 58)
        chars.append(_B58_ALPHABET[rem])
    pad = len(data) - len(data.lstrip(b"\x00"))
    return "1" * pad + "".join(reversed(chars))


__all__ = [
    "FIELD_BYTES",
    "FIELD_MODULUS",
    "MAX_FIELD_VALUE",
    "ZERO_BYTES",
    "to_field_bytes",
    "from_field_bytes",
    "ensure_field_bytes",
    "is_in_field",
    "to_hex",
    "from_hex",
    "field_from_hex",
    "to_wire_hex",
    "b58decode",
    "b58encode",
]
