"""
Core cryptographic utilities.

Field element codec, secret generation, hash providers, and the
leaf/nullifier commitments built on them.
"""
from .field import (
    FIELD_BYTES,
    FIELD_MODULUS,
    ZERO_BYTES,
    to_field_bytes,
    from_field_bytes,
    ensure_field_bytes,
    to_hex,
    from_hex,
    field_from_hex,
    to_wire_hex,
)
from .blinding import (
    generate_secret,
    generate_field_secret,
    secret_generator,
)
from .providers import (
    HashProvider,
    LocalHashProvider,
    DelegatedHashProvider,
    MockHashProvider,
    create_hash_provider,
)
from .commitments import (
    MAX_AMOUNT,
    encode_wallet,
    encode_amount,
    compute_leaf,
    compute_nullifier,
)

__all__ = [
    "FIELD_BYTES",
    "FIELD_MODULUS",
    "ZERO_BYTES",
    "to_field_bytes",
    "from_field_bytes",
    "ensure_field_bytes",
    "to_hex",
    "from_hex",
    "field_from_hex",
    "to_wire_hex",
    "generate_secret",
    "generate_field_secret",
    "secret_generator",
    "HashProvider",
    "LocalHashProvider",
    "DelegatedHashProvider",
    "MockHashProvider",
    "create_hash_provider",
    "MAX_AMOUNT",
    "encode_wallet",
    "encode_amount",
    "compute_leaf",
    "compute_nullifier",
]
