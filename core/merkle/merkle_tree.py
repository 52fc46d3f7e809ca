"""
Merkle Tree Implementation
Fixed-depth binary Merkle tree construction, proof generation, and verification.

Canonical Commitment Rules (Hard Contracts):
1. Depth is fixed (TREE_DEPTH = 8, capacity 256)
2. Leaves are padded with ZERO_LEAF (32 zero bytes) up to 2^depth
3. Parent hashing: levels[i+1][j] = hash2(levels[i][2j], levels[i][2j+1])
4. Every level is fully computed before the next one starts
5. Empty tree: all-zero leaves, root = compute_empty_root(provider, depth)

Determinism Notes:
- No randomness or non-deterministic ordering
- Leaf ordering is defined by upstream (recipient order)
- This module never sorts leaves - it trusts input order
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Optional, Sequence

from core.crypto.field import ZERO_BYTES, ensure_field_bytes, to_hex
from core.crypto.providers import HashProvider
from core.merkle.dispatch import HashDispatcher
from core.schemas.errors import (
    CapacityExceededError,
    InvalidProofIndexError,
    MalformedInputError,
)


logger = logging.getLogger(__name__)


TREE_DEPTH: int = 8

TREE_CAPACITY: int = 1 << TREE_DEPTH

MAX_DEPTH: int = 32

ZERO_LEAF: bytes = ZERO_BYTES


def check_depth(depth: int) -> int:
    if isinstance(depth, bool) or not isinstance(depth, int) or not 1 <= depth <= MAX_DEPTH:
        raise ValueError(f"Tree depth must be an int in [1, {MAX_DEPTH}], got {depth!r}")
    return depth


def check_leaf_index(leaf_index: Any, capacity: int) -> int:
    """Reject indices outside [0, capacity) before any hashing happens."""
    if isinstance(leaf_index, bool) or not isinstance(leaf_index, int):
        raise InvalidProofIndexError(
            f"Leaf index must be an int, got {type(leaf_index).__name__}",
            leaf_index=repr(leaf_index),
            capacity=capacity,
        )
    if leaf_index < 0 or leaf_index >= capacity:
        raise InvalidProofIndexError(
            f"Leaf index {leaf_index} out of range for capacity {capacity}",
            leaf_index=leaf_index,
            capacity=capacity,
        )
    return leaf_index


@dataclass(frozen=True)
class MerkleProof:
    """
    A Merkle inclusion proof for one leaf of a fixed-depth tree.

    Attributes:
        leaf_index: 0-based index of the leaf
        leaf: The 32-byte leaf value
        siblings: One sibling per level, leaf-to-root order
        root: Root of the tree the proof was taken from, if known
    """
    leaf_index: int
    leaf: bytes
    siblings: list[bytes]
    root: Optional[bytes] = None

    def __post_init__(self) -> None:
        """Validate proof structure."""
        if isinstance(self.leaf_index, bool) or not isinstance(self.leaf_index, int) or self.leaf_index < 0:
            raise InvalidProofIndexError(
                f"Leaf index must be a non-negative int, got {self.leaf_index!r}",
                leaf_index=repr(self.leaf_index),
            )

    @property
    def depth(self) -> int:
        return len(self.siblings)

    def to_dict(self) -> dict[str, Any]:
        """Hex-encoded view for JSON output."""
        data: dict[str, Any] = {
            "leaf_index": self.leaf_index,
            "leaf": to_hex(self.leaf),
            "siblings": [to_hex(s) for s in self.siblings],
        }
        if self.root is not None:
            data["root"] = to_hex(self.root)
        return data


@dataclass
class MerkleTree:
    """
    A fully materialized fixed-depth tree.

    levels[0] holds the padded leaves (length 2^depth), levels[depth] holds
    the root. leaf_count is the number of real (non-padding) leaves.
    """
    levels: list[list[bytes]]
    leaf_count: int = 0
    wallet_index: dict[str, int] = field(default_factory=dict)

    def __post_init__(self) -> None:
        if not self.levels or len(self.levels[-1]) != 1:
            raise ValueError("Tree must end with a single root level")
        for i in range(len(self.levels) - 1):
            if len(self.levels[i]) != 2 * len(self.levels[i + 1]):
                raise ValueError(f"Level {i} is not twice the width of level {i + 1}")

    @property
    def depth(self) -> int:
        return len(self.levels) - 1

    @property
    def capacity(self) -> int:
        return len(self.levels[0])

    @property
    def root(self) -> bytes:
        return self.levels[-1][0]

    @property
    def leaves(self) -> list[bytes]:
        return list(self.levels[0])

    @property
    def full_tree(self) -> list[list[bytes]]:
        return [list(level) for level in self.levels]

    def get_proof(self, leaf_index: int) -> MerkleProof:
        """Extract the sibling path for the leaf at leaf_index."""
        return get_proof(self, leaf_index)

    def index_of(self, wallet: str) -> int:
        """
        Leaf index assigned to a wallet (first occurrence).

        Raises:
            KeyError: If the wallet is not in the tree
        """
        if wallet not in self.wallet_index:
            raise KeyError(f"Wallet not in tree: {wallet}")
        return self.wallet_index[wallet]

    def get_proof_for_wallet(self, wallet: str) -> MerkleProof:
        return self.get_proof(self.index_of(wallet))

    @classmethod
    def from_leaves(
        cls,
        leaves: Sequence[bytes],
        provider: HashProvider,
        *,
        depth: int = TREE_DEPTH,
        max_concurrency: int = 1,
        wallet_index: Optional[dict[str, int]] = None,
    ) -> "MerkleTree":
        """
        Build a tree from already-computed leaves.

        Used to rebuild a tree from stored leaves, without secrets.
        Trailing ZERO_LEAF entries beyond the real leaves are padding.
        """
        with HashDispatcher(max_concurrency) as dispatcher:
            levels = build_levels(leaves, provider, dispatcher, depth=depth)
        leaf_count = len(leaves)
        while leaf_count and leaves[leaf_count - 1] == ZERO_LEAF:
            leaf_count -= 1
        return cls(
            levels=levels,
            leaf_count=leaf_count,
            wallet_index=dict(wallet_index or {}),
        )


def pad_leaves(leaves: Sequence[bytes], depth: int = TREE_DEPTH) -> list[bytes]:
    """
    Pad leaves with ZERO_LEAF up to 2^depth.

    Raises:
        CapacityExceededError: If there are more than 2^depth leaves
        MalformedInputError: If any leaf is not 32 bytes
    """
    capacity = 1 << check_depth(depth)
    if len(leaves) > capacity:
        raise CapacityExceededError(
            f"{len(leaves)} leaves exceed tree capacity {capacity}",
            recipient_count=len(leaves),
            capacity=capacity,
        )
    padded = [ensure_field_bytes(leaf, "leaf") for leaf in leaves]
    padded.extend([ZERO_LEAF] * (capacity - len(padded)))
    return padded


def build_levels(
    leaves: Sequence[bytes],
    provider: HashProvider,
    dispatcher: HashDispatcher,
    *,
    depth: int = TREE_DEPTH,
) -> list[list[bytes]]:
    """
    Build every level of the tree bottom-up.

    All pairs of one level are dispatched together; dispatcher.map only
    returns once the whole level is materialized, so level L+1 never sees
    a partial level L. Any hash failure propagates and no levels are
    returned.
    """
    current = pad_leaves(leaves, depth)
    levels: list[list[bytes]] = [current]

    for level in range(1, depth + 1):
        pairs = [(current[j], current[j + 1]) for j in range(0, len(current), 2)]
        current = dispatcher.map(provider.hash2, pairs)
        levels.append(current)
        logger.debug(f"Level {level}: {len(current)} nodes")

    return levels


def compute_empty_root(provider: HashProvider, depth: int = TREE_DEPTH) -> bytes:
    """Root of a tree whose leaves are all ZERO_LEAF."""
    node = ZERO_LEAF
    for _ in range(check_depth(depth)):
        node = provider.hash2(node, node)
    return node


def get_proof(tree: MerkleTree, leaf_index: int) -> MerkleProof:
    """
    Generate a Merkle proof for the leaf at the given index.

    At each level the sibling is index ^ 1 (even -> index+1, odd -> index-1),
    then the index is halved.

    Raises:
        InvalidProofIndexError: If leaf_index is outside [0, capacity)
    """
    check_leaf_index(leaf_index, tree.capacity)

    siblings: list[bytes] = []
    idx = leaf_index
    for level in tree.levels[:-1]:
        siblings.append(level[idx ^ 1])
        idx //= 2

    return MerkleProof(
        leaf_index=leaf_index,
        leaf=tree.levels[0][leaf_index],
        siblings=siblings,
        root=tree.root,
    )


def verify_proof(
    root: bytes,
    leaf: bytes,
    leaf_index: int,
    siblings: Sequence[bytes],
    provider: HashProvider,
    *,
    depth: int = TREE_DEPTH,
) -> bool:
    """
    Verify a Merkle proof against an expected root.

    Algorithm:
    1. current = leaf, idx = leaf_index
    2. For each sibling (leaf-to-root):
       - idx odd:  current = hash2(sibling, current)
       - idx even: current = hash2(current, sibling)
       - idx //= 2
    3. Accept iff current == root byte-for-byte

    Returns:
        True if the proof is valid, False on root mismatch

    Raises:
        InvalidProofIndexError: If leaf_index is outside [0, 2^depth)
        MalformedInputError: On wrong sibling count or non-32-byte buffers
    """
    capacity = 1 << check_depth(depth)
    check_leaf_index(leaf_index, capacity)
    if len(siblings) != depth:
        raise MalformedInputError(
            f"Expected {depth} siblings, got {len(siblings)}",
            field="siblings",
        )
    root = ensure_field_bytes(root, "root")
    current = ensure_field_bytes(leaf, "leaf")
    path = [ensure_field_bytes(s, "sibling") for s in siblings]

    idx = leaf_index
    for sibling in path:
        if idx % 2 == 1:
            current = provider.hash2(sibling, current)
        else:
            current = provider.hash2(current, sibling)
        idx //= 2

    return current == root


def verify_merkle_proof(
    proof: MerkleProof,
    provider: HashProvider,
    root: Optional[bytes] = None,
    *,
    depth: int = TREE_DEPTH,
) -> bool:
    """
    Verify a MerkleProof object.

    Checks against root when given, otherwise against proof.root.
    """
    expected = root if root is not None else proof.root
    if expected is None:
        raise MalformedInputError("No root to verify against", field="root")
    return verify_proof(
        expected,
        proof.leaf,
        proof.leaf_index,
        proof.siblings,
        provider,
        depth=depth,
    )


__all__ = [
    "TREE_DEPTH",
    "TREE_CAPACITY",
    "MAX_DEPTH",
    "ZERO_LEAF",
    "MerkleProof",
    "MerkleTree",
    "check_depth",
    "check_leaf_index",
    "pad_leaves",
    "build_levels",
    "compute_empty_root",
    "get_proof",
    "verify_proof",
    "verify_merkle_proof",
]
