"""
Merkle Tree and Commitments
Fixed-depth commitment tree construction + proof generation/verification.

This module provides:
- MerkleTreeBuilder / build_merkle_tree: recipients -> BuildResult
- MerkleTree: materialized levels, root, proofs by index or wallet
- MerkleProof: Dataclass representing an inclusion proof
- get_proof / verify_proof: standalone proof functions
- MerkleProver / MerkleVerifier: convenience classes

Canonical Commitment Rules:
1. Leaf: hash3(wallet, amount, secret)
2. Parent: hash2(left, right)
3. Padding: ZERO_LEAF up to 2^TREE_DEPTH leaves
4. Depth: 8 (capacity 256)

Usage:
    from core.crypto import LocalHashProvider
    from core.merkle import MerkleTreeBuilder, Recipient, verify_proof

    provider = LocalHashProvider()
    result = MerkleTreeBuilder(provider).build(recipients)
    proof = result.tree.get_proof(0)
    assert verify_proof(result.root, proof.leaf, 0, proof.siblings, provider)
"""
from .merkle_tree import (
    TREE_DEPTH,
    TREE_CAPACITY,
    ZERO_LEAF,
    MerkleProof,
    MerkleTree,
    build_levels,
    compute_empty_root,
    get_proof,
    pad_leaves,
    verify_proof,
    verify_merkle_proof,
)
from .dispatch import HashDispatcher
from .builder import (
    BuildResult,
    MerkleTreeBuilder,
    Recipient,
    build_merkle_tree,
)
from .merkle_proofs import (
    MerkleProver,
    MerkleVerifier,
)


__all__ = [
    # Constants
    "TREE_DEPTH",
    "TREE_CAPACITY",
    "ZERO_LEAF",
    # Core types
    "MerkleProof",
    "MerkleTree",
    "Recipient",
    "BuildResult",
    # Core functions
    "build_levels",
    "compute_empty_root",
    "get_proof",
    "pad_leaves",
    "verify_proof",
    "verify_merkle_proof",
    "build_merkle_tree",
    # Classes
    "HashDispatcher",
    "MerkleTreeBuilder",
    "MerkleProver",
    "MerkleVerifier",
]
