"""
Merkle Proofs Convenience Wrappers
Thin wrappers around core Merkle tree functions for a cleaner API.

This module provides class-based interfaces:
- MerkleProver: Generate proofs from a built tree
- MerkleVerifier: Verify proofs with a fixed provider and depth

These are convenience wrappers around the functions in merkle_tree.py.
"""
from __future__ import annotations

from typing import Optional, Sequence

from core.crypto.commitments import WalletLike, compute_leaf, compute_nullifier
from core.crypto.providers import HashProvider
from core.merkle.merkle_tree import (
    TREE_DEPTH,
    MerkleProof,
    MerkleTree,
    get_proof,
    verify_merkle_proof,
    verify_proof,
)


class MerkleProver:
    """
    Generates proofs from one built tree.

    Example:
        >>> prover = MerkleProver(result.tree)
        >>> proof = prover.prove(1)
        >>> proof.leaf == result.leaves[1]
        True
    """

    def __init__(self, tree: MerkleTree) -> None:
        self.tree = tree

    @property
    def root(self) -> bytes:
        return self.tree.root

    def prove(self, leaf_index: int) -> MerkleProof:
        """
        Generate a Merkle proof for the leaf at the given index.

        Raises:
            InvalidProofIndexError: If index is outside [0, capacity)
        """
        return get_proof(self.tree, leaf_index)

    def prove_wallet(self, wallet: str) -> MerkleProof:
        """
        Generate a proof for a wallet's (first) leaf.

        Raises:
            KeyError: If the wallet is not in the tree
        """
        return self.tree.get_proof_for_wallet(wallet)


class MerkleVerifier:
    """
    Verifies proofs with one hash provider.

    The provider must be the same kind that built the tree; a root built
    with the local provider never verifies under the delegated one.

    Example:
        >>> verifier = MerkleVerifier(provider)
        >>> verifier.verify(root, leaf, 0, siblings)
        True
    """

    def __init__(self, provider: HashProvider, *, depth: int = TREE_DEPTH) -> None:
        self.provider = provider
        self.depth = depth

    def verify(
        self,
        root: bytes,
        leaf: bytes,
        leaf_index: int,
        siblings: Sequence[bytes],
    ) -> bool:
        """Verify a leaf is included in a root using raw components."""
        return verify_proof(root, leaf, leaf_index, siblings, self.provider, depth=self.depth)

    def verify_proof(self, proof: MerkleProof, root: Optional[bytes] = None) -> bool:
        """Verify a MerkleProof against root (or proof.root)."""
        return verify_merkle_proof(proof, self.provider, root, depth=self.depth)

    def verify_claim(
        self,
        root: bytes,
        wallet: WalletLike,
        amount: int,
        secret: bytes,
        leaf_index: int,
        siblings: Sequence[bytes],
    ) -> bool:
        """
        Verify a recipient's allocation from its raw claim data.

        The leaf is recomputed from (wallet, amount, secret), so a proof
        only passes for the exact allocation that was committed.
        """
        leaf = compute_leaf(wallet, amount, secret, self.provider)
        return self.verify(root, leaf, leaf_index, siblings)

    def nullifier(self, secret: bytes, leaf_index: int) -> bytes:
        """Nullifier a claimant discloses for this tree's provider and depth."""
        return compute_nullifier(secret, leaf_index, self.provider, capacity=1 << self.depth)


__all__ = [
    "MerkleProver",
    "MerkleVerifier",
]
