"""
Merkle Tree Unit Tests
Tests for core/merkle/merkle_tree.py and core/merkle/merkle_proofs.py

1. Padding - leaves padded with ZERO_LEAF to 2^depth, overflow raises
2. Empty tree - root equals compute_empty_root
3. Level shapes - each level half the width of the one below
4. Proof round trip - every index verifies
5. Tamper detection - flipped leaf/sibling/root bytes and wrong index fail
6. Malformed verify inputs raise instead of returning False
"""
import pytest

from core.crypto import LocalHashProvider
from core.crypto.field import to_field_bytes
from core.merkle.dispatch import HashDispatcher
from core.merkle.merkle_tree import (
    TREE_CAPACITY,
    TREE_DEPTH,
    ZERO_LEAF,
    MerkleProof,
    MerkleTree,
    build_levels,
    compute_empty_root,
    get_proof,
    pad_leaves,
    verify_merkle_proof,
    verify_proof,
)
from core.merkle.merkle_proofs import MerkleProver, MerkleVerifier
from core.schemas.errors import (
    CapacityExceededError,
    InvalidProofIndexError,
    MalformedInputError,
)

from fixtures import make_secret, make_wallet


def make_leaves(count: int) -> list[bytes]:
    return [to_field_bytes(i + 1) for i in range(count)]


def make_tree(count: int, depth: int = TREE_DEPTH) -> MerkleTree:
    return MerkleTree.from_leaves(make_leaves(count), LocalHashProvider(), depth=depth)


def flip(data: bytes, position: int = 0) -> bytes:
    raw = bytearray(data)
    raw[position] ^= 0x01
    return bytes(raw)


class TestConstants:
    """Tests for fixed tree parameters."""

    def test_depth_and_capacity(self):
        assert TREE_DEPTH == 8
        assert TREE_CAPACITY == 256

    def test_zero_leaf(self):
        assert ZERO_LEAF == b"\x00" * 32


class TestPadding:
    """Tests for pad_leaves."""

    def test_pads_to_capacity(self):
        padded = pad_leaves(make_leaves(3))
        assert len(padded) == 256
        assert padded[:3] == make_leaves(3)
        assert all(leaf == ZERO_LEAF for leaf in padded[3:])

    def test_full_has_no_padding(self):
        assert pad_leaves(make_leaves(256)) == make_leaves(256)

    def test_overflow_raises(self):
        with pytest.raises(CapacityExceededError) as exc_info:
            pad_leaves(make_leaves(257))
        assert exc_info.value.details == {"recipient_count": 257, "capacity": 256}

    def test_rejects_short_leaf(self):
        with pytest.raises(MalformedInputError):
            pad_leaves([b"\x01" * 31])

    @pytest.mark.parametrize("depth", [0, 33, True])
    def test_invalid_depth(self, depth):
        with pytest.raises(ValueError):
            pad_leaves([], depth=depth)


class TestBuildLevels:
    """Tests for level construction."""

    def test_level_widths(self, provider):
        levels = build_levels(make_leaves(5), provider, HashDispatcher())
        assert [len(level) for level in levels] == [256, 128, 64, 32, 16, 8, 4, 2, 1]

    def test_parent_rule(self, provider):
        levels = build_levels(make_leaves(5), provider, HashDispatcher())
        for lvl in range(TREE_DEPTH):
            for j in range(len(levels[lvl + 1])):
                assert levels[lvl + 1][j] == provider.hash2(levels[lvl][2 * j], levels[lvl][2 * j + 1])

    def test_small_depth(self, provider):
        levels = build_levels(make_leaves(2), provider, HashDispatcher(), depth=2)
        assert [len(level) for level in levels] == [4, 2, 1]


class TestEmptyTree:
    """Tests for the all-padding tree."""

    def test_empty_root_matches_built_tree(self, provider):
        tree = MerkleTree.from_leaves([], provider)
        assert tree.root == compute_empty_root(provider)
        assert tree.leaf_count == 0

    def test_empty_root_deterministic(self):
        assert compute_empty_root(LocalHashProvider()) == compute_empty_root(LocalHashProvider())

    def test_empty_root_depends_on_depth(self, provider):
        assert compute_empty_root(provider, 4) != compute_empty_root(provider, 8)


class TestMerkleTree:
    """Tests for the MerkleTree container."""

    def test_properties(self):
        tree = make_tree(3)
        assert tree.depth == 8
        assert tree.capacity == 256
        assert tree.leaf_count == 3
        assert len(tree.leaves) == 256
        assert tree.root == tree.full_tree[-1][0]

    def test_leaves_is_a_copy(self):
        tree = make_tree(3)
        tree.leaves[0] = ZERO_LEAF
        assert tree.levels[0][0] == to_field_bytes(1)

    def test_rejects_bad_shape(self):
        with pytest.raises(ValueError):
            MerkleTree(levels=[[ZERO_LEAF] * 4, [ZERO_LEAF] * 3, [ZERO_LEAF]])
        with pytest.raises(ValueError):
            MerkleTree(levels=[[ZERO_LEAF] * 2])

    def test_from_leaves_trims_padding_for_leaf_count(self, provider):
        leaves = make_leaves(2) + [ZERO_LEAF] * 6
        tree = MerkleTree.from_leaves(leaves, provider, depth=3)
        assert tree.leaf_count == 2

    def test_wallet_lookup(self):
        tree = MerkleTree.from_leaves(
            make_leaves(2), LocalHashProvider(), wallet_index={"walletA": 0, "walletB": 1},
        )
        assert tree.index_of("walletB") == 1
        assert tree.get_proof_for_wallet("walletB").leaf_index == 1

    def test_unknown_wallet(self):
        with pytest.raises(KeyError):
            make_tree(2).index_of("nobody")


class TestProofs:
    """Tests for proof generation and verification."""

    def test_proof_shape(self):
        tree = make_tree(5)
        proof = get_proof(tree, 0)
        assert proof.leaf == to_field_bytes(1)
        assert proof.depth == 8
        assert proof.root == tree.root

    def test_sibling_is_index_xor_one(self):
        tree = make_tree(5)
        assert get_proof(tree, 2).siblings[0] == tree.levels[0][3]
        assert get_proof(tree, 3).siblings[0] == tree.levels[0][2]

    def test_every_index_verifies(self, provider):
        tree = make_tree(5)
        for i in range(tree.capacity):
            proof = tree.get_proof(i)
            assert verify_proof(tree.root, proof.leaf, i, proof.siblings, provider), f"index {i}"

    @pytest.mark.parametrize("depth", [1, 2, 3])
    def test_every_index_verifies_small_depths(self, provider, depth):
        tree = make_tree(1 << depth, depth=depth)
        for i in range(tree.capacity):
            proof = tree.get_proof(i)
            assert verify_proof(tree.root, proof.leaf, i, proof.siblings, provider, depth=depth)

    @pytest.mark.parametrize("index", [-1, 256, 1000])
    def test_get_proof_out_of_range(self, index):
        with pytest.raises(InvalidProofIndexError):
            make_tree(2).get_proof(index)

    def test_to_dict(self):
        data = make_tree(2).get_proof(1).to_dict()
        assert data["leaf_index"] == 1
        assert data["leaf"] == "00" * 31 + "02"
        assert len(data["siblings"]) == 8
        assert len(data["root"]) == 64

    def test_negative_index_rejected_on_construction(self):
        with pytest.raises(InvalidProofIndexError):
            MerkleProof(leaf_index=-1, leaf=ZERO_LEAF, siblings=[])


class TestTamperDetection:
    """Any single-byte change or wrong index fails verification."""

    @pytest.fixture
    def tree(self):
        # Full tree so no two leaves are equal
        return make_tree(8, depth=3)

    def test_flipped_leaf_byte(self, tree, provider):
        for index in range(tree.capacity):
            proof = tree.get_proof(index)
            for pos in (0, 15, 31):
                assert not verify_proof(tree.root, flip(proof.leaf, pos), index, proof.siblings, provider, depth=3)

    def test_flipped_sibling_byte(self, tree, provider):
        for index in range(tree.capacity):
            proof = tree.get_proof(index)
            for s in range(len(proof.siblings)):
                siblings = list(proof.siblings)
                siblings[s] = flip(siblings[s], 31)
                assert not verify_proof(tree.root, proof.leaf, index, siblings, provider, depth=3)

    def test_flipped_root_byte(self, tree, provider):
        proof = tree.get_proof(0)
        assert not verify_proof(flip(tree.root), proof.leaf, 0, proof.siblings, provider, depth=3)

    def test_wrong_index(self, tree, provider):
        for index in range(tree.capacity):
            proof = tree.get_proof(index)
            for other in range(tree.capacity):
                if other == index:
                    continue
                assert not verify_proof(tree.root, proof.leaf, other, proof.siblings, provider, depth=3)

    def test_sampled_on_full_depth(self, provider):
        tree = make_tree(200)
        for index in (0, 1, 127, 198, 199):
            proof = tree.get_proof(index)
            assert not verify_proof(tree.root, flip(proof.leaf, 7), index, proof.siblings, provider)
            assert not verify_proof(tree.root, proof.leaf, index ^ 1, proof.siblings, provider)


class TestMalformedVerifyInputs:
    """Structural errors raise; only root mismatches return False."""

    def test_wrong_sibling_count(self, provider):
        proof = make_tree(2).get_proof(0)
        with pytest.raises(MalformedInputError, match="siblings"):
            verify_proof(proof.root, proof.leaf, 0, proof.siblings[:-1], provider)

    def test_index_out_of_range(self, provider):
        proof = make_tree(2).get_proof(0)
        with pytest.raises(InvalidProofIndexError):
            verify_proof(proof.root, proof.leaf, 256, proof.siblings, provider)

    def test_short_sibling(self, provider):
        proof = make_tree(2).get_proof(0)
        siblings = list(proof.siblings)
        siblings[3] = siblings[3][:16]
        with pytest.raises(MalformedInputError):
            verify_proof(proof.root, proof.leaf, 0, siblings, provider)

    def test_no_root_to_verify_against(self, provider):
        proof = MerkleProof(leaf_index=0, leaf=ZERO_LEAF, siblings=[ZERO_LEAF] * 8)
        with pytest.raises(MalformedInputError):
            verify_merkle_proof(proof, provider)


class TestProverVerifier:
    """Tests for MerkleProver / MerkleVerifier."""

    def test_prove_and_verify(self, provider):
        tree = make_tree(10)
        prover = MerkleProver(tree)
        verifier = MerkleVerifier(provider)
        proof = prover.prove(7)
        assert verifier.verify_proof(proof)
        assert verifier.verify(prover.root, proof.leaf, 7, proof.siblings)

    def test_prove_wallet(self, provider):
        leaves = [to_field_bytes(i + 1) for i in range(3)]
        tree = MerkleTree.from_leaves(leaves, provider, wallet_index={"alice": 2})
        prover = MerkleProver(tree)
        assert prover.prove_wallet("alice") == prover.prove(2)
        with pytest.raises(KeyError):
            prover.prove_wallet("bob")

    def test_verify_against_other_root(self, provider):
        proof = MerkleProver(make_tree(10)).prove(3)
        assert not MerkleVerifier(provider).verify_proof(proof, root=make_tree(11).root)

    def test_verify_claim_recomputes_leaf(self, provider):
        from core.crypto import compute_leaf

        wallet, secret = make_wallet(1), make_secret(1)
        leaf = compute_leaf(wallet, 1000, secret, provider)
        tree = MerkleTree.from_leaves([to_field_bytes(9), leaf], provider)
        proof = tree.get_proof(1)
        verifier = MerkleVerifier(provider)

        assert verifier.verify_claim(tree.root, wallet, 1000, secret, 1, proof.siblings)
        assert not verifier.verify_claim(tree.root, wallet, 1001, secret, 1, proof.siblings)

    def test_nullifier_range_checked_by_depth(self, provider):
        verifier = MerkleVerifier(provider, depth=3)
        assert len(verifier.nullifier(make_secret(1), 7)) == 32
        with pytest.raises(InvalidProofIndexError):
            verifier.nullifier(make_secret(1), 8)
