"""
Merkle Tree Builder Tests
Tests for core/merkle/builder.py

1. Determinism - same recipients and secrets -> same root
2. Padding and capacity boundary (256 ok, 257 raises before any hashing)
3. Empty recipient list -> empty root
4. Concurrency independence - root does not depend on max_concurrency
5. Level barrier - no level L+1 call starts before level L completes
6. Abort on a failed hash call
7. Secret assignment and duplicate wallets
8. Two-recipient depth-8 scenario
"""
import logging
import random

import pytest

from core.config import RuntimeConfig
from core.crypto import LocalHashProvider, MockHashProvider, compute_leaf, compute_nullifier
from core.crypto.blinding import FIELD_SAFE_MASK
from core.merkle import (
    ZERO_LEAF,
    MerkleTreeBuilder,
    Recipient,
    build_merkle_tree,
    compute_empty_root,
    verify_proof,
)
from core.schemas.errors import CapacityExceededError, HashServiceError, MalformedInputError

from fixtures import make_recipients, make_secret, make_wallet, make_wallet_bytes


class TestDeterminism:
    """Tests for reproducible roots."""

    def test_same_input_same_root(self, recipients):
        first = build_merkle_tree(recipients, LocalHashProvider())
        second = build_merkle_tree(recipients, LocalHashProvider())
        assert first.root == second.root
        assert first.leaves == second.leaves

    def test_recipient_order_matters(self, recipients):
        forward = build_merkle_tree(recipients, LocalHashProvider())
        backward = build_merkle_tree(list(reversed(recipients)), LocalHashProvider())
        assert forward.root != backward.root

    @pytest.mark.parametrize("max_concurrency", [1, 2, 7, 16, 128])
    def test_concurrency_does_not_change_root(self, max_concurrency):
        recipients = make_recipients(37)
        baseline = build_merkle_tree(recipients, LocalHashProvider(), max_concurrency=1)
        result = build_merkle_tree(recipients, LocalHashProvider(), max_concurrency=max_concurrency)
        assert result.root == baseline.root
        assert result.full_tree == baseline.full_tree

    def test_random_completion_order_does_not_change_root(self):
        recipients = make_recipients(20)
        baseline = build_merkle_tree(recipients, LocalHashProvider())
        rng = random.Random(7)
        jittery = MockHashProvider(delay_fn=lambda _: rng.random() * 0.001)
        result = MerkleTreeBuilder(jittery, max_concurrency=16).build(recipients)
        assert result.root == baseline.root


class TestPaddingAndCapacity:
    """Tests for padding and the capacity boundary."""

    def test_leaves_padded_with_zero(self, recipients, provider):
        result = build_merkle_tree(recipients, provider)
        assert len(result.leaves) == 256
        assert all(leaf != ZERO_LEAF for leaf in result.leaves[:4])
        assert all(leaf == ZERO_LEAF for leaf in result.leaves[4:])

    def test_exactly_capacity(self, provider):
        result = build_merkle_tree(make_recipients(256), provider)
        assert ZERO_LEAF not in result.leaves
        assert result.tree.leaf_count == 256

    def test_over_capacity_raises_before_hashing(self):
        mock = MockHashProvider()
        with pytest.raises(CapacityExceededError) as exc_info:
            MerkleTreeBuilder(mock).build(make_recipients(257, with_secret=False))
        assert exc_info.value.details["capacity"] == 256
        assert exc_info.value.details["recipient_count"] == 257
        assert mock.call_count == 0

    def test_custom_depth(self, provider):
        builder = MerkleTreeBuilder(provider, depth=3)
        result = builder.build(make_recipients(8))
        assert builder.capacity == 8
        assert result.depth == 3
        with pytest.raises(CapacityExceededError):
            builder.build(make_recipients(9))

    def test_empty_recipients(self, provider):
        result = build_merkle_tree([], provider)
        assert result.root == compute_empty_root(provider)
        assert result.recipients == []
        assert all(leaf == ZERO_LEAF for leaf in result.leaves)

    def test_hash_call_count(self, recipients):
        mock = MockHashProvider()
        MerkleTreeBuilder(mock).build(recipients)
        # 4 leaves + 255 internal nodes
        assert mock.call_count == 4 + 255


class TestLevelBarrier:
    """No hash for level L+1 is issued before level L is complete."""

    def test_calls_grouped_by_level(self):
        rng = random.Random(11)
        mock = MockHashProvider(delay_fn=lambda _: rng.random() * 0.0005)
        result = MerkleTreeBuilder(mock, max_concurrency=32).build(make_recipients(30))

        levels = result.full_tree
        level_of_pair = {}
        for lvl in range(len(levels) - 1):
            for j in range(0, len(levels[lvl]), 2):
                level_of_pair[(levels[lvl][j], levels[lvl][j + 1])] = lvl

        leaf_calls = [c for c in mock.calls if len(c) == 3]
        pair_calls = [c for c in mock.calls if len(c) == 2]
        assert len(leaf_calls) == 30
        # All leaf commitments precede all parent hashes
        assert all(len(c) == 3 for c in mock.calls[:30])

        sequence = [level_of_pair[c] for c in pair_calls]
        assert sequence == sorted(sequence)
        assert len(sequence) == 255


class TestAbort:
    """A failing hash call aborts the whole build."""

    @pytest.mark.parametrize("fail_on_call", [1, 3, 10, 200, 259])
    def test_failure_propagates(self, fail_on_call):
        mock = MockHashProvider(fail_on_call=fail_on_call)
        builder = MerkleTreeBuilder(mock, max_concurrency=8)
        with pytest.raises(HashServiceError):
            builder.build(make_recipients(4))

    def test_failure_inline(self):
        mock = MockHashProvider(fail_on_call=100)
        with pytest.raises(HashServiceError):
            MerkleTreeBuilder(mock, max_concurrency=1).build(make_recipients(4))

    def test_no_partial_calls_after_failing_level(self):
        # Failure during leaf hashing: no parent hash is ever issued
        mock = MockHashProvider(fail_on_call=2)
        with pytest.raises(HashServiceError):
            MerkleTreeBuilder(mock, max_concurrency=1).build(make_recipients(4))
        assert all(len(c) == 3 for c in mock.calls)


class TestSecrets:
    """Tests for secret handling."""

    def test_missing_secrets_generated(self, provider):
        result = build_merkle_tree(make_recipients(5, with_secret=False), provider)
        secrets = [r.secret for r in result.recipients]
        assert all(isinstance(s, bytes) and len(s) == 32 for s in secrets)
        assert len(set(secrets)) == 5

    def test_given_secret_kept(self, provider):
        recipients = [Recipient(make_wallet(0), 10, make_secret(0)), Recipient(make_wallet(1), 20)]
        result = build_merkle_tree(recipients, provider)
        assert result.recipients[0].secret == make_secret(0)
        assert result.recipients[1].secret is not None

    def test_input_not_mutated(self, provider):
        recipients = make_recipients(3, with_secret=False)
        build_merkle_tree(recipients, provider)
        assert all(r.secret is None for r in recipients)

    def test_field_safe_secrets(self, provider):
        builder = MerkleTreeBuilder(provider, field_safe_secrets=True)
        result = builder.build(make_recipients(50, with_secret=False))
        assert all(r.secret[0] <= FIELD_SAFE_MASK for r in result.recipients)

    def test_custom_secret_fn(self, provider):
        builder = MerkleTreeBuilder(provider, secret_fn=lambda: b"\x07" * 32)
        result = builder.build(make_recipients(2, with_secret=False))
        assert [r.secret for r in result.recipients] == [b"\x07" * 32] * 2

    def test_leaf_uses_assigned_secret(self, provider):
        result = build_merkle_tree(make_recipients(3, with_secret=False), provider)
        for i, r in enumerate(result.recipients):
            assert result.leaves[i] == compute_leaf(r.wallet, r.amount, r.secret, provider)


class TestWallets:
    """Tests for wallet handling."""

    def test_proof_by_wallet(self, recipients, provider):
        result = build_merkle_tree(recipients, provider)
        proof = result.tree.get_proof_for_wallet(make_wallet(2))
        assert proof.leaf_index == 2

    def test_bytes_wallet_indexed_as_base58(self, provider):
        recipient = Recipient(make_wallet_bytes(5), 10, make_secret(5))
        result = build_merkle_tree([recipient], provider)
        assert result.tree.index_of(make_wallet(5)) == 0

    def test_duplicate_wallet_keeps_first(self, provider, caplog):
        recipients = [
            Recipient(make_wallet(1), 10, make_secret(1)),
            Recipient(make_wallet(1), 20, make_secret(2)),
        ]
        with caplog.at_level(logging.WARNING, logger="core.merkle.builder"):
            result = build_merkle_tree(recipients, provider)
        assert result.tree.index_of(make_wallet(1)) == 0
        assert result.leaves[0] != result.leaves[1]
        assert any("appears at indices" in rec.message for rec in caplog.records)

    def test_malformed_wallet(self, provider):
        with pytest.raises(MalformedInputError):
            build_merkle_tree([Recipient("not-base58!", 10, make_secret(1))], provider)

    def test_malformed_amount(self, provider):
        with pytest.raises(MalformedInputError):
            build_merkle_tree([Recipient(make_wallet(1), -5, make_secret(1))], provider)


class TestFromConfig:
    """Tests for MerkleTreeBuilder.from_config."""

    def test_reads_tree_and_hash_sections(self, provider):
        config = RuntimeConfig.from_dict({
            "hash": {"max_concurrency": 4},
            "tree": {"depth": 5, "field_safe_secrets": True},
        })
        builder = MerkleTreeBuilder.from_config(config, provider)
        assert builder.depth == 5
        assert builder.max_concurrency == 4
        result = builder.build(make_recipients(3, with_secret=False))
        assert all(r.secret[0] <= FIELD_SAFE_MASK for r in result.recipients)


class TestTwoRecipientScenario:
    """Depth 8, recipients A (1000) and B (2000)."""

    @pytest.fixture
    def result(self, provider):
        recipients = [
            Recipient(make_wallet(0), 1000, make_secret(0)),
            Recipient(make_wallet(1), 2000, make_secret(1)),
        ]
        return build_merkle_tree(recipients, provider)

    def test_leaves(self, result, provider):
        assert result.leaves[0] == provider.hash3(make_wallet_bytes(0), (1000).to_bytes(32, "big"), make_secret(0))
        assert result.leaves[1] == provider.hash3(make_wallet_bytes(1), (2000).to_bytes(32, "big"), make_secret(1))
        assert result.leaves[2:] == [ZERO_LEAF] * 254

    def test_root_is_level_eight(self, result):
        assert len(result.full_tree) == 9
        assert result.root == result.full_tree[8][0]

    def test_proof(self, result, provider):
        proof = result.tree.get_proof(0)
        assert len(proof.siblings) == 8
        assert verify_proof(result.root, result.leaves[0], 0, proof.siblings, provider)
        assert not verify_proof(result.root, result.leaves[0], 1, proof.siblings, provider)

    def test_nullifiers_independent_of_tree(self, result, provider):
        n0 = compute_nullifier(make_secret(0), 0, provider)
        n1 = compute_nullifier(make_secret(1), 1, provider)
        assert n0 != n1
        assert n0 not in result.leaves
        other = build_merkle_tree(make_recipients(10), provider)
        assert other.root != result.root
        assert compute_nullifier(make_secret(0), 0, provider) == n0
