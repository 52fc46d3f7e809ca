"""
Merkle Tree Builder
Recipients -> secrets -> leaves -> padded fixed-depth tree.

Build steps:
1. Reject recipient lists larger than the tree capacity
2. Assign a fresh secret to every recipient that lacks one
3. Compute all leaves concurrently
4. Pad with ZERO_LEAF and build levels with a barrier between levels

The build is all-or-nothing: any hash failure aborts it and no partial
tree is returned. Secrets assigned here are returned in BuildResult and
must be delivered to recipients; they are not stored anywhere else.
"""
from __future__ import annotations

import dataclasses
import logging
from dataclasses import dataclass
from typing import Callable, Optional, Sequence, Union, TYPE_CHECKING

from core.crypto.blinding import secret_generator
from core.crypto.commitments import compute_leaf
from core.crypto.field import b58encode
from core.crypto.providers import HashProvider
from core.merkle.dispatch import HashDispatcher
from core.merkle.merkle_tree import TREE_DEPTH, MerkleTree, build_levels, check_depth
from core.schemas.errors import CapacityExceededError

if TYPE_CHECKING:
    from core.config.runtime import RuntimeConfig


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Recipient:
    """
    One allocation in a campaign.

    Attributes:
        wallet: Base58 public key (or its 32 raw bytes)
        amount: Allocation in smallest units (lamports)
        secret: 32-byte blinding secret; generated at build time if None
    """
    wallet: Union[str, bytes]
    amount: int
    secret: Optional[bytes] = None

    @property
    def wallet_id(self) -> str:
        """Base58 form of the wallet, used for lookups."""
        if isinstance(self.wallet, (bytes, bytearray)):
            return b58encode(bytes(self.wallet))
        return str(self.wallet).strip()


@dataclass
class BuildResult:
    """Output of a tree build."""
    root: bytes
    leaves: list[bytes]
    tree: MerkleTree
    recipients: list[Recipient]
    provider_name: str

    @property
    def full_tree(self) -> list[list[bytes]]:
        return self.tree.full_tree

    @property
    def depth(self) -> int:
        return self.tree.depth


class MerkleTreeBuilder:
    """
    Builds commitment trees with one hash provider for its whole lifetime.

    Example:
        >>> builder = MerkleTreeBuilder(LocalHashProvider())
        >>> result = builder.build([Recipient(wallet_a, 1000), Recipient(wallet_b, 2000)])
        >>> len(result.leaves)
        256
    """

    def __init__(
        self,
        provider: HashProvider,
        *,
        depth: int = TREE_DEPTH,
        max_concurrency: int = 1,
        field_safe_secrets: bool = False,
        secret_fn: Optional[Callable[[], bytes]] = None,
    ) -> None:
        self.provider = provider
        self.depth = check_depth(depth)
        self.max_concurrency = max_concurrency
        self._secret_fn = secret_fn or secret_generator(field_safe_secrets)

    @classmethod
    def from_config(
        cls,
        config: "RuntimeConfig",
        provider: HashProvider,
    ) -> "MerkleTreeBuilder":
        return cls(
            provider,
            depth=config.tree.depth,
            max_concurrency=config.hash.max_concurrency,
            field_safe_secrets=config.tree.field_safe_secrets,
        )

    @property
    def capacity(self) -> int:
        return 1 << self.depth

    def assign_secrets(self, recipients: Sequence[Recipient]) -> list[Recipient]:
        """Return copies of recipients, each with a secret."""
        return [
            r if r.secret is not None else dataclasses.replace(r, secret=self._secret_fn())
            for r in recipients
        ]

    def build(self, recipients: Sequence[Recipient]) -> BuildResult:
        """
        Build the tree for an ordered recipient list.

        Raises:
            CapacityExceededError: More recipients than 2^depth
            MalformedInputError: A wallet, amount or secret cannot be encoded
            HashServiceError: A delegated hash call failed
        """
        if len(recipients) > self.capacity:
            raise CapacityExceededError(
                f"{len(recipients)} recipients exceed tree capacity {self.capacity}",
                recipient_count=len(recipients),
                capacity=self.capacity,
            )

        logger.info(
            f"Building depth-{self.depth} tree for {len(recipients)} recipients "
            f"with {self.provider.name} provider"
        )

        assigned = self.assign_secrets(recipients)

        with HashDispatcher(self.max_concurrency) as dispatcher:
            leaves = dispatcher.map(
                lambda r: compute_leaf(r.wallet, r.amount, r.secret, self.provider),
                [(r,) for r in assigned],
            )
            logger.debug(f"Computed {len(leaves)} leaves")
            levels = build_levels(leaves, self.provider, dispatcher, depth=self.depth)

        wallet_index = self._index_wallets(assigned)

        tree = MerkleTree(levels=levels, leaf_count=len(assigned), wallet_index=wallet_index)
        logger.info(f"Built tree with root {tree.root.hex()}")

        return BuildResult(
            root=tree.root,
            leaves=tree.leaves,
            tree=tree,
            recipients=assigned,
            provider_name=self.provider.name,
        )

    @staticmethod
    def _index_wallets(recipients: Sequence[Recipient]) -> dict[str, int]:
        wallet_index: dict[str, int] = {}
        for i, r in enumerate(recipients):
            wallet_id = r.wallet_id
            if wallet_id in wallet_index:
                logger.warning(
                    f"Wallet {wallet_id} appears at indices {wallet_index[wallet_id]} and {i}; "
                    f"lookups by wallet return the first"
                )
                continue
            wallet_index[wallet_id] = i
        return wallet_index


def build_merkle_tree(
    recipients: Sequence[Recipient],
    provider: HashProvider,
    *,
    depth: int = TREE_DEPTH,
    max_concurrency: int = 1,
) -> BuildResult:
    """Build a tree with a one-off MerkleTreeBuilder."""
    builder = MerkleTreeBuilder(provider, depth=depth, max_concurrency=max_concurrency)
    return builder.build(recipients)


__all__ = [
    "Recipient",
    "BuildResult",
    "MerkleTreeBuilder",
    "build_merkle_tree",
]
