"""
Claim Tickets and Manifests
Conversion between a BuildResult and its serializable artifacts.

- make_manifest: public record of the tree (no secrets)
- make_claim_tickets: one private ticket per recipient
- tree_from_manifest: rebuild a MerkleTree from stored leaves
- verify_ticket: check a ticket end to end against its root
"""
from __future__ import annotations

import logging
from dataclasses import asdict, dataclass, field
from typing import Any, Optional

from core.crypto.commitments import compute_leaf, compute_nullifier
from core.crypto.field import field_from_hex, to_hex
from core.crypto.providers import HashProvider
from core.merkle.builder import BuildResult
from core.merkle.merkle_tree import MerkleTree, verify_proof
from core.schemas.campaign import (
    CampaignManifest,
    ClaimTicket,
    ManifestRecipient,
)
from core.schemas.errors import MalformedInputError


logger = logging.getLogger(__name__)


def make_manifest(result: BuildResult) -> CampaignManifest:
    """Build the public manifest for a tree."""
    recipients = [
        ManifestRecipient(leaf_index=i, wallet=r.wallet_id, amount=r.amount)
        for i, r in enumerate(result.recipients)
    ]
    return CampaignManifest(
        provider=result.provider_name,
        depth=result.depth,
        root=to_hex(result.root),
        leaves=[to_hex(leaf) for leaf in result.leaves[: len(result.recipients)]],
        recipients=recipients,
        total_amount=sum(r.amount for r in result.recipients),
    )


def make_claim_tickets(result: BuildResult, provider: HashProvider) -> list[ClaimTicket]:
    """
    Build one claim ticket per recipient.

    provider must be the one the tree was built with; it is used to derive
    each recipient's nullifier.
    """
    if provider.name != result.provider_name:
        raise ValueError(
            f"Tree was built with the {result.provider_name} provider, "
            f"refusing to derive nullifiers with {provider.name}"
        )

    tickets: list[ClaimTicket] = []
    for i, recipient in enumerate(result.recipients):
        proof = result.tree.get_proof(i)
        nullifier = compute_nullifier(recipient.secret, i, provider, capacity=result.tree.capacity)
        tickets.append(
            ClaimTicket(
                provider=result.provider_name,
                depth=result.depth,
                root=to_hex(result.root),
                wallet=recipient.wallet_id,
                amount=recipient.amount,
                secret=to_hex(recipient.secret),
                leaf_index=i,
                leaf=to_hex(proof.leaf),
                siblings=[to_hex(s) for s in proof.siblings],
                nullifier=to_hex(nullifier),
            )
        )
    return tickets


def tree_from_manifest(
    manifest: CampaignManifest,
    provider: HashProvider,
    *,
    max_concurrency: int = 1,
) -> MerkleTree:
    """
    Rebuild the tree recorded in a manifest.

    Raises:
        MalformedInputError: If the rebuilt root differs from the recorded one
            (corrupted manifest, or a different provider than the original)
    """
    leaves = [field_from_hex(leaf) for leaf in manifest.leaves]
    wallet_index: dict[str, int] = {}
    for entry in manifest.recipients:
        wallet_index.setdefault(entry.wallet, entry.leaf_index)

    tree = MerkleTree.from_leaves(
        leaves,
        provider,
        depth=manifest.depth,
        max_concurrency=max_concurrency,
        wallet_index=wallet_index,
    )
    if to_hex(tree.root) != manifest.root:
        raise MalformedInputError(
            f"Rebuilt root {to_hex(tree.root)} does not match manifest root {manifest.root} "
            f"(manifest provider: {manifest.provider}, current provider: {provider.name})",
            field="root",
        )
    return tree


@dataclass
class TicketVerification:
    """Outcome of checking one claim ticket."""
    leaf_ok: bool = False
    proof_ok: bool = False
    nullifier_ok: bool = False
    errors: list[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return self.leaf_ok and self.proof_ok and self.nullifier_ok

    def to_dict(self) -> dict[str, Any]:
        d = asdict(self)
        d["ok"] = self.ok
        if not d["errors"]:
            del d["errors"]
        return d


def verify_ticket(
    ticket: ClaimTicket,
    provider: HashProvider,
    *,
    root: Optional[str] = None,
) -> TicketVerification:
    """
    Check a claim ticket against a root (the ticket's own by default).

    Recomputes the leaf from (wallet, amount, secret), verifies the sibling
    path, and recomputes the nullifier. Mismatches are reported, not raised;
    malformed tickets raise.
    """
    report = TicketVerification()
    if root is not None:
        expected_root = field_from_hex(root.lower(), allow_prefix=True)
    else:
        expected_root = field_from_hex(ticket.root)
    secret = field_from_hex(ticket.secret)
    leaf = field_from_hex(ticket.leaf)
    siblings = [field_from_hex(s) for s in ticket.siblings]

    recomputed = compute_leaf(ticket.wallet, ticket.amount, secret, provider)
    report.leaf_ok = recomputed == leaf
    if not report.leaf_ok:
        report.errors.append("Leaf does not match (wallet, amount, secret)")

    report.proof_ok = verify_proof(
        expected_root, recomputed, ticket.leaf_index, siblings, provider, depth=ticket.depth,
    )
    if not report.proof_ok:
        report.errors.append("Sibling path does not lead to the root")

    nullifier = compute_nullifier(secret, ticket.leaf_index, provider, capacity=1 << ticket.depth)
    report.nullifier_ok = to_hex(nullifier) == ticket.nullifier
    if not report.nullifier_ok:
        report.errors.append("Nullifier does not match (secret, leaf_index)")

    logger.debug(f"Ticket for leaf {ticket.leaf_index}: ok={report.ok}")
    return report


__all__ = [
    "make_manifest",
    "make_claim_tickets",
    "tree_from_manifest",
    "TicketVerification",
    "verify_ticket",
]
