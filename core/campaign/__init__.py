"""
Campaign Artifacts

Recipient loading, claim tickets, manifests, and their on-disk layout.
"""

from .tickets import (
    TicketVerification,
    make_claim_tickets,
    make_manifest,
    tree_from_manifest,
    verify_ticket,
)
from .io import (
    CampaignIOError,
    load_manifest,
    load_recipients,
    load_ticket,
    save_campaign,
)

__all__ = [
    "TicketVerification",
    "make_claim_tickets",
    "make_manifest",
    "tree_from_manifest",
    "verify_ticket",
    "CampaignIOError",
    "load_manifest",
    "load_recipients",
    "load_ticket",
    "save_campaign",
]
