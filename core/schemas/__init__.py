"""
Schemas

Error taxonomy and the serializable campaign artifacts.
"""

from .errors import (
    ErrorCodes,
    ShadowDropError,
    ShadowDropException,
    CapacityExceededError,
    HashServiceError,
    InvalidProofIndexError,
    MalformedInputError,
)
from .campaign import (
    MANIFEST_VERSION,
    RecipientEntry,
    ClaimTicket,
    ManifestRecipient,
    CampaignManifest,
)

__all__ = [
    # Errors
    "ErrorCodes",
    "ShadowDropError",
    "ShadowDropException",
    "CapacityExceededError",
    "HashServiceError",
    "InvalidProofIndexError",
    "MalformedInputError",
    # Campaign artifacts
    "MANIFEST_VERSION",
    "RecipientEntry",
    "ClaimTicket",
    "ManifestRecipient",
    "CampaignManifest",
]
