"""
Test fixtures package for ShadowDrop tests.

This package provides factory functions for creating test objects.
Organized into layers:
- common.py: wallets, secrets, recipients, providers
- campaign_fixtures.py: recipient files and built campaigns on disk

Usage:
    from fixtures import make_recipients, write_recipients_csv

    def test_something(tmp_path):
        recipients = make_recipients(4)
        path = write_recipients_csv(tmp_path / "recipients.csv", recipients)
"""

from .common import (
    make_wallet,
    make_wallet_bytes,
    make_secret,
    make_recipient,
    make_recipients,
)

from .campaign_fixtures import (
    write_recipients_csv,
    write_recipients_json,
    make_campaign,
)

__all__ = [
    # Common
    "make_wallet",
    "make_wallet_bytes",
    "make_secret",
    "make_recipient",
    "make_recipients",
    # Campaign
    "write_recipients_csv",
    "write_recipients_json",
    "make_campaign",
]
