"""
ShadowDrop CLI

Command-line interface for building commitment trees and checking claims.

Usage:
    python -m shadowdrop_cli build recipients.csv --out ./campaign
    python -m shadowdrop_cli proof ./campaign --wallet <WALLET>
    python -m shadowdrop_cli verify ./campaign/tickets/000.json
    python -m shadowdrop_cli secret --field-safe
"""

__version__ = "0.1.0"
