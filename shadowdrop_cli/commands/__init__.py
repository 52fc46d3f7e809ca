"""
CLI command modules.
"""

from shadowdrop_cli.commands import build, proof, verify, keys

__all__ = ["build", "proof", "verify", "keys"]
