"""
ShadowDrop CLI Main Entry Point

Parses command-line arguments and dispatches to subcommands.

Usage:
    python -m shadowdrop_cli build <recipients> --out DIR [--provider P] [--api-url URL] [--json]
    python -m shadowdrop_cli proof <manifest> (--index N | --wallet W) [--json]
    python -m shadowdrop_cli verify <ticket> [--root HEX] [--json]
    python -m shadowdrop_cli nullifier --secret HEX --index N
    python -m shadowdrop_cli secret [--field-safe] [--count N]
    python -m shadowdrop_cli config --init|--show

Environment Variables:
    SHADOWDROP_HASH_PROVIDER      Hash provider: local, delegated (default: local)
    SHADOWDROP_API_URL            Base URL of the delegated hash service
    SHADOWDROP_HASH_TIMEOUT       Per-request timeout in seconds
    SHADOWDROP_MAX_CONCURRENCY    Max in-flight hash calls per tree level
    SHADOWDROP_FIELD_SAFE_SECRETS Mask generated secrets into the BN254 field
    SHADOWDROP_LOG_LEVEL          Log level (default: INFO)
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
import traceback
from pathlib import Path
from typing import Sequence

from core.config import get_default_config_template, load_runtime_config
from shadowdrop_cli import __version__
from shadowdrop_cli.commands import build, keys, proof, verify
from shadowdrop_cli.context import (
    EXIT_RUNTIME_ERROR,
    EXIT_SUCCESS,
    add_provider_arguments,
)


def setup_logging(level: str = "INFO", log_file: str | None = None) -> None:
    """Configure logging for the CLI."""
    log_level = getattr(logging, level.upper(), logging.INFO)

    handlers: list[logging.Handler] = [logging.StreamHandler(sys.stderr)]

    if log_file:
        handlers.append(logging.FileHandler(log_file))

    logging.basicConfig(
        level=log_level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
        handlers=handlers,
    )


def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser with all subcommands."""
    parser = argparse.ArgumentParser(
        prog="shadowdrop",
        description="ShadowDrop CLI - Build private airdrop commitment trees, serve proofs, and check claims.",
    )
    parser.add_argument(
        "--version", action="version", version=f"%(prog)s {__version__}"
    )
    parser.add_argument(
        "--config", "-c",
        type=Path,
        default=None,
        help="Path to configuration file (default: ./shadowdrop.yaml or ~/.config/shadowdrop/config.yaml)",
    )
    parser.add_argument(
        "--log-level",
        type=str,
        default=None,
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Log level (overrides config)",
    )
    parser.add_argument(
        "--debug",
        action="store_true",
        default=False,
        help="Print tracebacks on unexpected errors",
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # --- build command ---
    build_parser = subparsers.add_parser(
        "build",
        help="Build a commitment tree from a recipient list",
        description="Commit each (wallet, amount, secret), build the tree, and write manifest + claim tickets.",
    )
    build_parser.add_argument(
        "recipients",
        type=str,
        help="Recipient file: CSV (wallet,amount[,secret]) or JSON list",
    )
    build_parser.add_argument(
        "--out", "-o",
        type=str,
        required=True,
        help="Output directory for manifest.json and tickets/",
    )
    add_provider_arguments(build_parser)
    build_parser.add_argument(
        "--json",
        action="store_true",
        default=False,
        help="JSON output",
    )
    build_parser.set_defaults(func=build.build_cmd)

    # --- proof command ---
    proof_parser = subparsers.add_parser(
        "proof",
        help="Print the inclusion proof for one recipient",
        description="Rebuild the tree from a manifest and extract a sibling path.",
    )
    proof_parser.add_argument(
        "manifest",
        type=str,
        help="Path to manifest.json or the campaign directory",
    )
    target = proof_parser.add_mutually_exclusive_group(required=True)
    target.add_argument("--index", "-i", type=int, help="Leaf index")
    target.add_argument("--wallet", "-w", type=str, help="Recipient wallet (base58)")
    add_provider_arguments(proof_parser)
    proof_parser.add_argument(
        "--json",
        action="store_true",
        default=False,
        help="JSON output",
    )
    proof_parser.set_defaults(func=proof.proof_cmd)

    # --- verify command ---
    verify_parser = subparsers.add_parser(
        "verify",
        help="Verify a claim ticket",
        description="Recompute the leaf, walk the sibling path, and recompute the nullifier.",
    )
    verify_parser.add_argument(
        "ticket",
        type=str,
        help="Path to a claim ticket JSON file",
    )
    verify_parser.add_argument(
        "--root",
        type=str,
        default=None,
        help="Expected root (hex); defaults to the root recorded in the ticket",
    )
    add_provider_arguments(verify_parser)
    verify_parser.add_argument(
        "--json",
        action="store_true",
        default=False,
        help="JSON output",
    )
    verify_parser.set_defaults(func=verify.verify_cmd)

    # --- nullifier command ---
    nullifier_parser = subparsers.add_parser(
        "nullifier",
        help="Derive the nullifier for a secret and leaf index",
    )
    nullifier_parser.add_argument("--secret", "-s", type=str, required=True, help="32-byte secret (hex)")
    nullifier_parser.add_argument("--index", "-i", type=int, required=True, help="Leaf index")
    add_provider_arguments(nullifier_parser)
    nullifier_parser.set_defaults(func=keys.nullifier_cmd)

    # --- secret command ---
    secret_parser = subparsers.add_parser(
        "secret",
        help="Generate random recipient secrets",
    )
    secret_parser.add_argument(
        "--field-safe",
        action="store_true",
        default=False,
        help="Clear the top bits so the secret is a valid BN254 field element",
    )
    secret_parser.add_argument("--count", "-n", type=int, default=1, help="Number of secrets")
    secret_parser.set_defaults(func=keys.secret_cmd)

    # --- config command ---
    config_parser = subparsers.add_parser(
        "config",
        help="Manage configuration",
        description="Create or show configuration.",
    )
    config_parser.add_argument(
        "--init",
        action="store_true",
        default=False,
        help="Create a template configuration file",
    )
    config_parser.add_argument(
        "--show",
        action="store_true",
        default=False,
        help="Show current configuration",
    )
    config_parser.add_argument(
        "--path",
        type=str,
        default="shadowdrop.yaml",
        help="Path for config file (default: shadowdrop.yaml)",
    )
    config_parser.set_defaults(func=config_cmd)

    return parser


def config_cmd(args: argparse.Namespace) -> int:
    """Handle config command."""
    if args.init:
        config_path = Path(args.path)
        if config_path.exists():
            print(f"Error: Config file already exists: {config_path}", file=sys.stderr)
            return EXIT_RUNTIME_ERROR

        config_path.write_text(get_default_config_template())
        print(f"Created configuration file: {config_path}")
        print("\nEdit this file to configure your settings.")
        print("You can also use environment variables (SHADOWDROP_* prefix).")
        return EXIT_SUCCESS

    if args.show:
        print(json.dumps(args.runtime_config.to_dict(), indent=2))
        return EXIT_SUCCESS

    print("Usage: shadowdrop config [--init|--show]")
    print("  --init  Create a template configuration file")
    print("  --show  Show current configuration")
    return EXIT_SUCCESS


def main(argv: Sequence[str] | None = None) -> int:
    """
    Main entry point for the CLI.

    Args:
        argv: Command-line arguments (defaults to sys.argv[1:])

    Returns:
        Exit code (0=success, 1=error, 2=verification failed)
    """
    parser = create_parser()
    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        return EXIT_RUNTIME_ERROR

    try:
        config = load_runtime_config(args.config)
    except Exception as e:
        print(f"Error loading configuration: {e}", file=sys.stderr)
        return EXIT_RUNTIME_ERROR

    log_level = args.log_level or config.logging.level
    setup_logging(level=log_level, log_file=config.logging.file)

    # Attach config to args for commands to use
    args.runtime_config = config

    try:
        return args.func(args)
    except KeyboardInterrupt:
        print("\nInterrupted.", file=sys.stderr)
        return EXIT_RUNTIME_ERROR
    except Exception as e:
        if args.debug:
            traceback.print_exc()
        else:
            print(f"Error: {e}", file=sys.stderr)
        return EXIT_RUNTIME_ERROR


if __name__ == "__main__":
    sys.exit(main())
