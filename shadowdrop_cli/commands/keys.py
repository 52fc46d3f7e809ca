"""
CLI Secret and Nullifier Commands

Usage:
    shadowdrop secret [--field-safe] [--count N]
    shadowdrop nullifier --secret HEX --index N
"""

from __future__ import annotations

import sys
from argparse import Namespace

from core.crypto import compute_nullifier, field_from_hex, secret_generator, to_hex
from core.schemas.errors import ShadowDropException
from shadowdrop_cli.context import (
    EXIT_RUNTIME_ERROR,
    EXIT_SUCCESS,
    get_config,
    open_provider,
)


def secret_cmd(args: Namespace) -> int:
    """Print freshly generated recipient secrets, one per line."""
    config = get_config(args)
    if args.count < 1:
        print("Error: --count must be at least 1", file=sys.stderr)
        return EXIT_RUNTIME_ERROR

    generate = secret_generator(args.field_safe or config.tree.field_safe_secrets)
    for _ in range(args.count):
        print(to_hex(generate()))
    return EXIT_SUCCESS


def nullifier_cmd(args: Namespace) -> int:
    """Print the nullifier for a (secret, leaf_index) pair."""
    config = get_config(args)

    try:
        secret = field_from_hex(args.secret, allow_prefix=True)
    except ShadowDropException as e:
        print(f"Error: {e}", file=sys.stderr)
        return EXIT_RUNTIME_ERROR

    with open_provider(config, provider=args.provider, api_url=args.api_url) as provider:
        try:
            nullifier = compute_nullifier(
                secret, args.index, provider, capacity=config.tree.capacity,
            )
        except ShadowDropException as e:
            print(f"Error: {e}", file=sys.stderr)
            return EXIT_RUNTIME_ERROR

    print(to_hex(nullifier))
    return EXIT_SUCCESS
