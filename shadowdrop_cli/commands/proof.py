"""
CLI Proof Command

Rebuild a tree from its manifest and print the inclusion proof for one
recipient, by leaf index or by wallet.

Usage:
    shadowdrop proof ./campaign --index 3
    shadowdrop proof ./campaign/manifest.json --wallet <WALLET> --json
"""

from __future__ import annotations

import json
import logging
import sys
from argparse import Namespace

from core.campaign import CampaignIOError, load_manifest, tree_from_manifest
from core.crypto import to_hex
from core.schemas.errors import ShadowDropException
from shadowdrop_cli.context import (
    EXIT_RUNTIME_ERROR,
    EXIT_SUCCESS,
    get_config,
    open_provider,
    report_error,
)


logger = logging.getLogger(__name__)


def proof_cmd(args: Namespace) -> int:
    """Execute the proof command."""
    config = get_config(args)

    try:
        manifest = load_manifest(args.manifest)
    except (CampaignIOError, ShadowDropException) as e:
        report_error("Error loading manifest", e, as_json=args.json)
        return EXIT_RUNTIME_ERROR

    provider_name = args.provider or manifest.provider
    with open_provider(config, provider=provider_name, api_url=args.api_url) as provider:
        try:
            tree = tree_from_manifest(
                manifest, provider, max_concurrency=config.hash.max_concurrency,
            )
        except ShadowDropException as e:
            report_error("Error rebuilding tree", e, as_json=args.json)
            return EXIT_RUNTIME_ERROR

    try:
        if args.wallet is not None:
            proof = tree.get_proof_for_wallet(args.wallet)
        else:
            proof = tree.get_proof(args.index)
    except KeyError as e:
        print(f"Error: {e.args[0]}", file=sys.stderr)
        return EXIT_RUNTIME_ERROR
    except ShadowDropException as e:
        report_error("Error", e, as_json=args.json)
        return EXIT_RUNTIME_ERROR

    if args.json:
        print(json.dumps(proof.to_dict(), indent=2))
    else:
        print(f"root: {to_hex(tree.root)}")
        print(f"leaf_index: {proof.leaf_index}")
        print(f"leaf: {to_hex(proof.leaf)}")
        print(f"siblings ({len(proof.siblings)}):")
        for level, sibling in enumerate(proof.siblings):
            print(f"  [{level}] {to_hex(sibling)}")

    return EXIT_SUCCESS
