"""
CLI Build Command

Build a commitment tree from a recipient file and write the campaign:
- manifest.json (public: root, leaves, recipients)
- tickets/<index>.json (private: one claim ticket per recipient)

Usage:
    shadowdrop build recipients.csv --out ./campaign [--provider delegated] [--json]
"""

from __future__ import annotations

import json
import logging
import sys
from argparse import Namespace
from dataclasses import dataclass, asdict
from pathlib import Path

from core.campaign import CampaignIOError, load_recipients, save_campaign
from core.crypto import to_hex
from core.merkle import MerkleTreeBuilder
from core.schemas.errors import ShadowDropException
from shadowdrop_cli.context import (
    EXIT_RUNTIME_ERROR,
    EXIT_SUCCESS,
    get_config,
    open_provider,
    report_error,
)


logger = logging.getLogger(__name__)


@dataclass
class BuildSummary:
    """Summary of a build for CLI output."""
    root: str = ""
    provider: str = ""
    depth: int = 0
    recipients: int = 0
    capacity: int = 0
    total_amount: int = 0
    manifest: str = ""
    tickets_dir: str = ""

    def to_dict(self) -> dict:
        d = asdict(self)
        d["total_amount"] = str(self.total_amount)
        return d


def print_summary_human(summary: BuildSummary) -> None:
    print(f"root: {summary.root}")
    print(f"provider: {summary.provider}")
    print(f"depth: {summary.depth}")
    print(f"recipients: {summary.recipients}/{summary.capacity}")
    print(f"total_amount: {summary.total_amount}")
    print(f"manifest: {summary.manifest}")
    print(f"tickets: {summary.tickets_dir}")


def build_cmd(args: Namespace) -> int:
    """
    Execute the build command.

    Args:
        args: Parsed command-line arguments

    Returns:
        Exit code
    """
    config = get_config(args)

    try:
        recipients = load_recipients(args.recipients)
    except (CampaignIOError, ShadowDropException) as e:
        report_error("Error loading recipients", e, as_json=args.json)
        return EXIT_RUNTIME_ERROR

    if not recipients:
        print(f"Error: No recipients in {args.recipients}", file=sys.stderr)
        return EXIT_RUNTIME_ERROR

    out_dir = Path(args.out)

    with open_provider(config, provider=args.provider, api_url=args.api_url) as provider:
        builder = MerkleTreeBuilder.from_config(config, provider)
        try:
            result = builder.build(recipients)
        except ShadowDropException as e:
            report_error("Error building tree", e, as_json=args.json)
            return EXIT_RUNTIME_ERROR

        paths = save_campaign(result, provider, out_dir)

    summary = BuildSummary(
        root=to_hex(result.root),
        provider=result.provider_name,
        depth=result.depth,
        recipients=len(result.recipients),
        capacity=result.tree.capacity,
        total_amount=sum(r.amount for r in result.recipients),
        manifest=str(paths["manifest"]),
        tickets_dir=str(out_dir / "tickets"),
    )

    if args.json:
        print(json.dumps(summary.to_dict(), indent=2))
    else:
        print_summary_human(summary)

    return EXIT_SUCCESS
