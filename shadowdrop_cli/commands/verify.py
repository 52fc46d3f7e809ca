"""
CLI Verify Command

Check a claim ticket offline:
- the leaf matches (wallet, amount, secret)
- the sibling path leads to the campaign root
- the nullifier matches (secret, leaf_index)

Usage:
    shadowdrop verify ./campaign/tickets/000.json [--root HEX] [--json]
"""

from __future__ import annotations

import json
import logging
from argparse import Namespace

from core.campaign import CampaignIOError, load_ticket, verify_ticket
from core.schemas.errors import ShadowDropException
from shadowdrop_cli.context import (
    EXIT_RUNTIME_ERROR,
    EXIT_SUCCESS,
    EXIT_VERIFICATION_FAILED,
    get_config,
    open_provider,
    report_error,
)


logger = logging.getLogger(__name__)


def verify_cmd(args: Namespace) -> int:
    """
    Execute the verify command.

    Returns:
        EXIT_SUCCESS if the ticket is valid, EXIT_VERIFICATION_FAILED if it
        is well-formed but does not check out, EXIT_RUNTIME_ERROR otherwise
    """
    config = get_config(args)

    try:
        ticket = load_ticket(args.ticket)
    except (CampaignIOError, ShadowDropException) as e:
        report_error("Error loading ticket", e, as_json=args.json)
        return EXIT_RUNTIME_ERROR

    provider_name = args.provider or ticket.provider
    with open_provider(config, provider=provider_name, api_url=args.api_url) as provider:
        try:
            report = verify_ticket(ticket, provider, root=args.root)
        except ShadowDropException as e:
            report_error("Error verifying ticket", e, as_json=args.json)
            return EXIT_RUNTIME_ERROR

    if args.json:
        data = report.to_dict()
        data["ticket"] = str(args.ticket)
        data["leaf_index"] = ticket.leaf_index
        print(json.dumps(data, indent=2))
    else:
        print(f"ticket: {args.ticket}")
        print(f"leaf_index: {ticket.leaf_index}")
        print(f"leaf_ok: {str(report.leaf_ok).lower()}")
        print(f"proof_ok: {str(report.proof_ok).lower()}")
        print(f"nullifier_ok: {str(report.nullifier_ok).lower()}")
        if report.errors:
            print(f"\nerrors ({len(report.errors)}):")
            for err in report.errors:
                print(f"  ✗ {err}")

    if report.ok:
        logger.info(f"Ticket {args.ticket} is valid")
        return EXIT_SUCCESS
    logger.warning(f"Ticket {args.ticket} failed verification")
    return EXIT_VERIFICATION_FAILED
