"""
Campaign IO
Read recipient lists and save/load campaign artifacts on disk.

Layout written by save_campaign():
    <out_dir>/manifest.json          public record, safe to publish
    <out_dir>/tickets/<index>.json   private, one per recipient
"""

from __future__ import annotations

import csv
import json
import logging
from pathlib import Path
from typing import Any

from pydantic import BaseModel, ValidationError

from core.campaign.tickets import make_claim_tickets, make_manifest
from core.crypto.field import field_from_hex
from core.crypto.providers import HashProvider
from core.merkle.builder import BuildResult, Recipient
from core.schemas.campaign import CampaignManifest, ClaimTicket, RecipientEntry
from core.schemas.errors import MalformedInputError


logger = logging.getLogger(__name__)


MANIFEST_FILE = "manifest.json"
TICKETS_DIR = "tickets"

CSV_COLUMNS = ("wallet", "amount", "secret")


class CampaignIOError(Exception):
    """Error reading or writing campaign files."""
    pass


def _entry_to_recipient(entry: RecipientEntry) -> Recipient:
    return Recipient(
        wallet=entry.wallet,
        amount=entry.amount,
        secret=field_from_hex(entry.secret) if entry.secret else None,
    )


def _parse_rows(rows: list[dict[str, Any]], source: Path) -> list[Recipient]:
    recipients: list[Recipient] = []
    for row_num, row in enumerate(rows, start=1):
        try:
            entry = RecipientEntry.model_validate(row)
        except ValidationError as e:
            raise MalformedInputError(
                f"{source}: recipient #{row_num} is invalid: {e.errors()[0]['msg']}",
                field="recipients",
                details={"row": row_num},
            ) from e
        recipients.append(_entry_to_recipient(entry))
    return recipients


def _read_csv_rows(path: Path) -> list[dict[str, Any]]:
    with open(path, newline="") as f:
        lines = [line for line in f if line.strip() and not line.lstrip().startswith("#")]

    if not lines:
        return []

    has_header = lines[0].split(",")[0].strip().lower() == "wallet"
    if has_header:
        reader = csv.DictReader(lines)
    else:
        reader = csv.DictReader(lines, fieldnames=list(CSV_COLUMNS))

    rows: list[dict[str, Any]] = []
    for raw in reader:
        row = {k.strip(): (v or "").strip() for k, v in raw.items() if k is not None}
        if not row.get("secret"):
            row.pop("secret", None)
        rows.append(row)
    return rows


def load_recipients(path: str | Path) -> list[Recipient]:
    """
    Load an ordered recipient list from CSV or JSON.

    CSV: one "wallet,amount[,secret]" row per recipient, optional header.
    JSON: a list of {"wallet": ..., "amount": ..., "secret"?: ...} objects.
    File order is leaf order.

    Raises:
        CampaignIOError: If the file is missing or unreadable
        MalformedInputError: If any row fails validation
    """
    path = Path(path)
    if not path.exists():
        raise CampaignIOError(f"Recipients file not found: {path}")

    if path.suffix.lower() == ".json":
        try:
            data = json.loads(path.read_text())
        except json.JSONDecodeError as e:
            raise CampaignIOError(f"Invalid JSON in {path}: {e}") from e
        if not isinstance(data, list):
            raise CampaignIOError(f"{path}: expected a JSON list of recipients")
        rows = data
    else:
        rows = _read_csv_rows(path)

    recipients = _parse_rows(rows, path)
    logger.info(f"Loaded {len(recipients)} recipients from {path}")
    return recipients


def write_json(path: Path, model: BaseModel) -> Path:
    """Write a pydantic model as pretty JSON."""
    path.write_text(model.model_dump_json(indent=2) + "\n")
    return path


def save_campaign(
    result: BuildResult,
    provider: HashProvider,
    out_dir: str | Path,
) -> dict[str, Any]:
    """
    Write the manifest and one claim ticket per recipient.

    Returns:
        {"manifest": Path, "tickets": [Path, ...]}
    """
    out_dir = Path(out_dir)
    tickets_dir = out_dir / TICKETS_DIR
    tickets_dir.mkdir(parents=True, exist_ok=True)

    manifest = make_manifest(result)
    manifest_path = write_json(out_dir / MANIFEST_FILE, manifest)

    width = max(3, len(str(max(len(result.recipients) - 1, 0))))
    ticket_paths = [
        write_json(tickets_dir / f"{ticket.leaf_index:0{width}d}.json", ticket)
        for ticket in make_claim_tickets(result, provider)
    ]

    logger.info(f"Saved manifest and {len(ticket_paths)} claim tickets to {out_dir}")
    return {"manifest": manifest_path, "tickets": ticket_paths}


def _load_model(path: str | Path, model: type[BaseModel]) -> Any:
    path = Path(path)
    if path.is_dir() and model is CampaignManifest:
        path = path / MANIFEST_FILE
    if not path.exists():
        raise CampaignIOError(f"File not found: {path}")
    try:
        return model.model_validate_json(path.read_text())
    except ValidationError as e:
        raise MalformedInputError(
            f"{path} is not a valid {model.__name__}: {e.errors()[0]['msg']}",
            field=model.__name__,
        ) from e


def load_manifest(path: str | Path) -> CampaignManifest:
    """Load a manifest from a file or a campaign directory."""
    return _load_model(path, CampaignManifest)


def load_ticket(path: str | Path) -> ClaimTicket:
    """Load a single claim ticket."""
    return _load_model(path, ClaimTicket)


__all__ = [
    "MANIFEST_FILE",
    "TICKETS_DIR",
    "CampaignIOError",
    "load_recipients",
    "write_json",
    "save_campaign",
    "load_manifest",
    "load_ticket",
]
