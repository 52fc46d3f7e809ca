"""
Shared helpers for CLI commands.
"""

from __future__ import annotations

import dataclasses
import sys
from argparse import Namespace
from typing import Optional

from core.config import RuntimeConfig
from core.crypto import HashProvider, create_hash_provider
from core.schemas.errors import ShadowDropException


# Exit codes
EXIT_SUCCESS = 0
EXIT_RUNTIME_ERROR = 1
EXIT_VERIFICATION_FAILED = 2


def get_config(args: Namespace) -> RuntimeConfig:
    """Config attached by main(), or defaults when a command is called directly."""
    config = getattr(args, "runtime_config", None)
    return config if config is not None else RuntimeConfig()


def open_provider(
    config: RuntimeConfig,
    *,
    provider: Optional[str] = None,
    api_url: Optional[str] = None,
) -> HashProvider:
    """Create the hash provider, letting command-line flags override config."""
    hash_config = config.hash
    if provider or api_url:
        hash_config = dataclasses.replace(
            hash_config,
            provider=provider or hash_config.provider,
            api_url=api_url or hash_config.api_url,
        )
    return create_hash_provider(hash_config, http_config=config.http)


def report_error(prefix: str, error: Exception, *, as_json: bool = False) -> None:
    """Print an error to stderr, plus its structured form on stdout for --json."""
    if as_json and isinstance(error, ShadowDropException):
        print(error.to_error_model().model_dump_json(indent=2))
    print(f"{prefix}: {error}", file=sys.stderr)


def add_provider_arguments(parser) -> None:
    parser.add_argument(
        "--provider",
        type=str,
        choices=["local", "delegated", "mock"],
        default=None,
        help="Hash provider (default: from config, or the one recorded in the input file)",
    )
    parser.add_argument(
        "--api-url",
        type=str,
        default=None,
        help="Base URL of the hash service (delegated provider only)",
    )
