"""
Runtime Configuration

Central configuration for hash provider selection, tree parameters,
HTTP transport, and logging.

Nothing in the core reads this implicitly: callers build a RuntimeConfig
and pass the relevant section to the provider or builder constructor.
"""

from __future__ import annotations

import copy
import json
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Optional

from dotenv import load_dotenv

load_dotenv()


ENV_PREFIX = "SHADOWDROP_"

_DEFAULT_HTTP_USER_AGENT = "shadowdrop/0.1.0"


@dataclass
class HashConfig:
    """Configuration for the hash provider."""
    provider: str = "local"  # "local" or "delegated"
    api_url: str = "http://localhost:8000"
    timeout: float = 30.0
    max_concurrency: int = 16

    def __post_init__(self):
        self.provider = self.provider.lower()
        if self.max_concurrency < 1:
            raise ValueError(f"max_concurrency must be >= 1, got {self.max_concurrency}")


@dataclass
class TreeConfig:
    """Configuration for tree construction."""
    depth: int = 8
    field_safe_secrets: bool = False

    @property
    def capacity(self) -> int:
        return 1 << self.depth


@dataclass
class HttpConfig:
    """Configuration for HTTP client."""
    timeout: float = 30.0
    user_agent: str = _DEFAULT_HTTP_USER_AGENT
    proxy: Optional[str] = None


@dataclass
class LoggingConfig:
    """Configuration for logging."""
    level: str = "INFO"
    file: Optional[str] = None


def _env_bool(value: str) -> bool:
    return value.strip().lower() in ("1", "true", "yes", "on")


@dataclass
class RuntimeConfig:
    """
    Complete runtime configuration.

    Can be loaded from:
    - Environment variables
    - YAML or JSON file
    - Programmatic construction
    """
    hash: HashConfig = field(default_factory=HashConfig)
    tree: TreeConfig = field(default_factory=TreeConfig)
    http: HttpConfig = field(default_factory=HttpConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)
    extra: dict[str, Any] = field(default_factory=dict)

    @staticmethod
    def _get_env_overrides() -> dict[str, Any]:
        """
        Get configuration overrides from environment variables.

        Supported variables:
        - SHADOWDROP_HASH_PROVIDER: "local" or "delegated"
        - SHADOWDROP_API_URL: Base URL of the delegated hash service
        - SHADOWDROP_HASH_TIMEOUT: Per-request timeout in seconds
        - SHADOWDROP_MAX_CONCURRENCY: Max in-flight hash calls per level
        - SHADOWDROP_FIELD_SAFE_SECRETS: Mask generated secrets into the field
        - SHADOWDROP_HTTP_PROXY: HTTP proxy URL
        - SHADOWDROP_LOG_LEVEL: Log level
        - SHADOWDROP_LOG_FILE: Log file path
        """
        overrides: dict[str, Any] = {}

        if os.getenv(f"{ENV_PREFIX}HASH_PROVIDER"):
            overrides.setdefault("hash", {})["provider"] = os.getenv(f"{ENV_PREFIX}HASH_PROVIDER")
        if os.getenv(f"{ENV_PREFIX}API_URL"):
            overrides.setdefault("hash", {})["api_url"] = os.getenv(f"{ENV_PREFIX}API_URL")
        if os.getenv(f"{ENV_PREFIX}HASH_TIMEOUT"):
            overrides.setdefault("hash", {})["timeout"] = float(os.getenv(f"{ENV_PREFIX}HASH_TIMEOUT"))
        if os.getenv(f"{ENV_PREFIX}MAX_CONCURRENCY"):
            overrides.setdefault("hash", {})["max_concurrency"] = int(
                os.getenv(f"{ENV_PREFIX}MAX_CONCURRENCY")
            )

        if os.getenv(f"{ENV_PREFIX}FIELD_SAFE_SECRETS"):
            overrides.setdefault("tree", {})["field_safe_secrets"] = _env_bool(
                os.getenv(f"{ENV_PREFIX}FIELD_SAFE_SECRETS")
            )

        if os.getenv(f"{ENV_PREFIX}HTTP_PROXY"):
            overrides.setdefault("http", {})["proxy"] = os.getenv(f"{ENV_PREFIX}HTTP_PROXY")

        if os.getenv(f"{ENV_PREFIX}LOG_LEVEL"):
            overrides.setdefault("logging", {})["level"] = os.getenv(f"{ENV_PREFIX}LOG_LEVEL")
        if os.getenv(f"{ENV_PREFIX}LOG_FILE"):
            overrides.setdefault("logging", {})["file"] = os.getenv(f"{ENV_PREFIX}LOG_FILE")

        return overrides

    @classmethod
    def from_env(cls) -> "RuntimeConfig":
        """
        Load configuration purely from environment variables.

        Uses defaults for any values not specified in env vars.
        """
        return cls.from_dict(cls._get_env_overrides())

    @classmethod
    def from_yaml(cls, path: str | Path) -> "RuntimeConfig":
        """Load configuration from a YAML file."""
        import yaml
        path = Path(path)
        if not path.exists():
            raise FileNotFoundError(f"Config file not found: {path}")

        with open(path) as f:
            data = yaml.safe_load(f) or {}

        return cls.from_dict(data)

    @classmethod
    def from_file(cls, path: str | Path) -> "RuntimeConfig":
        """Load configuration from a JSON or YAML file, chosen by extension."""
        path = Path(path)
        if path.suffix.lower() in (".yaml", ".yml"):
            return cls.from_yaml(path)
        if not path.exists():
            raise FileNotFoundError(f"Config file not found: {path}")
        with open(path) as f:
            data = json.load(f)
        return cls.from_dict(data)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "RuntimeConfig":
        """Load configuration from a dictionary (supports partial data)."""
        hash_data = data.get("hash", {})
        tree_data = data.get("tree", {})
        http_data = data.get("http", {})
        logging_data = data.get("logging", {})

        return cls(
            hash=HashConfig(**hash_data) if hash_data else HashConfig(),
            tree=TreeConfig(**tree_data) if tree_data else TreeConfig(),
            http=HttpConfig(**http_data) if http_data else HttpConfig(),
            logging=LoggingConfig(**logging_data) if logging_data else LoggingConfig(),
            extra=data.get("extra", {}),
        )

    def with_env_overrides(self) -> "RuntimeConfig":
        """
        Return a new config with environment variable overrides applied.

        This allows loading from a config file first, then overlaying env vars.
        """
        overrides = self._get_env_overrides()
        if not overrides:
            return self

        new_config = copy.deepcopy(self)
        for section, values in overrides.items():
            target = getattr(new_config, section)
            for key, value in values.items():
                setattr(target, key, value)
        new_config.hash.provider = new_config.hash.provider.lower()

        return new_config

    def to_dict(self) -> dict[str, Any]:
        """Convert configuration to a dictionary."""
        return {
            "hash": {
                "provider": self.hash.provider,
                "api_url": self.hash.api_url,
                "timeout": self.hash.timeout,
                "max_concurrency": self.hash.max_concurrency,
            },
            "tree": {
                "depth": self.tree.depth,
                "field_safe_secrets": self.tree.field_safe_secrets,
            },
            "http": {
                "timeout": self.http.timeout,
                "user_agent": self.http.user_agent,
                "proxy": self.http.proxy,
            },
            "logging": {
                "level": self.logging.level,
                "file": self.logging.file,
            },
            "extra": self.extra,
        }


def load_runtime_config(path: str | Path | None = None) -> RuntimeConfig:
    """
    Load configuration from a file (if any), then overlay environment variables.

    Search order when no path is given:
      1. ./shadowdrop.yaml
      2. ./shadowdrop.json
      3. ~/.config/shadowdrop/config.yaml
    """
    if path is not None:
        return RuntimeConfig.from_file(path).with_env_overrides()

    search_paths = [
        Path.cwd() / "shadowdrop.yaml",
        Path.cwd() / "shadowdrop.json",
        Path.home() / ".config" / "shadowdrop" / "config.yaml",
    ]
    for candidate in search_paths:
        if candidate.exists():
            return RuntimeConfig.from_file(candidate).with_env_overrides()

    return RuntimeConfig().with_env_overrides()


def get_default_config_template() -> str:
    """Get a template YAML configuration file."""
    return """\
hash:
  provider: local            # "local" (fast, not circuit compatible) or "delegated"
  api_url: http://localhost:8000
  timeout: 30.0
  max_concurrency: 16
tree:
  depth: 8
  field_safe_secrets: false
http:
  timeout: 30.0
logging:
  level: INFO
  file: null
"""
