"""
Runtime Configuration Module

Provides configuration loading and management for the toolkit.
"""

from .runtime import (
    HashConfig,
    HttpConfig,
    LoggingConfig,
    RuntimeConfig,
    TreeConfig,
    get_default_config_template,
    load_runtime_config,
)

__all__ = [
    "HashConfig",
    "HttpConfig",
    "LoggingConfig",
    "RuntimeConfig",
    "TreeConfig",
    "get_default_config_template",
    "load_runtime_config",
]
