"""
Pytest configuration and shared fixtures for ShadowDrop tests.

This conftest.py:
1. Adds project root to sys.path for imports
2. Provides commonly-used fixtures via pytest's autodiscovery
3. Configures pytest markers and settings
"""

import sys
from pathlib import Path

import pytest

# =============================================================================
# Path Setup - Must happen before any local imports
# =============================================================================

# Get the project root (parent of tests/)
_PROJECT_ROOT = Path(__file__).resolve().parent.parent
_TESTS_ROOT = Path(__file__).resolve().parent

# Add both project root and tests root to sys.path
for _path in [str(_PROJECT_ROOT), str(_TESTS_ROOT)]:
    if _path not in sys.path:
        sys.path.insert(0, _path)

# =============================================================================
# Import fixtures using importlib (more robust for pytest loading)
# =============================================================================

import importlib

_common = importlib.import_module("fixtures.common")

make_wallet = _common.make_wallet
make_secret = _common.make_secret
make_recipients = _common.make_recipients

from core.crypto import LocalHashProvider, MockHashProvider


# =============================================================================
# Pytest Fixtures (autodiscovered by pytest)
# =============================================================================

@pytest.fixture
def provider():
    """Provide a LocalHashProvider."""
    return LocalHashProvider()


@pytest.fixture
def mock_provider():
    """Provide a MockHashProvider that records calls."""
    return MockHashProvider()


@pytest.fixture
def recipients():
    """Provide four recipients with fixed secrets."""
    return make_recipients(4)


@pytest.fixture
def clean_env(monkeypatch):
    """Remove SHADOWDROP_* variables so config tests see only what they set."""
    import os
    for key in list(os.environ):
        if key.startswith("SHADOWDROP_"):
            monkeypatch.delenv(key, raising=False)
    return monkeypatch


# =============================================================================
# Pytest Configuration
# =============================================================================

def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line(
        "markers", "slow: marks tests as slow (deselect with '-m \"not slow\"')"
    )
    config.addinivalue_line(
        "markers", "integration: marks tests as integration tests"
    )
    config.addinivalue_line(
        "markers", "unit: marks tests as unit tests"
    )
