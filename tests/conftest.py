"""
Pytest configuration and shared fixtures for escrow tests.

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
_ledger = importlib.import_module("fixtures.ledger_fixtures")

make_recipients = _common.make_recipients
make_artifact = _common.make_artifact
make_ledger = _ledger.make_ledger


# =============================================================================
# Pytest Fixtures (autodiscovered by pytest)
# =============================================================================

@pytest.fixture
def recipients():
    """Provide three recipients releasable at BASE_TIME."""
    return make_recipients()


@pytest.fixture
def artifact(recipients):
    """Provide an unpersisted artifact at the default fee rate."""
    return make_artifact(recipients)


@pytest.fixture
def harness():
    """Provide a fresh ledger harness (ledger, transfers, clock)."""
    return make_ledger()


@pytest.fixture
def store(tmp_path):
    """Provide an artifact store rooted in a temp directory."""
    from store.artifacts import ArtifactStore
    return ArtifactStore(tmp_path / "deposits")


@pytest.fixture(autouse=True)
def _isolate_env(monkeypatch):
    """Keep ESCROW_* variables from the developer shell out of tests."""
    import os
    for key in list(os.environ):
        if key.startswith("ESCROW_"):
            monkeypatch.delenv(key, raising=False)


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
