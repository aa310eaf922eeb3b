"""Shared test fixtures for LabTrend tests."""

from __future__ import annotations

import sys
from pathlib import Path

import pytest

# ---------------------------------------------------------------------------
# Test hermeticity
# ---------------------------------------------------------------------------

@pytest.fixture(autouse=True)
def _force_hermetic_test_env(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("LLM_PROVIDER", "mock")
    monkeypatch.setenv("ANTHROPIC_API_KEY", "")
    monkeypatch.setenv("OPENAI_API_KEY", "")
    monkeypatch.setenv("ENCRYPTION_KEY", "")

# Allow running tests without `pip install -e .` by making `src/` importable.
_PROJECT_ROOT = Path(__file__).resolve().parent.parent
_SRC_DIR = _PROJECT_ROOT / "src"
if str(_SRC_DIR) not in sys.path:
    sys.path.insert(0, str(_SRC_DIR))

from labtrend.core.llm.client import LLMClient  # noqa: E402
from labtrend.core.llm.providers.mock import MockProvider  # noqa: E402


# ---------------------------------------------------------------------------
# In-memory storage fixtures
# ---------------------------------------------------------------------------

@pytest.fixture
def snapshot_db():
    """Create an in-memory SnapshotDatabase for testing."""
    from labtrend.core.storage.database import SnapshotDatabase

    db = SnapshotDatabase(":memory:")
    db.initialize()
    yield db
    db.close()


@pytest.fixture
def snapshot_encryptor():
    """Create a SnapshotEncryptor with a test key."""
    from cryptography.fernet import Fernet

    from labtrend.core.storage.encryption import SnapshotEncryptor

    return SnapshotEncryptor(Fernet.generate_key().decode())


@pytest.fixture
def metric_store(snapshot_db, snapshot_encryptor):
    """Create an encrypted MetricStore backed by in-memory SQLite."""
    from labtrend.core.storage.metric_store import MetricStore

    return MetricStore(snapshot_db, snapshot_encryptor)


# ---------------------------------------------------------------------------
# Collaborator fixtures
# ---------------------------------------------------------------------------

@pytest.fixture
def mock_provider() -> MockProvider:
    return MockProvider()


@pytest.fixture
def llm_client(mock_provider: MockProvider) -> LLMClient:
    return LLMClient(mock_provider)


@pytest.fixture
def make_tracker(metric_store):
    """Factory for a HealthTracker whose collaborators share one MockProvider."""
    from labtrend.domains.health.services.advisor import AdvisorService
    from labtrend.domains.health.services.extraction import ExtractionService
    from labtrend.domains.health.services.normalization import NormalizationService
    from labtrend.domains.health.tracker import HealthTracker

    def _make(provider: MockProvider, store=metric_store) -> HealthTracker:
        client = LLMClient(provider)
        tracker = HealthTracker(
            store,
            ExtractionService(client),
            NormalizationService(client),
            AdvisorService(client),
        )
        tracker.load()
        return tracker

    return _make
