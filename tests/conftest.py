"""Test configuration for pytest."""

import pytest

from milk_ledger.domain.repository import LedgerRepository
from milk_ledger.persistence import MemoryStore


def pytest_configure(config):
    """Configure pytest markers."""
    config.addinivalue_line("markers", "unit: Unit tests")
    config.addinivalue_line("markers", "integration: Integration tests")
    config.addinivalue_line("markers", "conformance: API contract conformance tests")


@pytest.fixture
def store():
    """Fresh in-memory state store."""
    return MemoryStore()


@pytest.fixture
def repo(store):
    """Repository over the in-memory store."""
    return LedgerRepository(store)
