"""Shared fixtures for RelBoard tests."""

import sys
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).parent.parent))

from relboard.storage.local_backend import LocalBackend


@pytest.fixture
def backend(tmp_path):
    """A LocalBackend over a fresh data directory."""
    backend = LocalBackend(str(tmp_path / "board"))
    yield backend
    backend.unsubscribe()


@pytest.fixture
def two_people(backend):
    """Alice at (100, 100) and Bob at (400, 100)."""
    alice = backend.create_person("Alice", 100, 100)
    bob = backend.create_person("Bob", 400, 100)
    return alice, bob
