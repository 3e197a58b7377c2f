"""
Root test configuration and fixtures for the halaqah project.

This conftest.py provides common fixtures for all test categories:
- unit/: Fast, isolated unit tests against the in-memory store or a mocked
  PocketBase client

Note: sys.path manipulation is handled here to ensure imports work correctly.
"""

from __future__ import annotations

import os
import sys
from datetime import date
from pathlib import Path
from unittest.mock import Mock

import pytest

# Add project root to path to allow imports
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

# The API module reads settings at import time; never talk to a real server
os.environ.setdefault("STORAGE_BACKEND", "memory")
os.environ.setdefault("SKIP_PB_AUTH", "true")

from halaqah.core.lookups import DEFAULT_CATALOG, LookupCatalog  # noqa: E402
from halaqah.core.models import RosterRow  # noqa: E402
from halaqah.data.memory_store import MemoryStore  # noqa: E402

TODAY = date(2025, 3, 10)


def create_mock_pocketbase() -> Mock:
    """Create a mock PocketBase instance with one shared collection mock."""
    mock_pb = Mock()

    mock_collection = Mock()
    mock_collection.auth_with_password = Mock(return_value=True)
    mock_collection.get_full_list = Mock(return_value=[])
    mock_collection.get_one = Mock()
    mock_collection.create = Mock(return_value=Mock(id="mock-id"))
    mock_collection.update = Mock()
    mock_collection.delete = Mock(return_value=True)

    # Make collection callable to return itself for chaining
    mock_pb.collection = Mock(return_value=mock_collection)
    mock_pb.send = Mock(return_value=[])

    mock_pb.auth_store = Mock()
    mock_pb.auth_store.base_token = "mock-token"

    return mock_pb


def build_row(
    student_name: str,
    student_class: str = "1A",
    student_category: str = "MUT",
    sequence_number: str = "3",
    mentor_name: str = "Ust. Hamid",
    mentor_category: str = "MUT",
    mentor_class: str = "TQS",
    row_number: int = 0,
) -> RosterRow:
    """Roster row with the usual circle-3 defaults."""
    return RosterRow(
        student_name=student_name,
        student_class=student_class,
        student_category=student_category,
        sequence_number=sequence_number,
        mentor_name=mentor_name,
        mentor_category=mentor_category,
        mentor_class=mentor_class,
        row_number=row_number,
    )


@pytest.fixture
def mock_pocketbase() -> Mock:
    """Create a mock PocketBase instance for tests that need it."""
    return create_mock_pocketbase()


@pytest.fixture
def make_row():
    """Factory for roster rows (see build_row for the defaults)."""
    return build_row


@pytest.fixture
def memory_store() -> MemoryStore:
    return MemoryStore()


@pytest.fixture
def catalog() -> LookupCatalog:
    return DEFAULT_CATALOG


@pytest.fixture
def clock():
    """Fixed 'today' so membership dates are predictable."""
    return lambda: TODAY


@pytest.fixture
def api_client(memory_store):
    """TestClient wired to the in-memory store, a fixed clock and fresh editing sessions."""
    from fastapi.testclient import TestClient

    from api.dependencies import get_clock, get_session_registry, get_store
    from api.main import app
    from halaqah.attendance import SessionRegistry

    registry = SessionRegistry()
    app.dependency_overrides[get_store] = lambda: memory_store
    app.dependency_overrides[get_clock] = lambda: (lambda: TODAY)
    app.dependency_overrides[get_session_registry] = lambda: registry

    yield TestClient(app)

    app.dependency_overrides.clear()
