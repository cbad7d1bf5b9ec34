"""
Pytest configuration and shared fixtures.
"""

import os
from unittest.mock import AsyncMock, Mock

import pytest

# Configure test environment before importing app modules
os.environ.setdefault("MONGODB_URL", "mongodb://localhost:27017")
os.environ.setdefault("DATABASE_NAME", "encantia_panel_test")
os.environ.setdefault("DEBUG", "true")

from admin_panel.shared.exceptions import FetchError, WriteError
from support import FakeAlertStore, make_alert


@pytest.fixture
def fake_store():
    """Store holding alerts 1 (older) and 2 (newer)"""
    return FakeAlertStore([
        make_alert("1", created=1),
        make_alert("2", created=2),
    ])


@pytest.fixture
def failing_fetch():
    return FetchError("store unreachable", collection="alerts")


@pytest.fixture
def failing_write():
    return WriteError("write rejected", record_id="2")


@pytest.fixture
def mock_db():
    """Mock motor database; every collection lookup returns the same AsyncMock"""
    collection = AsyncMock()
    collection.find = Mock()
    collection.watch = Mock()
    db = Mock()
    db.__getitem__ = Mock(return_value=collection)
    db.collection = collection
    return db
