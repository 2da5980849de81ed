from __future__ import annotations

import pytest
from fastapi.testclient import TestClient

from bidnthrift.main import app
from bidnthrift.storage import InMemoryStorage
from bidnthrift.storage.seed import SAMPLE_COLLECTIONS


@pytest.fixture
def storage() -> InMemoryStorage:
    return InMemoryStorage(initial=SAMPLE_COLLECTIONS)


@pytest.fixture
def client():
    """App client with a fresh seeded in-memory store per test."""
    with TestClient(app) as test_client:
        yield test_client
