"""Fixtures for F4 tests - Web API."""

import pytest
from fastapi.testclient import TestClient

from tracker.web.api import create_app


@pytest.fixture
def client(tmp_path, monkeypatch):
    """Create test client with isolated state."""
    monkeypatch.setenv("TRACKER_DATA_DIR", str(tmp_path))
    app = create_app()
    return TestClient(app)
