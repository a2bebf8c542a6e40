"""
Pytest configuration and fixtures.

This file provides pytest-specific configuration and fixtures.
In-memory doubles for Redis and the push transport live in tests/mocks/.
"""

import pytest

from push import transport as transport_module
from tests.mocks.push_mocks import InMemoryRedis, RecordingTransport, build_push_service


def pytest_configure(config):
    """Configure pytest markers."""
    config.addinivalue_line(
        "markers", "redis: marks tests as requiring a live Redis (deselect with '-m \"not redis\"')"
    )


@pytest.fixture(autouse=True)
def reset_transport_cache():
    """Transports are cached per process; start every test with a clean cache."""
    transport_module._transports.clear()
    yield
    transport_module._transports.clear()


@pytest.fixture(autouse=True)
def no_dry_run(monkeypatch):
    monkeypatch.delenv("PUSH_DRY_RUN", raising=False)


@pytest.fixture
def fake_redis():
    return InMemoryRedis()


@pytest.fixture
def recording_transport():
    return RecordingTransport()


@pytest.fixture
def push_service(fake_redis, recording_transport):
    return build_push_service(redis=fake_redis, transport=recording_transport)
