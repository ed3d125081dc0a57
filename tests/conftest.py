"""Shared fixtures for the API tests."""

import pytest
from fastapi.testclient import TestClient

from aerofresh.app.core.config import Settings
from aerofresh.app.main import create_app

TEST_API_KEY = "test-api-key"


class FakeClock:
    """Controllable epoch-millisecond clock."""

    def __init__(self, start: int = 1_700_000_000_000):
        self.now = start

    def __call__(self) -> int:
        return self.now

    def advance(self, ms: int) -> None:
        self.now += ms


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def test_settings():
    return Settings(_env_file=None, api_key=TEST_API_KEY)


@pytest.fixture
def auth_headers():
    return {"x-api-key": TEST_API_KEY}


@pytest.fixture
def app(test_settings, clock):
    return create_app(settings=test_settings, clock=clock)


@pytest.fixture
def client(app):
    # Entering the context runs the lifespan, which loads the sample fleet
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def api_middleware(app):
    return app.state.api_middleware
