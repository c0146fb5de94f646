"""
Test configuration and fixtures.
This centralizes all test setup, making individual tests clean.

Async code is driven with asyncio.run from plain test functions; the
`run_scenario` fixture builds a full container (SQLite file database,
in-memory cache on a fake clock, running click executor) around one
scenario coroutine and tears it down afterwards.
"""

import asyncio

import pytest
from fastapi.testclient import TestClient

from linkpulse.cache.strategies import InMemoryCache
from linkpulse.config import Settings
from linkpulse.container import build_container
from main import create_app

BASE_URL = "http://lnk.test"
OWNER = "owner-1"


class FakeClock:
    """Monotonic clock tests can move forward"""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float):
        self.now += seconds


@pytest.fixture(scope="function")
def test_settings(tmp_path):
    """
    Settings for a fresh database per test.
    This ensures tests are isolated and don't affect each other.
    """
    return Settings(
        environment="test",
        database_url=f"sqlite:///{tmp_path / 'test.db'}",
        cache_backend="memory",
        base_url=BASE_URL,
        click_worker_count=2,
        geoip_database_path=None,
        _env_file=None,
    )


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def cache(clock):
    return InMemoryCache(clock=clock)


@pytest.fixture
def run_scenario(test_settings, cache):
    """
    Run `scenario(container)` inside a started container and return its result.
    """
    def run(scenario):
        async def main():
            container = await build_container(test_settings, cache=cache)
            await container.start()
            try:
                return await scenario(container)
            finally:
                await container.close()

        return asyncio.run(main())

    return run


@pytest.fixture(scope="function")
def client(test_settings):
    """
    Test client running the full app lifespan against the test settings.
    """
    app = create_app(test_settings)

    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def auth_headers():
    return {"X-Owner-Id": OWNER}
