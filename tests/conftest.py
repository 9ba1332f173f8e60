"""Shared pytest fixtures."""

import base64

import pytest

from sessionmanager.config import Config
from sessionmanager.core.core import Core
from sessionmanager.core.modules.account.directory import InMemoryAccountDirectory
from sessionmanager.core.modules.session.memory import InMemorySessionStore


class FakeClock:
    """Monotonic clock that only moves when told to."""

    def __init__(self) -> None:
        self.value = 1000.0

    def __call__(self) -> float:
        return self.value

    def advance(self, seconds: float) -> None:
        self.value += seconds


@pytest.fixture
def config():
    """Config with test secrets and a device limit of two."""
    return Config(
        database_url="mongodb://localhost:27017/sessionmanager_test",
        jwt_secret="test-secret-key-that-is-long-enough-for-hs256",
        aes_key=base64.b64encode(b"k" * 32).decode("ascii"),
        max_concurrent_sessions=2,
        session_timeout_minutes=60,
        refresh_token_expiry_minutes=120,
    )


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def session_store(clock):
    return InMemorySessionStore(clock=clock)


@pytest.fixture
def account_directory():
    return InMemoryAccountDirectory()


@pytest.fixture
async def core(config, session_store, account_directory):
    """Started Core over in-memory backends, with the admin account seeded."""
    core = Core(config, session_store=session_store, account_directory=account_directory)
    async with core.lifespan():
        yield core
