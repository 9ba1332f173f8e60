"""Tests that concurrent logins never push an account past its device limit."""

import asyncio
from uuid import uuid4

import fakeredis
import pytest

from sessionmanager.core.core import Core
from sessionmanager.core.modules.session.memory import InMemorySessionStore
from sessionmanager.core.modules.session.models import Session
from sessionmanager.core.modules.session.redis_store import RedisSessionStore


@pytest.fixture(params=["memory", "redis"])
def session_store(request, clock):
    if request.param == "memory":
        return InMemorySessionStore(clock=clock)
    return RedisSessionStore(fakeredis.FakeAsyncRedis(server=fakeredis.FakeServer(), decode_responses=True))


@pytest.fixture
async def core(config, session_store, account_directory):
    core = Core(config, session_store=session_store, account_directory=account_directory)
    async with core.lifespan():
        yield core


class TestConcurrentLogins:
    async def test_parallel_logins_respect_limit(self, core):
        """Test that twenty simultaneous logins for a new account leave exactly the limit."""
        auth = core.services.auth
        limit = core.services.session.limit

        results = await asyncio.gather(*(auth.login("alice", "secret123", f"device-{i}") for i in range(20)))

        account_ids = {result.account.id for result in results}
        assert len(account_ids) == 1
        account_id = account_ids.pop()
        assert len(await core.session_store.index_tokens(account_id)) == limit
        assert len(await core.services.session.list_active(account_id)) == limit

    async def test_parallel_creates_respect_limit(self, session_store):
        """Test that racing store writes leave at most the limit indexed."""
        account_id = uuid4()
        sessions = [Session(token=str(uuid4()), account_id=account_id, device_info=f"d{i}") for i in range(20)]

        await asyncio.gather(*(session_store.create_with_eviction(s, i, 60, 3) for i, s in enumerate(sessions)))

        tokens = await session_store.index_tokens(account_id)
        assert len(tokens) == 3
        assert all(s is not None for s in await session_store.get_many(tokens))
