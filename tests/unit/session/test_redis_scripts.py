"""Tests for the Redis session store scripts against an in-process Redis."""

from datetime import UTC, datetime
from uuid import uuid4

import fakeredis
import pytest

from sessionmanager.core.modules.session.models import Session
from sessionmanager.core.modules.session.redis_store import RedisSessionStore, index_key, session_key

TTL = 60


@pytest.fixture
async def redis_client():
    client = fakeredis.FakeAsyncRedis(server=fakeredis.FakeServer(), decode_responses=True)
    yield client
    await client.aclose()


@pytest.fixture
def store(redis_client):
    return RedisSessionStore(redis_client)


@pytest.fixture
def account_id():
    return uuid4()


def make_session(account_id, device="laptop"):
    return Session(token=str(uuid4()), account_id=account_id, device_info=device)


class TestCreateScript:
    """Tests for create-with-eviction."""

    async def test_third_session_evicts_first(self, store, redis_client, account_id):
        """Test that with limit 2 the lowest score is popped and its record deleted."""
        s1, s2, s3 = make_session(account_id), make_session(account_id), make_session(account_id)
        assert await store.create_with_eviction(s1, 1, TTL, 2) == []
        assert await store.create_with_eviction(s2, 2, TTL, 2) == []

        evicted = await store.create_with_eviction(s3, 3, TTL, 2)

        assert evicted == [s1.token]
        assert await redis_client.exists(session_key(s1.token)) == 0
        assert await store.get(s1.token) is None
        assert await store.index_tokens(account_id) == [s2.token, s3.token]

    async def test_record_written_with_ttl(self, store, redis_client, account_id):
        session = make_session(account_id)

        await store.create_with_eviction(session, 1, TTL, 2)

        assert 0 < await redis_client.ttl(session_key(session.token)) <= TTL
        assert await store.get(session.token) == session

    async def test_lowered_limit_evicts_every_surplus_record(self, store, redis_client, account_id):
        """Test that all popped entries lose their records, not only the first."""
        sessions = [make_session(account_id) for _ in range(4)]
        for score, session in enumerate(sessions):
            await store.create_with_eviction(session, score, TTL, 10)

        new = make_session(account_id)
        evicted = await store.create_with_eviction(new, 10, TTL, 2)

        assert evicted == [s.token for s in sessions[:3]]
        for session in sessions[:3]:
            assert await redis_client.exists(session_key(session.token)) == 0
        assert await redis_client.zcard(index_key(account_id)) == 2


class TestRenewScript:
    """Tests for renew-if-present."""

    async def test_extended_session_survives_next_eviction(self, store, account_id):
        """Test that renewal raises the score so a different session is evicted."""
        s1, s2, s3 = make_session(account_id), make_session(account_id), make_session(account_id)
        await store.create_with_eviction(s1, 1, TTL, 2)
        await store.create_with_eviction(s2, 2, TTL, 2)
        assert await store.renew_if_present(account_id, s1.token, 3, TTL, datetime.now(UTC)) is True

        evicted = await store.create_with_eviction(s3, 4, TTL, 2)

        assert evicted == [s2.token]
        assert await store.index_tokens(account_id) == [s1.token, s3.token]

    async def test_renew_rewrites_activity_and_keeps_record_intact(self, store, redis_client, account_id):
        """Test that the record is rewritten with new activity and its other fields unchanged."""
        session = make_session(account_id, device="a/b ü \"quoted\"")
        await store.create_with_eviction(session, 1, 5, 2)
        stamp = datetime(2030, 6, 1, 12, 30, tzinfo=UTC)

        assert await store.renew_if_present(account_id, session.token, 2, 3600, stamp) is True

        renewed = await store.get(session.token)
        assert renewed.device_info == "a/b ü \"quoted\""
        assert renewed.last_active_at == stamp
        assert renewed.created_at == session.created_at
        assert renewed.account_id == account_id
        assert await redis_client.ttl(session_key(session.token)) > 5
        assert await redis_client.zscore(index_key(account_id), session.token) == 2

    async def test_renew_missing_record(self, store, redis_client, account_id):
        """Test that a gone record is neither recreated nor indexed."""
        assert await store.renew_if_present(account_id, "gone", 1, TTL, datetime.now(UTC)) is False
        assert await redis_client.exists(session_key("gone")) == 0
        assert await redis_client.zcard(index_key(account_id)) == 0

    async def test_renew_does_not_reindex(self, store, redis_client, account_id):
        """Test that a record whose index entry was removed is not added back."""
        session = make_session(account_id)
        await store.create_with_eviction(session, 1, TTL, 2)
        await redis_client.zrem(index_key(account_id), session.token)

        assert await store.renew_if_present(account_id, session.token, 2, TTL, datetime.now(UTC)) is True
        assert await redis_client.zscore(index_key(account_id), session.token) is None


class TestDeleteScript:
    """Tests for delete-and-unindex."""

    async def test_delete_is_idempotent(self, store, redis_client, account_id):
        session = make_session(account_id)
        await store.create_with_eviction(session, 1, TTL, 2)

        assert await store.delete_and_unindex(session.token, account_id) is True
        assert await store.delete_and_unindex(session.token, account_id) is False
        assert await redis_client.zcard(index_key(account_id)) == 0

    async def test_expired_record_keeps_index_entry(self, store, redis_client, account_id):
        """Test that the index entry is only dropped when a record was deleted."""
        session = make_session(account_id)
        await store.create_with_eviction(session, 1, TTL, 2)
        await redis_client.delete(session_key(session.token))

        assert await store.delete_and_unindex(session.token, account_id) is False
        assert await store.index_tokens(account_id) == [session.token]


class TestScan:
    async def test_iter_indexed_accounts(self, store, account_id):
        other = uuid4()
        await store.create_with_eviction(make_session(account_id), 1, TTL, 2)
        await store.create_with_eviction(make_session(other), 2, TTL, 2)

        found = [a async for a in store.iter_indexed_accounts()]

        assert sorted(found) == sorted([account_id, other])
