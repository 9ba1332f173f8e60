from collections.abc import AsyncIterator, Sequence
from datetime import datetime
from uuid import UUID

import redis.asyncio as aioredis
import structlog
from pydantic import ValidationError as PydanticValidationError
from redis import ConnectionError as RedisConnectionError
from redis import RedisError

from sessionmanager.core.modules.session.models import Session
from sessionmanager.core.modules.session.store import SessionStore
from sessionmanager.errors import InfrastructureError
from sessionmanager.utils import short_token

logger = structlog.get_logger(__name__)

SESSION_KEY_PREFIX = "session:"
INDEX_KEY_PREFIX = "user_sessions:"

# KEYS: index, record. ARGV: score, token, record json, limit, ttl, record key prefix.
# Returns the evicted tokens.
CREATE_SESSION_SCRIPT = """
local index_key = KEYS[1]
local session_key = KEYS[2]
local limit = tonumber(ARGV[4])

local evicted = {}
local count = redis.call('ZCARD', index_key)
if count >= limit then
    local popped = redis.call('ZPOPMIN', index_key, count - limit + 1)
    for i = 1, #popped, 2 do
        redis.call('DEL', ARGV[6] .. popped[i])
        table.insert(evicted, popped[i])
    end
end

redis.call('ZADD', index_key, ARGV[1], ARGV[2])
redis.call('SET', session_key, ARGV[3], 'EX', tonumber(ARGV[5]))
return evicted
"""

# KEYS: index, record. ARGV: score, token, ttl, last_active_at.
# Returns 1 if the record existed, 0 otherwise.
RENEW_SESSION_SCRIPT = """
local data = redis.call('GET', KEYS[2])
if not data then
    return 0
end

local session = cjson.decode(data)
session['last_active_at'] = ARGV[4]

redis.call('ZADD', KEYS[1], 'XX', ARGV[1], ARGV[2])
redis.call('SET', KEYS[2], cjson.encode(session), 'EX', tonumber(ARGV[3]))
return 1
"""

# KEYS: record, index. ARGV: token.
# Returns 1 if the record existed, 0 otherwise.
DELETE_SESSION_SCRIPT = """
local deleted = redis.call('DEL', KEYS[1])
if deleted == 1 then
    redis.call('ZREM', KEYS[2], ARGV[1])
end
return deleted
"""


def session_key(token: str) -> str:
    return f"{SESSION_KEY_PREFIX}{token}"


def index_key(account_id: UUID) -> str:
    return f"{INDEX_KEY_PREFIX}{account_id}"


class RedisSessionStore(SessionStore):
    """Session store backed by Redis sorted sets and expiring strings.

    Multi-key operations run as registered Lua scripts, so each one is a
    single atomic step on the server.
    """

    def __init__(self, redis_client: aioredis.Redis) -> None:
        self.redis_client = redis_client
        self._create_script = redis_client.register_script(CREATE_SESSION_SCRIPT)
        self._renew_script = redis_client.register_script(RENEW_SESSION_SCRIPT)
        self._delete_script = redis_client.register_script(DELETE_SESSION_SCRIPT)

    def _handle_redis_error(self, operation: str, error: Exception) -> InfrastructureError:
        """Centralized error translation for Redis operations."""
        if isinstance(error, RedisConnectionError):
            logger.error("redis_connection_failed", operation=operation, error=str(error))
            return InfrastructureError(f"Session store connection error during {operation}")
        logger.error("redis_error", operation=operation, error=str(error))
        return InfrastructureError(f"Session store error during {operation}")

    def _parse(self, token: str, data: str) -> Session:
        try:
            return Session.model_validate_json(data)
        except PydanticValidationError as e:
            logger.error("session_corrupted", token=short_token(token), error=str(e))
            raise InfrastructureError("Corrupted session data") from e

    async def create_with_eviction(self, session: Session, score: int, ttl: int, limit: int) -> list[str]:
        try:
            evicted = await self._create_script(
                keys=[index_key(session.account_id), session_key(session.token)],
                args=[score, session.token, session.model_dump_json(), limit, ttl, SESSION_KEY_PREFIX],
            )
        except RedisError as e:
            raise self._handle_redis_error("session creation", e) from e
        return [str(token) for token in evicted or []]

    async def get(self, token: str) -> Session | None:
        try:
            data = await self.redis_client.get(session_key(token))
        except RedisError as e:
            raise self._handle_redis_error("session read", e) from e
        if data is None:
            return None
        return self._parse(token, data)

    async def get_many(self, tokens: Sequence[str]) -> list[Session | None]:
        if not tokens:
            return []
        try:
            values = await self.redis_client.mget([session_key(token) for token in tokens])
        except RedisError as e:
            raise self._handle_redis_error("session batch read", e) from e
        return [None if data is None else self._parse(token, data) for token, data in zip(tokens, values, strict=True)]

    async def renew_if_present(
        self, account_id: UUID, token: str, score: int, ttl: int, last_active_at: datetime
    ) -> bool:
        try:
            renewed = await self._renew_script(
                keys=[index_key(account_id), session_key(token)],
                args=[score, token, ttl, last_active_at.isoformat()],
            )
        except RedisError as e:
            raise self._handle_redis_error("session renewal", e) from e
        return int(renewed) == 1

    async def delete_and_unindex(self, token: str, account_id: UUID) -> bool:
        try:
            deleted = await self._delete_script(keys=[session_key(token), index_key(account_id)], args=[token])
        except RedisError as e:
            raise self._handle_redis_error("session deletion", e) from e
        return int(deleted) == 1

    async def index_tokens(self, account_id: UUID) -> list[str]:
        try:
            return list(await self.redis_client.zrange(index_key(account_id), 0, -1))
        except RedisError as e:
            raise self._handle_redis_error("index read", e) from e

    async def remove_from_index(self, account_id: UUID, tokens: Sequence[str]) -> None:
        if not tokens:
            return
        try:
            await self.redis_client.zrem(index_key(account_id), *tokens)
        except RedisError as e:
            raise self._handle_redis_error("index cleanup", e) from e

    async def iter_indexed_accounts(self) -> AsyncIterator[UUID]:
        try:
            async for key in self.redis_client.scan_iter(match=f"{INDEX_KEY_PREFIX}*", count=100):
                try:
                    yield UUID(key.removeprefix(INDEX_KEY_PREFIX))
                except ValueError:
                    logger.warning("unexpected_index_key", key=key)
        except RedisError as e:
            raise self._handle_redis_error("index scan", e) from e

    async def close(self) -> None:
        await self.redis_client.aclose()
