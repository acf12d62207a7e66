"""Signed session tokens and the store that keeps training sessions."""

import json
import logging
import time
from abc import ABC, abstractmethod
from typing import Any, Callable
from uuid import uuid4

import redis.asyncio as redis
from itsdangerous import BadSignature, URLSafeTimedSerializer
from redis.exceptions import RedisError

from config import config

logger = logging.getLogger(__name__)


class SessionSigner:
    """
    Turn raw session ids into tokens the client cannot forge.

    Tokens older than `max_age` seconds are refused like forged ones.
    """

    def __init__(self, secret_key: str | None = None, max_age: int | None = None) -> None:
        self._serializer = URLSafeTimedSerializer(
            secret_key or config.security.secret_key, salt="training-session"
        )
        self._max_age = max_age or config.session_ttl

    def sign(self, session_id: str) -> str:
        return self._serializer.dumps(session_id)

    def unsign(self, token: str) -> str | None:
        """Return the session id inside a token, or None if it is invalid or expired."""
        try:
            return self._serializer.loads(token, max_age=self._max_age)
        except BadSignature:
            return None


_signer: SessionSigner | None = None


def _get_signer() -> SessionSigner:
    global _signer
    if _signer is None:
        _signer = SessionSigner()
    return _signer


class SessionStore(ABC):
    """Keeps JSON-compatible session data for a limited time."""

    @abstractmethod
    async def get(self, session_id: str) -> dict[str, Any] | None:
        """Return the data of a live session, or None."""

    @abstractmethod
    async def set(self, session_id: str, data: dict[str, Any]) -> None:
        """Store session data and restart its time to live."""

    @abstractmethod
    async def delete(self, session_id: str) -> None:
        """Forget a session. Unknown ids are ignored."""


class InMemorySessionStore(SessionStore):
    """
    Process-local store for a single worker and for tests.

    Expired sessions are dropped on read and swept out on every write.
    """

    def __init__(self, ttl: int | None = None, clock: Callable[[], float] = time.time) -> None:
        self._ttl = ttl or config.session_ttl
        self._clock = clock
        self._entries: dict[str, tuple[float, dict[str, Any]]] = {}

    def __len__(self) -> int:
        return len(self._entries)

    async def get(self, session_id: str) -> dict[str, Any] | None:
        entry = self._entries.get(session_id)
        if entry is None:
            return None
        expires_at, data = entry
        if expires_at <= self._clock():
            del self._entries[session_id]
            return None
        return data

    async def set(self, session_id: str, data: dict[str, Any]) -> None:
        now = self._clock()
        self._entries = {
            sid: entry for sid, entry in self._entries.items() if entry[0] > now
        }
        self._entries[session_id] = (now + self._ttl, data)

    async def delete(self, session_id: str) -> None:
        self._entries.pop(session_id, None)


class RedisSessionStore(SessionStore):
    """Store shared by all workers; Redis expires the keys."""

    prefix = "bjtrainer:session:"

    def __init__(self, client: redis.Redis, ttl: int | None = None) -> None:
        self._redis = client
        self._ttl = ttl or config.session_ttl

    async def get(self, session_id: str) -> dict[str, Any] | None:
        raw = await self._redis.get(self.prefix + session_id)
        return None if raw is None else json.loads(raw)

    async def set(self, session_id: str, data: dict[str, Any]) -> None:
        await self._redis.setex(self.prefix + session_id, self._ttl, json.dumps(data))

    async def delete(self, session_id: str) -> None:
        await self._redis.delete(self.prefix + session_id)


_session_store: SessionStore | None = None


async def get_session_store() -> SessionStore:
    """Return the store, connecting to Redis on first use when it is configured."""
    global _session_store

    if _session_store is None:
        _session_store = await _connect()
    return _session_store


async def _connect() -> SessionStore:
    if config.redis.enabled:
        client = redis.from_url(config.redis.url)
        try:
            await client.ping()
        except (RedisError, OSError) as exc:
            logger.warning("Redis unavailable (%s), keeping sessions in memory", exc)
        else:
            return RedisSessionStore(client)
    return InMemorySessionStore()


async def create_session(data: dict[str, Any]) -> str:
    """Store data under a fresh session id and return the signed token for it."""
    session_id = str(uuid4())
    store = await get_session_store()
    await store.set(session_id, data)
    return _get_signer().sign(session_id)


def extract_session_id(token: str) -> str | None:
    """Return the raw session id behind a token, or None if it is not valid."""
    return _get_signer().unsign(token)


async def get_session(session_id: str) -> dict[str, Any] | None:
    store = await get_session_store()
    return await store.get(session_id)


async def update_session(session_id: str, data: dict[str, Any]) -> None:
    store = await get_session_store()
    await store.set(session_id, data)


async def delete_session(session_id: str) -> None:
    store = await get_session_store()
    await store.delete(session_id)
