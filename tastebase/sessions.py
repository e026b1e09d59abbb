"""
Session storage.

A session maps an opaque token to {user, expires_at}. MemorySessionStore keeps
them in this process only, so a restart signs everyone out and instances do
not share logins. RedisSessionStore persists them in REDIS_URL instead.
"""

import logging
from abc import ABC, abstractmethod
from datetime import datetime, timezone
from functools import lru_cache

from tastebase.config import get_settings
from tastebase.schemas.auth import AuthSession

logger = logging.getLogger(__name__)


class SessionStore(ABC):

    @abstractmethod
    def get(self, token: str) -> AuthSession | None:
        ...

    @abstractmethod
    def put(self, token: str, session: AuthSession) -> None:
        ...

    @abstractmethod
    def delete(self, token: str) -> None:
        ...

    @abstractmethod
    def expire(self, now: datetime | None = None) -> int:
        """Drop every session past its expiry. Returns how many were removed."""


class MemorySessionStore(SessionStore):

    def __init__(self):
        self._sessions: dict[str, AuthSession] = {}

    def get(self, token: str) -> AuthSession | None:
        return self._sessions.get(token)

    def put(self, token: str, session: AuthSession) -> None:
        self._sessions[token] = session

    def delete(self, token: str) -> None:
        self._sessions.pop(token, None)

    def expire(self, now: datetime | None = None) -> int:
        now = now or datetime.now(timezone.utc)
        stale = [t for t, s in list(self._sessions.items()) if s.expires_at < now]
        for token in stale:
            self._sessions.pop(token, None)
        return len(stale)

    def __len__(self) -> int:
        return len(self._sessions)


class RedisSessionStore(SessionStore):
    """Sessions as JSON strings under `<prefix><token>` with a matching TTL."""

    def __init__(self, client, prefix: str = "tastebase:session:"):
        self.client = client
        self.prefix = prefix

    def _key(self, token: str) -> str:
        return f"{self.prefix}{token}"

    def get(self, token: str) -> AuthSession | None:
        raw = self.client.get(self._key(token))
        if raw is None:
            return None
        return AuthSession.model_validate_json(raw)

    def put(self, token: str, session: AuthSession) -> None:
        ttl = int((session.expires_at - datetime.now(timezone.utc)).total_seconds())
        if ttl <= 0:
            self.delete(token)
            return
        self.client.set(self._key(token), session.model_dump_json(), ex=ttl)

    def delete(self, token: str) -> None:
        self.client.delete(self._key(token))

    def expire(self, now: datetime | None = None) -> int:
        # Redis evicts keys on their TTL
        return 0


@lru_cache
def get_session_store() -> SessionStore:
    settings = get_settings()
    if settings.SESSION_BACKEND == "redis":
        import redis
        logger.info("Using Redis session store")
        return RedisSessionStore(redis.Redis.from_url(settings.REDIS_URL))
    return MemorySessionStore()
