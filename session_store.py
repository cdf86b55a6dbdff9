"""Server-side session storage keyed by an opaque random token."""

import json
import logging
import secrets
import threading
import time
from typing import Dict, Optional, Tuple

import redis
from redis.exceptions import RedisError

logger = logging.getLogger(__name__)


class SessionStoreError(Exception):
    """The backing store could not be written."""


class SessionStore:
    """Maps a session token to the logged-in user record {id, email, role}."""

    def __init__(self, ttl: int):
        self.ttl = ttl

    @staticmethod
    def new_token() -> str:
        return secrets.token_urlsafe(32)

    def create(self, user: dict) -> str:
        token = self.new_token()
        self.set(token, user)
        return token

    def get(self, token: str) -> Optional[dict]:
        raise NotImplementedError

    def set(self, token: str, user: dict) -> None:
        raise NotImplementedError

    def delete(self, token: str) -> None:
        raise NotImplementedError


class InMemorySessionStore(SessionStore):
    """Process-local store, for a single instance and for tests."""

    def __init__(self, ttl: int):
        super().__init__(ttl)
        self._sessions: Dict[str, Tuple[float, dict]] = {}
        self._lock = threading.Lock()

    def get(self, token: str) -> Optional[dict]:
        with self._lock:
            entry = self._sessions.get(token)
            if entry is None:
                return None
            expires_at, user = entry
            if expires_at <= time.monotonic():
                del self._sessions[token]
                return None
            return dict(user)

    def set(self, token: str, user: dict) -> None:
        with self._lock:
            now = time.monotonic()
            # Tokens whose cookie expired are never looked up again
            self._sessions = {k: v for k, v in self._sessions.items() if v[0] > now}
            self._sessions[token] = (now + self.ttl, dict(user))

    def delete(self, token: str) -> None:
        with self._lock:
            self._sessions.pop(token, None)

    def clear(self) -> None:
        with self._lock:
            self._sessions.clear()

    def __len__(self) -> int:
        return len(self._sessions)


class RedisSessionStore(SessionStore):
    """Shared store for multi-instance deployments. Expiry is left to Redis."""

    key_prefix = "session:"

    def __init__(self, client: redis.Redis, ttl: int):
        super().__init__(ttl)
        self._client = client

    @classmethod
    def from_url(cls, url: str, ttl: int) -> "RedisSessionStore":
        pool = redis.ConnectionPool.from_url(url, decode_responses=True)
        return cls(redis.Redis(connection_pool=pool), ttl)

    def _key(self, token: str) -> str:
        return f"{self.key_prefix}{token}"

    def get(self, token: str) -> Optional[dict]:
        try:
            raw = self._client.get(self._key(token))
        except RedisError as e:
            logger.error(f"Error reading session from Redis: {e}")
            return None
        if raw is None:
            return None
        try:
            return json.loads(raw)
        except ValueError:
            logger.warning(f"Discarding unreadable session payload for key {self._key(token)}")
            self.delete(token)
            return None

    def set(self, token: str, user: dict) -> None:
        try:
            self._client.set(self._key(token), json.dumps(user), ex=self.ttl)
        except RedisError as e:
            logger.error(f"Error writing session to Redis: {e}")
            raise SessionStoreError(str(e)) from e

    def delete(self, token: str) -> None:
        try:
            self._client.delete(self._key(token))
        except RedisError as e:
            # Logout must not fail; the key still expires on its own
            logger.error(f"Error deleting session from Redis: {e}")


def build_session_store(settings) -> SessionStore:
    backend = settings.SESSION_BACKEND.lower()
    if backend == "redis":
        logger.info(f"Using Redis session store at {settings.REDIS_URL}")
        return RedisSessionStore.from_url(settings.REDIS_URL, settings.SESSION_MAX_AGE_SECONDS)
    if backend != "memory":
        raise ValueError(f"Unknown SESSION_BACKEND: {settings.SESSION_BACKEND}")
    logger.info("Using in-memory session store")
    return InMemorySessionStore(settings.SESSION_MAX_AGE_SECONDS)
