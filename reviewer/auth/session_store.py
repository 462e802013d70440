# ==============================================================================
# reviewer/auth/session_store.py
# ------------------------------------------------------------------------------
# Server-side session records with a sliding time-to-live. The browser only
# holds the opaque session id, so a logout or an expiry takes effect for
# every copy of the cookie at once.
# ==============================================================================

import json
import logging
import secrets
import threading
import time

from flask import current_app
from redis import Redis
from redis.exceptions import RedisError

from reviewer.errors import StorageFailure

logger = logging.getLogger(__name__)


def new_session_id():
    return secrets.token_urlsafe(32)


class MemorySessionStore:
    """
    Keeps sessions in this process. Suitable for a single worker and for
    tests; sessions are lost on restart.
    """

    def __init__(self, clock=time.monotonic):
        self._clock = clock
        self._records = {}
        self._lock = threading.Lock()

    def _live(self, session_id):
        record = self._records.get(session_id)
        if record is None:
            return None
        expires_at, payload = record
        if expires_at <= self._clock():
            del self._records[session_id]
            return None
        return payload

    def create(self, payload, ttl):
        session_id = new_session_id()
        with self._lock:
            self._records[session_id] = (self._clock() + ttl, dict(payload))
        return session_id

    def get(self, session_id):
        with self._lock:
            payload = self._live(session_id)
            return dict(payload) if payload is not None else None

    def touch(self, session_id, ttl):
        """Extends a live session. Returns False when it has already expired."""
        with self._lock:
            payload = self._live(session_id)
            if payload is None:
                return False
            self._records[session_id] = (self._clock() + ttl, payload)
            return True

    def delete(self, session_id):
        with self._lock:
            self._records.pop(session_id, None)

    def count(self):
        with self._lock:
            for session_id in list(self._records):
                self._live(session_id)
            return len(self._records)


class RedisSessionStore:
    """Keeps sessions in Redis so every worker and every restart sees the same state."""

    def __init__(self, client, prefix='reviewer:session:'):
        self._client = client
        self._prefix = prefix

    def _key(self, session_id):
        return f'{self._prefix}{session_id}'

    def create(self, payload, ttl):
        session_id = new_session_id()
        try:
            self._client.set(self._key(session_id), json.dumps(payload), ex=int(ttl))
        except RedisError as e:
            logger.error(f"Session store error on create: {e}")
            raise StorageFailure('The session store is unavailable.') from e
        return session_id

    def get(self, session_id):
        try:
            raw = self._client.get(self._key(session_id))
        except RedisError as e:
            logger.error(f"Session store error on read: {e}")
            raise StorageFailure('The session store is unavailable.') from e
        if raw is None:
            return None
        return json.loads(raw)

    def touch(self, session_id, ttl):
        # EXPIRE on a missing key is a no-op, so an expired session stays expired.
        try:
            return bool(self._client.expire(self._key(session_id), int(ttl)))
        except RedisError as e:
            logger.error(f"Session store error on refresh: {e}")
            raise StorageFailure('The session store is unavailable.') from e

    def delete(self, session_id):
        try:
            self._client.delete(self._key(session_id))
        except RedisError as e:
            logger.error(f"Session store error on delete: {e}")
            raise StorageFailure('The session store is unavailable.') from e

    def count(self):
        try:
            return sum(1 for _ in self._client.scan_iter(match=f'{self._prefix}*'))
        except RedisError as e:
            logger.error(f"Session store error on count: {e}")
            raise StorageFailure('The session store is unavailable.') from e


def create_session_store(url):
    """Builds the store named by SESSION_STORE_URL ('memory://' or 'redis://...')."""
    if not url or url.startswith('memory://'):
        return MemorySessionStore()
    if url.startswith(('redis://', 'rediss://', 'unix://')):
        return RedisSessionStore(Redis.from_url(url, decode_responses=True))
    raise ValueError(f"Unsupported SESSION_STORE_URL: {url}")


def get_session_store():
    return current_app.extensions['session_store']
