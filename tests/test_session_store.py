# tests/test_session_store.py

import pytest

from reviewer.auth.session_store import (
    MemorySessionStore, RedisSessionStore, create_session_store,
)


def test_memory_store_expires_idle_sessions(clock):
    store = MemorySessionStore(clock=clock)
    session_id = store.create({'user': {'email': 'a@x.org'}}, ttl=60)

    clock.advance(59)
    assert store.get(session_id) == {'user': {'email': 'a@x.org'}}
    clock.advance(1)
    assert store.get(session_id) is None
    assert store.count() == 0


def test_touch_slides_the_expiry_of_live_sessions_only(clock):
    store = MemorySessionStore(clock=clock)
    session_id = store.create({'user': {}}, ttl=60)

    clock.advance(50)
    assert store.touch(session_id, 60) is True
    clock.advance(50)
    assert store.get(session_id) is not None

    clock.advance(61)
    assert store.touch(session_id, 60) is False
    assert store.get(session_id) is None


def test_delete_is_immediate(clock):
    store = MemorySessionStore(clock=clock)
    session_id = store.create({'user': {}}, ttl=60)

    store.delete(session_id)
    store.delete(session_id)

    assert store.get(session_id) is None


def test_session_ids_are_unique_and_opaque(clock):
    store = MemorySessionStore(clock=clock)
    ids = {store.create({'user': {}}, ttl=60) for _ in range(50)}

    assert len(ids) == 50
    assert all(len(session_id) >= 32 for session_id in ids)


def test_returned_payload_is_a_copy(clock):
    store = MemorySessionStore(clock=clock)
    session_id = store.create({'user': 'a'}, ttl=60)

    store.get(session_id)['user'] = 'b'

    assert store.get(session_id) == {'user': 'a'}


class FakeRedis:
    """The few Redis commands the session store uses, without expiry."""

    def __init__(self):
        self.values = {}
        self.ttls = {}

    def set(self, key, value, ex=None):
        self.values[key] = value
        self.ttls[key] = ex

    def get(self, key):
        return self.values.get(key)

    def expire(self, key, seconds):
        if key not in self.values:
            return False
        self.ttls[key] = seconds
        return True

    def delete(self, key):
        self.values.pop(key, None)
        self.ttls.pop(key, None)


def test_redis_store_round_trip():
    redis = FakeRedis()
    store = RedisSessionStore(redis, prefix='test:')

    session_id = store.create({'user': {'email': 'a@x.org'}}, ttl=120)

    assert redis.ttls[f'test:{session_id}'] == 120
    assert store.get(session_id) == {'user': {'email': 'a@x.org'}}
    assert store.touch(session_id, 300) is True
    assert redis.ttls[f'test:{session_id}'] == 300

    store.delete(session_id)
    assert store.get(session_id) is None
    assert store.touch(session_id, 300) is False


def test_create_session_store_by_url():
    assert isinstance(create_session_store('memory://'), MemorySessionStore)
    assert isinstance(create_session_store('redis://localhost:6379/0'), RedisSessionStore)

    with pytest.raises(ValueError):
        create_session_store('ftp://nowhere')
