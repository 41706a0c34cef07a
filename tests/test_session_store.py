"""
Tests for the session stores
"""
from unittest.mock import MagicMock

import pytest
import redis

from exceptions import StorageException
from session_store import InMemorySessionStore, RedisSessionStore


class TestInMemorySessionStore:
    """Tests for the process-local store"""

    def test_set_and_get(self, clock):
        store = InMemorySessionStore(clock=clock)
        store.set('sid', {'_user_id': 'admin'}, ttl=60)

        assert store.get('sid') == {'_user_id': 'admin'}

    def test_get_returns_copy(self, clock):
        store = InMemorySessionStore(clock=clock)
        store.set('sid', {'_user_id': 'admin'}, ttl=60)

        store.get('sid')['_user_id'] = 'mallory'

        assert store.get('sid') == {'_user_id': 'admin'}

    def test_entry_expires(self, clock):
        store = InMemorySessionStore(clock=clock)
        store.set('sid', {'a': 1}, ttl=60)

        clock.advance(60)

        assert store.get('sid') is None
        assert len(store) == 0

    def test_destroy(self, clock):
        store = InMemorySessionStore(clock=clock)
        store.set('sid', {'a': 1}, ttl=60)

        store.destroy('sid')
        store.destroy('sid')

        assert store.get('sid') is None

    def test_expire_moves_deadline(self, clock):
        store = InMemorySessionStore(clock=clock)
        store.set('sid', {'a': 1}, ttl=60)

        assert store.expire('sid', 10) is True
        clock.advance(11)

        assert store.get('sid') is None
        assert store.expire('sid', 10) is False

    def test_set_purges_expired_entries(self, clock):
        store = InMemorySessionStore(clock=clock)
        store.set('old', {'a': 1}, ttl=5)
        clock.advance(10)

        store.set('new', {'b': 2}, ttl=5)

        assert len(store) == 1


class TestRedisSessionStore:
    """Tests for the Redis store against a mocked client"""

    def test_set_uses_setex_with_prefix(self):
        client = MagicMock()
        store = RedisSessionStore(client)

        store.set('sid', {'a': 1}, ttl=30.5)

        client.setex.assert_called_once_with('cms:session:sid', 30, '{"a": 1}')

    def test_get_decodes_json(self):
        client = MagicMock()
        client.get.return_value = '{"a": 1}'

        assert RedisSessionStore(client).get('sid') == {'a': 1}

    def test_get_missing(self):
        client = MagicMock()
        client.get.return_value = None

        assert RedisSessionStore(client).get('sid') is None

    def test_destroy_and_expire(self):
        client = MagicMock()
        client.expire.return_value = 1
        store = RedisSessionStore(client)

        store.destroy('sid')
        assert store.expire('sid', 5) is True

        client.delete.assert_called_once_with('cms:session:sid')
        client.expire.assert_called_once_with('cms:session:sid', 5)

    def test_redis_errors_become_storage_exceptions(self):
        client = MagicMock()
        client.delete.side_effect = redis.ConnectionError('down')

        with pytest.raises(StorageException) as exc_info:
            RedisSessionStore(client).destroy('sid')

        assert exc_info.value.to_dict()['error'] == 'Logout failed'
