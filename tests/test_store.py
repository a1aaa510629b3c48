"""
Tests for cart stores
"""

import json
from unittest.mock import Mock

import pytest
from shopcart import CartManager, MemoryStore, RedisStore, generate_row_id
from shopcart.config import TTL


class TestMemoryStore:
    """Tests for MemoryStore."""

    def test_put_get_forget(self):
        """Basic round trip."""
        store = MemoryStore()

        store.put("cart.main", {"rows": []})

        assert store.has("cart.main")
        assert store.get("cart.main") == {"rows": []}

        store.forget("cart.main")

        assert not store.has("cart.main")
        assert store.get("cart.main") is None

    def test_forget_missing_key(self):
        """Forgetting an absent key is a no-op."""
        MemoryStore().forget("cart.none")

    def test_values_are_copied(self):
        """Neither the written nor the returned value aliases storage."""
        store = MemoryStore()
        value = {"rows": [{"rowid": "a"}]}

        store.put("cart.main", value)
        value["rows"].append({"rowid": "b"})
        fetched = store.get("cart.main")
        fetched["rows"].clear()

        assert store.get("cart.main") == {"rows": [{"rowid": "a"}]}


class TestRedisStore:
    """Tests for RedisStore with a mocked Upstash client."""

    def test_get_decodes_json(self, mock_redis):
        """Stored JSON comes back as a dict."""
        mock_redis.get.return_value = json.dumps({"rows": []})
        store = RedisStore(redis=mock_redis)

        assert store.get("cart.main") == {"rows": []}
        mock_redis.get.assert_called_once_with("cart.main")

    def test_get_missing(self, mock_redis):
        """Missing keys return None."""
        assert RedisStore(redis=mock_redis).get("cart.main") is None

    @pytest.mark.parametrize("raw", ["{not json", json.dumps([1, 2])])
    def test_corrupted_value_is_dropped(self, mock_redis, raw):
        """Undecodable values are deleted and treated as absent."""
        mock_redis.get.return_value = raw
        store = RedisStore(redis=mock_redis)

        assert store.get("cart.main") is None
        mock_redis.delete.assert_called_once_with("cart.main")

    def test_put_uses_ttl(self, mock_redis):
        """Writes are JSON with the configured TTL."""
        store = RedisStore(redis=mock_redis)

        store.put("cart.main", {"rows": []})

        mock_redis.set.assert_called_once_with("cart.main", json.dumps({"rows": []}), ex=TTL.CART)

    def test_put_without_ttl(self, mock_redis):
        """TTL can be disabled."""
        store = RedisStore(redis=mock_redis, ttl=None)

        store.put("cart.main", {"rows": []})

        mock_redis.set.assert_called_once_with("cart.main", json.dumps({"rows": []}))

    def test_has_and_forget(self, mock_redis):
        """has() maps to EXISTS, forget() to DEL."""
        mock_redis.exists.return_value = 1
        store = RedisStore(redis=mock_redis)

        assert store.has("cart.main") is True
        store.forget("cart.main")

        mock_redis.exists.assert_called_once_with("cart.main")
        mock_redis.delete.assert_called_once_with("cart.main")

    def test_manager_over_redis(self, mock_redis):
        """The manager writes a JSON snapshot readable on the next call."""
        stored = {}
        mock_redis.set.side_effect = lambda key, value, ex=None: stored.__setitem__(key, value)
        mock_redis.get.side_effect = lambda key: stored.get(key)
        cart = CartManager(store=RedisStore(redis=mock_redis), notifier=Mock())

        cart.add({"id": "LEA_1", "quantity": 2, "price": "9.99", "shipping": {"weight": 0.2}})

        rowid = generate_row_id("LEA_1")
        payload = json.loads(stored["cart.main"])
        assert payload["rows"][0]["rowid"] == rowid
        assert payload["rows"][0]["price"] == "9.99"
        assert cart.get(rowid).get("shipping") == {"weight": 0.2}
        assert str(cart.total()) == "19.98"
