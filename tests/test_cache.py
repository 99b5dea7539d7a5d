"""TTL behavior of the resolution cache backends."""
import json
from unittest.mock import MagicMock

import redis

from localstock.cache import InMemoryCache, RedisCache

PAYLOAD = {"eligible": True, "offers": [{"id": "o1"}], "cached": False, "timestamp": "t"}


def test_hit_just_before_ttl_and_miss_just_after(cache, clock):
    cache.set("k", PAYLOAD)
    clock.advance(300 - 0.001)
    entry = cache.get("k")
    assert entry is not None
    assert entry.value == PAYLOAD

    clock.advance(0.002)
    assert cache.get("k") is None


def test_expired_entry_is_evicted_on_read(cache, clock):
    cache.set("k", PAYLOAD)
    clock.advance(301)
    assert cache.size() == 1
    assert cache.get("k") is None
    assert cache.size() == 0


def test_set_accepts_explicit_timestamp(cache, clock):
    cache.set("k", PAYLOAD, now=clock.now - 299)
    assert cache.get("k") is not None
    clock.advance(1)
    assert cache.get("k") is None


def test_sweep_removes_only_expired_entries(cache, clock):
    cache.set("old", PAYLOAD)
    clock.advance(200)
    cache.set("new", PAYLOAD)
    clock.advance(150)

    assert cache.sweep() == 1
    assert cache.size() == 1
    assert cache.get("new") is not None


def test_clear_is_idempotent(cache):
    cache.set("a", PAYLOAD)
    cache.clear()
    cache.clear()
    assert cache.size() == 0


def test_redis_cache_stores_with_expiry(clock):
    client = MagicMock()
    cache = RedisCache(client, 300, clock=clock)
    cache.set("k", PAYLOAD)

    key, ttl, body = client.setex.call_args.args
    assert key == "localstock:resolve:k"
    assert ttl == 300
    assert json.loads(body) == {"stored_at": clock.now, "value": PAYLOAD}


def test_redis_cache_enforces_exact_window(clock):
    client = MagicMock()
    client.get.return_value = json.dumps({"stored_at": clock.now, "value": PAYLOAD}).encode()
    cache = RedisCache(client, 300, clock=clock)

    clock.advance(299.999)
    assert cache.get("k").value == PAYLOAD
    clock.advance(0.002)
    assert cache.get("k") is None


def test_redis_errors_degrade_to_miss(clock):
    client = MagicMock()
    client.get.side_effect = redis.ConnectionError("down")
    client.setex.side_effect = redis.ConnectionError("down")
    cache = RedisCache(client, 300, clock=clock)

    cache.set("k", PAYLOAD)
    assert cache.get("k") is None


def test_redis_size_and_clear_use_prefix(clock):
    client = MagicMock()
    client.scan_iter.return_value = iter([b"localstock:resolve:a", b"localstock:resolve:b"])
    cache = RedisCache(client, 300, clock=clock)
    cache.clear()
    client.delete.assert_called_once_with(b"localstock:resolve:a", b"localstock:resolve:b")
    client.scan_iter.assert_called_with(match="localstock:resolve:*")


def test_in_memory_cache_defaults_to_wall_clock():
    cache = InMemoryCache(60)
    cache.set("k", PAYLOAD)
    assert cache.get("k") is not None
