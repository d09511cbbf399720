"""Tests for sf_common.storage and sf_common.auth."""

import json
from unittest.mock import AsyncMock, MagicMock

import pytest
from redis.exceptions import ConnectionError as RedisConnectionError

from src.sf_common.auth import AuthTokenStore
from src.sf_common.errors import StorageError
from src.sf_common.storage import InMemoryStorage, RedisStorage, namespaced


class TestNamespaced:
    def test_joins_with_colon(self) -> None:
        assert namespaced("tec-burger", "cart") == "tec-burger:cart"
        assert namespaced("ns", "idempotency-keys", "abc") == "ns:idempotency-keys:abc"


class TestInMemoryStorage:
    @pytest.mark.asyncio
    async def test_round_trips_json_values(self) -> None:
        storage = InMemoryStorage()
        await storage.set("k", {"items": [1, 2]})
        assert await storage.get("k") == {"items": [1, 2]}

    @pytest.mark.asyncio
    async def test_missing_key_is_none(self) -> None:
        assert await InMemoryStorage().get("nope") is None

    @pytest.mark.asyncio
    async def test_values_are_copies(self) -> None:
        storage = InMemoryStorage()
        value = {"a": 1}
        await storage.set("k", value)
        value["a"] = 2
        assert await storage.get("k") == {"a": 1}

    @pytest.mark.asyncio
    async def test_delete_is_idempotent(self) -> None:
        storage = InMemoryStorage()
        await storage.set("k", 1)
        await storage.delete("k")
        await storage.delete("k")
        assert await storage.get("k") is None

    @pytest.mark.asyncio
    async def test_keys_by_prefix(self) -> None:
        storage = InMemoryStorage()
        await storage.set("ns:a:2", 1)
        await storage.set("ns:a:1", 1)
        await storage.set("ns:b", 1)
        assert await storage.keys("ns:a:") == ["ns:a:1", "ns:a:2"]

    @pytest.mark.asyncio
    async def test_unserializable_raises_storage_error(self) -> None:
        with pytest.raises(StorageError):
            await InMemoryStorage().set("k", object())


def _make_redis(**kwargs: object) -> MagicMock:
    redis = MagicMock()
    redis.get = AsyncMock(return_value=kwargs.get("get"))
    redis.set = AsyncMock()
    redis.delete = AsyncMock()
    return redis


class TestRedisStorage:
    @pytest.mark.asyncio
    async def test_get_decodes_json(self) -> None:
        redis = _make_redis(get=json.dumps({"x": 1}))
        assert await RedisStorage(redis).get("k") == {"x": 1}

    @pytest.mark.asyncio
    async def test_set_encodes_json(self) -> None:
        redis = _make_redis()
        await RedisStorage(redis).set("k", [1, "a"])
        redis.set.assert_awaited_once_with("k", '[1, "a"]')

    @pytest.mark.asyncio
    async def test_redis_failure_becomes_storage_error(self) -> None:
        redis = _make_redis()
        redis.get.side_effect = RedisConnectionError("down")
        with pytest.raises(StorageError, match="down"):
            await RedisStorage(redis).get("k")

    @pytest.mark.asyncio
    async def test_keys_uses_scan(self) -> None:
        async def scan_iter(match: str):  # noqa: ANN202
            assert match == "ns:*"
            for key in ("ns:b", "ns:a"):
                yield key

        redis = _make_redis()
        redis.scan_iter = scan_iter
        assert await RedisStorage(redis).keys("ns:") == ["ns:a", "ns:b"]


class TestAuthTokenStore:
    @pytest.mark.asyncio
    async def test_set_get_clear(self) -> None:
        store = AuthTokenStore(InMemoryStorage(), "ns")
        assert await store.get_token() is None
        await store.set_token("tok-1")
        assert await store.get_token() == "tok-1"
        await store.clear_token()
        assert await store.get_token() is None

    @pytest.mark.asyncio
    async def test_read_failure_degrades_to_no_token(self) -> None:
        storage = AsyncMock()
        storage.get.side_effect = StorageError("down")
        assert await AuthTokenStore(storage, "ns").get_token() is None
