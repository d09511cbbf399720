"""Key-value storage backends for client-side persisted state.

Values are JSON-serializable objects; backends store them as JSON strings.
Every backend failure surfaces as StorageError so callers can decide
whether to degrade (idempotency keys) or propagate (cart).
"""

import json
from typing import Any, Protocol

import redis.asyncio as aioredis
from redis.exceptions import RedisError

from src.sf_common.errors import StorageError


class KeyValueStorage(Protocol):
    async def get(self, key: str) -> Any | None: ...

    async def set(self, key: str, value: Any) -> None: ...

    async def delete(self, key: str) -> None: ...

    async def keys(self, prefix: str) -> list[str]: ...


class InMemoryStorage:
    """Process-local storage used by tests and ephemeral sessions."""

    def __init__(self) -> None:
        self._data: dict[str, str] = {}

    async def get(self, key: str) -> Any | None:
        raw = self._data.get(key)
        return json.loads(raw) if raw is not None else None

    async def set(self, key: str, value: Any) -> None:
        try:
            self._data[key] = json.dumps(value)
        except (TypeError, ValueError) as exc:
            raise StorageError(f"value for {key} is not JSON serializable") from exc

    async def delete(self, key: str) -> None:
        self._data.pop(key, None)

    async def keys(self, prefix: str) -> list[str]:
        return sorted(k for k in self._data if k.startswith(prefix))


class RedisStorage:
    """Redis-backed storage; survives process restarts."""

    def __init__(self, redis: aioredis.Redis) -> None:
        self._redis = redis

    async def get(self, key: str) -> Any | None:
        try:
            raw = await self._redis.get(key)
        except RedisError as exc:
            raise StorageError(str(exc)) from exc
        return json.loads(raw) if raw is not None else None

    async def set(self, key: str, value: Any) -> None:
        try:
            payload = json.dumps(value)
        except (TypeError, ValueError) as exc:
            raise StorageError(f"value for {key} is not JSON serializable") from exc
        try:
            await self._redis.set(key, payload)
        except RedisError as exc:
            raise StorageError(str(exc)) from exc

    async def delete(self, key: str) -> None:
        try:
            await self._redis.delete(key)
        except RedisError as exc:
            raise StorageError(str(exc)) from exc

    async def keys(self, prefix: str) -> list[str]:
        try:
            found = [k async for k in self._redis.scan_iter(match=f"{prefix}*")]
        except RedisError as exc:
            raise StorageError(str(exc)) from exc
        return sorted(found)


def namespaced(namespace: str, *parts: str) -> str:
    """Build a storage key: namespaced('tec-burger', 'cart') -> 'tec-burger:cart'."""
    return ":".join((namespace, *parts))
