from __future__ import annotations

import asyncio
import json
import time
from abc import ABC, abstractmethod
from typing import Any, Awaitable, Callable, Optional

from redis.asyncio import Redis


class KeyValueStore(ABC):
    """Async key-value contract: plain reads/writes, a conditional write and a counter.

    Values are JSON-serializable. No multi-key transactions are offered;
    ``set_if_absent`` is the only atomic read-modify-write primitive and is
    what callers use to make single-fire events race-free.
    """

    @abstractmethod
    async def get(self, key: str) -> Any:
        raise NotImplementedError

    @abstractmethod
    async def set(self, key: str, value: Any, ttl: int | None = None) -> None:
        raise NotImplementedError

    @abstractmethod
    async def set_if_absent(self, key: str, value: Any, ttl: int | None = None) -> bool:
        """Write ``value`` only when ``key`` is missing. Returns True if this call wrote it."""
        raise NotImplementedError

    @abstractmethod
    async def increment_by(self, key: str, delta: int) -> int:
        raise NotImplementedError

    @abstractmethod
    async def expire(self, key: str, ttl: int) -> None:
        raise NotImplementedError

    @abstractmethod
    async def delete(self, key: str) -> None:
        raise NotImplementedError

    async def ping(self) -> bool:
        return True

    async def remember(
        self,
        key: str,
        ttl: int | None,
        creator: Callable[[], Awaitable[Any]],
    ) -> Any:
        existing = await self.get(key)
        if existing is not None:
            return existing
        value = await creator()
        await self.set(key, value, ttl)
        return value


class InMemoryStore(KeyValueStore):
    """Process-local store with TTL support, for development and tests."""

    def __init__(self) -> None:
        self._store: dict[str, tuple[Any, float | None]] = {}
        self._lock = asyncio.Lock()

    def _live_entry(self, key: str) -> Optional[tuple[Any, float | None]]:
        entry = self._store.get(key)
        if not entry:
            return None
        _, expires_at = entry
        if expires_at is not None and expires_at < time.time():
            del self._store[key]
            return None
        return entry

    async def get(self, key: str) -> Any:
        async with self._lock:
            entry = self._live_entry(key)
            return entry[0] if entry else None

    async def set(self, key: str, value: Any, ttl: int | None = None) -> None:
        if value is None:
            await self.delete(key)
            return
        expires_at = time.time() + ttl if ttl else None
        async with self._lock:
            self._store[key] = (value, expires_at)

    async def set_if_absent(self, key: str, value: Any, ttl: int | None = None) -> bool:
        expires_at = time.time() + ttl if ttl else None
        async with self._lock:
            if self._live_entry(key) is not None:
                return False
            self._store[key] = (value, expires_at)
            return True

    async def increment_by(self, key: str, delta: int) -> int:
        async with self._lock:
            entry = self._live_entry(key)
            current, expires_at = entry if entry else (0, None)
            try:
                updated = int(current) + delta
            except (TypeError, ValueError) as exc:
                raise ValueError(f"value at {key!r} is not an integer") from exc
            self._store[key] = (updated, expires_at)
            return updated

    async def expire(self, key: str, ttl: int) -> None:
        async with self._lock:
            entry = self._live_entry(key)
            if entry is None:
                return
            self._store[key] = (entry[0], time.time() + ttl)

    async def delete(self, key: str) -> None:
        async with self._lock:
            self._store.pop(key, None)


class RedisStore(KeyValueStore):
    """Redis-backed store."""

    def __init__(self, client: Redis) -> None:
        self._client = client

    async def get(self, key: str) -> Any:
        raw = await self._client.get(key)
        if raw is None:
            return None
        try:
            return json.loads(raw)
        except ValueError:
            return raw

    async def set(self, key: str, value: Any, ttl: int | None = None) -> None:
        if value is None:
            await self._client.delete(key)
            return
        payload = json.dumps(value, ensure_ascii=False)
        if ttl:
            await self._client.set(key, payload, ex=ttl)
        else:
            await self._client.set(key, payload)

    async def set_if_absent(self, key: str, value: Any, ttl: int | None = None) -> bool:
        payload = json.dumps(value, ensure_ascii=False)
        written = await self._client.set(key, payload, nx=True, ex=ttl or None)
        return bool(written)

    async def increment_by(self, key: str, delta: int) -> int:
        return int(await self._client.incrby(key, delta))

    async def expire(self, key: str, ttl: int) -> None:
        await self._client.expire(key, ttl)

    async def delete(self, key: str) -> None:
        await self._client.delete(key)

    async def ping(self) -> bool:
        return bool(await self._client.ping())


_store: KeyValueStore | None = None


async def get_store(redis_url: str | None = None) -> KeyValueStore:
    global _store
    if _store is not None:
        return _store
    if redis_url:
        redis_client = Redis.from_url(redis_url, decode_responses=True)
        _store = RedisStore(redis_client)
    else:
        _store = InMemoryStore()
    return _store
