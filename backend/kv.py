"""
Key/value abstraction backing the local record store.

Supports an in-memory fallback for tests/local runs and a Redis-backed
implementation when a shared server is available.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional, Protocol

import redis
from redis import exceptions as redis_exceptions

from backend.errors import QueryError


class KeyValueStore(Protocol):
    """String-to-string storage, the same surface as browser localStorage."""

    def get(self, key: str) -> Optional[str]:
        ...

    def set(self, key: str, value: str) -> None:
        ...


@dataclass
class InMemoryKeyValueStore:
    """Dict-backed store for testing/dev."""

    items: dict[str, str] = field(default_factory=dict)

    def get(self, key: str) -> Optional[str]:
        return self.items.get(key)

    def set(self, key: str, value: str) -> None:
        self.items[key] = value

    def reset(self) -> None:
        self.items.clear()


@dataclass
class RedisKeyValueStore:
    """Redis-backed store using plain GET/SET."""

    url: str

    def __post_init__(self):
        self.client = redis.Redis.from_url(self.url, decode_responses=True)

    def get(self, key: str) -> Optional[str]:
        try:
            return self.client.get(key)
        except redis_exceptions.RedisError as e:
            raise QueryError(f"Redis GET {key} failed: {e}") from e

    def set(self, key: str, value: str) -> None:
        try:
            self.client.set(key, value)
        except redis_exceptions.RedisError as e:
            raise QueryError(f"Redis SET {key} failed: {e}") from e
