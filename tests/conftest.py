"""Shared fixtures for the prompt catalog tests."""

from datetime import datetime, timezone

import pytest
from redis.exceptions import ConnectionError as RedisConnectionError

from prompt_catalog.entities import PromptRecord

START_TIME = 1_700_000_000.0


class FakeClock:
    """Manually advanced clock returning seconds since the epoch."""

    def __init__(self, now: float = START_TIME) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class FakePipeline:
    """Buffers SET commands until execute(), like a non-transactional pipeline."""

    def __init__(self, redis: "FakeRedis") -> None:
        self._redis = redis
        self._commands: list[tuple] = []

    async def __aenter__(self) -> "FakePipeline":
        return self

    async def __aexit__(self, *exc) -> None:
        self._commands.clear()

    def set(self, key, value, ex=None) -> "FakePipeline":
        self._commands.append((key, value, ex))
        return self

    async def execute(self) -> list[bool]:
        self._redis.check()
        for key, value, ex in self._commands:
            await self._redis.set(key, value, ex=ex)
        return [True] * len(self._commands)


class FakeRedis:
    """Minimal asyncio Redis double (decode_responses=True semantics)."""

    def __init__(self, clock: FakeClock) -> None:
        self._clock = clock
        self._data: dict[str, tuple[str, float | None]] = {}
        self.fail = False
        self.closed = False

    def check(self) -> None:
        if self.fail:
            raise RedisConnectionError("redis is down")

    def _lookup(self, key: str) -> str | None:
        entry = self._data.get(key)
        if entry is None:
            return None
        value, expires_at = entry
        if expires_at is not None and self._clock() >= expires_at:
            del self._data[key]
            return None
        return value

    async def get(self, key: str) -> str | None:
        self.check()
        return self._lookup(key)

    async def mget(self, keys: list[str]) -> list[str | None]:
        self.check()
        return [self._lookup(key) for key in keys]

    async def set(self, key: str, value, ex: int | None = None) -> bool:
        self.check()
        expires_at = self._clock() + ex if ex is not None else None
        self._data[key] = (str(value), expires_at)
        return True

    async def delete(self, *keys: str) -> int:
        self.check()
        return sum(1 for key in keys if self._data.pop(key, None) is not None)

    async def ping(self) -> bool:
        self.check()
        return True

    async def aclose(self) -> None:
        self.closed = True

    def pipeline(self, transaction: bool = True) -> FakePipeline:
        return FakePipeline(self)

    def expire_now(self, key: str) -> None:
        """Drop a key as if its TTL had elapsed."""
        self._data.pop(key, None)


def make_record(record_id: str = "rec1", category: str = "Writing", **overrides) -> PromptRecord:
    """Build a PromptRecord with sensible defaults."""
    stamp = datetime.fromtimestamp(START_TIME, tz=timezone.utc)
    values = {
        "id": record_id,
        "title": f"Title {record_id}",
        "description": "Description",
        "content": "Content",
        "category": category,
        "tags": ["tag-a"],
        "created_at": stamp,
        "updated_at": stamp,
    }
    values.update(overrides)
    return PromptRecord(**values)


class FakeSource:
    """PromptSource double returning canned records or raising."""

    def __init__(self, records: list[PromptRecord] | None = None, error: Exception | None = None) -> None:
        self.records = records or []
        self.error = error
        self.calls = 0

    async def fetch_records(self) -> list[PromptRecord]:
        self.calls += 1
        if self.error is not None:
            raise self.error
        return list(self.records)

    async def close(self) -> None:
        pass


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def fake_redis(clock: FakeClock) -> FakeRedis:
    return FakeRedis(clock)
