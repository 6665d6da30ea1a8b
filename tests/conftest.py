"""Shared test fixtures."""

import math
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import UTC, datetime

import pytest
from redis.exceptions import ConnectionError as RedisConnectionError
from redis.exceptions import ResponseError, WatchError

from identity_store.adapters.redis_record_store import RedisRecordStore
from identity_store.config import Settings
from identity_store.domain.models import RegistrationRecord
from identity_store.services.gateway import StoreGateway
from identity_store.services.registrations import RegistrationRepository


class FakeRedis:
    """In-memory stand-in for a decode_responses Redis client.

    Time only moves through advance(). Every write bumps a per-key version so
    WATCH can detect concurrent changes. Setting fail_command makes the next
    queued command of that name fail inside EXEC, after the commands queued
    before it were applied, the way Redis behaves. Registered scripts run
    their Python equivalent; before_script fires just ahead of each call.
    """

    def __init__(self, **connection_kwargs: object) -> None:
        self.connection_kwargs = connection_kwargs
        self.hashes: dict[str, dict[str, str]] = {}
        self.expires_at: dict[str, float] = {}
        self.versions: dict[str, int] = {}
        self.now = 0.0
        self.closed = False
        self.unavailable = False
        self.fail_command: str | None = None
        self.before_exec: Callable[[], None] | None = None
        self.before_script: Callable[[], None] | None = None
        self.scripts: list[str] = []

    @classmethod
    def from_url(cls, url: str, **kwargs: object) -> "FakeRedis":
        return cls(url=url, **kwargs)

    def advance(self, seconds: float) -> None:
        self.now += seconds

    def ping(self) -> bool:
        self._check_available()
        return True

    def close(self) -> None:
        self.closed = True

    def exists(self, *keys: str) -> int:
        self._check_available()
        return sum(1 for key in keys if self._live(key))

    def hget(self, key: str, name: str) -> str | None:
        self._check_available()
        if not self._live(key):
            return None
        return self.hashes[key].get(name)

    def hset(
        self,
        key: str,
        name: str | None = None,
        value: str | None = None,
        mapping: dict[str, str] | None = None,
    ) -> int:
        self._check_available()
        self._live(key)
        items = dict(mapping or {})
        if name is not None:
            items[name] = value  # type: ignore[assignment]
        record = self.hashes.setdefault(key, {})
        added = sum(1 for item in items if item not in record)
        record.update(items)
        self._touch(key)
        return added

    def delete(self, *keys: str) -> int:
        self._check_available()
        removed = 0
        for key in keys:
            if self._live(key):
                self._drop(key)
                removed += 1
        return removed

    def expire(self, key: str, seconds: int) -> bool:
        self._check_available()
        if not self._live(key):
            return False
        if seconds <= 0:
            self._drop(key)
            return True
        self.expires_at[key] = self.now + seconds
        self._touch(key)
        return True

    def ttl(self, key: str) -> int:
        self._check_available()
        if not self._live(key):
            return -2
        if key not in self.expires_at:
            return -1
        return math.ceil(self.expires_at[key] - self.now)

    def pipeline(self, transaction: bool = True) -> "FakePipeline":
        return FakePipeline(self)

    def register_script(self, script: str) -> "FakeHsetIfExists":
        self.scripts.append(script)
        return FakeHsetIfExists(self)

    def _live(self, key: str) -> bool:
        expires_at = self.expires_at.get(key)
        if expires_at is not None and expires_at <= self.now:
            self._drop(key)
        return key in self.hashes

    def _drop(self, key: str) -> None:
        self.hashes.pop(key, None)
        self.expires_at.pop(key, None)
        self._touch(key)

    def _touch(self, key: str) -> None:
        self.versions[key] = self.versions.get(key, 0) + 1

    def _check_available(self) -> None:
        if self.unavailable:
            raise RedisConnectionError("Connection refused")


@dataclass
class FakeHsetIfExists:
    """Stand-in for the conditional HSET script."""

    client: FakeRedis

    def __call__(self, keys: list[str], args: list[str]) -> int | None:
        self.client._check_available()
        if self.client.before_script is not None:
            hook = self.client.before_script
            self.client.before_script = None
            hook()
        if not self.client._live(keys[0]):
            return None
        return self.client.hset(keys[0], args[0], args[1])


@dataclass
class FakePipeline:
    """WATCH/MULTI/EXEC pipeline over a FakeRedis."""

    client: FakeRedis
    watched: dict[str, int] = field(default_factory=dict)
    queued: list[tuple[str, tuple, dict]] = field(default_factory=list)
    buffering: bool = False

    def __enter__(self) -> "FakePipeline":
        return self

    def __exit__(self, *_exc_info: object) -> None:
        self.reset()

    def watch(self, *keys: str) -> None:
        self.client._check_available()
        for key in keys:
            self.client._live(key)
            self.watched[key] = self.client.versions.get(key, 0)

    def multi(self) -> None:
        self.buffering = True

    def exists(self, *keys: str):  # type: ignore[no-untyped-def]
        return self._command("exists", keys, {})

    def hset(self, key: str, *args: str, **kwargs: object):  # type: ignore[no-untyped-def]
        return self._command("hset", (key, *args), kwargs)

    def expire(self, key: str, seconds: int):  # type: ignore[no-untyped-def]
        return self._command("expire", (key, seconds), {})

    def execute(self) -> list[object]:
        self.client._check_available()
        if self.client.before_exec is not None:
            hook = self.client.before_exec
            self.client.before_exec = None
            hook()
        for key, version in self.watched.items():
            self.client._live(key)
            if self.client.versions.get(key, 0) != version:
                self.reset()
                raise WatchError("Watched variable changed.")
        results: list[object] = []
        for name, args, kwargs in self.queued:
            if name == self.client.fail_command:
                self.client.fail_command = None
                results.append(ResponseError(f"injected failure in {name}"))
                continue
            results.append(getattr(self.client, name)(*args, **kwargs))
        self.reset()
        for result in results:
            if isinstance(result, ResponseError):
                raise result
        return results

    def reset(self) -> None:
        self.watched.clear()
        self.queued.clear()
        self.buffering = False

    def _command(self, name: str, args: tuple, kwargs: dict):  # type: ignore[no-untyped-def]
        if self.buffering:
            self.queued.append((name, args, kwargs))
            return self
        return getattr(self.client, name)(*args, **kwargs)


@dataclass
class InMemoryRegistrationRepository(RegistrationRepository):
    """In-memory registration repository for tests."""

    registrations: dict[str, RegistrationRecord] = field(default_factory=dict)

    def get_registration(self, identity: str) -> RegistrationRecord | None:
        return self.registrations.get(identity)

    def create_registration(
        self, identity: str, email: str, confirm_id: str
    ) -> RegistrationRecord:
        record = RegistrationRecord(
            identity=identity,
            email=email,
            registered_at=datetime.now(tz=UTC),
            confirmed=False,
            confirm_id=confirm_id,
        )
        self.registrations[identity] = record
        return record

    def find_by_confirm_id(self, confirm_id: str) -> RegistrationRecord | None:
        for record in self.registrations.values():
            if record.confirm_id == confirm_id:
                return record
        return None

    def mark_confirmed(self, identity: str) -> None:
        current = self.registrations[identity]
        self.registrations[identity] = RegistrationRecord(
            identity=current.identity,
            email=current.email,
            registered_at=current.registered_at,
            confirmed=True,
            confirm_id=current.confirm_id,
        )


@pytest.fixture
def settings() -> Settings:
    return Settings(redis_address="127.0.0.1:6379")


@pytest.fixture
def fake_redis() -> FakeRedis:
    return FakeRedis()


@pytest.fixture
def store(fake_redis: FakeRedis) -> RedisRecordStore:
    return RedisRecordStore(fake_redis)  # type: ignore[arg-type]


@pytest.fixture
def gateway(store: RedisRecordStore) -> StoreGateway:
    return StoreGateway(store=store)


@pytest.fixture
def registration_repository() -> InMemoryRegistrationRepository:
    return InMemoryRegistrationRepository()
