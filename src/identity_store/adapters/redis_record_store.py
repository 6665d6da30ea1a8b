"""Redis-backed record store."""

import logging
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Any

import redis
from redis.exceptions import ConnectionError as RedisConnectionError
from redis.exceptions import ResponseError, WatchError
from redis.exceptions import TimeoutError as RedisTimeoutError

from identity_store.config import parse_address
from identity_store.domain.errors import (
    AlreadyExistsError,
    BackendUnavailableError,
    ExpirationRejectedError,
    NotFoundError,
    TransactionFailedError,
)
from identity_store.services.records import RecordStore

_logger = logging.getLogger(__name__)

# TTL replies for a missing key and a key without expiry.
_TTL_MISSING = -2
_TTL_PERSISTENT = -1

# HSET that only applies to an existing key; replies nil when the key is gone.
LUA_HSET_IF_EXISTS: str = """
if redis.call("EXISTS", KEYS[1]) == 1 then
    return redis.call("HSET", KEYS[1], ARGV[1], ARGV[2])
end
return false
"""


@contextmanager
def _backend_errors() -> Iterator[None]:
    """Map transport failures to BackendUnavailableError."""
    try:
        yield
    except (RedisConnectionError, RedisTimeoutError) as exc:
        raise BackendUnavailableError(str(exc)) from exc


@dataclass
class RedisRecordStore(RecordStore):
    """Hash records stored in Redis, one key per record."""

    client: redis.Redis
    _hset_if_exists: Any = field(init=False, repr=False)

    def __post_init__(self) -> None:
        self._hset_if_exists = self.client.register_script(LUA_HSET_IF_EXISTS)

    @classmethod
    def connect(
        cls, address: str, db: int = 0, password: str | None = None
    ) -> "RedisRecordStore":
        """Create a client for the address and verify the connection."""
        if "://" in address:
            client = redis.Redis.from_url(
                address, db=db, password=password, decode_responses=True
            )
        else:
            host, port = parse_address(address)
            client = redis.Redis(
                host=host, port=port, db=db, password=password, decode_responses=True
            )
        with _backend_errors():
            client.ping()
        return cls(client=client)

    def exists(self, key: str) -> bool:
        with _backend_errors():
            return self.client.exists(key) > 0

    def get_field(self, key: str, field: str) -> str | None:
        with _backend_errors():
            return self.client.hget(key, field)

    def set_field(self, key: str, field: str, value: str) -> None:
        with _backend_errors():
            self.client.hset(key, field, value)

    def update_field(self, key: str, field: str, value: str) -> None:
        """Set a field only while the record exists.

        A plain HSET on an expired key would recreate it without a TTL, so the
        existence check and the write run together as one server-side script.
        """
        with _backend_errors():
            written = self._hset_if_exists(keys=[key], args=[field, value])
        if written is None:
            raise NotFoundError(key)

    def delete(self, key: str) -> None:
        with _backend_errors():
            removed = self.client.delete(key)
        if not removed:
            raise NotFoundError(key)

    def set_expiration(self, key: str, ttl_seconds: int) -> None:
        # Redis deletes the key on a non-positive EXPIRE instead of refusing it.
        if ttl_seconds <= 0:
            raise ExpirationRejectedError(key, ttl_seconds)
        try:
            with _backend_errors():
                applied = self.client.expire(key, ttl_seconds)
        except ResponseError as exc:
            raise ExpirationRejectedError(key, ttl_seconds) from exc
        if not applied:
            raise NotFoundError(key)

    def time_to_live(self, key: str) -> int | None:
        with _backend_errors():
            remaining = self.client.ttl(key)
        if remaining == _TTL_MISSING:
            raise NotFoundError(key)
        if remaining == _TTL_PERSISTENT:
            return None
        return remaining

    def create(
        self, key: str, fields: dict[str, str], ttl_seconds: int | None = None
    ) -> None:
        """Create a record under WATCH so that an existing key is never overwritten.

        The field write and the expiration are queued in one MULTI/EXEC block.
        Redis does not roll back a block whose later command fails, so any
        half-applied record is deleted before TransactionFailedError is raised.
        """
        if ttl_seconds is not None and ttl_seconds <= 0:
            raise ExpirationRejectedError(key, ttl_seconds)
        with _backend_errors(), self.client.pipeline() as pipe:
            pipe.watch(key)
            if pipe.exists(key):
                raise AlreadyExistsError(key)
            pipe.multi()
            pipe.hset(key, mapping=fields)
            if ttl_seconds is not None:
                pipe.expire(key, ttl_seconds)
            try:
                results = pipe.execute()
            except WatchError as exc:
                if self.client.exists(key):
                    raise AlreadyExistsError(key) from exc
                raise TransactionFailedError(key, "key changed concurrently") from exc
            except ResponseError as exc:
                self._discard(key)
                raise TransactionFailedError(key, str(exc)) from exc
        if ttl_seconds is not None and not results[-1]:
            self._discard(key)
            raise TransactionFailedError(key, "expiration was not applied")

    def close(self) -> None:
        self.client.close()

    def _discard(self, key: str) -> None:
        _logger.warning("Discarding partially written record: key=%s", key)
        try:
            with _backend_errors():
                self.client.delete(key)
        except BackendUnavailableError:
            _logger.error("Partially written record was not discarded: key=%s", key)
            raise
