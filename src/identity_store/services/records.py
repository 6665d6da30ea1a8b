"""Hash-shaped attribute records addressed by a single key."""

import math
from dataclasses import dataclass
from datetime import timedelta
from typing import Protocol

from identity_store.domain.models import DEFAULT_SESSION_LIFETIME


class RecordStore(Protocol):
    """Backend interface for named hashes of string fields."""

    def exists(self, key: str) -> bool:
        """Return whether a record is present for the key."""

    def get_field(self, key: str, field: str) -> str | None:
        """Return a field value, or None when the field or record is absent."""

    def set_field(self, key: str, field: str, value: str) -> None:
        """Upsert a single field without touching the TTL."""

    def update_field(self, key: str, field: str, value: str) -> None:
        """Set a field on an existing record; raise NotFoundError otherwise."""

    def delete(self, key: str) -> None:
        """Remove the record; raise NotFoundError if it did not exist."""

    def set_expiration(self, key: str, ttl_seconds: int) -> None:
        """Set or renew the TTL of an existing record."""

    def time_to_live(self, key: str) -> int | None:
        """Return remaining TTL seconds, or None for a persistent record."""

    def create(
        self, key: str, fields: dict[str, str], ttl_seconds: int | None = None
    ) -> None:
        """Atomically create a record that must not exist yet."""

    def close(self) -> None:
        """Release the backend connection."""


def resolve_ttl(ttl: timedelta | None, default: timedelta = DEFAULT_SESSION_LIFETIME) -> int:
    """Convert a TTL to whole seconds, substituting the default for None or zero."""
    if ttl is None or ttl == timedelta(0):
        ttl = default
    return math.ceil(ttl.total_seconds())


@dataclass(frozen=True)
class AttributeRecord:
    """A single record of the store, bound to its key."""

    store: RecordStore
    key: str

    def exists(self) -> bool:
        return self.store.exists(self.key)

    def get_field(self, field: str) -> str | None:
        return self.store.get_field(self.key, field)

    def set_field(self, field: str, value: str) -> None:
        self.store.set_field(self.key, field, value)

    def update_field(self, field: str, value: str) -> None:
        self.store.update_field(self.key, field, value)

    def delete(self) -> None:
        self.store.delete(self.key)

    def set_expiration(self, ttl: timedelta) -> None:
        self.store.set_expiration(self.key, math.ceil(ttl.total_seconds()))

    def time_to_live(self) -> timedelta | None:
        """Return the remaining lifetime, or None if the record never expires."""
        seconds = self.store.time_to_live(self.key)
        if seconds is None:
            return None
        return timedelta(seconds=seconds)
