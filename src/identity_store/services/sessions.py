"""Authenticated sessions with caller-renewed lifetimes."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import timedelta
from typing import TYPE_CHECKING

from identity_store.domain.errors import NotFoundError
from identity_store.domain.models import (
    DEFAULT_SESSION_LIFETIME,
    SESSION_OWNER_FIELD,
    session_key,
)
from identity_store.services.records import AttributeRecord, RecordStore, resolve_ttl

if TYPE_CHECKING:
    from identity_store.services.users import UserAccount

_logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Session:
    """Handle for a session record.

    The record holds the owner's identity and arbitrary caller fields. It
    expires on its own unless the caller keeps prolonging it, and an expired
    session behaves exactly like one that never existed.
    """

    session_id: str
    store: RecordStore
    default_ttl: timedelta = DEFAULT_SESSION_LIFETIME

    @property
    def record(self) -> AttributeRecord:
        return AttributeRecord(self.store, session_key(self.session_id))

    def exists(self) -> bool:
        """Return whether the session is still alive."""
        return self.record.exists()

    def prolong(self, ttl: timedelta | None = None) -> None:
        """Renew the session lifetime.

        None or a zero ttl renews for the default lifetime. Raises
        NotFoundError when the session already expired or was deleted.
        """
        self.store.set_expiration(self.record.key, resolve_ttl(ttl, self.default_ttl))

    def time_to_live(self) -> timedelta | None:
        """Return the remaining lifetime of the session."""
        return self.record.time_to_live()

    def delete(self) -> None:
        """Remove the session; raises NotFoundError if it is already gone."""
        self.record.delete()
        _logger.info("Session deleted: session_id=%s", self.session_id)

    def put_string(self, field: str, value: str) -> None:
        """Store a caller attribute on a live session."""
        if field == SESSION_OWNER_FIELD:
            raise ValueError(f"Field {field!r} is reserved for the session owner")
        self.record.update_field(field, value)

    def get_string(self, field: str) -> str:
        """Return a caller attribute.

        Raises NotFoundError if the field was never set or the session is gone.
        An empty string is a legitimate stored value.
        """
        value = self.record.get_field(field)
        if value is None:
            raise NotFoundError(self.record.key, field)
        return value

    def get_user(self) -> UserAccount:
        """Return a handle for the session owner.

        The owner account is not checked for existence; call exists() on the
        handle when that matters.
        """
        from identity_store.services.users import UserAccount

        identity = self.record.get_field(SESSION_OWNER_FIELD)
        if not identity:
            raise NotFoundError(self.record.key, SESSION_OWNER_FIELD)
        return UserAccount(
            identity=identity, store=self.store, default_session_ttl=self.default_ttl
        )
