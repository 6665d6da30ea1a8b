"""User accounts and session issuing."""

import logging
from dataclasses import dataclass
from datetime import timedelta

from identity_store.domain.errors import NotFoundError
from identity_store.domain.models import (
    DEFAULT_SESSION_LIFETIME,
    SESSION_OWNER_FIELD,
    USER_NAME_FIELD,
    USER_PASSWORD_FIELD,
    session_key,
    user_key,
)
from identity_store.services.records import AttributeRecord, RecordStore, resolve_ttl
from identity_store.services.sessions import Session

_logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class UserAccount:
    """Handle for a user record keyed by login identity."""

    identity: str
    store: RecordStore
    default_session_ttl: timedelta = DEFAULT_SESSION_LIFETIME

    @property
    def record(self) -> AttributeRecord:
        return AttributeRecord(self.store, user_key(self.identity))

    def exists(self) -> bool:
        """Return whether the account record is present."""
        return self.record.exists()

    def get_password(self) -> str:
        """Return the stored password hash."""
        return self._require(USER_PASSWORD_FIELD)

    def set_password(self, password_hash: str) -> None:
        """Replace the stored password hash; the format is not validated."""
        self.record.update_field(USER_PASSWORD_FIELD, password_hash)

    def get_name(self) -> str:
        """Return the display name."""
        return self._require(USER_NAME_FIELD)

    def set_name(self, name: str) -> None:
        """Replace the display name."""
        self.record.update_field(USER_NAME_FIELD, name)

    def delete(self) -> None:
        """Remove the account.

        Sessions issued to the account are left alone and stay valid until
        they expire or are deleted.
        """
        self.record.delete()
        _logger.info("User deleted: identity=%s", self.identity)

    def create_session(self, session_id: str, ttl: timedelta | None = None) -> Session:
        """Create a session owned by this account.

        The owner link and the expiration are committed in a single
        transaction. None or a zero ttl uses the default lifetime.
        """
        ttl_seconds = resolve_ttl(ttl, self.default_session_ttl)
        self.store.create(
            session_key(session_id),
            {SESSION_OWNER_FIELD: self.identity},
            ttl_seconds=ttl_seconds,
        )
        _logger.info(
            "Session created: session_id=%s identity=%s ttl=%s",
            session_id,
            self.identity,
            ttl_seconds,
        )
        return Session(
            session_id=session_id,
            store=self.store,
            default_ttl=self.default_session_ttl,
        )

    def _require(self, field: str) -> str:
        value = self.record.get_field(field)
        if value is None:
            raise NotFoundError(self.record.key, field)
        return value
