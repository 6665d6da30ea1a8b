"""Entry point for the identity store."""

import logging
from dataclasses import dataclass, field
from datetime import timedelta

from identity_store.adapters.redis_record_store import RedisRecordStore
from identity_store.domain.errors import NotFoundError
from identity_store.domain.models import (
    DEFAULT_SESSION_LIFETIME,
    USER_NAME_FIELD,
    USER_PASSWORD_FIELD,
    user_key,
)
from identity_store.services.records import RecordStore
from identity_store.services.sessions import Session
from identity_store.services.users import UserAccount

_logger = logging.getLogger(__name__)


@dataclass
class StoreGateway:
    """Owns the backend connection and hands out account and session handles.

    The connection stays open for the lifetime of the gateway and is only
    released by close(). Nothing here retries; callers own that policy.
    """

    store: RecordStore
    default_session_ttl: timedelta = DEFAULT_SESSION_LIFETIME
    _closed: bool = field(default=False, init=False, repr=False)

    @classmethod
    def open(
        cls,
        address: str,
        *,
        db: int = 0,
        password: str | None = None,
        default_session_ttl: timedelta = DEFAULT_SESSION_LIFETIME,
    ) -> "StoreGateway":
        """Connect to the backend at host:port or a redis:// URL.

        Raises BackendUnavailableError right away if the backend cannot be
        reached.
        """
        store = RedisRecordStore.connect(address, db=db, password=password)
        _logger.info("Identity store opened: address=%s db=%s", address, db)
        return cls(store=store, default_session_ttl=default_session_ttl)

    def create_user(
        self, identity: str, display_name: str, password_hash: str
    ) -> UserAccount:
        """Create an account; raises AlreadyExistsError if the identity is taken."""
        self.store.create(
            user_key(identity),
            {USER_NAME_FIELD: display_name, USER_PASSWORD_FIELD: password_hash},
        )
        _logger.info("User created: identity=%s", identity)
        return self.get_user(identity)

    def get_user(self, identity: str) -> UserAccount:
        """Return a handle for an identity without checking that it exists."""
        return UserAccount(
            identity=identity,
            store=self.store,
            default_session_ttl=self.default_session_ttl,
        )

    def find_user(self, identity: str) -> UserAccount:
        """Return a handle for an existing account or raise NotFoundError."""
        user = self.get_user(identity)
        if not user.exists():
            raise NotFoundError(user.record.key)
        return user

    def find_session_by_id(self, session_id: str) -> Session:
        """Return a live session or raise NotFoundError."""
        session = Session(
            session_id=session_id,
            store=self.store,
            default_ttl=self.default_session_ttl,
        )
        if not session.exists():
            raise NotFoundError(session.record.key)
        return session

    def close(self) -> None:
        """Release the backend connection. Safe to call more than once."""
        if self._closed:
            return
        self.store.close()
        self._closed = True
        _logger.info("Identity store closed")

    def __enter__(self) -> "StoreGateway":
        return self

    def __exit__(self, *_exc_info: object) -> None:
        self.close()
