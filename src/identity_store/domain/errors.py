"""Error kinds raised by the identity store."""


class IdentityStoreError(Exception):
    """Base class for identity store failures."""


class NotFoundError(IdentityStoreError, LookupError):
    """A record or field is absent (never created, deleted or expired)."""

    def __init__(self, key: str, field: str | None = None) -> None:
        self.key = key
        self.field = field
        target = f"{key}.{field}" if field else key
        super().__init__(f"Not found: {target}")


class AlreadyExistsError(IdentityStoreError):
    """A create targeted a key that is already present."""

    def __init__(self, key: str) -> None:
        self.key = key
        super().__init__(f"Already exists: {key}")


class ExpirationRejectedError(IdentityStoreError):
    """The TTL could not be applied to a record."""

    def __init__(self, key: str, ttl_seconds: int) -> None:
        self.key = key
        self.ttl_seconds = ttl_seconds
        super().__init__(f"Expiration of {ttl_seconds}s rejected for {key}")


class TransactionFailedError(IdentityStoreError):
    """An atomic write was aborted; no partial state survives."""

    def __init__(self, key: str, reason: str) -> None:
        self.key = key
        self.reason = reason
        super().__init__(f"Transaction on {key} failed: {reason}")


class BackendUnavailableError(IdentityStoreError, ConnectionError):
    """The key-value backend could not be reached."""
