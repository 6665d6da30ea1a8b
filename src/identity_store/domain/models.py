"""Domain models and key layout for the identity store."""

from dataclasses import dataclass
from datetime import datetime, timedelta

# One lunar month.
DEFAULT_SESSION_LIFETIME = timedelta(days=31)

USER_KEY_PREFIX = "user:"
SESSION_KEY_PREFIX = "sess:"

USER_NAME_FIELD = "name"
USER_PASSWORD_FIELD = "pass"
SESSION_OWNER_FIELD = "user"


def user_key(identity: str) -> str:
    """Return the backend key of a user record."""
    return f"{USER_KEY_PREFIX}{identity}"


def session_key(session_id: str) -> str:
    """Return the backend key of a session record."""
    return f"{SESSION_KEY_PREFIX}{session_id}"


@dataclass(frozen=True)
class RegistrationRecord:
    """Registration details kept outside the session-time record."""

    identity: str
    email: str
    registered_at: datetime
    confirmed: bool
    confirm_id: str | None
