"""Supabase-backed registration repository."""

from dataclasses import dataclass
from datetime import UTC, datetime

from supabase import Client

from identity_store.domain.models import RegistrationRecord
from identity_store.services.registrations import RegistrationRepository

_COLUMNS = "identity, email, registered_at, confirmed, confirm_id"


@dataclass
class SupabaseRegistrationRepository(RegistrationRepository):
    """Supabase implementation for registration details."""

    client: Client
    namespace: str = "chat"

    def get_registration(self, identity: str) -> RegistrationRecord | None:
        """Return the registration for an identity, if present."""
        response = (
            self._users().select(_COLUMNS).eq("identity", identity).limit(1).execute()
        )
        if not response.data:
            return None
        return _to_record(response.data[0])

    def create_registration(
        self, identity: str, email: str, confirm_id: str
    ) -> RegistrationRecord:
        """Insert a registration row and return it."""
        response = (
            self._users()
            .insert(
                {
                    "identity": identity,
                    "email": email,
                    "registered_at": datetime.now(tz=UTC).isoformat(),
                    "confirmed": False,
                    "confirm_id": confirm_id,
                }
            )
            .execute()
        )
        if not response.data:
            raise RuntimeError("Failed to create registration")
        return _to_record(response.data[0])

    def find_by_confirm_id(self, confirm_id: str) -> RegistrationRecord | None:
        """Return the registration issued the confirmation id, if present."""
        response = (
            self._users()
            .select(_COLUMNS)
            .eq("confirm_id", confirm_id)
            .limit(1)
            .execute()
        )
        if not response.data:
            return None
        return _to_record(response.data[0])

    def mark_confirmed(self, identity: str) -> None:
        """Flag the registration as confirmed."""
        self._users().update({"confirmed": True}).eq(
            "identity", identity
        ).execute()

    def _users(self):  # type: ignore[no-untyped-def]
        return self.client.schema(self.namespace).table("users")


def _to_record(row: dict[str, object]) -> RegistrationRecord:
    return RegistrationRecord(
        identity=str(row["identity"]),
        email=str(row["email"]),
        registered_at=datetime.fromisoformat(str(row["registered_at"])),
        confirmed=bool(row.get("confirmed")),
        confirm_id=row.get("confirm_id"),  # type: ignore[arg-type]
    )
