"""Account registration and e-mail confirmation."""

import logging
from dataclasses import dataclass
from typing import Protocol
from uuid import uuid4

from identity_store.domain.errors import AlreadyExistsError, NotFoundError
from identity_store.domain.models import RegistrationRecord

_logger = logging.getLogger(__name__)


class RegistrationRepository(Protocol):
    """Persistence interface for registration details."""

    def get_registration(self, identity: str) -> RegistrationRecord | None:
        """Return the registration for an identity, if present."""

    def create_registration(
        self, identity: str, email: str, confirm_id: str
    ) -> RegistrationRecord:
        """Create an unconfirmed registration and return it."""

    def find_by_confirm_id(self, confirm_id: str) -> RegistrationRecord | None:
        """Return the registration issued a confirmation id, if present."""

    def mark_confirmed(self, identity: str) -> None:
        """Mark a registration as confirmed; its confirmation id is kept."""


@dataclass
class RegistrationService:
    """Application service for registration lifecycle actions."""

    repository: RegistrationRepository

    def register(self, identity: str, email: str) -> RegistrationRecord:
        """Register an identity and issue its confirmation id."""
        if self.repository.get_registration(identity) is not None:
            raise AlreadyExistsError(identity)
        record = self.repository.create_registration(
            identity=identity, email=email, confirm_id=uuid4().hex
        )
        _logger.info("Registration created: identity=%s", identity)
        return record

    def confirm(self, confirm_id: str) -> RegistrationRecord:
        """Confirm the registration that owns the confirmation id.

        Confirming an already confirmed registration returns it unchanged.
        """
        record = self.repository.find_by_confirm_id(confirm_id)
        if record is None:
            raise NotFoundError(confirm_id)
        if not record.confirmed:
            self.repository.mark_confirmed(record.identity)
            _logger.info("Registration confirmed: identity=%s", record.identity)
        return RegistrationRecord(
            identity=record.identity,
            email=record.email,
            registered_at=record.registered_at,
            confirmed=True,
            confirm_id=record.confirm_id,
        )

    def is_confirmed(self, identity: str) -> bool:
        """Return whether the identity has confirmed its registration."""
        record = self.repository.get_registration(identity)
        return record is not None and record.confirmed
