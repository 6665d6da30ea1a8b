"""Dependency container wiring for the identity store."""

from collections.abc import Callable
from dataclasses import dataclass

from supabase import create_client

from identity_store.adapters.supabase_registration_repository import (
    SupabaseRegistrationRepository,
)
from identity_store.config import Settings
from identity_store.services.gateway import StoreGateway
from identity_store.services.registrations import RegistrationService


@dataclass
class AppContainer:
    """Holds process-wide dependencies."""

    settings: Settings
    gateway: StoreGateway
    registration_service: RegistrationService | None
    close_resources: Callable[[], None]


def build_container(settings: Settings | None = None) -> AppContainer:
    """Create the default dependency container."""
    resolved_settings = settings or Settings()
    gateway = StoreGateway.open(
        resolved_settings.redis_address,
        db=resolved_settings.redis_db,
        password=resolved_settings.redis_password,
        default_session_ttl=resolved_settings.session_ttl,
    )
    registration_service = None
    if resolved_settings.supabase_url and resolved_settings.supabase_service_key:
        supabase_client = create_client(
            resolved_settings.supabase_url, resolved_settings.supabase_service_key
        )
        registration_service = RegistrationService(
            SupabaseRegistrationRepository(
                supabase_client, namespace=resolved_settings.registration_namespace
            )
        )

    def close_resources() -> None:
        gateway.close()

    return AppContainer(
        settings=resolved_settings,
        gateway=gateway,
        registration_service=registration_service,
        close_resources=close_resources,
    )
