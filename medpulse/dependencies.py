"""FastAPI dependencies."""

from functools import lru_cache
from typing import Annotated

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from medpulse.config import settings
from medpulse.core.exceptions import UnauthorizedException
from medpulse.core.security import actor_from_token
from medpulse.database import get_db
from medpulse.middleware.logging import bind_actor
from medpulse.repositories.base import Repositories
from medpulse.repositories.memory import create_memory_repositories
from medpulse.repositories.sql import create_sql_repositories
from medpulse.schemas.auth import Actor
from medpulse.services.appointment_service import AppointmentService
from medpulse.services.notification_service import NotificationService
from medpulse.services.session_service import SessionService
from medpulse.services.settings_service import SettingsService
from medpulse.services.text_generation import MessageComposer, get_text_generator

# Security
security = HTTPBearer()


async def get_current_actor(
    credentials: Annotated[HTTPAuthorizationCredentials, Depends(security)],
) -> Actor:
    """
    Resolve the acting role and user id from the bearer token.

    Args:
        credentials: Bearer token credentials

    Returns:
        Acting identity

    Raises:
        UnauthorizedException: If token is invalid, expired or lacks a role
    """
    actor = actor_from_token(credentials.credentials)

    if actor is None:
        raise UnauthorizedException("Could not validate credentials")

    bind_actor(actor)
    return actor


@lru_cache
def get_memory_repositories() -> Repositories:
    """Process-wide in-memory stores for STORAGE_BACKEND=memory."""
    return create_memory_repositories()


async def get_repositories(
    db: Annotated[AsyncSession, Depends(get_db)],
) -> Repositories:
    """Stores for the current request."""
    if settings.uses_memory_storage:
        return get_memory_repositories()
    return create_sql_repositories(db)


def get_message_composer() -> MessageComposer:
    """Composer over the configured text generator."""
    return MessageComposer(get_text_generator())


def get_notification_service(
    repositories: Annotated[Repositories, Depends(get_repositories)],
    composer: Annotated[MessageComposer, Depends(get_message_composer)],
) -> NotificationService:
    return NotificationService(repositories, composer)


def get_appointment_service(
    repositories: Annotated[Repositories, Depends(get_repositories)],
    notifications: Annotated[NotificationService, Depends(get_notification_service)],
) -> AppointmentService:
    return AppointmentService(repositories, notifications)


def get_session_service(
    repositories: Annotated[Repositories, Depends(get_repositories)],
    appointments: Annotated[AppointmentService, Depends(get_appointment_service)],
    composer: Annotated[MessageComposer, Depends(get_message_composer)],
) -> SessionService:
    return SessionService(repositories, appointments, composer)


def get_settings_service(
    repositories: Annotated[Repositories, Depends(get_repositories)],
) -> SettingsService:
    return SettingsService(repositories.settings)


# Type aliases for dependency injection
CurrentActor = Annotated[Actor, Depends(get_current_actor)]
Stores = Annotated[Repositories, Depends(get_repositories)]
AppointmentServiceDep = Annotated[AppointmentService, Depends(get_appointment_service)]
NotificationServiceDep = Annotated[NotificationService, Depends(get_notification_service)]
SessionServiceDep = Annotated[SessionService, Depends(get_session_service)]
SettingsServiceDep = Annotated[SettingsService, Depends(get_settings_service)]
