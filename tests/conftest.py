import os
from collections.abc import AsyncGenerator
from datetime import datetime, timedelta
from uuid import uuid4

import pytest
import pytest_asyncio
from dotenv import load_dotenv
from httpx import ASGITransport, AsyncClient

# Load environment variables from .env file
load_dotenv()

# Tests never touch a real database through the app; SQL tests build their own engine
os.environ.setdefault("STORAGE_BACKEND", "memory")

from medpulse.core.security import create_actor_token
from medpulse.dependencies import get_message_composer, get_repositories
from medpulse.main import app
from medpulse.repositories.base import Repositories
from medpulse.repositories.memory import create_memory_repositories
from medpulse.schemas.auth import Actor, UserRole
from medpulse.schemas.patients import Patient
from medpulse.services.appointment_service import AppointmentService
from medpulse.services.notification_service import NotificationService
from medpulse.services.session_service import SessionService
from medpulse.services.text_generation import (
    MessageComposer,
    TextGenerationError,
    TextGenerator,
)


class FakeTextGenerator(TextGenerator):
    """Records prompts and answers with canned text, or fails on demand."""

    def __init__(self, reply: str = "Generated message", fail: bool = False):
        self.reply = reply
        self.fail = fail
        self.prompts: list[str] = []

    async def generate(self, prompt: str) -> str:
        self.prompts.append(prompt)
        if self.fail:
            raise TextGenerationError("proxy unavailable")
        return self.reply


@pytest.fixture
def patient() -> Patient:
    return Patient(id=uuid4(), name="Sara Ahmed", phone="+201000000001")


@pytest.fixture
def other_patient() -> Patient:
    return Patient(id=uuid4(), name="Omar Hassan", phone="+201000000002")


@pytest.fixture
def admin() -> Actor:
    return Actor(role=UserRole.ADMIN, user_id=uuid4())


@pytest.fixture
def doctor() -> Actor:
    return Actor(role=UserRole.DOCTOR, user_id=uuid4())


@pytest.fixture
def other_doctor() -> Actor:
    return Actor(role=UserRole.DOCTOR, user_id=uuid4())


@pytest.fixture
def patient_actor(patient: Patient) -> Actor:
    return Actor(role=UserRole.PATIENT, user_id=patient.id)


@pytest.fixture
def slot() -> datetime:
    """A wall-clock appointment time."""
    return datetime(2026, 11, 20, 10, 0)


@pytest.fixture
def generator() -> FakeTextGenerator:
    return FakeTextGenerator()


@pytest.fixture
def repositories(patient: Patient, other_patient: Patient) -> Repositories:
    return create_memory_repositories([patient, other_patient])


@pytest.fixture
def composer(generator: FakeTextGenerator) -> MessageComposer:
    return MessageComposer(generator, timeout_seconds=1.0, clinic_name="MedPulse Connect")


@pytest.fixture
def notification_service(
    repositories: Repositories,
    composer: MessageComposer,
) -> NotificationService:
    return NotificationService(repositories, composer)


@pytest.fixture
def appointment_service(
    repositories: Repositories,
    notification_service: NotificationService,
) -> AppointmentService:
    return AppointmentService(repositories, notification_service)


@pytest.fixture
def session_service(
    repositories: Repositories,
    appointment_service: AppointmentService,
    composer: MessageComposer,
) -> SessionService:
    return SessionService(repositories, appointment_service, composer)


@pytest_asyncio.fixture
async def client(
    repositories: Repositories,
    composer: MessageComposer,
) -> AsyncGenerator[AsyncClient, None]:
    """Create a test HTTP client over in-memory stores."""
    app.dependency_overrides[get_repositories] = lambda: repositories
    app.dependency_overrides[get_message_composer] = lambda: composer

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        yield client

    app.dependency_overrides.clear()


def auth_headers_for(actor: Actor) -> dict:
    """Create authentication headers for an actor."""
    token = create_actor_token(actor.role, actor.user_id, expires_delta=timedelta(minutes=30))
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def admin_headers(admin: Actor) -> dict:
    return auth_headers_for(admin)


@pytest.fixture
def doctor_headers(doctor: Actor) -> dict:
    return auth_headers_for(doctor)


@pytest.fixture
def patient_headers(patient_actor: Actor) -> dict:
    return auth_headers_for(patient_actor)
