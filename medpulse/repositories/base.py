"""Repository interfaces for the records the appointment core touches.

Services receive a :class:`Repositories` bundle and never hold records of
their own. Implementations are expected to be return-consistent (a write is
visible to the next read) but nothing is transactional across entity types.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from uuid import UUID

from medpulse.schemas.appointments import Appointment, AppointmentFilters
from medpulse.schemas.clinic_settings import ClinicSettings
from medpulse.schemas.notifications import Notification, NotificationFilters
from medpulse.schemas.patients import Patient
from medpulse.schemas.sessions import SessionFilters, SessionRecord


class AppointmentRepository(ABC):
    """Authoritative appointment store."""

    @abstractmethod
    async def create(self, appointment: Appointment) -> Appointment:
        """Persist a new appointment."""

    @abstractmethod
    async def get(self, appointment_id: UUID) -> Appointment | None:
        """Fetch an appointment by id."""

    @abstractmethod
    async def update(self, appointment: Appointment) -> Appointment:
        """Replace a stored appointment by identity.

        Raises:
            NotFoundException: If no appointment has this id
        """

    @abstractmethod
    async def find(self, filters: AppointmentFilters) -> list[Appointment]:
        """All matching appointments, in store iteration order, unpaginated."""

    @abstractmethod
    async def find_page(self, filters: AppointmentFilters) -> tuple[int, list[Appointment]]:
        """Matching appointments, newest first, paginated per the filters."""


class NotificationRepository(ABC):
    """Outbound message store."""

    @abstractmethod
    async def create_many(self, items: list[Notification]) -> list[Notification]:
        """Persist several notifications."""

    @abstractmethod
    async def find(self, filters: NotificationFilters) -> list[Notification]:
        """Matching notifications in insertion order."""

    @abstractmethod
    async def delete_pending(self, appointment_id: UUID) -> int:
        """Drop deferred notifications of an appointment, returning how many."""


class SessionRecordRepository(ABC):
    """Session record store."""

    @abstractmethod
    async def create(self, record: SessionRecord) -> SessionRecord:
        """Persist a session record."""

    @abstractmethod
    async def get(self, record_id: UUID) -> SessionRecord | None:
        """Fetch a session record by id."""

    @abstractmethod
    async def find(self, filters: SessionFilters) -> list[SessionRecord]:
        """Matching session records, newest first."""


class PatientRepository(ABC):
    """Read access to the patient registry."""

    @abstractmethod
    async def get(self, patient_id: UUID) -> Patient | None:
        """Fetch a patient by id."""

    @abstractmethod
    async def add(self, patient: Patient) -> Patient:
        """Register a patient (used by the registry and for seeding)."""


class SettingsRepository(ABC):
    """Clinic-wide settings store."""

    @abstractmethod
    async def get(self) -> ClinicSettings:
        """Current settings; defaults when nothing is stored."""

    @abstractmethod
    async def save(self, clinic_settings: ClinicSettings) -> ClinicSettings:
        """Replace stored settings."""


@dataclass
class Repositories:
    """Bundle of stores handed to the services."""

    appointments: AppointmentRepository
    notifications: NotificationRepository
    sessions: SessionRecordRepository
    patients: PatientRepository
    settings: SettingsRepository
