"""In-process repositories for development and tests."""

from uuid import UUID

from medpulse.core.exceptions import ConflictException, NotFoundException
from medpulse.repositories.base import (
    AppointmentRepository,
    NotificationRepository,
    PatientRepository,
    Repositories,
    SessionRecordRepository,
    SettingsRepository,
)
from medpulse.schemas.appointments import Appointment, AppointmentFilters
from medpulse.schemas.clinic_settings import ClinicSettings
from medpulse.schemas.notifications import Notification, NotificationFilters, NotificationStatus
from medpulse.schemas.patients import Patient
from medpulse.schemas.sessions import SessionFilters, SessionRecord


class InMemoryAppointmentRepository(AppointmentRepository):
    """Appointments kept in a dict, iterated in insertion order."""

    def __init__(self) -> None:
        self._items: dict[UUID, Appointment] = {}

    async def create(self, appointment: Appointment) -> Appointment:
        self._items[appointment.id] = appointment.model_copy(deep=True)
        return appointment.model_copy(deep=True)

    async def get(self, appointment_id: UUID) -> Appointment | None:
        item = self._items.get(appointment_id)
        return item.model_copy(deep=True) if item else None

    async def update(self, appointment: Appointment) -> Appointment:
        if appointment.id not in self._items:
            raise NotFoundException("Appointment not found")
        self._items[appointment.id] = appointment.model_copy(deep=True)
        return appointment.model_copy(deep=True)

    async def find(self, filters: AppointmentFilters) -> list[Appointment]:
        return [a.model_copy(deep=True) for a in self._items.values() if filters.matches(a)]

    async def find_page(self, filters: AppointmentFilters) -> tuple[int, list[Appointment]]:
        matched = sorted(
            await self.find(filters),
            key=lambda a: a.date_time,
            reverse=True,
        )
        offset = (filters.page - 1) * filters.page_size
        return len(matched), matched[offset : offset + filters.page_size]


class InMemoryNotificationRepository(NotificationRepository):
    """Notifications kept in a list."""

    def __init__(self) -> None:
        self._items: list[Notification] = []

    async def create_many(self, items: list[Notification]) -> list[Notification]:
        self._items.extend(item.model_copy(deep=True) for item in items)
        return [item.model_copy(deep=True) for item in items]

    async def find(self, filters: NotificationFilters) -> list[Notification]:
        return [n.model_copy(deep=True) for n in self._items if filters.matches(n)]

    async def delete_pending(self, appointment_id: UUID) -> int:
        kept = [
            n
            for n in self._items
            if n.appointment_id != appointment_id or n.status != NotificationStatus.PENDING
        ]
        removed = len(self._items) - len(kept)
        self._items = kept
        return removed


class InMemorySessionRecordRepository(SessionRecordRepository):
    """Session records kept in a dict."""

    def __init__(self) -> None:
        self._items: dict[UUID, SessionRecord] = {}

    async def create(self, record: SessionRecord) -> SessionRecord:
        if any(r.appointment_id == record.appointment_id for r in self._items.values()):
            raise ConflictException(
                "A session was already logged for this appointment",
                details={"appointment_id": str(record.appointment_id)},
            )
        self._items[record.id] = record.model_copy(deep=True)
        return record.model_copy(deep=True)

    async def get(self, record_id: UUID) -> SessionRecord | None:
        item = self._items.get(record_id)
        return item.model_copy(deep=True) if item else None

    async def find(self, filters: SessionFilters) -> list[SessionRecord]:
        matched = [r.model_copy(deep=True) for r in self._items.values() if filters.matches(r)]
        return sorted(matched, key=lambda r: r.timestamp, reverse=True)


class InMemoryPatientRepository(PatientRepository):
    """Patients kept in a dict."""

    def __init__(self, patients: list[Patient] | None = None) -> None:
        self._items: dict[UUID, Patient] = {p.id: p for p in patients or []}

    async def get(self, patient_id: UUID) -> Patient | None:
        return self._items.get(patient_id)

    async def add(self, patient: Patient) -> Patient:
        self._items[patient.id] = patient
        return patient


class InMemorySettingsRepository(SettingsRepository):
    """Clinic settings held as a single object."""

    def __init__(self, clinic_settings: ClinicSettings | None = None) -> None:
        self._settings = clinic_settings or ClinicSettings()

    async def get(self) -> ClinicSettings:
        return self._settings.model_copy(deep=True)

    async def save(self, clinic_settings: ClinicSettings) -> ClinicSettings:
        self._settings = clinic_settings.model_copy(deep=True)
        return clinic_settings


def create_memory_repositories(patients: list[Patient] | None = None) -> Repositories:
    """Build a fresh, empty set of in-memory stores."""
    return Repositories(
        appointments=InMemoryAppointmentRepository(),
        notifications=InMemoryNotificationRepository(),
        sessions=InMemorySessionRecordRepository(),
        patients=InMemoryPatientRepository(patients),
        settings=InMemorySettingsRepository(),
    )
