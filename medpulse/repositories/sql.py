"""SQLAlchemy Core repositories backed by an async session."""

from datetime import timedelta
from enum import Enum
from typing import Any
from uuid import UUID

from pydantic import BaseModel
from sqlalchemy import and_, delete, func, insert, select, true, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from medpulse.core.exceptions import ConflictException, NotFoundException
from medpulse.models.appointments import appointments
from medpulse.models.clinic_settings import SETTINGS_ROW_ID, clinic_settings
from medpulse.models.notifications import notifications
from medpulse.models.patients import patients
from medpulse.models.sessions import session_records
from medpulse.repositories.base import (
    AppointmentRepository,
    NotificationRepository,
    PatientRepository,
    Repositories,
    SessionRecordRepository,
    SettingsRepository,
)
from medpulse.schemas.appointments import Appointment, AppointmentFilters, utcnow
from medpulse.schemas.clinic_settings import ClinicSettings, PatientVisibility
from medpulse.schemas.notifications import Notification, NotificationFilters, NotificationStatus
from medpulse.schemas.patients import Patient
from medpulse.schemas.sessions import SessionFilters, SessionRecord


def _column_values(model: BaseModel) -> dict[str, Any]:
    """Dump a record with enums flattened to their stored values."""
    return {
        key: value.value if isinstance(value, Enum) else value
        for key, value in model.model_dump().items()
    }


class SqlAppointmentRepository(AppointmentRepository):
    """Appointments stored in the ``appointments`` table."""

    def __init__(self, db: AsyncSession):
        """Initialize repository with database session."""
        self.db = db

    async def create(self, appointment: Appointment) -> Appointment:
        stmt = insert(appointments).values(**_column_values(appointment)).returning(appointments)
        result = await self.db.execute(stmt)
        await self.db.commit()

        row = result.fetchone()
        return Appointment.model_validate(dict(row._mapping))

    async def get(self, appointment_id: UUID) -> Appointment | None:
        result = await self.db.execute(
            select(appointments).where(appointments.c.id == appointment_id)
        )
        row = result.fetchone()
        return Appointment.model_validate(dict(row._mapping)) if row else None

    async def update(self, appointment: Appointment) -> Appointment:
        values = _column_values(appointment)
        values.pop("id")

        stmt = (
            update(appointments)
            .where(appointments.c.id == appointment.id)
            .values(**values)
            .returning(appointments)
        )
        result = await self.db.execute(stmt)
        await self.db.commit()

        row = result.fetchone()
        if not row:
            raise NotFoundException("Appointment not found")
        return Appointment.model_validate(dict(row._mapping))

    def _conditions(self, filters: AppointmentFilters) -> list[Any]:
        conditions: list[Any] = []

        if filters.statuses is not None:
            conditions.append(appointments.c.status.in_([s.value for s in filters.statuses]))

        if filters.exclude_statuses:
            conditions.append(
                appointments.c.status.not_in([s.value for s in filters.exclude_statuses])
            )

        if filters.assigned_staff_id:
            conditions.append(appointments.c.assigned_staff_id == filters.assigned_staff_id)

        if filters.patient_id:
            conditions.append(appointments.c.patient_id == filters.patient_id)

        if filters.from_date:
            conditions.append(appointments.c.date_time >= filters.from_date)

        if filters.to_date:
            conditions.append(appointments.c.date_time <= filters.to_date)

        return conditions

    async def find(self, filters: AppointmentFilters) -> list[Appointment]:
        stmt = (
            select(appointments)
            .where(and_(true(), *self._conditions(filters)))
            .order_by(appointments.c.created_at)
        )
        result = await self.db.execute(stmt)
        return [Appointment.model_validate(dict(row._mapping)) for row in result.fetchall()]

    async def find_page(self, filters: AppointmentFilters) -> tuple[int, list[Appointment]]:
        conditions = and_(true(), *self._conditions(filters))

        # Count total
        count_stmt = select(func.count()).select_from(appointments).where(conditions)
        total = (await self.db.execute(count_stmt)).scalar() or 0

        # Get paginated results
        offset = (filters.page - 1) * filters.page_size
        stmt = (
            select(appointments)
            .where(conditions)
            .order_by(appointments.c.date_time.desc())
            .limit(filters.page_size)
            .offset(offset)
        )
        result = await self.db.execute(stmt)
        items = [Appointment.model_validate(dict(row._mapping)) for row in result.fetchall()]
        return total, items


class SqlNotificationRepository(NotificationRepository):
    """Notifications stored in the ``notifications`` table."""

    def __init__(self, db: AsyncSession):
        """Initialize repository with database session."""
        self.db = db

    async def create_many(self, items: list[Notification]) -> list[Notification]:
        if not items:
            return []

        # Offsets keep insertion order stable within one batch
        created_at = utcnow()
        rows = [
            {**_column_values(item), "created_at": created_at + timedelta(microseconds=index)}
            for index, item in enumerate(items)
        ]
        await self.db.execute(insert(notifications), rows)
        await self.db.commit()
        return items

    async def find(self, filters: NotificationFilters) -> list[Notification]:
        conditions: list[Any] = []

        if filters.patient_id:
            conditions.append(notifications.c.patient_id == filters.patient_id)

        if filters.appointment_id:
            conditions.append(notifications.c.appointment_id == filters.appointment_id)

        if filters.status:
            conditions.append(notifications.c.status == filters.status.value)

        if filters.type:
            conditions.append(notifications.c.type == filters.type.value)

        stmt = (
            select(notifications)
            .where(and_(true(), *conditions))
            .order_by(notifications.c.created_at)
        )
        result = await self.db.execute(stmt)
        return [Notification.model_validate(dict(row._mapping)) for row in result.fetchall()]

    async def delete_pending(self, appointment_id: UUID) -> int:
        stmt = delete(notifications).where(
            and_(
                notifications.c.appointment_id == appointment_id,
                notifications.c.status == NotificationStatus.PENDING.value,
            )
        )
        result = await self.db.execute(stmt)
        await self.db.commit()
        return result.rowcount


class SqlSessionRecordRepository(SessionRecordRepository):
    """Session records stored in the ``session_records`` table."""

    def __init__(self, db: AsyncSession):
        """Initialize repository with database session."""
        self.db = db

    async def create(self, record: SessionRecord) -> SessionRecord:
        stmt = insert(session_records).values(**_column_values(record)).returning(session_records)
        try:
            result = await self.db.execute(stmt)
            await self.db.commit()
        except IntegrityError as e:
            await self.db.rollback()
            # One log per appointment
            raise ConflictException(
                "A session was already logged for this appointment",
                details={"appointment_id": str(record.appointment_id)},
            ) from e

        row = result.fetchone()
        return SessionRecord.model_validate(dict(row._mapping))

    async def get(self, record_id: UUID) -> SessionRecord | None:
        result = await self.db.execute(
            select(session_records).where(session_records.c.id == record_id)
        )
        row = result.fetchone()
        return SessionRecord.model_validate(dict(row._mapping)) if row else None

    async def find(self, filters: SessionFilters) -> list[SessionRecord]:
        conditions: list[Any] = []

        if filters.patient_id:
            conditions.append(session_records.c.patient_id == filters.patient_id)

        if filters.doctor_id:
            conditions.append(session_records.c.doctor_id == filters.doctor_id)

        if filters.appointment_id:
            conditions.append(session_records.c.appointment_id == filters.appointment_id)

        stmt = (
            select(session_records)
            .where(and_(true(), *conditions))
            .order_by(session_records.c.timestamp.desc())
        )
        result = await self.db.execute(stmt)
        return [SessionRecord.model_validate(dict(row._mapping)) for row in result.fetchall()]


class SqlPatientRepository(PatientRepository):
    """Patients read from the registry's ``patients`` table."""

    def __init__(self, db: AsyncSession):
        """Initialize repository with database session."""
        self.db = db

    async def get(self, patient_id: UUID) -> Patient | None:
        result = await self.db.execute(select(patients).where(patients.c.id == patient_id))
        row = result.fetchone()
        return Patient.model_validate(dict(row._mapping)) if row else None

    async def add(self, patient: Patient) -> Patient:
        await self.db.execute(insert(patients).values(**patient.model_dump()))
        await self.db.commit()
        return patient


class SqlSettingsRepository(SettingsRepository):
    """Clinic settings stored as a single row."""

    def __init__(self, db: AsyncSession):
        """Initialize repository with database session."""
        self.db = db

    async def get(self) -> ClinicSettings:
        result = await self.db.execute(
            select(clinic_settings).where(clinic_settings.c.id == SETTINGS_ROW_ID)
        )
        row = result.fetchone()
        if not row:
            return ClinicSettings()

        return ClinicSettings(
            patient_visibility=PatientVisibility(
                summary=row.show_summary,
                results=row.show_results,
                care_instructions=row.show_care_instructions,
            ),
            restrict_staff_logs=row.restrict_staff_logs,
        )

    async def save(self, clinic_settings_data: ClinicSettings) -> ClinicSettings:
        visibility = clinic_settings_data.patient_visibility
        values = {
            "show_summary": visibility.summary,
            "show_results": visibility.results,
            "show_care_instructions": visibility.care_instructions,
            "restrict_staff_logs": clinic_settings_data.restrict_staff_logs,
        }

        result = await self.db.execute(
            update(clinic_settings).where(clinic_settings.c.id == SETTINGS_ROW_ID).values(**values)
        )
        if result.rowcount == 0:
            await self.db.execute(insert(clinic_settings).values(id=SETTINGS_ROW_ID, **values))
        await self.db.commit()
        return clinic_settings_data


def create_sql_repositories(db: AsyncSession) -> Repositories:
    """Build the store bundle over one database session."""
    return Repositories(
        appointments=SqlAppointmentRepository(db),
        notifications=SqlNotificationRepository(db),
        sessions=SqlSessionRecordRepository(db),
        patients=SqlPatientRepository(db),
        settings=SqlSettingsRepository(db),
    )
