"""Tests for session recording and session reads."""

from datetime import date, datetime
from unittest.mock import AsyncMock, patch

import pytest

from medpulse.core.exceptions import (
    ForbiddenException,
    InvalidTransitionException,
    NotFoundException,
)
from medpulse.repositories.base import Repositories
from medpulse.schemas.appointments import (
    Appointment,
    AppointmentBook,
    AppointmentStatus,
    AppointmentSuggest,
    TreatmentType,
)
from medpulse.schemas.auth import Actor
from medpulse.schemas.clinic_settings import ClinicSettings, PatientVisibility
from medpulse.schemas.patients import Patient
from medpulse.schemas.sessions import RESTRICTED_MARKER, SessionCreate, SessionFilters
from medpulse.services.appointment_service import AppointmentService
from medpulse.services.session_service import SessionService


async def book_for(
    service: AppointmentService,
    admin: Actor,
    patient: Patient,
    staff: Actor,
    when: datetime,
) -> Appointment:
    result = await service.book_appointment(
        admin,
        AppointmentBook(
            patient_id=patient.id,
            date_time=when,
            type=TreatmentType.HAIR_IMPLEMENTATION,
            staff_id=staff.user_id,
        ),
        lambda _message: True,
    )
    return result.appointment


def notes(appointment: Appointment, summary: str = "Grafted 800 follicles") -> SessionCreate:
    return SessionCreate(
        appointment_id=appointment.id,
        summary=summary,
        results="Good density",
        care_instructions="Keep the area dry",
        next_session_date=date(2026, 12, 20),
    )


@pytest.mark.asyncio
async def test_doctor_logs_session_and_completes_appointment(
    session_service: SessionService,
    appointment_service: AppointmentService,
    repositories: Repositories,
    admin: Actor,
    doctor: Actor,
    patient: Patient,
    slot: datetime,
) -> None:
    appointment = await book_for(appointment_service, admin, patient, doctor, slot)

    record = await session_service.record_session(doctor, notes(appointment))

    assert record.doctor_id == doctor.user_id
    assert record.patient_id == patient.id
    assert record.treatment_type == TreatmentType.HAIR_IMPLEMENTATION

    stored = await repositories.appointments.get(appointment.id)
    assert stored.status == AppointmentStatus.COMPLETED


@pytest.mark.asyncio
async def test_admin_logs_on_behalf_of_assigned_staff(
    session_service: SessionService,
    appointment_service: AppointmentService,
    admin: Actor,
    doctor: Actor,
    patient: Patient,
    slot: datetime,
) -> None:
    appointment = await book_for(appointment_service, admin, patient, doctor, slot)

    record = await session_service.record_session(admin, notes(appointment))

    assert record.doctor_id == doctor.user_id


@pytest.mark.asyncio
async def test_doctor_cannot_log_for_other_staff(
    session_service: SessionService,
    appointment_service: AppointmentService,
    repositories: Repositories,
    admin: Actor,
    doctor: Actor,
    other_doctor: Actor,
    patient: Patient,
    slot: datetime,
) -> None:
    appointment = await book_for(appointment_service, admin, patient, other_doctor, slot)

    with pytest.raises(ForbiddenException):
        await session_service.record_session(doctor, notes(appointment))

    assert await repositories.sessions.find(SessionFilters(appointment_id=appointment.id)) == []


@pytest.mark.asyncio
async def test_patient_cannot_log_sessions(
    session_service: SessionService,
    appointment_service: AppointmentService,
    admin: Actor,
    doctor: Actor,
    patient: Patient,
    patient_actor: Actor,
    slot: datetime,
) -> None:
    appointment = await book_for(appointment_service, admin, patient, doctor, slot)

    with pytest.raises(ForbiddenException):
        await session_service.record_session(patient_actor, notes(appointment))


@pytest.mark.asyncio
async def test_session_requires_scheduled_appointment(
    session_service: SessionService,
    appointment_service: AppointmentService,
    admin: Actor,
    patient_actor: Actor,
    slot: datetime,
) -> None:
    pending = await appointment_service.suggest_appointment(
        patient_actor,
        AppointmentSuggest(date_time=slot, type=TreatmentType.FACIAL),
    )

    with pytest.raises(InvalidTransitionException):
        await session_service.record_session(admin, notes(pending))


@pytest.mark.asyncio
async def test_completed_appointment_gets_exactly_one_session(
    session_service: SessionService,
    appointment_service: AppointmentService,
    repositories: Repositories,
    admin: Actor,
    doctor: Actor,
    patient: Patient,
    slot: datetime,
) -> None:
    appointment = await book_for(appointment_service, admin, patient, doctor, slot)
    await session_service.record_session(doctor, notes(appointment))

    with pytest.raises(InvalidTransitionException):
        await session_service.record_session(doctor, notes(appointment, "Second attempt"))

    records = await repositories.sessions.find(SessionFilters(appointment_id=appointment.id))
    assert len(records) == 1


@pytest.mark.asyncio
async def test_session_for_unknown_appointment(
    session_service: SessionService,
    admin: Actor,
    slot: datetime,
) -> None:
    ghost = Appointment(
        patient_id=admin.user_id,
        date_time=slot,
        type=TreatmentType.FACIAL,
        status=AppointmentStatus.PENDING,
    )

    with pytest.raises(NotFoundException):
        await session_service.record_session(admin, notes(ghost))


@pytest.mark.asyncio
async def test_restricted_staff_logs(
    session_service: SessionService,
    appointment_service: AppointmentService,
    repositories: Repositories,
    admin: Actor,
    doctor: Actor,
    other_doctor: Actor,
    patient: Patient,
    other_patient: Patient,
    slot: datetime,
) -> None:
    mine = await book_for(appointment_service, admin, patient, doctor, slot)
    theirs = await book_for(appointment_service, admin, other_patient, other_doctor, slot)
    await session_service.record_session(doctor, notes(mine))
    await session_service.record_session(other_doctor, notes(theirs))

    assert len(await session_service.list_sessions(doctor, SessionFilters())) == 2

    await repositories.settings.save(ClinicSettings(restrict_staff_logs=True))

    visible = await session_service.list_sessions(doctor, SessionFilters())
    assert [r.doctor_id for r in visible] == [doctor.user_id]
    assert len(await session_service.list_sessions(admin, SessionFilters())) == 2


@pytest.mark.asyncio
async def test_patients_use_portal_view(
    session_service: SessionService,
    patient_actor: Actor,
) -> None:
    with pytest.raises(ForbiddenException):
        await session_service.list_sessions(patient_actor, SessionFilters())


@pytest.mark.asyncio
async def test_patient_portal_applies_visibility(
    session_service: SessionService,
    appointment_service: AppointmentService,
    repositories: Repositories,
    admin: Actor,
    doctor: Actor,
    patient: Patient,
    patient_actor: Actor,
    slot: datetime,
) -> None:
    appointment = await book_for(appointment_service, admin, patient, doctor, slot)
    await session_service.record_session(doctor, notes(appointment))
    await repositories.settings.save(
        ClinicSettings(patient_visibility=PatientVisibility(summary=False))
    )

    views = await session_service.patient_sessions(patient_actor, patient.id)

    assert len(views) == 1
    assert views[0].summary == RESTRICTED_MARKER
    assert views[0].results == "Good density"
    assert views[0].hidden_fields == ["summary"]


@pytest.mark.asyncio
async def test_patient_cannot_read_other_patient_sessions(
    session_service: SessionService,
    patient_actor: Actor,
    other_patient: Patient,
) -> None:
    with pytest.raises(ForbiddenException):
        await session_service.patient_sessions(patient_actor, other_patient.id)


@pytest.mark.asyncio
async def test_care_instruction_draft(
    session_service: SessionService,
    generator,
    doctor: Actor,
    patient_actor: Actor,
) -> None:
    generator.reply = "- Keep hydrated\n- Avoid direct sun"

    draft = await session_service.suggest_care_instructions(doctor, "Laser pass", "Mild redness")

    assert draft.text == "- Keep hydrated\n- Avoid direct sun"
    assert not draft.is_fallback
    assert "Laser pass" in generator.prompts[-1]

    with pytest.raises(ForbiddenException):
        await session_service.suggest_care_instructions(patient_actor, "x", "y")


@pytest.mark.asyncio
async def test_care_instruction_fallback(
    session_service: SessionService,
    generator,
    admin: Actor,
) -> None:
    generator.fail = True

    draft = await session_service.suggest_care_instructions(admin, "Peel", "Even tone")

    assert draft.is_fallback
    assert draft.text == "Follow general wellness guidelines and stay hydrated."


@pytest.mark.asyncio
async def test_retry_completes_after_failed_appointment_write(
    session_service: SessionService,
    appointment_service: AppointmentService,
    repositories: Repositories,
    admin: Actor,
    doctor: Actor,
    patient: Patient,
    slot: datetime,
) -> None:
    """A log whose appointment write failed is reused on the next attempt."""
    appointment = await book_for(appointment_service, admin, patient, doctor, slot)
    failing_update = AsyncMock(side_effect=RuntimeError("store offline"))

    with patch.object(repositories.appointments, "update", failing_update):
        with pytest.raises(RuntimeError):
            await session_service.record_session(doctor, notes(appointment))

    assert (await repositories.appointments.get(appointment.id)).status == (
        AppointmentStatus.SCHEDULED
    )

    record = await session_service.record_session(doctor, notes(appointment, "Retried"))

    stored = await repositories.appointments.get(appointment.id)
    assert stored.status == AppointmentStatus.COMPLETED
    records = await repositories.sessions.find(SessionFilters(appointment_id=appointment.id))
    assert [r.id for r in records] == [record.id]
    assert record.summary == "Grafted 800 follicles"
