"""Session recording and session reads."""

from uuid import UUID

import structlog

from medpulse.core.exceptions import (
    ForbiddenException,
    InvalidTransitionException,
    NotFoundException,
)
from medpulse.repositories.base import Repositories
from medpulse.schemas.appointments import AppointmentStatus
from medpulse.schemas.auth import Actor, UserRole
from medpulse.schemas.sessions import (
    PatientSessionView,
    SessionCreate,
    SessionFilters,
    SessionRecord,
)
from medpulse.services.appointment_service import AppointmentService
from medpulse.services.role_gate import Action, ResourceRef, RoleGate, role_gate
from medpulse.services.text_generation import GeneratedText, MessageComposer
from medpulse.services.visibility_service import VisibilityPolicy

logger = structlog.get_logger(__name__)


class SessionService:
    """Logs sessions against scheduled appointments and serves session reads."""

    def __init__(
        self,
        repositories: Repositories,
        appointments: AppointmentService,
        composer: MessageComposer,
        gate: RoleGate = role_gate,
    ):
        """Initialize service with stores and collaborators."""
        self.repositories = repositories
        self.appointments = appointments
        self.composer = composer
        self.gate = gate

    async def record_session(self, actor: Actor, data: SessionCreate) -> SessionRecord:
        """
        Log a session and complete its appointment.

        A log left behind by an interrupted earlier call is reused and its
        appointment completed, instead of writing a second one.

        Args:
            actor: Admin or the doctor assigned to the appointment
            data: Session notes

        Returns:
            Created session record

        Raises:
            NotFoundException: If the appointment does not exist
            ForbiddenException: If the actor may not log this session
            InvalidTransitionException: If the appointment is not scheduled
            ConflictException: If a concurrent call logged the session first
        """
        appointment = await self.repositories.appointments.get(data.appointment_id)
        if not appointment:
            raise NotFoundException("Appointment not found")

        self.gate.require(actor, Action.CREATE_SESSION, ResourceRef.for_appointment(appointment))

        if appointment.status != AppointmentStatus.SCHEDULED:
            raise InvalidTransitionException(appointment.status.value, "log a session for")

        existing = await self.repositories.sessions.find(
            SessionFilters(appointment_id=appointment.id)
        )
        if existing:
            # Log was written but the appointment never reached completed
            logger.warning(
                "session_completion_resumed",
                session_id=str(existing[0].id),
                appointment_id=str(appointment.id),
            )
            await self.appointments.complete_appointment(actor, appointment.id)
            return existing[0]

        # Doctors sign their own sessions; admins log on behalf of the assigned staff
        doctor_id = (
            actor.user_id if actor.role == UserRole.DOCTOR else appointment.assigned_staff_id
        )
        record = await self.repositories.sessions.create(
            SessionRecord(
                appointment_id=appointment.id,
                patient_id=appointment.patient_id,
                doctor_id=doctor_id,
                treatment_type=appointment.type,
                summary=data.summary,
                results=data.results,
                care_instructions=data.care_instructions,
                next_session_date=data.next_session_date,
            )
        )
        logger.info(
            "session_recorded",
            session_id=str(record.id),
            appointment_id=str(appointment.id),
        )

        await self.appointments.complete_appointment(actor, appointment.id)
        return record

    async def list_sessions(self, actor: Actor, filters: SessionFilters) -> list[SessionRecord]:
        """
        Staff view of session logs.

        When the clinic restricts staff logs, doctors only see their own.
        """
        if actor.role == UserRole.PATIENT:
            raise ForbiddenException("Patients can view their sessions through the portal.")

        self.gate.require(actor, Action.VIEW_SESSION)

        if actor.role == UserRole.DOCTOR:
            clinic_settings = await self.repositories.settings.get()
            if clinic_settings.restrict_staff_logs:
                filters = filters.model_copy(update={"doctor_id": actor.user_id})

        return await self.repositories.sessions.find(filters)

    async def patient_sessions(self, actor: Actor, patient_id: UUID) -> list[PatientSessionView]:
        """Patient portal view of a patient's sessions, with visibility gates applied."""
        self.gate.require(actor, Action.VIEW_SESSION, ResourceRef(patient_id=patient_id))

        clinic_settings = await self.repositories.settings.get()
        records = await self.repositories.sessions.find(SessionFilters(patient_id=patient_id))
        return VisibilityPolicy(clinic_settings.patient_visibility).render_many(records)

    async def suggest_care_instructions(
        self,
        actor: Actor,
        summary: str,
        results: str,
    ) -> GeneratedText:
        """Draft home care instructions from session notes."""
        self.gate.require(actor, Action.DRAFT_CARE_INSTRUCTIONS)
        return await self.composer.care_instructions(summary, results)
