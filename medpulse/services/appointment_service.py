"""Appointment verification workflow.

Drives an appointment from a patient suggestion (``pending``) or a direct
admin booking to ``scheduled``, and from there to one of the terminal states
``completed``, ``cancelled`` or ``rejected``. Terminal appointments are never
re-opened.
"""

from collections.abc import Callable
from datetime import date, datetime
from uuid import UUID

import structlog

from medpulse.core.exceptions import (
    ConfirmationRequiredException,
    ConflictException,
    ConflictWarningException,
    InvalidTransitionException,
    NotFoundException,
    ValidationException,
)
from medpulse.repositories.base import Repositories
from medpulse.schemas.appointments import (
    ACTIVE_STATUSES,
    Appointment,
    AppointmentBook,
    AppointmentFilters,
    AppointmentStatus,
    AppointmentSuggest,
    AppointmentSummary,
    AppointmentVerify,
    ConflictWarning,
    utcnow,
)
from medpulse.schemas.auth import Actor, UserRole
from medpulse.schemas.notifications import Notification, NotificationType
from medpulse.schemas.patients import Patient
from medpulse.schemas.sessions import SessionFilters
from medpulse.schemas.workflow import TransitionResult
from medpulse.services.conflict_detector import ConflictDetector
from medpulse.services.notification_service import NotificationService
from medpulse.services.role_gate import Action, ResourceRef, RoleGate, role_gate

logger = structlog.get_logger(__name__)

# Receives the prompt shown to the acting user, returns True to proceed
ConfirmCallback = Callable[[str], bool]

REJECT_PROMPT = "Reject this pending suggestion? It will remain on record."
CANCEL_PROMPT = (
    "Cancel this appointment? A message will be sent to the patient "
    "and reminders will be removed."
)
MISSING_STAFF_MESSAGE = "Please assign a doctor/master."


class AppointmentService:
    """Service for the appointment lifecycle."""

    def __init__(
        self,
        repositories: Repositories,
        notifications: NotificationService,
        gate: RoleGate = role_gate,
        detector: ConflictDetector | None = None,
    ):
        """Initialize service with stores and collaborators."""
        self.repositories = repositories
        self.notifications = notifications
        self.gate = gate
        self.detector = detector or ConflictDetector(repositories.appointments)

    async def _get_appointment(self, appointment_id: UUID) -> Appointment:
        appointment = await self.repositories.appointments.get(appointment_id)
        if not appointment:
            raise NotFoundException("Appointment not found")
        return appointment

    async def _get_patient(self, patient_id: UUID) -> Patient:
        patient = await self.repositories.patients.get(patient_id)
        if not patient:
            raise NotFoundException("Patient not found")
        return patient

    @staticmethod
    def _require_status(
        appointment: Appointment,
        expected: AppointmentStatus,
        action: str,
    ) -> None:
        if appointment.status != expected:
            raise InvalidTransitionException(appointment.status.value, action)

    async def _accept_conflict(
        self,
        staff_id: UUID,
        candidate_time: datetime,
        confirm: ConfirmCallback,
        exclude_appointment_id: UUID | None = None,
    ) -> ConflictWarning | None:
        """Run the conflict check; a warning blocks unless the user overrides it."""
        warning = await self.detector.check_conflict(
            staff_id,
            candidate_time,
            exclude_appointment_id=exclude_appointment_id,
        )
        if warning and not confirm(warning.message):
            logger.info(
                "conflict_warning_declined",
                staff_id=str(staff_id),
                delta_minutes=warning.delta_minutes,
            )
            raise ConflictWarningException(warning)
        return warning

    async def _run_cascade(
        self,
        appointment: Appointment,
        patient: Patient,
        immediate_type: NotificationType,
    ) -> tuple[list[Notification], bool]:
        # The appointment is already committed; message failures never undo it
        try:
            cascade = await self.notifications.on_scheduled(appointment, patient, immediate_type)
        except Exception as e:
            logger.warning(
                "failed_to_create_notification_cascade",
                appointment_id=str(appointment.id),
                error=str(e),
            )
            return [], True
        return cascade.notifications, False

    async def suggest_appointment(self, actor: Actor, data: AppointmentSuggest) -> Appointment:
        """
        Record a patient-suggested visit as ``pending``.

        Args:
            actor: Patient suggesting for themselves, or an admin on their behalf
            data: Suggested time and treatment

        Returns:
            Created pending appointment
        """
        patient_id = data.patient_id or (
            actor.user_id if actor.role == UserRole.PATIENT else None
        )
        if patient_id is None:
            raise ValidationException("A patient is required to suggest an appointment")

        self.gate.require(actor, Action.SUGGEST_APPOINTMENT, ResourceRef(patient_id=patient_id))
        await self._get_patient(patient_id)

        appointment = await self.repositories.appointments.create(
            Appointment(
                patient_id=patient_id,
                date_time=data.date_time,
                type=data.type,
                status=AppointmentStatus.PENDING,
                is_verified=False,
            )
        )

        logger.info(
            "appointment_suggested",
            appointment_id=str(appointment.id),
            patient_id=str(patient_id),
        )
        return appointment

    async def book_appointment(
        self,
        actor: Actor,
        data: AppointmentBook,
        confirm: ConfirmCallback,
    ) -> TransitionResult:
        """
        Create a fully specified, verified appointment in one step.

        Args:
            actor: Acting admin
            data: Patient, time, treatment and staff
            confirm: Asked to accept a scheduling conflict, if one exists

        Returns:
            Scheduled appointment with its notification cascade

        Raises:
            ForbiddenException: If the actor is not an admin
            ValidationException: If no staff member is assigned
            ConflictWarningException: If a conflict was not accepted
        """
        self.gate.require(actor, Action.BOOK_APPOINTMENT)

        if not data.staff_id:
            raise ValidationException(MISSING_STAFF_MESSAGE)

        patient = await self._get_patient(data.patient_id)
        warning = await self._accept_conflict(data.staff_id, data.date_time, confirm)

        appointment = await self.repositories.appointments.create(
            Appointment(
                patient_id=patient.id,
                date_time=data.date_time,
                type=data.type,
                status=AppointmentStatus.SCHEDULED,
                assigned_staff_id=data.staff_id,
                is_verified=True,
            )
        )
        logger.info(
            "appointment_booked",
            appointment_id=str(appointment.id),
            staff_id=str(data.staff_id),
            conflict_overridden=warning is not None,
        )

        sent, failed = await self._run_cascade(
            appointment, patient, NotificationType.VERIFICATION_CONFIRM
        )
        return TransitionResult(
            appointment=appointment,
            notifications=sent,
            conflict_warning=warning,
            notifications_failed=failed,
        )

    async def verify_appointment(
        self,
        actor: Actor,
        appointment_id: UUID,
        data: AppointmentVerify,
        confirm: ConfirmCallback,
    ) -> TransitionResult:
        """
        Verify a pending suggestion, optionally at a different time.

        When the admin picks a time other than the suggestion, the suggestion
        is kept in ``original_suggested_time`` and the patient receives a
        re-verification request instead of a confirmation. The patient's reply
        is not tracked.

        Args:
            actor: Acting admin
            appointment_id: Pending appointment
            data: Staff assignment and optional alternate time
            confirm: Asked to accept a scheduling conflict, if one exists

        Returns:
            Scheduled appointment with its notification cascade

        Raises:
            ForbiddenException: If the actor is not an admin
            NotFoundException: If the appointment or patient does not exist
            InvalidTransitionException: If the appointment is not pending
            ValidationException: If no staff member is assigned
            ConflictWarningException: If a conflict was not accepted
        """
        self.gate.require(actor, Action.VERIFY_APPOINTMENT)

        appointment = await self._get_appointment(appointment_id)
        self._require_status(appointment, AppointmentStatus.PENDING, "verify")

        if not data.staff_id:
            raise ValidationException(MISSING_STAFF_MESSAGE)

        patient = await self._get_patient(appointment.patient_id)

        final_time = data.date_time or appointment.date_time
        modified = final_time != appointment.date_time

        warning = await self._accept_conflict(
            data.staff_id,
            final_time,
            confirm,
            exclude_appointment_id=appointment.id,
        )

        updated = appointment.model_copy(
            update={
                "date_time": final_time,
                "assigned_staff_id": data.staff_id,
                "status": AppointmentStatus.SCHEDULED,
                "is_verified": True,
                "original_suggested_time": (
                    appointment.date_time if modified else appointment.original_suggested_time
                ),
                "updated_at": utcnow(),
            }
        )
        saved = await self.repositories.appointments.update(updated)
        logger.info(
            "appointment_verified",
            appointment_id=str(saved.id),
            staff_id=str(data.staff_id),
            time_modified=modified,
            conflict_overridden=warning is not None,
        )

        immediate_type = (
            NotificationType.VERIFICATION_REQUEST
            if modified
            else NotificationType.VERIFICATION_CONFIRM
        )
        sent, failed = await self._run_cascade(saved, patient, immediate_type)
        return TransitionResult(
            appointment=saved,
            notifications=sent,
            conflict_warning=warning,
            notifications_failed=failed,
        )

    async def reject_appointment(
        self,
        actor: Actor,
        appointment_id: UUID,
        confirm: ConfirmCallback,
    ) -> TransitionResult:
        """
        Reject a pending suggestion. The record is kept for reference.

        Raises:
            ForbiddenException: If the actor is not an admin
            InvalidTransitionException: If the appointment is not pending
            ConfirmationRequiredException: If the user did not confirm
        """
        self.gate.require(actor, Action.REJECT_APPOINTMENT)

        appointment = await self._get_appointment(appointment_id)
        self._require_status(appointment, AppointmentStatus.PENDING, "reject")

        if not confirm(REJECT_PROMPT):
            raise ConfirmationRequiredException(REJECT_PROMPT)

        saved = await self.repositories.appointments.update(
            appointment.model_copy(
                update={
                    "status": AppointmentStatus.REJECTED,
                    "is_verified": False,
                    "updated_at": utcnow(),
                }
            )
        )
        logger.info("appointment_rejected", appointment_id=str(saved.id))

        try:
            notice = await self.notifications.send_rejection(saved)
        except Exception as e:
            logger.warning(
                "failed_to_send_rejection_notice",
                appointment_id=str(saved.id),
                error=str(e),
            )
            return TransitionResult(appointment=saved, notifications_failed=True)

        return TransitionResult(appointment=saved, notifications=[notice])

    async def cancel_appointment(
        self,
        actor: Actor,
        appointment_id: UUID,
        confirm: ConfirmCallback,
    ) -> TransitionResult:
        """
        Cancel a scheduled appointment.

        Deferred reminders are purged; messages already sent remain.

        Raises:
            ForbiddenException: If the actor is not an admin
            InvalidTransitionException: If the appointment is not scheduled
            ConfirmationRequiredException: If the user did not confirm
        """
        self.gate.require(actor, Action.CANCEL_APPOINTMENT)

        appointment = await self._get_appointment(appointment_id)
        self._require_status(appointment, AppointmentStatus.SCHEDULED, "cancel")

        if not confirm(CANCEL_PROMPT):
            raise ConfirmationRequiredException(CANCEL_PROMPT)

        saved = await self.repositories.appointments.update(
            appointment.model_copy(
                update={"status": AppointmentStatus.CANCELLED, "updated_at": utcnow()}
            )
        )
        logger.info("appointment_cancelled", appointment_id=str(saved.id))

        try:
            purged, notice = await self.notifications.send_cancellation(saved)
        except Exception as e:
            logger.warning(
                "failed_to_send_cancellation_notice",
                appointment_id=str(saved.id),
                error=str(e),
            )
            return TransitionResult(appointment=saved, notifications_failed=True)

        return TransitionResult(
            appointment=saved,
            notifications=[notice],
            purged_notifications=purged,
        )

    async def complete_appointment(self, actor: Actor, appointment_id: UUID) -> Appointment:
        """
        Mark a scheduled appointment completed once its session is recorded.

        Only reached through session recording, never from the appointment API.

        Raises:
            ForbiddenException: If the actor may not complete this appointment
            InvalidTransitionException: If the appointment is not scheduled
            ConflictException: If the appointment does not have exactly one session
        """
        appointment = await self._get_appointment(appointment_id)
        self.gate.require(
            actor,
            Action.COMPLETE_APPOINTMENT,
            ResourceRef.for_appointment(appointment),
        )
        self._require_status(appointment, AppointmentStatus.SCHEDULED, "complete")

        records = await self.repositories.sessions.find(
            SessionFilters(appointment_id=appointment.id)
        )
        if len(records) != 1:
            raise ConflictException(
                "A completed appointment needs exactly one session record",
                details={"session_records": len(records)},
            )

        saved = await self.repositories.appointments.update(
            appointment.model_copy(
                update={"status": AppointmentStatus.COMPLETED, "updated_at": utcnow()}
            )
        )
        logger.info("appointment_completed", appointment_id=str(saved.id))
        return saved

    async def get_appointment(self, actor: Actor, appointment_id: UUID) -> Appointment:
        """
        Get appointment by ID.

        Raises:
            NotFoundException: If appointment not found
            ForbiddenException: If the actor has no access
        """
        appointment = await self._get_appointment(appointment_id)
        self.gate.require(actor, Action.VIEW_APPOINTMENT, ResourceRef.for_appointment(appointment))
        return appointment

    async def list_appointments(
        self,
        actor: Actor,
        filters: AppointmentFilters,
    ) -> tuple[int, list[Appointment]]:
        """
        List appointments visible to the actor.

        Admins see everything, doctors their own non-pending appointments,
        patients their own appointments.

        Returns:
            Total match count and the requested page
        """
        if actor.role == UserRole.DOCTOR:
            filters = filters.model_copy(
                update={
                    "assigned_staff_id": actor.user_id,
                    "exclude_statuses": (filters.exclude_statuses or set())
                    | {AppointmentStatus.PENDING},
                }
            )
        elif actor.role == UserRole.PATIENT:
            filters = filters.model_copy(update={"patient_id": actor.user_id})

        return await self.repositories.appointments.find_page(filters)

    async def summarize(self, actor: Actor, day: date | None = None) -> AppointmentSummary:
        """
        Count appointments by lifecycle stage for the staff dashboard.

        Doctors get counts over their own calendar. Suggestions have no staff
        until verified, so pending ones only show up for admins.

        Args:
            actor: Admin or doctor
            day: Day whose workload is counted, today by default
        """
        self.gate.require(actor, Action.VIEW_SUMMARY)
        day = day or datetime.now().date()

        filters = AppointmentFilters()
        if actor.role == UserRole.DOCTOR:
            filters = AppointmentFilters(assigned_staff_id=actor.user_id)
        appointments = await self.repositories.appointments.find(filters)

        return AppointmentSummary(
            day=day,
            pending_verification=sum(
                1 for a in appointments if a.status == AppointmentStatus.PENDING
            ),
            todays_workload=sum(
                1
                for a in appointments
                if a.status in ACTIVE_STATUSES and a.date_time.date() == day
            ),
            sessions_logged=sum(
                1 for a in appointments if a.status == AppointmentStatus.COMPLETED
            ),
        )

    async def check_conflict(
        self,
        actor: Actor,
        staff_id: UUID,
        candidate_time: datetime,
        exclude_appointment_id: UUID | None = None,
    ) -> ConflictWarning | None:
        """Preview the conflict warning for a staff member and time."""
        self.gate.require(actor, Action.CHECK_CONFLICT)
        return await self.detector.check_conflict(
            staff_id,
            candidate_time,
            exclude_appointment_id=exclude_appointment_id,
        )
