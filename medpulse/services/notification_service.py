"""Notification cascade for appointment lifecycle events."""

import asyncio
from uuid import UUID

import structlog

from medpulse.repositories.base import Repositories
from medpulse.schemas.appointments import Appointment
from medpulse.schemas.auth import Actor, UserRole
from medpulse.schemas.notifications import (
    SCHEDULED_MARKER,
    CascadeResult,
    Notification,
    NotificationChannel,
    NotificationFilters,
    NotificationStatus,
    NotificationType,
    sent_now,
)
from medpulse.schemas.patients import Patient
from medpulse.services.role_gate import Action, ResourceRef, RoleGate, role_gate
from medpulse.services.text_generation import MessageComposer, format_appointment_time

logger = structlog.get_logger(__name__)

IMMEDIATE_SCHEDULING_TYPES = frozenset(
    {NotificationType.VERIFICATION_CONFIRM, NotificationType.VERIFICATION_REQUEST}
)


class NotificationService:
    """Produces and stores patient-facing messages."""

    def __init__(
        self,
        repositories: Repositories,
        composer: MessageComposer,
        gate: RoleGate = role_gate,
    ):
        """Initialize service with stores and the message composer."""
        self.repositories = repositories
        self.composer = composer
        self.gate = gate

    async def on_scheduled(
        self,
        appointment: Appointment,
        patient: Patient,
        immediate_type: NotificationType = NotificationType.VERIFICATION_CONFIRM,
    ) -> CascadeResult:
        """
        Generate the cascade for an appointment entering ``scheduled``.

        One immediate message (confirmation or re-verification request) is
        recorded as sent, followed by the 24 hour and 2 hour reminders
        recorded as pending. Text generation failures fall back to fixed text,
        so all three records are always produced.

        Args:
            appointment: Appointment that was just scheduled
            patient: Recipient
            immediate_type: VERIFICATION_CONFIRM or VERIFICATION_REQUEST

        Returns:
            The three stored notifications

        Raises:
            ValueError: If immediate_type is not a scheduling message type
        """
        if immediate_type not in IMMEDIATE_SCHEDULING_TYPES:
            raise ValueError(f"{immediate_type.value} cannot start a scheduling cascade")

        if immediate_type == NotificationType.VERIFICATION_REQUEST:
            immediate = self.composer.verification_request(appointment, patient)
        else:
            immediate = self.composer.confirmation(appointment, patient)

        immediate_text, reminder_24h_text, reminder_2h_text = await asyncio.gather(
            immediate,
            self.composer.reminder(appointment, patient, "24 hours"),
            self.composer.reminder(appointment, patient, "2 hours"),
        )

        items = [
            Notification(
                patient_id=patient.id,
                appointment_id=appointment.id,
                type=immediate_type,
                channel=NotificationChannel.WHATSAPP,
                content=immediate_text.text,
                sent_at=sent_now(),
                status=NotificationStatus.SENT,
            ),
            Notification(
                patient_id=patient.id,
                appointment_id=appointment.id,
                type=NotificationType.REMINDER_24H,
                channel=NotificationChannel.WHATSAPP,
                content=reminder_24h_text.text,
                sent_at=SCHEDULED_MARKER,
                status=NotificationStatus.PENDING,
            ),
            Notification(
                patient_id=patient.id,
                appointment_id=appointment.id,
                type=NotificationType.REMINDER_2H,
                channel=NotificationChannel.WHATSAPP,
                content=reminder_2h_text.text,
                sent_at=SCHEDULED_MARKER,
                status=NotificationStatus.PENDING,
            ),
        ]
        await self.repositories.notifications.create_many(items)

        used_fallback = any(
            text.is_fallback for text in (immediate_text, reminder_24h_text, reminder_2h_text)
        )
        logger.info(
            "notification_cascade_created",
            appointment_id=str(appointment.id),
            immediate_type=immediate_type.value,
            used_fallback=used_fallback,
        )
        return CascadeResult(
            appointment_id=appointment.id,
            notifications=items,
            used_fallback=used_fallback,
        )

    async def send_rejection(self, appointment: Appointment) -> Notification:
        """Tell the patient their suggested time could not be accommodated."""
        notification = Notification(
            patient_id=appointment.patient_id,
            appointment_id=appointment.id,
            type=NotificationType.REJECTION,
            content=(
                f"Unfortunately, your suggested appointment time for {appointment.type.value} "
                "could not be accommodated. Please suggest another time through the portal."
            ),
            sent_at=sent_now(),
            status=NotificationStatus.SENT,
        )
        await self.repositories.notifications.create_many([notification])

        logger.info("rejection_notice_sent", appointment_id=str(appointment.id))
        return notification

    async def send_cancellation(self, appointment: Appointment) -> tuple[int, Notification]:
        """
        Drop deferred reminders and tell the patient the visit is cancelled.

        Messages already sent stay in the history.

        Returns:
            Number of purged pending notifications and the cancellation notice
        """
        purged = await self.repositories.notifications.delete_pending(appointment.id)

        notification = Notification(
            patient_id=appointment.patient_id,
            appointment_id=appointment.id,
            type=NotificationType.REJECTION,
            content=(
                f"Your scheduled appointment for {appointment.type.value} on "
                f"{format_appointment_time(appointment.date_time)} has been cancelled by "
                "the clinic. We apologize for the inconvenience."
            ),
            sent_at=sent_now(),
            status=NotificationStatus.SENT,
        )
        await self.repositories.notifications.create_many([notification])

        logger.info(
            "cancellation_notice_sent",
            appointment_id=str(appointment.id),
            purged_reminders=purged,
        )
        return purged, notification

    async def send_welcome(self, actor: Actor, patient: Patient) -> Notification:
        """Welcome a newly registered patient."""
        self.gate.require(actor, Action.SEND_WELCOME, ResourceRef(patient_id=patient.id))

        text = await self.composer.welcome(patient)
        notification = Notification(
            patient_id=patient.id,
            type=NotificationType.WELCOME,
            content=text.text,
            sent_at=sent_now(),
            status=NotificationStatus.SENT,
        )
        await self.repositories.notifications.create_many([notification])

        logger.info("welcome_sent", patient_id=str(patient.id), used_fallback=text.is_fallback)
        return notification

    async def list_notifications(
        self,
        actor: Actor,
        filters: NotificationFilters,
    ) -> list[Notification]:
        """
        Message history, newest first.

        Patients only ever see their own messages.
        """
        if actor.role == UserRole.PATIENT:
            patient_id: UUID | None = filters.patient_id or actor.user_id
            self.gate.require(actor, Action.VIEW_NOTIFICATIONS, ResourceRef(patient_id=patient_id))
            filters = filters.model_copy(update={"patient_id": patient_id})
        else:
            self.gate.require(actor, Action.VIEW_NOTIFICATIONS)

        items = await self.repositories.notifications.find(filters)
        return list(reversed(items))
