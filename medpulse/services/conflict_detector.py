"""Advisory detection of near-collisions on a staff member's calendar."""

from datetime import datetime, timedelta
from uuid import UUID

from medpulse.config import settings
from medpulse.repositories.base import AppointmentRepository
from medpulse.schemas.appointments import (
    ACTIVE_STATUSES,
    Appointment,
    AppointmentFilters,
    ConflictWarning,
)


def conflict_message(delta_minutes: int) -> str:
    """Text shown to the acting user before they override a conflict."""
    return (
        f"Warning: {delta_minutes} minutes from another appointment "
        "with this staff. Proceed anyway?"
    )


def find_conflict(
    existing: list[Appointment],
    staff_id: UUID,
    candidate_time: datetime,
    exclude_appointment_id: UUID | None = None,
    window: timedelta = timedelta(minutes=60),
) -> ConflictWarning | None:
    """
    Scan appointments for one closer than ``window`` to the candidate time.

    Only scheduled or completed appointments of the given staff member count.
    The first collision in iteration order is reported.

    Args:
        existing: Appointments to scan
        staff_id: Staff member being booked
        candidate_time: Proposed appointment time
        exclude_appointment_id: Appointment being rescheduled, if any
        window: Strict collision threshold

    Returns:
        Warning for the first collision, or None
    """
    for appointment in existing:
        if appointment.id == exclude_appointment_id:
            continue
        if appointment.assigned_staff_id != staff_id or appointment.status not in ACTIVE_STATUSES:
            continue

        delta = abs(appointment.date_time - candidate_time)
        if delta < window:
            delta_minutes = int(delta.total_seconds() // 60)
            return ConflictWarning(
                staff_id=staff_id,
                delta_minutes=delta_minutes,
                conflicting_appointment_id=appointment.id,
                conflicting_time=appointment.date_time,
                message=conflict_message(delta_minutes),
            )

    return None


class ConflictDetector:
    """Conflict checks against the appointment store."""

    def __init__(self, appointments: AppointmentRepository, window_minutes: int | None = None):
        self.appointments = appointments
        if window_minutes is None:
            window_minutes = settings.conflict_window_minutes
        self.window = timedelta(minutes=window_minutes)

    async def check_conflict(
        self,
        staff_id: UUID,
        candidate_time: datetime,
        exclude_appointment_id: UUID | None = None,
    ) -> ConflictWarning | None:
        """Warn if the staff member already has an appointment near the candidate time."""
        candidates = await self.appointments.find(
            AppointmentFilters(assigned_staff_id=staff_id, statuses=set(ACTIVE_STATUSES))
        )
        return find_conflict(
            candidates,
            staff_id,
            candidate_time.replace(tzinfo=None),
            exclude_appointment_id=exclude_appointment_id,
            window=self.window,
        )
