"""Schemas describing the outcome of an appointment lifecycle transition."""

from pydantic import BaseModel, Field

from medpulse.schemas.appointments import Appointment, AppointmentResponse, ConflictWarning
from medpulse.schemas.notifications import Notification, NotificationResponse


class TransitionResult(BaseModel):
    """What a workflow operation changed."""

    appointment: Appointment
    notifications: list[Notification] = Field(default_factory=list)
    conflict_warning: ConflictWarning | None = None
    purged_notifications: int = 0
    notifications_failed: bool = False


class TransitionResponse(BaseModel):
    """Schema for a lifecycle transition response."""

    appointment: AppointmentResponse
    notifications: list[NotificationResponse]
    conflict_warning: ConflictWarning | None = None
    purged_notifications: int = 0
    notifications_failed: bool = False

    @classmethod
    def from_result(cls, result: TransitionResult) -> "TransitionResponse":
        return cls(
            appointment=AppointmentResponse.model_validate(result.appointment, from_attributes=True),
            notifications=[
                NotificationResponse.model_validate(n, from_attributes=True)
                for n in result.notifications
            ],
            conflict_warning=result.conflict_warning,
            purged_notifications=result.purged_notifications,
            notifications_failed=result.notifications_failed,
        )
