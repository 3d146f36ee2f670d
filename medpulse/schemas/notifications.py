"""Patient-facing message schemas."""

from enum import Enum
from uuid import UUID, uuid4

from pydantic import BaseModel, Field

from medpulse.schemas.appointments import utcnow

# Stored in sent_at for deferred messages that have not gone out yet
SCHEDULED_MARKER = "Scheduled (Auto)"


class NotificationType(str, Enum):
    """Kinds of patient-facing messages."""

    WELCOME = "welcome"
    REMINDER_24H = "reminder_24h"
    REMINDER_2H = "reminder_2h"
    VERIFICATION_REQUEST = "verification_request"
    VERIFICATION_CONFIRM = "verification_confirm"
    REJECTION = "rejection"


class NotificationChannel(str, Enum):
    """Messaging channel; WhatsApp is primary, SMS the fallback."""

    WHATSAPP = "whatsapp"
    SMS = "sms"


class NotificationStatus(str, Enum):
    """Delivery status."""

    SENT = "sent"
    PENDING = "pending"


class Notification(BaseModel):
    """Outbound message record."""

    id: UUID = Field(default_factory=uuid4)
    patient_id: UUID
    appointment_id: UUID | None = None
    type: NotificationType
    channel: NotificationChannel = NotificationChannel.WHATSAPP
    content: str
    sent_at: str
    status: NotificationStatus

    model_config = {"from_attributes": True}

    @property
    def is_deferred(self) -> bool:
        """Check if the message is recorded but not yet sent."""
        return self.status == NotificationStatus.PENDING


class NotificationFilters(BaseModel):
    """Query over stored notifications."""

    patient_id: UUID | None = None
    appointment_id: UUID | None = None
    status: NotificationStatus | None = None
    type: NotificationType | None = None

    def matches(self, notification: Notification) -> bool:
        """Check a single record against the query."""
        if self.patient_id is not None and notification.patient_id != self.patient_id:
            return False
        if self.appointment_id is not None and notification.appointment_id != self.appointment_id:
            return False
        if self.status is not None and notification.status != self.status:
            return False
        if self.type is not None and notification.type != self.type:
            return False
        return True


class NotificationResponse(BaseModel):
    """Schema for notification response."""

    id: UUID
    patient_id: UUID
    appointment_id: UUID | None
    type: NotificationType
    channel: NotificationChannel
    content: str
    sent_at: str
    status: NotificationStatus

    model_config = {"from_attributes": True}


class NotificationListResponse(BaseModel):
    """Schema for notification history."""

    total: int
    items: list[NotificationResponse]


class WelcomeRequest(BaseModel):
    """Schema for requesting a welcome message for a registered patient."""

    patient_id: UUID


def sent_now() -> str:
    """Timestamp for an immediately sent message."""
    return utcnow().isoformat()


class CascadeResult(BaseModel):
    """Messages produced for one scheduling event."""

    appointment_id: UUID
    notifications: list[Notification]
    used_fallback: bool = False

    @property
    def immediate(self) -> Notification:
        """The message sent right away."""
        return self.notifications[0]
