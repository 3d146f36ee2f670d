"""Appointment schemas for request/response validation."""

from datetime import UTC, date, datetime
from enum import Enum
from typing import Annotated
from uuid import UUID, uuid4

from pydantic import AfterValidator, BaseModel, Field, model_validator


class AppointmentStatus(str, Enum):
    """Appointment status enumeration."""

    PENDING = "pending"
    SCHEDULED = "scheduled"
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    REJECTED = "rejected"


# Statuses that occupy a staff member's calendar
ACTIVE_STATUSES = frozenset({AppointmentStatus.SCHEDULED, AppointmentStatus.COMPLETED})


class TreatmentType(str, Enum):
    """Treatment catalog offered by the clinic."""

    FACIAL = "Facial"
    CO2_LASER = "CO2 Laser"
    CANDELA_LASER = "Candela Laser"
    DIAG_LASER = "Diag Laser"
    LOSE_WEIGHT_MACHINE = "Lose Weight Machine"
    HAIR_IMPLEMENTATION = "Hair Implementation"
    BOTOX_INJECTION = "Botox Injection"
    MEZO_GEL_INJECTION = "Mezo Gel Injection"
    SKIN_TIGHTENING = "Skin Tightening"
    CHEMICAL_PEEL = "Chemical Peel"


def utcnow() -> datetime:
    """Current time for audit fields."""
    return datetime.now(UTC)


def _as_wall_clock(value: datetime) -> datetime:
    # Appointment times are clinic wall-clock times; offsets are dropped, not converted
    return value.replace(tzinfo=None)


WallClock = Annotated[datetime, AfterValidator(_as_wall_clock)]


class Appointment(BaseModel):
    """Authoritative appointment record."""

    id: UUID = Field(default_factory=uuid4)
    patient_id: UUID
    date_time: WallClock
    type: TreatmentType
    status: AppointmentStatus
    assigned_staff_id: UUID | None = None
    is_verified: bool = False
    original_suggested_time: WallClock | None = None
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)

    model_config = {"from_attributes": True}

    @model_validator(mode="after")
    def check_scheduled_invariant(self) -> "Appointment":
        """A scheduled appointment always has verified staff."""
        if self.status == AppointmentStatus.SCHEDULED:
            if self.assigned_staff_id is None or not self.is_verified:
                raise ValueError("Scheduled appointments require verified staff assignment")
        if self.status == AppointmentStatus.PENDING and self.is_verified:
            raise ValueError("Pending appointments cannot be verified")
        return self


class AppointmentSuggest(BaseModel):
    """Schema for a patient suggesting an appointment time."""

    date_time: WallClock
    type: TreatmentType
    patient_id: UUID | None = Field(
        None,
        description="Required when an admin suggests on behalf of a patient",
    )


class AppointmentBook(BaseModel):
    """Schema for an admin booking a fully specified appointment."""

    patient_id: UUID
    date_time: WallClock
    type: TreatmentType
    staff_id: UUID | None = None
    acknowledge_conflict: bool = False


class AppointmentVerify(BaseModel):
    """Schema for verifying a suggested appointment."""

    staff_id: UUID | None = None
    date_time: WallClock | None = Field(
        None,
        description="Alternate time; omit to keep the patient's suggestion",
    )
    acknowledge_conflict: bool = False


class AppointmentDecision(BaseModel):
    """Schema for confirming a destructive transition (reject or cancel)."""

    confirm: bool = False


class AppointmentResponse(BaseModel):
    """Schema for appointment response."""

    id: UUID
    patient_id: UUID
    date_time: WallClock
    type: TreatmentType
    status: AppointmentStatus
    assigned_staff_id: UUID | None
    is_verified: bool
    original_suggested_time: datetime | None = None
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class AppointmentListResponse(BaseModel):
    """Schema for paginated appointment list response."""

    total: int
    page: int
    page_size: int
    items: list[AppointmentResponse]


class AppointmentFilters(BaseModel):
    """Query over the appointment store."""

    statuses: set[AppointmentStatus] | None = None
    assigned_staff_id: UUID | None = None
    patient_id: UUID | None = None
    exclude_statuses: set[AppointmentStatus] | None = None
    from_date: WallClock | None = None
    to_date: WallClock | None = None
    page: int = Field(default=1, ge=1)
    page_size: int = Field(default=20, ge=1, le=100)

    def matches(self, appointment: Appointment) -> bool:
        """Check a single record against the query."""
        if self.statuses is not None and appointment.status not in self.statuses:
            return False
        if self.exclude_statuses and appointment.status in self.exclude_statuses:
            return False
        if (
            self.assigned_staff_id is not None
            and appointment.assigned_staff_id != self.assigned_staff_id
        ):
            return False
        if self.patient_id is not None and appointment.patient_id != self.patient_id:
            return False
        if self.from_date is not None and appointment.date_time < self.from_date:
            return False
        if self.to_date is not None and appointment.date_time > self.to_date:
            return False
        return True


class ConflictWarning(BaseModel):
    """Advisory warning about a nearby appointment for the same staff member."""

    staff_id: UUID
    delta_minutes: int
    conflicting_appointment_id: UUID
    conflicting_time: datetime
    message: str


class ConflictCheckResponse(BaseModel):
    """Schema for a conflict preview."""

    conflict: bool
    warning: ConflictWarning | None = None


class AppointmentSummary(BaseModel):
    """Lifecycle counters for the staff dashboard."""

    day: date
    pending_verification: int
    todays_workload: int
    sessions_logged: int
