"""Session record schemas."""

from datetime import date, datetime
from uuid import UUID, uuid4

from pydantic import BaseModel, Field

from medpulse.schemas.appointments import TreatmentType, utcnow

# Replaces a session field the clinic does not expose to patients
RESTRICTED_MARKER = "[restricted]"


class SessionRecord(BaseModel):
    """Clinical record of a completed appointment."""

    id: UUID = Field(default_factory=uuid4)
    appointment_id: UUID
    patient_id: UUID
    doctor_id: UUID
    treatment_type: TreatmentType
    timestamp: datetime = Field(default_factory=utcnow)
    summary: str = ""
    results: str = ""
    care_instructions: str = ""
    next_session_date: date | None = None

    model_config = {"from_attributes": True}


class SessionCreate(BaseModel):
    """Schema for logging a session against a scheduled appointment."""

    appointment_id: UUID
    summary: str = Field(..., min_length=1, max_length=5000)
    results: str = Field(..., min_length=1, max_length=5000)
    care_instructions: str = Field(default="", max_length=5000)
    next_session_date: date | None = None


class SessionRecordResponse(BaseModel):
    """Staff-facing view of a session record."""

    id: UUID
    appointment_id: UUID
    patient_id: UUID
    doctor_id: UUID
    treatment_type: TreatmentType
    timestamp: datetime
    summary: str
    results: str
    care_instructions: str
    next_session_date: date | None

    model_config = {"from_attributes": True}


class PatientSessionView(BaseModel):
    """Patient-facing view; restricted fields carry the restricted marker."""

    id: UUID
    appointment_id: UUID
    treatment_type: TreatmentType
    timestamp: datetime
    summary: str
    results: str
    care_instructions: str
    next_session_date: date | None
    hidden_fields: list[str] = Field(default_factory=list)

    @property
    def has_hidden_fields(self) -> bool:
        """Check if any field was withheld."""
        return bool(self.hidden_fields)


class SessionFilters(BaseModel):
    """Query over stored session records."""

    patient_id: UUID | None = None
    doctor_id: UUID | None = None
    appointment_id: UUID | None = None

    def matches(self, record: SessionRecord) -> bool:
        """Check a single record against the query."""
        if self.patient_id is not None and record.patient_id != self.patient_id:
            return False
        if self.doctor_id is not None and record.doctor_id != self.doctor_id:
            return False
        if self.appointment_id is not None and record.appointment_id != self.appointment_id:
            return False
        return True


class CareInstructionsRequest(BaseModel):
    """Schema for drafting care instructions from session notes."""

    summary: str = Field(..., min_length=1, max_length=5000)
    results: str = Field(..., min_length=1, max_length=5000)


class CareInstructionsResponse(BaseModel):
    """Drafted care instructions and whether they came from the fallback."""

    care_instructions: str
    generated: bool
