"""Clinic-wide settings schemas."""

from pydantic import BaseModel


class PatientVisibility(BaseModel):
    """Gates for session fields shown in the patient portal."""

    summary: bool = True
    results: bool = True
    care_instructions: bool = True


class ClinicSettings(BaseModel):
    """Settings scoped to the whole clinic."""

    patient_visibility: PatientVisibility = PatientVisibility()
    restrict_staff_logs: bool = False

    model_config = {"from_attributes": True}


class PatientVisibilityUpdate(BaseModel):
    """Partial update of visibility gates."""

    summary: bool | None = None
    results: bool | None = None
    care_instructions: bool | None = None


class ClinicSettingsUpdate(BaseModel):
    """Partial update of clinic settings."""

    patient_visibility: PatientVisibilityUpdate | None = None
    restrict_staff_logs: bool | None = None
