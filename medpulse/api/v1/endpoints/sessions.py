"""Session record endpoints."""

from uuid import UUID

from fastapi import APIRouter, Query, status

from medpulse.dependencies import CurrentActor, SessionServiceDep
from medpulse.schemas.sessions import (
    CareInstructionsRequest,
    CareInstructionsResponse,
    PatientSessionView,
    SessionCreate,
    SessionFilters,
    SessionRecordResponse,
)

router = APIRouter(prefix="/sessions", tags=["Sessions"])


@router.post(
    "/",
    response_model=SessionRecordResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Log a treatment session",
)
async def record_session(
    data: SessionCreate,
    actor: CurrentActor,
    service: SessionServiceDep,
) -> SessionRecordResponse:
    """
    Log a session against a scheduled appointment and complete it.

    Args:
        data: Session notes
        actor: Admin or the assigned doctor
        service: Session service

    Returns:
        Created session record
    """
    record = await service.record_session(actor, data)
    return SessionRecordResponse.model_validate(record, from_attributes=True)


@router.get(
    "/",
    response_model=list[SessionRecordResponse],
    status_code=status.HTTP_200_OK,
    summary="List session logs",
)
async def list_sessions(
    actor: CurrentActor,
    service: SessionServiceDep,
    patient_id: UUID | None = Query(None),
    doctor_id: UUID | None = Query(None),
    appointment_id: UUID | None = Query(None),
) -> list[SessionRecordResponse]:
    """Staff view of session logs, newest first."""
    filters = SessionFilters(
        patient_id=patient_id,
        doctor_id=doctor_id,
        appointment_id=appointment_id,
    )
    records = await service.list_sessions(actor, filters)
    return [SessionRecordResponse.model_validate(r, from_attributes=True) for r in records]


@router.get(
    "/patients/{patient_id}",
    response_model=list[PatientSessionView],
    status_code=status.HTTP_200_OK,
    summary="Patient portal session history",
)
async def patient_sessions(
    patient_id: UUID,
    actor: CurrentActor,
    service: SessionServiceDep,
) -> list[PatientSessionView]:
    """Session history as the patient sees it, with clinic visibility gates applied."""
    return await service.patient_sessions(actor, patient_id)


@router.post(
    "/care-instructions",
    response_model=CareInstructionsResponse,
    status_code=status.HTTP_200_OK,
    summary="Draft care instructions",
)
async def suggest_care_instructions(
    data: CareInstructionsRequest,
    actor: CurrentActor,
    service: SessionServiceDep,
) -> CareInstructionsResponse:
    """Draft home care instructions from session notes for the doctor to edit."""
    draft = await service.suggest_care_instructions(actor, data.summary, data.results)
    return CareInstructionsResponse(
        care_instructions=draft.text,
        generated=not draft.is_fallback,
    )
