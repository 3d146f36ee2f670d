"""Appointment endpoints."""

from datetime import date, datetime
from uuid import UUID

from fastapi import APIRouter, Query, status

from medpulse.dependencies import AppointmentServiceDep, CurrentActor
from medpulse.schemas.appointments import (
    AppointmentBook,
    AppointmentDecision,
    AppointmentFilters,
    AppointmentListResponse,
    AppointmentResponse,
    AppointmentStatus,
    AppointmentSuggest,
    AppointmentSummary,
    AppointmentVerify,
    ConflictCheckResponse,
)
from medpulse.schemas.workflow import TransitionResponse

router = APIRouter()


def _acknowledged(flag: bool):
    """Confirmation callback answered up front by the request body."""
    return lambda _message: flag


@router.post(
    "/suggest",
    response_model=AppointmentResponse,
    status_code=status.HTTP_201_CREATED,
    tags=["Appointments"],
    summary="Suggest an appointment time",
)
async def suggest_appointment(
    data: AppointmentSuggest,
    actor: CurrentActor,
    service: AppointmentServiceDep,
) -> AppointmentResponse:
    """
    Record a patient-suggested visit for admin verification.

    Args:
        data: Suggested time and treatment
        actor: Acting patient (or admin on their behalf)
        service: Appointment service

    Returns:
        Created pending appointment
    """
    appointment = await service.suggest_appointment(actor, data)
    return AppointmentResponse.model_validate(appointment, from_attributes=True)


@router.post(
    "/",
    response_model=TransitionResponse,
    status_code=status.HTTP_201_CREATED,
    tags=["Appointments"],
    summary="Book a verified appointment",
)
async def book_appointment(
    data: AppointmentBook,
    actor: CurrentActor,
    service: AppointmentServiceDep,
) -> TransitionResponse:
    """
    Book a fully specified appointment in one step (admin only).

    A scheduling conflict is returned as 409 with the warning in ``details``;
    resend with ``acknowledge_conflict`` set to book anyway.
    """
    result = await service.book_appointment(actor, data, _acknowledged(data.acknowledge_conflict))
    return TransitionResponse.from_result(result)


@router.get(
    "/",
    response_model=AppointmentListResponse,
    status_code=status.HTTP_200_OK,
    tags=["Appointments"],
    summary="List appointments",
)
async def list_appointments(
    actor: CurrentActor,
    service: AppointmentServiceDep,
    status_filter: list[AppointmentStatus] | None = Query(None, alias="status"),
    staff_id: UUID | None = Query(None),
    patient_id: UUID | None = Query(None),
    from_date: datetime | None = Query(None),
    to_date: datetime | None = Query(None),
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100),
) -> AppointmentListResponse:
    """
    List appointments visible to the caller with filtering.

    Args:
        actor: Acting user
        service: Appointment service
        status_filter: Filter by one or more statuses
        staff_id: Filter by assigned staff
        patient_id: Filter by patient
        from_date: Earliest appointment time
        to_date: Latest appointment time
        page: Page number
        page_size: Items per page

    Returns:
        Paginated list of appointments
    """
    filters = AppointmentFilters(
        statuses=set(status_filter) if status_filter else None,
        assigned_staff_id=staff_id,
        patient_id=patient_id,
        from_date=from_date,
        to_date=to_date,
        page=page,
        page_size=page_size,
    )
    total, items = await service.list_appointments(actor, filters)

    return AppointmentListResponse(
        total=total,
        page=page,
        page_size=page_size,
        items=[AppointmentResponse.model_validate(a, from_attributes=True) for a in items],
    )


@router.get(
    "/conflicts",
    response_model=ConflictCheckResponse,
    status_code=status.HTTP_200_OK,
    tags=["Appointments"],
    summary="Preview a scheduling conflict",
)
async def check_conflict(
    actor: CurrentActor,
    service: AppointmentServiceDep,
    staff_id: UUID = Query(...),
    date_time: datetime = Query(...),
    exclude_appointment_id: UUID | None = Query(None),
) -> ConflictCheckResponse:
    """Show the warning an admin would get for this staff member and time."""
    warning = await service.check_conflict(actor, staff_id, date_time, exclude_appointment_id)
    return ConflictCheckResponse(conflict=warning is not None, warning=warning)


@router.get(
    "/summary",
    response_model=AppointmentSummary,
    status_code=status.HTTP_200_OK,
    tags=["Appointments"],
    summary="Dashboard counters",
)
async def appointment_summary(
    actor: CurrentActor,
    service: AppointmentServiceDep,
    day: date | None = Query(None, description="Day for the workload count, today by default"),
) -> AppointmentSummary:
    """Pending verification, the day's workload and sessions logged."""
    return await service.summarize(actor, day)


@router.get(
    "/{appointment_id}",
    response_model=AppointmentResponse,
    status_code=status.HTTP_200_OK,
    tags=["Appointments"],
    summary="Get appointment by ID",
)
async def get_appointment(
    appointment_id: UUID,
    actor: CurrentActor,
    service: AppointmentServiceDep,
) -> AppointmentResponse:
    """
    Get a specific appointment by ID.

    Args:
        appointment_id: Appointment ID
        actor: Acting user
        service: Appointment service

    Returns:
        Appointment details
    """
    appointment = await service.get_appointment(actor, appointment_id)
    return AppointmentResponse.model_validate(appointment, from_attributes=True)


@router.post(
    "/{appointment_id}/verify",
    response_model=TransitionResponse,
    status_code=status.HTTP_200_OK,
    tags=["Appointments"],
    summary="Verify a suggested appointment",
)
async def verify_appointment(
    appointment_id: UUID,
    data: AppointmentVerify,
    actor: CurrentActor,
    service: AppointmentServiceDep,
) -> TransitionResponse:
    """
    Assign staff to a pending suggestion and schedule it (admin only).

    Passing a different ``date_time`` keeps the patient's suggestion on record
    and sends a re-verification request instead of a confirmation.
    """
    result = await service.verify_appointment(
        actor,
        appointment_id,
        data,
        _acknowledged(data.acknowledge_conflict),
    )
    return TransitionResponse.from_result(result)


@router.post(
    "/{appointment_id}/reject",
    response_model=TransitionResponse,
    status_code=status.HTTP_200_OK,
    tags=["Appointments"],
    summary="Reject a suggested appointment",
)
async def reject_appointment(
    appointment_id: UUID,
    data: AppointmentDecision,
    actor: CurrentActor,
    service: AppointmentServiceDep,
) -> TransitionResponse:
    """Reject a pending suggestion; requires ``confirm``, otherwise 428."""
    result = await service.reject_appointment(actor, appointment_id, _acknowledged(data.confirm))
    return TransitionResponse.from_result(result)


@router.post(
    "/{appointment_id}/cancel",
    response_model=TransitionResponse,
    status_code=status.HTTP_200_OK,
    tags=["Appointments"],
    summary="Cancel a scheduled appointment",
)
async def cancel_appointment(
    appointment_id: UUID,
    data: AppointmentDecision,
    actor: CurrentActor,
    service: AppointmentServiceDep,
) -> TransitionResponse:
    """Cancel a scheduled appointment and purge its pending reminders."""
    result = await service.cancel_appointment(actor, appointment_id, _acknowledged(data.confirm))
    return TransitionResponse.from_result(result)
