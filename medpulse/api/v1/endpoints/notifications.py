"""Notification endpoints."""

from uuid import UUID

from fastapi import APIRouter, Query, status

from medpulse.core.exceptions import NotFoundException
from medpulse.dependencies import CurrentActor, NotificationServiceDep, Stores
from medpulse.schemas.notifications import (
    NotificationFilters,
    NotificationListResponse,
    NotificationResponse,
    NotificationStatus,
    NotificationType,
    WelcomeRequest,
)

router = APIRouter(prefix="/notifications", tags=["Notifications"])


@router.get(
    "/",
    response_model=NotificationListResponse,
    status_code=status.HTTP_200_OK,
    summary="Get notification history",
)
async def list_notifications(
    actor: CurrentActor,
    service: NotificationServiceDep,
    patient_id: UUID | None = Query(None),
    appointment_id: UUID | None = Query(None),
    status_filter: NotificationStatus | None = Query(None, alias="status"),
    type_filter: NotificationType | None = Query(None, alias="type"),
) -> NotificationListResponse:
    """
    Message history, newest first.

    Includes deferred reminders (``status=pending``) that are still on record.
    Patients only see their own messages.
    """
    filters = NotificationFilters(
        patient_id=patient_id,
        appointment_id=appointment_id,
        status=status_filter,
        type=type_filter,
    )
    items = await service.list_notifications(actor, filters)

    return NotificationListResponse(
        total=len(items),
        items=[NotificationResponse.model_validate(n, from_attributes=True) for n in items],
    )


@router.post(
    "/welcome",
    response_model=NotificationResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Send a welcome message",
)
async def send_welcome(
    data: WelcomeRequest,
    actor: CurrentActor,
    service: NotificationServiceDep,
    repositories: Stores,
) -> NotificationResponse:
    """
    Welcome a newly registered patient (admin only).

    Args:
        data: Patient to welcome
        actor: Acting admin
        service: Notification service
        repositories: Record stores

    Returns:
        The sent message
    """
    patient = await repositories.patients.get(data.patient_id)
    if not patient:
        raise NotFoundException("Patient not found")

    notification = await service.send_welcome(actor, patient)
    return NotificationResponse.model_validate(notification, from_attributes=True)
