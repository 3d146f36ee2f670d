"""Clinic settings endpoints."""

from fastapi import APIRouter, status

from medpulse.dependencies import CurrentActor, SettingsServiceDep
from medpulse.schemas.clinic_settings import ClinicSettings, ClinicSettingsUpdate

router = APIRouter(prefix="/settings", tags=["Settings"])


@router.get(
    "/",
    response_model=ClinicSettings,
    status_code=status.HTTP_200_OK,
    summary="Get clinic settings",
)
async def get_settings(
    actor: CurrentActor,
    service: SettingsServiceDep,
) -> ClinicSettings:
    """Current visibility gates and staff log restriction."""
    return await service.get_settings()


@router.patch(
    "/",
    response_model=ClinicSettings,
    status_code=status.HTTP_200_OK,
    summary="Update clinic settings",
)
async def update_settings(
    data: ClinicSettingsUpdate,
    actor: CurrentActor,
    service: SettingsServiceDep,
) -> ClinicSettings:
    """
    Toggle clinic settings (admin only).

    Args:
        data: Fields to change
        actor: Acting admin
        service: Settings service

    Returns:
        Updated settings
    """
    return await service.update_settings(actor, data)
