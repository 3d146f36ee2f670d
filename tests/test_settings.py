"""Tests for clinic settings."""

import pytest

from medpulse.core.exceptions import ForbiddenException
from medpulse.repositories.base import Repositories
from medpulse.schemas.auth import Actor
from medpulse.schemas.clinic_settings import ClinicSettingsUpdate, PatientVisibilityUpdate
from medpulse.services.settings_service import SettingsService


@pytest.fixture
def settings_service(repositories: Repositories) -> SettingsService:
    return SettingsService(repositories.settings)


@pytest.mark.asyncio
async def test_defaults_expose_everything(settings_service: SettingsService) -> None:
    current = await settings_service.get_settings()

    assert current.patient_visibility.summary
    assert current.patient_visibility.results
    assert current.patient_visibility.care_instructions
    assert current.restrict_staff_logs is False


@pytest.mark.asyncio
async def test_partial_update_keeps_other_gates(
    settings_service: SettingsService,
    admin: Actor,
) -> None:
    updated = await settings_service.update_settings(
        admin,
        ClinicSettingsUpdate(patient_visibility=PatientVisibilityUpdate(results=False)),
    )

    assert updated.patient_visibility.results is False
    assert updated.patient_visibility.summary is True
    assert updated.patient_visibility.care_instructions is True
    assert (await settings_service.get_settings()).patient_visibility.results is False


@pytest.mark.asyncio
async def test_toggle_staff_log_restriction(
    settings_service: SettingsService,
    admin: Actor,
) -> None:
    updated = await settings_service.update_settings(
        admin, ClinicSettingsUpdate(restrict_staff_logs=True)
    )

    assert updated.restrict_staff_logs is True
    assert updated.patient_visibility.summary is True


@pytest.mark.asyncio
async def test_only_admin_updates_settings(
    settings_service: SettingsService,
    doctor: Actor,
    patient_actor: Actor,
) -> None:
    for actor in (doctor, patient_actor):
        with pytest.raises(ForbiddenException):
            await settings_service.update_settings(
                actor, ClinicSettingsUpdate(restrict_staff_logs=True)
            )

    assert (await settings_service.get_settings()).restrict_staff_logs is False
