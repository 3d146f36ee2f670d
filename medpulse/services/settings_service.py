"""Clinic settings service."""

import structlog

from medpulse.repositories.base import SettingsRepository
from medpulse.schemas.auth import Actor
from medpulse.schemas.clinic_settings import ClinicSettings, ClinicSettingsUpdate
from medpulse.services.role_gate import Action, RoleGate, role_gate

logger = structlog.get_logger(__name__)


class SettingsService:
    """Reads and toggles clinic-wide settings."""

    def __init__(self, store: SettingsRepository, gate: RoleGate = role_gate):
        self.store = store
        self.gate = gate

    async def get_settings(self) -> ClinicSettings:
        """Current clinic settings."""
        return await self.store.get()

    async def update_settings(self, actor: Actor, data: ClinicSettingsUpdate) -> ClinicSettings:
        """
        Apply a partial settings update.

        Args:
            actor: Acting admin
            data: Fields to change; omitted fields keep their value

        Returns:
            Updated settings
        """
        self.gate.require(actor, Action.UPDATE_SETTINGS)

        current = await self.store.get()
        visibility = current.patient_visibility
        if data.patient_visibility is not None:
            visibility = visibility.model_copy(
                update=data.patient_visibility.model_dump(exclude_none=True)
            )

        updated = current.model_copy(update={"patient_visibility": visibility})
        if data.restrict_staff_logs is not None:
            updated = updated.model_copy(update={"restrict_staff_logs": data.restrict_staff_logs})

        saved = await self.store.save(updated)
        logger.info(
            "clinic_settings_updated",
            patient_visibility=saved.patient_visibility.model_dump(),
            restrict_staff_logs=saved.restrict_staff_logs,
        )
        return saved
