"""Database models."""

from medpulse.models.appointments import appointments, metadata
from medpulse.models.clinic_settings import clinic_settings
from medpulse.models.notifications import notifications
from medpulse.models.patients import patients
from medpulse.models.sessions import session_records

__all__ = [
    "appointments",
    "clinic_settings",
    "metadata",
    "notifications",
    "patients",
    "session_records",
]
