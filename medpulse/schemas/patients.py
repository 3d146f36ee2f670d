"""Patient schemas (registry is managed elsewhere; read-only here)."""

from uuid import UUID

from pydantic import BaseModel


class Patient(BaseModel):
    """Patient as seen by the appointment core."""

    id: UUID
    name: str
    phone: str = ""
    email: str = ""

    model_config = {"from_attributes": True}
