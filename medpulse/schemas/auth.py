"""Authorization context schemas."""

from enum import Enum
from uuid import UUID

from pydantic import BaseModel


class UserRole(str, Enum):
    """Role of the acting user, as issued by the login service."""

    ADMIN = "admin"
    DOCTOR = "doctor"
    PATIENT = "patient"


class Actor(BaseModel):
    """Already-authenticated identity performing an operation."""

    role: UserRole
    user_id: UUID

    model_config = {"frozen": True}

    @property
    def is_admin(self) -> bool:
        """Check if the actor is a clinic admin."""
        return self.role == UserRole.ADMIN


class TokenPayload(BaseModel):
    """Claims read from a bearer token."""

    sub: str
    role: UserRole
