"""Role-based capability checks run before every mutating operation."""

from enum import Enum
from uuid import UUID

import structlog
from pydantic import BaseModel

from medpulse.core.exceptions import ForbiddenException
from medpulse.schemas.appointments import Appointment
from medpulse.schemas.auth import Actor, UserRole

logger = structlog.get_logger(__name__)


class Action(str, Enum):
    """Operations subject to the role gate."""

    SUGGEST_APPOINTMENT = "suggest_appointment"
    BOOK_APPOINTMENT = "book_appointment"
    VERIFY_APPOINTMENT = "verify_appointment"
    REJECT_APPOINTMENT = "reject_appointment"
    CANCEL_APPOINTMENT = "cancel_appointment"
    COMPLETE_APPOINTMENT = "complete_appointment"
    VIEW_APPOINTMENT = "view_appointment"
    CREATE_SESSION = "create_session"
    VIEW_SESSION = "view_session"
    VIEW_NOTIFICATIONS = "view_notifications"
    SEND_WELCOME = "send_welcome"
    CHECK_CONFLICT = "check_conflict"
    VIEW_SUMMARY = "view_summary"
    DRAFT_CARE_INSTRUCTIONS = "draft_care_instructions"
    UPDATE_SETTINGS = "update_settings"


# Actions any doctor may take
DOCTOR_ACTIONS = frozenset(
    {Action.VIEW_SESSION, Action.DRAFT_CARE_INSTRUCTIONS, Action.VIEW_SUMMARY}
)

# Actions a doctor may take on appointments assigned to them
DOCTOR_OWN_STAFF_ACTIONS = frozenset(
    {Action.VIEW_APPOINTMENT, Action.COMPLETE_APPOINTMENT, Action.CREATE_SESSION}
)

# Actions a patient may take on their own records
PATIENT_OWN_ACTIONS = frozenset(
    {
        Action.SUGGEST_APPOINTMENT,
        Action.VIEW_APPOINTMENT,
        Action.VIEW_SESSION,
        Action.VIEW_NOTIFICATIONS,
    }
)

DENIAL_MESSAGES = {
    Action.BOOK_APPOINTMENT: "Only the clinic admin can schedule new appointments.",
    Action.VERIFY_APPOINTMENT: "Only the clinic admin can verify appointments.",
    Action.REJECT_APPOINTMENT: "Only the clinic admin can reject appointment suggestions.",
    Action.CANCEL_APPOINTMENT: "Only the clinic admin can cancel scheduled appointments.",
    Action.UPDATE_SETTINGS: "Only the clinic admin can change clinic settings.",
    Action.SEND_WELCOME: "Only the clinic admin can send welcome messages.",
    Action.CHECK_CONFLICT: "Only the clinic admin can review staff calendars.",
}


class ResourceRef(BaseModel):
    """Ownership facts about the record an action targets."""

    patient_id: UUID | None = None
    staff_id: UUID | None = None

    @classmethod
    def for_appointment(cls, appointment: Appointment) -> "ResourceRef":
        """Reference an appointment by its patient and assigned staff."""
        return cls(patient_id=appointment.patient_id, staff_id=appointment.assigned_staff_id)


class Decision(BaseModel):
    """Outcome of a capability check."""

    allowed: bool
    reason: str | None = None

    @classmethod
    def allow(cls) -> "Decision":
        return cls(allowed=True)

    @classmethod
    def deny(cls, reason: str) -> "Decision":
        return cls(allowed=False, reason=reason)


class RoleGate:
    """Single authorization point for appointment and session operations."""

    def check(
        self,
        actor: Actor,
        action: Action,
        resource: ResourceRef | None = None,
    ) -> Decision:
        """
        Decide whether an actor may perform an action.

        Args:
            actor: Authenticated identity
            action: Operation being attempted
            resource: Ownership facts of the target record, if any

        Returns:
            Allow or deny decision with a user-facing reason
        """
        resource = resource or ResourceRef()

        if actor.is_admin:
            return Decision.allow()

        if actor.role == UserRole.DOCTOR:
            if action in DOCTOR_ACTIONS:
                return Decision.allow()
            if action in DOCTOR_OWN_STAFF_ACTIONS:
                if resource.staff_id is not None and resource.staff_id == actor.user_id:
                    return Decision.allow()
                return Decision.deny("This appointment is not assigned to you.")
            return Decision.deny(
                DENIAL_MESSAGES.get(action, "Doctors cannot perform this action.")
            )

        if action in PATIENT_OWN_ACTIONS:
            if resource.patient_id is not None and resource.patient_id == actor.user_id:
                return Decision.allow()
            return Decision.deny("Patients can only access their own records.")

        return Decision.deny(DENIAL_MESSAGES.get(action, "Patients cannot perform this action."))

    def require(
        self,
        actor: Actor,
        action: Action,
        resource: ResourceRef | None = None,
    ) -> None:
        """
        Enforce a capability check.

        Raises:
            ForbiddenException: If the actor is not allowed
        """
        decision = self.check(actor, action, resource)
        if not decision.allowed:
            logger.info(
                "role_gate_denied",
                role=actor.role.value,
                user_id=str(actor.user_id),
                action=action.value,
            )
            raise ForbiddenException(decision.reason or "Forbidden")


role_gate = RoleGate()
