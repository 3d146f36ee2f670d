"""Tests for role-based capability checks."""

from uuid import uuid4

import pytest

from medpulse.core.exceptions import ForbiddenException
from medpulse.schemas.auth import Actor, UserRole
from medpulse.services.role_gate import Action, ResourceRef, role_gate

ADMIN_ONLY = [
    Action.BOOK_APPOINTMENT,
    Action.VERIFY_APPOINTMENT,
    Action.REJECT_APPOINTMENT,
    Action.CANCEL_APPOINTMENT,
    Action.UPDATE_SETTINGS,
    Action.SEND_WELCOME,
    Action.CHECK_CONFLICT,
]


@pytest.mark.parametrize("action", list(Action))
def test_admin_may_do_everything(admin: Actor, action: Action) -> None:
    assert role_gate.check(admin, action).allowed


@pytest.mark.parametrize("action", ADMIN_ONLY)
def test_doctor_denied_admin_actions(doctor: Actor, action: Action) -> None:
    decision = role_gate.check(doctor, action)

    assert not decision.allowed
    assert decision.reason


@pytest.mark.parametrize("action", ADMIN_ONLY)
def test_patient_denied_admin_actions(patient_actor: Actor, action: Action) -> None:
    decision = role_gate.check(patient_actor, action, ResourceRef(patient_id=patient_actor.user_id))

    assert not decision.allowed


def test_doctor_verify_denial_message(doctor: Actor) -> None:
    decision = role_gate.check(doctor, Action.VERIFY_APPOINTMENT)
    assert decision.reason == "Only the clinic admin can verify appointments."


def test_doctor_may_log_session_for_own_appointment(doctor: Actor) -> None:
    own = ResourceRef(patient_id=uuid4(), staff_id=doctor.user_id)
    assert role_gate.check(doctor, Action.CREATE_SESSION, own).allowed
    assert role_gate.check(doctor, Action.COMPLETE_APPOINTMENT, own).allowed


def test_doctor_denied_other_staff_appointment(doctor: Actor) -> None:
    other = ResourceRef(patient_id=uuid4(), staff_id=uuid4())
    decision = role_gate.check(doctor, Action.CREATE_SESSION, other)

    assert not decision.allowed
    assert decision.reason == "This appointment is not assigned to you."


def test_doctor_denied_unassigned_appointment(doctor: Actor) -> None:
    unassigned = ResourceRef(patient_id=uuid4())
    assert not role_gate.check(doctor, Action.VIEW_APPOINTMENT, unassigned).allowed


def test_doctor_may_draft_care_instructions(doctor: Actor) -> None:
    assert role_gate.check(doctor, Action.DRAFT_CARE_INSTRUCTIONS).allowed


def test_patient_may_suggest_for_self(patient_actor: Actor) -> None:
    own = ResourceRef(patient_id=patient_actor.user_id)
    assert role_gate.check(patient_actor, Action.SUGGEST_APPOINTMENT, own).allowed


def test_patient_denied_other_patient_records(patient_actor: Actor) -> None:
    other = ResourceRef(patient_id=uuid4())
    decision = role_gate.check(patient_actor, Action.VIEW_SESSION, other)

    assert not decision.allowed
    assert decision.reason == "Patients can only access their own records."


def test_patient_cannot_log_sessions(patient_actor: Actor) -> None:
    own = ResourceRef(patient_id=patient_actor.user_id)
    assert not role_gate.check(patient_actor, Action.CREATE_SESSION, own).allowed


def test_require_raises_forbidden() -> None:
    doctor = Actor(role=UserRole.DOCTOR, user_id=uuid4())

    with pytest.raises(ForbiddenException) as exc_info:
        role_gate.require(doctor, Action.CANCEL_APPOINTMENT)

    assert exc_info.value.status_code == 403
    assert "admin" in exc_info.value.message
