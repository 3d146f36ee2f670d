"""Tests for patient-facing session visibility."""

from itertools import product
from uuid import uuid4

import pytest

from medpulse.schemas.appointments import TreatmentType
from medpulse.schemas.clinic_settings import PatientVisibility
from medpulse.schemas.sessions import RESTRICTED_MARKER, SessionRecord
from medpulse.services.visibility_service import GATED_FIELDS, VisibilityPolicy


@pytest.fixture
def record() -> SessionRecord:
    return SessionRecord(
        appointment_id=uuid4(),
        patient_id=uuid4(),
        doctor_id=uuid4(),
        treatment_type=TreatmentType.CANDELA_LASER,
        summary="Two passes on the left cheek",
        results="Mild redness, expected",
        care_instructions="Avoid sun for 48 hours",
    )


def test_all_gates_open_shows_raw_values(record: SessionRecord) -> None:
    view = VisibilityPolicy(PatientVisibility()).render(record)

    assert view.summary == record.summary
    assert view.results == record.results
    assert view.care_instructions == record.care_instructions
    assert view.hidden_fields == []
    assert not view.has_hidden_fields


def test_closed_gate_uses_marker(record: SessionRecord) -> None:
    view = VisibilityPolicy(PatientVisibility(results=False)).render(record)

    assert view.results == RESTRICTED_MARKER
    assert view.summary == record.summary
    assert view.hidden_fields == ["results"]


@pytest.mark.parametrize("gates", list(product([True, False], repeat=3)))
def test_raw_value_never_leaks(record: SessionRecord, gates: tuple[bool, bool, bool]) -> None:
    visibility = PatientVisibility(**dict(zip(GATED_FIELDS, gates, strict=True)))
    view = VisibilityPolicy(visibility).render(record)

    for field, visible in zip(GATED_FIELDS, gates, strict=True):
        if visible:
            assert getattr(view, field) == getattr(record, field)
        else:
            assert getattr(view, field) == RESTRICTED_MARKER
            assert field in view.hidden_fields


def test_fields_are_never_omitted(record: SessionRecord) -> None:
    closed = PatientVisibility(summary=False, results=False, care_instructions=False)
    payload = VisibilityPolicy(closed).render(record).model_dump()

    for field in GATED_FIELDS:
        assert payload[field] == RESTRICTED_MARKER


def test_render_many_applies_to_every_record(record: SessionRecord) -> None:
    second = record.model_copy(update={"id": uuid4(), "summary": "Follow-up pass"})
    views = VisibilityPolicy(PatientVisibility(summary=False)).render_many([record, second])

    assert [v.summary for v in views] == [RESTRICTED_MARKER, RESTRICTED_MARKER]
