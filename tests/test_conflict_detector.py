"""Tests for the staff calendar conflict detector."""

from datetime import datetime, timedelta, timezone
from uuid import uuid4

import pytest

from medpulse.repositories.memory import InMemoryAppointmentRepository
from medpulse.schemas.appointments import Appointment, AppointmentStatus, TreatmentType
from medpulse.services.conflict_detector import ConflictDetector, conflict_message, find_conflict

STAFF = uuid4()
BASE = datetime(2026, 11, 20, 10, 0)


def make_appointment(
    minutes: float = 0,
    status: AppointmentStatus = AppointmentStatus.SCHEDULED,
    staff_id=STAFF,
) -> Appointment:
    verified = status != AppointmentStatus.PENDING
    return Appointment(
        patient_id=uuid4(),
        date_time=BASE + timedelta(minutes=minutes),
        type=TreatmentType.FACIAL,
        status=status,
        assigned_staff_id=staff_id if verified else None,
        is_verified=verified,
    )


def test_conflict_inside_window() -> None:
    existing = make_appointment()
    warning = find_conflict([existing], STAFF, BASE + timedelta(minutes=30))

    assert warning is not None
    assert warning.delta_minutes == 30
    assert warning.conflicting_appointment_id == existing.id
    assert warning.message == (
        "Warning: 30 minutes from another appointment with this staff. Proceed anyway?"
    )


def test_exactly_sixty_minutes_is_not_a_conflict() -> None:
    existing = make_appointment()
    assert find_conflict([existing], STAFF, BASE + timedelta(minutes=60)) is None
    assert find_conflict([existing], STAFF, BASE - timedelta(minutes=60)) is None


def test_delta_is_floored_to_whole_minutes() -> None:
    existing = make_appointment()
    warning = find_conflict([existing], STAFF, BASE + timedelta(minutes=59, seconds=59))

    assert warning is not None
    assert warning.delta_minutes == 59


def test_same_time_reports_zero_minutes() -> None:
    warning = find_conflict([make_appointment()], STAFF, BASE)

    assert warning is not None
    assert warning.delta_minutes == 0


def test_other_staff_is_ignored() -> None:
    existing = make_appointment(staff_id=uuid4())
    assert find_conflict([existing], STAFF, BASE) is None


@pytest.mark.parametrize(
    "status",
    [AppointmentStatus.PENDING, AppointmentStatus.CANCELLED, AppointmentStatus.REJECTED],
)
def test_inactive_appointments_are_ignored(status: AppointmentStatus) -> None:
    existing = make_appointment(status=status).model_copy(update={"assigned_staff_id": STAFF})
    assert find_conflict([existing], STAFF, BASE) is None


def test_completed_appointments_still_count() -> None:
    existing = make_appointment(status=AppointmentStatus.COMPLETED)
    assert find_conflict([existing], STAFF, BASE + timedelta(minutes=10)) is not None


def test_excluded_appointment_is_skipped() -> None:
    existing = make_appointment()
    assert find_conflict([existing], STAFF, BASE, exclude_appointment_id=existing.id) is None


def test_first_match_in_store_order_wins() -> None:
    far = make_appointment(minutes=-50)
    near = make_appointment(minutes=-5)

    warning = find_conflict([far, near], STAFF, BASE)

    assert warning is not None
    assert warning.conflicting_appointment_id == far.id
    assert warning.delta_minutes == 50


def test_conflict_message_wording() -> None:
    assert conflict_message(45).startswith("Warning: 45 minutes")


@pytest.mark.asyncio
async def test_detector_reads_store() -> None:
    store = InMemoryAppointmentRepository()
    existing = await store.create(make_appointment())
    detector = ConflictDetector(store, window_minutes=60)

    warning = await detector.check_conflict(STAFF, BASE + timedelta(minutes=15))

    assert warning is not None
    assert warning.conflicting_appointment_id == existing.id
    assert await detector.check_conflict(STAFF, BASE + timedelta(hours=2)) is None


@pytest.mark.asyncio
async def test_detector_treats_offsets_as_wall_clock() -> None:
    store = InMemoryAppointmentRepository()
    await store.create(make_appointment())
    detector = ConflictDetector(store)

    candidate = (BASE + timedelta(minutes=20)).replace(tzinfo=timezone(timedelta(hours=2)))
    warning = await detector.check_conflict(STAFF, candidate)

    assert warning is not None
    assert warning.delta_minutes == 20


@pytest.mark.asyncio
async def test_detector_window_is_configurable() -> None:
    store = InMemoryAppointmentRepository()
    await store.create(make_appointment())
    detector = ConflictDetector(store, window_minutes=15)

    assert await detector.check_conflict(STAFF, BASE + timedelta(minutes=20)) is None
    assert await detector.check_conflict(STAFF, BASE + timedelta(minutes=10)) is not None


@pytest.mark.asyncio
async def test_zero_window_disables_conflicts() -> None:
    store = InMemoryAppointmentRepository()
    await store.create(make_appointment())
    detector = ConflictDetector(store, window_minutes=0)

    assert detector.window == timedelta(0)
    assert await detector.check_conflict(STAFF, BASE) is None
