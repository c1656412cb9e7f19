import asyncio
from datetime import date, time, timedelta

import pytest
from sqlalchemy import func, select

from src.core.exceptions import Forbidden, InvalidInput, NotFound, SlotUnavailable
from src.modules.appointments.models import Appointment
from src.modules.appointments.schemas import AppointmentCreate, AppointmentFilters
from src.modules.appointments.service import AppointmentService
from src.modules.users.models import User
from src.shared.enums import AppointmentStatus, UserRole
from src.shared.ulid import generate_ulid

MONDAY = date(2024, 5, 20)


def _booking(doctor_id: str, day: str = "2024-05-20", at: str = "10:00", reason: str | None = None):
    return AppointmentCreate.model_validate({"doctorId": doctor_id, "date": day, "time": at, "reason": reason})


@pytest.mark.asyncio
async def test_patient_books_pending_appointment(factory):
    doctor = await factory.doctor(department="Cardiology")
    patient = await factory.user(UserRole.PATIENT, name="Ada")
    service = AppointmentService(factory.session)

    appointment = await service.create_for_patient(_booking(doctor.doctor_id, at="10:00:42", reason=" cough "), patient)

    assert appointment.status == AppointmentStatus.PENDING
    assert appointment.patient_id == patient.user_id
    assert appointment.appointment_date == MONDAY
    assert appointment.appointment_time == time(10, 0)
    assert appointment.reason == "cough"
    assert appointment.patient.name == "Ada"
    assert appointment.doctor.user.name == "Dr. Grey"
    assert appointment.doctor.department.name == "Cardiology"


@pytest.mark.asyncio
async def test_second_booking_of_active_slot_is_rejected(factory):
    doctor = await factory.doctor()
    first = await factory.user(UserRole.PATIENT)
    second = await factory.user(UserRole.PATIENT)
    service = AppointmentService(factory.session)

    await service.create_for_patient(_booking(doctor.doctor_id), first)
    with pytest.raises(SlotUnavailable):
        await service.create_for_patient(_booking(doctor.doctor_id), second)

    count = await factory.session.scalar(select(func.count(Appointment.appointment_id)))
    assert count == 1


@pytest.mark.asyncio
async def test_cancelled_booking_frees_the_slot(factory):
    doctor = await factory.doctor()
    patient = await factory.user(UserRole.PATIENT)
    await factory.appointment(patient, doctor, at=time(10, 0), status=AppointmentStatus.CANCELLED)
    await factory.appointment(patient, doctor, at=time(10, 0), status=AppointmentStatus.REJECTED)
    service = AppointmentService(factory.session)

    appointment = await service.create_for_patient(_booking(doctor.doctor_id), patient)

    assert appointment.status == AppointmentStatus.PENDING


@pytest.mark.asyncio
async def test_concurrent_bookings_for_one_slot_yield_one_winner(file_sessionmaker, factory_cls):
    async with file_sessionmaker() as seed_session:
        seed = factory_cls(seed_session)
        doctor = await seed.doctor()
        patients = [await seed.user(UserRole.PATIENT), await seed.user(UserRole.PATIENT)]

    async def book(patient):
        async with file_sessionmaker() as session:
            return await AppointmentService(session).create_for_patient(_booking(doctor.doctor_id), patient)

    results = await asyncio.gather(*(book(patient) for patient in patients), return_exceptions=True)

    winners = [result for result in results if isinstance(result, Appointment)]
    losers = [result for result in results if isinstance(result, SlotUnavailable)]
    assert len(winners) == 1
    assert len(losers) == 1

    async with file_sessionmaker() as session:
        count = await session.scalar(
            select(func.count(Appointment.appointment_id)).where(Appointment.doctor_id == doctor.doctor_id)
        )
    assert count == 1


@pytest.mark.asyncio
async def test_booking_does_not_recheck_weekly_template(factory):
    doctor = await factory.doctor(days=["tuesday"], daily_appointment_limit=0)
    patient = await factory.user(UserRole.PATIENT)

    appointment = await AppointmentService(factory.session).create_for_patient(
        _booking(doctor.doctor_id), patient
    )

    assert appointment.status == AppointmentStatus.PENDING


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "payload",
    [
        {"date": "2024-05-20", "time": "10:00"},
        {"doctorId": "x", "time": "10:00"},
        {"doctorId": "x", "date": "2024-05-20"},
    ],
)
async def test_missing_fields_are_invalid_input(factory, payload):
    patient = await factory.user(UserRole.PATIENT)
    with pytest.raises(InvalidInput):
        await AppointmentService(factory.session).create_for_patient(AppointmentCreate.model_validate(payload), patient)


@pytest.mark.asyncio
@pytest.mark.parametrize(("day", "at"), [("2024-02-30", "10:00"), ("20-05-2024", "10:00"), ("2024-05-20", "25:00")])
async def test_malformed_date_or_time_is_invalid_input(factory, day, at):
    doctor = await factory.doctor()
    patient = await factory.user(UserRole.PATIENT)
    with pytest.raises(InvalidInput):
        await AppointmentService(factory.session).create_for_patient(_booking(doctor.doctor_id, day, at), patient)


@pytest.mark.asyncio
async def test_unknown_doctor_is_not_found(factory):
    patient = await factory.user(UserRole.PATIENT)
    with pytest.raises(NotFound):
        await AppointmentService(factory.session).create_for_patient(_booking(generate_ulid()), patient)


@pytest.mark.asyncio
@pytest.mark.parametrize("role", [UserRole.DOCTOR, UserRole.ADMIN])
async def test_only_patients_book(factory, role):
    doctor = await factory.doctor()
    caller = await factory.user(role)
    with pytest.raises(Forbidden):
        await AppointmentService(factory.session).create_for_patient(_booking(doctor.doctor_id), caller)


@pytest.mark.asyncio
async def test_listing_is_scoped_by_role(factory):
    doctor_a = await factory.doctor(name="Dr. A")
    doctor_b = await factory.doctor(name="Dr. B")
    alice = await factory.user(UserRole.PATIENT, name="Alice")
    bob = await factory.user(UserRole.PATIENT, name="Bob")
    admin = await factory.user(UserRole.ADMIN)
    a1 = await factory.appointment(alice, doctor_a, at=time(9, 0))
    a2 = await factory.appointment(alice, doctor_b, at=time(9, 0))
    b1 = await factory.appointment(bob, doctor_a, at=time(9, 30))
    service = AppointmentService(factory.session)
    filters = AppointmentFilters(limit=100)

    alice_rows, _ = await service.list_for_user(alice, filters)
    assert {row.appointment_id for row in alice_rows} == {a1.appointment_id, a2.appointment_id}

    doctor_a_user = await factory.session.get(User, doctor_a.user_id)
    doctor_rows, _ = await service.list_for_user(doctor_a_user, filters)
    assert {row.appointment_id for row in doctor_rows} == {a1.appointment_id, b1.appointment_id}

    admin_rows, _ = await service.list_for_user(admin, filters)
    assert len(admin_rows) == 3

    narrowed, _ = await service.list_for_user(alice, AppointmentFilters(doctor_id=doctor_b.doctor_id))
    assert [row.appointment_id for row in narrowed] == [a2.appointment_id]


@pytest.mark.asyncio
async def test_listing_filters_by_status(factory):
    doctor = await factory.doctor()
    patient = await factory.user(UserRole.PATIENT)
    await factory.appointment(patient, doctor, at=time(9, 0))
    confirmed = await factory.appointment(patient, doctor, at=time(9, 30), status=AppointmentStatus.CONFIRMED)

    rows, _ = await AppointmentService(factory.session).list_for_user(
        patient, AppointmentFilters(status=AppointmentStatus.CONFIRMED)
    )

    assert [row.appointment_id for row in rows] == [confirmed.appointment_id]


@pytest.mark.asyncio
async def test_doctor_without_profile_gets_empty_page(factory):
    orphan = await factory.user(UserRole.DOCTOR)
    rows, pagination = await AppointmentService(factory.session).list_for_user(orphan, AppointmentFilters())
    assert rows == []
    assert pagination.has_more is False
    assert pagination.next_cursor is None


@pytest.mark.asyncio
async def test_cursor_pagination_walks_newest_first(factory):
    doctor = await factory.doctor()
    patient = await factory.user(UserRole.PATIENT)
    created = []
    for offset in range(5):
        created.append(await factory.appointment(patient, doctor, on=MONDAY + timedelta(days=offset)))
    expected = [row.appointment_id for row in reversed(created)]
    service = AppointmentService(factory.session)

    seen = []
    cursor = None
    pages = 0
    while True:
        rows, pagination = await service.list_for_user(patient, AppointmentFilters(cursor=cursor, limit=2))
        seen.extend(row.appointment_id for row in rows)
        pages += 1
        if not pagination.has_more:
            break
        assert pagination.next_cursor == rows[-1].appointment_id
        cursor = pagination.next_cursor

    assert seen == expected
    assert pages == 3


@pytest.mark.asyncio
async def test_malformed_cursor_is_invalid_input(factory):
    patient = await factory.user(UserRole.PATIENT)
    with pytest.raises(InvalidInput):
        await AppointmentService(factory.session).list_for_user(patient, AppointmentFilters(cursor="nope"))


@pytest.mark.asyncio
async def test_unknown_cursor_returns_empty_page(factory):
    doctor = await factory.doctor()
    patient = await factory.user(UserRole.PATIENT)
    await factory.appointment(patient, doctor)

    rows, pagination = await AppointmentService(factory.session).list_for_user(
        patient, AppointmentFilters(cursor=generate_ulid())
    )

    assert rows == []
    assert pagination.has_more is False


@pytest.mark.asyncio
async def test_get_for_user_hides_other_patients_rows(factory):
    doctor = await factory.doctor()
    owner = await factory.user(UserRole.PATIENT)
    stranger = await factory.user(UserRole.PATIENT)
    appointment = await factory.appointment(owner, doctor)
    service = AppointmentService(factory.session)

    found = await service.get_for_user(appointment.appointment_id, owner)
    assert found.appointment_id == appointment.appointment_id

    with pytest.raises(NotFound):
        await service.get_for_user(appointment.appointment_id, stranger)
