"""Business logic for computing a doctor's bookable slots."""

from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass, field
from datetime import date, time, timedelta

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from src.core.config import settings
from src.core.exceptions import NotFound
from src.modules.appointments.models import Appointment
from src.modules.doctors.models import Doctor
from src.shared.enums import ACTIVE_APPOINTMENT_STATUSES, Weekday

logger = logging.getLogger(__name__)

MINUTES_PER_DAY = 24 * 60

REASON_DOCTOR_UNAVAILABLE = "Doctor is not available"
REASON_LIMIT_REACHED = "Daily appointment limit reached"

BookedTime = time | timedelta | str


@dataclass(frozen=True)
class DoctorSchedule:
    available_days: frozenset[Weekday]
    available_from: time
    available_to: time
    appointment_duration_minutes: int
    daily_appointment_limit: int
    is_available: bool = True

    @classmethod
    def from_doctor(cls, doctor: Doctor) -> "DoctorSchedule":
        days: set[Weekday] = set()
        for raw in doctor.available_days or []:
            try:
                days.add(Weekday.parse(raw))
            except ValueError:
                logger.warning("Ignoring unknown weekday %r on doctor %s", raw, doctor.doctor_id)
        limit = doctor.daily_appointment_limit
        return cls(
            available_days=frozenset(days),
            available_from=doctor.available_from or settings.default_available_from,
            available_to=doctor.available_to or settings.default_available_to,
            appointment_duration_minutes=doctor.appointment_duration_minutes,
            daily_appointment_limit=settings.default_daily_appointment_limit if limit is None else limit,
            is_available=doctor.is_available,
        )


@dataclass
class SlotAvailability:
    available_slots: list[str] = field(default_factory=list)
    is_limit_reached: bool = False
    message: str | None = None
    total_booked: int = 0
    daily_limit: int | None = None


def to_minutes(value: BookedTime) -> int:
    """Minutes since midnight for a stored time, whatever the driver returned."""
    if isinstance(value, time):
        return value.hour * 60 + value.minute
    if isinstance(value, timedelta):
        # Some drivers hand TIME columns back as timedelta.
        return int(value.total_seconds() // 60) % MINUTES_PER_DAY
    if isinstance(value, str):
        parts = value.strip().split(":")
        if len(parts) < 2:
            raise ValueError(f"unrecognised time value {value!r}")
        return int(parts[0]) * 60 + int(parts[1])
    raise TypeError(f"unsupported time type {type(value).__name__}")


def format_minutes(minutes: int) -> str:
    hours, mins = divmod(minutes, 60)
    return f"{hours:02d}:{mins:02d}"


def generate_candidate_slots(available_from: time, available_to: time, duration_minutes: int) -> list[int]:
    if duration_minutes <= 0:
        logger.warning(
            "Non-positive appointment duration %s; using default %s",
            duration_minutes,
            settings.default_appointment_duration,
        )
        duration_minutes = settings.default_appointment_duration
    start = to_minutes(available_from)
    end = to_minutes(available_to)
    return list(range(start, end, duration_minutes))


def calculate_available_slots(
    schedule: DoctorSchedule,
    target_date: date,
    booked_times: Iterable[BookedTime],
) -> SlotAvailability:
    """Open slots for one doctor on one date.

    `booked_times` must only contain times of active appointments on that
    date. The daily limit is checked before any slot is generated, so a full
    day reports `is_limit_reached` rather than an empty list of free times.
    """
    if not schedule.is_available:
        return SlotAvailability(message=REASON_DOCTOR_UNAVAILABLE)

    weekday = Weekday.from_date(target_date)
    if weekday not in schedule.available_days:
        return SlotAvailability(message=f"{REASON_DOCTOR_UNAVAILABLE} on {weekday.label}")

    booked = list(booked_times)
    if len(booked) >= schedule.daily_appointment_limit:
        return SlotAvailability(
            is_limit_reached=True,
            message=REASON_LIMIT_REACHED,
            total_booked=len(booked),
            daily_limit=schedule.daily_appointment_limit,
        )

    candidates = generate_candidate_slots(
        schedule.available_from,
        schedule.available_to,
        schedule.appointment_duration_minutes,
    )
    booked_minutes = {to_minutes(value) for value in booked}
    return SlotAvailability(
        available_slots=[format_minutes(slot) for slot in candidates if slot not in booked_minutes],
        total_booked=len(booked),
        daily_limit=schedule.daily_appointment_limit,
    )


async def get_doctor_slots(doctor_id: str, target_date: date, db: AsyncSession) -> SlotAvailability:
    doctor = await db.get(Doctor, doctor_id)
    if doctor is None:
        raise NotFound("Doctor not found")

    booked_times = await _get_booked_times(doctor_id, target_date, db)
    return calculate_available_slots(DoctorSchedule.from_doctor(doctor), target_date, booked_times)


async def _get_booked_times(doctor_id: str, target_date: date, db: AsyncSession) -> list[time]:
    stmt = select(Appointment.appointment_time).where(
        Appointment.doctor_id == doctor_id,
        Appointment.appointment_date == target_date,
        Appointment.status.in_(sorted(ACTIVE_APPOINTMENT_STATUSES)),
    )
    result = await db.execute(stmt)
    return list(result.scalars().all())
