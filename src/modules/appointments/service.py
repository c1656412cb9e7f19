"""Appointment service layer."""

from __future__ import annotations

import logging
from datetime import date, datetime, time
from zoneinfo import ZoneInfo

from sqlalchemy import and_, or_, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import aliased, selectinload

from src.core.config import settings
from src.core.exceptions import Forbidden, InvalidInput, InvalidTransition, NotFound, SlotUnavailable
from src.modules.appointments.hooks import run_completion_hooks
from src.modules.appointments.models import Appointment
from src.modules.appointments.schemas import AppointmentCreate, AppointmentFilters
from src.modules.appointments.state_machine import TransitionPolicy
from src.modules.doctors.models import Doctor
from src.modules.payments.client import FeeSplitClient
from src.modules.users.models import User
from src.shared.dates import parse_date, parse_time
from src.shared.enums import AppointmentStatus, UserRole
from src.shared.models import utcnow
from src.shared.schemas import CursorPagination
from src.shared.ulid import is_ulid

logger = logging.getLogger(__name__)


class AppointmentService:
    def __init__(self, db: AsyncSession, policy: TransitionPolicy | None = None):
        self.db = db
        self.tz = ZoneInfo(settings.default_timezone)
        self.policy = policy or TransitionPolicy.from_settings()

    async def create_for_patient(self, payload: AppointmentCreate, user: User) -> Appointment:
        if user.role != UserRole.PATIENT:
            raise Forbidden("Only patients can book appointments")

        doctor_id = (payload.doctor_id or "").strip()
        if not doctor_id or not payload.appointment_date or not payload.appointment_time:
            raise InvalidInput("Doctor, date, and time are required")

        doctor = await self.db.get(Doctor, doctor_id)
        if doctor is None:
            raise NotFound("Doctor not found")

        appointment_date = parse_date(payload.appointment_date)
        appointment_time = parse_time(payload.appointment_time)
        now = utcnow()
        appointment = Appointment(
            patient_id=user.user_id,
            doctor_id=doctor.doctor_id,
            appointment_date=appointment_date,
            appointment_time=appointment_time,
            date_time=self._combine(appointment_date, appointment_time),
            status=AppointmentStatus.PENDING,
            reason=(payload.reason or "").strip() or None,
            created_at=now,
            updated_at=now,
        )
        self.db.add(appointment)
        try:
            await self.db.commit()
        except IntegrityError as exc:
            await self.db.rollback()
            logger.info(
                "Slot conflict for doctor %s on %s at %s",
                doctor.doctor_id,
                appointment_date,
                appointment_time.strftime("%H:%M"),
            )
            raise SlotUnavailable("This time slot is already booked") from exc

        logger.info(
            "Appointment %s booked by patient %s with doctor %s on %s at %s",
            appointment.appointment_id,
            user.user_id,
            doctor.doctor_id,
            appointment_date,
            appointment_time.strftime("%H:%M"),
        )
        return await self._get_by_id(appointment.appointment_id)

    async def list_for_user(
        self,
        user: User,
        filters: AppointmentFilters,
    ) -> tuple[list[Appointment], CursorPagination]:
        stmt = self._with_joins(select(Appointment))

        if user.role == UserRole.PATIENT:
            stmt = stmt.where(Appointment.patient_id == user.user_id)
        elif user.role == UserRole.DOCTOR:
            own_doctor_id = await self._doctor_id_for(user)
            if own_doctor_id is None:
                return [], CursorPagination()
            stmt = stmt.where(Appointment.doctor_id == own_doctor_id)
        elif user.role != UserRole.ADMIN:
            raise Forbidden("Access denied")

        if filters.doctor_id and user.role != UserRole.DOCTOR:
            stmt = stmt.where(Appointment.doctor_id == filters.doctor_id)
        if filters.status is not None:
            stmt = stmt.where(Appointment.status == filters.status)

        if filters.cursor:
            if not is_ulid(filters.cursor):
                raise InvalidInput("Invalid cursor")
            stmt = stmt.where(self._after_cursor(filters.cursor))

        stmt = stmt.order_by(Appointment.created_at.desc(), Appointment.appointment_id.desc()).limit(
            filters.limit + 1
        )
        rows = list((await self.db.execute(stmt)).scalars().all())
        has_more = len(rows) > filters.limit
        page = rows[: filters.limit]
        pagination = CursorPagination(
            has_more=has_more,
            next_cursor=page[-1].appointment_id if has_more and page else None,
        )
        return page, pagination

    async def get_for_user(self, appointment_id: str, user: User) -> Appointment:
        appointment = await self._get_by_id(appointment_id)
        if user.role == UserRole.ADMIN:
            return appointment
        if user.role == UserRole.PATIENT and appointment.patient_id == user.user_id:
            return appointment
        if user.role == UserRole.DOCTOR and appointment.doctor.user_id == user.user_id:
            return appointment
        raise NotFound("Appointment not found")

    async def update_status(
        self,
        appointment_id: str,
        new_status: AppointmentStatus,
        user: User,
        fee_client: FeeSplitClient,
    ) -> Appointment:
        appointment = await self._get_by_id(appointment_id)
        await self._authorize(appointment, user)

        observed = appointment.status
        self.policy.check_transition(observed, new_status, user.role)
        if observed == new_status:
            return appointment

        result = await self.db.execute(
            update(Appointment)
            .where(
                Appointment.appointment_id == appointment.appointment_id,
                Appointment.status == observed,
            )
            .values(status=new_status, updated_at=utcnow())
            .execution_options(synchronize_session=False)
        )
        if result.rowcount != 1:
            await self.db.rollback()
            raise InvalidTransition("Appointment status was changed by another request")
        await self.db.commit()
        logger.info(
            "Appointment %s status %s -> %s by %s %s",
            appointment.appointment_id,
            observed.value,
            new_status.value,
            user.role.value,
            user.user_id,
        )

        appointment = await self._get_by_id(appointment_id)
        if new_status == AppointmentStatus.COMPLETED:
            await run_completion_hooks(self.db, appointment, fee_client)
            # A failed hook rolls back, which expires loaded instances.
            appointment = await self._get_by_id(appointment_id)
        return appointment

    async def _authorize(self, appointment: Appointment, user: User) -> None:
        if user.role == UserRole.ADMIN:
            return
        if user.role == UserRole.DOCTOR:
            own_doctor_id = await self._doctor_id_for(user)
            if own_doctor_id is None:
                raise Forbidden("Doctor profile not found")
            if appointment.doctor_id != own_doctor_id:
                raise Forbidden("You can only update your own appointments")
            return
        if user.role == UserRole.PATIENT:
            if appointment.patient_id != user.user_id:
                raise Forbidden("You can only update your own appointments")
            return
        raise Forbidden("Access denied")

    async def _doctor_id_for(self, user: User) -> str | None:
        result = await self.db.execute(select(Doctor.doctor_id).where(Doctor.user_id == user.user_id))
        return result.scalar_one_or_none()

    @staticmethod
    def _after_cursor(cursor: str):
        anchor = aliased(Appointment)
        cursor_created = select(anchor.created_at).where(anchor.appointment_id == cursor).scalar_subquery()
        return or_(
            Appointment.created_at < cursor_created,
            and_(Appointment.created_at == cursor_created, Appointment.appointment_id < cursor),
        )

    @staticmethod
    def _with_joins(stmt):
        return stmt.options(
            selectinload(Appointment.patient),
            selectinload(Appointment.doctor).selectinload(Doctor.user),
            selectinload(Appointment.doctor).selectinload(Doctor.department),
        )

    async def _get_by_id(self, appointment_id: str) -> Appointment:
        stmt = (
            self._with_joins(select(Appointment))
            .where(Appointment.appointment_id == appointment_id)
            .execution_options(populate_existing=True)
        )
        result = await self.db.execute(stmt)
        appointment = result.scalar_one_or_none()
        if appointment is None:
            raise NotFound("Appointment not found")
        return appointment

    def _combine(self, appointment_date: date, appointment_time: time) -> datetime:
        return datetime.combine(appointment_date, appointment_time, tzinfo=self.tz)
