"""Doctor directory queries and schedule updates."""

from __future__ import annotations

import logging

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from src.core.exceptions import InvalidInput, NotFound
from src.modules.doctors.models import Doctor
from src.modules.doctors.schemas import DoctorScheduleUpdate
from src.modules.users.models import User

logger = logging.getLogger(__name__)


class DoctorService:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def list_doctors(self) -> list[Doctor]:
        stmt = (
            self._with_joins(select(Doctor))
            .join(User, Doctor.user_id == User.user_id)
            .where(User.is_active.is_(True))
            .order_by(User.name)
        )
        result = await self.db.execute(stmt)
        return list(result.scalars().all())

    async def get_doctor(self, doctor_id: str) -> Doctor:
        stmt = self._with_joins(select(Doctor)).where(Doctor.doctor_id == doctor_id)
        doctor = (await self.db.execute(stmt)).scalar_one_or_none()
        if doctor is None:
            raise NotFound("Doctor not found")
        return doctor

    async def get_for_user(self, user: User) -> Doctor:
        stmt = self._with_joins(select(Doctor)).where(Doctor.user_id == user.user_id)
        doctor = (await self.db.execute(stmt)).scalar_one_or_none()
        if doctor is None:
            raise NotFound("Doctor profile not found")
        return doctor

    async def update_schedule(self, user: User, payload: DoctorScheduleUpdate) -> Doctor:
        doctor = await self.get_for_user(user)
        update_data = payload.model_dump(exclude_unset=True)
        if not update_data:
            return doctor

        if update_data.get("available_days") is not None:
            days = update_data["available_days"]
            # Keep first-seen order, drop repeats.
            update_data["available_days"] = [day.value for day in dict.fromkeys(days)]
        nulls = sorted(key for key, value in update_data.items() if value is None)
        if nulls:
            raise InvalidInput(f"{', '.join(nulls)} cannot be null")

        for key, value in update_data.items():
            setattr(doctor, key, value)
        await self.db.commit()
        logger.info("Doctor %s updated schedule fields %s", doctor.doctor_id, sorted(update_data))
        return await self._reload(doctor.doctor_id)

    async def _reload(self, doctor_id: str) -> Doctor:
        stmt = (
            self._with_joins(select(Doctor))
            .where(Doctor.doctor_id == doctor_id)
            .execution_options(populate_existing=True)
        )
        return (await self.db.execute(stmt)).scalar_one()

    @staticmethod
    def _with_joins(stmt):
        return stmt.options(selectinload(Doctor.user), selectinload(Doctor.department))
