"""Doctor directory ORM models."""

from __future__ import annotations

from datetime import time
from decimal import Decimal
from typing import TYPE_CHECKING

from sqlalchemy import JSON, Boolean, CheckConstraint, ForeignKey, Numeric, String, Time
from sqlalchemy.orm import Mapped, mapped_column, relationship

from src.core.database import Base
from src.shared.models import TimestampMixin
from src.shared.ulid import generate_ulid

if TYPE_CHECKING:  # pragma: no cover
    from src.modules.appointments.models import Appointment
    from src.modules.users.models import User


class Department(Base, TimestampMixin):
    __tablename__ = "departments"

    department_id: Mapped[str] = mapped_column(String(26), primary_key=True, default=generate_ulid)
    name: Mapped[str] = mapped_column(String(120), nullable=False, unique=True)

    doctors: Mapped[list["Doctor"]] = relationship(back_populates="department")


class Doctor(Base, TimestampMixin):
    """A doctor profile plus the weekly schedule template used for slot lookup."""

    __tablename__ = "doctors"
    __table_args__ = (
        CheckConstraint("appointment_duration_minutes > 0", name="ck_doctors_duration_positive"),
        CheckConstraint("daily_appointment_limit >= 0", name="ck_doctors_daily_limit_non_negative"),
        CheckConstraint("consultation_fee >= 0", name="ck_doctors_fee_non_negative"),
    )

    doctor_id: Mapped[str] = mapped_column(String(26), primary_key=True, default=generate_ulid)
    user_id: Mapped[str] = mapped_column(
        String(26),
        ForeignKey("users.user_id", ondelete="CASCADE"),
        nullable=False,
        unique=True,
    )
    department_id: Mapped[str | None] = mapped_column(
        String(26),
        ForeignKey("departments.department_id", ondelete="SET NULL"),
    )
    specialization: Mapped[str | None] = mapped_column(String(120))
    consultation_fee: Mapped[Decimal] = mapped_column(Numeric(10, 2), default=Decimal("0"), nullable=False)

    # Weekday values, e.g. ["monday", "wednesday"].
    available_days: Mapped[list[str]] = mapped_column(JSON, default=list, nullable=False)
    available_from: Mapped[time] = mapped_column(Time, default=time(9, 0), nullable=False)
    available_to: Mapped[time] = mapped_column(Time, default=time(17, 0), nullable=False)
    appointment_duration_minutes: Mapped[int] = mapped_column(default=30, nullable=False)
    daily_appointment_limit: Mapped[int] = mapped_column(default=18, nullable=False)
    is_available: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    user: Mapped["User"] = relationship(back_populates="doctor_profile")
    department: Mapped["Department | None"] = relationship(back_populates="doctors")
    appointments: Mapped[list["Appointment"]] = relationship(back_populates="doctor")
