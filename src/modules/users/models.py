"""ORM models for the users domain."""

from __future__ import annotations

from typing import TYPE_CHECKING

from sqlalchemy import Boolean, Enum, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from src.core.database import Base
from src.shared.enums import UserRole, enum_values
from src.shared.models import TimestampMixin
from src.shared.ulid import generate_ulid

if TYPE_CHECKING:  # pragma: no cover - typing only
    from src.modules.appointments.models import Appointment
    from src.modules.doctors.models import Doctor


class User(Base, TimestampMixin):
    __tablename__ = "users"

    user_id: Mapped[str] = mapped_column(
        String(26),
        primary_key=True,
        default=generate_ulid,
    )
    email: Mapped[str] = mapped_column(String(255), unique=True, index=True)
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    phone: Mapped[str | None] = mapped_column(String(32))
    role: Mapped[UserRole] = mapped_column(
        Enum(
            UserRole,
            values_callable=enum_values,
            validate_strings=True,
            name="userrole",
        ),
        nullable=False,
        default=UserRole.PATIENT,
    )
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    doctor_profile: Mapped[Doctor | None] = relationship(back_populates="user", uselist=False)
    appointments: Mapped[list[Appointment]] = relationship(back_populates="patient")


# Late imports so every relationship target is registered with the mapper.
from src.modules.appointments.models import Appointment  # noqa: E402
from src.modules.doctors.models import Doctor  # noqa: E402
from src.modules.chat.models import Message  # noqa: E402,F401
