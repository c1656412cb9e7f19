import os
import sys
from datetime import date, datetime, time, timedelta, timezone
from decimal import Decimal
from pathlib import Path

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("JWT_SECRET", "test-secret")

from src.core.database import Base  # noqa: E402
from src.modules.appointments.models import Appointment  # noqa: E402
from src.modules.chat.models import Message  # noqa: E402
from src.modules.doctors.models import Department, Doctor  # noqa: E402
from src.modules.users.models import User  # noqa: E402
from src.shared.enums import AppointmentStatus, UserRole  # noqa: E402
from src.shared.ulid import generate_ulid  # noqa: E402

# 2024-05-20 is a Monday.
MONDAY = date(2024, 5, 20)
WEEKDAYS = ["monday", "tuesday", "wednesday", "thursday", "friday"]


class Factory:
    """Seeds rows through one session and commits after each helper."""

    def __init__(self, session):
        self.session = session
        self._clock = datetime(2024, 5, 1, 8, 0, tzinfo=timezone.utc)

    def _tick(self) -> datetime:
        self._clock += timedelta(seconds=1)
        return self._clock

    async def user(self, role: UserRole = UserRole.PATIENT, name: str | None = None, **fields) -> User:
        user_id = generate_ulid()
        created = self._tick()
        user = User(
            user_id=user_id,
            email=f"{user_id.lower()}@example.com",
            name=name or f"{role.value.title()} {user_id[-4:]}",
            role=role,
            is_active=True,
            created_at=created,
            updated_at=created,
            **fields,
        )
        self.session.add(user)
        await self.session.commit()
        return user

    async def doctor(
        self,
        name: str = "Dr. Grey",
        fee: Decimal = Decimal("0"),
        days: list[str] | None = None,
        department: str | None = None,
        **fields,
    ) -> Doctor:
        user = await self.user(UserRole.DOCTOR, name=name)
        department_row = None
        if department:
            created = self._tick()
            department_row = Department(
                department_id=generate_ulid(), name=department, created_at=created, updated_at=created
            )
            self.session.add(department_row)
        created = self._tick()
        doctor = Doctor(
            doctor_id=generate_ulid(),
            created_at=created,
            updated_at=created,
            user_id=user.user_id,
            department_id=department_row.department_id if department_row else None,
            specialization="General practice",
            consultation_fee=fee,
            available_days=list(WEEKDAYS if days is None else days),
            available_from=fields.pop("available_from", time(9, 0)),
            available_to=fields.pop("available_to", time(17, 0)),
            appointment_duration_minutes=fields.pop("appointment_duration_minutes", 30),
            daily_appointment_limit=fields.pop("daily_appointment_limit", 18),
            is_available=fields.pop("is_available", True),
            **fields,
        )
        self.session.add(doctor)
        await self.session.commit()
        return doctor

    async def appointment(
        self,
        patient: User,
        doctor: Doctor,
        on: date = MONDAY,
        at: time = time(9, 0),
        status: AppointmentStatus = AppointmentStatus.PENDING,
    ) -> Appointment:
        created = self._tick()
        appointment = Appointment(
            appointment_id=generate_ulid(),
            patient_id=patient.user_id,
            doctor_id=doctor.doctor_id,
            appointment_date=on,
            appointment_time=at,
            date_time=datetime.combine(on, at, tzinfo=timezone.utc),
            status=status,
            created_at=created,
            updated_at=created,
        )
        self.session.add(appointment)
        await self.session.commit()
        return appointment

    async def message(self, sender: User, receiver: User, content: str = "Hello", is_read: bool = False) -> Message:
        created = self._tick()
        message = Message(
            message_id=generate_ulid(),
            sender_id=sender.user_id,
            receiver_id=receiver.user_id,
            content=content,
            is_read=is_read,
            created_at=created,
            updated_at=created,
        )
        self.session.add(message)
        await self.session.commit()
        return message


class RecordingFeeClient:
    """Stand-in for FeeSplitClient that records calls and can be told to fail."""

    def __init__(self, error: Exception | None = None):
        self.calls: list[tuple[str, Decimal]] = []
        self.error = error

    async def process_fee_split(self, appointment_id: str, amount: Decimal) -> None:
        self.calls.append((appointment_id, amount))
        if self.error is not None:
            raise self.error


@pytest_asyncio.fixture
async def db_session():
    engine = create_async_engine("sqlite+aiosqlite:///:memory:", future=True)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    SessionLocal = async_sessionmaker(engine, expire_on_commit=False)
    async with SessionLocal() as session:
        yield session
    await engine.dispose()


@pytest_asyncio.fixture
async def file_sessionmaker(tmp_path):
    """Sessions on a file-backed database, so separate sessions see each other's commits."""
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'clinic.db'}", future=True)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield async_sessionmaker(engine, expire_on_commit=False)
    await engine.dispose()


@pytest.fixture
def factory(db_session) -> Factory:
    return Factory(db_session)


@pytest.fixture
def factory_cls() -> type[Factory]:
    return Factory


@pytest.fixture
def fee_client() -> RecordingFeeClient:
    return RecordingFeeClient()


@pytest.fixture
def fee_client_cls() -> type[RecordingFeeClient]:
    return RecordingFeeClient
