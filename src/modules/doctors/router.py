"""Doctor directory routes."""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from src.core.database import get_db
from src.core.deps import require_doctor
from src.modules.doctors.schemas import DoctorPublic, DoctorScheduleUpdate
from src.modules.doctors.service import DoctorService
from src.modules.users.models import User

router = APIRouter(prefix="/api/v1/doctors", tags=["doctors"])


def get_service(db: AsyncSession = Depends(get_db)) -> DoctorService:
    return DoctorService(db)


@router.get("", response_model=list[DoctorPublic])
async def list_doctors(service: DoctorService = Depends(get_service)) -> list[DoctorPublic]:
    return [DoctorPublic.model_validate(doctor) for doctor in await service.list_doctors()]


@router.patch("/me/schedule", response_model=DoctorPublic)
async def update_my_schedule(
    payload: DoctorScheduleUpdate,
    current_user: User = Depends(require_doctor),
    service: DoctorService = Depends(get_service),
) -> DoctorPublic:
    doctor = await service.update_schedule(current_user, payload)
    return DoctorPublic.model_validate(doctor)


@router.get("/{doctor_id}", response_model=DoctorPublic)
async def get_doctor(doctor_id: str, service: DoctorService = Depends(get_service)) -> DoctorPublic:
    return DoctorPublic.model_validate(await service.get_doctor(doctor_id))
