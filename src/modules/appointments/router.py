"""Appointments API routes."""

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from src.core.database import get_db
from src.core.deps import get_current_user, require_patient
from src.modules.appointments.schemas import (
    DEFAULT_PAGE_SIZE,
    MAX_PAGE_SIZE,
    AppointmentCreate,
    AppointmentFilters,
    AppointmentPage,
    AppointmentPublic,
    AppointmentResponse,
    AppointmentStatusUpdate,
)
from src.modules.appointments.service import AppointmentService
from src.modules.payments.client import FeeSplitClient, get_fee_split_client
from src.modules.users.models import User
from src.shared.enums import AppointmentStatus

router = APIRouter(prefix="/api/v1/appointments", tags=["appointments"])


def get_service(db: AsyncSession = Depends(get_db)) -> AppointmentService:
    return AppointmentService(db)


@router.post("", response_model=AppointmentResponse, status_code=status.HTTP_201_CREATED)
async def create_appointment(
    payload: AppointmentCreate,
    current_user: User = Depends(require_patient),
    service: AppointmentService = Depends(get_service),
) -> AppointmentResponse:
    appointment = await service.create_for_patient(payload, current_user)
    return AppointmentResponse(
        message="Appointment booked successfully",
        appointment=AppointmentPublic.model_validate(appointment),
    )


@router.get("", response_model=AppointmentPage)
async def list_appointments(
    status_filter: AppointmentStatus | None = Query(None, alias="status"),
    doctor_id: str | None = Query(None, alias="doctorId"),
    cursor: str | None = Query(None),
    limit: int = Query(DEFAULT_PAGE_SIZE, ge=1, le=MAX_PAGE_SIZE),
    current_user: User = Depends(get_current_user),
    service: AppointmentService = Depends(get_service),
) -> AppointmentPage:
    filters = AppointmentFilters(status=status_filter, doctor_id=doctor_id, cursor=cursor, limit=limit)
    appointments, pagination = await service.list_for_user(current_user, filters)
    return AppointmentPage(
        appointments=[AppointmentPublic.model_validate(item) for item in appointments],
        pagination=pagination,
    )


@router.get("/{appointment_id}", response_model=AppointmentResponse)
async def get_appointment(
    appointment_id: str,
    current_user: User = Depends(get_current_user),
    service: AppointmentService = Depends(get_service),
) -> AppointmentResponse:
    appointment = await service.get_for_user(appointment_id, current_user)
    return AppointmentResponse(appointment=AppointmentPublic.model_validate(appointment))


@router.patch("/{appointment_id}/status", response_model=AppointmentResponse)
async def update_appointment_status(
    appointment_id: str,
    payload: AppointmentStatusUpdate,
    current_user: User = Depends(get_current_user),
    service: AppointmentService = Depends(get_service),
    fee_client: FeeSplitClient = Depends(get_fee_split_client),
) -> AppointmentResponse:
    appointment = await service.update_status(appointment_id, payload.status, current_user, fee_client)
    return AppointmentResponse(
        message="Appointment status updated successfully",
        appointment=AppointmentPublic.model_validate(appointment),
    )
