"""Schedule routes."""

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from src.core.database import get_db
from src.modules.schedule.schemas import AvailableSlotsResponse
from src.modules.schedule.service import get_doctor_slots
from src.shared.dates import parse_date

router = APIRouter(prefix="/api/v1/doctors", tags=["schedule"])


@router.get("/{doctor_id}/slots", response_model=AvailableSlotsResponse)
async def available_slots(
    doctor_id: str,
    date_value: str | None = Query(None, alias="date"),
    db: AsyncSession = Depends(get_db),
) -> AvailableSlotsResponse:
    target_date = parse_date(date_value)
    availability = await get_doctor_slots(doctor_id, target_date, db)
    return AvailableSlotsResponse.model_validate(availability)
