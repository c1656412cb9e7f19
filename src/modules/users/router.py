"""User routes."""

from fastapi import APIRouter, Depends
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from src.core.database import get_db
from src.core.deps import get_current_user
from src.modules.doctors.models import Doctor
from src.modules.users.models import User
from src.modules.users.schemas import UserPublic

router = APIRouter(prefix="/api/v1/users", tags=["users"])


@router.get("/me", response_model=UserPublic)
async def get_me(
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> UserPublic:
    doctor_id = (
        await db.execute(select(Doctor.doctor_id).where(Doctor.user_id == current_user.user_id))
    ).scalar_one_or_none()
    return UserPublic.model_validate(current_user).model_copy(update={"doctor_id": doctor_id})
