"""Pydantic schemas for users."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from src.shared.enums import UserRole


class UserSummary(BaseModel):
    """Display fields joined onto appointments and messages."""

    model_config = ConfigDict(from_attributes=True, populate_by_name=True)

    user_id: str = Field(serialization_alias="id")
    name: str
    email: str | None = None
    role: UserRole
    phone: str | None = None


class UserPublic(UserSummary):
    is_active: bool = Field(serialization_alias="isActive")
    created_at: datetime = Field(serialization_alias="createdAt")
    doctor_id: str | None = Field(None, serialization_alias="doctorId")
