"""Schedule schemas."""

from pydantic import BaseModel, ConfigDict, Field


class AvailableSlotsResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True, populate_by_name=True)

    success: bool = True
    available_slots: list[str] = Field(default_factory=list, serialization_alias="availableSlots")
    is_limit_reached: bool = Field(False, serialization_alias="isLimitReached")
    message: str | None = None
    total_booked: int = Field(0, serialization_alias="totalBooked")
    daily_limit: int | None = Field(None, serialization_alias="dailyLimit")
