"""Doctor directory schemas."""

from datetime import time
from decimal import Decimal

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator, model_validator

from src.shared.enums import Weekday


class DepartmentSummary(BaseModel):
    model_config = ConfigDict(from_attributes=True, populate_by_name=True)

    department_id: str = Field(serialization_alias="id")
    name: str


class DoctorUserSummary(BaseModel):
    model_config = ConfigDict(from_attributes=True, populate_by_name=True)

    user_id: str = Field(serialization_alias="id")
    name: str


class DoctorSummary(BaseModel):
    model_config = ConfigDict(from_attributes=True, populate_by_name=True)

    doctor_id: str = Field(serialization_alias="id")
    specialization: str | None = None
    user: DoctorUserSummary | None = None
    department: DepartmentSummary | None = None


class DoctorPublic(DoctorSummary):
    consultation_fee: Decimal = Field(serialization_alias="consultationFee")
    available_days: list[Weekday] = Field(default_factory=list, serialization_alias="availableDays")
    available_from: time = Field(serialization_alias="availableFrom")
    available_to: time = Field(serialization_alias="availableTo")
    appointment_duration_minutes: int = Field(serialization_alias="appointmentDuration")
    daily_appointment_limit: int = Field(serialization_alias="dailyAppointmentLimit")
    is_available: bool = Field(serialization_alias="isAvailable")

    @field_validator("available_days", mode="before")
    @classmethod
    def _parse_days(cls, value):
        return [Weekday.parse(day) if isinstance(day, str) else day for day in value or []]


class DoctorScheduleUpdate(BaseModel):
    """Partial update of a doctor's weekly template; unset fields are kept."""

    model_config = ConfigDict(populate_by_name=True)

    available_days: list[Weekday] | None = Field(
        None, validation_alias=AliasChoices("availableDays", "available_days")
    )
    available_from: time | None = Field(None, validation_alias=AliasChoices("availableFrom", "available_from"))
    available_to: time | None = Field(None, validation_alias=AliasChoices("availableTo", "available_to"))
    appointment_duration_minutes: int | None = Field(
        None,
        gt=0,
        validation_alias=AliasChoices("appointmentDuration", "appointment_duration_minutes"),
    )
    daily_appointment_limit: int | None = Field(
        None,
        ge=0,
        validation_alias=AliasChoices("dailyAppointmentLimit", "daily_appointment_limit"),
    )
    is_available: bool | None = Field(None, validation_alias=AliasChoices("isAvailable", "is_available"))
    consultation_fee: Decimal | None = Field(
        None,
        ge=0,
        validation_alias=AliasChoices("consultationFee", "consultation_fee"),
    )

    @field_validator("available_days", mode="before")
    @classmethod
    def _parse_days(cls, value):
        if value is None:
            return value
        return [Weekday.parse(day) if isinstance(day, str) else day for day in value]

    @model_validator(mode="after")
    def _strip_seconds(self) -> "DoctorScheduleUpdate":
        for name in ("available_from", "available_to"):
            value = getattr(self, name)
            if value is not None:
                setattr(self, name, value.replace(second=0, microsecond=0))
        return self
