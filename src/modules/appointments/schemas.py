"""Appointments schemas."""

from datetime import date, datetime, time

from pydantic import AliasChoices, BaseModel, ConfigDict, Field

from src.modules.doctors.schemas import DoctorSummary
from src.modules.users.schemas import UserSummary
from src.shared.enums import AppointmentStatus
from src.shared.schemas import CursorPagination, SuccessResponse

DEFAULT_PAGE_SIZE = 10
MAX_PAGE_SIZE = 100


class AppointmentPublic(BaseModel):
    model_config = ConfigDict(from_attributes=True, populate_by_name=True)

    appointment_id: str = Field(serialization_alias="id")
    patient_id: str = Field(serialization_alias="patientId")
    doctor_id: str = Field(serialization_alias="doctorId")
    appointment_date: date = Field(serialization_alias="appointmentDate")
    appointment_time: time = Field(serialization_alias="appointmentTime")
    date_time: datetime = Field(serialization_alias="dateTime")
    status: AppointmentStatus
    reason: str | None = None
    created_at: datetime = Field(serialization_alias="createdAt")
    updated_at: datetime | None = Field(None, serialization_alias="updatedAt")
    patient: UserSummary | None = None
    doctor: DoctorSummary | None = None


class AppointmentCreate(BaseModel):
    """Raw booking request; values are parsed by the service so errors map to 400."""

    model_config = ConfigDict(populate_by_name=True)

    doctor_id: str | None = Field(None, validation_alias=AliasChoices("doctorId", "doctor_id"))
    appointment_date: str | None = Field(None, validation_alias=AliasChoices("date", "appointmentDate"))
    appointment_time: str | None = Field(None, validation_alias=AliasChoices("time", "appointmentTime"))
    reason: str | None = None


class AppointmentStatusUpdate(BaseModel):
    status: AppointmentStatus


class AppointmentFilters(BaseModel):
    status: AppointmentStatus | None = None
    doctor_id: str | None = None
    cursor: str | None = None
    limit: int = Field(DEFAULT_PAGE_SIZE, ge=1, le=MAX_PAGE_SIZE)


class AppointmentPage(SuccessResponse):
    appointments: list[AppointmentPublic]
    pagination: CursorPagination


class AppointmentResponse(SuccessResponse):
    message: str | None = None
    appointment: AppointmentPublic
