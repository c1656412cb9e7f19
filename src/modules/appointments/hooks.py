"""Side effects of an appointment reaching `completed`.

These run after the status change is committed. Each effect is best-effort:
a failure is logged and never reaches the caller.
"""

from __future__ import annotations

import logging
from decimal import Decimal

from sqlalchemy.ext.asyncio import AsyncSession

from src.modules.appointments.models import Appointment
from src.modules.chat.service import build_message, has_message_between
from src.modules.payments.client import FeeSplitClient, FeeSplitError

logger = logging.getLogger(__name__)

WELCOME_TEMPLATE = (
    "Hello {name}, your appointment has been completed. "
    "Feel free to reach out if you have any questions or concerns."
)


async def run_completion_hooks(db: AsyncSession, appointment: Appointment, fee_client: FeeSplitClient) -> None:
    # Each hook swallows its own failures, so one never blocks the other.
    await split_consultation_fee(appointment, fee_client)
    await send_welcome_message(db, appointment)


async def split_consultation_fee(appointment: Appointment, fee_client: FeeSplitClient) -> None:
    fee = Decimal(appointment.doctor.consultation_fee or 0)
    if fee <= 0:
        logger.debug("No consultation fee for appointment %s; skipping fee split", appointment.appointment_id)
        return
    try:
        await fee_client.process_fee_split(appointment.appointment_id, fee)
    except FeeSplitError:
        logger.exception("Fee split failed for appointment %s", appointment.appointment_id)
    except Exception:
        logger.exception("Unexpected error during fee split for appointment %s", appointment.appointment_id)


async def send_welcome_message(db: AsyncSession, appointment: Appointment) -> None:
    appointment_id = appointment.appointment_id
    doctor_user_id = appointment.doctor.user_id
    patient_id = appointment.patient_id
    try:
        if await has_message_between(db, doctor_user_id, patient_id):
            logger.debug("Conversation already open for appointment %s", appointment_id)
            return
        content = WELCOME_TEMPLATE.format(name=appointment.patient.name)
        db.add(build_message(doctor_user_id, patient_id, content))
        await db.commit()
    except Exception:
        await db.rollback()
        logger.exception("Could not create welcome message for appointment %s", appointment_id)
        return
    logger.info("Welcome message sent for appointment %s", appointment_id)
