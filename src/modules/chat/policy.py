"""Who may exchange messages with whom.

Eligibility is never stored. It is derived from appointments (and, for the
doctor-initiated exception, from existing messages) every time it is checked.
Listing partners, reading history and sending all go through
`ConversationAccessPolicy` so the three paths cannot disagree.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from src.core.exceptions import Forbidden
from src.modules.appointments.models import Appointment
from src.modules.chat.models import Message
from src.modules.doctors.models import Doctor
from src.modules.users.models import User
from src.shared.enums import AppointmentStatus, UserRole

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PairFacts:
    """What is known about one patient/doctor pair."""

    has_appointment: bool = False
    has_completed_appointment: bool = False
    doctor_has_messaged: bool = False


NO_FACTS = PairFacts()


def decide(viewer_role: UserRole, counterpart_role: UserRole, facts: PairFacts = NO_FACTS) -> bool:
    if viewer_role == counterpart_role:
        return False
    if viewer_role == UserRole.ADMIN or counterpart_role == UserRole.ADMIN:
        return True
    if viewer_role == UserRole.DOCTOR:
        # The booking itself ties a doctor to a patient, whatever its status.
        return facts.has_appointment
    if viewer_role == UserRole.PATIENT:
        return facts.has_completed_appointment or facts.doctor_has_messaged
    return False


class ConversationAccessPolicy:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def eligible(self, viewer: User, counterpart: User) -> bool:
        return bool(await self.filter_eligible(viewer, [counterpart]))

    async def ensure_eligible(self, viewer: User, counterpart: User) -> None:
        if not await self.eligible(viewer, counterpart):
            logger.debug("Chat access denied: %s (%s) -> %s", viewer.user_id, viewer.role, counterpart.user_id)
            raise Forbidden(self._denial_message(viewer, counterpart))

    async def filter_eligible(self, viewer: User, candidates: Sequence[User]) -> list[User]:
        candidates = [user for user in candidates if user.user_id != viewer.user_id]
        facts = await self.load_facts(viewer, candidates)
        return [
            user
            for user in candidates
            if decide(viewer.role, user.role, facts.get(user.user_id, NO_FACTS))
        ]

    async def load_facts(self, viewer: User, counterparts: Sequence[User]) -> dict[str, PairFacts]:
        """Facts for every patient/doctor pair between viewer and counterparts, keyed by counterpart id."""
        if viewer.role == UserRole.PATIENT:
            patient_ids = [viewer.user_id]
            doctor_user_ids = [user.user_id for user in counterparts if user.role == UserRole.DOCTOR]
        elif viewer.role == UserRole.DOCTOR:
            patient_ids = [user.user_id for user in counterparts if user.role == UserRole.PATIENT]
            doctor_user_ids = [viewer.user_id]
        else:
            return {}
        if not patient_ids or not doctor_user_ids:
            return {}

        booked: set[tuple[str, str]] = set()
        completed: set[tuple[str, str]] = set()
        appointment_rows = await self.db.execute(
            select(Appointment.patient_id, Doctor.user_id, Appointment.status)
            .join(Doctor, Appointment.doctor_id == Doctor.doctor_id)
            .where(
                Appointment.patient_id.in_(patient_ids),
                Doctor.user_id.in_(doctor_user_ids),
            )
        )
        for patient_id, doctor_user_id, status in appointment_rows.all():
            booked.add((patient_id, doctor_user_id))
            if status == AppointmentStatus.COMPLETED:
                completed.add((patient_id, doctor_user_id))

        message_rows = await self.db.execute(
            select(Message.receiver_id, Message.sender_id)
            .where(
                Message.sender_id.in_(doctor_user_ids),
                Message.receiver_id.in_(patient_ids),
            )
            .distinct()
        )
        messaged = {(patient_id, doctor_user_id) for patient_id, doctor_user_id in message_rows.all()}

        facts: dict[str, PairFacts] = {}
        for patient_id in patient_ids:
            for doctor_user_id in doctor_user_ids:
                pair = (patient_id, doctor_user_id)
                counterpart_id = doctor_user_id if viewer.role == UserRole.PATIENT else patient_id
                facts[counterpart_id] = PairFacts(
                    has_appointment=pair in booked,
                    has_completed_appointment=pair in completed,
                    doctor_has_messaged=pair in messaged,
                )
        return facts

    @staticmethod
    def _denial_message(viewer: User, counterpart: User) -> str:
        if viewer.role == UserRole.PATIENT and counterpart.role == UserRole.DOCTOR:
            return "You can only message doctors with whom you have completed appointments."
        if viewer.role == UserRole.DOCTOR and counterpart.role == UserRole.PATIENT:
            return "You can only message your own patients."
        return "You are not allowed to message this user."
