"""Chat service layer."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime

from sqlalchemy import and_, case, func, or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from src.core.exceptions import InvalidInput, NotFound
from src.modules.chat.models import Message
from src.modules.chat.policy import ConversationAccessPolicy
from src.modules.chat.schemas import NO_MESSAGES_YET, ChatPartner, MessageCreate
from src.modules.users.models import User
from src.modules.users.schemas import UserSummary
from src.shared.enums import UserRole
from src.shared.models import utcnow

logger = logging.getLogger(__name__)

_CANDIDATE_ROLES: dict[UserRole, tuple[UserRole, ...]] = {
    UserRole.PATIENT: (UserRole.DOCTOR, UserRole.ADMIN),
    UserRole.DOCTOR: (UserRole.PATIENT, UserRole.ADMIN),
    UserRole.ADMIN: (UserRole.PATIENT, UserRole.DOCTOR),
}


def _between(user_a: str, user_b: str):
    return or_(
        and_(Message.sender_id == user_a, Message.receiver_id == user_b),
        and_(Message.sender_id == user_b, Message.receiver_id == user_a),
    )


async def has_message_between(db: AsyncSession, user_a: str, user_b: str) -> bool:
    result = await db.execute(select(Message.message_id).where(_between(user_a, user_b)).limit(1))
    return result.first() is not None


def _last_activity(partner: ChatPartner) -> float:
    return partner.last_message_time.timestamp() if partner.last_message_time else 0.0


@dataclass(frozen=True)
class ThreadSummary:
    last_message: str
    last_message_time: datetime
    unread_count: int = 0


def build_message(sender_id: str, receiver_id: str, content: str) -> Message:
    now = utcnow()
    return Message(
        sender_id=sender_id,
        receiver_id=receiver_id,
        content=content,
        is_read=False,
        created_at=now,
        updated_at=now,
    )


class ChatService:
    def __init__(self, db: AsyncSession):
        self.db = db
        self.policy = ConversationAccessPolicy(db)

    async def list_chat_users(self, viewer: User) -> list[ChatPartner]:
        roles = _CANDIDATE_ROLES.get(viewer.role, ())
        stmt = (
            select(User)
            .where(
                User.is_active.is_(True),
                User.user_id != viewer.user_id,
                User.role.in_(roles),
            )
            .order_by(User.name)
        )
        candidates = list((await self.db.execute(stmt)).scalars().all())
        eligible = await self.policy.filter_eligible(viewer, candidates)

        threads = await self._thread_summaries(viewer)
        return [self._summarize(partner, threads.get(partner.user_id)) for partner in eligible]

    async def list_conversations(self, viewer: User) -> list[ChatPartner]:
        threads = await self._thread_summaries(viewer)
        if not threads:
            return []
        partners = (await self.db.execute(select(User).where(User.user_id.in_(list(threads))))).scalars().all()
        eligible = await self.policy.filter_eligible(viewer, list(partners))

        conversations = [self._summarize(partner, threads[partner.user_id]) for partner in eligible]
        conversations.sort(key=_last_activity, reverse=True)
        return conversations

    async def get_messages(self, viewer: User, counterpart_id: str) -> list[Message]:
        counterpart = await self._get_user(counterpart_id)
        await self.policy.ensure_eligible(viewer, counterpart)

        stmt = (
            select(Message)
            .options(selectinload(Message.sender), selectinload(Message.receiver))
            .where(_between(viewer.user_id, counterpart.user_id))
            .order_by(Message.created_at.asc(), Message.message_id.asc())
        )
        messages = list((await self.db.execute(stmt)).scalars().all())

        await self.db.execute(
            update(Message)
            .where(
                Message.sender_id == counterpart.user_id,
                Message.receiver_id == viewer.user_id,
                Message.is_read.is_(False),
            )
            .values(is_read=True, read_at=utcnow())
            .execution_options(synchronize_session=False)
        )
        await self.db.commit()
        return messages

    async def send_message(self, viewer: User, payload: MessageCreate) -> Message:
        receiver_id = (payload.receiver_id or "").strip()
        content = (payload.content or "").strip()
        if not receiver_id or not content:
            raise InvalidInput("Receiver ID and content are required")

        receiver = await self._get_user(receiver_id)
        await self.policy.ensure_eligible(viewer, receiver)

        message = build_message(viewer.user_id, receiver.user_id, content)
        self.db.add(message)
        await self.db.commit()
        logger.info("Message %s sent %s -> %s", message.message_id, viewer.user_id, receiver.user_id)

        stmt = (
            select(Message)
            .options(selectinload(Message.sender), selectinload(Message.receiver))
            .where(Message.message_id == message.message_id)
        )
        return (await self.db.execute(stmt)).scalar_one()

    async def unread_count(self, viewer: User) -> int:
        stmt = select(func.count(Message.message_id)).where(
            Message.receiver_id == viewer.user_id,
            Message.is_read.is_(False),
        )
        return (await self.db.execute(stmt)).scalar_one()

    async def _thread_summaries(self, viewer: User) -> dict[str, ThreadSummary]:
        """Latest message and unread count per counterpart, aggregated in SQL."""
        counterpart = case(
            (Message.sender_id == viewer.user_id, Message.receiver_id),
            else_=Message.sender_id,
        )
        ranked = (
            select(
                counterpart.label("partner_id"),
                Message.content,
                Message.created_at,
                func.row_number()
                .over(
                    partition_by=counterpart,
                    order_by=(Message.created_at.desc(), Message.message_id.desc()),
                )
                .label("position"),
            )
            .where(or_(Message.sender_id == viewer.user_id, Message.receiver_id == viewer.user_id))
            .subquery()
        )
        latest = await self.db.execute(
            select(ranked.c.partner_id, ranked.c.content, ranked.c.created_at).where(ranked.c.position == 1)
        )
        unread = await self.db.execute(
            select(Message.sender_id, func.count(Message.message_id))
            .where(Message.receiver_id == viewer.user_id, Message.is_read.is_(False))
            .group_by(Message.sender_id)
        )
        unread_by_partner = {sender_id: count for sender_id, count in unread.all()}
        return {
            partner_id: ThreadSummary(
                last_message=content,
                last_message_time=created_at,
                unread_count=unread_by_partner.get(partner_id, 0),
            )
            for partner_id, content, created_at in latest.all()
        }

    async def _get_user(self, user_id: str) -> User:
        user = await self.db.get(User, user_id)
        if user is None or not user.is_active:
            raise NotFound("User not found")
        return user

    @staticmethod
    def _summarize(partner: User, thread: ThreadSummary | None) -> ChatPartner:
        return ChatPartner(
            **UserSummary.model_validate(partner).model_dump(),
            unread_count=thread.unread_count if thread else 0,
            last_message=thread.last_message if thread else NO_MESSAGES_YET,
            last_message_time=thread.last_message_time if thread else None,
        )
