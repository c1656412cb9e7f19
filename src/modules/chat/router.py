"""Chat API routes."""

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from src.core.database import get_db
from src.core.deps import get_current_user
from src.modules.chat.schemas import (
    ChatUsersResponse,
    ConversationsResponse,
    MessageCreate,
    MessagePublic,
    MessagesResponse,
    SentMessageResponse,
    UnreadCountResponse,
)
from src.modules.chat.service import ChatService
from src.modules.users.models import User

router = APIRouter(prefix="/api/v1/chat", tags=["chat"])


def get_service(db: AsyncSession = Depends(get_db)) -> ChatService:
    return ChatService(db)


@router.get("/users", response_model=ChatUsersResponse)
async def chat_users(
    current_user: User = Depends(get_current_user),
    service: ChatService = Depends(get_service),
) -> ChatUsersResponse:
    return ChatUsersResponse(users=await service.list_chat_users(current_user))


@router.get("/conversations", response_model=ConversationsResponse)
async def conversations(
    current_user: User = Depends(get_current_user),
    service: ChatService = Depends(get_service),
) -> ConversationsResponse:
    return ConversationsResponse(conversations=await service.list_conversations(current_user))


@router.get("/messages/{user_id}", response_model=MessagesResponse)
async def messages_with(
    user_id: str,
    current_user: User = Depends(get_current_user),
    service: ChatService = Depends(get_service),
) -> MessagesResponse:
    messages = await service.get_messages(current_user, user_id)
    return MessagesResponse(messages=[MessagePublic.model_validate(message) for message in messages])


@router.post("/messages", response_model=SentMessageResponse, status_code=status.HTTP_201_CREATED)
async def send_message(
    payload: MessageCreate,
    current_user: User = Depends(get_current_user),
    service: ChatService = Depends(get_service),
) -> SentMessageResponse:
    message = await service.send_message(current_user, payload)
    return SentMessageResponse(message=MessagePublic.model_validate(message))


@router.get("/unread-count", response_model=UnreadCountResponse)
async def unread_count(
    current_user: User = Depends(get_current_user),
    service: ChatService = Depends(get_service),
) -> UnreadCountResponse:
    return UnreadCountResponse(count=await service.unread_count(current_user))
