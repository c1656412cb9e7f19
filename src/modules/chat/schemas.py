"""Chat schemas."""

from datetime import datetime

from pydantic import AliasChoices, BaseModel, ConfigDict, Field

from src.modules.users.schemas import UserSummary
from src.shared.schemas import SuccessResponse

NO_MESSAGES_YET = "No messages yet"


class ChatPartner(UserSummary):
    unread_count: int = Field(0, serialization_alias="unreadCount")
    last_message: str = Field(NO_MESSAGES_YET, serialization_alias="lastMessage")
    last_message_time: datetime | None = Field(None, serialization_alias="lastMessageTime")


class MessagePublic(BaseModel):
    model_config = ConfigDict(from_attributes=True, populate_by_name=True)

    message_id: str = Field(serialization_alias="id")
    sender_id: str = Field(serialization_alias="senderId")
    receiver_id: str = Field(serialization_alias="receiverId")
    content: str
    is_read: bool = Field(serialization_alias="isRead")
    read_at: datetime | None = Field(None, serialization_alias="readAt")
    created_at: datetime = Field(serialization_alias="createdAt")
    sender: UserSummary | None = None
    receiver: UserSummary | None = None


class MessageCreate(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    receiver_id: str | None = Field(None, validation_alias=AliasChoices("receiverId", "receiver_id"))
    content: str | None = None


class ChatUsersResponse(SuccessResponse):
    users: list[ChatPartner]


class ConversationsResponse(SuccessResponse):
    conversations: list[ChatPartner]


class MessagesResponse(SuccessResponse):
    messages: list[MessagePublic]


class SentMessageResponse(SuccessResponse):
    message: MessagePublic


class UnreadCountResponse(SuccessResponse):
    count: int
