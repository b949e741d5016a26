from datetime import UTC, datetime
from typing import Literal
from uuid import UUID, uuid4

from sqlmodel import Field, SQLModel

MemberRole = Literal["admin", "member"]
MessageType = Literal["text", "image", "file"]


class ChatRoom(SQLModel, table=True):
    __tablename__ = "chat_rooms"  # type: ignore[assignment]

    id: UUID = Field(default_factory=uuid4, primary_key=True)
    name: str
    description: str | None = None
    created_by: UUID = Field(foreign_key="users.id", index=True, ondelete="CASCADE")
    created_at: datetime = Field(default_factory=lambda: datetime.now(UTC))
    # Bumped whenever a message is posted so room lists sort by activity.
    updated_at: datetime = Field(default_factory=lambda: datetime.now(UTC))


class ChatRoomMember(SQLModel, table=True):
    """Membership row. Duplicates are not prevented here; the hosted schema owns that."""

    __tablename__ = "chat_room_members"  # type: ignore[assignment]

    id: UUID = Field(default_factory=uuid4, primary_key=True)
    chat_room_id: UUID = Field(foreign_key="chat_rooms.id", index=True, ondelete="CASCADE")
    user_id: UUID = Field(foreign_key="users.id", index=True, ondelete="CASCADE")
    role: str = Field(default="member")  # "admin" | "member"
    joined_at: datetime = Field(default_factory=lambda: datetime.now(UTC))


class Message(SQLModel, table=True):
    __tablename__ = "messages"  # type: ignore[assignment]

    id: UUID = Field(default_factory=uuid4, primary_key=True)
    content: str
    user_id: UUID = Field(foreign_key="users.id", index=True, ondelete="CASCADE")
    chat_room_id: UUID = Field(foreign_key="chat_rooms.id", index=True, ondelete="CASCADE")
    message_type: str = Field(default="text")  # "text" | "image" | "file"
    created_at: datetime = Field(default_factory=lambda: datetime.now(UTC))
    updated_at: datetime = Field(default_factory=lambda: datetime.now(UTC))
