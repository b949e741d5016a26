"""Shared DB utilities for the assistant reply pipeline.

Helpers take an explicit db session so the reply and the room timestamp
bump can be written by the same caller-owned session.
"""

from datetime import UTC, datetime
from uuid import UUID

from sqlmodel import Session as DBSession

from backend.models.chat import ChatRoom, Message


def post_message(
    chat_room_id: UUID,
    user_id: UUID,
    content: str,
    *,
    message_type: str = "text",
    db: DBSession,
) -> Message:
    """Persist a Message row and return the refreshed instance."""
    message = Message(
        chat_room_id=chat_room_id,
        user_id=user_id,
        content=content,
        message_type=message_type,
    )
    db.add(message)
    db.commit()
    db.refresh(message)
    return message


def touch_chat_room(chat_room_id: UUID, db: DBSession) -> None:
    """Bump a room's updated_at so room lists sort it as most recently active."""
    room = db.get(ChatRoom, chat_room_id)
    if room is None:
        return
    room.updated_at = datetime.now(UTC)
    db.add(room)
    db.commit()
