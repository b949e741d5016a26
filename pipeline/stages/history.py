"""Conversation history for assistant replies.

Messages authored by the AI pseudo-user are the assistant's turns; every
other author is the user.
"""

from collections.abc import Iterable
from typing import Literal, TypedDict
from uuid import UUID

from sqlmodel import Session as DBSession
from sqlmodel import col, select

from backend.core.database import get_engine
from backend.models.chat import Message
from backend.models.user import AI_USER_ID


class ChatTurn(TypedDict):
    role: Literal["system", "user", "assistant"]
    content: str


def format_conversation_history(messages: Iterable[Message]) -> list[ChatTurn]:
    return [
        {
            "role": "assistant" if m.user_id == AI_USER_ID else "user",
            "content": m.content,
        }
        for m in messages
    ]


def enforce_alternation(history: list[ChatTurn]) -> list[ChatTurn]:
    """Make history strictly alternate user/assistant.

    A turn with the same role as the one kept before it is skipped, and a
    trailing user turn is dropped because the new user message follows.
    """
    filtered: list[ChatTurn] = []
    last_role: str | None = None
    for turn in history:
        if turn["role"] != last_role:
            filtered.append(turn)
            last_role = turn["role"]
    if filtered and filtered[-1]["role"] == "user":
        filtered.pop()
    return filtered


def load_recent_history(chat_room_id: UUID, limit: int) -> list[Message]:
    """Return the newest `limit` messages of a room in chronological order."""
    with DBSession(get_engine()) as db:
        recent = db.exec(
            select(Message)
            .where(Message.chat_room_id == chat_room_id)
            .order_by(col(Message.created_at).desc())
            .limit(limit)
        ).all()
        for m in recent:
            db.expunge(m)
    return list(reversed(recent))
