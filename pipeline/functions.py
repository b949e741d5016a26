"""Background assistant reply.

Runs after POST /api/messages has already answered 201, so nothing here can
reach the HTTP caller:

  1: Load recent room history
  2: Generate the reply      (completion API, retried, never raises)
  3: Persist as the AI pseudo-user and bump the room timestamp

Any failure is logged and replaced by a fallback chat message so the user
sees a degraded reply instead of silence.
"""

import logging
from uuid import UUID

from sqlmodel import Session as DBSession

from backend.core.database import get_engine
from backend.core.settings import settings
from backend.models.user import AI_USER_ID
from backend.services.assistant_user import get_or_create_ai_user
from pipeline.stages.completion import generate_ai_response
from pipeline.stages.db_helpers import post_message, touch_chat_room
from pipeline.stages.history import format_conversation_history, load_recent_history

logger = logging.getLogger(__name__)

FALLBACK_MESSAGE = "I'm sorry, I'm having trouble responding right now. Please try again."


def run_assistant_reply(chat_room_id: UUID, user_message: str) -> None:
    logger.info("Starting AI response generation for room %s", chat_room_id)
    try:
        recent = load_recent_history(chat_room_id, settings.AI_HISTORY_LIMIT)
        # The just-posted message is passed on its own; keeping it in the
        # history would send it twice.
        if recent and recent[-1].user_id != AI_USER_ID and recent[-1].content == user_message:
            recent = recent[:-1]
        logger.info("Retrieved conversation history: %d messages", len(recent))

        reply = generate_ai_response(user_message, format_conversation_history(recent))

        with DBSession(get_engine()) as db:
            ai_user = get_or_create_ai_user(db)
            post_message(chat_room_id, ai_user.id, reply, db=db)
            touch_chat_room(chat_room_id, db)
        logger.info("AI response saved for room %s", chat_room_id)
    except Exception:
        logger.exception("AI RESPONSE ERROR [room=%s]", chat_room_id)
        _post_fallback(chat_room_id)


def _post_fallback(chat_room_id: UUID) -> None:
    try:
        with DBSession(get_engine()) as db:
            post_message(chat_room_id, AI_USER_ID, FALLBACK_MESSAGE, db=db)
    except Exception:
        logger.exception("Failed to send fallback AI message [room=%s]", chat_room_id)
