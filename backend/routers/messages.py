import logging
from datetime import UTC, datetime
from uuid import UUID

from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException, Query, status
from pydantic import BaseModel
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import col, select

from backend.core.database import commit_or_400, get_async_session
from backend.core.serializers import message_out
from backend.models.chat import ChatRoom, Message, MessageType
from backend.models.user import AI_USER_ID, User
from pipeline.functions import run_assistant_reply

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/messages", tags=["messages"])


class SendMessageRequest(BaseModel):
    content: str
    user_id: UUID
    chat_room_id: UUID
    message_type: MessageType = "text"


class UpdateMessageRequest(BaseModel):
    content: str | None = None
    message_type: MessageType | None = None


async def _get_message_or_404(message_id: UUID, db: AsyncSession) -> Message:
    message = await db.get(Message, message_id)
    if message is None:
        raise HTTPException(status_code=404, detail="Message not found")
    return message


@router.get("")
async def list_messages(
    chat_room_id: UUID | None = Query(None, alias="chatRoomId"),
    limit: int = Query(50, ge=1),
    offset: int = Query(0, ge=0),
    db: AsyncSession = Depends(get_async_session),
) -> dict:
    if chat_room_id is None:
        raise HTTPException(status_code=400, detail="chatRoomId is required")
    rows = (
        await db.execute(
            select(Message, User)
            .join(User, col(User.id) == col(Message.user_id), isouter=True)
            .where(Message.chat_room_id == chat_room_id)
            .order_by(col(Message.created_at).desc())
            .offset(offset)
            .limit(limit)
        )
    ).all()
    # Newest page selected; returned in chronological order
    return {"messages": [message_out(m, u) for m, u in reversed(rows)]}


@router.post("", status_code=status.HTTP_201_CREATED)
async def send_message(
    body: SendMessageRequest,
    background_tasks: BackgroundTasks,
    db: AsyncSession = Depends(get_async_session),
) -> dict:
    message = Message(**body.model_dump())
    db.add(message)
    room = await db.get(ChatRoom, body.chat_room_id)
    if room is not None:
        room.updated_at = datetime.now(UTC)
        db.add(room)
    await commit_or_400(db)
    await db.refresh(message)

    if message.user_id != AI_USER_ID:
        logger.info("Scheduling assistant reply for chat room %s", message.chat_room_id)
        background_tasks.add_task(
            run_assistant_reply,
            chat_room_id=message.chat_room_id,
            user_message=message.content,
        )

    author = await db.get(User, message.user_id)
    return {"message": message_out(message, author)}


@router.get("/{message_id}")
async def get_message(message_id: UUID, db: AsyncSession = Depends(get_async_session)) -> dict:
    message = await _get_message_or_404(message_id, db)
    author = await db.get(User, message.user_id)
    room = await db.get(ChatRoom, message.chat_room_id)
    return {"message": message_out(message, author, room)}


@router.put("/{message_id}")
async def update_message(
    message_id: UUID,
    body: UpdateMessageRequest,
    db: AsyncSession = Depends(get_async_session),
) -> dict:
    message = await _get_message_or_404(message_id, db)
    for key, value in body.model_dump(exclude_unset=True).items():
        setattr(message, key, value)
    message.updated_at = datetime.now(UTC)
    db.add(message)
    await commit_or_400(db)
    await db.refresh(message)
    author = await db.get(User, message.user_id)
    return {"message": message_out(message, author)}


@router.delete("/{message_id}")
async def delete_message(message_id: UUID, db: AsyncSession = Depends(get_async_session)) -> dict:
    message = await db.get(Message, message_id)
    if message is not None:
        await db.delete(message)
        await commit_or_400(db)
    return {"message": "Message deleted successfully"}
