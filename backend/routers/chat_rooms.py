import logging
from collections import defaultdict
from collections.abc import Sequence
from datetime import UTC, datetime
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, status
from pydantic import BaseModel
from sqlalchemy import func
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session, col, select

from backend.core.database import commit_sync_or_400, get_session
from backend.core.serializers import chat_room_out
from backend.models.chat import ChatRoom, ChatRoomMember, Message
from backend.models.user import User
from backend.services.assistant_user import get_or_create_ai_user

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/chat-rooms", tags=["chat-rooms"])


class CreateChatRoomRequest(BaseModel):
    name: str
    description: str | None = None
    created_by: UUID


class UpdateChatRoomRequest(BaseModel):
    name: str | None = None
    description: str | None = None


def _members_with_users(
    room_ids: Sequence[UUID], db: Session
) -> dict[UUID, list[tuple[ChatRoomMember, User | None]]]:
    rows = db.exec(
        select(ChatRoomMember, User)
        .join(User, col(User.id) == col(ChatRoomMember.user_id), isouter=True)
        .where(col(ChatRoomMember.chat_room_id).in_(room_ids))
        .order_by(col(ChatRoomMember.joined_at))
    ).all()
    by_room: dict[UUID, list[tuple[ChatRoomMember, User | None]]] = defaultdict(list)
    for member, user in rows:
        by_room[member.chat_room_id].append((member, user))
    return by_room


def _creators(rooms: Sequence[ChatRoom], db: Session) -> dict[UUID, User]:
    creator_ids = {r.created_by for r in rooms}
    users = db.exec(select(User).where(col(User.id).in_(creator_ids))).all()
    return {u.id: u for u in users}


@router.get("")
def list_chat_rooms(
    user_id: UUID | None = Query(None, alias="userId"),
    db: Session = Depends(get_session),
) -> dict:
    query = select(ChatRoom)
    if user_id is not None:
        room_ids = db.exec(
            select(ChatRoomMember.chat_room_id).where(ChatRoomMember.user_id == user_id)
        ).all()
        if not room_ids:
            return {"chatRooms": []}
        query = query.where(col(ChatRoom.id).in_(room_ids))

    rooms = db.exec(query.order_by(col(ChatRoom.updated_at).desc())).all()
    if not rooms:
        return {"chatRooms": []}

    # Creators, members and message counts are fetched in one query each to avoid N+1
    ids = [r.id for r in rooms]
    creators = _creators(rooms, db)
    members = _members_with_users(ids, db)
    counts = dict(
        db.exec(
            select(Message.chat_room_id, func.count(col(Message.id)))
            .where(col(Message.chat_room_id).in_(ids))
            .group_by(col(Message.chat_room_id))
        ).all()
    )
    return {
        "chatRooms": [
            chat_room_out(
                r,
                creator=creators.get(r.created_by),
                members=members.get(r.id, []),
                message_count=counts.get(r.id, 0),
            )
            for r in rooms
        ]
    }


@router.post("", status_code=status.HTTP_201_CREATED)
def create_chat_room(body: CreateChatRoomRequest, db: Session = Depends(get_session)) -> dict:
    room = ChatRoom(**body.model_dump(exclude_none=True))
    db.add(room)
    # Room and the creator's admin membership commit together: if the
    # membership is rejected the room is never persisted.
    db.add(ChatRoomMember(chat_room_id=room.id, user_id=room.created_by, role="admin"))
    commit_sync_or_400(db)
    db.refresh(room)

    try:
        ai_user = get_or_create_ai_user(db)
        db.add(ChatRoomMember(chat_room_id=room.id, user_id=ai_user.id, role="member"))
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        logger.warning("Could not add AI assistant to chat room %s", room.id, exc_info=True)
    db.refresh(room)

    return {"chatRoom": chat_room_out(room)}


def _get_room_or_404(room_id: UUID, db: Session) -> ChatRoom:
    room = db.get(ChatRoom, room_id)
    if room is None:
        raise HTTPException(status_code=404, detail="Chat room not found")
    return room


@router.get("/{room_id}")
def get_chat_room(room_id: UUID, db: Session = Depends(get_session)) -> dict:
    room = _get_room_or_404(room_id, db)
    creator = db.get(User, room.created_by)
    members = _members_with_users([room.id], db)
    return {"chatRoom": chat_room_out(room, creator=creator, members=members.get(room.id, []))}


@router.put("/{room_id}")
def update_chat_room(
    room_id: UUID,
    body: UpdateChatRoomRequest,
    db: Session = Depends(get_session),
) -> dict:
    room = _get_room_or_404(room_id, db)
    for key, value in body.model_dump(exclude_unset=True).items():
        setattr(room, key, value)
    room.updated_at = datetime.now(UTC)
    db.add(room)
    commit_sync_or_400(db)
    db.refresh(room)
    return {"chatRoom": chat_room_out(room)}


@router.delete("/{room_id}")
def delete_chat_room(room_id: UUID, db: Session = Depends(get_session)) -> dict:
    room = db.get(ChatRoom, room_id)
    if room is not None:
        db.delete(room)
        commit_sync_or_400(db)
    return {"message": "Chat room deleted successfully"}
