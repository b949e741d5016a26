from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import col, select

from backend.core.database import commit_or_400, get_async_session
from backend.core.serializers import member_out
from backend.models.chat import ChatRoomMember, MemberRole
from backend.models.user import User

router = APIRouter(prefix="/api/chat-rooms/{room_id}/members", tags=["members"])


class AddMemberRequest(BaseModel):
    user_id: UUID
    role: MemberRole = "member"


class UpdateMemberRequest(BaseModel):
    role: MemberRole


async def _member_with_user(
    room_id: UUID, user_id: UUID, db: AsyncSession
) -> tuple[ChatRoomMember, User | None] | None:
    row = (
        await db.execute(
            select(ChatRoomMember, User)
            .join(User, col(User.id) == col(ChatRoomMember.user_id), isouter=True)
            .where(
                ChatRoomMember.chat_room_id == room_id,
                ChatRoomMember.user_id == user_id,
            )
        )
    ).first()
    return (row[0], row[1]) if row is not None else None


@router.get("")
async def list_members(room_id: UUID, db: AsyncSession = Depends(get_async_session)) -> dict:
    rows = (
        await db.execute(
            select(ChatRoomMember, User)
            .join(User, col(User.id) == col(ChatRoomMember.user_id), isouter=True)
            .where(ChatRoomMember.chat_room_id == room_id)
            .order_by(col(ChatRoomMember.joined_at))
        )
    ).all()
    return {"members": [member_out(m, u) for m, u in rows]}


@router.post("", status_code=status.HTTP_201_CREATED)
async def add_member(
    room_id: UUID,
    body: AddMemberRequest,
    db: AsyncSession = Depends(get_async_session),
) -> dict:
    member = ChatRoomMember(chat_room_id=room_id, user_id=body.user_id, role=body.role)
    db.add(member)
    await commit_or_400(db)
    await db.refresh(member)
    user = await db.get(User, member.user_id)
    return {"member": member_out(member, user)}


@router.put("/{user_id}")
async def update_member(
    room_id: UUID,
    user_id: UUID,
    body: UpdateMemberRequest,
    db: AsyncSession = Depends(get_async_session),
) -> dict:
    found = await _member_with_user(room_id, user_id, db)
    if found is None:
        raise HTTPException(status_code=404, detail="Member not found")
    member, user = found
    member.role = body.role
    db.add(member)
    await commit_or_400(db)
    await db.refresh(member)
    return {"member": member_out(member, user)}


@router.delete("/{user_id}")
async def remove_member(
    room_id: UUID,
    user_id: UUID,
    db: AsyncSession = Depends(get_async_session),
) -> dict:
    members = (
        (
            await db.execute(
                select(ChatRoomMember).where(
                    ChatRoomMember.chat_room_id == room_id,
                    ChatRoomMember.user_id == user_id,
                )
            )
        )
        .scalars()
        .all()
    )
    for member in members:
        await db.delete(member)
    await commit_or_400(db)
    return {"message": "Member removed successfully"}
