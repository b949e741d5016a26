from datetime import UTC, datetime
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, status
from pydantic import BaseModel
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import col, select

from backend.core.database import commit_or_400, get_async_session
from backend.core.serializers import user_out
from backend.models.user import User

router = APIRouter(prefix="/api/users", tags=["users"])


class CreateUserRequest(BaseModel):
    email: str
    username: str
    avatar_url: str | None = None
    id: UUID | None = None


class UpdateUserRequest(BaseModel):
    email: str | None = None
    username: str | None = None
    avatar_url: str | None = None


async def _get_user_or_404(user_id: UUID, db: AsyncSession) -> User:
    user = await db.get(User, user_id)
    if user is None:
        raise HTTPException(status_code=404, detail="User not found")
    return user


@router.get("")
async def list_users(
    email: str | None = Query(None),
    db: AsyncSession = Depends(get_async_session),
) -> dict:
    query = select(User).order_by(col(User.created_at).desc())
    # The mock login resolves an account by email.
    if email is not None:
        query = query.where(User.email == email)
    users = (await db.execute(query)).scalars().all()
    return {"users": [user_out(u) for u in users]}


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_user(
    body: CreateUserRequest,
    db: AsyncSession = Depends(get_async_session),
) -> dict:
    fields = body.model_dump(exclude_none=True)
    user = User(**fields)
    db.add(user)
    await commit_or_400(db)
    await db.refresh(user)
    return {"user": user_out(user)}


@router.get("/{user_id}")
async def get_user(user_id: UUID, db: AsyncSession = Depends(get_async_session)) -> dict:
    user = await _get_user_or_404(user_id, db)
    return {"user": user_out(user)}


@router.put("/{user_id}")
async def update_user(
    user_id: UUID,
    body: UpdateUserRequest,
    db: AsyncSession = Depends(get_async_session),
) -> dict:
    user = await _get_user_or_404(user_id, db)
    for key, value in body.model_dump(exclude_unset=True).items():
        setattr(user, key, value)
    user.updated_at = datetime.now(UTC)
    db.add(user)
    await commit_or_400(db)
    await db.refresh(user)
    return {"user": user_out(user)}


@router.delete("/{user_id}")
async def delete_user(user_id: UUID, db: AsyncSession = Depends(get_async_session)) -> dict:
    user = await db.get(User, user_id)
    if user is not None:
        await db.delete(user)
        await commit_or_400(db)
    return {"message": "User deleted successfully"}
