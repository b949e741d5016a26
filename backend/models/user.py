from datetime import UTC, datetime
from uuid import UUID, uuid4

from sqlmodel import Field, SQLModel

# Reserved account that authors every assistant reply.
AI_USER_ID = UUID("00000000-0000-0000-0000-000000000001")
AI_USER_EMAIL = "ai@chatapp.com"
AI_USER_USERNAME = "AI Assistant"


class User(SQLModel, table=True):
    __tablename__ = "users"  # type: ignore[assignment]

    id: UUID = Field(default_factory=uuid4, primary_key=True)
    email: str = Field(unique=True, index=True)
    username: str
    avatar_url: str | None = None
    created_at: datetime = Field(default_factory=lambda: datetime.now(UTC))
    updated_at: datetime = Field(default_factory=lambda: datetime.now(UTC))
