"""Response shapes shared by the routers.

Rows are dumped whole; related rows are embedded as small summaries, the
shape the browser client renders from.
"""

from backend.models.chat import ChatRoom, ChatRoomMember, Message
from backend.models.user import User


def user_summary(user: User | None, *, with_email: bool = False) -> dict | None:
    if user is None:
        return None
    summary = {
        "id": str(user.id),
        "username": user.username,
        "avatar_url": user.avatar_url,
    }
    if with_email:
        summary["email"] = user.email
    return summary


def user_out(user: User) -> dict:
    return user.model_dump(mode="json")


def message_out(
    message: Message,
    author: User | None,
    room: ChatRoom | None = None,
) -> dict:
    data = message.model_dump(mode="json")
    data["user"] = user_summary(author)
    if room is not None:
        data["chat_room"] = {"id": str(room.id), "name": room.name}
    return data


def member_out(member: ChatRoomMember, user: User | None) -> dict:
    data = member.model_dump(mode="json")
    data["user"] = user_summary(user, with_email=True)
    return data


def chat_room_out(
    room: ChatRoom,
    creator: User | None = None,
    members: list[tuple[ChatRoomMember, User | None]] | None = None,
    message_count: int | None = None,
) -> dict:
    data = room.model_dump(mode="json")
    if creator is not None:
        data["created_by_user"] = {"username": creator.username, "avatar_url": creator.avatar_url}
    if members is not None:
        data["members"] = [
            {
                "user_id": str(m.user_id),
                "role": m.role,
                "joined_at": m.joined_at.isoformat(),
                "user": user_summary(u),
            }
            for m, u in members
        ]
    if message_count is not None:
        data["message_count"] = message_count
    return data
