from backend.models.chat import ChatRoom, ChatRoomMember, Message
from backend.models.user import User

__all__ = [
    "User",
    "ChatRoom",
    "ChatRoomMember",
    "Message",
]
