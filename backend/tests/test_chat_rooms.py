"""Tests for /api/chat-rooms."""

from datetime import UTC, datetime, timedelta
from uuid import UUID, uuid4

from sqlalchemy import text
from sqlmodel import Session, select

from backend.models.chat import ChatRoom, ChatRoomMember, Message
from backend.models.user import AI_USER_ID, User


def test_create_chat_room_adds_creator_and_assistant(client, user, engine):
    resp = client.post(
        "/api/chat-rooms",
        json={"name": "Book club", "description": "Monthly reads", "created_by": str(user.id)},
    )
    assert resp.status_code == 201
    room = resp.json()["chatRoom"]
    assert room["name"] == "Book club"
    assert room["created_by"] == str(user.id)

    with Session(engine) as db:
        members = db.exec(
            select(ChatRoomMember).where(ChatRoomMember.chat_room_id == UUID(room["id"]))
        ).all()
        roles = {m.user_id: m.role for m in members}
        assert roles == {user.id: "admin", AI_USER_ID: "member"}

        ai_user = db.get(User, AI_USER_ID)
        assert ai_user is not None
        assert ai_user.username == "AI Assistant"
        assert ai_user.email == "ai@chatapp.com"


def test_create_second_room_reuses_assistant_user(client, user, engine):
    for name in ("One", "Two"):
        resp = client.post("/api/chat-rooms", json={"name": name, "created_by": str(user.id)})
        assert resp.status_code == 201

    with Session(engine) as db:
        ai_users = db.exec(select(User).where(User.email == "ai@chatapp.com")).all()
        assert len(ai_users) == 1
        ai_memberships = db.exec(
            select(ChatRoomMember).where(ChatRoomMember.user_id == AI_USER_ID)
        ).all()
        assert len(ai_memberships) == 2


def test_create_chat_room_membership_failure_leaves_no_room(client, user, engine):
    with engine.begin() as conn:
        conn.execute(
            text(
                "CREATE TRIGGER reject_members BEFORE INSERT ON chat_room_members "
                "BEGIN SELECT RAISE(ABORT, 'membership rejected'); END"
            )
        )

    resp = client.post("/api/chat-rooms", json={"name": "Doomed", "created_by": str(user.id)})
    assert resp.status_code == 400
    assert resp.json()["detail"] == "membership rejected"

    with Session(engine) as db:
        assert db.exec(select(ChatRoom).where(ChatRoom.name == "Doomed")).first() is None


def test_create_chat_room_missing_creator_rejected(client):
    resp = client.post("/api/chat-rooms", json={"name": "Nobody's"})
    assert resp.status_code == 422


def test_list_chat_rooms_ordered_by_activity(client, db, user):
    now = datetime.now(UTC)
    stale = ChatRoom(name="Stale", created_by=user.id, updated_at=now - timedelta(hours=2))
    fresh = ChatRoom(name="Fresh", created_by=user.id, updated_at=now)
    db.add(stale)
    db.add(fresh)
    db.commit()

    resp = client.get("/api/chat-rooms")
    assert resp.status_code == 200
    names = [r["name"] for r in resp.json()["chatRooms"]]
    assert names == ["Fresh", "Stale"]


def test_list_chat_rooms_includes_creator_members_and_count(client, db, user, chat_room):
    db.add(Message(content="hi", user_id=user.id, chat_room_id=chat_room.id))
    db.add(Message(content="again", user_id=user.id, chat_room_id=chat_room.id))
    db.commit()

    resp = client.get("/api/chat-rooms")
    rooms = resp.json()["chatRooms"]
    assert len(rooms) == 1
    room = rooms[0]
    assert room["created_by_user"] == {"username": "tester", "avatar_url": None}
    assert room["message_count"] == 2
    assert room["members"][0]["user_id"] == str(user.id)
    assert room["members"][0]["role"] == "admin"
    assert room["members"][0]["user"]["username"] == "tester"


def test_list_chat_rooms_filtered_by_member(client, db, user, other_user, chat_room):
    other_room = ChatRoom(name="Private", created_by=other_user.id)
    db.add(other_room)
    db.add(ChatRoomMember(chat_room_id=other_room.id, user_id=other_user.id, role="admin"))
    db.commit()

    resp = client.get("/api/chat-rooms", params={"userId": str(user.id)})
    assert resp.status_code == 200
    assert [r["id"] for r in resp.json()["chatRooms"]] == [str(chat_room.id)]


def test_list_chat_rooms_for_user_without_rooms_is_empty(client, chat_room):
    resp = client.get("/api/chat-rooms", params={"userId": str(uuid4())})
    assert resp.status_code == 200
    assert resp.json() == {"chatRooms": []}


def test_get_chat_room(client, user, chat_room):
    resp = client.get(f"/api/chat-rooms/{chat_room.id}")
    assert resp.status_code == 200
    room = resp.json()["chatRoom"]
    assert room["name"] == "General"
    assert room["created_by_user"]["username"] == "tester"
    assert room["members"][0]["joined_at"]


def test_get_chat_room_404(client):
    resp = client.get(f"/api/chat-rooms/{uuid4()}")
    assert resp.status_code == 404
    assert resp.json()["detail"] == "Chat room not found"


def test_update_chat_room(client, chat_room):
    resp = client.put(f"/api/chat-rooms/{chat_room.id}", json={"name": "Renamed"})
    assert resp.status_code == 200
    room = resp.json()["chatRoom"]
    assert room["name"] == "Renamed"
    assert room["description"] == "Anything goes"


def test_update_chat_room_404(client):
    resp = client.put(f"/api/chat-rooms/{uuid4()}", json={"name": "Nope"})
    assert resp.status_code == 404


def test_delete_chat_room(client, chat_room, engine):
    resp = client.delete(f"/api/chat-rooms/{chat_room.id}")
    assert resp.status_code == 200
    assert resp.json() == {"message": "Chat room deleted successfully"}
    with Session(engine) as db:
        assert db.get(ChatRoom, chat_room.id) is None


def test_duplicate_memberships_are_not_prevented(db, user, chat_room):
    # Membership uniqueness belongs to the hosted schema, not the models.
    db.add(ChatRoomMember(chat_room_id=chat_room.id, user_id=user.id, role="member"))
    db.commit()
    rows = db.exec(select(ChatRoomMember).where(ChatRoomMember.user_id == user.id)).all()
    assert len(rows) == 2
