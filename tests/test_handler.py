import io
import json

import pytest

from roomchat.handler import MessageHandler
from roomchat.models import AppState, Chat, RoomState


@pytest.fixture
def setup():
    app = AppState()
    out = io.StringIO()
    notices = []
    handler = MessageHandler(app, out, lambda title, body: notices.append((title, body)))
    return app, out, notices, handler


def _send(handler, msg_type, data):
    handler.handle(json.dumps({"type": msg_type, "data": data}))


def _user(user_id, nickname):
    return {
        "_id": user_id,
        "email": f"{user_id}@example.com",
        "latest_access": 1000,
        "name": f"name-{user_id}",
        "nickname": nickname,
        "picture": "",
    }


def _room(room_id, name):
    return {"_id": room_id, "roomName": name, "description": "desc", "latestChat": "now"}


def test_login_sets_ticket_and_prints_url(setup):
    app, out, _, handler = setup
    _send(handler, "login-res", {"ticket": "token", "url": "http://example.com/login"})
    assert app.shared.user.ticket == "token"
    lines = out.getvalue().splitlines()
    assert lines[0] == "아래 링크로 접속해 로그인하세요!"
    assert lines[1] == json.dumps("http://example.com/login")


def test_ticket_check_message_printed_once(setup):
    app, out, _, handler = setup
    _send(handler, "ticket-check-res", {"message": "waiting"})
    _send(handler, "ticket-check-res", {"message": "waiting"})
    _send(handler, "ticket-check-res", {"message": "unauth-ticket"})
    assert out.getvalue() == "waiting\n"
    assert app.shared.is_logged_in is False


def test_ticket_check_success_fills_state(setup):
    app, _, _, handler = setup
    room = _room("r1", "general")
    room["participants"] = [{"userId": _user("u2", "bob"), "lastReadAt": 50}]
    data = {
        "id": "u1",
        "email": "alice@example.com",
        "name": "Alice",
        "nickname": "alice",
        "picture": "",
        "rooms": [room],
    }
    _send(handler, "ticket-check-res", data)
    shared = app.shared
    assert shared.is_logged_in is True
    assert shared.user.id == "u1"
    assert shared.user.email == "alice@example.com"
    assert shared.rooms["r1"].room_name == "general"
    assert shared.rooms["r1"].participants == {"u2": 50}
    assert app.participants.participants["u2"].nickname == "bob"


def test_create_room_prints_confirmation(setup):
    app, out, _, handler = setup
    _send(handler, "create-room-res", {"room": _room("r9", "lobby")})
    assert app.shared.rooms["r9"].room_name == "lobby"
    assert "방 이름: lobby" in out.getvalue()
    assert app.join_room.updated is False


def test_join_room_raises_flag(setup):
    app, out, _, handler = setup
    _send(handler, "join-room-res", {"room": _room("r3", "games")})
    assert app.join_room.updated is True
    assert app.shared.rooms["r3"].description == "desc"
    assert out.getvalue() == ""


def test_message_in_other_room_notifies(setup):
    app, _, notices, handler = setup
    app.shared.rooms["r1"] = RoomState(room_id="r1", room_name="general", participants={"u2": 0})
    app.participants.participants["u2"] = app.participants.get("u2")
    app.participants.participants["u2"].nickname = "bob"
    chat = {"userId": "u2", "text": "hello", "createdAt": 10, "roomId": "r1"}
    _send(handler, "send-message-res", {"chat": chat})
    assert app.shared.rooms["r1"].chats == [Chat(user_id="u2", text="hello", created_at=10)]
    assert notices == [("새로운 메시지 알림", "general에서 bob의 새 메시지: hello")]


def test_message_in_current_room_does_not_notify(setup):
    app, _, notices, handler = setup
    room = RoomState(room_id="r1", room_name="general")
    app.shared.rooms["r1"] = room
    app.shared.current_room = room
    chat = {"userId": "u2", "text": "hi", "createdAt": 5, "roomId": "r1"}
    _send(handler, "send-message-res", {"chat": chat})
    assert [c.text for c in room.chats] == ["hi"]
    assert notices == []


def test_room_list_fills_visiting(setup):
    app, _, _, handler = setup
    _send(handler, "get-room-list-res", {"rooms": [_room("a", "A"), _room("b", "B")]})
    assert [r.room_id for r in app.visiting.rooms] == ["a", "b"]
    assert app.visiting.updated is True


def test_empty_room_list_leaves_flag_down(setup):
    app, _, _, handler = setup
    _send(handler, "get-room-list-res", {"rooms": []})
    assert app.visiting.updated is False


def test_chat_list_replaces_current_room_chats(setup):
    app, _, _, handler = setup
    room = RoomState(room_id="r1", chats=[Chat(text="old")])
    app.shared.current_room = room
    person = _user("u2", "bob")
    person["lastReadAt"] = 99
    data = {
        "chats": [{"userId": "u2", "createdAt": 7, "text": "new"}],
        "participants": [person],
    }
    _send(handler, "get-chat-list-res", data)
    assert room.chats == [Chat(user_id="u2", text="new", created_at=7)]
    assert room.participants == {"u2": 99}
    assert app.participants.participants["u2"].email == "u2@example.com"
    assert app.load_chat.updated is True


def test_read_event_updates_last_read(setup):
    app, _, _, handler = setup
    _send(handler, "read-chat-event", {"roomId": "r1", "userId": "u2", "timstamp": 123})
    assert app.shared.rooms["r1"].participants == {"u2": 123}


def test_unknown_type_reported(setup):
    _, out, _, handler = setup
    _send(handler, "mystery", {})
    assert out.getvalue() == "미확인 타입 mystery\n"


def test_malformed_message_goes_to_stderr(setup, capsys):
    app, out, _, handler = setup
    handler.handle("not json")
    assert capsys.readouterr().err == "[JSON 파싱 실패] not json\n"
    assert out.getvalue() == ""


def test_wrong_field_type_is_reported(setup, capsys):
    app, _, _, handler = setup
    _send(handler, "login-res", {"ticket": 5})
    assert "[JSON 파싱 실패]" in capsys.readouterr().err
    assert app.shared.user.ticket == ""