"""Applies messages received from the server to the client state."""

from __future__ import annotations

import json
import sys
from collections.abc import Callable
from typing import Any, TextIO

from roomchat.models import (
    AppState,
    Chat,
    Participant,
    RoomState,
    VisitingRoom,
)


def _text(obj: dict[str, Any], key: str) -> str:
    value = obj[key]
    if not isinstance(value, str):
        raise TypeError(f"{key!r} must be a string")
    return value


def _number(obj: dict[str, Any], key: str) -> int:
    value = obj[key]
    if not isinstance(value, (bool, int, float)):
        raise TypeError(f"{key!r} must be a number")
    return int(value)


def _array(obj: dict[str, Any], key: str) -> list[Any]:
    value = obj.get(key)
    if value is None:
        return []
    if not isinstance(value, list):
        raise TypeError(f"{key!r} must be an array")
    return value


def _participant(obj: dict[str, Any]) -> Participant:
    return Participant(
        id=_text(obj, "_id"),
        email=_text(obj, "email"),
        latest_access=_number(obj, "latest_access"),
        name=_text(obj, "name"),
        nickname=_text(obj, "nickname"),
        picture=_text(obj, "picture"),
    )


def _room(obj: dict[str, Any]) -> RoomState:
    return RoomState(
        room_id=_text(obj, "_id"),
        room_name=_text(obj, "roomName"),
        description=_text(obj, "description"),
        latest_chat=_text(obj, "latestChat"),
    )


class MessageHandler:
    """Dispatches server messages by their ``type`` field."""

    def __init__(
        self,
        app: AppState,
        out: TextIO | None = None,
        notify: Callable[[str, str], Any] | None = None,
    ) -> None:
        self.app = app
        self.out = out if out is not None else sys.stdout
        self.notify = notify if notify is not None else self._print_notice
        self._last_printed: str | None = None
        self._handlers: dict[str, Callable[[str, Any], None]] = {
            "login-res": self._login,
            "ticket-check-res": self._ticket_check,
            "create-room-res": self._room_joined,
            "join-room-res": self._room_joined,
            "send-message-res": self._new_message,
            "get-room-list-res": self._room_list,
            "get-chat-list-res": self._chat_list,
            "read-chat-event": self._read_event,
        }

    def _print(self, text: str) -> None:
        self.out.write(text + "\n")
        self.out.flush()

    def _print_once(self, text: str) -> None:
        if text != self._last_printed:
            self._print(text)
            self._last_printed = text

    def _print_notice(self, title: str, body: str) -> None:
        self._print(f"[{title}] {body}")

    def handle(self, response: str) -> None:
        """Apply one raw JSON message; malformed messages are reported on stderr."""
        try:
            parsed = json.loads(response)
            msg_type = _text(parsed, "type")
            action = self._handlers.get(msg_type)
            if action is None:
                self._print(f"미확인 타입 {msg_type}")
            else:
                action(msg_type, parsed.get("data"))
        except (ValueError, KeyError, TypeError, AttributeError):
            sys.stderr.write(f"[JSON 파싱 실패] {response}\n")
            sys.stderr.flush()

    def _login(self, _type: str, data: Any) -> None:
        shared = self.app.shared
        with shared.lock:
            shared.user.ticket = _text(data, "ticket")
            self._print("아래 링크로 접속해 로그인하세요!")
            self._print(json.dumps(data.get("url"), ensure_ascii=False))

    def _ticket_check(self, _type: str, data: Any) -> None:
        shared = self.app.shared
        people = self.app.participants
        with shared.lock, people.lock:
            if "message" in data:
                message = _text(data, "message")
                if message != "unauth-ticket":
                    self._print_once(message)
                return
            shared.is_logged_in = True
            user = shared.user
            user.id = _text(data, "id")
            user.email = _text(data, "email")
            user.name = _text(data, "name")
            user.nickname = _text(data, "nickname")
            user.picture = _text(data, "picture")

            for entry in _array(data, "rooms"):
                room = _room(entry)
                for member in _array(entry, "participants"):
                    person = _participant(member["userId"])
                    people.participants[person.id] = person
                    room.participants.setdefault(person.id, _number(member, "lastReadAt"))
                shared.rooms[room.room_id] = room

    def _room_joined(self, msg_type: str, data: Any) -> None:
        shared = self.app.shared
        joined = self.app.join_room
        with shared.lock, joined.lock:
            room = _room(data["room"])
            shared.rooms[room.room_id] = room
            if msg_type.startswith("create"):
                self._print(f"방이 성공적으로 생성되었습니다!\n방 이름: {room.room_name}")
            else:
                joined.updated = True

    def _new_message(self, _type: str, data: Any) -> None:
        raw = data["chat"]
        chat = Chat(
            user_id=_text(raw, "userId"),
            text=_text(raw, "text"),
            created_at=_number(raw, "createdAt"),
        )
        room_id = _text(raw, "roomId")

        shared = self.app.shared
        with shared.lock:
            room = shared.rooms.setdefault(room_id, RoomState())
            sender = chat.user_id if chat.user_id in room.participants else ""
            room.chats.append(chat)

            current = shared.current_room
            if current is None or current.room_id != room_id:
                with self.app.participants.lock:
                    nickname = self.app.participants.get(sender).nickname
                body = f"{room.room_name}에서 {nickname}의 새 메시지: {chat.text}"
                self.notify("새로운 메시지 알림", body)

    def _room_list(self, _type: str, data: Any) -> None:
        visiting = self.app.visiting
        with visiting.lock:
            for entry in _array(data, "rooms"):
                visiting.rooms.append(
                    VisitingRoom(
                        room_id=_text(entry, "_id"),
                        room_name=_text(entry, "roomName"),
                        description=_text(entry, "description"),
                        latest_chat=_text(entry, "latestChat"),
                    )
                )
                visiting.updated = True

    def _chat_list(self, _type: str, data: Any) -> None:
        loaded = self.app.load_chat
        shared = self.app.shared
        people = self.app.participants
        with loaded.lock, shared.lock, people.lock:
            room = shared.current_room
            room.chats.clear()
            for entry in _array(data, "chats"):
                room.chats.append(
                    Chat(
                        user_id=_text(entry, "userId"),
                        created_at=_number(entry, "createdAt"),
                        text=_text(entry, "text"),
                    )
                )
            for entry in _array(data, "participants"):
                person = _participant(entry)
                people.participants[person.id] = person
                room.participants[person.id] = _number(entry, "lastReadAt")
            loaded.updated = True

    def _read_event(self, _type: str, data: Any) -> None:
        shared = self.app.shared
        with shared.lock:
            room = shared.rooms.setdefault(_text(data, "roomId"), RoomState())
            room.participants[_text(data, "userId")] = _number(data, "timstamp")