"""Room views: the chat screen, joining rooms and loading chat history."""

from __future__ import annotations

import sys
import time
from collections.abc import Callable
from typing import Any

from roomchat.console import (
    Key,
    clear_console,
    key_pressed,
    move_cursor_to,
    read_key,
)
from roomchat.models import AppState, Chat, Participant, VisitingRoom
from roomchat.selector import HIGHLIGHT, RESET, select
from roomchat.tools import prettier, time_ago

POLL_INTERVAL = 0.3
FRAME_INTERVAL = 0.1

GUIDE = "=== /back '뒤로 가기'   /send <메시지> '메시지 보내기'    → '정보 보기' ==="
SEND_PREFIX = "/send "

_PAD = " " * 50

KeySource = Callable[[], "Key | str | None"]


def _write(text: str) -> None:
    sys.stdout.write(text)
    sys.stdout.flush()


def _exit_on_interrupt() -> None:
    _write("\n(SIGINT 감지됨, 종료)\n")
    raise SystemExit(0)


def _poll_key() -> Key | str | None:
    return read_key() if key_pressed() else None


def get_participant(app: AppState, user_id: str) -> Participant:
    """The participant with this id; unknown ids get an empty entry."""
    with app.participants.lock:
        return app.participants.get(user_id)


def _chat_line(app: AppState, chat: Chat) -> str:
    return f"{get_participant(app, chat.user_id).nickname} | {chat.text}"


def format_chat_detail(app: AppState, chat: Chat, now: int | None = None) -> str:
    """One line describing a chat: sender, their last activity, send time, text and readers."""
    with app.participants.lock:
        sender = app.participants.get(chat.user_id)
        detail = (
            f"[채팅 디테일] 닉네임: {sender.nickname}"
            f" | 최근 활동: {time_ago(sender.latest_access // 1000, now)}"
            f" | 전송: {time_ago(chat.created_at // 1000, now)}"
            f" | 내용: {chat.text}"
        )
        if chat.readers:
            names = "".join(
                f"{app.participants.get(reader).name}, "
                for reader in sorted(chat.readers)
            )
            detail += f" | 읽음 ({len(chat.readers)}명): {names}"
    return detail


def enter_room(app: AppState, client: Any, keys: KeySource | None = None) -> None:
    """Show the open room until the user leaves it with /back or Escape.

    ``keys`` returns the next key, or None when no key is waiting. Typing
    ``/send <message>`` and Enter sends the message; Up/Down move the
    highlight and Right shows details of the highlighted chat.
    """
    if keys is None:
        keys = _poll_key
    shared = app.shared
    with shared.lock:
        room = shared.current_room
        if room is None:
            raise RuntimeError("no room is open")
        room_name = room.room_name
        room_id = room.room_id
        user_id = shared.user.id

    base_y = 1
    scroll = 0
    prev_scroll = -1
    last_printed = -1
    buffer = ""
    prev_buffer: str | None = None

    clear_console()
    move_cursor_to(0, 0)
    _write(f"채팅방 이름: {room_name}{_PAD}\n")
    guide_y = base_y

    while True:
        with shared.lock, app.participants.lock:
            chats = room.chats_with_readers()

        if len(chats) > last_printed:
            for index in range(max(0, last_printed), len(chats)):
                move_cursor_to(0, base_y + index)
                _write(_chat_line(app, chats[index]) + _PAD + "\n")
            guide_y = base_y + len(chats)
            move_cursor_to(0, guide_y)
            _write(GUIDE + " " * 20 + "\n" + _PAD)
            last_printed = len(chats)

        if scroll != prev_scroll:
            if 0 <= prev_scroll < len(chats):
                move_cursor_to(0, base_y + prev_scroll)
                _write(RESET + _chat_line(app, chats[prev_scroll]) + _PAD + "\n")
            if 0 <= scroll < len(chats):
                move_cursor_to(0, base_y + scroll)
                _write(HIGHLIGHT + _chat_line(app, chats[scroll]) + _PAD + RESET + "\n")
            _write(RESET)
            prev_scroll = scroll

        prompt = "> " + buffer
        if buffer != prev_buffer:
            move_cursor_to(0, guide_y + 2)
            _write(prompt + " " * max(0, 50 - len(prompt)))
            prev_buffer = buffer
        move_cursor_to(len(prompt), guide_y + 2)

        key = keys()
        if key is None:
            time.sleep(FRAME_INTERVAL)
            continue

        if key is Key.UP:
            if scroll > 0:
                scroll -= 1
        elif key is Key.DOWN:
            if scroll < len(chats) - 1:
                scroll += 1
        elif key is Key.RIGHT:
            if scroll < len(chats):
                move_cursor_to(0, guide_y + 1)
                _write(format_chat_detail(app, chats[scroll]) + " " * 30 + "\n")
        elif key is Key.ENTER:
            line, buffer = buffer, ""
            if line == "/back":
                clear_console()
                break
            if line.startswith(SEND_PREFIX):
                client.send_message(
                    "send-message",
                    {
                        "userId": user_id,
                        "detail": {"roomId": room_id, "message": line[len(SEND_PREFIX):]},
                    },
                )
        elif key is Key.BACKSPACE:
            buffer = buffer[:-1]
        elif key is Key.ESCAPE:
            clear_console()
            break
        elif key is Key.INTERRUPT:
            _exit_on_interrupt()
        elif isinstance(key, str):
            buffer += key

    with shared.lock:
        shared.current_room = None


def handle_room_list(
    app: AppState, client: Any, keys: KeySource | None = None
) -> VisitingRoom | None:
    """Ask for the rooms open to the user, let them pick one and join it.

    Returns the joined room, or None when the user cancels.
    """
    with app.shared.lock:
        user_id = app.shared.user.id
    client.send_message("get-room-list", {"userId": user_id})

    visiting = app.visiting
    while True:
        with visiting.lock:
            if visiting.updated:
                offered = list(visiting.rooms)
                visiting.updated = False
                visiting.rooms.clear()
                break
        time.sleep(POLL_INTERVAL)

    header, rows = prettier(
        ["방 제목", "방 설명", "최근 채팅 시간"],
        [[r.room_name, r.description, r.latest_chat] for r in offered],
    )
    selected = select("등록할 방을 선택해주세요", rows, header, keys)
    if selected is None:
        return None

    chosen = offered[selected]
    client.send_message(
        "join-room", {"userId": user_id, "detail": {"roomId": chosen.room_id}}
    )
    app.join_room.wait_and_reset(POLL_INTERVAL)
    _write("해당 채팅방에 참여했습니다.\n")
    return chosen


def load_chats(app: AppState, client: Any) -> None:
    """Request the open room's chat history and wait until it has arrived."""
    clear_console()
    _write("채팅 기록을 불러오는 중...\n")
    with app.shared.lock:
        room = app.shared.current_room
        if room is None:
            raise RuntimeError("no room is open")
        room_id = room.room_id
    client.send_message("get-chat-list", {"roomId": room_id})
    app.load_chat.wait_and_reset(POLL_INTERVAL)