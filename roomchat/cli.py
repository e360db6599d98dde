"""The interactive chat client: login, menu and room navigation."""

from __future__ import annotations

import argparse
import subprocess
import sys
import threading
import time
from collections.abc import Callable
from typing import Any, TextIO

from roomchat.console import clear_current_line, is_crazy_console, move_cursor_up
from roomchat.handler import MessageHandler
from roomchat.models import AppState, RoomState
from roomchat.room import enter_room, handle_room_list, load_chats
from roomchat.selector import select
from roomchat.tools import base64_decode, prettier, render_ascii
from roomchat.websocket import DEFAULT_HOST, DEFAULT_PATH, DEFAULT_PORT, WebSocketClient

PICTURE_SIZE = 80
LOGIN_POLL_INTERVAL = 1.0

MENU = (
    "/exit 종료     /my 내 정보     /rooms 참여한 방 목록\n"
    "/create 방 만들기    /room-list 참여 가능한 방 목록"
)
ROOM_COLUMNS = ["방 제목", "방 설명", "최근 채팅 시간", "참여자"]


def _write(text: str) -> None:
    sys.stdout.write(text)
    sys.stdout.flush()


def _read_line(prompt: str) -> str | None:
    """Show ``prompt`` and read one line from stdin; None at end of input."""
    _write(prompt)
    line = sys.stdin.readline()
    if not line:
        return None
    return line.rstrip("\r\n")


def show_profile(app: AppState, out: TextIO | None = None) -> None:
    """Print the logged-in user's details and their picture as ASCII art."""
    if out is None:
        out = sys.stdout
    with app.shared.lock:
        user = app.shared.user
        email, name, nickname, picture = user.email, user.name, user.nickname, user.picture
    out.write("내 정보 확인하기\n")
    out.write(f"이메일 | {email}\n")
    out.write(f"이름 | {name}\n")
    out.write(f"닉네임 | {nickname}\n")
    out.write("프로필사진\n")
    try:
        out.write(render_ascii(base64_decode(picture), PICTURE_SIZE, PICTURE_SIZE))
    except IndexError:
        pass
    out.flush()


def joined_room_rows(app: AppState) -> list[tuple[RoomState, list[str]]]:
    """Joined rooms ordered by id, each with its table row.

    A row holds the room name, description, latest chat time and the
    nicknames of its known participants.
    """
    result = []
    with app.shared.lock, app.participants.lock:
        known = app.participants.participants
        for _room_id, room in sorted(app.shared.rooms.items()):
            nicknames = [
                known[user_id].nickname for user_id in room.participants if user_id in known
            ]
            members = " " + " | ".join(nicknames) if nicknames else ""
            result.append(
                (room, [room.room_name, room.description, room.latest_chat, members])
            )
    return result


def create_room(
    app: AppState, client: Any, read_line: Callable[[str], str]
) -> dict[str, Any]:
    """Ask for a room name and description and request the room; return the request data."""
    room_name = read_line("생성할 방 이름 > ")
    description = read_line("생성할 방 설명 > ")
    with app.shared.lock:
        user_id = app.shared.user.id
    data = {
        "userId": user_id,
        "detail": {"roomName": room_name, "description": description},
    }
    client.send_message("create-room", data)
    return data


def _open_joined_room(app: AppState, client: WebSocketClient) -> None:
    rows = joined_room_rows(app)
    if not rows:
        _write("아직 참여한 방이 없습니다!\n")
        return
    header, lines = prettier(ROOM_COLUMNS, [row for _room, row in rows])
    selected = select("방을 선택하세요", lines, header)
    if selected is None:
        return
    with app.shared.lock:
        app.shared.current_room = rows[selected][0]
    load_chats(app, client)
    enter_room(app, client)


def _wait_for_login(app: AppState, client: WebSocketClient) -> None:
    while True:
        with app.shared.lock:
            if app.shared.is_logged_in:
                return
            ticket = app.shared.user.ticket
        if ticket:
            client.send_message("ticket-check", {"ticket": ticket})
        time.sleep(LOGIN_POLL_INTERVAL)


def _menu_loop(app: AppState, client: WebSocketClient) -> None:
    while True:
        _write(MENU + "\n")
        command = _read_line("\n> ")
        if command is None or command == "/exit":
            return
        if command == "/my":
            show_profile(app)
        elif command == "/create":
            create_room(app, client, lambda prompt: _read_line(prompt) or "")
        elif command == "/rooms":
            _open_joined_room(app, client)
        elif command == "/room-list":
            handle_room_list(app, client)
        else:
            move_cursor_up(1)
            clear_current_line()
            move_cursor_up(1)


def _relaunch_in_terminal() -> None:
    subprocess.Popen(
        ["cmd", "/c", "start", "cmd", "/k", sys.executable, "-m", "roomchat.cli", "run"]
    )


def _parse_args(argv: list[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(prog="roomchat", description="Terminal chat client.")
    parser.add_argument("mode", nargs="?", choices=["run"], help="run in this terminal")
    parser.add_argument("--host", default=DEFAULT_HOST)
    parser.add_argument("--port", type=int, default=DEFAULT_PORT)
    parser.add_argument("--path", default=DEFAULT_PATH)
    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> int:
    """Run the client; return the exit status."""
    if argv is None:
        argv = sys.argv[1:]
    args = _parse_args(argv)

    if is_crazy_console() and not argv:
        if sys.platform == "win32":
            _relaunch_in_terminal()
            return 0
        sys.stderr.write("대화형 터미널에서 실행하세요.\n")
        return 1

    app = AppState()
    client = WebSocketClient(args.host, args.port, args.path)
    try:
        client.connect()
    except OSError as exc:
        sys.stderr.write(f"서버에 연결할 수 없습니다: {exc}\n")
        return 1

    receiver: threading.Thread | None = None
    try:
        client.start_keepalive(app)
        client.send_message("login", {})
        handler = MessageHandler(app)
        receiver = threading.Thread(
            target=client.receive_loop, args=(handler.handle,), name="ws-recv", daemon=True
        )
        receiver.start()

        _wait_for_login(app, client)
        _write("로그인 완료!\n")
        _menu_loop(app, client)
    except KeyboardInterrupt:
        _write("\n(SIGINT 감지됨, 종료)\n")
    finally:
        client.close()
        if receiver is not None:
            receiver.join(timeout=5)
    return 0


if __name__ == "__main__":
    sys.exit(main())