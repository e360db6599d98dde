# roomchat

A terminal chat client for room-based conversations. It connects to a chat
server over a WebSocket, logs you in through a link shown in the terminal,
and then lets you create rooms, join rooms and talk in them.

It needs no packages beyond the Python standard library (Python 3.10 or
later).

## Installing

```
pip install .
```

For running the tests:

```
pip install ".[test]"
pytest
```

## Running

```
roomchat --host localhost --port 80 --path /api/ws
```

Options:

| Option   | Default     | Meaning                          |
|----------|-------------|----------------------------------|
| `--host` | `localhost` | Chat server host name            |
| `--port` | `80`        | Chat server port                 |
| `--path` | `/api/ws`   | Path of the WebSocket endpoint   |
| `run`    |             | Run in the current terminal      |

When started with no arguments and its output is not an interactive
terminal, the client on Windows opens a new console window running
`python -m roomchat.cli run`; elsewhere it prints an error and exits with
status 1. Passing any argument skips this check.

After connecting, the client asks the server for a login and prints the link
it returns. Open it in a browser and sign in; the client polls the server
once a second until the login is confirmed, then prints `로그인 완료!`.

## Commands

At the main prompt:

| Command      | What it does                                            |
|--------------|---------------------------------------------------------|
| `/exit`      | Quit the client (end of input does the same)            |
| `/my`        | Show your e-mail, name, nickname and picture            |
| `/rooms`     | Pick one of the rooms you have joined and open it       |
| `/create`    | Create a room (asks for a name and a description)       |
| `/room-list` | List rooms you may join and join the one you pick       |

Lists are navigated with the up and down arrow keys; Enter selects, and
Escape or Backspace cancels. Ctrl+C quits.

Inside a room:

- type `/send <message>` and press Enter to send a message to the room;
- type `/back` and press Enter, or press Escape, to return to the main prompt;
- the up and down arrow keys move a highlight over the chat history;
- the right arrow key shows details of the highlighted message: the sender's
  nickname, when the sender was last active, when it was sent, its text and
  the names of those who have read it.

While a room is open, the client tells the server once a second that you have
read it, and it sends a ping every 30 seconds. A message arriving in a room
you are not looking at is printed as a notice:
`[새로운 메시지 알림] <room>에서 <nickname>의 새 메시지: <text>`.

The profile picture is expected to be base64 of an 80×80 raw 8-bit grayscale
image; it is drawn as ASCII art using every other row, and skipped if the
data is too short.

## Using it as a library

- `roomchat.tools` — `base64_encode`, `base64_decode` (stops at the first
  character outside the alphabet), `generate_ws_key`, `decode_frame` (one
  WebSocket frame: payload and bytes used, or `None` if incomplete),
  `prettier` (table layout), `time_ago` (relative time in Korean) and
  `render_ascii`.
- `roomchat.websocket` — `encode_frame`, `build_handshake` and
  `WebSocketClient` (`connect`, `send_message`, `receive_loop`,
  `start_keepalive`, `close`; also a context manager).
- `roomchat.handler` — `MessageHandler`, whose `handle` applies one raw JSON
  server message to an `AppState`; its output stream and notification
  callback can be passed in.
- `roomchat.models` — the state classes: `AppState`, `SharedState`,
  `RoomState`, `Chat`, `Participant` and the rest.
- `roomchat.console` — ANSI cursor helpers and single-key input
  (`read_key`, `key_pressed`, `Key`).
- `roomchat.selector` — `select`, an arrow-key menu returning the chosen
  index or `None`.
- `roomchat.room` — `enter_room`, `handle_room_list`, `load_chats`,
  `format_chat_detail` and `get_participant`.
- `roomchat.cli` — `main`, `show_profile`, `joined_room_rows` and
  `create_room`.

## What it does not do

- It is a client only; there is no chat server in this package.
- It speaks plain WebSocket over TCP; there is no TLS (`wss://`) support.
- Notifications are printed to the terminal; no desktop pop-ups are shown.
- Chats and rooms are kept in memory only; nothing is stored on disk.