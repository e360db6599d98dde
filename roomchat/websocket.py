"""A minimal WebSocket client speaking JSON messages of the form {"type", "data"}."""

from __future__ import annotations

import json
import socket
import threading
from collections.abc import Callable
from typing import Any

from roomchat.models import AppState
from roomchat.tools import decode_frame, generate_ws_key

DEFAULT_HOST = "localhost"
DEFAULT_PORT = 80
DEFAULT_PATH = "/api/ws"
DEFAULT_MASK = bytes([0x12, 0x34, 0x56, 0x78])

PING_INTERVAL = 30.0
READ_INTERVAL = 1.0

_RECV_SIZE = 4096
_HANDSHAKE_END = b"\r\n\r\n"


def encode_frame(payload: bytes | str, mask: bytes = DEFAULT_MASK) -> bytes:
    """Build one masked, final text frame carrying ``payload``."""
    if isinstance(payload, str):
        payload = payload.encode("utf-8")
    if len(mask) != 4:
        raise ValueError("mask must be exactly 4 bytes")

    size = len(payload)
    header = bytearray([0x81])
    if size <= 125:
        header.append(0x80 | size)
    elif size <= 0xFFFF:
        header.append(0x80 | 126)
        header += size.to_bytes(2, "big")
    else:
        header.append(0x80 | 127)
        header += size.to_bytes(8, "big")
    header += mask

    body = bytes(b ^ mask[i % 4] for i, b in enumerate(payload))
    return bytes(header) + body


def _handshake(host: str, key: str, path: str) -> bytes:
    return (
        f"GET {path} HTTP/1.1\r\n"
        f"Host: {host}\r\n"
        "Upgrade: websocket\r\n"
        "Connection: Upgrade\r\n"
        f"Sec-WebSocket-Key: {key}\r\n"
        "Sec-WebSocket-Version: 13\r\n\r\n"
    ).encode("ascii")


def build_handshake(host: str, key: str) -> bytes:
    """The HTTP upgrade request that opens a WebSocket connection."""
    return _handshake(host, key, DEFAULT_PATH)


def _dump(message: dict[str, Any]) -> str:
    return json.dumps(message, ensure_ascii=False, separators=(",", ":"), sort_keys=True)


class WebSocketClient:
    """A connection to the chat server."""

    def __init__(
        self,
        host: str = DEFAULT_HOST,
        port: int = DEFAULT_PORT,
        path: str = DEFAULT_PATH,
    ) -> None:
        self.host = host
        self.port = port
        self.path = path
        self._sock: socket.socket | None = None
        self._pending = b""
        self._send_lock = threading.Lock()
        self._stop = threading.Event()

    def connect(self) -> str:
        """Open the connection and perform the upgrade; return the server's response head."""
        sock = socket.create_connection((self.host, self.port))
        sock.sendall(_handshake(self.host, generate_ws_key(), self.path))
        received = b""
        while _HANDSHAKE_END not in received:
            chunk = sock.recv(2048)
            if not chunk:
                sock.close()
                raise ConnectionError("connection closed during handshake")
            received += chunk
        head, _, rest = received.partition(_HANDSHAKE_END)
        self._pending = rest
        self._sock = sock
        self._stop.clear()
        return head.decode("utf-8", errors="replace")

    def send_message(self, msg_type: str, data: Any) -> None:
        """Send one JSON message with the given type and data."""
        if self._sock is None:
            raise ConnectionError("not connected")
        frame = encode_frame(_dump({"type": msg_type, "data": data}))
        with self._send_lock:
            self._sock.sendall(frame)

    def receive_loop(self, handler: Callable[[str], Any]) -> None:
        """Pass every received message to ``handler`` until the connection closes."""
        if self._sock is None:
            raise ConnectionError("not connected")
        buffer, self._pending = self._pending, b""
        while True:
            while (decoded := decode_frame(buffer)) is not None:
                payload, used = decoded
                buffer = buffer[used:]
                handler(payload.decode("utf-8", errors="replace"))
            try:
                chunk = self._sock.recv(_RECV_SIZE)
            except OSError:
                return
            if not chunk:
                return
            buffer += chunk

    def start_keepalive(self, state: AppState) -> list[threading.Thread]:
        """Start the ping thread and the read-receipt thread; return them."""
        threads = [
            threading.Thread(target=self._ping_loop, name="ws-ping", daemon=True),
            threading.Thread(
                target=self._read_loop, args=(state,), name="ws-read", daemon=True
            ),
        ]
        for thread in threads:
            thread.start()
        return threads

    def _ping_loop(self) -> None:
        while not self._stop.is_set():
            try:
                self.send_message("ping", {"type": "ping"})
            except OSError:
                return
            if self._stop.wait(PING_INTERVAL):
                return

    def _read_loop(self, state: AppState) -> None:
        while not self._stop.is_set():
            with state.shared.lock:
                room = state.shared.current_room
                target = (room.room_id, state.shared.user.id) if room else None
            if target is not None:
                room_id, user_id = target
                try:
                    self.send_message(
                        "read-chat", {"userId": user_id, "detail": {"roomId": room_id}}
                    )
                except OSError:
                    return
            if self._stop.wait(READ_INTERVAL):
                return

    def close(self) -> None:
        """Stop the background threads and close the connection."""
        self._stop.set()
        sock, self._sock = self._sock, None
        if sock is None:
            return
        try:
            sock.shutdown(socket.SHUT_RDWR)
        except OSError:
            pass
        sock.close()

    def __enter__(self) -> WebSocketClient:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()