import json
import socket
import threading

import pytest

from roomchat.models import AppState, RoomState
from roomchat.tools import decode_frame
from roomchat.websocket import (
    DEFAULT_MASK,
    WebSocketClient,
    build_handshake,
    encode_frame,
)

UPGRADE_REPLY = b"HTTP/1.1 101 Switching Protocols\r\nUpgrade: websocket\r\n\r\n"


@pytest.fixture
def listener():
    server = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
    server.bind(("127.0.0.1", 0))
    server.listen(1)
    server.settimeout(5)
    yield server
    server.close()


def _connect(listener, extra=b""):
    result = {}

    def serve():
        conn, _ = listener.accept()
        conn.settimeout(5)
        data = b""
        while b"\r\n\r\n" not in data:
            data += conn.recv(2048)
        result["request"] = data
        result["conn"] = conn
        conn.sendall(UPGRADE_REPLY + extra)

    thread = threading.Thread(target=serve)
    thread.start()
    client = WebSocketClient("127.0.0.1", listener.getsockname()[1])
    response = client.connect()
    thread.join()
    return client, result["conn"], result["request"], response


def _read_frame(conn, buffer):
    while True:
        decoded = decode_frame(buffer[0])
        if decoded is not None:
            payload, used = decoded
            buffer[0] = buffer[0][used:]
            return json.loads(payload.decode("utf-8"))
        chunk = conn.recv(4096)
        assert chunk, "connection closed early"
        buffer[0] += chunk


def _server_frame(text):
    payload = text.encode("utf-8")
    return bytes([0x81, len(payload)]) + payload


def test_small_frame_header_and_mask():
    frame = encode_frame(b"hi")
    assert frame[0] == 0x81
    assert frame[1] == 0x80 | 2
    assert frame[2:6] == DEFAULT_MASK
    assert decode_frame(frame) == (b"hi", len(frame))


def test_medium_frame_uses_two_byte_length():
    payload = b"x" * 300
    frame = encode_frame(payload)
    assert frame[1] == 0x80 | 126
    assert int.from_bytes(frame[2:4], "big") == len(payload)
    assert decode_frame(frame) == (payload, len(frame))


def test_large_frame_uses_eight_byte_length():
    payload = b"y" * 70000
    frame = encode_frame(payload)
    assert frame[1] == 0x80 | 127
    assert int.from_bytes(frame[2:10], "big") == len(payload)
    assert decode_frame(frame) == (payload, len(frame))


def test_text_payload_is_utf8():
    frame = encode_frame("안녕")
    assert decode_frame(frame)[0] == "안녕".encode("utf-8")


def test_bad_mask_rejected():
    with pytest.raises(ValueError):
        encode_frame(b"a", mask=b"\x00")


def test_handshake_request():
    request = build_handshake("chat.example.com", "placeholder").decode("ascii")
    assert request.startswith("GET /api/ws HTTP/1.1\r\n")
    assert "Host: chat.example.com\r\n" in request
    assert "Sec-WebSocket-Key: placeholder\r\n" in request
    assert "Sec-WebSocket-Version: 13\r\n" in request
    assert request.endswith("\r\n\r\n")


def test_send_without_connection_fails():
    with pytest.raises(ConnectionError):
        WebSocketClient("127.0.0.1", 1).send_message("ping", {})


def test_connect_and_send_message(listener):
    client, conn, request, response = _connect(listener)
    try:
        assert response.startswith("HTTP/1.1 101")
        assert b"Upgrade: websocket" in request
        client.send_message("login", {})
        message = _read_frame(conn, [b""])
        assert message == {"type": "login", "data": {}}
    finally:
        client.close()
        conn.close()


def test_receive_loop_delivers_messages(listener):
    first = json.dumps({"type": "a"})
    client, conn, _, _ = _connect(listener, extra=_server_frame(first))
    second = json.dumps({"type": "b"})
    conn.sendall(_server_frame(second))
    conn.close()
    received = []
    client.receive_loop(received.append)
    client.close()
    assert received == [first, second]


def test_keepalive_sends_ping_and_read_receipt(listener):
    client, conn, _, _ = _connect(listener)
    app = AppState()
    app.shared.user.id = "u1"
    app.shared.current_room = RoomState(room_id="r1")
    try:
        client.start_keepalive(app)
        buffer = [b""]
        messages = [_read_frame(conn, buffer), _read_frame(conn, buffer)]
        by_type = {m["type"]: m["data"] for m in messages}
        assert by_type["ping"] == {"type": "ping"}
        assert by_type["read-chat"] == {"userId": "u1", "detail": {"roomId": "r1"}}
    finally:
        client.close()
        conn.close()