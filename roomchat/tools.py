"""Encoding helpers, frame decoding and text formatting."""

from __future__ import annotations

import base64
import os
import time
from collections.abc import Sequence

BASE64_ALPHABET = "ABCDEFGHIJKLMNOPQRSTUVWXYZabcdefghijklmnopqrstuvwxyz0123456789+/"
_BASE64_INDEX = {ch: i for i, ch in enumerate(BASE64_ALPHABET)}

ASCII_RAMP = " .:-=+*#%@"


def base64_encode(data: bytes | str) -> str:
    """Standard padded base64 of ``data`` (text is encoded as UTF-8)."""
    if isinstance(data, str):
        data = data.encode("utf-8")
    return base64.b64encode(data).decode("ascii")


def base64_decode(text: str) -> bytes:
    """Decode base64 text, stopping at the first character outside the alphabet."""
    out = bytearray()
    value = 0
    bits = -8
    for ch in text:
        index = _BASE64_INDEX.get(ch)
        if index is None:
            break
        value = ((value << 6) | index) & 0xFFFFFF
        bits += 6
        if bits >= 0:
            out.append((value >> bits) & 0xFF)
            bits -= 8
    return bytes(out)


def generate_ws_key() -> str:
    """A random Sec-WebSocket-Key: 16 random bytes, base64 encoded."""
    return base64_encode(os.urandom(16))


def decode_frame(buffer: bytes) -> tuple[bytes, int] | None:
    """Decode one WebSocket frame at the start of ``buffer``.

    Returns the (unmasked) payload and the number of bytes the frame occupies,
    or None when the buffer does not yet hold a whole frame.
    """
    if len(buffer) < 2:
        return None
    masked = bool(buffer[1] & 0x80)
    length = buffer[1] & 0x7F
    offset = 2
    if length == 126:
        if len(buffer) < 4:
            return None
        length = int.from_bytes(buffer[2:4], "big")
        offset = 4
    elif length == 127:
        if len(buffer) < 10:
            return None
        length = int.from_bytes(buffer[2:10], "big")
        offset = 10

    mask_key = b""
    if masked:
        if len(buffer) < offset + 4:
            return None
        mask_key = bytes(buffer[offset : offset + 4])
        offset += 4

    end = offset + length
    if len(buffer) < end:
        return None
    payload = bytes(buffer[offset:end])
    if masked:
        payload = bytes(b ^ mask_key[i % 4] for i, b in enumerate(payload))
    return payload, end


def render_ascii(raw: bytes | Sequence[int], width: int, height: int) -> str:
    """Render a raw 8-bit grayscale image as ASCII art, using every other row."""
    lines = []
    for y in range(0, height, 2):
        row = raw[y * width : y * width + width]
        if len(row) < width:
            raise IndexError("image data is shorter than width * height")
        lines.append("".join(ASCII_RAMP[pixel * 9 // 255] for pixel in row))
    return "".join(line + "\n" for line in lines)


def prettier(
    keys: Sequence[str], values: Sequence[Sequence[str]]
) -> tuple[str, list[str]]:
    """Lay out a table as a header line and one line per row, columns padded to width."""
    widths = [len(key) for key in keys]
    for row in values:
        for i, cell in enumerate(row[: len(widths)]):
            widths[i] = max(widths[i], len(cell))

    header = " | ".join(key.ljust(width) for key, width in zip(keys, widths))
    rows = [
        " | ".join(
            cell.ljust(widths[i]) if i < len(widths) else cell
            for i, cell in enumerate(row)
        )
        for row in values
    ]
    return header, rows


def time_ago(past: int, now: int | None = None) -> str:
    """Describe how long ago the Unix time ``past`` (seconds) was."""
    if now is None:
        now = int(time.time())
    diff = now - past
    if diff < 60:
        return "방금 전"
    if diff < 3600:
        return f"{diff // 60}분 전"
    if diff < 86400:
        return f"{diff // 3600}시간 전"
    if diff < 7 * 86400:
        return f"{diff // 86400}일 전"
    return f"{diff // (7 * 86400)}주 전"