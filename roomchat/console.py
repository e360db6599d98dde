"""Terminal control and single-key input."""

from __future__ import annotations

import enum
import os
import select
import sys
from collections.abc import Callable

if sys.platform == "win32":
    import msvcrt
else:
    import termios
    import tty


class Key(enum.Enum):
    """Special keys recognised by :func:`read_key`."""

    UP = "up"
    DOWN = "down"
    LEFT = "left"
    RIGHT = "right"
    ENTER = "enter"
    BACKSPACE = "backspace"
    ESCAPE = "escape"
    INTERRUPT = "interrupt"
    UNKNOWN = "unknown"


_EXTENDED_KEYS = {72: Key.UP, 80: Key.DOWN, 75: Key.LEFT, 77: Key.RIGHT}
_ANSI_ARROWS = {b"[A": Key.UP, b"[B": Key.DOWN, b"[D": Key.LEFT, b"[C": Key.RIGHT}


def _emit(sequence: str) -> None:
    sys.stdout.write(sequence)
    sys.stdout.flush()


def move_cursor_to(x: int, y: int) -> None:
    """Move the cursor to column ``x``, row ``y`` (both counted from 0)."""
    _emit(f"\033[{y + 1};{x + 1}H")


def clear_current_line() -> None:
    """Blank the current line and return the cursor to its start."""
    _emit("\r\033[2K")


def move_cursor_home() -> None:
    _emit("\033[H")


def move_cursor_up(lines: int) -> None:
    _emit(f"\033[{lines}A")


def move_cursor_down(lines: int) -> None:
    _emit(f"\033[{lines}B")


def move_cursor_to_start() -> None:
    _emit("\r")


def move_cursor_to_bottom() -> None:
    _emit("\033[999B")


def clear_console() -> None:
    """Clear the whole screen and put the cursor at the top left."""
    _emit("\033[2J\033[H")


def is_crazy_console() -> bool:
    """True when output does not go to an interactive terminal."""
    try:
        return not sys.stdout.isatty()
    except (AttributeError, ValueError):
        return True


def _key_from_code(code: int, read_next: Callable[[], int]) -> Key | str:
    """Map a key code to a Key or a printable character, reading a second code for extended keys."""
    if code in (0, 224):
        return _EXTENDED_KEYS.get(read_next(), Key.UNKNOWN)
    if code in (10, 13):
        return Key.ENTER
    if code in (8, 127):
        return Key.BACKSPACE
    if code == 27:
        return Key.ESCAPE
    if code == 3:
        return Key.INTERRUPT
    if 32 <= code <= 126:
        return chr(code)
    return Key.UNKNOWN


def key_pressed() -> bool:
    """True when a key is waiting to be read."""
    if sys.platform == "win32":
        return bool(msvcrt.kbhit())
    ready, _, _ = select.select([sys.stdin], [], [], 0)
    return bool(ready)


def read_key() -> Key | str:
    """Block for one key press: a Key for special keys, else the character typed."""
    if sys.platform == "win32":
        return _key_from_code(msvcrt.getch()[0], lambda: msvcrt.getch()[0])

    fd = sys.stdin.fileno()
    saved = termios.tcgetattr(fd)
    try:
        tty.setraw(fd)
        code = os.read(fd, 1)[0]
        if code == 27 and select.select([fd], [], [], 0.01)[0]:
            return _ANSI_ARROWS.get(os.read(fd, 2), Key.UNKNOWN)
        return _key_from_code(code, lambda: os.read(fd, 1)[0])
    finally:
        termios.tcsetattr(fd, termios.TCSADRAIN, saved)