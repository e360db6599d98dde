"""An arrow-key menu for picking one line out of a list."""

from __future__ import annotations

import sys
from collections.abc import Callable, Sequence

from roomchat.console import Key, clear_console, read_key

HIGHLIGHT = "\033[97;104m"
RESET = "\033[0m"

KeySource = Callable[[], "Key | str"]


def _write(text: str) -> None:
    sys.stdout.write(text)
    sys.stdout.flush()


def _exit_on_interrupt() -> None:
    _write("\n(SIGINT 감지됨, 종료)\n")
    raise SystemExit(0)


def _render(title: str, items: Sequence[str], header: str, current: int) -> None:
    clear_console()
    lines = [f"{title} (↑/↓, Enter | ESC):\n\n"]
    if header:
        lines.append(header + "\n")
    for index, item in enumerate(items):
        if index == current:
            lines.append(f"{HIGHLIGHT}{item}{RESET}\n")
        else:
            lines.append(item + "\n")
    _write("".join(lines))


def select(
    title: str,
    items: Sequence[str],
    header: str = "",
    keys: KeySource | None = None,
) -> int | None:
    """Let the user pick an item with the arrow keys.

    Returns the chosen index on Enter, or None when the user cancels with
    Escape or Backspace (or when there is nothing to choose). Ctrl+C ends
    the program.
    """
    if keys is None:
        keys = read_key
    current = 0
    shown: int | None = None
    while True:
        if shown != current:
            _render(title, items, header, current)
            shown = current

        key = keys()
        if key is Key.UP:
            if current > 0:
                current -= 1
        elif key is Key.DOWN:
            if current < len(items) - 1:
                current += 1
        elif key is Key.ENTER:
            sys.stdout.flush()
            return current if items else None
        elif key in (Key.BACKSPACE, Key.ESCAPE):
            _write("사용자가 취소했습니다.\n")
            return None
        elif key is Key.INTERRUPT:
            _exit_on_interrupt()