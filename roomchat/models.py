"""Client-side state: users, participants, rooms and chats."""

from __future__ import annotations

import threading
import time
from dataclasses import dataclass, field, replace


@dataclass
class Participant:
    """A user taking part in one or more rooms."""

    id: str = ""
    name: str = ""
    nickname: str = ""
    email: str = ""
    picture: str = ""
    latest_access: int = 0


@dataclass
class ParticipantState:
    """Every participant known to the client, keyed by user id."""

    participants: dict[str, Participant] = field(default_factory=dict)
    lock: threading.RLock = field(
        default_factory=threading.RLock, repr=False, compare=False
    )

    def get(self, user_id: str) -> Participant:
        """Return the participant with this id, registering an empty one if unknown."""
        return self.participants.setdefault(user_id, Participant())


@dataclass
class Chat:
    """One chat message."""

    user_id: str = ""
    text: str = ""
    created_at: int = 0
    readers: set[str] = field(default_factory=set)


@dataclass
class RoomState:
    """A room the user has joined, with its chats and read positions."""

    chats: list[Chat] = field(default_factory=list)
    participants: dict[str, int] = field(default_factory=dict)
    room_name: str = ""
    room_id: str = ""
    description: str = ""
    latest_chat: str = ""

    def chats_with_readers(self) -> list[Chat]:
        """Copies of the chats, each with the ids of participants who read past it."""
        return [
            replace(
                chat,
                readers=chat.readers
                | {
                    user_id
                    for user_id, last_read in self.participants.items()
                    if last_read > chat.created_at
                },
            )
            for chat in self.chats
        ]


@dataclass
class VisitingRoom:
    """A room that the user may join."""

    room_name: str = ""
    room_id: str = ""
    description: str = ""
    latest_chat: str = ""


@dataclass
class VisitingRoomState:
    """Rooms offered by the server, filled in by the receiving thread."""

    rooms: list[VisitingRoom] = field(default_factory=list)
    updated: bool = False
    lock: threading.RLock = field(
        default_factory=threading.RLock, repr=False, compare=False
    )


@dataclass
class DataRaceState:
    """A flag one thread raises and another waits on."""

    updated: bool = False
    lock: threading.RLock = field(
        default_factory=threading.RLock, repr=False, compare=False
    )

    def mark(self) -> None:
        """Raise the flag."""
        with self.lock:
            self.updated = True

    def wait_and_reset(self, interval: float = 0.3) -> None:
        """Block until the flag is raised, polling every ``interval`` seconds, then lower it."""
        while True:
            with self.lock:
                if self.updated:
                    self.updated = False
                    return
            time.sleep(interval)


@dataclass
class UserState:
    """The logged-in user."""

    email: str = ""
    name: str = ""
    id: str = ""
    ticket: str = ""
    nickname: str = ""
    picture: str = ""


@dataclass
class SharedState:
    """Login status, joined rooms and the room currently open."""

    is_logged_in: bool = False
    user: UserState = field(default_factory=UserState)
    current_room: RoomState | None = None
    rooms: dict[str, RoomState] = field(default_factory=dict)
    lock: threading.RLock = field(
        default_factory=threading.RLock, repr=False, compare=False
    )


@dataclass
class AppState:
    """All state shared between the input loop and the receiving thread."""

    shared: SharedState = field(default_factory=SharedState)
    visiting: VisitingRoomState = field(default_factory=VisitingRoomState)
    participants: ParticipantState = field(default_factory=ParticipantState)
    join_room: DataRaceState = field(default_factory=DataRaceState)
    load_chat: DataRaceState = field(default_factory=DataRaceState)