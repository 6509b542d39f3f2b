"""Event records — the timestamped units the loops persist and react to."""

from __future__ import annotations

import time
import uuid
from collections.abc import Callable
from dataclasses import asdict, dataclass
from enum import Enum
from typing import Any

# Table every loop writes into and the health route reads from.
START_TABLE = "START"

DEFAULT_TEXT = "Periodic check from Memeoor."
DEFAULT_USER_ID = "memeoor-user-1"


class Room(str, Enum):
    """Logical rooms an event record can belong to."""

    INTERACTION = "INTERACTION"
    TOKEN_INTERACTION = "TOKEN_INTERACTION"


def now_ms() -> int:
    return int(time.time() * 1000)


@dataclass(frozen=True)
class EventRecord:
    """One occurrence the agent should react to, or a liveness marker.

    ``created_at`` is epoch milliseconds.
    """

    id: str
    category: Room
    agent_id: str
    created_at: int
    text: str = DEFAULT_TEXT
    user_id: str = DEFAULT_USER_ID
    action: str = "START"

    def to_dict(self) -> dict[str, Any]:
        d = asdict(self)
        d["category"] = self.category.value
        return d

    @classmethod
    def from_row(cls, row: dict[str, Any]) -> "EventRecord":
        return cls(
            id=row["id"],
            category=Room(row["category"]),
            agent_id=row["agent_id"],
            created_at=int(row["created_at"]),
            text=row.get("text", DEFAULT_TEXT),
            user_id=row.get("user_id", DEFAULT_USER_ID),
            action=row.get("action", "START"),
        )


class EventRecordFactory:
    """Builds records for one agent with non-decreasing ``created_at``.

    The wall clock can step backwards (NTP adjustments); the factory clamps
    to the last issued timestamp so records never reorder.
    """

    def __init__(
        self,
        agent_id: str,
        clock: Callable[[], int] = now_ms,
    ) -> None:
        self.agent_id = agent_id
        self._clock = clock
        self._last_ts = 0

    def create(
        self,
        category: Room = Room.INTERACTION,
        text: str = DEFAULT_TEXT,
    ) -> EventRecord:
        ts = max(self._clock(), self._last_ts)
        self._last_ts = ts
        return EventRecord(
            id=str(uuid.uuid1()),
            category=category,
            agent_id=self.agent_id,
            created_at=ts,
            text=text,
        )
