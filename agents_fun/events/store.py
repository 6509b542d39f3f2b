"""Event storage — append-only record log keyed by table, room and agent.

Two adapters share the ``EventStore`` protocol:

- ``SQLiteEventStore`` — file-backed, blocking sqlite3 calls pushed onto the
  loop's default executor so writes never stall the timers.
- ``MemoryEventStore`` — process-local list, for ``:memory:`` runs and tests.

Reads return newest first; ties on ``created_at`` resolve by insertion order.
"""

from __future__ import annotations

import asyncio
import logging
import sqlite3
from pathlib import Path
from typing import Any, Protocol, runtime_checkable

from .models import START_TABLE, EventRecord, Room

logger = logging.getLogger(__name__)


@runtime_checkable
class EventStore(Protocol):
    async def append(self, record: EventRecord, table: str = START_TABLE) -> None: ...

    async def query_recent(
        self,
        category: Room,
        agent_id: str,
        limit: int = 1,
        table: str = START_TABLE,
    ) -> list[EventRecord]: ...


class SQLiteEventStore:
    """SQLite-backed event log."""

    def __init__(self, db_path: Path | str) -> None:
        self._db_path = str(db_path)
        if self._db_path == ":memory:":
            # Each connection would get its own empty database.
            raise ValueError(
                "SQLiteEventStore needs a file path; use MemoryEventStore "
                "(or open_store) for ':memory:'"
            )
        Path(self._db_path).parent.mkdir(parents=True, exist_ok=True)
        self._init_db()

    def _conn(self) -> sqlite3.Connection:
        conn = sqlite3.connect(self._db_path)
        conn.row_factory = sqlite3.Row
        conn.execute("PRAGMA journal_mode=WAL")
        return conn

    def _init_db(self) -> None:
        with self._conn() as conn:
            conn.execute("""
                CREATE TABLE IF NOT EXISTS events (
                    id          TEXT PRIMARY KEY,
                    table_name  TEXT NOT NULL,
                    category    TEXT NOT NULL,
                    agent_id    TEXT NOT NULL,
                    user_id     TEXT NOT NULL DEFAULT '',
                    text        TEXT NOT NULL DEFAULT '',
                    action      TEXT NOT NULL DEFAULT '',
                    created_at  INTEGER NOT NULL
                )
            """)
            conn.execute("""
                CREATE INDEX IF NOT EXISTS idx_events_lookup
                ON events (table_name, category, agent_id, created_at)
            """)

    # ── Blocking operations ──────────────────────────────────────────────

    def insert(self, record: EventRecord, table: str = START_TABLE) -> None:
        """Insert a record synchronously."""
        row = record.to_dict()
        row["table_name"] = table
        with self._conn() as conn:
            conn.execute("""
                INSERT INTO events (id, table_name, category, agent_id,
                                    user_id, text, action, created_at)
                VALUES (:id, :table_name, :category, :agent_id,
                        :user_id, :text, :action, :created_at)
            """, row)

    def select_recent(
        self,
        category: Room,
        agent_id: str,
        limit: int = 1,
        table: str = START_TABLE,
    ) -> list[EventRecord]:
        """Newest records first for one table/room/agent."""
        with self._conn() as conn:
            rows = conn.execute(
                "SELECT * FROM events "
                "WHERE table_name = ? AND category = ? AND agent_id = ? "
                "ORDER BY created_at DESC, rowid DESC LIMIT ?",
                (table, Room(category).value, agent_id, limit),
            ).fetchall()
        return [EventRecord.from_row(dict(r)) for r in rows]

    def count(self, table: str | None = None) -> int:
        with self._conn() as conn:
            if table:
                row = conn.execute(
                    "SELECT COUNT(*) FROM events WHERE table_name = ?", (table,)
                ).fetchone()
            else:
                row = conn.execute("SELECT COUNT(*) FROM events").fetchone()
        return int(row[0])

    # ── EventStore protocol ──────────────────────────────────────────────

    async def append(self, record: EventRecord, table: str = START_TABLE) -> None:
        loop = asyncio.get_running_loop()
        await loop.run_in_executor(None, self.insert, record, table)

    async def query_recent(
        self,
        category: Room,
        agent_id: str,
        limit: int = 1,
        table: str = START_TABLE,
    ) -> list[EventRecord]:
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(
            None, self.select_recent, category, agent_id, limit, table,
        )

    def close(self) -> None:
        """Nothing to release; connections are opened per call."""


class MemoryEventStore:
    """In-process event log with the same ordering rules as SQLite."""

    def __init__(self) -> None:
        self._rows: list[tuple[str, EventRecord]] = []

    async def append(self, record: EventRecord, table: str = START_TABLE) -> None:
        self._rows.append((table, record))

    async def query_recent(
        self,
        category: Room,
        agent_id: str,
        limit: int = 1,
        table: str = START_TABLE,
    ) -> list[EventRecord]:
        matches = [
            (i, r) for i, (t, r) in enumerate(self._rows)
            if t == table and r.category == category and r.agent_id == agent_id
        ]
        matches.sort(key=lambda pair: (pair[1].created_at, pair[0]), reverse=True)
        return [r for _, r in matches[:limit]]

    def records(self, table: str | None = None) -> list[EventRecord]:
        return [r for t, r in self._rows if table is None or t == table]

    def close(self) -> None:
        self._rows.clear()


def open_store(db_path: Path | str) -> Any:
    """Pick the adapter for a configured path (``:memory:`` stays in-process)."""
    if str(db_path) == ":memory:":
        logger.info("Event store: in-memory")
        return MemoryEventStore()
    logger.info("Event store: sqlite at %s", db_path)
    return SQLiteEventStore(db_path)
