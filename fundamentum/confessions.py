"""Anonymous confessions awaiting review or already posted."""

from __future__ import annotations

import sqlite3
from dataclasses import dataclass
from datetime import datetime, timezone

from .store import format_time

_COLUMNS = (
    "id, guild_id, user_id, content, status, posted_message_id, created_at, reviewed_at"
)


@dataclass
class ConfessionRow:
    """One confession; times are kept as stored strings."""

    id: int = 0
    guild_id: str = ""
    user_id: str = ""
    content: str = ""
    status: str = ""
    posted_message_id: str = ""
    created_at: str = ""
    reviewed_at: str = ""


def _confession(record: tuple) -> ConfessionRow:
    (confession_id, guild_id, user_id, content, status, posted, created, reviewed) = record
    return ConfessionRow(
        id=confession_id,
        guild_id=guild_id,
        user_id=user_id,
        content=content,
        status=status,
        posted_message_id=posted or "",
        created_at=created,
        reviewed_at=reviewed or "",
    )


class ConfessionsRepo:
    """Reads and writes the ``confessions`` table."""

    def __init__(self, conn: sqlite3.Connection) -> None:
        self._conn = conn

    def create(self, guild_id: str, user_id: str, content: str, status: str) -> int:
        """Insert a confession with the given status and return its id."""
        cursor = self._conn.execute(
            f"INSERT INTO confessions({_COLUMNS.removeprefix('id, ')}) "
            "VALUES(?, ?, ?, ?, '', ?, '')",
            (guild_id, user_id, content, status, format_time(datetime.now(timezone.utc))),
        )
        return cursor.lastrowid

    def update_status(self, confession_id: int, status: str, posted_message_id: str) -> None:
        """Set a confession's status and posted message, stamping the review time."""
        self._conn.execute(
            "UPDATE confessions SET status=?, posted_message_id=?, reviewed_at=? WHERE id=?",
            (status, posted_message_id, format_time(datetime.now(timezone.utc)), confession_id),
        )

    def get(self, confession_id: int) -> ConfessionRow | None:
        """Return the confession with ``confession_id``, or None."""
        record = self._conn.execute(
            f"SELECT {_COLUMNS} FROM confessions WHERE id = ?", (confession_id,)
        ).fetchone()
        return None if record is None else _confession(record)

    def list_by_status(self, guild_id: str, status: str, limit: int = 100) -> list[ConfessionRow]:
        """List a guild's confessions with one status, newest first.

        A non-positive limit means 100.
        """
        if limit <= 0:
            limit = 100
        cursor = self._conn.execute(
            f"SELECT {_COLUMNS} FROM confessions WHERE guild_id = ? AND status = ? "
            "ORDER BY created_at DESC LIMIT ?",
            (guild_id, status, limit),
        )
        return [_confession(record) for record in cursor]