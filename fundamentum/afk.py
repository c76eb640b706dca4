"""Away-from-keyboard status of members."""

from __future__ import annotations

import sqlite3
from dataclasses import dataclass
from datetime import datetime, timezone

from .store import format_time, parse_time


@dataclass
class AFKStatusRow:
    """A member's AFK reason and when it was set."""

    guild_id: str
    user_id: str
    reason: str = ""
    created_at: datetime | None = None


class AFKRepo:
    """Reads and writes the ``afk_status`` table."""

    def __init__(self, conn: sqlite3.Connection) -> None:
        self._conn = conn

    def set(self, guild_id: str, user_id: str, reason: str) -> None:
        """Mark a member as AFK, replacing any earlier reason."""
        self._conn.execute(
            """INSERT INTO afk_status(guild_id, user_id, reason, created_at)
            VALUES(?, ?, ?, ?)
            ON CONFLICT(guild_id, user_id) DO UPDATE SET
                reason=excluded.reason, created_at=excluded.created_at""",
            (guild_id, user_id, reason, format_time(datetime.now(timezone.utc))),
        )

    def clear(self, guild_id: str, user_id: str) -> None:
        """Remove a member's AFK status."""
        self._conn.execute(
            "DELETE FROM afk_status WHERE guild_id = ? AND user_id = ?",
            (guild_id, user_id),
        )

    def get(self, guild_id: str, user_id: str) -> AFKStatusRow | None:
        """Return a member's AFK status, or None if not AFK."""
        record = self._conn.execute(
            "SELECT guild_id, user_id, reason, created_at FROM afk_status "
            "WHERE guild_id = ? AND user_id = ?",
            (guild_id, user_id),
        ).fetchone()
        if record is None:
            return None
        guild, user, reason, created = record
        return AFKStatusRow(guild, user, reason, parse_time(created))