"""One-off reminders posted to a channel at a set time."""

from __future__ import annotations

import sqlite3
from dataclasses import dataclass
from datetime import datetime, timezone

from .store import format_time, parse_time

_COLUMNS = "id, guild_id, channel_id, content, run_at, status, created_at"


@dataclass
class ReminderRow:
    """One reminder and its delivery state."""

    id: int = 0
    guild_id: str = ""
    channel_id: str = ""
    content: str = ""
    run_at: datetime | None = None
    status: str = ""
    created_at: datetime | None = None


def _reminder(record: tuple) -> ReminderRow:
    reminder_id, guild_id, channel_id, content, run_at, status, created = record
    return ReminderRow(
        id=reminder_id,
        guild_id=guild_id,
        channel_id=channel_id,
        content=content,
        run_at=parse_time(run_at),
        status=status,
        created_at=parse_time(created),
    )


class RemindersRepo:
    """Reads and writes the ``reminders`` table."""

    def __init__(self, conn: sqlite3.Connection) -> None:
        self._conn = conn

    def create(self, row: ReminderRow) -> int:
        """Queue a reminder and return its id."""
        if row.run_at is None:
            raise ValueError("reminder needs a run time")
        cursor = self._conn.execute(
            """INSERT INTO reminders(guild_id, channel_id, content, run_at, status, created_at)
            VALUES(?, ?, ?, ?, 'queued', ?)""",
            (
                row.guild_id,
                row.channel_id,
                row.content,
                format_time(row.run_at),
                format_time(datetime.now(timezone.utc)),
            ),
        )
        return cursor.lastrowid

    def list_by_guild(self, guild_id: str, limit: int = 100) -> list[ReminderRow]:
        """List a guild's reminders, newest first; a non-positive limit means 100."""
        if limit <= 0:
            limit = 100
        cursor = self._conn.execute(
            f"SELECT {_COLUMNS} FROM reminders WHERE guild_id = ? "
            "ORDER BY created_at DESC LIMIT ?",
            (guild_id, limit),
        )
        return [_reminder(record) for record in cursor]

    def list_due(self, now: datetime, limit: int = 50) -> list[ReminderRow]:
        """List queued reminders due at or before ``now``, earliest first.

        A non-positive limit means 50.
        """
        if limit <= 0:
            limit = 50
        cursor = self._conn.execute(
            f"""SELECT {_COLUMNS} FROM reminders
            WHERE status = 'queued' AND run_at <= ?
            ORDER BY run_at ASC LIMIT ?""",
            (format_time(now), limit),
        )
        return [_reminder(record) for record in cursor]

    def mark_sent(self, reminder_id: int) -> None:
        """Mark a reminder as sent."""
        self._conn.execute("UPDATE reminders SET status = 'sent' WHERE id = ?", (reminder_id,))