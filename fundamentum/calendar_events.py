"""Guild calendar events and member RSVPs."""

from __future__ import annotations

import sqlite3
from dataclasses import dataclass
from datetime import datetime, timezone

from .store import format_time


@dataclass
class CalendarEventRow:
    """One scheduled event; times are kept as stored strings."""

    id: int = 0
    guild_id: str = ""
    title: str = ""
    details: str = ""
    start_at: str = ""
    created_by: str = ""
    created_at: str = ""


@dataclass
class CalendarRSVPRow:
    """One member's response to an event."""

    event_id: int
    user_id: str
    status: str
    updated_at: str = ""


class CalendarRepo:
    """Reads and writes the ``calendar_events`` and ``calendar_event_rsvps`` tables."""

    def __init__(self, conn: sqlite3.Connection) -> None:
        self._conn = conn

    def create_event(self, row: CalendarEventRow) -> int:
        """Insert an event and return its id."""
        cursor = self._conn.execute(
            """INSERT INTO calendar_events(guild_id, title, details, start_at, created_by, created_at)
            VALUES(?, ?, ?, ?, ?, ?)""",
            (
                row.guild_id,
                row.title,
                row.details,
                row.start_at,
                row.created_by,
                format_time(datetime.now(timezone.utc)),
            ),
        )
        return cursor.lastrowid

    def list_events(self, guild_id: str, limit: int = 50) -> list[CalendarEventRow]:
        """List a guild's events by start time; a non-positive limit means 50."""
        if limit <= 0:
            limit = 50
        cursor = self._conn.execute(
            """SELECT id, guild_id, title, details, start_at, created_by, created_at
            FROM calendar_events WHERE guild_id = ? ORDER BY start_at ASC LIMIT ?""",
            (guild_id, limit),
        )
        return [
            CalendarEventRow(
                id=event_id,
                guild_id=guild,
                title=title,
                details=details or "",
                start_at=start,
                created_by=creator,
                created_at=created,
            )
            for (event_id, guild, title, details, start, creator, created) in cursor
        ]

    def set_rsvp(self, event_id: int, user_id: str, status: str) -> None:
        """Record or change a member's RSVP for an event."""
        self._conn.execute(
            """INSERT INTO calendar_event_rsvps(event_id, user_id, status, updated_at)
            VALUES(?, ?, ?, ?)
            ON CONFLICT(event_id, user_id) DO UPDATE SET
                status=excluded.status, updated_at=excluded.updated_at""",
            (event_id, user_id, status, format_time(datetime.now(timezone.utc))),
        )

    def list_rsvps(self, event_id: int) -> list[CalendarRSVPRow]:
        """List an event's RSVPs, most recently changed first."""
        cursor = self._conn.execute(
            "SELECT event_id, user_id, status, updated_at FROM calendar_event_rsvps "
            "WHERE event_id = ? ORDER BY updated_at DESC",
            (event_id,),
        )
        return [CalendarRSVPRow(*record) for record in cursor]