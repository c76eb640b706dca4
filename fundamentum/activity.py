"""Per-member last-activity tracking."""

from __future__ import annotations

import sqlite3
from dataclasses import dataclass
from datetime import datetime

from .store import format_time, parse_time

_COLUMNS = (
    "guild_id, user_id, last_message_at, last_channel_id, "
    "username, global_name, display_name"
)

_UPSERT = f"""INSERT INTO activity({_COLUMNS}) VALUES(?, ?, ?, ?, ?, ?, ?)
ON CONFLICT(guild_id, user_id) DO UPDATE SET
    last_message_at=excluded.last_message_at,
    last_channel_id=excluded.last_channel_id,
    username=excluded.username,
    global_name=excluded.global_name,
    display_name=excluded.display_name"""


@dataclass
class MemberRow:
    """The most recent activity seen for one member of a guild."""

    guild_id: str
    user_id: str
    last_message_at: datetime | None = None
    last_channel_id: str = ""
    username: str = ""
    global_name: str = ""
    display_name: str = ""


def _member(record: tuple) -> MemberRow:
    guild_id, user_id, last, channel, username, global_name, display = record
    return MemberRow(
        guild_id=guild_id,
        user_id=user_id,
        last_message_at=parse_time(last),
        last_channel_id=channel or "",
        username=username or "",
        global_name=global_name or "",
        display_name=display or "",
    )


class ActivityRepo:
    """Reads and writes the ``activity`` table."""

    def __init__(self, conn: sqlite3.Connection) -> None:
        self._conn = conn

    def upsert_activity(
        self,
        guild_id: str,
        user_id: str,
        channel_id: str,
        ts: datetime,
        username: str,
        global_name: str,
        display_name: str,
    ) -> None:
        """Record activity for a member, replacing what was stored before."""
        self._conn.execute(
            _UPSERT,
            (guild_id, user_id, format_time(ts), channel_id, username, global_name, display_name),
        )

    def upsert_activity_if_stale(
        self,
        guild_id: str,
        user_id: str,
        channel_id: str,
        ts: datetime,
        username: str,
        global_name: str,
        display_name: str,
        cutoff: datetime,
    ) -> bool:
        """Record activity unless the stored activity is at or after ``cutoff``.

        Returns True when a row was inserted or updated.
        """
        cursor = self._conn.execute(
            _UPSERT + "\nWHERE last_message_at < ?",
            (
                guild_id,
                user_id,
                format_time(ts),
                channel_id,
                username,
                global_name,
                display_name,
                format_time(cutoff),
            ),
        )
        return cursor.rowcount > 0

    def list_members(
        self, guild_id: str, limit: int, offset: int, search: str
    ) -> list[MemberRow]:
        """List members of a guild, most recently active first, optionally filtered."""
        query = f"SELECT {_COLUMNS} FROM activity WHERE guild_id = ?"
        args: list[object] = [guild_id]
        if search:
            query += (
                " AND (user_id LIKE ? OR username LIKE ?"
                " OR global_name LIKE ? OR display_name LIKE ?)"
            )
            like = f"%{search.lower()}%"
            args.extend([like] * 4)
        query += " ORDER BY last_message_at DESC LIMIT ? OFFSET ?"
        args.extend([limit, offset])
        return [_member(record) for record in self._conn.execute(query, args)]

    def get_member(self, guild_id: str, user_id: str) -> MemberRow | None:
        """Return one member's activity, or None if none was recorded."""
        record = self._conn.execute(
            f"SELECT {_COLUMNS} FROM activity WHERE guild_id = ? AND user_id = ?",
            (guild_id, user_id),
        ).fetchone()
        return None if record is None else _member(record)

    def active_users_since(self, guild_id: str, since: datetime) -> set[str]:
        """Return the ids of members active at or after ``since``."""
        cursor = self._conn.execute(
            "SELECT user_id FROM activity WHERE guild_id = ? AND last_message_at >= ?",
            (guild_id, format_time(since)),
        )
        return {user_id for (user_id,) in cursor}

    def list_members_all(self, guild_id: str) -> list[MemberRow]:
        """List every tracked member of a guild."""
        cursor = self._conn.execute(
            f"SELECT {_COLUMNS} FROM activity WHERE guild_id = ?", (guild_id,)
        )
        return [_member(record) for record in cursor]

    def count_tracked(self, guild_id: str) -> int:
        """Count the tracked members of a guild."""
        (count,) = self._conn.execute(
            "SELECT COUNT(*) FROM activity WHERE guild_id = ?", (guild_id,)
        ).fetchone()
        return count

    def count_inactive_before(self, guild_id: str, cutoff: datetime) -> int:
        """Count members whose last activity is before ``cutoff``."""
        (count,) = self._conn.execute(
            "SELECT COUNT(*) FROM activity WHERE guild_id = ? AND last_message_at < ?",
            (guild_id, format_time(cutoff)),
        ).fetchone()
        return count