"""Moderator warnings issued to members."""

from __future__ import annotations

import sqlite3
from dataclasses import dataclass
from datetime import datetime, timezone

from .store import format_time, parse_time


@dataclass
class WarningRow:
    """One warning."""

    id: int = 0
    guild_id: str = ""
    user_id: str = ""
    actor_user_id: str = ""
    reason: str = ""
    created_at: datetime | None = None


class WarningsRepo:
    """Reads and writes the ``warnings`` table."""

    def __init__(self, conn: sqlite3.Connection) -> None:
        self._conn = conn

    def create(self, row: WarningRow) -> int:
        """Insert a warning stamped now and return its id."""
        cursor = self._conn.execute(
            "INSERT INTO warnings(guild_id, user_id, actor_user_id, reason, created_at) "
            "VALUES(?, ?, ?, ?, ?)",
            (
                row.guild_id,
                row.user_id,
                row.actor_user_id,
                row.reason,
                format_time(datetime.now(timezone.utc)),
            ),
        )
        return cursor.lastrowid

    def count_by_user(self, guild_id: str, user_id: str) -> int:
        """Count a member's warnings."""
        (count,) = self._conn.execute(
            "SELECT COUNT(*) FROM warnings WHERE guild_id = ? AND user_id = ?",
            (guild_id, user_id),
        ).fetchone()
        return count

    def list_by_guild(self, guild_id: str, limit: int) -> list[WarningRow]:
        """List a guild's warnings, newest first."""
        cursor = self._conn.execute(
            """SELECT id, guild_id, user_id, actor_user_id, reason, created_at
            FROM warnings WHERE guild_id = ? ORDER BY created_at DESC LIMIT ?""",
            (guild_id, limit),
        )
        return [
            WarningRow(
                id=warning_id,
                guild_id=guild,
                user_id=user,
                actor_user_id=actor,
                reason=reason or "",
                created_at=parse_time(created),
            )
            for (warning_id, guild, user, actor, reason, created) in cursor
        ]

    def count_since(self, guild_id: str, since: datetime) -> int:
        """Count a guild's warnings created at or after ``since``."""
        (count,) = self._conn.execute(
            "SELECT COUNT(*) FROM warnings WHERE guild_id = ? AND created_at >= ?",
            (guild_id, format_time(since)),
        ).fetchone()
        return count