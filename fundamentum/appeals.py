"""Moderation appeals submitted by members."""

from __future__ import annotations

import sqlite3
from dataclasses import dataclass
from datetime import datetime, timezone

from .store import format_time, parse_time

_COLUMNS = (
    "id, guild_id, user_id, reason, status, resolution, reviewed_by, created_at, reviewed_at"
)


@dataclass
class AppealRow:
    """One appeal and its review state."""

    id: int = 0
    guild_id: str = ""
    user_id: str = ""
    reason: str = ""
    status: str = ""
    resolution: str = ""
    reviewed_by: str = ""
    created_at: datetime | None = None
    reviewed_at: datetime | None = None


def _appeal(record: tuple) -> AppealRow:
    (appeal_id, guild_id, user_id, reason, status, resolution, reviewer, created, reviewed) = record
    return AppealRow(
        id=appeal_id,
        guild_id=guild_id,
        user_id=user_id,
        reason=reason,
        status=status,
        resolution=resolution or "",
        reviewed_by=reviewer or "",
        created_at=parse_time(created),
        reviewed_at=parse_time(reviewed) if reviewed is not None else None,
    )


class AppealsRepo:
    """Reads and writes the ``appeals`` table."""

    def __init__(self, conn: sqlite3.Connection) -> None:
        self._conn = conn

    def create(self, row: AppealRow) -> int:
        """Open a new appeal and return its id."""
        cursor = self._conn.execute(
            """INSERT INTO appeals(
                guild_id, user_id, reason, status, resolution, reviewed_by, created_at, reviewed_at
            ) VALUES(?, ?, ?, 'open', '', '', ?, NULL)""",
            (row.guild_id, row.user_id, row.reason, format_time(datetime.now(timezone.utc))),
        )
        return cursor.lastrowid

    def list_by_guild(self, guild_id: str, status: str, limit: int) -> list[AppealRow]:
        """List a guild's appeals, newest first, optionally with one status."""
        query = f"SELECT {_COLUMNS} FROM appeals WHERE guild_id = ?"
        args: list[object] = [guild_id]
        if status:
            query += " AND status = ?"
            args.append(status)
        query += " ORDER BY created_at DESC LIMIT ?"
        args.append(limit)
        return [_appeal(record) for record in self._conn.execute(query, args)]

    def resolve(self, guild_id: str, appeal_id: int, actor: str, resolution: str) -> None:
        """Mark an appeal resolved by ``actor`` with the given resolution."""
        self._conn.execute(
            """UPDATE appeals
            SET status='resolved', resolution=?, reviewed_by=?, reviewed_at=?
            WHERE guild_id = ? AND id = ?""",
            (resolution, actor, format_time(datetime.now(timezone.utc)), guild_id, appeal_id),
        )