"""Private moderator notes about members."""

from __future__ import annotations

import sqlite3
from dataclasses import dataclass
from datetime import datetime, timezone

from .store import format_time, parse_time


@dataclass
class MemberNoteRow:
    """One note about a member."""

    id: int = 0
    guild_id: str = ""
    user_id: str = ""
    author_id: str = ""
    body: str = ""
    created_at: datetime | None = None
    resolved_at: datetime | None = None


class MemberNotesRepo:
    """Reads and writes the ``member_notes`` table."""

    def __init__(self, conn: sqlite3.Connection) -> None:
        self._conn = conn

    def create(self, row: MemberNoteRow) -> int:
        """Insert an unresolved note and return its id."""
        cursor = self._conn.execute(
            """INSERT INTO member_notes(
                guild_id, user_id, author_id, body, created_at, resolved_at
            ) VALUES(?, ?, ?, ?, ?, NULL)""",
            (
                row.guild_id,
                row.user_id,
                row.author_id,
                row.body,
                format_time(datetime.now(timezone.utc)),
            ),
        )
        return cursor.lastrowid

    def list(self, guild_id: str, user_id: str = "", limit: int = 100) -> list[MemberNoteRow]:
        """List a guild's notes, newest first, optionally about one member.

        A non-positive limit means 100.
        """
        if limit <= 0:
            limit = 100
        query = (
            "SELECT id, guild_id, user_id, author_id, body, created_at, resolved_at "
            "FROM member_notes WHERE guild_id = ?"
        )
        args: list[object] = [guild_id]
        if user_id:
            query += " AND user_id = ?"
            args.append(user_id)
        query += " ORDER BY created_at DESC LIMIT ?"
        args.append(limit)
        return [
            MemberNoteRow(
                id=note_id,
                guild_id=guild,
                user_id=user,
                author_id=author,
                body=body,
                created_at=parse_time(created),
                resolved_at=parse_time(resolved),
            )
            for (note_id, guild, user, author, body, created, resolved) in self._conn.execute(
                query, args
            )
        ]

    def resolve(self, guild_id: str, note_id: int) -> None:
        """Mark a note resolved now."""
        self._conn.execute(
            "UPDATE member_notes SET resolved_at = ? WHERE guild_id = ? AND id = ?",
            (format_time(datetime.now(timezone.utc)), guild_id, note_id),
        )