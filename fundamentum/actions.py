"""Queue of moderation actions awaiting execution."""

from __future__ import annotations

import sqlite3
from dataclasses import dataclass
from datetime import datetime, timezone

from .store import format_time, parse_time

_COLUMNS = (
    "id, guild_id, actor_user_id, target_user_id, type, payload_json, "
    "status, error, created_at, updated_at"
)


@dataclass
class ActionRow:
    """One queued or processed moderation action."""

    id: int = 0
    guild_id: str = ""
    actor_user_id: str = ""
    target_user_id: str = ""
    type: str = ""
    payload_json: str = ""
    status: str = ""
    error: str = ""
    created_at: datetime | None = None
    updated_at: datetime | None = None


def _action(record: tuple) -> ActionRow:
    (action_id, guild_id, actor, target, kind, payload, status, error, created, updated) = record
    return ActionRow(
        id=action_id,
        guild_id=guild_id,
        actor_user_id=actor,
        target_user_id=target,
        type=kind,
        payload_json=payload,
        status=status,
        error=error or "",
        created_at=parse_time(created),
        updated_at=parse_time(updated),
    )


class ActionsRepo:
    """Reads and writes the ``actions`` table."""

    def __init__(self, conn: sqlite3.Connection) -> None:
        self._conn = conn

    def enqueue(self, row: ActionRow) -> int:
        """Insert an action, queued unless it carries a status; return its id."""
        now = format_time(datetime.now(timezone.utc))
        cursor = self._conn.execute(
            """INSERT INTO actions(
                guild_id, actor_user_id, target_user_id, type, payload_json,
                status, error, created_at, updated_at
            ) VALUES(?, ?, ?, ?, ?, ?, ?, ?, ?)""",
            (
                row.guild_id,
                row.actor_user_id,
                row.target_user_id,
                row.type,
                row.payload_json,
                row.status or "queued",
                "",
                now,
                now,
            ),
        )
        return cursor.lastrowid

    def list(self, guild_id: str, status: str, limit: int, offset: int) -> list[ActionRow]:
        """List a guild's actions, newest first, optionally with one status."""
        query = f"SELECT {_COLUMNS} FROM actions WHERE guild_id = ?"
        args: list[object] = [guild_id]
        if status:
            query += " AND status = ?"
            args.append(status)
        query += " ORDER BY created_at DESC LIMIT ? OFFSET ?"
        args.extend([limit, offset])
        return [_action(record) for record in self._conn.execute(query, args)]

    def get(self, action_id: int) -> ActionRow | None:
        """Return the action with ``action_id``, or None."""
        record = self._conn.execute(
            f"SELECT {_COLUMNS} FROM actions WHERE id = ?", (action_id,)
        ).fetchone()
        return None if record is None else _action(record)

    def update_status(self, action_id: int, status: str, error: str) -> None:
        """Set an action's status and error text."""
        self._conn.execute(
            "UPDATE actions SET status = ?, error = ?, updated_at = ? WHERE id = ?",
            (status, error, format_time(datetime.now(timezone.utc)), action_id),
        )

    def next_queued(self) -> ActionRow | None:
        """Return the oldest queued action across all guilds, or None."""
        record = self._conn.execute(
            f"SELECT {_COLUMNS} FROM actions WHERE status = 'queued' "
            "ORDER BY created_at ASC LIMIT 1"
        ).fetchone()
        return None if record is None else _action(record)

    def count_since(self, guild_id: str, since: datetime, status: str = "") -> int:
        """Count a guild's actions created at or after ``since``."""
        query = "SELECT COUNT(*) FROM actions WHERE guild_id = ? AND created_at >= ?"
        args: list[object] = [guild_id, format_time(since)]
        if status:
            query += " AND status = ?"
            args.append(status)
        (count,) = self._conn.execute(query, args).fetchone()
        return count

    def count_by_status(self, guild_id: str, status: str) -> int:
        """Count a guild's actions with the given status."""
        (count,) = self._conn.execute(
            "SELECT COUNT(*) FROM actions WHERE guild_id = ? AND status = ?",
            (guild_id, status),
        ).fetchone()
        return count