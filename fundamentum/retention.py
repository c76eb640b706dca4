"""Purging and counting old guild records for data retention."""

from __future__ import annotations

import json
import sqlite3
from datetime import datetime, timezone

from .store import format_time

_TABLES = (
    "warnings",
    "ticket_messages",
    "appeals",
    "suggestions",
    "member_notes",
    "reminders",
    "actions",
)

_SYSTEM_ACTOR = "system:retention"


class RetentionRepo:
    """Removes or counts records created before a cutoff, per guild."""

    def __init__(self, conn: sqlite3.Connection) -> None:
        self._conn = conn

    def purge_guild_before(self, guild_id: str, cutoff: datetime) -> dict[str, int]:
        """Delete a guild's records created before ``cutoff``; return counts per table."""
        cutoff_text = format_time(cutoff)
        return {
            table: self._conn.execute(
                f"DELETE FROM {table} WHERE guild_id = ? AND created_at < ?",
                (guild_id, cutoff_text),
            ).rowcount
            for table in _TABLES
        }

    def count_guild_before(self, guild_id: str, cutoff: datetime) -> dict[str, int]:
        """Count a guild's records created before ``cutoff``, per table."""
        cutoff_text = format_time(cutoff)
        return {
            table: self._conn.execute(
                f"SELECT COUNT(*) FROM {table} WHERE guild_id = ? AND created_at < ?",
                (guild_id, cutoff_text),
            ).fetchone()[0]
            for table in _TABLES
        }

    def record_archive_event(
        self, guild_id: str, cutoff: datetime, rows: dict[str, int] | None
    ) -> None:
        """Record a successful retention archive as a system action."""
        payload = json.dumps(
            {
                "scope": "retention_preview",
                "cutoff": format_time(cutoff),
                "row_counts": rows or {},
            },
            sort_keys=True,
            separators=(",", ":"),
        )
        now = format_time(datetime.now(timezone.utc))
        self._conn.execute(
            """INSERT INTO actions(
                guild_id, actor_user_id, target_user_id, type, payload_json,
                status, error, created_at, updated_at
            ) VALUES(?, ?, ?, ?, ?, 'success', '', ?, ?)""",
            (guild_id, _SYSTEM_ACTOR, _SYSTEM_ACTOR, "retention_archive", payload, now, now),
        )