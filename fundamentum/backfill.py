"""Progress markers for historical message backfill, per channel."""

from __future__ import annotations

import sqlite3
from datetime import datetime, timezone

from .store import format_time


class BackfillRepo:
    """Reads and writes the ``backfill_state`` table."""

    def __init__(self, conn: sqlite3.Connection) -> None:
        self._conn = conn

    def get_state(self, guild_id: str, channel_id: str) -> str | None:
        """Return the last scanned message id for a channel.

        Returns None when the channel has never been scanned, and an empty
        string when a state row exists without a message id.
        """
        record = self._conn.execute(
            "SELECT last_scanned_message_id FROM backfill_state "
            "WHERE guild_id = ? AND channel_id = ?",
            (guild_id, channel_id),
        ).fetchone()
        if record is None:
            return None
        return record[0] or ""

    def upsert_state(self, guild_id: str, channel_id: str, last_message_id: str) -> None:
        """Store the last scanned message id for a channel."""
        self._conn.execute(
            """INSERT INTO backfill_state(guild_id, channel_id, last_scanned_message_id, updated_at)
            VALUES(?, ?, ?, ?)
            ON CONFLICT(guild_id, channel_id) DO UPDATE SET
                last_scanned_message_id=excluded.last_scanned_message_id,
                updated_at=excluded.updated_at""",
            (guild_id, channel_id, last_message_id, format_time(datetime.now(timezone.utc))),
        )