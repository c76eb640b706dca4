"""Messages reposted to the starboard once they collect enough stars."""

from __future__ import annotations

import sqlite3
from dataclasses import dataclass
from datetime import datetime, timezone

from .store import format_time, parse_time

_COLUMNS = (
    "id, guild_id, source_channel_id, source_message_id, starboard_channel_id, "
    "starboard_message_id, star_count, last_updated_at, posted_at"
)


@dataclass
class StarboardEntryRow:
    """One starred source message and its starboard copy."""

    id: int = 0
    guild_id: str = ""
    source_channel_id: str = ""
    source_message_id: str = ""
    starboard_channel: str = ""
    starboard_message: str = ""
    star_count: int = 0
    last_updated_at: datetime | None = None
    posted_at: datetime | None = None


class StarboardRepo:
    """Reads and writes the ``starboard_entries`` table."""

    def __init__(self, conn: sqlite3.Connection) -> None:
        self._conn = conn

    def get_by_source(
        self, guild_id: str, source_channel_id: str, source_message_id: str
    ) -> StarboardEntryRow | None:
        """Return the entry for a source message, or None."""
        record = self._conn.execute(
            f"""SELECT {_COLUMNS} FROM starboard_entries
            WHERE guild_id = ? AND source_channel_id = ? AND source_message_id = ? LIMIT 1""",
            (guild_id, source_channel_id, source_message_id),
        ).fetchone()
        if record is None:
            return None
        (entry_id, guild, channel, message, board_channel, board_message, stars, updated, posted) = (
            record
        )
        return StarboardEntryRow(
            id=entry_id,
            guild_id=guild,
            source_channel_id=channel,
            source_message_id=message,
            starboard_channel=board_channel,
            starboard_message=board_message,
            star_count=stars,
            last_updated_at=parse_time(updated),
            posted_at=parse_time(posted),
        )

    def upsert(self, row: StarboardEntryRow) -> None:
        """Store an entry for its source message, replacing an earlier one."""
        self._conn.execute(
            f"""INSERT INTO starboard_entries({_COLUMNS.removeprefix('id, ')})
            VALUES(?, ?, ?, ?, ?, ?, ?, ?)
            ON CONFLICT(guild_id, source_channel_id, source_message_id) DO UPDATE SET
                starboard_channel_id=excluded.starboard_channel_id,
                starboard_message_id=excluded.starboard_message_id,
                star_count=excluded.star_count,
                last_updated_at=excluded.last_updated_at,
                posted_at=excluded.posted_at""",
            (
                row.guild_id,
                row.source_channel_id,
                row.source_message_id,
                row.starboard_channel,
                row.starboard_message,
                row.star_count,
                format_time(datetime.now(timezone.utc)),
                format_time(row.posted_at) if row.posted_at is not None else None,
            ),
        )