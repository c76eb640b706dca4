"""Member birthdays stored as month-day strings."""

from __future__ import annotations

import sqlite3
from dataclasses import dataclass
from datetime import datetime, timezone

from .store import format_time, parse_time

_COLUMNS = "guild_id, user_id, birthday_mmdd, timezone, created_at, updated_at"


@dataclass
class BirthdayRow:
    """One member's birthday and the time zone it is observed in."""

    guild_id: str
    user_id: str
    birthday_mmdd: str = ""
    timezone: str = "UTC"
    created_at: datetime | None = None
    updated_at: datetime | None = None


def _birthday(record: tuple) -> BirthdayRow:
    guild_id, user_id, mmdd, tz, created, updated = record
    return BirthdayRow(
        guild_id=guild_id,
        user_id=user_id,
        birthday_mmdd=mmdd,
        timezone=tz,
        created_at=parse_time(created),
        updated_at=parse_time(updated),
    )


class BirthdaysRepo:
    """Reads and writes the ``birthdays`` table."""

    def __init__(self, conn: sqlite3.Connection) -> None:
        self._conn = conn

    def upsert(self, guild_id: str, user_id: str, mmdd: str, tz: str) -> None:
        """Store a member's birthday, replacing an earlier one."""
        now = format_time(datetime.now(timezone.utc))
        self._conn.execute(
            f"""INSERT INTO birthdays({_COLUMNS}) VALUES(?, ?, ?, ?, ?, ?)
            ON CONFLICT(guild_id, user_id) DO UPDATE SET
                birthday_mmdd=excluded.birthday_mmdd,
                timezone=excluded.timezone,
                updated_at=excluded.updated_at""",
            (guild_id, user_id, mmdd, tz, now, now),
        )

    def delete(self, guild_id: str, user_id: str) -> None:
        """Forget a member's birthday."""
        self._conn.execute(
            "DELETE FROM birthdays WHERE guild_id = ? AND user_id = ?", (guild_id, user_id)
        )

    def list_by_guild(self, guild_id: str, limit: int = 500) -> list[BirthdayRow]:
        """List a guild's birthdays in calendar order; a non-positive limit means 500."""
        if limit <= 0:
            limit = 500
        cursor = self._conn.execute(
            f"SELECT {_COLUMNS} FROM birthdays WHERE guild_id = ? "
            "ORDER BY birthday_mmdd ASC LIMIT ?",
            (guild_id, limit),
        )
        return [_birthday(record) for record in cursor]

    def list_by_date(self, guild_id: str, mmdd: str, limit: int = 200) -> list[BirthdayRow]:
        """List birthdays on one month-day, by user id; a non-positive limit means 200."""
        if limit <= 0:
            limit = 200
        cursor = self._conn.execute(
            f"SELECT {_COLUMNS} FROM birthdays WHERE guild_id = ? AND birthday_mmdd = ? "
            "ORDER BY user_id ASC LIMIT ?",
            (guild_id, mmdd, limit),
        )
        return [_birthday(record) for record in cursor]