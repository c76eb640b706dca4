"""Consecutive days of member activity."""

from __future__ import annotations

import sqlite3
from dataclasses import dataclass
from datetime import date, datetime, timedelta, timezone

from .store import format_time, parse_time

_COLUMNS = "guild_id, user_id, current_streak, best_streak, last_active_date, updated_at"


@dataclass
class StreakRow:
    """A member's current and best daily streak."""

    guild_id: str
    user_id: str
    current_streak: int = 0
    best_streak: int = 0
    last_active_date: str = ""
    updated_at: datetime | None = None


def _parse_day(text: str) -> date | None:
    try:
        return datetime.strptime(text, "%Y-%m-%d").date()
    except ValueError:
        return None


def _streak(record: tuple) -> StreakRow:
    guild_id, user_id, current, best, last_date, updated = record
    return StreakRow(guild_id, user_id, current, best, last_date, parse_time(updated))


class StreaksRepo:
    """Reads and writes the ``member_streaks`` table."""

    def __init__(self, conn: sqlite3.Connection) -> None:
        self._conn = conn

    def upsert_daily_activity(
        self, guild_id: str, user_id: str, day: str
    ) -> tuple[StreakRow, bool]:
        """Count activity on ``day`` (``YYYY-MM-DD``) towards a member's streak.

        Returns the streak and whether ``day`` was newly counted. A day right
        after the last active one extends the streak; any other day restarts it.
        """
        record = self._conn.execute(
            "SELECT current_streak, best_streak, last_active_date FROM member_streaks "
            "WHERE guild_id = ? AND user_id = ?",
            (guild_id, user_id),
        ).fetchone()
        if record is None:
            current = best = 1
        else:
            current, best, last_date = record
            if last_date == day:
                return (
                    StreakRow(
                        guild_id, user_id, current, best, last_date, datetime.now(timezone.utc)
                    ),
                    False,
                )
            previous, target = _parse_day(last_date), _parse_day(day)
            consecutive = (
                previous is not None
                and target is not None
                and target - previous == timedelta(days=1)
            )
            current = current + 1 if consecutive else 1
            best = max(best, current)
        now = format_time(datetime.now(timezone.utc))
        self._conn.execute(
            f"""INSERT INTO member_streaks({_COLUMNS}) VALUES(?, ?, ?, ?, ?, ?)
            ON CONFLICT(guild_id, user_id) DO UPDATE SET
                current_streak=excluded.current_streak,
                best_streak=excluded.best_streak,
                last_active_date=excluded.last_active_date,
                updated_at=excluded.updated_at""",
            (guild_id, user_id, current, best, day, now),
        )
        return StreakRow(guild_id, user_id, current, best, day, parse_time(now)), True

    def leaderboard(self, guild_id: str, limit: int = 20) -> list[StreakRow]:
        """List members by current, then best streak; a non-positive limit means 20."""
        if limit <= 0:
            limit = 20
        cursor = self._conn.execute(
            f"SELECT {_COLUMNS} FROM member_streaks WHERE guild_id = ? "
            "ORDER BY current_streak DESC, best_streak DESC LIMIT ?",
            (guild_id, limit),
        )
        return [_streak(record) for record in cursor]

    def get_user(self, guild_id: str, user_id: str) -> StreakRow | None:
        """Return a member's streak, or None."""
        record = self._conn.execute(
            f"SELECT {_COLUMNS} FROM member_streaks WHERE guild_id = ? AND user_id = ?",
            (guild_id, user_id),
        ).fetchone()
        return None if record is None else _streak(record)