"""Reputation points members give one another."""

from __future__ import annotations

import sqlite3
from dataclasses import dataclass
from datetime import datetime, timezone

from .store import format_time, parse_time


@dataclass
class ReputationLeaderboardRow:
    """A member's total received reputation."""

    user_id: str
    score: int


class ReputationRepo:
    """Reads and writes the ``reputation_points`` table."""

    def __init__(self, conn: sqlite3.Connection) -> None:
        self._conn = conn

    def last_given_at(
        self, guild_id: str, from_user_id: str, to_user_id: str
    ) -> datetime | None:
        """Return when ``from_user_id`` last gave reputation to ``to_user_id``, or None."""
        record = self._conn.execute(
            "SELECT last_given_at FROM reputation_points "
            "WHERE guild_id = ? AND from_user_id = ? AND to_user_id = ?",
            (guild_id, from_user_id, to_user_id),
        ).fetchone()
        return None if record is None else parse_time(record[0])

    def add_delta(self, guild_id: str, from_user_id: str, to_user_id: str, delta: int) -> None:
        """Add ``delta`` points from one member to another, stamping the time."""
        self._conn.execute(
            """INSERT INTO reputation_points(guild_id, from_user_id, to_user_id, score, last_given_at)
            VALUES(?, ?, ?, ?, ?)
            ON CONFLICT(guild_id, from_user_id, to_user_id) DO UPDATE SET
                score = reputation_points.score + excluded.score,
                last_given_at = excluded.last_given_at""",
            (guild_id, from_user_id, to_user_id, delta, format_time(datetime.now(timezone.utc))),
        )

    def leaderboard(self, guild_id: str, limit: int = 20) -> list[ReputationLeaderboardRow]:
        """List members by total received reputation; a non-positive limit means 20."""
        if limit <= 0:
            limit = 20
        cursor = self._conn.execute(
            """SELECT to_user_id, COALESCE(SUM(score), 0) AS total
            FROM reputation_points WHERE guild_id = ?
            GROUP BY to_user_id ORDER BY total DESC LIMIT ?""",
            (guild_id, limit),
        )
        return [ReputationLeaderboardRow(*record) for record in cursor]

    def total_for_user(self, guild_id: str, user_id: str) -> int:
        """Return a member's total received reputation, zero if none."""
        (total,) = self._conn.execute(
            "SELECT COALESCE(SUM(score), 0) FROM reputation_points "
            "WHERE guild_id = ? AND to_user_id = ?",
            (guild_id, user_id),
        ).fetchone()
        return total