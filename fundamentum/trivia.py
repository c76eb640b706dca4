"""Trivia scores per member."""

from __future__ import annotations

import sqlite3
from dataclasses import dataclass
from datetime import datetime, timezone

from .store import format_time


@dataclass
class TriviaScoreRow:
    """A member's trivia score."""

    user_id: str
    score: int


class TriviaRepo:
    """Reads and writes the ``trivia_scores`` table."""

    def __init__(self, conn: sqlite3.Connection) -> None:
        self._conn = conn

    def add_score(self, guild_id: str, user_id: str, delta: int) -> None:
        """Add ``delta`` points to a member's score, starting from zero."""
        self._conn.execute(
            """INSERT INTO trivia_scores(guild_id, user_id, score, updated_at)
            VALUES(?, ?, ?, ?)
            ON CONFLICT(guild_id, user_id) DO UPDATE SET
                score=trivia_scores.score + excluded.score,
                updated_at=excluded.updated_at""",
            (guild_id, user_id, delta, format_time(datetime.now(timezone.utc))),
        )

    def leaderboard(self, guild_id: str, limit: int = 20) -> list[TriviaScoreRow]:
        """List the top scorers; a non-positive limit means 20."""
        if limit <= 0:
            limit = 20
        cursor = self._conn.execute(
            "SELECT user_id, score FROM trivia_scores WHERE guild_id = ? "
            "ORDER BY score DESC LIMIT ?",
            (guild_id, limit),
        )
        return [TriviaScoreRow(*record) for record in cursor]

    def reset_scores(self, guild_id: str) -> int:
        """Delete every score of a guild and return how many were removed."""
        cursor = self._conn.execute("DELETE FROM trivia_scores WHERE guild_id = ?", (guild_id,))
        return cursor.rowcount