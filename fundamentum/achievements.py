"""Badges awarded to members."""

from __future__ import annotations

import json
import sqlite3
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any

from .store import format_time


@dataclass
class AchievementRow:
    """One awarded badge; times and metadata are kept as stored strings."""

    badge_key: str
    badge_name: str
    awarded_at: str = ""
    meta_json: str = ""


class AchievementsRepo:
    """Reads and writes the ``achievements`` table."""

    def __init__(self, conn: sqlite3.Connection) -> None:
        self._conn = conn

    def award_if_missing(
        self, guild_id: str, user_id: str, key: str, name: str, meta: dict[str, Any] | None
    ) -> None:
        """Award a badge unless the member already holds one with that key."""
        meta_text = json.dumps(meta, sort_keys=True, separators=(",", ":"), ensure_ascii=False)
        self._conn.execute(
            """INSERT OR IGNORE INTO achievements(
                guild_id, user_id, badge_key, badge_name, awarded_at, meta_json
            ) VALUES(?, ?, ?, ?, ?, ?)""",
            (guild_id, user_id, key, name, format_time(datetime.now(timezone.utc)), meta_text),
        )

    def list_by_user(self, guild_id: str, user_id: str, limit: int = 50) -> list[AchievementRow]:
        """List a member's badges, newest first; a non-positive limit means 50."""
        if limit <= 0:
            limit = 50
        cursor = self._conn.execute(
            """SELECT badge_key, badge_name, awarded_at, meta_json
            FROM achievements WHERE guild_id = ? AND user_id = ?
            ORDER BY awarded_at DESC LIMIT ?""",
            (guild_id, user_id, limit),
        )
        return [AchievementRow(*record) for record in cursor]