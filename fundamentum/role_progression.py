"""Rules that grant roles when a member's metric passes a threshold."""

from __future__ import annotations

import sqlite3
from dataclasses import dataclass
from datetime import datetime, timezone

from .store import format_time, parse_time


@dataclass
class RoleProgressionRuleRow:
    """One metric threshold and the role it grants."""

    id: int = 0
    guild_id: str = ""
    metric: str = ""
    threshold: int = 0
    role_id: str = ""
    enabled: bool = False
    created_at: datetime | None = None


class RoleProgressionRepo:
    """Reads and writes the ``role_progression_rules`` table."""

    def __init__(self, conn: sqlite3.Connection) -> None:
        self._conn = conn

    def list_by_guild(self, guild_id: str) -> list[RoleProgressionRuleRow]:
        """List a guild's rules by metric, then threshold, then id."""
        cursor = self._conn.execute(
            """SELECT id, guild_id, metric, threshold, role_id, enabled, created_at
            FROM role_progression_rules WHERE guild_id = ?
            ORDER BY metric ASC, threshold ASC, id ASC""",
            (guild_id,),
        )
        return [
            RoleProgressionRuleRow(
                id=rule_id,
                guild_id=guild,
                metric=metric,
                threshold=threshold,
                role_id=role,
                enabled=enabled == 1,
                created_at=parse_time(created),
            )
            for (rule_id, guild, metric, threshold, role, enabled, created) in cursor
        ]

    def create(self, row: RoleProgressionRuleRow) -> int:
        """Insert a rule and return its id."""
        cursor = self._conn.execute(
            """INSERT INTO role_progression_rules(guild_id, metric, threshold, role_id, enabled, created_at)
            VALUES(?, ?, ?, ?, ?, ?)""",
            (
                row.guild_id,
                row.metric,
                row.threshold,
                row.role_id,
                1 if row.enabled else 0,
                format_time(datetime.now(timezone.utc)),
            ),
        )
        return cursor.lastrowid

    def delete(self, guild_id: str, rule_id: int) -> None:
        """Delete one rule of a guild."""
        self._conn.execute(
            "DELETE FROM role_progression_rules WHERE guild_id = ? AND id = ?",
            (guild_id, rule_id),
        )