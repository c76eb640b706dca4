"""Rules that grant roles when members react to a message."""

from __future__ import annotations

import contextlib
import sqlite3
from dataclasses import dataclass
from datetime import datetime, timezone

from .store import format_time, parse_time


@dataclass
class ReactionRoleRule:
    """One emoji-to-role rule with its optional selection constraints."""

    id: int = 0
    guild_id: str = ""
    channel_id: str = ""
    message_id: str = ""
    emoji: str = ""
    role_id: str = ""
    group_key: str = ""
    max_select: int = 0
    min_select: int = 0
    remove_on_unreact: bool = False
    created_at: datetime | None = None


class ReactionRolesRepo:
    """Reads and writes the reaction-role rule tables."""

    def __init__(self, conn: sqlite3.Connection) -> None:
        self._conn = conn

    def list_by_guild(self, guild_id: str) -> list[ReactionRoleRule]:
        """List a guild's rules in creation order."""
        cursor = self._conn.execute(
            """SELECT rr.id, rr.guild_id, rr.channel_id, rr.message_id, rr.emoji, rr.role_id,
                COALESCE(c.group_key, ''), COALESCE(c.max_select, 0), COALESCE(c.min_select, 0),
                rr.remove_on_unreact, rr.created_at
            FROM reaction_role_rules rr
            LEFT JOIN reaction_role_rule_constraints c ON c.rule_id = rr.id
            WHERE rr.guild_id = ?
            ORDER BY rr.id ASC""",
            (guild_id,),
        )
        return [
            ReactionRoleRule(
                id=rule_id,
                guild_id=guild,
                channel_id=channel,
                message_id=message,
                emoji=emoji,
                role_id=role,
                group_key=group_key,
                max_select=max_select,
                min_select=min_select,
                remove_on_unreact=remove == 1,
                created_at=parse_time(created),
            )
            for (
                rule_id,
                guild,
                channel,
                message,
                emoji,
                role,
                group_key,
                max_select,
                min_select,
                remove,
                created,
            ) in cursor
        ]

    def create(self, rule: ReactionRoleRule) -> int:
        """Insert a rule and its constraints; return the rule id."""
        cursor = self._conn.execute(
            """INSERT INTO reaction_role_rules(
                guild_id, channel_id, message_id, emoji, role_id, remove_on_unreact, created_at
            ) VALUES(?, ?, ?, ?, ?, ?, ?)""",
            (
                rule.guild_id,
                rule.channel_id,
                rule.message_id,
                rule.emoji,
                rule.role_id,
                1 if rule.remove_on_unreact else 0,
                format_time(datetime.now(timezone.utc)),
            ),
        )
        rule_id = cursor.lastrowid
        # Constraints are best effort: a failure leaves the rule unconstrained.
        with contextlib.suppress(sqlite3.Error):
            self._conn.execute(
                """INSERT OR REPLACE INTO reaction_role_rule_constraints(
                    rule_id, group_key, max_select, min_select
                ) VALUES(?, ?, ?, ?)""",
                (rule_id, rule.group_key, rule.max_select, rule.min_select),
            )
        return rule_id

    def delete(self, guild_id: str, rule_id: int) -> None:
        """Delete one rule of a guild and its constraints."""
        with contextlib.suppress(sqlite3.Error):
            self._conn.execute(
                "DELETE FROM reaction_role_rule_constraints WHERE rule_id = ?", (rule_id,)
            )
        self._conn.execute(
            "DELETE FROM reaction_role_rules WHERE guild_id = ? AND id = ?", (guild_id, rule_id)
        )

    def delete_all_by_guild(self, guild_id: str) -> None:
        """Delete every rule of a guild and their constraints."""
        with contextlib.suppress(sqlite3.Error):
            self._conn.execute(
                """DELETE FROM reaction_role_rule_constraints WHERE rule_id IN
                (SELECT id FROM reaction_role_rules WHERE guild_id = ?)""",
                (guild_id,),
            )
        self._conn.execute("DELETE FROM reaction_role_rules WHERE guild_id = ?", (guild_id,))