"""Experience points and levels earned by chatting."""

from __future__ import annotations

import sqlite3
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone

from .store import format_time, parse_time

_DEFAULT_BASE = 100
_COLUMNS = "guild_id, user_id, username, xp, level, last_xp_at"


@dataclass
class MemberLevelRow:
    """A member's experience and level."""

    guild_id: str
    user_id: str
    username: str = ""
    xp: int = 0
    level: int = 0
    last_xp_at: datetime | None = None


def xp_for_level(level: int, curve: str, base: int) -> int:
    """Return the total experience needed to reach ``level``.

    The ``linear`` curve needs ``level * base``; any other curve is quadratic,
    ``level * level * base``. A non-positive base means 100.
    """
    if level <= 0:
        return 0
    if base <= 0:
        base = _DEFAULT_BASE
    if curve == "linear":
        return level * base
    return level * level * base


def level_for_xp(xp: int, curve: str, base: int) -> int:
    """Return the highest level whose requirement ``xp`` meets."""
    level = 0
    while xp_for_level(level + 1, curve, base) <= xp:
        level += 1
    return level


def _member(record: tuple) -> MemberLevelRow:
    guild_id, user_id, username, xp, level, last = record
    return MemberLevelRow(
        guild_id=guild_id,
        user_id=user_id,
        username=username or "",
        xp=xp,
        level=level,
        last_xp_at=parse_time(last),
    )


class LevelingRepo:
    """Reads and writes the ``member_levels`` table."""

    def __init__(self, conn: sqlite3.Connection) -> None:
        self._conn = conn

    def add_xp_if_due(
        self,
        guild_id: str,
        user_id: str,
        username: str,
        add_xp: int,
        cooldown_sec: int,
        curve: str,
        base: int,
    ) -> tuple[MemberLevelRow, bool]:
        """Grant ``add_xp`` unless the member is still in cooldown.

        Returns the member's row and whether the member reached a higher level.
        While in cooldown the stored row is returned unchanged with False.
        """
        now = datetime.now(timezone.utc)
        row = self.get_member(guild_id, user_id)
        if row is None:
            row = MemberLevelRow(guild_id=guild_id, user_id=user_id, username=username)

        if (
            cooldown_sec > 0
            and row.last_xp_at is not None
            and now - row.last_xp_at < timedelta(seconds=cooldown_sec)
        ):
            return row, False

        previous_level = row.level
        row.xp = max(row.xp + add_xp, 0)
        row.level = level_for_xp(row.xp, curve, base)
        row.last_xp_at = now
        row.username = username

        self._conn.execute(
            f"""INSERT INTO member_levels({_COLUMNS}) VALUES(?, ?, ?, ?, ?, ?)
            ON CONFLICT(guild_id, user_id) DO UPDATE SET
                username=excluded.username,
                xp=excluded.xp,
                level=excluded.level,
                last_xp_at=excluded.last_xp_at""",
            (row.guild_id, row.user_id, row.username, row.xp, row.level, format_time(now)),
        )
        return row, row.level > previous_level

    def get_member(self, guild_id: str, user_id: str) -> MemberLevelRow | None:
        """Return a member's level row, or None."""
        record = self._conn.execute(
            f"SELECT {_COLUMNS} FROM member_levels WHERE guild_id = ? AND user_id = ?",
            (guild_id, user_id),
        ).fetchone()
        return None if record is None else _member(record)

    def top_by_guild(self, guild_id: str, limit: int = 20) -> list[MemberLevelRow]:
        """List members by experience, earliest earner first on ties.

        A non-positive limit means 20.
        """
        if limit <= 0:
            limit = 20
        cursor = self._conn.execute(
            f"""SELECT {_COLUMNS} FROM member_levels WHERE guild_id = ?
            ORDER BY xp DESC, last_xp_at ASC LIMIT ?""",
            (guild_id, limit),
        )
        return [_member(record) for record in cursor]

    def reset_guild(self, guild_id: str) -> int:
        """Delete every level row of a guild and return how many were removed."""
        cursor = self._conn.execute("DELETE FROM member_levels WHERE guild_id = ?", (guild_id,))
        return cursor.rowcount