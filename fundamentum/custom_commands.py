"""Guild-defined trigger phrases and their canned responses."""

from __future__ import annotations

import sqlite3
from dataclasses import dataclass
from datetime import datetime, timezone

from .store import format_time, parse_time

_COLUMNS = "id, guild_id, trigger, response, created_at"


@dataclass
class CustomCommandRow:
    """One custom command."""

    id: int = 0
    guild_id: str = ""
    trigger: str = ""
    response: str = ""
    created_at: datetime | None = None


def _normalize_trigger(trigger: str) -> str:
    return trigger.lower().strip()


def _command(record: tuple) -> CustomCommandRow:
    command_id, guild_id, trigger, response, created = record
    return CustomCommandRow(command_id, guild_id, trigger, response, parse_time(created))


class CustomCommandsRepo:
    """Reads and writes the ``custom_commands`` table."""

    def __init__(self, conn: sqlite3.Connection) -> None:
        self._conn = conn

    def list_by_guild(self, guild_id: str) -> list[CustomCommandRow]:
        """List a guild's commands ordered by trigger."""
        cursor = self._conn.execute(
            f"SELECT {_COLUMNS} FROM custom_commands WHERE guild_id = ? ORDER BY trigger ASC",
            (guild_id,),
        )
        return [_command(record) for record in cursor]

    def create(self, row: CustomCommandRow) -> int:
        """Insert a command with a lower-cased, trimmed trigger; return its id."""
        cursor = self._conn.execute(
            "INSERT INTO custom_commands(guild_id, trigger, response, created_at) "
            "VALUES(?, ?, ?, ?)",
            (
                row.guild_id,
                _normalize_trigger(row.trigger),
                row.response.strip(),
                format_time(datetime.now(timezone.utc)),
            ),
        )
        return cursor.lastrowid

    def delete(self, guild_id: str, command_id: int) -> None:
        """Delete one command of a guild."""
        self._conn.execute(
            "DELETE FROM custom_commands WHERE guild_id = ? AND id = ?", (guild_id, command_id)
        )

    def delete_all_by_guild(self, guild_id: str) -> None:
        """Delete every command of a guild."""
        self._conn.execute("DELETE FROM custom_commands WHERE guild_id = ?", (guild_id,))

    def find_by_trigger(self, guild_id: str, trigger: str) -> CustomCommandRow | None:
        """Return the command matching ``trigger`` case-insensitively, or None."""
        record = self._conn.execute(
            f"SELECT {_COLUMNS} FROM custom_commands WHERE guild_id = ? AND trigger = ? LIMIT 1",
            (guild_id, _normalize_trigger(trigger)),
        ).fetchone()
        return None if record is None else _command(record)