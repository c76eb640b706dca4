"""History of seasonal resets of leaderboards."""

from __future__ import annotations

import json
import sqlite3
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any

from .store import format_time, parse_time

_COLUMNS = (
    "id, guild_id, triggered_by, modules_json, affected_rows_json, "
    "status, error, started_at, completed_at"
)


@dataclass
class SeasonResetRunRow:
    """One recorded season reset and what it removed."""

    id: int = 0
    guild_id: str = ""
    triggered_by: str = ""
    modules: list[str] = field(default_factory=list)
    affected_rows: dict[str, int] = field(default_factory=dict)
    status: str = ""
    error: str = ""
    started_at: datetime | None = None
    completed_at: datetime | None = None


def _dump(value: Any) -> str:
    return json.dumps(value, sort_keys=True, separators=(",", ":"), ensure_ascii=False)


def _load(raw: str | None, expected: type) -> Any:
    try:
        value = json.loads(raw or "")
    except (json.JSONDecodeError, TypeError):
        return expected()
    return value if isinstance(value, expected) else expected()


def _run(record: tuple) -> SeasonResetRunRow:
    (run_id, guild_id, triggered_by, modules, affected, status, error, started, completed) = record
    return SeasonResetRunRow(
        id=run_id,
        guild_id=guild_id,
        triggered_by=triggered_by,
        modules=_load(modules, list),
        affected_rows=_load(affected, dict),
        status=status,
        error=error or "",
        started_at=parse_time(started),
        completed_at=parse_time(completed),
    )


class SeasonResetsRepo:
    """Reads and writes the ``season_reset_runs`` table."""

    def __init__(self, conn: sqlite3.Connection) -> None:
        self._conn = conn

    def record_run(
        self,
        guild_id: str,
        triggered_by: str,
        modules: list[str] | None,
        affected_rows: dict[str, int] | None,
        status: str,
        run_error: str = "",
        started_at: datetime | None = None,
        completed_at: datetime | None = None,
    ) -> None:
        """Store one reset run.

        A missing start time means now; a missing completion time means the start time.
        """
        if started_at is None:
            started_at = datetime.now(timezone.utc)
        if completed_at is None:
            completed_at = started_at
        self._conn.execute(
            f"INSERT INTO season_reset_runs({_COLUMNS.removeprefix('id, ')}) "
            "VALUES(?, ?, ?, ?, ?, ?, ?, ?)",
            (
                guild_id,
                triggered_by,
                _dump(modules),
                _dump(affected_rows),
                status,
                run_error,
                format_time(started_at),
                format_time(completed_at),
            ),
        )

    def list_runs(self, guild_id: str, limit: int = 20) -> list[SeasonResetRunRow]:
        """List a guild's runs, latest start first; a non-positive limit means 20."""
        if limit <= 0:
            limit = 20
        cursor = self._conn.execute(
            f"SELECT {_COLUMNS} FROM season_reset_runs WHERE guild_id = ? "
            "ORDER BY started_at DESC LIMIT ?",
            (guild_id, limit),
        )
        return [_run(record) for record in cursor]