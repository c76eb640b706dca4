"""Roles granted to members for a limited time."""

from __future__ import annotations

import sqlite3
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone

from .store import format_time


@dataclass
class RoleRentalRow:
    """One timed role grant; times are kept as stored strings."""

    id: int = 0
    guild_id: str = ""
    user_id: str = ""
    role_id: str = ""
    started_at: str = ""
    expires_at: str = ""
    status: str = ""


class RoleRentalsRepo:
    """Reads and writes the ``role_rentals`` table."""

    def __init__(self, conn: sqlite3.Connection) -> None:
        self._conn = conn

    def create(self, guild_id: str, user_id: str, role_id: str, duration_minutes: int) -> None:
        """Start an active rental lasting ``duration_minutes`` from now."""
        now = datetime.now(timezone.utc)
        expires = now + timedelta(minutes=duration_minutes)
        self._conn.execute(
            """INSERT INTO role_rentals(guild_id, user_id, role_id, started_at, expires_at, status)
            VALUES(?, ?, ?, ?, ?, 'active')""",
            (guild_id, user_id, role_id, format_time(now), format_time(expires)),
        )

    def due(self, now: datetime, limit: int = 100) -> list[RoleRentalRow]:
        """List active rentals expiring at or before ``now``, earliest first.

        A non-positive limit means 100.
        """
        if limit <= 0:
            limit = 100
        cursor = self._conn.execute(
            """SELECT id, guild_id, user_id, role_id, started_at, expires_at, status
            FROM role_rentals WHERE status='active' AND expires_at <= ?
            ORDER BY expires_at ASC LIMIT ?""",
            (format_time(now), limit),
        )
        return [RoleRentalRow(*record) for record in cursor]

    def mark_expired(self, rental_id: int) -> None:
        """Mark a rental as expired."""
        self._conn.execute("UPDATE role_rentals SET status='expired' WHERE id = ?", (rental_id,))