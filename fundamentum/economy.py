"""Member coin balances and the guild shop."""

from __future__ import annotations

import sqlite3
from dataclasses import dataclass
from datetime import datetime, timezone

from .store import format_time

_SHOP_COLUMNS = "id, guild_id, name, cost, role_id, duration_minutes, enabled, created_at"


@dataclass
class EconomyBalanceRow:
    """A member's coin balance."""

    user_id: str
    balance: int


@dataclass
class ShopItemRow:
    """One item for sale; the creation time is kept as the stored string."""

    id: int = 0
    guild_id: str = ""
    name: str = ""
    cost: int = 0
    role_id: str = ""
    duration_minutes: int = 0
    enabled: bool = False
    created_at: str = ""


def _shop_item(record: tuple) -> ShopItemRow:
    item_id, guild_id, name, cost, role_id, duration, enabled, created = record
    return ShopItemRow(
        id=item_id,
        guild_id=guild_id,
        name=name,
        cost=cost,
        role_id=role_id or "",
        duration_minutes=duration,
        enabled=bool(enabled),
        created_at=created,
    )


class EconomyRepo:
    """Reads and writes the ``economy_balances`` and ``shop_items`` tables."""

    def __init__(self, conn: sqlite3.Connection) -> None:
        self._conn = conn

    def add_balance(self, guild_id: str, user_id: str, delta: int) -> None:
        """Add ``delta`` coins to a member's balance, starting from zero."""
        self._conn.execute(
            """INSERT INTO economy_balances(guild_id, user_id, balance, updated_at)
            VALUES(?, ?, ?, ?)
            ON CONFLICT(guild_id, user_id) DO UPDATE SET
                balance = economy_balances.balance + excluded.balance,
                updated_at = excluded.updated_at""",
            (guild_id, user_id, delta, format_time(datetime.now(timezone.utc))),
        )

    def get_balance(self, guild_id: str, user_id: str) -> int:
        """Return a member's balance, zero if none is stored."""
        record = self._conn.execute(
            "SELECT COALESCE(balance, 0) FROM economy_balances WHERE guild_id = ? AND user_id = ?",
            (guild_id, user_id),
        ).fetchone()
        return 0 if record is None else record[0]

    def leaderboard(self, guild_id: str, limit: int = 20) -> list[EconomyBalanceRow]:
        """List the richest members; a non-positive limit means 20."""
        if limit <= 0:
            limit = 20
        cursor = self._conn.execute(
            "SELECT user_id, balance FROM economy_balances WHERE guild_id = ? "
            "ORDER BY balance DESC LIMIT ?",
            (guild_id, limit),
        )
        return [EconomyBalanceRow(*record) for record in cursor]

    def list_shop_items(self, guild_id: str) -> list[ShopItemRow]:
        """List a guild's shop items, cheapest first."""
        cursor = self._conn.execute(
            f"SELECT {_SHOP_COLUMNS} FROM shop_items WHERE guild_id = ? ORDER BY cost ASC, id ASC",
            (guild_id,),
        )
        return [_shop_item(record) for record in cursor]

    def add_shop_item(self, row: ShopItemRow) -> int:
        """Insert a shop item and return its id."""
        cursor = self._conn.execute(
            """INSERT INTO shop_items(guild_id, name, cost, role_id, duration_minutes, enabled, created_at)
            VALUES(?, ?, ?, ?, ?, ?, ?)""",
            (
                row.guild_id,
                row.name,
                row.cost,
                row.role_id,
                row.duration_minutes,
                1 if row.enabled else 0,
                format_time(datetime.now(timezone.utc)),
            ),
        )
        return cursor.lastrowid

    def get_shop_item(self, guild_id: str, item_id: int) -> ShopItemRow | None:
        """Return one shop item of a guild, or None."""
        record = self._conn.execute(
            f"SELECT {_SHOP_COLUMNS} FROM shop_items WHERE guild_id = ? AND id = ?",
            (guild_id, item_id),
        ).fetchone()
        return None if record is None else _shop_item(record)

    def reset_balances(self, guild_id: str) -> int:
        """Delete every balance of a guild and return how many were removed."""
        cursor = self._conn.execute(
            "DELETE FROM economy_balances WHERE guild_id = ?", (guild_id,)
        )
        return cursor.rowcount