"""Outgoing webhook integrations subscribed to guild events."""

from __future__ import annotations

import json
import sqlite3
from dataclasses import dataclass, field
from datetime import datetime, timezone

from .store import format_time, parse_time

_COLUMNS = "id, guild_id, url, events_json, enabled, last_error, created_at, updated_at"


@dataclass
class WebhookIntegrationRow:
    """One webhook target and the events it receives."""

    id: int = 0
    guild_id: str = ""
    url: str = ""
    events: list[str] = field(default_factory=list)
    enabled: bool = False
    last_error: str = ""
    created_at: datetime | None = None
    updated_at: datetime | None = None


def _events(raw: str | None) -> list[str]:
    try:
        value = json.loads(raw or "")
    except (json.JSONDecodeError, TypeError):
        return []
    return value if isinstance(value, list) else []


def _webhook(record: tuple) -> WebhookIntegrationRow:
    (hook_id, guild_id, url, events, enabled, last_error, created, updated) = record
    return WebhookIntegrationRow(
        id=hook_id,
        guild_id=guild_id,
        url=url,
        events=_events(events),
        enabled=bool(enabled),
        last_error=last_error or "",
        created_at=parse_time(created),
        updated_at=parse_time(updated),
    )


class WebhooksRepo:
    """Reads and writes the ``webhook_integrations`` table."""

    def __init__(self, conn: sqlite3.Connection) -> None:
        self._conn = conn

    def list_by_guild(self, guild_id: str) -> list[WebhookIntegrationRow]:
        """List a guild's webhooks, newest first."""
        cursor = self._conn.execute(
            f"SELECT {_COLUMNS} FROM webhook_integrations WHERE guild_id = ? ORDER BY id DESC",
            (guild_id,),
        )
        return [_webhook(record) for record in cursor]

    def list_enabled_by_guild(self, guild_id: str) -> list[WebhookIntegrationRow]:
        """List a guild's enabled webhooks, newest first."""
        cursor = self._conn.execute(
            f"SELECT {_COLUMNS} FROM webhook_integrations "
            "WHERE guild_id = ? AND enabled = 1 ORDER BY id DESC",
            (guild_id,),
        )
        return [_webhook(record) for record in cursor]

    def create(self, row: WebhookIntegrationRow) -> int:
        """Insert a webhook with no error recorded and return its id."""
        now = format_time(datetime.now(timezone.utc))
        cursor = self._conn.execute(
            """INSERT INTO webhook_integrations(
                guild_id, url, events_json, enabled, last_error, created_at, updated_at
            ) VALUES(?, ?, ?, ?, '', ?, ?)""",
            (
                row.guild_id,
                row.url,
                json.dumps(row.events, separators=(",", ":"), ensure_ascii=False),
                1 if row.enabled else 0,
                now,
                now,
            ),
        )
        return cursor.lastrowid

    def delete(self, guild_id: str, webhook_id: int) -> None:
        """Delete one webhook of a guild."""
        self._conn.execute(
            "DELETE FROM webhook_integrations WHERE guild_id = ? AND id = ?",
            (guild_id, webhook_id),
        )

    def set_last_error(self, webhook_id: int, error_text: str) -> None:
        """Record the latest delivery error of a webhook; empty clears it."""
        self._conn.execute(
            "UPDATE webhook_integrations SET last_error = ?, updated_at = ? WHERE id = ?",
            (error_text, format_time(datetime.now(timezone.utc)), webhook_id),
        )