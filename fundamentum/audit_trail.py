"""Hash-chained, append-only audit trail per guild."""

from __future__ import annotations

import hashlib
import json
import sqlite3
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any

from .store import format_time, parse_time

# Escape HTML-sensitive characters so stored payloads keep the canonical encoding.
_ESCAPES = (
    ("<", "\\u003c"),
    (">", "\\u003e"),
    ("&", "\\u0026"),
    ("\u2028", "\\u2028"),
    ("\u2029", "\\u2029"),
)


@dataclass
class AuditTrailRow:
    """One recorded audit event with its chain hashes."""

    id: int
    guild_id: str
    event_type: str
    message: str
    payload: str
    prev_hash: str
    event_hash: str
    recorded_at: datetime | None = None


def _encode_payload(payload: dict[str, Any] | None) -> str:
    text = json.dumps(payload, sort_keys=True, separators=(",", ":"), ensure_ascii=False)
    for raw, escaped in _ESCAPES:
        text = text.replace(raw, escaped)
    return text


class AuditTrailRepo:
    """Reads and writes the ``audit_trail_events`` table."""

    def __init__(self, conn: sqlite3.Connection) -> None:
        self._conn = conn

    def append(
        self, guild_id: str, event_type: str, message: str, payload: dict[str, Any] | None
    ) -> None:
        """Append an event whose hash covers the previous event's hash."""
        payload_text = _encode_payload(payload)
        previous = self._conn.execute(
            "SELECT event_hash FROM audit_trail_events WHERE guild_id = ? "
            "ORDER BY id DESC LIMIT 1",
            (guild_id,),
        ).fetchone()
        prev_hash = previous[0] if previous and previous[0] is not None else ""
        recorded = format_time(datetime.now(timezone.utc))
        seed = "|".join((guild_id, event_type, message, payload_text, prev_hash, recorded))
        event_hash = hashlib.sha256(seed.encode("utf-8")).hexdigest()
        self._conn.execute(
            """INSERT INTO audit_trail_events(
                guild_id, event_type, message, payload_json, prev_hash, event_hash, recorded_at
            ) VALUES(?, ?, ?, ?, ?, ?, ?)""",
            (guild_id, event_type, message, payload_text, prev_hash, event_hash, recorded),
        )

    def list_by_guild(self, guild_id: str, limit: int = 100) -> list[AuditTrailRow]:
        """List a guild's events, newest first; a non-positive limit means 100."""
        if limit <= 0:
            limit = 100
        cursor = self._conn.execute(
            """SELECT id, guild_id, event_type, message, payload_json, prev_hash, event_hash, recorded_at
            FROM audit_trail_events WHERE guild_id = ? ORDER BY id DESC LIMIT ?""",
            (guild_id, limit),
        )
        return [
            AuditTrailRow(
                id=event_id,
                guild_id=guild,
                event_type=kind,
                message=message,
                payload=payload,
                prev_hash=prev_hash,
                event_hash=event_hash,
                recorded_at=parse_time(recorded),
            )
            for (event_id, guild, kind, message, payload, prev_hash, event_hash, recorded) in cursor
        ]