"""Dashboard user accounts and login sessions."""

from __future__ import annotations

import sqlite3
from dataclasses import dataclass
from datetime import datetime, timezone

from .store import format_time, parse_time

_USER_COLUMNS = (
    "username, password_hash, role, enabled, created_at, updated_at, last_login_at"
)
_SESSION_COLUMNS = (
    "session_id, username, role, csrf_token, created_at, expires_at, "
    "last_seen_at, source_ip, user_agent, revoked"
)
_USER_REPLACED_COLUMNS = ("password_hash", "role", "enabled", "updated_at")
_USER_UPDATE_SET = ",\n    ".join(
    [f"{column}=excluded.{column}" for column in _USER_REPLACED_COLUMNS]
    + ["last_login_at=COALESCE(excluded.last_login_at, dashboard_users.last_login_at)"]
)
_UPSERT_USER_SQL = (
    f"INSERT INTO dashboard_users({_USER_COLUMNS})\n"
    "VALUES(?, ?, ?, ?, ?, ?, ?)\n"
    "ON CONFLICT(username) DO UPDATE SET\n    "
    f"{_USER_UPDATE_SET}"
)


@dataclass
class DashboardUserRow:
    """One dashboard account."""

    username: str
    password_hash: str
    role: str
    enabled: bool = False
    created_at: datetime | None = None
    updated_at: datetime | None = None
    last_login_at: datetime | None = None


@dataclass
class DashboardSessionRow:
    """One dashboard login session."""

    session_id: str
    username: str
    role: str
    csrf_token: str
    created_at: datetime
    expires_at: datetime
    last_seen_at: datetime
    source_ip: str = ""
    user_agent: str = ""
    revoked: bool = False


def normalize_username(username: str) -> str:
    """Return ``username`` trimmed and lower-cased."""
    return username.strip().lower()


def normalize_role(role: str) -> str:
    """Return ``role`` trimmed and lower-cased."""
    return role.strip().lower()


def _required_time(raw: str, column: str) -> datetime:
    parsed = parse_time(raw)
    if parsed is None:
        raise ValueError(f"invalid {column} timestamp: {raw!r}")
    return parsed


def _user(record: tuple) -> DashboardUserRow:
    username, hashed, role, enabled, created, updated, last_login = record
    return DashboardUserRow(
        username=username,
        password_hash=hashed,
        role=role,
        enabled=enabled == 1,
        created_at=_required_time(created, "created_at"),
        updated_at=_required_time(updated, "updated_at"),
        last_login_at=parse_time(last_login),
    )


class DashboardAuthRepo:
    """Reads and writes the ``dashboard_users`` and ``dashboard_sessions`` tables."""

    def __init__(self, conn: sqlite3.Connection) -> None:
        self._conn = conn

    def upsert_user(self, row: DashboardUserRow) -> None:
        """Create or update an account; an existing last login is kept if none is given.

        Raises ValueError when the username, password hash or role is empty.
        """
        now = datetime.now(timezone.utc)
        username = normalize_username(row.username)
        role = normalize_role(row.role)
        if not username or not row.password_hash or not role:
            raise ValueError("missing required user fields")
        self._conn.execute(
            _UPSERT_USER_SQL,
            (
                username,
                row.password_hash,
                role,
                1 if row.enabled else 0,
                format_time(row.created_at or now),
                format_time(row.updated_at or now),
                format_time(row.last_login_at) if row.last_login_at else None,
            ),
        )

    def get_user(self, username: str) -> DashboardUserRow:
        """Return an account; raises KeyError when there is none."""
        name = normalize_username(username)
        record = self._conn.execute(
            f"SELECT {_USER_COLUMNS} FROM dashboard_users WHERE username = ?", (name,)
        ).fetchone()
        if record is None:
            raise KeyError(name)
        return _user(record)

    def list_users(self) -> list[DashboardUserRow]:
        """List every account ordered by username."""
        cursor = self._conn.execute(
            f"SELECT {_USER_COLUMNS} FROM dashboard_users ORDER BY username ASC"
        )
        return [_user(record) for record in cursor]

    def delete_user(self, username: str) -> None:
        """Delete an account."""
        self._conn.execute(
            "DELETE FROM dashboard_users WHERE username = ?", (normalize_username(username),)
        )

    def count_enabled_admins(self) -> int:
        """Count enabled accounts with the admin role."""
        (count,) = self._conn.execute(
            "SELECT COUNT(1) FROM dashboard_users WHERE role = 'admin' AND enabled = 1"
        ).fetchone()
        return count

    def set_last_login(self, username: str, at: datetime) -> None:
        """Record when an account last logged in."""
        self._conn.execute(
            "UPDATE dashboard_users SET last_login_at = ?, updated_at = ? WHERE username = ?",
            (
                format_time(at),
                format_time(datetime.now(timezone.utc)),
                normalize_username(username),
            ),
        )

    def create_session(self, row: DashboardSessionRow) -> None:
        """Store a new, unrevoked session.

        Raises ValueError when the session id, username, role or CSRF token is empty.
        """
        if not row.session_id or not row.username or not row.role or not row.csrf_token:
            raise ValueError("missing required session fields")
        self._conn.execute(
            f"INSERT INTO dashboard_sessions({_SESSION_COLUMNS}) "
            "VALUES(?, ?, ?, ?, ?, ?, ?, ?, ?, 0)",
            (
                row.session_id,
                normalize_username(row.username),
                normalize_role(row.role),
                row.csrf_token,
                format_time(row.created_at),
                format_time(row.expires_at),
                format_time(row.last_seen_at),
                row.source_ip.strip(),
                row.user_agent.strip(),
            ),
        )

    def get_session(self, session_id: str) -> DashboardSessionRow:
        """Return a session; raises KeyError when there is none."""
        key = session_id.strip()
        record = self._conn.execute(
            f"SELECT {_SESSION_COLUMNS} FROM dashboard_sessions WHERE session_id = ?", (key,)
        ).fetchone()
        if record is None:
            raise KeyError(key)
        (sid, username, role, csrf, created, expires, last_seen, ip, agent, revoked) = record
        return DashboardSessionRow(
            session_id=sid,
            username=username,
            role=role,
            csrf_token=csrf,
            created_at=_required_time(created, "created_at"),
            expires_at=_required_time(expires, "expires_at"),
            last_seen_at=_required_time(last_seen, "last_seen_at"),
            source_ip=ip or "",
            user_agent=agent or "",
            revoked=revoked == 1,
        )

    def touch_session(self, session_id: str, now: datetime) -> None:
        """Update the last-seen time of a session that is not revoked."""
        self._conn.execute(
            "UPDATE dashboard_sessions SET last_seen_at = ? WHERE session_id = ? AND revoked = 0",
            (format_time(now), session_id.strip()),
        )

    def revoke_session(self, session_id: str) -> None:
        """Revoke one session."""
        self._conn.execute(
            "UPDATE dashboard_sessions SET revoked = 1 WHERE session_id = ?",
            (session_id.strip(),),
        )

    def revoke_sessions_for_user(self, username: str) -> None:
        """Revoke every session of an account."""
        self._conn.execute(
            "UPDATE dashboard_sessions SET revoked = 1 WHERE username = ?",
            (normalize_username(username),),
        )

    def purge_expired_sessions(self, now: datetime) -> None:
        """Delete sessions that are revoked or expired before ``now``."""
        self._conn.execute(
            "DELETE FROM dashboard_sessions WHERE revoked = 1 OR expires_at < ?",
            (format_time(now),),
        )