import sqlite3
from datetime import datetime, timedelta, timezone

import pytest

from fundamentum.store import format_time, migrate, open_database, parse_time


@pytest.fixture
def conn(tmp_path):
    connection = open_database(tmp_path / "bot.db")
    yield connection
    connection.close()


def _tables(connection):
    rows = connection.execute(
        "SELECT name FROM sqlite_master WHERE type = 'table'"
    ).fetchall()
    return {name for (name,) in rows}


def _indexes(connection):
    rows = connection.execute(
        "SELECT name FROM sqlite_master WHERE type = 'index' AND name LIKE 'idx_%'"
    ).fetchall()
    return {name for (name,) in rows}


def test_open_sets_wal_journal(conn):
    assert conn.execute("PRAGMA journal_mode").fetchone()[0] == "wal"


def test_open_sets_busy_timeout(conn):
    assert conn.execute("PRAGMA busy_timeout").fetchone()[0] == 5000


def test_open_sets_synchronous_normal(conn):
    # NORMAL is reported as 1 by SQLite.
    assert conn.execute("PRAGMA synchronous").fetchone()[0] == 1


def test_open_missing_directory_raises(tmp_path):
    with pytest.raises(sqlite3.OperationalError):
        open_database(tmp_path / "missing" / "bot.db")


def test_migrate_creates_tables(conn):
    migrate(conn)
    expected = {
        "activity",
        "guild_settings",
        "actions",
        "backfill_state",
        "reaction_role_rules",
        "reaction_role_rule_constraints",
        "warnings",
        "scheduled_messages",
        "tickets",
        "ticket_messages",
        "appeals",
        "custom_commands",
        "starboard_entries",
        "member_levels",
        "giveaways",
        "giveaway_entries",
        "polls",
        "suggestions",
        "afk_status",
        "reminders",
        "member_notes",
        "webhook_integrations",
        "audit_trail_events",
        "reputation_points",
        "economy_balances",
        "shop_items",
        "achievements",
        "calendar_events",
        "calendar_event_rsvps",
        "role_rentals",
        "confessions",
        "birthdays",
        "role_progression_rules",
        "join_screening_queue",
        "raid_panic_lockdowns",
        "raid_panic_channel_states",
        "member_streaks",
        "trivia_scores",
        "season_reset_runs",
        "dashboard_users",
        "dashboard_sessions",
    }
    assert expected <= _tables(conn)


def test_migrate_is_idempotent(conn):
    migrate(conn)
    tables = _tables(conn)
    indexes = _indexes(conn)
    migrate(conn)
    assert _tables(conn) == tables
    assert _indexes(conn) == indexes


def test_migrate_creates_starboard_unique_index(conn):
    migrate(conn)
    assert "idx_starboard_unique_source" in _indexes(conn)
    insert = (
        "INSERT INTO starboard_entries(guild_id, source_channel_id, source_message_id,"
        " starboard_channel_id, starboard_message_id, star_count, last_updated_at)"
        " VALUES('g', 'c', 'm', 'sc', 'sm', 3, '2024-01-01T00:00:00Z')"
    )
    conn.execute(insert)
    with pytest.raises(sqlite3.IntegrityError):
        conn.execute(insert)


def test_migrate_column_defaults(conn):
    migrate(conn)
    conn.execute(
        "INSERT INTO birthdays(guild_id, user_id, birthday_mmdd, created_at, updated_at)"
        " VALUES('g', 'u', '03-14', 'x', 'x')"
    )
    assert conn.execute("SELECT timezone FROM birthdays").fetchone()[0] == "UTC"
    conn.execute(
        "INSERT INTO dashboard_sessions(session_id, username, role, csrf_token,"
        " created_at, expires_at, last_seen_at) VALUES('s', 'admin', 'admin', 't', 'a', 'b', 'c')"
    )
    assert conn.execute("SELECT revoked FROM dashboard_sessions").fetchone()[0] == 0


def test_format_time_utc_shape():
    stamp = datetime(2024, 3, 1, 12, 30, 45, 999999, tzinfo=timezone.utc)
    assert format_time(stamp) == "2024-03-01T12:30:45Z"


def test_format_time_naive_is_utc():
    naive = datetime(2024, 3, 1, 12, 30, 45)
    assert format_time(naive) == format_time(naive.replace(tzinfo=timezone.utc))


def test_format_time_converts_offset_to_utc():
    local = datetime(2024, 3, 1, 14, 0, tzinfo=timezone(timedelta(hours=2)))
    assert format_time(local) == format_time(local.astimezone(timezone.utc))
    assert format_time(local).endswith("Z")


def test_round_trip():
    stamp = datetime(2023, 12, 31, 23, 59, 59, tzinfo=timezone.utc)
    assert parse_time(format_time(stamp)) == stamp


def test_parse_time_keeps_offset():
    parsed = parse_time("2024-03-01T12:00:00+02:00")
    assert parsed.utcoffset() == timedelta(hours=2)
    assert parsed == datetime(2024, 3, 1, 10, 0, tzinfo=timezone.utc)


def test_parse_time_fractional_seconds():
    parsed = parse_time("2024-03-01T12:00:00.5Z")
    assert parsed.microsecond == 500000
    assert parsed.tzinfo is not None


@pytest.mark.parametrize(
    "raw",
    ["", None, "not a time", "2024-03-01", "2024-03-01T12:00:00", "2024-13-01T00:00:00Z"],
)
def test_parse_time_invalid_returns_none(raw):
    assert parse_time(raw) is None


def test_stored_times_sort_chronologically():
    base = datetime(2024, 1, 1, tzinfo=timezone.utc)
    stamps = [base + timedelta(hours=h) for h in (5, 1, 30, 0)]
    formatted = [format_time(s) for s in stamps]
    assert sorted(formatted) == [format_time(s) for s in sorted(stamps)]