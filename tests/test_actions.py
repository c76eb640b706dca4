from datetime import datetime, timedelta, timezone

import pytest

from fundamentum.actions import ActionRow, ActionsRepo
from fundamentum.store import migrate, open_database


@pytest.fixture
def conn(tmp_path):
    connection = open_database(tmp_path / "bot.db")
    migrate(connection)
    yield connection
    connection.close()


@pytest.fixture
def repo(conn):
    return ActionsRepo(conn)


def _row(guild="g1", status=""):
    return ActionRow(
        guild_id=guild,
        actor_user_id="mod",
        target_user_id="u1",
        type="kick",
        payload_json='{"reason":"spam"}',
        status=status,
    )


def _set_created(conn, action_id, when):
    conn.execute(
        "UPDATE actions SET created_at = ? WHERE id = ?",
        (when.strftime("%Y-%m-%dT%H:%M:%SZ"), action_id),
    )


def test_enqueue_defaults_to_queued(repo):
    before = datetime.now(timezone.utc).replace(microsecond=0)
    action_id = repo.enqueue(_row())
    row = repo.get(action_id)
    assert row.id == action_id
    assert row.status == "queued"
    assert row.error == ""
    assert row.type == "kick"
    assert row.payload_json == '{"reason":"spam"}'
    assert before <= row.created_at <= datetime.now(timezone.utc)
    assert row.created_at == row.updated_at


def test_enqueue_keeps_explicit_status(repo):
    action_id = repo.enqueue(_row(status="success"))
    assert repo.get(action_id).status == "success"


def test_get_missing_is_none(repo):
    assert repo.get(12345) is None


def test_update_status(repo):
    action_id = repo.enqueue(_row())
    repo.update_status(action_id, "failed", "missing permissions")
    row = repo.get(action_id)
    assert row.status == "failed"
    assert row.error == "missing permissions"


def test_list_filters_and_orders(conn, repo):
    first = repo.enqueue(_row())
    second = repo.enqueue(_row(status="success"))
    third = repo.enqueue(_row())
    repo.enqueue(_row(guild="g2"))
    base = datetime(2024, 1, 1, tzinfo=timezone.utc)
    _set_created(conn, first, base)
    _set_created(conn, second, base + timedelta(hours=1))
    _set_created(conn, third, base + timedelta(hours=2))
    assert [r.id for r in repo.list("g1", "", 10, 0)] == [third, second, first]
    assert [r.id for r in repo.list("g1", "queued", 10, 0)] == [third, first]
    assert [r.id for r in repo.list("g1", "", 1, 1)] == [second]


def test_next_queued_picks_oldest(conn, repo):
    assert repo.next_queued() is None
    newer = repo.enqueue(_row())
    older = repo.enqueue(_row(guild="g2"))
    done = repo.enqueue(_row(status="success"))
    base = datetime(2024, 1, 1, tzinfo=timezone.utc)
    _set_created(conn, done, base - timedelta(days=1))
    _set_created(conn, older, base)
    _set_created(conn, newer, base + timedelta(hours=1))
    assert repo.next_queued().id == older
    repo.update_status(older, "success", "")
    assert repo.next_queued().id == newer


def test_count_since(conn, repo):
    old = repo.enqueue(_row())
    repo.enqueue(_row())
    repo.enqueue(_row(status="success"))
    _set_created(conn, old, datetime(2020, 1, 1, tzinfo=timezone.utc))
    since = datetime.now(timezone.utc) - timedelta(hours=1)
    assert repo.count_since("g1", since) == 2
    assert repo.count_since("g1", since, "success") == 1
    assert repo.count_since("g1", datetime.now(timezone.utc) + timedelta(days=1)) == 0


def test_count_by_status(repo):
    repo.enqueue(_row())
    repo.enqueue(_row())
    repo.enqueue(_row(status="failed"))
    assert repo.count_by_status("g1", "queued") == 2
    assert repo.count_by_status("g1", "failed") == 1
    assert repo.count_by_status("g2", "queued") == 0