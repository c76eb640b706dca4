from datetime import datetime, timezone

import pytest

from fundamentum.appeals import AppealRow, AppealsRepo
from fundamentum.store import migrate, open_database


@pytest.fixture
def conn(tmp_path):
    connection = open_database(tmp_path / "bot.db")
    migrate(connection)
    yield connection
    connection.close()


@pytest.fixture
def repo(conn):
    return AppealsRepo(conn)


def test_create_opens_appeal(repo):
    before = datetime.now(timezone.utc).replace(microsecond=0)
    appeal_id = repo.create(AppealRow(guild_id="g1", user_id="u1", reason="unfair ban"))
    [row] = repo.list_by_guild("g1", "", 10)
    assert row.id == appeal_id
    assert row.status == "open"
    assert row.reason == "unfair ban"
    assert row.resolution == ""
    assert row.reviewed_by == ""
    assert row.reviewed_at is None
    assert before <= row.created_at <= datetime.now(timezone.utc)


def test_resolve_sets_review_fields(repo):
    appeal_id = repo.create(AppealRow(guild_id="g1", user_id="u1", reason="r"))
    repo.resolve("g1", appeal_id, "mod", "unbanned")
    [row] = repo.list_by_guild("g1", "resolved", 10)
    assert row.id == appeal_id
    assert row.resolution == "unbanned"
    assert row.reviewed_by == "mod"
    assert row.reviewed_at >= row.created_at
    assert repo.list_by_guild("g1", "open", 10) == []


def test_resolve_ignores_other_guild(repo):
    appeal_id = repo.create(AppealRow(guild_id="g1", user_id="u1", reason="r"))
    repo.resolve("g2", appeal_id, "mod", "nope")
    assert [r.status for r in repo.list_by_guild("g1", "", 10)] == ["open"]


def test_list_orders_and_limits(conn, repo):
    first = repo.create(AppealRow(guild_id="g1", user_id="u1", reason="a"))
    second = repo.create(AppealRow(guild_id="g1", user_id="u2", reason="b"))
    repo.create(AppealRow(guild_id="g2", user_id="u3", reason="c"))
    conn.execute(
        "UPDATE appeals SET created_at = '2020-01-01T00:00:00Z' WHERE id = ?", (first,)
    )
    assert [r.id for r in repo.list_by_guild("g1", "", 10)] == [second, first]
    assert [r.id for r in repo.list_by_guild("g1", "", 1)] == [second]