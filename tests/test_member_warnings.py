import sqlite3
from datetime import datetime, timedelta, timezone

import pytest

from fundamentum.member_warnings import WarningRow, WarningsRepo
from fundamentum.store import migrate


@pytest.fixture
def repo():
    connection = sqlite3.connect(":memory:")
    migrate(connection)
    yield WarningsRepo(connection)
    connection.close()


def _warn(repo, guild, user, reason="spam"):
    return repo.create(WarningRow(guild_id=guild, user_id=user, actor_user_id="mod", reason=reason))


def test_create_returns_increasing_ids(repo):
    first = _warn(repo, "g1", "u1")
    second = _warn(repo, "g1", "u1")
    assert second > first


def test_count_by_user(repo):
    _warn(repo, "g1", "u1")
    _warn(repo, "g1", "u1")
    _warn(repo, "g1", "u2")
    _warn(repo, "g2", "u1")
    assert repo.count_by_user("g1", "u1") == 2
    assert repo.count_by_user("g1", "nobody") == 0


def test_list_by_guild_round_trip(repo):
    before = datetime.now(timezone.utc).replace(microsecond=0)
    ids = {_warn(repo, "g1", "u1", "spam"), _warn(repo, "g1", "u2", "rude")}
    _warn(repo, "g2", "u3")
    listed = repo.list_by_guild("g1", 10)
    assert {row.id for row in listed} == ids
    assert {(row.user_id, row.reason) for row in listed} == {("u1", "spam"), ("u2", "rude")}
    assert all(row.actor_user_id == "mod" for row in listed)
    assert all(before <= row.created_at <= datetime.now(timezone.utc) for row in listed)
    assert len(repo.list_by_guild("g1", 1)) == 1


def test_count_since(repo):
    _warn(repo, "g1", "u1")
    _warn(repo, "g1", "u2")
    now = datetime.now(timezone.utc)
    assert repo.count_since("g1", now - timedelta(hours=1)) == repo.count_by_user(
        "g1", "u1"
    ) + repo.count_by_user("g1", "u2")
    assert repo.count_since("g1", now + timedelta(hours=1)) == 0