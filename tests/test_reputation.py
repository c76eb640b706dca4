from datetime import datetime, timedelta, timezone

import pytest

from fundamentum.reputation import ReputationRepo
from fundamentum.store import migrate, open_database


@pytest.fixture
def repo(tmp_path):
    conn = open_database(tmp_path / "test.db")
    migrate(conn)
    yield ReputationRepo(conn)
    conn.close()


def test_last_given_at_none_before_any(repo):
    assert repo.last_given_at("g1", "a", "b") is None


def test_last_given_at_after_add(repo):
    before = datetime.now(timezone.utc).replace(microsecond=0)
    repo.add_delta("g1", "a", "b", 1)
    stamp = repo.last_given_at("g1", "a", "b")
    assert before <= stamp <= datetime.now(timezone.utc) + timedelta(seconds=1)
    assert repo.last_given_at("g1", "b", "a") is None


def test_total_for_user_sums_givers(repo):
    repo.add_delta("g1", "a", "target", 2)
    repo.add_delta("g1", "a", "target", 3)
    repo.add_delta("g1", "b", "target", -1)
    repo.add_delta("g2", "a", "target", 100)
    assert repo.total_for_user("g1", "target") == 2 + 3 - 1
    assert repo.total_for_user("g1", "unknown") == 0


def test_leaderboard_order_and_limit(repo):
    repo.add_delta("g1", "x", "low", 1)
    repo.add_delta("g1", "x", "high", 5)
    repo.add_delta("g1", "y", "high", 5)
    repo.add_delta("g1", "x", "mid", 7)
    board = repo.leaderboard("g1", 2)
    assert [row.user_id for row in board] == ["high", "mid"]
    assert board[0].score == repo.total_for_user("g1", "high")


def test_leaderboard_default_limit(repo):
    for index in range(23):
        repo.add_delta("g1", "giver", f"u{index}", index + 1)
    assert len(repo.leaderboard("g1", 0)) == 20