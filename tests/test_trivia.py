import pytest

from fundamentum.store import migrate, open_database
from fundamentum.trivia import TriviaRepo


@pytest.fixture
def repo(tmp_path):
    conn = open_database(tmp_path / "test.db")
    migrate(conn)
    yield TriviaRepo(conn)
    conn.close()


def test_add_score_accumulates(repo):
    repo.add_score("g1", "u1", 3)
    repo.add_score("g1", "u1", 4)
    board = repo.leaderboard("g1", 10)
    assert [row.user_id for row in board] == ["u1"]
    assert board[0].score == 3 + 4


def test_leaderboard_order_and_limit(repo):
    scores = {"a": 1, "b": 9, "c": 5}
    for user, score in scores.items():
        repo.add_score("g1", user, score)
    assert [row.user_id for row in repo.leaderboard("g1", 2)] == ["b", "c"]


def test_leaderboard_default_limit(repo):
    for index in range(22):
        repo.add_score("g1", f"u{index}", index + 1)
    board = repo.leaderboard("g1", -1)
    assert len(board) == 20
    assert board[0].score == 22


def test_leaderboard_is_per_guild(repo):
    repo.add_score("g1", "a", 1)
    repo.add_score("g2", "b", 2)
    assert [row.user_id for row in repo.leaderboard("g2", 5)] == ["b"]


def test_reset_scores(repo):
    repo.add_score("g1", "a", 1)
    repo.add_score("g1", "b", 1)
    repo.add_score("g2", "a", 1)
    assert repo.reset_scores("g1") == 2
    assert repo.leaderboard("g1", 5) == []
    assert len(repo.leaderboard("g2", 5)) == 1
    assert repo.reset_scores("g1") == 0