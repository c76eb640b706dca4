import sqlite3

import pytest

from fundamentum.store import migrate
from fundamentum.streaks import StreaksRepo


@pytest.fixture
def repo():
    connection = sqlite3.connect(":memory:")
    migrate(connection)
    yield StreaksRepo(connection)
    connection.close()


def test_first_day_starts_streak(repo):
    row, new_day = repo.upsert_daily_activity("g1", "u1", "2024-01-10")
    assert new_day is True
    assert row.current_streak == row.best_streak == 1
    assert row.last_active_date == "2024-01-10"


def test_same_day_is_not_counted_twice(repo):
    first, _ = repo.upsert_daily_activity("g1", "u1", "2024-01-10")
    again, new_day = repo.upsert_daily_activity("g1", "u1", "2024-01-10")
    assert new_day is False
    assert again.current_streak == first.current_streak
    assert again.best_streak == first.best_streak


def test_consecutive_day_extends_streak(repo):
    first, _ = repo.upsert_daily_activity("g1", "u1", "2024-01-31")
    second, new_day = repo.upsert_daily_activity("g1", "u1", "2024-02-01")
    assert new_day is True
    assert second.current_streak == first.current_streak + 1
    assert second.best_streak == second.current_streak


def test_gap_restarts_streak_but_keeps_best(repo):
    first, _ = repo.upsert_daily_activity("g1", "u1", "2024-01-01")
    extended, _ = repo.upsert_daily_activity("g1", "u1", "2024-01-02")
    restarted, new_day = repo.upsert_daily_activity("g1", "u1", "2024-01-05")
    assert new_day is True
    assert restarted.current_streak == first.current_streak
    assert restarted.best_streak == extended.best_streak
    stored = repo.get_user("g1", "u1")
    assert (stored.current_streak, stored.best_streak) == (
        restarted.current_streak,
        restarted.best_streak,
    )
    assert stored.last_active_date == "2024-01-05"


def test_get_user_missing(repo):
    assert repo.get_user("g1", "nobody") is None


def test_leaderboard_orders_by_current_streak(repo):
    for day in ("2024-01-01", "2024-01-02", "2024-01-03"):
        repo.upsert_daily_activity("g1", "long", day)
    repo.upsert_daily_activity("g1", "short", "2024-01-03")
    repo.upsert_daily_activity("g2", "elsewhere", "2024-01-03")
    board = repo.leaderboard("g1", 0)
    assert [row.user_id for row in board] == ["long", "short"]
    assert board[0].current_streak > board[1].current_streak
    assert [row.user_id for row in repo.leaderboard("g1", 1)] == ["long"]