import pytest

from fundamentum.birthdays import BirthdaysRepo
from fundamentum.store import migrate, open_database


@pytest.fixture
def repo(tmp_path):
    connection = open_database(tmp_path / "birthdays.db")
    migrate(connection)
    yield BirthdaysRepo(connection)
    connection.close()


def test_upsert_round_trip(repo):
    repo.upsert("g1", "u1", "03-14", "Europe/Berlin")
    [row] = repo.list_by_guild("g1", 0)
    assert (row.guild_id, row.user_id, row.birthday_mmdd, row.timezone) == (
        "g1", "u1", "03-14", "Europe/Berlin",
    )
    assert row.created_at is not None
    assert row.updated_at >= row.created_at


def test_upsert_replaces(repo):
    repo.upsert("g1", "u1", "03-14", "UTC")
    repo.upsert("g1", "u1", "07-01", "Asia/Tokyo")
    rows = repo.list_by_guild("g1", 10)
    assert [(r.birthday_mmdd, r.timezone) for r in rows] == [("07-01", "Asia/Tokyo")]


def test_list_by_guild_is_sorted_and_limited(repo):
    for user, mmdd in [("u1", "12-01"), ("u2", "01-05"), ("u3", "06-30")]:
        repo.upsert("g1", user, mmdd, "UTC")
    repo.upsert("g2", "u9", "02-02", "UTC")
    rows = repo.list_by_guild("g1", 0)
    dates = [r.birthday_mmdd for r in rows]
    assert dates == sorted(dates)
    assert {r.user_id for r in rows} == {"u1", "u2", "u3"}
    assert len(repo.list_by_guild("g1", 2)) == 2


def test_list_by_date(repo):
    repo.upsert("g1", "u2", "05-05", "UTC")
    repo.upsert("g1", "u1", "05-05", "UTC")
    repo.upsert("g1", "u3", "05-06", "UTC")
    rows = repo.list_by_date("g1", "05-05", -1)
    assert [r.user_id for r in rows] == ["u1", "u2"]
    assert repo.list_by_date("g1", "01-01", 10) == []


def test_delete(repo):
    repo.upsert("g1", "u1", "05-05", "UTC")
    repo.upsert("g1", "u2", "05-05", "UTC")
    repo.delete("g1", "u1")
    assert [r.user_id for r in repo.list_by_guild("g1", 0)] == ["u2"]