import pytest

from fundamentum.backfill import BackfillRepo
from fundamentum.store import migrate, open_database


@pytest.fixture
def conn(tmp_path):
    connection = open_database(tmp_path / "backfill.db")
    migrate(connection)
    yield connection
    connection.close()


def test_unknown_channel_has_no_state(conn):
    assert BackfillRepo(conn).get_state("g1", "c1") is None


def test_upsert_then_get_round_trip(conn):
    repo = BackfillRepo(conn)
    repo.upsert_state("g1", "c1", "m100")
    assert repo.get_state("g1", "c1") == "m100"


def test_upsert_overwrites_previous(conn):
    repo = BackfillRepo(conn)
    repo.upsert_state("g1", "c1", "m100")
    repo.upsert_state("g1", "c1", "m200")
    assert repo.get_state("g1", "c1") == "m200"
    (count,) = conn.execute("SELECT COUNT(*) FROM backfill_state").fetchone()
    assert count == 1


def test_states_are_per_channel(conn):
    repo = BackfillRepo(conn)
    repo.upsert_state("g1", "c1", "m1")
    repo.upsert_state("g1", "c2", "m2")
    assert repo.get_state("g1", "c1") == "m1"
    assert repo.get_state("g1", "c2") == "m2"
    assert repo.get_state("g2", "c1") is None


def test_null_message_id_reads_as_empty(conn):
    conn.execute(
        "INSERT INTO backfill_state(guild_id, channel_id, last_scanned_message_id, updated_at) "
        "VALUES('g1', 'c1', NULL, '2024-01-01T00:00:00Z')"
    )
    assert BackfillRepo(conn).get_state("g1", "c1") == ""