import pytest

from fundamentum.member_notes import MemberNoteRow, MemberNotesRepo
from fundamentum.store import migrate, open_database


@pytest.fixture
def repo(tmp_path):
    connection = open_database(tmp_path / "notes.db")
    migrate(connection)
    yield MemberNotesRepo(connection)
    connection.close()


def _note(user, body, guild="g1"):
    return MemberNoteRow(guild_id=guild, user_id=user, author_id="mod1", body=body)


def test_create_round_trip(repo):
    note_id = repo.create(_note("u1", "spams links"))
    [row] = repo.list("g1", "u1", 0)
    assert row.id == note_id
    assert (row.user_id, row.author_id, row.body) == ("u1", "mod1", "spams links")
    assert row.created_at is not None
    assert row.resolved_at is None


def test_list_filters_by_user(repo):
    first = repo.create(_note("u1", "a"))
    second = repo.create(_note("u2", "b"))
    repo.create(_note("u1", "c", guild="g2"))
    assert {r.id for r in repo.list("g1", "", 0)} == {first, second}
    assert [r.id for r in repo.list("g1", "u2", 0)] == [second]
    assert len(repo.list("g1", "", 1)) == 1


def test_resolve_sets_timestamp(repo):
    note_id = repo.create(_note("u1", "a"))
    repo.resolve("g1", note_id)
    [row] = repo.list("g1", "u1", 10)
    assert row.resolved_at is not None
    assert row.resolved_at >= row.created_at


def test_resolve_other_guild_does_nothing(repo):
    note_id = repo.create(_note("u1", "a"))
    repo.resolve("g2", note_id)
    [row] = repo.list("g1", "u1", 10)
    assert row.resolved_at is None