import hashlib
import json

import pytest

from fundamentum.audit_trail import AuditTrailRepo
from fundamentum.store import migrate, open_database


@pytest.fixture
def repo(tmp_path):
    conn = open_database(tmp_path / "bot.db")
    migrate(conn)
    yield AuditTrailRepo(conn)
    conn.close()


def test_append_and_list_round_trip(repo):
    payload = {"user": "u1", "count": 3}
    repo.append("g1", "warn", "warned u1", payload)
    [row] = repo.list_by_guild("g1", 10)
    assert row.guild_id == "g1"
    assert row.event_type == "warn"
    assert row.message == "warned u1"
    assert json.loads(row.payload) == payload
    assert row.prev_hash == ""
    assert len(bytes.fromhex(row.event_hash)) == hashlib.sha256().digest_size


def test_events_are_hash_chained(repo):
    repo.append("g1", "a", "first", {})
    repo.append("g1", "b", "second", {})
    repo.append("g1", "c", "third", {})
    newest, middle, oldest = repo.list_by_guild("g1", 10)
    assert oldest.prev_hash == ""
    assert middle.prev_hash == oldest.event_hash
    assert newest.prev_hash == middle.event_hash
    assert len({newest.event_hash, middle.event_hash, oldest.event_hash}) == 3


def test_chains_are_per_guild(repo):
    repo.append("g1", "a", "one", {})
    repo.append("g2", "a", "one", {})
    [row] = repo.list_by_guild("g2", 10)
    assert row.prev_hash == ""


def test_payload_keys_are_sorted_and_compact(repo):
    repo.append("g1", "a", "m", {"b": 2, "a": 1})
    assert repo.list_by_guild("g1", 1)[0].payload == '{"a":1,"b":2}'


def test_payload_escapes_html_characters(repo):
    repo.append("g1", "a", "m", {"x": "<"})
    stored = repo.list_by_guild("g1", 1)[0].payload
    assert stored == '{"x":"\\u003c"}'
    assert json.loads(stored) == {"x": "<"}


def test_none_payload_is_null(repo):
    repo.append("g1", "a", "m", None)
    assert repo.list_by_guild("g1", 1)[0].payload == "null"


def test_non_positive_limit_defaults_to_hundred(repo):
    for n in range(105):
        repo.append("g1", "e", f"event {n}", {"n": n})
    assert len(repo.list_by_guild("g1", 0)) == 100
    assert len(repo.list_by_guild("g1", -5)) == 100
    assert [json.loads(r.payload)["n"] for r in repo.list_by_guild("g1", 2)] == [104, 103]


def test_unserializable_payload_raises(repo):
    with pytest.raises(TypeError):
        repo.append("g1", "a", "m", {"bad": object()})
    assert repo.list_by_guild("g1", 10) == []