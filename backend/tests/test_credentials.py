import json

from readthrough.auth.store import CredentialStore


def test_create_and_verify(tmp_path):
    store = CredentialStore(tmp_path / "data" / "users.json")

    assert store.create("alice", "s3cret") is True
    assert store.verify("alice", "s3cret") is True
    assert store.verify("alice", "wrong") is False
    assert store.verify("bob", "s3cret") is False


def test_create_refuses_duplicates_and_empty_input(tmp_path):
    store = CredentialStore(tmp_path / "users.json")
    store.create("alice", "one")

    assert store.create("alice", "two") is False
    assert store.verify("alice", "one") is True
    assert store.create("", "x") is False
    assert store.create("bob", "") is False


def test_secrets_are_stored_hashed(tmp_path):
    path = tmp_path / "users.json"
    CredentialStore(path).create("alice", "s3cret")

    data = json.loads(path.read_text(encoding="utf-8"))
    assert list(data) == ["alice"]
    assert "s3cret" not in data["alice"]


def test_corrupt_file_reads_as_empty(tmp_path):
    path = tmp_path / "users.json"
    path.write_text("garbage", encoding="utf-8")
    store = CredentialStore(path)

    assert store.verify("alice", "x") is False
    assert store.create("alice", "x") is True
