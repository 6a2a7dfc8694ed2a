import os
import threading

import pytest

import pwm_container
from pwm_container import (
    add_entry,
    create_container,
    create_empty,
    get_all_entries,
    get_entry,
    read_store,
)
from pwm_crypto import NONCE_SIZE
from pwm_errors import (
    AccountNotFoundError,
    AlreadyExistsError,
    DecryptionFailedError,
    DuplicateAccountError,
)
from pwm_lock import container_lock, lock_path_for
from pwm_store import Entry

from conftest import PASSWORD


def test_empty_container(tmp_path):
    path = tmp_path / "my_test_db.pwm"
    create_empty(path, PASSWORD)

    assert read_store(path, PASSWORD).is_empty()
    assert get_all_entries(path, PASSWORD) == []
    with pytest.raises(AccountNotFoundError):
        get_entry(path, PASSWORD, "anything")


def test_create_accepts_str_path(tmp_path):
    path = str(tmp_path / "db.pwm")
    create_empty(path, PASSWORD)
    assert os.path.exists(path)


def test_create_never_overwrites(tmp_path):
    path = tmp_path / "db.pwm"
    create_empty(path, PASSWORD)
    before = path.read_bytes()

    with pytest.raises(AlreadyExistsError):
        create_empty(path, PASSWORD)
    with pytest.raises(AlreadyExistsError):
        create_empty(path, "another password")

    assert path.read_bytes() == before


def test_create_refuses_existing_unrelated_file(tmp_path):
    path = tmp_path / "notes.pwm"
    path.write_text("keep me")
    with pytest.raises(AlreadyExistsError):
        create_empty(path, PASSWORD)
    assert path.read_text() == "keep me"


def test_create_in_missing_directory(tmp_path):
    with pytest.raises(OSError):
        create_empty(tmp_path / "nope" / "db.pwm", PASSWORD)


def test_create_prepopulated_container(tmp_path, sample_store):
    path = tmp_path / "test.pwm"
    create_container(path, PASSWORD, sample_store)
    add_entry(path, PASSWORD, "baz", Entry(username="example.com", password="pass3"))

    assert get_entry(path, PASSWORD, "baz").password == "pass3"
    assert get_entry(path, PASSWORD, "foo") == Entry("foo@gmail.com", "pass1")
    assert len(get_all_entries(path, PASSWORD)) == 3


def test_store_password(tmp_path):
    path = tmp_path / "testdb.pwm"
    create_empty(path, PASSWORD)
    add_entry(path, PASSWORD, "example.com", Entry(username="foo", password="bar"))

    entry = get_entry(path, PASSWORD, "example.com")
    assert entry.username == "foo"
    assert entry.password == "bar"


def test_each_write_uses_new_nonce(tmp_path):
    path = tmp_path / "db.pwm"
    create_empty(path, PASSWORD)
    first = path.read_bytes()
    add_entry(path, PASSWORD, "a", Entry("u", "p"))
    second = path.read_bytes()

    assert first[:NONCE_SIZE] != second[:NONCE_SIZE]


def test_duplicate_add_leaves_file_unchanged(tmp_path, github_entry):
    path = tmp_path / "db.pwm"
    create_empty(path, PASSWORD)
    add_entry(path, PASSWORD, "github.com", github_entry)
    before = path.read_bytes()

    with pytest.raises(DuplicateAccountError):
        add_entry(path, PASSWORD, "github.com", Entry(username="x", password="y"))

    assert path.read_bytes() == before
    assert get_entry(path, PASSWORD, "github.com") == github_entry


def test_add_with_wrong_password_leaves_file_unchanged(tmp_path, github_entry):
    path = tmp_path / "db.pwm"
    create_empty(path, PASSWORD)
    before = path.read_bytes()

    with pytest.raises(DecryptionFailedError):
        add_entry(path, "wrong", "github.com", github_entry)

    assert path.read_bytes() == before


def test_add_to_missing_file(tmp_path, github_entry):
    with pytest.raises(FileNotFoundError):
        add_entry(tmp_path / "missing.pwm", PASSWORD, "github.com", github_entry)


def test_get_from_corrupt_file(tmp_path):
    path = tmp_path / "db.pwm"
    path.write_bytes(b"\0" * 64)
    with pytest.raises(DecryptionFailedError):
        get_all_entries(path, PASSWORD)


def test_failed_write_keeps_previous_container(tmp_path, monkeypatch, github_entry):
    path = tmp_path / "db.pwm"
    create_empty(path, PASSWORD)
    before = path.read_bytes()

    def failing_replace(src, dst):
        raise OSError("simulated crash")

    monkeypatch.setattr(os, "replace", failing_replace)
    with pytest.raises(OSError):
        add_entry(path, PASSWORD, "github.com", github_entry)
    monkeypatch.undo()

    assert path.read_bytes() == before
    assert read_store(path, PASSWORD).is_empty()
    assert not [p for p in tmp_path.iterdir() if p.name.endswith(".tmp")]


def test_lock_is_released_after_error(tmp_path, github_entry):
    path = tmp_path / "db.pwm"
    create_empty(path, PASSWORD)
    add_entry(path, PASSWORD, "github.com", github_entry)

    with pytest.raises(DuplicateAccountError):
        add_entry(path, PASSWORD, "github.com", github_entry)

    # a released lock can be taken again without blocking
    with container_lock(str(path)):
        pass
    assert os.path.exists(lock_path_for(str(path)))


def test_mutation_holds_lock(tmp_path, monkeypatch, github_entry):
    path = tmp_path / "db.pwm"
    create_empty(path, PASSWORD)
    seen = []
    real_lock = pwm_container.container_lock

    def recording_lock(p):
        seen.append(p)
        return real_lock(p)

    monkeypatch.setattr(pwm_container, "container_lock", recording_lock)
    add_entry(path, PASSWORD, "github.com", github_entry)

    assert seen == [str(path)]


def test_end_to_end_scenario(tmp_path):
    path = tmp_path / "X.pwm"
    create_empty(path, "secret")
    add_entry(path, "secret", "github.com", Entry(username="me@example.com", password="hunter2"))

    assert get_entry(path, "secret", "github.com") == Entry(username="me@example.com", password="hunter2")
    with pytest.raises(DecryptionFailedError):
        get_entry(path, "wrong", "github.com")
    with pytest.raises(AccountNotFoundError):
        get_entry(path, "secret", "gitlab.com")


@pytest.mark.skipif(os.name == "nt", reason="flock semantics")
def test_concurrent_adds_are_not_lost(tmp_path):
    path = tmp_path / "db.pwm"
    create_empty(path, PASSWORD)
    errors = []

    def worker(i):
        try:
            add_entry(path, PASSWORD, f"account-{i}", Entry(username=f"user{i}", password=f"pw{i}"))
        except Exception as exc:  # noqa: BLE001
            errors.append(exc)

    threads = [threading.Thread(target=worker, args=(i,)) for i in range(8)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert errors == []
    assert {account for account, _ in get_all_entries(path, PASSWORD)} == {f"account-{i}" for i in range(8)}


@pytest.mark.skipif(os.name == "nt", reason="symlinks need privileges")
def test_create_refuses_dangling_symlink(tmp_path):
    target = tmp_path / "elsewhere.pwm"
    link = tmp_path / "db.pwm"
    link.symlink_to(target)

    with pytest.raises(AlreadyExistsError):
        create_empty(link, PASSWORD)

    assert link.is_symlink()
    assert not target.exists()
