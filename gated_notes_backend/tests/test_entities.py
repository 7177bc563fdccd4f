import hashlib

import pytest
from sqlalchemy import Text
from sqlalchemy.orm import sessionmaker

from gated_notes_backend.src.api.security import get_password_hash, verify_password
from gated_notes_database.entities import EntityStore
from gated_notes_database.errors import AlreadyExists, NotFound
from gated_notes_database.models import KVEntry
from gated_notes_database.store import KeyValueStore
from gated_notes_database.records import (
    NOTE,
    USER,
    UserRecord,
    add_note_id,
    new_note,
    next_updated_at,
    remove_note_id,
    update_password_digest,
)


def make_user(store, user_id="alice"):
    return store.create(USER, UserRecord(id=user_id, username=user_id, password_digest="x"))

# -------- ENTITY STORE --------
def test_create_and_get_state(store):
    assert not store.exists(USER, "alice")
    make_user(store)
    assert store.exists(USER, "alice")
    user = store.get_state(USER, "alice")
    assert user.id == "alice"
    assert user.note_ids == []

def test_create_existing_key_fails(store):
    make_user(store)
    with pytest.raises(AlreadyExists):
        make_user(store)

def test_get_state_missing_raises(store):
    with pytest.raises(NotFound):
        store.get_state(NOTE, "missing")

def test_mutate_missing_raises(store):
    with pytest.raises(NotFound):
        store.mutate(USER, "missing", lambda user: user)

def test_patch_skips_none_fields(store):
    note = store.create(NOTE, new_note("alice"))
    patched = store.patch(NOTE, note.id, {"title": "Shopping", "content": None})
    assert patched.title == "Shopping"
    assert patched.content == note.content
    assert store.get_state(NOTE, note.id) == patched

def test_delete_is_idempotent(store):
    note = store.create(NOTE, new_note("alice"))
    assert store.delete(NOTE, note.id) is True
    assert store.delete(NOTE, note.id) is False
    assert not store.exists(NOTE, note.id)
    assert store.list_keys(NOTE) == []

def test_index_tracks_each_type_separately(store):
    make_user(store, "alice")
    make_user(store, "bob")
    note = store.create(NOTE, new_note("alice"))
    assert store.list_keys(USER) == ["alice", "bob"]
    assert store.list_keys(NOTE) == [note.id]

def test_records_stored_with_camel_case_keys(store):
    note = store.create(NOTE, new_note("alice"))
    raw = store.kv.get(f"note:{note.id}")
    assert set(raw) == {"id", "title", "content", "userId", "createdAt", "updatedAt"}

# -------- USER RECORD HELPERS --------
def test_add_note_id_never_duplicates(store):
    make_user(store)
    add_note_id(store, "alice", "n1")
    add_note_id(store, "alice", "n1")
    add_note_id(store, "alice", "n2")
    assert store.get_state(USER, "alice").note_ids == ["n1", "n2"]

def test_remove_note_id(store):
    make_user(store)
    add_note_id(store, "alice", "n1")
    add_note_id(store, "alice", "n2")
    remove_note_id(store, "alice", "n1")
    remove_note_id(store, "alice", "absent")
    assert store.get_state(USER, "alice").note_ids == ["n2"]

def test_update_password_digest_leaves_notes(store):
    make_user(store)
    add_note_id(store, "alice", "n1")
    update_password_digest(store, "alice", "new-digest")
    user = store.get_state(USER, "alice")
    assert user.password_digest == "new-digest"
    assert user.note_ids == ["n1"]

def test_new_note_ids_are_unique():
    assert new_note("alice").id != new_note("alice").id

# -------- HASHING --------
def test_password_hash_is_plain_sha256_hex():
    digest = get_password_hash("secret1")
    assert digest == hashlib.sha256(b"secret1").hexdigest()
    assert get_password_hash("secret1") == digest
    assert verify_password("secret1", digest)
    assert not verify_password("secret2", digest)

def test_create_race_reports_already_exists(engine, store, monkeypatch):
    other_session = sessionmaker(autocommit=False, autoflush=False, bind=engine)()
    other = EntityStore(KeyValueStore(other_session))
    make_user(store)
    # both requests passed the exists() check before either wrote
    monkeypatch.setattr(other, "exists", lambda entity_type, key: False)
    try:
        with pytest.raises(AlreadyExists):
            make_user(other)
        # the failed commit was rolled back, so the session still works
        assert other.get_state(USER, "alice").id == "alice"
    finally:
        other_session.close()

def test_record_keys_have_no_length_limit(store):
    assert isinstance(KVEntry.__table__.c.key.type, Text)
    long_id = "a" * 300
    make_user(store, long_id)
    assert store.get_state(USER, long_id).id == long_id
    assert store.list_keys(USER) == [long_id]

# -------- TIMESTAMPS --------
def test_next_updated_at_never_moves_backwards():
    future = "2999-01-01T00:00:00.000000+00:00"
    assert next_updated_at(future) == future
    past = "2000-01-01T00:00:00.000000+00:00"
    assert next_updated_at(past) > past
