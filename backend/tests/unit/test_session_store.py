import pytest
from capture_studio.core.errors import SessionExistsError
from capture_studio.schemas.state import Participant
from capture_studio.services.participants import ParticipantRegistry
from capture_studio.services.session_store import SessionStore


@pytest.fixture
def registry():
    return ParticipantRegistry()


@pytest.fixture
def store(registry):
    return SessionStore(registry)


def create(store, db, session_id="abcd1234"):
    return store.create(
        db, session_id=session_id, name="My Show", host_id="host-1", host_name="Alice"
    )


def test_create_and_get(store, test_db):
    record = create(store, test_db)

    assert record.id == "abcd1234"
    assert record.is_recording is False
    assert record.is_paused is False
    assert record.created_at is not None

    fetched = store.get(test_db, "abcd1234")
    assert fetched.name == "My Show"
    assert fetched.host_name == "Alice"
    assert store.exists(test_db, "abcd1234")


def test_create_duplicate_raises(store, test_db):
    create(store, test_db)
    with pytest.raises(SessionExistsError) as exc:
        create(store, test_db)
    assert exc.value.session_id == "abcd1234"


def test_get_missing(store, test_db):
    assert store.get(test_db, "missing") is None
    assert not store.exists(test_db, "missing")


def test_update_merges_given_fields(store, test_db):
    create(store, test_db)

    updated = store.update(test_db, "abcd1234", is_recording=True)
    assert updated.is_recording is True
    assert updated.is_paused is False
    assert updated.name == "My Show"

    updated = store.update(test_db, "abcd1234", name="Late Show", is_paused=True)
    assert updated.name == "Late Show"
    assert updated.is_recording is True
    assert updated.is_paused is True


def test_update_missing_returns_none(store, test_db):
    assert store.update(test_db, "missing", is_recording=True) is None


def test_delete_removes_record_and_participants(store, registry, test_db):
    create(store, test_db)
    registry.add("abcd1234", Participant(id="p1", name="Alice"))

    assert store.delete(test_db, "abcd1234") is True
    assert store.get(test_db, "abcd1234") is None
    assert registry.get("abcd1234") == []


def test_delete_missing_returns_false(store, test_db):
    assert store.delete(test_db, "missing") is False
