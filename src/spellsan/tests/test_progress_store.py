"""Tests for the persisted progress store."""
import json
from unittest.mock import Mock

import pytest
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import Session, sessionmaker

from spellsan.models.models import ProgressSnapshot
from spellsan.models.progress_models import ProgressRecord
from spellsan.services.progress_store import ProgressStore

from conftest import days_ago, make_session


class FailingCommitSession(Session):
    """Session whose commits always fail, like a full disk."""

    def commit(self):
        raise OperationalError("COMMIT", {}, Exception("database or disk is full"))


class FailingQuerySession(Session):
    """Session whose queries always fail, like a locked or missing database."""

    def query(self, *entities, **kwargs):
        raise OperationalError("SELECT", {}, Exception("unable to open database file"))


@pytest.fixture
def store(session_factory: sessionmaker) -> ProgressStore:
    """Create a progress store instance."""
    return ProgressStore(session_factory)


def test_load_defaults_when_empty(store: ProgressStore):
    """Test a first load returns an empty record."""
    assert store.load() == ProgressRecord()


def test_save_and_load(store: ProgressStore):
    """Test a saved record is loaded back."""
    record = ProgressRecord(
        words_learned={"cat"},
        difficult_words={"dog"},
        session_history=[make_session(days_ago(3))],
        total_words_attempted=10,
        total_correct_answers=8,
        average_accuracy=80,
        total_practice_sessions=1,
    )
    assert store.save(record) is True
    assert store.load() == record


def test_save_adds_version_and_timestamp(store: ProgressStore, session_factory: sessionmaker):
    """Test the stored document carries a schema version and save time."""
    store.save(ProgressRecord(words_learned={"cat"}))
    with session_factory() as db:
        snapshot = db.query(ProgressSnapshot).one()
    document = json.loads(snapshot.payload)
    assert snapshot.storage_key == "spellsan-progress"
    assert document["version"] == "1.0"
    assert document["lastSaved"]
    assert document["wordsLearned"] == ["cat"]


def test_save_overwrites_single_row(store: ProgressStore, session_factory: sessionmaker):
    """Test repeated saves keep one row per storage key."""
    store.save(ProgressRecord(words_learned={"cat"}))
    store.save(ProgressRecord(words_learned={"dog"}))
    with session_factory() as db:
        assert db.query(ProgressSnapshot).count() == 1
    assert store.load().words_learned == {"dog"}


def test_storage_keys_are_separate(session_factory: sessionmaker):
    """Test two users on one database do not see each other's progress."""
    first = ProgressStore(session_factory, storage_key="first")
    second = ProgressStore(session_factory, storage_key="second")
    first.save(ProgressRecord(words_learned={"cat"}))
    assert second.load() == ProgressRecord()


def test_practice_today_recomputed_on_load(store: ProgressStore):
    """Test the stored practice-today count is not trusted."""
    record = ProgressRecord(
        session_history=[make_session(days_ago(0)), make_session(days_ago(1))],
        total_practice_sessions=2,
        practice_today=7,
    )
    store.save(record)
    assert store.load().practice_today == 1


def test_corrupt_payload_loads_defaults(store: ProgressStore, session_factory: sessionmaker):
    """Test an unreadable document falls back to defaults."""
    store.save(ProgressRecord(words_learned={"cat"}))
    with session_factory() as db:
        db.query(ProgressSnapshot).update({ProgressSnapshot.payload: "{not json"})
        db.commit()
    assert store.load() == ProgressRecord()


def test_wrong_shape_payload_loads_defaults(store: ProgressStore, session_factory: sessionmaker):
    """Test a document that is valid JSON but not a record falls back to defaults."""
    store.save(ProgressRecord())
    with session_factory() as db:
        db.query(ProgressSnapshot).update({ProgressSnapshot.payload: "[1, 2, 3]"})
        db.commit()
    assert store.load() == ProgressRecord()


def test_failed_save_keeps_previous_state(session_factory: sessionmaker):
    """Test a failed write leaves the last saved record intact."""
    store = ProgressStore(session_factory)
    store.save(ProgressRecord(words_learned={"cat"}))

    failing_factory = sessionmaker(bind=session_factory.kw["bind"], class_=FailingCommitSession)
    failing_store = ProgressStore(failing_factory)
    listener = Mock()
    failing_store.subscribe(listener)

    assert failing_store.save(ProgressRecord(words_learned={"dog"})) is False
    listener.assert_not_called()
    assert store.load().words_learned == {"cat"}


def test_failed_load_returns_defaults(session_factory: sessionmaker):
    """Test an unavailable database loads an empty record instead of raising."""
    ProgressStore(session_factory).save(ProgressRecord(words_learned={"cat"}))

    failing_factory = sessionmaker(bind=session_factory.kw["bind"], class_=FailingQuerySession)
    assert ProgressStore(failing_factory).load() == ProgressRecord()


def test_stored_overflowing_counter_loads_defaults(store: ProgressStore, session_factory: sessionmaker):
    """Test a counter too large for an integer falls back to defaults."""
    store.save(ProgressRecord())
    with session_factory() as db:
        db.query(ProgressSnapshot).update({ProgressSnapshot.payload: '{"streak": 1e400}'})
        db.commit()
    assert store.load() == ProgressRecord()


def test_failed_reset_keeps_previous_state(session_factory: sessionmaker):
    """Test a reset that cannot commit keeps the stored record and tells no one."""
    store = ProgressStore(session_factory)
    store.save(ProgressRecord(words_learned={"cat"}, total_words_attempted=3))

    failing_factory = sessionmaker(bind=session_factory.kw["bind"], class_=FailingCommitSession)
    failing_store = ProgressStore(failing_factory)
    listener = Mock()
    failing_store.subscribe(listener)

    assert failing_store.reset() is False
    listener.assert_not_called()
    record = store.load()
    assert record.words_learned == {"cat"}
    assert record.total_words_attempted == 3


def test_reset(store: ProgressStore):
    """Test reset removes all progress."""
    store.save(ProgressRecord(words_learned={"cat"}, total_words_attempted=3))
    assert store.reset() is True
    assert store.load() == ProgressRecord()


def test_listeners_notified_after_save(store: ProgressStore):
    """Test subscribers hear about every successful save."""
    listener = Mock()
    store.subscribe(listener)
    record = ProgressRecord(words_learned={"cat"})
    store.save(record)
    listener.assert_called_once_with(record)

    store.unsubscribe(listener)
    store.save(record)
    listener.assert_called_once()


def test_failing_listener_does_not_break_save(store: ProgressStore):
    """Test a broken subscriber cannot fail the save or starve others."""
    broken = Mock(side_effect=RuntimeError("dashboard closed"))
    healthy = Mock()
    store.subscribe(broken)
    store.subscribe(healthy)

    assert store.save(ProgressRecord()) is True
    healthy.assert_called_once()
