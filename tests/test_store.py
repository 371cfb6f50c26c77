"""Tests for anki_status.store."""

import sqlite3
from datetime import datetime

import pytest

from anki_status.errors import StoreError, StoreLockedError
from anki_status.models import CardCounts
from anki_status.store import (
    QUEUE_DAY_LEARN,
    QUEUE_LEARN,
    QUEUE_NEW,
    QUEUE_REVIEW,
    is_locked_error,
    open_collection,
)

from conftest import DAY, create_collection

NOW = datetime(2024, 3, 10, 12, 0, 0)
NOW_TS = int(NOW.timestamp())
CRT = NOW_TS - 100 * DAY - 3600
TODAY = 100


@pytest.fixture
def collection_path(tmp_path):
    cards = [
        (QUEUE_NEW, 1),
        (QUEUE_NEW, 2),
        (QUEUE_NEW, 3),
        (QUEUE_LEARN, NOW_TS - 60),
        (QUEUE_LEARN, NOW_TS + 600),
        (QUEUE_LEARN, NOW_TS + 3600),
        (QUEUE_DAY_LEARN, TODAY),
        (QUEUE_DAY_LEARN, TODAY + 1),
        (QUEUE_REVIEW, TODAY - 3),
        (QUEUE_REVIEW, TODAY),
        (QUEUE_REVIEW, TODAY + 5),
        (-1, TODAY),
        (-2, TODAY),
    ]
    return create_collection(tmp_path / "Anki2" / "User 1" / "collection.anki2", CRT, cards)


def test_due_counts(collection_path):
    with open_collection(collection_path) as col:
        counts = col.due_counts(NOW)
    assert counts == CardCounts(new=3, learn=3, review=2)
    assert counts.total_due == 5


def test_due_counts_repeatable(collection_path):
    with open_collection(collection_path) as col:
        first = col.due_counts(NOW)
    with open_collection(collection_path) as col:
        second = col.due_counts(NOW)
    assert first == second


def test_due_counts_later_includes_more_reviews(collection_path):
    later = datetime.fromtimestamp(NOW_TS + 6 * DAY)
    with open_collection(collection_path) as col:
        counts = col.due_counts(later)
    assert counts.review == 3
    assert counts.learn == 5


def test_connection_closed_after_with(collection_path):
    with open_collection(collection_path) as col:
        pass
    with pytest.raises(sqlite3.ProgrammingError):
        col._con.execute("SELECT 1")


def test_open_is_read_only(collection_path):
    with open_collection(collection_path) as col:
        with pytest.raises(sqlite3.OperationalError):
            col._con.execute("DELETE FROM cards")


def test_locked_collection(collection_path):
    writer = sqlite3.connect(str(collection_path), isolation_level=None)
    writer.execute("BEGIN EXCLUSIVE")
    try:
        with pytest.raises(StoreLockedError):
            open_collection(collection_path)
    finally:
        writer.execute("ROLLBACK")
        writer.close()


def test_missing_collection(tmp_path):
    with pytest.raises(StoreError) as exc_info:
        open_collection(tmp_path / "collection.anki2")
    assert not isinstance(exc_info.value, StoreLockedError)


def test_corrupt_collection(tmp_path):
    path = tmp_path / "collection.anki2"
    path.write_bytes(b"definitely not sqlite" * 100)
    with pytest.raises(StoreError) as exc_info:
        open_collection(path)
    assert not isinstance(exc_info.value, StoreLockedError)


def test_schema_mismatch(tmp_path):
    path = tmp_path / "collection.anki2"
    conn = sqlite3.connect(str(path))
    conn.execute("CREATE TABLE col (crt INTEGER)")
    conn.execute("INSERT INTO col VALUES (0)")
    conn.commit()
    conn.close()
    with open_collection(path) as col:
        with pytest.raises(StoreError, match="no such table"):
            col.due_counts(NOW)


def test_is_locked_error():
    assert is_locked_error(sqlite3.OperationalError("database is locked"))
    assert not is_locked_error(sqlite3.OperationalError("no such table: cards"))


@pytest.mark.parametrize("crt", [None, "yesterday"])
def test_bad_creation_time(tmp_path, crt):
    path = tmp_path / "collection.anki2"
    conn = sqlite3.connect(str(path))
    conn.execute("CREATE TABLE col (crt)")
    conn.execute("CREATE TABLE cards (queue INTEGER, due INTEGER)")
    conn.execute("INSERT INTO col VALUES (?)", (crt,))
    conn.commit()
    conn.close()
    with open_collection(path) as col:
        with pytest.raises(StoreError, match="creation time"):
            col.due_counts(NOW)
