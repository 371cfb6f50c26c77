from __future__ import annotations

from datetime import datetime
from pathlib import Path
from typing import Any
import logging
import sqlite3

from .errors import StoreError, StoreLockedError
from .models import CardCounts

logger = logging.getLogger(__name__)

QUEUE_NEW = 0
QUEUE_LEARN = 1
QUEUE_REVIEW = 2
QUEUE_DAY_LEARN = 3

# Anki shows intraday learning cards this far ahead of their due time.
LEARN_AHEAD_SECS = 20 * 60

# SQLITE_BUSY, SQLITE_LOCKED
_LOCK_CODES = {5, 6}


def is_locked_error(exc: Exception) -> bool:
    code = getattr(exc, "sqlite_errorcode", None)
    if code is not None and code & 0xFF in _LOCK_CODES:
        return True
    msg = str(exc).lower()
    return "database is locked" in msg or "database is busy" in msg


def _store_error(exc: Exception, path: Path) -> StoreError:
    if isinstance(exc, sqlite3.Error) and is_locked_error(exc):
        return StoreLockedError(f"{path} is locked by another process")
    return StoreError(f"{path}: {exc}")


def _unicase_cmp(a: Any, b: Any) -> int:
    fa = ("" if a is None else str(a)).casefold()
    fb = ("" if b is None else str(b)).casefold()
    return (fa > fb) - (fa < fb)


class Collection:
    """Read-only view of an Anki collection database.

    Use as a context manager so the connection is closed before the caller
    sleeps and the running Anki keeps exclusive access.
    """

    def __init__(self, path: Path, con: sqlite3.Connection) -> None:
        self.path = path
        self._con = con

    def __enter__(self) -> "Collection":
        return self

    def __exit__(self, exc_type: Any, exc: Any, tb: Any) -> None:
        self.close()

    def close(self) -> None:
        self._con.close()

    def due_counts(self, now: datetime) -> CardCounts:
        try:
            return self._due_counts(int(now.timestamp()))
        except (sqlite3.Error, OSError) as e:
            raise _store_error(e, self.path) from e

    def _due_counts(self, now_ts: int) -> CardCounts:
        row = self._con.execute("SELECT crt FROM col LIMIT 1").fetchone()
        if row is None:
            raise StoreError(f"{self.path}: collection has no col row")
        try:
            crt = int(row[0])
        except (TypeError, ValueError) as e:
            raise StoreError(f"{self.path}: bad collection creation time {row[0]!r}") from e
        today = (now_ts - crt) // 86400

        new = self._count("queue = ?", QUEUE_NEW)
        learn = self._count(
            "queue = ? AND due <= ?", QUEUE_LEARN, now_ts + LEARN_AHEAD_SECS
        ) + self._count("queue = ? AND due <= ?", QUEUE_DAY_LEARN, today)
        review = self._count("queue = ? AND due <= ?", QUEUE_REVIEW, today)
        return CardCounts(new=new, learn=learn, review=review)

    def _count(self, where: str, *params: Any) -> int:
        return self._con.execute(
            f"SELECT COUNT(*) FROM cards WHERE {where}", params
        ).fetchone()[0]


def open_collection(path: Path, busy_timeout_ms: int = 0) -> Collection:
    path = Path(path)
    con = None
    try:
        con = sqlite3.connect(
            f"{path.resolve().as_uri()}?mode=ro",
            uri=True,
            timeout=max(0, busy_timeout_ms) / 1000.0,
        )
        con.create_collation("unicase", _unicase_cmp)
        con.execute("PRAGMA query_only=ON")
        # Connecting is lazy; touch the schema so a held lock shows up here.
        con.execute("SELECT 1 FROM col LIMIT 1").fetchone()
    except (sqlite3.Error, OSError) as e:
        if con is not None:
            con.close()
        raise _store_error(e, path) from e
    logger.debug("Opened %s", path)
    return Collection(path, con)
