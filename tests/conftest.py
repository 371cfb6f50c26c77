"""Shared test fixtures."""

import sqlite3
import time

import pytest

DAY = 86400


def create_collection(path, crt=None, cards=()):
    """Write a minimal Anki collection with ``cards`` as (queue, due) pairs."""
    path.parent.mkdir(parents=True, exist_ok=True)
    crt = int(time.time()) - 30 * DAY if crt is None else crt
    conn = sqlite3.connect(str(path))
    conn.executescript("""
        CREATE TABLE col (id INTEGER PRIMARY KEY, crt INTEGER NOT NULL);
        CREATE TABLE cards (
            id INTEGER PRIMARY KEY,
            did INTEGER NOT NULL DEFAULT 1,
            type INTEGER NOT NULL DEFAULT 0,
            queue INTEGER NOT NULL,
            due INTEGER NOT NULL
        );
    """)
    conn.execute("INSERT INTO col (id, crt) VALUES (1, ?)", (crt,))
    conn.executemany("INSERT INTO cards (queue, due) VALUES (?, ?)", list(cards))
    conn.commit()
    conn.close()
    return path


def touch_collection(root, *parts):
    """Create an empty collection.anki2 under root/parts."""
    path = root.joinpath(*parts, "collection.anki2")
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(b"")
    return path


@pytest.fixture
def home(tmp_path, monkeypatch):
    """Isolated HOME with no XDG overrides and no .env in the working dir."""
    home = tmp_path / "home"
    home.mkdir()
    monkeypatch.setenv("HOME", str(home))
    monkeypatch.delenv("XDG_DATA_HOME", raising=False)
    monkeypatch.delenv("XDG_CONFIG_HOME", raising=False)
    monkeypatch.chdir(tmp_path)
    return home


@pytest.fixture
def flatpak_root(home):
    return home / ".var" / "app" / "net.ankiweb.Anki" / "data" / "Anki2"


@pytest.fixture
def local_root(home):
    return home / ".local" / "share" / "Anki2"
