"""Locate the single Anki collection file to report on.

Candidate roots are the conventional Anki data directories (or one explicit
override).  Every ``collection.anki2`` found beneath a root belongs to that
root's install; more than one populated install, or more than one surviving
collection after the optional profile filter, is an error the caller can
turn into guidance.
"""

from __future__ import annotations

from pathlib import Path
import logging
import os

from .errors import (
    ConfigError,
    MalformedPathError,
    MultipleInstallsError,
    MultipleProfilesError,
    NoDataPathsError,
    NoProfileMatchError,
    TraversalError,
)
from .models import SearchEnv

logger = logging.getLogger(__name__)

COLLECTION_FILENAME = "collection.anki2"
DATA_DIR_NAME = "Anki2"


def candidate_roots(env: SearchEnv, override: Path | None = None) -> list[Path]:
    if override is not None:
        return [Path(override)]

    if env.home is None:
        raise ConfigError("HOME is not set; cannot locate the Anki data directory")

    home = Path(env.home)
    roots = [
        home / ".var" / "app" / "net.ankiweb.Anki" / "data" / DATA_DIR_NAME,
        home / ".local" / "share" / DATA_DIR_NAME,
    ]
    if env.data_home is not None:
        roots.append(Path(env.data_home) / DATA_DIR_NAME)

    # XDG_DATA_HOME commonly points at ~/.local/share.
    seen = set()
    unique_roots = []
    for root in roots:
        key = os.path.realpath(root)
        if key not in seen:
            seen.add(key)
            unique_roots.append(root)
    return unique_roots


def _raise_traversal(err: OSError) -> None:
    raise TraversalError(Path(err.filename or ""), err) from err


def find_files(root: Path, filename: str) -> list[Path]:
    """Every file named ``filename`` beneath ``root``, sorted.

    A missing root, or one that is not a directory, yields nothing.  Symlinked
    directories are not descended into.
    """
    if not root.is_dir():
        return []

    found = []
    for dirpath, _dirnames, filenames in os.walk(
        root, onerror=_raise_traversal, followlinks=False
    ):
        if filename in filenames:
            found.append(Path(dirpath) / filename)
    return sorted(found)


def trim_to_install_path(path: Path) -> Path:
    current = Path(path)
    while current.name != DATA_DIR_NAME:
        if current.parent == current:
            raise MalformedPathError(path)
        current = current.parent
    return current


def profile_name(path: Path) -> str:
    """Directory name right below the last ``Anki2`` segment.

    Collections outside an ``Anki2`` tree fall back to their parent directory.
    """
    parts = Path(path).parts
    for i in range(len(parts) - 3, -1, -1):
        if parts[i] == DATA_DIR_NAME:
            return parts[i + 1]
    return Path(path).parent.name


def _unique(items):
    seen = set()
    out = []
    for item in items:
        if item not in seen:
            seen.add(item)
            out.append(item)
    return out


def find_db(
    override_path: Path | None = None,
    profile: str | None = None,
    env: SearchEnv | None = None,
) -> Path:
    roots = candidate_roots(env or SearchEnv(), override_path)

    paths_per_install = []
    for root in roots:
        collections = find_files(root, COLLECTION_FILENAME)
        logger.debug("%s: %d collection(s)", root, len(collections))
        if collections:
            paths_per_install.append((root, collections))

    if not paths_per_install:
        raise NoDataPathsError(roots)
    if len(paths_per_install) > 1:
        installs = [
            trim_to_install_path(p)
            for _root, group in paths_per_install
            for p in group
        ]
        raise MultipleInstallsError(_unique(installs))

    root, collection_paths = paths_per_install[0]
    assert collection_paths, "empty installs are filtered out above"

    if profile is not None:
        available = sorted({profile_name(p) for p in collection_paths})
        collection_paths = [
            p for p in collection_paths if profile in p.relative_to(root).parts
        ]
        if not collection_paths:
            raise NoProfileMatchError(profile, available)

    if len(collection_paths) > 1:
        profiles = sorted({profile_name(p) for p in collection_paths})
        raise MultipleProfilesError(collection_paths, profiles)

    logger.info("Using collection %s", collection_paths[0])
    return collection_paths[0]
