"""Centralised resolution of the okinascan data and cache directories."""

from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass
import os
from pathlib import Path
from threading import RLock


__all__ = [
    "OkinascanUserDir",
    "configure_user_dir",
    "get_user_dir",
    "set_user_dir",
    "user_dir_context",
]

HOME_ENV = "OKINASCAN_HOME"
DATABASE_FILENAME = "scans.sqlite3"

_USER_DIR: OkinascanUserDir | None = None
_LOCK: RLock = RLock()


def _resolve_root(root: str | Path | None) -> tuple[Path, bool]:
    if root is not None:
        return Path(root).expanduser(), True
    env_root = os.environ.get(HOME_ENV)
    if env_root:
        return Path(env_root).expanduser(), True
    xdg_data = os.environ.get("XDG_DATA_HOME")
    if xdg_data:
        return Path(xdg_data).expanduser() / "okinascan", True
    return Path.home() / ".local" / "share" / "okinascan", False


def _resolve_cache_root(
    cache_root: str | Path | None,
    *,
    user_root: Path,
    root_was_explicit: bool,
) -> tuple[Path, bool]:
    if cache_root is not None:
        return Path(cache_root).expanduser(), True
    xdg_cache = os.environ.get("XDG_CACHE_HOME")
    if xdg_cache:
        return Path(xdg_cache).expanduser() / "okinascan", True
    if root_was_explicit:
        return user_root / "cache", True
    return Path.home() / ".cache" / "okinascan", False


@dataclass(slots=True)
class OkinascanUserDir:
    """Resolved data and cache roots plus helpers to manage them."""

    root: Path
    cache_root: Path
    root_is_explicit: bool = False
    cache_is_explicit: bool = False

    def data_dir(self, *parts: str | Path, create: bool = True) -> Path:
        """Return a directory under the data root, creating it when requested."""
        target = self.root.joinpath(*parts)
        if create:
            target.mkdir(parents=True, exist_ok=True)
        return target

    def cache_dir(self, *parts: str | Path, create: bool = True) -> Path:
        """Return a directory under the cache root, creating it when requested."""
        target = self.cache_root.joinpath(*parts)
        if create:
            target.mkdir(parents=True, exist_ok=True)
        return target

    @property
    def database_path(self) -> Path:
        return self.data_dir() / DATABASE_FILENAME

    @property
    def results_dir(self) -> Path:
        return self.data_dir("scan-results", create=False)

    @property
    def browsers_dir(self) -> Path:
        return self.cache_dir("playwright", "browsers")


def configure_user_dir(
    *,
    root: str | Path | None = None,
    cache_root: str | Path | None = None,
) -> OkinascanUserDir:
    """Replace the global user dir singleton with a freshly resolved instance."""
    user_root, root_was_explicit = _resolve_root(root)
    resolved_cache_root, cache_was_explicit = _resolve_cache_root(
        cache_root, user_root=user_root, root_was_explicit=root_was_explicit
    )
    return set_user_dir(
        OkinascanUserDir(
            root=user_root,
            cache_root=resolved_cache_root,
            root_is_explicit=root_was_explicit,
            cache_is_explicit=cache_was_explicit,
        )
    )


def get_user_dir() -> OkinascanUserDir:
    """Return the lazily created user dir singleton."""
    global _USER_DIR
    with _LOCK:
        if _USER_DIR is None:
            _USER_DIR = configure_user_dir()
            return _USER_DIR
        current_root, root_was_explicit = _resolve_root(None)
        if not _USER_DIR.root_is_explicit and _USER_DIR.root != current_root:
            _USER_DIR = configure_user_dir()
        return _USER_DIR


def set_user_dir(user_dir: OkinascanUserDir) -> OkinascanUserDir:
    """Replace the current user dir singleton and return it."""
    global _USER_DIR
    with _LOCK:
        _USER_DIR = user_dir
        return _USER_DIR


@contextmanager
def user_dir_context(
    *,
    root: str | Path | None = None,
    cache_root: str | Path | None = None,
) -> Iterator[OkinascanUserDir]:
    """Temporarily override the global user dir singleton."""
    global _USER_DIR
    with _LOCK:
        previous = _USER_DIR
    current = configure_user_dir(root=root, cache_root=cache_root)
    try:
        yield current
    finally:
        with _LOCK:
            _USER_DIR = previous
