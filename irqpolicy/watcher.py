"""
Catalog file watcher: recompile the policy whenever the catalog changes.

This module provides:
- Watchdog-based monitoring of a single catalog file
- Debouncing of editor save bursts (write, truncate, rename-over)
- Content hashing so touch-only saves do not trigger a recompile
"""

import hashlib
import time
from pathlib import Path
from typing import Callable

from watchdog.events import (
    FileSystemEventHandler,
    FileCreatedEvent,
    FileModifiedEvent,
    FileMovedEvent,
)
from watchdog.observers import Observer


def compute_file_hash(path: Path) -> str | None:
    try:
        return hashlib.sha256(path.read_bytes()).hexdigest()
    except OSError:
        return None


class CatalogFileHandler(FileSystemEventHandler):
    """
    Calls `on_change(path)` once per settled content change of `catalog_path`.

    Events for other files in the same directory are ignored.
    """

    DEBOUNCE_SECONDS = 0.5

    def __init__(self, catalog_path: Path, on_change: Callable[[Path], None]):
        super().__init__()
        self.catalog_path = catalog_path.resolve()
        self.on_change = on_change
        self.pending_since: float | None = None
        self.last_hash = compute_file_hash(self.catalog_path)

    def _is_target(self, path: str) -> bool:
        return Path(path).resolve() == self.catalog_path

    def _mark(self) -> None:
        self.pending_since = time.time()

    def on_created(self, event: FileCreatedEvent) -> None:
        if not event.is_directory and self._is_target(event.src_path):
            self._mark()

    def on_modified(self, event: FileModifiedEvent) -> None:
        if not event.is_directory and self._is_target(event.src_path):
            self._mark()

    def on_moved(self, event: FileMovedEvent) -> None:
        # Editors that save atomically rename a temp file over the target
        if not event.is_directory and self._is_target(event.dest_path):
            self._mark()

    def flush_pending(self, now: float | None = None) -> bool:
        """Fire the callback if a change has settled. Returns True if it fired."""
        if self.pending_since is None:
            return False
        now = time.time() if now is None else now
        if now - self.pending_since < self.DEBOUNCE_SECONDS:
            return False

        self.pending_since = None
        new_hash = compute_file_hash(self.catalog_path)
        if new_hash is None or new_hash == self.last_hash:
            return False

        self.last_hash = new_hash
        self.on_change(self.catalog_path)
        return True


def watch_catalog(
    catalog_path: Path,
    on_change: Callable[[Path], None],
) -> tuple[Observer, CatalogFileHandler]:
    """
    Start watching a catalog file.

    Returns:
        Tuple of (observer, handler) - caller should call observer.stop() to stop watching
    """
    handler = CatalogFileHandler(catalog_path, on_change)

    observer = Observer()
    observer.schedule(handler, str(handler.catalog_path.parent), recursive=False)
    observer.start()

    return observer, handler


def run_watch_loop(catalog_path: Path, on_change: Callable[[Path], None]) -> None:
    """Block until interrupted, flushing settled changes periodically."""
    observer, handler = watch_catalog(catalog_path, on_change)

    try:
        while True:
            time.sleep(0.25)
            handler.flush_pending()
    except KeyboardInterrupt:
        observer.stop()

    observer.join()
