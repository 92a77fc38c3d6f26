"""
Watch mode: rebuild on source or component changes.
"""

from __future__ import annotations

import logging
import time
from pathlib import Path
from threading import Lock
from typing import Callable, Optional

from watchdog.events import FileSystemEvent, FileSystemEventHandler
from watchdog.observers import Observer

from ..build import BuildReport, SiteBuilder
from ..engine import TagsmithError
from ..util import is_relative_to
from .livereload import LiveReloadHub

logger = logging.getLogger(__name__)

_HANDLED_EVENTS = {"created", "modified", "deleted", "moved"}


def _is_scratch_file(path: Path) -> bool:
    """Editor swap files and atomic-write temporaries."""
    name = path.name
    return name.startswith(".") or name.endswith("~") or name.endswith((".swp", ".tmp", ".lock"))


class ChangeHandler(FileSystemEventHandler):
    """Forwards watchdog events to a ``Watcher``."""

    def __init__(self, watcher: "Watcher") -> None:
        self.watcher = watcher

    def on_any_event(self, event: FileSystemEvent) -> None:
        if event.is_directory or event.event_type not in _HANDLED_EVENTS:
            return
        dest = getattr(event, "dest_path", "") or None
        self.watcher.handle_change(event.event_type, Path(event.src_path), Path(dest) if dest else None)


class Watcher:
    """
    Keeps a build's output in sync with its sources.

    A component change reloads every template and rebuilds the whole site;
    a document change re-expands that document only; any other file is
    copied through. Requests arriving while a build runs are dropped.
    """

    DEBOUNCE_DELAY = 0.2

    def __init__(
        self,
        builder: SiteBuilder,
        hub: Optional[LiveReloadHub] = None,
        on_build: Optional[Callable[[BuildReport], None]] = None,
    ) -> None:
        self.builder = builder
        self.hub = hub
        self.on_build = on_build
        self._in_flight = Lock()
        self._last_rebuild = 0.0
        self._observer: Optional[Observer] = None

    def rebuild(self) -> Optional[BuildReport]:
        """Reload components and rebuild everything, unless a build is running."""
        if not self._in_flight.acquire(blocking=False):
            logger.info("Build already in progress; dropping rebuild request")
            return None
        try:
            report = self.builder.process_directory()
        except TagsmithError as exc:
            logger.error("Rebuild failed: %s", exc)
            return None
        finally:
            self._in_flight.release()
        if self.hub is not None:
            self.hub.notify()
        if self.on_build is not None:
            self.on_build(report)
        return report

    def update_file(self, path: Path) -> Optional[Path]:
        """Bring one source file up to date, unless a build is running."""
        if not self._in_flight.acquire(blocking=False):
            logger.info("Build already in progress; dropping update of %s", path)
            return None
        try:
            target = self.builder.process_file(path)
        finally:
            self._in_flight.release()
        if target is not None:
            logger.info("Updated %s", target)
            self._notify_page(target)
        return target

    def _notify_page(self, target: Path) -> None:
        if self.hub is None:
            return
        page = "/" + target.relative_to(self.builder.output).as_posix()
        self.hub.notify([page])

    def handle_change(self, event_type: str, path: Path, dest: Optional[Path] = None) -> None:
        """Dispatch one filesystem change."""
        path = path.resolve()
        if _is_scratch_file(path) or is_relative_to(path, self.builder.output):
            return
        if self.builder.context.store.owns(path) or (dest is not None and self.builder.context.store.owns(dest)):
            now = time.monotonic()
            if now - self._last_rebuild < self.DEBOUNCE_DELAY:
                return
            self._last_rebuild = now
            logger.info("Component change detected (%s); rebuilding", path.name)
            self.rebuild()
            return
        if event_type in ("deleted", "moved"):
            if self.builder.remove_file(path):
                logger.info("Removed output for %s", path)
            if event_type == "moved" and dest is not None:
                self.update_file(dest.resolve())
            return
        self.update_file(path)

    def start(self) -> None:
        observer = Observer()
        handler = ChangeHandler(self)
        observer.schedule(handler, str(self.builder.source), recursive=True)
        components_root = self.builder.components_root
        if components_root.is_dir() and not is_relative_to(components_root, self.builder.source):
            observer.schedule(handler, str(components_root), recursive=True)
        observer.start()
        self._observer = observer
        logger.info("Watching %s for changes", self.builder.source)

    def stop(self) -> None:
        if self._observer is None:
            return
        self._observer.stop()
        self._observer.join()
        self._observer = None

    def run_forever(self) -> None:
        """Watch until interrupted with Ctrl+C."""
        self.start()
        try:
            while True:
                time.sleep(1)
        except KeyboardInterrupt:
            logger.info("Stopping file watcher")
        finally:
            self.stop()
