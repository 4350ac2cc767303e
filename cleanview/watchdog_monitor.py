#!/usr/bin/env python3
"""
Watchdog monitor for .gitignore files

Publishes "rules changed" notifications to a VisibilityController so the
hidden exclusions are rebuilt whenever an ignore file is created,
modified, moved or deleted. Notifications are only forwarded while the
controller is hiding gitignored files.
"""

import asyncio
from pathlib import Path
from typing import Callable, Dict, List, Optional, Set

from watchdog.events import FileSystemEvent, FileSystemEventHandler
from watchdog.observers import Observer

from .controller import VisibilityController
from .errors import CleanViewError
from .ignore.constants import IGNORE_FILENAME
from .utils import get_logger

logger = get_logger("watchdog-monitor")

ChangeCallback = Callable[[str, str], None]

CHANGE_MESSAGES = {
    'created': f"Detected new {IGNORE_FILENAME} file, patterns updated",
    'modified': f"{IGNORE_FILENAME} changed, patterns updated",
    'deleted': f"{IGNORE_FILENAME} deleted, patterns updated",
    'moved': f"{IGNORE_FILENAME} moved, patterns updated",
}


class GitignoreFileHandler(FileSystemEventHandler):
    """
    Watches for changes to .gitignore files and asks the controller to refresh

    Events arrive on the observer thread and are handed to the event loop,
    where each path gets a debounce timer that is reset by every new event.
    The refresh runs once the path has been quiet for `debounce_seconds`,
    so the last of several rapid saves is always the one applied.
    """

    def __init__(self, controller: VisibilityController,
                 loop: asyncio.AbstractEventLoop,
                 debounce_seconds: float = 0.5,
                 on_change_callback: Optional[ChangeCallback] = None,
                 ignore_filename: str = IGNORE_FILENAME):
        """
        Initialize the handler

        Args:
            controller: Controller to refresh
            loop: Event loop the controller runs on
            debounce_seconds: Quiet period required before a refresh
            on_change_callback: Called with (message, path) after a refresh
            ignore_filename: Name of ignore files to react to
        """
        super().__init__()
        self.controller = controller
        self.loop = loop
        self.ignore_filename = ignore_filename
        self.debounce_seconds = debounce_seconds
        self.on_change_callback = on_change_callback
        # Only touched on the event loop thread
        self._timers: Dict[str, asyncio.Task] = {}

    def _should_process_event(self, event: FileSystemEvent) -> bool:
        """Check if we should process this event"""
        if event.is_directory:
            return False
        return Path(event.src_path).name == self.ignore_filename

    def _schedule(self, kind: str, path: str):
        logger.trace(f"Scheduling refresh for {kind} {path}")
        self.loop.call_soon_threadsafe(self._reset_timer, kind, path)

    def _reset_timer(self, kind: str, path: str):
        timer = self._timers.get(path)
        if timer is not None and not timer.done():
            logger.debug(f"Debouncing change to {path}")
            timer.cancel()
        self._timers[path] = self.loop.create_task(self._wait_and_refresh(kind, path))

    async def _wait_and_refresh(self, kind: str, path: str):
        try:
            await asyncio.sleep(self.debounce_seconds)
        except asyncio.CancelledError:
            # Timer was reset by a newer event
            return
        # Detach before refreshing so a new event starts a fresh timer
        # instead of cancelling a refresh in flight
        self._timers.pop(path, None)
        await self._refresh(kind, path)

    async def _refresh(self, kind: str, path: str):
        if not self.controller.is_hiding_gitignored():
            logger.debug(f"Not hiding gitignored files, ignoring {kind} event for {path}")
            return

        logger.info(f"Detected {kind} {self.ignore_filename}: {path}")
        try:
            await self.controller.refresh_patterns()
        except CleanViewError as e:
            logger.error(f"Failed to refresh patterns after change to {path}: {e}")
            return

        if self.on_change_callback:
            self.on_change_callback(CHANGE_MESSAGES[kind], path)

    def cancel_pending(self):
        """Drop refreshes still waiting out their quiet period; call on the loop thread"""
        for timer in self._timers.values():
            timer.cancel()
        self._timers.clear()

    def pending_paths(self) -> List[str]:
        return [path for path, timer in self._timers.items() if not timer.done()]

    def on_created(self, event: FileSystemEvent):
        if self._should_process_event(event):
            self._schedule('created', event.src_path)

    def on_modified(self, event: FileSystemEvent):
        if self._should_process_event(event):
            self._schedule('modified', event.src_path)

    def on_deleted(self, event: FileSystemEvent):
        if self._should_process_event(event):
            self._schedule('deleted', event.src_path)

    def on_moved(self, event: FileSystemEvent):
        """Handle moving of .gitignore files in or out of place"""
        if event.is_directory:
            return
        src_is_ignore = Path(event.src_path).name == self.ignore_filename
        dest_path = getattr(event, 'dest_path', None)
        dest_is_ignore = bool(dest_path) and Path(dest_path).name == self.ignore_filename

        # One refresh rebuilds everything, so a single notification is enough
        if src_is_ignore or dest_is_ignore:
            self._schedule('moved', dest_path if dest_is_ignore else event.src_path)


class WatchdogMonitor:
    """
    Manages the watchdog observer for a controller's workspace root
    """

    def __init__(self, controller: VisibilityController,
                 recursive: bool = True,
                 debounce_seconds: float = 0.5):
        """
        Initialize the watchdog monitor

        Args:
            controller: The controller to notify
            recursive: Whether to watch subdirectories
            debounce_seconds: Quiet period before a change is applied
        """
        self.controller = controller
        self.recursive = recursive
        self.debounce_seconds = debounce_seconds

        self._observer: Optional[Observer] = None
        self._handler: Optional[GitignoreFileHandler] = None
        self._watched_paths: Set[Path] = set()

    def start(self, loop: Optional[asyncio.AbstractEventLoop] = None,
              paths: Optional[List[str]] = None,
              on_change_callback: Optional[ChangeCallback] = None):
        """
        Start monitoring for changes

        Args:
            loop: Event loop running the controller (defaults to the running loop)
            paths: List of paths to watch (defaults to the controller root)
            on_change_callback: Optional callback for changes
        """
        if self._observer is not None:
            logger.warning("Monitor already running")
            return

        if loop is None:
            loop = asyncio.get_running_loop()

        if paths is None:
            paths = [str(self.controller.root_path)]

        self._handler = GitignoreFileHandler(
            self.controller,
            loop,
            debounce_seconds=self.debounce_seconds,
            on_change_callback=on_change_callback
        )
        self._observer = Observer()

        for path in paths:
            path_obj = Path(path).resolve()
            if path_obj.is_dir():
                self._observer.schedule(
                    self._handler,
                    str(path_obj),
                    recursive=self.recursive
                )
                self._watched_paths.add(path_obj)
                logger.info(f"Watching directory: {path_obj}")
            else:
                logger.warning(f"Path does not exist or is not a directory: {path}")

        self._observer.start()
        logger.info("Watchdog monitor started")

    def stop(self):
        """Stop monitoring for changes"""
        if self._observer is None:
            logger.warning("Monitor not running")
            return

        self._observer.stop()
        self._observer.join()
        self._handler.cancel_pending()
        self._observer = None
        self._handler = None
        self._watched_paths.clear()

        logger.info("Watchdog monitor stopped")

    def is_running(self) -> bool:
        """Check if monitor is running"""
        return self._observer is not None and self._observer.is_alive()

    def get_watched_paths(self) -> List[str]:
        return [str(p) for p in self._watched_paths]
