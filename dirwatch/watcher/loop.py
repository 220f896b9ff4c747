"""The long-running event loop draining a notification source."""
from __future__ import annotations

import logging
import os
import stat
import threading
from pathlib import Path

from ..errors import InterruptedWait, RegistrationError, TraversalError
from ..logger import ROOT_LOGGER_NAME, log_event
from .registrar import TreeRegistrar
from .registry import WatchRegistry
from .sink import ReportSink
from .source import NotificationSource
from .types import ChangeEvent, EventKind, LoopExit, RawEvent

LOGGER_NAME = f"{ROOT_LOGGER_NAME}.loop"


class EventLoop:
    """Consumes signaled handles, reports their events and keeps the watch set current.

    Each iteration waits for one handle, drains its queued events in order,
    registers newly created directory trees when ``recursive`` is set, and
    resets the handle. A handle that fails to reset is removed from the
    registry, as is every watch below a deleted or moved-away entry; the loop returns once the registry is empty or the wait is
    cancelled. Errors raised while handling a single event never end the loop.
    """

    def __init__(
        self,
        source: NotificationSource,
        registry: WatchRegistry,
        registrar: TreeRegistrar,
        sink: ReportSink,
        *,
        recursive: bool = True,
        logger: logging.Logger | None = None,
    ) -> None:
        self.source = source
        self.registry = registry
        self.registrar = registrar
        self.sink = sink
        self.recursive = recursive
        self.logger = logger or logging.getLogger(LOGGER_NAME)

    def run(self, cancel: threading.Event | None = None) -> LoopExit:
        log_event(
            self.logger,
            level=logging.INFO,
            action="loop.start",
            message="Enter event processing loop",
            extra={"watches": len(self.registry), "recursive": self.recursive},
        )
        while True:
            if self.registry.is_empty():
                return self._exhausted()

            try:
                handle = self.source.await_signal(cancel)
            except (InterruptedWait, KeyboardInterrupt) as exc:
                log_event(
                    self.logger,
                    level=logging.INFO,
                    action="loop.cancelled",
                    message="Wait for next signal was interrupted",
                    extra={"reason": type(exc).__name__},
                )
                self.sink.milestone("loop.cancelled", "Watching stopped")
                return LoopExit.CANCELLED

            directory = self.registry.resolve(handle)
            if directory is None:
                log_event(
                    self.logger,
                    level=logging.INFO,
                    action="loop.unrecognized",
                    message=f"Watch handle {handle!r} not recognized",
                    handle=handle,
                )
                self.source.poll_events(handle)
                self.source.cancel(handle)
                continue

            for event in self.source.poll_events(handle):
                self._handle_event(directory, event)

            if not self.source.reset(handle):
                self.registry.invalidate(handle)

    def process_event(self, directory: Path, event: RawEvent) -> ChangeEvent:
        """Classify *event* for the watched *directory*, report it and extend the watch set."""

        if event.kind is EventKind.OVERFLOW or event.name is None:
            change = ChangeEvent(EventKind.OVERFLOW, directory, True)
            self.sink.report(change)
            return change

        child = directory / event.name
        change = ChangeEvent(event.kind, child, _is_directory(child))
        self.sink.report(change)

        if change.kind is EventKind.DELETED:
            # Deleted or moved out of this directory: its watched subtree is stale.
            for handle in self.registry.prune(child):
                self.source.cancel(handle)
        elif self.recursive and change.kind is EventKind.CREATED and change.is_directory:
            self._register_new_tree(child)
        return change

    def _handle_event(self, directory: Path, event: RawEvent) -> None:
        try:
            self.process_event(directory, event)
        except Exception as exc:
            log_event(
                self.logger,
                level=logging.ERROR,
                action="loop.event_error",
                message="Failed to process event",
                path=directory,
                extra={"kind": event.kind.name, "name": event.name, "error": repr(exc)},
            )

    def _register_new_tree(self, directory: Path) -> None:
        # The directory may vanish before it is walked; it then stays unwatched.
        try:
            self.registrar.register_tree(directory)
        except (TraversalError, RegistrationError) as exc:
            log_event(
                self.logger,
                level=logging.WARNING,
                action="watch.register_skipped",
                message=f"New directory left unwatched: {exc}",
                path=directory,
            )
            self.sink.milestone("watch.register_skipped", str(exc), path=str(directory))

    def _exhausted(self) -> LoopExit:
        log_event(
            self.logger,
            level=logging.INFO,
            action="loop.exhausted",
            message="Key map is empty - nothing to watch",
        )
        self.sink.milestone("loop.exhausted", "Nothing left to watch")
        return LoopExit.EXHAUSTED


def _is_directory(path: Path) -> bool:
    try:
        return stat.S_ISDIR(os.lstat(path).st_mode)
    except OSError:
        return False


__all__ = ["EventLoop"]
