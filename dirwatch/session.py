"""Watch session tying source, registry, registrar and event loop together."""
from __future__ import annotations

import logging
import threading
from pathlib import Path
from typing import Callable

from .logger import ROOT_LOGGER_NAME, configure_logging, log_event
from .watcher.loop import EventLoop
from .watcher.registrar import TreeRegistrar
from .watcher.registry import WatchRegistry
from .watcher.sink import LoggingReportSink, ReportSink
from .watcher.source import NotificationSource, default_source_factory
from .watcher.types import LoopExit

LOGGER_NAME = f"{ROOT_LOGGER_NAME}.session"


class WatchSession:
    """Watches one root directory, optionally including its whole subtree."""

    def __init__(
        self,
        root: str | Path,
        *,
        recursive: bool = True,
        source: NotificationSource | None = None,
        sink: ReportSink | None = None,
        source_factory: Callable[[], NotificationSource] | None = None,
        logger: logging.Logger | None = None,
    ) -> None:
        self.root = Path(root).expanduser()
        self.recursive = recursive
        self.logger = logger or logging.getLogger(LOGGER_NAME)
        if not self.logger.handlers:
            configure_logging()

        log_event(
            self.logger,
            level=logging.INFO,
            action="session.create",
            message="Creating watch session",
            path=self.root,
            extra={"recursive": recursive},
        )
        self.source = source or (source_factory or default_source_factory)()
        self.sink = sink or LoggingReportSink()
        self.registry = WatchRegistry(self.source, sink=self.sink)
        self.registrar = TreeRegistrar(self.registry)
        self.loop = EventLoop(
            self.source,
            self.registry,
            self.registrar,
            self.sink,
            recursive=recursive,
        )
        self._initialized = False
        self._cancel = threading.Event()
        self._worker: threading.Thread | None = None
        self._lock = threading.Lock()
        self.exit_reason: LoopExit | None = None

    @property
    def trace(self) -> bool:
        return self.registry.trace

    def init(self) -> None:
        """Register the root (and its subtree when recursive) with the source.

        Failures propagate: a session whose root cannot be watched is unusable.
        """

        if self.recursive:
            self.sink.milestone("session.scan", f"Scanning {self.root} ...", path=str(self.root))
            self.registrar.register_tree(self.root)
            self.sink.milestone(
                "session.scan_done",
                "Done.",
                path=str(self.root),
                watches=len(self.registry),
            )
        else:
            self.registrar.register_one(self.root)
        # Only directories discovered from here on are traced.
        self.registry.trace = True
        self._initialized = True

    def run(self, cancel: threading.Event | None = None) -> LoopExit:
        """Process events in the calling thread until exhausted or cancelled."""

        if not self._initialized:
            self.init()
        self.exit_reason = self.loop.run(cancel if cancel is not None else self._cancel)
        return self.exit_reason

    def start(self) -> None:
        """Initialize and run the event loop on a background thread."""

        with self._lock:
            if self._worker and self._worker.is_alive():
                return
            if not self._initialized:
                self.init()
            self._cancel.clear()
            self._worker = threading.Thread(target=self.run, name="WatchSession", daemon=True)
            self._worker.start()

    def stop(self, timeout: float | None = None) -> None:
        with self._lock:
            self._cancel.set()
            worker = self._worker
            if worker and worker.is_alive():
                worker.join(timeout)
            self._worker = None

    def is_running(self) -> bool:
        worker = self._worker
        return bool(worker and worker.is_alive())

    def close(self) -> None:
        self.stop()
        self.source.close()
        log_event(
            self.logger,
            level=logging.INFO,
            action="session.close",
            message="Watch session closed",
            path=self.root,
        )

    def __enter__(self) -> "WatchSession":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()


__all__ = ["WatchSession"]
