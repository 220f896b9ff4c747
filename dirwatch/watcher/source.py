"""Notification sources: the primitive the watcher consumes.

A source hands out opaque watch handles, signals them as changes arrive and
queues :class:`~dirwatch.watcher.types.RawEvent` objects per handle. A handle
is signaled at most once until it is reset, and :meth:`NotificationSource.reset`
reports whether the handle is still usable. :meth:`NotificationSource.cancel`
drops a handle whose directory has left the tree.
"""
from __future__ import annotations

import logging
import os
import sys
import threading
from collections import deque
from pathlib import Path
from queue import Empty, Queue

try:  # pragma: no cover - optional dependency
    from inotify_simple import INotify, flags  # type: ignore
except ImportError:  # pragma: no cover - optional dependency
    INotify = None  # type: ignore[assignment]
    flags = None  # type: ignore[assignment]

from ..errors import InterruptedWait, RegistrationError
from ..logger import ROOT_LOGGER_NAME, log_event
from .types import EventKind, RawEvent, WatchHandle

LOGGER_NAME = f"{ROOT_LOGGER_NAME}.source"


class NotificationSource:
    """Base protocol for notification sources."""

    def register(self, path: Path) -> WatchHandle:  # pragma: no cover - interface
        raise NotImplementedError

    def await_signal(self, cancel: threading.Event | None = None) -> WatchHandle:  # pragma: no cover - interface
        """Block until a handle is signaled.

        Raises :class:`InterruptedWait` once *cancel* is set.
        """
        raise NotImplementedError

    def poll_events(self, handle: WatchHandle) -> list[RawEvent]:  # pragma: no cover - interface
        raise NotImplementedError

    def reset(self, handle: WatchHandle) -> bool:  # pragma: no cover - interface
        raise NotImplementedError

    def cancel(self, handle: WatchHandle) -> None:  # pragma: no cover - interface
        """Stop watching *handle* and drop anything queued for it."""
        raise NotImplementedError

    def close(self) -> None:  # pragma: no cover - interface
        pass


class _SignalQueue:
    """Per-handle pending events plus the FIFO of signaled handles."""

    def __init__(self) -> None:
        self.pending: dict[WatchHandle, list[RawEvent]] = {}
        self.ready: deque[WatchHandle] = deque()
        self.signaled: set[WatchHandle] = set()

    def add(self, handle: WatchHandle, event: RawEvent | None) -> bool:
        if event is not None:
            self.pending.setdefault(handle, []).append(event)
        if handle in self.signaled:
            return False
        self.signaled.add(handle)
        self.ready.append(handle)
        return True

    def take(self, handle: WatchHandle) -> list[RawEvent]:
        return self.pending.pop(handle, [])

    def reset(self, handle: WatchHandle, *, valid: bool) -> bool:
        self.signaled.discard(handle)
        if not valid:
            self.pending.pop(handle, None)
            return False
        if self.pending.get(handle):
            self.add(handle, None)
        return True

    def discard(self, handle: WatchHandle) -> None:
        self.pending.pop(handle, None)
        if handle in self.signaled:
            self.signaled.discard(handle)
            try:
                self.ready.remove(handle)
            except ValueError:
                pass


class InotifySource(NotificationSource):
    """Linux inotify backend built on :mod:`inotify_simple`."""

    def __init__(self, *, poll_interval: float = 0.25, logger: logging.Logger | None = None) -> None:
        if INotify is None or flags is None:
            raise RuntimeError("inotify_simple package is not available")

        self.poll_interval = poll_interval
        self.logger = logger or logging.getLogger(LOGGER_NAME)
        self._inotify = INotify()
        self._queue = _SignalQueue()
        self._live: set[int] = set()
        self.mask = (
            flags.CREATE
            | flags.DELETE
            | flags.MODIFY
            | flags.ATTRIB
            | flags.MOVED_FROM
            | flags.MOVED_TO
            | flags.DELETE_SELF
            | flags.ONLYDIR
        )

    def register(self, path: Path) -> int:
        try:
            wd = self._inotify.add_watch(os.fspath(path), self.mask)
        except OSError as exc:
            raise RegistrationError(f"inotify refused watch ({exc.strerror or exc})", path) from exc
        self._live.add(wd)
        return wd

    def await_signal(self, cancel: threading.Event | None = None) -> int:
        while not self._queue.ready:
            if cancel is not None and cancel.is_set():
                raise InterruptedWait("wait cancelled")
            timeout = None if cancel is None else max(int(self.poll_interval * 1000), 1)
            self._dispatch(self._inotify.read(timeout=timeout))
        if cancel is not None and cancel.is_set():
            raise InterruptedWait("wait cancelled")
        return self._queue.ready.popleft()

    def poll_events(self, handle: WatchHandle) -> list[RawEvent]:
        return self._queue.take(handle)

    def reset(self, handle: WatchHandle) -> bool:
        return self._queue.reset(handle, valid=handle in self._live)

    def close(self) -> None:
        self._inotify.close()
        self._live.clear()

    def _dispatch(self, events) -> None:
        for event in events:
            mask = event.mask
            if mask & flags.Q_OVERFLOW:
                if self._live:
                    self._queue.add(min(self._live), RawEvent(EventKind.OVERFLOW))
                continue

            wd = event.wd
            if wd not in self._live:
                continue

            if mask & flags.IGNORED:
                self._live.discard(wd)
                self._queue.add(wd, None)
                continue

            kind = translate_mask(mask)
            if kind is None or not event.name:
                continue
            self._queue.add(wd, RawEvent(kind, Path(event.name)))

    def cancel(self, handle: WatchHandle) -> None:
        self._queue.discard(handle)
        if handle not in self._live:
            return
        self._live.discard(handle)
        try:
            self._inotify.rm_watch(handle)
        except OSError as exc:
            # The kernel drops the watch itself when the directory is deleted.
            log_event(
                self.logger,
                level=logging.DEBUG,
                action="source.rm_watch_failed",
                message="Watch was already gone",
                handle=handle,
                extra={"error": repr(exc)},
            )


def translate_mask(mask: int) -> EventKind | None:
    """Map an inotify event mask to an :class:`EventKind`."""

    if flags is None:  # pragma: no cover - optional dependency
        raise RuntimeError("inotify_simple package is not available")
    if mask & flags.Q_OVERFLOW:
        return EventKind.OVERFLOW
    if mask & (flags.CREATE | flags.MOVED_TO):
        return EventKind.CREATED
    if mask & (flags.DELETE | flags.MOVED_FROM):
        return EventKind.DELETED
    if mask & (flags.MODIFY | flags.ATTRIB):
        return EventKind.MODIFIED
    return None


class ManualSource(NotificationSource):
    """In-memory source for tests and manual event injection.

    Handles are increasing integers. Registering a path that is already
    watched returns its existing handle. Paths listed in *reject* fail to
    register, mimicking a refused watch.
    """

    def __init__(self, *, poll_interval: float = 0.05, reject: set[Path] | None = None) -> None:
        self.poll_interval = poll_interval
        self.reject = {Path(path) for path in reject or ()}
        self._next_handle = 1
        self._by_path: dict[Path, int] = {}
        self._valid: set[int] = set()
        self._queue = _SignalQueue()
        self._lock = threading.Lock()
        self._wakeups: Queue[object] = Queue()
        self.closed = False

    def register(self, path: Path) -> int:
        path = Path(path)
        if path in self.reject:
            raise RegistrationError("watch refused", path)
        with self._lock:
            handle = self._by_path.get(path)
            if handle is None:
                handle = self._next_handle
                self._next_handle += 1
                self._by_path[path] = handle
            self._valid.add(handle)
        return handle

    def handle_for(self, path: str | Path) -> int | None:
        with self._lock:
            return self._by_path.get(Path(path))

    def inject(self, handle: int, kind: EventKind, name: str | Path | None = None) -> None:
        """Queue an event for *handle* and signal it."""

        event = RawEvent(kind, Path(name) if name is not None else None)
        with self._lock:
            signaled = self._queue.add(handle, event)
        if signaled:
            self._wakeups.put(None)

    def signal(self, handle: int) -> None:
        """Signal *handle* without queuing an event."""

        with self._lock:
            signaled = self._queue.add(handle, None)
        if signaled:
            self._wakeups.put(None)

    def invalidate(self, handle: int) -> None:
        """Mark *handle* invalid, as if its directory had been removed."""

        with self._lock:
            self._valid.discard(handle)
            for path, value in list(self._by_path.items()):
                if value == handle:
                    del self._by_path[path]
            signaled = self._queue.add(handle, None)
        if signaled:
            self._wakeups.put(None)

    def cancel(self, handle: WatchHandle) -> None:
        with self._lock:
            self._valid.discard(handle)
            for path, value in list(self._by_path.items()):
                if value == handle:
                    del self._by_path[path]
            self._queue.discard(handle)

    def interrupt(self) -> None:
        """Make the current or next wait raise :class:`InterruptedWait`."""

        self._wakeups.put(_Interrupt)

    def await_signal(self, cancel: threading.Event | None = None) -> int:
        while True:
            if cancel is not None and cancel.is_set():
                raise InterruptedWait("wait cancelled")
            with self._lock:
                if self._queue.ready:
                    return self._queue.ready.popleft()
            try:
                if cancel is None:
                    item = self._wakeups.get()
                else:
                    item = self._wakeups.get(timeout=self.poll_interval)
            except Empty:
                continue
            if item is _Interrupt:
                raise InterruptedWait("wait interrupted")

    def poll_events(self, handle: WatchHandle) -> list[RawEvent]:
        with self._lock:
            return self._queue.take(handle)

    def reset(self, handle: WatchHandle) -> bool:
        with self._lock:
            valid = self._queue.reset(handle, valid=handle in self._valid)
            requeued = valid and handle in self._queue.signaled
        if requeued:
            self._wakeups.put(None)
        return valid

    def close(self) -> None:
        self.closed = True


_Interrupt = object()


def default_source_factory() -> NotificationSource:
    """Return the notification source for the running platform."""

    if sys.platform.startswith("linux") and INotify is not None:
        return InotifySource()
    raise RuntimeError("no notification backend available for this platform")


__all__ = [
    "InotifySource",
    "ManualSource",
    "NotificationSource",
    "default_source_factory",
    "translate_mask",
]
