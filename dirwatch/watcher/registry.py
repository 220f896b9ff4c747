"""Bookkeeping of watch handles and the directories they represent."""
from __future__ import annotations

import logging
from pathlib import Path

from ..errors import RegistrationError
from ..logger import ROOT_LOGGER_NAME, log_event
from .sink import ReportSink
from .source import NotificationSource
from .types import WatchHandle

LOGGER_NAME = f"{ROOT_LOGGER_NAME}.registry"


class WatchRegistry:
    """Maps watch handles to the directory registered under them.

    Every handle present was registered successfully with the source and has
    not been invalidated since. With :attr:`trace` enabled newly watched
    directories and re-targeted handles are reported as milestones.
    """

    def __init__(
        self,
        source: NotificationSource,
        *,
        sink: ReportSink | None = None,
        logger: logging.Logger | None = None,
    ) -> None:
        self.source = source
        self.sink = sink
        self.logger = logger or logging.getLogger(LOGGER_NAME)
        self.trace = False
        self._entries: dict[WatchHandle, Path] = {}

    def register(self, path: str | Path) -> WatchHandle:
        directory = Path(path)
        if not directory.exists():
            raise RegistrationError("directory does not exist", directory)
        if not directory.is_dir():
            raise RegistrationError("not a directory", directory)

        handle = self.source.register(directory)
        previous = self._entries.get(handle)
        self._entries[handle] = directory

        log_event(
            self.logger,
            level=logging.DEBUG,
            action="watch.registered",
            message=f"Watching {directory}",
            path=directory,
            handle=handle,
        )
        if self.trace and self.sink is not None:
            if previous is None:
                self.sink.milestone("watch.registered", str(directory), path=str(directory))
            elif previous != directory:
                self.sink.milestone(
                    "watch.retargeted",
                    f"{previous} -> {directory}",
                    previous=str(previous),
                    path=str(directory),
                )
        return handle

    def resolve(self, handle: WatchHandle) -> Path | None:
        return self._entries.get(handle)

    def invalidate(self, handle: WatchHandle) -> None:
        path = self._entries.pop(handle, None)
        if path is not None:
            log_event(
                self.logger,
                level=logging.INFO,
                action="watch.invalidated",
                message=f"Stopped watching {path}",
                path=path,
                handle=handle,
            )

    def prune(self, path: str | Path) -> list[WatchHandle]:
        """Drop every entry at or below *path* and return the dropped handles.

        Used once *path* has left the tree: watches below it would otherwise
        keep reporting under paths that no longer exist.
        """

        root = Path(path)
        stale = [
            handle
            for handle, directory in self._entries.items()
            if directory == root or root in directory.parents
        ]
        for handle in stale:
            self.invalidate(handle)
        return stale

    def is_empty(self) -> bool:
        return not self._entries

    def handles(self) -> list[WatchHandle]:
        return list(self._entries)

    def paths(self) -> list[Path]:
        return list(self._entries.values())

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, handle: object) -> bool:
        return handle in self._entries


__all__ = ["WatchRegistry"]
