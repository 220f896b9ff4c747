"""Directory tree walking and bulk registration."""
from __future__ import annotations

import logging
import os
from pathlib import Path

from ..errors import TraversalError
from ..logger import ROOT_LOGGER_NAME, log_event
from .registry import WatchRegistry
from .types import WatchHandle

LOGGER_NAME = f"{ROOT_LOGGER_NAME}.registrar"


class TreeRegistrar:
    """Registers a directory and every directory below it.

    Symbolic links are never followed, so a directory reachable only through
    a link stays unwatched. Registration failures propagate to the caller.
    """

    def __init__(self, registry: WatchRegistry, logger: logging.Logger | None = None) -> None:
        self.registry = registry
        self.logger = logger or logging.getLogger(LOGGER_NAME)

    def register_tree(self, root: str | Path) -> list[WatchHandle]:
        """Depth-first, pre-order registration of *root* and its subdirectories."""

        start = Path(root)
        self._check_start(start)
        log_event(
            self.logger,
            level=logging.DEBUG,
            action="registrar.walk",
            message=f"Registering tree {start}",
            path=start,
        )

        handles: list[WatchHandle] = []
        stack = [start]
        while stack:
            directory = stack.pop()
            handles.append(self.registry.register(directory))
            stack.extend(reversed(self._subdirectories(directory)))
        return handles

    def register_one(self, directory: str | Path) -> WatchHandle:
        """Register *directory* alone, without descending."""

        return self.registry.register(Path(directory))

    @staticmethod
    def _check_start(start: Path) -> None:
        try:
            is_dir = start.is_dir()
        except OSError as exc:
            raise TraversalError("cannot stat walk root", start) from exc
        if not is_dir:
            if start.exists() or start.is_symlink():
                raise TraversalError("walk root is not a directory", start)
            raise TraversalError("walk root does not exist", start)

    @staticmethod
    def _subdirectories(directory: Path) -> list[Path]:
        try:
            with os.scandir(directory) as entries:
                children = [
                    Path(entry.path) for entry in entries if entry.is_dir(follow_symlinks=False)
                ]
        except OSError as exc:
            raise TraversalError("cannot list directory", directory) from exc
        return sorted(children)


__all__ = ["TreeRegistrar"]
