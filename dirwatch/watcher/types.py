"""Shared type definitions for the watcher subsystem."""
from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum, auto
from pathlib import Path
from typing import Hashable
import time

WatchHandle = Hashable


class EventKind(Enum):
    """Change kinds delivered by a notification source."""

    CREATED = auto()
    DELETED = auto()
    MODIFIED = auto()
    OVERFLOW = auto()


class LoopExit(Enum):
    """Reason the event loop returned."""

    EXHAUSTED = auto()
    CANCELLED = auto()


@dataclass(frozen=True, slots=True)
class RawEvent:
    """Event as queued by a source for one watch handle.

    ``name`` is relative to the watched directory and is ``None`` only for
    :attr:`EventKind.OVERFLOW`.
    """

    kind: EventKind
    name: Path | None = None


@dataclass(frozen=True, slots=True)
class ChangeEvent:
    """Classified change handed to a report sink."""

    kind: EventKind
    path: Path
    is_directory: bool = False
    timestamp: float = field(default_factory=lambda: time.time(), compare=False)


__all__ = ["ChangeEvent", "EventKind", "LoopExit", "RawEvent", "WatchHandle"]
