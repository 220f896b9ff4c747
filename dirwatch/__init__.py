"""dirwatch package exports."""

from .cli import main as cli_main
from .errors import (
    ConfigurationError,
    DirWatchError,
    InterruptedWait,
    RegistrationError,
    TraversalError,
)
from .session import WatchSession
from .watcher import ChangeEvent, EventKind, LoopExit

__all__ = [
    "ChangeEvent",
    "ConfigurationError",
    "DirWatchError",
    "EventKind",
    "InterruptedWait",
    "LoopExit",
    "RegistrationError",
    "TraversalError",
    "WatchSession",
    "cli_main",
]
