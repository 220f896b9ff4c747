"""Exception hierarchy for dirwatch."""
from __future__ import annotations

from pathlib import Path


class DirWatchError(Exception):
    """Base class for all dirwatch errors."""


class ConfigurationError(DirWatchError):
    """Raised when no usable root directory was supplied."""


class _PathError(DirWatchError):
    def __init__(self, message: str, path: str | Path | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.path = Path(path) if path is not None else None

    def __str__(self) -> str:
        if self.path is None:
            return self.message
        return f"{self.message}: {self.path}"


class TraversalError(_PathError):
    """Raised when a directory walk cannot proceed from its starting point."""


class RegistrationError(_PathError):
    """Raised when a single directory cannot be registered with the source."""


class InterruptedWait(DirWatchError):
    """Raised by a notification source when a blocking wait is cancelled."""


__all__ = [
    "ConfigurationError",
    "DirWatchError",
    "InterruptedWait",
    "RegistrationError",
    "TraversalError",
]
