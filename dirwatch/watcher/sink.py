"""Report sinks receiving change events and registration milestones."""
from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, field
from typing import Any

from ..logger import ROOT_LOGGER_NAME, configure_logging, log_event
from .types import ChangeEvent, EventKind

LOGGER_NAME = f"{ROOT_LOGGER_NAME}.report"


@dataclass(frozen=True, slots=True)
class Milestone:
    """A non-event record such as "scan finished" or "nothing left to watch"."""

    action: str
    message: str
    extra: dict[str, Any] = field(default_factory=dict)


class ReportSink:
    """Base protocol for report sinks."""

    def report(self, event: ChangeEvent) -> None:  # pragma: no cover - interface
        raise NotImplementedError

    def milestone(self, action: str, message: str, **extra: Any) -> None:  # pragma: no cover - interface
        raise NotImplementedError


class LoggingReportSink(ReportSink):
    """Writes every record as a structured log line."""

    def __init__(self, logger: logging.Logger | None = None) -> None:
        self.logger = logger or logging.getLogger(LOGGER_NAME)
        if not self.logger.handlers:
            configure_logging()

    def report(self, event: ChangeEvent) -> None:
        if event.kind is EventKind.OVERFLOW:
            log_event(
                self.logger,
                level=logging.INFO,
                action="event.overflow",
                message="Events were dropped by the notification source",
                path=event.path,
                extra={"kind": event.kind.name},
            )
            return

        suffix = " [DIRECTORY]" if event.is_directory else ""
        log_event(
            self.logger,
            level=logging.INFO,
            action="event.change",
            message=f"{event.kind.name}: {event.path}{suffix}",
            path=event.path,
            extra={"kind": event.kind.name, "is_directory": event.is_directory},
        )

    def milestone(self, action: str, message: str, **extra: Any) -> None:
        log_event(self.logger, level=logging.INFO, action=action, message=message, extra=extra)


class CollectingReportSink(ReportSink):
    """Keeps records in memory; safe to read from another thread."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._events: list[ChangeEvent] = []
        self._milestones: list[Milestone] = []

    def report(self, event: ChangeEvent) -> None:
        with self._lock:
            self._events.append(event)

    def milestone(self, action: str, message: str, **extra: Any) -> None:
        with self._lock:
            self._milestones.append(Milestone(action=action, message=message, extra=dict(extra)))

    @property
    def events(self) -> list[ChangeEvent]:
        with self._lock:
            return list(self._events)

    @property
    def milestones(self) -> list[Milestone]:
        with self._lock:
            return list(self._milestones)

    def actions(self) -> list[str]:
        return [item.action for item in self.milestones]

    def clear(self) -> None:
        with self._lock:
            self._events.clear()
            self._milestones.clear()


__all__ = ["CollectingReportSink", "LoggingReportSink", "Milestone", "ReportSink"]
